import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

# Environment must be loaded before the job store reads its settings.
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

from retarget.api.v1.routes import router as api_v1_router  # noqa: E402
from retarget.config import Settings  # noqa: E402


logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Application factory for the Retarget API.

    Keeping this as a separate function makes it easier to extend
    configuration and testing later.
    """
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if env_path.exists():
        logger.info("Loaded environment from %s", env_path)

    app = FastAPI(
        title="Retarget API",
        version="0.1.0",
        description="Adaptive layout retargeting of compositions to destination canvases.",
    )

    # Infrastructure-level health check (non-versioned) primarily for ops.
    @app.get("/health", tags=["health"])
    async def root_health_check() -> dict:
        """Simple root health check endpoint."""
        return {"status": "ok"}

    # Public, versioned API routes.
    app.include_router(api_v1_router)

    return app


app = create_app()
