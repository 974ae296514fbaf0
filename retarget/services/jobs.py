from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

from fastapi import UploadFile

from retarget.api.v1.schemas import JobStatus
from retarget.config import EngineConfig, Settings
from retarget.models.jobs import Job, utcnow
from retarget.models.nodes import ContentNode
from retarget.models.targets import resolve_targets
from retarget.services.ai_signals import sanitize_ai_signals
from retarget.services.psd_parser import PSDParser
from retarget.services.retarget import retarget_variant


logger = logging.getLogger(__name__)


class JobStorageError(RuntimeError):
    """Raised when a storage operation fails in a non-recoverable way."""


class JobStore:
    """
    Simple in-memory job store with filesystem-backed source storage.

    This is a minimal abstraction that can later be replaced by a database
    and object storage without changing the API surface.
    """

    def __init__(self, base_dir: Path, config: EngineConfig | None = None) -> None:
        self._base_dir = base_dir
        self._config = config or EngineConfig()
        self._jobs: Dict[str, Job] = {}
        self._base_dir.mkdir(parents=True, exist_ok=True)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    @property
    def config(self) -> EngineConfig:
        return self._config

    async def create_job(
        self,
        job_id: str,
        source: ContentNode,
        target_ids: List[str],
        safe_area_ratio: float | None = None,
        raw_ai_signals: Any = None,
        source_path: str | None = None,
    ) -> Job:
        """
        Register a job and run every target pass for it.

        Unknown target ids raise `UnknownTargetError` before anything is stored.
        AI signals are sanitized once here and shared by all passes.
        """
        targets = resolve_targets(target_ids)
        signals = sanitize_ai_signals(raw_ai_signals)
        source.ai_signals = signals

        job = Job(
            id=job_id,
            status=JobStatus.RETARGETING,
            source=source,
            target_ids=list(target_ids),
            safe_area_ratio=self._config.safe_area_ratio if safe_area_ratio is None else safe_area_ratio,
            ai_signals=signals,
            source_path=source_path,
        )
        self._jobs[job.id] = job

        try:
            job.variants = [
                retarget_variant(source, target, job.safe_area_ratio, signals, self._config) for target in targets
            ]
        except Exception:
            job.status = JobStatus.FAILED
            job.updated_at = utcnow()
            logger.exception("Job %s failed while retargeting", job.id)
            raise
        job.status = JobStatus.COMPLETED
        job.updated_at = utcnow()
        logger.info("Job %s completed with %d variant(s)", job.id, len(job.variants))
        return job

    async def create_job_from_psd(
        self,
        job_id: str,
        psd_file: UploadFile,
        target_ids: List[str],
        safe_area_ratio: float | None = None,
        raw_ai_signals: Any = None,
    ) -> Job:
        """
        Persist an uploaded PSD, import it and run the job.

        The file is written to `<base_dir>/<job_id>/source.psd`.
        """
        resolve_targets(target_ids)
        job_dir = self._base_dir / job_id

        try:
            job_dir.mkdir(parents=True, exist_ok=True)
            source_path = job_dir / "source.psd"
            contents = await psd_file.read()
            source_path.write_bytes(contents)
        except OSError as exc:  # noqa: PERF203
            raise JobStorageError("Failed to persist the uploaded PSD to disk.") from exc

        parser = PSDParser(source_path)
        source = parser.parse()
        for warning in parser.warnings:
            logger.warning("PSD import (%s): %s", job_id, warning)

        return await self.create_job(
            job_id=job_id,
            source=source,
            target_ids=target_ids,
            safe_area_ratio=safe_area_ratio,
            raw_ai_signals=raw_ai_signals,
            source_path=str(source_path),
        )

    async def get_job(self, job_id: str) -> Job | None:
        """Retrieve a job by its identifier, if it exists."""
        return self._jobs.get(job_id)

    async def list_jobs(self) -> List[Job]:
        """Return all known jobs. Intended for debugging and admin tooling."""
        return list(self._jobs.values())


_settings = Settings.from_env()
_default_store = JobStore(base_dir=_settings.storage_dir, config=_settings.engine)


def get_job_store() -> JobStore:
    """
    Return the process-wide job store instance.

    Abstracted behind a function to make it easy to later swap out the
    implementation or inject different stores in tests.
    """
    return _default_store
