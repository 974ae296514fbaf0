import json
from uuid import uuid4

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status

from retarget.api.v1.schemas import (
    ContentNodePayload,
    ExpansionPlanPayload,
    JobCreateRequest,
    JobCreateResponse,
    JobDetail,
    JobSummary,
    JobVariantsResponse,
    KillSwitchPayload,
    NodeFailurePayload,
    TargetInfo,
    VariantPayload,
    WarningPayload,
)
from retarget.models.jobs import Job
from retarget.models.targets import VARIANT_TARGETS, UnknownTargetError
from retarget.services.jobs import JobStorageError, get_job_store
from retarget.services.psd_parser import PsdImportError
from retarget.services.retarget import VariantResult
from retarget.services.safe_area import resolve_target_config

router = APIRouter(prefix="/api/v1")


def _unknown_target(exc: UnknownTargetError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))


def _job_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Job not found.",
    )


def _variant_payload(result: VariantResult) -> VariantPayload:
    kill_switch = result.kill_switch
    return VariantPayload(
        target_id=result.target.id,
        width=result.target.width,
        height=result.target.height,
        profile=result.profile.value,
        scale=result.scale,
        horizontal=ExpansionPlanPayload(
            start=result.horizontal.start, end=result.horizontal.end, interior=result.horizontal.interior
        ),
        vertical=ExpansionPlanPayload(
            start=result.vertical.start, end=result.vertical.end, interior=result.vertical.interior
        ),
        warnings=[
            WarningPayload(code=warning.code, severity=warning.severity, message=warning.message)
            for warning in result.warnings
        ],
        kill_switch=(
            KillSwitchPayload(
                activated=kill_switch.activated,
                hidden_node_ids=list(kill_switch.hidden_node_ids),
                target_height=kill_switch.target_height,
                threshold=kill_switch.threshold,
            )
            if kill_switch is not None
            else None
        ),
        failures=[NodeFailurePayload(node_id=failure.node_id, reason=failure.reason) for failure in result.failures],
        frame=ContentNodePayload.from_model(result.frame),
    )


def _created(job: Job) -> JobCreateResponse:
    return JobCreateResponse(job_id=job.id, status=job.status, targets=job.target_ids)


@router.get("/health", tags=["health"])
async def health_check() -> dict:
    """API v1 health check endpoint."""
    return {"status": "ok", "api_version": "v1"}


@router.get(
    "/targets",
    response_model=list[TargetInfo],
    tags=["targets"],
    summary="List the destination catalog",
)
async def list_targets() -> list[TargetInfo]:
    """Return every destination canvas in catalog order."""
    targets = []
    for target in VARIANT_TARGETS:
        config = resolve_target_config(target)
        targets.append(
            TargetInfo(
                id=target.id,
                label=target.label,
                description=target.description,
                width=target.width,
                height=target.height,
                aspect_ratio=round(target.aspect_ratio, 4),
                overlay_label=config.overlay_label,
                safe_area_critical=config.safe_area_critical,
            )
        )
    return targets


@router.post(
    "/jobs",
    response_model=JobCreateResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["jobs"],
    summary="Retarget a composition described as JSON",
)
async def create_job(request: JobCreateRequest) -> JobCreateResponse:
    """
    Create a retargeting job from a JSON content tree.

    Every requested target is produced synchronously from its own copy of the
    source. The optional `ai_signals` bundle is untrusted: invalid entries are
    dropped, never rejected.
    """
    store = get_job_store()
    try:
        job = await store.create_job(
            job_id=str(uuid4()),
            source=request.source.to_model(),
            target_ids=request.targets,
            safe_area_ratio=request.safe_area_ratio,
            raw_ai_signals=request.ai_signals,
        )
    except UnknownTargetError as exc:
        raise _unknown_target(exc) from exc

    return _created(job)


@router.post(
    "/jobs/psd",
    response_model=JobCreateResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["jobs"],
    summary="Retarget an uploaded PSD document",
)
async def create_job_from_psd(
    psd: UploadFile = File(..., description="Source PSD document."),
    targets: str = Form(
        ...,
        description="JSON-encoded list of target ids, e.g. [\"web-hero\", \"tiktok-vertical\"].",
    ),
    safe_area_ratio: float | None = Form(default=None, ge=0, le=0.5),
    ai_signals: str | None = Form(default=None, description="Optional JSON-encoded AI analysis bundle."),
) -> JobCreateResponse:
    """
    Create a retargeting job from a PSD upload.

    Layer names carry authoring hints: `[overlay]`, `[hero_bleed]` and `[lock]`
    modifiers, and `hero:`, `subject:`, `logo:` or `bg:` role prefixes.
    """
    try:
        target_ids = json.loads(targets)
        if not isinstance(target_ids, list) or not target_ids or not all(isinstance(item, str) for item in target_ids):
            raise ValueError("targets must be a non-empty list of strings")
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid `targets` payload. Expected a JSON list of target ids.",
        ) from exc

    raw_signals = None
    if ai_signals:
        try:
            raw_signals = json.loads(ai_signals)
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Invalid `ai_signals` payload. Expected JSON.",
            ) from exc

    store = get_job_store()
    try:
        job = await store.create_job_from_psd(
            job_id=str(uuid4()),
            psd_file=psd,
            target_ids=target_ids,
            safe_area_ratio=safe_area_ratio,
            raw_ai_signals=raw_signals,
        )
    except UnknownTargetError as exc:
        raise _unknown_target(exc) from exc
    except PsdImportError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except JobStorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to persist the uploaded document.",
        ) from exc

    return _created(job)


@router.get(
    "/jobs/{job_id}",
    response_model=JobDetail,
    tags=["jobs"],
    summary="Get details for a specific job",
)
async def get_job(job_id: str) -> JobDetail:
    """
    Retrieve metadata for a single job.

    This does not expose internal file paths; it is designed for frontend
    consumption.
    """
    store = get_job_store()
    job = await store.get_job(job_id)
    if job is None:
        raise _job_not_found()

    return JobDetail(
        id=job.id,
        status=job.status,
        targets=job.target_ids,
        safe_area_ratio=job.safe_area_ratio,
        has_ai_signals=job.ai_signals is not None,
        created_at=job.created_at.isoformat(),
        updated_at=job.updated_at.isoformat(),
    )


@router.get(
    "/jobs",
    response_model=list[JobSummary],
    tags=["jobs"],
    summary="List jobs (development use)",
)
async def list_jobs() -> list[JobSummary]:
    """
    List all known jobs.

    Intended primarily for development and debugging; in a real multi-tenant
    system, this would likely be scoped or protected.
    """
    store = get_job_store()
    jobs = await store.list_jobs()
    return [JobSummary.model_validate(job) for job in jobs]


@router.get(
    "/jobs/{job_id}/variants",
    response_model=JobVariantsResponse,
    tags=["jobs"],
    summary="Get retargeted variants for a job",
)
async def get_job_variants(job_id: str) -> JobVariantsResponse:
    """Return every variant with its plans, warnings and kill-switch report."""
    store = get_job_store()
    job = await store.get_job(job_id)
    if job is None:
        raise _job_not_found()

    return JobVariantsResponse(
        job_id=job.id,
        status=job.status,
        variants=[_variant_payload(result) for result in job.variants],
    )
