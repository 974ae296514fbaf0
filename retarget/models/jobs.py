from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List

from retarget.api.v1.schemas import JobStatus
from retarget.models.nodes import ContentNode
from retarget.models.signals import AiSignals
from retarget.services.retarget import VariantResult


def utcnow() -> datetime:
    """Return an explicit, timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class Job:
    """
    Internal representation of a retargeting job.

    This is intentionally separate from API schemas so we can evolve internal
    fields (e.g. storage details, cached signals) without breaking the API.
    """

    id: str
    status: JobStatus
    # Source composition; never mutated by the target passes.
    source: ContentNode
    target_ids: List[str]
    safe_area_ratio: float
    # Sanitized once per job and reused by every target pass.
    ai_signals: AiSignals | None = None
    # Path of the uploaded source document, when the job came from a file.
    source_path: str | None = None
    variants: List[VariantResult] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
