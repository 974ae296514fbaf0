from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True, slots=True)
class AiRoleEvidence:
    """A semantic role the AI provider assigned to a node."""

    node_id: str
    role: str
    confidence: float


@dataclass(frozen=True, slots=True)
class AiFocalPoint:
    """Normalized (0..1) point of visual interest."""

    node_id: str
    x: float
    y: float
    confidence: float


@dataclass(frozen=True, slots=True)
class AiFaceRegion:
    """Normalized face rectangle; width/height are fractions of the frame."""

    node_id: str
    x: float
    y: float
    width: float
    height: float
    confidence: float


@dataclass(frozen=True, slots=True)
class AiQaSignal:
    code: str
    severity: str
    message: str | None = None
    # Optional: providers often omit a confidence for QA findings.
    confidence: float | None = None


@dataclass(frozen=True, slots=True)
class AiSignals:
    """
    Sanitized, advisory signals from an external AI analysis.

    Only `sanitize_ai_signals` constructs this type; everything downstream of the
    sanitizer can rely on vocabulary-valid entries with clamped confidences.
    """

    roles: Tuple[AiRoleEvidence, ...] = ()
    focal_points: Tuple[AiFocalPoint, ...] = ()
    qa: Tuple[AiQaSignal, ...] = ()
    face_regions: Tuple[AiFaceRegion, ...] = ()
