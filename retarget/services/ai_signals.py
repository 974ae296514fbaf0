"""
Sanitization of AI analysis bundles.

The provider's JSON is untrusted. `sanitize_ai_signals` is the only way to turn
it into an `AiSignals` value: every entry is schema-checked on its own, entries
that fail are dropped, and nothing here ever raises on bad input.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Annotated, Any, Iterable, List, Mapping, Type, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, field_validator

from retarget.models.signals import AiFaceRegion, AiFocalPoint, AiQaSignal, AiRoleEvidence, AiSignals


logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.5
MIN_FACE_SIZE = 0.03
MAX_FACE_SIZE = 0.8

ROLE_VOCABULARY = frozenset(
    {
        "logo",
        "hero_image",
        "hero_bleed",
        "secondary_image",
        "background",
        "title",
        "subtitle",
        "body",
        "caption",
        "cta",
        "cta_secondary",
        "badge",
        "icon",
        "list",
        "feature_item",
        "testimonial",
        "price",
        "rating",
        "divider",
        "container",
        "decorative",
        "unknown",
        "subject",
        "hero",
    }
)

QA_CODE_VOCABULARY = frozenset(
    {
        "LOW_CONTRAST",
        "LOGO_TOO_SMALL",
        "TEXT_OVERLAP",
        "UNCERTAIN_ROLES",
        "SALIENCE_MISALIGNED",
        "SAFE_AREA_RISK",
        "GENERIC",
        "EXCESSIVE_TEXT",
        "MISSING_CTA",
        "ASPECT_MISMATCH",
        "TEXT_TOO_SMALL_FOR_TARGET",
        "CONTENT_DENSITY_MISMATCH",
        "THUMBNAIL_LEGIBILITY",
        "OVERLAY_CONFLICT",
        "CTA_PLACEMENT_RISK",
        "HIERARCHY_UNCLEAR",
        "VERTICAL_OVERFLOW_RISK",
        "HORIZONTAL_OVERFLOW_RISK",
        "PATTERN_MISMATCH",
        "COLOR_CONTRAST_INSUFFICIENT",
        "TEXT_TOO_SMALL_ACCESSIBLE",
        "INSUFFICIENT_TOUCH_TARGETS",
        "HEADING_HIERARCHY_BROKEN",
        "POOR_FOCUS_INDICATORS",
        "MOTION_SENSITIVITY_RISK",
        "MISSING_ALT_EQUIVALENT",
        "POOR_READING_ORDER",
        "TYPOGRAPHY_INCONSISTENCY",
        "COLOR_HARMONY_POOR",
        "SPACING_INCONSISTENCY",
        "VISUAL_WEIGHT_IMBALANCED",
        "BRAND_CONSISTENCY_WEAK",
        "CONTENT_HIERARCHY_FLAT",
    }
)


def clamp_to_unit(value: Any) -> float | None:
    """
    Parse a confidence-like value into `[0, 1]`.

    Numbers and numeric strings are accepted; values in `(1, 100]` are read as
    percentages. Booleans, non-numeric strings (e.g. "76%") and non-finite
    values yield None so the caller's default applies.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    elif isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    if 1 < number <= 100:
        number /= 100
    return min(max(number, 0.0), 1.0)


def normalize_role(value: str) -> str:
    snake = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", value.strip())
    return re.sub(r"[\s-]+", "_", snake).lower()


def _finite_number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("expected a number")
    try:
        number = float(value)
    except OverflowError:
        raise ValueError("number out of range") from None
    if not math.isfinite(number):
        raise ValueError("expected a finite number")
    return number


def _unit(value: Any) -> float:
    return min(max(_finite_number(value), 0.0), 1.0)


def _confidence_or_default(value: Any) -> float:
    parsed = clamp_to_unit(value)
    return DEFAULT_CONFIDENCE if parsed is None else parsed


def _optional_node_id(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _face_size(value: Any) -> float:
    return min(max(_finite_number(value), MIN_FACE_SIZE), MAX_FACE_SIZE)


UnitFloat = Annotated[float, BeforeValidator(_unit)]
FaceSize = Annotated[float, BeforeValidator(_face_size)]
Confidence = Annotated[float, BeforeValidator(_confidence_or_default)]
OptionalNodeId = Annotated[str, BeforeValidator(_optional_node_id)]


class _Entry(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class RoleEntry(_Entry):
    node_id: str = Field(alias="nodeId")
    role: str
    confidence: Confidence = DEFAULT_CONFIDENCE

    @field_validator("role")
    @classmethod
    def _known_role(cls, value: str) -> str:
        role = normalize_role(value)
        if role not in ROLE_VOCABULARY:
            raise ValueError(f"unknown role {value!r}")
        return role

    def to_signal(self) -> AiRoleEvidence:
        return AiRoleEvidence(node_id=self.node_id, role=self.role, confidence=self.confidence)


class FocalPointEntry(_Entry):
    node_id: OptionalNodeId = Field(default="", alias="nodeId")
    x: UnitFloat
    y: UnitFloat
    confidence: Confidence = DEFAULT_CONFIDENCE

    def to_signal(self) -> AiFocalPoint:
        return AiFocalPoint(node_id=self.node_id, x=self.x, y=self.y, confidence=self.confidence)


class FaceRegionEntry(_Entry):
    node_id: OptionalNodeId = Field(default="", alias="nodeId")
    x: UnitFloat
    y: UnitFloat
    width: FaceSize
    height: FaceSize
    confidence: Confidence = DEFAULT_CONFIDENCE

    def to_signal(self) -> AiFaceRegion:
        return AiFaceRegion(
            node_id=self.node_id,
            x=self.x,
            y=self.y,
            width=self.width,
            height=self.height,
            confidence=self.confidence,
        )


class QaEntry(_Entry):
    code: str
    severity: str = "warn"
    message: str | None = None
    confidence: float | None = None

    @field_validator("code")
    @classmethod
    def _known_code(cls, value: str) -> str:
        code = value.strip().upper()
        if code not in QA_CODE_VOCABULARY:
            raise ValueError(f"unknown QA code {value!r}")
        return code

    @field_validator("severity", mode="before")
    @classmethod
    def _severity(cls, value: Any) -> str:
        return value if value in ("info", "error") else "warn"

    @field_validator("message", mode="before")
    @classmethod
    def _message(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, value: Any) -> float | None:
        return clamp_to_unit(value)

    def to_signal(self) -> AiQaSignal:
        return AiQaSignal(code=self.code, severity=self.severity, message=self.message, confidence=self.confidence)


EntryT = TypeVar("EntryT", bound=_Entry)


def _entries(raw: Mapping[Any, Any], *keys: str) -> List[Any]:
    for key in keys:
        if key in raw:
            value = raw[key]
            return list(value) if isinstance(value, (list, tuple)) else []
    return []


def _sanitize_entries(entries: Iterable[Any], model: Type[EntryT], log: logging.Logger) -> list:
    accepted = []
    for entry in entries:
        try:
            accepted.append(model.model_validate(entry).to_signal())
        except ValidationError as exc:
            log.debug("Dropping %s entry: %s", model.__name__, exc.errors(include_url=False))
    return accepted


def sanitize_ai_signals(raw: Any, log: logging.Logger = logger) -> AiSignals | None:
    """
    Filter an untrusted AI bundle down to vocabulary-valid entries.

    Returns None when nothing usable survives, including when `raw` is not a
    mapping at all, so "no signal" and "empty signal" look the same to callers.
    """
    if not isinstance(raw, Mapping):
        return None

    roles = _sanitize_entries(_entries(raw, "roles"), RoleEntry, log)
    focal_points = _sanitize_entries(_entries(raw, "focalPoints", "focal_points"), FocalPointEntry, log)
    qa = _sanitize_entries(_entries(raw, "qa"), QaEntry, log)
    face_regions = _sanitize_entries(_entries(raw, "faceRegions", "face_regions"), FaceRegionEntry, log)

    if not (roles or focal_points or qa or face_regions):
        return None
    return AiSignals(
        roles=tuple(roles),
        focal_points=tuple(focal_points),
        qa=tuple(qa),
        face_regions=tuple(face_regions),
    )


def find_node_role(
    signals: AiSignals | None,
    node_id: str,
    min_confidence: float = 0.0,
) -> AiRoleEvidence | None:
    """Most confident role assignment for `node_id` at or above `min_confidence`."""
    if signals is None:
        return None
    candidates = [
        role for role in signals.roles if role.node_id == node_id and role.confidence >= min_confidence
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda role: role.confidence)


def resolve_primary_focal_point(signals: AiSignals | None) -> AiFocalPoint | None:
    if signals is None or not signals.focal_points:
        return None
    return max(signals.focal_points, key=lambda point: point.confidence)
