"""
Layout profile classification.

Every target is bucketed into a coarse orientation before any planning happens;
the bucket decides which strategies the planners use.
"""

from __future__ import annotations

from typing import Any

from retarget.models.layout import AutoLayoutSnapshot, LayoutProfile
from retarget.models.nodes import LayoutMode


class AspectRatios:
    """Aspect-ratio thresholds (width / height) shared by the planners."""

    SQUARE_MIN = 0.8
    SQUARE_MAX = 1.2
    EXTREME_VERTICAL = 0.57
    VERTICAL_VIDEO = 0.6


def aspect_ratio(width: float, height: float) -> float:
    return width / max(height, 1)


def resolve_layout_profile(width: Any, height: float | None = None) -> LayoutProfile:
    """
    Bucket a canvas into vertical / square / horizontal.

    Accepts either `(width, height)` or any object exposing `width` and `height`
    attributes (a `Bounds`, a `VariantTarget`, ...).
    """
    if height is None:
        width, height = width.width, width.height
    ratio = aspect_ratio(width, height)
    if ratio < AspectRatios.SQUARE_MIN:
        return LayoutProfile.VERTICAL
    if ratio > AspectRatios.SQUARE_MAX:
        return LayoutProfile.HORIZONTAL
    return LayoutProfile.SQUARE


def should_adopt_vertical_flow(profile: LayoutProfile, snapshot: AutoLayoutSnapshot | None) -> bool:
    """A horizontal flow row turns into a column when the destination is tall."""
    if snapshot is None:
        return False
    return profile is LayoutProfile.VERTICAL and snapshot.layout.mode is LayoutMode.HORIZONTAL


def compute_vertical_spacing(base_spacing: float, interior: float, flow_child_count: int) -> float:
    """
    Per-gap spacing for a vertical stack that received `interior` extra space.

    Tall targets can hand a stack hundreds of spare pixels; spreading all of it
    between items makes content look disconnected, so growth per gap is capped
    relative to the original spacing. Returns an unrounded value.
    """
    if flow_child_count < 2:
        return base_spacing

    per_gap = max(interior, 0.0) / max(flow_child_count - 1, 1)
    soft_cap = base_spacing * 3
    extended_cap = base_spacing * 12
    if per_gap > soft_cap * 1.5:
        addition = min(per_gap * 0.75, extended_cap)
    else:
        addition = min(per_gap, soft_cap)

    # Few children with lots of room: soften so the stack still reads as one unit.
    if flow_child_count <= 3 and per_gap > base_spacing * 2:
        return base_spacing + addition * 0.8
    return base_spacing + addition


def resolve_vertical_align_items(current: str, interior: float) -> str:
    """
    Primary alignment for a stack on a vertical target.

    Rotated stacks anchor to the top of the safe area unless the author asked
    for SPACE_BETWEEN and there is no interior slack to distribute instead.
    """
    if current == "MIN" or max(interior, 0.0) > 0:
        return "MIN"
    return "SPACE_BETWEEN" if current == "SPACE_BETWEEN" else "MIN"
