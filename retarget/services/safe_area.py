"""
Safe-area resolution per destination.

Some platforms overlay their own chrome on the canvas (captions, buttons,
profile badges); their insets are fixed and asymmetric. Everything else gets a
symmetric inset proportional to the canvas.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from retarget.models.layout import SafeAreaInsets
from retarget.models.nodes import Bounds
from retarget.models.targets import VariantTarget
from retarget.services.profile import AspectRatios


YOUTUBE_COVER_SAFE_WIDTH = 1546
YOUTUBE_COVER_SAFE_HEIGHT = 423


@dataclass(frozen=True, slots=True)
class OverlayConstraints:
    horizontal: str
    vertical: str


@dataclass(frozen=True, slots=True)
class TargetConfig:
    """Per-target presentation settings consumed by overlay rendering and warnings."""

    overlay_label: str
    overlay_constraints: OverlayConstraints
    safe_area_insets: SafeAreaInsets | None = None
    # Content outside the safe area is hidden by platform UI, not merely cramped.
    safe_area_critical: bool = False


_VERTICAL_VIDEO_OVERLAY = OverlayConstraints(horizontal="STRETCH", vertical="MIN")

_TARGET_CONFIGS: Dict[str, TargetConfig] = {
    "tiktok-vertical": TargetConfig(
        overlay_label="Content Safe Zone",
        overlay_constraints=_VERTICAL_VIDEO_OVERLAY,
        safe_area_insets=SafeAreaInsets(left=90, right=120, top=150, bottom=400),
        safe_area_critical=True,
    ),
    "youtube-shorts": TargetConfig(
        overlay_label="Shorts Safe Zone",
        overlay_constraints=_VERTICAL_VIDEO_OVERLAY,
        safe_area_insets=SafeAreaInsets(left=60, right=120, top=200, bottom=280),
        safe_area_critical=True,
    ),
    "instagram-reels": TargetConfig(
        overlay_label="Reels Safe Zone",
        overlay_constraints=_VERTICAL_VIDEO_OVERLAY,
        safe_area_insets=SafeAreaInsets(left=60, right=120, top=108, bottom=340),
        safe_area_critical=True,
    ),
    "youtube-cover": TargetConfig(
        overlay_label="Text & Logo Safe Area",
        overlay_constraints=OverlayConstraints(horizontal="CENTER", vertical="CENTER"),
        safe_area_critical=True,
    ),
}


def resolve_target_config(target: VariantTarget) -> TargetConfig:
    config = _TARGET_CONFIGS.get(target.id)
    if config is not None:
        return config
    if target.aspect_ratio < AspectRatios.VERTICAL_VIDEO:
        return TargetConfig(
            overlay_label="Content Safe Zone",
            overlay_constraints=OverlayConstraints(horizontal="STRETCH", vertical="STRETCH"),
        )
    return TargetConfig(
        overlay_label="Safe Area",
        overlay_constraints=OverlayConstraints(horizontal="SCALE", vertical="SCALE"),
    )


def resolve_safe_area_insets(target: VariantTarget, safe_area_ratio: float) -> SafeAreaInsets:
    config = resolve_target_config(target)
    if config.safe_area_insets is not None:
        return config.safe_area_insets

    if target.id == "youtube-cover":
        # Only the centered region survives cropping on every device.
        horizontal = max((target.width - YOUTUBE_COVER_SAFE_WIDTH) / 2, 0.0)
        vertical = max((target.height - YOUTUBE_COVER_SAFE_HEIGHT) / 2, 0.0)
        return SafeAreaInsets(left=horizontal, right=horizontal, top=vertical, bottom=vertical)

    inset_x = max(target.width * safe_area_ratio, 0.0)
    inset_y = max(target.height * safe_area_ratio, 0.0)
    return SafeAreaInsets(left=inset_x, right=inset_x, top=inset_y, bottom=inset_y)


def safe_bounds(width: float, height: float, insets: SafeAreaInsets) -> Bounds:
    """The safe region of a `width` x `height` canvas as frame-local bounds."""
    return Bounds(
        insets.left,
        insets.top,
        max(width - insets.left - insets.right, 0.0),
        max(height - insets.top - insets.bottom, 0.0),
    )
