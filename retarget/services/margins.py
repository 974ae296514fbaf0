from __future__ import annotations

import logging

from retarget.models.layout import ContentMargins, LayoutProfile
from retarget.models.nodes import ContentNode
from retarget.models.signals import AiSignals
from retarget.services.roles import combine_child_bounds


logger = logging.getLogger(__name__)

ASYMMETRY_THRESHOLD = 0.6
# Square targets tolerate less imbalance on either axis.
SQUARE_ASYMMETRY_THRESHOLD = ASYMMETRY_THRESHOLD * 0.8
SIGNIFICANT_ASPECT_CHANGE = 1.0
ORIGINAL_WEIGHT = 0.25
TARGET_WEIGHT = 0.75


def measure_content_margins(frame: ContentNode, signals: AiSignals | None = None) -> ContentMargins | None:
    """Whitespace between the frame's content box and each edge, or None for an empty frame."""
    content = combine_child_bounds(frame, signals)
    if content is None:
        return None
    return ContentMargins(
        left=max(content.x, 0.0),
        right=max(frame.bounds.width - content.right, 0.0),
        top=max(content.y, 0.0),
        bottom=max(frame.bounds.height - content.bottom, 0.0),
    )


def _asymmetry(a: float, b: float) -> float:
    total = a + b
    return abs(a - b) / total if total > 0 else 0.0


def _exceeds(target_profile: LayoutProfile, dominant: LayoutProfile, asymmetry: float) -> bool:
    if target_profile is dominant:
        return asymmetry > ASYMMETRY_THRESHOLD
    if target_profile is LayoutProfile.SQUARE:
        return asymmetry > SQUARE_ASYMMETRY_THRESHOLD
    return False


def _blend(original: float, target: float) -> float:
    return original * ORIGINAL_WEIGHT + target * TARGET_WEIGHT


def normalize_content_margins(
    margins: ContentMargins | None,
    source_profile: LayoutProfile,
    target_profile: LayoutProfile,
    source_aspect_ratio: float,
    target_aspect_ratio: float,
    log: logging.Logger = logger,
) -> ContentMargins | None:
    """
    Rebalance lopsided margins when the shape of the canvas changes a lot.

    Margins pass through untouched unless the aspect ratio moves by more than
    1.0 or the profile changes. A vertical target biases the vertical slack
    toward the bottom (one third above, two thirds below).
    """
    if margins is None:
        return None

    aspect_change = abs(source_aspect_ratio - target_aspect_ratio)
    if aspect_change <= SIGNIFICANT_ASPECT_CHANGE and source_profile is target_profile:
        return margins

    left, right, top, bottom = margins.left, margins.right, margins.top, margins.bottom

    if _exceeds(target_profile, LayoutProfile.HORIZONTAL, _asymmetry(margins.left, margins.right)):
        average = (margins.left + margins.right) / 2
        left = _blend(margins.left, average)
        right = _blend(margins.right, average)

    if _exceeds(target_profile, LayoutProfile.VERTICAL, _asymmetry(margins.top, margins.bottom)):
        total = margins.top + margins.bottom
        if target_profile is LayoutProfile.VERTICAL:
            top = _blend(margins.top, total / 3)
            bottom = _blend(margins.bottom, total * 2 / 3)
        else:
            top = _blend(margins.top, total / 2)
            bottom = _blend(margins.bottom, total / 2)

    normalized = ContentMargins(left=max(left, 0.0), right=max(right, 0.0), top=max(top, 0.0), bottom=max(bottom, 0.0))
    log.debug(
        "Margin normalization %s -> %s (aspect change %.3f, %s -> %s): %s",
        margins,
        normalized,
        aspect_change,
        source_profile.value,
        target_profile.value,
        "changed" if normalized != margins else "unchanged",
    )
    return normalized
