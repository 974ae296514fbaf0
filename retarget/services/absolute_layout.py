"""
Repositioning of freely-placed (absolute) children.

Absolute layouts are left alone unless the change of shape demands it: a
side-by-side arrangement headed for a tall canvas is restacked vertically, and
content spilling out of the safe area is projected back inside it.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from retarget.models.layout import AbsoluteChildSnapshot, AbsolutePlan, ElementGroup, LayoutProfile
from retarget.models.nodes import Bounds
from retarget.services.element_groups import (
    GROUPING_PROXIMITY_THRESHOLD,
    detect_element_groups,
    group_offsets,
    optimize_group_sizes,
)
from retarget.services.geometry import clamp, measure_bounds, scale_center_to_range
from retarget.services.profile import AspectRatios


logger = logging.getLogger(__name__)

# Content wider than this multiple of its height counts as side by side.
SIDE_BY_SIDE_RATIO = 1.1


def needs_vertical_reflow(
    profile: LayoutProfile,
    content: Bounds,
    child_count: int,
    target_aspect_ratio: float | None = None,
) -> bool:
    tall_target = profile is LayoutProfile.VERTICAL or (
        target_aspect_ratio is not None and target_aspect_ratio < AspectRatios.EXTREME_VERTICAL
    )
    return tall_target and child_count >= 2 and content.width > content.height * SIDE_BY_SIDE_RATIO


def _stack_groups(
    groups: Sequence[ElementGroup], safe_bounds: Bounds, log: logging.Logger = logger
) -> List[AbsolutePlan]:
    ordered = sorted(groups, key=lambda group: group.bounds.y)
    heights = [group.bounds.height for group in ordered]
    free = safe_bounds.height - sum(heights)
    if free < 0:
        log.warning(
            "Stacked groups need %.1f px but the safe area is %.1f px tall; packing them without gaps",
            sum(heights),
            safe_bounds.height,
        )
        free = 0.0

    if len(ordered) == 1:
        tops = [safe_bounds.y + free / 2]
    else:
        # First group at the safe top, last at the safe bottom, equal gaps between.
        gap = free / (len(ordered) - 1)
        tops = []
        cursor = safe_bounds.y
        for height in heights:
            tops.append(cursor)
            cursor += height + gap

    plans: List[AbsolutePlan] = []
    for group, top in zip(ordered, tops):
        left = clamp(
            safe_bounds.x + (safe_bounds.width - group.bounds.width) / 2,
            safe_bounds.x,
            safe_bounds.right - group.bounds.width,
        )
        for element, dx, dy in group_offsets(group):
            plans.append(AbsolutePlan(id=element.id, x=left + dx, y=top + dy))
    return plans


def _project_into(children: Sequence[AbsoluteChildSnapshot], content: Bounds, safe_bounds: Bounds) -> List[AbsolutePlan]:
    plans: List[AbsolutePlan] = []
    for child in children:
        center_x = scale_center_to_range(
            child.x + child.width / 2,
            (content.x, content.right),
            (safe_bounds.x, safe_bounds.right),
        )
        center_y = scale_center_to_range(
            child.y + child.height / 2,
            (content.y, content.bottom),
            (safe_bounds.y, safe_bounds.bottom),
        )
        x = clamp(center_x - child.width / 2, safe_bounds.x, safe_bounds.right - child.width)
        y = clamp(center_y - child.height / 2, safe_bounds.y, safe_bounds.bottom - child.height)
        plans.append(AbsolutePlan(id=child.id, x=x, y=y))
    return plans


def plan_absolute_child_positions(
    profile: LayoutProfile,
    safe_bounds: Bounds,
    children: Sequence[AbsoluteChildSnapshot],
    target_aspect_ratio: float | None = None,
    threshold: float = GROUPING_PROXIMITY_THRESHOLD,
    log: logging.Logger = logger,
) -> List[AbsolutePlan]:
    """
    Return a target position for every child, in input order.

    Never raises on degenerate geometry: an empty child list yields an empty
    plan and zero-size ranges collapse to the safe-area midpoint.
    """
    if not children:
        return []

    content = measure_bounds(child.bounds for child in children)

    if needs_vertical_reflow(profile, content, len(children), target_aspect_ratio):
        groups = optimize_group_sizes(detect_element_groups(children, threshold), threshold)
        log.debug("Reflowing %d children as %d stacked groups", len(children), len(groups))
        by_id = {plan.id: plan for plan in _stack_groups(groups, safe_bounds, log)}
        return [by_id[child.id] for child in children]

    if safe_bounds.contains(content):
        return [AbsolutePlan(id=child.id, x=child.x, y=child.y) for child in children]

    log.debug("Content %s spills out of safe bounds %s; projecting inward", content, safe_bounds)
    return _project_into(children, content, safe_bounds)


def position_hero_bleed_child(
    child: Bounds,
    frame_width: float,
    frame_height: float,
    source_width: float | None = None,
    source_height: float | None = None,
) -> tuple[float, float]:
    """
    New top-left for an element that deliberately bleeds off the frame edge.

    On each axis the element keeps its proportional distance from whichever
    edge its center was closer to in the source frame, so a bleed stays a bleed.
    """
    source_width = frame_width if source_width is None else source_width
    source_height = frame_height if source_height is None else source_height

    def _axis(start: float, size: float, source_length: float, target_length: float) -> float:
        center = start + size / 2
        if center <= source_length - center:
            return target_length * (start / max(source_length, 1))
        end_ratio = (source_length - (start + size)) / max(source_length, 1)
        return target_length - target_length * end_ratio - size

    return (
        _axis(child.x, child.width, source_width, frame_width),
        _axis(child.y, child.height, source_height, frame_height),
    )
