"""
Slack planning for flow (auto-layout) containers.

When a container grows on an axis the extra pixels are split between the edge
padding and the gaps between flow children. The planner returns fractional
values; callers round only when writing to a node.
"""

from __future__ import annotations

import logging
import math

from retarget.config import ExpansionConfig
from retarget.models.layout import AxisGaps, ExpansionPlan
from retarget.services.padding import distribute_padding


logger = logging.getLogger(__name__)


def interior_fraction(flow_child_count: int, config: ExpansionConfig | None = None) -> float:
    """Share of the slack spent between children, by content density."""
    config = config or ExpansionConfig()
    if flow_child_count < 2:
        return 0.0
    if flow_child_count <= config.sparse_max_children:
        return config.sparse_interior_fraction
    if flow_child_count <= config.moderate_max_children:
        return config.moderate_interior_fraction
    return config.dense_interior_fraction


def reserved_inset(total_extra: float, safe_inset: float) -> float:
    """Per-edge share of the slack held back for the safe area."""
    inset = safe_inset if safe_inset is not None and math.isfinite(safe_inset) else 0.0
    return min(max(inset, 0.0), max(total_extra, 0.0) / 2)


def plan_auto_layout_expansion(
    total_extra: float,
    safe_inset: float,
    gaps: AxisGaps | None,
    flow_child_count: int,
    base_item_spacing: float = 0.0,
    config: ExpansionConfig | None = None,
    log: logging.Logger = logger,
) -> ExpansionPlan:
    """
    Plan how `total_extra` is spent on one axis.

    Each edge first reserves the safe-area inset (never more than half the
    slack). With fewer than two flow children there is no gap to widen, so the
    whole slack goes to the edges. Otherwise a density-dependent share of what
    is left after the reserve goes to the interior and the rest to the edges,
    biased by the source's original `gaps`. `start + end + interior` always
    equals `total_extra` (after clamping a negative or non-finite value to 0).
    """
    total = total_extra if total_extra is not None and math.isfinite(total_extra) else 0.0
    total = max(total, 0.0)
    count = max(int(flow_child_count or 0), 0)

    if count < 2:
        edges = distribute_padding(total, safe_inset, None)
        return ExpansionPlan(start=edges.start, end=edges.end, interior=0.0)

    leftover = max(total - 2 * reserved_inset(total, safe_inset), 0.0)
    # The edge budget still holds both reserves, so neither edge drops below the inset.
    edges = distribute_padding(total - leftover * interior_fraction(count, config), safe_inset, gaps)
    interior = total - edges.start - edges.end
    log.debug(
        "Expansion plan: total=%.1f interior=%.1f start=%.1f end=%.1f (children=%d, base spacing=%.1f)",
        total,
        interior,
        edges.start,
        edges.end,
        count,
        base_item_spacing,
    )
    return ExpansionPlan(start=edges.start, end=edges.end, interior=interior)


def interior_spacing(plan: ExpansionPlan, base_item_spacing: float, flow_child_count: int) -> float:
    """Item spacing after spreading the plan's interior slack evenly across the gaps."""
    return max(base_item_spacing, 0.0) + plan.interior / max(flow_child_count - 1, 1)
