"""
The retargeting pipeline.

`retarget_variant` adapts one source composition to one destination canvas:
it clones the source, hides illegible imagery on very short targets, scales
the content into the safe area, spends the remaining slack on padding and
spacing, repositions freely-placed children and finally checks the result.
Every pass works on its own clone; the source is never mutated.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from retarget.config import EngineConfig
from retarget.models.layout import (
    AbsoluteChildSnapshot,
    AxisGaps,
    ExpansionPlan,
    KillSwitchResult,
    LayoutProfile,
    SafeAreaInsets,
    VariantWarning,
)
from retarget.models.nodes import Bounds, ContentNode, LayoutMode, LayoutPositioning, NodeMutationError
from retarget.models.signals import AiSignals
from retarget.models.targets import VariantTarget, resolve_targets
from retarget.services.absolute_layout import plan_absolute_child_positions, position_hero_bleed_child
from retarget.services.expansion import plan_auto_layout_expansion
from retarget.services.kill_switch import apply_leaderboard_kill_switch
from retarget.services.layout_snapshot import (
    SnapshotRegistry,
    prepare_clone_for_layout,
    restore_auto_layout_settings,
    scale_auto_layout_metric,
    scale_flow_settings,
)
from retarget.services.margins import measure_content_margins, normalize_content_margins
from retarget.services.profile import aspect_ratio, resolve_layout_profile, should_adopt_vertical_flow
from retarget.services.roles import HERO_BLEED_TAG, classify_node_role, combine_child_bounds
from retarget.services.safe_area import resolve_safe_area_insets, safe_bounds
from retarget.services.warnings import collect_warnings


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NodeFailure:
    """A node mutation that was skipped during the apply phase."""

    node_id: str
    reason: str


@dataclass(slots=True)
class VariantResult:
    target: VariantTarget
    # The retargeted clone, sized to the target.
    frame: ContentNode
    profile: LayoutProfile
    scale: float
    horizontal: ExpansionPlan
    vertical: ExpansionPlan
    warnings: List[VariantWarning] = field(default_factory=list)
    kill_switch: KillSwitchResult | None = None
    failures: List[NodeFailure] = field(default_factory=list)


def tag_source_ids(source: ContentNode, clone: ContentNode, log: logging.Logger = logger) -> None:
    """
    Record on every clone node the id of the source node it came from.

    Walks both trees in lockstep by child index. Where the shapes diverge the
    walk stops descending that branch and logs the mismatch.
    """
    clone.source_id = source.id
    if len(source.children) != len(clone.children):
        log.warning(
            "Structure mismatch under %s: source has %d children, clone has %d; not descending",
            source.id,
            len(source.children),
            len(clone.children),
        )
        return
    for source_child, clone_child in zip(source.children, clone.children):
        tag_source_ids(source_child, clone_child, log)


def compute_scale_factor(content_width: float, content_height: float, target: VariantTarget, insets: SafeAreaInsets) -> float:
    """
    Scale that fits the content box into the target's safe area.

    Capped by the whole-frame fit and always strictly positive: when the safe
    area is degenerate the whole-frame fit is used instead.
    """
    width = max(content_width, 1.0)
    height = max(content_height, 1.0)
    frame_fit = min(target.width / width, target.height / height)

    safe_width = target.width - insets.left - insets.right
    safe_height = target.height - insets.top - insets.bottom
    if safe_width <= 0 or safe_height <= 0:
        return frame_fit

    scale = min(safe_width / width, safe_height / height, frame_fit)
    if not math.isfinite(scale) or scale <= 0:
        return frame_fit
    return scale


def _scale_subtree(node: ContentNode, scale: float, failures: List[NodeFailure], log: logging.Logger) -> None:
    for child in node.children:
        box = child.bounds
        child.move_to(box.x * scale, box.y * scale)
        try:
            child.resize(box.width * scale, box.height * scale)
        except NodeMutationError as exc:
            log.warning("Skipping resize of %s: %s", child.id, exc)
            failures.append(NodeFailure(node_id=child.id, reason=str(exc)))
            # A node that keeps its size keeps its contents' geometry too.
            continue
        if child.font_size is not None:
            child.font_size = child.font_size * scale
        scale_flow_settings(child, scale)
        _scale_subtree(child, scale, failures, log)


def _flow_extent(node: ContentNode, mode: LayoutMode, spacing: float) -> Tuple[float, float] | None:
    # The container is neutralized at this point, so select flow children by positioning.
    children = [
        child for child in node.children if child.visible and child.positioning is not LayoutPositioning.ABSOLUTE
    ]
    if not children:
        return None
    widths = [child.bounds.width for child in children]
    heights = [child.bounds.height for child in children]
    gaps = spacing * (len(children) - 1)
    if mode is LayoutMode.HORIZONTAL:
        return sum(widths) + gaps, max(heights)
    return max(widths), sum(heights) + gaps


def _offset_children(children: Iterable[ContentNode], dx: float, dy: float) -> None:
    for child in children:
        child.move_to(child.bounds.x + dx, child.bounds.y + dy)


def _place_absolute_children(
    children: List[ContentNode],
    roles: Dict[str, str | None],
    profile: LayoutProfile,
    target: VariantTarget,
    insets: SafeAreaInsets,
    scaled_source: Tuple[float, float],
    failures: List[NodeFailure],
    threshold: float,
    log: logging.Logger,
) -> None:
    planned: List[ContentNode] = []
    for child in children:
        role = roles.get(child.id)
        if role == "background":
            child.move_to(0, 0)
            try:
                child.resize(target.width, target.height)
            except NodeMutationError as exc:
                log.warning("Skipping background cover of %s: %s", child.id, exc)
                failures.append(NodeFailure(node_id=child.id, reason=str(exc)))
        elif role == HERO_BLEED_TAG:
            x, y = position_hero_bleed_child(child.bounds, target.width, target.height, *scaled_source)
            child.move_to(x, y)
        elif child.visible and role != "overlay":
            planned.append(child)

    snapshots = [
        AbsoluteChildSnapshot(
            id=child.id,
            x=child.bounds.x,
            y=child.bounds.y,
            width=child.bounds.width,
            height=child.bounds.height,
            node_type=child.node_type,
            fill=child.fill,
        )
        for child in planned
    ]
    plans = plan_absolute_child_positions(
        profile,
        safe_bounds(target.width, target.height, insets),
        snapshots,
        target_aspect_ratio=target.aspect_ratio,
        threshold=threshold,
        log=log,
    )
    for child, plan in zip(planned, plans):
        child.move_to(plan.x, plan.y)


def retarget_variant(
    source: ContentNode,
    target: VariantTarget,
    safe_area_ratio: float | None = None,
    signals: AiSignals | None = None,
    config: EngineConfig | None = None,
    log: logging.Logger = logger,
) -> VariantResult:
    """Produce a copy of `source` adapted to `target`."""
    config = config or EngineConfig()
    ratio = config.safe_area_ratio if safe_area_ratio is None else safe_area_ratio

    frame = source.clone(id_factory=lambda node: f"{target.id}:{node.id}")
    tag_source_ids(source, frame, log)
    if signals is not None:
        frame.ai_signals = signals
    signals = frame.ai_signals

    profile = resolve_layout_profile(target)
    kill_switch = apply_leaderboard_kill_switch(frame, target, config.kill_switch, signals, log)
    # Roles depend on coverage of the source frame, so resolve them before anything moves.
    roles = {
        child.id: classify_node_role(child, frame, signals, index, min_ai_confidence=config.ai_role_min_confidence)
        for index, child in enumerate(frame.children)
    }
    insets = resolve_safe_area_insets(target, ratio)

    source_width, source_height = frame.bounds.width, frame.bounds.height
    content = combine_child_bounds(frame, signals) or Bounds(0, 0, source_width, source_height)

    margins = measure_content_margins(frame, signals)
    source_profile = resolve_layout_profile(content)
    margins = normalize_content_margins(
        margins,
        source_profile,
        profile,
        aspect_ratio(content.width, content.height),
        target.aspect_ratio,
        log,
    )

    scale = compute_scale_factor(content.width, content.height, target, insets)
    log.debug("Scaling %s for %s by %.4f (profile %s)", source.id, target.id, scale, profile.value)

    registry = SnapshotRegistry()
    snapshot = prepare_clone_for_layout(frame, registry)

    failures: List[NodeFailure] = []
    _scale_subtree(frame, scale, failures, log)
    try:
        frame.resize(target.width, target.height)
    except NodeMutationError as exc:
        log.warning("Could not resize root %s: %s", frame.id, exc)
        failures.append(NodeFailure(node_id=frame.id, reason=str(exc)))

    content_width, content_height = content.width * scale, content.height * scale
    flow_mode = LayoutMode.NONE
    if snapshot is not None:
        flow_mode = LayoutMode.VERTICAL if should_adopt_vertical_flow(profile, snapshot) else snapshot.layout.mode
        base_spacing = scale_auto_layout_metric(snapshot.layout.item_spacing, scale)
        extent = _flow_extent(frame, flow_mode, base_spacing)
        if extent is not None:
            content_width, content_height = extent

    extra_width = max(target.width - content_width, 0.0)
    extra_height = max(target.height - content_height, 0.0)
    horizontal_gaps = AxisGaps(margins.left, margins.right) if margins else None
    vertical_gaps = AxisGaps(margins.top, margins.bottom) if margins else None

    flow_count = snapshot.flow_child_count if snapshot is not None else 0
    base_item_spacing = snapshot.layout.item_spacing * scale if snapshot is not None else 0.0
    horizontal = plan_auto_layout_expansion(
        extra_width,
        max(insets.left, insets.right),
        horizontal_gaps,
        flow_count if flow_mode is LayoutMode.HORIZONTAL else (1 if snapshot is not None else 0),
        base_item_spacing,
        config.expansion,
        log,
    )
    vertical = plan_auto_layout_expansion(
        extra_height,
        max(insets.top, insets.bottom),
        vertical_gaps,
        flow_count if flow_mode is LayoutMode.VERTICAL else (1 if snapshot is not None else 0),
        base_item_spacing,
        config.expansion,
        log,
    )

    if snapshot is not None:
        restore_auto_layout_settings(frame, registry, scale, horizontal, vertical, profile, log)
        frame.relayout()
        free_children = [child for child in frame.children if not frame.participates_in_flow(child)]
    else:
        free_children = list(frame.children)

    # Scaled content sits at the origin; shift it to the planned start edges.
    # Backgrounds and bleeds are placed against the frame itself below.
    content_children = [child for child in free_children if roles.get(child.id) not in ("background", HERO_BLEED_TAG)]
    _offset_children(content_children, horizontal.start - content.x * scale, vertical.start - content.y * scale)
    _place_absolute_children(
        free_children,
        roles,
        profile,
        target,
        insets,
        (source_width * scale, source_height * scale),
        failures,
        config.grouping_threshold,
        log,
    )

    warnings = collect_warnings(frame, target, ratio, signals, config, log)
    log.info(
        "Retargeted %s -> %s: scale=%.3f warnings=%d failures=%d",
        source.id,
        target.id,
        scale,
        len(warnings),
        len(failures),
    )
    return VariantResult(
        target=target,
        frame=frame,
        profile=profile,
        scale=scale,
        horizontal=horizontal,
        vertical=vertical,
        warnings=warnings,
        kill_switch=kill_switch,
        failures=failures,
    )


def retarget_all(
    source: ContentNode,
    target_ids: List[str],
    safe_area_ratio: float | None = None,
    signals: AiSignals | None = None,
    config: EngineConfig | None = None,
    log: logging.Logger = logger,
) -> List[VariantResult]:
    """
    Run one independent pass per target id, in order.

    Unknown ids raise `UnknownTargetError` before any pass runs.
    """
    targets = resolve_targets(target_ids)
    return [retarget_variant(source, target, safe_area_ratio, signals, config, log) for target in targets]
