"""
Capture and restore of flow-container settings around a retarget pass.

A flow container is neutralized (no padding, no spacing, free placement) while
its subtree is scaled, then its settings are written back with the scaled and
planned values. Snapshots live in a per-pass `SnapshotRegistry`.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Dict

from retarget.models.layout import AutoLayoutSnapshot, ExpansionPlan, LayoutProfile
from retarget.models.nodes import ContentNode, LayoutMode, LayoutPositioning
from retarget.services.expansion import interior_spacing
from retarget.services.profile import compute_vertical_spacing, resolve_vertical_align_items, should_adopt_vertical_flow


logger = logging.getLogger(__name__)


class SnapshotError(RuntimeError):
    """Raised when a snapshot is stored twice or taken without being stored."""


class SnapshotRegistry:
    """
    Write-once, read-once map of node id to captured flow settings.

    One registry belongs to exactly one target pass.
    """

    def __init__(self) -> None:
        self._snapshots: Dict[str, AutoLayoutSnapshot] = {}

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._snapshots

    def __len__(self) -> int:
        return len(self._snapshots)

    def store(self, snapshot: AutoLayoutSnapshot) -> None:
        if snapshot.node_id in self._snapshots:
            raise SnapshotError(f"A snapshot for node '{snapshot.node_id}' was already captured in this pass.")
        self._snapshots[snapshot.node_id] = snapshot

    def take(self, node_id: str) -> AutoLayoutSnapshot:
        try:
            return self._snapshots.pop(node_id)
        except KeyError:
            raise SnapshotError(f"No snapshot captured for node '{node_id}'.") from None


def capture_auto_layout_snapshot(node: ContentNode) -> AutoLayoutSnapshot | None:
    """Copy the flow settings of `node`; None for freely-placed containers."""
    if not node.is_flow_container:
        return None
    absolute_count = sum(1 for child in node.children if child.positioning is LayoutPositioning.ABSOLUTE)
    # Hidden children take no space in the flow.
    flow_count = sum(1 for child in node.flow_children() if child.visible)
    return AutoLayoutSnapshot(
        node_id=node.id,
        width=node.bounds.width,
        height=node.bounds.height,
        layout=dataclasses.replace(node.layout),
        flow_child_count=flow_count,
        absolute_child_count=absolute_count,
    )


def prepare_clone_for_layout(node: ContentNode, registry: SnapshotRegistry) -> AutoLayoutSnapshot | None:
    """Snapshot a flow container and neutralize it so its subtree can be scaled freely."""
    snapshot = capture_auto_layout_snapshot(node)
    if snapshot is None:
        return None
    registry.store(snapshot)
    node.layout = dataclasses.replace(
        node.layout,
        mode=LayoutMode.NONE,
        primary_sizing="FIXED",
        counter_sizing="FIXED",
        padding_left=0.0,
        padding_right=0.0,
        padding_top=0.0,
        padding_bottom=0.0,
        item_spacing=0.0,
        counter_axis_spacing=0.0 if node.layout.counter_axis_spacing is not None else None,
        clips_content=True,
    )
    return snapshot


def scale_auto_layout_metric(value: float, scale: float, minimum: float = 0) -> float:
    """Scale a padding/spacing value to whole pixels; zero stays zero."""
    if value == 0:
        return 0
    return max(round(value * scale), minimum)


def scale_flow_settings(node: ContentNode, scale: float) -> None:
    """Scale the padding and spacing of a nested flow container in place."""
    if not node.is_flow_container:
        return
    layout = node.layout
    layout.padding_left = scale_auto_layout_metric(layout.padding_left, scale)
    layout.padding_right = scale_auto_layout_metric(layout.padding_right, scale)
    layout.padding_top = scale_auto_layout_metric(layout.padding_top, scale)
    layout.padding_bottom = scale_auto_layout_metric(layout.padding_bottom, scale)
    layout.item_spacing = scale_auto_layout_metric(layout.item_spacing, scale, 1)
    if layout.wrap == "WRAP" and layout.counter_axis_spacing is not None:
        layout.counter_axis_spacing = scale_auto_layout_metric(layout.counter_axis_spacing, scale, 1)


def restore_auto_layout_settings(
    node: ContentNode,
    registry: SnapshotRegistry,
    scale: float,
    horizontal: ExpansionPlan,
    vertical: ExpansionPlan,
    profile: LayoutProfile,
    log: logging.Logger = logger,
) -> AutoLayoutSnapshot:
    """
    Write the planned padding and spacing back onto `node`.

    Consumes the node's snapshot; values are rounded to whole pixels here and
    nowhere earlier. A horizontal row becomes a vertical stack on vertical
    targets.
    """
    snapshot = registry.take(node.id)
    source = snapshot.layout

    mode = LayoutMode.VERTICAL if should_adopt_vertical_flow(profile, snapshot) else source.mode
    base_spacing = scale_auto_layout_metric(source.item_spacing, scale)

    item_spacing = base_spacing
    # Vertical growth per gap is capped; whatever the gaps do not take goes back to the edges.
    unspent = 0.0
    if snapshot.flow_child_count >= 2:
        gap_count = snapshot.flow_child_count - 1
        if mode is LayoutMode.HORIZONTAL:
            item_spacing = round(interior_spacing(horizontal, base_spacing, snapshot.flow_child_count))
        else:
            item_spacing = round(compute_vertical_spacing(base_spacing, vertical.interior, snapshot.flow_child_count))
            unspent = max(vertical.interior - (item_spacing - base_spacing) * gap_count, 0.0)

    layout = dataclasses.replace(
        source,
        mode=mode,
        padding_left=round(horizontal.start),
        padding_right=round(horizontal.end),
        padding_top=round(vertical.start + unspent / 2),
        padding_bottom=round(vertical.end + unspent / 2),
        item_spacing=item_spacing,
    )
    if source.wrap == "WRAP" and source.counter_axis_spacing is not None:
        layout.counter_axis_spacing = round(scale_auto_layout_metric(source.counter_axis_spacing, scale))
    if profile is LayoutProfile.VERTICAL and mode is LayoutMode.VERTICAL:
        layout.primary_align = resolve_vertical_align_items(source.primary_align, vertical.interior)
        layout.wrap = "NO_WRAP"

    node.layout = layout
    log.debug(
        "Restored flow settings on %s: mode=%s padding=(%s, %s, %s, %s) spacing=%s",
        node.id,
        mode.value,
        layout.padding_left,
        layout.padding_right,
        layout.padding_top,
        layout.padding_bottom,
        layout.item_spacing,
    )
    return snapshot
