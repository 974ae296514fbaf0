"""
Tests for capturing and restoring flow-container settings.
"""

import pytest

from retarget.models.layout import ExpansionPlan, LayoutProfile
from retarget.models.nodes import Bounds, ContentNode, FlowLayout, LayoutMode, LayoutPositioning, NodeType
from retarget.services.layout_snapshot import (
    SnapshotError,
    SnapshotRegistry,
    capture_auto_layout_snapshot,
    prepare_clone_for_layout,
    restore_auto_layout_settings,
    scale_auto_layout_metric,
    scale_flow_settings,
)


def _child(node_id, **kwargs):
    return ContentNode(id=node_id, node_type=NodeType.RECTANGLE, bounds=Bounds(0, 0, 100, 50), **kwargs)


def _row(mode=LayoutMode.HORIZONTAL, primary_align="MIN", item_spacing=10.0):
    return ContentNode(
        id="row",
        node_type=NodeType.FRAME,
        bounds=Bounds(0, 0, 600, 200),
        layout=FlowLayout(
            mode=mode,
            primary_align=primary_align,
            item_spacing=item_spacing,
            padding_left=24,
            padding_right=24,
            padding_top=16,
            padding_bottom=16,
        ),
        children=[
            _child("a"),
            _child("b"),
            _child("c"),
            _child("gone", visible=False),
            _child("pinned", positioning=LayoutPositioning.ABSOLUTE),
        ],
    )


def test_capture_skips_free_containers():
    assert capture_auto_layout_snapshot(_row(mode=LayoutMode.NONE)) is None


def test_capture_counts_visible_flow_children():
    snapshot = capture_auto_layout_snapshot(_row())
    assert snapshot.flow_child_count == 3
    assert snapshot.absolute_child_count == 1
    assert (snapshot.width, snapshot.height) == (600, 200)


def test_registry_is_write_once_read_once():
    registry = SnapshotRegistry()
    snapshot = capture_auto_layout_snapshot(_row())
    registry.store(snapshot)
    assert "row" in registry
    with pytest.raises(SnapshotError):
        registry.store(snapshot)
    assert registry.take("row") is snapshot
    assert len(registry) == 0
    with pytest.raises(SnapshotError):
        registry.take("row")


def test_prepare_neutralizes_flow_settings():
    node = _row()
    registry = SnapshotRegistry()
    snapshot = prepare_clone_for_layout(node, registry)

    assert node.layout.mode is LayoutMode.NONE
    assert node.layout.item_spacing == 0
    assert (node.layout.padding_left, node.layout.padding_top) == (0, 0)
    assert node.layout.clips_content
    # The snapshot keeps the original values.
    assert snapshot.layout.mode is LayoutMode.HORIZONTAL
    assert snapshot.layout.padding_left == 24
    assert "row" in registry


def test_prepare_ignores_free_containers():
    registry = SnapshotRegistry()
    assert prepare_clone_for_layout(_row(mode=LayoutMode.NONE), registry) is None
    assert len(registry) == 0


def test_scale_auto_layout_metric():
    assert scale_auto_layout_metric(0, 3) == 0
    assert scale_auto_layout_metric(10, 1.26) == 13
    assert scale_auto_layout_metric(10, 0.04) == 0
    assert scale_auto_layout_metric(10, 0.04, minimum=1) == 1


def test_scale_flow_settings_keeps_spacing_visible():
    node = _row(item_spacing=4)
    scale_flow_settings(node, 0.1)
    assert node.layout.item_spacing == 1
    assert node.layout.padding_left == 2
    assert node.layout.padding_top == 2


def test_restore_horizontal_row_spreads_interior_between_items():
    node = _row()
    registry = SnapshotRegistry()
    prepare_clone_for_layout(node, registry)

    restore_auto_layout_settings(
        node,
        registry,
        scale=2,
        horizontal=ExpansionPlan(start=30.4, end=49.6, interior=100),
        vertical=ExpansionPlan(start=20, end=20, interior=0),
        profile=LayoutProfile.HORIZONTAL,
    )

    layout = node.layout
    assert layout.mode is LayoutMode.HORIZONTAL
    assert (layout.padding_left, layout.padding_right, layout.padding_top, layout.padding_bottom) == (30, 50, 20, 20)
    assert layout.item_spacing == 70
    assert "row" not in registry


def test_restore_rotates_rows_on_vertical_targets():
    node = _row(primary_align="CENTER", item_spacing=10)
    registry = SnapshotRegistry()
    prepare_clone_for_layout(node, registry)

    restore_auto_layout_settings(
        node,
        registry,
        scale=2,
        horizontal=ExpansionPlan(start=40, end=40, interior=0),
        vertical=ExpansionPlan(start=100, end=100, interior=100),
        profile=LayoutProfile.VERTICAL,
    )

    layout = node.layout
    assert layout.mode is LayoutMode.VERTICAL
    assert layout.primary_align == "MIN"
    assert layout.wrap == "NO_WRAP"
    assert layout.item_spacing == 60
    # The gaps take 80 of the 100 interior pixels; the other 20 go back to the edges.
    assert (layout.padding_top, layout.padding_bottom) == (110, 110)
    assert (layout.padding_left, layout.padding_right) == (40, 40)


def test_restore_keeps_space_between_without_interior_slack():
    node = _row(mode=LayoutMode.VERTICAL, primary_align="SPACE_BETWEEN")
    registry = SnapshotRegistry()
    prepare_clone_for_layout(node, registry)

    restore_auto_layout_settings(
        node,
        registry,
        scale=1,
        horizontal=ExpansionPlan(0, 0, 0),
        vertical=ExpansionPlan(10, 10, 0),
        profile=LayoutProfile.VERTICAL,
    )
    assert node.layout.primary_align == "SPACE_BETWEEN"


def test_restore_without_snapshot_raises():
    with pytest.raises(SnapshotError):
        restore_auto_layout_settings(
            _row(),
            SnapshotRegistry(),
            scale=1,
            horizontal=ExpansionPlan(0, 0, 0),
            vertical=ExpansionPlan(0, 0, 0),
            profile=LayoutProfile.SQUARE,
        )
