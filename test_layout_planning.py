"""
Tests for profile classification, padding distribution and flow expansion.
"""

import pytest

from retarget.config import ExpansionConfig
from retarget.models.layout import AutoLayoutSnapshot, AxisGaps, DistributedPadding, ExpansionPlan, LayoutProfile
from retarget.models.nodes import Bounds, FlowLayout, LayoutMode
from retarget.services.expansion import interior_fraction, interior_spacing, plan_auto_layout_expansion
from retarget.services.padding import distribute_padding
from retarget.services.profile import (
    compute_vertical_spacing,
    resolve_layout_profile,
    resolve_vertical_align_items,
    should_adopt_vertical_flow,
)


def test_resolve_layout_profile_buckets():
    assert resolve_layout_profile(1920, 1080) is LayoutProfile.HORIZONTAL
    assert resolve_layout_profile(1080, 1920) is LayoutProfile.VERTICAL
    assert resolve_layout_profile(1000, 1000) is LayoutProfile.SQUARE


def test_resolve_layout_profile_accepts_objects_with_dimensions():
    assert resolve_layout_profile(Bounds(0, 0, 728, 90)) is LayoutProfile.HORIZONTAL
    assert resolve_layout_profile(Bounds(0, 0, 900, 1000)) is LayoutProfile.SQUARE


def test_resolve_layout_profile_zero_height_does_not_divide_by_zero():
    assert resolve_layout_profile(100, 0) is LayoutProfile.HORIZONTAL


@pytest.mark.parametrize(
    "args, expected",
    [
        ((400, 80, AxisGaps(120, 120)), DistributedPadding(200, 200)),
        ((600, 60, AxisGaps(180, 60)), DistributedPadding(420, 180)),
        ((300, 50, None), DistributedPadding(150, 150)),
        ((50, 80, AxisGaps(30, 70)), DistributedPadding(25, 25)),
    ],
)
def test_distribute_padding_examples(args, expected):
    assert distribute_padding(*args) == expected


@pytest.mark.parametrize("total", [0, 1, 37.5, 300, 1234.56])
@pytest.mark.parametrize("inset", [0, 10, 80, 5000])
@pytest.mark.parametrize("gap", [0, 12, 240])
def test_distribute_padding_equal_gaps_split_evenly(total, inset, gap):
    padding = distribute_padding(total, inset, AxisGaps(gap, gap))
    assert padding.start == padding.end


def test_distribute_padding_zero_gaps_fall_back_to_even_split():
    assert distribute_padding(100, 10, AxisGaps(0, 0)) == DistributedPadding(50, 50)


def test_distribute_padding_clamps_negative_and_non_finite_input():
    assert distribute_padding(-50, 10, None) == DistributedPadding(0, 0)
    assert distribute_padding(float("nan"), 10, None) == DistributedPadding(0, 0)
    assert distribute_padding(100, float("inf"), None) == DistributedPadding(50, 50)


@pytest.mark.parametrize("total", [0, 1, 99.5, 480, 2000])
@pytest.mark.parametrize("inset", [0, 24, 400])
@pytest.mark.parametrize("count", [0, 1, 2, 3, 4, 5, 6, 12])
@pytest.mark.parametrize("gaps", [None, AxisGaps(0, 0), AxisGaps(30, 90), AxisGaps(200, 10)])
def test_expansion_plan_conserves_space(total, inset, count, gaps):
    plan = plan_auto_layout_expansion(total, inset, gaps, count, base_item_spacing=16)
    assert plan.start + plan.end + plan.interior == pytest.approx(total)
    assert plan.start >= 0 and plan.end >= 0 and plan.interior >= 0


@pytest.mark.parametrize("count", [0, 1])
def test_expansion_without_interior_gaps_spends_nothing_inside(count):
    plan = plan_auto_layout_expansion(800, 40, AxisGaps(10, 300), count)
    assert plan.interior == 0
    assert plan.start == plan.end == 400


def test_expansion_sparse_content_gets_majority_interior():
    plan = plan_auto_layout_expansion(400, 20, AxisGaps(100, 300), 3)
    # 20px per edge is held back; three quarters of the remaining 360 go inside.
    assert plan.interior == pytest.approx(270)
    assert plan.start == pytest.approx(42.5)
    assert plan.end == pytest.approx(87.5)


@pytest.mark.parametrize("total", [1, 60, 143.2, 400, 1200])
@pytest.mark.parametrize("inset", [0, 24, 72, 400])
@pytest.mark.parametrize("count", [2, 3, 5, 9])
@pytest.mark.parametrize("gaps", [None, AxisGaps(30, 90), AxisGaps(500, 0)])
def test_expansion_edges_never_drop_below_safe_inset(total, inset, count, gaps):
    plan = plan_auto_layout_expansion(total, inset, gaps, count)
    floor = min(inset, total / 2)
    assert plan.start >= floor - 1e-9
    assert plan.end >= floor - 1e-9
    assert plan.start + plan.end + plan.interior == pytest.approx(total)


def test_expansion_with_slack_only_for_the_insets_spends_nothing_inside():
    plan = plan_auto_layout_expansion(144, 72, AxisGaps(10, 10), 3)
    assert plan == ExpansionPlan(72, 72, 0)


def test_interior_fraction_shrinks_with_density():
    assert interior_fraction(1) == 0
    assert interior_fraction(2) == 0.75
    assert interior_fraction(3) == 0.75
    assert interior_fraction(5) == 0.65
    assert interior_fraction(6) == 0.55
    assert interior_fraction(2) > interior_fraction(5) > interior_fraction(9) > 0.5


def test_interior_fraction_is_tunable():
    config = ExpansionConfig(sparse_interior_fraction=0.9)
    plan = plan_auto_layout_expansion(100, 0, None, 2, config=config)
    assert plan.interior == pytest.approx(90)


def test_expansion_ignores_negative_slack():
    assert plan_auto_layout_expansion(-120, 10, None, 4) == ExpansionPlan(0, 0, 0)


def test_interior_spacing_spreads_evenly():
    assert interior_spacing(ExpansionPlan(0, 0, 300), 10, 4) == 110
    assert interior_spacing(ExpansionPlan(0, 0, 50), 8, 1) == 58


def test_compute_vertical_spacing_caps_growth():
    assert compute_vertical_spacing(10, 20, 3) == 20
    # Per-gap slack far beyond the soft cap is capped at twelve times the base, softened for sparse stacks.
    assert compute_vertical_spacing(10, 1000, 2) == pytest.approx(106)
    assert compute_vertical_spacing(10, 1000, 6) == pytest.approx(130)
    assert compute_vertical_spacing(10, 500, 1) == 10


def test_compute_vertical_spacing_without_base_adds_nothing():
    assert compute_vertical_spacing(0, 600, 4) == 0


def _snapshot(mode: LayoutMode) -> AutoLayoutSnapshot:
    return AutoLayoutSnapshot(
        node_id="row",
        width=800,
        height=200,
        layout=FlowLayout(mode=mode),
        flow_child_count=3,
        absolute_child_count=0,
    )


def test_should_adopt_vertical_flow_only_for_rows_on_tall_targets():
    assert should_adopt_vertical_flow(LayoutProfile.VERTICAL, _snapshot(LayoutMode.HORIZONTAL)) is True
    assert should_adopt_vertical_flow(LayoutProfile.SQUARE, _snapshot(LayoutMode.HORIZONTAL)) is False
    assert should_adopt_vertical_flow(LayoutProfile.VERTICAL, _snapshot(LayoutMode.VERTICAL)) is False
    assert should_adopt_vertical_flow(LayoutProfile.VERTICAL, None) is False


def test_resolve_vertical_align_items():
    assert resolve_vertical_align_items("CENTER", 100) == "MIN"
    assert resolve_vertical_align_items("SPACE_BETWEEN", 0) == "SPACE_BETWEEN"
    assert resolve_vertical_align_items("CENTER", 0) == "MIN"
    assert resolve_vertical_align_items("MIN", 0) == "MIN"
