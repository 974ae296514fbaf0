from __future__ import annotations

import math

from retarget.models.layout import AxisGaps, DistributedPadding


def _non_negative(value: float) -> float:
    if value is None or not math.isfinite(value):
        return 0.0
    return max(float(value), 0.0)


def distribute_padding(total_extra: float, safe_inset: float, gaps: AxisGaps | None) -> DistributedPadding:
    """
    Split `total_extra` pixels of slack between the start and end of an axis.

    Each side first receives the safe-area inset (never more than half the slack,
    so a target with almost no room degrades to an even split). Whatever remains
    is biased toward the side that had more breathing room in the source.
    """
    total = _non_negative(total_extra)
    inset = min(_non_negative(safe_inset), total / 2)
    remaining = max(total - 2 * inset, 0.0)

    weight = 0.5
    if gaps is not None:
        gap_start = _non_negative(gaps.start)
        gap_end = _non_negative(gaps.end)
        if gap_start + gap_end > 0:
            weight = gap_start / (gap_start + gap_end)

    start = inset + remaining * weight
    end = inset + remaining * (1 - weight)
    return DistributedPadding(start=start, end=end)
