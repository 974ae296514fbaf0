from __future__ import annotations

import math
from typing import Iterable, Tuple

import numpy as np

from retarget.models.nodes import Bounds


def clamp(value: float, lower: float, upper: float) -> float:
    if upper < lower:
        return lower
    return min(max(value, lower), upper)


def scale_center_to_range(center: float, source_range: Tuple[float, float], dest_range: Tuple[float, float]) -> float:
    """
    Map `center` proportionally from `source_range` into `dest_range`.

    A zero-size source collapses to the destination midpoint; a zero-size
    destination collapses to its start. Non-finite input is treated like a
    degenerate source.
    """
    source_start, source_end = source_range
    dest_start, dest_end = dest_range
    dest_size = dest_end - dest_start
    if dest_size == 0:
        return dest_start
    source_size = source_end - source_start
    if source_size == 0 or not math.isfinite(center) or not math.isfinite(source_size):
        return dest_start + dest_size / 2
    ratio = (center - source_start) / source_size
    return dest_start + ratio * dest_size


def measure_bounds(boxes: Iterable[Bounds]) -> Bounds | None:
    """Tightest box around `boxes`, or None when there are none."""
    rows = [(box.x, box.y, box.right, box.bottom) for box in boxes]
    if not rows:
        return None
    edges = np.asarray(rows, dtype=float)
    left, top = edges[:, 0].min(), edges[:, 1].min()
    right, bottom = edges[:, 2].max(), edges[:, 3].max()
    return Bounds(float(left), float(top), float(right - left), float(bottom - top))
