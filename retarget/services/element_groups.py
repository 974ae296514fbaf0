"""
Proximity clustering of freely-placed children.

The absolute planner moves clusters as units so that a headline and the logo
beside it never drift apart when a layout is reflowed.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

from retarget.models.layout import AbsoluteChildSnapshot, ElementGroup
from retarget.models.nodes import FillKind, NodeType
from retarget.services.geometry import measure_bounds


GROUPING_PROXIMITY_THRESHOLD = 50.0
MAX_GROUP_SIZE = 4
MAX_SUB_GROUP_SIZE = 3
LOGO_MAX_SIZE = 120.0
MIN_TEXT_CLUSTER_SIZE = 2


def is_logo_like(element: AbsoluteChildSnapshot) -> bool:
    if element.node_type is NodeType.INSTANCE:
        return True
    small = element.width <= LOGO_MAX_SIZE and element.height <= LOGO_MAX_SIZE
    return small and (element.fill is FillKind.IMAGE or element.node_type is NodeType.VECTOR)


def is_text(element: AbsoluteChildSnapshot) -> bool:
    return element.node_type is NodeType.TEXT


def _classify(elements: Sequence[AbsoluteChildSnapshot]) -> str:
    texts = sum(1 for element in elements if is_text(element))
    logos = sum(1 for element in elements if is_logo_like(element) and not is_text(element))
    if texts and logos:
        return "text-logo"
    if texts >= MIN_TEXT_CLUSTER_SIZE:
        return "text-cluster"
    return "isolated"


def _centers(elements: Sequence[AbsoluteChildSnapshot]) -> np.ndarray:
    return np.asarray(
        [(element.x + element.width / 2, element.y + element.height / 2) for element in elements],
        dtype=float,
    ).reshape(-1, 2)


def build_group(elements: Sequence[AbsoluteChildSnapshot], group_type: str | None = None) -> ElementGroup:
    members = tuple(elements)
    bounds = measure_bounds(element.bounds for element in members)
    centroid = _centers(members).mean(axis=0)
    return ElementGroup(
        elements=members,
        group_type=group_type or _classify(members),
        bounds=bounds,
        centroid=(float(centroid[0]), float(centroid[1])),
    )


def detect_element_groups(
    children: Sequence[AbsoluteChildSnapshot],
    threshold: float = GROUPING_PROXIMITY_THRESHOLD,
) -> List[ElementGroup]:
    """
    Cluster children whose centers lie within `threshold` of a seed element.

    Children are visited in order; the first unassigned child seeds a cluster
    and pulls in every unassigned child within range of its center.
    """
    if not children:
        return []

    centers = _centers(children)
    deltas = centers[:, None, :] - centers[None, :, :]
    distances = np.sqrt((deltas ** 2).sum(axis=-1))

    assigned = np.zeros(len(children), dtype=bool)
    groups: List[ElementGroup] = []
    for seed in range(len(children)):
        if assigned[seed]:
            continue
        members = np.flatnonzero((distances[seed] <= threshold) & ~assigned)
        assigned[members] = True
        groups.append(build_group([children[index] for index in members]))
    return groups


def _split_group(group: ElementGroup, threshold: float) -> List[ElementGroup]:
    ordered = sorted(group.elements, key=lambda element: element.y)
    chunks: List[List[AbsoluteChildSnapshot]] = [[ordered[0]]]
    for previous, element in zip(ordered, ordered[1:]):
        gap = element.y - (previous.y + previous.height)
        if gap > threshold / 2 or len(chunks[-1]) >= MAX_SUB_GROUP_SIZE:
            chunks.append([element])
        else:
            chunks[-1].append(element)

    # Pieces of a broken-up lockup are no longer one coherent text-logo unit.
    group_type = "text-cluster" if group.group_type == "text-logo" else group.group_type
    return [build_group(chunk, group_type) for chunk in chunks]


def optimize_group_sizes(
    groups: Sequence[ElementGroup],
    threshold: float = GROUPING_PROXIMITY_THRESHOLD,
) -> List[ElementGroup]:
    """Split clusters with more than `MAX_GROUP_SIZE` members by vertical order."""
    optimized: List[ElementGroup] = []
    for group in groups:
        if len(group.elements) > MAX_GROUP_SIZE:
            optimized.extend(_split_group(group, threshold))
        else:
            optimized.append(group)
    return optimized


def group_offsets(group: ElementGroup) -> List[Tuple[AbsoluteChildSnapshot, float, float]]:
    """Each member with its offset from the group's top-left corner."""
    return [(element, element.x - group.bounds.x, element.y - group.bounds.y) for element in group.elements]
