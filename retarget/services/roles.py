"""
Role resolution for bounds and warning purposes.

A node's role comes from, in order: an authoring tag, a confident AI role
assignment, then a structural background score. Nodes whose role marks them
as overlay, bleed, background or decoration do not count as content.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet

from retarget.models.nodes import Bounds, ContentNode, FillKind
from retarget.models.signals import AiSignals
from retarget.services.ai_signals import ROLE_VOCABULARY, find_node_role
from retarget.services.geometry import measure_bounds


OVERLAY_TAG = "overlay"
HERO_BLEED_TAG = "hero_bleed"

BACKGROUND_COVERAGE = 0.9
BACKGROUND_NAME_KEYWORDS = ("background", "backdrop", "bg")
AI_ROLE_MIN_CONFIDENCE = 0.6

# Roles that never contribute to the content box.
NON_CONTENT_ROLES: FrozenSet[str] = frozenset({OVERLAY_TAG, HERO_BLEED_TAG, "background", "decorative"})


@dataclass(frozen=True, slots=True)
class BackgroundSignals:
    """Named structural evidence that a node is a full-bleed background."""

    coverage: float
    bottom_of_stack: bool
    image_or_gradient_fill: bool
    text_free: bool
    name_match: bool

    @property
    def supporting(self) -> int:
        return sum((self.bottom_of_stack, self.image_or_gradient_fill, self.text_free, self.name_match))

    @property
    def score(self) -> int:
        # Coverage is mandatory: without it no amount of supporting evidence counts.
        if self.coverage < BACKGROUND_COVERAGE:
            return 0
        return self.supporting

    @property
    def is_background(self) -> bool:
        return self.score >= 1


def _name_matches_background(name: str) -> bool:
    tokens = re.split(r"[^a-z0-9]+", name.lower())
    return any(token == "bg" or token.startswith(("background", "backdrop")) for token in tokens)


def _coverage(box: Bounds, root: ContentNode) -> float:
    root_area = root.bounds.area
    if root_area <= 0:
        return 0.0
    overlap_w = min(box.right, root.bounds.width) - max(box.x, 0.0)
    overlap_h = min(box.bottom, root.bounds.height) - max(box.y, 0.0)
    if overlap_w <= 0 or overlap_h <= 0:
        return 0.0
    return (overlap_w * overlap_h) / root_area


def score_background(node: ContentNode, root: ContentNode, z_index: int, box: Bounds | None = None) -> BackgroundSignals:
    """
    Collect the background evidence for `node`.

    `box` is the node's frame-local bounds; for direct children of the root
    it equals `node.bounds`.
    """
    box = box or node.bounds
    return BackgroundSignals(
        coverage=_coverage(box, root),
        bottom_of_stack=z_index == 0,
        image_or_gradient_fill=node.fill in (FillKind.IMAGE, FillKind.GRADIENT),
        text_free=not node.has_text(),
        name_match=_name_matches_background(node.name),
    )


def tagged_role(node: ContentNode) -> str | None:
    if OVERLAY_TAG in node.tags:
        return OVERLAY_TAG
    if HERO_BLEED_TAG in node.tags:
        return HERO_BLEED_TAG
    for tag in sorted(node.tags):
        if tag in ROLE_VOCABULARY:
            return tag
    return None


def classify_node_role(
    node: ContentNode,
    root: ContentNode,
    signals: AiSignals | None = None,
    z_index: int = 0,
    box: Bounds | None = None,
    min_ai_confidence: float = AI_ROLE_MIN_CONFIDENCE,
) -> str | None:
    """Resolve the role of `node`, or None when nothing identifies it."""
    role = tagged_role(node)
    if role is not None:
        return role
    evidence = find_node_role(signals, node.lookup_id, min_ai_confidence)
    if evidence is not None:
        return evidence.role
    if score_background(node, root, z_index, box).is_background:
        return "background"
    return None


def is_excluded_from_bounds(role: str | None) -> bool:
    return role in NON_CONTENT_ROLES


def combine_child_bounds(frame: ContentNode, signals: AiSignals | None = None) -> Bounds | None:
    """
    Tightest frame-local box around the frame's content.

    Hidden nodes and non-content nodes are skipped together with their subtrees.
    Returns None when nothing qualifies.
    """
    signals = signals if signals is not None else frame.ai_signals
    boxes = []
    stack = [(child, child.bounds, index) for index, child in enumerate(frame.children)]
    while stack:
        node, box, z_index = stack.pop()
        if not node.visible:
            continue
        if is_excluded_from_bounds(classify_node_role(node, frame, signals, z_index, box)):
            continue
        boxes.append(box)
        stack.extend(
            (child, child.bounds.offset(box.x, box.y), index) for index, child in enumerate(node.children)
        )
    return measure_bounds(boxes)
