from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

from retarget.models.nodes import Bounds, FillKind, FlowLayout, NodeType


class LayoutProfile(str, Enum):
    """Coarse aspect-ratio bucket driving the layout strategy."""

    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"
    SQUARE = "square"


@dataclass(frozen=True, slots=True)
class AxisGaps:
    """Original breathing room at the start/end of an axis."""

    start: float
    end: float


@dataclass(frozen=True, slots=True)
class DistributedPadding:
    start: float
    end: float


@dataclass(frozen=True, slots=True)
class ExpansionPlan:
    """
    How the slack on one axis is spent.

    `start + end + interior == total_extra`: space is conserved, never created
    or lost. Values stay fractional until they are written to a node.
    """

    start: float
    end: float
    interior: float

    @property
    def total(self) -> float:
        return self.start + self.end + self.interior


@dataclass(frozen=True, slots=True)
class SafeAreaInsets:
    left: float
    right: float
    top: float
    bottom: float


@dataclass(slots=True)
class ContentMargins:
    """Whitespace between the content box and each frame edge."""

    left: float
    right: float
    top: float
    bottom: float


@dataclass(frozen=True, slots=True)
class AbsoluteChildSnapshot:
    """Geometry of a freely-placed child, captured before repositioning."""

    id: str
    x: float
    y: float
    width: float
    height: float
    node_type: NodeType = NodeType.RECTANGLE
    fill: FillKind = FillKind.NONE

    @property
    def bounds(self) -> Bounds:
        return Bounds(self.x, self.y, self.width, self.height)


@dataclass(frozen=True, slots=True)
class AbsolutePlan:
    id: str
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class ElementGroup:
    """A proximity cluster of absolute children that moves as one unit."""

    elements: Tuple[AbsoluteChildSnapshot, ...]
    group_type: str  # "text-logo" | "text-cluster" | "isolated"
    bounds: Bounds
    centroid: Tuple[float, float]


@dataclass(frozen=True, slots=True)
class AutoLayoutSnapshot:
    """
    Flow settings of a container captured once at the start of a pass.

    Exists only while its container is mid-retarget and is consumed exactly once
    when the scaled values are restored.
    """

    node_id: str
    width: float
    height: float
    layout: FlowLayout
    flow_child_count: int
    absolute_child_count: int


@dataclass(frozen=True, slots=True)
class VariantWarning:
    code: str
    severity: str  # "error" | "warn" | "info"
    message: str | None = None


@dataclass(frozen=True, slots=True)
class KillSwitchResult:
    activated: bool
    hidden_node_ids: Tuple[str, ...] = field(default_factory=tuple)
    target_height: float = 0
    threshold: float = 0
