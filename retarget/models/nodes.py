from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, List, Tuple

from retarget.models.signals import AiSignals


class NodeType(str, Enum):
    """Type tag for a content node."""

    FRAME = "frame"
    TEXT = "text"
    VECTOR = "vector"
    RECTANGLE = "rectangle"
    INSTANCE = "instance"
    GROUP = "group"


class FillKind(str, Enum):
    """Dominant fill of a node."""

    SOLID = "solid"
    IMAGE = "image"
    GRADIENT = "gradient"
    NONE = "none"


class LayoutMode(str, Enum):
    NONE = "NONE"
    HORIZONTAL = "HORIZONTAL"
    VERTICAL = "VERTICAL"


class LayoutPositioning(str, Enum):
    AUTO = "auto"
    ABSOLUTE = "absolute"


class NodeMutationError(RuntimeError):
    """Raised when a node refuses a mutation (e.g. resizing a fixed-size instance)."""


@dataclass(slots=True)
class Bounds:
    """
    Axis-aligned rectangle.

    Child bounds are relative to the parent node; the root's x/y are ignored and
    treated as the origin.
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def area(self) -> float:
        return max(self.width, 0.0) * max(self.height, 0.0)

    def offset(self, dx: float, dy: float) -> Bounds:
        return Bounds(self.x + dx, self.y + dy, self.width, self.height)

    def contains(self, other: Bounds, tolerance: float = 0.0) -> bool:
        return (
            other.x >= self.x - tolerance
            and other.y >= self.y - tolerance
            and other.right <= self.right + tolerance
            and other.bottom <= self.bottom + tolerance
        )


@dataclass(slots=True)
class FlowLayout:
    """
    Flow (auto-layout) settings of a container.

    A container whose mode is NONE places its children freely; HORIZONTAL and
    VERTICAL containers arrange flow children along their primary axis with
    padding and item spacing.
    """

    mode: LayoutMode = LayoutMode.NONE
    primary_sizing: str = "FIXED"
    counter_sizing: str = "FIXED"
    wrap: str = "NO_WRAP"
    primary_align: str = "MIN"
    counter_align: str = "MIN"
    item_spacing: float = 0.0
    counter_axis_spacing: float | None = None
    padding_left: float = 0.0
    padding_right: float = 0.0
    padding_top: float = 0.0
    padding_bottom: float = 0.0
    clips_content: bool = False


@dataclass(slots=True)
class ContentNode:
    """
    A positioned element of a composition.

    This is the in-memory stand-in for a design tool's scene graph. Children are
    owned exclusively by their parent; `clone()` produces a fully independent
    subtree so target passes never observe each other's mutations.
    """

    id: str
    node_type: NodeType
    bounds: Bounds
    name: str = ""
    fill: FillKind = FillKind.NONE
    # Authoring tags such as "overlay", "hero_bleed" or an explicit role ("subject").
    tags: set[str] = field(default_factory=set)
    visible: bool = True
    children: List[ContentNode] = field(default_factory=list)
    layout: FlowLayout = field(default_factory=FlowLayout)
    positioning: LayoutPositioning = LayoutPositioning.AUTO
    font_size: float | None = None
    # Instances with a fixed intrinsic size refuse resize().
    resizable: bool = True
    # Identifier of the node this one was cloned from.
    source_id: str | None = None
    # Sanitized AI signals attached to a root after analysis; copied on clone.
    ai_signals: AiSignals | None = None

    @property
    def layout_mode(self) -> LayoutMode:
        return self.layout.mode

    @property
    def is_flow_container(self) -> bool:
        return self.layout.mode is not LayoutMode.NONE

    @property
    def lookup_id(self) -> str:
        """Identifier used to match externally supplied signals (source id for clones)."""
        return self.source_id or self.id

    def participates_in_flow(self, child: ContentNode) -> bool:
        return self.is_flow_container and child.positioning is not LayoutPositioning.ABSOLUTE

    def flow_children(self) -> List[ContentNode]:
        return [child for child in self.children if self.participates_in_flow(child)]

    def walk(self) -> Iterator[ContentNode]:
        """Yield every descendant depth-first (the node itself excluded)."""
        for child in self.children:
            yield child
            yield from child.walk()

    def find(self, node_id: str) -> ContentNode | None:
        for node in self.walk():
            if node.id == node_id:
                return node
        return None

    def has_text(self) -> bool:
        if self.node_type is NodeType.TEXT:
            return True
        return any(child.has_text() for child in self.children)

    # Mutation primitives -------------------------------------------------

    def resize(self, width: float, height: float) -> None:
        if not self.resizable:
            raise NodeMutationError(f"Node '{self.id}' does not support resizing.")
        if width < 0 or height < 0:
            raise NodeMutationError(f"Node '{self.id}' cannot take a negative size ({width}x{height}).")
        self.bounds = Bounds(self.bounds.x, self.bounds.y, width, height)

    def move_to(self, x: float, y: float) -> None:
        self.bounds = Bounds(x, y, self.bounds.width, self.bounds.height)

    def hide(self) -> None:
        self.visible = False

    def clone(self, id_factory: Callable[[ContentNode], str] | None = None) -> ContentNode:
        """
        Deep-copy this subtree.

        `id_factory` assigns identifiers to the copies; by default ids are kept.
        Signals attached to the node are immutable and shared rather than copied.
        """
        duplicate = copy.deepcopy(self)
        if id_factory is not None:
            _reassign_ids(duplicate, id_factory)
        return duplicate

    def relayout(self) -> None:
        """
        Position flow children along the primary axis.

        Mirrors what a host's auto-layout would do after padding/spacing change:
        children are packed from the start padding with `item_spacing` between
        them and aligned on the counter axis. SPACE_BETWEEN spreads them across
        the available length.
        """
        if not self.is_flow_container:
            return
        children = [child for child in self.flow_children() if child.visible]
        if not children:
            return

        layout = self.layout
        horizontal = layout.mode is LayoutMode.HORIZONTAL
        start = layout.padding_left if horizontal else layout.padding_top
        end_pad = layout.padding_right if horizontal else layout.padding_bottom
        length = self.bounds.width if horizontal else self.bounds.height
        counter_start = layout.padding_top if horizontal else layout.padding_left
        counter_end_pad = layout.padding_bottom if horizontal else layout.padding_right
        counter_length = (self.bounds.height if horizontal else self.bounds.width) - counter_start - counter_end_pad

        sizes = [child.bounds.width if horizontal else child.bounds.height for child in children]
        spacing = layout.item_spacing
        if layout.primary_align == "SPACE_BETWEEN" and len(children) > 1:
            spacing = max((length - start - end_pad - sum(sizes)) / (len(children) - 1), 0.0)

        used = sum(sizes) + spacing * (len(children) - 1)
        cursor = start
        if layout.primary_align == "CENTER":
            cursor = start + max((length - start - end_pad - used) / 2, 0.0)
        elif layout.primary_align == "MAX":
            cursor = max(length - end_pad - used, start)

        for child, size in zip(children, sizes):
            counter_size = child.bounds.height if horizontal else child.bounds.width
            if layout.counter_align == "CENTER":
                offset = counter_start + (counter_length - counter_size) / 2
            elif layout.counter_align == "MAX":
                offset = counter_start + counter_length - counter_size
            else:
                offset = counter_start
            if horizontal:
                child.move_to(cursor, offset)
            else:
                child.move_to(offset, cursor)
            cursor += size + spacing


def _reassign_ids(node: ContentNode, id_factory: Callable[[ContentNode], str]) -> None:
    node.id = id_factory(node)
    for child in node.children:
        _reassign_ids(child, id_factory)


def absolute_boxes(root: ContentNode) -> Iterator[Tuple[ContentNode, Bounds, int]]:
    """
    Yield `(node, frame_local_bounds, z_index)` for every descendant of `root`.

    `z_index` is the node's index among its siblings (0 = bottom-most).
    """

    def _visit(node: ContentNode, dx: float, dy: float) -> Iterator[Tuple[ContentNode, Bounds, int]]:
        for index, child in enumerate(node.children):
            box = child.bounds.offset(dx, dy)
            yield child, box, index
            yield from _visit(child, box.x, box.y)

    yield from _visit(root, 0.0, 0.0)
