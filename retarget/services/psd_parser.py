"""
PSD Layer Import Service

Turns a Photoshop document into a `ContentNode` tree the retargeting pipeline
can work on. Layer kinds map to node types, and layer names carry authoring
hints: modifiers such as `[overlay]` and role prefixes such as `hero:`.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Callable, List, Set

from psd_tools import PSDImage

from retarget.models.nodes import Bounds, ContentNode, FillKind, NodeType


logger = logging.getLogger(__name__)


class PsdImportError(RuntimeError):
    """Raised when a PSD document cannot be opened or has no usable canvas."""


ROLE_PREFIXES = {
    "hero:": "hero",
    "subject:": "subject",
    "logo:": "logo",
    "bg:": "background",
    "background:": "background",
}

# (node type, fill) per psd-tools layer kind.
LAYER_KINDS = {
    "type": (NodeType.TEXT, FillKind.NONE),
    "smartobject": (NodeType.INSTANCE, FillKind.IMAGE),
    "shape": (NodeType.VECTOR, FillKind.SOLID),
    "gradientfill": (NodeType.RECTANGLE, FillKind.GRADIENT),
    "solidcolorfill": (NodeType.RECTANGLE, FillKind.SOLID),
    "patternfill": (NodeType.RECTANGLE, FillKind.IMAGE),
    "pixel": (NodeType.RECTANGLE, FillKind.IMAGE),
}


class LayerConstraints:
    """Parsed authoring hints from layer name modifiers."""

    def __init__(self, name: str):
        lowered = name.lower()
        self.lock = "[lock]" in lowered
        self.overlay = "[overlay]" in lowered
        self.hero_bleed = "[hero_bleed]" in lowered or "[hero-bleed]" in lowered
        self.role = self._parse_role(lowered)

    def _parse_role(self, name: str) -> str | None:
        """Extract a role from a `role:` name prefix."""
        stripped = re.sub(r"\[[^\]]*\]", "", name).strip()
        for prefix, role in ROLE_PREFIXES.items():
            if stripped.startswith(prefix):
                return role
        return None

    def tags(self) -> Set[str]:
        tags: Set[str] = set()
        if self.overlay:
            tags.add("overlay")
        if self.hero_bleed:
            tags.add("hero_bleed")
        if self.lock:
            tags.add("lock")
        if self.role:
            tags.add(self.role)
        return tags


class PSDParser:
    """
    Imports PSD files as content trees.

    Groups become `group` nodes; type layers become `text`; smart objects
    become `instance`; shapes become `vector`; fill and pixel layers become
    rectangles with the matching fill. Hidden layers are imported hidden.
    Locked (`[lock]`) layers refuse to be resized.
    """

    def __init__(self, psd_path: str | Path, opener: Callable[[Path], Any] = PSDImage.open):
        self.psd_path = Path(psd_path)
        self._opener = opener
        self.psd: Any = None
        self.warnings: List[str] = []
        self._next_id = 0

    def parse(self) -> ContentNode:
        """Open the document and build its content tree."""
        try:
            self.psd = self._opener(self.psd_path)
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to open PSD file %s: %s", self.psd_path, exc)
            raise PsdImportError(f"Could not open PSD file '{self.psd_path.name}'.") from exc

        width, height = self.get_dimensions()
        if width <= 0 or height <= 0:
            raise PsdImportError(f"PSD file '{self.psd_path.name}' has an empty canvas.")
        logger.info("Opened PSD: %s (%sx%s)", self.psd_path, width, height)

        root = ContentNode(
            id=self.psd_path.stem or "psd",
            node_type=NodeType.FRAME,
            bounds=Bounds(0, 0, width, height),
            name=self.psd_path.name,
        )
        root.children = self._parse_layers(self.psd, 0.0, 0.0)
        return root

    def _parse_layers(self, parent: Any, origin_x: float, origin_y: float) -> List[ContentNode]:
        """Parse layers bottom-to-top; child bounds are relative to `origin`."""
        nodes: List[ContentNode] = []
        for layer in parent:
            if layer.is_group():
                node = self._parse_group(layer, origin_x, origin_y)
            else:
                node = self._parse_layer(layer, origin_x, origin_y)
            if node is not None:
                nodes.append(node)
        return nodes

    def _parse_group(self, group: Any, origin_x: float, origin_y: float) -> ContentNode | None:
        box = self._get_layer_bbox(group)
        if box is None:
            self.warnings.append(f"Group '{group.name}' is empty, skipping")
            return None
        node = self._make_node(group, NodeType.GROUP, FillKind.NONE, box, origin_x, origin_y)
        node.children = self._parse_layers(group, box[0], box[1])
        return node

    def _parse_layer(self, layer: Any, origin_x: float, origin_y: float) -> ContentNode | None:
        box = self._get_layer_bbox(layer)
        if box is None:
            logger.warning("Layer '%s' has no valid bounding box, skipping", layer.name)
            self.warnings.append(f"Layer '{layer.name}' has no valid bounding box")
            return None
        node_type, fill = LAYER_KINDS.get(layer.kind, (NodeType.RECTANGLE, FillKind.NONE))
        node = self._make_node(layer, node_type, fill, box, origin_x, origin_y)
        if node_type is NodeType.TEXT:
            node.font_size = self._font_size(layer)
        return node

    def _make_node(
        self,
        layer: Any,
        node_type: NodeType,
        fill: FillKind,
        box: tuple[float, float, float, float],
        origin_x: float,
        origin_y: float,
    ) -> ContentNode:
        constraints = LayerConstraints(layer.name)
        x, y, width, height = box
        return ContentNode(
            id=self._layer_id(layer),
            node_type=node_type,
            bounds=Bounds(x - origin_x, y - origin_y, width, height),
            name=layer.name,
            fill=fill,
            tags=constraints.tags(),
            visible=bool(layer.visible),
            resizable=not constraints.lock,
        )

    def _layer_id(self, layer: Any) -> str:
        layer_id = getattr(layer, "layer_id", None)
        if layer_id is None:
            self._next_id += 1
            return f"layer-auto-{self._next_id}"
        return f"layer-{layer_id}"

    def _font_size(self, layer: Any) -> float | None:
        """Font size of the first style run of a type layer, when psd-tools exposes one."""
        try:
            style = layer.engine_dict["StyleRun"]["RunArray"][0]["StyleSheet"]["StyleSheetData"]
            return float(style["FontSize"])
        except (AttributeError, KeyError, IndexError, TypeError, ValueError):
            return None

    def _get_layer_bbox(self, layer: Any) -> tuple[float, float, float, float] | None:
        """
        Extract bounding box from layer.

        Returns (x, y, width, height) or None if invalid.
        """
        bbox = layer.bbox
        if not bbox:
            return None
        x1, y1, x2, y2 = bbox
        width = x2 - x1
        height = y2 - y1
        if width <= 0 or height <= 0:
            return None
        return (x1, y1, width, height)

    def get_dimensions(self) -> tuple[int, int]:
        """Get PSD dimensions (width, height)."""
        if self.psd is not None:
            return (self.psd.width, self.psd.height)
        return (0, 0)
