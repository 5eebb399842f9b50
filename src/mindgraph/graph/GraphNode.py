"""GraphNode - Node representation for the mindmap forest.

This module provides the core node data structures:
- NodeVariant: Enum of node variants (topic, edge-note)
- Position: Canvas coordinate pair
- GraphNode: Node with structural fields and an opaque display payload
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class NodeVariant(Enum):
    """Variants of nodes in the mindmap.

    The variant is opaque to layout; it only matters to the context
    extractor, which leaves edge notes out of sibling/child summaries.
    """

    TOPIC = "topic"
    EDGE_NOTE = "edge-note"

    @classmethod
    def parse(cls, value: Any) -> NodeVariant:
        """Map a raw value to a variant, defaulting to TOPIC."""
        if isinstance(value, NodeVariant):
            return value
        if value == cls.EDGE_NOTE.value:
            return cls.EDGE_NOTE
        return cls.TOPIC


@dataclass
class Position:
    """Canvas coordinates of a node (top-left anchor)."""

    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> dict[str, float]:
        """Return a JSON-compatible dict."""
        return {"x": self.x, "y": self.y}


@dataclass
class GraphNode:
    """A node in the mindmap forest.

    Structural fields (``level``, ``collapsed``) are read by the engine.
    ``position`` and ``hidden_child_count`` are derived and rewritten on
    every committed mutation. Everything else lives in the content
    payload, which the engine never interprets.

    Attributes:
        id: Unique identifier for this node.
        level: Depth in the tree (0 for roots).
        position: Derived canvas position.
        collapsed: Whether the node's descendants are hidden.
        variant: Topic or edge note.
        hidden_child_count: Transitive descendant count while collapsed.
        type: Renderer node type ("mindmap" or "edge-note").
        width: Measured width, if the renderer reported one.
        height: Measured height, used by layout for leaf spacing.
        style: Opaque renderer style.
    """

    id: str
    level: int = 0
    position: Position = field(default_factory=Position)
    collapsed: bool = False
    variant: NodeVariant = NodeVariant.TOPIC
    hidden_child_count: int | None = None
    type: str = "mindmap"
    width: float | None = None
    height: float | None = None
    style: dict[str, Any] | None = None

    # Display payload (label, color, status, description, emoji, ...)
    _content: dict[str, Any] = field(default_factory=dict)

    def get_label(self) -> str:
        """Get the display label."""
        return self._content.get("label", "")

    def set_label(self, label: str) -> None:
        """Set the display label."""
        self._content["label"] = label

    def get_field(self, key: str, default: Any = None) -> Any:
        """Get a field from content."""
        return self._content.get(key, default)

    def set_field(self, key: str, value: Any) -> None:
        """Set a field in content."""
        self._content[key] = value

    def get_all_content(self) -> dict[str, Any]:
        """Return a shallow copy of the content payload."""
        return dict(self._content)

    @property
    def is_note(self) -> bool:
        """True for edge-note nodes."""
        return self.variant == NodeVariant.EDGE_NOTE

    @property
    def order(self) -> float | None:
        """Explicit sibling order, if one was recorded."""
        value = self._content.get("order")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return value

    def copy(self) -> GraphNode:
        """Return a deep copy, independent of this node."""
        return copy.deepcopy(self)

    def moved_to(self, x: float, y: float, level: int | None = None) -> GraphNode:
        """Return a copy placed at (x, y), optionally with a new level."""
        moved = self.copy()
        moved.position = Position(x, y)
        if level is not None:
            moved.level = level
        return moved
