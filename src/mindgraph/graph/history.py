"""History types for mindmap undo/redo.

This module provides dataclasses for recording committed graph states:
- Viewport: Camera position and zoom
- Snapshot: Deep-copied (nodes, edges, viewport) triple
- History: Linear snapshot stack with an index pointer
"""

from __future__ import annotations

import copy
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable
from uuid import uuid4

from mindgraph.graph.GraphNode import GraphNode
from mindgraph.graph.relations import Edge


@dataclass(frozen=True)
class Viewport:
    """Camera state of the canvas."""

    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0

    def to_dict(self) -> dict[str, float]:
        """Return a JSON-compatible dict."""
        return {"x": self.x, "y": self.y, "zoom": self.zoom}

    @classmethod
    def from_dict(cls, raw: Any) -> Viewport | None:
        """Parse a viewport dict, or None if any coordinate is unusable."""
        if not isinstance(raw, dict):
            return None
        values = []
        for key in ("x", "y", "zoom"):
            value = raw.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return None
            values.append(float(value))
        return cls(*values)


@dataclass(frozen=True)
class Snapshot:
    """One history entry.

    Nodes and edges are deep copies taken at capture time; callers that
    replay a snapshot must copy again (see copy_nodes / copy_edges) so
    the stored entry stays untouched.

    Attributes:
        nodes: All nodes, including hidden ones.
        edges: All edges.
        viewport: Camera state at commit time.
        id: Unique snapshot ID (UUID4).
        timestamp: When the snapshot was captured.
    """

    nodes: tuple[GraphNode, ...]
    edges: tuple[Edge, ...]
    viewport: Viewport | None = None
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def capture(
        cls,
        nodes: Iterable[GraphNode],
        edges: Iterable[Edge],
        viewport: Viewport | None = None,
    ) -> Snapshot:
        """Deep-copy the given state into a new snapshot."""
        return cls(
            nodes=tuple(node.copy() for node in nodes),
            edges=tuple(copy.deepcopy(list(edges))),
            viewport=viewport,
        )

    def copy_nodes(self) -> list[GraphNode]:
        """Independent copies of the stored nodes."""
        return [node.copy() for node in self.nodes]

    def copy_edges(self) -> list[Edge]:
        """Independent copies of the stored edges."""
        return copy.deepcopy(list(self.edges))

    def __str__(self) -> str:
        """Human-readable representation."""
        return f"[{self.id[:8]}] {len(self.nodes)} nodes, {len(self.edges)} edges"


class History:
    """Linear undo/redo stack of snapshots.

    Pushing while the index is not at the end drops the redo branch.

    Example:
        >>> history = History()
        >>> history.push(Snapshot.capture([], []))
        >>> history.push(Snapshot.capture([], []))
        >>> history.undo() is not None
        True
        >>> history.undo() is None
        True
    """

    def __init__(self, max_entries: int = 0) -> None:
        """Initialize an empty history.

        Args:
            max_entries: Keep at most this many snapshots, evicting the
                oldest; 0 means unbounded.
        """
        self._entries: list[Snapshot] = []
        self._index = -1
        self._max_entries = max(0, max_entries)

    def push(self, snapshot: Snapshot) -> None:
        """Append a snapshot after the current index.

        Args:
            snapshot: The committed state to record.
        """
        del self._entries[self._index + 1 :]
        self._entries.append(snapshot)
        if self._max_entries and len(self._entries) > self._max_entries:
            del self._entries[: len(self._entries) - self._max_entries]
        self._index = len(self._entries) - 1

    def undo(self) -> Snapshot | None:
        """Step back one entry.

        Returns:
            The snapshot to restore, or None if there is nothing to undo.
        """
        if self._index <= 0:
            return None
        self._index -= 1
        return self._entries[self._index]

    def redo(self) -> Snapshot | None:
        """Step forward one entry.

        Returns:
            The snapshot to restore, or None if already at the newest entry.
        """
        if self._index < 0 or self._index >= len(self._entries) - 1:
            return None
        self._index += 1
        return self._entries[self._index]

    @property
    def can_undo(self) -> bool:
        """True if undo() would restore something."""
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        """True if redo() would restore something."""
        return 0 <= self._index < len(self._entries) - 1

    @property
    def index(self) -> int:
        """Position of the current entry (-1 when empty)."""
        return self._index

    def current(self) -> Snapshot | None:
        """Return the snapshot at the current index, or None if empty."""
        return self._entries[self._index] if self._index >= 0 else None

    def iter_entries(self) -> Iterator[Snapshot]:
        """Iterate over all entries, oldest first.

        Yields:
            Snapshot instances in order of capture.
        """
        yield from self._entries

    def __len__(self) -> int:
        """Return the number of entries."""
        return len(self._entries)

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()
        self._index = -1


__all__ = ["Viewport", "Snapshot", "History"]
