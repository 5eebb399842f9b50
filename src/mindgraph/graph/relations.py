"""Relations - Parent/child edges and traversal helpers.

This module defines the directed edges of the mindmap forest:
- Edge: A parent→child edge with renderer handle identifiers
- build_children_map: Adjacency from an edge list
- collect_branch: A node plus its transitive descendants
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field, replace
from typing import Any, Iterable

EDGE_STYLE: dict[str, Any] = {"stroke": "#cbd5e1", "strokeWidth": 2.5}


def source_handle_for(node_id: str) -> str:
    """Canonical outgoing handle name of a node."""
    return f"{node_id}-right"


def target_handle_for(node_id: str) -> str:
    """Canonical incoming handle name of a node."""
    return f"{node_id}-left"


@dataclass
class Edge:
    """A directed parent→child edge.

    Handles are derived identifiers the renderer uses to anchor the
    connector; the engine rewrites them on every commit and never reads
    them back.

    Attributes:
        source: Parent node ID.
        target: Child node ID.
        id: Edge ID, defaults to "<source>-<target>".
        source_handle: Renderer handle on the parent.
        target_handle: Renderer handle on the child.
        type: Renderer edge type.
        style: Opaque renderer style.
        data: Opaque renderer payload.
        animated: Renderer animation flag.
    """

    source: str
    target: str
    id: str = ""
    source_handle: str | None = None
    target_handle: str | None = None
    type: str = "default"
    style: dict[str, Any] | None = field(default_factory=lambda: dict(EDGE_STYLE))
    data: dict[str, Any] | None = None
    animated: bool | None = None

    def __post_init__(self) -> None:
        if not self.id:
            self.id = f"{self.source}-{self.target}"

    def normalized(self) -> Edge:
        """Return a copy with canonical handle identifiers."""
        return replace(
            self,
            source_handle=source_handle_for(self.source),
            target_handle=target_handle_for(self.target),
            style=dict(self.style) if self.style is not None else None,
            data=dict(self.data) if self.data is not None else None,
        )

    def touches(self, node_ids: set[str] | frozenset[str]) -> bool:
        """True if either endpoint is in node_ids."""
        return self.source in node_ids or self.target in node_ids


def create_edge(source: str, target: str) -> Edge:
    """Create a parent→child edge with canonical handles."""
    return Edge(source=source, target=target).normalized()


def build_children_map(edges: Iterable[Edge]) -> dict[str, list[str]]:
    """Map each parent ID to its child IDs, in edge-list order."""
    children: dict[str, list[str]] = {}
    for edge in edges:
        children.setdefault(edge.source, []).append(edge.target)
    return children


def build_parent_map(edges: Iterable[Edge]) -> dict[str, str]:
    """Map each child ID to its parent ID (first incoming edge wins)."""
    parents: dict[str, str] = {}
    for edge in edges:
        parents.setdefault(edge.target, edge.source)
    return parents


def collect_branch(node_id: str, edges: Iterable[Edge]) -> set[str]:
    """Return node_id plus every node reachable through outgoing edges.

    Breadth-first over an explicit queue, so deep branches never touch
    the recursion limit and cycles terminate.
    """
    children = build_children_map(edges)
    branch = {node_id}
    queue: deque[str] = deque([node_id])
    while queue:
        current = queue.popleft()
        for child_id in children.get(current, ()):
            if child_id not in branch:
                branch.add(child_id)
                queue.append(child_id)
    return branch
