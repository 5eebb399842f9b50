"""Graph Store - Canonical (nodes, edges) state of one mindmap.

The store is written only by the mutation pipeline. Everything else
reads it through the iterator/lookup API or takes deep copies.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from mindgraph.graph.GraphNode import GraphNode
from mindgraph.graph.relations import Edge


class NodeIdGenerator:
    """Monotonic node-id source scoped to a single store.

    Ids look like "node-101", "note-102", "root-103"; every prefix
    draws from the same counter so ids never collide across variants.

    Example:
        >>> ids = NodeIdGenerator(start=100)
        >>> ids.next_id()
        'node-100'
        >>> ids.next_id("root")
        'root-101'
    """

    _SUFFIX_RE = re.compile(r"^[A-Za-z]+-(\d+)$")

    def __init__(self, start: int = 100) -> None:
        self._next = start

    def next_id(self, prefix: str = "node") -> str:
        """Return a fresh id and advance the counter."""
        value = self._next
        self._next += 1
        return f"{prefix}-{value}"

    def peek(self) -> int:
        """Return the number the next id will carry."""
        return self._next

    def seed_from(self, node_ids: Iterable[str]) -> None:
        """Advance past the highest numeric suffix among node_ids."""
        for node_id in node_ids:
            match = self._SUFFIX_RE.match(node_id)
            if match:
                self._next = max(self._next, int(match.group(1)) + 1)


@dataclass
class GraphStore:
    """Canonical node/edge lists plus the id generator.

    Nodes are kept in insertion order, including nodes hidden under a
    collapsed ancestor; ``_visible_ids`` records which of them the
    renderer should draw.
    """

    id_generator: NodeIdGenerator = field(default_factory=NodeIdGenerator)

    # Internal storage (prefixed) - excluded from constructor
    _nodes: list[GraphNode] = field(default_factory=list, init=False)
    _edges: list[Edge] = field(default_factory=list, init=False)
    _index: dict[str, GraphNode] = field(default_factory=dict, init=False, repr=False)
    _visible_ids: frozenset[str] = field(default_factory=frozenset, init=False)

    def commit(
        self,
        nodes: list[GraphNode],
        edges: list[Edge],
        visible_ids: Iterable[str],
    ) -> None:
        """Replace the canonical state. Only the pipeline calls this."""
        self._nodes = list(nodes)
        self._edges = list(edges)
        self._index = {node.id: node for node in self._nodes}
        self._visible_ids = frozenset(visible_ids)

    def find_by_id(self, node_id: str) -> GraphNode | None:
        """Find node by ID.

        Args:
            node_id: The node ID to find.

        Returns:
            The matching GraphNode, or None if not found.
        """
        return self._index.get(node_id)

    def has_node(self, node_id: str) -> bool:
        """Check if a node ID exists."""
        return node_id in self._index

    def all_nodes(self) -> Iterator[GraphNode]:
        """Iterate ALL nodes, including hidden ones."""
        yield from self._nodes

    def all_edges(self) -> Iterator[Edge]:
        """Iterate ALL edges, including hidden ones."""
        yield from self._edges

    def visible_nodes(self) -> Iterator[GraphNode]:
        """Iterate nodes the renderer should draw."""
        for node in self._nodes:
            if node.id in self._visible_ids:
                yield node

    def visible_edges(self) -> Iterator[Edge]:
        """Iterate edges whose endpoints are both visible."""
        for edge in self._edges:
            if edge.source in self._visible_ids and edge.target in self._visible_ids:
                yield edge

    @property
    def visible_ids(self) -> frozenset[str]:
        """IDs of visible nodes."""
        return self._visible_ids

    def node_count(self) -> int:
        """Return total number of nodes."""
        return len(self._nodes)

    def edge_count(self) -> int:
        """Return total number of edges."""
        return len(self._edges)

    def iter_roots(self) -> Iterator[GraphNode]:
        """Iterate nodes with no incoming edge."""
        targets = {edge.target for edge in self._edges}
        for node in self._nodes:
            if node.id not in targets:
                yield node

    def is_root(self, node_id: str) -> bool:
        """True if the node exists and has no incoming edge."""
        if node_id not in self._index:
            return False
        return not any(edge.target == node_id for edge in self._edges)

    def iter_children(self, node_id: str) -> Iterator[GraphNode]:
        """Iterate child nodes in edge-list order."""
        for edge in self._edges:
            if edge.source == node_id:
                child = self._index.get(edge.target)
                if child is not None:
                    yield child

    def copy_nodes(self) -> list[GraphNode]:
        """Deep copies of all nodes, safe to hand to a mutator."""
        return [node.copy() for node in self._nodes]

    def copy_edges(self) -> list[Edge]:
        """Deep copies of all edges, safe to hand to a mutator."""
        return copy.deepcopy(self._edges)
