"""Collapse/Visibility Resolver.

Computes which nodes are visible given per-node collapse flags, and how
many descendants each collapsed node hides. Pure functions: inputs are
never mutated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, Sequence

from mindgraph.graph.GraphNode import GraphNode
from mindgraph.graph.relations import Edge

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollapseInfo:
    """Result of visibility resolution.

    Attributes:
        visible_ids: Nodes with no collapsed strict ancestor.
        hidden_child_count: Transitive descendant count per collapsed node.
    """

    visible_ids: frozenset[str] = frozenset()
    hidden_child_count: dict[str, int] = field(default_factory=dict)

    def is_visible(self, node_id: str) -> bool:
        """True if node_id is in the visible set."""
        return node_id in self.visible_ids


def _children_of(nodes: Sequence[GraphNode], edges: Sequence[Edge]) -> dict[str, list[str]]:
    # Edges pointing at missing nodes are dangling and take no part.
    known = {node.id for node in nodes}
    children: dict[str, list[str]] = {}
    for edge in edges:
        if edge.source in known and edge.target in known:
            children.setdefault(edge.source, []).append(edge.target)
    return children


def _subtree_sizes(node_ids: Sequence[str], children: dict[str, list[str]]) -> dict[str, int]:
    """Transitive descendant count per node.

    Memoized post-order over an explicit stack. A child already on the
    stack (a cycle in malformed input) contributes nothing.
    """
    sizes: dict[str, int] = {}
    for start in node_ids:
        if start in sizes:
            continue
        totals = {start: 0}
        stack: list[tuple[str, Iterator[str]]] = [(start, iter(children.get(start, ())))]
        while stack:
            current, pending = stack[-1]
            child = next(pending, None)
            if child is None:
                stack.pop()
                sizes[current] = totals.pop(current)
                if stack:
                    totals[stack[-1][0]] += 1 + sizes[current]
                continue
            if child in sizes:
                totals[current] += 1 + sizes[child]
            elif child in totals:
                continue
            else:
                totals[child] = 0
                stack.append((child, iter(children.get(child, ()))))
    return sizes


def resolve_visibility(nodes: Sequence[GraphNode], edges: Sequence[Edge]) -> CollapseInfo:
    """Compute the visible node set and hidden-descendant counts.

    A node is visible iff no strict ancestor is collapsed. Descendants of
    a collapsed node are still walked so nested collapses keep correct
    counts. Nodes not reachable from a parentless node (cycles) are walked
    as roots of their own. If nothing would be visible, everything is.

    Args:
        nodes: All nodes of the graph.
        edges: All edges of the graph.

    Returns:
        CollapseInfo with visible_ids and hidden_child_count.
    """
    if not nodes:
        return CollapseInfo()

    node_map = {node.id: node for node in nodes}
    node_ids = list(node_map)
    children = _children_of(nodes, edges)
    has_parent = {child for kids in children.values() for child in kids}
    roots = [node_id for node_id in node_ids if node_id not in has_parent]

    sizes = _subtree_sizes(node_ids, children)

    visible: set[str] = set()
    hidden_count: dict[str, int] = {}
    visited: set[str] = set()

    def walk(root_id: str) -> None:
        stack: list[tuple[str, bool]] = [(root_id, False)]
        while stack:
            node_id, ancestor_collapsed = stack.pop()
            if node_id in visited:
                continue
            visited.add(node_id)
            node = node_map[node_id]
            if not ancestor_collapsed:
                visible.add(node_id)
            if node.collapsed:
                hidden_count[node_id] = sizes.get(node_id, 0)
            carry = ancestor_collapsed or node.collapsed
            for child_id in reversed(children.get(node_id, ())):
                stack.append((child_id, carry))

    for root_id in roots:
        walk(root_id)
    for node_id in node_ids:
        if node_id not in visited:
            walk(node_id)

    if not visible:
        logger.debug("Visibility resolved to nothing; showing all %d nodes", len(node_ids))
        visible = set(node_ids)

    return CollapseInfo(visible_ids=frozenset(visible), hidden_child_count=hidden_count)


def apply_collapse_state(
    nodes: Sequence[GraphNode],
    edges: Sequence[Edge],
    info: CollapseInfo | None = None,
) -> tuple[list[GraphNode], list[GraphNode], list[Edge]]:
    """Stamp hidden-child counts onto nodes and filter the visible subset.

    Hidden nodes are kept in the full list with their positions so they
    reappear where they were when their ancestor expands.

    Args:
        nodes: All nodes (not mutated).
        edges: All edges (not mutated).
        info: Precomputed visibility; resolved here when omitted.

    Returns:
        Tuple of (all_nodes, visible_nodes, visible_edges).
    """
    info = info if info is not None else resolve_visibility(nodes, edges)

    all_nodes: list[GraphNode] = []
    for node in nodes:
        stamped = node.copy()
        count = info.hidden_child_count.get(node.id, 0)
        stamped.hidden_child_count = count if count > 0 else None
        all_nodes.append(stamped)

    visible_nodes = [node for node in all_nodes if node.id in info.visible_ids]
    visible_edges = [
        edge
        for edge in edges
        if edge.source in info.visible_ids and edge.target in info.visible_ids
    ]
    return all_nodes, visible_nodes, visible_edges
