"""Layout Engine - Deterministic horizontal tree layout.

Each root tree is placed independently: depth sets the x coordinate,
leaves stack downward from a per-tree cursor, and every parent sits at
the midpoint of its first and last child.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence

from mindgraph.graph.GraphNode import GraphNode
from mindgraph.graph.relations import Edge

DEFAULT_START_X = 100.0
DEFAULT_START_Y = 300.0
DEFAULT_HORIZONTAL_SPACING = 500.0
DEFAULT_VERTICAL_GAP = 40.0
DEFAULT_NODE_HEIGHT = 60.0


@dataclass(frozen=True)
class LayoutOptions:
    """Spacing and anchoring parameters for layout_nodes().

    Attributes:
        start_x: Root x anchor for a fresh layout.
        start_y: Top of the first tree for a fresh layout.
        horizontal_spacing: Distance between depth columns.
        vertical_gap: Gap between stacked leaves.
        base_node_height: Height assumed for unmeasured nodes.
        fresh: Ignore current root positions and stack trees from the
            start coordinates (used after import).
    """

    start_x: float = DEFAULT_START_X
    start_y: float = DEFAULT_START_Y
    horizontal_spacing: float = DEFAULT_HORIZONTAL_SPACING
    vertical_gap: float = DEFAULT_VERTICAL_GAP
    base_node_height: float = DEFAULT_NODE_HEIGHT
    fresh: bool = False

    @classmethod
    def from_config(cls, section: dict[str, Any] | None, fresh: bool = False) -> LayoutOptions:
        """Build options from the [layout] config section."""
        section = section or {}
        return cls(
            start_x=float(section.get("start_x", DEFAULT_START_X)),
            start_y=float(section.get("start_y", DEFAULT_START_Y)),
            horizontal_spacing=float(
                section.get("horizontal_spacing", DEFAULT_HORIZONTAL_SPACING)
            ),
            vertical_gap=float(section.get("vertical_gap", DEFAULT_VERTICAL_GAP)),
            base_node_height=float(section.get("base_node_height", DEFAULT_NODE_HEIGHT)),
            fresh=fresh,
        )


def estimate_node_height(node: GraphNode, base_height: float = DEFAULT_NODE_HEIGHT) -> float:
    """Height used for leaf spacing.

    Prefers the measured height; otherwise grows an expanded node with
    the length of its description (clamped to 100..400 extra pixels).
    """
    if node.height:
        return float(node.height)

    description = node.get_field("description") or ""
    expanded = node.get_field("persistExpanded") or (
        description and node.get_field("forceExpanded")
    )
    if expanded:
        desc_height = min(400, max(100, math.ceil(len(description) / 100) * 20))
        return base_height + desc_height + 40
    return base_height


def _sibling_key(node: GraphNode | None) -> float:
    # Nodes without an explicit order keep edge-list order after ordered ones.
    if node is None or node.order is None:
        return math.inf
    return node.order


@dataclass
class _PlacedTree:
    ys: dict[str, float]
    depths: dict[str, int]
    order: list[str]
    extent: float


def _place_tree(
    root_id: str,
    children: dict[str, list[str]],
    node_map: dict[str, GraphNode],
    claimed: set[str],
    options: LayoutOptions,
) -> _PlacedTree:
    """Post-order placement of one tree with its own cursor starting at 0."""
    ys: dict[str, float] = {}
    depths: dict[str, int] = {}
    order: list[str] = []
    cursor = 0.0

    def place_leaf(node_id: str) -> None:
        nonlocal cursor
        ys[node_id] = cursor
        cursor += estimate_node_height(node_map[node_id], options.base_node_height)
        cursor += options.vertical_gap

    stack: list[tuple[str, int, list[str] | None]] = [(root_id, 0, None)]
    while stack:
        node_id, depth, kids = stack.pop()
        if kids is None:
            if node_id in claimed:
                continue
            claimed.add(node_id)
            order.append(node_id)
            depths[node_id] = depth
            kids = [child for child in children.get(node_id, ()) if child not in claimed]
            if not kids:
                place_leaf(node_id)
                continue
            stack.append((node_id, depth, kids))
            for child in reversed(kids):
                stack.append((child, depth + 1, None))
            continue

        placed = [ys[child] for child in kids if child in ys and depths.get(child) == depth + 1]
        if placed:
            ys[node_id] = (placed[0] + placed[-1]) / 2
        else:
            place_leaf(node_id)

    return _PlacedTree(ys=ys, depths=depths, order=order, extent=cursor)


def layout_nodes(
    nodes: Sequence[GraphNode],
    edges: Sequence[Edge],
    options: LayoutOptions | None = None,
) -> list[GraphNode]:
    """Compute tree positions for nodes.

    Roots are nodes with no incoming edge. With ``options.fresh`` unset a
    root keeps its current position and its tree is arranged around it,
    so relayout never jumps the viewport. Nodes not reached from any root
    keep their position. Levels are set to tree depth.

    Args:
        nodes: Nodes to place (not mutated).
        edges: Parent→child edges among those nodes.
        options: Spacing parameters.

    Returns:
        New node list in input order. If no root can be identified the
        input is returned unchanged (as copies).
    """
    options = options or LayoutOptions()
    if not nodes:
        return []

    node_map = {node.id: node for node in nodes}
    children: dict[str, list[str]] = {}
    has_parent: set[str] = set()
    for edge in edges:
        if edge.source in node_map and edge.target in node_map:
            children.setdefault(edge.source, []).append(edge.target)
            has_parent.add(edge.target)
    for parent_id, kids in children.items():
        kids.sort(key=lambda child_id: _sibling_key(node_map.get(child_id)))

    roots = [node for node in nodes if node.id not in has_parent]
    if not roots:
        return [node.copy() for node in nodes]

    if options.fresh:
        roots.sort(key=_sibling_key)
    else:
        roots.sort(key=lambda root: root.position.y)

    placed: dict[str, tuple[float, float, int]] = {}
    claimed: set[str] = set()
    fresh_top = options.start_y

    for root in roots:
        tree = _place_tree(root.id, children, node_map, claimed, options)
        if not tree.order:
            continue
        if options.fresh:
            anchor_x = options.start_x
            delta_y = fresh_top
            fresh_top += tree.extent
        else:
            anchor_x = root.position.x
            delta_y = root.position.y - tree.ys[root.id]
        for node_id in tree.order:
            depth = tree.depths[node_id]
            placed[node_id] = (
                anchor_x + depth * options.horizontal_spacing,
                tree.ys[node_id] + delta_y,
                depth,
            )

    result: list[GraphNode] = []
    for node in nodes:
        if node.id in placed:
            x, y, depth = placed[node.id]
            result.append(node.moved_to(x, y, level=depth))
        else:
            result.append(node.copy())
    return result
