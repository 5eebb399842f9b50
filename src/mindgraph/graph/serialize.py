"""Graph Serialization - Persisted snapshot and flat export formats.

Two JSON shapes are handled here:

- The persisted flow state, stored under a versioned key::

    {"nodes": [{id, type, position, data, style, width, height}],
     "edges": [{id, source, target, sourceHandle, targetHandle,
                type, data, style, animated}],
     "viewport": {x, y, zoom}}

- The lossy export file ``{"nodes": [{id, data}], "edges": [{source, target}]}``.

Loading never raises on malformed records: bad entries are dropped or
defaulted, and a payload without node/edge arrays loads as None.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable

from mindgraph.graph.GraphNode import GraphNode, NodeVariant, Position
from mindgraph.graph.history import Viewport
from mindgraph.graph.relations import (
    EDGE_STYLE,
    Edge,
    build_children_map,
    source_handle_for,
    target_handle_for,
)

if TYPE_CHECKING:
    from mindgraph.graph.store import GraphStore

logger = logging.getLogger(__name__)

FLOW_STORAGE_KEY = "mindgraph-flow-state.v1"
AI_CONVERSATION_STORAGE_KEY = "mindgraph-ai-conversations.v1"

UNTITLED_LABEL = "Untitled"

# Keys promoted out of the data payload into GraphNode fields.
_STRUCTURAL_KEYS = ("label", "level", "variant", "collapsed", "hiddenChildCount")


@dataclass
class FlowState:
    """A loaded flow: nodes, edges and an optional viewport."""

    nodes: list[GraphNode]
    edges: list[Edge]
    viewport: Viewport | None = None


def serialize_node(node: GraphNode) -> dict[str, Any]:
    """Serialize a GraphNode to its persisted dict.

    Args:
        node: The node to serialize.

    Returns:
        Dict suitable for JSON serialization.
    """
    data = node.get_all_content()
    data["label"] = node.get_label()
    data["level"] = node.level
    data["variant"] = node.variant.value
    if node.collapsed:
        data["collapsed"] = True
    if node.hidden_child_count:
        data["hiddenChildCount"] = node.hidden_child_count

    result: dict[str, Any] = {
        "id": node.id,
        "type": node.type,
        "position": node.position.to_dict(),
        "data": data,
    }
    if node.style is not None:
        result["style"] = dict(node.style)
    if node.width is not None:
        result["width"] = node.width
    if node.height is not None:
        result["height"] = node.height
    return result


def serialize_edge(edge: Edge) -> dict[str, Any]:
    """Serialize an Edge to its persisted dict."""
    result: dict[str, Any] = {
        "id": edge.id,
        "source": edge.source,
        "target": edge.target,
        "sourceHandle": edge.source_handle or source_handle_for(edge.source),
        "targetHandle": edge.target_handle or target_handle_for(edge.target),
        "type": edge.type,
    }
    if edge.data is not None:
        result["data"] = dict(edge.data)
    if edge.style is not None:
        result["style"] = dict(edge.style)
    if edge.animated is not None:
        result["animated"] = edge.animated
    return result


def serialize_flow_state(
    nodes: Iterable[GraphNode],
    edges: Iterable[Edge],
    viewport: Viewport | None = None,
) -> dict[str, Any]:
    """Serialize a full flow state (all nodes, including hidden ones)."""
    result: dict[str, Any] = {
        "nodes": [serialize_node(node) for node in nodes],
        "edges": [serialize_edge(edge) for edge in edges],
    }
    if viewport is not None:
        result["viewport"] = viewport.to_dict()
    return result


def _number(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value)


def _optional_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def deserialize_node(raw: Any) -> GraphNode | None:
    """Build a GraphNode from a persisted dict, defaulting bad fields.

    Returns:
        The node, or None if the record has no usable id.
    """
    if not isinstance(raw, dict) or raw.get("id") in (None, ""):
        return None

    data = raw.get("data") if isinstance(raw.get("data"), dict) else {}
    raw_position = raw.get("position") if isinstance(raw.get("position"), dict) else {}

    label = data.get("label")
    level = data.get("level")
    variant = NodeVariant.parse(
        "edge-note" if raw.get("type") == "edge-note" else data.get("variant")
    )

    node = GraphNode(
        id=str(raw["id"]),
        level=level if isinstance(level, int) and not isinstance(level, bool) else 0,
        position=Position(_number(raw_position.get("x"), 0.0), _number(raw_position.get("y"), 0.0)),
        collapsed=data.get("collapsed") is True,
        variant=variant,
        type="edge-note" if variant == NodeVariant.EDGE_NOTE else "mindmap",
        width=_optional_number(raw.get("width")),
        height=_optional_number(raw.get("height")),
        style=dict(raw["style"]) if isinstance(raw.get("style"), dict) else None,
    )
    node._content = {key: value for key, value in data.items() if key not in _STRUCTURAL_KEYS}
    node.set_label(label if isinstance(label, str) else UNTITLED_LABEL)

    if node.is_note:
        if not isinstance(node.get_field("noteContent"), str):
            node.set_field("noteContent", "")
        if not isinstance(node.get_field("noteCollapsed"), bool):
            node.set_field("noteCollapsed", False)
    return node


def deserialize_edge(raw: Any) -> Edge | None:
    """Build an Edge from a persisted dict.

    Returns:
        The edge, or None if source or target is missing.
    """
    if not isinstance(raw, dict) or not raw.get("source") or not raw.get("target"):
        return None
    source = str(raw["source"])
    target = str(raw["target"])
    return Edge(
        source=source,
        target=target,
        id=str(raw["id"]) if raw.get("id") else f"{source}-{target}",
        source_handle=raw.get("sourceHandle") or source_handle_for(source),
        target_handle=raw.get("targetHandle") or target_handle_for(target),
        type=raw.get("type") or "default",
        style=dict(raw["style"]) if isinstance(raw.get("style"), dict) else dict(EDGE_STYLE),
        data=dict(raw["data"]) if isinstance(raw.get("data"), dict) else None,
        animated=raw.get("animated") if isinstance(raw.get("animated"), bool) else None,
    )


def _decode(payload: Any) -> Any:
    if isinstance(payload, (str, bytes, bytearray)):
        try:
            return json.loads(payload)
        except ValueError:
            logger.warning("Discarding unparsable flow payload")
            return None
    return payload


def load_flow_state(payload: Any) -> FlowState | None:
    """Parse and sanitize a persisted flow state.

    Args:
        payload: A JSON string or an already-decoded dict.

    Returns:
        FlowState, or None when the payload is unusable and the caller
        should fall back to a default graph.
    """
    parsed = _decode(payload)
    if not isinstance(parsed, dict):
        return None
    raw_nodes = parsed.get("nodes")
    raw_edges = parsed.get("edges")
    if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
        logger.warning("Flow payload has no node/edge arrays; ignoring it")
        return None

    nodes = []
    for raw in raw_nodes:
        node = deserialize_node(raw)
        if node is None:
            logger.warning("Dropping node record without id")
            continue
        nodes.append(node)

    edges = []
    for raw in raw_edges:
        edge = deserialize_edge(raw)
        if edge is None:
            logger.warning("Dropping edge record without source/target")
            continue
        edges.append(edge)

    return FlowState(nodes=nodes, edges=edges, viewport=Viewport.from_dict(parsed.get("viewport")))


def export_flat(nodes: Iterable[GraphNode], edges: Iterable[Edge]) -> dict[str, Any]:
    """Flatten a graph to the lossy export format (no positions or styles)."""
    exported_nodes = []
    for node in nodes:
        data = serialize_node(node)["data"]
        data.pop("hiddenChildCount", None)
        exported_nodes.append({"id": node.id, "data": data})
    return {
        "nodes": exported_nodes,
        "edges": [{"source": edge.source, "target": edge.target} for edge in edges],
    }


def import_flat(payload: Any) -> FlowState | None:
    """Parse an export file. Positions are left at the origin for relayout.

    Returns:
        FlowState without viewport, or None if the file is unusable.
    """
    parsed = _decode(payload)
    if not isinstance(parsed, dict):
        return None
    raw_nodes = parsed.get("nodes")
    raw_edges = parsed.get("edges")
    if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
        return None

    nodes = []
    for raw in raw_nodes:
        if not isinstance(raw, dict):
            continue
        node = deserialize_node({"id": raw.get("id"), "data": raw.get("data")})
        if node is not None:
            nodes.append(node)
    edges = [edge for edge in (deserialize_edge(raw) for raw in raw_edges) if edge is not None]
    return FlowState(nodes=nodes, edges=edges)


def to_outline(store: GraphStore, include_hidden: bool = False) -> str:
    """Render the forest as an indented markdown outline.

    Args:
        store: The graph to render.
        include_hidden: Also list nodes under collapsed ancestors.

    Returns:
        Outline text, one node per line.
    """
    edges = list(store.all_edges() if include_hidden else store.visible_edges())
    children = build_children_map(edges)
    roots = [
        node
        for node in store.iter_roots()
        if include_hidden or node.id in store.visible_ids
    ]

    lines: list[str] = []
    stack = [(root.id, 0) for root in reversed(roots)]
    seen: set[str] = set()
    while stack:
        node_id, depth = stack.pop()
        node = store.find_by_id(node_id)
        if node is None or node_id in seen:
            continue
        seen.add(node_id)
        marker = "+" if node.collapsed and node.hidden_child_count else "-"
        suffix = f" ({node.hidden_child_count} hidden)" if node.hidden_child_count else ""
        status = node.get_field("status")
        status_text = f" [{status}]" if status else ""
        lines.append(f"{'  ' * depth}{marker} {node.get_label()}{status_text}{suffix}")
        for child_id in reversed(children.get(node_id, [])):
            stack.append((child_id, depth + 1))
    return "\n".join(lines)
