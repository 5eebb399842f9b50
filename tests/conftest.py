"""Shared pytest fixtures for mindgraph tests."""

import pytest

from mindgraph.graph.GraphNode import GraphNode, NodeVariant, Position
from mindgraph.graph.relations import create_edge


def _make_node(
    node_id,
    label=None,
    x=0.0,
    y=0.0,
    collapsed=False,
    level=0,
    variant=NodeVariant.TOPIC,
    **fields,
):
    node = GraphNode(
        id=node_id,
        level=level,
        position=Position(x, y),
        collapsed=collapsed,
        variant=variant,
        type="edge-note" if variant == NodeVariant.EDGE_NOTE else "mindmap",
    )
    node.set_label(label if label is not None else node_id.title())
    for key, value in fields.items():
        node.set_field(key, value)
    return node


@pytest.fixture
def make_node():
    """Factory: make_node(id, label=None, x=0, y=0, collapsed=False, **fields)."""
    return _make_node


@pytest.fixture
def edge():
    """Factory: edge(source, target) with canonical handles."""
    return create_edge


@pytest.fixture
def tree_graph():
    """Five-node tree anchored at (100, 300).

    root
    ├── a
    │   ├── a1
    │   └── a2
    └── b
    """
    nodes = [
        _make_node("root", "Root", x=100.0, y=300.0),
        _make_node("a", "Alpha", description="First branch", status="in-progress"),
        _make_node("a1", "Alpha One"),
        _make_node("a2", "Alpha Two"),
        _make_node("b", "Beta", emoji="🌱"),
    ]
    edges = [
        create_edge("root", "a"),
        create_edge("a", "a1"),
        create_edge("a", "a2"),
        create_edge("root", "b"),
    ]
    return nodes, edges


@pytest.fixture
def editor(tree_graph):
    """MindmapEditor over tree_graph, laid out in place."""
    from mindgraph.graph.editor import MindmapEditor

    nodes, edges = tree_graph
    return MindmapEditor(nodes, edges)
