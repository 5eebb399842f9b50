"""Tests for flow-state and export serialization."""

import json

from mindgraph.graph.editor import MindmapEditor
from mindgraph.graph.GraphNode import NodeVariant
from mindgraph.graph.serialize import (
    export_flat,
    import_flat,
    load_flow_state,
    serialize_flow_state,
    serialize_node,
    to_outline,
)


class TestSerializeNode:
    def test_data_payload(self, make_node):
        node = make_node("n", "Label", level=2, color="#fff")
        node.collapsed = True
        node.hidden_child_count = 3
        data = serialize_node(node)
        assert data["id"] == "n"
        assert data["type"] == "mindmap"
        assert data["data"] == {
            "label": "Label",
            "level": 2,
            "variant": "topic",
            "color": "#fff",
            "collapsed": True,
            "hiddenChildCount": 3,
        }


class TestLoadFlowState:
    """Tolerant loading of persisted flow states."""

    def test_round_trip(self, editor):
        payload = json.dumps(editor.to_snapshot_dict())
        state = load_flow_state(payload)
        assert serialize_flow_state(state.nodes, state.edges, state.viewport) == (
            editor.to_snapshot_dict()
        )

    def test_unparsable_json(self):
        assert load_flow_state("{oops") is None

    def test_missing_arrays(self):
        assert load_flow_state({"nodes": []}) is None
        assert load_flow_state({"nodes": {}, "edges": []}) is None
        assert load_flow_state([1, 2]) is None

    def test_node_defaults(self):
        state = load_flow_state(
            {
                "nodes": [
                    {"data": {"label": "no id"}},
                    {"id": "x"},
                    {"id": "y", "data": {"level": "deep", "variant": "odd", "label": 5}},
                ],
                "edges": [],
            }
        )
        assert [node.id for node in state.nodes] == ["x", "y"]
        x, y = state.nodes
        assert x.get_label() == "Untitled"
        assert (x.position.x, x.position.y) == (0.0, 0.0)
        assert y.level == 0
        assert y.variant == NodeVariant.TOPIC
        assert y.get_label() == "Untitled"

    def test_edge_note_defaults(self):
        state = load_flow_state({"nodes": [{"id": "n", "type": "edge-note"}], "edges": []})
        note = state.nodes[0]
        assert note.is_note
        assert note.get_field("noteContent") == ""
        assert note.get_field("noteCollapsed") is False

    def test_edge_defaults(self):
        state = load_flow_state(
            {
                "nodes": [{"id": "a"}, {"id": "b"}],
                "edges": [{"source": "a", "target": "b"}, {"source": "a"}],
            }
        )
        assert len(state.edges) == 1
        edge = state.edges[0]
        assert edge.id == "a-b"
        assert edge.source_handle == "a-right"
        assert edge.target_handle == "b-left"

    def test_viewport(self):
        state = load_flow_state(
            {"nodes": [], "edges": [], "viewport": {"x": 1, "y": 2, "zoom": 0.5}}
        )
        assert state.viewport.zoom == 0.5
        assert load_flow_state({"nodes": [], "edges": [], "viewport": "bad"}).viewport is None

    def test_hidden_nodes_persisted(self, editor):
        """Collapsed branches survive a save/load cycle."""
        editor.set_collapsed("a", True)
        reloaded = MindmapEditor.from_snapshot_dict(json.dumps(editor.to_snapshot_dict()))
        assert reloaded.store.node_count() == 5
        assert reloaded.visible_ids == {"root", "a", "b"}
        assert reloaded.get_node("a").hidden_child_count == 2


class TestFlatFormat:
    def test_export_shape(self, tree_graph):
        nodes, edges = tree_graph
        data = export_flat(nodes, edges)
        assert data["nodes"][0] == {
            "id": "root",
            "data": {"label": "Root", "level": 0, "variant": "topic"},
        }
        assert data["edges"][0] == {"source": "root", "target": "a"}

    def test_import_resets_positions(self, tree_graph):
        nodes, edges = tree_graph
        state = import_flat(export_flat(nodes, edges))
        assert all(node.position.x == 0.0 for node in state.nodes)
        assert state.viewport is None

    def test_import_rejects_garbage(self):
        assert import_flat("[") is None
        assert import_flat({"edges": []}) is None


class TestOutline:
    def test_visible_outline(self, editor):
        editor.set_collapsed("a", True)
        outline = to_outline(editor.store)
        assert outline.splitlines() == [
            "- Root",
            "  + Alpha [in-progress] (2 hidden)",
            "  - Beta",
        ]

    def test_full_outline(self, editor):
        editor.set_collapsed("a", True)
        lines = to_outline(editor.store, include_hidden=True).splitlines()
        assert "    - Alpha One" in lines
        assert len(lines) == 5
