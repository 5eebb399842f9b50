"""Tests for the AI context extractor."""

from mindgraph.graph.context import ContextLimits, build_context
from mindgraph.graph.GraphNode import NodeVariant


class TestBuildContext:
    """build_context() neighbourhood summaries."""

    def test_missing_node(self, tree_graph):
        nodes, edges = tree_graph
        assert build_context(nodes, edges, "ghost") is None

    def test_selected_fields(self, tree_graph):
        nodes, edges = tree_graph
        context = build_context(nodes, edges, "a")
        assert context.selected_node_id == "a"
        assert context.selected_label == "Alpha"
        assert context.selected_description == "First branch"
        assert context.intent == "spark"

    def test_lineage_is_root_first(self, make_node, edge):
        nodes = [make_node(n, level=i) for i, n in enumerate(["r", "p", "q", "leaf"])]
        edges = [edge("r", "p"), edge("p", "q"), edge("q", "leaf")]
        context = build_context(nodes, edges, "leaf")
        assert [entry.id for entry in context.lineage] == ["r", "p", "q"]
        assert [entry.level for entry in context.lineage] == [0, 1, 2]

    def test_lineage_limit(self, make_node, edge):
        ids = [f"n{i}" for i in range(10)]
        nodes = [make_node(i) for i in ids]
        edges = [edge(ids[i], ids[i + 1]) for i in range(9)]
        context = build_context(nodes, edges, "n9", limits=ContextLimits(lineage=3))
        assert [entry.id for entry in context.lineage] == ["n6", "n7", "n8"]

    def test_siblings_and_children(self, tree_graph):
        nodes, edges = tree_graph
        context = build_context(nodes, edges, "a")
        assert [entry.id for entry in context.siblings] == ["b"]
        assert context.siblings[0].emoji == "🌱"
        assert [entry.id for entry in context.children] == ["a1", "a2"]

    def test_root_has_no_siblings(self, tree_graph):
        nodes, edges = tree_graph
        context = build_context(nodes, edges, "root")
        assert context.siblings == []
        assert context.lineage == []

    def test_notes_excluded(self, tree_graph, make_node, edge):
        nodes, edges = tree_graph
        nodes.append(make_node("note-1", variant=NodeVariant.EDGE_NOTE))
        edges.append(edge("a", "note-1"))
        context = build_context(nodes, edges, "a")
        assert "note-1" not in [entry.id for entry in context.children]

    def test_sibling_and_child_limits(self, make_node, edge):
        nodes = [make_node("p")] + [make_node(f"c{i}") for i in range(10)]
        edges = [edge("p", f"c{i}") for i in range(10)]
        context = build_context(nodes, edges, "c0")
        assert len(context.siblings) == 6
        assert len(build_context(nodes, edges, "p").children) == 6

    def test_recent_turns_truncated(self, tree_graph):
        nodes, edges = tree_graph
        turns = [f"User: {i}" for i in range(6)]
        context = build_context(nodes, edges, "a", recent_turns=turns)
        assert context.recent_turns == turns[-4:]
        assert context.conversation_summary == "\n".join(turns[-4:])

    def test_unknown_intent_falls_back(self, tree_graph):
        nodes, edges = tree_graph
        assert build_context(nodes, edges, "a", intent="wander").intent == "spark"

    def test_cycle_guard(self, make_node, edge):
        nodes = [make_node("x"), make_node("y")]
        context = build_context(nodes, [edge("x", "y"), edge("y", "x")], "x")
        assert [entry.id for entry in context.lineage] == ["y"]

    def test_to_dict_uses_camel_case(self, tree_graph):
        nodes, edges = tree_graph
        data = build_context(nodes, edges, "a", manual_prompt="Go").to_dict()
        assert data["selectedNodeId"] == "a"
        assert data["manualPrompt"] == "Go"
        assert data["recentTurns"] == []
        assert "quickActionId" not in data


class TestContextLimits:
    def test_from_config(self):
        limits = ContextLimits.from_config({"lineage_limit": 2, "recent_turns": 1})
        assert limits.lineage == 2
        assert limits.siblings == 6
        assert limits.recent_turns == 1
