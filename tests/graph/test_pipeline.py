"""Tests for the mutation pipeline."""

from mindgraph.graph.pipeline import MutationPipeline, enforce_forest
from mindgraph.graph.relations import Edge
from mindgraph.graph.store import GraphStore


def _pipeline(nodes, edges, relayout=True):
    pipeline = MutationPipeline(GraphStore())
    pipeline.update_graph(lambda _n, _e: (list(nodes), list(edges)), relayout=relayout)
    return pipeline


class TestEnforceForest:
    """enforce_forest() sanitation."""

    def test_keeps_valid_forest(self, tree_graph):
        nodes, edges = tree_graph
        kept_nodes, kept_edges = enforce_forest(nodes, edges)
        assert len(kept_nodes) == 5
        assert len(kept_edges) == 4

    def test_drops_duplicate_ids(self, make_node):
        nodes, _ = enforce_forest([make_node("x", "first"), make_node("x", "second")], [])
        assert [node.get_label() for node in nodes] == ["first"]

    def test_drops_dangling_edges(self, make_node):
        _, edges = enforce_forest([make_node("a")], [Edge(source="a", target="ghost")])
        assert edges == []

    def test_drops_second_parent(self, make_node, edge):
        nodes = [make_node("p1"), make_node("p2"), make_node("c")]
        _, edges = enforce_forest(nodes, [edge("p1", "c"), edge("p2", "c")])
        assert [(e.source, e.target) for e in edges] == [("p1", "c")]

    def test_drops_cycle_and_self_loop(self, make_node, edge):
        nodes = [make_node("a"), make_node("b")]
        _, edges = enforce_forest(nodes, [edge("a", "b"), edge("b", "a"), edge("a", "a")])
        assert [(e.source, e.target) for e in edges] == [("a", "b")]


class TestUpdateGraph:
    """update_graph() commit semantics."""

    def test_initial_commit_pushes_one_snapshot(self, tree_graph):
        pipeline = _pipeline(*tree_graph)
        assert len(pipeline.history) == 1
        assert pipeline.store.node_count() == 5

    def test_none_mutator_is_noop(self, tree_graph):
        """A mutator returning None changes nothing and records nothing."""
        pipeline = _pipeline(*tree_graph)
        before = [node.get_label() for node in pipeline.store.all_nodes()]

        assert pipeline.update_graph(lambda n, e: None) is False
        assert len(pipeline.history) == 1
        assert [node.get_label() for node in pipeline.store.all_nodes()] == before

    def test_mutator_gets_copies(self, tree_graph):
        """Mutating the arguments and then bailing out leaves the store alone."""
        pipeline = _pipeline(*tree_graph)

        def sneaky(nodes, edges):
            nodes[0].set_label("tampered")
            return None

        pipeline.update_graph(sneaky)
        assert pipeline.store.find_by_id("root").get_label() == "Root"

    def test_relayout_false_keeps_positions(self, tree_graph, make_node, edge):
        """Without relayout existing nodes keep their committed positions."""
        pipeline = _pipeline(*tree_graph)
        before = pipeline.store.find_by_id("a").position

        def add(nodes, edges):
            return [*nodes, make_node("new", x=9.0, y=9.0)], [*edges, edge("a", "new")]

        pipeline.update_graph(add, relayout=False)
        assert pipeline.store.find_by_id("a").position == before
        assert pipeline.store.find_by_id("new").position.x == 9.0

    def test_hidden_nodes_keep_positions(self, tree_graph):
        """Collapsing relayouts the visible subset only."""
        pipeline = _pipeline(*tree_graph)
        a1_before = pipeline.store.find_by_id("a1").position

        def collapse(nodes, edges):
            next(node for node in nodes if node.id == "a").collapsed = True
            return nodes, edges

        pipeline.update_graph(collapse)
        assert pipeline.store.visible_ids == {"root", "a", "b"}
        assert pipeline.store.find_by_id("a1").position == a1_before
        assert pipeline.store.find_by_id("a").hidden_child_count == 2

    def test_edges_get_canonical_handles(self, make_node):
        pipeline = _pipeline(
            [make_node("p"), make_node("c")],
            [Edge(source="p", target="c", source_handle="bogus")],
        )
        committed = next(pipeline.store.all_edges())
        assert committed.source_handle == "p-right"
        assert committed.target_handle == "c-left"

    def test_listener_notified(self, tree_graph):
        pipeline = _pipeline(*tree_graph)
        seen = []
        pipeline.subscribe(lambda store: seen.append(store.node_count()))
        pipeline.update_graph(lambda n, e: (n[:1], []))
        assert seen == [1]


class TestRestore:
    """Undo/redo replay through the pipeline."""

    def test_undo_redo_do_not_push(self, tree_graph):
        pipeline = _pipeline(*tree_graph)
        pipeline.update_graph(lambda n, e: (n[:1], []))
        assert len(pipeline.history) == 2

        assert pipeline.undo() is True
        assert pipeline.store.node_count() == 5
        assert pipeline.redo() is True
        assert pipeline.store.node_count() == 1
        assert len(pipeline.history) == 2
        assert not pipeline.is_restoring

    def test_undo_at_start_returns_false(self, tree_graph):
        pipeline = _pipeline(*tree_graph)
        assert pipeline.undo() is False
        assert pipeline.redo() is False

    def test_undo_restores_viewport(self, tree_graph):
        from mindgraph.graph.history import Viewport

        pipeline = _pipeline(*tree_graph)
        first_viewport = pipeline.viewport
        pipeline.viewport = Viewport(1.0, 2.0, 3.0)
        pipeline.update_graph(lambda n, e: (n[:1], []))
        pipeline.undo()
        assert pipeline.viewport == first_viewport
