"""Tests for undo/redo history types."""

from mindgraph.graph.history import History, Snapshot, Viewport


def _snap(label, make_node):
    return Snapshot.capture([make_node("n", label)], [])


class TestHistory:
    """Linear undo/redo stack."""

    def test_empty_history(self):
        history = History()
        assert len(history) == 0
        assert history.index == -1
        assert history.current() is None
        assert history.undo() is None
        assert history.redo() is None

    def test_undo_at_first_entry_is_noop(self, make_node):
        """The initial state can never be undone."""
        history = History()
        history.push(_snap("one", make_node))
        assert not history.can_undo
        assert history.undo() is None
        assert history.index == 0

    def test_undo_redo_walk(self, make_node):
        """undo() and redo() return the snapshot to restore."""
        history = History()
        first, second, third = (_snap(label, make_node) for label in ("1", "2", "3"))
        for snap in (first, second, third):
            history.push(snap)

        assert history.undo() is second
        assert history.undo() is first
        assert history.undo() is None
        assert history.redo() is second
        assert history.redo() is third
        assert history.redo() is None

    def test_push_drops_redo_branch(self, make_node):
        """Committing after undo discards the undone entries."""
        history = History()
        for label in ("1", "2", "3"):
            history.push(_snap(label, make_node))
        history.undo()
        history.undo()
        replacement = _snap("x", make_node)
        history.push(replacement)

        assert len(history) == 2
        assert history.current() is replacement
        assert not history.can_redo

    def test_max_entries_evicts_oldest(self, make_node):
        """A bounded history keeps the newest entries."""
        history = History(max_entries=2)
        snaps = [_snap(str(i), make_node) for i in range(4)]
        for snap in snaps:
            history.push(snap)

        assert list(history.iter_entries()) == snaps[2:]
        assert history.index == 1
        assert history.undo() is snaps[2]

    def test_clear(self, make_node):
        history = History()
        history.push(_snap("1", make_node))
        history.clear()
        assert len(history) == 0
        assert history.index == -1


class TestSnapshot:
    """Snapshot capture and copy isolation."""

    def test_capture_is_deep(self, make_node):
        """Mutating the source after capture leaves the snapshot intact."""
        node = make_node("n", "before")
        snap = Snapshot.capture([node], [])
        node.set_label("after")
        assert snap.nodes[0].get_label() == "before"

    def test_copies_are_independent(self, make_node):
        """Replaying copies never alters the stored entry."""
        snap = Snapshot.capture([make_node("n", "stored")], [])
        replay = snap.copy_nodes()
        replay[0].set_label("changed")
        assert snap.nodes[0].get_label() == "stored"

    def test_str(self, make_node, edge):
        snap = Snapshot.capture([make_node("a"), make_node("b")], [edge("a", "b")])
        assert str(snap).endswith("2 nodes, 1 edges")


class TestViewport:
    """Viewport parsing."""

    def test_round_trip(self):
        viewport = Viewport(1.0, 2.0, 0.5)
        assert Viewport.from_dict(viewport.to_dict()) == viewport

    def test_rejects_bad_values(self):
        assert Viewport.from_dict({"x": 1, "y": "2", "zoom": 1}) is None
        assert Viewport.from_dict({"x": 1, "y": 2}) is None
        assert Viewport.from_dict({"x": True, "y": 2, "zoom": 1}) is None
        assert Viewport.from_dict(None) is None
