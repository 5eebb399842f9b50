"""Tests for the conversation store."""

from mindgraph.ai.conversation import ConversationStore, ConversationTurn


class TestConversationTurn:
    def test_render(self):
        assert ConversationTurn("user", "hello").render() == "User: hello"
        assert ConversationTurn("assistant", "hi").render() == "Assistant: hi"


class TestConversationStore:
    """Turn log and request generations."""

    def test_append_and_recent(self):
        store = ConversationStore()
        for index in range(5):
            store.append("n", "user" if index % 2 == 0 else "assistant", str(index))
        assert store.recent_lines("n", 2) == ["Assistant: 3", "User: 4"]
        assert store.recent_lines("n", 0) == []
        assert store.recent_lines("other", 3) == []

    def test_turns_returns_copy(self):
        store = ConversationStore()
        store.append("n", "user", "x")
        store.turns("n").clear()
        assert len(store.turns("n")) == 1

    def test_generations(self):
        """Only the newest request for a node is current."""
        store = ConversationStore()
        first = store.begin_request("n")
        second = store.begin_request("n")
        assert (first, second) == (1, 2)
        assert not store.is_current("n", first)
        assert store.is_current("n", second)
        assert store.begin_request("m") == 1

    def test_forget(self):
        store = ConversationStore()
        store.append("n", "user", "x")
        generation = store.begin_request("n")
        store.forget(["n"])
        assert store.turns("n") == []
        assert not store.is_current("n", generation)

    def test_round_trip(self):
        store = ConversationStore()
        turn = store.append("n", "assistant", "done", kind="suggestion", suggestion_id="s1")
        loaded = ConversationStore.from_dict(store.to_dict())
        [copy] = loaded.turns("n")
        assert copy.id == turn.id
        assert copy.kind == "suggestion"
        assert copy.suggestion_id == "s1"

    def test_from_dict_skips_bad_records(self):
        raw = {
            "n": [
                {"role": "user", "content": "ok"},
                {"role": "robot", "content": "no"},
                {"role": "user", "content": 5},
                "junk",
            ],
            "m": "junk",
        }
        loaded = ConversationStore.from_dict(raw)
        assert [turn.content for turn in loaded.turns("n")] == ["ok"]
        assert loaded.turns("m") == []
        assert ConversationStore.from_dict(None).turns("n") == []
