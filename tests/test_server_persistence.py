"""Tests for state-file persistence."""

import json

from mindgraph.ai.conversation import ConversationStore
from mindgraph.graph.editor import DEFAULT_ROOT_ID, MindmapEditor
from mindgraph.graph.serialize import AI_CONVERSATION_STORAGE_KEY, FLOW_STORAGE_KEY
from mindgraph.server.persistence import load_editor, read_state_file, save_editor


class TestReadStateFile:
    def test_missing(self, tmp_path):
        assert read_state_file(tmp_path / "none.json") == {}

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{nope")
        assert read_state_file(path) == {}

    def test_non_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1]")
        assert read_state_file(path) == {}


class TestSaveAndLoad:
    """save_editor()/load_editor() round trip."""

    def test_round_trip(self, editor, tmp_path):
        path = tmp_path / "map.json"
        editor.set_collapsed("a", True)
        editor.begin_ai_request("b")

        result = save_editor(editor, path)
        assert result["success"] is True
        assert result["node_count"] == 5
        assert not (tmp_path / "map.json.tmp").exists()

        loaded = load_editor(path)
        assert loaded.to_snapshot_dict() == editor.to_snapshot_dict()
        assert loaded.visible_ids == {"root", "a", "b"}
        assert [turn.content for turn in loaded.conversations.turns("b")] == ["spark"]
        assert not loaded.can_undo

    def test_storage_keys(self, editor, tmp_path):
        path = tmp_path / "map.json"
        save_editor(editor, path)
        data = json.loads(path.read_text())
        assert set(data) == {FLOW_STORAGE_KEY, AI_CONVERSATION_STORAGE_KEY}

    def test_unrelated_keys_preserved(self, editor, tmp_path):
        path = tmp_path / "map.json"
        path.write_text(json.dumps({"other-app": 1}))
        save_editor(editor, path)
        assert json.loads(path.read_text())["other-app"] == 1

    def test_custom_key(self, tmp_path):
        config = {"storage": {"key": "custom", "conversations_key": "talk"}}
        editor = MindmapEditor.default(config)
        path = tmp_path / "map.json"
        save_editor(editor, path)
        assert set(json.loads(path.read_text())) == {"custom", "talk"}
        assert load_editor(path, config).get_node(DEFAULT_ROOT_ID) is not None

    def test_missing_file_gives_default(self, tmp_path):
        editor = load_editor(tmp_path / "absent.json")
        assert [node.id for node in editor.nodes] == [DEFAULT_ROOT_ID]
        assert isinstance(editor.conversations, ConversationStore)

    def test_no_path_gives_default(self):
        assert load_editor(None).get_node(DEFAULT_ROOT_ID) is not None

    def test_write_failure(self, editor, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        result = save_editor(editor, blocker / "map.json")
        assert result["success"] is False
        assert "Cannot write" in result["error"]
