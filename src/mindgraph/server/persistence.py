"""Persistence layer - Mindmap documents as JSON state files.

A state file mirrors browser local storage: one JSON object whose keys
are the versioned storage keys and whose values are the stored
payloads::

    {"mindgraph-flow-state.v1": {nodes, edges, viewport},
     "mindgraph-ai-conversations.v1": {node_id: [turns]}}

Public API
----------
- ``load_editor`` - build an editor from a state file, falling back to
  the default graph when the file is missing or unusable
- ``save_editor`` - write the editor's full state back
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from mindgraph.ai.conversation import ConversationStore
from mindgraph.graph.editor import MindmapEditor
from mindgraph.graph.serialize import (
    AI_CONVERSATION_STORAGE_KEY,
    FLOW_STORAGE_KEY,
    load_flow_state,
)

logger = logging.getLogger(__name__)


def _storage_keys(config: dict[str, Any]) -> tuple[str, str]:
    storage = config.get("storage") or {}
    return (
        storage.get("key", FLOW_STORAGE_KEY),
        storage.get("conversations_key", AI_CONVERSATION_STORAGE_KEY),
    )


def read_state_file(path: Path) -> dict[str, Any]:
    """Read a state file, returning {} when it is missing or unreadable."""
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as e:
        logger.warning("Cannot read %s: %s", path, e)
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("State file %s is not valid JSON; ignoring it", path)
        return {}
    return data if isinstance(data, dict) else {}


def load_editor(path: Path | None, config: dict[str, Any] | None = None) -> MindmapEditor:
    """Build an editor from a state file.

    Args:
        path: State file path; None starts a new document.
        config: Merged configuration dict.

    Returns:
        The loaded editor, or one holding the default graph.
    """
    config = config or {}
    if path is None:
        return MindmapEditor.default(config)
    flow_key, conversation_key = _storage_keys(config)
    data = read_state_file(path)
    conversations = ConversationStore.from_dict(data.get(conversation_key))
    return MindmapEditor.from_flow_state(
        load_flow_state(data.get(flow_key)), config, conversations=conversations
    )


def save_editor(editor: MindmapEditor, path: Path) -> dict[str, Any]:
    """Write the editor's full state to path.

    The file is written next to its destination and renamed into place
    so a crash never leaves a truncated document.

    Returns:
        ``{"success": True, "path": ..., "node_count": ...}`` or
        ``{"success": False, "error": ...}``.
    """
    path = Path(path)
    flow_key, conversation_key = _storage_keys(editor.config)
    data = read_state_file(path)
    data[flow_key] = editor.to_snapshot_dict()
    data[conversation_key] = editor.conversations.to_dict()

    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, path)
    except OSError as e:
        return {"success": False, "error": f"Cannot write {path}: {e}"}

    return {
        "success": True,
        "path": str(path),
        "node_count": editor.store.node_count(),
        "message": f"Saved {editor.store.node_count()} nodes to {path}",
    }
