"""mindgraph.server.app - Flask app factory and REST API routes.

A thin REST wrapper over MindmapEditor: every route validates its
parameters and delegates; no graph logic lives here. Handlers share one
editor, so each one runs under a lock.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable

from flask import Flask, jsonify, request
from flask_cors import CORS

from mindgraph.ai.response import DEFAULT_MODEL, MindmapAiError
from mindgraph.graph.editor import APPLY_MODES, MindmapEditor

logger = logging.getLogger(__name__)


def _node_required(editor: MindmapEditor, data: dict[str, Any]):
    """Return (node_id, error_response) for bodies that need an existing node."""
    node_id = data.get("node_id", "")
    if not isinstance(node_id, str):
        return None, (jsonify({"success": False, "error": "node_id must be a string"}), 400)
    if not node_id:
        return None, (jsonify({"success": False, "error": "node_id required"}), 400)
    if editor.get_node(node_id) is None:
        return None, (jsonify({"success": False, "error": f"Node '{node_id}' not found"}), 404)
    return node_id, None


def _flag(data: dict[str, Any], key: str):
    """Return (value, error_response) for an optional JSON boolean (default False)."""
    value = data.get(key, False)
    if not isinstance(value, bool):
        return None, (jsonify({"success": False, "error": f"{key} must be a boolean"}), 400)
    return value, None


def _selection(data: dict[str, Any]):
    """Return (selected, error_response) for an optional list of addition indexes."""
    selected = data.get("selected")
    if selected is None:
        return None, None
    if not isinstance(selected, list) or not all(
        isinstance(index, int) and not isinstance(index, bool) for index in selected
    ):
        return None, (
            jsonify({"success": False, "error": "selected must be a list of integers"}),
            400,
        )
    return selected, None


def create_app(
    editor: MindmapEditor,
    config: dict[str, Any] | None = None,
    state_path: Path | None = None,
) -> Flask:
    """Create the Flask application with REST API routes.

    Args:
        editor: The document to serve.
        config: Merged mindgraph configuration dict.
        state_path: File written by POST /api/save; saving is disabled
            when None.

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)
    CORS(app)

    lock = threading.Lock()
    _state: dict[str, Any] = {
        "editor": editor,
        "config": config or {},
        "state_path": Path(state_path) if state_path else None,
    }

    @app.after_request
    def _no_cache(response):
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        return response

    def _body() -> dict[str, Any]:
        data = request.get_json(force=True, silent=True)
        return data if isinstance(data, dict) else {}

    def _state_response(**extra: Any):
        result = {"success": True, **extra}
        result.update(_state["editor"].render_state())
        return jsonify(result)

    # ─────────────────────────────────────────────────────────────────
    # Read-only GET endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/state")
    def api_state():
        """GET /api/state - Visible nodes/edges plus history flags."""
        with lock:
            return jsonify(_state["editor"].render_state())

    @app.route("/api/snapshot")
    def api_snapshot():
        """GET /api/snapshot - Full persisted flow state, hidden nodes included."""
        with lock:
            return jsonify(_state["editor"].to_snapshot_dict())

    @app.route("/api/export")
    def api_export():
        """GET /api/export - Flat export file."""
        with lock:
            return jsonify(_state["editor"].export_flat())

    @app.route("/api/context/<node_id>")
    def api_context(node_id: str):
        """GET /api/context/<node_id> - AI context payload for a node."""
        with lock:
            context = _state["editor"].build_context(
                node_id,
                intent=request.args.get("intent", "spark"),
                manual_prompt=request.args.get("prompt") or None,
                quick_action_id=request.args.get("quick_action_id") or None,
            )
        if context is None:
            return jsonify({"error": f"Node '{node_id}' not found"}), 404
        return jsonify(context.to_dict())

    # ─────────────────────────────────────────────────────────────────
    # Mutation POST endpoints
    # ─────────────────────────────────────────────────────────────────

    def _add_child(ed: MindmapEditor, data: dict[str, Any]):
        node_id, error = _node_required(ed, data)
        if error:
            return error
        new_id = ed.add_child(node_id, data.get("label") or "New Topic")
        return _state_response(node_id=new_id)

    def _add_note(ed: MindmapEditor, data: dict[str, Any]):
        node_id, error = _node_required(ed, data)
        if error:
            return error
        return _state_response(node_id=ed.add_note(node_id))

    def _add_root(ed: MindmapEditor, data: dict[str, Any]):
        try:
            x = float(data["x"]) if data.get("x") is not None else None
            y = float(data["y"]) if data.get("y") is not None else None
        except (TypeError, ValueError):
            return jsonify({"success": False, "error": "x and y must be numbers"}), 400
        return _state_response(node_id=ed.add_root(data.get("label") or "New Root", x, y))

    def _delete(ed: MindmapEditor, data: dict[str, Any]):
        node_id, error = _node_required(ed, data)
        if error:
            return error
        force, error = _flag(data, "force")
        if error:
            return error
        if not ed.delete_node(node_id, force=force):
            return (
                jsonify({"success": False, "error": f"Node '{node_id}' is a protected root"}),
                400,
            )
        return _state_response()

    def _collapse(ed: MindmapEditor, data: dict[str, Any]):
        node_id, error = _node_required(ed, data)
        if error:
            return error
        if "collapsed" in data:
            collapsed, error = _flag(data, "collapsed")
            if error:
                return error
            changed = ed.set_collapsed(node_id, collapsed)
        else:
            changed = ed.toggle_collapse(node_id)
        return _state_response(changed=changed)

    def _relayout(ed: MindmapEditor, data: dict[str, Any]):
        fresh, error = _flag(data, "fresh")
        if error:
            return error
        ed.relayout(fresh=fresh)
        return _state_response()

    def _field(setter: Callable[[MindmapEditor, str, Any], bool], boolean: bool = False):
        def handler(ed: MindmapEditor, data: dict[str, Any]):
            node_id, error = _node_required(ed, data)
            if error:
                return error
            if "value" not in data:
                return jsonify({"success": False, "error": "value required"}), 400
            if boolean and not isinstance(data["value"], bool):
                return jsonify({"success": False, "error": "value must be a boolean"}), 400
            return _state_response(changed=setter(ed, node_id, data["value"]))

        return handler

    operations: dict[str, Callable[[MindmapEditor, dict[str, Any]], Any]] = {
        "add-child": _add_child,
        "add-note": _add_note,
        "add-root": _add_root,
        "delete": _delete,
        "label": _field(lambda ed, node_id, value: ed.update_label(node_id, str(value))),
        "description": _field(
            lambda ed, node_id, value: ed.update_description(node_id, str(value))
        ),
        "status": _field(lambda ed, node_id, value: ed.update_status(node_id, str(value))),
        "color": _field(lambda ed, node_id, value: ed.change_color(node_id, str(value))),
        "emoji": _field(
            lambda ed, node_id, value: ed.change_emoji(node_id, str(value) if value else None)
        ),
        "note-content": _field(
            lambda ed, node_id, value: ed.update_note_content(node_id, str(value))
        ),
        "note-collapsed": _field(
            lambda ed, node_id, value: ed.set_note_collapsed(node_id, value),
            boolean=True,
        ),
        "persist-expanded": _field(
            lambda ed, node_id, value: ed.set_persist_expanded(node_id, value),
            boolean=True,
        ),
        "collapse": _collapse,
        "relayout": _relayout,
    }

    @app.route("/api/mutate/<op>", methods=["POST"])
    def api_mutate(op: str):
        """POST /api/mutate/<op> - Apply one editor operation.

        The JSON body carries ``node_id`` plus the operation's own
        parameters (``value`` for field updates, ``label``, ``force``,
        ``collapsed``, ``fresh``, ``x``/``y``).
        """
        handler = operations.get(op)
        if handler is None:
            return jsonify({"success": False, "error": f"Unknown operation: {op}"}), 400
        data = _body()
        with lock:
            return handler(_state["editor"], data)

    @app.route("/api/viewport", methods=["POST"])
    def api_viewport():
        """POST /api/viewport - Record the camera state."""
        data = _body()
        try:
            x, y, zoom = float(data["x"]), float(data["y"]), float(data["zoom"])
        except (KeyError, TypeError, ValueError):
            return jsonify({"success": False, "error": "x, y and zoom required"}), 400
        with lock:
            _state["editor"].set_viewport(x, y, zoom)
        return jsonify({"success": True})

    @app.route("/api/undo", methods=["POST"])
    def api_undo():
        """POST /api/undo - Step back one history entry."""
        with lock:
            if not _state["editor"].undo():
                return jsonify({"success": False, "error": "Nothing to undo"}), 400
            return _state_response()

    @app.route("/api/redo", methods=["POST"])
    def api_redo():
        """POST /api/redo - Step forward one history entry."""
        with lock:
            if not _state["editor"].redo():
                return jsonify({"success": False, "error": "Nothing to redo"}), 400
            return _state_response()

    @app.route("/api/import", methods=["POST"])
    def api_import():
        """POST /api/import - Replace the graph with a flat export file."""
        data = request.get_json(force=True, silent=True)
        with lock:
            if not _state["editor"].import_flat(data):
                return jsonify({"success": False, "error": "Invalid import file"}), 400
            return _state_response()

    # ─────────────────────────────────────────────────────────────────
    # AI collaboration endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/ai/request/<node_id>", methods=["POST"])
    def api_ai_request(node_id: str):
        """POST /api/ai/request/<node_id> - Start a request; returns prompts and generation."""
        data = _body()
        with lock:
            ai_request = _state["editor"].begin_ai_request(
                node_id,
                intent=data.get("intent", "spark"),
                manual_prompt=data.get("prompt") or None,
                quick_action_id=data.get("quick_action_id") or None,
            )
        if ai_request is None:
            return jsonify({"success": False, "error": f"Node '{node_id}' not found"}), 404
        return jsonify({"success": True, **ai_request.to_dict()})

    @app.route("/api/ai/apply/<node_id>", methods=["POST"])
    def api_ai_apply(node_id: str):
        """POST /api/ai/apply/<node_id> - Deliver a collaborator reply.

        Body: ``generation`` and ``response`` (reply JSON), optionally
        ``intent``, ``model``, and ``mode`` ("add"/"replace") with
        ``selected`` addition indexes to apply immediately.
        """
        data = _body()
        generation = data.get("generation")
        if not isinstance(generation, int) or "response" not in data:
            return jsonify({"success": False, "error": "generation and response required"}), 400
        mode = data.get("mode")
        if mode is not None and mode not in APPLY_MODES:
            return jsonify({"success": False, "error": f"Unknown mode: {mode}"}), 400
        selected, error = _selection(data)
        if error:
            return error
        with lock:
            ed = _state["editor"]
            try:
                suggestion = ed.receive_ai_response(
                    node_id,
                    generation,
                    data["response"],
                    intent=data.get("intent", "spark"),
                    model=data.get("model") or DEFAULT_MODEL,
                )
            except MindmapAiError as e:
                logger.warning("Unusable AI response for %s: %s", node_id, e)
                return jsonify({"success": False, "error": str(e)}), 502
            if suggestion is None:
                return jsonify({"success": False, "error": "Stale response discarded"}), 409
            if mode is not None and not ed.apply_suggestion(suggestion.id, mode, selected):
                return (
                    jsonify(
                        {
                            "success": False,
                            "error": "Suggestion could not be applied",
                            "suggestion": suggestion.to_dict(),
                        }
                    ),
                    400,
                )
            return _state_response(suggestion=suggestion.to_dict())

    @app.route("/api/ai/suggestions/<suggestion_id>", methods=["POST"])
    def api_ai_suggestion(suggestion_id: str):
        """POST /api/ai/suggestions/<id> - Accept ("add"/"replace") or reject a suggestion."""
        data = _body()
        action = data.get("action", "")
        selected, error = _selection(data)
        if error:
            return error
        with lock:
            ed = _state["editor"]
            if action == "reject":
                ok = ed.reject_suggestion(suggestion_id)
            elif action in APPLY_MODES:
                ok = ed.apply_suggestion(suggestion_id, action, selected)
            else:
                return jsonify({"success": False, "error": f"Unknown action: {action}"}), 400
            if not ok:
                return (
                    jsonify({"success": False, "error": "Suggestion not found or not pending"}),
                    404,
                )
            return _state_response(suggestion=ed.suggestions[suggestion_id].to_dict())

    # ─────────────────────────────────────────────────────────────────
    # Persistence endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/save", methods=["POST"])
    def api_save():
        """POST /api/save - Write the document to its state file."""
        from mindgraph.server.persistence import save_editor

        if _state["state_path"] is None:
            return jsonify({"success": False, "error": "No state file configured"}), 400
        with lock:
            result = save_editor(_state["editor"], _state["state_path"])
        status_code = 200 if result.get("success") else 500
        return jsonify(result), status_code

    return app
