"""MindmapEditor - User-level operations over the mutation pipeline.

Every operation builds a mutator and hands it to
MutationPipeline.update_graph(); nothing here writes the store
directly. Operations on unknown node IDs are silent no-ops that return
False (or None where a new ID would have been returned).
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Iterable

from mindgraph.ai.conversation import ConversationStore
from mindgraph.ai.prompt import Prompt, build_prompt
from mindgraph.ai.response import DEFAULT_MODEL, Suggestion, parse_suggestion
from mindgraph.graph.context import ContextLimits, ContextPayload, build_context
from mindgraph.graph.GraphNode import GraphNode, NodeVariant, Position
from mindgraph.graph.history import History, Viewport
from mindgraph.graph.layout import LayoutOptions
from mindgraph.graph.pipeline import GraphState, MutationPipeline
from mindgraph.graph.relations import Edge, collect_branch, create_edge
from mindgraph.graph.serialize import (
    FlowState,
    export_flat,
    import_flat,
    load_flow_state,
    serialize_edge,
    serialize_flow_state,
    serialize_node,
)
from mindgraph.graph.store import GraphStore, NodeIdGenerator

logger = logging.getLogger(__name__)

# Pastel palette; new nodes pick COLORS[level % len(COLORS)].
COLORS = (
    "#B4A7D6",  # Lavender
    "#FFB5A7",  # Peach
    "#B8E6D5",  # Mint
    "#A8D8EA",  # Sky
    "#F8B4D9",  # Blush
    "#FFF4A3",  # Lemon
    "#FFCAB0",  # Coral
    "#C5E1A5",  # Sage
    "#C5CAE9",  # Periwinkle
    "#F8BBD0",  # Rose
)

STATUS_VALUES = ("not-started", "in-progress", "completed", "blocked")

NOTE_COLOR = "#fef3c7"

DEFAULT_ROOT_ID = "root"
DEFAULT_ROOT_LABEL = "My Mindmap"
CANVAS_CENTER = (8000.0, 4500.0)
DEFAULT_ZOOM = 1.1

APPLY_MODES = ("add", "replace")


def default_viewport() -> Viewport:
    """Camera centred on the canvas."""
    return Viewport(x=CANVAS_CENTER[0], y=CANVAS_CENTER[1], zoom=DEFAULT_ZOOM)


def default_graph() -> GraphState:
    """Single-root graph used for a new document or an unreadable one."""
    root = GraphNode(
        id=DEFAULT_ROOT_ID,
        level=0,
        position=Position(*CANVAS_CENTER),
    )
    root.set_label(DEFAULT_ROOT_LABEL)
    root.set_field("color", COLORS[0])
    root.set_field("status", STATUS_VALUES[0])
    return [root], []


def _new_topic(node_id: str, label: str, level: int, color: str, position: Position) -> GraphNode:
    node = GraphNode(id=node_id, level=level, position=Position(position.x, position.y))
    node.set_label(label)
    node.set_field("color", color)
    node.set_field("status", STATUS_VALUES[0])
    node.set_field("description", "")
    return node


def _find(nodes: list[GraphNode], node_id: str) -> GraphNode | None:
    for node in nodes:
        if node.id == node_id:
            return node
    return None


@dataclass
class AiRequest:
    """An outgoing AI request, tagged with its generation.

    The transport sends ``prompt`` to the model and passes the reply
    back to MindmapEditor.receive_ai_response() with the same node_id
    and generation.
    """

    node_id: str
    generation: int
    intent: str
    context: ContextPayload
    prompt: Prompt

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodeId": self.node_id,
            "generation": self.generation,
            "intent": self.intent,
            "context": self.context.to_dict(),
            "systemPrompt": self.prompt.system,
            "userPrompt": self.prompt.user,
        }


class MindmapEditor:
    """A single mindmap document with history and AI conversations.

    Attributes:
        store: Canonical graph state.
        pipeline: Mutation pipeline owning store and history.
        conversations: Per-node AI conversation log.
        suggestions: Parsed AI suggestions by ID.
        config: Merged configuration dict.
    """

    def __init__(
        self,
        nodes: Iterable[GraphNode] = (),
        edges: Iterable[Edge] = (),
        viewport: Viewport | None = None,
        config: dict[str, Any] | None = None,
        relayout: bool = True,
        fresh_layout: bool = False,
        conversations: ConversationStore | None = None,
        id_generator: NodeIdGenerator | None = None,
    ) -> None:
        """Load an initial graph and record it as the first history entry.

        Args:
            nodes: Initial nodes (copied).
            edges: Initial edges (copied).
            viewport: Initial camera state.
            config: Merged configuration dict (see mindgraph.config).
            relayout: Run layout over the initial graph.
            fresh_layout: Ignore stored root positions and stack trees
                from the configured start coordinates.
            conversations: Previously persisted AI conversations.
            id_generator: ID source; seeded past the loaded IDs.
        """
        self.config = config or {}
        self.layout_options = LayoutOptions.from_config(self.config.get("layout"))
        self.context_limits = ContextLimits.from_config(self.config.get("context"))
        history_section = self.config.get("history") or {}
        deletion_section = self.config.get("deletion") or {}
        self.protect_roots = bool(deletion_section.get("protect_roots", True))

        initial_nodes = [node.copy() for node in nodes]
        initial_edges = copy.deepcopy(list(edges))

        self.store = GraphStore(id_generator=id_generator or NodeIdGenerator())
        self.store.id_generator.seed_from(node.id for node in initial_nodes)
        self.pipeline = MutationPipeline(
            self.store,
            history=History(max_entries=int(history_section.get("max_entries", 0))),
            layout_options=self.layout_options,
            viewport=viewport or default_viewport(),
        )
        self.conversations = conversations or ConversationStore()
        self.suggestions: dict[str, Suggestion] = {}

        options = LayoutOptions.from_config(self.config.get("layout"), fresh=fresh_layout)
        self.pipeline.update_graph(
            lambda _nodes, _edges: (initial_nodes, initial_edges),
            relayout=relayout,
            layout_options=options,
        )

    # ─────────────────────────────────────────────────────────────────
    # Construction
    # ─────────────────────────────────────────────────────────────────

    @classmethod
    def default(cls, config: dict[str, Any] | None = None) -> MindmapEditor:
        """New document with a single "My Mindmap" root."""
        nodes, edges = default_graph()
        return cls(nodes, edges, config=config, relayout=False)

    @classmethod
    def from_flow_state(
        cls,
        state: FlowState | None,
        config: dict[str, Any] | None = None,
        conversations: ConversationStore | None = None,
    ) -> MindmapEditor:
        """Editor for a loaded flow state, or the default graph if None.

        Stored positions are kept; only visibility is recomputed.
        """
        if state is None or not state.nodes:
            logger.info("No usable flow state; starting from the default graph")
            editor = cls.default(config)
            if conversations is not None:
                editor.conversations = conversations
            return editor
        return cls(
            state.nodes,
            state.edges,
            viewport=state.viewport,
            config=config,
            relayout=False,
            conversations=conversations,
        )

    @classmethod
    def from_snapshot_dict(cls, payload: Any, config: dict[str, Any] | None = None) -> MindmapEditor:
        """Editor for a persisted snapshot (JSON string or dict)."""
        return cls.from_flow_state(load_flow_state(payload), config)

    # ─────────────────────────────────────────────────────────────────
    # Read access
    # ─────────────────────────────────────────────────────────────────

    @property
    def nodes(self) -> list[GraphNode]:
        """All nodes, including hidden ones."""
        return list(self.store.all_nodes())

    @property
    def edges(self) -> list[Edge]:
        """All edges."""
        return list(self.store.all_edges())

    @property
    def visible_ids(self) -> frozenset[str]:
        return self.store.visible_ids

    @property
    def viewport(self) -> Viewport:
        return self.pipeline.viewport

    @property
    def can_undo(self) -> bool:
        return self.pipeline.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.pipeline.history.can_redo

    def get_node(self, node_id: str) -> GraphNode | None:
        return self.store.find_by_id(node_id)

    def render_state(self) -> dict[str, Any]:
        """Visible nodes and edges in the persisted shape, plus history flags."""
        return {
            "nodes": [serialize_node(node) for node in self.store.visible_nodes()],
            "edges": [serialize_edge(edge) for edge in self.store.visible_edges()],
            "viewport": self.viewport.to_dict(),
            "history": {
                "canUndo": self.can_undo,
                "canRedo": self.can_redo,
                "index": self.pipeline.history.index,
                "length": len(self.pipeline.history),
            },
        }

    def to_snapshot_dict(self) -> dict[str, Any]:
        """Full persisted flow state (all nodes, including hidden ones)."""
        return serialize_flow_state(self.store.all_nodes(), self.store.all_edges(), self.viewport)

    def export_flat(self) -> dict[str, Any]:
        """Lossy export file of the whole graph."""
        return export_flat(self.store.all_nodes(), self.store.all_edges())

    # ─────────────────────────────────────────────────────────────────
    # Structural operations
    # ─────────────────────────────────────────────────────────────────

    def add_child(self, parent_id: str, label: str = "New Topic") -> str | None:
        """Add a topic under parent_id.

        Args:
            parent_id: Parent node ID.
            label: Label of the new node.

        Returns:
            The new node ID, or None if the parent does not exist.
        """
        if not self.store.has_node(parent_id):
            return None
        new_id = self.store.id_generator.next_id("node")

        def mutator(nodes: list[GraphNode], edges: list[Edge]) -> GraphState | None:
            parent = _find(nodes, parent_id)
            if parent is None:
                return None
            level = parent.level + 1
            child = _new_topic(new_id, label, level, COLORS[level % len(COLORS)], Position())
            return [*nodes, child], [*edges, create_edge(parent_id, new_id)]

        return new_id if self.pipeline.update_graph(mutator) else None

    def add_note(self, parent_id: str) -> str | None:
        """Attach an edge note to parent_id, placed at the parent's position.

        Returns:
            The new note ID, or None if the parent does not exist.
        """
        if not self.store.has_node(parent_id):
            return None
        new_id = self.store.id_generator.next_id("note")

        def mutator(nodes: list[GraphNode], edges: list[Edge]) -> GraphState | None:
            parent = _find(nodes, parent_id)
            if parent is None:
                return None
            note = GraphNode(
                id=new_id,
                level=parent.level + 1,
                position=Position(parent.position.x, parent.position.y),
                variant=NodeVariant.EDGE_NOTE,
                type="edge-note",
            )
            note.set_label("Content Draft")
            note.set_field("noteContent", "")
            note.set_field("noteCollapsed", False)
            note.set_field("color", NOTE_COLOR)
            return [*nodes, note], [*edges, create_edge(parent_id, new_id)]

        return new_id if self.pipeline.update_graph(mutator) else None

    def add_root(self, label: str = "New Root", x: float | None = None, y: float | None = None) -> str:
        """Add a new root tree at (x, y), defaulting to the viewport centre.

        Returns:
            The new root ID.
        """
        new_id = self.store.id_generator.next_id("root")
        position = Position(
            self.viewport.x if x is None else float(x),
            self.viewport.y if y is None else float(y),
        )

        def mutator(nodes: list[GraphNode], edges: list[Edge]) -> GraphState:
            return [*nodes, _new_topic(new_id, label, 0, COLORS[0], position)], edges

        self.pipeline.update_graph(mutator)
        return new_id

    def delete_node(self, node_id: str, force: bool = False) -> bool:
        """Delete a node, its transitive subtree and every incident edge.

        Roots are protected while ``deletion.protect_roots`` is on,
        unless force is True.

        Args:
            node_id: Node to delete.
            force: Delete even a protected root.

        Returns:
            True if anything was deleted.
        """
        if not self.store.has_node(node_id):
            return False
        if self.protect_roots and not force and self.store.is_root(node_id):
            logger.debug("Refusing to delete root %s", node_id)
            return False

        removed: set[str] = set()

        def mutator(nodes: list[GraphNode], edges: list[Edge]) -> GraphState | None:
            removed.update(collect_branch(node_id, edges))
            kept_nodes = [node for node in nodes if node.id not in removed]
            if len(kept_nodes) == len(nodes):
                return None
            kept_edges = [edge for edge in edges if not edge.touches(removed)]
            return kept_nodes, kept_edges

        if not self.pipeline.update_graph(mutator):
            return False
        self.conversations.forget(removed)
        for suggestion in self.suggestions.values():
            if suggestion.node_id in removed and suggestion.status == "pending":
                suggestion.status = "rejected"
        return True

    def clear(self) -> None:
        """Reset to the default single-root graph and drop AI state."""
        fresh_nodes, fresh_edges = default_graph()
        self.pipeline.update_graph(lambda _n, _e: (fresh_nodes, fresh_edges), relayout=False)
        self.conversations.clear()
        self.suggestions.clear()

    def import_flat(self, payload: Any) -> bool:
        """Replace the graph with an export file and lay it out from scratch.

        Returns:
            False if the file is unusable; the current graph is kept.
        """
        state = import_flat(payload)
        if state is None or not state.nodes:
            logger.warning("Import payload has no usable nodes")
            return False
        self.store.id_generator.seed_from(node.id for node in state.nodes)
        options = LayoutOptions.from_config(self.config.get("layout"), fresh=True)
        return self.pipeline.update_graph(
            lambda _n, _e: (state.nodes, state.edges),
            layout_options=options,
        )

    def relayout(self, fresh: bool = False) -> bool:
        """Rerun layout over the visible graph."""
        options = LayoutOptions.from_config(self.config.get("layout"), fresh=fresh)
        return self.pipeline.update_graph(lambda nodes, edges: (nodes, edges), layout_options=options)

    # ─────────────────────────────────────────────────────────────────
    # Field updates
    # ─────────────────────────────────────────────────────────────────

    def _update_field(self, node_id: str, key: str, value: Any, relayout: bool = False) -> bool:
        def mutator(nodes: list[GraphNode], edges: list[Edge]) -> GraphState | None:
            node = _find(nodes, node_id)
            if node is None or node.get_field(key) == value:
                return None
            node.set_field(key, value)
            return nodes, edges

        return self.pipeline.update_graph(mutator, relayout=relayout)

    def update_label(self, node_id: str, label: str) -> bool:
        return self._update_field(node_id, "label", label)

    def update_description(self, node_id: str, description: str) -> bool:
        return self._update_field(node_id, "description", description)

    def update_status(self, node_id: str, status: str) -> bool:
        """Set the status; values outside STATUS_VALUES are ignored."""
        if status not in STATUS_VALUES:
            logger.debug("Ignoring unknown status %r", status)
            return False
        return self._update_field(node_id, "status", status)

    def change_color(self, node_id: str, color: str) -> bool:
        return self._update_field(node_id, "color", color)

    def change_emoji(self, node_id: str, emoji: str | None) -> bool:
        return self._update_field(node_id, "emoji", emoji or None)

    def update_note_content(self, node_id: str, content: str) -> bool:
        return self._update_field(node_id, "noteContent", content)

    def set_note_collapsed(self, node_id: str, collapsed: bool) -> bool:
        return self._update_field(node_id, "noteCollapsed", bool(collapsed))

    def set_persist_expanded(self, node_id: str, expanded: bool) -> bool:
        """Pin a node's description open; changes its height, so relayouts."""
        return self._update_field(node_id, "persistExpanded", bool(expanded), relayout=True)

    def set_collapsed(self, node_id: str, collapsed: bool) -> bool:
        """Collapse or expand a node's subtree.

        Returns:
            False if the node is missing or already in that state.
        """

        def mutator(nodes: list[GraphNode], edges: list[Edge]) -> GraphState | None:
            node = _find(nodes, node_id)
            if node is None or node.collapsed == collapsed:
                return None
            node.collapsed = collapsed
            return nodes, edges

        return self.pipeline.update_graph(mutator)

    def toggle_collapse(self, node_id: str) -> bool:
        node = self.store.find_by_id(node_id)
        if node is None:
            return False
        return self.set_collapsed(node_id, not node.collapsed)

    def set_viewport(self, x: float, y: float, zoom: float) -> None:
        """Record the camera; stored with the next snapshot."""
        self.pipeline.viewport = Viewport(float(x), float(y), float(zoom))

    # ─────────────────────────────────────────────────────────────────
    # History
    # ─────────────────────────────────────────────────────────────────

    def undo(self) -> bool:
        return self.pipeline.undo()

    def redo(self) -> bool:
        return self.pipeline.redo()

    # ─────────────────────────────────────────────────────────────────
    # AI collaboration
    # ─────────────────────────────────────────────────────────────────

    def build_context(
        self,
        node_id: str,
        intent: str = "spark",
        manual_prompt: str | None = None,
        quick_action_id: str | None = None,
    ) -> ContextPayload | None:
        """Context payload for node_id, or None if it does not exist."""
        return build_context(
            self.nodes,
            self.edges,
            node_id,
            intent=intent,
            recent_turns=self.conversations.recent_lines(
                node_id, self.context_limits.recent_turns
            ),
            limits=self.context_limits,
            manual_prompt=manual_prompt,
            quick_action_id=quick_action_id,
        )

    def begin_ai_request(
        self,
        node_id: str,
        intent: str = "spark",
        manual_prompt: str | None = None,
        quick_action_id: str | None = None,
    ) -> AiRequest | None:
        """Start an AI request for node_id.

        The context is captured before the user's turn is logged, so
        the request never echoes itself in ``recent_turns``.

        Returns:
            AiRequest carrying the generation to pass back with the
            reply, or None if the node does not exist.
        """
        context = self.build_context(node_id, intent, manual_prompt, quick_action_id)
        if context is None:
            return None
        generation = self.conversations.begin_request(node_id)
        self.conversations.append(
            node_id,
            "user",
            manual_prompt or quick_action_id or context.intent,
            kind="manual" if manual_prompt else "quick",
            intent=context.intent,
        )
        return AiRequest(
            node_id=node_id,
            generation=generation,
            intent=context.intent,
            context=context,
            prompt=build_prompt(context),
        )

    def receive_ai_response(
        self,
        node_id: str,
        generation: int,
        payload: Any,
        intent: str = "spark",
        model: str = DEFAULT_MODEL,
    ) -> Suggestion | None:
        """Accept a collaborator reply for an earlier request.

        Replies for deleted nodes or superseded generations are dropped.

        Returns:
            The pending Suggestion, or None if the reply was stale.

        Raises:
            MindmapAiError: If the reply cannot be parsed.
        """
        if not self.store.has_node(node_id) or not self.conversations.is_current(
            node_id, generation
        ):
            logger.debug("Dropping stale AI response for %s (generation %s)", node_id, generation)
            return None
        suggestion = parse_suggestion(payload, node_id, intent, generation, model)
        self.suggestions[suggestion.id] = suggestion
        self.conversations.append(
            node_id, "assistant", suggestion.summary, kind="ai", intent=intent,
            suggestion_id=suggestion.id,
        )
        return suggestion

    def apply_suggestion(
        self,
        suggestion_id: str,
        mode: str = "add",
        selected: Iterable[int] | None = None,
    ) -> bool:
        """Apply a pending suggestion as one history entry.

        Args:
            suggestion_id: ID of a suggestion from receive_ai_response().
            mode: "add" appends children; "replace" first removes the
                node's existing descendants.
            selected: Indexes of the additions to apply. None applies all;
                any other non-list value applies none.

        Returns:
            True if the suggestion was accepted.
        """
        suggestion = self.suggestions.get(suggestion_id)
        if suggestion is None or suggestion.status != "pending" or mode not in APPLY_MODES:
            return False
        node_id = suggestion.node_id
        parent = self.store.find_by_id(node_id)
        if parent is None:
            self.conversations.append(
                node_id,
                "assistant",
                "Could not locate the selected node when applying the suggestion.",
                kind="ai",
                intent=suggestion.intent,
            )
            return False

        if selected is None:
            indexes: Iterable[Any] = range(len(suggestion.additions))
        elif isinstance(selected, (list, tuple)):
            indexes = selected
        else:
            indexes = ()
        drafts = [
            suggestion.additions[index]
            for index in indexes
            if isinstance(index, int) and 0 <= index < len(suggestion.additions)
        ]

        suggestion.status = "accepted"
        suggestion.applied_mode = mode
        if not drafts and not suggestion.updates:
            self.conversations.append(
                node_id, "assistant", "Suggestion accepted. Nothing to change right now.",
                kind="ai", intent=suggestion.intent,
            )
            return True

        new_ids = [self.store.id_generator.next_id("node") for _ in drafts]

        def mutator(nodes: list[GraphNode], edges: list[Edge]) -> GraphState | None:
            target = _find(nodes, node_id)
            if target is None:
                return None
            if mode == "replace":
                doomed = collect_branch(node_id, edges)
                doomed.discard(node_id)
                nodes = [node for node in nodes if node.id not in doomed]
                edges = [edge for edge in edges if not edge.touches(doomed)]
            level = target.level + 1
            for index, (new_id, draft) in enumerate(zip(new_ids, drafts)):
                child = _new_topic(
                    new_id,
                    draft.label,
                    level,
                    COLORS[(level + index) % len(COLORS)],
                    target.position,
                )
                child.set_field("description", draft.description or "")
                if draft.emoji:
                    child.set_field("emoji", draft.emoji)
                nodes.append(child)
                edges.append(create_edge(node_id, new_id))
            if suggestion.updates:
                target.set_field("description", suggestion.updates[-1])
            return nodes, edges

        self.pipeline.update_graph(mutator)

        parts = []
        if mode == "replace":
            parts.append("Replaced earlier children before applying updates.")
        if drafts:
            plural = "" if len(drafts) == 1 else "s"
            parts.append(f"Added {len(drafts)} new node{plural} under “{parent.get_label()}”.")
        if suggestion.updates:
            parts.append("Updated the description.")
        self.conversations.append(
            node_id, "assistant", " ".join(parts), kind="ai", intent=suggestion.intent
        )
        return True

    def reject_suggestion(self, suggestion_id: str) -> bool:
        """Mark a pending suggestion rejected without touching the graph."""
        suggestion = self.suggestions.get(suggestion_id)
        if suggestion is None or suggestion.status != "pending":
            return False
        suggestion.status = "rejected"
        return True
