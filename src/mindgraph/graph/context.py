"""Context Extractor - Bounded neighbourhood summary of a focus node.

Produces the payload handed to the AI collaborator: lineage to the
root, siblings, children and the latest conversation turns. The limits
cap the payload independent of graph size.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from mindgraph.graph.GraphNode import GraphNode
from mindgraph.graph.relations import Edge, build_parent_map

DEFAULT_LINEAGE_LIMIT = 6
DEFAULT_SIBLING_LIMIT = 6
DEFAULT_CHILD_LIMIT = 6
DEFAULT_RECENT_TURNS = 4

INTENTS = ("spark", "deepen")


@dataclass(frozen=True)
class ContextLimits:
    """Upper bounds on each list in the context payload."""

    lineage: int = DEFAULT_LINEAGE_LIMIT
    siblings: int = DEFAULT_SIBLING_LIMIT
    children: int = DEFAULT_CHILD_LIMIT
    recent_turns: int = DEFAULT_RECENT_TURNS

    @classmethod
    def from_config(cls, section: dict[str, Any] | None) -> ContextLimits:
        """Build limits from the [context] config section."""
        section = section or {}
        return cls(
            lineage=int(section.get("lineage_limit", DEFAULT_LINEAGE_LIMIT)),
            siblings=int(section.get("sibling_limit", DEFAULT_SIBLING_LIMIT)),
            children=int(section.get("child_limit", DEFAULT_CHILD_LIMIT)),
            recent_turns=int(section.get("recent_turns", DEFAULT_RECENT_TURNS)),
        )


@dataclass
class ContextEntry:
    """A lineage, sibling or child summary line."""

    id: str
    label: str
    level: int | None = None
    description: str | None = None
    status: str | None = None
    emoji: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a dict without unset optional fields."""
        result: dict[str, Any] = {"id": self.id, "label": self.label}
        for key in ("level", "description", "status", "emoji"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result


@dataclass
class ContextPayload:
    """Everything the AI collaborator gets to see about a focus node."""

    selected_node_id: str
    selected_label: str
    selected_level: int
    intent: str = "spark"
    selected_description: str | None = None
    lineage: list[ContextEntry] = field(default_factory=list)
    siblings: list[ContextEntry] = field(default_factory=list)
    children: list[ContextEntry] = field(default_factory=list)
    recent_turns: list[str] = field(default_factory=list)
    manual_prompt: str | None = None
    quick_action_id: str | None = None

    @property
    def conversation_summary(self) -> str | None:
        """Recent turns joined one per line, or None if there are none."""
        return "\n".join(self.recent_turns) or None

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the collaborator's camelCase field names."""
        result: dict[str, Any] = {
            "selectedNodeId": self.selected_node_id,
            "selectedLabel": self.selected_label,
            "selectedLevel": self.selected_level,
            "lineage": [entry.to_dict() for entry in self.lineage],
            "siblings": [entry.to_dict() for entry in self.siblings],
            "children": [entry.to_dict() for entry in self.children],
            "recentTurns": list(self.recent_turns),
            "intent": self.intent,
        }
        if self.selected_description is not None:
            result["selectedDescription"] = self.selected_description
        if self.manual_prompt:
            result["manualPrompt"] = self.manual_prompt
        if self.quick_action_id:
            result["quickActionId"] = self.quick_action_id
        if self.conversation_summary:
            result["conversationSummary"] = self.conversation_summary
        return result


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _summary_entry(node: GraphNode) -> ContextEntry:
    return ContextEntry(
        id=node.id,
        label=node.get_label(),
        description=_text(node.get_field("description")),
        status=_text(node.get_field("status")),
        emoji=_text(node.get_field("emoji")),
    )


def build_context(
    nodes: Sequence[GraphNode],
    edges: Sequence[Edge],
    node_id: str,
    intent: str = "spark",
    recent_turns: Sequence[str] = (),
    limits: ContextLimits | None = None,
    manual_prompt: str | None = None,
    quick_action_id: str | None = None,
) -> ContextPayload | None:
    """Summarize the neighbourhood of node_id.

    Args:
        nodes: All nodes of the graph.
        edges: All edges of the graph.
        node_id: The focus node.
        intent: "spark" (concrete content) or "deepen" (process steps).
        recent_turns: Conversation lines for this node, oldest first.
        limits: Caps on lineage/siblings/children/turns.
        manual_prompt: Free-text request typed by the user.
        quick_action_id: Canned request id ("children", "expand", "replace").

    Returns:
        ContextPayload, or None if node_id does not exist.
    """
    limits = limits or ContextLimits()
    node_map = {node.id: node for node in nodes}
    selected = node_map.get(node_id)
    if selected is None:
        return None

    parents = build_parent_map(edges)

    lineage: list[ContextEntry] = []
    visited = {node_id}
    current = node_id
    while len(lineage) < limits.lineage:
        parent = node_map.get(parents.get(current, ""))
        if parent is None or parent.id in visited:
            break
        lineage.insert(
            0,
            ContextEntry(
                id=parent.id,
                label=parent.get_label(),
                level=parent.level,
                description=_text(parent.get_field("description")),
            ),
        )
        visited.add(parent.id)
        current = parent.id

    def topic_children(parent_id: str, exclude: str | None = None) -> list[ContextEntry]:
        entries = []
        for edge in edges:
            if edge.source != parent_id or edge.target == exclude:
                continue
            child = node_map.get(edge.target)
            if child is None or child.is_note:
                continue
            entries.append(_summary_entry(child))
        return entries

    parent_id = parents.get(node_id)
    siblings = topic_children(parent_id, exclude=node_id) if parent_id else []
    children = topic_children(node_id)

    turns = list(recent_turns)[-limits.recent_turns :] if limits.recent_turns > 0 else []

    return ContextPayload(
        selected_node_id=selected.id,
        selected_label=selected.get_label(),
        selected_level=selected.level,
        selected_description=_text(selected.get_field("description")),
        intent=intent if intent in INTENTS else "spark",
        lineage=lineage,
        siblings=siblings[: limits.siblings],
        children=children[: limits.children],
        recent_turns=turns,
        manual_prompt=manual_prompt,
        quick_action_id=quick_action_id,
    )
