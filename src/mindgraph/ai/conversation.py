"""Per-node AI conversation log and request generations.

Every outgoing request bumps the focus node's generation. A reply is
only accepted while its generation is still the newest one for that
node, so a slow answer to an abandoned request never lands on the map.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable
from uuid import uuid4


@dataclass
class ConversationTurn:
    """One message in a node's conversation."""

    role: str
    content: str
    kind: str | None = None
    intent: str | None = None
    suggestion_id: str | None = None
    id: str = field(default_factory=lambda: uuid4().hex)
    created_at: float = field(default_factory=time.time)

    def render(self) -> str:
        """"User: ..." or "Assistant: ..." line for the context payload."""
        speaker = "User" if self.role == "user" else "Assistant"
        return f"{speaker}: {self.content}"


class ConversationStore:
    """Conversations keyed by node ID, plus request generations."""

    def __init__(self) -> None:
        self._turns: dict[str, list[ConversationTurn]] = {}
        self._generations: dict[str, int] = {}

    def append(
        self,
        node_id: str,
        role: str,
        content: str,
        kind: str | None = None,
        intent: str | None = None,
        suggestion_id: str | None = None,
    ) -> ConversationTurn:
        """Record a turn for node_id."""
        turn = ConversationTurn(
            role=role,
            content=content,
            kind=kind,
            intent=intent,
            suggestion_id=suggestion_id,
        )
        self._turns.setdefault(node_id, []).append(turn)
        return turn

    def turns(self, node_id: str) -> list[ConversationTurn]:
        """All turns for node_id, oldest first."""
        return list(self._turns.get(node_id, ()))

    def recent_lines(self, node_id: str, limit: int) -> list[str]:
        """Rendered lines of the last ``limit`` turns."""
        if limit <= 0:
            return []
        return [turn.render() for turn in self._turns.get(node_id, [])[-limit:]]

    def begin_request(self, node_id: str) -> int:
        """Start a request for node_id and return its generation."""
        generation = self._generations.get(node_id, 0) + 1
        self._generations[node_id] = generation
        return generation

    def is_current(self, node_id: str, generation: int) -> bool:
        """True if generation is the newest request for node_id."""
        return self._generations.get(node_id) == generation

    def forget(self, node_ids: Iterable[str]) -> None:
        """Drop conversations and generations of deleted nodes."""
        for node_id in node_ids:
            self._turns.pop(node_id, None)
            self._generations.pop(node_id, None)

    def clear(self) -> None:
        """Drop everything."""
        self._turns.clear()
        self._generations.clear()

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        """Serialize turns for persistence."""
        return {
            node_id: [asdict(turn) for turn in turns] for node_id, turns in self._turns.items()
        }

    @classmethod
    def from_dict(cls, raw: Any) -> ConversationStore:
        """Load turns, skipping malformed records."""
        store = cls()
        if not isinstance(raw, dict):
            return store
        for node_id, turns in raw.items():
            if not isinstance(turns, list):
                continue
            for entry in turns:
                if not isinstance(entry, dict):
                    continue
                role = entry.get("role")
                content = entry.get("content")
                if role not in ("user", "assistant") or not isinstance(content, str):
                    continue
                turn = ConversationTurn(
                    role=role,
                    content=content,
                    kind=entry.get("kind"),
                    intent=entry.get("intent"),
                    suggestion_id=entry.get("suggestion_id"),
                )
                if isinstance(entry.get("id"), str):
                    turn.id = entry["id"]
                if isinstance(entry.get("created_at"), (int, float)):
                    turn.created_at = float(entry["created_at"])
                store._turns.setdefault(str(node_id), []).append(turn)
        return store
