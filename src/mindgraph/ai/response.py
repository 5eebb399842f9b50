"""AI suggestion payloads.

Parses the collaborator's JSON reply into a Suggestion. Only ``summary``
and ``additions`` are part of the required contract; everything else is
optional, and an empty additions list is a valid answer.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

DEFAULT_MODEL = "gpt-4o-mini"
NO_SUMMARY = "No summary provided."

EMPHASIS_VALUES = ("primary", "secondary", "stretch")

# JSON schema the transport sends as the structured-output contract.
RESPONSE_SCHEMA: dict[str, Any] = {
    "name": "mindmap_suggestions",
    "schema": {
        "type": "object",
        "additionalProperties": False,
        "required": ["summary", "additions"],
        "properties": {
            "summary": {
                "type": "string",
                "description": "One-sentence recap of the assistant response.",
            },
            "additions": {
                "type": "array",
                "description": "New node ideas to add as children of the selected node.",
                "items": {
                    "type": "object",
                    "additionalProperties": False,
                    "required": ["label"],
                    "properties": {
                        "label": {"type": "string", "description": "Short node title (<= 8 words)."},
                        "description": {
                            "type": "string",
                            "description": "Optional supporting detail (<= 45 words).",
                        },
                        "emphasis": {"type": "string", "enum": list(EMPHASIS_VALUES)},
                        "emoji": {"type": "string", "maxLength": 4},
                    },
                },
            },
            "updates": {
                "type": "array",
                "items": {
                    "type": "object",
                    "additionalProperties": False,
                    "required": ["target", "description"],
                    "properties": {
                        "target": {"type": "string", "const": "selected-node"},
                        "description": {"type": "string"},
                    },
                },
            },
            "follow_up": {"type": "string"},
            "warnings": {"type": "array", "items": {"type": "string"}},
        },
    },
}


class MindmapAiError(Exception):
    """Raised when a collaborator reply cannot be used."""

    def __init__(self, message: str, cause: Any = None) -> None:
        super().__init__(message)
        self.cause = cause


@dataclass
class NodeDraft:
    """A proposed child node."""

    label: str
    description: str | None = None
    emphasis: str | None = None
    emoji: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"label": self.label}
        for key in ("description", "emphasis", "emoji"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result


@dataclass
class Suggestion:
    """A parsed collaborator reply bound to the node it was requested for.

    Attributes:
        node_id: Focus node of the originating request.
        generation: Request generation, used to detect stale replies.
        summary: One-sentence recap.
        additions: Proposed child nodes.
        updates: Replacement descriptions for the focus node.
        follow_up: Suggested next prompt.
        warnings: Cautions from the collaborator.
        status: "pending", "accepted" or "rejected".
        applied_mode: "add" or "replace" once accepted.
    """

    node_id: str
    summary: str
    additions: list[NodeDraft] = field(default_factory=list)
    updates: list[str] = field(default_factory=list)
    follow_up: str | None = None
    warnings: list[str] = field(default_factory=list)
    intent: str = "spark"
    generation: int = 0
    model: str = DEFAULT_MODEL
    status: str = "pending"
    applied_mode: str | None = None
    id: str = field(default_factory=lambda: uuid4().hex)
    created_at: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the REST surface."""
        return {
            "id": self.id,
            "nodeId": self.node_id,
            "summary": self.summary,
            "additions": [draft.to_dict() for draft in self.additions],
            "updates": [{"target": "selected-node", "description": text} for text in self.updates],
            "followUp": self.follow_up,
            "warnings": list(self.warnings),
            "intent": self.intent,
            "generation": self.generation,
            "model": self.model,
            "status": self.status,
            "appliedMode": self.applied_mode,
            "createdAt": self.created_at,
        }


def _clean(value: Any) -> str | None:
    return value.strip() if isinstance(value, str) else None


def parse_suggestion(
    payload: Any,
    node_id: str,
    intent: str = "spark",
    generation: int = 0,
    model: str = DEFAULT_MODEL,
) -> Suggestion:
    """Normalize a collaborator reply.

    Strings are trimmed, additions without a label are dropped and a
    missing summary gets a placeholder. Both ``followUp`` and
    ``follow_up`` spellings are accepted.

    Args:
        payload: Reply content, as a JSON string or decoded dict.
        node_id: Focus node of the request.
        intent: Intent of the request.
        generation: Generation of the request.
        model: Model name reported by the transport.

    Returns:
        A pending Suggestion.

    Raises:
        MindmapAiError: If the reply is empty, not JSON, or not an object.
    """
    if isinstance(payload, (str, bytes, bytearray)):
        if not payload:
            raise MindmapAiError("Received empty response content.")
        try:
            payload = json.loads(payload)
        except ValueError as e:
            raise MindmapAiError("Failed to parse AI response JSON.", e) from e
    if not isinstance(payload, dict):
        raise MindmapAiError("AI response must be a JSON object.")

    additions = []
    raw_additions = payload.get("additions")
    if isinstance(raw_additions, list):
        for entry in raw_additions:
            if not isinstance(entry, dict):
                continue
            label = _clean(entry.get("label")) or ""
            if not label:
                continue
            emphasis = entry.get("emphasis")
            additions.append(
                NodeDraft(
                    label=label,
                    description=_clean(entry.get("description")),
                    emphasis=emphasis if emphasis in EMPHASIS_VALUES else None,
                    emoji=_clean(entry.get("emoji")),
                )
            )

    updates = []
    raw_updates = payload.get("updates")
    if isinstance(raw_updates, list):
        for entry in raw_updates:
            if isinstance(entry, dict):
                updates.append(_clean(entry.get("description")) or "")

    warnings = []
    raw_warnings = payload.get("warnings")
    if isinstance(raw_warnings, list):
        warnings = [text for text in (_clean(w) for w in raw_warnings) if text]

    return Suggestion(
        node_id=node_id,
        summary=_clean(payload.get("summary")) or NO_SUMMARY,
        additions=additions,
        updates=updates,
        follow_up=_clean(payload.get("follow_up", payload.get("followUp"))),
        warnings=warnings,
        intent=intent,
        generation=generation,
        model=model,
    )
