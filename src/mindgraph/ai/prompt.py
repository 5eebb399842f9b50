"""Prompt construction for the AI collaborator.

Renders a ContextPayload into a (system, user) prompt pair with Jinja2
templates shipped in ``mindgraph/ai/templates``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from jinja2 import Environment, PackageLoader, select_autoescape

from mindgraph.graph.context import ContextEntry, ContextPayload

INTENT_OBJECTIVES: dict[str, dict[str, str]] = {
    "spark": {
        "objective": (
            "Generate actual concrete content items (chapters, features, columns, "
            "components, etc.) that represent the deliverables for this node."
        ),
        "task": "Generate 3-5 concrete content items for this topic.",
        "children": (
            "Generate 3-5 concrete content items (actual chapters, features, "
            "columns, etc.) for this topic."
        ),
        "expand": "Generate additional concrete content items that expand the scope of deliverables.",
        "replace": "Generate a fresh set of 3-5 concrete content items that differ from existing ones.",
    },
    "deepen": {
        "objective": (
            "Outline the key process steps, phases, or workflow nodes needed to "
            "accomplish this goal from start to finish."
        ),
        "task": "Generate 4-6 process/workflow steps that guide how to accomplish this task.",
        "children": "List 4-6 essential process steps or phases needed to accomplish this task.",
        "expand": (
            "Provide additional workflow nodes covering research, planning, "
            "execution, and review phases."
        ),
        "replace": "Recommend an improved set of process steps that better structure the workflow.",
    },
}

QUICK_ACTIONS = ("children", "expand", "replace")

MANUAL_OBJECTIVE = (
    "Address the user request while keeping suggestions grounded in the mindmap context."
)

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class Prompt:
    """A rendered prompt pair."""

    system: str
    user: str


def sanitize(value: str | None) -> str:
    """Collapse runs of whitespace and trim."""
    return _WHITESPACE_RE.sub(" ", value).strip() if value else ""


def format_entry(label: str, description: str | None = None, extras: Iterable[str] = ()) -> str:
    """Render "label: detail — detail" for one summary line."""
    details = " — ".join(part for part in [sanitize(description), *extras] if part)
    return f"{label}: {details}" if details else label


def summarize_entries(title: str, lines: list[str]) -> str:
    """Render a titled bullet list, or "title: (none)"."""
    if not lines:
        return f"{title}: (none)"
    return f"{title}:\n" + "\n".join(f"- {line}" for line in lines)


def _sibling_line(entry: ContextEntry, with_emoji: bool) -> str:
    extras = []
    if entry.status:
        extras.append(f"status: {entry.status}")
    if with_emoji and entry.emoji:
        extras.append(f"emoji: {entry.emoji}")
    return format_entry(entry.label, entry.description, extras)


_env: Environment | None = None


def _environment() -> Environment:
    global _env
    if _env is None:
        _env = Environment(
            loader=PackageLoader("mindgraph.ai", "templates"),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
    return _env


def build_prompt(context: ContextPayload) -> Prompt:
    """Render the prompts for a context payload.

    A manual prompt wins over a quick action, which wins over the
    intent's default objective and task.

    Args:
        context: Payload from build_context().

    Returns:
        Prompt with system and user text.
    """
    intent = context.intent if context.intent in INTENT_OBJECTIVES else "spark"
    config = INTENT_OBJECTIVES[intent]
    quick = config.get(context.quick_action_id or "") if context.quick_action_id in QUICK_ACTIONS else None

    if context.manual_prompt:
        objective = MANUAL_OBJECTIVE
        task = context.manual_prompt
    else:
        objective = quick or config["objective"]
        task = quick or config["task"]

    env = _environment()
    system = env.get_template(f"system_{intent}.txt.j2").render().strip()
    user = env.get_template("user_prompt.txt.j2").render(
        selected_label=context.selected_label,
        selected_level=context.selected_level,
        description=sanitize(context.selected_description),
        lineage=summarize_entries(
            "Lineage to root",
            [
                format_entry(f"Level {entry.level} — {entry.label}", entry.description)
                for entry in context.lineage
            ],
        ),
        siblings=summarize_entries(
            "Siblings", [_sibling_line(entry, with_emoji=True) for entry in context.siblings]
        ),
        children=summarize_entries(
            "Existing children",
            [_sibling_line(entry, with_emoji=False) for entry in context.children],
        ),
        objective=objective,
        task=task,
        conversation=context.conversation_summary,
    )
    return Prompt(system=system, user=user.strip())
