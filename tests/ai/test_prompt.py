"""Tests for prompt rendering."""

from mindgraph.ai.prompt import (
    INTENT_OBJECTIVES,
    MANUAL_OBJECTIVE,
    build_prompt,
    format_entry,
    sanitize,
    summarize_entries,
)
from mindgraph.graph.context import build_context


class TestHelpers:
    def test_sanitize(self):
        assert sanitize("  a \n\t b  ") == "a b"
        assert sanitize(None) == ""

    def test_format_entry(self):
        assert format_entry("Label") == "Label"
        assert format_entry("Label", "desc", ["status: done"]) == "Label: desc — status: done"
        assert format_entry("Label", "  ", ["x"]) == "Label: x"

    def test_summarize_entries(self):
        assert summarize_entries("Siblings", []) == "Siblings: (none)"
        assert summarize_entries("Siblings", ["a", "b"]) == "Siblings:\n- a\n- b"


class TestBuildPrompt:
    """build_prompt() objective/task selection and sections."""

    def test_default_spark(self, tree_graph):
        context = build_context(*tree_graph, "a")
        prompt = build_prompt(context)
        assert "Primary node: Alpha (level 0)" in prompt.user
        assert "Description: First branch" in prompt.user
        assert f"Task: {INTENT_OBJECTIVES['spark']['task']}" in prompt.user
        assert "Lineage to root:\n- Level 0 — Root" in prompt.user
        assert "- Beta: emoji: 🌱" in prompt.user
        assert "Existing children:\n- Alpha One\n- Alpha Two" in prompt.user
        assert "Recent context" not in prompt.user
        assert prompt.system

    def test_quick_action_overrides_task(self, tree_graph):
        context = build_context(*tree_graph, "a", intent="deepen", quick_action_id="expand")
        prompt = build_prompt(context)
        expand = INTENT_OBJECTIVES["deepen"]["expand"]
        assert f"Objective: {expand}" in prompt.user
        assert f"Task: {expand}" in prompt.user

    def test_manual_prompt_wins(self, tree_graph):
        context = build_context(
            *tree_graph, "a", manual_prompt="Give me risks", quick_action_id="replace"
        )
        prompt = build_prompt(context)
        assert f"Objective: {MANUAL_OBJECTIVE}" in prompt.user
        assert "Task: Give me risks" in prompt.user

    def test_conversation_included(self, tree_graph):
        context = build_context(*tree_graph, "a", recent_turns=["User: hi", "Assistant: yo"])
        prompt = build_prompt(context)
        assert "Recent context:\nUser: hi\nAssistant: yo" in prompt.user

    def test_empty_sections(self, tree_graph):
        prompt = build_prompt(build_context(*tree_graph, "b"))
        assert "Existing children: (none)" in prompt.user
        assert "Description: (empty)" in prompt.user

    def test_intents_use_different_system_prompts(self, tree_graph):
        spark = build_prompt(build_context(*tree_graph, "a"))
        deepen = build_prompt(build_context(*tree_graph, "a", intent="deepen"))
        assert spark.system != deepen.system
        assert spark.user != deepen.user
