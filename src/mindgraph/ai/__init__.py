"""AI collaborator contract.

Exports:
- build_prompt: Render a context payload into prompts
- parse_suggestion: Normalize a collaborator reply
- Suggestion, NodeDraft: Parsed reply types
- MindmapAiError: Unusable reply
- ConversationStore: Per-node conversation log and request generations
"""

from mindgraph.ai.conversation import ConversationStore, ConversationTurn
from mindgraph.ai.prompt import Prompt, build_prompt
from mindgraph.ai.response import (
    RESPONSE_SCHEMA,
    MindmapAiError,
    NodeDraft,
    Suggestion,
    parse_suggestion,
)

__all__ = [
    "ConversationStore",
    "ConversationTurn",
    "Prompt",
    "build_prompt",
    "RESPONSE_SCHEMA",
    "MindmapAiError",
    "NodeDraft",
    "Suggestion",
    "parse_suggestion",
]
