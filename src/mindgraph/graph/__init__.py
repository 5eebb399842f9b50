"""mindgraph.graph - Mindmap forest, derived views and history.

Exports:
- GraphNode, NodeVariant, Position: Node types
- Edge: Parent→child edge
- GraphStore, NodeIdGenerator: Canonical state
- resolve_visibility, layout_nodes: Pure derived views
- MutationPipeline, History, Snapshot, Viewport: Mutation and undo/redo
- build_context: AI context extraction
"""

from mindgraph.graph.GraphNode import GraphNode, NodeVariant, Position
from mindgraph.graph.relations import Edge, create_edge
from mindgraph.graph.store import GraphStore, NodeIdGenerator
from mindgraph.graph.visibility import CollapseInfo, apply_collapse_state, resolve_visibility
from mindgraph.graph.layout import LayoutOptions, layout_nodes
from mindgraph.graph.history import History, Snapshot, Viewport
from mindgraph.graph.pipeline import MutationPipeline, enforce_forest
from mindgraph.graph.context import ContextLimits, ContextPayload, build_context

__all__ = [
    "GraphNode",
    "NodeVariant",
    "Position",
    "Edge",
    "create_edge",
    "GraphStore",
    "NodeIdGenerator",
    "CollapseInfo",
    "apply_collapse_state",
    "resolve_visibility",
    "LayoutOptions",
    "layout_nodes",
    "History",
    "Snapshot",
    "Viewport",
    "MutationPipeline",
    "enforce_forest",
    "ContextLimits",
    "ContextPayload",
    "build_context",
]
