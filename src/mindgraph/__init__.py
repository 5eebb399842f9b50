"""
mindgraph - Mindmap graph consistency engine

Keeps a forest of labeled nodes consistent under structural edits:
collapse visibility, deterministic tree layout and a linear undo/redo
history coupled to viewport state. Also builds bounded context payloads
for an AI suggestion collaborator and applies its suggestions.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("mindgraph")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed
__license__ = "MIT"

from mindgraph.graph.editor import MindmapEditor
from mindgraph.graph.GraphNode import GraphNode, NodeVariant, Position
from mindgraph.graph.relations import Edge

__all__ = [
    "__version__",
    "MindmapEditor",
    "GraphNode",
    "NodeVariant",
    "Position",
    "Edge",
]
