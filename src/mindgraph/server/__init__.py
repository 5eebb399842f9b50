"""mindgraph.server - Flask REST API server for a mindmap document.

Provides a thin REST wrapper over MindmapEditor, exposing the graph,
its history and the AI suggestion flow via HTTP endpoints.
"""

from mindgraph.server.app import create_app

__all__ = ["create_app"]
