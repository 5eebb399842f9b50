"""
mindgraph.commands - CLI command implementations
"""

__all__ = [
    "init",
    "layout",
    "serve",
    "show",
    "transfer",
]
