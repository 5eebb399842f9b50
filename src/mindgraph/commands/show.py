"""
mindgraph.commands.show - Print a mindmap as an indented outline.
"""

from __future__ import annotations

import argparse
import sys

from mindgraph.config import get_config
from mindgraph.graph.serialize import to_outline
from mindgraph.server.persistence import load_editor


def run(args: argparse.Namespace) -> int:
    """Run the show command."""
    if not args.file.exists():
        print(f"File not found: {args.file}", file=sys.stderr)
        return 1

    config = get_config(getattr(args, "config", None))
    editor = load_editor(args.file, config)
    print(to_outline(editor.store, include_hidden=getattr(args, "include_hidden", False)))
    return 0
