"""
mindgraph.commands.layout - Recompute positions and rewrite a state file.
"""

from __future__ import annotations

import argparse
import sys

from mindgraph.config import get_config
from mindgraph.server.persistence import load_editor, save_editor


def run(args: argparse.Namespace) -> int:
    """Run the layout command."""
    if not args.file.exists():
        print(f"File not found: {args.file}", file=sys.stderr)
        return 1

    config = get_config(getattr(args, "config", None))
    editor = load_editor(args.file, config)
    editor.relayout(fresh=getattr(args, "fresh", False))

    output = getattr(args, "output", None) or args.file
    result = save_editor(editor, output)
    if not result["success"]:
        print(f"Error: {result['error']}", file=sys.stderr)
        return 1
    print(f"Laid out {result['node_count']} nodes -> {output}")
    return 0
