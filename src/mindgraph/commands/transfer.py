"""
mindgraph.commands.transfer - Flat export and import.

- `mindgraph export FILE OUT` - state file → flat {nodes, edges} file
- `mindgraph import FILE OUT` - flat file → state file with a fresh layout
"""

from __future__ import annotations

import argparse
import json
import sys

from mindgraph.config import get_config
from mindgraph.graph.editor import MindmapEditor
from mindgraph.server.persistence import load_editor, save_editor


def run_export(args: argparse.Namespace) -> int:
    """Run the export command."""
    if not args.file.exists():
        print(f"File not found: {args.file}", file=sys.stderr)
        return 1

    config = get_config(getattr(args, "config", None))
    editor = load_editor(args.file, config)
    data = editor.export_flat()
    args.output.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    print(f"Exported {len(data['nodes'])} nodes -> {args.output}")
    return 0


def run_import(args: argparse.Namespace) -> int:
    """Run the import command."""
    if not args.file.exists():
        print(f"File not found: {args.file}", file=sys.stderr)
        return 1

    config = get_config(getattr(args, "config", None))
    editor = MindmapEditor.default(config)
    if not editor.import_flat(args.file.read_text(encoding="utf-8")):
        print(f"Invalid import file: {args.file}", file=sys.stderr)
        return 1

    result = save_editor(editor, args.output)
    if not result["success"]:
        print(f"Error: {result['error']}", file=sys.stderr)
        return 1
    print(f"Imported {result['node_count']} nodes -> {args.output}")
    return 0
