"""
mindgraph.commands.serve - Run the REST API for a state file.
"""

from __future__ import annotations

import argparse

from mindgraph.config import get_config
from mindgraph.server import create_app
from mindgraph.server.persistence import load_editor


def run(args: argparse.Namespace) -> int:
    """Start the REST server."""
    config = get_config(getattr(args, "config", None))
    server = config.get("server", {})
    host = getattr(args, "host", None) or server.get("host", "127.0.0.1")
    port = getattr(args, "port", None) or int(server.get("port", 5050))

    editor = load_editor(args.file, config)
    app = create_app(editor, config, state_path=args.file)

    print(
        f"""
======================================
  mindgraph Server
======================================

Document:   {args.file}
Server:     http://{host}:{port}

Press Ctrl+C to stop
"""
    )

    try:
        app.run(host=host, port=port, debug=False)
    except KeyboardInterrupt:
        print("\nServer stopped.")

    return 0
