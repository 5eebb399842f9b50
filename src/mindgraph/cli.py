"""
mindgraph.cli - Command-line interface.

Main entry point for the mindgraph CLI tool.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from mindgraph import __version__
from mindgraph.commands import init, layout, serve, show, transfer
from mindgraph.config import ConfigError


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="mindgraph",
        description="Mindmap graph consistency engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  mindgraph init                           # Create .mindgraph.toml
  mindgraph show map.json                  # Print the visible outline
  mindgraph show map.json --all            # Include collapsed branches
  mindgraph layout map.json                # Relayout and rewrite in place
  mindgraph export map.json out.json       # Write the flat export file
  mindgraph import out.json map.json       # Build a state file from an export
  mindgraph serve map.json --port 5050     # REST API for the editor

For detailed command help: mindgraph <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"mindgraph {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init command
    init_parser = subparsers.add_parser(
        "init",
        help="Create .mindgraph.toml configuration",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite existing configuration",
    )

    # show command
    show_parser = subparsers.add_parser(
        "show",
        help="Print a mindmap as an indented outline",
    )
    show_parser.add_argument("file", type=Path, help="State file", metavar="FILE")
    show_parser.add_argument(
        "--all",
        action="store_true",
        dest="include_hidden",
        help="Include nodes under collapsed ancestors",
    )

    # layout command
    layout_parser = subparsers.add_parser(
        "layout",
        help="Recompute node positions and rewrite the state file",
    )
    layout_parser.add_argument("file", type=Path, help="State file", metavar="FILE")
    layout_parser.add_argument(
        "--fresh",
        action="store_true",
        help="Ignore current root positions and stack trees from the start coordinates",
    )
    layout_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Write to PATH instead of rewriting FILE",
        metavar="PATH",
    )

    # export command
    export_parser = subparsers.add_parser(
        "export",
        help="Write the flat export file (no positions or styles)",
    )
    export_parser.add_argument("file", type=Path, help="State file", metavar="FILE")
    export_parser.add_argument("output", type=Path, help="Export file to write", metavar="OUT")

    # import command
    import_parser = subparsers.add_parser(
        "import",
        help="Build a state file from a flat export file",
    )
    import_parser.add_argument("file", type=Path, help="Export file", metavar="FILE")
    import_parser.add_argument("output", type=Path, help="State file to write", metavar="OUT")

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Serve the REST API for a state file",
    )
    serve_parser.add_argument("file", type=Path, help="State file", metavar="FILE")
    serve_parser.add_argument("--host", help="Bind address (default from config)")
    serve_parser.add_argument("--port", type=int, help="Port (default from config)")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Handle no command
    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "init":
            return init.run(args)
        elif args.command == "show":
            return show.run(args)
        elif args.command == "layout":
            return layout.run(args)
        elif args.command == "export":
            return transfer.run_export(args)
        elif args.command == "import":
            return transfer.run_import(args)
        elif args.command == "serve":
            return serve.run(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
