"""
mindgraph.commands.init - Create a .mindgraph.toml configuration file.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from mindgraph.config import CONFIG_FILENAME, write_default_config


def run(args: argparse.Namespace) -> int:
    """Run the init command."""
    config_path = getattr(args, "config", None) or Path.cwd() / CONFIG_FILENAME

    if not write_default_config(config_path, overwrite=getattr(args, "force", False)):
        print(f"Configuration file already exists: {config_path}", file=sys.stderr)
        print("Use --force to overwrite.", file=sys.stderr)
        return 1

    print(f"Created configuration file: {config_path}")
    return 0
