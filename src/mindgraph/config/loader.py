"""
mindgraph.config.loader - TOML configuration discovery and merging.

Resolution order, later entries winning:
    DEFAULT_CONFIG → .mindgraph.toml → .mindgraph.local.toml → MINDGRAPH_* env vars
"""

from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from mindgraph.config.defaults import DEFAULT_CONFIG

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".mindgraph.toml"
LOCAL_CONFIG_FILENAME = ".mindgraph.local.toml"
ENV_PREFIX = "MINDGRAPH_"


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or parsed."""


def parse_toml_document(text: str) -> dict[str, Any]:
    """Parse TOML text into plain Python containers.

    Raises:
        ConfigError: If the text is not valid TOML.
    """
    try:
        return tomlkit.parse(text).unwrap()
    except TOMLKitError as e:
        raise ConfigError(f"Invalid TOML: {e}") from e


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge override into a copy of base.

    Nested dicts merge key by key; any other value in override replaces
    the one in base.
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def find_config_file(start_path: Path) -> Path | None:
    """Walk up from start_path looking for .mindgraph.toml.

    The search stops at the first directory containing ``.git`` so a
    config outside the current repository is never picked up.

    Args:
        start_path: Directory to start from.

    Returns:
        Path to the config file, or None.
    """
    current = Path(start_path).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if (current / ".git").exists() or current.parent == current:
            return None
        current = current.parent


def _try_parse_env_value(value: str) -> Any:
    """Interpret an environment override value.

    JSON lists/objects and numbers are decoded, "true"/"false" become
    booleans, anything else (including malformed JSON) stays a string.
    """
    stripped = value.strip()
    if stripped[:1] in ("[", "{"):
        try:
            return json.loads(stripped)
        except ValueError:
            return value
    lowered = stripped.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    for cast in (int, float):
        try:
            return cast(stripped)
        except ValueError:
            continue
    return value


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply MINDGRAPH_<SECTION>_<KEY> environment overrides in place.

    ``MINDGRAPH_LAYOUT_START_X=50`` sets ``config["layout"]["start_x"] = 50``.
    Missing sections are created.
    """
    for name, raw in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        parts = name[len(ENV_PREFIX) :].lower().split("_", 1)
        if len(parts) != 2 or not all(parts):
            continue
        section, key = parts
        target = config.setdefault(section, {})
        if not isinstance(target, dict):
            continue
        target[key] = _try_parse_env_value(raw)
        logger.debug("Config override from %s", name)
    return config


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    return parse_toml_document(text)


def load_config(config_path: Path) -> dict[str, Any]:
    """Load a config file merged over the defaults.

    A sibling ``.mindgraph.local.toml`` is merged on top, then the
    environment overrides are applied.

    Args:
        config_path: Path to a .mindgraph.toml file.

    Returns:
        The merged configuration dict.

    Raises:
        ConfigError: If a file cannot be read or parsed.
    """
    config_path = Path(config_path)
    config = merge_configs(DEFAULT_CONFIG, _read_toml(config_path))
    local_path = config_path.parent / LOCAL_CONFIG_FILENAME
    if local_path.is_file():
        config = merge_configs(config, _read_toml(local_path))
    return _apply_env_overrides(config)


def get_config(config_path: Path | None = None, start_path: Path | None = None) -> dict[str, Any]:
    """Resolve the effective configuration.

    Args:
        config_path: Explicit config file; discovery is skipped.
        start_path: Directory to start discovery from (default: cwd).

    Returns:
        The merged configuration dict; the defaults plus environment
        overrides when no file is found.
    """
    if config_path is None:
        config_path = find_config_file(start_path or Path.cwd())
    if config_path is None:
        return _apply_env_overrides(copy.deepcopy(DEFAULT_CONFIG))
    logger.debug("Loading config from %s", config_path)
    return load_config(config_path)


def write_default_config(path: Path, overwrite: bool = False) -> bool:
    """Write a commented .mindgraph.toml with the default values.

    Returns:
        False if the file exists and overwrite is False.
    """
    path = Path(path)
    if path.exists() and not overwrite:
        return False

    doc = tomlkit.document()
    doc.add(tomlkit.comment("mindgraph configuration"))
    doc.add(tomlkit.nl())
    comments = {
        "layout": "Tree layout spacing (canvas pixels)",
        "context": "Upper bounds on the AI context payload",
        "history": "Undo/redo snapshots; 0 keeps every entry",
        "deletion": "Roots can only be deleted with --force when protected",
        "storage": "Persisted snapshot location",
        "server": "REST server bind address",
    }
    for section, values in DEFAULT_CONFIG.items():
        table = tomlkit.table()
        table.comment(comments[section])
        for key, value in values.items():
            table.add(key, value)
        doc.add(section, table)

    path.write_text(tomlkit.dumps(doc), encoding="utf-8")
    return True


class ConfigLoader:
    """Dotted-path access over a merged configuration dict.

    Example:
        >>> config = ConfigLoader.from_dict({"layout": {"start_x": 0}})
        >>> config.get("layout.start_x")
        0
        >>> config.get("layout.vertical_gap")
        40.0
    """

    def __init__(self, data: dict[str, Any]) -> None:
        self._data = data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConfigLoader:
        """Merge data over the defaults."""
        return cls(merge_configs(DEFAULT_CONFIG, data))

    @classmethod
    def from_file(cls, config_path: Path) -> ConfigLoader:
        return cls(load_config(config_path))

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key such as "history.max_entries"."""
        value: Any = self._data
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    def section(self, name: str) -> dict[str, Any]:
        """Return a copy of one top-level section (empty if absent)."""
        value = self._data.get(name)
        return dict(value) if isinstance(value, dict) else {}

    def as_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)
