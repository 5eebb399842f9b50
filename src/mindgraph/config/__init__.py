"""
mindgraph.config - Configuration loading and defaults
"""

from mindgraph.config.defaults import DEFAULT_CONFIG
from mindgraph.config.loader import (
    CONFIG_FILENAME,
    LOCAL_CONFIG_FILENAME,
    ConfigError,
    ConfigLoader,
    _apply_env_overrides,
    _try_parse_env_value,
    find_config_file,
    get_config,
    load_config,
    merge_configs,
    parse_toml_document,
    write_default_config,
)

__all__ = [
    "CONFIG_FILENAME",
    "LOCAL_CONFIG_FILENAME",
    "ConfigError",
    "ConfigLoader",
    "DEFAULT_CONFIG",
    "find_config_file",
    "get_config",
    "load_config",
    "merge_configs",
    "parse_toml_document",
    "write_default_config",
]
