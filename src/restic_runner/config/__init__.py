"""Configuration system for restic-runner.

This module provides TOML/YAML configuration loading, validation,
and schema definitions for repository management.
"""

from .loader import (
    CONFIG_PATHS,
    DEFAULT_CONFIG_PATH,
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    UnknownRepoError,
    find_config_file,
    load,
    load_config,
)
from .schema import (
    BackupConfig,
    Config,
    CopyConfig,
    CopyPair,
    Repository,
    RetentionConfig,
)

__all__ = [
    "BackupConfig",
    "Config",
    "CopyConfig",
    "CopyPair",
    "Repository",
    "RetentionConfig",
    "CONFIG_PATHS",
    "DEFAULT_CONFIG_PATH",
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigParseError",
    "UnknownRepoError",
    "find_config_file",
    "load",
    "load_config",
]
