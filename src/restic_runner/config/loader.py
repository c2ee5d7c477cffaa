"""Configuration loading and validation.

Handles config file discovery, parsing, and validation with helpful error messages.
TOML is the native format; files ending in .yaml or .yml are read with PyYAML.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml

from .schema import (
    BackupConfig,
    Config,
    CopyConfig,
    CopyPair,
    Repository,
    RetentionConfig,
)

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Configuration loading or validation error."""

    pass


class ConfigNotFoundError(ConfigError):
    """None of the candidate configuration files exists."""

    def __init__(self, searched: list[Path]) -> None:
        self.searched = searched
        locations = ", ".join(str(p) for p in searched)
        super().__init__(f"No configuration file was found (searched: {locations})")


class ConfigParseError(ConfigError):
    """The configuration file cannot be turned into a Config."""

    pass


class UnknownRepoError(ConfigError):
    """A repository reference does not match any key of ``repos``."""

    def __init__(self, name: str, context: str) -> None:
        self.name = name
        self.context = context
        super().__init__(
            f"The repository '{name}' referenced by {context} was not found in the repo map"
        )


DEFAULT_CONFIG_PATH = Path("/etc/restic-runner/config.toml")

# Config file search paths in priority order
CONFIG_PATHS = [
    Path.home() / ".config" / "restic-runner" / "config.toml",
    DEFAULT_CONFIG_PATH,
    Path("/etc/restic-runner/config.yaml"),
]

YAML_SUFFIXES = frozenset({".yaml", ".yml"})

RETENTION_KEYS = (
    "keep_hourly",
    "keep_daily",
    "keep_weekly",
    "keep_monthly",
    "keep_yearly",
)


def find_config_file(candidates: Optional[Iterable[Path | str]] = None) -> Path:
    """Find the configuration file.

    Args:
        candidates: Paths to try in order (defaults to CONFIG_PATHS)

    Returns:
        The first candidate that exists

    Raises:
        ConfigNotFoundError: If no candidate exists
    """
    searched = [Path(c) for c in (CONFIG_PATHS if candidates is None else candidates)]
    for path in searched:
        if path.exists():
            return path
    raise ConfigNotFoundError(searched)


def _expect_table(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigParseError(f"'{where}' must be a table")
    return value


def _require_str(data: dict[str, Any], key: str, where: str) -> str:
    if key not in data:
        raise ConfigParseError(f"'{where}' missing required '{key}' field")
    value = data[key]
    if not isinstance(value, str):
        raise ConfigParseError(f"'{where}.{key}' must be a string")
    return value


def _optional_str(data: dict[str, Any], key: str, where: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ConfigParseError(f"'{where}.{key}' must be a string")
    return value


def _str_list(value: Any, where: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigParseError(f"'{where}' must be a list of strings")
    return list(value)


def _parse_repo(name: str, data: Any) -> Repository:
    """Parse a repository entry from dict."""
    where = f"repos.{name}"
    data = _expect_table(data, where)

    # pw_file is the older spelling of password_file
    if "password_file" not in data and "pw_file" in data:
        password_file = _require_str(data, "pw_file", where)
    else:
        password_file = _require_str(data, "password_file", where)

    environment = data.get("environment", {})
    environment = _expect_table(environment, f"{where}.environment")
    for key, value in environment.items():
        if not isinstance(value, str):
            raise ConfigParseError(f"'{where}.environment.{key}' must be a string")

    return Repository(
        name=name,
        path=_require_str(data, "path", where),
        password_file=password_file,
        environment=dict(environment),
    )


def _parse_backup(data: Any) -> BackupConfig:
    """Parse backup policy from dict."""
    data = _expect_table(data, "backup")

    if "include" not in data:
        raise ConfigParseError("'backup' missing required 'include' field")
    include = _str_list(data["include"], "backup.include")
    if not include:
        raise ConfigParseError("'backup.include' must list at least one path")

    exclude = None
    if data.get("exclude") is not None:
        exclude = _str_list(data["exclude"], "backup.exclude")

    return BackupConfig(
        repo_name=_require_str(data, "repo_name", "backup"),
        include=include,
        exclude=exclude,
        pre_command=_optional_str(data, "pre_command", "backup"),
        post_command=_optional_str(data, "post_command", "backup"),
    )


def _parse_retention(data: Any) -> RetentionConfig:
    """Parse retention configuration from dict."""
    data = _expect_table(data, "forget")

    values: dict[str, Optional[int]] = {}
    for key in RETENTION_KEYS:
        value = data.get(key)
        if value is not None:
            # bool is a subclass of int
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigParseError(f"'forget.{key}' must be an integer")
            if value < 0:
                raise ConfigParseError(f"'forget.{key}' must not be negative")
        values[key] = value

    return RetentionConfig(**values)


def _parse_copy(data: Any) -> CopyConfig:
    """Parse copy configuration from dict."""
    data = _expect_table(data, "copy")

    pairs = []
    raw_pairs = data.get("pairs", [])
    if not isinstance(raw_pairs, list):
        raise ConfigParseError("'copy.pairs' must be a list")
    for i, pair in enumerate(raw_pairs):
        where = f"copy.pairs[{i}]"
        pair = _expect_table(pair, where)
        pairs.append(
            CopyPair(
                src=_require_str(pair, "src", where),
                dest=_require_str(pair, "dest", where),
            )
        )

    return CopyConfig(
        pairs=pairs,
        pre_command=_optional_str(data, "pre_command", "copy"),
        post_command=_optional_str(data, "post_command", "copy"),
    )


def _parse_config(data: Any) -> Config:
    """Build a Config from the deserialized document."""
    data = _expect_table(data, "<root>")

    if "repos" not in data:
        raise ConfigParseError("Missing required 'repos' table")
    repos_data = _expect_table(data["repos"], "repos")
    repos = {name: _parse_repo(name, repo) for name, repo in repos_data.items()}

    if "backup" not in data:
        raise ConfigParseError("Missing required 'backup' table")
    if "forget" not in data:
        raise ConfigParseError("Missing required 'forget' table")

    copy = None
    if data.get("copy") is not None:
        copy = _parse_copy(data["copy"])

    return Config(
        repos=repos,
        backup=_parse_backup(data["backup"]),
        forget=_parse_retention(data["forget"] or {}),
        copy=copy,
        pre_command=_optional_str(data, "pre_command", "<root>"),
        post_command=_optional_str(data, "post_command", "<root>"),
        restic_binary=_optional_str(data, "restic_binary", "<root>") or "restic",
    )


def _check_references(config: Config) -> None:
    """Ensure every repository reference points into ``repos``."""
    if config.backup.repo_name not in config.repos:
        raise UnknownRepoError(config.backup.repo_name, "backup.repo_name")

    for i, pair in enumerate(config.get_copy_pairs()):
        if pair.src not in config.repos:
            raise UnknownRepoError(pair.src, f"copy.pairs[{i}].src")
        if pair.dest not in config.repos:
            raise UnknownRepoError(pair.dest, f"copy.pairs[{i}].dest")


def _validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of warnings."""
    warnings = []

    for repo in config.repos.values():
        if not Path(repo.password_file).expanduser().exists():
            warnings.append(
                f"Password file for repo '{repo.name}' does not exist: {repo.password_file}"
            )

    for pair in config.get_copy_pairs():
        if pair.src == pair.dest:
            warnings.append(f"Copy pair copies repo '{pair.src}' onto itself")

    if config.copy is not None and not config.copy.pairs:
        warnings.append("Copy section has no pairs")

    if config.forget.is_empty():
        warnings.append("No retention policy configured, forget will not remove snapshots")

    return warnings


def _read_document(path: Path) -> Any:
    """Deserialize the file at ``path`` according to its suffix."""
    if path.suffix.lower() in YAML_SUFFIXES:
        try:
            return yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigParseError(f"Invalid YAML syntax: {e}")
        except UnicodeDecodeError as e:
            raise ConfigParseError(f"Config file is not valid UTF-8: {e}")
        except OSError as e:
            raise ConfigParseError(f"Cannot read config file: {e}")

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}")
    except UnicodeDecodeError as e:
        raise ConfigParseError(f"Config file is not valid UTF-8: {e}")
    except OSError as e:
        raise ConfigParseError(f"Cannot read config file: {e}")


def load_config(path: Path | str) -> tuple[Config, list[str]]:
    """Load and validate configuration from a file.

    Args:
        path: Path to configuration file

    Returns:
        Tuple of (Config object, list of warnings)

    Raises:
        ConfigParseError: If the file cannot be read or does not match the schema
        UnknownRepoError: If backup or copy refers to a repository that is not defined
    """
    path = Path(path)
    config = _parse_config(_read_document(path))
    _check_references(config)
    return config, _validate_config(config)


def load(candidates: Optional[Iterable[Path | str]] = None) -> Config:
    """Load the first existing configuration file among ``candidates``."""
    path = find_config_file(candidates)
    logger.debug("Loading configuration from: %s", path)
    config, warnings = load_config(path)
    for warning in warnings:
        logger.warning("Config: %s", warning)
    return config


def generate_example_config() -> str:
    """Generate example configuration file content."""
    return """# restic-runner configuration
# See documentation for full options

# restic executable (looked up on PATH unless absolute)
restic_binary = "restic"

# Run once around every command
# pre_command = "mount /mnt/backup"
# post_command = "umount /mnt/backup"

[repos.local]
path = "/mnt/backup/restic"
password_file = "/etc/restic-runner/local.pw"

# Example remote repository
# [repos.remote]
# path = "s3:https://s3.example.com/bucket"
# password_file = "/etc/restic-runner/remote.pw"
# environment = { AWS_ACCESS_KEY_ID = "key", AWS_SECRET_ACCESS_KEY = "secret" }

[backup]
repo_name = "local"
include = ["/home", "/etc"]
exclude = ["*.tmp", "/home/*/.cache"]
# pre_command = "pg_dumpall -f /var/backups/postgres.sql"
# post_command = "rm /var/backups/postgres.sql"

[forget]
keep_daily = 7      # Keep 7 daily snapshots
keep_weekly = 4     # Keep 4 weekly snapshots
keep_monthly = 12   # Keep 12 monthly snapshots
# keep_yearly = 2
# keep_hourly = 24

# Copy the local repository to the remote one with 'copy-all'
# [copy]
# [[copy.pairs]]
# src = "local"
# dest = "remote"
"""
