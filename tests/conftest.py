"""Pytest configuration and shared fixtures."""

import pytest

from restic_runner.config import (
    BackupConfig,
    Config,
    CopyConfig,
    CopyPair,
    Repository,
    RetentionConfig,
)


@pytest.fixture
def tmp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def sample_config_toml():
    """Return a sample valid TOML configuration string."""
    return """
restic_binary = "/usr/bin/restic"
pre_command = "echo start"
post_command = "echo done"

[repos.local]
path = "/mnt/backup/restic"
password_file = "/etc/restic-runner/local.pw"

[repos.remote]
path = "s3:https://s3.example.com/bucket"
password_file = "/etc/restic-runner/remote.pw"
environment = { AWS_ACCESS_KEY_ID = "key", AWS_SECRET_ACCESS_KEY = "secret" }

[backup]
repo_name = "local"
include = ["/home", "/etc"]
exclude = ["*.tmp", "/home/*/.cache"]
pre_command = "pg_dumpall -f /tmp/db.sql"

[forget]
keep_daily = 7
keep_weekly = 4
keep_monthly = 12

[copy]
pre_command = "echo copy"

[[copy.pairs]]
src = "local"
dest = "remote"
"""


@pytest.fixture
def minimal_config_toml():
    """Return a minimal valid TOML configuration string."""
    return """
[repos.local]
path = "/mnt/backup"
password_file = "/etc/pw"

[backup]
repo_name = "local"
include = ["/home"]

[forget]
"""


@pytest.fixture
def sample_config_yaml():
    """Return a YAML configuration using the older pw_file spelling."""
    return """
repos:
  local:
    path: /mnt/backup/restic
    pw_file: /etc/restic/local.pw
  remote:
    path: sftp:backup@nas:/restic
    pw_file: /etc/restic/remote.pw
backup:
  repo_name: local
  include:
    - /home
  exclude:
    - "*.iso"
forget:
  keep_daily: 7
  keep_yearly: 2
copy:
  pairs:
    - src: local
      dest: remote
"""


@pytest.fixture
def config_file(tmp_config_dir, sample_config_toml):
    """Create a temporary config file with sample content."""
    config_path = tmp_config_dir / "config.toml"
    config_path.write_text(sample_config_toml)
    return config_path


@pytest.fixture
def minimal_config_file(tmp_config_dir, minimal_config_toml):
    """Create a temporary config file with minimal content."""
    config_path = tmp_config_dir / "minimal.toml"
    config_path.write_text(minimal_config_toml)
    return config_path


@pytest.fixture
def yaml_config_file(tmp_config_dir, sample_config_yaml):
    """Create a temporary YAML config file."""
    config_path = tmp_config_dir / "repos.yaml"
    config_path.write_text(sample_config_yaml)
    return config_path


@pytest.fixture
def two_repo_config():
    """Return a Config with two repositories and one copy pair."""
    return Config(
        repos={
            "r1": Repository(name="r1", path="/srv/r1", password_file="/etc/r1.pw"),
            "r2": Repository(
                name="r2",
                path="b2:bucket:/r2",
                password_file="/etc/r2.pw",
                environment={"B2_ACCOUNT_ID": "id"},
            ),
        },
        backup=BackupConfig(
            repo_name="r1",
            include=["/x", "/y"],
            exclude=["a", "b"],
        ),
        forget=RetentionConfig(keep_daily=7, keep_weekly=4),
        copy=CopyConfig(pairs=[CopyPair(src="r1", dest="r2")]),
    )


@pytest.fixture
def single_repo_config():
    """Return a Config with exactly one repository."""
    return Config(
        repos={
            "only": Repository(name="only", path="/srv/only", password_file="/etc/only.pw"),
        },
        backup=BackupConfig(repo_name="only", include=["/home"]),
        forget=RetentionConfig(keep_monthly=6),
    )
