"""Tests for config loader module."""

import pytest

from restic_runner.config.loader import (
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    UnknownRepoError,
    find_config_file,
    generate_example_config,
    load,
    load_config,
)


class TestFindConfigFile:
    """Tests for find_config_file function."""

    def test_first_existing_candidate_wins(self, tmp_path):
        """Test that later candidates are ignored once one exists."""
        first = tmp_path / "first.toml"
        second = tmp_path / "second.toml"
        first.write_text("")
        second.write_text("")

        assert find_config_file([first, second]) == first

    def test_skips_missing_candidates(self, tmp_path):
        """Test that missing candidates are skipped."""
        existing = tmp_path / "config.toml"
        existing.write_text("")

        result = find_config_file([str(tmp_path / "missing.toml"), str(existing)])
        assert result == existing

    def test_no_candidate_exists(self, tmp_path):
        """Test error listing the searched paths when nothing exists."""
        missing = tmp_path / "missing.toml"
        with pytest.raises(ConfigNotFoundError, match="missing.toml") as exc_info:
            find_config_file([missing])
        assert exc_info.value.searched == [missing]

    def test_not_found_is_config_error(self, tmp_path):
        """Test that a missing file is reported as a ConfigError."""
        with pytest.raises(ConfigError):
            find_config_file([tmp_path / "nope.toml"])

    def test_empty_candidate_list(self):
        """Test that an empty candidate list finds nothing."""
        with pytest.raises(ConfigNotFoundError):
            find_config_file([])


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_valid_config(self, config_file):
        """Test loading a valid configuration file."""
        config, warnings = load_config(config_file)

        assert list(config.repos) == ["local", "remote"]
        local = config.repos["local"]
        assert local.name == "local"
        assert local.path == "/mnt/backup/restic"
        assert local.password_file == "/etc/restic-runner/local.pw"

        remote = config.repos["remote"]
        assert remote.environment == {
            "AWS_ACCESS_KEY_ID": "key",
            "AWS_SECRET_ACCESS_KEY": "secret",
        }

    def test_load_backup_policy(self, config_file):
        """Test that the backup section keeps list order."""
        config, _ = load_config(config_file)

        assert config.backup.repo_name == "local"
        assert config.backup.include == ["/home", "/etc"]
        assert config.backup.exclude == ["*.tmp", "/home/*/.cache"]
        assert config.backup.pre_command == "pg_dumpall -f /tmp/db.sql"
        assert config.backup.post_command is None

    def test_load_retention(self, config_file):
        """Test that absent retention fields stay None."""
        config, _ = load_config(config_file)

        assert config.forget.keep_daily == 7
        assert config.forget.keep_weekly == 4
        assert config.forget.keep_monthly == 12
        assert config.forget.keep_yearly is None
        assert config.forget.keep_hourly is None

    def test_load_copy_and_hooks(self, config_file):
        """Test copy pairs and global hooks."""
        config, _ = load_config(config_file)

        assert config.copy is not None
        assert config.copy.pre_command == "echo copy"
        assert [(p.src, p.dest) for p in config.copy.pairs] == [("local", "remote")]
        assert config.pre_command == "echo start"
        assert config.post_command == "echo done"
        assert config.restic_binary == "/usr/bin/restic"

    def test_load_minimal_config(self, minimal_config_file):
        """Test loading a minimal configuration file."""
        config, warnings = load_config(minimal_config_file)

        assert list(config.repos) == ["local"]
        assert config.backup.exclude is None
        assert config.copy is None
        assert config.get_copy_pairs() == []
        assert config.pre_command is None
        assert config.restic_binary == "restic"
        assert config.forget.is_empty()

    def test_load_yaml_config(self, yaml_config_file):
        """Test that YAML files are accepted with the pw_file spelling."""
        config, _ = load_config(yaml_config_file)

        assert config.repos["local"].password_file == "/etc/restic/local.pw"
        assert config.repos["remote"].path == "sftp:backup@nas:/restic"
        assert config.backup.exclude == ["*.iso"]
        assert config.forget.keep_yearly == 2
        assert config.copy.pairs[0].dest == "remote"

    def test_load_nonexistent_file(self, tmp_path):
        """Test error when loading nonexistent file."""
        with pytest.raises(ConfigParseError, match="Cannot read config file"):
            load_config(tmp_path / "nonexistent.toml")

    def test_load_invalid_toml(self, tmp_config_dir):
        """Test error when loading invalid TOML."""
        bad_config = tmp_config_dir / "bad.toml"
        bad_config.write_text("this is not valid [ toml")

        with pytest.raises(ConfigParseError, match="Invalid TOML"):
            load_config(bad_config)

    def test_load_invalid_yaml(self, tmp_config_dir):
        """Test error when loading invalid YAML."""
        bad_config = tmp_config_dir / "bad.yml"
        bad_config.write_text("repos: [unclosed")

        with pytest.raises(ConfigParseError, match="Invalid YAML"):
            load_config(bad_config)

    @pytest.mark.parametrize("name", ["bad.toml", "bad.yaml"])
    def test_load_undecodable_bytes(self, tmp_config_dir, name):
        """Test error when the file is not valid UTF-8."""
        bad_config = tmp_config_dir / name
        bad_config.write_bytes(b'[repos.local]\npath = "\xff"\n')

        with pytest.raises(ConfigParseError, match="UTF-8"):
            load_config(bad_config)

    def test_empty_config(self, tmp_config_dir):
        """Test that an empty file is missing its required tables."""
        empty_config = tmp_config_dir / "empty.toml"
        empty_config.write_text("")

        with pytest.raises(ConfigParseError, match="repos"):
            load_config(empty_config)

    def test_missing_backup_section(self, tmp_config_dir):
        """Test error when the backup table is missing."""
        path = tmp_config_dir / "no_backup.toml"
        path.write_text("""
[repos.local]
path = "/mnt"
password_file = "/pw"

[forget]
""")
        with pytest.raises(ConfigParseError, match="backup"):
            load_config(path)

    def test_missing_repo_path(self, tmp_config_dir):
        """Test error when a repository has no path."""
        path = tmp_config_dir / "no_path.toml"
        path.write_text("""
[repos.local]
password_file = "/pw"

[backup]
repo_name = "local"
include = ["/home"]

[forget]
""")
        with pytest.raises(ConfigParseError, match="path"):
            load_config(path)

    def test_missing_include(self, tmp_config_dir):
        """Test error when the backup has no include paths."""
        path = tmp_config_dir / "no_include.toml"
        path.write_text("""
[repos.local]
path = "/mnt"
password_file = "/pw"

[backup]
repo_name = "local"
include = []

[forget]
""")
        with pytest.raises(ConfigParseError, match="include"):
            load_config(path)

    def test_wrong_type(self, tmp_config_dir):
        """Test error when a field has the wrong type."""
        path = tmp_config_dir / "wrong_type.toml"
        path.write_text("""
[repos.local]
path = 42
password_file = "/pw"

[backup]
repo_name = "local"
include = ["/home"]

[forget]
""")
        with pytest.raises(ConfigParseError, match="string"):
            load_config(path)

    def test_negative_retention(self, tmp_config_dir):
        """Test that negative retention counts are rejected."""
        path = tmp_config_dir / "negative.toml"
        path.write_text("""
[repos.local]
path = "/mnt"
password_file = "/pw"

[backup]
repo_name = "local"
include = ["/home"]

[forget]
keep_daily = -1
""")
        with pytest.raises(ConfigParseError, match="negative"):
            load_config(path)

    def test_boolean_retention(self, tmp_config_dir):
        """Test that booleans are not accepted as retention counts."""
        path = tmp_config_dir / "bool.toml"
        path.write_text("""
[repos.local]
path = "/mnt"
password_file = "/pw"

[backup]
repo_name = "local"
include = ["/home"]

[forget]
keep_weekly = true
""")
        with pytest.raises(ConfigParseError, match="integer"):
            load_config(path)


class TestRepoReferences:
    """Tests for repository cross-reference validation."""

    def test_unknown_backup_repo(self, tmp_config_dir):
        """Test that backup.repo_name must name a configured repository."""
        path = tmp_config_dir / "unknown_backup.toml"
        path.write_text("""
[repos.local]
path = "/mnt"
password_file = "/pw"

[backup]
repo_name = "elsewhere"
include = ["/home"]

[forget]
""")
        with pytest.raises(UnknownRepoError) as exc_info:
            load_config(path)
        assert exc_info.value.name == "elsewhere"
        assert exc_info.value.context == "backup.repo_name"

    def test_unknown_copy_source(self, tmp_config_dir):
        """Test that an unknown copy source names the src field."""
        path = tmp_config_dir / "unknown_src.toml"
        path.write_text("""
[repos.local]
path = "/mnt"
password_file = "/pw"

[backup]
repo_name = "local"
include = ["/home"]

[forget]

[[copy.pairs]]
src = "ghost"
dest = "local"
""")
        with pytest.raises(UnknownRepoError, match="ghost") as exc_info:
            load_config(path)
        assert exc_info.value.context == "copy.pairs[0].src"

    def test_unknown_copy_destination(self, tmp_config_dir):
        """Test that an unknown copy destination names the dest field."""
        path = tmp_config_dir / "unknown_dest.toml"
        path.write_text("""
[repos.local]
path = "/mnt"
password_file = "/pw"

[backup]
repo_name = "local"
include = ["/home"]

[forget]

[[copy.pairs]]
src = "local"
dest = "local"

[[copy.pairs]]
src = "local"
dest = "offsite"
""")
        with pytest.raises(UnknownRepoError) as exc_info:
            load_config(path)
        assert exc_info.value.name == "offsite"
        assert exc_info.value.context == "copy.pairs[1].dest"


class TestConfigWarnings:
    """Tests for configuration warnings."""

    def test_warning_for_missing_password_file(self, minimal_config_file):
        """Test warning when a password file does not exist."""
        _, warnings = load_config(minimal_config_file)
        assert any("Password file" in w for w in warnings)

    def test_no_password_warning_when_file_exists(self, tmp_config_dir):
        """Test that existing password files produce no warning."""
        pw_file = tmp_config_dir / "local.pw"
        pw_file.write_text("secret")
        path = tmp_config_dir / "config.toml"
        path.write_text(f"""
[repos.local]
path = "/mnt"
password_file = "{pw_file}"

[backup]
repo_name = "local"
include = ["/home"]

[forget]
keep_daily = 1
""")
        _, warnings = load_config(path)
        assert warnings == []

    def test_warning_for_empty_retention(self, minimal_config_file):
        """Test warning when no retention field is set."""
        _, warnings = load_config(minimal_config_file)
        assert any("retention" in w for w in warnings)

    def test_warning_for_self_copy(self, tmp_config_dir):
        """Test warning when a pair copies a repository onto itself."""
        path = tmp_config_dir / "self_copy.toml"
        path.write_text("""
[repos.local]
path = "/mnt"
password_file = "/pw"

[backup]
repo_name = "local"
include = ["/home"]

[forget]

[[copy.pairs]]
src = "local"
dest = "local"
""")
        _, warnings = load_config(path)
        assert any("onto itself" in w for w in warnings)


class TestLoad:
    """Tests for the discovery-plus-load entry point."""

    def test_load_from_candidates(self, tmp_path, config_file):
        """Test that load uses the first existing candidate."""
        config = load([tmp_path / "missing.toml", config_file])
        assert config.backup.repo_name == "local"

    def test_load_without_candidates(self, tmp_path):
        """Test that load fails when no candidate exists."""
        with pytest.raises(ConfigNotFoundError):
            load([tmp_path / "missing.toml"])


class TestExampleConfig:
    """Tests for the generated example configuration."""

    def test_example_config_loads(self, tmp_path):
        """Test that the example configuration is itself valid."""
        path = tmp_path / "example.toml"
        path.write_text(generate_example_config())

        config, _ = load_config(path)
        assert config.backup.repo_name == "local"
        assert config.forget.keep_daily == 7
