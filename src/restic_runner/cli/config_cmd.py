"""Config command: Configuration management."""

import argparse
import sys
from pathlib import Path

from ..config import ConfigError, find_config_file, load_config
from ..config.loader import generate_example_config
from .dispatcher import config_candidates


def execute_config(args: argparse.Namespace) -> int:
    """Execute the config command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    action = getattr(args, "config_action", None)

    if action == "validate":
        return _validate_config(args)
    elif action == "init":
        return _init_config(args)
    else:
        print("Usage: restic-runner config <validate|init>", file=sys.stderr)
        return 1


def _validate_config(args: argparse.Namespace) -> int:
    """Validate configuration file."""
    try:
        config_path = find_config_file(config_candidates(args))

        print(f"Validating: {config_path}")
        config, warnings = load_config(config_path)

        if warnings:
            print("")
            print("Warnings:")
            for warning in warnings:
                print(f"  - {warning}")

        print("")
        print("Configuration is valid.")
        print(f"  Repositories: {len(config.repos)}")
        print(f"  Backup repository: {config.backup.repo_name}")
        print(f"  Copy pairs: {len(config.get_copy_pairs())}")

        return 0

    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1


def _init_config(args: argparse.Namespace) -> int:
    """Print the example configuration, or write it to --output."""
    output = getattr(args, "output", None)
    if not output:
        print(generate_example_config())
        return 0

    try:
        Path(output).write_text(generate_example_config(), encoding="utf-8")
    except OSError as e:
        print(f"Cannot write {output}: {e}", file=sys.stderr)
        return 1

    print(f"Wrote example configuration to {output}")
    return 0
