"""CLI entry point.

Parses the command line into a Request, loads the configuration once and
hands both to the core Dispatcher.
"""

import argparse
import logging
import sys
from typing import Optional

from .. import __util__, __version__
from ..__logger__ import create_logger
from ..config import ConfigError, load
from ..core import Action, Dispatcher, Request
from .common import add_run_args, add_verbosity_args, get_log_level, get_run_context

logger = logging.getLogger(__name__)

# Subcommands handled without loading the configuration
MANAGEMENT_COMMANDS = frozenset({"config"})


def create_subcommand_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="restic-runner",
        description="Run restic against the repositories named in a configuration file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    add_verbosity_args(parser)
    add_run_args(parser)

    parser.add_argument(
        "-V",
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands (use 'command --help' for details)",
    )

    init_parser = subparsers.add_parser(
        "init",
        help="Initialize a repository",
        description="Initialize a repository (default: the backup repository)",
    )
    init_parser.add_argument("repo", nargs="?", help="Repository name")

    subparsers.add_parser(
        "backup",
        help="Run a backup job now",
        description="Back up the configured paths, then apply the retention policy",
    )

    check_parser = subparsers.add_parser(
        "check",
        help="Check the condition of configured repositories",
    )
    check_parser.add_argument("repo", nargs="?", help="Only check this repository")

    subparsers.add_parser(
        "copy-all",
        help="Copy every configured pair",
        description="Copy snapshots for each copy pair, then apply the retention "
        "policy to the destination",
    )

    subparsers.add_parser(
        "list",
        help="List configured repositories",
    )

    mount_parser = subparsers.add_parser(
        "mount",
        help="Mount a repository at the specified location",
    )
    mount_parser.add_argument("repo", help="Repository name")
    mount_parser.add_argument("mount_point", help="Directory to mount on")

    prune_parser = subparsers.add_parser(
        "prune",
        help="Remove unreferenced data from repositories",
    )
    prune_parser.add_argument("repo", nargs="?", help="Only prune this repository")

    snapshots_parser = subparsers.add_parser(
        "snapshots",
        help="Display the snapshots of configured repositories",
    )
    snapshots_parser.add_argument(
        "repo", nargs="?", help="Only list snapshots of this repository"
    )

    unlock_parser = subparsers.add_parser(
        "unlock",
        help="Remove stale locks from a repository",
    )
    unlock_parser.add_argument("repo", nargs="?", help="Repository name")

    stats_parser = subparsers.add_parser(
        "stats",
        help="Show repository or snapshot statistics",
    )
    stats_parser.add_argument("repo", nargs="?", help="Repository name")
    stats_parser.add_argument("snapshot_id", nargs="?", help="Snapshot to inspect")
    stats_parser.add_argument(
        "--iterate-over-snapshots",
        action="store_true",
        help="Show statistics for every snapshot in turn",
    )

    forget_parser = subparsers.add_parser(
        "forget",
        help="Forget snapshots by retention policy or by id",
        description="Apply the retention policy, or forget a single snapshot when "
        "an id is given",
    )
    forget_parser.add_argument("repo", nargs="?", help="Repository name")
    forget_parser.add_argument("snapshot_id", nargs="?", help="Snapshot to forget")

    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Validate or initialize configuration",
    )
    config_subs = config_parser.add_subparsers(dest="config_action")

    config_subs.add_parser(
        "validate",
        help="Validate configuration file",
    )

    config_init_parser = config_subs.add_parser(
        "init",
        help="Generate example configuration",
    )
    config_init_parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        help="Output file (default: stdout)",
    )

    return parser


def build_request(args: argparse.Namespace) -> Request:
    """Turn parsed arguments into a Request."""
    return Request(
        action=Action(args.command),
        repo=getattr(args, "repo", None),
        snapshot_id=getattr(args, "snapshot_id", None),
        mount_point=getattr(args, "mount_point", None),
        iterate_snapshots=getattr(args, "iterate_over_snapshots", False),
    )


def config_candidates(args: argparse.Namespace) -> Optional[list[str]]:
    """Candidate configuration paths: the explicit file, or None for the defaults."""
    config_file = getattr(args, "config_file", None)
    return [config_file] if config_file else None


def run_subcommand(args: argparse.Namespace) -> int:
    """Run the specified subcommand.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    if args.version:
        print(f"restic-runner {__version__}")
        return 0

    if not args.command:
        print("No command specified. Use --help for usage information.")
        return 1

    if args.command in MANAGEMENT_COMMANDS:
        from .config_cmd import execute_config

        return execute_config(args)

    try:
        config = load(config_candidates(args))
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 1

    dispatcher = Dispatcher(config, get_run_context(args))
    try:
        return dispatcher.dispatch(build_request(args))
    except __util__.ResticRunnerError as e:
        logger.error("%s", e)
        return 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point for restic-runner CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_subcommand_parser()
    args = parser.parse_args(argv)

    if getattr(args, "iterate_over_snapshots", False) and getattr(
        args, "snapshot_id", None
    ):
        parser.error("stats: a snapshot id cannot be combined with --iterate-over-snapshots")

    create_logger(get_log_level(args))
    return run_subcommand(args)
