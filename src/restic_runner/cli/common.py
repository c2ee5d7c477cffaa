"""Shared CLI utilities and argument parsers."""

import argparse

from ..core import RunContext


def add_verbosity_args(parser: argparse.ArgumentParser) -> None:
    """Add verbosity-related arguments to a parser."""
    group = parser.add_argument_group("Output options")
    group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress informational output and restic's standard output",
    )
    group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )


def add_run_args(parser: argparse.ArgumentParser) -> None:
    """Add configuration and dry-run arguments to a parser."""
    parser.add_argument(
        "-c",
        "--config-file",
        metavar="FILE",
        help="Path to configuration file (default: search the standard locations)",
    )
    parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Pass --dry-run to restic operations that support it",
    )


def get_log_level(args: argparse.Namespace) -> str:
    """Determine log level from parsed arguments.

    Args:
        args: Parsed command line arguments

    Returns:
        Log level string (DEBUG, INFO, WARNING, ERROR)
    """
    if getattr(args, "debug", False):
        return "DEBUG"
    elif getattr(args, "quiet", False):
        return "WARNING"
    elif getattr(args, "verbose", False):
        return "DEBUG"
    else:
        return "INFO"


def get_run_context(args: argparse.Namespace) -> RunContext:
    """Build the run-time flags for restic invocations from parsed arguments."""
    return RunContext(
        quiet=getattr(args, "quiet", False),
        dry_run=getattr(args, "dry_run", False),
    )
