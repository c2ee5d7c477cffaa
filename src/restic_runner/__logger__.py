# pyright: standard

"""restic-runner: restic_runner/__logger__.py
A common logger that renders through rich.

Informational records go to standard output, warnings and errors to
standard error.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

logger = logging.getLogger("restic_runner")


class _BelowWarning(logging.Filter):
    """Pass only records below WARNING."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.WARNING


def create_logger(level: str | int = "INFO") -> None:
    """Helper function to set up logging for a command line run."""
    out_handler = RichHandler(console=Console(), show_path=False)
    out_handler.addFilter(_BelowWarning())
    err_handler = RichHandler(console=Console(stderr=True), show_path=False)
    err_handler.setLevel(logging.WARNING)

    logging.basicConfig(
        format="%(message)s",
        datefmt="%H:%M:%S",
        level=level,
        handlers=[out_handler, err_handler],
        force=True,
    )
    logger.setLevel(level)
