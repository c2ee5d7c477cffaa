"""Command line interface for restic-runner."""

from .dispatcher import main

__all__ = ["main"]
