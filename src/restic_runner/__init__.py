"""restic-runner: restic_runner/__init__.py."""

__version__ = "0.3.0"
