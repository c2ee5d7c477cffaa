"""restic-runner: restic_runner/__util__.py
Shared error types and small helpers.
"""


class ResticRunnerError(Exception):
    """Base class for fatal runtime errors."""


class RepoNotFoundError(ResticRunnerError):
    """A repository name is not present in the configuration."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available
        valid = ", ".join(available) if available else "(none)"
        super().__init__(f"Repository '{name}' not found. Valid names: {valid}")


class AmbiguousRepoError(ResticRunnerError):
    """No repository was named and no single default exists."""

    def __init__(self, available: list[str]) -> None:
        self.available = available
        if available:
            message = (
                "Multiple repositories configured, please choose one of: "
                + ", ".join(available)
            )
        else:
            message = "No repositories configured"
        super().__init__(message)


class SpawnError(ResticRunnerError):
    """An external command could not be started at all."""

    def __init__(self, command: str, reason: OSError) -> None:
        self.command = command
        self.reason = reason
        super().__init__(f"Failed to run '{command}': {reason}")


class MalformedSnapshotOutputError(ResticRunnerError):
    """restic returned snapshot JSON that does not have the expected shape."""


def log_heading(caption: str) -> str:
    """Format a caption as a section heading for log output."""
    return f"{'-' * 8} {caption} {'-' * 8}"
