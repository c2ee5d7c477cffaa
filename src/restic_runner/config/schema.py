"""Configuration schema definitions using dataclasses.

Defines the structure of the repository configuration file.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Repository:
    """A restic repository.

    Attributes:
        name: Key of the repository in the ``repos`` table
        path: Repository location passed to ``--repo``
        password_file: File passed to ``--password-file``
        environment: Extra environment variables for the restic process
    """

    name: str
    path: str
    password_file: str
    environment: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class BackupConfig:
    """Backup policy.

    Attributes:
        repo_name: Repository that receives backups
        include: Paths to back up, in order
        exclude: Exclude patterns, in order
        pre_command: Shell command run before the backup
        post_command: Shell command run after the backup
    """

    repo_name: str
    include: list[str]
    exclude: Optional[list[str]] = None
    pre_command: Optional[str] = None
    post_command: Optional[str] = None


@dataclass(frozen=True)
class RetentionConfig:
    """Retention policy used by ``forget``.

    A field left as None is not passed to restic at all.
    """

    keep_hourly: Optional[int] = None
    keep_daily: Optional[int] = None
    keep_weekly: Optional[int] = None
    keep_monthly: Optional[int] = None
    keep_yearly: Optional[int] = None

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.keep_hourly,
                self.keep_daily,
                self.keep_weekly,
                self.keep_monthly,
                self.keep_yearly,
            )
        )


@dataclass(frozen=True)
class CopyPair:
    """Source and destination repository names for ``copy``."""

    src: str
    dest: str


@dataclass(frozen=True)
class CopyConfig:
    """Copy jobs and their hooks."""

    pairs: list[CopyPair] = field(default_factory=list)
    pre_command: Optional[str] = None
    post_command: Optional[str] = None


@dataclass(frozen=True)
class Config:
    """Root configuration object.

    Attributes:
        repos: Repositories keyed by name, in file order
        backup: Backup policy
        forget: Retention policy
        copy: Optional copy jobs
        pre_command: Shell command run once before any action
        post_command: Shell command run once after the action
        restic_binary: restic executable to run
    """

    repos: dict[str, Repository]
    backup: BackupConfig
    forget: RetentionConfig = field(default_factory=RetentionConfig)
    copy: Optional[CopyConfig] = None
    pre_command: Optional[str] = None
    post_command: Optional[str] = None
    restic_binary: str = "restic"

    def repo_names(self) -> list[str]:
        """Get configured repository names in iteration order."""
        return list(self.repos)

    def get_copy_pairs(self) -> list[CopyPair]:
        """Get configured copy pairs, empty when there is no copy section."""
        return list(self.copy.pairs) if self.copy else []
