"""restic command construction.

Turns an operation and a repository (or a pair of repositories) into an
Invocation: the full restic argument vector plus the directives the
process runner needs. Building has no side effects.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from ..__util__ import RepoNotFoundError
from ..config import Config, Repository, RetentionConfig

logger = logging.getLogger(__name__)


class OperationKind(Enum):
    """restic subcommands."""

    INIT = "init"
    BACKUP = "backup"
    CHECK = "check"
    COPY = "copy"
    FORGET = "forget"
    SNAPSHOTS = "snapshots"
    MOUNT = "mount"
    PRUNE = "prune"
    UNLOCK = "unlock"
    STATS = "stats"


# Operations that accept --dry-run; read-only ones never get it
DRY_RUN_OPERATIONS = frozenset(
    {
        OperationKind.BACKUP,
        OperationKind.COPY,
        OperationKind.FORGET,
        OperationKind.MOUNT,
        OperationKind.PRUNE,
        OperationKind.UNLOCK,
    }
)

DRY_RUN_FLAG = "--dry-run=true"


@dataclass(frozen=True)
class RunContext:
    """Run-time flags shared by every invocation of one run."""

    quiet: bool = False
    dry_run: bool = False


@dataclass(frozen=True)
class ByPolicy:
    """Forget snapshots according to the configured retention policy."""


@dataclass(frozen=True)
class BySnapshotId:
    """Forget one explicitly named snapshot."""

    snapshot_id: str


ForgetTarget = Union[ByPolicy, BySnapshotId]


@dataclass(frozen=True)
class Invocation:
    """A fully built restic command.

    Attributes:
        executable: Program to run
        args: Arguments after the program name
        quiet: Discard the child's standard output
        capture_output: Return standard output instead of showing it
        env: Variables added to the inherited environment
    """

    executable: str
    args: tuple[str, ...]
    quiet: bool = False
    capture_output: bool = False
    env: dict[str, str] = field(default_factory=dict)

    @property
    def operation(self) -> OperationKind:
        return OperationKind(self.args[0])

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.args]


def repo_args(repo: Repository) -> list[str]:
    """Arguments selecting a single repository."""
    return ["--repo", repo.path, "--password-file", repo.password_file]


def retention_args(retention: RetentionConfig) -> list[str]:
    """``--keep-*`` arguments for every retention field that is set."""
    args = []
    for flag, value in (
        ("--keep-yearly", retention.keep_yearly),
        ("--keep-monthly", retention.keep_monthly),
        ("--keep-weekly", retention.keep_weekly),
        ("--keep-daily", retention.keep_daily),
        ("--keep-hourly", retention.keep_hourly),
    ):
        if value is not None:
            args.extend([flag, str(value)])
    return args


class CommandBuilder:
    """Build restic invocations for the repositories of one configuration."""

    def __init__(self, config: Config, context: RunContext) -> None:
        self.config = config
        self.context = context

    def repo(self, name: str) -> Repository:
        """Look up a repository by name.

        Raises:
            RepoNotFoundError: If ``name`` is not configured
        """
        try:
            return self.config.repos[name]
        except KeyError:
            raise RepoNotFoundError(name, self.config.repo_names()) from None

    def _finish(
        self,
        kind: OperationKind,
        args: list[str],
        env: Optional[dict[str, str]] = None,
        capture_output: bool = False,
    ) -> Invocation:
        invocation = Invocation(
            executable=self.config.restic_binary,
            args=(kind.value, *args),
            quiet=self.context.quiet,
            capture_output=capture_output,
            env=dict(env or {}),
        )
        logger.debug("Built %s invocation: %s", kind.value, invocation.args)
        return invocation

    def _dry_run(self, kind: OperationKind) -> list[str]:
        if self.context.dry_run and kind in DRY_RUN_OPERATIONS:
            return [DRY_RUN_FLAG]
        return []

    def _single(self, kind: OperationKind, name: str) -> Invocation:
        repo = self.repo(name)
        args = repo_args(repo) + self._dry_run(kind)
        return self._finish(kind, args, repo.environment)

    def init(self, name: str) -> Invocation:
        return self._single(OperationKind.INIT, name)

    def backup(self) -> Invocation:
        """Back up the configured include paths into the backup repository."""
        policy = self.config.backup
        repo = self.repo(policy.repo_name)

        args = repo_args(repo) + ["--exclude-caches"]
        args += self._dry_run(OperationKind.BACKUP)
        for pattern in policy.exclude or []:
            args.extend(["--exclude", pattern])
        args.extend(policy.include)

        return self._finish(OperationKind.BACKUP, args, repo.environment)

    def check(self, name: str) -> Invocation:
        return self._single(OperationKind.CHECK, name)

    def copy(self, src_name: str, dest_name: str) -> Invocation:
        """Copy snapshots from ``src_name`` into ``dest_name``.

        restic's copy reads the source from the --from-* flags and writes
        to the repository given by --repo/--password-file.
        """
        src = self.repo(src_name)
        dest = self.repo(dest_name)

        args = [
            "--from-repo",
            src.path,
            "--from-password-file",
            src.password_file,
            *repo_args(dest),
        ]
        args += self._dry_run(OperationKind.COPY)

        env = {**src.environment, **dest.environment}
        return self._finish(OperationKind.COPY, args, env)

    def forget(self, name: str, target: ForgetTarget) -> Invocation:
        """Forget and prune snapshots by policy or by explicit id."""
        repo = self.repo(name)

        args = repo_args(repo) + ["--prune"]
        args += self._dry_run(OperationKind.FORGET)
        if isinstance(target, BySnapshotId):
            args.append(target.snapshot_id)
        else:
            args += retention_args(self.config.forget)

        return self._finish(OperationKind.FORGET, args, repo.environment)

    def snapshots(self, name: str, json_output: bool = False) -> Invocation:
        repo = self.repo(name)
        args = repo_args(repo)
        if json_output:
            args.append("--json")
        return self._finish(
            OperationKind.SNAPSHOTS, args, repo.environment, capture_output=json_output
        )

    def mount(self, name: str, mount_point: str) -> Invocation:
        repo = self.repo(name)
        args = [mount_point, *repo_args(repo)]
        args += self._dry_run(OperationKind.MOUNT)
        return self._finish(OperationKind.MOUNT, args, repo.environment)

    def prune(self, name: str) -> Invocation:
        return self._single(OperationKind.PRUNE, name)

    def unlock(self, name: str) -> Invocation:
        return self._single(OperationKind.UNLOCK, name)

    def stats(self, name: str, snapshot_id: Optional[str] = None) -> Invocation:
        repo = self.repo(name)
        args = repo_args(repo)
        if snapshot_id:
            args.append(snapshot_id)
        return self._finish(OperationKind.STATS, args, repo.environment)

    def build(
        self,
        kind: OperationKind,
        name: Optional[str] = None,
        *,
        dest: Optional[str] = None,
        target: ForgetTarget = ByPolicy(),
        mount_point: Optional[str] = None,
        snapshot_id: Optional[str] = None,
        json_output: bool = False,
    ) -> Invocation:
        """Build any invocation from its OperationKind.

        ``name`` is the repository (the source for COPY). BACKUP always
        targets the configured backup repository.
        """
        if kind is OperationKind.BACKUP:
            return self.backup()
        if name is None:
            raise ValueError(f"{kind.value} needs a repository name")

        if kind is OperationKind.INIT:
            return self.init(name)
        elif kind is OperationKind.CHECK:
            return self.check(name)
        elif kind is OperationKind.COPY:
            if dest is None:
                raise ValueError("copy needs a destination repository")
            return self.copy(name, dest)
        elif kind is OperationKind.FORGET:
            return self.forget(name, target)
        elif kind is OperationKind.SNAPSHOTS:
            return self.snapshots(name, json_output=json_output)
        elif kind is OperationKind.MOUNT:
            if mount_point is None:
                raise ValueError("mount needs a mount point")
            return self.mount(name, mount_point)
        elif kind is OperationKind.PRUNE:
            return self.prune(name)
        elif kind is OperationKind.UNLOCK:
            return self.unlock(name)
        elif kind is OperationKind.STATS:
            return self.stats(name, snapshot_id)
        raise ValueError(f"Unsupported operation: {kind}")
