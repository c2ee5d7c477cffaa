"""Core operations: repository selection and sequencing of restic commands.

A Request names one user-facing action. The Dispatcher picks the
repositories it applies to, asks the CommandBuilder for the matching
invocations and runs them in order, one at a time.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .. import __util__
from ..config import Config
from .commands import ByPolicy, BySnapshotId, CommandBuilder, Invocation, RunContext
from .runner import ExitOutcome, ProcessRunner
from .snapshots import parse_snapshots

logger = logging.getLogger(__name__)


class Action(Enum):
    """User-facing subcommands."""

    INIT = "init"
    BACKUP = "backup"
    CHECK = "check"
    COPY_ALL = "copy-all"
    LIST = "list"
    MOUNT = "mount"
    PRUNE = "prune"
    SNAPSHOTS = "snapshots"
    UNLOCK = "unlock"
    STATS = "stats"
    FORGET = "forget"


@dataclass(frozen=True)
class Request:
    """One parsed command line."""

    action: Action
    repo: Optional[str] = None
    snapshot_id: Optional[str] = None
    mount_point: Optional[str] = None
    iterate_snapshots: bool = False


class Dispatcher:
    """Execute requests against one loaded configuration."""

    def __init__(
        self,
        config: Config,
        context: RunContext,
        runner: Optional[ProcessRunner] = None,
    ) -> None:
        self.config = config
        self.context = context
        self.builder = CommandBuilder(config, context)
        self.runner = runner or ProcessRunner()
        self._failures = 0

    # Repository selection

    def select_repo(self, name: Optional[str] = None) -> str:
        """Pick the repository a single-repository action applies to.

        Raises:
            RepoNotFoundError: If ``name`` is given but not configured
            AmbiguousRepoError: If ``name`` is omitted and there is not
                exactly one repository
        """
        names = self.config.repo_names()
        if name is not None:
            if name not in self.config.repos:
                raise __util__.RepoNotFoundError(name, names)
            return name
        if len(names) == 1:
            return names[0]
        raise __util__.AmbiguousRepoError(names)

    def select_repos(self, name: Optional[str] = None) -> list[str]:
        """Pick the repositories a bulk action iterates over."""
        if name is not None:
            return [self.select_repo(name)]
        return self.config.repo_names()

    # Execution helpers

    def _run(self, invocation: Invocation) -> ExitOutcome:
        outcome = self.runner.run(invocation)
        if not outcome.ok:
            self._failures += 1
            logger.error(
                "restic %s exited with status %d",
                invocation.operation.value,
                outcome.returncode,
            )
        return outcome

    def _hook(self, command: Optional[str]) -> None:
        if command:
            self.runner.run_hook(command, quiet=self.context.quiet)

    def _heading(self, caption: str) -> None:
        logger.info(__util__.log_heading(caption))

    # Entry point

    def dispatch(self, request: Request) -> int:
        """Run a request with the global hooks around it.

        Returns:
            Exit code: 0 if every restic command succeeded, 1 otherwise
        """
        self._failures = 0
        if self.context.dry_run:
            logger.info("Dry run mode - restic will not change any repository")

        self._hook(self.config.pre_command)

        action = request.action
        if action is Action.INIT:
            self.init(request.repo)
        elif action is Action.BACKUP:
            self.backup()
        elif action is Action.CHECK:
            self.check(request.repo)
        elif action is Action.COPY_ALL:
            self.copy_all()
        elif action is Action.LIST:
            self.list_repos()
        elif action is Action.MOUNT:
            if request.repo is None or request.mount_point is None:
                raise ValueError("mount needs a repository and a mount point")
            self.mount(request.repo, request.mount_point)
        elif action is Action.PRUNE:
            self.prune(request.repo)
        elif action is Action.SNAPSHOTS:
            self.snapshots(request.repo)
        elif action is Action.UNLOCK:
            self.unlock(request.repo)
        elif action is Action.STATS:
            if request.iterate_snapshots:
                self.stats_per_snapshot(request.repo)
            else:
                self.stats(request.repo, request.snapshot_id)
        elif action is Action.FORGET:
            self.forget(request.repo, request.snapshot_id)
        else:
            raise ValueError(f"Unknown action: {action}")

        self._hook(self.config.post_command)

        if self._failures:
            logger.warning("Completed with errors: %d restic command(s) failed", self._failures)
            return 1
        return 0

    # Actions

    def init(self, name: Optional[str] = None) -> None:
        repo = name if name is not None else self.config.backup.repo_name
        self._heading(f"Initializing {repo}")
        self._run(self.builder.init(self.select_repo(repo)))

    def backup(self) -> None:
        """Back up, then apply the retention policy to the same repository.

        The forget step always runs, even when the backup failed.
        """
        policy = self.config.backup
        self._heading(f"Backing up to {policy.repo_name}")

        self._hook(policy.pre_command)
        self._run(self.builder.backup())
        self._hook(policy.post_command)

        self._heading(f"Applying retention policy to {policy.repo_name}")
        self._run(self.builder.forget(policy.repo_name, ByPolicy()))

    def check(self, name: Optional[str] = None) -> None:
        for repo in self.select_repos(name):
            self._heading(f"Checking {repo}")
            self._run(self.builder.check(repo))

    def copy_all(self) -> None:
        """Copy every configured pair, forgetting on the destination after
        each successful copy."""
        pairs = self.config.get_copy_pairs()
        if not pairs:
            logger.warning("No copy pairs configured")
            return

        copy_config = self.config.copy
        for pair in pairs:
            self._heading(f"Copying {pair.src} to {pair.dest}")

            self._hook(copy_config.pre_command if copy_config else None)
            outcome = self._run(self.builder.copy(pair.src, pair.dest))
            self._hook(copy_config.post_command if copy_config else None)

            if not outcome.ok:
                logger.error("Skipping forget on %s because the copy failed", pair.dest)
                continue

            self._heading(f"Applying retention policy to {pair.dest}")
            self._run(self.builder.forget(pair.dest, ByPolicy()))

    def list_repos(self) -> None:
        """Print the configured repositories."""
        for name, repo in self.config.repos.items():
            marker = " (backup)" if name == self.config.backup.repo_name else ""
            print(f"{name}{marker}")
            print(f"  path: {repo.path}")
            print(f"  password file: {repo.password_file}")

    def mount(self, name: str, mount_point: str) -> None:
        repo = self.select_repo(name)
        self._heading(f"Mounting {repo} at {mount_point}")
        self._run(self.builder.mount(repo, mount_point))

    def prune(self, name: Optional[str] = None) -> None:
        for repo in self.select_repos(name):
            self._heading(f"Pruning {repo}")
            self._run(self.builder.prune(repo))

    def snapshots(self, name: Optional[str] = None) -> None:
        for repo in self.select_repos(name):
            self._heading(f"{repo} snapshots")
            self._run(self.builder.snapshots(repo))

    def unlock(self, name: Optional[str] = None) -> None:
        repo = self.select_repo(name)
        self._heading(f"Unlocking {repo}")
        self._run(self.builder.unlock(repo))

    def stats(self, name: Optional[str] = None, snapshot_id: Optional[str] = None) -> None:
        repo = self.select_repo(name)
        self._heading(f"Statistics for {repo}")
        self._run(self.builder.stats(repo, snapshot_id))

    def stats_per_snapshot(self, name: Optional[str] = None) -> None:
        """Show statistics for every snapshot of a repository in turn.

        Raises:
            MalformedSnapshotOutputError: If the snapshot listing cannot be parsed
        """
        repo = self.select_repo(name)
        listing = self._run(self.builder.snapshots(repo, json_output=True))
        if not listing.ok:
            return

        snapshots = parse_snapshots(listing.stdout or b"")
        if not snapshots:
            logger.info("No snapshots in %s", repo)
            return

        for snapshot in snapshots:
            self._heading(f"Snapshot {snapshot.short_id} ({snapshot.time})")
            self._run(self.builder.stats(repo, snapshot.id))

    def forget(self, name: Optional[str] = None, snapshot_id: Optional[str] = None) -> None:
        repo = self.select_repo(name)
        if snapshot_id:
            target = BySnapshotId(snapshot_id)
            self._heading(f"Forgetting snapshot {snapshot_id} in {repo}")
        else:
            target = ByPolicy()
            self._heading(f"Applying retention policy to {repo}")
        self._run(self.builder.forget(repo, target))
