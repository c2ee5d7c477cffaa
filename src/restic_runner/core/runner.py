"""Process execution for restic invocations and shell hooks."""

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Optional

from ..__util__ import SpawnError
from .commands import Invocation

logger = logging.getLogger(__name__)

HOOK_SHELL = "/bin/bash"


@dataclass(frozen=True)
class ExitOutcome:
    """Result of one finished process."""

    returncode: int
    stdout: Optional[bytes] = None

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def _build_env(extra: dict[str, str]) -> Optional[dict[str, str]]:
    if not extra:
        return None
    env = os.environ.copy()
    env.update(extra)
    return env


def _spawn(
    argv: list[str],
    *,
    quiet: bool,
    capture_output: bool = False,
    env: Optional[dict[str, str]] = None,
) -> subprocess.CompletedProcess:
    if capture_output:
        stdout = subprocess.PIPE
    elif quiet:
        stdout = subprocess.DEVNULL
    else:
        stdout = None

    try:
        return subprocess.run(
            argv,
            stdout=stdout,
            env=env,
            check=False,
        )
    except OSError as e:
        raise SpawnError(shlex.join(argv), e) from e


class ProcessRunner:
    """Run invocations one at a time and wait for each to finish."""

    def run(self, invocation: Invocation) -> ExitOutcome:
        """Run a restic invocation.

        The exit status is returned as-is; callers decide what a failure means.
        Captured output is returned undecoded.

        Raises:
            SpawnError: If the executable cannot be started
        """
        logger.debug("Executing: %s", shlex.join(invocation.argv))
        result = _spawn(
            invocation.argv,
            quiet=invocation.quiet,
            capture_output=invocation.capture_output,
            env=_build_env(invocation.env),
        )
        if result.returncode != 0:
            logger.debug(
                "%s exited with status %d", invocation.executable, result.returncode
            )
        return ExitOutcome(
            returncode=result.returncode,
            stdout=result.stdout if invocation.capture_output else None,
        )

    def run_hook(self, command: str, quiet: bool = False) -> ExitOutcome:
        """Run a pre/post shell command.

        Raises:
            SpawnError: If the shell cannot be started
        """
        logger.debug("Running hook: %s", command)
        result = _spawn([HOOK_SHELL, "-c", command], quiet=quiet)
        if result.returncode != 0:
            logger.warning(
                "Command '%s' exited with status %d", command, result.returncode
            )
        return ExitOutcome(returncode=result.returncode)
