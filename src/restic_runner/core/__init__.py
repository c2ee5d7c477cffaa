"""Core restic operations.

This package contains the command builder, the process runner,
the snapshot parser and the operation dispatcher.
"""

from .commands import (
    ByPolicy,
    BySnapshotId,
    CommandBuilder,
    ForgetTarget,
    Invocation,
    OperationKind,
    RunContext,
)
from .operations import Action, Dispatcher, Request
from .runner import ExitOutcome, ProcessRunner
from .snapshots import Snapshot, parse_snapshots

__all__ = [
    "Action",
    "ByPolicy",
    "BySnapshotId",
    "CommandBuilder",
    "Dispatcher",
    "ExitOutcome",
    "ForgetTarget",
    "Invocation",
    "OperationKind",
    "ProcessRunner",
    "Request",
    "RunContext",
    "Snapshot",
    "parse_snapshots",
]
