"""Parsing of restic's ``snapshots --json`` output."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from ..__util__ import MalformedSnapshotOutputError

logger = logging.getLogger(__name__)

_STRING_FIELDS = ("time", "tree", "hostname", "username", "id", "short_id")


@dataclass(frozen=True)
class Snapshot:
    """A snapshot as listed by restic."""

    time: str
    tree: str
    paths: list[str]
    hostname: str
    username: str
    id: str
    short_id: str
    excludes: Optional[list[str]] = None


def _string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def _parse_entry(index: int, entry: Any) -> Snapshot:
    if not isinstance(entry, dict):
        raise MalformedSnapshotOutputError(
            f"Snapshot #{index} is a {type(entry).__name__}, expected an object"
        )

    for key in _STRING_FIELDS:
        if not isinstance(entry.get(key), str):
            raise MalformedSnapshotOutputError(
                f"Snapshot #{index} has no string field '{key}'"
            )
    if not _string_list(entry.get("paths")):
        raise MalformedSnapshotOutputError(
            f"Snapshot #{index} field 'paths' is not a list of strings"
        )

    excludes = entry.get("excludes")
    if excludes is not None and not _string_list(excludes):
        raise MalformedSnapshotOutputError(
            f"Snapshot #{index} field 'excludes' is not a list of strings"
        )

    return Snapshot(
        time=entry["time"],
        tree=entry["tree"],
        paths=list(entry["paths"]),
        hostname=entry["hostname"],
        username=entry["username"],
        id=entry["id"],
        short_id=entry["short_id"],
        excludes=list(excludes) if excludes is not None else None,
    )


def parse_snapshots(text: Union[str, bytes]) -> list[Snapshot]:
    """Parse the JSON array printed by ``restic snapshots --json``.

    Captured process output is accepted as bytes and must be UTF-8.
    Keys restic adds beyond the ones modelled by Snapshot are ignored.

    Raises:
        MalformedSnapshotOutputError: If the text is not an array of snapshots
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedSnapshotOutputError(
                f"Error parsing snapshots: output is not valid UTF-8: {e}"
            ) from e

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedSnapshotOutputError(f"Error parsing snapshots: {e}") from e

    if not isinstance(payload, list):
        raise MalformedSnapshotOutputError(
            f"Expected a JSON array of snapshots, got {type(payload).__name__}"
        )

    snapshots = [_parse_entry(i, entry) for i, entry in enumerate(payload)]
    logger.debug("Parsed %d snapshot(s)", len(snapshots))
    return snapshots
