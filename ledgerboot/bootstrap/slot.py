"""
Recovers the slot a snapshot archive was taken at from its filename.
"""

import os
import re
from pathlib import Path
from typing import Union

from ..protocol.types.common import ParseError

SNAPSHOT_NAME_RE = re.compile(r"snapshot-(\d+)-.*\.tar\.bz2")
SNAPSHOT_GLOB = "snapshot-*.tar.bz2"
MAX_SLOT = 2**64 - 1


def extract_slot(filename: Union[str, Path]) -> int:
    """
    Parses `snapshot-<slot>-<hash>.tar.bz2` and returns the slot.

    Raises:
        ParseError: If the basename does not match or the slot is out of range
    """
    name = os.path.basename(str(filename))
    match = SNAPSHOT_NAME_RE.fullmatch(name)
    if match is None:
        raise ParseError(f"Unable to determine snapshot slot for {name!r}")

    slot = int(match.group(1))
    if slot > MAX_SLOT:
        raise ParseError(f"Snapshot slot in {name!r} exceeds the u64 range")
    return slot


def find_snapshot(directory: Path) -> Path:
    """
    Returns the single snapshot archive staged in a directory.

    Raises:
        ParseError: If no candidate or more than one candidate is present
    """
    candidates = sorted(p for p in Path(directory).glob(SNAPSHOT_GLOB) if p.is_file())
    if not candidates:
        raise ParseError(f"Unable to find a snapshot archive in {directory}")
    if len(candidates) > 1:
        names = ", ".join(p.name for p in candidates)
        raise ParseError(f"Ambiguous snapshot selection in {directory}: {names}")
    return candidates[0]
