"""Snapshot location checks."""

from __future__ import annotations

import ntpath
import re
import sys
from pathlib import Path
from typing import Any

from kiodb.errors import InvalidPath

SNAPSHOT_SUFFIX = ".kiod"

MAX_PATH = 260
MAX_PATH_EXTENDED = 32767

_RESERVED_CHARS = re.compile(r'[<>:"|?*]')
_RESERVED_FILE_CHARS = re.compile(r'[<>:"/\\|?*]')


def is_invalid_path(
    path: Any,
    *,
    windows: bool | None = None,
    extended: bool = False,
    file: bool = False,
) -> bool:
    """Return True if the path cannot name a file on this platform.

    Empty or non-string paths and paths containing NUL are always invalid.
    Windows rules (length limit and reserved characters) apply when running
    on Windows or when ``windows`` is True.

    Args:
        path: Candidate path.
        windows: Force (True) or skip (False) the Windows rules.
        extended: Use the extended-length limit instead of MAX_PATH.
        file: Also reject path separators, for bare file names.
    """
    if isinstance(path, Path):
        path = str(path)
    if not isinstance(path, str) or path == "":
        return True
    if "\0" in path:
        return True
    if windows is None:
        windows = sys.platform == "win32"
    if not windows:
        return False

    limit = MAX_PATH_EXTENDED if extended else MAX_PATH
    if len(path) > limit - 12:
        return True

    drive, rest = ntpath.splitdrive(path)
    if rest[:1] in ("\\", "/"):
        rest = rest[1:]
    pattern = _RESERVED_FILE_CHARS if file else _RESERVED_CHARS
    return bool(pattern.search(rest))


def validate_snapshot_path(path: str | Path) -> Path:
    """Return the path as a Path if it can hold a snapshot.

    Raises:
        InvalidPath: If the path is invalid or lacks the snapshot suffix.
    """
    if is_invalid_path(path):
        raise InvalidPath(f"File path is invalid: {path!r}")
    path = Path(path)
    if path.suffix != SNAPSHOT_SUFFIX:
        raise InvalidPath(f"File path must have {SNAPSHOT_SUFFIX} extension: {path}")
    return path
