"""Snapshot persistence for kiodb tables."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from kiodb.errors import IOFailure
from kiodb.logging_config import get_logger
from kiodb.table import Table

logger = get_logger(__name__)


class SnapshotStorage:
    """Reads and writes one table snapshot file.

    The snapshot is a single JSON document. Writes go to a temporary file in
    the same directory which then replaces the snapshot, so a failed write
    never leaves a truncated file behind.
    """

    def __init__(self, file_path: Path, indent: int | None = None) -> None:
        """Initialize the storage.

        Args:
            file_path: Location of the snapshot file.
            indent: JSON indentation; None for compact output.
        """
        self.file_path = file_path
        self.indent = indent

    def exists(self) -> bool:
        """Return whether a snapshot file is present."""
        return self.file_path.exists()

    def initialize(self) -> Table:
        """Load the snapshot, writing an empty table first if none exists."""
        if self.exists():
            return self.load()
        table = Table.empty()
        self.save(table)
        logger.info("snapshot_created", path=str(self.file_path))
        return table

    def load(self) -> Table:
        """Load the table stored in the snapshot.

        Raises:
            IOFailure: If the file cannot be read or is not a valid snapshot.
        """
        try:
            with open(self.file_path, encoding="utf-8") as f:
                snapshot = json.load(f)
        except (OSError, ValueError) as error:
            raise IOFailure(f"Cannot read snapshot {self.file_path}: {error}") from error
        if not isinstance(snapshot, dict):
            raise IOFailure(f"Snapshot {self.file_path} does not contain a JSON object")
        try:
            table = Table.from_snapshot(snapshot)
        except (KeyError, TypeError, ValueError, AttributeError) as error:
            raise IOFailure(f"Malformed snapshot {self.file_path}: {error}") from error
        logger.debug(
            "snapshot_loaded",
            path=str(self.file_path),
            columns=len(table.columns),
            records=len(table.data),
        )
        return table

    def save(self, table: Table) -> None:
        """Write the table to the snapshot file atomically.

        Raises:
            IOFailure: If the snapshot cannot be encoded or written.
        """
        try:
            text = self._encode(table.to_snapshot())
        except (TypeError, ValueError) as error:
            raise IOFailure(f"Cannot encode snapshot {self.file_path}: {error}") from error

        directory = self.file_path.parent
        tmp_name: str | None = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.file_path.name}.", suffix=".tmp", dir=directory
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_name, self.file_path)
        except OSError as error:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise IOFailure(f"Cannot write snapshot {self.file_path}: {error}") from error
        logger.debug("snapshot_saved", path=str(self.file_path), records=len(table.data))

    def _encode(self, snapshot: dict[str, Any]) -> str:
        return json.dumps(snapshot, indent=self.indent, ensure_ascii=False)
