"""In-memory table value and its snapshot form."""

from __future__ import annotations

import copy
import time
from dataclasses import dataclass, field
from typing import Any

from kiodb.types import Column

Record = dict[str, Any]


def now_ms() -> int:
    """Return the current time as epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class Statistics:
    """Edit and persistence timestamps, in epoch milliseconds."""

    created_at: int
    last_edit_at: int
    last_saved_at: int

    @classmethod
    def fresh(cls, timestamp: int | None = None) -> Statistics:
        ts = now_ms() if timestamp is None else timestamp
        return cls(created_at=ts, last_edit_at=ts, last_saved_at=ts)

    def to_dict(self) -> dict[str, int]:
        return {
            "createdAt": self.created_at,
            "lastEditAt": self.last_edit_at,
            "lastSavedAt": self.last_saved_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Statistics:
        created = data.get("createdAt", now_ms())
        return cls(
            created_at=created,
            last_edit_at=data.get("lastEditAt", created),
            last_saved_at=data.get("lastSavedAt", created),
        )


@dataclass
class Table:
    """The full schema and record collection, persisted as one unit.

    The table owns its columns and records. Callers outside the engine only
    ever see copies (see :meth:`copy`).
    """

    columns: list[Column] = field(default_factory=list)
    data: list[Record] = field(default_factory=list)
    statistics: Statistics = field(default_factory=Statistics.fresh)
    settings: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> Table:
        """Create an empty table stamped with the current time."""
        return cls()

    def copy(self) -> Table:
        """Return a deep copy that shares no mutable state with this table."""
        return copy.deepcopy(self)

    def to_snapshot(self) -> dict[str, Any]:
        """Serialize the table to its JSON-compatible snapshot form."""
        return {
            "settings": copy.deepcopy(self.settings),
            "statistics": self.statistics.to_dict(),
            "columns": [column.to_dict() for column in self.columns],
            "data": copy.deepcopy(self.data),
        }

    @classmethod
    def from_snapshot(cls, snapshot: dict[str, Any]) -> Table:
        """Rebuild a table from its snapshot form.

        Missing sections are treated as empty so hand-written or partial
        snapshots still load.
        """
        return cls(
            columns=[Column.from_dict(c) for c in snapshot.get("columns", [])],
            data=[dict(row) for row in snapshot.get("data", [])],
            statistics=Statistics.from_dict(snapshot.get("statistics", {})),
            settings=dict(snapshot.get("settings", {})),
        )
