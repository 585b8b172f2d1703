"""Table engine: schema changes, record CRUD and queries over one snapshot."""

from __future__ import annotations

import copy
import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from kiodb.autosave import Autosaver
from kiodb.conditions import matches, normalize_conditions
from kiodb.config import DatabaseConfig
from kiodb.errors import (
    MissingConditions,
    NotUniqueColumn,
    UniqueConstraintViolation,
    UnknownConditionColumn,
)
from kiodb.logging_config import get_logger
from kiodb.paths import validate_snapshot_path
from kiodb.schema import ColumnRegistry
from kiodb.storage import SnapshotStorage
from kiodb.table import Record, Statistics, Table, now_ms
from kiodb.types import Column, Condition, TypeTag

logger = get_logger(__name__)


@dataclass
class _Edit:
    """Working state of one mutating call."""

    table: Table
    registry: ColumnRegistry
    changed: bool = True


class Database:
    """A schema-enforced document table persisted as one ``.kiod`` snapshot.

    Every public operation is atomic. Mutations run against a working copy
    of the table which replaces the current table only after validation and
    (in write-through mode) a successful write. A failed call leaves both the
    in-memory and the persisted table unchanged.

    Example::

        with Database("people.kiod") as db:
            db.add_column("name").add_column("age", "number", default=0)
            db.insert({"name": "Ada", "age": 36})
            adults = db.select("age >= 18")
    """

    def __init__(
        self,
        path: str | Path,
        config: DatabaseConfig | None = None,
        *,
        autosave_interval: float | None = None,
        storage: SnapshotStorage | None = None,
    ) -> None:
        """Open the snapshot at ``path``, creating an empty one if missing.

        Args:
            path: Snapshot location; must end in ``.kiod``.
            config: Runtime options; defaults to ``DatabaseConfig()``.
            autosave_interval: Overrides ``config.autosave_interval``.
            storage: Persistence adapter; defaults to a SnapshotStorage on ``path``.

        Raises:
            InvalidPath: If the location is invalid.
            IOFailure: If an existing snapshot cannot be read or a new one written.
        """
        self.path = validate_snapshot_path(path)
        config = config or DatabaseConfig()
        if autosave_interval is not None:
            config = replace(config, autosave_interval=autosave_interval)
        self.config = config
        self.storage = storage or SnapshotStorage(self.path, indent=config.indent)
        self._lock = threading.RLock()
        self._dirty = False

        self._table = self.storage.initialize()

        self._autosaver: Autosaver | None = None
        if config.autosave_interval > 0:
            self._autosaver = Autosaver(self._autosave, config.autosave_interval)
            self._autosaver.start()

    def __repr__(self) -> str:
        return f"Database({str(self.path)!r}, columns={len(self._table.columns)}, records={len(self._table.data)})"

    # Read accessors

    @property
    def columns(self) -> list[Column]:
        """Column definitions in schema order (copies)."""
        with self._lock:
            return copy.deepcopy(self._table.columns)

    @property
    def column_names(self) -> list[str]:
        with self._lock:
            return [column.name for column in self._table.columns]

    def column(self, name: str) -> Column | None:
        """Return a copy of the named column, or None."""
        with self._lock:
            found = ColumnRegistry(self._table).column(name)
            return copy.deepcopy(found)

    def get_all(self) -> list[Record]:
        """Return copies of all records in stored order."""
        with self._lock:
            return copy.deepcopy(self._table.data)

    @property
    def settings(self) -> dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._table.settings)

    @property
    def statistics(self) -> Statistics:
        with self._lock:
            return copy.deepcopy(self._table.statistics)

    @property
    def count(self) -> int:
        """Return the number of records in the table."""
        with self._lock:
            return len(self._table.data)

    def __len__(self) -> int:
        return self.count

    # Schema operations

    def add_column(
        self,
        name: str,
        type: TypeTag | str = TypeTag.STRING,
        default: Any = None,
        unique: bool = False,
    ) -> Database:
        """Add a column; existing records receive its default.

        Raises:
            DuplicateColumn: If the name is already used.
        """
        with self._edit() as edit:
            column = edit.registry.add_column(name, type, default=default, unique=unique)
        logger.info("column_added", path=str(self.path), column=column.name, type=column.type.value)
        return self

    def add_columns(self, columns: list[Column | Mapping[str, Any] | tuple]) -> Database:
        """Add several columns in order; any invalid entry aborts the whole batch."""
        with self._edit() as edit:
            added = edit.registry.add_columns(columns)
        logger.info("columns_added", path=str(self.path), columns=[c.name for c in added])
        return self

    def edit_column(self, name: str, patch: Mapping[str, Any] | None = None, **changes: Any) -> Database:
        """Change a column's name, type, default or unique flag.

        Changes may be given as a mapping, as keywords, or both.

        Raises:
            UnknownColumn: If the column does not exist.
            DuplicateColumn: If the new name is taken by another column.
        """
        merged = {**(patch or {}), **changes}
        with self._edit() as edit:
            edit.registry.edit_column(name, merged)
        logger.info("column_edited", path=str(self.path), column=name, changes=sorted(merged))
        return self

    def delete_column(self, name: str) -> Database:
        with self._edit() as edit:
            edit.registry.delete_column(name)
        logger.info("columns_deleted", path=str(self.path), columns=[name])
        return self

    def delete_columns(self, names: list[str]) -> Database:
        """Delete several columns; an unknown name aborts the whole batch."""
        with self._edit() as edit:
            edit.registry.delete_columns(names)
        logger.info("columns_deleted", path=str(self.path), columns=list(names))
        return self

    # Record operations

    def insert(self, values: Mapping[str, Any]) -> Record:
        """Insert a record built from column defaults overlaid with ``values``.

        Each supplied key is checked for being a known column, then for its
        type, then for uniqueness, before anything is written.

        Returns:
            A copy of the stored record.

        Raises:
            UnknownColumn, TypeMismatch, UniqueConstraintViolation
        """
        if not isinstance(values, Mapping):
            raise TypeError(f"insert expects a mapping of column values, got {type(values).__name__}")
        with self._edit() as edit:
            registry = edit.registry
            registry.check_values(values)
            record = registry.build_record(values)
            for column in registry.columns():
                if (
                    column.unique
                    and column.name not in values
                    and registry.contains_value(column.name, record[column.name])
                ):
                    raise UniqueConstraintViolation(
                        f"Default {record[column.name]!r} must be a unique value in column '{column.name}'"
                    )
            edit.table.data.append(record)
        return copy.deepcopy(record)

    def update(self, values: Mapping[str, Any], conditions: Any = None) -> int:
        """Merge ``values`` into every record matching ``conditions``.

        Only the supplied keys change. Values are validated as for insert,
        with uniqueness checked against all stored records, including the
        ones about to be overwritten.

        Returns:
            Number of records updated.
        """
        if not isinstance(values, Mapping):
            raise TypeError(f"update expects a mapping of column values, got {type(values).__name__}")
        with self._edit() as edit:
            edit.registry.check_values(values)
            parsed = self._resolve_conditions(conditions, edit.registry, writing=True)
            targets = [row for row in edit.table.data if matches(row, parsed)]
            if len(targets) > 1:
                for key in values:
                    if edit.registry.get_or_raise(key).unique and values[key] is not None:
                        raise UniqueConstraintViolation(
                            f"Cannot write {values[key]!r} into unique column '{key}' of {len(targets)} records"
                        )
            for row in targets:
                row.update(copy.deepcopy(dict(values)))
            edit.changed = bool(targets) and bool(values)
        logger.debug("records_updated", path=str(self.path), count=len(targets))
        return len(targets)

    def delete(self, conditions: Any = None) -> int:
        """Remove every record matching ``conditions``.

        Returns:
            Number of records removed.
        """
        with self._edit() as edit:
            parsed = self._resolve_conditions(conditions, edit.registry, writing=True)
            kept = [row for row in edit.table.data if not matches(row, parsed)]
            removed = len(edit.table.data) - len(kept)
            edit.table.data = kept
            edit.changed = removed > 0
        logger.debug("records_deleted", path=str(self.path), count=removed)
        return removed

    def select(self, conditions: Any = None) -> list[Record]:
        """Return copies of the records matching every condition, in stored order.

        No conditions returns the whole table.
        """
        with self._lock:
            registry = ColumnRegistry(self._table)
            parsed = self._resolve_conditions(conditions, registry)
            return [copy.deepcopy(row) for row in self._table.data if matches(row, parsed)]

    def select_unique(self, conditions: Any) -> Record | None:
        """Return the first record matching conditions on unique columns.

        Raises:
            NotUniqueColumn: If a condition filters on a non-unique column.
        """
        with self._lock:
            registry = ColumnRegistry(self._table)
            parsed = self._resolve_conditions(conditions, registry)
            for condition in parsed:
                if not registry.get_or_raise(condition.column).unique:
                    raise NotUniqueColumn(f"Column '{condition.column}' must be unique")
            for row in self._table.data:
                if matches(row, parsed):
                    return copy.deepcopy(row)
            return None

    def clear(self) -> int:
        """Remove all records, keeping the schema.

        Returns:
            Number of records removed.
        """
        with self._edit() as edit:
            removed = len(edit.table.data)
            edit.table.data = []
            edit.changed = removed > 0
        logger.debug("records_cleared", path=str(self.path), count=removed)
        return removed

    def for_each(self, visitor: Callable[[Record, int], Any]) -> None:
        """Call ``visitor(record, index)`` for each record in stored order.

        The visitor receives copies; exceptions it raises propagate.
        """
        for index, row in enumerate(self.get_all()):
            visitor(row, index)

    # Persistence

    def save(self) -> None:
        """Write the current table to the snapshot file.

        Raises:
            IOFailure: If the write fails; the table is left as it was.
        """
        with self._lock:
            table = self._table.copy()
            table.statistics.last_saved_at = now_ms()
            self.storage.save(table)
            self._table = table
            self._dirty = False
        logger.debug("database_saved", path=str(self.path))

    def _autosave(self) -> None:
        # Without pending edits the snapshot on disk may be newer than ours.
        with self._lock:
            if self._dirty:
                self.save()

    def reload(self) -> None:
        """Replace the in-memory table with the snapshot on disk."""
        with self._lock:
            self._table = self.storage.load()
            self._dirty = False

    @property
    def dirty(self) -> bool:
        """Whether there are in-memory edits not yet written to disk."""
        return self._dirty

    def close(self) -> None:
        """Stop autosave and write any unsaved edits."""
        if self._autosaver is not None:
            self._autosaver.stop()
            self._autosaver = None
        if self._dirty:
            self.save()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # Internals

    @contextmanager
    def _edit(self) -> Iterator[_Edit]:
        """Run one mutation against a working copy and commit it on success."""
        with self._lock:
            base = self.storage.load() if self.config.write_through else self._table
            working = base.copy()
            edit = _Edit(table=working, registry=ColumnRegistry(working))
            yield edit
            if not edit.changed:
                self._table = base
                return
            working.statistics.last_edit_at = now_ms()
            if self.config.write_through:
                working.statistics.last_saved_at = working.statistics.last_edit_at
                self.storage.save(working)
            else:
                self._dirty = True
            self._table = working

    def _resolve_conditions(
        self, conditions: Any, registry: ColumnRegistry, writing: bool = False
    ) -> list[Condition]:
        """Normalize conditions and check they reference known columns."""
        parsed = normalize_conditions(conditions)
        if writing and not parsed and not self.config.allow_unconditional_writes:
            raise MissingConditions("update/delete require at least one condition")
        for condition in parsed:
            if condition.column not in registry:
                raise UnknownConditionColumn(
                    f"Condition references unknown column '{condition.column}'"
                )
        return parsed
