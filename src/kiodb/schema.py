"""Column registry: schema management for a table."""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from typing import Any

from kiodb.conditions import values_equal
from kiodb.errors import (
    DuplicateColumn,
    InvalidColumnPatch,
    TypeMismatch,
    UniqueConstraintViolation,
    UnknownColumn,
)
from kiodb.table import Record, Table
from kiodb.types import Column, TypeTag, is_json_value, type_tag_of

EDITABLE_FIELDS = frozenset({"name", "type", "default", "unique"})


def unique_key(value: Any) -> tuple[str, Any]:
    """Return a hashable key under which equal values collide.

    Keys follow the same rules as condition equality: numbers share a key
    regardless of int/float, booleans never collide with numbers, and lists
    and dicts are keyed element by element.
    """
    tag = type_tag_of(value)
    if isinstance(value, list):
        return (tag.value, ("list", tuple(unique_key(item) for item in value)))
    if isinstance(value, dict):
        items = sorted((key, unique_key(item)) for key, item in value.items())
        return (tag.value, ("dict", tuple(items)))
    return (tag.value, value)


def _describe(value: Any) -> str:
    if is_json_value(value):
        return type_tag_of(value).value
    return f"{type(value).__name__} (not a JSON value)"


def _check_name(name: Any) -> None:
    if not isinstance(name, str) or not name:
        raise ValueError(f"Column name must be a non-empty string, got {name!r}")


def _coerce_column(entry: Column | Mapping[str, Any] | tuple) -> Column:
    """Turn one add_columns entry into a Column."""
    if isinstance(entry, Column):
        return Column(entry.name, TypeTag.parse(entry.type), entry.default, entry.unique)
    if isinstance(entry, Mapping):
        return Column.from_dict(dict(entry))
    if isinstance(entry, tuple):
        name, *rest = entry
        type_tag = TypeTag.parse(rest[0]) if rest else TypeTag.STRING
        return Column(name, type_tag, *rest[1:])
    raise TypeError(f"Cannot interpret {entry!r} as a column definition")


class ColumnRegistry:
    """Ordered column definitions of one table.

    The registry works on the table it is given and keeps every record's key
    set equal to the column names. Each operation validates completely before
    it touches the table, so a failed call leaves the table unchanged.
    """

    def __init__(self, table: Table) -> None:
        self.table = table

    # -- lookup --------------------------------------------------------------

    def column(self, name: str) -> Column | None:
        """Return the column with the given name, if any."""
        for column in self.table.columns:
            if column.name == name:
                return column
        return None

    def get_or_raise(self, name: str) -> Column:
        """Return a column by name.

        Raises:
            UnknownColumn: If the table has no such column.
        """
        column = self.column(name)
        if column is None:
            raise UnknownColumn(f"Unknown column: {name}")
        return column

    def column_names(self) -> list[str]:
        """List column names in schema order."""
        return [column.name for column in self.table.columns]

    def columns(self) -> list[Column]:
        return list(self.table.columns)

    def __contains__(self, name: str) -> bool:
        return self.column(name) is not None

    # -- schema changes ------------------------------------------------------

    def add_column(
        self,
        name: str,
        type: TypeTag | str = TypeTag.STRING,
        default: Any = None,
        unique: bool = False,
    ) -> Column:
        """Append a column and give every existing record its default."""
        column = Column(name=name, type=TypeTag.parse(type), default=default, unique=unique)
        self._validate_new_column(column, self.column_names())
        self._append(column)
        return column

    def add_columns(self, entries: Iterable[Column | Mapping[str, Any] | tuple]) -> list[Column]:
        """Add several columns in order, all or nothing.

        Entries may be Column objects, mappings (``name``, ``type``,
        ``default``, ``unique`` or a nested ``extra`` mapping) or tuples in
        add_column argument order.
        """
        if isinstance(entries, (str, bytes, Mapping)):
            raise TypeError("add_columns expects a list of column definitions")
        pending: list[Column] = []
        names = self.column_names()
        for entry in entries:
            column = _coerce_column(entry)
            self._validate_new_column(column, names)
            names.append(column.name)
            pending.append(column)
        for column in pending:
            self._append(column)
        return pending

    def edit_column(self, name: str, patch: Mapping[str, Any]) -> Column:
        """Change a column's name, type, default or unique flag.

        Renaming renames the key in every record. A new default replaces the
        value only in records still holding the old default.
        """
        current = self.get_or_raise(name)
        unknown = set(patch) - EDITABLE_FIELDS
        if unknown:
            raise InvalidColumnPatch(
                f"Cannot edit {', '.join(sorted(unknown))} of column '{name}'"
            )

        new_name = patch.get("name", name)
        _check_name(new_name)
        if new_name != name and new_name in self:
            raise DuplicateColumn(f"Column '{new_name}' already exists")
        updated = Column(
            name=new_name,
            type=TypeTag.parse(patch.get("type", current.type)),
            default=patch.get("default", current.default),
            unique=bool(patch.get("unique", current.unique)),
        )
        if updated.default is not None and not updated.accepts(updated.default):
            raise TypeMismatch(
                f"Default {updated.default!r} of column '{new_name}' must be of type {updated.type.value}"
            )

        values = [row[name] for row in self.table.data]
        if "default" in patch:
            values = [
                copy.deepcopy(updated.default) if values_equal(value, current.default) else value
                for value in values
            ]
        for value in values:
            if value is not None and not updated.accepts(value):
                raise TypeMismatch(
                    f"Column '{name}' holds {value!r}, which is not of type {updated.type.value}"
                )
        if updated.unique:
            self._check_distinct(new_name, values)

        for row, value in zip(self.table.data, values):
            if new_name != name:
                renamed = {(new_name if key == name else key): v for key, v in row.items()}
                row.clear()
                row.update(renamed)
            row[new_name] = value
        index = self.table.columns.index(current)
        self.table.columns[index] = updated
        return updated

    def delete_column(self, name: str) -> None:
        """Remove a column and its key from every record."""
        self.delete_columns([name])

    def delete_columns(self, names: Iterable[str]) -> None:
        """Remove several columns, all or nothing."""
        if isinstance(names, str):
            raise TypeError("delete_columns expects a list of column names")
        targets = list(dict.fromkeys(names))
        for name in targets:
            self.get_or_raise(name)
        doomed = set(targets)
        self.table.columns = [c for c in self.table.columns if c.name not in doomed]
        for row in self.table.data:
            for name in targets:
                del row[name]

    # -- record validation ---------------------------------------------------

    def check_values(self, values: Mapping[str, Any]) -> None:
        """Validate supplied values for insert or update.

        Each key is checked in turn for being a known column, for its type
        and, for unique columns, against every stored record.
        """
        for key, value in values.items():
            column = self.column(key)
            if column is None:
                raise UnknownColumn(f"Unknown column: {key}")
            if not column.accepts(value):
                raise TypeMismatch(
                    f"{key} type must be {column.type.value}, got {_describe(value)}"
                )
            if column.unique and self.contains_value(key, value):
                raise UniqueConstraintViolation(
                    f"{value!r} must be a unique value in column '{key}'"
                )

    def contains_value(self, name: str, value: Any) -> bool:
        """Return whether any record holds the value in the given column.

        None never counts as a stored value.
        """
        if value is None:
            return False
        key = unique_key(value)
        return any(
            row.get(name) is not None and unique_key(row.get(name)) == key
            for row in self.table.data
        )

    def build_record(self, values: Mapping[str, Any]) -> Record:
        """Return a record of column defaults overlaid with the values."""
        record: Record = {
            column.name: copy.deepcopy(column.default) for column in self.table.columns
        }
        record.update(copy.deepcopy(dict(values)))
        return record

    # -- helpers -------------------------------------------------------------

    def _validate_new_column(self, column: Column, existing: list[str]) -> None:
        _check_name(column.name)
        if column.name in existing:
            raise DuplicateColumn(f"Column '{column.name}' already exists")
        if column.default is not None and not column.accepts(column.default):
            raise TypeMismatch(
                f"Default {column.default!r} of column '{column.name}' must be of type {column.type.value}"
            )
        if column.unique and column.default is not None and len(self.table.data) > 1:
            raise UniqueConstraintViolation(
                f"Cannot add unique column '{column.name}' with default {column.default!r} "
                f"to {len(self.table.data)} existing records"
            )

    def _append(self, column: Column) -> None:
        self.table.columns.append(column)
        for row in self.table.data:
            row[column.name] = copy.deepcopy(column.default)

    @staticmethod
    def _check_distinct(name: str, values: list[Any]) -> None:
        seen: set[tuple[str, Any]] = set()
        for value in values:
            if value is None:
                continue
            key = unique_key(value)
            if key in seen:
                raise UniqueConstraintViolation(
                    f"{value!r} appears more than once in unique column '{name}'"
                )
            seen.add(key)
