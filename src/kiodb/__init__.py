"""kiodb - A schema-enforced, single-file document store."""

from kiodb.autosave import Autosaver
from kiodb.conditions import matches, normalize_conditions
from kiodb.config import DatabaseConfig
from kiodb.database import Database
from kiodb.errors import (
    ConfigError,
    DuplicateColumn,
    IncomparableOperands,
    InvalidColumnPatch,
    InvalidColumnType,
    InvalidOperator,
    InvalidPath,
    IOFailure,
    KiodbError,
    MissingConditions,
    NotUniqueColumn,
    TypeMismatch,
    UniqueConstraintViolation,
    UnknownColumn,
    UnknownConditionColumn,
)
from kiodb.parsing import ConditionParser, parse_conditions
from kiodb.paths import SNAPSHOT_SUFFIX, is_invalid_path
from kiodb.schema import ColumnRegistry
from kiodb.storage import SnapshotStorage
from kiodb.table import Statistics, Table
from kiodb.types import Column, Condition, Operator, TypeTag

__all__ = [
    # Main API
    "Database",
    "DatabaseConfig",
    "Autosaver",
    # Schema and records
    "Column",
    "ColumnRegistry",
    "Table",
    "Statistics",
    "TypeTag",
    # Conditions
    "Condition",
    "Operator",
    "ConditionParser",
    "matches",
    "normalize_conditions",
    "parse_conditions",
    # Storage
    "SnapshotStorage",
    "SNAPSHOT_SUFFIX",
    "is_invalid_path",
    # Errors
    "KiodbError",
    "ConfigError",
    "InvalidPath",
    "DuplicateColumn",
    "UnknownColumn",
    "InvalidColumnType",
    "InvalidColumnPatch",
    "TypeMismatch",
    "UniqueConstraintViolation",
    "IncomparableOperands",
    "UnknownConditionColumn",
    "NotUniqueColumn",
    "InvalidOperator",
    "MissingConditions",
    "IOFailure",
]

__version__ = "0.1.0"
