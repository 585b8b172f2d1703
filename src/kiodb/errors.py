"""Exception hierarchy for kiodb.

Every failure raised by the store derives from KiodbError. Lookup failures
also derive from KeyError and validation failures from ValueError or
TypeError, so callers can catch either the domain or the builtin class.
"""

from __future__ import annotations


class KiodbError(Exception):
    """Base exception for all kiodb failures."""


class ConfigError(KiodbError, ValueError):
    """Raised for invalid runtime configuration."""


class InvalidPath(KiodbError, ValueError):
    """Raised when a snapshot location is unusable."""


class DuplicateColumn(KiodbError, ValueError):
    """Raised when a column name is already taken."""


class UnknownColumn(KiodbError, KeyError):
    """Raised when a column is not part of the schema."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class InvalidColumnType(KiodbError, ValueError):
    """Raised when a column type is not one of the known type tags."""


class InvalidColumnPatch(KiodbError, ValueError):
    """Raised when edit_column receives keys it cannot apply."""


class TypeMismatch(KiodbError, TypeError):
    """Raised when a value's type tag disagrees with its column."""


class UniqueConstraintViolation(KiodbError, ValueError):
    """Raised when a value would repeat inside a unique column."""


class IncomparableOperands(KiodbError, TypeError):
    """Raised when an ordering operator is applied to unordered values."""


class UnknownConditionColumn(KiodbError, KeyError):
    """Raised when a condition references a column the table does not have."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class NotUniqueColumn(KiodbError, ValueError):
    """Raised when select_unique filters on a non-unique column."""


class InvalidOperator(KiodbError, ValueError):
    """Raised for comparison operators outside the supported set."""


class MissingConditions(KiodbError, ValueError):
    """Raised when an unconditional update/delete is disabled."""


class IOFailure(KiodbError, OSError):
    """Raised when a snapshot cannot be read or written."""
