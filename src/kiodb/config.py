"""Runtime configuration model for kiodb.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from kiodb.errors import ConfigError

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class DatabaseConfig:
    """Validated database configuration.

    Attributes:
        autosave_interval: Seconds between background saves; 0 disables autosave.
        write_through: Persist after every mutation (re-reading the snapshot
            first). When False, changes stay in memory until ``save()``.
        indent: JSON indentation for the snapshot file; None writes compact JSON.
        allow_unconditional_writes: Whether update/delete with no conditions
            apply to every record (True) or are refused (False).
    """

    autosave_interval: float = 0.0
    write_through: bool = True
    indent: int | None = None
    allow_unconditional_writes: bool = True

    def __post_init__(self) -> None:
        if self.autosave_interval < 0:
            raise ConfigError(
                f"autosave_interval must be >= 0, got {self.autosave_interval}"
            )
        if self.indent is not None and self.indent < 0:
            raise ConfigError(f"indent must be >= 0, got {self.indent}")

    @classmethod
    def from_env(cls) -> DatabaseConfig:
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            ConfigError: If environment values are invalid.
        """
        indent_value = os.getenv("KIODB_INDENT")
        return cls(
            autosave_interval=_parse_float(
                "KIODB_AUTOSAVE_INTERVAL", os.getenv("KIODB_AUTOSAVE_INTERVAL", "0")
            ),
            write_through=_parse_bool(
                "KIODB_WRITE_THROUGH", os.getenv("KIODB_WRITE_THROUGH", "true")
            ),
            indent=None if not indent_value else _parse_int("KIODB_INDENT", indent_value),
            allow_unconditional_writes=_parse_bool(
                "KIODB_ALLOW_UNCONDITIONAL_WRITES",
                os.getenv("KIODB_ALLOW_UNCONDITIONAL_WRITES", "true"),
            ),
        )


def _parse_float(name: str, raw_value: str) -> float:
    try:
        return float(raw_value)
    except ValueError as error:
        raise ConfigError(f"{name} must be a number, got {raw_value!r}") from error


def _parse_int(name: str, raw_value: str) -> int:
    try:
        return int(raw_value)
    except ValueError as error:
        raise ConfigError(f"{name} must be an integer, got {raw_value!r}") from error


def _parse_bool(name: str, raw_value: str) -> bool:
    """Parse a boolean environment value.

    Args:
        name: Variable name, for error messages.
        raw_value: Raw string from environment.

    Returns:
        Parsed boolean.

    Raises:
        ConfigError: If the value is not a recognised boolean word.
    """
    lowered = raw_value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw_value!r}")
