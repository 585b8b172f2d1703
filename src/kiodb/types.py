"""Value model for kiodb tables: type tags, columns and conditions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from kiodb.errors import InvalidColumnType, InvalidOperator


class TypeTag(Enum):
    """Closed set of value categories a column can hold."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"

    @classmethod
    def parse(cls, value: TypeTag | str) -> TypeTag:
        """Return the tag for a tag or its name.

        Raises:
            InvalidColumnType: If the name is not a known tag.
        """
        if isinstance(value, TypeTag):
            return value
        try:
            return TYPE_TAG_NAMES[str(value).lower()]
        except KeyError:
            known = ", ".join(TYPE_TAG_NAMES)
            raise InvalidColumnType(
                f"Unknown column type '{value}' (expected one of: {known})"
            ) from None


# Mapping from type name strings to TypeTag enum values
TYPE_TAG_NAMES: dict[str, TypeTag] = {tag.value: tag for tag in TypeTag}


def type_tag_of(value: Any) -> TypeTag:
    """Return the type tag describing a Python value.

    bool is checked before int because bool subclasses int. None, lists and
    dicts (and anything else) fall into the object category.
    """
    if isinstance(value, bool):
        return TypeTag.BOOLEAN
    if isinstance(value, (int, float)):
        return TypeTag.NUMBER
    if isinstance(value, str):
        return TypeTag.STRING
    return TypeTag.OBJECT


def is_json_value(value: Any) -> bool:
    """Return whether a value survives a JSON snapshot unchanged.

    Lists and dicts must hold JSON values all the way down, and dict keys
    must be strings. Anything else is rejected.
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return True
    if isinstance(value, list):
        return all(is_json_value(item) for item in value)
    if isinstance(value, dict):
        return all(
            isinstance(key, str) and is_json_value(item) for key, item in value.items()
        )
    return False


class Operator(Enum):
    """Comparison operators usable in a condition."""

    EQ = "=="
    NEQ = "!="
    GT = ">"
    LT = "<"
    GTE = ">="
    LTE = "<="

    @property
    def is_ordering(self) -> bool:
        return self not in (Operator.EQ, Operator.NEQ)

    @classmethod
    def parse(cls, value: Operator | str) -> Operator:
        """Return the operator for an operator or its token.

        Raises:
            InvalidOperator: If the token is not supported.
        """
        if isinstance(value, Operator):
            return value
        try:
            return OPERATOR_TOKENS[value]
        except (KeyError, TypeError):
            supported = ", ".join(op.value for op in Operator)
            raise InvalidOperator(
                f"Unsupported operator {value!r} (expected one of: {supported})"
            ) from None


OPERATOR_TOKENS: dict[str, Operator] = {op.value: op for op in Operator}
# Single '=' is accepted as equality, as in the condition language.
OPERATOR_TOKENS["="] = Operator.EQ


@dataclass
class Column:
    """A typed, named, optionally unique and defaulted field definition."""

    name: str
    type: TypeTag = TypeTag.STRING
    default: Any = None
    unique: bool = False

    def accepts(self, value: Any) -> bool:
        """Return whether a value carries this column's type tag.

        Object columns only take JSON values (null, lists and dicts).
        """
        if type_tag_of(value) is not self.type:
            return False
        return self.type is not TypeTag.OBJECT or is_json_value(value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "default": self.default,
            "unique": self.unique,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Column:
        """Build a column from its snapshot form.

        Also accepts the nested ``extra`` mapping used by column batches:
        ``{"name": ..., "type": ..., "extra": {"default": ..., "unique": ...}}``.
        """
        extra = data.get("extra") or {}
        return cls(
            name=data["name"],
            type=TypeTag.parse(data.get("type", TypeTag.STRING)),
            default=data.get("default", extra.get("default")),
            unique=bool(data.get("unique", extra.get("unique", False))),
        )


@dataclass(frozen=True)
class Condition:
    """A single comparison ``column <operator> operand``."""

    column: str
    operator: Operator
    operand: Any

    def __str__(self) -> str:
        return f"{self.column} {self.operator.value} {self.operand!r}"
