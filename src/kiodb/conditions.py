"""Conjunctive condition evaluation over records.

Conditions are interpreted structurally: each ``(column, operator, operand)``
triple is dispatched to a comparison function. Nothing is ever rendered to a
string and evaluated.
"""

from __future__ import annotations

import operator as _op
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Union

from kiodb.errors import IncomparableOperands, UnknownConditionColumn
from kiodb.types import OPERATOR_TOKENS, Condition, Operator, TypeTag, type_tag_of

ConditionInput = Union[Condition, Mapping[str, Any], tuple, str]

_ORDERING: dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.GT: _op.gt,
    Operator.LT: _op.lt,
    Operator.GTE: _op.ge,
    Operator.LTE: _op.le,
}

_ORDERED_TAGS = (TypeTag.NUMBER, TypeTag.STRING)


def values_equal(left: Any, right: Any) -> bool:
    """Deep equality that never conflates values of different type tags.

    ``True == 1`` holds in Python but not here; lists and dicts are compared
    element by element with the same rule.
    """
    if type_tag_of(left) is not type_tag_of(right):
        return False
    if isinstance(left, list) and isinstance(right, list):
        return len(left) == len(right) and all(
            values_equal(a, b) for a, b in zip(left, right)
        )
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(
            values_equal(left[k], right[k]) for k in left
        )
    if isinstance(left, (list, dict)) or isinstance(right, (list, dict)):
        return False
    return left == right


def compare(value: Any, operator: Operator, operand: Any) -> bool:
    """Apply one comparison to a record value.

    Raises:
        IncomparableOperands: If an ordering operator is applied to values
            that are not both numbers or both strings.
    """
    if operator is Operator.EQ:
        return values_equal(value, operand)
    if operator is Operator.NEQ:
        return not values_equal(value, operand)

    operand_tag = type_tag_of(operand)
    if operand_tag not in _ORDERED_TAGS:
        raise IncomparableOperands(
            f"Cannot order by {operand!r}: operand must be a number or a string"
        )
    # null never satisfies an ordering
    if value is None:
        return False
    value_tag = type_tag_of(value)
    if value_tag is not operand_tag:
        raise IncomparableOperands(
            f"Cannot compare {value_tag.value} {value!r} "
            f"{operator.value} {operand_tag.value} {operand!r}"
        )
    return _ORDERING[operator](value, operand)


def to_condition(item: ConditionInput) -> Condition:
    """Convert one condition in any accepted form into a Condition."""
    if isinstance(item, Condition):
        return item
    if isinstance(item, Mapping):
        return Condition(
            column=item["column"],
            operator=Operator.parse(item.get("operator", "==")),
            operand=item.get("operand"),
        )
    if isinstance(item, tuple) and len(item) == 3:
        column, op, operand = item
        return Condition(column=column, operator=Operator.parse(op), operand=operand)
    raise TypeError(f"Cannot interpret {item!r} as a condition")


def _is_single_tuple(item: Any) -> bool:
    return (
        isinstance(item, tuple)
        and len(item) == 3
        and isinstance(item[0], str)
        and (isinstance(item[1], Operator) or (isinstance(item[1], str) and item[1] in OPERATOR_TOKENS))
    )


def normalize_conditions(
    conditions: ConditionInput | Iterable[ConditionInput] | None,
) -> list[Condition]:
    """Turn any accepted condition input into a list of Condition.

    Accepts None (no conditions), a condition-language string, a single
    Condition, mapping or triple, or an iterable of those.
    """
    if conditions is None:
        return []
    if isinstance(conditions, str):
        from kiodb.parsing import parse_conditions

        return parse_conditions(conditions)
    if isinstance(conditions, (Condition, Mapping)) or _is_single_tuple(conditions):
        return [to_condition(conditions)]  # type: ignore[arg-type]
    result: list[Condition] = []
    for item in conditions:  # type: ignore[union-attr]
        if isinstance(item, str):
            from kiodb.parsing import parse_conditions

            result.extend(parse_conditions(item))
        else:
            result.append(to_condition(item))
    return result


def matches(record: Mapping[str, Any], conditions: Iterable[Condition]) -> bool:
    """Return True iff every condition holds for the record.

    An empty sequence matches every record.

    Raises:
        UnknownConditionColumn: If a condition names a key the record lacks.
        IncomparableOperands: If an ordering comparison mixes types.
    """
    for condition in conditions:
        if condition.column not in record:
            raise UnknownConditionColumn(
                f"Condition references unknown column '{condition.column}'"
            )
        if not compare(record[condition.column], condition.operator, condition.operand):
            return False
    return True
