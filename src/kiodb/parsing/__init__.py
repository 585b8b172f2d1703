"""Parsing module for the condition language."""

from kiodb.parsing.condition_lexer import ConditionLexer, escape_if_keyword
from kiodb.parsing.condition_parser import ConditionParser, parse_conditions

__all__ = [
    "ConditionLexer",
    "ConditionParser",
    "escape_if_keyword",
    "parse_conditions",
]
