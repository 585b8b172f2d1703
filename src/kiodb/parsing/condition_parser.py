"""Parser for the kiodb condition language.

The grammar only knows conjunctions of comparisons::

    age >= 18 and active == true and name != "root"

Each comparison becomes a :class:`~kiodb.types.Condition`; the result is a
plain list that the evaluator interprets structurally.
"""

from __future__ import annotations

import threading
from typing import Any

import ply.yacc as yacc

from kiodb.parsing.condition_lexer import ConditionLexer
from kiodb.types import Condition, Operator


class ConditionParser:
    """Parser for condition strings."""

    tokens = ConditionLexer.tokens

    def __init__(self) -> None:
        self.lexer = ConditionLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore

    def p_conditions_single(self, p: yacc.YaccProduction) -> None:
        """conditions : condition"""
        p[0] = [p[1]]

    def p_conditions_multiple(self, p: yacc.YaccProduction) -> None:
        """conditions : conditions AND condition"""
        p[0] = p[1] + [p[3]]

    def p_condition_comparison(self, p: yacc.YaccProduction) -> None:
        """condition : IDENTIFIER EQ value
                     | IDENTIFIER NEQ value
                     | IDENTIFIER LT value
                     | IDENTIFIER LTE value
                     | IDENTIFIER GT value
                     | IDENTIFIER GTE value"""
        p[0] = Condition(column=p[1], operator=Operator.parse(p[2]), operand=p[3])

    def p_value_scalar(self, p: yacc.YaccProduction) -> None:
        """value : INTEGER
                 | FLOAT
                 | STRING"""
        p[0] = p[1]

    def p_value_true(self, p: yacc.YaccProduction) -> None:
        """value : TRUE"""
        p[0] = True

    def p_value_false(self, p: yacc.YaccProduction) -> None:
        """value : FALSE"""
        p[0] = False

    def p_value_null(self, p: yacc.YaccProduction) -> None:
        """value : NULL"""
        p[0] = None

    def p_value_array_empty(self, p: yacc.YaccProduction) -> None:
        """value : LBRACKET RBRACKET"""
        p[0] = []

    def p_value_array(self, p: yacc.YaccProduction) -> None:
        """value : LBRACKET value_list RBRACKET"""
        p[0] = p[2]

    def p_value_list_single(self, p: yacc.YaccProduction) -> None:
        """value_list : value"""
        p[0] = [p[1]]

    def p_value_list_multiple(self, p: yacc.YaccProduction) -> None:
        """value_list : value_list COMMA value"""
        p[0] = p[1] + [p[3]]

    def p_value_object_empty(self, p: yacc.YaccProduction) -> None:
        """value : LBRACE RBRACE"""
        p[0] = {}

    def p_value_object(self, p: yacc.YaccProduction) -> None:
        """value : LBRACE pair_list RBRACE"""
        p[0] = dict(p[2])

    def p_pair_list_single(self, p: yacc.YaccProduction) -> None:
        """pair_list : pair"""
        p[0] = [p[1]]

    def p_pair_list_multiple(self, p: yacc.YaccProduction) -> None:
        """pair_list : pair_list COMMA pair"""
        p[0] = p[1] + [p[3]]

    def p_pair(self, p: yacc.YaccProduction) -> None:
        """pair : STRING COLON value"""
        p[0] = (p[1], p[3])

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (position {p.lexpos})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, start="conditions", **kwargs)

    def parse(self, data: str) -> list[Condition]:
        """Parse a condition string into a list of conditions.

        Blank input yields an empty list (matches every record).
        """
        if not data.strip():
            return []
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        return self.parser.parse(data, lexer=self.lexer.lexer)


_default_parser: ConditionParser | None = None
_default_parser_lock = threading.Lock()


def parse_conditions(data: str) -> list[Condition]:
    """Parse a condition string with a shared parser instance.

    The ply lexer and parser keep state between tokens, so calls are
    serialized.
    """
    global _default_parser
    with _default_parser_lock:
        if _default_parser is None:
            _default_parser = ConditionParser()
        return _default_parser.parse(data)
