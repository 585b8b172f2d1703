"""Tests for the condition language lexer and parser."""

import threading

import pytest

from kiodb.parsing import escape_if_keyword
from kiodb.parsing.condition_lexer import ConditionLexer
from kiodb.parsing.condition_parser import ConditionParser, parse_conditions
from kiodb.types import Condition, Operator


class TestConditionLexer:
    """Tests for the condition lexer."""

    def test_tokenize_comparison(self):
        """Test tokenizing a simple comparison."""
        lexer = ConditionLexer()
        lexer.build()

        tokens = lexer.tokenize("age >= 18")
        token_types = [t.type for t in tokens]

        assert token_types == ["IDENTIFIER", "GTE", "INTEGER"]

    def test_tokenize_conjunction(self):
        """Both 'and' and '&&' produce AND."""
        lexer = ConditionLexer()
        lexer.build()

        tokens = lexer.tokenize('a == 1 and b != "x" && c < 2.5')
        token_types = [t.type for t in tokens]

        assert token_types == [
            "IDENTIFIER", "EQ", "INTEGER", "AND",
            "IDENTIFIER", "NEQ", "STRING", "AND",
            "IDENTIFIER", "LT", "FLOAT",
        ]

    def test_keywords_case_insensitive(self):
        lexer = ConditionLexer()
        lexer.build()

        tokens = lexer.tokenize("a == TRUE AND b == Null")
        assert [t.type for t in tokens] == [
            "IDENTIFIER", "EQ", "TRUE", "AND", "IDENTIFIER", "EQ", "NULL",
        ]

    def test_negative_numbers(self):
        lexer = ConditionLexer()
        lexer.build()

        tokens = lexer.tokenize("t > -3 and u < -0.5")
        values = [t.value for t in tokens if t.type in ("INTEGER", "FLOAT")]
        assert values == [-3, -0.5]

    def test_backtick_identifier(self):
        lexer = ConditionLexer()
        lexer.build()

        tokens = lexer.tokenize("`and` == 1")
        assert tokens[0].type == "IDENTIFIER"
        assert tokens[0].value == "and"

    def test_illegal_character(self):
        lexer = ConditionLexer()
        lexer.build()

        with pytest.raises(SyntaxError, match="Illegal character"):
            lexer.tokenize("a == 1 ; drop")


class TestConditionParser:
    """Tests for the condition parser."""

    @pytest.fixture
    def parser(self):
        return ConditionParser()

    def test_single_comparison(self, parser):
        assert parser.parse("age > 18") == [Condition("age", Operator.GT, 18)]

    def test_all_operators(self, parser):
        result = parser.parse("a == 1 and b = 2 and c != 3 and d < 4 and e <= 5 and f > 6 and g >= 7")
        assert [c.operator for c in result] == [
            Operator.EQ,
            Operator.EQ,
            Operator.NEQ,
            Operator.LT,
            Operator.LTE,
            Operator.GT,
            Operator.GTE,
        ]
        assert [c.operand for c in result] == [1, 2, 3, 4, 5, 6, 7]

    def test_literals(self, parser):
        result = parser.parse(
            "a == true and b == false and c == null and d == 'single' and e == \"double\""
        )
        assert [c.operand for c in result] == [True, False, None, "single", "double"]

    def test_string_escapes(self, parser):
        result = parser.parse(r'name == "say \"hi\"\n" and city == "Zürich"')
        assert result[0].operand == 'say "hi"\n'
        assert result[1].operand == "Zürich"

    def test_array_and_object_literals(self, parser):
        result = parser.parse('tags == ["a", 1, true] and meta == {"k": [1, 2], "n": null} and e == [] and o == {}')
        assert result[0].operand == ["a", 1, True]
        assert result[1].operand == {"k": [1, 2], "n": None}
        assert result[2].operand == []
        assert result[3].operand == {}

    def test_blank_input(self, parser):
        assert parser.parse("") == []
        assert parser.parse("   ") == []

    def test_disjunction_rejected(self, parser):
        with pytest.raises(SyntaxError, match="disjunction"):
            parser.parse("a == 1 or b == 2")
        with pytest.raises(SyntaxError, match="disjunction"):
            parser.parse("a == 1 || b == 2")

    def test_grouping_rejected(self, parser):
        with pytest.raises(SyntaxError, match="parentheses"):
            parser.parse("(a == 1)")

    def test_negation_rejected(self, parser):
        with pytest.raises(SyntaxError, match="negation"):
            parser.parse("not a == 1")

    def test_incomplete_input(self, parser):
        with pytest.raises(SyntaxError, match="end of input"):
            parser.parse("a ==")

    def test_missing_operator(self, parser):
        with pytest.raises(SyntaxError):
            parser.parse("a 1")

    def test_parser_is_reusable_after_error(self, parser):
        with pytest.raises(SyntaxError):
            parser.parse("a == ")
        assert parser.parse("a == 1") == [Condition("a", Operator.EQ, 1)]

    def test_shared_parser(self):
        assert parse_conditions("x <= 2") == [Condition("x", Operator.LTE, 2)]


class TestEscapeIfKeyword:
    """Tests for column name quoting."""

    def test_plain_name(self):
        assert escape_if_keyword("age") == "age"

    def test_keyword(self):
        assert escape_if_keyword("and") == "`and`"
        assert escape_if_keyword("NULL") == "`NULL`"

    def test_non_identifier(self):
        assert escape_if_keyword("first name") == "`first name`"


class TestSharedParser:
    """parse_conditions is safe to call from several threads."""

    def test_shared_parser_across_threads(self):
        errors = []

        def worker(n):
            try:
                for _ in range(50):
                    text = f"col{n} == {n} and other >= {n}.5"
                    assert parse_conditions(text) == [
                        Condition(f"col{n}", Operator.EQ, n),
                        Condition("other", Operator.GTE, n + 0.5),
                    ]
            except Exception as error:
                errors.append(error)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert errors == []
