"""Lexer for the kiodb condition language."""

import re

import ply.lex as lex

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0"}


class ConditionLexer:
    """Lexer for tokenizing conjunctive condition strings."""

    # Reserved keywords
    reserved = {
        "and": "AND",
        "true": "TRUE",
        "false": "FALSE",
        "null": "NULL",
    }

    # Words and symbols that belong to a richer expression language than ours
    unsupported = {
        "or": "disjunction ('or') is not supported; conditions are always combined with 'and'",
        "not": "negation ('not') is not supported; use '!=' instead",
    }

    # Token list
    tokens = [
        "IDENTIFIER",
        "INTEGER",
        "FLOAT",
        "STRING",
        "COMMA",
        "COLON",
        "LBRACKET",
        "RBRACKET",
        "LBRACE",
        "RBRACE",
        "EQ",
        "NEQ",
        "LT",
        "LTE",
        "GT",
        "GTE",
    ] + list(reserved.values())

    # Simple tokens
    t_COMMA = r","
    t_COLON = r":"
    t_LBRACKET = r"\["
    t_RBRACKET = r"\]"
    t_LBRACE = r"\{"
    t_RBRACE = r"\}"
    t_EQ = r"==|="
    t_NEQ = r"!="
    t_LTE = r"<="
    t_LT = r"<"
    t_GTE = r">="
    t_GT = r">"

    t_ignore = " \t\r\n"

    def __init__(self) -> None:
        self.lexer: lex.Lexer = None  # type: ignore

    def t_AMPERSANDS(self, t: lex.LexToken) -> lex.LexToken:
        r"&&"
        t.type = "AND"
        return t

    def t_PIPES(self, t: lex.LexToken) -> None:
        r"\|\|"
        raise SyntaxError(
            f"{self.unsupported['or']} (position {t.lexpos})"
        )

    def t_PAREN(self, t: lex.LexToken) -> None:
        r"[()]"
        raise SyntaxError(
            f"Grouping with parentheses is not supported (position {t.lexpos})"
        )

    def t_FLOAT(self, t: lex.LexToken) -> lex.LexToken:
        r"-?\d+\.\d+(?:[eE][-+]?\d+)?"
        t.value = float(t.value)
        return t

    def t_INTEGER(self, t: lex.LexToken) -> lex.LexToken:
        r"-?\d+"
        t.value = int(t.value)
        return t

    def t_STRING(self, t: lex.LexToken) -> lex.LexToken:
        r""""([^"\\]|\\.)*"|'([^'\\]|\\.)*'"""
        # Remove quotes and handle escapes
        t.value = re.sub(
            r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), t.value[1:-1]
        )
        return t

    def t_BACKTICK_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"`[^`]+`"
        # Strip backticks; always an identifier, bypassing keyword lookup
        t.value = t.value[1:-1]
        t.type = "IDENTIFIER"
        return t

    def t_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"[a-zA-Z_][a-zA-Z0-9_]*"
        lowered = t.value.lower()
        if lowered in self.unsupported:
            raise SyntaxError(f"{self.unsupported[lowered]} (position {t.lexpos})")
        t.type = self.reserved.get(lowered, "IDENTIFIER")
        return t

    def t_error(self, t: lex.LexToken) -> None:
        raise SyntaxError(f"Illegal character '{t.value[0]}' at position {t.lexpos}")

    def build(self, **kwargs) -> None:  # type: ignore
        """Build the lexer."""
        self.lexer = lex.lex(module=self, **kwargs)

    def input(self, data: str) -> None:
        """Set the input string to tokenize."""
        self.lexer.input(data)

    def token(self) -> lex.LexToken | None:
        """Return the next token."""
        return self.lexer.token()

    def tokenize(self, data: str) -> list[lex.LexToken]:
        """Tokenize the input and return all tokens."""
        self.input(data)
        tokens = []
        while True:
            tok = self.token()
            if tok is None:
                break
            tokens.append(tok)
        return tokens


# Module-level set of reserved keywords (lowercase) for use by other modules
RESERVED_KEYWORDS: frozenset[str] = frozenset(
    list(ConditionLexer.reserved) + list(ConditionLexer.unsupported)
)


def escape_if_keyword(name: str) -> str:
    """Wrap a column name in backticks if it is not a plain identifier."""
    if name.lower() in RESERVED_KEYWORDS or not name.isidentifier():
        return f"`{name}`"
    return name
