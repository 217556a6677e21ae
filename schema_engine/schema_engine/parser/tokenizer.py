"""SQL tokenizer shared by the DDL parser and the RLS expression lint.

The tokenizer is deliberately forgiving.  It recognises identifiers (bare,
double-quoted and backtick-quoted), case-insensitive keywords, string and
numeric literals and punctuation, and discards whitespace and comments.
Characters it does not understand are emitted as single-character
punctuation tokens so the caller can decide what to do with them.  The only
failure is an unterminated quoted string or quoted identifier.

Each token records its ``start``/``end`` offsets into the source so callers
can recover verbatim source text for a run of tokens (see
:func:`source_text`).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

# Words the parser treats specially.  Everything else is an identifier.
KEYWORDS: frozenset[str] = frozenset(
    {
        "ACTION",
        "ADD",
        "ALTER",
        "ALWAYS",
        "ARRAY",
        "AS",
        "CASCADE",
        "CHECK",
        "COLLATE",
        "COLUMN",
        "COMMENT",
        "CONSTRAINT",
        "CREATE",
        "DEFAULT",
        "DEFERRABLE",
        "DELETE",
        "EXCLUDE",
        "EXISTS",
        "FOREIGN",
        "FULL",
        "GENERATED",
        "GLOBAL",
        "IF",
        "IMMEDIATE",
        "INDEX",
        "INITIALLY",
        "IS",
        "KEY",
        "LIKE",
        "LOCAL",
        "MATCH",
        "NO",
        "NOT",
        "NULL",
        "ON",
        "ONLY",
        "OR",
        "PARTIAL",
        "PRIMARY",
        "REFERENCES",
        "REPLACE",
        "RESTRICT",
        "SET",
        "SIMPLE",
        "TABLE",
        "TEMP",
        "TEMPORARY",
        "UNIQUE",
        "UNLOGGED",
        "UPDATE",
        "DEFERRED",
    }
)

# Multi-character operators kept as a single punctuation token, longest first.
_OPERATORS: tuple[str, ...] = ("->>", "::", "<=", ">=", "<>", "!=", "||", "->")


class TokenType(str, enum.Enum):
    """Lexical category of a token."""

    KEYWORD = "KEYWORD"
    IDENTIFIER = "IDENTIFIER"
    QUOTED_IDENTIFIER = "QUOTED_IDENTIFIER"
    STRING = "STRING"
    NUMBER = "NUMBER"
    PUNCTUATION = "PUNCTUATION"


@dataclass(frozen=True)
class Token:
    """A single lexical token.

    ``value`` is normalised: keywords are upper-cased, quoted identifiers
    and strings are unescaped without their quotes.  ``start``/``end`` index
    the original source text.
    """

    type: TokenType
    value: str
    start: int
    end: int
    line: int
    column: int

    @property
    def is_word(self) -> bool:
        """True for anything usable as a name (keyword or identifier)."""
        return self.type in (TokenType.KEYWORD, TokenType.IDENTIFIER, TokenType.QUOTED_IDENTIFIER)

    def is_keyword(self, *words: str) -> bool:
        return self.type == TokenType.KEYWORD and self.value in words

    def is_punct(self, *symbols: str) -> bool:
        return self.type == TokenType.PUNCTUATION and self.value in symbols


class LexError(Exception):
    """Raised when a quoted string or identifier is never closed."""

    def __init__(self, message: str, line: int, column: int) -> None:
        self.line = line
        self.column = column
        super().__init__(f"{message} at line {line}, column {column}")


class Tokenizer:
    """Single-pass scanner over a SQL source string."""

    def __init__(self, sql: str) -> None:
        self._sql = sql
        self._pos = 0
        self._line = 1
        self._line_start = 0

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        sql = self._sql
        n = len(sql)

        while self._pos < n:
            ch = sql[self._pos]

            if ch.isspace():
                self._advance(1)
                continue

            if sql.startswith("--", self._pos):
                end = sql.find("\n", self._pos)
                self._advance((n if end == -1 else end) - self._pos)
                continue

            if sql.startswith("/*", self._pos):
                end = sql.find("*/", self._pos + 2)
                self._advance((n if end == -1 else end + 2) - self._pos)
                continue

            if ch == "'":
                tokens.append(self._read_quoted("'", TokenType.STRING, "string literal"))
            elif ch == '"':
                tokens.append(self._read_quoted('"', TokenType.QUOTED_IDENTIFIER, "quoted identifier"))
            elif ch == "`":
                tokens.append(self._read_quoted("`", TokenType.QUOTED_IDENTIFIER, "quoted identifier"))
            elif ch.isalpha() or ch == "_":
                tokens.append(self._read_word())
            elif ch.isdigit() or (ch == "." and self._pos + 1 < n and sql[self._pos + 1].isdigit()):
                tokens.append(self._read_number())
            else:
                tokens.append(self._read_punctuation())

        return tokens

    # -- helpers -----------------------------------------------------------

    def _advance(self, count: int) -> None:
        """Move forward *count* characters, tracking line numbers."""
        end = self._pos + count
        newline = self._sql.rfind("\n", self._pos, end)
        if newline != -1:
            self._line += self._sql.count("\n", self._pos, end)
            self._line_start = newline + 1
        self._pos = end

    def _make(self, token_type: TokenType, value: str, start: int, line: int, column: int) -> Token:
        return Token(type=token_type, value=value, start=start, end=self._pos, line=line, column=column)

    def _read_quoted(self, quote: str, token_type: TokenType, what: str) -> Token:
        sql = self._sql
        start, line, column = self._pos, self._line, self._pos - self._line_start + 1
        i = start + 1
        parts: list[str] = []
        while True:
            close = sql.find(quote, i)
            if close == -1:
                raise LexError(f"Unterminated {what}", line, column)
            parts.append(sql[i:close])
            # A doubled quote is an escaped quote character.
            if sql.startswith(quote * 2, close):
                parts.append(quote)
                i = close + 2
                continue
            self._advance(close + 1 - start)
            return self._make(token_type, "".join(parts), start, line, column)

    def _read_word(self) -> Token:
        sql = self._sql
        start, line, column = self._pos, self._line, self._pos - self._line_start + 1
        i = start
        while i < len(sql) and (sql[i].isalnum() or sql[i] in "_$"):
            i += 1
        self._advance(i - start)
        word = sql[start:i]
        upper = word.upper()
        if upper in KEYWORDS:
            return self._make(TokenType.KEYWORD, upper, start, line, column)
        return self._make(TokenType.IDENTIFIER, word, start, line, column)

    def _read_number(self) -> Token:
        sql = self._sql
        start, line, column = self._pos, self._line, self._pos - self._line_start + 1
        i = start
        seen_dot = False
        while i < len(sql):
            c = sql[i]
            if c.isdigit():
                i += 1
            elif c == "." and not seen_dot:
                seen_dot = True
                i += 1
            elif c in "eE" and i + 1 < len(sql) and (sql[i + 1].isdigit() or sql[i + 1] in "+-"):
                i += 2
                while i < len(sql) and sql[i].isdigit():
                    i += 1
                break
            else:
                break
        self._advance(i - start)
        return self._make(TokenType.NUMBER, sql[start:i], start, line, column)

    def _read_punctuation(self) -> Token:
        start, line, column = self._pos, self._line, self._pos - self._line_start + 1
        for op in _OPERATORS:
            if self._sql.startswith(op, start):
                self._advance(len(op))
                return self._make(TokenType.PUNCTUATION, op, start, line, column)
        self._advance(1)
        return self._make(TokenType.PUNCTUATION, self._sql[start], start, line, column)


def tokenize(sql: str) -> list[Token]:
    """Tokenize *sql* into a list of tokens.

    Raises
    ------
    LexError
        If a quoted string or quoted identifier is not terminated.
    """
    return Tokenizer(sql).tokenize()


def source_text(sql: str, tokens: list[Token]) -> str:
    """Return the source text spanned by *tokens*, whitespace-collapsed.

    Comments between the tokens are kept as written; runs of whitespace are
    collapsed to a single space.
    """
    if not tokens:
        return ""
    return " ".join(sql[tokens[0].start : tokens[-1].end].split())
