"""DDL parser: SQL text -> ordered list of :class:`ParsedTable` records.

Supports the ``CREATE TABLE`` subset needed for schema interchange:
columns, raw type text (parameters included), nullability, defaults,
primary/unique/foreign-key constraints at column and table level.
``ALTER TABLE ... ADD`` (constraints and columns) and ``COMMENT ON
TABLE/COLUMN`` are folded onto tables parsed earlier in the same input so
that generated SQL re-parses to the same model.

Parsing favours a lossy-but-successful result over rejection.  Column-level
tokens that are not recognised constraint clauses are preserved verbatim in
the column's raw type text, and unsupported statements are skipped.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from schema_engine.models.schema import ReferentialAction
from schema_engine.parser.tokenizer import Token, TokenType, source_text, tokenize

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ParseError(Exception):
    """Raised when non-empty input contains no ``CREATE TABLE`` statement."""

    def __init__(self, sql_fragment: str, reason: str) -> None:
        self.sql_fragment = sql_fragment
        self.reason = reason
        super().__init__(f"Failed to parse SQL: {reason}")


# ---------------------------------------------------------------------------
# Intermediate representation
# ---------------------------------------------------------------------------


class ParsedForeignKey(BaseModel):
    """A ``REFERENCES`` clause as written.  ``field`` is ``None`` when omitted."""

    table: str
    field: str | None = None
    on_delete: ReferentialAction | None = None
    on_update: ReferentialAction | None = None
    constraint_name: str | None = None


class ParsedColumn(BaseModel):
    """One column definition with its raw type text and constraint flags."""

    name: str
    raw_type: str = ""
    nullable: bool = True
    primary_key: bool = False
    unique: bool = False
    default_value: str | None = None
    foreign_key: ParsedForeignKey | None = None
    comment: str | None = None
    explicit_null: bool = Field(
        default=False,
        description="True when the column says NULL explicitly; a table-level PRIMARY KEY then keeps it nullable.",
    )


class ParsedTable(BaseModel):
    """A ``CREATE TABLE`` statement in declaration order."""

    name: str
    schema_name: str | None = None
    columns: list[ParsedColumn] = Field(default_factory=list)
    comment: str | None = None

    def get_column(self, name: str) -> ParsedColumn | None:
        for column in self.columns:
            if column.name == name:
                return column
        folded = name.casefold()
        for column in self.columns:
            if column.name.casefold() == folded:
                return column
        return None


# ---------------------------------------------------------------------------
# Token stream
# ---------------------------------------------------------------------------


class _TokenStream:
    """Cursor over a token list with small look-ahead helpers."""

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._i = 0

    def at_end(self) -> bool:
        return self._i >= len(self._tokens)

    def peek(self, offset: int = 0) -> Token | None:
        i = self._i + offset
        return self._tokens[i] if i < len(self._tokens) else None

    def next(self) -> Token:
        tok = self._tokens[self._i]
        self._i += 1
        return tok

    def peek_keyword(self, *words: str, offset: int = 0) -> bool:
        tok = self.peek(offset)
        return tok is not None and tok.is_keyword(*words)

    def peek_punct(self, *symbols: str, offset: int = 0) -> bool:
        tok = self.peek(offset)
        return tok is not None and tok.is_punct(*symbols)

    def peek_word(self, offset: int = 0) -> bool:
        tok = self.peek(offset)
        return tok is not None and tok.is_word

    def accept_keyword(self, *words: str) -> Token | None:
        if self.peek_keyword(*words):
            return self.next()
        return None

    def read_parenthesized(self, *, keep_parens: bool = False) -> list[Token]:
        """Consume a balanced ``( ... )`` group starting at the cursor.

        An unbalanced group runs to the end of the stream.
        """
        opening = self.next()
        depth = 1
        inner: list[Token] = []
        while not self.at_end():
            tok = self.next()
            if tok.is_punct("("):
                depth += 1
            elif tok.is_punct(")"):
                depth -= 1
                if depth == 0:
                    return [opening, *inner, tok] if keep_parens else inner
            inner.append(tok)
        return [opening, *inner] if keep_parens else inner

    def rest(self) -> list[Token]:
        remaining = self._tokens[self._i :]
        self._i = len(self._tokens)
        return remaining


def _split_statements(tokens: list[Token]) -> list[list[Token]]:
    statements: list[list[Token]] = []
    current: list[Token] = []
    for tok in tokens:
        if tok.is_punct(";"):
            if current:
                statements.append(current)
            current = []
        else:
            current.append(tok)
    if current:
        statements.append(current)
    return statements


def _split_top_level(tokens: list[Token], separator: str = ",") -> list[list[Token]]:
    """Split *tokens* on *separator* outside any bracket nesting."""
    parts: list[list[Token]] = []
    current: list[Token] = []
    depth = 0
    for tok in tokens:
        if tok.is_punct("(", "["):
            depth += 1
        elif tok.is_punct(")", "]"):
            depth -= 1
        elif depth == 0 and tok.is_punct(separator):
            parts.append(current)
            current = []
            continue
        current.append(tok)
    parts.append(current)
    return [p for p in parts if p]


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class DDLParser:
    """Recursive-descent parser over the token list of one SQL document."""

    def __init__(self, sql: str) -> None:
        self._sql = sql

    def parse(self) -> list[ParsedTable]:
        """Parse every statement and return tables in declaration order.

        Raises
        ------
        LexError
            If a quoted string or identifier is unterminated.
        ParseError
            If the input has content but no ``CREATE TABLE`` statement.
        """
        if not self._sql.strip():
            return []

        tokens = tokenize(self._sql)
        statements = _split_statements(tokens)
        if not statements:
            return []

        tables: list[ParsedTable] = []
        for statement in statements:
            self._parse_statement(statement, tables)

        if not tables:
            raise ParseError(
                sql_fragment=source_text(self._sql, statements[0])[:200],
                reason="no CREATE TABLE statement found",
            )
        return tables

    # -- statements --------------------------------------------------------

    def _parse_statement(self, statement: list[Token], tables: list[ParsedTable]) -> None:
        s = _TokenStream(statement)
        if s.accept_keyword("CREATE"):
            table = self._parse_create_table(s)
            if table is not None:
                tables.append(table)
                return
        elif s.accept_keyword("ALTER"):
            if self._parse_alter_table(s, tables):
                return
        elif s.accept_keyword("COMMENT"):
            if self._parse_comment(s, tables):
                return
        logger.debug("Skipping unsupported statement: %s", source_text(self._sql, statement)[:80])

    def _parse_create_table(self, s: _TokenStream) -> ParsedTable | None:
        if s.accept_keyword("OR"):
            s.accept_keyword("REPLACE")
        s.accept_keyword("GLOBAL", "LOCAL")
        s.accept_keyword("TEMP", "TEMPORARY", "UNLOGGED")
        if not s.accept_keyword("TABLE"):
            return None
        if s.peek_keyword("IF") and s.peek_keyword("NOT", offset=1):
            s.next()
            s.next()
            s.accept_keyword("EXISTS")

        parts = self._read_qualified_name(s)
        if parts is None or not s.peek_punct("("):
            return None

        table = ParsedTable(name=parts[-1], schema_name=".".join(parts[:-1]) or None)
        for element in _split_top_level(s.read_parenthesized()):
            self._parse_element(element, table)
        # Trailing table options (ENGINE=..., WITH (...), PARTITION BY ...) are ignored.
        return table

    def _parse_alter_table(self, s: _TokenStream, tables: list[ParsedTable]) -> bool:
        if not s.accept_keyword("TABLE"):
            return False
        if s.peek_keyword("IF") and s.peek_keyword("EXISTS", offset=1):
            s.next()
            s.next()
        s.accept_keyword("ONLY")
        parts = self._read_qualified_name(s)
        if parts is None:
            return False

        table = _find_table(tables, parts[-1])
        if table is None:
            logger.warning("ALTER TABLE references unknown table %r; statement ignored", parts[-1])
            return True

        for action in _split_top_level(s.rest()):
            if not action[0].is_keyword("ADD"):
                logger.debug("Ignoring ALTER TABLE action on %s: %s", table.name, action[0].value)
                continue
            rest = action[1:]
            if rest and rest[0].is_keyword("COLUMN"):
                rest = rest[1:]
                if len(rest) >= 3 and rest[0].is_keyword("IF") and rest[1].is_keyword("NOT"):
                    rest = rest[3:]
            if rest:
                self._parse_element(rest, table)
        return True

    def _parse_comment(self, s: _TokenStream, tables: list[ParsedTable]) -> bool:
        if not s.accept_keyword("ON"):
            return False
        target = s.next() if not s.at_end() else None
        if target is None or not target.is_word:
            return False
        kind = target.value.upper()
        if kind not in ("TABLE", "COLUMN"):
            return False
        parts = self._read_qualified_name(s)
        if parts is None or not s.accept_keyword("IS"):
            return False
        value = s.next() if not s.at_end() else None
        text = value.value if value is not None and value.type == TokenType.STRING else None

        if kind == "TABLE":
            table = _find_table(tables, parts[-1])
            if table is not None:
                table.comment = text
            return True

        if len(parts) < 2:
            return False
        table = _find_table(tables, parts[-2])
        column = table.get_column(parts[-1]) if table is not None else None
        if column is not None:
            column.comment = text
        return True

    # -- table elements ----------------------------------------------------

    def _parse_element(self, tokens: list[Token], table: ParsedTable) -> None:
        if _is_table_constraint(tokens):
            self._parse_table_constraint(tokens, table)
            return
        if not tokens[0].is_word:
            logger.warning(
                "Skipping malformed element in table %s at line %d: %s",
                table.name,
                tokens[0].line,
                source_text(self._sql, tokens)[:80],
            )
            return
        table.columns.append(self._parse_column(tokens))

    def _parse_column(self, tokens: list[Token]) -> ParsedColumn:
        column = ParsedColumn(name=self._word(tokens[0]))
        s = _TokenStream(tokens[1:])
        type_runs: list[list[Token]] = []
        current: list[Token] = []
        not_null = False

        def flush() -> None:
            if current:
                type_runs.append(list(current))
                current.clear()

        while True:
            tok = s.peek()
            if tok is None:
                break
            if tok.is_keyword("CONSTRAINT") and s.peek_word(1):
                flush()
                s.next()
                s.next()
            elif tok.is_keyword("PRIMARY") and s.peek_keyword("KEY", offset=1):
                flush()
                s.next()
                s.next()
                column.primary_key = True
            elif tok.is_keyword("NOT") and s.peek_keyword("NULL", offset=1):
                flush()
                s.next()
                s.next()
                not_null = True
            elif tok.is_keyword("NULL"):
                flush()
                s.next()
                column.explicit_null = True
            elif tok.is_keyword("UNIQUE"):
                flush()
                s.next()
                s.accept_keyword("KEY")
                column.unique = True
            elif tok.is_keyword("DEFAULT"):
                flush()
                s.next()
                expr = self._read_default_expression(s)
                column.default_value = source_text(self._sql, expr) or None
            elif tok.is_keyword("CHECK") and s.peek_punct("(", offset=1):
                flush()
                s.next()
                s.read_parenthesized()
            elif tok.is_keyword("REFERENCES"):
                flush()
                reference = self._parse_references(s)
                if reference is not None:
                    column.foreign_key = reference[0]
            elif tok.is_punct("("):
                current.extend(s.read_parenthesized(keep_parens=True))
            else:
                current.append(s.next())
        flush()

        column.raw_type = " ".join(source_text(self._sql, run) for run in type_runs)
        column.nullable = column.explicit_null or not (not_null or column.primary_key)
        return column

    def _read_default_expression(self, s: _TokenStream) -> list[Token]:
        expr: list[Token] = []
        while True:
            tok = s.peek()
            if tok is None:
                break
            if expr and _starts_column_clause(s):
                break
            if tok.is_punct("("):
                expr.extend(s.read_parenthesized(keep_parens=True))
            else:
                expr.append(s.next())
        return expr

    def _parse_table_constraint(self, tokens: list[Token], table: ParsedTable) -> None:
        s = _TokenStream(tokens)
        if s.accept_keyword("CONSTRAINT") and s.peek_word():
            s.next()

        if s.accept_keyword("PRIMARY"):
            s.accept_keyword("KEY")
            for name in self._read_name_list(s):
                column = self._constraint_column(table, name, "PRIMARY KEY")
                if column is not None:
                    column.primary_key = True
                    if not column.explicit_null:
                        column.nullable = False
        elif s.accept_keyword("UNIQUE"):
            s.accept_keyword("KEY", "INDEX")
            if s.peek_word() and s.peek_punct("(", offset=1):
                s.next()
            names = self._read_name_list(s)
            if len(names) == 1:
                column = self._constraint_column(table, names[0], "UNIQUE")
                if column is not None:
                    column.unique = True
            elif names:
                logger.debug("Multi-column UNIQUE on %s (%s) is not modelled", table.name, ", ".join(names))
        elif s.accept_keyword("FOREIGN"):
            s.accept_keyword("KEY")
            names = self._read_name_list(s)
            reference = self._parse_references(s)
            if reference is None:
                logger.warning("FOREIGN KEY on %s has no REFERENCES clause", table.name)
                return
            fk, target_columns = reference
            if target_columns and len(target_columns) != len(names):
                logger.warning(
                    "FOREIGN KEY on %s pairs %d column(s) with %d referenced column(s)",
                    table.name,
                    len(names),
                    len(target_columns),
                )
            for i, name in enumerate(names):
                column = self._constraint_column(table, name, "FOREIGN KEY")
                if column is None:
                    continue
                target = target_columns[i] if i < len(target_columns) else None
                column.foreign_key = fk.model_copy(update={"field": target})
        else:
            logger.debug("Skipping table constraint on %s: %s", table.name, source_text(self._sql, tokens)[:80])

    def _constraint_column(self, table: ParsedTable, name: str, what: str) -> ParsedColumn | None:
        column = table.get_column(name)
        if column is None:
            logger.warning("%s on %s names unknown column %r", what, table.name, name)
        return column

    def _parse_references(self, s: _TokenStream) -> tuple[ParsedForeignKey, list[str]] | None:
        if not s.accept_keyword("REFERENCES"):
            return None
        parts = self._read_qualified_name(s)
        if parts is None:
            return None
        target_columns = self._read_name_list(s) if s.peek_punct("(") else []

        on_delete: ReferentialAction | None = None
        on_update: ReferentialAction | None = None
        while not s.at_end():
            if s.peek_keyword("ON") and s.peek_keyword("DELETE", "UPDATE", offset=1):
                s.next()
                which = s.next().value
                action = _read_action(s)
                if which == "DELETE":
                    on_delete = action
                else:
                    on_update = action
            elif s.accept_keyword("MATCH"):
                s.accept_keyword("FULL", "PARTIAL", "SIMPLE")
            elif s.accept_keyword("DEFERRABLE"):
                continue
            elif s.peek_keyword("NOT") and s.peek_keyword("DEFERRABLE", offset=1):
                s.next()
                s.next()
            elif s.accept_keyword("INITIALLY"):
                s.accept_keyword("DEFERRED", "IMMEDIATE")
            else:
                break

        fk = ParsedForeignKey(
            table=parts[-1],
            field=target_columns[0] if target_columns else None,
            on_delete=on_delete,
            on_update=on_update,
        )
        return fk, target_columns

    # -- names -------------------------------------------------------------

    def _word(self, tok: Token) -> str:
        """Name text of *tok*; keywords used as names keep their source case."""
        if tok.type == TokenType.KEYWORD:
            return self._sql[tok.start : tok.end]
        return tok.value

    def _read_qualified_name(self, s: _TokenStream) -> list[str] | None:
        if not s.peek_word():
            return None
        parts = [self._word(s.next())]
        while s.peek_punct(".") and s.peek_word(1):
            s.next()
            parts.append(self._word(s.next()))
        return parts

    def _read_name_list(self, s: _TokenStream) -> list[str]:
        """Read ``(a, b DESC, ...)`` and return the leading name of each item."""
        if not s.peek_punct("("):
            return []
        names: list[str] = []
        for item in _split_top_level(s.read_parenthesized()):
            if item[0].is_word:
                names.append(self._word(item[0]))
        return names


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _find_table(tables: list[ParsedTable], name: str) -> ParsedTable | None:
    """Return the most recently parsed table called *name*."""
    for table in reversed(tables):
        if table.name == name:
            return table
    folded = name.casefold()
    for table in reversed(tables):
        if table.name.casefold() == folded:
            return table
    return None


def _names_recognized_type(tok: Token) -> bool:
    # The converter package imports this module.
    from schema_engine.converter.type_normalizer import normalize_type

    return tok.is_word and normalize_type(tok.value).recognized


def _is_like_clause(tokens: list[Token]) -> bool:
    """``LIKE <table> [INCLUDING|EXCLUDING ...]`` rather than a column named like."""
    if not tokens[1].is_word or _names_recognized_type(tokens[1]):
        return False
    i = 2
    while i + 1 < len(tokens) and tokens[i].is_punct(".") and tokens[i + 1].is_word:
        i += 2
    return i == len(tokens) or tokens[i].value.upper() in ("INCLUDING", "EXCLUDING")


def _is_table_constraint(tokens: list[Token]) -> bool:
    head = tokens[0]
    second = tokens[1] if len(tokens) > 1 else None
    third = tokens[2] if len(tokens) > 2 else None
    if second is None:
        return False
    if head.is_keyword("CONSTRAINT"):
        return second.is_word
    if head.is_keyword("PRIMARY", "FOREIGN"):
        return second.is_keyword("KEY")
    if head.is_keyword("UNIQUE"):
        return second.is_punct("(") or second.is_keyword("KEY", "INDEX")
    if head.is_keyword("CHECK"):
        return second.is_punct("(")
    if head.is_keyword("EXCLUDE"):
        return second.is_punct("(") or (second.is_word and second.value.upper() == "USING")
    if head.is_keyword("LIKE"):
        return _is_like_clause(tokens)
    if head.is_keyword("INDEX", "KEY"):
        # MySQL index element: KEY (cols) or KEY idx_name (cols), never KEY VARCHAR(255).
        if second.is_punct("("):
            return True
        return third is not None and third.is_punct("(") and not _names_recognized_type(second)
    return False


def _starts_column_clause(s: _TokenStream) -> bool:
    """True when the cursor sits on the start of another column clause."""
    if s.peek_keyword("CONSTRAINT", "PRIMARY", "UNIQUE", "REFERENCES", "CHECK", "DEFAULT", "NULL"):
        return True
    return s.peek_keyword("NOT") and s.peek_keyword("NULL", offset=1)


def _read_action(s: _TokenStream) -> ReferentialAction | None:
    if s.accept_keyword("CASCADE"):
        return ReferentialAction.CASCADE
    if s.accept_keyword("RESTRICT"):
        return ReferentialAction.RESTRICT
    if s.peek_keyword("SET") and s.peek_keyword("NULL", "DEFAULT", offset=1):
        s.next()
        return ReferentialAction.SET_NULL if s.next().value == "NULL" else ReferentialAction.SET_DEFAULT
    if s.peek_keyword("NO") and s.peek_keyword("ACTION", offset=1):
        s.next()
        s.next()
        return ReferentialAction.NO_ACTION
    return None


def parse_create_table_statements(sql: str) -> list[ParsedTable]:
    """Parse *sql* and return every ``CREATE TABLE`` in declaration order.

    Returns an empty list for empty, whitespace-only or comment-only input.

    Raises
    ------
    LexError
        On an unterminated quoted string or identifier.
    ParseError
        If *sql* has content but no recognizable ``CREATE TABLE`` statement.
    """
    return DDLParser(sql).parse()
