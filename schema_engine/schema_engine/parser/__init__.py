"""SQL DDL tokenizer and parser."""

from schema_engine.parser.ddl_parser import (
    ParsedColumn,
    ParsedForeignKey,
    ParsedTable,
    ParseError,
    parse_create_table_statements,
)
from schema_engine.parser.tokenizer import LexError, Token, TokenType, tokenize

__all__ = [
    "LexError",
    "ParseError",
    "ParsedColumn",
    "ParsedForeignKey",
    "ParsedTable",
    "Token",
    "TokenType",
    "parse_create_table_statements",
    "tokenize",
]
