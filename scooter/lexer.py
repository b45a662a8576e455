"""
Source text → token stream.

Tokens are lark `Token`s produced by the grammar's basic lexer, so the parser
can consume them directly. The stream always ends with a `$END` token placed
just past the last character of the input.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional

from lark import Token
from lark.exceptions import UnexpectedCharacters

from ._grammar import END, KEYWORDS, LARK, PUNCTUATION
from .diagnostics import LexError, Span

logger = logging.getLogger(__name__)

I32_MAX = 2**31 - 1


class TokenKind(str, Enum):
    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    INTEGER = "integer literal"
    PUNCTUATION = "punctuation"
    END = "end of input"


def token_kind(token: Token) -> TokenKind:
    if token.type in KEYWORDS:
        return TokenKind.KEYWORD
    if token.type in PUNCTUATION:
        return TokenKind.PUNCTUATION
    if token.type == "NAME":
        return TokenKind.IDENTIFIER
    if token.type == "INT":
        return TokenKind.INTEGER
    if token.type == END:
        return TokenKind.END
    raise ValueError(f"unknown token type {token.type!r}")


def tokenize(source: str, file: Optional[str] = None) -> List[Token]:
    """Lex the whole buffer; the first bad character raises LexError."""
    tokens: List[Token] = []
    try:
        for token in LARK.lex(source):
            if token.type == "INT" and int(token.value) > I32_MAX:
                raise LexError(
                    f"integer literal {token.value} does not fit in i32",
                    _span(source, token.start_pos, file),
                )
            tokens.append(token)
    except UnexpectedCharacters as exc:
        char = source[exc.pos_in_stream]
        raise LexError(
            f"unexpected character {char!r}",
            _span(source, exc.pos_in_stream, file),
            char=char,
        ) from None
    tokens.append(_end_token(source))
    logger.debug("lexed %d tokens", len(tokens))
    return tokens


def _end_token(source: str) -> Token:
    line = source.count("\n") + 1
    column = len(source) - (source.rfind("\n") + 1) + 1
    pos = len(source)
    return Token(END, "", start_pos=pos, line=line, column=column, end_line=line, end_column=column, end_pos=pos)


def _span(source: str, pos: int, file: Optional[str]) -> Span:
    line = source.count("\n", 0, pos) + 1
    column = pos - (source.rfind("\n", 0, pos) + 1) + 1
    offset = len(source[:pos].encode("utf-8"))
    return Span(file=file, line=line, column=column, offset=offset)
