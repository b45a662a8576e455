from __future__ import annotations

from pathlib import Path
from typing import Dict

from lark import Lark

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

# Shared by the lexer and the parser. Both only ever create fresh per-call
# state (a lexer run, an interactive parser), so one instance serves every
# compilation.
LARK = Lark(
    _GRAMMAR_SRC,
    parser="lalr",
    lexer="basic",
    start="program",
    propagate_positions=True,
    maybe_placeholders=False,
)

KEYWORDS: Dict[str, str] = {
    "_FN": "fn",
    "_STRUCT": "struct",
    "_LET": "let",
    "_RETURN": "return",
}

PUNCTUATION: Dict[str, str] = {
    "_ARROW": "->",
    "_LPAR": "(",
    "_RPAR": ")",
    "_LBRACE": "{",
    "_RBRACE": "}",
    "_COMMA": ",",
    "_COLON": ":",
    "_SEMI": ";",
    "_EQUAL": "=",
    "PLUS": "+",
    "STAR": "*",
}

END = "$END"


def display_name(terminal: str) -> str:
    """Human-readable name of a terminal, as used in parse diagnostics."""
    if terminal in KEYWORDS:
        return f"'{KEYWORDS[terminal]}'"
    if terminal in PUNCTUATION:
        return f"'{PUNCTUATION[terminal]}'"
    if terminal == "NAME":
        return "identifier"
    if terminal == "INT":
        return "integer literal"
    if terminal == END:
        return "end of input"
    return terminal
