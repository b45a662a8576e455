"""Scooter compiler front end: source text → Wheel IR."""

from .compiler import CompileOptions, CompileResult, compile_source, compile_to_text, try_compile
from .diagnostics import (
    ArityMismatch,
    CompileError,
    Diagnostic,
    DuplicateDefinition,
    InvalidEntryPoint,
    LexError,
    LoweringError,
    ParseError,
    Span,
    Stage,
    TypeMismatch,
    UndefinedIdentifier,
    UnknownFunction,
)
from .lexer import TokenKind, token_kind, tokenize
from .lower_to_wir import lower_function, lower_program
from .parser import parse_program, parse_tokens
from .wir_printer import format_body, format_function, format_program

__all__ = [
    "ArityMismatch",
    "CompileError",
    "CompileOptions",
    "CompileResult",
    "Diagnostic",
    "DuplicateDefinition",
    "InvalidEntryPoint",
    "LexError",
    "LoweringError",
    "ParseError",
    "Span",
    "Stage",
    "TokenKind",
    "TypeMismatch",
    "UndefinedIdentifier",
    "UnknownFunction",
    "compile_source",
    "compile_to_text",
    "format_body",
    "format_function",
    "format_program",
    "lower_function",
    "lower_program",
    "parse_program",
    "parse_tokens",
    "token_kind",
    "tokenize",
]
