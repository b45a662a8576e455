"""
Compiler errors and the structured diagnostic they turn into.

Every stage raises a `CompileError` subclass at the first problem it finds;
nothing is recovered. The pipeline boundary (`scooter.compiler`) converts the
exception into a single `Diagnostic`, which is plain data: no rendering of
source snippets happens here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Stage(str, Enum):
    LEX = "Lex"
    PARSE = "Parse"
    LOWER = "Lower"


@dataclass(frozen=True)
class Span:
    """Represents a source position (1-based line/column, 0-based byte offset)."""

    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    offset: Optional[int] = None

    @classmethod
    def from_loc(cls, loc: Any, file: Optional[str] = None) -> "Span":
        """
        Construct a Span from any object exposing `line`/`column`.

        AST `Located` values, lark tokens and `Span` itself are all accepted;
        a Span passed in is returned unchanged unless `file` fills a gap.
        """
        if loc is None:
            return cls(file=file)
        if isinstance(loc, cls):
            if file is not None and loc.file is None:
                return cls(file=file, line=loc.line, column=loc.column, offset=loc.offset)
            return loc
        return cls(
            file=file,
            line=getattr(loc, "line", None),
            column=getattr(loc, "column", None),
            offset=getattr(loc, "offset", None),
        )

    def with_file(self, file: Optional[str]) -> "Span":
        if file is None or self.file is not None:
            return self
        return Span(file=file, line=self.line, column=self.column, offset=self.offset)

    def __str__(self) -> str:
        file = self.file or "<input>"
        if self.line is None:
            return file
        return f"{file}:{self.line}:{self.column}"


@dataclass(frozen=True)
class Diagnostic:
    """Represents the single diagnostic a failed compilation reports."""

    stage: Stage
    kind: str
    message: str
    span: Span = Span()

    @property
    def line(self) -> Optional[int]:
        return self.span.line

    @property
    def column(self) -> Optional[int]:
        return self.span.column

    def to_dict(self) -> Dict[str, object]:
        return {
            "stage": self.stage.value,
            "kind": self.kind,
            "message": self.message,
            "line": self.line,
            "column": self.column,
        }

    def __str__(self) -> str:
        return f"{self.span}: {self.stage.value} error [{self.kind}]: {self.message}"


class CompileError(Exception):
    """Base class for every error the pipeline raises."""

    stage: Stage = Stage.LOWER

    def __init__(self, message: str, span: Optional[Span] = None) -> None:
        super().__init__(message)
        self.message = message
        self.span = span if span is not None else Span()

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_diagnostic(self, file: Optional[str] = None) -> Diagnostic:
        return Diagnostic(stage=self.stage, kind=self.kind, message=self.message, span=self.span.with_file(file))

    def __str__(self) -> str:
        return f"{self.span}: {self.message}"


class LexError(CompileError):
    """Unrecognized character (or unrepresentable literal) in the source text."""

    stage = Stage.LEX

    def __init__(self, message: str, span: Span, char: Optional[str] = None) -> None:
        super().__init__(message, span)
        self.char = char

    @property
    def offset(self) -> Optional[int]:
        return self.span.offset


class ParseError(CompileError):
    """Token mismatch; `expected` lists display names of acceptable tokens."""

    stage = Stage.PARSE

    def __init__(self, expected: Tuple[str, ...], found: str, span: Span) -> None:
        if len(expected) == 1:
            wanted = expected[0]
        else:
            wanted = "one of " + ", ".join(expected)
        super().__init__(f"expected {wanted}, found {found}", span)
        self.expected = expected
        self.found = found


class LoweringError(CompileError):
    stage = Stage.LOWER


class UndefinedIdentifier(LoweringError):
    def __init__(self, name: str, span: Span) -> None:
        super().__init__(f"cannot find '{name}' in this scope", span)
        self.name = name


class UnknownFunction(LoweringError):
    def __init__(self, name: str, span: Span) -> None:
        super().__init__(f"call to undeclared function '{name}'", span)
        self.name = name


class ArityMismatch(LoweringError):
    def __init__(self, name: str, expected: int, found: int, span: Span) -> None:
        plural = "argument" if expected == 1 else "arguments"
        verb = "was" if found == 1 else "were"
        super().__init__(f"function '{name}' takes {expected} {plural} but {found} {verb} supplied", span)
        self.name = name
        self.expected = expected
        self.found = found


class TypeMismatch(LoweringError):
    """Reserved: only `i32` exists, so no lowering path raises this yet."""

    def __init__(self, expected: str, found: str, span: Span) -> None:
        super().__init__(f"expected type '{expected}', found '{found}'", span)
        self.expected = expected
        self.found = found


class DuplicateDefinition(LoweringError):
    def __init__(self, what: str, name: str, span: Span) -> None:
        super().__init__(f"{what} '{name}' is defined more than once", span)
        self.what = what
        self.name = name


class InvalidEntryPoint(LoweringError):
    pass


__all__ = [
    "ArityMismatch",
    "CompileError",
    "Diagnostic",
    "DuplicateDefinition",
    "InvalidEntryPoint",
    "LexError",
    "LoweringError",
    "ParseError",
    "Span",
    "Stage",
    "TypeMismatch",
    "UndefinedIdentifier",
    "UnknownFunction",
]
