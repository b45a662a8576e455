"""
The whole pipeline: text → tokens → AST → Wheel IR (→ canonical text).

Compilation is fail-fast. `compile_source` raises the first CompileError;
`try_compile` turns it into the single Diagnostic a caller reports, and in
that case hands back no IR at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from . import wir
from .checks import check_entry_point
from .diagnostics import CompileError, Diagnostic
from .lexer import tokenize
from .lower_to_wir import lower_program
from .parser import parse_tokens
from .wir_printer import format_program

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompileOptions:
    source_name: str = "<input>"
    # When set, the program must define this zero-argument function.
    require_entry: Optional[str] = None
    emit_text: bool = True


@dataclass(frozen=True)
class CompileResult:
    program: Optional[wir.Program] = None
    text: Optional[str] = None
    diagnostic: Optional[Diagnostic] = None

    @property
    def ok(self) -> bool:
        return self.diagnostic is None


def compile_source(source: str, options: Optional[CompileOptions] = None) -> wir.Program:
    options = options or CompileOptions()
    name = options.source_name
    tokens = tokenize(source, file=name)
    program = parse_tokens(tokens, file=name)
    if options.require_entry is not None:
        check_entry_point(program, options.require_entry, source=name)
    lowered = lower_program(program, source=name)
    logger.debug("compiled %s: %d functions, %d structs", name, len(lowered.functions), len(lowered.structs))
    return lowered


def compile_to_text(source: str, options: Optional[CompileOptions] = None) -> str:
    return format_program(compile_source(source, options))


def try_compile(source: str, options: Optional[CompileOptions] = None) -> CompileResult:
    options = options or CompileOptions()
    try:
        program = compile_source(source, options)
    except CompileError as exc:
        return CompileResult(diagnostic=exc.to_diagnostic(options.source_name))
    text = format_program(program) if options.emit_text else None
    return CompileResult(program=program, text=text)
