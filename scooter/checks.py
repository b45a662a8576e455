from __future__ import annotations

from typing import Optional

from . import ast
from .diagnostics import InvalidEntryPoint, Span


def check_entry_point(program: ast.Program, name: str, source: Optional[str] = None) -> None:
    """The program must declare `name` as a function taking no arguments."""
    fn_def = next((fn for fn in program.functions if fn.name == name), None)
    if fn_def is None:
        raise InvalidEntryPoint(f"could not find the '{name}' function", Span(file=source, line=1, column=1))
    if fn_def.params:
        count = len(fn_def.params)
        plural = "argument was" if count == 1 else "arguments were"
        raise InvalidEntryPoint(
            f"'{name}' takes no arguments, but {count} {plural} declared",
            Span.from_loc(fn_def.loc, file=source),
        )
