from __future__ import annotations

from typing import List, Optional

from . import wir


def format_instr(instr: wir.Instruction) -> str:
    if isinstance(instr, wir.Const):
        return f"{instr.dest} = {instr.value}"
    if isinstance(instr, wir.Load):
        return f"{instr.dest} = {instr.slot}"
    if isinstance(instr, wir.BinOp):
        return f"{instr.dest} = {instr.left} {instr.op} {instr.right}"
    if isinstance(instr, wir.Call):
        args = ", ".join(str(arg) for arg in instr.args)
        return f"{instr.dest} = {instr.callee}({args})"
    if isinstance(instr, wir.StoreSlot):
        return f"{instr.slot} = {instr.source}"
    if isinstance(instr, wir.Return):
        return f"ret {instr.value}"
    if isinstance(instr, wir.Label):
        return f"{instr.name}:"
    return "<invalid instr>"


def format_body(fn: wir.Function) -> str:
    """
    Render the instruction list in its canonical form.

    A label shares a line with the instruction after it; every other line is
    indented to the width of the widest label plus one space.
    """
    labels = [instr.name for instr in fn.instructions if isinstance(instr, wir.Label)]
    width = max((len(name) + 2 for name in labels), default=0)
    lines: List[str] = []
    pending: Optional[str] = None
    for instr in fn.instructions:
        if isinstance(instr, wir.Label):
            if pending is not None:
                lines.append(f"{pending}:")
            pending = instr.name
            continue
        prefix = f"{pending}:" if pending is not None else ""
        lines.append(prefix.ljust(width) + format_instr(instr))
        pending = None
    if pending is not None:
        lines.append(f"{pending}:")
    return "\n".join(lines)


def format_function(fn: wir.Function) -> str:
    params = ", ".join(f"{p.slot}: {p.type}" for p in fn.params)
    header = f"fn {fn.name}({params}) -> {fn.return_type}"
    return f"{header}\n{format_body(fn)}"


def format_program(prog: wir.Program) -> str:
    return "\n\n".join(format_function(fn) for fn in prog.functions.values())
