"""
AST → Wheel IR lowering.

Each function lowers to one flat instruction list headed by its entry label.
The body is a single basic block (the language has no branches), so lowering
is a straight walk over the statements:

  - literals become `Const`, name reads become `Load` of the current slot
  - binary operands are lowered left then right, then combined with `BinOp`
  - call arguments are lowered left to right, then `Call`
  - `let` lowers its value and stores it into a brand-new slot
  - the trailing `return` lowers its value and emits `Return`

Temporaries and slots are numbered by two independent counters that restart
at zero for every function. Any error aborts the whole program: the lowered
functions are only published once every function succeeded.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional

from . import ast, wir
from .diagnostics import ArityMismatch, DuplicateDefinition, Span, UnknownFunction
from .slots import SlotTable
from .types import FunctionSignature, StructInfo, resolve_type

logger = logging.getLogger(__name__)


class WirBuilder:
    """
    Append-only instruction list plus the per-function counters.

    Instructions are never rewritten once appended.
    """

    def __init__(self, source: Optional[str] = None) -> None:
        self.source = source
        self.instructions: List[wir.Instruction] = []
        self._next_temp = 0
        self._next_label = 0

    def fresh_temp(self) -> wir.Temp:
        temp = wir.Temp(self._next_temp)
        self._next_temp += 1
        return temp

    def fresh_label(self) -> str:
        name = f"L{self._next_label}"
        self._next_label += 1
        return name

    def emit(self, instr: wir.Instruction) -> None:
        self.instructions.append(instr)

    def location(self, loc: Optional[ast.Located]) -> wir.Location:
        if loc is None:
            return wir.Location(file=self.source or "<unknown>")
        return wir.Location(file=self.source or "<unknown>", line=loc.line, column=loc.column)


class FunctionLowerer:
    def __init__(self, fn_def: ast.FunctionDef, signatures: Mapping[str, FunctionSignature], source: Optional[str] = None):
        self.fn_def = fn_def
        self.signatures = signatures
        self.source = source
        self.builder = WirBuilder(source)
        self.slots = SlotTable(file=source)

    def lower(self) -> wir.Function:
        fn_def = self.fn_def
        signature = self.signatures[fn_def.name]
        entry = self.builder.fresh_label()
        self.builder.emit(wir.Label(name=entry, loc=self.builder.location(fn_def.loc)))

        params: List[wir.Param] = []
        for param, param_type in zip(fn_def.params, signature.params):
            slot = self.slots.bind_param(param.name, param_type, param.loc)
            params.append(wir.Param(name=param.name, type=param_type, slot=slot, loc=self.builder.location(param.loc)))

        for stmt in fn_def.body.statements:
            self.lower_stmt(stmt)

        fn = wir.Function(
            name=fn_def.name,
            params=params,
            return_type=signature.return_type,
            entry=entry,
            source=self.source,
            instructions=self.builder.instructions,
            slots=self.slots.slots,
        )
        logger.debug(
            "lowered %s: %d instructions, %d temps, %d slots",
            fn.name,
            len(fn.instructions),
            fn.temp_count,
            fn.slot_count,
        )
        return fn

    def lower_stmt(self, stmt: ast.Stmt) -> None:
        if isinstance(stmt, ast.LetStmt):
            value = self.lower_expr(stmt.value)
            # The new slot is created after the value so the initializer still
            # sees any earlier binding of the same name.
            slot = self.slots.bind_let(stmt.name, resolve_type(stmt.type_expr), stmt.loc)
            self.builder.emit(wir.StoreSlot(slot=slot, source=value, loc=self.builder.location(stmt.loc)))
            return
        if isinstance(stmt, ast.ExprStmt):
            self.lower_expr(stmt.value)
            return
        if isinstance(stmt, ast.ReturnStmt):
            value = self.lower_expr(stmt.value)
            self.builder.emit(wir.Return(value=value, loc=self.builder.location(stmt.loc)))
            return
        raise TypeError(f"unsupported statement: {stmt!r}")

    def lower_expr(self, expr: ast.Expr) -> wir.Temp:
        loc = self.builder.location(expr.loc)
        if isinstance(expr, ast.Literal):
            dest = self.builder.fresh_temp()
            self.builder.emit(wir.Const(dest=dest, value=expr.value, loc=loc))
            return dest
        if isinstance(expr, ast.Name):
            slot = self.slots.resolve(expr.ident, expr.loc)
            dest = self.builder.fresh_temp()
            self.builder.emit(wir.Load(dest=dest, slot=slot, loc=loc))
            return dest
        if isinstance(expr, ast.Binary):
            return self._lower_binary_chain(expr)
        if isinstance(expr, ast.Call):
            self._check_call(expr)
            args = tuple(self.lower_expr(arg) for arg in expr.args)
            dest = self.builder.fresh_temp()
            self.builder.emit(wir.Call(dest=dest, callee=expr.name, args=args, loc=loc))
            return dest
        raise TypeError(f"unsupported expression: {expr!r}")

    def _lower_binary_chain(self, expr: ast.Binary) -> wir.Temp:
        """
        Lower a left-nested run of binary operators without recursing per link.

        Emission order matches a plain post-order walk: the innermost left
        operand first, then each right operand followed by its `BinOp`.
        """
        spine: List[ast.Binary] = []
        node: ast.Expr = expr
        while isinstance(node, ast.Binary):
            spine.append(node)
            node = node.left
        acc = self.lower_expr(node)
        for binary in reversed(spine):
            right = self.lower_expr(binary.right)
            dest = self.builder.fresh_temp()
            self.builder.emit(
                wir.BinOp(dest=dest, op=binary.op, left=acc, right=right, loc=self.builder.location(binary.loc))
            )
            acc = dest
        return acc

    def _check_call(self, expr: ast.Call) -> None:
        span = Span.from_loc(expr.loc, file=self.source)
        signature = self.signatures.get(expr.name)
        if signature is None:
            raise UnknownFunction(expr.name, span)
        if len(expr.args) != signature.arity:
            raise ArityMismatch(expr.name, signature.arity, len(expr.args), span)


def collect_signatures(program: ast.Program, source: Optional[str] = None) -> Dict[str, FunctionSignature]:
    """Signatures for every function, so calls may refer ahead or recurse."""
    signatures: Dict[str, FunctionSignature] = {}
    for fn_def in program.functions:
        if fn_def.name in signatures:
            raise DuplicateDefinition("function", fn_def.name, Span.from_loc(fn_def.loc, file=source))
        signatures[fn_def.name] = FunctionSignature(
            name=fn_def.name,
            params=tuple(resolve_type(p.type_expr) for p in fn_def.params),
            return_type=resolve_type(fn_def.return_type),
        )
    return signatures


def collect_structs(program: ast.Program, source: Optional[str] = None) -> Dict[str, StructInfo]:
    structs: Dict[str, StructInfo] = {}
    for struct_def in program.structs:
        if struct_def.name in structs:
            raise DuplicateDefinition("struct", struct_def.name, Span.from_loc(struct_def.loc, file=source))
        if struct_def.positional:
            field_names = tuple(str(idx) for idx in range(len(struct_def.fields)))
        else:
            seen = set()
            for field in struct_def.fields:
                if field.name in seen:
                    raise DuplicateDefinition(
                        f"field of struct '{struct_def.name}'",
                        field.name,
                        Span.from_loc(field.loc, file=source),
                    )
                seen.add(field.name)
            field_names = tuple(field.name for field in struct_def.fields)
        structs[struct_def.name] = StructInfo(
            name=struct_def.name,
            positional=struct_def.positional,
            field_names=field_names,
            field_types=tuple(resolve_type(field.type_expr) for field in struct_def.fields),
        )
    return structs


def lower_function(
    fn_def: ast.FunctionDef,
    signatures: Mapping[str, FunctionSignature],
    source: Optional[str] = None,
) -> wir.Function:
    return FunctionLowerer(fn_def, signatures, source).lower()


def lower_program(program: ast.Program, source: Optional[str] = None) -> wir.Program:
    structs = collect_structs(program, source)
    signatures = collect_signatures(program, source)
    functions: Dict[str, wir.Function] = {}
    for fn_def in program.functions:
        functions[fn_def.name] = lower_function(fn_def, signatures, source)
    return wir.Program(functions=functions, structs=structs)
