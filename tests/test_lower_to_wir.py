"""
Lowering unit tests.

Programs are parsed from source and lowered; assertions are made on the
instruction objects (and occasionally their canonical text).
"""

import pytest

from scooter import wir
from scooter.diagnostics import ArityMismatch, DuplicateDefinition, UndefinedIdentifier, UnknownFunction
from scooter.lower_to_wir import collect_signatures, lower_function, lower_program
from scooter.parser import parse_program
from scooter.types import I32, Type
from scooter.wir import BinOp, Call, Const, Label, Load, Return, Slot, StoreSlot, Temp
from scooter.wir_printer import format_body

REFERENCE = """
fn foo() -> i32 {
    let a: i32 = 5 + 5;
    let b: i32 = a + 5 * 7;
    return b + a;
}
"""


def _lower(source: str) -> wir.Program:
    return lower_program(parse_program(source))


def _ops(fn: wir.Function):
    """Instructions with their locations stripped, for direct comparison."""
    out = []
    for instr in fn.instructions:
        if isinstance(instr, Label):
            out.append(Label(instr.name))
        elif isinstance(instr, Const):
            out.append(Const(instr.dest, instr.value))
        elif isinstance(instr, Load):
            out.append(Load(instr.dest, instr.slot))
        elif isinstance(instr, BinOp):
            out.append(BinOp(instr.dest, instr.op, instr.left, instr.right))
        elif isinstance(instr, Call):
            out.append(Call(instr.dest, instr.callee, instr.args))
        elif isinstance(instr, StoreSlot):
            out.append(StoreSlot(instr.slot, instr.source))
        elif isinstance(instr, Return):
            out.append(Return(instr.value))
    return out


def test_reference_program():
    fn = _lower(REFERENCE).functions["foo"]
    t = [Temp(i) for i in range(11)]
    assert _ops(fn) == [
        Label("L0"),
        Const(t[0], 5),
        Const(t[1], 5),
        BinOp(t[2], "+", t[0], t[1]),
        StoreSlot(Slot(0), t[2]),
        Load(t[3], Slot(0)),
        Const(t[4], 5),
        Const(t[5], 7),
        BinOp(t[6], "*", t[4], t[5]),
        BinOp(t[7], "+", t[3], t[6]),
        StoreSlot(Slot(1), t[7]),
        Load(t[8], Slot(1)),
        Load(t[9], Slot(0)),
        BinOp(t[10], "+", t[8], t[9]),
        Return(t[10]),
    ]
    assert fn.entry == "L0"
    assert fn.return_type == I32
    assert [(info.name, info.origin) for info in fn.slots] == [("a", "let"), ("b", "let")]


def test_single_return():
    fn = _lower("fn z() -> i32 { return 1; }").functions["z"]
    assert _ops(fn) == [Label("L0"), Const(Temp(0), 1), Return(Temp(0))]
    assert format_body(fn) == "L0: t0 = 1\n    ret t0"


def test_parameters_are_bound_without_stores():
    fn = _lower("fn add(a: i32, b: i32) -> i32 { return a + b; }").functions["add"]
    assert _ops(fn) == [
        Label("L0"),
        Load(Temp(0), Slot(0)),
        Load(Temp(1), Slot(1)),
        BinOp(Temp(2), "+", Temp(0), Temp(1)),
        Return(Temp(2)),
    ]
    assert [(p.name, p.type, p.slot) for p in fn.params] == [("a", I32, Slot(0)), ("b", I32, Slot(1))]
    assert not any(isinstance(instr, StoreSlot) for instr in fn.instructions)


def test_rebinding_leaves_earlier_instructions_alone():
    fn = _lower(
        """
fn f(a: i32) -> i32 {
    let a: i32 = a + 1;
    let a: i32 = a * 2;
    return a;
}
"""
    ).functions["f"]
    assert _ops(fn) == [
        Label("L0"),
        Load(Temp(0), Slot(0)),
        Const(Temp(1), 1),
        BinOp(Temp(2), "+", Temp(0), Temp(1)),
        StoreSlot(Slot(1), Temp(2)),
        Load(Temp(3), Slot(1)),
        Const(Temp(4), 2),
        BinOp(Temp(5), "*", Temp(3), Temp(4)),
        StoreSlot(Slot(2), Temp(5)),
        Load(Temp(6), Slot(2)),
        Return(Temp(6)),
    ]
    assert [info.origin for info in fn.slots] == ["param", "let", "let"]


def test_duplicate_parameter_names_rebind():
    fn = _lower("fn f(a: i32, a: i32) -> i32 { return a; }").functions["f"]
    assert [p.slot for p in fn.params] == [Slot(0), Slot(1)]
    assert _ops(fn)[1] == Load(Temp(0), Slot(1))


def test_calls_lower_arguments_left_to_right():
    program = _lower(
        """
fn pick(a: i32, b: i32, c: i32) -> i32 { return b; }
fn g() -> i32 { return pick(1 + 2, pick(3, 4, 5), 6); }
"""
    )
    fn = program.functions["g"]
    assert _ops(fn) == [
        Label("L0"),
        Const(Temp(0), 1),
        Const(Temp(1), 2),
        BinOp(Temp(2), "+", Temp(0), Temp(1)),
        Const(Temp(3), 3),
        Const(Temp(4), 4),
        Const(Temp(5), 5),
        Call(Temp(6), "pick", (Temp(3), Temp(4), Temp(5))),
        Const(Temp(7), 6),
        Call(Temp(8), "pick", (Temp(2), Temp(6), Temp(7))),
        Return(Temp(8)),
    ]


def test_call_without_arguments():
    program = _lower("fn one() -> i32 { return 1; } fn f() -> i32 { return one(); }")
    assert _ops(program.functions["f"]) == [Label("L0"), Call(Temp(0), "one", ()), Return(Temp(0))]


def test_forward_reference_and_recursion():
    program = _lower(
        """
fn a() -> i32 { return b(); }
fn b() -> i32 { return a() + b(); }
"""
    )
    assert list(program.functions) == ["a", "b"]
    assert _ops(program.functions["a"])[1] == Call(Temp(0), "b", ())


def test_expression_statement_is_lowered_for_effect():
    fn = _lower("fn f() -> i32 { 1 + 2; return 3; }").functions["f"]
    assert _ops(fn) == [
        Label("L0"),
        Const(Temp(0), 1),
        Const(Temp(1), 2),
        BinOp(Temp(2), "+", Temp(0), Temp(1)),
        Const(Temp(3), 3),
        Return(Temp(3)),
    ]


def test_counters_restart_per_function():
    program = _lower(
        """
fn f(a: i32) -> i32 { let b: i32 = a; return b; }
fn g(c: i32) -> i32 { let d: i32 = c; return d; }
"""
    )
    assert _ops(program.functions["f"]) == _ops(program.functions["g"])
    assert program.functions["g"].entry == "L0"
    assert program.functions["g"].slot_count == 2


def test_temps_and_slots_are_dense():
    program = _lower(
        """
fn h(p: i32, q: i32) -> i32 {
    let a: i32 = p * (q + 1);
    h(a, a);
    let b: i32 = a + h(p, q);
    let a: i32 = b;
    return a + b * 2;
}
"""
    )
    fn = program.functions["h"]
    temps = [wir.defined_temp(instr) for instr in fn.instructions if wir.defined_temp(instr) is not None]
    assert temps == [Temp(i) for i in range(len(temps))]
    # Every use refers to an already-defined temporary.
    defined = set()
    for instr in fn.instructions:
        assert all(temp in defined for temp in wir.used_temps(instr))
        dest = wir.defined_temp(instr)
        if dest is not None:
            defined.add(dest)
    stores = [instr.slot for instr in fn.instructions if isinstance(instr, StoreSlot)]
    assert [p.slot for p in fn.params] + stores == [Slot(i) for i in range(2 + 3)]
    assert fn.slot_count == 5
    assert sum(isinstance(instr, Return) for instr in fn.instructions) == 1
    assert sum(isinstance(instr, Label) for instr in fn.instructions) == 1


def test_long_chain_lowers_in_source_order():
    terms = 1600
    source = "fn f(a: i32) -> i32 { return " + " + ".join(["a * 2"] * terms) + "; }"
    fn = _lower(source).functions["f"]
    ops = _ops(fn)
    # a * 2 -> load, const, mul; every later term adds one more BinOp "+".
    assert ops[1:4] == [
        Load(Temp(0), Slot(0)),
        Const(Temp(1), 2),
        BinOp(Temp(2), "*", Temp(0), Temp(1)),
    ]
    assert ops[4:8] == [
        Load(Temp(3), Slot(0)),
        Const(Temp(4), 2),
        BinOp(Temp(5), "*", Temp(3), Temp(4)),
        BinOp(Temp(6), "+", Temp(2), Temp(5)),
    ]
    last = 3 * terms + (terms - 1) - 1
    assert ops[-1] == Return(Temp(last))
    assert fn.temp_count == last + 1


def test_instruction_locations():
    fn = _lower("fn f() -> i32 {\n    return 7;\n}").functions["f"]
    const = fn.instructions[1]
    assert (const.loc.line, const.loc.column) == (2, 12)
    assert fn.instructions[2].loc.line == 2


def test_structs_are_metadata_only():
    program = _lower(
        """
struct Point { x: i32, y: i32 }
struct Pair(i32, Point,)
struct Empty {}
struct Unit()
fn f() -> i32 { return 0; }
"""
    )
    assert list(program.functions) == ["f"]
    assert list(program.structs) == ["Point", "Pair", "Empty", "Unit"]
    point = program.structs["Point"]
    assert not point.positional
    assert point.field_names == ("x", "y")
    assert point.field_type("y") == I32
    pair = program.structs["Pair"]
    assert pair.positional
    assert pair.field_names == ("0", "1")
    assert pair.field_types == (I32, Type("Point"))
    assert program.structs["Empty"].field_names == ()
    assert program.structs["Unit"].positional


def test_struct_only_program_has_no_functions():
    program = _lower("struct Empty {}")
    assert program.functions == {}


def test_non_i32_types_are_accepted_unchecked():
    fn = _lower("fn f(p: Point) -> Point { let q: Point = p; return q; }").functions["f"]
    assert fn.params[0].type == Type("Point")
    assert fn.return_type == Type("Point")


def test_unknown_function_reports_call_site():
    with pytest.raises(UnknownFunction) as excinfo:
        _lower("fn f() -> i32 {\n    return g(1);\n}")
    err = excinfo.value
    assert err.name == "g"
    assert (err.span.line, err.span.column) == (2, 12)


def test_arity_mismatch():
    with pytest.raises(ArityMismatch) as excinfo:
        _lower("fn two(a: i32, b: i32) -> i32 { return a; }\nfn f() -> i32 { return two(1); }")
    err = excinfo.value
    assert (err.expected, err.found) == (2, 1)
    assert (err.span.line, err.span.column) == (2, 24)
    assert "1 was supplied" in err.message


def test_arity_mismatch_with_trailing_comma_counts_real_arguments():
    with pytest.raises(ArityMismatch) as excinfo:
        _lower("fn one(a: i32) -> i32 { return a; }\nfn f() -> i32 { return one(1, 2,); }")
    assert excinfo.value.found == 2


def test_undefined_identifier():
    with pytest.raises(UndefinedIdentifier) as excinfo:
        _lower("fn f() -> i32 { let a: i32 = 1; return a + b; }")
    assert excinfo.value.name == "b"
    assert excinfo.value.span.column == 44


def test_let_cannot_read_itself_before_binding():
    with pytest.raises(UndefinedIdentifier):
        _lower("fn f() -> i32 { let a: i32 = a; return a; }")


def test_parameters_are_not_visible_in_other_functions():
    with pytest.raises(UndefinedIdentifier):
        _lower("fn f(a: i32) -> i32 { return a; } fn g() -> i32 { return a; }")


def test_duplicate_function():
    with pytest.raises(DuplicateDefinition) as excinfo:
        _lower("fn f() -> i32 { return 1; }\nfn f() -> i32 { return 2; }")
    assert excinfo.value.span.line == 2


def test_duplicate_struct_and_field():
    with pytest.raises(DuplicateDefinition):
        _lower("struct S {} struct S()")
    with pytest.raises(DuplicateDefinition) as excinfo:
        _lower("struct S { a: i32, a: i32 }")
    assert excinfo.value.name == "a"


def test_lower_function_with_collected_signatures():
    program = parse_program("fn f(a: i32) -> i32 { return f(a); }")
    signatures = collect_signatures(program)
    assert signatures["f"].arity == 1
    fn = lower_function(program.functions[0], signatures, source="demo.sc")
    assert fn.source == "demo.sc"
    assert fn.instructions[1].loc.file == "demo.sc"
