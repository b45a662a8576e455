from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .ast import Located
from .types import StructInfo, Type


@dataclass(frozen=True)
class Location:
    file: str = "<unknown>"
    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class Temp:
    index: int

    def __str__(self) -> str:
        return f"t{self.index}"


@dataclass(frozen=True)
class Slot:
    index: int

    def __str__(self) -> str:
        return f"x{self.index}"


@dataclass(frozen=True)
class SlotInfo:
    slot: Slot
    name: str
    type: Type
    origin: str  # "param" or "let"
    loc: Optional[Located] = None


@dataclass(frozen=True)
class Param:
    name: str
    type: Type
    slot: Slot
    loc: Location = Location()


class Instruction:
    pass


@dataclass(frozen=True)
class Label(Instruction):
    name: str
    loc: Location = Location()


@dataclass(frozen=True)
class Const(Instruction):
    dest: Temp
    value: int
    loc: Location = Location()


@dataclass(frozen=True)
class Load(Instruction):
    dest: Temp
    slot: Slot
    loc: Location = Location()


@dataclass(frozen=True)
class BinOp(Instruction):
    dest: Temp
    op: str
    left: Temp
    right: Temp
    loc: Location = Location()


@dataclass(frozen=True)
class Call(Instruction):
    dest: Temp
    callee: str
    args: Tuple[Temp, ...] = ()
    loc: Location = Location()


@dataclass(frozen=True)
class StoreSlot(Instruction):
    slot: Slot
    source: Temp
    loc: Location = Location()


@dataclass(frozen=True)
class Return(Instruction):
    value: Temp
    loc: Location = Location()


def defined_temp(instr: Instruction) -> Optional[Temp]:
    """The temporary an instruction writes, if any."""
    if isinstance(instr, (Const, Load, BinOp, Call)):
        return instr.dest
    return None


def used_temps(instr: Instruction) -> Tuple[Temp, ...]:
    if isinstance(instr, BinOp):
        return (instr.left, instr.right)
    if isinstance(instr, Call):
        return instr.args
    if isinstance(instr, StoreSlot):
        return (instr.source,)
    if isinstance(instr, Return):
        return (instr.value,)
    return ()


@dataclass
class Function:
    name: str
    params: List[Param]
    return_type: Type
    entry: str
    source: Optional[str] = None
    instructions: List[Instruction] = field(default_factory=list)
    slots: Tuple[SlotInfo, ...] = ()

    @property
    def temp_count(self) -> int:
        return sum(1 for instr in self.instructions if defined_temp(instr) is not None)

    @property
    def slot_count(self) -> int:
        return len(self.slots)


@dataclass
class Program:
    functions: Dict[str, Function]
    structs: Dict[str, StructInfo] = field(default_factory=dict)
