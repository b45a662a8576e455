from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from .ast import TypeExpr


@dataclass(frozen=True)
class Type:
    name: str

    def __str__(self) -> str:
        return self.name


I32 = Type("i32")

_PRIMITIVES: Dict[str, Type] = {
    "i32": I32,
}


def resolve_type(type_expr: TypeExpr) -> Type:
    # Struct and unknown names flow through unchecked until struct values exist.
    builtin = _PRIMITIVES.get(type_expr.name)
    if builtin:
        return builtin
    return Type(type_expr.name)


@dataclass(frozen=True)
class FunctionSignature:
    name: str
    params: Tuple[Type, ...]
    return_type: Type

    @property
    def arity(self) -> int:
        return len(self.params)


@dataclass(frozen=True)
class StructInfo:
    """
    Read-only struct metadata recorded for a backend.

    Positional structs name their fields "0", "1", ... so both forms can be
    addressed the same way.
    """

    name: str
    positional: bool
    field_names: Tuple[str, ...]
    field_types: Tuple[Type, ...]

    def field_type(self, name: str) -> Type:
        return self.field_types[self.field_names.index(name)]
