from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union


@dataclass(frozen=True)
class Located:
    line: int
    column: int


@dataclass
class TypeExpr:
    name: str
    loc: Optional[Located] = None


@dataclass
class Param:
    name: str
    type_expr: TypeExpr
    loc: Optional[Located] = None


@dataclass
class StructField:
    # Positional fields have no name.
    name: Optional[str]
    type_expr: TypeExpr
    loc: Optional[Located] = None


@dataclass
class StructDef:
    name: str
    fields: List[StructField]
    positional: bool
    loc: Located


class Expr:
    loc: Located


@dataclass
class Literal(Expr):
    loc: Located
    value: int


@dataclass
class Name(Expr):
    loc: Located
    ident: str


@dataclass
class Binary(Expr):
    loc: Located
    op: str
    left: Expr
    right: Expr


@dataclass
class Call(Expr):
    loc: Located
    name: str
    args: List[Expr] = field(default_factory=list)


class Stmt:
    loc: Located


@dataclass
class LetStmt(Stmt):
    loc: Located
    name: str
    type_expr: TypeExpr
    value: Expr


@dataclass
class ExprStmt(Stmt):
    loc: Located
    value: Expr


@dataclass
class ReturnStmt(Stmt):
    loc: Located
    value: Expr


@dataclass
class Block:
    statements: List[Stmt]

    @property
    def result(self) -> ReturnStmt:
        """The trailing return; the grammar guarantees exactly one, last."""
        last = self.statements[-1] if self.statements else None
        if not isinstance(last, ReturnStmt):
            raise ValueError("block does not end with a return statement")
        return last


@dataclass
class FunctionDef:
    name: str
    params: Sequence[Param]
    return_type: TypeExpr
    body: Block
    loc: Located


Item = Union[FunctionDef, StructDef]


@dataclass
class Program:
    items: List[Item] = field(default_factory=list)

    @property
    def functions(self) -> List[FunctionDef]:
        return [item for item in self.items if isinstance(item, FunctionDef)]

    @property
    def structs(self) -> List[StructDef]:
        return [item for item in self.items if isinstance(item, StructDef)]
