from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from lark import Token, Tree
from lark.exceptions import UnexpectedToken

from ._grammar import END, LARK, display_name
from .ast import (
    Binary,
    Block,
    Call,
    Expr,
    ExprStmt,
    FunctionDef,
    Item,
    LetStmt,
    Literal,
    Located,
    Name,
    Param,
    Program,
    ReturnStmt,
    Stmt,
    StructDef,
    StructField,
    TypeExpr,
)
from .diagnostics import ParseError, Span
from .lexer import tokenize

logger = logging.getLogger(__name__)


def parse_program(source: str, file: Optional[str] = None) -> Program:
    return parse_tokens(tokenize(source, file=file), file=file)


def parse_tokens(tokens: Iterable[Token], file: Optional[str] = None) -> Program:
    """
    Drive the LALR parser one token at a time.

    The stream must end with the lexer's `$END` token; the tree is returned
    when that token is accepted. The first mismatch raises ParseError and no
    partial tree is kept.
    """
    interactive = LARK.parse_interactive("")
    tree: Optional[Tree] = None
    for token in tokens:
        try:
            result = interactive.feed_token(token)
        except UnexpectedToken as exc:
            raise _parse_error(exc, file) from None
        if token.type == END:
            tree = result
            break
    if tree is None:
        raise ValueError("token stream did not end with an end-of-input token")
    program = _build_program(tree)
    logger.debug("parsed %d items", len(program.items))
    return program


def _parse_error(exc: UnexpectedToken, file: Optional[str]) -> ParseError:
    token = exc.token
    expected = tuple(sorted(display_name(name) for name in exc.expected))
    if token.type == END:
        found = "end of input"
    else:
        found = f"{display_name(token.type)} {token.value!r}" if token.type in {"NAME", "INT"} else display_name(token.type)
    return ParseError(expected=expected, found=found, span=Span(file=file, line=token.line, column=token.column))


def _build_program(tree: Tree) -> Program:
    items: List[Item] = []
    for child in tree.children:
        if not isinstance(child, Tree):
            continue
        kind = _name(child)
        if kind == "func_def":
            items.append(_build_function(child))
        elif kind == "struct_def":
            items.append(_build_struct_def(child))
        else:
            raise ValueError(f"unexpected top-level node: {kind}")
    return Program(items=items)


def _build_function(tree: Tree) -> FunctionDef:
    loc = _loc(tree)
    children = list(tree.children)
    idx = 0
    name_token = children[idx]
    idx += 1
    params: List[Param] = []
    if _name(children[idx]) == "params":
        params = [_build_param(p) for p in children[idx].children if isinstance(p, Tree)]
        idx += 1
    return_type = _build_type_expr(children[idx])
    idx += 1
    body = _build_block(children[idx])
    return FunctionDef(
        name=name_token.value,
        params=params,
        return_type=return_type,
        body=body,
        loc=loc,
    )


def _build_param(tree: Tree) -> Param:
    name_token = next(child for child in tree.children if isinstance(child, Token) and child.type == "NAME")
    type_node = next(child for child in tree.children if isinstance(child, Tree) and _name(child) == "type_expr")
    return Param(name=name_token.value, type_expr=_build_type_expr(type_node), loc=_loc_from_token(name_token))


def _build_type_expr(tree: Tree) -> TypeExpr:
    name_token = tree.children[0]
    return TypeExpr(name=name_token.value, loc=_loc_from_token(name_token))


def _build_struct_def(tree: Tree) -> StructDef:
    loc = _loc(tree)
    name_token = tree.children[0]
    body = tree.children[1]
    if _name(body) == "named_fields":
        fields = [_build_named_field(node) for node in body.children if isinstance(node, Tree)]
        positional = False
    else:
        fields = [
            StructField(name=None, type_expr=_build_type_expr(node), loc=_loc(node))
            for node in body.children
            if isinstance(node, Tree)
        ]
        positional = True
    return StructDef(name=name_token.value, fields=fields, positional=positional, loc=loc)


def _build_named_field(tree: Tree) -> StructField:
    name_token = tree.children[0]
    type_node = next(child for child in tree.children if isinstance(child, Tree))
    return StructField(name=name_token.value, type_expr=_build_type_expr(type_node), loc=_loc_from_token(name_token))


def _build_block(tree: Tree) -> Block:
    statements: List[Stmt] = [_build_stmt(child) for child in tree.children if isinstance(child, Tree)]
    return Block(statements=statements)


def _build_stmt(tree: Tree) -> Stmt:
    kind = _name(tree)
    if kind == "let_stmt":
        return _build_let_stmt(tree)
    if kind == "expr_stmt":
        return ExprStmt(loc=_loc(tree), value=_build_expr(tree.children[0]))
    if kind == "return_stmt":
        return ReturnStmt(loc=_loc(tree), value=_build_expr(tree.children[0]))
    raise ValueError(f"unsupported statement node: {kind}")


def _build_let_stmt(tree: Tree) -> LetStmt:
    name_token, type_node, value_node = tree.children
    return LetStmt(
        loc=_loc(tree),
        name=name_token.value,
        type_expr=_build_type_expr(type_node),
        value=_build_expr(value_node),
    )


def _build_expr(node) -> Expr:
    if not isinstance(node, Tree):
        raise TypeError(f"Unexpected node type: {type(node)}")
    name = _name(node)
    if name == "sum":
        return _fold_chain(node, "sum_tail")
    if name == "product":
        return _fold_chain(node, "product_tail")
    if name == "int_lit":
        return Literal(loc=_loc(node), value=int(node.children[0].value))
    if name == "var":
        return Name(loc=_loc(node), ident=node.children[0].value)
    if name == "call":
        return _build_call(node)
    raise ValueError(f"Unsupported expression node: {name}")


def _fold_chain(tree: Tree, tail_name: str) -> Expr:
    # Every link of the chain starts where its leftmost operand starts.
    loc = _loc(tree)
    child_nodes = [child for child in tree.children if isinstance(child, Tree)]
    result = _build_expr(child_nodes[0])
    for tail in child_nodes[1:]:
        if _name(tail) != tail_name:
            raise ValueError(f"unexpected node in operator chain: {_name(tail)}")
        op_token, operand = tail.children
        result = Binary(loc=loc, op=op_token.value, left=result, right=_build_expr(operand))
    return result


def _build_call(tree: Tree) -> Call:
    name_token = tree.children[0]
    args: List[Expr] = []
    if len(tree.children) > 1:
        args = [_build_expr(arg) for arg in tree.children[1].children if isinstance(arg, Tree)]
    return Call(loc=_loc(tree), name=name_token.value, args=args)


def _loc(tree: Tree) -> Located:
    meta = tree.meta
    return Located(line=meta.line, column=meta.column)


def _loc_from_token(token: Token) -> Located:
    return Located(line=token.line, column=token.column)


def _name(node: Tree | Token) -> str:
    if isinstance(node, Tree):
        data = node.data
        if isinstance(data, Token):
            return data.value
        return data
    if isinstance(node, Token):
        return node.type
    return str(node)
