from dataclasses import dataclass, field, fields
from typing import List, Optional, Union


@dataclass
class IntLit:
    value: int
    line: int = 0


@dataclass
class Ident:
    name: str
    line: int = 0


@dataclass
class BinExpr:
    op: str  # one of + - * /
    lhs: 'Expr'
    rhs: 'Expr'
    line: int = 0


@dataclass
class Paren:
    expr: 'Expr'
    line: int = 0


Expr = Union[IntLit, Ident, BinExpr, Paren]


@dataclass
class Exit:
    expr: Expr
    line: int = 0


@dataclass
class Let:
    name: str
    expr: Expr
    line: int = 0


@dataclass
class Assign:
    name: str
    expr: Expr
    line: int = 0


@dataclass
class Scope:
    stmts: List['Stmt'] = field(default_factory=list)
    line: int = 0


@dataclass
class If:
    cond: Expr
    then_scope: Scope
    else_scope: Optional[Scope] = None
    line: int = 0


Stmt = Union[Exit, Let, Assign, Scope, If]


@dataclass
class Program:
    stmts: List[Stmt] = field(default_factory=list)


def node_label(node) -> str:
    """Short one-line description of a node, without its children."""
    name = type(node).__name__
    if isinstance(node, IntLit):
        return f'{name}: {node.value}'
    if isinstance(node, (Ident, Let, Assign)):
        return f'{name}: {node.name}'
    if isinstance(node, BinExpr):
        return f'{name}: {node.op}'
    return name


def node_children(node) -> list:
    """Child nodes in source order; ``None`` branches are skipped."""
    children = []
    for f in fields(node):
        value = getattr(node, f.name)
        if isinstance(value, list):
            children.extend(value)
        elif is_node(value):
            children.append(value)
    return children


def is_node(obj) -> bool:
    return isinstance(obj, (IntLit, Ident, BinExpr, Paren, Exit, Let, Assign, Scope, If, Program))


def to_lines(node, level=0):
    # Explicit stack: operator chains can be far deeper than the call stack
    lines = []
    pending = [(node, level)]
    while pending:
        n, depth = pending.pop()
        lines.append(f"{'  ' * depth}{node_label(n)}")
        pending.extend((c, depth + 1) for c in reversed(node_children(n)))
    return lines


def format_tree(node) -> str:
    return '\n'.join(to_lines(node))
