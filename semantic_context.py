from dataclasses import dataclass
from typing import List

from errors import SemanticError


@dataclass(frozen=True)
class Variable:
    name: str
    # Slot index counted from the bottom of the evaluation stack
    stack_loc: int


class SemanticContext:
    """Active variable bindings of the program being generated.

    Bindings live in one ordered list; each open scope remembers how long that
    list was when it was entered, so leaving it is a truncation.
    """

    def __init__(self):
        self.vars: List[Variable] = []
        self.scopes: List[int] = []

    @property
    def depth(self) -> int:
        return len(self.scopes)

    def enter_scope(self):
        self.scopes.append(len(self.vars))

    def leave_scope(self) -> int:
        """Close the innermost scope; returns how many bindings it released."""
        if not self.scopes:
            raise AssertionError('leave_scope() without a matching enter_scope()')
        marker = self.scopes.pop()
        released = len(self.vars) - marker
        del self.vars[marker:]
        return released

    def declare(self, name: str, stack_loc: int, lineno: int = 0) -> Variable:
        # Only the innermost scope is checked, outer names may be shadowed
        start = self.scopes[-1] if self.scopes else 0
        if any(v.name == name for v in self.vars[start:]):
            raise SemanticError(f"Identifier '{name}' already declared in this scope", lineno)
        var = Variable(name, stack_loc)
        self.vars.append(var)
        return var

    def lookup(self, name: str, lineno: int = 0) -> Variable:
        for var in reversed(self.vars):
            if var.name == name:
                return var
        raise SemanticError(f"Undeclared identifier '{name}'", lineno)
