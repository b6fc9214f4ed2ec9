from typing import List

from ast_node import (
    Assign,
    BinExpr,
    Exit,
    Ident,
    If,
    IntLit,
    Let,
    Paren,
    Program,
    Scope,
)
from semantic_context import SemanticContext

WORD = 8
SYS_EXIT = 60

ARITHMETIC = {
    '+': ['add rax, rbx'],
    '-': ['sub rax, rbx'],
    '*': ['imul rax, rbx'],
    '/': ['cqo', 'idiv rbx'],
}


class Generator:
    """Lower a Program to NASM x86-64 text for a stack machine.

    Every expression leaves exactly one 8-byte value on the machine stack.
    ``stack_size`` mirrors the stack depth at the instruction being emitted,
    which is what turns a variable's slot into an ``rsp`` offset.
    """

    def __init__(self, prog: Program):
        self.prog = prog
        self.code: List[str] = []
        self.stack_size = 0
        self.label_count = 0
        self.ctx = SemanticContext()

    # ---------- emission helpers ----------
    def emit(self, instr: str):
        self.code.append(f'    {instr}')

    def emit_label(self, label: str):
        self.code.append(f'{label}:')

    def push(self, operand: str):
        self.emit(f'push {operand}')
        self.stack_size += 1

    def pop(self, reg: str):
        self.emit(f'pop {reg}')
        self.stack_size -= 1

    def create_label(self) -> str:
        label = f'label{self.label_count}'
        self.label_count += 1
        return label

    def slot_offset(self, stack_loc: int) -> int:
        return (self.stack_size - stack_loc - 1) * WORD

    # ---------- scopes ----------
    def begin_scope(self):
        self.ctx.enter_scope()

    def end_scope(self):
        released = self.ctx.leave_scope()
        if released:
            self.emit(f'add rsp, {released * WORD}')
            self.stack_size -= released

    # ---------- expressions ----------
    def gen_expr(self, expr):
        if isinstance(expr, IntLit):
            self.emit(f'mov rax, {expr.value}')
            self.push('rax')
        elif isinstance(expr, Ident):
            var = self.ctx.lookup(expr.name, expr.line)
            self.push(f'QWORD [rsp + {self.slot_offset(var.stack_loc)}]')
        elif isinstance(expr, Paren):
            self.gen_expr(expr.expr)
        elif isinstance(expr, BinExpr):
            # Left-associative chains nest on the lhs; walk that spine
            # instead of recursing once per operator
            chain = []
            node = expr
            while isinstance(node, BinExpr):
                chain.append(node)
                node = node.lhs
            self.gen_expr(node)
            for link in reversed(chain):
                # Right operand ends up on top, so it is popped first
                self.gen_expr(link.rhs)
                self.pop('rbx')
                self.pop('rax')
                for instr in ARITHMETIC[link.op]:
                    self.emit(instr)
                self.push('rax')
        else:
            raise TypeError(f'not an expression node: {expr!r}')

    # ---------- statements ----------
    def gen_scope(self, scope: Scope):
        self.begin_scope()
        for stmt in scope.stmts:
            self.gen_stmt(stmt)
        self.end_scope()

    def gen_if(self, stmt: If):
        self.gen_expr(stmt.cond)
        self.pop('rax')
        self.emit('test rax, rax')
        else_label = self.create_label()
        self.emit(f'jz {else_label}')
        self.gen_scope(stmt.then_scope)
        if stmt.else_scope is None:
            self.emit_label(else_label)
            return
        end_label = self.create_label()
        self.emit(f'jmp {end_label}')
        self.emit_label(else_label)
        self.gen_scope(stmt.else_scope)
        self.emit_label(end_label)

    def gen_stmt(self, stmt):
        if isinstance(stmt, Exit):
            self.gen_expr(stmt.expr)
            self.emit(f'mov rax, {SYS_EXIT}')
            self.pop('rdi')
            self.emit('syscall')
        elif isinstance(stmt, Let):
            # The value is computed before the name is bound, so the
            # initializer still sees any outer binding it shadows
            stack_loc = self.stack_size
            self.gen_expr(stmt.expr)
            self.ctx.declare(stmt.name, stack_loc, stmt.line)
        elif isinstance(stmt, Assign):
            var = self.ctx.lookup(stmt.name, stmt.line)
            self.gen_expr(stmt.expr)
            self.pop('rax')
            self.emit(f'mov [rsp + {self.slot_offset(var.stack_loc)}], rax')
        elif isinstance(stmt, Scope):
            self.gen_scope(stmt)
        elif isinstance(stmt, If):
            self.gen_if(stmt)
        else:
            raise TypeError(f'not a statement node: {stmt!r}')

    def gen_prog(self) -> str:
        self.code = ['global _start', '_start:']
        for stmt in self.prog.stmts:
            self.gen_stmt(stmt)
        assert self.ctx.depth == 0, 'unbalanced scopes after generation'
        # Falling off the end exits with status 0
        self.emit(f'mov rax, {SYS_EXIT}')
        self.emit('mov rdi, 0')
        self.emit('syscall')
        return '\n'.join(self.code) + '\n'


def generate_assembler(prog: Program) -> str:
    return Generator(prog).gen_prog()
