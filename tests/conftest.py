import re
import shutil

import pytest

from assembler_generator import generate_assembler
from lexer import tokenize
from parser import parse

MASK = (1 << 64) - 1

MEM = re.compile(r'(?:QWORD )?\[rsp \+ (\d+)\]$')


def signed(v):
    v &= MASK
    return v - (1 << 64) if v >> 63 else v


class StackMachine:
    """Executes the instruction subset the generator emits.

    The machine stack is a Python list whose last item is at [rsp].
    """

    def __init__(self, asm_text, max_steps=100000):
        self.lines = [l.strip() for l in asm_text.splitlines() if l.strip()]
        self.labels = {l[:-1]: i for i, l in enumerate(self.lines) if l.endswith(':')}
        self.regs = {'rax': 0, 'rbx': 0, 'rdx': 0, 'rdi': 0}
        self.stack = []
        self.zf = False
        self.max_steps = max_steps

    def read(self, operand):
        m = MEM.match(operand)
        if m:
            return self.stack[-1 - int(m.group(1)) // 8]
        if operand in self.regs:
            return self.regs[operand]
        return signed(int(operand))

    def run(self):
        pc = self.labels['_start']
        for _ in range(self.max_steps):
            pc += 1
            line = self.lines[pc]
            if line.endswith(':'):
                continue
            op, _, rest = line.partition(' ')
            args = [a.strip() for a in rest.split(',')] if rest else []
            if op == 'mov':
                m = MEM.match(args[0])
                if m:
                    self.stack[-1 - int(m.group(1)) // 8] = self.read(args[1])
                else:
                    self.regs[args[0]] = self.read(args[1])
            elif op == 'push':
                self.stack.append(self.read(args[0]))
            elif op == 'pop':
                self.regs[args[0]] = self.stack.pop()
            elif op == 'add' and args[0] == 'rsp':
                del self.stack[len(self.stack) - int(args[1]) // 8:]
            elif op in ('add', 'sub', 'imul'):
                a, b = self.regs[args[0]], self.read(args[1])
                self.regs[args[0]] = signed({'add': a + b, 'sub': a - b, 'imul': a * b}[op])
            elif op == 'cqo':
                self.regs['rdx'] = -1 if self.regs['rax'] < 0 else 0
            elif op == 'idiv':
                a, b = self.regs['rax'], self.read(args[0])
                if b == 0:
                    raise ZeroDivisionError('idiv by zero')
                q = abs(a) // abs(b)
                q = q if (a < 0) == (b < 0) else -q
                self.regs['rax'], self.regs['rdx'] = signed(q), signed(a - q * b)
            elif op == 'test':
                self.zf = (self.read(args[0]) & self.read(args[1])) == 0
            elif op == 'jz':
                if self.zf:
                    pc = self.labels[args[0]]
            elif op == 'jmp':
                pc = self.labels[args[0]]
            elif op == 'syscall':
                assert self.regs['rax'] == 60
                return self.regs['rdi'] & 0xFF
            else:
                raise AssertionError(f'unexpected instruction: {line}')
        raise AssertionError('program did not terminate')


def compile_text(code):
    return generate_assembler(parse(tokenize(code)))


@pytest.fixture
def run_source():
    """Compile source text and return the exit status of the emulated program."""
    def run(code):
        return StackMachine(compile_text(code)).run()
    return run


requires_toolchain = pytest.mark.skipif(
    shutil.which('nasm') is None or shutil.which('ld') is None,
    reason='nasm and ld are required',
)
