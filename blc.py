import argparse
import sys
from pathlib import Path

import toolchain
from assembler_generator import generate_assembler
from ast_exporter import write_dot
from ast_node import format_tree
from errors import CompileError, ToolchainError
from lexer import tokenize
from parser import parse


def compile_source(code: str, verbose: bool = False):
    """Run the whole front end; returns (program, assembly text)."""
    tokens = tokenize(code, verbose)
    prog = parse(tokens, verbose)
    return prog, generate_assembler(prog)


def build_arg_parser():
    ap = argparse.ArgumentParser(prog='blc', description='Compile a .bl program to x86-64 and run it.')
    ap.add_argument('input', help='source file (.bl)')
    ap.add_argument('-o', '--output', default=toolchain.DEFAULT_STEM,
                    help='stem of the .asm/.o/executable files (default: %(default)s)')
    ap.add_argument('-S', dest='asm_only', action='store_true',
                    help='stop after writing the assembly')
    ap.add_argument('--ast', action='store_true', help='print the syntax tree')
    ap.add_argument('--dot', metavar='PATH', help='write the syntax tree as a Graphviz DOT file')
    ap.add_argument('-v', '--verbose', action='store_true', help='trace tokens and parser reductions')
    return ap


def main(argv=None):
    args = build_arg_parser().parse_args(argv)

    try:
        code = Path(args.input).read_text(encoding='utf-8')
    except OSError as e:
        print(f'Cannot read {args.input}: {e.strerror}', file=sys.stderr)
        return 1

    try:
        prog, asm_text = compile_source(code, args.verbose)
    except CompileError as e:
        print(f'Invalid program: {e}', file=sys.stderr)
        return 1

    if args.ast:
        print(format_tree(prog))
    if args.dot:
        write_dot(prog, Path(args.dot))

    asm_path = toolchain.write_assembly(asm_text, args.output)
    print(f'Generated assembler at {asm_path}')
    if args.asm_only:
        return 0

    try:
        toolchain.assemble(args.output)
        toolchain.link(args.output)
    except ToolchainError as e:
        print(f'Build failed: {e}', file=sys.stderr)
        return 1
    return toolchain.run(args.output)


if __name__ == '__main__':
    sys.exit(main())
