"""AST DOT exporter.

Provides ASTDotExporter.to_dot(node), rendering a Program (or any subtree)
as a Graphviz digraph. Statement lists with more than two entries are
binary-ized with dashed connector nodes so long programs stay readable.
"""
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Any

from ast_node import node_children, node_label


class ASTDotExporter:
    def __init__(self):
        self.lines = []
        self.counter = 0

    def new_id(self) -> str:
        self.counter += 1
        return f'n{self.counter}'

    def escape(self, s: Any) -> str:
        # Escape double-quotes so strings can be safely embedded in DOT labels
        return str(s).replace('"', '\\"')

    def make_conn(self) -> str:
        cid = self.new_id()
        self.lines.append(f'  {cid} [label="·", style="dashed"];')
        return cid

    def add_node(self, n: Any) -> str:
        this_id = self.new_id()
        label = self.escape(node_label(n)).replace(': ', '\\n', 1)
        self.lines.append(f'  {this_id} [label="{label}"];')
        return this_id

    def child_slots(self, parent_id: str, children: list) -> list:
        # Up to two children hang directly off the parent; any further ones
        # go under a right-leaning chain of connector nodes.
        if len(children) <= 2:
            return [(parent_id, c) for c in children]
        slots = [(parent_id, children[0])]
        owner = parent_id
        for c in children[1:-1]:
            conn = self.make_conn()
            self.lines.append(f'  {owner} -> {conn};')
            slots.append((conn, c))
            owner = conn
        slots.append((owner, children[-1]))
        return slots

    def walk(self, root: Any) -> str:
        # Explicit stack: operator chains can be far deeper than the call stack
        root_id = self.add_node(root)
        pending = [(root, root_id)]
        while pending:
            n, this_id = pending.pop()
            for parent_id, child in self.child_slots(this_id, node_children(n)):
                cid = self.add_node(child)
                self.lines.append(f'  {parent_id} -> {cid};')
                pending.append((child, cid))
        return root_id

    def to_dot(self, node: Any) -> str:
        # Resets internal state so repeated calls produce fresh ids
        self.lines = ['digraph AST {', '  node [shape=box];']
        self.counter = 0
        self.walk(node)
        self.lines.append('}')
        return '\n'.join(self.lines)


def write_dot(ast, dot_path: Path) -> Path:
    """Write the DOT graph of ``ast``; also render a PNG when Graphviz is installed."""
    dot_path.write_text(ASTDotExporter().to_dot(ast), encoding='utf-8')
    print(f'Wrote AST DOT to {dot_path.resolve()}')

    dot = shutil.which('dot')
    if dot:
        png_path = dot_path.with_suffix('.png')
        proc = subprocess.run([dot, '-Tpng', str(dot_path), '-o', str(png_path)])
        if proc.returncode == 0:
            print(f'Wrote AST PNG to {png_path.resolve()}')
        else:
            print(f'Graphviz failed with status {proc.returncode}, no PNG written', file=sys.stderr)
    return dot_path
