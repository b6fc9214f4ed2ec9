"""Recursive-descent parser for .bl programs.

Every grammar rule has one ``parse_*`` method. A method returns ``None`` when
the current token cannot start its rule (the cursor is left where it was), and
raises ParseError once it has consumed a token and the rest of the rule does
not follow.

    program    := statement* EOF
    statement  := "exit" "(" expr ")" ";"
                | "let" IDENT "=" expr ";"
                | IDENT "=" expr ";"
                | "{" statement* "}"
                | "if" "(" expr ")" scope ( "else" scope )?
    expr       := term ( ("+"|"-") term )*
    term       := factor ( ("*"|"/") factor )*
    factor     := INT | IDENT | "(" expr ")"
"""
from contextlib import contextmanager
from typing import List, Optional

from ast_node import (
    Assign,
    BinExpr,
    Exit,
    Expr,
    Ident,
    If,
    IntLit,
    Let,
    Paren,
    Program,
    Scope,
    Stmt,
)
from errors import ParseError
from lexer import EOF, Token

# Bounds the recursion of nested parentheses and blocks
MAX_NESTING = 128

# Human-readable names used in error messages
describe = {
    'OPEN_PAREN': "'('",
    'CLOSE_PAREN': "')'",
    'OPEN_CURLY': "'{'",
    'CLOSE_CURLY': "'}'",
    'SEMI': "';'",
    'EQ': "'='",
    'IDENT': 'identifier',
    'INT_LIT': 'integer literal',
    EOF: 'end of input',
}


class Parser:
    def __init__(self, tokens: List[Token], verbose: bool = False):
        if not tokens or tokens[-1].kind != EOF:
            raise ValueError('token sequence must end with EOF')
        self.tokens = tokens
        self.index = 0
        self.verbose = verbose
        self.depth = 0

    # ---------- cursor ----------
    def peek(self, offset=0) -> Token:
        # Never run past the EOF token
        return self.tokens[min(self.index + offset, len(self.tokens) - 1)]

    def consume(self) -> Token:
        tok = self.peek()
        if tok.kind != EOF:
            self.index += 1
        return tok

    def try_consume(self, kind) -> Optional[Token]:
        if self.peek().kind == kind:
            return self.consume()
        return None

    def expect(self, kind) -> Token:
        tok = self.try_consume(kind)
        if tok is None:
            self.error(f"Expected {describe.get(kind, kind)}")
        return tok

    def error(self, message):
        tok = self.peek()
        got = tok.value if tok.value is not None else describe.get(tok.kind, tok.kind)
        raise ParseError(f"{message}, got {got}", tok.line)

    @contextmanager
    def nested(self, what):
        if self.depth >= MAX_NESTING:
            raise ParseError(f'{what} nested too deeply', self.peek().line)
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1

    def trace(self, reduction):
        if self.verbose:
            print(reduction)

    # ---------- program ----------
    def parse_prog(self) -> Program:
        stmts = []
        while self.peek().kind != EOF:
            stmt = self.parse_stmt()
            if stmt is None:
                self.error('Invalid statement')
            stmts.append(stmt)
        self.trace('statement* EOF -> program')
        return Program(stmts)

    # ---------- statements ----------
    def parse_stmt(self) -> Optional[Stmt]:
        kind = self.peek().kind
        if kind == 'EXIT':
            return self.parse_exit()
        if kind == 'LET':
            return self.parse_let()
        if kind == 'IDENT':
            return self.parse_assign()
        if kind == 'OPEN_CURLY':
            return self.parse_scope()
        if kind == 'IF':
            return self.parse_if()
        return None

    def parse_exit(self) -> Optional[Exit]:
        tok = self.try_consume('EXIT')
        if tok is None:
            return None
        self.expect('OPEN_PAREN')
        expr = self.expect_expr()
        self.expect('CLOSE_PAREN')
        self.expect('SEMI')
        self.trace('exit ( expr ) ; -> statement')
        return Exit(expr, tok.line)

    def parse_let(self) -> Optional[Let]:
        tok = self.try_consume('LET')
        if tok is None:
            return None
        name = self.expect('IDENT').value
        self.expect('EQ')
        expr = self.expect_expr()
        self.expect('SEMI')
        self.trace('let IDENT = expr ; -> statement')
        return Let(name, expr, tok.line)

    def parse_assign(self) -> Optional[Assign]:
        tok = self.try_consume('IDENT')
        if tok is None:
            return None
        self.expect('EQ')
        expr = self.expect_expr()
        self.expect('SEMI')
        self.trace('IDENT = expr ; -> statement')
        return Assign(tok.value, expr, tok.line)

    def parse_scope(self) -> Optional[Scope]:
        tok = self.try_consume('OPEN_CURLY')
        if tok is None:
            return None
        stmts = []
        with self.nested('Block'):
            while True:
                stmt = self.parse_stmt()
                if stmt is None:
                    break
                stmts.append(stmt)
        self.expect('CLOSE_CURLY')
        self.trace('{ statement* } -> scope')
        return Scope(stmts, tok.line)

    def expect_scope(self) -> Scope:
        scope = self.parse_scope()
        if scope is None:
            self.error(f"Expected {describe['OPEN_CURLY']}")
        return scope

    def parse_if(self) -> Optional[If]:
        tok = self.try_consume('IF')
        if tok is None:
            return None
        self.expect('OPEN_PAREN')
        cond = self.expect_expr()
        self.expect('CLOSE_PAREN')
        then_scope = self.expect_scope()
        else_scope = None
        if self.try_consume('ELSE'):
            else_scope = self.expect_scope()
            self.trace('if ( expr ) scope else scope -> statement')
        else:
            self.trace('if ( expr ) scope -> statement')
        return If(cond, then_scope, else_scope, tok.line)

    # ---------- expressions ----------
    def expect_expr(self) -> Expr:
        expr = self.parse_expr()
        if expr is None:
            self.error('Expected expression')
        return expr

    def parse_expr(self) -> Optional[Expr]:
        lhs = self.parse_term()
        if lhs is None:
            return None
        while self.peek().kind in ('PLUS', 'MINUS'):
            op = '+' if self.consume().kind == 'PLUS' else '-'
            rhs = self.parse_term()
            if rhs is None:
                self.error(f"Expected term after '{op}'")
            lhs = BinExpr(op, lhs, rhs, lhs.line)
            self.trace(f'expr {op} term -> expr')
        return lhs

    def parse_term(self) -> Optional[Expr]:
        lhs = self.parse_factor()
        if lhs is None:
            return None
        while self.peek().kind in ('STAR', 'FSLASH'):
            op = '*' if self.consume().kind == 'STAR' else '/'
            rhs = self.parse_factor()
            if rhs is None:
                self.error(f"Expected factor after '{op}'")
            lhs = BinExpr(op, lhs, rhs, lhs.line)
            self.trace(f'term {op} factor -> term')
        return lhs

    def parse_factor(self) -> Optional[Expr]:
        tok = self.peek()
        if tok.kind == 'INT_LIT':
            self.consume()
            self.trace('INT_LIT -> factor')
            return IntLit(int(tok.value), tok.line)
        if tok.kind == 'IDENT':
            self.consume()
            self.trace('IDENT -> factor')
            return Ident(tok.value, tok.line)
        if tok.kind == 'OPEN_PAREN':
            self.consume()
            with self.nested('Expression'):
                expr = self.expect_expr()
            self.expect('CLOSE_PAREN')
            self.trace('( expr ) -> factor')
            return Paren(expr, tok.line)
        return None


def parse(tokens: List[Token], verbose: bool = False) -> Program:
    return Parser(tokens, verbose).parse_prog()
