from dataclasses import dataclass
from typing import List, Optional

import ply.lex as lex

from errors import LexicalError

reserved = {
    'exit': 'EXIT',
    'let': 'LET',
    'if': 'IF',
    'else': 'ELSE',
}

tokens = [
    'INT_LIT',
    'IDENT',
    'OPEN_PAREN',
    'CLOSE_PAREN',
    'OPEN_CURLY',
    'CLOSE_CURLY',
    'SEMI',
    'EQ',
    'PLUS',
    'MINUS',
    'STAR',
    'FSLASH',
] + list(reserved.values())

# Appended by tokenize(), never produced by a ply rule
EOF = 'EOF'

INT_MAX = 2 ** 63 - 1


@dataclass(frozen=True)
class Token:
    kind: str
    value: Optional[str] = None
    line: int = 1


# Single-character punctuation
t_OPEN_PAREN = r'\('
t_CLOSE_PAREN = r'\)'
t_OPEN_CURLY = r'\{'
t_CLOSE_CURLY = r'\}'
t_SEMI = r';'
t_EQ = r'='
t_PLUS = r'\+'
t_MINUS = r'-'
t_STAR = r'\*'
t_FSLASH = r'/'


def t_INT_LIT(t):
    r'[0-9]+[A-Za-z0-9]*'
    # Digits glued to letters (1abc) are neither a number nor an identifier
    if not t.value.isdigit():
        raise LexicalError(f"Malformed integer literal '{t.value}'", t.lexer.lineno)
    if int(t.value) > INT_MAX:
        raise LexicalError(f"Integer literal out of range (64 bits signed) '{t.value}'", t.lexer.lineno)
    return t


def t_IDENT(t):
    r'[A-Za-z][A-Za-z0-9]*'
    t.type = reserved.get(t.value, 'IDENT')
    return t


# Newlines only advance the line counter
def t_newline(t):
    r'\n+'
    t.lexer.lineno += len(t.value)


t_ignore = ' \t\r'


def t_error(t):
    raise LexicalError(f"Invalid character '{t.value[0]}'", t.lexer.lineno)


# Build the lexer
lexer = lex.lex()


def tokenize(code: str, verbose: bool = False) -> List[Token]:
    """Split ``code`` into tokens, ending with a single EOF token.

    Raises LexicalError on the first character no rule accepts; nothing is
    returned in that case.
    """
    scanner = lexer.clone()
    scanner.lineno = 1
    scanner.input(code)
    result = []
    while True:
        tok = scanner.token()
        if not tok:
            break
        # Only literals and identifiers carry their lexeme downstream
        value = tok.value if tok.type in ('INT_LIT', 'IDENT') else None
        result.append(Token(tok.type, value, tok.lineno))
        if verbose:
            print(f'TOKEN: {tok.type} LEXEME: {tok.value}')
    result.append(Token(EOF, None, scanner.lineno))
    return result
