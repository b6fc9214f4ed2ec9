class CompileError(Exception):
    """Base class for every error that makes a program invalid."""

    kind = 'Error'

    def __init__(self, message, lineno=None):
        self.message = message
        self.lineno = lineno
        if lineno is not None:
            message = f"{message} on line {lineno}"
        super().__init__(f"{self.kind}: {message}")


class LexicalError(CompileError):
    kind = 'Lexical error'


class ParseError(CompileError):
    kind = 'Syntax error'


class SemanticError(CompileError):
    kind = 'Semantic error'


class ToolchainError(Exception):
    pass
