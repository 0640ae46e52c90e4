"""
Positioned errors raised by the asmtree lexer and parser.

Both error kinds subclass the builtin `SyntaxError`, so callers that already
catch `SyntaxError` keep working, and carry the source position of the
offending character or token.

Classes:
    AssemblyError: Common base with `message`, `line` and `column`.
    LexicalError: Raised by the lexer on input it cannot tokenize.
    AssemblySyntaxError: Raised by the parser on a grammar violation.
"""


class AssemblyError(SyntaxError):
    """Base class for asmtree front-end errors.

    Attributes:
        message (str): Human-readable description without position.
        line (int): 1-based source line.
        column (int): 1-based source column.
    """

    def __init__(self, message: str, line: int, column: int) -> None:
        super().__init__(f"{message} at line {line}, col {column}")
        self.message = message
        self.line = line
        self.column = column

    def __str__(self) -> str:
        return f"{self.message} at line {self.line}, col {self.column}"


class LexicalError(AssemblyError):
    """Unrecognised character, unterminated string or malformed literal."""


class AssemblySyntaxError(AssemblyError):
    """Token sequence that does not match the assembly grammar."""


__all__ = ["AssemblyError", "AssemblySyntaxError", "LexicalError"]
