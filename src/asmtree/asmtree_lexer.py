"""
Lexical analyzer for x86-64 (Intel syntax) assembly source.

This module converts raw source text into a flat token stream:

Classes:
    CharacterStream: Stream abstraction for reading characters with line/column tracking.
    Token: A single immutable token with type, value, and source location.
    Lexer: Converts a CharacterStream into a sequence of tokens.

Functions:
    tokenize(source): Lex a whole string into a list of tokens ending with EOF.

Features:
    - Skips spaces, tabs and carriage returns; newlines are real tokens because
      the parser uses them as statement delimiters
    - `;` and `#` line comments are kept as COMMENT tokens
    - Decimal and `0x` hexadecimal literals, with `_` digit separators
    - Two-word size specifiers (`byte ptr`, `word ptr`, `dword ptr`, `qword ptr`)
      recognised by speculative lookahead that never consumes on failure
    - Case-insensitive register recognition
    - Single- and double-quoted strings
    - Single-character punctuation

Raises:
    LexicalError: On an unrecognised character, an unterminated string, or a
        hex prefix without digits.

Example:
    >>> [t.type for t in tokenize("mov rax, 0x10")]
    ['IDENT', 'REGISTER', 'COMMA', 'HEX_NUMBER', 'EOF']
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from asmtree.asmtree_constants import REGISTERS, SIZE_SPECIFIERS, token_hashmap
from asmtree.asmtree_errors import LexicalError

logger = logging.getLogger(__name__)

DECIMAL_DIGITS = "0123456789"
HEX_DIGITS = "0123456789abcdefABCDEF"
INLINE_WHITESPACE = " \t\r"


class CharacterStream:
    """
    A utility for reading characters from a string source with line and column tracking.

    Attributes:
        source (str): The input source string.
        position (int): Current index in the source.
        line (int): Current line number (1-indexed).
        column (int): Current column number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """
        Consumes and returns the next character in the stream.

        Returns:
            str: The next character.

        Raises:
            EOFError: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise EOFError(
                f"CharacterStreamError: Attempted to read past end of source at position=<{self.position}>, line=<{self.line}>"
            )
        char = self.source[self.position]
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """
        Returns the character at the given offset from the current position without advancing.

        Args:
            offset (int, optional): Number of characters to look ahead. Defaults to 0.

        Returns:
            str: The character at the offset, or an empty string if out of bounds.
        """
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)

    def snapshot(self) -> tuple[int, int, int]:
        """Captures the cursor so a speculative read can be undone with `restore`."""
        return self.position, self.line, self.column

    def restore(self, state: tuple[int, int, int]) -> None:
        self.position, self.line, self.column = state


@dataclass(frozen=True)
class Token:
    """A single lexical token.

    Attributes:
        type (str): The canonical token type (e.g. 'IDENT', 'REGISTER', 'EOF').
        value (str): The literal text of the token (digit separators removed
            from numbers, quotes removed from strings).
        line (int): The 1-based line number where the token starts.
        col (int): The 1-based column number where the token starts.
    """

    type: str
    value: str
    line: int = 0
    col: int = 0

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value!r})"


class Lexer:
    """Lexical analyzer for x86-64 assembly.

    The Lexer takes a CharacterStream and converts it into a stream of Token
    objects. A Lexer holds a private cursor and is meant for a single pass.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream

    def peek(self, offset: int = 0) -> str:
        return self.stream.peek(offset)

    def advance(self) -> str:
        return self.stream.next()

    def skip_whitespace(self) -> None:
        """Skips spaces, tabs and carriage returns; never newlines."""
        while not self.stream.end_of_file() and self.peek() in INLINE_WHITESPACE:
            self.advance()

    def tokenize(self) -> list[Token]:
        """Consumes the whole stream.

        Returns:
            list[Token]: Every token in source order, terminated by a single EOF token.
        """
        tokens: list[Token] = []
        while True:
            tok = self.next_token()
            tokens.append(tok)
            if tok.type == "EOF":
                break
        logger.debug("lexed %d tokens", len(tokens))
        return tokens

    def next_token(self) -> Token:
        """Consumes and returns the next Token from the stream.

        Returns:
            Token: The next token, or an EOF token once the source is exhausted.

        Raises:
            LexicalError: If the next character cannot start any token.
        """
        self.skip_whitespace()

        line, col = self.stream.line, self.stream.column
        if self.stream.end_of_file():
            return Token("EOF", "", line, col)

        ch = self.peek()

        if ch == "\n":
            self.advance()
            return Token("NEWLINE", "\n", line, col)

        if ch in ";#":
            return self.read_comment()

        # Hex must be tried before plain decimals.
        if ch == "0" and self.peek(1) in ("x", "X"):
            return self.read_hex_number()

        if ch in DECIMAL_DIGITS:
            return self.read_number()

        if ch.isalpha() or ch == "_":
            return self.read_identifier()

        if ch in ('"', "'"):
            return self.read_string()

        if ch in token_hashmap:
            self.advance()
            return Token(token_hashmap[ch], ch, line, col)

        raise LexicalError(f"Unexpected character {ch!r}", line, col)

    def read_comment(self) -> Token:
        line, col = self.stream.line, self.stream.column
        text = ""
        while not self.stream.end_of_file() and self.peek() != "\n":
            text += self.advance()
        return Token("COMMENT", text, line, col)

    def read_number(self) -> Token:
        line, col = self.stream.line, self.stream.column
        digits = ""
        while not self.stream.end_of_file() and (
            self.peek() in DECIMAL_DIGITS or self.peek() == "_"
        ):
            ch = self.advance()
            if ch != "_":
                digits += ch
        return Token("NUMBER", digits, line, col)

    def read_hex_number(self) -> Token:
        line, col = self.stream.line, self.stream.column
        prefix = self.advance() + self.advance()
        digits = ""
        while not self.stream.end_of_file() and (
            self.peek() in HEX_DIGITS or self.peek() == "_"
        ):
            ch = self.advance()
            if ch != "_":
                digits += ch
        if not digits:
            raise LexicalError("Hex literal has no digits", line, col)
        return Token("HEX_NUMBER", prefix + digits, line, col)

    def read_identifier(self) -> Token:
        """Reads an identifier, size specifier or register name."""
        line, col = self.stream.line, self.stream.column
        ident = ""
        while not self.stream.end_of_file() and (
            self.peek().isalnum() or self.peek() == "_"
        ):
            ident += self.advance()

        lowered = ident.lower()
        if lowered in SIZE_SPECIFIERS and self.match_word_ahead("ptr"):
            return Token(SIZE_SPECIFIERS[lowered], f"{lowered} ptr", line, col)

        if lowered in REGISTERS:
            return Token("REGISTER", ident, line, col)
        return Token("IDENT", ident, line, col)

    def match_word_ahead(self, word: str) -> bool:
        """Speculatively matches `word` after inline whitespace, case-insensitively.

        On success the whitespace and the word are consumed. On failure the
        stream position, line and column are exactly as before the call.
        """
        state = self.stream.snapshot()
        self.skip_whitespace()
        for expected in word:
            if self.peek().lower() != expected:
                self.stream.restore(state)
                return False
            self.advance()
        following = self.peek()
        if following.isalnum() or following == "_":
            self.stream.restore(state)
            return False
        return True

    def read_string(self) -> Token:
        line, col = self.stream.line, self.stream.column
        quote = self.advance()
        val = ""
        while not self.stream.end_of_file() and self.peek() not in (quote, "\n"):
            if self.peek() == "\\":
                val += self.advance()
                if self.stream.end_of_file() or self.peek() == "\n":
                    break
            val += self.advance()
        if self.peek() != quote:
            raise LexicalError("Unterminated string", line, col)
        self.advance()
        return Token("STRING", val, line, col)


def tokenize(source: str) -> list[Token]:
    """Lexes `source` with a fresh Lexer and returns all tokens including EOF."""
    return Lexer(CharacterStream(source)).tokenize()


__all__ = ["CharacterStream", "Lexer", "Token", "tokenize"]
