"""
x86-64 Assembly Parser

Parses lexer tokens into an immutable `Program` tree.

The parser is a hand-written recursive-descent engine over the flat token
list produced by `asmtree_lexer`. Newlines delimit statements; everything
else is free-form within a line. Expressions are parsed with an explicit
operator stack, so parentheses and prefix signs nest to any depth.

Supported Constructs
--------------------
- Statements:
    * Instructions: `mnemonic op1, op2 ...` with an optional trailing comment
    * Labels: `name:` alone on a line or in front of an instruction
    * Colon-less data/equate labels: `name db ...`, `name equ ...`
    * Equate directives (`EQU`, `EQO`, `EQ`) whose body is one expression
- Operands:
    * Registers, strings, immediates, label references
    * Memory: `[seg:base+index*scale+disp]` and `seg:[...]`
    * Size specifiers: `byte ptr`, `word ptr`, `dword ptr`, `qword ptr`
    * Arithmetic expressions with `+ - * / %`, unary `+`/`-`, `$` and parentheses

Label Attachment
----------------
A label followed by an instruction on the same line is attached to it. A
label alone on its line becomes *pending* and is attached to the next
instruction. A pending label that is still unattached when another label is
declared, or when the input ends, gets its own anchor instruction
(`ANCHOR_MNEMONIC`, no operands), so every label maps to exactly one
instruction.

Parser Behavior
---------------
- Fail-fast: the first grammar violation raises `AssemblySyntaxError`; no
  partial tree is returned.
- A Parser holds a private cursor and pending-label state; construct a new
  one for every token list.

Entry Points
------------
- `Parser(tokens).parse()`: parse a token list ending with EOF.
- `parse_source(text)`: lex and parse a source string.
"""

from __future__ import annotations

import logging

from asmtree.asmtree_ast import (
    BinaryExpr,
    CurrentLocationExpr,
    Expression,
    ExpressionOperand,
    ImmediateOperand,
    Instruction,
    Label,
    LabelReferenceOperand,
    LiteralExpr,
    MemoryOperand,
    Operand,
    Program,
    RegisterOperand,
    StringOperand,
    SymbolExpr,
    UnaryExpr,
)
from asmtree.asmtree_constants import (
    ANCHOR_MNEMONIC,
    DIRECTIVE_KEYWORDS,
    EQUATE_DIRECTIVES,
    INT64_MAX,
    LINE_END_TOKENS,
    NUMERIC_TOKENS,
    SIZE_BITS,
    UINT64_MASK,
)
from asmtree.asmtree_errors import AssemblySyntaxError
from asmtree.asmtree_lexer import CharacterStream, Lexer, Token

logger = logging.getLogger(__name__)

# Higher binds tighter.
BINARY_PRECEDENCE: dict[str, int] = {
    "PLUS": 1,
    "SUB": 1,
    "MULT": 2,
    "DIV": 2,
    "MOD": 2,
}
UNARY_PRECEDENCE = 3


def describe(tok: Token) -> str:
    """Short human-readable name of a token for error messages."""
    if tok.type == "EOF":
        return "end of input"
    if tok.type == "NEWLINE":
        return "end of line"
    return f"{tok.type} {tok.value!r}"


class Parser:
    """
    Assembly Parser Class

    Transforms a list of tokens into a `Program`.

    Attributes
    ----------
    tokens : list[Token]
        The input token stream, terminated by an EOF token.
    position : int
        Current index into the token stream.
    pending_label : Label | None
        Label declared alone on its line and not yet attached to an instruction.
    instructions : list[Instruction]
        Instructions collected so far, in source order.
    labels : list[Label]
        Label declarations collected so far, in source order.

    Raises
    ------
    AssemblySyntaxError
        When a token sequence does not match the grammar.
    """

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens: list[Token] = tokens
        self.position: int = 0
        self.pending_label: Label | None = None
        self.instructions: list[Instruction] = []
        self.labels: list[Label] = []

    def current(self) -> Token:
        return self.peek(0)

    def peek(self, offset: int = 1) -> Token:
        index = self.position + offset
        if index < len(self.tokens):
            return self.tokens[index]
        last = self.tokens[-1] if self.tokens else Token("EOF", "")
        if last.type == "EOF":
            return last
        return Token("EOF", "", last.line, last.col)

    def advance(self) -> Token:
        """Consumes the current token and returns it."""
        tok = self.current()
        if self.position < len(self.tokens):
            self.position += 1
        return tok

    def error(self, message: str, tok: Token | None = None) -> AssemblySyntaxError:
        tok = tok or self.current()
        return AssemblySyntaxError(message, tok.line, tok.col)

    def match(self, *types: str, message: str | None = None) -> Token:
        tok = self.current()
        if tok.type in types:
            return self.advance()
        expected = message or f"Expected {' or '.join(types)}"
        raise self.error(f"{expected}, got {describe(tok)}", tok)

    def at_line_end(self) -> bool:
        return self.current().type in LINE_END_TOKENS

    # ---- statements ----

    def parse(self) -> Program:
        """Parse the whole token list and return the program tree."""
        while self.current().type != "EOF":
            if self.current().type in ("NEWLINE", "COMMENT"):
                self.advance()
                continue
            self.parse_statement()

        self.flush_pending_label()
        logger.debug(
            "parsed %d instructions, %d labels",
            len(self.instructions),
            len(self.labels),
        )
        return Program(tuple(self.instructions), tuple(self.labels))

    def parse_statement(self) -> None:
        """Parse one statement starting at the current token."""
        tok = self.current()

        if tok.type == "IDENT" and self.peek().type == "COLON":
            label = self.parse_label()
            nxt = self.current()
            if nxt.type == "IDENT" and self.peek().type == "COLON":
                # Another label on the same line; it will flush this one.
                self.pending_label = label
                return
            if self.at_line_end():
                self.pending_label = label
                self.expect_line_end()
                return
            self.instructions.append(self.parse_instruction(label=label.name))
            self.expect_line_end()
            return

        nxt = self.peek()
        if (
            tok.type == "IDENT"
            and nxt.type == "IDENT"
            and nxt.value.lower() in DIRECTIVE_KEYWORDS
        ):
            label = self.parse_label(colon=False)
            self.instructions.append(self.parse_instruction(label=label.name))
            self.expect_line_end()
            return

        if tok.type == "IDENT":
            label_name = None
            if self.pending_label is not None:
                label_name = self.pending_label.name
                self.pending_label = None
            self.instructions.append(self.parse_instruction(label=label_name))
            self.expect_line_end()
            return

        raise self.error(f"Unexpected {describe(tok)} at start of statement", tok)

    def expect_line_end(self) -> None:
        if self.current().type == "COMMENT":
            self.advance()
        tok = self.current()
        if tok.type == "NEWLINE":
            self.advance()
        elif tok.type != "EOF":
            raise self.error(f"Expected ',' or end of line, got {describe(tok)}", tok)

    def parse_label(self, colon: bool = True) -> Label:
        """Declare a label, anchoring any label still pending."""
        tok = self.match("IDENT")
        if colon:
            self.match("COLON")
        self.flush_pending_label()
        label = Label(tok.value, line=tok.line, col=tok.col)
        self.labels.append(label)
        return label

    def flush_pending_label(self) -> None:
        label = self.pending_label
        if label is None:
            return
        logger.debug("anchoring label %r declared at line %d", label.name, label.line)
        self.instructions.append(
            Instruction(ANCHOR_MNEMONIC, label=label.name, line=label.line, col=label.col)
        )
        self.pending_label = None

    def parse_instruction(self, label: str | None = None) -> Instruction:
        """Parse `MNEMONIC [operands | expression] [comment]`."""
        tok = self.match("IDENT", message="Expected instruction mnemonic")
        mnemonic = tok.value.upper()
        operands: list[Operand] = []
        directive: Expression | None = None

        if mnemonic in EQUATE_DIRECTIVES:
            if self.at_line_end():
                raise self.error(f"Expected expression after {mnemonic}")
            directive = self.parse_expression()
        elif not self.at_line_end():
            operands.append(self.parse_operand())
            while self.current().type == "COMMA":
                self.advance()
                operands.append(self.parse_operand())

        comment = None
        if self.current().type == "COMMENT":
            comment = self.advance().value

        return Instruction(
            mnemonic,
            tuple(operands),
            label=label,
            comment=comment,
            directive=directive,
            line=tok.line,
            col=tok.col,
        )

    # ---- operands ----

    def parse_operand(self) -> Operand:
        start = self.current()
        size = None
        if start.type in SIZE_BITS:
            size = SIZE_BITS[start.type]
            self.advance()

        tok = self.current()
        if tok.type == "LBRACK":
            return self.parse_memory_operand(start, size=size)

        if tok.type == "REGISTER":
            if self.peek().type == "COLON" and self.peek(2).type == "LBRACK":
                self.advance()
                self.advance()
                return self.parse_memory_operand(start, size=size, segment=tok.value)
            self.advance()
            return RegisterOperand(tok.value, size, line=start.line, col=start.col)

        if tok.type == "STRING":
            self.advance()
            return StringOperand(tok.value, size, line=start.line, col=start.col)

        expr = self.parse_expression()
        if isinstance(expr, LiteralExpr):
            return ImmediateOperand(
                expr.value, expr.is_hex, size, line=start.line, col=start.col
            )
        if isinstance(expr, SymbolExpr):
            return LabelReferenceOperand(expr.name, size, line=start.line, col=start.col)
        return ExpressionOperand(expr, size, line=start.line, col=start.col)

    def parse_memory_operand(
        self, start: Token, size: int | None = None, segment: str | None = None
    ) -> MemoryOperand:
        """
        Parse `'[' [reg ':'] (reg | num) {('+'|'-') (reg ['*' num] | num)} ']'`.

        A signed register term becomes the index register; only one is
        allowed. Each signed numeric term replaces the displacement, so
        `[rax+8+16]` keeps 16.
        """
        self.match("LBRACK")
        base: str | None = None
        index: str | None = None
        scale = 1
        displacement: int | None = None

        if (
            segment is None
            and self.current().type == "REGISTER"
            and self.peek().type == "COLON"
        ):
            segment = self.advance().value
            self.advance()

        tok = self.current()
        if tok.type == "REGISTER":
            base = self.advance().value
        elif tok.type in NUMERIC_TOKENS:
            displacement = self.parse_numeric_value()
        elif tok.type not in ("PLUS", "SUB"):
            raise self.error(
                f"Expected register or numeric value in memory operand, got {describe(tok)}",
                tok,
            )

        while self.current().type in ("PLUS", "SUB"):
            sign = self.advance()
            term = self.current()
            if term.type == "REGISTER":
                if index is not None:
                    raise self.error("Multiple index registers not supported", term)
                index = self.advance().value
                if self.current().type == "MULT":
                    self.advance()
                    scale = self.parse_numeric_value("Expected numeric scale factor")
            elif term.type in NUMERIC_TOKENS:
                value = self.parse_numeric_value()
                displacement = value if sign.type == "PLUS" else to_int64(-value)
            else:
                raise self.error(
                    f"Expected register or numeric value after '{sign.value}', got {describe(term)}",
                    term,
                )

        self.match("RBRACK", message="Expected ']'")
        return MemoryOperand(
            base,
            index,
            scale,
            displacement,
            segment,
            size,
            line=start.line,
            col=start.col,
        )

    def parse_numeric_value(self, message: str = "Expected numeric value") -> int:
        tok = self.current()
        if tok.type not in NUMERIC_TOKENS:
            raise self.error(f"{message}, got {describe(tok)}", tok)
        self.advance()
        return self.int_value(tok)

    def int_value(self, tok: Token) -> int:
        """
        Convert a NUMBER or HEX_NUMBER token to a signed 64-bit integer.

        Hex literals may use the full unsigned 64-bit range and are stored as
        their two's-complement value; decimals must fit a signed 64-bit int.
        """
        if tok.type == "HEX_NUMBER":
            value = int(tok.value, 16)
            if value > UINT64_MASK:
                raise self.error("Numeric literal out of 64-bit range", tok)
            return to_int64(value)
        digits = tok.value.lstrip("0") or "0"
        if len(digits) > 19 or int(digits) > INT64_MAX:
            raise self.error("Numeric literal out of 64-bit range", tok)
        return int(digits)

    # ---- expressions ----

    def parse_expression(self) -> Expression:
        """
        Parse an arithmetic expression with explicit operand/operator stacks.

        Binary operators are left-associative at the levels in
        BINARY_PRECEDENCE; prefix `+`/`-` bind tighter than any of them.
        Parentheses and prefix signs nest to any depth without recursion.
        The expression ends at the first token that cannot continue it.
        """
        operands: list[Expression] = []
        operators: list[tuple[str, Token]] = []
        open_parens = 0
        expect_operand = True

        while True:
            tok = self.current()
            if expect_operand:
                if tok.type in ("PLUS", "SUB"):
                    operators.append(("unary", self.advance()))
                elif tok.type == "LPAREN":
                    operators.append(("paren", self.advance()))
                    open_parens += 1
                else:
                    operands.append(self.parse_primary())
                    expect_operand = False
                continue

            precedence = BINARY_PRECEDENCE.get(tok.type)
            if precedence is not None:
                while operators and binding(operators[-1]) >= precedence:
                    reduce(operators, operands)
                operators.append(("binary", self.advance()))
                expect_operand = True
            elif tok.type == "RPAREN" and open_parens:
                while operators[-1][0] != "paren":
                    reduce(operators, operands)
                operators.pop()
                open_parens -= 1
                self.advance()
            else:
                break

        if open_parens:
            raise self.error(f"Expected ')', got {describe(tok)}", tok)
        while operators:
            reduce(operators, operands)
        return operands[-1]

    def parse_primary(self) -> Expression:
        tok = self.current()
        if tok.type in NUMERIC_TOKENS:
            self.advance()
            return LiteralExpr(
                self.int_value(tok),
                tok.type == "HEX_NUMBER",
                line=tok.line,
                col=tok.col,
            )
        if tok.type == "DOLLAR":
            self.advance()
            return CurrentLocationExpr(line=tok.line, col=tok.col)
        if tok.type == "IDENT":
            self.advance()
            return SymbolExpr(tok.value, line=tok.line, col=tok.col)
        raise self.error(f"Unexpected {describe(tok)} in expression", tok)


def binding(entry: tuple[str, Token]) -> int:
    """Binding strength of an operator-stack entry; an open paren never reduces."""
    kind, tok = entry
    if kind == "paren":
        return 0
    if kind == "unary":
        return UNARY_PRECEDENCE
    return BINARY_PRECEDENCE[tok.type]


def reduce(operators: list[tuple[str, Token]], operands: list[Expression]) -> None:
    """Pop one operator and fold it over the top operand(s)."""
    kind, op = operators.pop()
    operand = operands.pop()
    if kind == "unary":
        operands.append(UnaryExpr(op.value, operand, line=op.line, col=op.col))
        return
    left = operands.pop()
    operands.append(BinaryExpr(op.value, left, operand, line=left.line, col=left.col))


def to_int64(value: int) -> int:
    """Reinterpret the low 64 bits of `value` as a signed integer."""
    value &= UINT64_MASK
    return value - (1 << 64) if value > INT64_MAX else value


def parse_source(source: str) -> Program:
    """Lex and parse `source` with fresh Lexer and Parser instances."""
    tokens = Lexer(CharacterStream(source)).tokenize()
    return Parser(tokens).parse()


__all__ = [
    "BINARY_PRECEDENCE",
    "UNARY_PRECEDENCE",
    "Parser",
    "describe",
    "parse_source",
    "to_int64",
]
