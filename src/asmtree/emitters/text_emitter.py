"""
Renders an asmtree `Program` as an indented text tree.

Layout::

    Program:
      Labels:
        main:
      Instructions:
        [main] MOV rax, 0x10 ; comment
        ADD rax, qword ptr [rbp+rcx*8-16]

Rules:
    - The Labels and Instructions blocks are omitted when empty.
    - Memory operands print as `seg:[base+index*scale+disp]`; absent parts
      are left out and a scale of 1 is not shown.
    - Immediates written in hex print in hex (`0x` with uppercase digits).
    - Size-tagged operands get their `byte ptr`-style prefix back.
    - Expressions print fully parenthesised, e.g. `(1 + (2 * 3))`.

The helpers in this module are shared with `AsmEmitter`, so every operand
renders in a form the parser accepts.
"""

from asmtree.asmtree_ast import (
    AstVisitor,
    BinaryExpr,
    CurrentLocationExpr,
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
from asmtree.asmtree_constants import INT64_MAX, SIZE_NAMES, UINT64_MASK


def format_int(value: int, is_hex: bool = False) -> str:
    """Format an unsigned-looking literal; negatives only survive as hex."""
    if is_hex or value < 0:
        return f"0x{value & UINT64_MASK:X}"
    return str(value)


def format_signed(value: int) -> str:
    """Format a displacement with an explicit sign the memory grammar can read back."""
    if value >= 0:
        return f"+{value}"
    magnitude = -value
    if magnitude > INT64_MAX:
        return f"-0x{magnitude:X}"
    return f"-{magnitude}"


def quote_string(text: str) -> str:
    """Wrap `text` in whichever quote does not occur unescaped inside it."""
    escaped = False
    for ch in text:
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == '"':
            return f"'{text}'"
    return f'"{text}"'


class TextEmitter(AstVisitor[str]):
    """Emits the indented tree view of a program.

    Attributes:
        lines (list[str]): Accumulated output, one entry per emitted program.
        indent (int): Current indentation level while rendering a program.
    """

    indent_size = 2

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.indent = 0

    def indent_str(self) -> str:
        return " " * (self.indent * self.indent_size)

    def emit_program(self, program: Program) -> None:
        self.lines.append(self.visit(program))

    def get_output(self) -> str:
        return "\n".join(self.lines)

    def visit_program(self, node: Program) -> str:
        out = ["Program:"]
        self.indent += 1
        if node.labels:
            out.append(self.indent_str() + "Labels:")
            self.indent += 1
            out.extend(self.indent_str() + self.visit(label) for label in node.labels)
            self.indent -= 1
        if node.instructions:
            out.append(self.indent_str() + "Instructions:")
            self.indent += 1
            out.extend(self.indent_str() + self.visit(ins) for ins in node.instructions)
            self.indent -= 1
        self.indent -= 1
        return "\n".join(out)

    def visit_label(self, node: Label) -> str:
        return f"{node.name}:"

    def visit_instruction(self, node: Instruction) -> str:
        text = f"[{node.label}] " if node.label else ""
        return text + self.instruction_body(node)

    def instruction_body(self, node: Instruction) -> str:
        """Mnemonic, operands or directive expression, and trailing comment."""
        text = node.mnemonic
        if node.directive is not None:
            text += " " + self.visit(node.directive)
        elif node.operands:
            text += " " + ", ".join(self.visit(op) for op in node.operands)
        if node.comment:
            text += f" {node.comment}"
        return text

    # ---- operands ----

    def size_prefix(self, node: Operand) -> str:
        if node.size is None:
            return ""
        return f"{SIZE_NAMES[node.size]} ptr "

    def visit_register(self, node: RegisterOperand) -> str:
        return self.size_prefix(node) + node.name

    def visit_immediate(self, node: ImmediateOperand) -> str:
        return self.size_prefix(node) + format_int(node.value, node.is_hex)

    def visit_memory(self, node: MemoryOperand) -> str:
        body = ""
        if node.base is not None:
            body = node.base
        elif node.displacement is not None:
            body = format_signed(node.displacement).removeprefix("+")
        if node.index is not None:
            body += f"+{node.index}"
            if node.scale != 1:
                body += f"*{format_int(node.scale)}"
        if node.base is not None and node.displacement is not None:
            body += format_signed(node.displacement)
        segment = f"{node.segment}:" if node.segment else ""
        return f"{self.size_prefix(node)}{segment}[{body}]"

    def visit_label_reference(self, node: LabelReferenceOperand) -> str:
        return self.size_prefix(node) + node.name

    def visit_string(self, node: StringOperand) -> str:
        return self.size_prefix(node) + quote_string(node.text)

    def visit_expression_operand(self, node: ExpressionOperand) -> str:
        return self.size_prefix(node) + self.visit(node.expression)

    # ---- expressions ----

    def visit_literal(self, node: LiteralExpr) -> str:
        return format_int(node.value, node.is_hex)

    def visit_symbol(self, node: SymbolExpr) -> str:
        return node.name

    def visit_current_location(self, node: CurrentLocationExpr) -> str:
        return "$"

    def visit_unary(self, node: UnaryExpr) -> str:
        return f"{node.op}{self.visit(node.operand)}"

    def visit_binary(self, node: BinaryExpr) -> str:
        return f"({self.visit(node.left)} {node.op} {self.visit(node.right)})"
