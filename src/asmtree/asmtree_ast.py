"""
Abstract syntax tree for parsed x86-64 assembly.

Node families:
    Program:
        Root node; ordered instructions and ordered label declarations.
    Instruction, Label:
        One statement and one label declaration. An instruction refers to its
        label by name only.
    Operand (closed union):
        RegisterOperand, ImmediateOperand, MemoryOperand, LabelReferenceOperand,
        StringOperand, ExpressionOperand. Each carries an optional bit-width
        `size` (8/16/32/64) from a preceding `byte ptr`-style specifier.
    Expression (closed union):
        LiteralExpr, SymbolExpr, CurrentLocationExpr, UnaryExpr, BinaryExpr.
        Used for equate directive bodies and compound operands.

Every node is a frozen dataclass and every sequence a tuple, so a tree is
immutable once the parser returns it. Source positions (`line`, `col`) are
recorded but excluded from equality: two trees compare equal when they are
structurally the same, wherever they came from.

`AstVisitor` is the traversal interface: subclass it and implement one
`visit_*` method per node kind; `visit()` dispatches over the closed node set.

Example:
    Instruction("MOV", (RegisterOperand("rax"), ImmediateOperand(16, is_hex=True)))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

from asmtree.asmtree_constants import ANCHOR_MNEMONIC, EQUATE_DIRECTIVES

NodeDict = dict[str, Any]
"""Plain-dictionary form of a node, as produced by `to_dict()`."""


def _position() -> Any:
    return field(default=0, compare=False, repr=False)


# ---- Expressions ----


@dataclass(frozen=True)
class LiteralExpr:
    """Integer literal; `is_hex` records whether it was written as `0x...`."""

    value: int
    is_hex: bool = False
    line: int = _position()
    col: int = _position()

    def to_dict(self) -> NodeDict:
        return {
            "kind": "literal",
            "value": self.value,
            "is_hex": self.is_hex,
            "line": self.line,
            "col": self.col,
        }


@dataclass(frozen=True)
class SymbolExpr:
    name: str
    line: int = _position()
    col: int = _position()

    def to_dict(self) -> NodeDict:
        return {"kind": "symbol", "name": self.name, "line": self.line, "col": self.col}


@dataclass(frozen=True)
class CurrentLocationExpr:
    """The `$` marker. Its address is resolved outside the parser."""

    line: int = _position()
    col: int = _position()

    def to_dict(self) -> NodeDict:
        return {"kind": "current_location", "line": self.line, "col": self.col}


@dataclass(frozen=True)
class UnaryExpr:
    op: str
    operand: Expression
    line: int = _position()
    col: int = _position()

    def to_dict(self) -> NodeDict:
        return {
            "kind": "unary",
            "op": self.op,
            "operand": self.operand.to_dict(),
            "line": self.line,
            "col": self.col,
        }


@dataclass(frozen=True)
class BinaryExpr:
    op: str
    left: Expression
    right: Expression
    line: int = _position()
    col: int = _position()

    def to_dict(self) -> NodeDict:
        return {
            "kind": "binary",
            "op": self.op,
            "left": self.left.to_dict(),
            "right": self.right.to_dict(),
            "line": self.line,
            "col": self.col,
        }


Expression = Union[LiteralExpr, SymbolExpr, CurrentLocationExpr, UnaryExpr, BinaryExpr]


# ---- Operands ----


@dataclass(frozen=True)
class RegisterOperand:
    name: str
    size: int | None = None
    line: int = _position()
    col: int = _position()

    def to_dict(self) -> NodeDict:
        return {
            "kind": "register",
            "name": self.name,
            "size": self.size,
            "line": self.line,
            "col": self.col,
        }


@dataclass(frozen=True)
class ImmediateOperand:
    """Constant operand held as a signed 64-bit value."""

    value: int
    is_hex: bool = False
    size: int | None = None
    line: int = _position()
    col: int = _position()

    def to_dict(self) -> NodeDict:
        return {
            "kind": "immediate",
            "value": self.value,
            "is_hex": self.is_hex,
            "size": self.size,
            "line": self.line,
            "col": self.col,
        }


@dataclass(frozen=True)
class MemoryOperand:
    """
    Addressing expression `segment:[base + index*scale + displacement]`.

    Every component is optional on its own. `scale` is stored exactly as
    written (it is not checked against 1/2/4/8) and defaults to 1.
    """

    base: str | None = None
    index: str | None = None
    scale: int = 1
    displacement: int | None = None
    segment: str | None = None
    size: int | None = None
    line: int = _position()
    col: int = _position()

    def to_dict(self) -> NodeDict:
        return {
            "kind": "memory",
            "base": self.base,
            "index": self.index,
            "scale": self.scale,
            "displacement": self.displacement,
            "segment": self.segment,
            "size": self.size,
            "line": self.line,
            "col": self.col,
        }


@dataclass(frozen=True)
class LabelReferenceOperand:
    name: str
    size: int | None = None
    line: int = _position()
    col: int = _position()

    def to_dict(self) -> NodeDict:
        return {
            "kind": "label_ref",
            "name": self.name,
            "size": self.size,
            "line": self.line,
            "col": self.col,
        }


@dataclass(frozen=True)
class StringOperand:
    text: str
    size: int | None = None
    line: int = _position()
    col: int = _position()

    def to_dict(self) -> NodeDict:
        return {
            "kind": "string",
            "text": self.text,
            "size": self.size,
            "line": self.line,
            "col": self.col,
        }


@dataclass(frozen=True)
class ExpressionOperand:
    """Operand that is an arithmetic combination rather than a bare literal or symbol."""

    expression: Expression
    size: int | None = None
    line: int = _position()
    col: int = _position()

    def to_dict(self) -> NodeDict:
        return {
            "kind": "expression",
            "expression": self.expression.to_dict(),
            "size": self.size,
            "line": self.line,
            "col": self.col,
        }


Operand = Union[
    RegisterOperand,
    ImmediateOperand,
    MemoryOperand,
    LabelReferenceOperand,
    StringOperand,
    ExpressionOperand,
]


# ---- Statements ----


@dataclass(frozen=True)
class Label:
    """Label declaration. The name keeps its source spelling."""

    name: str
    line: int = _position()
    col: int = _position()

    def to_dict(self) -> NodeDict:
        return {"kind": "label", "name": self.name, "line": self.line, "col": self.col}


@dataclass(frozen=True)
class Instruction:
    """
    One assembly statement.

    Attributes:
        mnemonic (str): Uppercase mnemonic, or ANCHOR_MNEMONIC for a synthetic anchor.
        operands (tuple[Operand, ...]): Operands in source order (empty for equates).
        label (str | None): Name of the label attached to this statement.
        comment (str | None): Trailing comment text including its `;` or `#`.
        directive (Expression | None): Body of an EQU/EQO/EQ directive.
    """

    mnemonic: str
    operands: tuple[Operand, ...] = ()
    label: str | None = None
    comment: str | None = None
    directive: Expression | None = None
    line: int = _position()
    col: int = _position()

    @property
    def is_directive(self) -> bool:
        return self.mnemonic in EQUATE_DIRECTIVES

    @property
    def is_anchor(self) -> bool:
        return self.mnemonic == ANCHOR_MNEMONIC

    def to_dict(self) -> NodeDict:
        return {
            "kind": "instruction",
            "mnemonic": self.mnemonic,
            "operands": [op.to_dict() for op in self.operands],
            "label": self.label,
            "comment": self.comment,
            "directive": (
                self.directive.to_dict() if self.directive is not None else None
            ),
            "line": self.line,
            "col": self.col,
        }


@dataclass(frozen=True)
class Program:
    instructions: tuple[Instruction, ...] = ()
    labels: tuple[Label, ...] = ()

    def to_dict(self) -> NodeDict:
        return {
            "kind": "program",
            "labels": [label.to_dict() for label in self.labels],
            "instructions": [ins.to_dict() for ins in self.instructions],
        }


Node = Union[Program, Instruction, Label, Operand, Expression]

T = TypeVar("T")


class AstVisitor(Generic[T]):
    """
    Double-dispatch over the closed set of node kinds.

    Subclasses implement the `visit_*` methods they need; `visit()` routes a
    node to the matching method. A node outside the closed set is a
    `TypeError`; a kind the subclass did not implement is a
    `NotImplementedError`.
    """

    def visit(self, node: Node) -> T:
        if isinstance(node, Program):
            return self.visit_program(node)
        if isinstance(node, Instruction):
            return self.visit_instruction(node)
        if isinstance(node, Label):
            return self.visit_label(node)
        if isinstance(node, RegisterOperand):
            return self.visit_register(node)
        if isinstance(node, ImmediateOperand):
            return self.visit_immediate(node)
        if isinstance(node, MemoryOperand):
            return self.visit_memory(node)
        if isinstance(node, LabelReferenceOperand):
            return self.visit_label_reference(node)
        if isinstance(node, StringOperand):
            return self.visit_string(node)
        if isinstance(node, ExpressionOperand):
            return self.visit_expression_operand(node)
        if isinstance(node, LiteralExpr):
            return self.visit_literal(node)
        if isinstance(node, SymbolExpr):
            return self.visit_symbol(node)
        if isinstance(node, CurrentLocationExpr):
            return self.visit_current_location(node)
        if isinstance(node, UnaryExpr):
            return self.visit_unary(node)
        if isinstance(node, BinaryExpr):
            return self.visit_binary(node)
        raise TypeError(f"Not an asmtree node: {type(node).__name__}")

    def _missing(self, node: Any) -> T:
        raise NotImplementedError(
            f"{type(self).__name__} has no visit method for {type(node).__name__}"
        )

    def visit_program(self, node: Program) -> T:
        return self._missing(node)

    def visit_instruction(self, node: Instruction) -> T:
        return self._missing(node)

    def visit_label(self, node: Label) -> T:
        return self._missing(node)

    def visit_register(self, node: RegisterOperand) -> T:
        return self._missing(node)

    def visit_immediate(self, node: ImmediateOperand) -> T:
        return self._missing(node)

    def visit_memory(self, node: MemoryOperand) -> T:
        return self._missing(node)

    def visit_label_reference(self, node: LabelReferenceOperand) -> T:
        return self._missing(node)

    def visit_string(self, node: StringOperand) -> T:
        return self._missing(node)

    def visit_expression_operand(self, node: ExpressionOperand) -> T:
        return self._missing(node)

    def visit_literal(self, node: LiteralExpr) -> T:
        return self._missing(node)

    def visit_symbol(self, node: SymbolExpr) -> T:
        return self._missing(node)

    def visit_current_location(self, node: CurrentLocationExpr) -> T:
        return self._missing(node)

    def visit_unary(self, node: UnaryExpr) -> T:
        return self._missing(node)

    def visit_binary(self, node: BinaryExpr) -> T:
        return self._missing(node)


__all__ = [
    "AstVisitor",
    "BinaryExpr",
    "CurrentLocationExpr",
    "Expression",
    "ExpressionOperand",
    "ImmediateOperand",
    "Instruction",
    "Label",
    "LabelReferenceOperand",
    "LiteralExpr",
    "MemoryOperand",
    "Node",
    "NodeDict",
    "Operand",
    "Program",
    "RegisterOperand",
    "StringOperand",
    "SymbolExpr",
    "UnaryExpr",
]
