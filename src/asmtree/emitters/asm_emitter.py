"""
Renders an asmtree `Program` back to canonical assembly source.

Parsing the output yields a tree equal (`==`) to the one rendered:

    - each label is written on its own line (`name:`) just before the
      instruction it is attached to;
    - anchor instructions produce only their label line;
    - instructions are indented four spaces, mnemonics stay uppercase;
    - operands use the same spellings as `TextEmitter`, except that a symbol
      spelled like a data/equate keyword is parenthesised (`JMP (db)`), since
      `JMP db` would read as a colon-less label `JMP`.
"""

from asmtree.asmtree_ast import Instruction, LabelReferenceOperand, Program, SymbolExpr
from asmtree.asmtree_constants import DIRECTIVE_KEYWORDS
from asmtree.emitters.text_emitter import TextEmitter


def symbol_name(name: str) -> str:
    if name.lower() in DIRECTIVE_KEYWORDS:
        return f"({name})"
    return name


class AsmEmitter(TextEmitter):
    """Emits re-parseable assembly, one statement per line."""

    indent_size = 4

    def visit_program(self, node: Program) -> str:
        out: list[str] = []
        for ins in node.instructions:
            if ins.label:
                out.append(f"{ins.label}:")
            if not ins.is_anchor:
                out.append(self.visit(ins))
        return "\n".join(out) + "\n" if out else ""

    def visit_instruction(self, node: Instruction) -> str:
        return " " * self.indent_size + self.instruction_body(node)

    def visit_label_reference(self, node: LabelReferenceOperand) -> str:
        return self.size_prefix(node) + symbol_name(node.name)

    def visit_symbol(self, node: SymbolExpr) -> str:
        return symbol_name(node.name)
