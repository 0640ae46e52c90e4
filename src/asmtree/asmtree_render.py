"""
Provides the `Renderer` class and the emitter interface for turning a parsed
`Program` into text.

Classes and Features:
    - Emitter (Protocol): Interface for all output emitters. Requires
      `emit_program` and `get_output`.
    - Renderer: Selects an emitter by target name ("text", "json", "asm")
      and feeds it a program.

Example:
    >>> Renderer("text").render(parse_source("nop"))
    'Program:\\n  Instructions:\\n    NOP'

Raises:
    ValueError: If the target is not supported.
    TypeError: If `render` is given something other than a `Program`.
"""

from typing import Protocol

from asmtree.asmtree_ast import Program
from asmtree.emitters.asm_emitter import AsmEmitter
from asmtree.emitters.json_emitter import JsonEmitter
from asmtree.emitters.text_emitter import TextEmitter


class Emitter(Protocol):  # pragma: no cover
    """Protocol for asmtree output emitters.

    Methods:
        emit_program(program): Renders one program into the emitter's buffer.
        get_output(): Returns everything emitted so far as a string.
    """

    def emit_program(self, program: Program) -> None: ...  # pragma: no cover

    def get_output(self) -> str: ...  # pragma: no cover


EmitterType = type[Emitter]
"""Alias for a concrete Emitter class type."""


class Renderer:
    """Dispatches a program to the emitter for the selected output target.

    Attributes:
        emitter (Emitter): The emitter instance for the output target.
    """

    def __init__(self, target: str = "text") -> None:
        """Initializes the renderer.

        Args:
            target: Output format name, case-insensitive ("text", "json", "asm").

        Raises:
            ValueError: If the target is not supported.
        """
        emitters: dict[str, EmitterType] = {
            "text": TextEmitter,
            "txt": TextEmitter,
            "json": JsonEmitter,
            "asm": AsmEmitter,
        }
        target = target.lower()
        if target not in emitters:
            raise ValueError(f"Unknown render target: {target!r}")
        self.emitter: Emitter = emitters[target]()

    def render(self, program: Program) -> str:
        """Renders `program` and returns the emitter's output.

        Raises:
            TypeError: If `program` is not a Program.
        """
        if not isinstance(program, Program):
            raise TypeError(
                f"Renderer expects a Program, got {type(program).__name__}"
            )
        self.emitter.emit_program(program)
        return self.emitter.get_output()
