"""
Renders an asmtree `Program` as JSON via the nodes' `to_dict()` form.

Every object carries a `kind` discriminator (`program`, `instruction`,
`label`, `register`, `memory`, `binary`, ...) plus its fields and source
position.
"""

import json

from asmtree.asmtree_ast import NodeDict, Program


class JsonEmitter:
    """Collects program dictionaries and serialises them with `json.dumps`."""

    def __init__(self, indent: int = 2) -> None:
        self.documents: list[NodeDict] = []
        self.indent = indent

    def emit_program(self, program: Program) -> None:
        self.documents.append(program.to_dict())

    def get_output(self) -> str:
        if len(self.documents) == 1:
            return json.dumps(self.documents[0], indent=self.indent)
        return json.dumps(self.documents, indent=self.indent)
