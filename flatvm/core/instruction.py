from dataclasses import dataclass
from typing import Optional

from .opcodes import OPCODE_NAMES, Opcode


@dataclass(frozen=True)
class Instruction:
    opcode: Opcode
    operand: Optional[int] = None  # literal, stack slot or resolved address

    def __str__(self) -> str:
        name = OPCODE_NAMES[self.opcode]
        if self.operand is None:
            return name
        return f"{name} {self.operand}"
