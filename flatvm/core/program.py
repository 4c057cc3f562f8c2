from dataclasses import dataclass
from typing import Optional, Tuple

from .instruction import Instruction


@dataclass(frozen=True)
class Program:
    """
    A fully resolved instruction stream.

    Every jump and call target is an absolute index into ``instructions``.
    ``source_lines`` runs parallel to it and holds the 1-based line number each
    instruction came from (None when the caller passed bare token lists).
    """

    instructions: Tuple[Instruction, ...]
    source_lines: Tuple[Optional[int], ...] = ()

    def __len__(self) -> int:
        return len(self.instructions)

    def __getitem__(self, address: int) -> Instruction:
        return self.instructions[address]

    def fetch(self, address: int) -> Optional[Instruction]:
        """Return the instruction at ``address``, or None past the end of the stream."""
        if 0 <= address < len(self.instructions):
            return self.instructions[address]
        return None

    def line_for(self, address: int) -> Optional[int]:
        if 0 <= address < len(self.source_lines):
            return self.source_lines[address]
        return None
