from .frame import CallFrame
from .instruction import Instruction
from .opcodes import Opcode, OperandKind
from .program import Program

__all__ = ["CallFrame", "Instruction", "Opcode", "OperandKind", "Program"]
