"""
flatvm: a line-oriented assembly language and the stack machine that runs it.
"""

import logging

from .config import MachineConfig
from .core import CallFrame, Instruction, Opcode, OperandKind, Program
from .errors import FlatVMError, MachineError, TranslationError
from .machine import Machine, MachineState, run_program
from .reader import SourceLine, read_program, tokenize
from .translator import find_labels, find_procedures, parse_instruction, translate

# Library users opt in to log output by configuring the "flatvm" logger
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Data model
    "CallFrame",
    "Instruction",
    "Opcode",
    "OperandKind",
    "Program",
    "SourceLine",
    # Translation
    "tokenize",
    "read_program",
    "find_labels",
    "find_procedures",
    "parse_instruction",
    "translate",
    # Execution
    "Machine",
    "MachineConfig",
    "MachineState",
    "run_program",
    # Errors
    "FlatVMError",
    "TranslationError",
    "MachineError",
]
