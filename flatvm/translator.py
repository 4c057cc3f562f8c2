"""
Two-pass translation of flatvm source lines into a resolved Program.

Labels and procedure boundaries are collected first, then every line is
emitted as exactly one instruction so that addresses equal line positions.
"""

import re
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .core.instruction import Instruction
from .core.opcodes import (
    END_KEYWORD,
    LABEL_KEYWORD,
    PROC_KEYWORD,
    Opcode,
    OperandKind,
    lookup_mnemonic,
)
from .core.program import Program
from .errors import TranslationError
from .logging_config import get_logger
from .reader import SourceLine

logger = get_logger(__name__)

Labels = Dict[str, int]
Procedures = Dict[str, Tuple[int, int]]  # name -> (start index, exit address)
Line = Union[SourceLine, Sequence[str]]

_INT_RE = re.compile(r"[+-]?[0-9]+")
_UINT_RE = re.compile(r"\+?[0-9]+")


def _unpack(line: Line) -> Tuple[Optional[int], List[str]]:
    if isinstance(line, SourceLine):
        return line.line_no, list(line.tokens)
    return None, list(line)


def _parse_int(text: str, signed: bool, line_no, tokens) -> int:
    pattern = _INT_RE if signed else _UINT_RE
    if not pattern.fullmatch(text):
        kind = "integer" if signed else "unsigned integer"
        raise TranslationError(f"Invalid {kind} operand {text!r}", line_no, tokens)
    return int(text)


def find_labels(lines: Sequence[Line]) -> Labels:
    """
    Pass 1: map every ``label <name>`` line to its index.

    Raises:
        TranslationError: If a label name is declared twice
    """
    labels: Labels = {}
    for index, line in enumerate(lines):
        line_no, tokens = _unpack(line)
        if len(tokens) == 2 and tokens[0] == LABEL_KEYWORD:
            name = tokens[1]
            if name in labels:
                raise TranslationError(f"Duplicate label {name!r}", line_no, tokens)
            labels[name] = index
    logger.debug("Labels discovered", count=len(labels))
    return labels


def find_procedures(lines: Sequence[Line]) -> Procedures:
    """
    Pass 2: locate each ``Proc <name>`` ... ``End`` block.

    The recorded exit address is one past the matching ``End`` line.
    Procedures do not nest; scanning resumes after the matched ``End``.

    Raises:
        TranslationError: If a procedure has no matching ``End`` or is declared twice
    """
    procedures: Procedures = {}
    ip = 0
    while ip < len(lines):
        line_no, tokens = _unpack(lines[ip])
        if len(tokens) == 2 and tokens[0] == PROC_KEYWORD:
            name = tokens[1]
            start_ip = ip
            while True:
                ip += 1
                if ip >= len(lines):
                    raise TranslationError(
                        f"Unterminated procedure {name!r}: no matching {END_KEYWORD}",
                        line_no,
                        tokens,
                    )
                if _unpack(lines[ip])[1] == [END_KEYWORD]:
                    break
            if name in procedures:
                raise TranslationError(f"Duplicate procedure {name!r}", line_no, tokens)
            procedures[name] = (start_ip, ip + 1)
        ip += 1
    logger.debug("Procedures discovered", count=len(procedures))
    return procedures


def parse_instruction(
    line: Line, labels: Labels, procedures: Procedures
) -> Instruction:
    """
    Pass 3: emit the single instruction for one source line.

    Args:
        line: Token list (or SourceLine) for the line
        labels: Label table from find_labels
        procedures: Procedure table from find_procedures

    Returns:
        The resolved Instruction

    Raises:
        TranslationError: On unknown mnemonics, bad operands or undefined symbols
    """
    line_no, tokens = _unpack(line)
    if not tokens:
        raise TranslationError("Empty line", line_no, tokens)
    head, args = tokens[0], tokens[1:]

    # Pseudo-instructions
    if head == LABEL_KEYWORD and len(args) == 1:
        return Instruction(Opcode.NOOP)
    if head == END_KEYWORD and not args:
        return Instruction(Opcode.NOOP)
    if head == PROC_KEYWORD and len(args) == 1:
        # Guard jump: fall-through execution skips the whole body
        return Instruction(Opcode.JUMP, _resolve_procedure(args[0], procedures, line_no, tokens)[1])

    entry = lookup_mnemonic(head)
    if entry is None:
        raise TranslationError("Invalid instruction", line_no, tokens)
    opcode, kind = entry

    if kind == OperandKind.NONE:
        if args:
            raise TranslationError(f"{head} takes no operand", line_no, tokens)
        return Instruction(opcode)

    if len(args) != 1:
        raise TranslationError(f"{head} takes exactly one operand", line_no, tokens)
    arg = args[0]

    if kind == OperandKind.INT:
        return Instruction(opcode, _parse_int(arg, True, line_no, tokens))
    if kind == OperandKind.UINT:
        return Instruction(opcode, _parse_int(arg, False, line_no, tokens))
    if kind == OperandKind.LABEL:
        if arg not in labels:
            raise TranslationError(f"Undefined label {arg!r}", line_no, tokens)
        return Instruction(opcode, labels[arg])
    # Calls land one slot past the guard jump
    start, _ = _resolve_procedure(arg, procedures, line_no, tokens)
    return Instruction(opcode, start + 1)


def _resolve_procedure(name, procedures, line_no, tokens) -> Tuple[int, int]:
    if name not in procedures:
        raise TranslationError(f"Undefined procedure {name!r}", line_no, tokens)
    return procedures[name]


def translate(lines: Sequence[Line]) -> Program:
    """
    Translate filtered source lines into a resolved Program.

    Args:
        lines: SourceLines from the reader, or bare token lists

    Returns:
        Immutable Program; the symbol tables are not retained

    Raises:
        TranslationError: If any line fails to translate
    """
    labels = find_labels(lines)
    procedures = find_procedures(lines)

    instructions = []
    source_lines = []
    for line in lines:
        instructions.append(parse_instruction(line, labels, procedures))
        source_lines.append(_unpack(line)[0])

    logger.debug(
        "Program translated",
        instructions=len(instructions),
        labels=len(labels),
        procedures=len(procedures),
    )
    return Program(tuple(instructions), tuple(source_lines))
