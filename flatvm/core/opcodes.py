"""
Opcode definitions and source mnemonic tables for the flatvm instruction set.
"""

from enum import IntEnum


class Opcode(IntEnum):
    """flatvm opcodes"""

    NOOP = 0x00
    PUSH = 0x01
    POP = 0x02

    ADD = 0x10
    SUB = 0x11
    MUL = 0x12
    DIV = 0x13
    INCR = 0x14
    DECR = 0x15

    JUMP = 0x20
    JE = 0x21
    JNE = 0x22
    JGT = 0x23
    JLT = 0x24
    JGE = 0x25
    JLE = 0x26

    GET = 0x30
    SET = 0x31
    GETARG = 0x32
    SETARG = 0x33

    PRINT = 0x40
    PRINTC = 0x41
    PRINTSTACK = 0x42

    CALL = 0x50
    RET = 0x51
    COLLAPSERET = 0x52


class OperandKind(IntEnum):
    """What a mnemonic expects after it on the source line"""

    NONE = 0
    INT = 1  # signed decimal literal
    UINT = 2  # unsigned decimal literal (stack slot / argument count)
    LABEL = 3  # resolved against the label table
    PROCEDURE = 4  # resolved against the procedure table


# Pseudo-instructions that only occupy an address slot or mark a boundary
LABEL_KEYWORD = "label"
PROC_KEYWORD = "Proc"
END_KEYWORD = "End"
COMMENT_MARKER = "--"

# Map from source mnemonic to (opcode, operand kind)
MNEMONICS = {
    "Push": (Opcode.PUSH, OperandKind.INT),
    "Pop": (Opcode.POP, OperandKind.NONE),
    "Add": (Opcode.ADD, OperandKind.NONE),
    "Sub": (Opcode.SUB, OperandKind.NONE),
    "Mul": (Opcode.MUL, OperandKind.NONE),
    "Div": (Opcode.DIV, OperandKind.NONE),
    "Incr": (Opcode.INCR, OperandKind.NONE),
    "Decr": (Opcode.DECR, OperandKind.NONE),
    # Jumps
    "Jump": (Opcode.JUMP, OperandKind.LABEL),
    "JE": (Opcode.JE, OperandKind.LABEL),
    "JNE": (Opcode.JNE, OperandKind.LABEL),
    "JGT": (Opcode.JGT, OperandKind.LABEL),
    "JLT": (Opcode.JLT, OperandKind.LABEL),
    "JGE": (Opcode.JGE, OperandKind.LABEL),
    "JLE": (Opcode.JLE, OperandKind.LABEL),
    # Frame-relative access
    "Get": (Opcode.GET, OperandKind.UINT),
    "Set": (Opcode.SET, OperandKind.UINT),
    "GetArg": (Opcode.GETARG, OperandKind.UINT),
    "SetArg": (Opcode.SETARG, OperandKind.UINT),
    # Output
    "Print": (Opcode.PRINT, OperandKind.NONE),
    "PrintC": (Opcode.PRINTC, OperandKind.NONE),
    "PrintStack": (Opcode.PRINTSTACK, OperandKind.NONE),
    # Procedures
    "Call": (Opcode.CALL, OperandKind.PROCEDURE),
    "Ret": (Opcode.RET, OperandKind.NONE),
    "CollapseRet": (Opcode.COLLAPSERET, OperandKind.UINT),
}

# Map from opcode to the mnemonic used when listing a resolved program
OPCODE_NAMES = {opcode: name for name, (opcode, _) in MNEMONICS.items()}
OPCODE_NAMES[Opcode.NOOP] = "Noop"

# Conditional jumps and the test each one applies to the stack top
JUMP_CONDITIONS = {
    Opcode.JE: lambda top: top == 0,
    Opcode.JNE: lambda top: top != 0,
    Opcode.JGT: lambda top: top > 0,
    Opcode.JLT: lambda top: top < 0,
    Opcode.JGE: lambda top: top >= 0,
    Opcode.JLE: lambda top: top <= 0,
}


def lookup_mnemonic(mnemonic):
    """
    Look up a source mnemonic.

    Args:
        mnemonic: First token of a source line

    Returns:
        Tuple (opcode, operand_kind), or None for unknown mnemonics
    """
    return MNEMONICS.get(mnemonic)
