"""
Source reading: split program text into token lines.

Blank lines and comment lines never reach the translator, so the
address of every instruction is its position among the kept lines.
"""

from typing import List, NamedTuple

from .core.opcodes import COMMENT_MARKER
from .logging_config import get_logger

logger = get_logger(__name__)


class SourceLine(NamedTuple):
    line_no: int  # 1-based line in the source file
    tokens: List[str]


def tokenize(text: str) -> List[SourceLine]:
    lines = []
    for line_no, raw in enumerate(text.split("\n"), 1):
        tokens = raw.split()
        if not tokens or tokens[0] == COMMENT_MARKER:
            continue
        lines.append(SourceLine(line_no, tokens))
    return lines


def read_program(path) -> List[SourceLine]:
    """
    Read and tokenize a program file.

    Args:
        path: Path to the program source

    Returns:
        List of SourceLine tuples, one per instruction slot

    Raises:
        OSError: If the file cannot be read
    """
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    lines = tokenize(text)
    logger.debug("Read program", path=str(path), lines=len(lines))
    return lines
