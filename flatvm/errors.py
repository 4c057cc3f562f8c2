"""Exception hierarchy for translating and running flatvm programs."""

from typing import Optional, Sequence


class FlatVMError(Exception):
    """Base class for all flatvm errors."""


class TranslationError(FlatVMError):
    """Raised when source text cannot be turned into a resolved program."""

    def __init__(
        self,
        message: str,
        line_no: Optional[int] = None,
        tokens: Optional[Sequence[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.line_no = line_no
        self.tokens = list(tokens) if tokens is not None else None

    def __str__(self) -> str:
        text = f"Translation error: {self.message}"
        if self.line_no is not None:
            text += f" (line {self.line_no})"
        if self.tokens is not None:
            text += f": {' '.join(self.tokens)!r}"
        return text


class MachineError(FlatVMError):
    """Raised when an instruction cannot be executed; the machine halts."""

    def __init__(self, message: str, ip: Optional[int] = None, line_no: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.ip = ip
        self.line_no = line_no

    def __str__(self) -> str:
        text = f"Runtime error: {self.message}"
        if self.ip is not None:
            text += f" (ip={self.ip:04d}"
            if self.line_no is not None:
                text += f", line {self.line_no}"
            text += ")"
        return text


__all__ = ["FlatVMError", "TranslationError", "MachineError"]
