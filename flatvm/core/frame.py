from dataclasses import dataclass


@dataclass(frozen=True)
class CallFrame:
    stack_offset: int  # operand stack length when the call began
    return_address: int
