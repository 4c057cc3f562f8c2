# flatvm/machine.py
import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, TextIO

from .config import MachineConfig
from .core.frame import CallFrame
from .core.instruction import Instruction
from .core.opcodes import JUMP_CONDITIONS, Opcode
from .core.program import Program
from .errors import MachineError
from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class MachineState:
    pointer: int = 0
    stack: List[int] = field(default_factory=list)
    call_stack: List[CallFrame] = field(default_factory=list)
    steps: int = 0

    # --- Operand stack ---
    def push(self, value: int) -> None:
        self.stack.append(value)

    def pop(self) -> int:
        if not self.stack:
            raise MachineError("Popped an empty stack")
        return self.stack.pop()

    def peek(self) -> int:
        if not self.stack:
            raise MachineError("Peeked an empty stack")
        return self.stack[-1]

    def load(self, index: int) -> int:
        self._check_index(index)
        return self.stack[index]

    def store(self, index: int, value: int) -> None:
        self._check_index(index)
        self.stack[index] = value

    def _check_index(self, index: int) -> None:
        # Negative indices must never wrap around to the top of the stack
        if not 0 <= index < len(self.stack):
            raise MachineError(
                f"Stack index {index} out of range (stack depth {len(self.stack)})"
            )

    # --- Call stack ---
    @property
    def frame_offset(self) -> int:
        """Base for Get/Set: the current frame's stack_offset, or 0 at top level."""
        return self.call_stack[-1].stack_offset if self.call_stack else 0

    def current_frame(self) -> CallFrame:
        if not self.call_stack:
            raise MachineError("No active call frame")
        return self.call_stack[-1]

    def pop_frame(self) -> CallFrame:
        if not self.call_stack:
            raise MachineError("Returned with an empty call stack")
        return self.call_stack.pop()


def truncating_div(dividend: int, divisor: int) -> int:
    """Integer division rounding toward zero."""
    if divisor == 0:
        raise MachineError("Division by zero")
    quotient = abs(dividend) // abs(divisor)
    return -quotient if (dividend < 0) != (divisor < 0) else quotient


class Machine:
    """Runs a resolved Program on a single operand stack with explicit call frames."""

    def __init__(
        self,
        program: Program,
        out: Optional[TextIO] = None,
        config: Optional[MachineConfig] = None,
    ):
        self.program = program
        self.out = out if out is not None else sys.stdout
        self.config = config or MachineConfig()
        self.state = MachineState()

        # Opcode handler dispatch table
        self._opcode_handlers: Dict[
            Opcode, Callable[[Instruction, MachineState], None]
        ] = {
            Opcode.NOOP: self._handle_noop,
            Opcode.PUSH: self._handle_push,
            Opcode.POP: self._handle_pop,
            # Arithmetic
            Opcode.ADD: self._handle_add,
            Opcode.SUB: self._handle_sub,
            Opcode.MUL: self._handle_mul,
            Opcode.DIV: self._handle_div,
            Opcode.INCR: self._handle_incr,
            Opcode.DECR: self._handle_decr,
            # Control flow
            Opcode.JUMP: self._handle_jump,
            **{opcode: self._handle_conditional_jump for opcode in JUMP_CONDITIONS},
            # Frame-relative access
            Opcode.GET: self._handle_get,
            Opcode.SET: self._handle_set,
            Opcode.GETARG: self._handle_getarg,
            Opcode.SETARG: self._handle_setarg,
            # Output
            Opcode.PRINT: self._handle_print,
            Opcode.PRINTC: self._handle_printc,
            Opcode.PRINTSTACK: self._handle_printstack,
            # Procedures
            Opcode.CALL: self._handle_call,
            Opcode.RET: self._handle_ret,
            Opcode.COLLAPSERET: self._handle_collapseret,
        }

    def reset(self) -> None:
        self.state = MachineState()

    def step(self) -> bool:
        """
        Execute one instruction.

        Returns:
            False once the pointer has run past the end of the stream

        Raises:
            MachineError: If the instruction fails or the step limit is exceeded
        """
        state = self.state
        address = state.pointer
        instruction = self.program.fetch(address)
        if instruction is None:
            return False

        max_steps = self.config.max_steps
        if max_steps is not None and state.steps >= max_steps:
            raise MachineError(
                f"Step limit of {max_steps} exceeded",
                ip=address,
                line_no=self.program.line_for(address),
            )

        state.pointer += 1
        state.steps += 1
        try:
            self._opcode_handlers[instruction.opcode](instruction, state)
        except MachineError as e:
            if e.ip is None:
                e.ip = address
                e.line_no = self.program.line_for(address)
            logger.debug(
                "Machine halted on error",
                ip=address,
                instruction=str(instruction),
                error=e.message,
            )
            raise

        if self.config.trace:
            logger.debug(
                "Instruction executed",
                ip=address,
                instruction=str(instruction),
                depth=len(state.stack),
                frames=len(state.call_stack),
            )
        return True

    def run(self) -> MachineState:
        """
        Run until the pointer leaves the instruction stream.

        Returns:
            The final machine state

        Raises:
            MachineError: On any runtime fault; output already written stands
        """
        logger.debug("Machine started", instructions=len(self.program))
        while self.step():
            pass
        logger.debug(
            "Machine halted",
            steps=self.state.steps,
            depth=len(self.state.stack),
        )
        return self.state

    # --- Opcode handlers ---

    def _handle_noop(self, instruction: Instruction, state: MachineState) -> None:
        pass

    def _handle_push(self, instruction: Instruction, state: MachineState) -> None:
        state.push(instruction.operand)

    def _handle_pop(self, instruction: Instruction, state: MachineState) -> None:
        state.pop()

    def _handle_add(self, instruction: Instruction, state: MachineState) -> None:
        a, b = state.pop(), state.pop()
        state.push(a + b)

    def _handle_sub(self, instruction: Instruction, state: MachineState) -> None:
        a, b = state.pop(), state.pop()
        state.push(b - a)

    def _handle_mul(self, instruction: Instruction, state: MachineState) -> None:
        a, b = state.pop(), state.pop()
        state.push(a * b)

    def _handle_div(self, instruction: Instruction, state: MachineState) -> None:
        a, b = state.pop(), state.pop()
        state.push(truncating_div(b, a))

    def _handle_incr(self, instruction: Instruction, state: MachineState) -> None:
        state.stack[-1] = state.peek() + 1

    def _handle_decr(self, instruction: Instruction, state: MachineState) -> None:
        state.stack[-1] = state.peek() - 1

    def _handle_jump(self, instruction: Instruction, state: MachineState) -> None:
        state.pointer = instruction.operand

    def _handle_conditional_jump(
        self, instruction: Instruction, state: MachineState
    ) -> None:
        """Pops the top and jumps only when the condition holds."""
        if JUMP_CONDITIONS[instruction.opcode](state.peek()):
            state.pop()
            state.pointer = instruction.operand

    def _handle_get(self, instruction: Instruction, state: MachineState) -> None:
        state.push(state.load(state.frame_offset + instruction.operand))

    def _handle_set(self, instruction: Instruction, state: MachineState) -> None:
        state.store(state.frame_offset + instruction.operand, state.peek())

    def _handle_getarg(self, instruction: Instruction, state: MachineState) -> None:
        frame = state.current_frame()
        state.push(state.load(frame.stack_offset - 1 - instruction.operand))

    def _handle_setarg(self, instruction: Instruction, state: MachineState) -> None:
        frame = state.current_frame()
        state.store(frame.stack_offset - 1 - instruction.operand, state.peek())

    def _handle_print(self, instruction: Instruction, state: MachineState) -> None:
        self.out.write(str(state.peek()))

    def _handle_printc(self, instruction: Instruction, state: MachineState) -> None:
        self.out.write(chr(state.peek() & 0xFF))

    def _handle_printstack(self, instruction: Instruction, state: MachineState) -> None:
        self.out.write(f"{state.stack}\n")

    def _handle_call(self, instruction: Instruction, state: MachineState) -> None:
        state.call_stack.append(
            CallFrame(stack_offset=len(state.stack), return_address=state.pointer)
        )
        state.pointer = instruction.operand

    def _handle_ret(self, instruction: Instruction, state: MachineState) -> None:
        state.pointer = state.pop_frame().return_address

    def _handle_collapseret(self, instruction: Instruction, state: MachineState) -> None:
        """Returns one value into argument slot p, dropping everything above it."""
        frame = state.pop_frame()
        value = state.pop()
        slot = frame.stack_offset - 1 - instruction.operand
        state.store(slot, value)
        del state.stack[slot + 1 :]
        state.pointer = frame.return_address


def run_program(
    program: Program,
    out: Optional[TextIO] = None,
    config: Optional[MachineConfig] = None,
) -> MachineState:
    """Convenience wrapper: run ``program`` on a fresh machine and return its final state."""
    return Machine(program, out=out, config=config).run()


__all__ = ["Machine", "MachineState", "run_program", "truncating_div"]
