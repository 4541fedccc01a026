"""CHIP-8 system instructions (0x0xxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import MachineState, advance, jump_to, set_fault
from chipvm.decode import DecodedInstruction
from chipvm.errors import Fault
from chipvm.stack import pop, is_empty


def unsupported(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """Unknown instruction word: record the fault, leave PC on it."""
    return set_fault(state, Fault.UNSUPPORTED_OPCODE, instruction.raw)


def execute_clear_screen(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """00E0 - Clear display."""
    state = state.replace(display=jnp.zeros_like(state.display), draw_flag=jnp.asarray(True))
    return advance(state)


def execute_return(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """00EE - Return from subroutine."""
    def return_from_subroutine(state):
        stack, address = pop(state.stack)
        return advance(jump_to(state.replace(stack=stack), address))

    return jax.lax.cond(
        is_empty(state.stack),
        lambda state: set_fault(state, Fault.STACK_UNDERFLOW, instruction.raw),
        return_from_subroutine,
        state
    )


def execute_system_instruction(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """Dispatch system instructions. 0NNN machine-code calls are not supported."""
    switch_index = (
        (instruction.raw == 0x00E0) * 1 +
        (instruction.raw == 0x00EE) * 2
    )

    return jax.lax.switch(
        switch_index,
        [unsupported, execute_clear_screen, execute_return],
        state, instruction
    )
