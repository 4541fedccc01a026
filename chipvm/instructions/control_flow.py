"""CHIP-8 control flow instructions."""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import MachineState, advance, skip, jump_to, set_fault
from chipvm.decode import DecodedInstruction
from chipvm.constants import ADDRESS_MASK
from chipvm.errors import Fault
from chipvm.instructions.system import unsupported
from chipvm.stack import push, is_full


def execute_jump(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """1NNN - Jump to address NNN."""
    return jump_to(state, instruction.nnn)


def execute_call(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """2NNN - Call subroutine at NNN.

    The address of the call itself is pushed; 00EE steps past it on return.
    """
    def call(state):
        state = state.replace(stack=push(state.stack, state.pc))
        return execute_jump(state, instruction)

    return jax.lax.cond(
        is_full(state.stack),
        lambda state: set_fault(state, Fault.STACK_OVERFLOW, instruction.raw),
        call,
        state
    )


def make_skip_instruction(condition_fn):
    """Factory for skip instructions."""
    def skip_instruction(state: MachineState, instruction: DecodedInstruction) -> MachineState:
        condition = condition_fn(state, instruction)
        return jax.lax.cond(condition, skip, advance, state)
    return skip_instruction


execute_skip_if_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == inst.nn
)

execute_skip_if_not_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != inst.nn
)

_skip_if_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == state.V[inst.y]
)

_skip_if_not_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != state.V[inst.y]
)


def execute_skip_if_equal_register(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """5XY0 - Skip if VX == VY."""
    return jax.lax.cond(instruction.n == 0, _skip_if_equal_register, unsupported, state, instruction)


def execute_skip_if_not_equal_register(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """9XY0 - Skip if VX != VY."""
    return jax.lax.cond(instruction.n == 0, _skip_if_not_equal_register, unsupported, state, instruction)


def execute_jump_with_offset(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """BNNN - Jump to address NNN + V0."""
    jump_address = (instruction.nnn + jnp.astype(state.V[0], jnp.uint16)) & ADDRESS_MASK
    return jump_to(state, jump_address)


_skip_if_key_pressed = make_skip_instruction(
    lambda state, inst: state.keypad[state.V[inst.x] & 0xF]
)

_skip_if_key_not_pressed = make_skip_instruction(
    lambda state, inst: ~state.keypad[state.V[inst.x] & 0xF]
)


def execute_skip_if_key(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """EX9E/EXA1 - Skip if key pressed/not pressed."""
    switch_index = (
        (instruction.nn == 0x9E) * 1 +
        (instruction.nn == 0xA1) * 2
    )

    return jax.lax.switch(
        switch_index,
        [unsupported, _skip_if_key_pressed, _skip_if_key_not_pressed],
        state, instruction
    )
