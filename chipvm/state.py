"""CHIP-8 machine state structures."""

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode

from chipvm.constants import (
    MEMORY_SIZE, PROGRAM_START, FONT_START, FONT_DATA, SCREEN_WIDTH, SCREEN_HEIGHT,
    STACK_SIZE, NUM_REGISTERS, NUM_KEYS, INSTRUCTION_SIZE,
)
from chipvm.errors import Fault, FATAL_FAULTS


@dataclass(frozen=True)
class StackState:
    """Stack state for subroutine calls."""
    data: jnp.ndarray
    pointer: jnp.ndarray


class MachineState(PyTreeNode):
    """Main CHIP-8 machine state.

    Every field is a JAX array so that states can be threaded through
    ``jax.lax`` control flow, jitted and vmapped. Instances are immutable; use
    ``replace`` to derive a new state.
    """
    rng: jax.Array
    memory: jnp.ndarray
    pc: jnp.ndarray
    I: jnp.ndarray
    V: jnp.ndarray
    stack: StackState
    display: jnp.ndarray
    keypad: jnp.ndarray
    delay_timer: jnp.ndarray
    sound_timer: jnp.ndarray
    draw_flag: jnp.ndarray
    sound_trigger: jnp.ndarray
    waiting_for_key: jnp.ndarray
    wait_register: jnp.ndarray
    fault: jnp.ndarray
    fault_opcode: jnp.ndarray


def create_stack() -> StackState:
    """Create an empty call stack."""
    return StackState(
        data=jnp.zeros(STACK_SIZE, dtype=jnp.uint16),
        pointer=jnp.zeros((), dtype=jnp.uint8),
    )


def create_state(rng: jax.Array = jax.random.PRNGKey(0)) -> MachineState:
    """Create power-on machine state with font data loaded.

    Memory, registers, stack, timers, keypad and display are zeroed, the font
    set is written at FONT_START, PC points at PROGRAM_START and a redraw is
    pending so the renderer shows a blank frame before the first cycle.
    """
    memory = jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8)
    memory = memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(FONT_DATA)

    return MachineState(
        rng=rng,
        memory=memory,
        pc=jnp.asarray(PROGRAM_START, dtype=jnp.uint16),
        I=jnp.zeros((), dtype=jnp.uint16),
        V=jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8),
        stack=create_stack(),
        display=jnp.zeros((SCREEN_WIDTH, SCREEN_HEIGHT), dtype=jnp.uint8),
        keypad=jnp.zeros(NUM_KEYS, dtype=jnp.bool_),
        delay_timer=jnp.zeros((), dtype=jnp.uint8),
        sound_timer=jnp.zeros((), dtype=jnp.uint8),
        draw_flag=jnp.asarray(True),
        sound_trigger=jnp.asarray(False),
        waiting_for_key=jnp.asarray(False),
        wait_register=jnp.zeros((), dtype=jnp.uint8),
        fault=jnp.asarray(int(Fault.NONE), dtype=jnp.uint8),
        fault_opcode=jnp.zeros((), dtype=jnp.uint16),
    )


def reset_state(state: MachineState) -> MachineState:
    """Return power-on state, keeping only the random key of ``state``."""
    return create_state(state.rng)


def advance(state: MachineState, instructions: int = 1) -> MachineState:
    """Move PC past ``instructions`` instruction words."""
    return state.replace(pc=jnp.astype(state.pc + INSTRUCTION_SIZE * instructions, jnp.uint16))


def skip(state: MachineState) -> MachineState:
    """Move PC past the current and the next instruction."""
    return advance(state, 2)


def jump_to(state: MachineState, address) -> MachineState:
    return state.replace(pc=jnp.astype(address, jnp.uint16))


def set_fault(state: MachineState, fault: Fault, opcode) -> MachineState:
    """Record ``fault`` for the instruction word ``opcode``; nothing else changes."""
    return state.replace(
        fault=jnp.asarray(int(fault), dtype=jnp.uint8),
        fault_opcode=jnp.astype(opcode, jnp.uint16),
    )


def is_halted(state: MachineState) -> jnp.ndarray:
    """True once a fatal fault has been recorded."""
    return jnp.isin(state.fault, jnp.array([int(f) for f in FATAL_FAULTS], dtype=jnp.uint8))


def acknowledge_redraw(state: MachineState) -> MachineState:
    """Clear the redraw flag after the renderer consumed a frame."""
    return state.replace(draw_flag=jnp.asarray(False))
