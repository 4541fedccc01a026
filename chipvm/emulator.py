"""Main CHIP-8 emulator execution engine."""

from functools import partial

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import MachineState, advance, is_halted
from chipvm.decode import decode
from chipvm.constants import PROGRAM_START, MEMORY_SIZE, ADDRESS_MASK
from chipvm.errors import Fault, MemoryOverflowError
from chipvm.timers import update_timers
from chipvm.logging import scan_with_progress
from chipvm.instructions.system import execute_system_instruction
from chipvm.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset, execute_skip_if_key
)
from chipvm.instructions.alu import execute_alu_operation
from chipvm.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chipvm.instructions.display import execute_display
from chipvm.instructions.misc import execute_misc_instruction, lowest_pressed_key


def execute(state: MachineState, instruction: int) -> MachineState:
    """Execute single CHIP-8 instruction, including its PC update."""
    decoded_instruction = decode(instruction)

    return jax.lax.switch(
        decoded_instruction.opcode,
        [
            execute_system_instruction,
            execute_jump,
            execute_call,
            execute_skip_if_equal_immediate,
            execute_skip_if_not_equal_immediate,
            execute_skip_if_equal_register,
            execute_set,
            execute_add,
            execute_alu_operation,
            execute_skip_if_not_equal_register,
            execute_set_index,
            execute_jump_with_offset,
            execute_random,
            execute_display,
            execute_skip_if_key,
            execute_misc_instruction,
        ],
        state, decoded_instruction
    )


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def _unpack_u16(value: jnp.uint16) -> tuple[jnp.uint8, jnp.uint8]:
    """Unpack uint16 into two bytes."""
    return (value >> 8).astype(jnp.uint8), (value & 0xFF).astype(jnp.uint8)


def fetch(state: MachineState) -> jnp.uint16:
    """Read the instruction word at PC (first byte is the high byte)."""
    return _pack_u16(state.memory[state.pc & ADDRESS_MASK], state.memory[(state.pc + 1) & ADDRESS_MASK])


def write_instructions(state: MachineState, address: int, instructions) -> MachineState:
    """Write instruction words big-endian into memory starting at ``address``."""
    memory = state.memory
    for offset, instruction in enumerate(instructions):
        high, low = _unpack_u16(jnp.asarray(instruction, dtype=jnp.uint16))
        memory = memory.at[address + 2 * offset].set(high)
        memory = memory.at[address + 2 * offset + 1].set(low)
    return state.replace(memory=memory)


def resume_wait_for_key(state: MachineState) -> MachineState:
    """Finish a pending FX0A once any key is down; otherwise do nothing."""
    def release(state):
        key = lowest_pressed_key(state.keypad)
        state = state.replace(
            V=state.V.at[state.wait_register].set(key),
            waiting_for_key=jnp.asarray(False),
        )
        return advance(state)

    return jax.lax.cond(jnp.any(state.keypad), release, lambda state: state, state)


def _fetch_and_execute(state: MachineState) -> MachineState:
    return execute(state, fetch(state))


def step(state: MachineState) -> MachineState:
    """Run one instruction, or re-check the keypad while waiting for a key."""
    transient = state.fault == int(Fault.UNSUPPORTED_OPCODE)
    state = state.replace(fault=jnp.astype(jnp.where(transient, int(Fault.NONE), state.fault), jnp.uint8))
    return jax.lax.cond(state.waiting_for_key, resume_wait_for_key, _fetch_and_execute, state)


def _halted(state: MachineState) -> MachineState:
    return state.replace(sound_trigger=jnp.asarray(False))


def cycle(state: MachineState) -> MachineState:
    """One machine cycle: step, then tick the timers. No-op once halted."""
    return jax.lax.cond(
        is_halted(state),
        _halted,
        lambda state: update_timers(step(state)),
        state
    )


@partial(jax.jit, static_argnums=1)
def run_frame(state: MachineState, instructions_per_frame: int) -> MachineState:
    """Run ``instructions_per_frame`` steps followed by a single timer tick."""
    def run_instruction(state, _):
        return jax.lax.cond(is_halted(state), _halted, step, state), None

    state, _ = jax.lax.scan(run_instruction, state, length=instructions_per_frame)
    return jax.lax.cond(is_halted(state), _halted, update_timers, state)


@partial(jax.jit, static_argnums=(1, 2))
def run_cycles(state: MachineState, n: int, progress: bool = False) -> MachineState:
    """Run ``n`` full cycles, optionally reporting progress with tqdm."""
    def run_cycle(state, _):
        return cycle(state), None

    if progress:
        run_cycle = scan_with_progress(n, desc=f"Running {n:,} cycles")(run_cycle)

    state, _ = jax.lax.scan(run_cycle, state, jnp.arange(n))
    return state


def load_program(state: MachineState, program: bytes) -> tuple[MachineState, int]:
    """Copy program bytes into memory at PROGRAM_START.

    Returns the new state and the number of bytes loaded. Raises
    MemoryOverflowError, without touching memory, if the program does not fit.
    """
    capacity = MEMORY_SIZE - PROGRAM_START
    if len(program) > capacity:
        raise MemoryOverflowError(len(program), capacity)

    program_array = jnp.array(list(program), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(program)].set(program_array)
    return state.replace(memory=new_memory), len(program)


def load_rom(state: MachineState, filename: str) -> tuple[MachineState, int]:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load_program(state, rom_data)
