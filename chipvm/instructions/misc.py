"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import MachineState, advance
from chipvm.decode import DecodedInstruction
from chipvm.constants import FONT_START, FONT_GLYPH_SIZE, ADDRESS_MASK, NUM_REGISTERS
from chipvm.instructions.system import unsupported


def lowest_pressed_key(keypad: jnp.ndarray) -> jnp.ndarray:
    """Index of the lowest pressed key; only meaningful when a key is pressed."""
    return jnp.astype(jnp.argmax(keypad), jnp.uint8)


def execute_get_delay_timer(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX07 - Set VX to delay timer value."""
    return advance(state.replace(V=state.V.at[instruction.x].set(state.delay_timer)))


def execute_set_delay_timer(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX15 - Set delay timer to VX."""
    return advance(state.replace(delay_timer=state.V[instruction.x]))


def execute_set_sound_timer(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX18 - Set sound timer to VX."""
    return advance(state.replace(sound_timer=state.V[instruction.x]))


def execute_add_to_index(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX1E - Add VX to I register (16-bit wrap, VF untouched)."""
    new_i = jnp.astype(state.I + jnp.astype(state.V[instruction.x], jnp.uint16), jnp.uint16)
    return advance(state.replace(I=new_i))


def execute_wait_for_key(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX0A - Wait for key press.

    With no key down the machine enters waiting mode and PC stays on this
    instruction; ``chipvm.emulator.step`` resolves the wait on a later cycle.
    When several keys are down the lowest index wins.
    """
    def key_pressed_action(state):
        return advance(state.replace(V=state.V.at[instruction.x].set(lowest_pressed_key(state.keypad))))

    def wait_action(state):
        return state.replace(
            waiting_for_key=jnp.asarray(True),
            wait_register=jnp.astype(instruction.x, jnp.uint8),
        )

    return jax.lax.cond(jnp.any(state.keypad), key_pressed_action, wait_action, state)


def execute_font_character(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX29 - Set I to location of sprite for digit VX."""
    font_address = FONT_START + jnp.astype(state.V[instruction.x], jnp.uint16) * FONT_GLYPH_SIZE
    return advance(state.replace(I=jnp.astype(font_address, jnp.uint16)))


def execute_bcd_conversion(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = (jnp.arange(3) + state.I) & ADDRESS_MASK
    new_memory = state.memory.at[indices].set(digits)
    return advance(state.replace(memory=new_memory))


def _register_window(state: MachineState, instruction: DecodedInstruction):
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = (state.I + jnp.arange(NUM_REGISTERS)) & ADDRESS_MASK
    return register_mask, base_indices


def _step_index_past_registers(state: MachineState, instruction: DecodedInstruction) -> jnp.ndarray:
    return jnp.astype(state.I + instruction.x + 1, jnp.uint16)


def execute_store_registers(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX55 - Store V0 through VX in memory starting at I, then I += X + 1."""
    register_mask, base_indices = _register_window(state, instruction)
    current_memory_values = state.memory[base_indices]
    new_memory_values = jnp.where(register_mask, state.V, current_memory_values)
    new_memory = state.memory.at[base_indices].set(new_memory_values)

    return advance(state.replace(memory=new_memory, I=_step_index_past_registers(state, instruction)))


def execute_load_registers(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """FX65 - Load V0 through VX from memory starting at I, then I += X + 1."""
    register_mask, base_indices = _register_window(state, instruction)
    memory_values = state.memory[base_indices]
    new_V = jnp.where(register_mask, memory_values, state.V)

    return advance(state.replace(V=new_V, I=_step_index_past_registers(state, instruction)))


def execute_misc_instruction(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """Dispatch misc instructions using arithmetic switch."""
    is_0x07 = instruction.nn == 0x07
    is_0x0A = instruction.nn == 0x0A
    is_0x15 = instruction.nn == 0x15
    is_0x18 = instruction.nn == 0x18
    is_0x1E = instruction.nn == 0x1E
    is_0x29 = instruction.nn == 0x29
    is_0x33 = instruction.nn == 0x33
    is_0x55 = instruction.nn == 0x55
    is_0x65 = instruction.nn == 0x65

    switch_index = (
        is_0x07 * 1 +
        is_0x0A * 2 +
        is_0x15 * 3 +
        is_0x18 * 4 +
        is_0x1E * 5 +
        is_0x29 * 6 +
        is_0x33 * 7 +
        is_0x55 * 8 +
        is_0x65 * 9
    )

    return jax.lax.switch(
        switch_index,
        [
            unsupported,
            execute_get_delay_timer,
            execute_wait_for_key,
            execute_set_delay_timer,
            execute_set_sound_timer,
            execute_add_to_index,
            execute_font_character,
            execute_bcd_conversion,
            execute_store_registers,
            execute_load_registers,
        ],
        state, instruction
    )
