"""CHIP-8 register and index operations."""

import jax
import jax.numpy as jnp
from chipvm.state import MachineState, advance
from chipvm.decode import DecodedInstruction


def execute_set(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """6XNN - Set VX = NN."""
    return advance(state.replace(V=state.V.at[instruction.x].set(jnp.astype(instruction.nn, jnp.uint8))))


def execute_add(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """7XNN - Add NN to VX. Wraps, VF untouched."""
    result = jnp.astype((jnp.astype(state.V[instruction.x], jnp.int32) + instruction.nn) & 0xFF, jnp.uint8)
    return advance(state.replace(V=state.V.at[instruction.x].set(result)))


def execute_set_index(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """ANNN - Set I = NNN."""
    return advance(state.replace(I=jnp.astype(instruction.nnn, jnp.uint16)))


def execute_random(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """CXNN - Set VX = random & NN."""
    key, subkey = jax.random.split(state.rng)
    random_value = jax.random.randint(subkey, shape=(), minval=0, maxval=256, dtype=jnp.int32)
    masked = jnp.astype(random_value & instruction.nn, jnp.uint8)
    return advance(state.replace(V=state.V.at[instruction.x].set(masked), rng=key))
