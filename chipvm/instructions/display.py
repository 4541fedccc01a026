"""CHIP-8 display operations."""

import jax.numpy as jnp
from chipvm.state import MachineState, advance
from chipvm.decode import DecodedInstruction
from chipvm.constants import SCREEN_WIDTH, SCREEN_HEIGHT, SPRITE_WIDTH, ADDRESS_MASK, FLAG_REGISTER

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def execute_display(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """DXYN - Draw sprite at (VX, VY) with height N.

    Every cell is mapped back to the sprite pixel that would land on it, so
    sprites crossing the right or bottom edge wrap to the opposite side.
    """
    sprite_x = jnp.astype(state.V[instruction.x], jnp.int32)
    sprite_y = jnp.astype(state.V[instruction.y], jnp.int32)

    col_offset = (xx - sprite_x) % SCREEN_WIDTH
    row_offset = (yy - sprite_y) % SCREEN_HEIGHT
    in_sprite = (col_offset < SPRITE_WIDTH) & (row_offset < instruction.n)

    sprite_bytes = jnp.astype(state.memory[(state.I + row_offset) & ADDRESS_MASK], jnp.int32)
    bit = jnp.where(in_sprite, SPRITE_WIDTH - 1 - col_offset, 0)
    sprite = jnp.astype(((sprite_bytes >> bit) & 1) * in_sprite, jnp.uint8)

    collision = jnp.any((state.display & sprite) == 1)

    state = state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8)),
        draw_flag=jnp.asarray(True),
    )
    return advance(state)
