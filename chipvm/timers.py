"""CHIP-8 delay and sound timers."""

import jax.numpy as jnp
from chipvm.state import MachineState


def _count_down(timer: jnp.ndarray) -> jnp.ndarray:
    return jnp.astype(jnp.where(timer > 0, timer - 1, 0), jnp.uint8)


def update_timers(state: MachineState) -> MachineState:
    """Decrement non-zero timers by one tick.

    ``sound_trigger`` is true only for the tick that takes the sound timer
    from 1 to 0.
    """
    return state.replace(
        delay_timer=_count_down(state.delay_timer),
        sound_timer=_count_down(state.sound_timer),
        sound_trigger=state.sound_timer == 1,
    )
