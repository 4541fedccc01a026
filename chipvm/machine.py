"""Host-side driver owning a CHIP-8 machine state."""

from typing import Callable, Iterable, Optional

import jax
import jax.numpy as jnp
import numpy as np

from chipvm.config import EmulatorConfig
from chipvm.constants import NUM_KEYS
from chipvm.emulator import cycle, run_frame, load_program
from chipvm.errors import Fault, UnsupportedOpcodeError, raise_for_fault
from chipvm.logging import ConsoleLogger
from chipvm.state import MachineState, create_state, acknowledge_redraw


class Machine:
    """Single owner of a running CHIP-8 machine.

    Wraps the pure emulator functions with jitted callables, feeds keypad
    input in, turns recorded faults into log lines or exceptions, and forwards
    sound-trigger edges to ``sound_callback``.
    """

    def __init__(
        self,
        config: Optional[EmulatorConfig] = None,
        logger: Optional[ConsoleLogger] = None,
        sound_callback: Optional[Callable[[], None]] = None,
    ):
        self.config = config or EmulatorConfig()
        if logger is None:
            logger = ConsoleLogger(log_level=self.config.log_level)
        else:
            logger.set_level(self.config.log_level)
        self.logger = logger
        self.sound_callback = sound_callback
        self.program: Optional[bytes] = None

        self._cycle = jax.jit(cycle)
        self.state: MachineState = create_state(jax.random.PRNGKey(self.config.seed))

    def reset(self) -> None:
        """Return to power-on state and reload the last program, if any."""
        self.state = create_state(jax.random.PRNGKey(self.config.seed))
        if self.program is not None:
            self.state, _ = load_program(self.state, self.program)
        self.logger.debug("Machine reset")

    def load(self, program: bytes) -> int:
        """Load program bytes at 0x200 and return the number of bytes loaded."""
        self.state, loaded = load_program(self.state, program)
        self.program = bytes(program)
        self.logger.info(f"Loaded {loaded} bytes")
        return loaded

    def load_file(self, filename: str) -> int:
        with open(filename, 'rb') as f:
            return self.load(f.read())

    def set_keys(self, keys: Iterable[bool]) -> None:
        """Replace the whole keypad state."""
        keypad = jnp.asarray(list(keys), dtype=jnp.bool_)
        if keypad.shape != (NUM_KEYS,):
            raise ValueError(f"Expected {NUM_KEYS} key states, got {keypad.shape[0]}")
        self.state = self.state.replace(keypad=keypad)

    def press(self, key: int) -> None:
        self._set_key(key, True)

    def release(self, key: int) -> None:
        self._set_key(key, False)

    def _set_key(self, key: int, pressed: bool) -> None:
        # Out-of-range scatter indices are silently dropped by JAX
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"Key must be in range 0..{NUM_KEYS - 1}, got {key}")
        self.state = self.state.replace(keypad=self.state.keypad.at[key].set(pressed))

    def cycle(self) -> MachineState:
        """Run one cycle: one instruction followed by one timer tick."""
        self.state = self._cycle(self.state)
        self._after_cycle()
        return self.state

    def run_frame(self) -> MachineState:
        """Run one host frame: ``instructions_per_frame`` instructions, one timer tick."""
        self.state = run_frame(self.state, self.config.instructions_per_frame)
        self._after_cycle()
        return self.state

    def consume_frame(self) -> Optional[np.ndarray]:
        """Return the display if a redraw is pending and clear the flag."""
        if not bool(self.state.draw_flag):
            return None
        display = np.asarray(self.state.display)
        self.state = acknowledge_redraw(self.state)
        return display

    def _after_cycle(self) -> None:
        fault = Fault(int(self.state.fault))

        if fault == Fault.UNSUPPORTED_OPCODE:
            error = UnsupportedOpcodeError(int(self.state.fault_opcode), int(self.state.pc))
            if self.config.strict_opcodes:
                raise error
            self.logger.warning(str(error))
        elif fault != Fault.NONE:
            self.logger.error(f"Machine halted: {fault.name}")
            raise_for_fault(self.state)

        if bool(self.state.sound_trigger) and self.sound_callback is not None:
            self.sound_callback()
