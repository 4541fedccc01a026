"""CHIP-8 virtual machine package."""

from chipvm.state import MachineState, create_state, reset_state, acknowledge_redraw
from chipvm.emulator import (
    execute, fetch, step, cycle, run_frame, run_cycles, load_program, load_rom, write_instructions
)
from chipvm.decode import DecodedInstruction, decode
from chipvm.timers import update_timers
from chipvm.errors import (
    Fault, EmulatorError, UnsupportedOpcodeError, MemoryOverflowError,
    StackOverflowError, StackUnderflowError, raise_for_fault
)
from chipvm.config import EmulatorConfig
from chipvm.machine import Machine
from chipvm.constants import *
from chipvm.rendering import display_to_rgb, display_to_text, create_color_scheme

__all__ = [
    "MachineState",
    "create_state",
    "reset_state",
    "acknowledge_redraw",
    "fetch",
    "execute",
    "step",
    "cycle",
    "run_frame",
    "run_cycles",
    "load_program",
    "load_rom",
    "write_instructions",
    "DecodedInstruction",
    "decode",
    "update_timers",
    "Fault",
    "EmulatorError",
    "UnsupportedOpcodeError",
    "MemoryOverflowError",
    "StackOverflowError",
    "StackUnderflowError",
    "raise_for_fault",
    "EmulatorConfig",
    "Machine",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "display_to_rgb",
    "display_to_text",
    "create_color_scheme",
]
