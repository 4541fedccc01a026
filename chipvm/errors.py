"""Error conditions reported by the CHIP-8 core.

The core never raises while executing: it records a :class:`Fault` code in the
machine state so that stepping stays traceable under ``jax.jit``. Host code turns
those codes into the exceptions below with :func:`raise_for_fault`.
"""

import enum


class Fault(enum.IntEnum):
    """Fault codes stored in ``MachineState.fault``."""
    NONE = 0
    UNSUPPORTED_OPCODE = 1
    STACK_OVERFLOW = 2
    STACK_UNDERFLOW = 3


FATAL_FAULTS = (Fault.STACK_OVERFLOW, Fault.STACK_UNDERFLOW)


class EmulatorError(Exception):
    """Base class for CHIP-8 emulator errors."""


class UnsupportedOpcodeError(EmulatorError):
    """Fetched instruction word matches no known instruction."""

    def __init__(self, opcode: int, address: int):
        self.opcode = opcode
        self.address = address
        super().__init__(f"Unsupported opcode 0x{opcode:04X} at 0x{address:03X}")


class MemoryOverflowError(EmulatorError):
    """Program image does not fit between PROGRAM_START and the end of memory."""

    def __init__(self, size: int, capacity: int):
        self.size = size
        self.capacity = capacity
        super().__init__(f"Program of {size} bytes exceeds the {capacity} bytes available")


class StackOverflowError(EmulatorError):
    """Subroutine call with a full call stack."""

    def __init__(self, address: int):
        self.address = address
        super().__init__(f"Call stack overflow at 0x{address:03X}")


class StackUnderflowError(EmulatorError):
    """Return with an empty call stack."""

    def __init__(self, address: int):
        self.address = address
        super().__init__(f"Call stack underflow at 0x{address:03X}")


def raise_for_fault(state) -> None:
    """Raise the exception matching the fault recorded in ``state``, if any."""
    fault = Fault(int(state.fault))
    address = int(state.pc)

    if fault == Fault.UNSUPPORTED_OPCODE:
        raise UnsupportedOpcodeError(int(state.fault_opcode), address)
    if fault == Fault.STACK_OVERFLOW:
        raise StackOverflowError(address)
    if fault == Fault.STACK_UNDERFLOW:
        raise StackUnderflowError(address)
