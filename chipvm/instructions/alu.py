"""CHIP-8 ALU operations (8xxx).

Each operation maps the pre-instruction values of VX, VY and VF to a new VX and
a new VF. VF is written before VX, so when X is F the result wins over the flag.
"""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import MachineState, advance
from chipvm.decode import DecodedInstruction
from chipvm.constants import FLAG_REGISTER
from chipvm.instructions.system import unsupported


def alu_set(vx: int, vy: int, vf: int) -> tuple[int, int]:
    """8XY0 - Set: VX = VY."""
    return vy, vf


def alu_or(vx: int, vy: int, vf: int) -> tuple[int, int]:
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, vf


def alu_and(vx: int, vy: int, vf: int) -> tuple[int, int]:
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, vf


def alu_xor(vx: int, vy: int, vf: int) -> tuple[int, int]:
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, vf


def alu_add(vx: int, vy: int, vf: int) -> tuple[int, int]:
    """8XY4 - Add: VX += VY, set carry flag."""
    result = vx + vy
    carry = result > 255
    return result & 0xFF, carry


def alu_sub_xy(vx: int, vy: int, vf: int) -> tuple[int, int]:
    """8XY5 - Subtract: VX -= VY, VF = NOT borrow."""
    no_borrow = vx >= vy
    return (vx - vy) & 0xFF, no_borrow


def alu_shift_right(vx: int, vy: int, vf: int) -> tuple[int, int]:
    """8XY6 - Shift right: VX >>= 1."""
    shifted_bit = vx & 1
    return vx >> 1, shifted_bit


def alu_sub_yx(vx: int, vy: int, vf: int) -> tuple[int, int]:
    """8XY7 - Subtract: VX = VY - VX, VF = NOT borrow."""
    no_borrow = vy >= vx
    return (vy - vx) & 0xFF, no_borrow


def alu_shift_left(vx: int, vy: int, vf: int) -> tuple[int, int]:
    """8XYE - Shift left: VX <<= 1."""
    shifted_bit = (vx & 0x80) >> 7
    return (vx << 1) & 0xFF, shifted_bit


ALU_OPERATIONS = {
    0x0: alu_set,
    0x1: alu_or,
    0x2: alu_and,
    0x3: alu_xor,
    0x4: alu_add,
    0x5: alu_sub_xy,
    0x6: alu_shift_right,
    0x7: alu_sub_yx,
    0xE: alu_shift_left,
}


def _make_alu_instruction(operation):
    def alu_instruction(state: MachineState, instruction: DecodedInstruction) -> MachineState:
        vx = jnp.astype(state.V[instruction.x], jnp.int32)
        vy = jnp.astype(state.V[instruction.y], jnp.int32)
        vf = jnp.astype(state.V[FLAG_REGISTER], jnp.int32)

        result, flag = operation(vx, vy, vf)

        new_V = state.V.at[FLAG_REGISTER].set(jnp.astype(flag, jnp.uint8))
        new_V = new_V.at[instruction.x].set(jnp.astype(result, jnp.uint8))
        return advance(state.replace(V=new_V))
    return alu_instruction


# Undefined low nibbles (8, 9, A, B, C, D, F) fall through to ``unsupported``
ALU_TABLE = [
    _make_alu_instruction(ALU_OPERATIONS[n]) if n in ALU_OPERATIONS else unsupported
    for n in range(16)
]


def execute_alu_operation(state: MachineState, instruction: DecodedInstruction) -> MachineState:
    """8XYN - ALU operations dispatcher."""
    return jax.lax.switch(instruction.n, ALU_TABLE, state, instruction)
