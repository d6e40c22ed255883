# Instruction set.
#
# Every operation takes the state it touches (registers, and where needed
# memory, stack, framebuffer, keypad snapshot or random source) plus the
# raw 16-bit instruction, and mutates in place. None of them advance PC
# past the instruction itself, that is the CPU's job.

from typing import Final, Sequence

import numpy as np
from numpy.typing import NDArray
from pychip8.errors import OutOfBoundsError, StackOverflowError, StackUnderflowError
from pychip8.font import glyph_address
from pychip8.state import INSTRUCTION_SIZE, STACK_EMPTY, Registers

ADDRESS_MASK: Final[int] = 0x0FFF


# Operand extraction
def opcode_family(instr: int) -> int:
    return (instr >> 12) & 0x0F


def get_x(instr: int) -> int:
    return (instr >> 8) & 0x0F


def get_y(instr: int) -> int:
    return (instr >> 4) & 0x0F


def get_nibble(instr: int) -> int:
    return instr & 0x0F


def get_byte(instr: int) -> int:
    return instr & 0xFF


def get_address(instr: int) -> int:
    return instr & ADDRESS_MASK


def fetch(memory: NDArray[np.uint8], pc: int) -> int:
    """Read the big-endian instruction at pc."""
    if pc < 0 or pc + INSTRUCTION_SIZE > len(memory):
        raise OutOfBoundsError(f"Instruction fetch out of bounds at ${pc:04X}", pc)
    return (int(memory[pc]) << 8) | int(memory[pc + 1])


def _check_range(memory: NDArray[np.uint8], start: int, count: int) -> None:
    if start < 0 or start + count > len(memory):
        raise OutOfBoundsError(
            f"Memory access ${start:04X}-${start + count - 1:04X} exceeds {len(memory)} bytes", start
        )


# Flow control
def ret(regs: Registers, stack: NDArray[np.uint16]) -> None:
    if regs.SP <= STACK_EMPTY:
        raise StackUnderflowError("RET with an empty call stack", regs.PC)
    regs.PC = int(stack[regs.SP])
    regs.SP -= 1


def jp(regs: Registers, instr: int) -> None:
    regs.PC = get_address(instr)


def call(regs: Registers, stack: NDArray[np.uint16], instr: int) -> None:
    if regs.SP + 1 >= len(stack):
        raise StackOverflowError(f"CALL exceeds stack depth of {len(stack)}", regs.PC)
    regs.SP += 1
    stack[regs.SP] = regs.PC
    regs.PC = get_address(instr)


def jp_v0_addr(regs: Registers, instr: int) -> None:
    regs.PC = (get_address(instr) + int(regs.V[0])) & ADDRESS_MASK


# Conditional skips
def se_reg_byte(regs: Registers, instr: int) -> None:
    if int(regs.V[get_x(instr)]) == get_byte(instr):
        regs.PC += INSTRUCTION_SIZE


def sne_reg_byte(regs: Registers, instr: int) -> None:
    if int(regs.V[get_x(instr)]) != get_byte(instr):
        regs.PC += INSTRUCTION_SIZE


def se_reg_reg(regs: Registers, instr: int) -> None:
    if regs.V[get_x(instr)] == regs.V[get_y(instr)]:
        regs.PC += INSTRUCTION_SIZE


def sne_reg_reg(regs: Registers, instr: int) -> None:
    if regs.V[get_x(instr)] != regs.V[get_y(instr)]:
        regs.PC += INSTRUCTION_SIZE


# Loads
def ld_reg_byte(regs: Registers, instr: int) -> None:
    regs.V[get_x(instr)] = get_byte(instr)


def ld_reg_reg(regs: Registers, instr: int) -> None:
    regs.V[get_x(instr)] = regs.V[get_y(instr)]


def ld_i_addr(regs: Registers, instr: int) -> None:
    regs.I = get_address(instr)


def ld_reg_dt(regs: Registers, instr: int) -> None:
    regs.V[get_x(instr)] = regs.delay


def ld_dt_reg(regs: Registers, instr: int) -> None:
    regs.delay = int(regs.V[get_x(instr)])


def ld_st_reg(regs: Registers, instr: int) -> None:
    regs.sound = int(regs.V[get_x(instr)])


def ld_f_reg(regs: Registers, instr: int) -> None:
    regs.I = glyph_address(int(regs.V[get_x(instr)]))


# Arithmetic and logic
def add_reg_byte(regs: Registers, instr: int) -> None:
    """ADD Vx, byte. Wraps silently, VF is untouched."""
    x = get_x(instr)
    regs.V[x] = (int(regs.V[x]) + get_byte(instr)) & 0xFF


def or_reg_reg(regs: Registers, instr: int) -> None:
    regs.V[get_x(instr)] |= regs.V[get_y(instr)]


def and_reg_reg(regs: Registers, instr: int) -> None:
    regs.V[get_x(instr)] &= regs.V[get_y(instr)]


def xor_reg_reg(regs: Registers, instr: int) -> None:
    regs.V[get_x(instr)] ^= regs.V[get_y(instr)]


def add_reg_reg(regs: Registers, instr: int) -> None:
    """ADD Vx, Vy. VF = 1 on carry past 255."""
    x = get_x(instr)
    total = int(regs.V[x]) + int(regs.V[get_y(instr)])
    regs.V[x] = total & 0xFF
    regs.flag = total > 0xFF


def sub_reg_reg(regs: Registers, instr: int) -> None:
    """SUB Vx, Vy. VF = 1 when no borrow occurs (Vx > Vy)."""
    x = get_x(instr)
    a, b = int(regs.V[x]), int(regs.V[get_y(instr)])
    regs.V[x] = (a - b) & 0xFF
    regs.flag = a > b


def subn_reg_reg(regs: Registers, instr: int) -> None:
    """SUBN Vx, Vy. Vx = Vy - Vx, VF = 1 when Vy > Vx."""
    x = get_x(instr)
    a, b = int(regs.V[x]), int(regs.V[get_y(instr)])
    regs.V[x] = (b - a) & 0xFF
    regs.flag = b > a


# The flag is written from the pre-shift value first, then Vx is shifted.
# With x == F the shift therefore operates on the freshly written flag.
def shr_reg(regs: Registers, instr: int) -> None:
    x = get_x(instr)
    regs.flag = int(regs.V[x]) & 0x01
    regs.V[x] = int(regs.V[x]) >> 1


def shl_reg(regs: Registers, instr: int) -> None:
    x = get_x(instr)
    regs.flag = int(regs.V[x]) & 0x80
    regs.V[x] = (int(regs.V[x]) << 1) & 0xFF


def add_i_reg(regs: Registers, instr: int) -> None:
    regs.I = (regs.I + int(regs.V[get_x(instr)])) & 0xFFFF


def rnd_reg_byte(regs: Registers, instr: int, rng: np.random.Generator) -> None:
    regs.V[get_x(instr)] = int(rng.integers(0, 256)) & get_byte(instr)


# Memory transfers
def ld_b_reg(regs: Registers, memory: NDArray[np.uint8], instr: int) -> None:
    """Store the BCD digits of Vx at I, I+1, I+2."""
    _check_range(memory, regs.I, 3)
    value = int(regs.V[get_x(instr)])
    memory[regs.I] = value // 100
    memory[regs.I + 1] = (value // 10) % 10
    memory[regs.I + 2] = value % 10


def str_i_reg(regs: Registers, memory: NDArray[np.uint8], instr: int) -> None:
    """LD [I], Vx: store V0..Vx starting at I."""
    count = get_x(instr) + 1
    _check_range(memory, regs.I, count)
    memory[regs.I : regs.I + count] = regs.V[:count]


def str_reg_i(regs: Registers, memory: NDArray[np.uint8], instr: int) -> None:
    """LD Vx, [I]: read V0..Vx starting at I."""
    count = get_x(instr) + 1
    _check_range(memory, regs.I, count)
    regs.V[:count] = memory[regs.I : regs.I + count]


# Display
def cls(framebuffer: NDArray[np.bool_]) -> None:
    framebuffer[:] = False


def drw(
    regs: Registers,
    memory: NDArray[np.uint8],
    framebuffer: NDArray[np.bool_],
    instr: int,
    width: int,
    height: int,
) -> None:
    """
    DRW Vx, Vy, nibble.

    XOR an n-byte sprite read from I onto the framebuffer at (Vx, Vy),
    wrapping on both axes. VF is set when any lit pixel gets cleared.
    """
    rows = get_nibble(instr)
    _check_range(memory, regs.I, rows)

    origin_x = int(regs.V[get_x(instr)]) % width
    origin_y = int(regs.V[get_y(instr)]) % height
    collision = False

    for row in range(rows):
        line = int(memory[regs.I + row])
        y = (origin_y + row) % height
        for bit in range(8):
            if not (line >> (7 - bit)) & 0x01:
                continue
            index = y * width + (origin_x + bit) % width
            if framebuffer[index]:
                collision = True
            framebuffer[index] = not framebuffer[index]

    regs.flag = collision


# Keypad
def skp_reg(regs: Registers, instr: int, keys: Sequence[bool]) -> None:
    if keys[int(regs.V[get_x(instr)]) & 0x0F]:
        regs.PC += INSTRUCTION_SIZE


def sknp_reg(regs: Registers, instr: int, keys: Sequence[bool]) -> None:
    if not keys[int(regs.V[get_x(instr)]) & 0x0F]:
        regs.PC += INSTRUCTION_SIZE


def ld_reg_k(regs: Registers, instr: int, keys: Sequence[bool]) -> bool:
    """
    LD Vx, K. Store the lowest pressed key in Vx.

    Returns:
        False when no key is pressed; the caller must retry the same instruction.
    """
    for key, pressed in enumerate(keys):
        if pressed:
            regs.V[get_x(instr)] = key
            return True
    return False


