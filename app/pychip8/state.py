from dataclasses import dataclass, field
from typing import Final, Union

import numpy as np
from logger import log as _logger
from numpy.typing import NDArray
from pychip8.errors import ProgramSizeError
from pychip8.font import FONT, FONT_OFFSET

# Machine layout
MEMORY_SIZE: Final[int] = 4096
PROGRAM_START: Final[int] = 0x200
MAX_PROGRAM_SIZE: Final[int] = MEMORY_SIZE - PROGRAM_START
REGISTER_COUNT: Final[int] = 16
STACK_SIZE: Final[int] = 16
SCREEN_WIDTH: Final[int] = 64
SCREEN_HEIGHT: Final[int] = 32
INSTRUCTION_SIZE: Final[int] = 2

FLAG: Final[int] = 0xF  # VF
STACK_EMPTY: Final[int] = -1


@dataclass
class Registers:
    """
    General registers V0-VF, index register I, program counter, stack
    pointer and the two timer registers.

    SP points at the topmost occupied stack slot, -1 when the stack is empty.
    """

    PC: int = PROGRAM_START
    V: NDArray[np.uint8] = field(default_factory=lambda: np.zeros(REGISTER_COUNT, dtype=np.uint8))
    I: int = 0  # noqa: E741
    SP: int = STACK_EMPTY
    delay: int = 0
    sound: int = 0

    @property
    def flag(self) -> int:
        return int(self.V[FLAG])

    @flag.setter
    def flag(self, value: Union[int, bool]) -> None:
        self.V[FLAG] = 1 if value else 0


@dataclass
class MachineState:
    """
    The single owner of all mutable machine state.

    Memory is undifferentiated once loaded: the font lives at the bottom,
    the program is copied to PROGRAM_START, anything may read or write any
    in-bounds address.
    """

    registers: Registers = field(default_factory=Registers)
    memory: NDArray[np.uint8] = field(default_factory=lambda: np.zeros(MEMORY_SIZE, dtype=np.uint8))
    stack: NDArray[np.uint16] = field(default_factory=lambda: np.zeros(STACK_SIZE, dtype=np.uint16))
    framebuffer: NDArray[np.bool_] = field(
        default_factory=lambda: np.zeros(SCREEN_WIDTH * SCREEN_HEIGHT, dtype=np.bool_)
    )
    width: int = SCREEN_WIDTH
    height: int = SCREEN_HEIGHT

    def __post_init__(self) -> None:
        self.memory[FONT_OFFSET : FONT_OFFSET + len(FONT)] = np.frombuffer(FONT, dtype=np.uint8)

    def load_program(self, program: Union[bytes, bytearray]) -> None:
        """
        Copy program bytes into memory at PROGRAM_START.

        Raises:
            ProgramSizeError if the program does not fit in the remaining memory.
        """
        limit = len(self.memory) - PROGRAM_START
        if len(program) > limit:
            raise ProgramSizeError(len(program), limit)

        self.memory[PROGRAM_START : PROGRAM_START + len(program)] = np.frombuffer(bytes(program), dtype=np.uint8)
        _logger.debug(f"Loaded {len(program)} program bytes at ${PROGRAM_START:03X}")

    def clear_screen(self) -> None:
        self.framebuffer[:] = False
