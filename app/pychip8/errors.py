from typing import Final


class Chip8Error(Exception):
    """Base exception for all PyCHIP8 related errors."""

    pass


class OutOfBoundsError(Chip8Error):
    """Raised on any access outside of memory or the call stack."""

    def __init__(self, message: str, address: int) -> None:
        self.address: Final[int] = address
        super().__init__(message)


class StackOverflowError(OutOfBoundsError):
    pass


class StackUnderflowError(OutOfBoundsError):
    pass


class IllegalInstructionError(Chip8Error):
    def __init__(self, instruction: int, address: int) -> None:
        self.instruction: Final[int] = instruction
        self.address: Final[int] = address
        super().__init__(f"Illegal instruction 0x{instruction:04X} at 0x{address:03X}")


class ProgramSizeError(Chip8Error):
    def __init__(self, size: int, limit: int) -> None:
        self.size: Final[int] = size
        self.limit: Final[int] = limit
        super().__init__(f"Program is too large. Expected up to {limit} bytes, got {size}")


class ResourceError(Chip8Error):
    """A collaborator (window, audio device, ...) could not acquire what it needs."""

    pass
