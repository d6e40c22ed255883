from pathlib import Path
from typing import Final, Optional, Tuple, Union

import numpy as np
from logger import log
from numpy.typing import NDArray
from pychip8.state import MAX_PROGRAM_SIZE
from returns.result import Failure, Result, Success


class Rom:
    """
    A CHIP-8 program image.

    The format has no header: the whole file is copied to the program
    area, so the only structural check is the size limit.
    """

    MAX_SIZE: Final[int] = MAX_PROGRAM_SIZE

    def __init__(self) -> None:
        self.file: str = ""
        self.data: NDArray[np.uint8] = np.zeros(0, dtype=np.uint8)

    def __repr__(self) -> str:
        return f"<Rom file={self.file!r} size={len(self)} bytes>"

    def __len__(self) -> int:
        return len(self.data)

    def __bytes__(self) -> bytes:
        return self.data.tobytes()

    @classmethod
    def from_bytes(cls, data: Union[bytes, bytearray]) -> Result["Rom", str]:
        """
        Validate a program image held in memory.

        Returns:
            Result containing either a Rom instance or an error string.
        """
        if not isinstance(data, (bytes, bytearray)):
            return Failure(f"Expected bytes or bytearray, got {type(data).__name__}")

        if len(data) > cls.MAX_SIZE:
            return Failure(f"Rom file is too large. Expected up to {cls.MAX_SIZE} bytes, got {len(data)}")

        if len(data) == 0:
            log.warning("Rom is empty")

        obj = cls()
        obj.data = np.frombuffer(bytes(data), dtype=np.uint8).copy()
        return Success(obj)

    @classmethod
    def is_valid_file(cls, filepath: Union[Path, str]) -> Tuple[bool, Optional[str]]:
        result = cls.from_file(filepath)
        if isinstance(result, Success):
            return True, None
        return False, result.failure()

    @classmethod
    def from_file(cls, filepath: Union[Path, str]) -> Result["Rom", str]:
        """
        Load a program image from disk.

        Args:
            filepath: Path to the ROM file to load

        Returns:
            Result containing either a Rom instance or an error string.
        """
        path = Path(filepath)
        if not path.exists():
            return Failure(f"File does not exist at {path}")
        if not path.is_file():
            return Failure(f"{path} does not point to a regular file")

        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            return Failure(f"Unable to open file {path} for reading: {e}")

        def attach_file(rom: "Rom") -> "Rom":
            rom.file = str(path)
            return rom

        return cls.from_bytes(data).map(attach_file)
