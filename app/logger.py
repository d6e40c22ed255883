import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Final, Union

from rich.console import Console
from rich.logging import RichHandler

console: Final[Console] = Console()


log_root: Final[Path] = Path("log").resolve()
log_root.mkdir(exist_ok=True)


class Chip8FileHandler(logging.Handler):
    """
    Appends formatted records to a log file.

    Records that fail to write are held back and retried before the next
    record, so a temporarily locked file does not lose lines.
    """

    def __init__(self, file_name: Union[str, Path]):
        super().__init__()
        self._file_name = Path(file_name)
        self._log_hold: list[logging.LogRecord] = []

    def _write_log_entry(self, log_entry: str) -> None:
        with open(self._file_name, "a", encoding="utf-8") as f:
            f.write(log_entry + "\n")

    def emit(self, record: logging.LogRecord) -> None:
        log_entry = self.format(record)

        self.acquire()
        try:
            if self._log_hold:
                still_failed = []
                for old_record in self._log_hold:
                    try:
                        self._write_log_entry(self.format(old_record))
                    except OSError:
                        still_failed.append(old_record)
                self._log_hold = still_failed

            try:
                self._write_log_entry(log_entry)
            except OSError:
                self._log_hold.append(record)

        finally:
            self.release()


debug_mode: Final[bool] = "--debug" in sys.argv

level: Final[int] = logging.DEBUG if debug_mode else logging.INFO
time_format: Final[str] = "%Y-%m-%d %H:%M:%S"


def get_time() -> str:
    return datetime.now().strftime("%Y-%m-%d_%H-%M-%S")


logging.basicConfig(
    level=level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt=time_format,
    handlers=[
        RichHandler(
            rich_tracebacks=True,
            show_path=True,
            enable_link_path=True,
            tracebacks_show_locals=debug_mode,
            show_level=False,
            console=console,
        ),
        Chip8FileHandler(log_root / f"pychip8_{get_time()}.log"),
    ],
)
log: Final[logging.Logger] = logging.getLogger("PyCHIP8")
