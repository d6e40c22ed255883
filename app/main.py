#!/usr/bin/env python3
import platform
import sys
from pathlib import Path
from types import TracebackType
from typing import Optional, Tuple, Type, TypeVar

import pygame
from __version__ import __version_string__ as __version__
from backend.beeper import Beeper
from backend.control import Control
from backend.display import Display
from logger import console, debug_mode
from logger import log as _log
from pychip8.cpu import CPU
from pychip8.errors import Chip8Error
from pychip8.interpreter import Interpreter
from pychip8.rom import Rom
from pychip8.timers import NS_PER_SECOND
from returns.result import Failure, Result
from rich.traceback import install
from util.config import load_config
from util.timer import Timer

E = TypeVar("E", bound=BaseException)


def _extract_exc_info(e: E) -> Tuple[Type[E], E, Optional[TracebackType]]:
    return (type(e), e, e.__traceback__)


def rom_path_from_argv(argv: list[str]) -> Optional[Path]:
    """The last non-flag argument is the ROM path."""
    args = [arg for arg in argv[1:] if not arg.startswith("--")]
    return Path(args[-1]).resolve() if args else None


def main(argv: Optional[list[str]] = None) -> int:
    argv = sys.argv if argv is None else argv
    cfg = load_config()
    install(console=console, show_locals=debug_mode)
    _log.info(f"Starting PyCHIP8 {__version__}")

    rom_path = rom_path_from_argv(argv)
    if rom_path is None:
        _log.error("Usage: main.py [--debug] <rom>")
        return 1

    rom_result: Result[Rom, str] = Rom.from_file(rom_path)
    if isinstance(rom_result, Failure):
        _log.error(rom_result.failure())
        return 1
    rom = rom_result.unwrap()
    _log.info(f"Loaded: {rom_path.name} ({len(rom)} bytes)")

    _log.info(f"Starting pygame community edition {pygame.__version__}")
    pygame.init()

    display: Optional[Display] = None
    try:
        display = Display(f"PyCHIP8 - {rom_path.name}", scale=cfg["general"]["scale"])
        beeper = Beeper(**cfg["audio"])
        control = Control(cfg["keyboard"])

        cpu = CPU(bytes(rom), keyboard=control.snapshot, timer_period_ns=NS_PER_SECOND // cfg["general"]["timer_hz"])
        cpu.debug.Logging = debug_mode
        cpu.on("frame_complete")(display.draw)

        interpreter = Interpreter(
            cpu,
            events=control.process_events,
            audio=beeper,
            tick_period_ns=NS_PER_SECOND // cfg["general"]["cpu_hz"],
        )

        with Timer() as run_timer:
            result = interpreter.run()

    except Chip8Error as e:
        _log.error(f"Unable to start: {e}", exc_info=_extract_exc_info(e))
        return 1
    finally:
        if display is not None:
            display.close()
        pygame.quit()
        _log.info("Pygame: Shutting down")

    if isinstance(result, Failure):
        err = result.failure()
        _log.error(f"{type(err).__name__}: {err}")
        if cpu.tracelog:
            _log.error("Last instructions:\n" + "\n".join(cpu.tracelog))
        return 1

    steps = result.unwrap()
    _log.info(f"Ran {steps} steps in {run_timer:.2f}s")
    return 0


if __name__ == "__main__":
    if tuple(map(int, platform.python_version_tuple()[:2])) < (3, 11):
        raise RuntimeError("Python 3.11 or higher is required to run PyCHIP8.")

    try:
        sys.exit(main())
    except KeyboardInterrupt:
        _log.info("Interrupted by user (Ctrl+C)")
        sys.exit(0)
