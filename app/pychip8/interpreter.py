import time
from typing import Callable, Final, Optional, Protocol

from logger import log as _logger
from pychip8.cpu import CPU
from pychip8.errors import Chip8Error
from pychip8.timers import NS_PER_SECOND, TimerEvent
from returns.result import Failure, Result, Success

DEFAULT_CPU_FREQUENCY: Final[int] = 500
DEFAULT_TICK_PERIOD_NS: Final[int] = NS_PER_SECOND // DEFAULT_CPU_FREQUENCY


class AudioSink(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...


class _Silence:
    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass


class Interpreter:
    """
    Real-time scheduler around a CPU.

    One iteration drains the frontend events, advances both timers by the
    elapsed wall-clock time and runs a CPU step whenever a full tick period
    has accumulated. The accumulator is decremented by one period, not reset,
    so the long-run step rate matches the configured frequency.
    """

    def __init__(
        self,
        cpu: CPU,
        events: Optional[Callable[[], bool]] = None,
        audio: Optional[AudioSink] = None,
        tick_period_ns: int = DEFAULT_TICK_PERIOD_NS,
        clock: Callable[[], int] = time.perf_counter_ns,
    ) -> None:
        if tick_period_ns <= 0:
            raise ValueError("tick_period_ns must be a positive integer")

        self.cpu: Final[CPU] = cpu
        self.events: Callable[[], bool] = events if events is not None else (lambda: True)
        self.audio: AudioSink = audio if audio is not None else _Silence()
        self.tick_period_ns: Final[int] = tick_period_ns
        self.clock: Final[Callable[[], int]] = clock

        self.running: bool = False
        self.tick_accumulator_ns: int = 0
        self._last_time_ns: Optional[int] = None

    def stop(self) -> None:
        self.running = False

    def _forward(self, event: Optional[TimerEvent]) -> None:
        match event:
            case TimerEvent.STARTED:
                self.audio.start()
            case TimerEvent.STOPPED:
                self.audio.stop()

    def iterate(self, now_ns: int) -> None:
        """
        Run one loop iteration at time now_ns.

        Raises:
            Chip8Error: propagated from the CPU step.
        """
        delta_ns = 0 if self._last_time_ns is None else max(0, now_ns - self._last_time_ns)
        self._last_time_ns = now_ns

        if not self.events():
            _logger.info("Quit requested")
            self.stop()
            return

        for event in self.cpu.update_timers(delta_ns):
            self._forward(event)

        self.tick_accumulator_ns += delta_ns
        if self.tick_accumulator_ns >= self.tick_period_ns:
            self.tick_accumulator_ns -= self.tick_period_ns
            self._forward(self.cpu.step())

    def run(self) -> Result[int, Chip8Error]:
        """
        Loop until stop() is called or the CPU faults.

        Returns:
            Success with the number of executed steps, or Failure with the
            first error raised by the CPU.
        """
        self.running = True
        self._last_time_ns = self.clock()
        _logger.info(f"Interpreter started, tick period {self.tick_period_ns} ns")

        while self.running:
            try:
                self.iterate(self.clock())
            except Chip8Error as e:
                self.running = False
                self.audio.stop()
                _logger.error(f"Interpreter halted: {e}", exc_info=(type(e), e, e.__traceback__))
                return Failure(e)

        self.audio.stop()
        _logger.info(f"Interpreter stopped after {self.cpu.steps} steps")
        return Success(self.cpu.steps)
