import time
from typing import Any, Callable, Optional

from pychip8.timers import NS_PER_SECOND


class Timer:
    """Stopwatch over a monotonic nanosecond clock."""

    def __init__(self, clock: Callable[[], int] = time.perf_counter_ns) -> None:
        self.start_time: Optional[int] = None
        self.elapsed_ns: int = 0
        self.running: bool = False
        self._clock = clock

    def start(self) -> None:
        if not self.running:
            self.start_time = self._clock()
            self.running = True

    def stop(self) -> None:
        if self.running:
            assert self.start_time is not None
            self.elapsed_ns += self._clock() - self.start_time
            self.start_time = None
            self.running = False

    def pause(self) -> None:
        self.stop()

    def resume(self) -> None:
        self.start()

    def get_elapsed_ns(self) -> int:
        if self.running:
            assert self.start_time is not None
            return self.elapsed_ns + (self._clock() - self.start_time)
        return self.elapsed_ns

    def get_elapsed_time(self) -> float:
        """Elapsed time in seconds."""
        return self.get_elapsed_ns() / NS_PER_SECOND

    def reset(self) -> None:
        self.start_time = None
        self.elapsed_ns = 0
        self.running = False

    def is_running(self) -> bool:
        return self.running

    def __str__(self) -> str:
        state = "running" if self.running else "stopped"
        return f"Timer({state}, {self.get_elapsed_time():.4f}s)"

    def __repr__(self) -> str:
        return f"Timer(running={self.running}, elapsed_ns={self.elapsed_ns}, start_time={self.start_time})"

    def __format__(self, format_spec: str) -> str:
        return format(self.get_elapsed_time(), format_spec)

    def __enter__(self) -> "Timer":
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()
