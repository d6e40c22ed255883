from enum import Enum
from typing import Final, Optional

from logger import log as _logger
from pychip8.state import Registers

NS_PER_SECOND: Final[int] = 1_000_000_000
TIMER_FREQUENCY: Final[int] = 60
TIMER_PERIOD_NS: Final[int] = NS_PER_SECOND // TIMER_FREQUENCY


class TimerEvent(Enum):
    STARTED = "started"
    STOPPED = "stopped"


class CountdownTimer:
    """
    A countdown register ticking at a fixed period, independent of the CPU rate.

    The timer does not hold a copy of the value: it is bound to a register
    attribute (``"delay"`` or ``"sound"``) of a Registers instance, so loads
    done by the CPU are seen on the next update.

    Only timers created with ``notify=True`` report start/stop events.
    """

    def __init__(self, registers: Registers, name: str, period_ns: int = TIMER_PERIOD_NS, notify: bool = False) -> None:
        if period_ns <= 0:
            raise ValueError("period_ns must be a positive integer")
        if not hasattr(registers, name):
            raise ValueError(f"Registers have no timer register named {name!r}")

        self._registers: Final[Registers] = registers
        self.name: Final[str] = name
        self.period_ns: Final[int] = period_ns
        self.notify: Final[bool] = notify
        self.accumulated_ns: int = 0

    def __repr__(self) -> str:
        return f"CountdownTimer(name={self.name!r}, value={self.value}, period_ns={self.period_ns}, notify={self.notify})"

    @property
    def value(self) -> int:
        return getattr(self._registers, self.name)

    @value.setter
    def value(self, v: int) -> None:
        setattr(self._registers, self.name, v & 0xFF)

    def report_change(self) -> Optional[TimerEvent]:
        """Re-evaluate after the CPU loaded the register explicitly."""
        if not self.notify:
            return None
        return TimerEvent.STARTED if self.value > 0 else TimerEvent.STOPPED

    def update(self, delta_ns: int) -> Optional[TimerEvent]:
        """
        Advance by delta_ns of real time.

        Several periods may be consumed in one call after a stall; the
        register still never goes below zero.

        Returns:
            TimerEvent.STOPPED if the register reached zero during this call.
        """
        self.accumulated_ns += delta_ns
        rounds = 0
        event: Optional[TimerEvent] = None

        while self.accumulated_ns >= self.period_ns:
            self.accumulated_ns -= self.period_ns
            rounds += 1
            if self._tick():
                event = TimerEvent.STOPPED

        if rounds > 1:
            _logger.warning(f"Timer '{self.name}' had to do {rounds} rounds to compensate for lag")

        return event

    def _tick(self) -> bool:
        if self.value == 0:
            return False
        self.value -= 1
        return self.value == 0 and self.notify
