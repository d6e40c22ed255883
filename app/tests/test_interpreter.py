import pytest
from conftest import program
from returns.result import Failure, Success
from pychip8.cpu import CPU
from pychip8.errors import IllegalInstructionError, StackUnderflowError
from pychip8.interpreter import DEFAULT_TICK_PERIOD_NS, Interpreter

TICK = 1_000
TIMER = 10_000


class Audio:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def start(self) -> None:
        self.calls.append("start")

    def stop(self) -> None:
        self.calls.append("stop")


class Clock:
    def __init__(self, step: int = TICK) -> None:
        self.now = 0
        self.step = step

    def __call__(self) -> int:
        self.now += self.step
        return self.now


def make(*words, events=None, audio=None, clock=None):
    cpu = CPU(program(*words), timer_period_ns=TIMER)
    interp = Interpreter(cpu, events=events, audio=audio, tick_period_ns=TICK, clock=clock or Clock())
    return cpu, interp


def test_default_rate_is_500_hz():
    assert DEFAULT_TICK_PERIOD_NS == 2_000_000


def test_bad_tick_period():
    with pytest.raises(ValueError):
        Interpreter(CPU(), tick_period_ns=0)


def test_first_iteration_only_sets_reference():
    cpu, interp = make(0x1200)
    interp.iterate(5 * TICK)
    assert cpu.steps == 0


def test_one_step_per_period():
    cpu, interp = make(0x1200)
    interp.iterate(0)
    interp.iterate(TICK - 1)
    assert cpu.steps == 0
    interp.iterate(TICK)
    assert cpu.steps == 1
    assert interp.tick_accumulator_ns == 0


def test_accumulator_is_decremented_not_reset():
    cpu, interp = make(0x1200)
    interp.iterate(0)
    interp.iterate(3 * TICK)
    assert cpu.steps == 1
    assert interp.tick_accumulator_ns == 2 * TICK
    interp.iterate(3 * TICK)
    interp.iterate(3 * TICK)
    assert cpu.steps == 3
    assert interp.tick_accumulator_ns == 0


def test_timers_follow_wall_clock():
    # LD V0, 2 / LD DT, V0 / JP 204
    cpu, interp = make(0x6002, 0xF015, 0x1204)
    interp.iterate(0)
    interp.iterate(TICK)
    interp.iterate(2 * TICK)
    assert cpu.registers.delay == 2
    interp.iterate(2 * TICK + TIMER)
    assert cpu.registers.delay == 1


def test_sound_events_reach_audio():
    # LD V0, 1 / LD ST, V0 / JP 204
    audio = Audio()
    cpu, interp = make(0x6001, 0xF018, 0x1204, audio=audio)
    interp.iterate(0)
    interp.iterate(TICK)
    interp.iterate(2 * TICK)
    assert audio.calls == ["start"]
    interp.iterate(2 * TICK + TIMER)
    assert audio.calls == ["start", "stop"]
    assert cpu.registers.sound == 0


def test_events_are_drained_before_timers_and_step():
    seen = []

    def events() -> bool:
        seen.append(cpu.steps)
        return True

    cpu, interp = make(0x1200, events=events)
    interp.iterate(0)
    interp.iterate(TICK)
    assert seen == [0, 0]
    assert cpu.steps == 1


def test_quit_request_stops_without_stepping():
    cpu, interp = make(0x1200, events=lambda: False)
    interp.running = True
    interp.iterate(0)
    interp.iterate(TICK)
    assert not interp.running
    assert cpu.steps == 0


def test_run_until_stop():
    count = {"n": 0}

    def events() -> bool:
        count["n"] += 1
        return count["n"] <= 10

    audio = Audio()
    cpu, interp = make(0x1200, events=events, audio=audio)
    result = interp.run()
    assert isinstance(result, Success)
    assert result.unwrap() == cpu.steps == 10
    assert audio.calls == ["stop"]


def test_run_returns_first_failure():
    cpu, interp = make(0x6001, 0x0123, 0x6002)
    result = interp.run()
    assert isinstance(result, Failure)
    err = result.failure()
    assert isinstance(err, IllegalInstructionError)
    assert err.address == 0x202
    assert not interp.running
    assert cpu.registers.V[0] == 1


def test_run_reports_stack_underflow():
    _, interp = make(0x00EE)
    assert isinstance(interp.run().failure(), StackUnderflowError)


def test_stop():
    _, interp = make(0x1200)
    interp.running = True
    interp.stop()
    assert not interp.running
