import pytest
from conftest import program
from pychip8.cpu import CPU
from pychip8.errors import IllegalInstructionError, OutOfBoundsError, ProgramSizeError
from pychip8.state import MAX_PROGRAM_SIZE, PROGRAM_START
from pychip8.timers import TimerEvent


def run(cpu: CPU, steps: int) -> None:
    for _ in range(steps):
        cpu.step()


def test_initial_state():
    cpu = CPU()
    assert cpu.registers.PC == PROGRAM_START
    assert cpu.registers.SP == -1
    assert cpu.registers.I == 0
    assert not cpu.registers.V.any()
    assert not cpu.framebuffer.any()
    # Font glyph "0" at the bottom of memory
    assert list(cpu.memory[:5]) == [0xF0, 0x90, 0x90, 0x90, 0xF0]


def test_program_is_loaded(make_cpu):
    cpu = make_cpu(0x6A42, 0x1200)
    assert list(cpu.memory[PROGRAM_START : PROGRAM_START + 4]) == [0x6A, 0x42, 0x12, 0x00]


def test_program_of_maximum_size_is_accepted():
    cpu = CPU(bytes(MAX_PROGRAM_SIZE))
    assert len(cpu.memory) - PROGRAM_START == MAX_PROGRAM_SIZE


def test_program_too_large():
    with pytest.raises(ProgramSizeError) as exc:
        CPU(bytes(MAX_PROGRAM_SIZE + 1))
    assert exc.value.size == MAX_PROGRAM_SIZE + 1
    assert exc.value.limit == MAX_PROGRAM_SIZE


def test_step_advances_pc(make_cpu):
    cpu = make_cpu(0x6005, 0x7003)
    run(cpu, 2)
    assert cpu.registers.V[0] == 8
    assert cpu.registers.PC == PROGRAM_START + 4
    assert cpu.steps == 2


def test_jump_does_not_advance(make_cpu):
    cpu = make_cpu(0x1300)
    cpu.step()
    assert cpu.registers.PC == 0x300


def test_jump_v0_does_not_advance(make_cpu):
    cpu = make_cpu(0x6004, 0xB300)
    run(cpu, 2)
    assert cpu.registers.PC == 0x304


def test_skip_adds_to_advance(make_cpu):
    cpu = make_cpu(0x3000, 0x6001, 0x6102)
    run(cpu, 2)
    # V0 == 0, so LD V0, 1 was skipped
    assert cpu.registers.V[0] == 0
    assert cpu.registers.V[1] == 2
    assert cpu.registers.PC == PROGRAM_START + 6


def test_call_then_ret_returns_past_call(make_cpu):
    # 200: CALL 206 / 202: LD V1, 1 / 204: JP 204 / 206: LD V0, 9 / 208: RET
    cpu = make_cpu(0x2206, 0x6101, 0x1204, 0x6009, 0x00EE)
    cpu.step()
    assert cpu.registers.PC == 0x206
    assert cpu.stack[0] == PROGRAM_START
    run(cpu, 2)
    assert cpu.registers.PC == PROGRAM_START + 2
    assert cpu.registers.SP == -1
    cpu.step()
    assert cpu.registers.V[0] == 9
    assert cpu.registers.V[1] == 1


def test_wait_for_key_repeats_instruction(make_cpu, keys):
    cpu = make_cpu(0xF50A)
    run(cpu, 3)
    assert cpu.registers.PC == PROGRAM_START
    keys.press(0xE)
    cpu.step()
    assert cpu.registers.V[5] == 0xE
    assert cpu.registers.PC == PROGRAM_START + 2


def test_draw_emits_frame(make_cpu):
    cpu = make_cpu(0xA000, 0xD015, 0x00E0)
    frames = []
    cpu.on("frame_complete")(lambda fb: frames.append(int(fb.sum())))
    run(cpu, 3)
    # glyph "0" has 14 lit pixels, then the screen is cleared
    assert frames == [14, 0]


def test_sound_timer_load_reports_start_and_stop(make_cpu):
    cpu = make_cpu(0x6003, 0xF018, 0x6000, 0xF018, 0xF015)
    cpu.step()
    assert cpu.step() is TimerEvent.STARTED
    assert cpu.registers.sound == 3
    cpu.step()
    assert cpu.step() is TimerEvent.STOPPED
    # loading the delay timer never reports
    assert cpu.step() is None


def test_update_timers(make_cpu):
    cpu = make_cpu(0x6003, 0xF018, 0xF015)
    run(cpu, 3)
    assert cpu.registers.delay == cpu.registers.sound == 3
    events = cpu.update_timers(3 * cpu.sound_timer.period_ns)
    assert events == [TimerEvent.STOPPED]
    assert cpu.registers.delay == cpu.registers.sound == 0


def test_font_bcd_and_transfers_are_dispatched(make_cpu):
    # LD V0, 137 / LD I, 300 / LD B, V0 / LD V2, [I] / LD F, V2
    cpu = make_cpu(0x6089, 0xA300, 0xF033, 0xF265, 0xF229)
    run(cpu, 5)
    assert list(cpu.registers.V[:3]) == [1, 3, 7]
    assert cpu.registers.I == 35


def test_store_registers_is_dispatched(make_cpu):
    cpu = make_cpu(0x6011, 0x6122, 0xA300, 0xF155)
    run(cpu, 4)
    assert list(cpu.memory[0x300:0x302]) == [0x11, 0x22]


def test_shl_is_dispatched(make_cpu):
    cpu = make_cpu(0x6081, 0x800E)
    run(cpu, 2)
    assert cpu.registers.V[0] == 0x02
    assert cpu.registers.V[0xF] == 1


def test_random_is_seeded(make_cpu):
    first = make_cpu(0xC0FF, seed=42)
    second = make_cpu(0xC0FF, seed=42)
    first.step()
    second.step()
    assert first.registers.V[0] == second.registers.V[0]


@pytest.mark.parametrize("instr", [0x0000, 0x00E1, 0x5121, 0x8128, 0x912F, 0xE19F, 0xF0FF])
def test_illegal_instructions(make_cpu, instr):
    cpu = make_cpu(instr)
    with pytest.raises(IllegalInstructionError) as exc:
        cpu.step()
    assert exc.value.instruction == instr
    assert exc.value.address == PROGRAM_START
    assert str(exc.value) == f"Illegal instruction 0x{instr:04X} at 0x200"


def test_fetch_past_end_of_memory(make_cpu):
    cpu = make_cpu(0x1FFF)
    cpu.step()
    with pytest.raises(OutOfBoundsError):
        cpu.step()


def test_trace_log(make_cpu):
    cpu = make_cpu(0x6A42, 0xA2F0)
    cpu.debug.Logging = True
    run(cpu, 2)
    assert len(cpu.tracelog) == 2
    assert cpu.tracelog[0].startswith("200: 6A42 LD VA, #$42")
    assert "LD I, $2F0" in cpu.tracelog[1]


def test_trace_disabled_by_default(make_cpu):
    cpu = make_cpu(0x6A42)
    cpu.step()
    assert not cpu.tracelog


def test_non_callable_listener():
    cpu = CPU(program(0x00E0))
    cpu._events["frame_complete"] = [None]
    with pytest.raises(TypeError):
        cpu.step()
