from collections import deque
from dataclasses import dataclass
from string import Template
from typing import Any, Callable, Dict, Final, List, Optional, Sequence, Union

import numpy as np
import pychip8.instructions as ins
from logger import log as _logger
from numpy.typing import NDArray
from pychip8.errors import IllegalInstructionError
from pychip8.instructions import fetch, get_byte, get_nibble, opcode_family
from pychip8.opcodes import OpCodes
from pychip8.state import INSTRUCTION_SIZE, MachineState, Registers
from pychip8.timers import TIMER_PERIOD_NS, CountdownTimer, TimerEvent

# Template
TEMPLATE: Final[Template] = Template("${PC}: ${OP} ${ASM} | I: ${I} | SP: ${SP} | V: ${V}")

KEY_COUNT: Final[int] = 16
NO_KEYS: Final[tuple] = (False,) * KEY_COUNT

KeyboardSource = Callable[[], Sequence[bool]]


@dataclass
class Debug:
    Logging: bool = False


class CPU:
    """
    Fetch-decode-execute engine.

    Owns the machine state and the two countdown timers bound to its
    registers. Each ``step()`` runs exactly one instruction and advances PC
    unless the instruction redirected control flow, or ``LD Vx, K`` found no
    key pressed (the same instruction is then fetched again next step).

    Drawing and clearing hand the framebuffer to every ``frame_complete``
    listener::

        cpu = CPU(program)
        cpu.on("frame_complete")(display.draw)
    """

    def __init__(
        self,
        program: Union[bytes, bytearray] = b"",
        keyboard: Optional[KeyboardSource] = None,
        rng: Optional[np.random.Generator] = None,
        timer_period_ns: int = TIMER_PERIOD_NS,
    ) -> None:
        self.state: Final[MachineState] = MachineState()
        self.state.load_program(program)

        self.keyboard: KeyboardSource = keyboard if keyboard is not None else (lambda: NO_KEYS)
        self.rng: np.random.Generator = rng if rng is not None else np.random.default_rng()

        self.delay_timer: Final[CountdownTimer] = CountdownTimer(self.registers, "delay", timer_period_ns)
        self.sound_timer: Final[CountdownTimer] = CountdownTimer(
            self.registers, "sound", timer_period_ns, notify=True
        )

        self._events: Dict[str, deque[Callable[..., Any]]] = {}
        self._timer_event: Optional[TimerEvent] = None
        self.tracelog: deque[str] = deque(maxlen=1024)
        self.debug: Debug = Debug()
        self.steps: int = 0

    @property
    def registers(self) -> Registers:
        return self.state.registers

    @property
    def memory(self) -> NDArray[np.uint8]:
        return self.state.memory

    @property
    def stack(self) -> NDArray[np.uint16]:
        return self.state.stack

    @property
    def framebuffer(self) -> NDArray[np.bool_]:
        return self.state.framebuffer

    def on(self, event_name: str):
        def decorator(func: Callable):
            self._events.setdefault(event_name, deque()).append(func)
            return func

        return decorator

    def _emit(self, event_name: str, *args: Any, **kwargs: Any) -> None:
        """Emit an event to all registered callbacks."""
        callbacks = self._events.get(event_name)
        if not callbacks:
            return

        for callback in callbacks:
            if not callable(callback):
                raise TypeError(f"Callback {callback} is not Callable")
            callback(*args, **kwargs)

    def _tracelogger(self, instr: int) -> None:
        regs = self.registers
        line = TEMPLATE.substitute(
            PC=f"{regs.PC:03X}",
            OP=f"{instr:04X}",
            ASM=f"{OpCodes.Disassemble(instr):<16}",
            I=f"{regs.I:03X}",
            SP=f"{regs.SP:d}",
            V=" ".join(f"{int(v):02X}" for v in regs.V),
        )
        self.tracelog.append(line)
        _logger.debug(line)

    def update_timers(self, delta_ns: int) -> List[TimerEvent]:
        """Advance both timers by delta_ns; returns the events they produced."""
        events: List[TimerEvent] = []
        for timer in (self.delay_timer, self.sound_timer):
            event = timer.update(delta_ns)
            if event is not None:
                events.append(event)
        return events

    def step(self) -> Optional[TimerEvent]:
        """
        Execute one instruction.

        Returns:
            The sound timer event caused by an explicit ``LD ST, Vx``, if any.

        Raises:
            OutOfBoundsError, IllegalInstructionError
        """
        self._timer_event = None
        instr = fetch(self.memory, self.registers.PC)

        if self.debug.Logging:
            self._tracelogger(instr)

        if self._do_execute_instruction(instr):
            self.registers.PC += INSTRUCTION_SIZE

        self.steps += 1
        return self._timer_event

    def _illegal(self, instr: int) -> None:
        _logger.error(f"Illegal instruction: ${instr:04X} at PC=${self.registers.PC:03X}")
        raise IllegalInstructionError(instr, self.registers.PC)

    def _do_execute_instruction(self, instr: int) -> bool:
        """
        Execute the current instruction.

        Returns:
            True if PC still has to be moved past the instruction.
        """
        regs = self.registers
        state = self.state

        match opcode_family(instr):
            case 0x0:
                match instr:
                    case 0x00E0:  # CLS
                        ins.cls(state.framebuffer)
                        self._emit("frame_complete", state.framebuffer)
                    case 0x00EE:  # RET (the stack holds the address of the CALL)
                        ins.ret(regs, state.stack)
                    case _:
                        self._illegal(instr)

            case 0x1:  # JP addr
                ins.jp(regs, instr)
                return False

            case 0x2:  # CALL addr
                ins.call(regs, state.stack, instr)
                return False

            case 0x3:  # SE Vx, byte
                ins.se_reg_byte(regs, instr)

            case 0x4:  # SNE Vx, byte
                ins.sne_reg_byte(regs, instr)

            case 0x5 if get_nibble(instr) == 0x0:  # SE Vx, Vy
                ins.se_reg_reg(regs, instr)

            case 0x6:  # LD Vx, byte
                ins.ld_reg_byte(regs, instr)

            case 0x7:  # ADD Vx, byte
                ins.add_reg_byte(regs, instr)

            case 0x8:
                match get_nibble(instr):
                    case 0x0:  # LD Vx, Vy
                        ins.ld_reg_reg(regs, instr)
                    case 0x1:  # OR Vx, Vy
                        ins.or_reg_reg(regs, instr)
                    case 0x2:  # AND Vx, Vy
                        ins.and_reg_reg(regs, instr)
                    case 0x3:  # XOR Vx, Vy
                        ins.xor_reg_reg(regs, instr)
                    case 0x4:  # ADD Vx, Vy
                        ins.add_reg_reg(regs, instr)
                    case 0x5:  # SUB Vx, Vy
                        ins.sub_reg_reg(regs, instr)
                    case 0x6:  # SHR Vx
                        ins.shr_reg(regs, instr)
                    case 0x7:  # SUBN Vx, Vy
                        ins.subn_reg_reg(regs, instr)
                    case 0xE:  # SHL Vx
                        ins.shl_reg(regs, instr)
                    case _:
                        self._illegal(instr)

            case 0x9 if get_nibble(instr) == 0x0:  # SNE Vx, Vy
                ins.sne_reg_reg(regs, instr)

            case 0xA:  # LD I, addr
                ins.ld_i_addr(regs, instr)

            case 0xB:  # JP V0, addr
                ins.jp_v0_addr(regs, instr)
                return False

            case 0xC:  # RND Vx, byte
                ins.rnd_reg_byte(regs, instr, self.rng)

            case 0xD:  # DRW Vx, Vy, nibble
                ins.drw(regs, state.memory, state.framebuffer, instr, state.width, state.height)
                self._emit("frame_complete", state.framebuffer)

            case 0xE:
                match get_byte(instr):
                    case 0x9E:  # SKP Vx
                        ins.skp_reg(regs, instr, self.keyboard())
                    case 0xA1:  # SKNP Vx
                        ins.sknp_reg(regs, instr, self.keyboard())
                    case _:
                        self._illegal(instr)

            case 0xF:
                match get_byte(instr):
                    case 0x07:  # LD Vx, DT
                        ins.ld_reg_dt(regs, instr)
                    case 0x0A:  # LD Vx, K
                        if not ins.ld_reg_k(regs, instr, self.keyboard()):
                            return False
                    case 0x15:  # LD DT, Vx
                        ins.ld_dt_reg(regs, instr)
                        self.delay_timer.report_change()
                    case 0x18:  # LD ST, Vx
                        ins.ld_st_reg(regs, instr)
                        self._timer_event = self.sound_timer.report_change()
                    case 0x1E:  # ADD I, Vx
                        ins.add_i_reg(regs, instr)
                    case 0x29:  # LD F, Vx
                        ins.ld_f_reg(regs, instr)
                    case 0x33:  # LD B, Vx
                        ins.ld_b_reg(regs, state.memory, instr)
                    case 0x55:  # LD [I], Vx
                        ins.str_i_reg(regs, state.memory, instr)
                    case 0x65:  # LD Vx, [I]
                        ins.str_reg_i(regs, state.memory, instr)
                    case _:
                        self._illegal(instr)

            case _:
                self._illegal(instr)

        return True
