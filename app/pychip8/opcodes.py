from typing import Dict, List, Optional, TypedDict

from pychip8.instructions import get_address, get_byte, get_nibble, get_x, get_y


class OpCode(TypedDict):
    mask: int
    value: int
    opcode: str
    operands: str


# Matched top to bottom; operand templates use x, y, byte, nibble, addr
list_OpCode: List[OpCode] = [
    {"mask": 0xFFFF, "value": 0x00E0, "opcode": "CLS", "operands": ""},
    {"mask": 0xFFFF, "value": 0x00EE, "opcode": "RET", "operands": ""},
    {"mask": 0xF000, "value": 0x1000, "opcode": "JP", "operands": "{addr}"},
    {"mask": 0xF000, "value": 0x2000, "opcode": "CALL", "operands": "{addr}"},
    {"mask": 0xF000, "value": 0x3000, "opcode": "SE", "operands": "V{x:X}, {byte}"},
    {"mask": 0xF000, "value": 0x4000, "opcode": "SNE", "operands": "V{x:X}, {byte}"},
    {"mask": 0xF00F, "value": 0x5000, "opcode": "SE", "operands": "V{x:X}, V{y:X}"},
    {"mask": 0xF000, "value": 0x6000, "opcode": "LD", "operands": "V{x:X}, {byte}"},
    {"mask": 0xF000, "value": 0x7000, "opcode": "ADD", "operands": "V{x:X}, {byte}"},
    {"mask": 0xF00F, "value": 0x8000, "opcode": "LD", "operands": "V{x:X}, V{y:X}"},
    {"mask": 0xF00F, "value": 0x8001, "opcode": "OR", "operands": "V{x:X}, V{y:X}"},
    {"mask": 0xF00F, "value": 0x8002, "opcode": "AND", "operands": "V{x:X}, V{y:X}"},
    {"mask": 0xF00F, "value": 0x8003, "opcode": "XOR", "operands": "V{x:X}, V{y:X}"},
    {"mask": 0xF00F, "value": 0x8004, "opcode": "ADD", "operands": "V{x:X}, V{y:X}"},
    {"mask": 0xF00F, "value": 0x8005, "opcode": "SUB", "operands": "V{x:X}, V{y:X}"},
    {"mask": 0xF00F, "value": 0x8006, "opcode": "SHR", "operands": "V{x:X}"},
    {"mask": 0xF00F, "value": 0x8007, "opcode": "SUBN", "operands": "V{x:X}, V{y:X}"},
    {"mask": 0xF00F, "value": 0x800E, "opcode": "SHL", "operands": "V{x:X}"},
    {"mask": 0xF00F, "value": 0x9000, "opcode": "SNE", "operands": "V{x:X}, V{y:X}"},
    {"mask": 0xF000, "value": 0xA000, "opcode": "LD", "operands": "I, {addr}"},
    {"mask": 0xF000, "value": 0xB000, "opcode": "JP", "operands": "V0, {addr}"},
    {"mask": 0xF000, "value": 0xC000, "opcode": "RND", "operands": "V{x:X}, {byte}"},
    {"mask": 0xF000, "value": 0xD000, "opcode": "DRW", "operands": "V{x:X}, V{y:X}, {nibble}"},
    {"mask": 0xF0FF, "value": 0xE09E, "opcode": "SKP", "operands": "V{x:X}"},
    {"mask": 0xF0FF, "value": 0xE0A1, "opcode": "SKNP", "operands": "V{x:X}"},
    {"mask": 0xF0FF, "value": 0xF007, "opcode": "LD", "operands": "V{x:X}, DT"},
    {"mask": 0xF0FF, "value": 0xF00A, "opcode": "LD", "operands": "V{x:X}, K"},
    {"mask": 0xF0FF, "value": 0xF015, "opcode": "LD", "operands": "DT, V{x:X}"},
    {"mask": 0xF0FF, "value": 0xF018, "opcode": "LD", "operands": "ST, V{x:X}"},
    {"mask": 0xF0FF, "value": 0xF01E, "opcode": "ADD", "operands": "I, V{x:X}"},
    {"mask": 0xF0FF, "value": 0xF029, "opcode": "LD", "operands": "F, V{x:X}"},
    {"mask": 0xF0FF, "value": 0xF033, "opcode": "LD", "operands": "B, V{x:X}"},
    {"mask": 0xF0FF, "value": 0xF055, "opcode": "LD", "operands": "[I], V{x:X}"},
    {"mask": 0xF0FF, "value": 0xF065, "opcode": "LD", "operands": "V{x:X}, [I]"},
]


class OpCodes:
    """Instruction pattern table, used for trace logs and diagnostics."""

    @staticmethod
    def GetEntry(instr: int) -> Optional[OpCode]:
        """
        Find the pattern matching a 16-bit instruction.

        Raises:
            ValueError: If instr is not a 16-bit value
        """
        if not (0 <= instr <= 0xFFFF):
            raise ValueError(f"Invalid instruction: 0x{instr:X} (must be 0x0000-0xFFFF)")
        for entry in list_OpCode:
            if instr & entry["mask"] == entry["value"]:
                return entry
        return None

    @staticmethod
    def GetName(instr: int) -> str:
        entry = OpCodes.GetEntry(instr)
        return entry["opcode"] if entry else "???"

    @staticmethod
    def IsIllegal(instr: int) -> bool:
        return OpCodes.GetEntry(instr) is None

    @staticmethod
    def GetAllMnemonics() -> List[str]:
        return sorted({entry["opcode"] for entry in list_OpCode})

    @staticmethod
    def Disassemble(instr: int) -> str:
        """
        Examples:
            >>> OpCodes.Disassemble(0xD125)
            'DRW V1, V2, 5'
            >>> OpCodes.Disassemble(0xA2F0)
            'LD I, $2F0'
        """
        entry = OpCodes.GetEntry(instr)
        if entry is None:
            return f"DW ${instr:04X}"

        fields: Dict[str, object] = {
            "x": get_x(instr),
            "y": get_y(instr),
            "byte": f"#${get_byte(instr):02X}",
            "nibble": get_nibble(instr),
            "addr": f"${get_address(instr):03X}",
        }
        operands = entry["operands"].format(**fields)
        return f"{entry['opcode']} {operands}" if operands else entry["opcode"]

