"""The 6502 instruction table: handler, addressing mode and base cycles."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class AddrMode(enum.Enum):
    """6502 addressing modes."""

    ACC = enum.auto()
    IMM = enum.auto()
    ZPG = enum.auto()
    ZPX = enum.auto()
    ZPY = enum.auto()
    ABS = enum.auto()
    ABX = enum.auto()
    ABY = enum.auto()
    IMPL = enum.auto()
    REL = enum.auto()
    IND = enum.auto()
    INX = enum.auto()
    INY = enum.auto()


@dataclass(frozen=True)
class Instruction:
    """One opcode's decoding: which operation runs, how it addresses, base cost."""

    handler: str
    mode: AddrMode
    cycles: int
    valid: bool = True

    @property
    def name(self) -> str:
        """Three-letter upper-case mnemonic."""
        return self.handler[:3].upper()


def instruction_bytes(mode: AddrMode) -> int:
    """Length in bytes of an instruction using ``mode``, opcode included."""
    if mode in (AddrMode.ACC, AddrMode.IMPL):
        return 1
    if mode in (AddrMode.ABS, AddrMode.ABX, AddrMode.ABY, AddrMode.IND):
        return 3
    return 2


_M = AddrMode

_LEGAL = [
    (0x69, "adc", _M.IMM, 2), (0x65, "adc", _M.ZPG, 3), (0x75, "adc", _M.ZPX, 4),
    (0x6D, "adc", _M.ABS, 4), (0x7D, "adc", _M.ABX, 4), (0x79, "adc", _M.ABY, 4),
    (0x61, "adc", _M.INX, 6), (0x71, "adc", _M.INY, 5),

    (0x29, "and", _M.IMM, 2), (0x25, "and", _M.ZPG, 3), (0x35, "and", _M.ZPX, 4),
    (0x2D, "and", _M.ABS, 4), (0x3D, "and", _M.ABX, 4), (0x39, "and", _M.ABY, 4),
    (0x21, "and", _M.INX, 6), (0x31, "and", _M.INY, 5),

    (0x0A, "asl_acc", _M.ACC, 2), (0x06, "asl", _M.ZPG, 5), (0x16, "asl", _M.ZPX, 6),
    (0x0E, "asl", _M.ABS, 6), (0x1E, "asl", _M.ABX, 7),

    (0x90, "bcc", _M.REL, 2), (0xB0, "bcs", _M.REL, 2),
    (0xF0, "beq", _M.REL, 2), (0x30, "bmi", _M.REL, 2),

    (0x24, "bit", _M.ZPG, 3), (0x2C, "bit", _M.ABS, 4),

    (0xD0, "bne", _M.REL, 2), (0x10, "bpl", _M.REL, 2),

    (0x00, "brk", _M.IMPL, 7),

    (0x50, "bvc", _M.REL, 2), (0x70, "bvs", _M.REL, 2),

    (0x18, "clc", _M.IMPL, 2), (0xD8, "cld", _M.IMPL, 2),
    (0x58, "cli", _M.IMPL, 2), (0xB8, "clv", _M.IMPL, 2),

    (0xC9, "cmp", _M.IMM, 2), (0xC5, "cmp", _M.ZPG, 3), (0xD5, "cmp", _M.ZPX, 4),
    (0xCD, "cmp", _M.ABS, 4), (0xDD, "cmp", _M.ABX, 4), (0xD9, "cmp", _M.ABY, 4),
    (0xC1, "cmp", _M.INX, 6), (0xD1, "cmp", _M.INY, 5),

    (0xE0, "cpx", _M.IMM, 2), (0xE4, "cpx", _M.ZPG, 3), (0xEC, "cpx", _M.ABS, 4),
    (0xC0, "cpy", _M.IMM, 2), (0xC4, "cpy", _M.ZPG, 3), (0xCC, "cpy", _M.ABS, 4),

    (0xC6, "dec", _M.ZPG, 5), (0xD6, "dec", _M.ZPX, 6),
    (0xCE, "dec", _M.ABS, 6), (0xDE, "dec", _M.ABX, 7),

    (0xCA, "dex", _M.IMPL, 2), (0x88, "dey", _M.IMPL, 2),

    (0x49, "eor", _M.IMM, 2), (0x45, "eor", _M.ZPG, 3), (0x55, "eor", _M.ZPX, 4),
    (0x4D, "eor", _M.ABS, 4), (0x5D, "eor", _M.ABX, 4), (0x59, "eor", _M.ABY, 4),
    (0x41, "eor", _M.INX, 6), (0x51, "eor", _M.INY, 5),

    (0xE6, "inc", _M.ZPG, 5), (0xF6, "inc", _M.ZPX, 6),
    (0xEE, "inc", _M.ABS, 6), (0xFE, "inc", _M.ABX, 7),

    (0x4C, "jmp", _M.ABS, 3), (0x6C, "jmp", _M.IND, 5),
    (0x20, "jsr", _M.ABS, 6),

    (0xA9, "lda", _M.IMM, 2), (0xA5, "lda", _M.ZPG, 3), (0xB5, "lda", _M.ZPX, 4),
    (0xAD, "lda", _M.ABS, 4), (0xBD, "lda", _M.ABX, 4), (0xB9, "lda", _M.ABY, 4),
    (0xA1, "lda", _M.INX, 6), (0xB1, "lda", _M.INY, 5),

    (0xA2, "ldx", _M.IMM, 2), (0xA6, "ldx", _M.ZPG, 3), (0xB6, "ldx", _M.ZPY, 4),
    (0xAE, "ldx", _M.ABS, 4), (0xBE, "ldx", _M.ABY, 4),

    (0xA0, "ldy", _M.IMM, 2), (0xA4, "ldy", _M.ZPG, 3), (0xB4, "ldy", _M.ZPX, 4),
    (0xAC, "ldy", _M.ABS, 4), (0xBC, "ldy", _M.ABX, 4),

    (0x4A, "lsr_acc", _M.ACC, 2), (0x46, "lsr", _M.ZPG, 5), (0x56, "lsr", _M.ZPX, 6),
    (0x4E, "lsr", _M.ABS, 6), (0x5E, "lsr", _M.ABX, 7),

    (0x09, "ora", _M.IMM, 2), (0x05, "ora", _M.ZPG, 3), (0x15, "ora", _M.ZPX, 4),
    (0x0D, "ora", _M.ABS, 4), (0x1D, "ora", _M.ABX, 4), (0x19, "ora", _M.ABY, 4),
    (0x01, "ora", _M.INX, 6), (0x11, "ora", _M.INY, 5),

    (0x48, "pha", _M.IMPL, 3), (0x08, "php", _M.IMPL, 3),
    (0x68, "pla", _M.IMPL, 4), (0x28, "plp", _M.IMPL, 4),

    (0x2A, "rol_acc", _M.ACC, 2), (0x26, "rol", _M.ZPG, 5), (0x36, "rol", _M.ZPX, 6),
    (0x2E, "rol", _M.ABS, 6), (0x3E, "rol", _M.ABX, 7),

    (0x6A, "ror_acc", _M.ACC, 2), (0x66, "ror", _M.ZPG, 5), (0x76, "ror", _M.ZPX, 6),
    (0x6E, "ror", _M.ABS, 6), (0x7E, "ror", _M.ABX, 7),

    (0x40, "rti", _M.IMPL, 6), (0x60, "rts", _M.IMPL, 6),

    (0xE9, "sbc", _M.IMM, 2), (0xE5, "sbc", _M.ZPG, 3), (0xF5, "sbc", _M.ZPX, 4),
    (0xED, "sbc", _M.ABS, 4), (0xFD, "sbc", _M.ABX, 4), (0xF9, "sbc", _M.ABY, 4),
    (0xE1, "sbc", _M.INX, 6), (0xF1, "sbc", _M.INY, 5),

    (0x38, "sec", _M.IMPL, 2), (0xF8, "sed", _M.IMPL, 2), (0x78, "sei", _M.IMPL, 2),

    (0x85, "sta", _M.ZPG, 3), (0x95, "sta", _M.ZPX, 4), (0x8D, "sta", _M.ABS, 4),
    (0x9D, "sta", _M.ABX, 5), (0x99, "sta", _M.ABY, 5), (0x81, "sta", _M.INX, 6),
    (0x91, "sta", _M.INY, 6),

    (0x86, "stx", _M.ZPG, 3), (0x96, "stx", _M.ZPY, 4), (0x8E, "stx", _M.ABS, 4),
    (0xE8, "inx", _M.IMPL, 2),

    (0x84, "sty", _M.ZPG, 3), (0x94, "sty", _M.ZPX, 4), (0x8C, "sty", _M.ABS, 4),
    (0xC8, "iny", _M.IMPL, 2),

    (0xAA, "tax", _M.IMPL, 2), (0xA8, "tay", _M.IMPL, 2), (0xBA, "tsx", _M.IMPL, 2),
    (0x8A, "txa", _M.IMPL, 2), (0x9A, "txs", _M.IMPL, 2), (0x98, "tya", _M.IMPL, 2),
]

_ILLEGAL = [
    (0x1A, "nop", _M.IMPL, 2), (0x3A, "nop", _M.IMPL, 2), (0x5A, "nop", _M.IMPL, 2),
    (0x7A, "nop", _M.IMPL, 2), (0xDA, "nop", _M.IMPL, 2), (0xFA, "nop", _M.IMPL, 2),
    (0x80, "nop", _M.IMM, 2), (0x82, "nop", _M.IMM, 2), (0x89, "nop", _M.IMM, 2),
    (0xC2, "nop", _M.IMM, 2), (0xE2, "nop", _M.IMM, 2),
    (0x04, "nop", _M.ZPG, 3), (0x44, "nop", _M.ZPG, 3), (0x64, "nop", _M.ZPG, 3),
    (0x14, "nop", _M.ZPX, 4), (0x34, "nop", _M.ZPX, 4), (0x54, "nop", _M.ZPX, 4),
    (0x74, "nop", _M.ZPX, 4), (0xD4, "nop", _M.ZPX, 4), (0xF4, "nop", _M.ZPX, 4),
    (0x0C, "nop", _M.ABS, 4),
    (0x1C, "nop", _M.ABX, 4), (0x3C, "nop", _M.ABX, 4), (0x5C, "nop", _M.ABX, 4),
    (0x7C, "nop", _M.ABX, 4), (0xDC, "nop", _M.ABX, 4), (0xFC, "nop", _M.ABX, 4),

    (0x4B, "alr", _M.IMM, 2),
    (0x0B, "anc", _M.IMM, 2), (0x2B, "anc", _M.IMM, 2),
    (0x6B, "arr", _M.IMM, 2),

    (0xC7, "dcp", _M.ZPG, 5), (0xD7, "dcp", _M.ZPX, 6), (0xCF, "dcp", _M.ABS, 6),
    (0xDF, "dcp", _M.ABX, 7), (0xDB, "dcp", _M.ABY, 7), (0xC3, "dcp", _M.INX, 8),
    (0xD3, "dcp", _M.INY, 8),

    (0xE7, "isb", _M.ZPG, 5), (0xF7, "isb", _M.ZPX, 6), (0xEF, "isb", _M.ABS, 6),
    (0xFF, "isb", _M.ABX, 7), (0xFB, "isb", _M.ABY, 7), (0xE3, "isb", _M.INX, 8),
    (0xF3, "isb", _M.INY, 8),

    (0xBB, "las", _M.ABY, 4),

    (0xA7, "lax", _M.ZPG, 3), (0xB7, "lax", _M.ZPY, 4), (0xAF, "lax", _M.ABS, 4),
    (0xBF, "lax", _M.ABY, 4), (0xA3, "lax", _M.INX, 6), (0xB3, "lax", _M.INY, 5),

    (0xAB, "lxa", _M.IMM, 2),

    (0x27, "rla", _M.ZPG, 5), (0x37, "rla", _M.ZPX, 6), (0x2F, "rla", _M.ABS, 6),
    (0x3F, "rla", _M.ABX, 7), (0x3B, "rla", _M.ABY, 7), (0x23, "rla", _M.INX, 8),
    (0x33, "rla", _M.INY, 8),

    (0x67, "rra", _M.ZPG, 5), (0x77, "rra", _M.ZPX, 6), (0x6F, "rra", _M.ABS, 6),
    (0x7F, "rra", _M.ABX, 7), (0x7B, "rra", _M.ABY, 7), (0x63, "rra", _M.INX, 8),
    (0x73, "rra", _M.INY, 8),

    (0x87, "sax", _M.ZPG, 3), (0x97, "sax", _M.ZPY, 4), (0x8F, "sax", _M.ABS, 4),
    (0x83, "sax", _M.INX, 6),

    (0xCB, "sbx", _M.IMM, 2),
    (0x9F, "sha", _M.ABY, 5), (0x93, "sha", _M.INY, 6),
    (0x9E, "shx", _M.ABY, 5),
    (0x9C, "shy", _M.ABX, 5),

    (0x07, "slo", _M.ZPG, 5), (0x17, "slo", _M.ZPX, 6), (0x0F, "slo", _M.ABS, 6),
    (0x1F, "slo", _M.ABX, 7), (0x1B, "slo", _M.ABY, 7), (0x03, "slo", _M.INX, 8),
    (0x13, "slo", _M.INY, 8),

    (0x47, "sre", _M.ZPG, 5), (0x57, "sre", _M.ZPX, 6), (0x4F, "sre", _M.ABS, 6),
    (0x5F, "sre", _M.ABX, 7), (0x5B, "sre", _M.ABY, 7), (0x43, "sre", _M.INX, 8),
    (0x53, "sre", _M.INY, 8),

    (0x9B, "tas", _M.ABY, 5),

    (0xEB, "sbc", _M.IMM, 2),
]

# Opcodes missing from the table decode as a documented two-cycle NOP.
_DEFAULT = Instruction("nop", AddrMode.IMPL, 2, True)


def _build_table() -> tuple[Instruction, ...]:
    table = dict.fromkeys(range(256), _DEFAULT)
    for opcode, handler, mode, cycles in _LEGAL:
        table[opcode] = Instruction(handler, mode, cycles, True)
    for opcode, handler, mode, cycles in _ILLEGAL:
        table[opcode] = Instruction(handler, mode, cycles, False)
    return tuple(table[opcode] for opcode in range(256))


INSTRUCTIONS: tuple[Instruction, ...] = _build_table()


def instruction_for(opcode: int) -> Instruction:
    """Return the decoding of an opcode byte."""
    if not 0 <= opcode <= 0xFF:
        raise ValueError(f"opcode out of range: {opcode!r}")
    return INSTRUCTIONS[opcode]