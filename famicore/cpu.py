"""A 6502 core as found in the NES: registers, addressing, operations, tracing."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Callable, Optional

from famicore.opcodes import INSTRUCTIONS, AddrMode, instruction_bytes
from famicore.util import get_bit, to_hex

BusRead = Callable[[int], int]
BusWrite = Callable[[int, int], None]
StepCallback = Callable[["CPU"], None]

NMI_VECTOR = 0xFFFA
RESET_VECTOR = 0xFFFC
IRQ_VECTOR = 0xFFFE
STACK_BASE = 0x100

_CONSTANT_BIT = 0b0010_0000
_BREAK_BITS = 0b0011_0000

# Operations that decode their operand but change no state.
_NO_EFFECT = frozenset({"nop", "arr", "las", "lxa", "sbx", "sha", "shx", "shy", "tas"})


def _msb(value: int) -> int:
    return (value >> 8) & 0xFF


@dataclass
class StatusFlags:
    """The processor status register, laid out as NV-BDIZC."""

    neg: bool = False
    ov: bool = False
    brk: bool = False
    dec: bool = False
    intr: bool = False
    zero: bool = False
    carry: bool = False

    def to_byte(self) -> int:
        """Pack the flags into a byte; bit 5 always reads as set."""
        return (
            int(self.carry)
            | int(self.zero) << 1
            | int(self.intr) << 2
            | int(self.dec) << 3
            | int(self.brk) << 4
            | _CONSTANT_BIT
            | int(self.ov) << 6
            | int(self.neg) << 7
        )

    def load(self, value: int) -> None:
        """Unpack a byte into the flags; bit 5 is ignored."""
        self.neg = bool(get_bit(value, 7))
        self.ov = bool(get_bit(value, 6))
        self.brk = bool(get_bit(value, 4))
        self.dec = bool(get_bit(value, 3))
        self.intr = bool(get_bit(value, 2))
        self.zero = bool(get_bit(value, 1))
        self.carry = bool(value & 1)


class CPU:
    """A 6502 processor wired to a memory bus through two callables."""

    def __init__(self, bus_read: BusRead, bus_write: BusWrite) -> None:
        self.bus_read = bus_read
        self.bus_write = bus_write
        self.a = 0
        self.x = 0
        self.y = 0
        # The stack lives at 0x100 + sp and grows downward.
        self.sp = 0
        self.pc = 0
        self.status = StatusFlags()
        self.cycles = 0
        self.halted = False
        self._handlers: dict[str, Callable[[int], None]] = {
            name: getattr(self, f"_op_{name}")
            for name in {instr.handler for instr in INSTRUCTIONS}
            if name not in _NO_EFFECT
        }

    # --- interrupts and reset -------------------------------------------

    def _interrupt(self) -> None:
        self.status.brk = False
        self._push_word(self.pc)
        self._push(self.status.to_byte() | _CONSTANT_BIT)
        self.status.intr = True
        self.pc = self._read_vector(IRQ_VECTOR)

    def nmi(self) -> None:
        """Take a non-maskable interrupt."""
        self._interrupt()

    def irq(self) -> None:
        """Take a maskable interrupt unless interrupts are disabled."""
        if not self.status.intr:
            self._interrupt()

    def reset(self) -> None:
        """Put the processor in its power-on state and jump through the reset vector."""
        self.a = self.x = self.y = 0
        self.status.load(0b0010_0100)
        self.pc = self._read_vector(RESET_VECTOR)
        self.sp = 0xFD
        self.cycles = 7

    # --- execution --------------------------------------------------------

    def step(self, callback: Optional[StepCallback] = None) -> int:
        """Execute one instruction and return the cycles it took."""
        if callback is not None:
            callback(self)

        start = self.cycles
        opcode = self._fetch()
        instr = INSTRUCTIONS[opcode]
        addr = self._operand_address(opcode, instr.mode)
        handler = self._handlers.get(instr.handler)
        if handler is not None:
            handler(addr)
        self.cycles += instr.cycles
        return self.cycles - start

    def exec(self, cycles: int = 0, callback: Optional[StepCallback] = None) -> None:
        """Run until ``cycles`` more cycles have elapsed; zero means forever."""
        end = self.cycles + cycles
        while cycles == 0 or self.cycles < end:
            self.step(callback)

    def _fetch(self) -> int:
        value = self.bus_read(self.pc)
        self.pc = (self.pc + 1) & 0xFFFF
        return value

    def _fetch_word(self) -> int:
        low = self._fetch()
        return low | (self._fetch() << 8)

    def _read_vector(self, addr: int) -> int:
        return (self.bus_read((addr + 1) & 0xFFFF) << 8) | self.bus_read(addr)

    def _read_zero_page_word(self, base: int) -> int:
        return self.bus_read(base & 0xFF) | (self.bus_read((base + 1) & 0xFF) << 8)

    def _read_page_wrapped_word(self, base: int) -> int:
        high_addr = (base & 0xFF00) | ((base + 1) & 0xFF)
        return self.bus_read(base) | (self.bus_read(high_addr) << 8)

    def _operand_address(self, opcode: int, mode: AddrMode) -> int:
        match mode:
            case AddrMode.IMPL | AddrMode.ACC:
                return 0
            case AddrMode.IMM:
                addr = self.pc
                self.pc = (self.pc + 1) & 0xFFFF
                return addr
            case AddrMode.ZPG:
                return self._fetch()
            case AddrMode.ZPX:
                return (self._fetch() + self.x) & 0xFF
            case AddrMode.ZPY:
                return (self._fetch() + self.y) & 0xFF
            case AddrMode.ABS:
                return self._fetch_word()
            case AddrMode.ABX:
                base = self._fetch_word()
                addr = (base + self.x) & 0xFFFF
                low = opcode & 0xF
                if low not in (0xE, 0xF) and opcode != 0x9D and _msb(base) != _msb(addr):
                    self.cycles += 1
                return addr
            case AddrMode.ABY:
                base = self._fetch_word()
                addr = (base + self.y) & 0xFFFF
                if (
                    (opcode & 0xF) != 0xB
                    and opcode not in (0x99, 0xD3)
                    and _msb(base) != _msb(addr)
                ):
                    self.cycles += 1
                return addr
            case AddrMode.REL:
                offset = self._fetch()
                if offset < 128:
                    return (self.pc + offset) & 0xFFFF
                return (self.pc - (256 - offset)) & 0xFFFF
            case AddrMode.IND:
                return self._read_page_wrapped_word(self._fetch_word())
            case AddrMode.INX:
                base = (self._fetch() + self.x) & 0xFF
                return self._read_zero_page_word(base)
            case AddrMode.INY:
                ind = self._read_zero_page_word(self._fetch())
                addr = (ind + self.y) & 0xFFFF
                if (
                    (opcode == 0xB3 or (opcode & 0xF) != 0x3)
                    and opcode != 0x91
                    and _msb(addr) != _msb(ind)
                ):
                    self.cycles += 1
                return addr
        raise ValueError(f"unknown addressing mode: {mode!r}")

    # --- disassembly and tracing -----------------------------------------

    def disas(self, opcode: int, args: int) -> str:
        """Render one instruction with its operand in nestest log style."""
        instr = INSTRUCTIONS[opcode]
        name = instr.name
        if instr.mode is AddrMode.IMPL:
            return name

        read = self.bus_read
        x, y = self.x, self.y
        is_jump = name.startswith("J")

        match instr.mode:
            case AddrMode.ACC:
                operand = "A"
            case AddrMode.IMM:
                operand = f"#${to_hex(args, 1)}"
            case AddrMode.ZPG:
                operand = f"${to_hex(args, 1)} = {to_hex(read(args & 0xFFFF), 1)}"
            case AddrMode.ZPX:
                eff = (args + x) & 0xFF
                operand = f"${to_hex(args, 1)},X @ {to_hex(eff, 1)} = {to_hex(read(eff), 1)}"
            case AddrMode.ZPY:
                eff = (args + y) & 0xFF
                operand = f"${to_hex(args, 1)},Y @ {to_hex(eff, 1)} = {to_hex(read(eff), 1)}"
            case AddrMode.IND:
                ind = self._read_page_wrapped_word(args & 0xFFFF)
                operand = f"(${to_hex(args, 2)}) = {to_hex(ind, 2)}"
                if not is_jump:
                    operand += f" = {to_hex(read(ind), 1)}"
            case AddrMode.INX:
                ptr = (args + x) & 0xFF
                ind = self._read_zero_page_word(ptr)
                operand = (
                    f"(${to_hex(args, 1)},X) @ {to_hex(ptr, 1)} = {to_hex(ind, 2)}"
                    f" = {to_hex(read(ind), 1)}"
                )
            case AddrMode.INY:
                ind = read(args & 0xFFFF) | (read((args + 1) & 0xFF) << 8)
                eff = (ind + y) & 0xFFFF
                operand = (
                    f"(${to_hex(args, 1)}),Y = {to_hex(ind, 2)} @ {to_hex(eff, 2)}"
                    f" = {to_hex(read(eff), 1)}"
                )
            case AddrMode.ABS:
                operand = f"${to_hex(args, 2)}"
                if not is_jump:
                    operand += f" = {to_hex(read(args & 0xFFFF), 1)}"
            case AddrMode.ABX:
                eff = (args + x) & 0xFFFF
                operand = f"${to_hex(args, 2)},X @ {to_hex(eff, 2)} = {to_hex(read(eff), 1)}"
            case AddrMode.ABY:
                eff = (args + y) & 0xFFFF
                operand = f"${to_hex(args, 2)},Y @ {to_hex(eff, 2)} = {to_hex(read(eff), 1)}"
            case AddrMode.REL:
                operand = f"${to_hex(args + self.pc + 2, 2)}"
            case _:
                operand = ""

        return f"{name} {operand}"

    def trace_line(self) -> str:
        """Describe the instruction at the program counter and the register state."""
        pc = self.pc
        opcode = self.bus_read(pc)
        instr = INSTRUCTIONS[opcode]
        nbytes = instruction_bytes(instr.mode)

        raw = "".join(
            f"{self.bus_read((pc + offset) & 0xFFFF):02X} " if offset < nbytes else "   "
            for offset in range(3)
        )

        if nbytes == 2:
            args = self.bus_read((pc + 1) & 0xFFFF)
        elif nbytes == 3:
            args = self.bus_read((pc + 1) & 0xFFFF) | (self.bus_read((pc + 2) & 0xFFFF) << 8)
        else:
            args = 0

        marker = " " if instr.valid else "*"
        return (
            f"{pc:04X}  {raw}{marker}{self.disas(opcode, args):<31}"
            f" A:{self.a:02X} X:{self.x:02X} Y:{self.y:02X}"
            f" P:{self.status.to_byte():02X} SP:{self.sp:02X} CYC:{self.cycles}"
        )

    def trace(self) -> str:
        """Write the trace line for the next instruction to stdout and return it."""
        line = self.trace_line()
        sys.stdout.write(line + "\n")
        return line

    # --- helpers ------------------------------------------------------------

    def _set_flags(self, value: int, neg: bool, zero: bool, carry: bool) -> None:
        if neg:
            self.status.neg = bool(get_bit(value, 7))
        if zero:
            self.status.zero = not (value & 0xFF)
        if carry:
            self.status.carry = bool(get_bit(value, 8))

    def _set_nz(self, value: int) -> None:
        self._set_flags(value, True, True, False)

    def _push(self, value: int) -> None:
        self.bus_write(STACK_BASE + self.sp, value & 0xFF)
        self.sp = (self.sp - 1) & 0xFF

    def _push_word(self, value: int) -> None:
        self._push(_msb(value))
        self._push(value & 0xFF)

    def _pop(self) -> int:
        self.sp = (self.sp + 1) & 0xFF
        return self.bus_read(STACK_BASE + self.sp)

    def _pop_word(self) -> int:
        low = self._pop()
        high = self._pop()
        return (high << 8) | low

    def _branch(self, condition: bool, addr: int) -> None:
        if condition:
            if _msb(addr) != _msb(self.pc):
                self.cycles += 1
            self.pc = addr
            self.cycles += 1

    # --- operations ---------------------------------------------------------

    def _op_adc(self, addr: int) -> None:
        n = self.bus_read(addr)
        out = (self.a + n + int(self.status.carry)) & 0xFFFF
        self.status.ov = bool(~(self.a ^ n) & (self.a ^ out) & 0x80)
        self._set_flags(out, True, True, True)
        self.a = out & 0xFF

    def _op_and(self, addr: int) -> None:
        self.a &= self.bus_read(addr)
        self._set_nz(self.a)

    def _op_asl(self, addr: int) -> None:
        out = self.bus_read(addr) << 1
        self._set_flags(out, True, True, True)
        self.bus_write(addr, out & 0xFF)

    def _op_asl_acc(self, addr: int) -> None:
        out = self.a << 1
        self.a = out & 0xFF
        self._set_flags(out, True, True, True)

    def _op_bcc(self, addr: int) -> None:
        self._branch(not self.status.carry, addr)

    def _op_bcs(self, addr: int) -> None:
        self._branch(self.status.carry, addr)

    def _op_beq(self, addr: int) -> None:
        self._branch(self.status.zero, addr)

    def _op_bit(self, addr: int) -> None:
        n = self.bus_read(addr)
        self.status.neg = bool(get_bit(n, 7))
        self.status.ov = bool(get_bit(n, 6))
        self.status.zero = not (n & self.a)

    def _op_bmi(self, addr: int) -> None:
        self._branch(self.status.neg, addr)

    def _op_bne(self, addr: int) -> None:
        self._branch(not self.status.zero, addr)

    def _op_bpl(self, addr: int) -> None:
        self._branch(not self.status.neg, addr)

    def _op_brk(self, addr: int) -> None:
        self.halted = True

    def _op_bvc(self, addr: int) -> None:
        self._branch(not self.status.ov, addr)

    def _op_bvs(self, addr: int) -> None:
        self._branch(self.status.ov, addr)

    def _op_clc(self, addr: int) -> None:
        self.status.carry = False

    def _op_cld(self, addr: int) -> None:
        self.status.dec = False

    def _op_cli(self, addr: int) -> None:
        self.status.intr = False

    def _op_clv(self, addr: int) -> None:
        self.status.ov = False

    def _compare(self, register: int, addr: int) -> None:
        out = register + (self.bus_read(addr) ^ 0xFF) + 1
        self._set_flags(out, True, True, True)

    def _op_cmp(self, addr: int) -> None:
        self._compare(self.a, addr)

    def _op_cpx(self, addr: int) -> None:
        self._compare(self.x, addr)

    def _op_cpy(self, addr: int) -> None:
        self._compare(self.y, addr)

    def _op_dec(self, addr: int) -> None:
        n = (self.bus_read(addr) - 1) & 0xFF
        self.bus_write(addr, n)
        self._set_nz(n)

    def _op_dex(self, addr: int) -> None:
        self.x = (self.x - 1) & 0xFF
        self._set_nz(self.x)

    def _op_dey(self, addr: int) -> None:
        self.y = (self.y - 1) & 0xFF
        self._set_nz(self.y)

    def _op_eor(self, addr: int) -> None:
        self.a ^= self.bus_read(addr)
        self._set_nz(self.a)

    def _op_inc(self, addr: int) -> None:
        n = (self.bus_read(addr) + 1) & 0xFF
        self.bus_write(addr, n)
        self._set_nz(n)

    def _op_inx(self, addr: int) -> None:
        self.x = (self.x + 1) & 0xFF
        self._set_nz(self.x)

    def _op_iny(self, addr: int) -> None:
        self.y = (self.y + 1) & 0xFF
        self._set_nz(self.y)

    def _op_jmp(self, addr: int) -> None:
        self.pc = addr

    def _op_jsr(self, addr: int) -> None:
        # The pushed address is that of the last byte of the JSR itself.
        self._push_word((self.pc - 1) & 0xFFFF)
        self.pc = addr

    def _op_lda(self, addr: int) -> None:
        self.a = self.bus_read(addr)
        self._set_nz(self.a)

    def _op_ldx(self, addr: int) -> None:
        self.x = self.bus_read(addr)
        self._set_nz(self.x)

    def _op_ldy(self, addr: int) -> None:
        self.y = self.bus_read(addr)
        self._set_nz(self.y)

    def _op_lsr(self, addr: int) -> None:
        n = self.bus_read(addr)
        self.status.carry = bool(n & 1)
        self.status.neg = False
        out = n >> 1
        self._set_nz(out)
        self.bus_write(addr, out & 0xFF)

    def _op_lsr_acc(self, addr: int) -> None:
        self.status.carry = bool(self.a & 1)
        self.status.neg = False
        self.a >>= 1
        self._set_flags(self.a, False, True, False)

    def _op_ora(self, addr: int) -> None:
        self.a |= self.bus_read(addr)
        self._set_nz(self.a)

    def _op_pha(self, addr: int) -> None:
        self._push(self.a)

    def _op_php(self, addr: int) -> None:
        self._push(self.status.to_byte() | _BREAK_BITS)

    def _op_pla(self, addr: int) -> None:
        self.a = self._pop()
        self._set_nz(self.a)

    def _op_plp(self, addr: int) -> None:
        brk = self.status.brk
        self.status.load(self._pop() & 0b1100_1111)
        self.status.brk = brk

    def _op_rol(self, addr: int) -> None:
        out = (self.bus_read(addr) << 1) | int(self.status.carry)
        self._set_flags(out, True, True, True)
        self.bus_write(addr, out & 0xFF)

    def _op_rol_acc(self, addr: int) -> None:
        out = (self.a << 1) | int(self.status.carry)
        self.a = out & 0xFF
        self._set_flags(out, True, True, True)

    def _rotate_right(self, value: int) -> int:
        carry_out = bool(value & 1)
        out = (value >> 1) | (0x80 if self.status.carry else 0)
        self.status.carry = carry_out
        return out

    def _op_ror(self, addr: int) -> None:
        out = self._rotate_right(self.bus_read(addr))
        self._set_nz(out)
        self.bus_write(addr, out & 0xFF)

    def _op_ror_acc(self, addr: int) -> None:
        self.a = self._rotate_right(self.a)
        self._set_nz(self.a)

    def _op_rti(self, addr: int) -> None:
        self.status.load(self._pop() | _CONSTANT_BIT)
        self.pc = self._pop_word()

    def _op_rts(self, addr: int) -> None:
        self.pc = (self._pop_word() + 1) & 0xFFFF

    def _op_sbc(self, addr: int) -> None:
        n = self.bus_read(addr)
        out = (self.a + (n ^ 0xFF) + int(self.status.carry)) & 0xFFFF
        self.status.ov = bool(((self.a ^ out) & 0x80) & ((self.a ^ n) & 0x80))
        self._set_flags(out, True, True, True)
        self.a = out & 0xFF

    def _op_sec(self, addr: int) -> None:
        self.status.carry = True

    def _op_sed(self, addr: int) -> None:
        self.status.dec = True

    def _op_sei(self, addr: int) -> None:
        self.status.intr = True

    def _op_sta(self, addr: int) -> None:
        self.bus_write(addr, self.a)

    def _op_stx(self, addr: int) -> None:
        self.bus_write(addr, self.x)

    def _op_sty(self, addr: int) -> None:
        self.bus_write(addr, self.y)

    def _op_tax(self, addr: int) -> None:
        self.x = self.a
        self._set_nz(self.x)

    def _op_tay(self, addr: int) -> None:
        self.y = self.a
        self._set_nz(self.y)

    def _op_tsx(self, addr: int) -> None:
        self.x = self.sp
        self._set_nz(self.x)

    def _op_txa(self, addr: int) -> None:
        self.a = self.x
        self._set_nz(self.a)

    def _op_txs(self, addr: int) -> None:
        self.sp = self.x

    def _op_tya(self, addr: int) -> None:
        self.a = self.y
        self._set_nz(self.a)

    # --- unofficial operations ---------------------------------------------

    def _op_alr(self, addr: int) -> None:
        self._op_and(addr)
        self._op_lsr_acc(addr)

    def _op_anc(self, addr: int) -> None:
        self.a &= self.bus_read(addr)
        self._set_flags(self.a, True, True, True)

    def _op_dcp(self, addr: int) -> None:
        self._op_dec(addr)
        self._op_cmp(addr)

    def _op_isb(self, addr: int) -> None:
        self._op_inc(addr)
        self._op_sbc(addr)

    def _op_lax(self, addr: int) -> None:
        self.a = self.x = self.bus_read(addr)
        self._set_nz(self.a)

    def _op_rla(self, addr: int) -> None:
        self._op_rol(addr)
        self._op_and(addr)

    def _op_rra(self, addr: int) -> None:
        self._op_ror(addr)
        self._op_adc(addr)

    def _op_sax(self, addr: int) -> None:
        self.bus_write(addr, self.a & self.x)

    def _op_slo(self, addr: int) -> None:
        self._op_asl(addr)
        self._op_ora(addr)

    def _op_sre(self, addr: int) -> None:
        self._op_lsr(addr)
        self._op_eor(addr)