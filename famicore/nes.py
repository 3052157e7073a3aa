"""The console: memory map tying cartridge, CPU and PPU together, and the entry point."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable, Optional, Sequence

from famicore.cpu import CPU, RESET_VECTOR
from famicore.ppu import PPU, SCREEN_HEIGHT, SCREEN_WIDTH
from famicore.rom import PRG_ROM_PAGE_SIZE, Rom, RomError
from famicore.util import read_file
from famicore.window import Display

log = logging.getLogger(__name__)

RAM_SIZE = 0x800
VRAM_SIZE = 0x1000
PALETTE_SIZE = 0x20
PRG_ROM_START = 0x8000


class BusError(Exception):
    """Raised on an access the memory map cannot serve."""


class Nes:
    """A console with a cartridge inserted, reset and ready to run."""

    def __init__(self, ines: bytes, display: Optional[Display] = None) -> None:
        self.rom = Rom.parse(ines)
        if not self.rom.prg_rom:
            raise RomError("Cartridge has no PRG ROM")

        self.ram = bytearray(RAM_SIZE)
        self.vram = bytearray(VRAM_SIZE)
        self.palette = bytearray(PALETTE_SIZE)

        self.cpu = CPU(self.read, self.write)
        self.ppu = PPU(
            self.rom.mirroring,
            self.ppu_read,
            self.ppu_write,
            on_nmi=self.cpu.nmi,
            display=display,
        )

        # Clearing the reset vector's low byte starts at $C000 rather than $C004,
        # the entry point meant for emulators without a PPU.
        self.rom.prg_rom[(RESET_VECTOR - PRG_ROM_START) % PRG_ROM_PAGE_SIZE] = 0
        self.cpu.reset()

    def read(self, addr: int) -> int:
        """Read a byte from the CPU address space."""
        if addr < 0x2000:
            return self.ram[addr & (RAM_SIZE - 1)]
        if addr < 0x4000:
            return self.ppu.read(addr)
        if addr >= PRG_ROM_START:
            return self.read_prg_rom(addr)
        log.warning("Read to unsupported location: 0x%04X", addr)
        return 0

    def read_prg_rom(self, addr: int) -> int:
        """Read a byte of program ROM; a single 16 KiB bank is mirrored."""
        offset = addr - PRG_ROM_START
        if len(self.rom.prg_rom) == PRG_ROM_PAGE_SIZE:
            offset %= PRG_ROM_PAGE_SIZE
        return self.rom.prg_rom[offset]

    def write(self, addr: int, data: int) -> None:
        """Write a byte to the CPU address space."""
        if addr < 0x2000:
            self.ram[addr & (RAM_SIZE - 1)] = data
        elif addr < 0x4000:
            self.ppu.write(addr, data)
        elif addr >= PRG_ROM_START:
            raise BusError(f"Illegal write to cartridge at 0x{addr:04X}")
        else:
            log.warning("Write to unsupported location: 0x%04X", addr)

    def ppu_read(self, addr: int) -> int:
        """Read a byte from the PPU address space."""
        if addr < 0x2000:
            return self.rom.chr_rom[addr]
        if addr < 0x3F00:
            return self.vram[addr & 0xFFF]
        if addr < 0x4000:
            return self.palette[addr & 0x1F]
        raise BusError(f"Read to unsupported location: 0x{addr:04X}")

    def ppu_write(self, addr: int, data: int) -> None:
        """Write a byte to the PPU address space."""
        if addr < 0x2000:
            self.rom.chr_rom[addr] = data
        elif addr < 0x3F00:
            self.vram[addr & 0xFFF] = data
        elif addr < 0x4000:
            self.palette[addr & 0x1F] = data
        else:
            raise BusError(f"Write to unsupported location: 0x{addr:04X}")

    def run(
        self,
        cpu_callback: Optional[Callable[[CPU], None]] = None,
        max_steps: Optional[int] = None,
    ) -> int:
        """Run instructions, three PPU cycles per CPU cycle; return the steps taken.

        Without ``max_steps`` this runs until the program is stopped.
        """
        steps = 0
        while max_steps is None or steps < max_steps:
            cpu_cycles = self.cpu.step(cpu_callback)
            self.ppu.exec(cpu_cycles * 3)
            steps += 1
        return steps


def _print_cpu_state(cpu: CPU) -> None:
    print(cpu.trace_line())


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Load a cartridge and run it, printing a trace line per instruction."""
    parser = argparse.ArgumentParser(prog="famicore", description="Run an NES cartridge.")
    parser.add_argument("rom", nargs="?", default="pacman.nes", help="iNES file to load")
    parser.add_argument("--quiet", action="store_true", help="do not print the trace")
    parser.add_argument("--headless", action="store_true", help="do not open a window")
    parser.add_argument("--steps", type=int, default=None, help="stop after this many instructions")
    args = parser.parse_args(argv)

    try:
        data = read_file(args.rom)
        display = None if args.headless else Display(SCREEN_WIDTH, SCREEN_HEIGHT)
        nes = Nes(data, display=display)
    except (OSError, RomError) as exc:
        print(f"famicore: {exc}", file=sys.stderr)
        return 1

    nes.run(None if args.quiet else _print_cpu_state, args.steps)
    return 0