"""The picture processing unit: registers, timing and nametable rendering."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Optional

from famicore.rom import Mirroring
from famicore.util import get_bit
from famicore.window import Display, Framebuffer

SCREEN_WIDTH = 256
SCREEN_HEIGHT = 240

CYCLES_PER_SCANLINE = 341
VBLANK_SCANLINE = 241
SCANLINES_PER_FRAME = 262

SYSTEM_PALETTE = (
    0x808080, 0x003DA6, 0x0012B0, 0x440096, 0xA1005E,
    0xC70028, 0xBA0600, 0x8C1700, 0x5C2F00, 0x104500,
    0x054A00, 0x00472E, 0x004166, 0x000000, 0x050505,
    0x050505, 0xC7C7C7, 0x0077FF, 0x2155FF, 0x8237FA,
    0xEB2FB5, 0xFF2950, 0xFF2200, 0xD63200, 0xC46200,
    0x358000, 0x058F00, 0x008A55, 0x0099CC, 0x212121,
    0x090909, 0x090909, 0xFFFFFF, 0x0FD7FF, 0x69A2FF,
    0xD480FF, 0xFF45F3, 0xFF618B, 0xFF8833, 0xFF9C12,
    0xFABC20, 0x9FE30E, 0x2BF035, 0x0CF0A4, 0x05FBFF,
    0x5E5E5E, 0x0D0D0D, 0x0D0D0D, 0xFFFFFF, 0xA6FCFF,
    0xB3ECFF, 0xDAABEB, 0xFFA8F9, 0xFFABB3, 0xFFD2B0,
    0xFFEFA6, 0xFFF79C, 0xD7E895, 0xA6EDAF, 0xA2F2DA,
    0x99FFFC, 0xDDDDDD, 0x111111, 0x111111,
)

OAMDMA = 0x4014


class Register(enum.IntEnum):
    """Memory-mapped PPU registers, by offset from 0x2000."""

    PPUCTRL = 0
    PPUMASK = 1
    PPUSTATUS = 2
    OAMADDR = 3
    OAMDATA = 4
    PPUSCROLL = 5
    PPUADDR = 6
    PPUDATA = 7


@dataclass
class Ctrl:
    """PPUCTRL ($2000)."""

    base_addr: int = 0
    vram_increment_row: bool = False
    sprite_addr: bool = False
    bg_addr: bool = False
    sprite_size: bool = False
    master_slave_sel: bool = False
    gen_nmi: bool = False

    def to_byte(self) -> int:
        """Pack the register into a byte."""
        return (
            (self.base_addr & 0b11)
            | int(self.vram_increment_row) << 2
            | int(self.sprite_addr) << 3
            | int(self.bg_addr) << 4
            | int(self.sprite_size) << 5
            | int(self.master_slave_sel) << 6
            | int(self.gen_nmi) << 7
        )

    def load(self, value: int) -> None:
        """Unpack a written byte into the register."""
        self.base_addr = value & 0b11
        self.vram_increment_row = bool(get_bit(value, 2))
        self.sprite_addr = bool(get_bit(value, 3))
        self.bg_addr = bool(get_bit(value, 4))
        self.sprite_size = bool(get_bit(value, 5))
        self.master_slave_sel = bool(get_bit(value, 6))
        self.gen_nmi = bool(get_bit(value, 7))


@dataclass
class Mask:
    """PPUMASK ($2001)."""

    greyscale: bool = False
    show_left_bg: bool = False
    show_left_sprite: bool = False
    show_bg: bool = False
    show_sprite: bool = False
    tint_red: bool = False
    tint_green: bool = False
    tint_blue: bool = False

    def to_byte(self) -> int:
        """Pack the register into a byte."""
        return (
            int(self.greyscale)
            | int(self.show_left_bg) << 1
            | int(self.show_left_sprite) << 2
            | int(self.show_bg) << 3
            | int(self.show_sprite) << 4
            | int(self.tint_red) << 5
            | int(self.tint_green) << 6
            | int(self.tint_blue) << 7
        )

    def load(self, value: int) -> None:
        """Unpack a written byte into the register."""
        self.greyscale = bool(get_bit(value, 0))
        self.show_left_bg = bool(get_bit(value, 1))
        self.show_left_sprite = bool(get_bit(value, 2))
        self.show_bg = bool(get_bit(value, 3))
        self.show_sprite = bool(get_bit(value, 4))
        self.tint_red = bool(get_bit(value, 5))
        self.tint_green = bool(get_bit(value, 6))
        self.tint_blue = bool(get_bit(value, 7))


@dataclass
class PpuStatus:
    """PPUSTATUS ($2002)."""

    sprite_ov: bool = False
    sprite_zero_hit: bool = False
    in_vblank: bool = False

    def to_byte(self) -> int:
        """Pack the register into a byte; the low five bits read as zero."""
        return (
            int(self.sprite_ov) << 5
            | int(self.sprite_zero_hit) << 6
            | int(self.in_vblank) << 7
        )


@dataclass
class PpuAddr:
    """The VRAM address set through PPUADDR ($2006)."""

    addr: int = 0
    hi: bool = False

    def inc(self, by_row: bool) -> None:
        """Advance by a row of 32 tiles or by a single byte."""
        self.addr = (self.addr + (32 if by_row else 1)) & 0xFFFF


def mirror_nametable_addr(addr: int, mirroring: Mirroring) -> int:
    """Fold a nametable address onto the physical table it mirrors."""
    if mirroring is Mirroring.FOUR_SCREEN:
        return addr

    table = (addr >> 10) & 0b11
    if mirroring is Mirroring.HORIZONTAL:
        table &= 0b10
    elif mirroring is Mirroring.VERTICAL:
        table &= 0b01

    return (addr & 0xF3FF) | (table << 10)


class PPU:
    """The PPU as seen by the CPU through its eight registers."""

    def __init__(
        self,
        mirroring: Mirroring,
        internal_read: Callable[[int], int],
        internal_write: Callable[[int, int], None],
        on_nmi: Optional[Callable[[], None]] = None,
        framebuffer: Optional[Framebuffer] = None,
        display: Optional[Display] = None,
    ) -> None:
        self.mirroring = mirroring
        self.internal_read = internal_read
        self.internal_write = internal_write
        self.on_nmi = on_nmi
        self.framebuffer = framebuffer or Framebuffer(SCREEN_WIDTH, SCREEN_HEIGHT)
        self.display = display

        self.oam = bytearray(0x100)
        self.ctrl = Ctrl()
        self.mask = Mask()
        self.status = PpuStatus()
        self.addr = PpuAddr()
        self.scroll = 0
        self.oam_addr = 0
        self.read_buffer = 0
        self.scanline = 0
        self.cycles = 0

    def read(self, addr: int) -> int:
        """Read a register as the CPU sees it."""
        if not 0x2000 <= addr < 0x4000:
            return 0

        register = addr & 0b111
        if register == Register.PPUSTATUS:
            value = self.status.to_byte()
            self.status.in_vblank = False
            return value
        if register == Register.PPUDATA:
            value = self.read_buffer
            self.read_buffer = self.internal_read(self.addr.addr)
            self.addr.inc(self.ctrl.vram_increment_row)
            return value
        return 0

    def write(self, addr: int, data: int) -> None:
        """Write a register as the CPU does."""
        if not 0x2000 <= addr < 0x4000:
            # OAM DMA at $4014 is accepted and ignored.
            return

        register = addr & 0b111
        if register == Register.PPUCTRL:
            nmi_was_enabled = self.ctrl.gen_nmi
            self.ctrl.load(data)
            if not nmi_was_enabled and self.ctrl.gen_nmi and self.status.in_vblank:
                self._frame_ready()
        elif register == Register.PPUMASK:
            self.mask.load(data)
        elif register == Register.OAMADDR:
            self.oam_addr = data
        elif register == Register.PPUSCROLL:
            self.scroll = data
        elif register == Register.PPUADDR:
            if self.addr.hi:
                self.addr.addr = (self.addr.addr & 0xFF00) | data
            else:
                self.addr.addr = (self.addr.addr & 0x00FF) | (data << 8)
                self.addr.hi = True
        elif register == Register.PPUDATA:
            self.internal_write(self.addr.addr, data)
            self.addr.inc(self.ctrl.vram_increment_row)

    def exec(self, cycles: int = 0) -> None:
        """Advance by ``cycles`` PPU cycles."""
        for _ in range(cycles):
            self.step()

    def step(self) -> None:
        """Advance by one PPU cycle."""
        self.cycles += 1
        if self.cycles < CYCLES_PER_SCANLINE:
            return

        self.cycles -= CYCLES_PER_SCANLINE
        self.scanline += 1

        if self.scanline == VBLANK_SCANLINE:
            self.status.in_vblank = True
            if self.ctrl.gen_nmi:
                self._frame_ready()

        if self.scanline >= SCANLINES_PER_FRAME:
            self.scanline = 0
            self.status.in_vblank = False

    def render(self) -> None:
        """Draw the first nametable into the framebuffer, one flat block per tile."""
        for ty in range(SCREEN_HEIGHT // 8):
            for tx in range(SCREEN_WIDTH // 8):
                tile = self.internal_read(0x2000 + ty * 32 + tx)
                for py in range(8):
                    for px in range(8):
                        self.framebuffer.set_px(tx * 8 + px, ty * 8 + py, tile)

    def _frame_ready(self) -> None:
        self.render()
        if self.display is not None:
            self.display.present(self.framebuffer)
        if self.on_nmi is not None:
            self.on_nmi()