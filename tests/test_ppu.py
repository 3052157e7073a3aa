import pytest

from famicore.ppu import (
    CYCLES_PER_SCANLINE,
    SCANLINES_PER_FRAME,
    VBLANK_SCANLINE,
    PPU,
    Ctrl,
    Mask,
    PpuAddr,
    PpuStatus,
    mirror_nametable_addr,
)
from famicore.rom import Mirroring
from famicore.window import Framebuffer


def make_ppu(mirroring=Mirroring.HORIZONTAL):
    memory = {}
    nmis = []
    ppu = PPU(
        mirroring,
        lambda addr: memory.get(addr, 0),
        memory.__setitem__,
        on_nmi=lambda: nmis.append(True),
    )
    return ppu, memory, nmis


def set_vram_addr(ppu, addr):
    ppu.write(0x2006, addr >> 8)
    ppu.write(0x2006, addr & 0xFF)


def test_ctrl_round_trip_all_bytes():
    ctrl = Ctrl()
    for value in range(256):
        ctrl.load(value)
        assert ctrl.to_byte() == value


def test_ctrl_nmi_bit():
    ctrl = Ctrl()
    ctrl.load(0x80)
    assert ctrl.gen_nmi is True
    assert ctrl.base_addr == 0


def test_mask_round_trip_all_bytes():
    mask = Mask()
    for value in range(256):
        mask.load(value)
        assert mask.to_byte() == value


def test_status_vblank_is_top_bit():
    assert PpuStatus(in_vblank=True).to_byte() == 0x80
    assert PpuStatus().to_byte() == 0


def test_addr_increment_and_wrap():
    addr = PpuAddr(addr=0x2000)
    addr.inc(False)
    assert addr.addr == 0x2001
    addr.inc(True)
    assert addr.addr - 0x2001 == 32
    wrap = PpuAddr(addr=0xFFFF)
    wrap.inc(False)
    assert wrap.addr == 0


def test_four_screen_is_identity():
    for addr in range(0x2000, 0x3000, 0x37):
        assert mirror_nametable_addr(addr, Mirroring.FOUR_SCREEN) == addr


def test_horizontal_mirroring_pairs_tables():
    for addr in range(0x2000, 0x2400, 0x11):
        assert mirror_nametable_addr(addr, Mirroring.HORIZONTAL) == addr
        assert mirror_nametable_addr(addr + 0x400, Mirroring.HORIZONTAL) == addr
        assert mirror_nametable_addr(addr + 0xC00, Mirroring.HORIZONTAL) == addr + 0x800


def test_vertical_mirroring_pairs_tables():
    for addr in range(0x2000, 0x2800, 0x13):
        assert mirror_nametable_addr(addr, Mirroring.VERTICAL) == addr
        assert mirror_nametable_addr(addr + 0x800, Mirroring.VERTICAL) == addr


def test_data_write_goes_through_address_register():
    ppu, memory, _ = make_ppu()
    set_vram_addr(ppu, 0x2305)
    ppu.write(0x2007, 0xAB)
    assert memory == {0x2305: 0xAB}
    assert ppu.addr.addr == 0x2306


def test_data_read_is_buffered():
    ppu, memory, _ = make_ppu()
    memory[0x2108] = 0x11
    memory[0x2109] = 0x22
    set_vram_addr(ppu, 0x2108)
    assert ppu.read(0x2007) == 0
    assert ppu.read(0x2007) == 0x11
    assert ppu.read(0x2007) == 0x22


def test_row_increment_when_ctrl_bit_set():
    ppu, memory, _ = make_ppu()
    ppu.write(0x2000, 0x04)
    set_vram_addr(ppu, 0x2000)
    ppu.write(0x2007, 1)
    ppu.write(0x2007, 2)
    assert memory[0x2000] == 1
    assert memory[0x2000 + 32] == 2


def test_registers_are_mirrored_every_eight_bytes():
    ppu, memory, _ = make_ppu()
    ppu.write(0x3FFE, 0x21)
    ppu.write(0x2016, 0x00)
    ppu.write(0x200F, 0x5A)
    assert memory == {0x2100: 0x5A}


def test_vblank_flag_set_and_cleared_by_status_read():
    ppu, _, nmis = make_ppu()
    ppu.exec(VBLANK_SCANLINE * CYCLES_PER_SCANLINE)
    assert ppu.scanline == VBLANK_SCANLINE
    assert ppu.read(0x2002) & 0x80
    assert ppu.read(0x2002) & 0x80 == 0
    assert nmis == []


def test_nmi_raised_at_vblank_when_enabled():
    ppu, _, nmis = make_ppu()
    ppu.write(0x2000, 0x80)
    ppu.exec(VBLANK_SCANLINE * CYCLES_PER_SCANLINE - 1)
    assert nmis == []
    ppu.step()
    assert len(nmis) == 1


def test_enabling_nmi_inside_vblank_fires_once():
    ppu, _, nmis = make_ppu()
    ppu.exec(VBLANK_SCANLINE * CYCLES_PER_SCANLINE)
    ppu.write(0x2000, 0x80)
    assert len(nmis) == 1
    ppu.write(0x2000, 0x80)
    assert len(nmis) == 1


def test_frame_wraps_and_clears_vblank():
    ppu, _, _ = make_ppu()
    ppu.exec(SCANLINES_PER_FRAME * CYCLES_PER_SCANLINE)
    assert ppu.scanline == 0
    assert ppu.cycles == 0
    assert ppu.status.in_vblank is False


def test_render_fills_tiles_with_nametable_values():
    fb = Framebuffer(256, 240)
    memory = {0x2000: 5, 0x2021: 9}
    ppu = PPU(Mirroring.VERTICAL, lambda a: memory.get(a, 0), memory.__setitem__, framebuffer=fb)
    ppu.render()
    assert fb.get_px(0, 0) == 5
    assert fb.get_px(7, 7) == 5
    assert fb.get_px(8, 8) == 9
    assert fb.get_px(15, 15) == 9
    assert fb.get_px(16, 8) == 0


@pytest.mark.parametrize("addr", [0x1FFF, 0x4000, 0x4014])
def test_reads_outside_register_space_return_zero(addr):
    ppu, memory, _ = make_ppu()
    ppu.write(addr, 0x55)
    assert ppu.read(addr) == 0
    assert memory == {}