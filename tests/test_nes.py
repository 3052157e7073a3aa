import pytest

from famicore.nes import BusError, Nes, main
from famicore.rom import RomError

PROGRAM = bytes([
    0xA9, 0x42,        # LDA #$42
    0x8D, 0x00, 0x02,  # STA $0200
    0x4C, 0x05, 0xC0,  # JMP $C005
])


def make_ines(prg_pages=1, program=PROGRAM):
    header = b"NES\x1a" + bytes([prg_pages, 1, 0, 0]) + bytes(8)
    prg = bytearray(prg_pages * 0x4000)
    start = (prg_pages - 1) * 0x4000
    prg[start:start + len(program)] = program
    prg[-3] = 0xC0  # reset vector high byte
    chr_rom = bytearray(0x2000)
    return header + bytes(prg) + bytes(chr_rom)


@pytest.fixture
def nes():
    return Nes(make_ines())


def test_reset_starts_at_c000(nes):
    assert nes.cpu.pc == 0xC000
    assert nes.cpu.sp == 0xFD


def test_ram_is_mirrored(nes):
    nes.write(0x0001, 0x99)
    assert nes.read(0x0801) == 0x99
    assert nes.read(0x1801) == 0x99
    nes.write(0x1FFF, 0x12)
    assert nes.read(0x07FF) == 0x12


def test_single_prg_bank_mirrors(nes):
    for addr in range(0x8000, 0xC000, 0x101):
        assert nes.read(addr) == nes.read(addr + 0x4000)
    assert nes.read(0xC000) == PROGRAM[0]


def test_double_prg_bank_not_mirrored():
    nes = Nes(make_ines(prg_pages=2))
    assert nes.read(0xC000) == PROGRAM[0]
    assert nes.read(0x8000) == 0


def test_write_to_cartridge_raises(nes):
    with pytest.raises(BusError):
        nes.write(0x8000, 1)


def test_unsupported_read_returns_zero(nes):
    nes.write(0x5000, 7)
    assert nes.read(0x5000) == 0


def test_ppu_address_space(nes):
    nes.ppu_write(0x0010, 0x33)
    assert nes.ppu_read(0x0010) == 0x33
    nes.ppu_write(0x2005, 0x44)
    assert nes.ppu_read(0x3005) == 0x44
    nes.ppu_write(0x3F01, 0x55)
    assert nes.ppu_read(0x3F21) == 0x55


@pytest.mark.parametrize("addr", [0x4000, 0xFFFF])
def test_ppu_address_out_of_range(nes, addr):
    with pytest.raises(BusError):
        nes.ppu_read(addr)
    with pytest.raises(BusError):
        nes.ppu_write(addr, 0)


def test_cpu_reaches_ppu_through_registers(nes):
    nes.write(0x2006, 0x20)
    nes.write(0x2006, 0x10)
    nes.write(0x2007, 0x77)
    assert nes.vram[0x010] == 0x77


def test_run_executes_program_and_clocks_ppu(nes):
    seen = []
    steps = nes.run(lambda cpu: seen.append(cpu.pc), max_steps=3)
    assert steps == 3
    assert seen == [0xC000, 0xC002, 0xC005]
    assert nes.read(0x0200) == 0x42
    assert nes.cpu.pc == 0xC005
    elapsed = nes.cpu.cycles - 7
    assert nes.ppu.scanline * 341 + nes.ppu.cycles == elapsed * 3


def test_bad_image_rejected():
    with pytest.raises(RomError):
        Nes(b"not a rom at all")


def test_main_traces(tmp_path, capsys):
    path = tmp_path / "game.nes"
    path.write_bytes(make_ines())
    assert main([str(path), "--headless", "--steps", "2"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("C000  A9 42")
    assert lines[1].startswith("C002  8D 00 02")


def test_main_quiet(tmp_path, capsys):
    path = tmp_path / "game.nes"
    path.write_bytes(make_ines())
    assert main([str(path), "--headless", "--quiet", "--steps", "5"]) == 0
    assert capsys.readouterr().out == ""


def test_main_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "missing.nes"), "--headless"]) == 1
    assert "famicore" in capsys.readouterr().err