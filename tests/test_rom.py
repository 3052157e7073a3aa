import pytest

from famicore.rom import Mirroring, Rom, RomError


def make_ines(prg_pages=1, chr_pages=1, flags6=0, flags7=0, trainer=False,
              prg_fill=0xAA, chr_fill=0x55):
    header = bytes([0x4E, 0x45, 0x53, 0x1A, prg_pages, chr_pages, flags6, flags7]) + bytes(8)
    body = b""
    if trainer:
        body += b"\xEE" * 512
    body += bytes([prg_fill]) * (prg_pages * 0x4000)
    body += bytes([chr_fill]) * (chr_pages * 0x2000)
    return header + body


def test_parse_sizes_and_contents():
    rom = Rom.parse(make_ines(prg_pages=2, chr_pages=1))
    assert len(rom.prg_rom) == 2 * 0x4000
    assert len(rom.chr_rom) == 0x2000
    assert set(rom.prg_rom) == {0xAA}
    assert set(rom.chr_rom) == {0x55}
    assert rom.mapper == 0


def test_parse_horizontal_mirroring_by_default():
    assert Rom.parse(make_ines()).mirroring is Mirroring.HORIZONTAL


def test_parse_vertical_mirroring():
    assert Rom.parse(make_ines(flags6=0b1)).mirroring is Mirroring.VERTICAL


def test_parse_four_screen_takes_priority():
    assert Rom.parse(make_ines(flags6=0b1001)).mirroring is Mirroring.FOUR_SCREEN


def test_parse_skips_trainer():
    rom = Rom.parse(make_ines(flags6=0b100, trainer=True))
    assert len(rom.prg_rom) == 0x4000
    assert 0xEE not in rom.prg_rom
    assert set(rom.chr_rom) == {0x55}


def test_parse_without_chr_rom():
    rom = Rom.parse(make_ines(chr_pages=0))
    assert rom.chr_rom == bytearray()
    assert len(rom.prg_rom) == 0x4000


def test_rom_contents_are_mutable():
    rom = Rom.parse(make_ines())
    rom.chr_rom[0] = 0x12
    rom.prg_rom[0x3FFC] = 0
    assert rom.chr_rom[0] == 0x12
    assert rom.prg_rom[0x3FFC] == 0


def test_bad_magic_rejected():
    data = bytearray(make_ines())
    data[0] = 0x00
    with pytest.raises(RomError, match="iNES"):
        Rom.parse(bytes(data))


def test_short_file_rejected():
    with pytest.raises(RomError):
        Rom.parse(b"NES")


@pytest.mark.parametrize("flags6, flags7", [(0x10, 0), (0, 0x10), (0xF0, 0xF0)])
def test_nonzero_mapper_rejected(flags6, flags7):
    with pytest.raises(RomError, match="mapper"):
        Rom.parse(make_ines(flags6=flags6, flags7=flags7))


def test_truncated_body_rejected():
    data = make_ines()
    with pytest.raises(RomError):
        Rom.parse(data[:-1])


def test_rom_error_is_value_error():
    with pytest.raises(ValueError):
        Rom.parse(b"\x00" * 16)