"""iNES cartridge image parsing."""

from __future__ import annotations

import enum
from dataclasses import dataclass

PRG_ROM_PAGE_SIZE = 0x4000
CHR_ROM_PAGE_SIZE = 0x2000
HEADER_SIZE = 16
TRAINER_SIZE = 512
INES_MAGIC = b"NES\x1a"


class Mirroring(enum.Enum):
    """Nametable mirroring arrangement of a cartridge."""

    VERTICAL = enum.auto()
    HORIZONTAL = enum.auto()
    FOUR_SCREEN = enum.auto()


class RomError(ValueError):
    """Raised when a cartridge image cannot be loaded."""


@dataclass
class Rom:
    """A loaded cartridge: program and character ROM plus header details."""

    prg_rom: bytearray
    chr_rom: bytearray
    mapper: int
    mirroring: Mirroring

    @classmethod
    def parse(cls, data: bytes) -> "Rom":
        """Build a cartridge from the bytes of an iNES file."""
        if len(data) < HEADER_SIZE or bytes(data[:4]) != INES_MAGIC:
            raise RomError("File not in iNES format")

        flags6, flags7 = data[6], data[7]

        mapper = (flags6 >> 4) | (flags7 & 0xF0)
        if mapper != 0:
            raise RomError("Only mapper 0 supported")

        if flags6 & 0b1000:
            mirroring = Mirroring.FOUR_SCREEN
        elif flags6 & 1:
            mirroring = Mirroring.VERTICAL
        else:
            mirroring = Mirroring.HORIZONTAL

        prg_size = data[4] * PRG_ROM_PAGE_SIZE
        chr_size = data[5] * CHR_ROM_PAGE_SIZE

        trainer_present = bool(flags6 & 0b100)
        prg_start = HEADER_SIZE + (TRAINER_SIZE if trainer_present else 0)
        chr_start = prg_start + prg_size

        if chr_start + chr_size > len(data):
            raise RomError("File is shorter than its header declares")

        return cls(
            prg_rom=bytearray(data[prg_start:chr_start]),
            chr_rom=bytearray(data[chr_start:chr_start + chr_size]),
            mapper=mapper,
            mirroring=mirroring,
        )