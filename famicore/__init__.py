"""A small NES emulator core: 6502 CPU, iNES loader, basic PPU and a pygame display."""

__version__ = "0.1.0"