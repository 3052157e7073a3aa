"""Small helpers shared by the emulator components."""

from __future__ import annotations

import os
from pathlib import Path


def get_bit(value: int, pos: int) -> int:
    """Return bit ``pos`` of ``value`` as 0 or 1."""
    return (value >> pos) & 1


def read_file(path: str | os.PathLike[str]) -> bytes:
    """Read a whole file as raw bytes."""
    return Path(path).read_bytes()


def to_hex(value: int, nbytes: int) -> str:
    """Format ``value`` as upper-case hex, two digits per byte.

    Only widths of one or two bytes are supported; any other width
    yields an empty string.
    """
    if nbytes < 1 or nbytes > 2:
        return ""
    value &= 0xFFFF
    if nbytes == 1:
        return f"{value:02X}"
    return f"{value:04X}"