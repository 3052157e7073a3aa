"""Pixel storage for a rendered frame and an on-screen window to show it."""

from __future__ import annotations

import pygame

WINDOW_TITLE = "nes"


class Framebuffer:
    """A width x height grid of 0xRRGGBB pixels."""

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"invalid framebuffer size: {width}x{height}")
        self.width = width
        self.height = height
        self.pixels = [0] * (width * height)

    def _index(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} frame")
        return y * self.width + x

    def set_px(self, x: int, y: int, rgb: int) -> None:
        """Set the pixel at (x, y) to ``rgb``."""
        self.pixels[self._index(x, y)] = rgb & 0xFFFFFFFF

    def get_px(self, x: int, y: int) -> int:
        """Return the pixel at (x, y)."""
        return self.pixels[self._index(x, y)]

    def to_rgb_bytes(self) -> bytes:
        """Return the frame as packed R, G, B bytes, row by row."""
        return bytes(
            channel
            for px in self.pixels
            for channel in ((px >> 16) & 0xFF, (px >> 8) & 0xFF, px & 0xFF)
        )


class Display:
    """A desktop window that shows framebuffers and closes the program on quit."""

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        pygame.init()
        self._screen = pygame.display.set_mode((width, height))
        pygame.display.set_caption(WINDOW_TITLE)

    def present(self, framebuffer: Framebuffer) -> None:
        """Draw ``framebuffer`` to the window and process pending window events."""
        surface = pygame.image.frombuffer(
            framebuffer.to_rgb_bytes(), (framebuffer.width, framebuffer.height), "RGB"
        )
        if (framebuffer.width, framebuffer.height) != (self.width, self.height):
            surface = pygame.transform.scale(surface, (self.width, self.height))
        self._screen.fill((0, 0, 0))
        self._screen.blit(surface, (0, 0))
        pygame.display.flip()

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                raise SystemExit(0)

    def close(self) -> None:
        """Shut the window down."""
        pygame.quit()