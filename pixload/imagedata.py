"""Decoded image containers and decoder errors."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class ImageError(Exception):
    """Base class for image decoding errors."""


class UnsupportedFormatError(ImageError):
    """The data is not in a format the decoder understands."""


class FormatError(ImageError):
    """The data is in a known format but is malformed."""


def argb(a: int, r: int, g: int, b: int) -> int:
    """Pack four 8-bit channels into a 32-bit ARGB value."""
    return (a & 0xFF) << 24 | (r & 0xFF) << 16 | (g & 0xFF) << 8 | (b & 0xFF)


class PixmapFormat(enum.Enum):
    """Pixel layout of a pixmap."""

    ARGB = "argb"
    XRGB = "xrgb"


@dataclass
class Pixmap:
    """A rectangle of 32-bit ARGB pixels stored row by row."""

    format: PixmapFormat
    width: int
    height: int
    data: list[int] = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("pixmap dimensions must not be negative")
        total = self.width * self.height
        if self.data is None:
            self.data = [0] * total
        elif len(self.data) != total:
            raise ValueError("pixel data does not match pixmap dimensions")

    def pixel(self, x: int, y: int) -> int:
        """Return the pixel at column ``x``, row ``y``."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError("pixel coordinates out of range")
        return self.data[y * self.width + x]

    def _rows(self) -> list[list[int]]:
        w = self.width
        return [self.data[y * w : (y + 1) * w] for y in range(self.height)]

    def flip_vertical(self) -> None:
        """Mirror the pixmap top to bottom in place."""
        self.data = [px for row in reversed(self._rows()) for px in row]

    def flip_horizontal(self) -> None:
        """Mirror the pixmap left to right in place."""
        self.data = [px for row in self._rows() for px in reversed(row)]


@dataclass
class Frame:
    """One frame of an image with its display duration in milliseconds."""

    pixmap: Pixmap
    duration: int = 0


@dataclass
class ImageData:
    """Decoded image: frames, a format description and meta information."""

    frames: list[Frame] = field(default_factory=list)
    format: str = ""
    info: list[tuple[str, str]] = field(default_factory=list)

    def add_info(self, key: str, value: str) -> None:
        """Append a meta information entry."""
        self.info.append((key, value))