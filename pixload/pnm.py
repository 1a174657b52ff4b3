"""PNM (PBM, PGM, PPM) image decoder, plain and raw variants."""

from __future__ import annotations

import enum

from .imagedata import (
    FormatError,
    Frame,
    ImageData,
    Pixmap,
    PixmapFormat,
    UnsupportedFormatError,
    argb,
)

_INT_MAX = 0x7FFFFFFF
_INT_MAX_DIGITS = 10
_UINT8_MAX = 0xFF
_UINT16_MAX = 0xFFFF

_WHITESPACE = b" \t\n\r"
_LINE_END = b"\n\r"
_DIGITS = b"0123456789"

# Bit value 0 is white, 1 is black.
_PBM_COLORS = (0xFFFFFFFF, 0xFF000000)


class _Kind(enum.Enum):
    PBM = "B"
    PGM = "G"
    PPM = "P"


_TYPES = {
    ord("1"): (True, _Kind.PBM),
    ord("2"): (True, _Kind.PGM),
    ord("3"): (True, _Kind.PPM),
    ord("4"): (False, _Kind.PBM),
    ord("5"): (False, _Kind.PGM),
    ord("6"): (False, _Kind.PPM),
}


class _Reader:
    """Cursor over the file data for reading ASCII numbers."""

    def __init__(self, data: bytes, pos: int) -> None:
        self.data = data
        self.pos = pos

    def read_int(self, digits: int = 0) -> int:
        """Read a non-negative integer, skipping whitespace and comments.

        At most ``digits`` digits are consumed (10 when zero).
        """
        digits = digits or _INT_MAX_DIGITS
        data = self.data
        size = len(data)
        pos = self.pos

        while pos < size:
            char = data[pos]
            if char == ord("#"):
                while pos < size and data[pos] not in _LINE_END:
                    pos += 1
            elif char in _WHITESPACE:
                pos += 1
            else:
                break

        if pos >= size:
            self.pos = pos
            raise FormatError("unexpected end of PNM data")
        if data[pos] not in _DIGITS:
            self.pos = pos
            raise FormatError("invalid character in PNM number")

        value = 0
        count = 0
        while pos < size and data[pos] in _DIGITS and count < digits:
            value = value * 10 + (data[pos] - ord("0"))
            if value > _INT_MAX:
                raise FormatError("PNM number is out of range")
            pos += 1
            count += 1

        self.pos = pos
        return value


def _check(value: int, maxval: int) -> int:
    if value > maxval:
        raise FormatError("PNM sample exceeds maximum value")
    return value


def _scale(value: int, maxval: int) -> int:
    if maxval == _UINT8_MAX:
        return value
    return (value * _UINT8_MAX + maxval // 2) // maxval


def _gray(value: int, maxval: int) -> int:
    v = _scale(value, maxval)
    return argb(0xFF, v, v, v)


def _color(r: int, g: int, b: int, maxval: int) -> int:
    return argb(0xFF, _scale(r, maxval), _scale(g, maxval), _scale(b, maxval))


def _decode_plain(
    reader: _Reader, kind: _Kind, width: int, height: int, maxval: int
) -> list[int]:
    pixels: list[int] = []
    for _ in range(width * height):
        if kind is _Kind.PBM:
            bit = _check(reader.read_int(1), maxval)
            pixels.append(_PBM_COLORS[bit])
        elif kind is _Kind.PGM:
            value = _check(reader.read_int(), maxval)
            pixels.append(_gray(value, maxval))
        else:
            r = _check(reader.read_int(), maxval)
            g = _check(reader.read_int(), maxval)
            b = _check(reader.read_int(), maxval)
            pixels.append(_color(r, g, b, maxval))
    return pixels


def _decode_raw(
    data: bytes, pos: int, kind: _Kind, width: int, height: int, maxval: int
) -> list[int]:
    bpc = 1 if maxval <= _UINT8_MAX else 2
    if kind is _Kind.PBM:
        row_size = (width + 7) // 8
    else:
        row_size = width * bpc * (1 if kind is _Kind.PGM else 3)
    if len(data) - pos < height * row_size:
        raise FormatError("PNM pixel data is truncated")

    pixels: list[int] = []
    for y in range(height):
        start = pos + y * row_size
        row = data[start : start + row_size]
        for x in range(width):
            if kind is _Kind.PBM:
                bit = (row[x // 8] >> (7 - x % 8)) & 1
                pixels.append(_PBM_COLORS[bit])
            elif kind is _Kind.PGM:
                value = row[x] if bpc == 1 else row[x] << 8 | row[x + 1]
                pixels.append(_gray(_check(value, maxval), maxval))
            else:
                base = x * 3
                if bpc == 1:
                    r, g, b = row[base], row[base + 1], row[base + 2]
                else:
                    r = row[base] << 8 | row[base + 1]
                    g = row[base + 2] << 8 | row[base + 3]
                    b = row[base + 4] << 8 | row[base + 5]
                if r > maxval or g > maxval or b > maxval:
                    raise FormatError("PNM sample exceeds maximum value")
                pixels.append(_color(r, g, b, maxval))
    return pixels


def decode_pnm(data: bytes) -> ImageData:
    """Decode a PBM, PGM or PPM image in ASCII (P1-P3) or raw (P4-P6) form."""
    data = bytes(data)
    if len(data) < 2 or data[0] != ord("P") or data[1] not in _TYPES:
        raise UnsupportedFormatError("not a PNM image")
    plain, kind = _TYPES[data[1]]

    reader = _Reader(data, 2)
    width = reader.read_int()
    height = reader.read_int()
    if kind is _Kind.PBM:
        maxval = 1
    else:
        maxval = reader.read_int()
        if maxval == 0 or maxval > _UINT16_MAX:
            raise FormatError("invalid PNM maximum value")

    if not plain:
        # a single whitespace separates the header from the raster
        if reader.pos >= len(data) or data[reader.pos] not in _WHITESPACE:
            raise FormatError("missing whitespace after PNM header")
        reader.pos += 1

    if width == 0 or height == 0:
        raise FormatError("invalid PNM image size")

    if plain:
        pixels = _decode_plain(reader, kind, width, height, maxval)
    else:
        pixels = _decode_raw(data, reader.pos, kind, width, height, maxval)

    pixmap = Pixmap(PixmapFormat.XRGB, width, height, pixels)
    description = f"P{kind.value}M ({'ASCII' if plain else 'raw'})"
    return ImageData(frames=[Frame(pixmap)], format=description)