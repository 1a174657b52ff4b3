"""QOI image decoder."""

from __future__ import annotations

import struct

from .imagedata import (
    FormatError,
    Frame,
    ImageData,
    Pixmap,
    PixmapFormat,
    UnsupportedFormatError,
    argb,
)

_SIGNATURE = b"qoif"
_HEADER = struct.Struct(">4sIIBB")

_OP_INDEX = 0x00
_OP_DIFF = 0x40
_OP_LUMA = 0x80
_OP_RUN = 0xC0
_OP_RGB = 0xFE
_OP_RGBA = 0xFF
_MASK_2 = 0xC0

_CLRMAP_SIZE = 64


def decode_qoi(data: bytes) -> ImageData:
    """Decode a QOI image.

    Pixels beyond the end of the chunk stream stay zero; a chunk cut short
    by the end of data raises :class:`FormatError`.
    """
    data = bytes(data)
    size = len(data)
    if size < _HEADER.size or data[: len(_SIGNATURE)] != _SIGNATURE:
        raise UnsupportedFormatError("not a QOI image")

    _, width, height, channels, _colorspace = _HEADER.unpack_from(data)
    if width == 0 or height == 0 or channels not in (3, 4):
        raise FormatError("invalid QOI header")

    total = width * height
    color_map = [0] * _CLRMAP_SIZE
    r = g = b = 0
    a = 0xFF
    run = 0
    pos = _HEADER.size
    pixels: list[int] = []

    while len(pixels) < total:
        if run > 0:
            run -= 1
        else:
            if pos >= size:
                break
            tag = data[pos]
            pos += 1

            if tag == _OP_RGB:
                if pos + 3 >= size:
                    raise FormatError("truncated QOI RGB chunk")
                r, g, b = data[pos : pos + 3]
                pos += 3
            elif tag == _OP_RGBA:
                if pos + 4 >= size:
                    raise FormatError("truncated QOI RGBA chunk")
                r, g, b, a = data[pos : pos + 4]
                pos += 4
            else:
                op = tag & _MASK_2
                if op == _OP_INDEX:
                    color = color_map[tag & 0x3F]
                    a = (color >> 24) & 0xFF
                    r = (color >> 16) & 0xFF
                    g = (color >> 8) & 0xFF
                    b = color & 0xFF
                elif op == _OP_DIFF:
                    r = (r + ((tag >> 4) & 3) - 2) & 0xFF
                    g = (g + ((tag >> 2) & 3) - 2) & 0xFF
                    b = (b + (tag & 3) - 2) & 0xFF
                elif op == _OP_LUMA:
                    if pos + 1 >= size:
                        raise FormatError("truncated QOI LUMA chunk")
                    diff = data[pos]
                    pos += 1
                    diff_green = (tag & 0x3F) - 32
                    r = (r + diff_green - 8 + ((diff >> 4) & 0x0F)) & 0xFF
                    g = (g + diff_green) & 0xFF
                    b = (b + diff_green - 8 + (diff & 0x0F)) & 0xFF
                else:
                    run = tag & 0x3F
            index = (r * 3 + g * 5 + b * 7 + a * 11) % _CLRMAP_SIZE
            color_map[index] = argb(a, r, g, b)
        pixels.append(argb(a, r, g, b))

    pixels.extend([0] * (total - len(pixels)))

    fmt = PixmapFormat.ARGB if channels == 4 else PixmapFormat.XRGB
    pixmap = Pixmap(fmt, width, height, pixels)
    return ImageData(frames=[Frame(pixmap)], format=f"QOI {channels * 8}bpp")