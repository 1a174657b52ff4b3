"""Farbfeld image decoder."""

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

_SIGNATURE = b"farbfeld"
_HEADER = struct.Struct(">8sII")
_PIXEL_SIZE = 8


def decode_farbfeld(data: bytes) -> ImageData:
    """Decode a Farbfeld image.

    Each 16-bit channel is reduced to its most significant byte. Pixels
    missing from truncated data stay zero.
    """
    data = bytes(data)
    if len(data) < _HEADER.size or data[: len(_SIGNATURE)] != _SIGNATURE:
        raise UnsupportedFormatError("not a Farbfeld image")

    _, width, height = _HEADER.unpack_from(data)
    if width == 0 or height == 0:
        raise FormatError("invalid Farbfeld image size")

    payload = data[_HEADER.size :]
    total = min(width * height, len(payload) // _PIXEL_SIZE)
    # Big-endian 16-bit channels: the first byte of each is the high byte.
    pixels = [
        argb(payload[pos + 6], payload[pos], payload[pos + 2], payload[pos + 4])
        for pos in range(0, total * _PIXEL_SIZE, _PIXEL_SIZE)
    ]
    pixels.extend([0] * (width * height - total))

    pixmap = Pixmap(PixmapFormat.ARGB, width, height, pixels)
    return ImageData(frames=[Frame(pixmap)], format="Farbfeld")