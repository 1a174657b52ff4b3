import struct

import pytest

from pixload.farbfeld import decode_farbfeld
from pixload.imagedata import (
    FormatError,
    PixmapFormat,
    UnsupportedFormatError,
    argb,
)


def _farbfeld(width, height, pixels):
    body = b"".join(struct.pack(">4H", r, g, b, a) for r, g, b, a in pixels)
    return b"farbfeld" + struct.pack(">II", width, height) + body


def test_decodes_pixels_using_high_bytes():
    pixels = [
        (0xFFFF, 0x0000, 0x8000, 0xFFFF),
        (0x1234, 0xABCD, 0x00FF, 0x7F00),
    ]
    img = decode_farbfeld(_farbfeld(2, 1, pixels))
    pm = img.frames[0].pixmap
    assert (pm.width, pm.height) == (2, 1)
    for x, (r, g, b, a) in enumerate(pixels):
        assert pm.pixel(x, 0) == argb(a >> 8, r >> 8, g >> 8, b >> 8)


def test_format_and_pixmap_type():
    img = decode_farbfeld(_farbfeld(1, 1, [(0, 0, 0, 0)]))
    assert img.format == "Farbfeld"
    assert img.frames[0].pixmap.format is PixmapFormat.ARGB
    assert len(img.frames) == 1


def test_truncated_data_leaves_zero_pixels():
    pixels = [(0xFF00, 0xFF00, 0xFF00, 0xFF00)]
    img = decode_farbfeld(_farbfeld(2, 2, pixels))
    pm = img.frames[0].pixmap
    assert pm.pixel(0, 0) == argb(0xFF, 0xFF, 0xFF, 0xFF)
    assert pm.data[1:] == [0, 0, 0]


def test_wrong_signature_is_unsupported():
    data = b"farbfelx" + struct.pack(">II", 1, 1) + bytes(8)
    with pytest.raises(UnsupportedFormatError):
        decode_farbfeld(data)


def test_short_header_is_unsupported():
    with pytest.raises(UnsupportedFormatError):
        decode_farbfeld(b"farbfeld\x00\x00")


def test_zero_size_is_format_error():
    with pytest.raises(FormatError):
        decode_farbfeld(_farbfeld(0, 4, []))