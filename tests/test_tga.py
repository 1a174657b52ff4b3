import struct

import pytest

from pixload.imagedata import FormatError, PixmapFormat, UnsupportedFormatError, argb
from pixload.tga import decode_tga

TOP_DOWN = 0x20


def header(
    image_type,
    width,
    height,
    bpp,
    desc=TOP_DOWN,
    id_len=0,
    clrmap_type=0,
    cm_size=0,
    cm_bpc=0,
):
    return struct.pack(
        "<BBBHHBHHHHBB",
        id_len,
        clrmap_type,
        image_type,
        0,
        cm_size,
        cm_bpc,
        0,
        0,
        width,
        height,
        bpp,
        desc,
    )


def test_uncompressed_true_color():
    img = decode_tga(header(2, 2, 1, 24) + bytes([3, 2, 1, 6, 5, 4]))
    pm = img.frames[0].pixmap
    assert pm.data == [argb(255, 1, 2, 3), argb(255, 4, 5, 6)]
    assert pm.format is PixmapFormat.XRGB
    assert img.format == "TARGA 24bpp, uncompressed true-color"


def test_bottom_up_is_flipped():
    img = decode_tga(header(2, 1, 2, 24, desc=0) + bytes([3, 2, 1, 6, 5, 4]))
    assert img.frames[0].pixmap.data == [argb(255, 4, 5, 6), argb(255, 1, 2, 3)]


def test_right_to_left_is_flipped():
    data = header(2, 2, 1, 24, desc=TOP_DOWN | 0x10) + bytes([3, 2, 1, 6, 5, 4])
    img = decode_tga(data)
    assert img.frames[0].pixmap.data == [argb(255, 4, 5, 6), argb(255, 1, 2, 3)]


def test_grayscale():
    img = decode_tga(header(3, 2, 1, 8) + bytes([0, 200]))
    assert img.frames[0].pixmap.data == [argb(255, 0, 0, 0), argb(255, 200, 200, 200)]
    assert img.format == "TARGA 8bpp, uncompressed grayscale"


def test_32bit_keeps_alpha():
    img = decode_tga(header(2, 1, 1, 32) + bytes([1, 2, 3, 4]))
    pm = img.frames[0].pixmap
    assert pm.data == [argb(4, 3, 2, 1)]
    assert pm.format is PixmapFormat.ARGB


def test_16bit_black():
    img = decode_tga(header(2, 1, 1, 16) + bytes([0, 0]))
    assert img.frames[0].pixmap.data == [argb(255, 0, 0, 0)]


def colormapped(image_type, pixels, id_bytes=b""):
    hdr = header(
        image_type, 2, 1, 8, id_len=len(id_bytes), clrmap_type=1, cm_size=2, cm_bpc=24
    )
    return hdr + id_bytes + bytes([3, 2, 1, 6, 5, 4]) + bytes(pixels)


def test_uncompressed_color_mapped_with_id():
    img = decode_tga(colormapped(1, [1, 0], id_bytes=b"abc"))
    assert img.frames[0].pixmap.data == [argb(255, 4, 5, 6), argb(255, 1, 2, 3)]
    assert img.format == "TARGA 8bpp, uncompressed color-mapped"


def test_color_map_index_out_of_range():
    with pytest.raises(FormatError):
        decode_tga(colormapped(1, [2, 0]))


def test_rle_color_mapped():
    img = decode_tga(colormapped(9, [0x81, 1]))
    assert img.frames[0].pixmap.data == [argb(255, 4, 5, 6)] * 2
    assert img.format == "TARGA 8bpp, RLE color-mapped"


def test_rle_repeat_packet():
    img = decode_tga(header(10, 3, 1, 24) + bytes([0x82, 3, 2, 1]))
    assert img.frames[0].pixmap.data == [argb(255, 1, 2, 3)] * 3
    assert img.format == "TARGA 24bpp, RLE true-color"


def test_rle_raw_packet():
    img = decode_tga(header(10, 2, 1, 24) + bytes([0x01, 3, 2, 1, 6, 5, 4]))
    assert img.frames[0].pixmap.data == [argb(255, 1, 2, 3), argb(255, 4, 5, 6)]


def test_rle_run_longer_than_image_is_cut():
    img = decode_tga(header(10, 1, 1, 24) + bytes([0x83, 3, 2, 1]))
    assert img.frames[0].pixmap.data == [argb(255, 1, 2, 3)]


def test_rle_and_uncompressed_agree():
    raw = [3, 2, 1, 6, 5, 4, 9, 8, 7, 9, 8, 7]
    unc = decode_tga(header(2, 2, 2, 24) + bytes(raw))
    rle = decode_tga(header(10, 2, 2, 24) + bytes([0x01, 3, 2, 1, 6, 5, 4, 0x81, 9, 8, 7]))
    assert unc.frames[0].pixmap.data == rle.frames[0].pixmap.data


@pytest.mark.parametrize(
    "data",
    [
        header(10, 2, 1, 24) + bytes([0x81, 3, 2]),
        header(10, 2, 1, 24) + bytes([0x00, 3, 2, 1]),
        header(2, 2, 1, 24) + bytes(3),
    ],
)
def test_truncated(data):
    with pytest.raises(FormatError):
        decode_tga(data)


@pytest.mark.parametrize(
    "data",
    [
        b"\x00" * 5,
        header(4, 1, 1, 24) + bytes(3),
        header(2, 1, 1, 12) + bytes(3),
        header(2, 0, 1, 24) + bytes(3),
        header(2, 1, 1, 24, clrmap_type=1) + bytes(3),
        header(1, 1, 1, 8, cm_size=1, cm_bpc=24) + bytes(4),
        header(2, 1, 1, 24),
    ],
)
def test_unsupported(data):
    with pytest.raises(UnsupportedFormatError):
        decode_tga(data)