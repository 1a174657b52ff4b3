import struct

import pytest

from pixload.dicom import decode_dicom
from pixload.imagedata import (
    FormatError,
    PixmapFormat,
    UnsupportedFormatError,
    argb,
)

LONG_VRS = {b"OB", b"OW", b"SQ", b"UN", b"UT"}


def element(group, elem, vr, payload):
    head = struct.pack("<HH", group, elem) + vr
    if vr in LONG_VRS:
        head += struct.pack("<HI", 0, len(payload))
    else:
        head += struct.pack("<H", len(payload))
    return head + payload


def us(elem, value):
    return element(0x0028, elem, b"US", struct.pack("<H", value))


def ss(elem, value):
    return element(0x0028, elem, b"SS", struct.pack("<h", value))


def make_dicom(width, height, values, spp=1, bpp=16, px_min=None, px_max=None):
    body = us(0x0002, spp) + us(0x0010, height) + us(0x0011, width)
    body += us(0x0100, bpp)
    if px_min is not None:
        body += ss(0x0106, px_min)
    if px_max is not None:
        body += ss(0x0107, px_max)
    body += element(0x7FE0, 0x0010, b"OW", struct.pack(f"<{len(values)}h", *values))
    return bytes(128) + b"DICM" + body


def gray(value):
    return argb(0xFF, value, value, value)


def test_range_with_unit_coefficient():
    img = decode_dicom(make_dicom(2, 1, [10, 20], px_min=0, px_max=256))
    pm = img.frames[0].pixmap
    assert (pm.width, pm.height) == (2, 1)
    assert pm.format is PixmapFormat.XRGB
    assert pm.data == [gray(10), gray(20)]
    assert img.format == "DICOM"


def test_negative_values_shifted_by_minimum():
    pm = decode_dicom(make_dicom(1, 2, [-5, -10], px_min=-10, px_max=246)).frames[0].pixmap
    assert pm.pixel(0, 0) == gray(5)
    assert pm.pixel(0, 1) == gray(0)


def test_range_computed_from_data_is_grayscale():
    values = [0, 25, 50, 75, 100, 30]
    pm = decode_dicom(make_dicom(3, 2, values)).frames[0].pixmap
    assert pm.pixel(0, 0) == gray(0)
    for px in pm.data:
        assert px >> 24 == 0xFF
        assert (px >> 16) & 0xFF == (px >> 8) & 0xFF == px & 0xFF


def test_flat_image():
    pm = decode_dicom(make_dicom(2, 2, [7, 7, 7, 7])).frames[0].pixmap
    assert pm.data == [gray(0)] * 4


@pytest.mark.parametrize(
    "data",
    [b"", bytes(131), bytes(128) + b"DICX" + bytes(16)],
)
def test_not_dicom(data):
    with pytest.raises(UnsupportedFormatError):
        decode_dicom(data)


def test_color_image_rejected():
    with pytest.raises(FormatError):
        decode_dicom(make_dicom(1, 1, [1], spp=3))


def test_8bit_image_rejected():
    data = bytes(128) + b"DICM" + us(0x0002, 1) + us(0x0010, 1) + us(0x0011, 2)
    data += us(0x0100, 8) + element(0x7FE0, 0x0010, b"OW", bytes(2))
    with pytest.raises(FormatError):
        decode_dicom(data)


def test_size_mismatch_rejected():
    with pytest.raises(FormatError):
        decode_dicom(make_dicom(2, 2, [1, 2, 3]))


def test_missing_pixel_data_rejected():
    data = bytes(128) + b"DICM" + us(0x0002, 1) + us(0x0010, 1) + us(0x0011, 1)
    with pytest.raises(FormatError):
        decode_dicom(data + us(0x0100, 16))


def test_wrong_value_representation_ignored():
    data = bytes(128) + b"DICM" + us(0x0002, 1)
    data += element(0x0028, 0x0010, b"UL", struct.pack("<I", 1))
    data += us(0x0011, 1) + us(0x0100, 16)
    data += element(0x7FE0, 0x0010, b"OW", struct.pack("<h", 1))
    with pytest.raises(FormatError):
        decode_dicom(data)


def test_truncated_element_stops_parsing():
    data = make_dicom(1, 1, [3], px_min=0, px_max=256) + b"\x28\x00"
    pm = decode_dicom(data).frames[0].pixmap
    assert pm.data == [gray(3)]