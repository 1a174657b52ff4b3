"""DICOM (monochrome, 16-bit) image decoder."""

from __future__ import annotations

import struct
from collections.abc import Iterator
from dataclasses import dataclass
from typing import NamedTuple

from .imagedata import (
    FormatError,
    Frame,
    ImageData,
    Pixmap,
    PixmapFormat,
    UnsupportedFormatError,
    argb,
)

_SIGNATURE = b"DICM"
_SIGNATURE_OFFSET = 128

_TAG_SAMPLES_PER_PIXEL = 0x00280002
_TAG_ROWS = 0x00280010
_TAG_COLUMNS = 0x00280011
_TAG_BIT_ALLOCATED = 0x00280100
_TAG_SMALL_PIXEL_VAL = 0x00280106
_TAG_BIG_PIXEL_VAL = 0x00280107
_TAG_PIXEL_DATA = 0x7FE00010

_VR_US = b"US"
_VR_SS = b"SS"
_VR_OW = b"OW"
_LONG_VRS = frozenset({b"OB", b"OW", b"SQ", b"UN", b"UT"})

_INT16_MAX = 0x7FFF


class _Element(NamedTuple):
    tag: int
    vr: bytes
    value: bytes | None


@dataclass
class _Description:
    spp: int = 0
    bpp: int = 0
    width: int = 0
    height: int = 0
    px_min: int = 0
    px_max: int = 0
    data: bytes | None = None


def _elements(data: bytes, pos: int) -> Iterator[_Element]:
    """Yield data elements until the stream ends or an element is cut short."""
    size = len(data)
    while True:
        if pos + 4 > size:
            return
        group, element = struct.unpack_from("<HH", data, pos)
        pos += 4
        if pos + 2 > size:
            return
        vr = data[pos : pos + 2]
        pos += 2
        if pos + 2 > size:
            return
        (length,) = struct.unpack_from("<H", data, pos)
        pos += 2
        if length == 0 and vr in _LONG_VRS:
            if pos + 4 > size:
                return
            (length,) = struct.unpack_from("<I", data, pos)
            pos += 4
        if length == 0:
            value = None
        else:
            if pos + length > size:
                return
            value = data[pos : pos + length]
            pos += length
        yield _Element(group << 16 | element, vr, value)


def _int16(value: bytes, signed: bool) -> int:
    return int.from_bytes(value[:2].ljust(2, b"\0"), "little", signed=signed)


def _describe(data: bytes) -> _Description:
    desc = _Description()
    start = _SIGNATURE_OFFSET + len(_SIGNATURE)
    for el in _elements(data, start):
        if el.value is None:
            continue
        if el.vr == _VR_US:
            if el.tag == _TAG_SAMPLES_PER_PIXEL:
                desc.spp = _int16(el.value, False)
            elif el.tag == _TAG_ROWS:
                desc.height = _int16(el.value, False)
            elif el.tag == _TAG_COLUMNS:
                desc.width = _int16(el.value, False)
            elif el.tag == _TAG_BIT_ALLOCATED:
                desc.bpp = _int16(el.value, False)
        elif el.vr == _VR_SS:
            if el.tag == _TAG_SMALL_PIXEL_VAL:
                desc.px_min = _int16(el.value, True)
            elif el.tag == _TAG_BIG_PIXEL_VAL:
                desc.px_max = _int16(el.value, True)
        elif el.vr == _VR_OW and el.tag == _TAG_PIXEL_DATA:
            desc.data = el.value

    if (
        desc.data is None
        or desc.height == 0
        or desc.width == 0
        or len(desc.data) != desc.width * desc.height * (desc.bpp // 8)
    ):
        raise FormatError("invalid DICOM image description")
    return desc


def _wrap16(value: int) -> int:
    return (value + 0x8000) % 0x10000 - 0x8000


def decode_dicom(data: bytes) -> ImageData:
    """Decode a monochrome 16-bit DICOM image to 8-bit grayscale."""
    data = bytes(data)
    end = _SIGNATURE_OFFSET + len(_SIGNATURE)
    if len(data) < end or data[_SIGNATURE_OFFSET:end] != _SIGNATURE:
        raise UnsupportedFormatError("not a DICOM image")

    desc = _describe(data)
    if desc.spp != 1 or desc.bpp != 16:
        raise FormatError("only monochrome 16-bit DICOM images are supported")

    assert desc.data is not None
    total = desc.width * desc.height
    values = struct.unpack(f"<{total}h", desc.data)

    px_min, px_max = desc.px_min, desc.px_max
    if px_max == 0 or px_max <= px_min:
        px_min = min(_INT16_MAX, *values) if values else _INT16_MAX
        px_max = max(px_max, *values) if values else px_max

    coeff = 1.0 if px_max <= px_min else 256.0 / (px_max - px_min)

    pixels = []
    for value in values:
        color = _wrap16(value - px_min)
        color = _wrap16(int(color * coeff))
        pixels.append(argb(0xFF, color, color, color))

    pixmap = Pixmap(PixmapFormat.XRGB, desc.width, desc.height, pixels)
    return ImageData(frames=[Frame(pixmap)], format="DICOM")