"""Truevision TGA image decoder."""

from __future__ import annotations

import struct
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

_HEADER = struct.Struct("<BBBHHBHHHHBB")

_COLORMAP_FLAG = 1

_UNC_CM = 1
_UNC_TC = 2
_UNC_GS = 3
_RLE_CM = 9
_RLE_TC = 10
_RLE_GS = 11

_TYPE_NAMES = {
    _UNC_CM: "uncompressed color-mapped",
    _UNC_TC: "uncompressed true-color",
    _UNC_GS: "uncompressed grayscale",
    _RLE_CM: "RLE color-mapped",
    _RLE_TC: "RLE true-color",
    _RLE_GS: "RLE grayscale",
}
_COLOR_MAPPED = frozenset({_UNC_CM, _RLE_CM})
_UNCOMPRESSED = frozenset({_UNC_CM, _UNC_TC, _UNC_GS})

_ORDER_R2L = 1 << 4
_ORDER_T2B = 1 << 5

_PACKET_RLE = 1 << 7
_PACKET_LEN = 0x7F

_SUPPORTED_BPP = frozenset({8, 15, 16, 24, 32})


class _Header(NamedTuple):
    id_len: int
    clrmap_type: int
    image_type: int
    cm_index: int
    cm_size: int
    cm_bpc: int
    origin_x: int
    origin_y: int
    width: int
    height: int
    bpp: int
    desc: int


def _bytes_per(bits: int) -> int:
    return bits // 8 + (1 if bits % 8 else 0)


def _get_pixel(data: bytes, pos: int, bpp: int) -> int:
    """Read one pixel of depth ``bpp`` at ``pos``."""
    if bpp == 8:
        v = data[pos]
        return argb(0xFF, v, v, v)
    if bpp in (15, 16):
        lo, hi = data[pos], data[pos + 1]
        return argb(
            0xFF,
            (hi & 0x3E) << 2,
            lo & 0xF8,
            (lo << 5) | ((hi & 0xC0) >> 2),
        )
    if bpp == 24:
        return argb(0xFF, data[pos + 2], data[pos + 1], data[pos])
    return int.from_bytes(data[pos : pos + 4].ljust(4, b"\0"), "little")


class _Decoder:
    def __init__(self, header: _Header, colormap: bytes | None, data: bytes):
        self.header = header
        self.colormap = colormap
        self.data = data
        self.pixel_size = _bytes_per(header.bpp)
        self.entry_size = _bytes_per(header.cm_bpc)
        self.total = header.width * header.height

    def _color(self, pos: int) -> int:
        if self.colormap is None:
            return _get_pixel(self.data, pos, self.header.bpp)
        entry = self.entry_size * self.data[pos]
        if entry + self.entry_size > len(self.colormap):
            raise FormatError("TGA color map index out of range")
        return _get_pixel(self.colormap, entry, self.header.cm_bpc)

    def uncompressed(self) -> list[int]:
        if self.total * self.pixel_size > len(self.data):
            raise FormatError("TGA pixel data is truncated")
        if self.header.bpp == 32:
            return list(struct.unpack_from(f"<{self.total}I", self.data))
        return [self._color(i * self.pixel_size) for i in range(self.total)]

    def rle(self) -> list[int]:
        data = self.data
        size = len(data)
        pixels: list[int] = []
        pos = 0
        while len(pixels) < self.total:
            if pos >= size:
                raise FormatError("TGA RLE data is truncated")
            pack = data[pos]
            pos += 1
            is_rle = bool(pack & _PACKET_RLE)
            for _ in range((pack & _PACKET_LEN) + 1):
                if pos + self.pixel_size > size:
                    raise FormatError("TGA RLE data is truncated")
                color = self._color(pos)
                if len(pixels) >= self.total:
                    break
                pixels.append(color)
                if not is_rle:
                    pos += self.pixel_size
            if is_rle:
                pos += self.pixel_size
        return pixels


def decode_tga(data: bytes) -> ImageData:
    """Decode an uncompressed or RLE compressed TGA image."""
    data = bytes(data)
    size = len(data)
    if size < _HEADER.size:
        raise UnsupportedFormatError("not a TGA image")
    header = _Header._make(_HEADER.unpack_from(data))
    if header.image_type not in _TYPE_NAMES:
        raise UnsupportedFormatError("not a TGA image")
    if header.width == 0 or header.height == 0 or header.bpp not in _SUPPORTED_BPP:
        raise UnsupportedFormatError("unsupported TGA image parameters")

    colormap_start = _HEADER.size + header.id_len
    colormap_size = 0
    if header.image_type in _COLOR_MAPPED:
        if (
            not header.clrmap_type & _COLORMAP_FLAG
            or not header.cm_size
            or not header.cm_bpc
        ):
            raise UnsupportedFormatError("TGA color map is missing")
        colormap_size = header.cm_size * _bytes_per(header.cm_bpc)
    elif header.clrmap_type & _COLORMAP_FLAG or header.cm_size or header.cm_bpc:
        raise UnsupportedFormatError("unexpected TGA color map")

    data_offset = colormap_start + colormap_size
    if data_offset >= size:
        raise UnsupportedFormatError("TGA image has no pixel data")

    colormap = (
        data[colormap_start:data_offset]
        if header.image_type in _COLOR_MAPPED
        else None
    )
    decoder = _Decoder(header, colormap, data[data_offset:])
    if header.image_type in _UNCOMPRESSED:
        pixels = decoder.uncompressed()
    else:
        pixels = decoder.rle()

    fmt = PixmapFormat.ARGB if header.bpp == 32 else PixmapFormat.XRGB
    pixmap = Pixmap(fmt, header.width, header.height, pixels)
    if not header.desc & _ORDER_T2B:
        pixmap.flip_vertical()
    if header.desc & _ORDER_R2L:
        pixmap.flip_horizontal()

    description = f"TARGA {header.bpp}bpp, {_TYPE_NAMES[header.image_type]}"
    return ImageData(frames=[Frame(pixmap)], format=description)