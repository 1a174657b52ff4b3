"""BMP image decoder."""

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

_TYPE = b"BM"

_BI_RGB = 0
_BI_RLE8 = 1
_BI_RLE4 = 2
_BI_BITFIELDS = 3

_RLE_ESC_EOL = 0
_RLE_ESC_EOF = 1
_RLE_ESC_DELTA = 2

_MASK555 = (0x7C00, 0x03E0, 0x001F, 0x0000)

_BITMAPINFOHEADER_SIZE = 0x28
_BITMAPINFOV2HEADER_SIZE = 0x34

_ALPHA = 0xFF000000

_FILE_HEADER = struct.Struct("<2sIII")
_INFO_HEADER = struct.Struct("<IiiHHIIIIII")


class _Info(NamedTuple):
    dib_size: int
    width: int
    height: int
    planes: int
    bpp: int
    compression: int
    img_size: int
    hres: int
    vres: int
    clr_palette: int
    clr_important: int


def _u32(data: bytes, pos: int) -> int:
    if pos + 4 > len(data):
        return 0
    return int.from_bytes(data[pos : pos + 4], "little")


def _right_zeros(value: int) -> int:
    if value == 0:
        return 32
    return (value & -value).bit_length() - 1


def _mask_shift(mask: int) -> int:
    """Shift for a channel mask: positive means right, negative left."""
    return _right_zeros(mask) + bin(mask).count("1") - 8


def _extract(value: int, mask: int, shift: int) -> int:
    value &= mask
    value = value >> shift if shift > 0 else value << -shift
    return value & 0xFF


def _stride(info: _Info) -> int:
    if info.width < 0:
        raise FormatError("negative BMP width is not supported")
    return 4 * ((info.width * info.bpp + 31) // 32)


def _decode_masked(
    info: _Info,
    width: int,
    height: int,
    masks: tuple[int, int, int, int],
    buffer: bytes,
) -> list[int]:
    if not any(masks):
        masks = _MASK555
    mask_r, mask_g, mask_b, mask_a = masks
    shift_r, shift_g, shift_b, shift_a = (_mask_shift(m) for m in masks)

    stride = _stride(info)
    if len(buffer) < height * stride:
        raise FormatError("BMP pixel data is truncated")
    if info.bpp not in (16, 32):
        raise FormatError(f"unsupported masked BMP depth: {info.bpp}")

    step = info.bpp // 8
    pixels: list[int] = []
    for y in range(height):
        row = y * stride
        for x in range(width):
            pos = row + x * step
            value = int.from_bytes(buffer[pos : pos + step], "little")
            r = _extract(value, mask_r, shift_r)
            g = _extract(value, mask_g, shift_g)
            b = _extract(value, mask_b, shift_b)
            a = _extract(value, mask_a, shift_a) if mask_a else 0xFF
            pixels.append(argb(a, r, g, b))
    return pixels


def _decode_rle(
    info: _Info, width: int, height: int, palette: list[int], buffer: bytes
) -> list[int]:
    pixels = [0] * (width * height)
    size = len(buffer)
    rle8 = info.compression == _BI_RLE8
    x = y = 0
    pos = 0

    while pos + 2 <= size:
        count = buffer[pos]
        code = buffer[pos + 1]
        pos += 2

        if count == 0:
            if code == _RLE_ESC_EOL:
                x = 0
                y += 1
            elif code == _RLE_ESC_EOF:
                return [px | _ALPHA for px in pixels]
            elif code == _RLE_ESC_DELTA:
                if pos + 2 >= size:
                    raise FormatError("truncated BMP RLE delta")
                x += buffer[pos]
                y += buffer[pos + 1]
                pos += 2
            else:
                # absolute mode
                needed = code if rle8 else code // 2
                if pos + needed > size:
                    raise FormatError("truncated BMP RLE absolute run")
                if x + code > width or y >= height:
                    raise FormatError("BMP RLE run out of image bounds")
                val = 0
                for i in range(code):
                    if rle8 or not i & 1:
                        if pos >= size:
                            raise FormatError("truncated BMP RLE absolute run")
                        val = buffer[pos]
                        pos += 1
                    if rle8:
                        index = val
                    elif i & 1:
                        index = val & 0x0F
                    else:
                        index = val >> 4
                    if index >= len(palette):
                        raise FormatError("BMP palette index out of range")
                    pixels[y * width + x] = palette[index]
                    x += 1
                if (rle8 and code & 1) or (not rle8 and (code & 3) in (1, 2)):
                    pos += 1  # runs are padded to 16 bits
        else:
            # encoded mode
            if x + count > width:
                count = max(0, width - x)
            if y >= height:
                raise FormatError("BMP RLE run out of image bounds")
            if rle8:
                indices = (code, code)
            else:
                indices = (code >> 4, code & 0x0F)
            if max(indices) >= len(palette):
                raise FormatError("BMP palette index out of range")
            for i in range(count):
                pixels[y * width + x] = palette[indices[i & 1]]
                x += 1

    raise FormatError("BMP RLE data has no end marker")


def _decode_rgb(
    info: _Info, width: int, height: int, palette: list[int], buffer: bytes
) -> list[int]:
    stride = _stride(info)
    if len(buffer) < height * stride:
        raise FormatError("BMP pixel data is truncated")

    bpp = info.bpp
    pixels: list[int] = []
    for y in range(height):
        row = buffer[y * stride : (y + 1) * stride]
        for x in range(width):
            if bpp in (32, 24):
                pos = x * (bpp // 8)
                value = int.from_bytes(row[pos : pos + 3], "little")
                pixels.append(_ALPHA | value)
            elif bpp in (8, 4, 1):
                bits_offset = x * bpp
                byte_offset, start_bit = divmod(bits_offset, 8)
                index = (row[byte_offset] >> (8 - bpp - start_bit)) & (
                    0xFF >> (8 - bpp)
                )
                if index >= len(palette):
                    raise FormatError("BMP palette index out of range")
                pixels.append(_ALPHA | palette[index])
            else:
                raise FormatError(f"unsupported BMP depth: {bpp}")
    return pixels


def decode_bmp(data: bytes) -> ImageData:
    """Decode a BMP image (uncompressed, RLE4/RLE8 or bit-field masked)."""
    data = bytes(data)
    size = len(data)
    if size < _FILE_HEADER.size or data[:2] != _TYPE:
        raise UnsupportedFormatError("not a BMP image")

    _, _file_size, _reserved, offset = _FILE_HEADER.unpack_from(data)
    if offset >= size or offset < _FILE_HEADER.size + _INFO_HEADER.size:
        raise FormatError("invalid BMP pixel data offset")
    info = _Info._make(_INFO_HEADER.unpack_from(data, _FILE_HEADER.size))
    if info.dib_size > offset:
        raise FormatError("invalid BMP header size")

    width = abs(info.width)
    height = abs(info.height)
    if width == 0 or height == 0:
        raise FormatError("invalid BMP image size")

    color_start = _FILE_HEADER.size + info.dib_size
    color_size = max(0, offset - _FILE_HEADER.size - info.dib_size)
    count = color_size // 4
    palette = list(struct.unpack_from(f"<{count}I", data, color_start))

    if info.dib_size > _BITMAPINFOHEADER_SIZE:
        mask_pos: int | None = _FILE_HEADER.size + _INFO_HEADER.size
    elif color_size >= 12:
        mask_pos = color_start
    else:
        mask_pos = None

    if mask_pos is None:
        masks = (0, 0, 0, 0)
    else:
        alpha = (
            _u32(data, mask_pos + 12)
            if info.dib_size > _BITMAPINFOV2HEADER_SIZE
            else 0
        )
        masks = (
            _u32(data, mask_pos),
            _u32(data, mask_pos + 4),
            _u32(data, mask_pos + 8),
            alpha,
        )

    buffer = data[offset:]
    if info.compression == _BI_BITFIELDS or info.bpp == 16:
        pixels = _decode_masked(info, width, height, masks, buffer)
        kind = "masked"
    elif info.compression in (_BI_RLE8, _BI_RLE4):
        pixels = _decode_rle(info, width, height, palette, buffer)
        kind = "RLE"
    elif info.compression == _BI_RGB:
        pixels = _decode_rgb(info, width, height, palette, buffer)
        kind = "uncompressed"
    else:
        raise FormatError(f"unsupported BMP compression: {info.compression}")

    fmt = PixmapFormat.ARGB if info.bpp == 32 else PixmapFormat.XRGB
    pixmap = Pixmap(fmt, width, height, pixels)
    if info.height > 0:
        pixmap.flip_vertical()

    return ImageData(frames=[Frame(pixmap)], format=f"BMP {info.bpp}bit {kind}")