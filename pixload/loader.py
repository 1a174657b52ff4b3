"""Image loading: format detection and reading from files and streams."""

from __future__ import annotations

import os
import stat
from collections.abc import Callable
from dataclasses import dataclass
from typing import BinaryIO

from . import fs
from .bmp import decode_bmp
from .dicom import decode_dicom
from .farbfeld import decode_farbfeld
from .imagedata import Frame, ImageData, ImageError, UnsupportedFormatError
from .pnm import decode_pnm
from .qoi import decode_qoi
from .tga import decode_tga

Decoder = Callable[[bytes], ImageData]

# TGA has no real signature, so it must stay the last one to try.
_DECODERS: tuple[Decoder, ...] = (
    decode_bmp,
    decode_pnm,
    decode_dicom,
    decode_qoi,
    decode_farbfeld,
    decode_tga,
)

_FORMATS = "bmp, pnm, farbfeld, tga, dicom"

_STREAM_CHUNK = 256 * 1024


@dataclass
class LoadedImage:
    """An image decoded from some source, with common file properties."""

    source: str
    data: ImageData
    file_size: int
    parent: str

    @property
    def frames(self) -> list[Frame]:
        """Decoded frames of the image."""
        return self.data.frames

    @property
    def format(self) -> str:
        """Human readable description of the image format."""
        return self.data.format


def image_formats() -> str:
    """Return a comma separated list of supported image formats."""
    return _FORMATS


def decode(data: bytes) -> ImageData:
    """Decode image data with the first decoder that recognises it.

    Raises :class:`UnsupportedFormatError` if no decoder knows the format and
    :class:`FormatError` if the recognising decoder finds the data malformed.
    """
    data = bytes(data)
    for decoder in _DECODERS:
        try:
            return decoder(data)
        except UnsupportedFormatError:
            continue
    raise UnsupportedFormatError("unsupported image format")


def _build(source: str, data: bytes, parent: str) -> LoadedImage:
    image = decode(data)
    return LoadedImage(source=source, data=image, file_size=len(data), parent=parent)


def load_from_memory(source: str, data: bytes) -> LoadedImage:
    """Decode ``data`` that was read from the file system path ``source``."""
    return _build(source, data, fs.parent(source) or "")


def load_from_file(path: str | os.PathLike[str]) -> LoadedImage:
    """Read and decode an image file.

    Raises :class:`ImageError` if the path is not a readable regular file.
    """
    path = os.fspath(path)
    try:
        st = os.stat(path)
        if not stat.S_ISREG(st.st_mode):
            raise ImageError(f"not a regular file: {path}")
        with open(path, "rb") as stream:
            data = stream.read()
    except OSError as exc:
        raise ImageError(f"unable to read {path}: {exc}") from exc
    return load_from_memory(path, data)


def load_from_stream(stream: BinaryIO, source: str = "stdin") -> LoadedImage:
    """Read a binary stream to its end and decode the image it holds."""
    chunks: list[bytes] = []
    while True:
        chunk = stream.read(_STREAM_CHUNK)
        if chunk is None:  # non-blocking stream with no data yet
            continue
        if not chunk:
            break
        chunks.append(chunk)
    return _build(source, b"".join(chunks), "")