# pixload

Decoders for a handful of simple raster image formats. They are written in
plain Python and have no third-party dependencies:

- BMP: uncompressed (1, 4, 8, 24 and 32 bit), RLE4/RLE8, and bit-field
  masked (16 and 32 bit)
- The PNM family: PBM, PGM and PPM, in both ASCII (`P1`–`P3`) and raw
  (`P4`–`P6`) forms
- Truevision TGA: uncompressed and RLE, true-colour, grayscale and
  colour-mapped
- QOI
- Farbfeld. Each 16-bit channel is reduced to its high byte.
- DICOM: 16-bit monochrome only, scaled to 8-bit grayscale

## Installation

    pip install pixload

## Data model

The classes live in `pixload.imagedata`:

- `Pixmap` holds a `format` (`PixmapFormat.ARGB` or `PixmapFormat.XRGB`),
  a `width`, a `height`, and `data`, a flat list of 32-bit ARGB integers
  stored row by row. `pixel(x, y)` returns one pixel.
  `flip_vertical()` and `flip_horizontal()` mirror the pixmap in place.
- `Frame` holds a `pixmap` and a `duration` in milliseconds.
- `ImageData` holds a list of `frames`, a `format` description such as
  `"QOI 32bpp"` or `"BMP 24bit uncompressed"`, and `info`, a list of
  key/value pairs. `add_info(key, value)` appends an entry to `info`.
- `argb(a, r, g, b)` packs four 8-bit channels into a single integer.

## Errors

- A decoder raises `UnsupportedFormatError` when the data is not in its
  format.
- It raises `FormatError` when the data is in its format but is malformed.

Both errors derive from `ImageError`.

## Usage

To decode bytes and let the loader pick the format, use `decode`. It tries
the decoders in turn: BMP, PNM, DICOM, QOI, Farbfeld, and TGA last.

```python
from pixload.loader import decode, image_formats, load_from_file

print(image_formats())          # "bmp, pnm, farbfeld, tga, dicom"

image = load_from_file("picture.qoi")
print(image.format)             # e.g. "QOI 32bpp"
pixmap = image.frames[0].pixmap
print(pixmap.width, pixmap.height, hex(pixmap.pixel(0, 0)))
```

`load_from_file(path)` reads a regular file and returns a `LoadedImage`. A
`LoadedImage` holds:

- the `source`;
- the decoded `data`;
- the `file_size` in bytes;
- the `parent` directory name.

If the path is not a readable regular file, `load_from_file` raises
`ImageError`.

Two other functions also return a `LoadedImage`:

- `load_from_memory(source, data)` decodes bytes that are already in
  memory.
- `load_from_stream(stream, source="stdin")` reads a binary stream to its
  end and then decodes it. `parent` is left empty.

Each format can also be decoded on its own:

```python
from pixload.bmp import decode_bmp

with open("picture.bmp", "rb") as fh:
    data = decode_bmp(fh.read())
```

The other decoders are:

- `pixload.pnm.decode_pnm`
- `pixload.tga.decode_tga`
- `pixload.qoi.decode_qoi`
- `pixload.farbfeld.decode_farbfeld`
- `pixload.dicom.decode_dicom`

## Path helpers

`pixload.fs` contains small path utilities:

- `append_path(path, file)` joins a name onto a path with a single slash.
- `abspath(relative, cwd)` builds an absolute path with `.` and `..`
  removed.
- `name(path)` returns the final path component.
- `parent(path)` returns the name of the enclosing directory, or `None`.
- `envpath(env_name, postfix)` builds a path prefixed by the first entry of
  an environment variable.
- `write_file(path, data)` writes bytes and creates missing directories.

## What it does not do

pixload only decodes images into pixmaps. It has none of the following:

- a command-line program;
- a window, image viewer or gallery;
- thumbnail storage;
- file-change monitoring;
- image encoding.

Formats that need external codec libraries are not supported. These
include JPEG, PNG, GIF, WebP, HEIF/AVIF, JPEG XL, TIFF, SVG, EXR, RAW and
Sixel. The decoders also do not read EXIF metadata.

## Running the tests

    pip install -e .[test]
    pytest