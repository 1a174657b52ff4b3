[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pixload"
version = "0.1.0"
description = "Pure-Python decoders for simple raster image formats: BMP, PNM, TGA, QOI, Farbfeld and DICOM"
requires-python = ">=3.10"
dependencies = []
keywords = ["image", "decoder", "bmp", "pnm", "tga", "qoi", "farbfeld", "dicom", "argb"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: Viewers",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pixload"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
