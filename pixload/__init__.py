"""Pure-Python decoders for BMP, PNM, TGA, QOI, Farbfeld and DICOM images."""

__version__ = "0.1.0"