"""
Image processing utilities - modular architecture.

This package provides focused image processing utilities:
- probe: format sniffing and header-only dimension parsing
- converters: decoding and NumPy / PIL conversions
- filters: raw NumPy raster primitives
- processors: primary (OpenCV / Pillow) and secondary (NumPy) backends
- encoder: PNG / JPEG / WebP output
"""

from core.image.converters import ImageConverters
from core.image.encoder import EncodedImage, encode_image
from core.image.processors import ImageProcessor, PipelineProcessor, RasterProcessor

__all__ = [
    "ImageConverters",
    "EncodedImage",
    "encode_image",
    "ImageProcessor",
    "PipelineProcessor",
    "RasterProcessor",
]
