"""
Image format sniffing and header-only dimension probing.

Dimensions are parsed straight from PNG, JPEG, GIF and simple VP8 WebP
container headers. Anything else (TIFF, VP8L/VP8X WebP, BMP, truncated
headers) falls back to a lazy Pillow open, which reads the header without
decoding pixel data.
"""

import io
import logging
import struct
from typing import Optional

from PIL import Image, UnidentifiedImageError

from api.exceptions import DimensionError
from core.constants import ImageConstants
from schemas.common import Dimensions

logger = logging.getLogger(__name__)


def detect_format(buffer: bytes) -> Optional[str]:
    """
    Identify an image format from its leading signature bytes.

    Args:
        buffer: Encoded image bytes

    Returns:
        One of ``png``, ``jpeg``, ``gif``, ``webp``, ``tiff`` or None
    """
    if not buffer:
        return None
    if buffer.startswith(ImageConstants.PNG_SIGNATURE):
        return "png"
    if buffer.startswith(ImageConstants.JPEG_SIGNATURE):
        return "jpeg"
    if buffer.startswith(ImageConstants.GIF_SIGNATURE):
        return "gif"
    if buffer.startswith(ImageConstants.RIFF_SIGNATURE) and buffer[8:12] == ImageConstants.WEBP_SIGNATURE:
        return "webp"
    if buffer.startswith((ImageConstants.TIFF_LE_SIGNATURE, ImageConstants.TIFF_BE_SIGNATURE)):
        return "tiff"
    return None


def is_supported_image(buffer: bytes) -> bool:
    """Check that a buffer starts with a recognized image signature."""
    return detect_format(buffer) is not None


def _png_dimensions(buffer: bytes) -> Optional[Dimensions]:
    if len(buffer) < 24:
        return None
    width, height = struct.unpack(">II", buffer[16:24])
    return Dimensions(width=width, height=height)


def _jpeg_dimensions(buffer: bytes) -> Optional[Dimensions]:
    offset = 2
    size = len(buffer)
    while offset + 1 < size:
        if buffer[offset] != 0xFF:
            offset += 1
            continue
        marker = buffer[offset + 1]
        if 0xC0 <= marker <= 0xCF and marker not in ImageConstants.JPEG_NON_SOF_MARKERS:
            if offset + 9 > size:
                return None
            height, width = struct.unpack(">HH", buffer[offset + 5 : offset + 9])
            return Dimensions(width=width, height=height)
        if offset + 4 > size:
            return None
        (segment_length,) = struct.unpack(">H", buffer[offset + 2 : offset + 4])
        offset += 2 + segment_length
    return None


def _gif_dimensions(buffer: bytes) -> Optional[Dimensions]:
    if len(buffer) < 10:
        return None
    width, height = struct.unpack("<HH", buffer[6:10])
    return Dimensions(width=width, height=height)


def _webp_dimensions(buffer: bytes) -> Optional[Dimensions]:
    # Only the lossy "VP8 " chunk stores dimensions at fixed offsets
    if len(buffer) < 30 or buffer[12:16] != ImageConstants.VP8_CHUNK:
        return None
    width, height = struct.unpack("<HH", buffer[26:30])
    mask = ImageConstants.WEBP_DIMENSION_MASK
    return Dimensions(width=width & mask, height=height & mask)


_HEADER_PARSERS = {
    "png": _png_dimensions,
    "jpeg": _jpeg_dimensions,
    "gif": _gif_dimensions,
    "webp": _webp_dimensions,
}


def _decode_dimensions(buffer: bytes) -> Optional[Dimensions]:
    try:
        with Image.open(io.BytesIO(buffer)) as image:
            width, height = image.size
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.debug(f"Full decode probe failed: {e}")
        return None
    return Dimensions(width=width, height=height)


def probe_dimensions(buffer: bytes) -> Dimensions:
    """
    Determine image width and height.

    Args:
        buffer: Encoded image bytes

    Returns:
        Probed dimensions

    Raises:
        DimensionError: If neither header parsing nor decoding works
    """
    image_format = detect_format(buffer)
    parser = _HEADER_PARSERS.get(image_format)
    if parser is not None:
        dimensions = parser(buffer)
        if dimensions is not None and dimensions.width > 0 and dimensions.height > 0:
            return dimensions
        logger.debug(f"Header probe for {image_format} inconclusive, decoding")

    dimensions = _decode_dimensions(buffer)
    if dimensions is None or dimensions.width <= 0 or dimensions.height <= 0:
        raise DimensionError()
    return dimensions
