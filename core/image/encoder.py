"""
Output encoding for processed images.
"""

import io
import logging
from dataclasses import dataclass

import numpy as np
from PIL import Image

from core.constants import ImageConstants
from core.enums import OutputFormat
from core.image.converters import ImageConverters

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EncodedImage:
    """Encoded bytes with their canonical extension and MIME type."""

    data: bytes
    extension: str
    mime_type: str


def resolve_format(output_format) -> OutputFormat:
    """Map a requested format (enum or string) to a supported one, PNG otherwise."""
    try:
        return OutputFormat(getattr(output_format, "value", output_format))
    except ValueError:
        logger.warning(f"Unknown output format {output_format!r}, using png")
        return OutputFormat.PNG


def encode_image(
    image: np.ndarray, output_format=OutputFormat.PNG, quality: int = ImageConstants.DEFAULT_QUALITY
) -> EncodedImage:
    """
    Encode an RGBA array.

    PNG is lossless and ignores ``quality``. JPEG has no alpha channel, so
    transparent pixels are flattened onto white first.

    Args:
        image: RGBA uint8 array
        output_format: ``png``, ``jpg``/``jpeg`` or ``webp``
        quality: Lossy quality 1-100

    Returns:
        EncodedImage
    """
    fmt = resolve_format(output_format)
    pil_image = ImageConverters.numpy_to_pil(image)
    buffer = io.BytesIO()

    if fmt in (OutputFormat.JPG, OutputFormat.JPEG):
        if pil_image.mode == "RGBA":
            background = Image.new("RGB", pil_image.size, (255, 255, 255))
            background.paste(pil_image, mask=pil_image.getchannel("A"))
            pil_image = background
        pil_image.convert("RGB").save(buffer, format="JPEG", quality=quality, optimize=True)
    elif fmt == OutputFormat.WEBP:
        pil_image.save(buffer, format="WEBP", quality=quality)
    else:
        pil_image.save(buffer, format="PNG", optimize=True)

    extension = fmt.value
    return EncodedImage(
        data=buffer.getvalue(),
        extension=extension,
        mime_type=ImageConstants.MIME_TYPES.get(extension, "image/png"),
    )
