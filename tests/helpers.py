"""
Test image and document builders
"""

import io

import cv2
import numpy as np
from docx import Document
from PIL import Image

from core.enums import ProcessingTier
from core.image.processors import RasterProcessor


def make_rgb(width: int, height: int) -> np.ndarray:
    """Gradient test image with some shapes (RGB uint8)."""
    xs = np.linspace(0, 255, width, dtype=np.float32)
    ys = np.linspace(0, 255, height, dtype=np.float32)
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[..., 0] = xs[None, :].astype(np.uint8)
    image[..., 1] = ys[:, None].astype(np.uint8)
    image[..., 2] = 96
    cv2.rectangle(image, (width // 4, height // 4), (width // 2, height // 2), (255, 255, 255), -1)
    cv2.circle(image, (3 * width // 4, 3 * height // 4), max(2, min(width, height) // 8), (20, 40, 60), -1)
    return image


def encode(image: np.ndarray, fmt: str = "PNG", **params) -> bytes:
    buffer = io.BytesIO()
    Image.fromarray(image).save(buffer, format=fmt, **params)
    return buffer.getvalue()


def decode(buffer: bytes) -> np.ndarray:
    with Image.open(io.BytesIO(buffer)) as image:
        return np.array(image.convert("RGBA"))


def make_docx(*paragraphs: str) -> bytes:
    document = Document()
    for text in paragraphs:
        document.add_paragraph(text)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


class BrokenProcessor(RasterProcessor):
    """Processor whose decode always fails, to force a tier fallback."""

    def __init__(self, tier: ProcessingTier = ProcessingTier.PRIMARY):
        self.tier = tier

    def decode(self, buffer: bytes) -> np.ndarray:
        raise RuntimeError(f"{self.tier.value} backend unavailable")
