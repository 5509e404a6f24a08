"""
Resize Service - resampling with optional enhancement passes.

"AI upscaling" is an extra unsharp pass on large upscales; the label is
cosmetic and no model is involved.
"""

import logging
from typing import List, Tuple

import numpy as np

from core.enums import ResizeMode, UpscaleAlgorithm
from core.image import filters
from core.image.converters import ImageConverters
from core.image.processors import ImageProcessor
from schemas.common import Dimensions, ToolResult
from schemas.image import ResizeOptions

from .image_tool_service import ImageToolService

logger = logging.getLogger(__name__)

AI_UPSCALE_THRESHOLD = 1.5


def target_dimensions(original: Dimensions, options: ResizeOptions) -> Tuple[int, int]:
    """
    Compute the output size for a resize request.

    Args:
        original: Source dimensions
        options: Validated resize options (at least one side is set)

    Returns:
        (width, height), each at least 1

    Example:
        >>> target_dimensions(Dimensions(width=400, height=200), ResizeOptions(width=100))
        (100, 50)
    """
    ow, oh = original.width, original.height
    width, height = options.width, options.height

    if width is None:
        width = round(height * ow / oh) if options.maintain_aspect_ratio else ow
    elif height is None:
        height = round(width * oh / ow) if options.maintain_aspect_ratio else oh
    elif options.maintain_aspect_ratio and options.resize_mode not in (
        ResizeMode.FILL,
        ResizeMode.STRETCH,
    ):
        ratios = (width / ow, height / oh)
        ratio = max(ratios) if options.resize_mode == ResizeMode.COVER else min(ratios)
        width, height = round(ow * ratio), round(oh * ratio)

    return max(1, int(width)), max(1, int(height))


class ResizeService(ImageToolService):
    tool_name = "resize"
    mock_label = "Mock resize applied"

    def transform(
        self, processor: ImageProcessor, rgba: np.ndarray, options: ResizeOptions, labels: List[str]
    ) -> np.ndarray:
        original = Dimensions.of(rgba)
        width, height = target_dimensions(original, options)
        scale = max(width / original.width, height / original.height)
        ai_upscale = options.ai_upscaling and scale > AI_UPSCALE_THRESHOLD

        algorithm = UpscaleAlgorithm.LANCZOS if ai_upscale else options.upscale_algorithm
        resized = processor.resize(rgba, width, height, algorithm)
        labels.append(f"Resized to {width}x{height}")

        if not (ai_upscale or options.sharpen_amount > 0 or options.noise_reduction):
            return resized

        rgb, alpha = ImageConverters.split_alpha(resized)
        if options.noise_reduction:
            rgb = processor.median(rgb)
            labels.append("Noise reduction")
        if ai_upscale:
            rgb = processor.blend(rgb, processor.convolve(rgb, filters.SHARPEN_CROSS), 0.5)
            labels.append("AI upscaling")
        if options.sharpen_amount > 0:
            sharpened = processor.convolve(rgb, filters.SHARPEN_CROSS)
            rgb = processor.blend(rgb, sharpened, options.sharpen_amount / 10.0)
            labels.append("Sharpening")
        return ImageConverters.merge_alpha(rgb, alpha)

    def extras(self, buffer: bytes, result: ToolResult, options: ResizeOptions) -> dict:
        ratio = len(buffer) / len(result.buffer) if result.buffer else 0.0
        return {
            "compression_ratio": f"{ratio:.2f}",
            "ai_upscaled": "AI upscaling" in result.labels,
        }
