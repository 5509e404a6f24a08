"""
Sharpen/Blur Service - sharpening, edge and noise controls, four blur types.
"""

import logging
from typing import List

import numpy as np

from core.enums import BlurType
from core.image import filters
from core.image.processors import ImageProcessor
from schemas.image import SharpenBlurOptions

from .image_tool_service import ColorToolService, masked

logger = logging.getLogger(__name__)

MAX_MOTION_LENGTH = 31
SMART_SHARPEN_VARIANCE = 25.0
DETAIL_VARIANCE = 400.0


def blur_sigma(amount: int) -> float:
    return max(0.3, amount / 10.0)


def radial_weight(height: int, width: int, center_x: float, center_y: float) -> np.ndarray:
    """0 at the centre point (given in percent), rising linearly to 1 at the farthest corner."""
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float32)
    cx = (width - 1) * center_x / 100.0
    cy = (height - 1) * center_y / 100.0
    corners = [(0, 0), (0, width - 1), (height - 1, 0), (height - 1, width - 1)]
    reach = max(max(float(np.hypot(y - cy, x - cx)) for y, x in corners), 1.0)
    return (np.hypot(ys - cy, xs - cx) / reach).astype(np.float32)


class SharpenBlurService(ColorToolService):
    """
    Sharpening steps run first, then at most one blur.

    - sharpen: cross kernel ``1 + 4a`` / ``-a`` with ``a = sharpenAmount / 100``
    - unsharp mask: ``rgb + 2a (rgb - blur(rgb, sharpenRadius))``, skipping
      pixels whose luma difference is within ``sharpenThreshold``
    - smart sharpening restricts either to textured pixels
    - blur sigma is ``blurAmount / 10``; motion length is
      ``motionDistance * blurAmount / 100`` pixels, at most 31
    """

    tool_name = "sharpen-blur"
    mock_label = "Mock sharpen/blur applied"

    def transform_rgb(
        self,
        processor: ImageProcessor,
        rgb: np.ndarray,
        options: SharpenBlurOptions,
        labels: List[str],
    ) -> np.ndarray:
        if options.sharpen_amount > 0:
            rgb = self._sharpen(processor, rgb, options, labels)
        if options.edge_enhancement > 0:
            edges = processor.convolve(rgb, filters.SHARPEN_FULL)
            rgb = processor.blend(rgb, edges, 0.5 * options.edge_enhancement / 100.0)
            labels.append(f"Edge enhancement {options.edge_enhancement}")
        if options.noise_reduction > 0:
            rgb = processor.blend(rgb, processor.median(rgb), options.noise_reduction / 100.0)
            labels.append(f"Noise reduction {options.noise_reduction}")
        if options.blur_amount > 0:
            rgb = self._blur(processor, rgb, options, labels)
        return rgb

    @staticmethod
    def _sharpen(
        processor: ImageProcessor, rgb: np.ndarray, options: SharpenBlurOptions, labels: List[str]
    ) -> np.ndarray:
        a = options.sharpen_amount / 100.0
        if options.unsharp_mask:
            detail = rgb - processor.blur(rgb, options.sharpen_radius)
            sharpened = filters.clamp(rgb + detail * (2.0 * a))
            if options.sharpen_threshold > 0:
                contrast = np.abs(filters.luminance(detail))
                sharpened = masked(contrast > options.sharpen_threshold, sharpened, rgb)
            labels.append(f"Unsharp mask {options.sharpen_amount}")
        else:
            sharpened = processor.convolve(rgb, filters.cross_kernel(1 + 4 * a, -a))
            labels.append(f"Sharpen {options.sharpen_amount}")

        if options.smart_sharpen:
            textured = processor.local_variance(processor.luminance(rgb)) > SMART_SHARPEN_VARIANCE
            sharpened = masked(textured, sharpened, rgb)
            labels.append("Smart sharpening")
        return sharpened

    @staticmethod
    def _blur(
        processor: ImageProcessor, rgb: np.ndarray, options: SharpenBlurOptions, labels: List[str]
    ) -> np.ndarray:
        amount = options.blur_amount
        sigma = blur_sigma(amount)
        kind = options.blur_type

        if kind == BlurType.MOTION:
            length = min(MAX_MOTION_LENGTH, max(3, round(options.motion_distance * amount / 100.0)))
            blurred = processor.convolve(rgb, filters.motion_kernel(options.motion_angle, length))
            labels.append(f"Motion blur {amount} at {options.motion_angle:g}°")
        elif kind == BlurType.RADIAL:
            height, width = rgb.shape[:2]
            weight = radial_weight(height, width, options.radial_center_x, options.radial_center_y)
            blurred = processor.blend(rgb, processor.blur(rgb, sigma), weight)
            labels.append(f"Radial blur {amount}")
        elif kind == BlurType.SURFACE:
            flat = processor.local_variance(processor.luminance(rgb)) < 100.0 + 4.0 * amount
            blurred = masked(flat, processor.blur(rgb, sigma), rgb)
            labels.append(f"Surface blur {amount}")
        else:
            blurred = processor.blur(rgb, sigma)
            labels.append(f"Gaussian blur {amount}")

        if options.preserve_details and kind != BlurType.MOTION:
            detail = processor.local_variance(processor.luminance(rgb)) > DETAIL_VARIANCE
            blurred = masked(detail, processor.blend(blurred, rgb, 0.5), blurred)
            labels.append("Detail preservation")
        return blurred
