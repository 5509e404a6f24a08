"""
Brightness/Contrast Service - exposure, tone and white balance adjustments.
"""

import logging
from typing import List

import numpy as np

from core.image import filters
from core.image.processors import ImageProcessor
from schemas.image import BrightnessContrastOptions

from .image_tool_service import ColorToolService, temperature_tint, tonal_offset, vibrance

logger = logging.getLogger(__name__)

AUTO_CONTRAST_PERCENTILES = (1.0, 99.0)


def auto_contrast(processor: ImageProcessor, rgb: np.ndarray) -> np.ndarray:
    """Stretch the 1st-99th luma percentiles to the full range."""
    low, high = np.percentile(processor.luminance(rgb), AUTO_CONTRAST_PERCENTILES)
    if high - low < 1.0:
        return rgb
    rgb = processor.offset_channels(rgb, (-float(low),) * 3)
    return processor.scale_channels(rgb, (255.0 / float(high - low),) * 3)


class BrightnessContrastService(ColorToolService):
    """
    Applies the automatic corrections first, then each manual adjustment
    that differs from its neutral value, in a fixed order:

    exposure (``x 2^EV``), brightness (``+2.55 b``), contrast, highlights and
    shadows, gamma, saturation, vibrance, temperature, tint.
    """

    tool_name = "brightness-contrast"
    mock_label = "Mock adjustment applied"

    def transform_rgb(
        self,
        processor: ImageProcessor,
        rgb: np.ndarray,
        options: BrightnessContrastOptions,
        labels: List[str],
    ) -> np.ndarray:
        if options.auto_levels:
            rgb = processor.normalize(rgb)
            labels.append("Auto levels")
        if options.auto_contrast:
            rgb = auto_contrast(processor, rgb)
            labels.append("Auto contrast")
        if options.auto_color:
            rgb = processor.gray_world(rgb)
            labels.append("Auto color")

        if options.exposure != 0:
            rgb = processor.brightness(rgb, 2.0 ** options.exposure)
            labels.append(f"Exposure {options.exposure:+.1f}EV")
        if options.brightness != 0:
            rgb = processor.offset_channels(rgb, (options.brightness * 2.55,) * 3)
            labels.append(f"Brightness {options.brightness:+d}")
        if options.contrast != 0:
            rgb = processor.contrast(rgb, filters.contrast_factor(options.contrast * 2.55))
            labels.append(f"Contrast {options.contrast:+d}")
        if options.highlights != 0 or options.shadows != 0:
            rgb = tonal_offset(
                processor, rgb, options.shadows / 200.0, options.highlights / 200.0
            )
            if options.highlights != 0:
                labels.append(f"Highlights {options.highlights:+d}")
            if options.shadows != 0:
                labels.append(f"Shadows {options.shadows:+d}")
        if options.gamma != 1.0:
            rgb = processor.apply_curve(rgb, filters.gamma_curve(options.gamma))
            labels.append(f"Gamma {options.gamma:.2f}")
        if options.saturation != 0:
            rgb = processor.saturation(rgb, 1.0 + options.saturation / 100.0)
            labels.append(f"Saturation {options.saturation:+d}")
        if options.vibrance != 0:
            rgb = vibrance(processor, rgb, options.vibrance / 100.0)
            labels.append(f"Vibrance {options.vibrance:+d}")
        if options.temperature != 0 or options.tint != 0:
            rgb = temperature_tint(processor, rgb, options.temperature, options.tint)
            if options.temperature != 0:
                labels.append(f"Temperature {options.temperature:+d}")
            if options.tint != 0:
                labels.append(f"Tint {options.tint:+d}")

        return rgb
