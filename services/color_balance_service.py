"""
Color Balance Service - white balance, hue and per-tone colour grading.
"""

import logging
from typing import List

import numpy as np

from core.image import filters
from core.image.processors import ImageProcessor
from schemas.image import ColorBalanceOptions, ColorShift

from .image_tool_service import ColorToolService, temperature_tint, vibrance

logger = logging.getLogger(__name__)

BALANCE_GAIN = 50.0
GRADE_GAIN = 0.5


def tone_weights(luma: np.ndarray):
    """Shadow, midtone and highlight weights that sum to 1 per pixel."""
    level = luma / 255.0
    shadows = (1.0 - level) ** 2
    highlights = level ** 2
    return shadows, 1.0 - shadows - highlights, highlights


def grade_tones(
    processor: ImageProcessor,
    rgb: np.ndarray,
    shadows: ColorShift,
    midtones: ColorShift,
    highlights: ColorShift,
) -> np.ndarray:
    """Add each tonal range's RGB shift, weighted by how much a pixel belongs to it."""
    offset = np.zeros_like(rgb, dtype=np.float32)
    for weight, shift in zip(tone_weights(processor.luminance(rgb)), (shadows, midtones, highlights)):
        if shift.is_neutral:
            continue
        offset += weight[..., None] * np.asarray((shift.r, shift.g, shift.b), dtype=np.float32)
    return filters.clamp(rgb + offset * GRADE_GAIN)


class ColorBalanceService(ColorToolService):
    """
    Automatic corrections run first; then temperature (warm ``+40 R +20 G``,
    cool ``+40 B``), tint (``25``), hue rotation, saturation, vibrance,
    channel balance (``+/-50`` at full scale) and tone grading.
    """

    tool_name = "color-balance"
    mock_label = "Mock color balance applied"

    def transform_rgb(
        self,
        processor: ImageProcessor,
        rgb: np.ndarray,
        options: ColorBalanceOptions,
        labels: List[str],
    ) -> np.ndarray:
        if options.auto_white_balance:
            rgb = processor.gray_world(rgb)
            labels.append("Auto white balance")
        if options.auto_color_correction:
            rgb = processor.contrast(rgb, 1.1)
            rgb = processor.saturation(rgb, 1.1)
            labels.append("Auto color correction")

        if options.temperature != 0 or options.tint != 0:
            rgb = temperature_tint(
                processor,
                rgb,
                options.temperature,
                options.tint,
                warm=(40.0, 20.0),
                cool=40.0,
                tint_gain=25.0,
            )
            if options.temperature != 0:
                labels.append(f"Temperature {options.temperature:+d}")
            if options.tint != 0:
                labels.append(f"Tint {options.tint:+d}")
        if options.hue != 0:
            rgb = processor.shift_hue(rgb, options.hue)
            labels.append(f"Hue {options.hue:+d}°")
        if options.saturation != 0:
            rgb = processor.saturation(rgb, 1.0 + options.saturation / 100.0)
            labels.append(f"Saturation {options.saturation:+d}")
        if options.vibrance != 0:
            rgb = vibrance(processor, rgb, options.vibrance / 100.0)
            labels.append(f"Vibrance {options.vibrance:+d}")

        balance = (options.red_balance, options.green_balance, options.blue_balance)
        if any(balance):
            rgb = processor.offset_channels(rgb, [v / 100.0 * BALANCE_GAIN for v in balance])
            for name, value in zip(("Red", "Green", "Blue"), balance):
                if value:
                    labels.append(f"{name} {value:+d}")

        tones = (options.shadows_color, options.midtones_color, options.highlights_color)
        if not all(shift.is_neutral for shift in tones):
            rgb = grade_tones(processor, rgb, *tones)
            labels.append("Tone color grading")

        return rgb
