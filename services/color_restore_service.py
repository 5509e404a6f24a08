"""
Color Restore Service - colour restoration for faded photos.
"""

import logging
from typing import List

import numpy as np

from core.constants import ColorRestoreScore
from core.enums import RestoreMode
from core.image import filters
from core.image.processors import ImageProcessor
from schemas.image import ColorRestoreOptions

from .image_tool_service import ColorToolService, masked

logger = logging.getLogger(__name__)

DETAIL_KERNEL = filters.neighbour_kernel(1.8, -0.1)


class ColorRestoreService(ColorToolService):
    """
    Restores colour with one of five modes, then optional corrections.

    Modes (with ``i = intensity / 100``):
    - vibrant: saturation ``1.5 + i``, brightness x1.1
    - natural: per-channel normalize, saturation ``1.2 + 0.3i``
    - vintage: warm channel gains, saturation ``0.9 - 0.1i``
    - custom: user saturation, temperature and an intensity boost
    - auto: normalize, gray-world balance, saturation 1.3
    """

    tool_name = "color-restore"
    mock_label = "Mock color restoration applied"
    score_table = ColorRestoreScore.TABLE
    score_base = ColorRestoreScore.BASE
    score_header = "X-Restoration-Score"

    def transform_rgb(
        self,
        processor: ImageProcessor,
        rgb: np.ndarray,
        options: ColorRestoreOptions,
        labels: List[str],
    ) -> np.ndarray:
        i = options.intensity / 100.0
        mode = options.restore_mode

        if mode == RestoreMode.VIBRANT:
            rgb = processor.saturation(rgb, 1.5 + i)
            rgb = processor.brightness(rgb, 1.1)
            labels.append("Vibrant color enhancement")
        elif mode == RestoreMode.NATURAL:
            rgb = processor.normalize(rgb)
            rgb = processor.saturation(rgb, 1.2 + 0.3 * i)
            labels.append("Natural color restoration")
        elif mode == RestoreMode.VINTAGE:
            rgb = processor.scale_channels(rgb, (1.1 + 0.1 * i, 1.05 + 0.05 * i, 0.9 - 0.05 * i))
            rgb = processor.saturation(rgb, 0.9 - 0.1 * i)
            labels.append("Vintage color restoration")
        elif mode == RestoreMode.CUSTOM:
            rgb = self._custom(processor, rgb, options, i)
            labels.append("Custom color restoration")
        else:
            rgb = processor.normalize(rgb)
            rgb = processor.gray_world(rgb)
            rgb = processor.saturation(rgb, 1.3)
            labels.append("Auto color restoration")

        if options.remove_yellowing:
            rgb = self._remove_yellowing(processor, rgb)
            labels.append("Yellowing removal")
        if options.correct_color_cast:
            rgb = processor.gray_world(rgb)
            labels.append("Color cast correction")
        if options.enhance_details:
            rgb = processor.convolve(rgb, DETAIL_KERNEL)
            labels.append("Detail enhancement")
        if options.contrast != 0:
            factor = filters.contrast_factor(options.contrast)
            rgb = processor.contrast(rgb, factor, 128.0)
            labels.append("Contrast enhancement" if options.contrast > 0 else "Contrast reduction")

        return rgb

    @staticmethod
    def _custom(
        processor: ImageProcessor, rgb: np.ndarray, options: ColorRestoreOptions, i: float
    ) -> np.ndarray:
        rgb = processor.saturation(rgb, 1.0 + options.saturation / 100.0)

        t = options.temperature / 100.0
        if t > 0:
            rgb = processor.scale_channels(rgb, (1 + 0.2 * t, 1 + 0.1 * t, 1 - 0.1 * t))
        elif t < 0:
            a = abs(t)
            rgb = processor.scale_channels(rgb, (1 - 0.1 * a, 1 - 0.05 * a, 1 + 0.2 * a))

        return processor.saturation(rgb, 1.0 + 0.5 * i)

    @staticmethod
    def _remove_yellowing(processor: ImageProcessor, rgb: np.ndarray) -> np.ndarray:
        r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
        yellow = (r > 150) & (g > 150) & (b < 150) & ((r + g) / 2.0 - b > 30)
        if not yellow.any():
            return rgb
        corrected = processor.scale_channels(rgb, (0.95, 0.95, 1.2))
        return masked(yellow, corrected, rgb)

    def score_bonus(self, options: ColorRestoreOptions) -> float:
        return options.intensity / 100.0 * ColorRestoreScore.INTENSITY_WEIGHT
