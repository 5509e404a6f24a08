"""
Auto Enhance Service - one-click tonal and colour enhancement.
"""

import logging
from typing import List

import numpy as np

from core.constants import AutoEnhanceScore
from core.enums import EnhanceMode
from core.image import filters
from core.image.processors import ImageProcessor
from schemas.image import AutoEnhanceOptions

from .image_tool_service import ColorToolService, masked

logger = logging.getLogger(__name__)

CLARITY_KERNEL = filters.neighbour_kernel(2.0, -0.1)


class AutoEnhanceService(ColorToolService):
    """
    Applies a mode preset followed by optional tonal fixes.

    With ``i = intensity / 100``, shadows (luma < 85) are lifted by ``30i``,
    highlights (luma > 170) pulled down by ``20i``, and clarity is blended
    at ``0.3i`` into midtones only.
    """

    tool_name = "auto-enhance"
    mock_label = "Mock enhancement applied"
    score_table = AutoEnhanceScore.TABLE
    score_base = AutoEnhanceScore.BASE
    score_header = "X-Quality-Score"

    def transform_rgb(
        self,
        processor: ImageProcessor,
        rgb: np.ndarray,
        options: AutoEnhanceOptions,
        labels: List[str],
    ) -> np.ndarray:
        i = options.intensity / 100.0
        mode = options.enhance_mode

        if mode == EnhanceMode.PORTRAIT:
            rgb = processor.scale_channels(rgb, (1 + 0.15 * i, 1.0, 1.0))
            rgb = processor.contrast(rgb, 1 + 0.2 * i)
            labels.extend(["Portrait optimization", "Skin tone enhancement"])
        elif mode == EnhanceMode.LANDSCAPE:
            rgb = processor.scale_channels(rgb, (1.0, 1 + 0.2 * i, 1 + 0.15 * i))
            rgb = processor.contrast(rgb, 1 + 0.4 * i)
            labels.extend(["Landscape enhancement", "Nature color boost"])
        elif mode == EnhanceMode.LOWLIGHT:
            dark = processor.luminance(rgb) < 128
            lifted = processor.offset_channels(rgb, (i * 0.5 * 50,) * 3)
            rgb = masked(dark, lifted, rgb)
            labels.extend(["Low-light enhancement", "Shadow recovery"])
        elif mode == EnhanceMode.VINTAGE:
            rgb = processor.offset_channels(rgb, (20 * i, 10 * i, -15 * i))
            rgb = processor.saturation(rgb, 1 - 0.2 * i)
            labels.extend(["Vintage color grading", "Film-like tones"])
        else:
            rgb = processor.normalize(rgb)
            labels.append("Auto levels")
            rgb = processor.contrast(rgb, 1 + 0.3 * i)
            labels.append("Enhanced contrast")
            if options.preserve_colors:
                rgb = processor.saturation(rgb, 1 + 0.2 * i)
                labels.append("Color enhancement")

        if options.enhance_shadows:
            shadows = processor.luminance(rgb) < 85
            rgb = masked(shadows, processor.offset_channels(rgb, (30 * i,) * 3), rgb)
            labels.append("Shadow enhancement")
        if options.enhance_highlights:
            highlights = processor.luminance(rgb) > 170
            rgb = masked(highlights, processor.offset_channels(rgb, (-20 * i,) * 3), rgb)
            labels.append("Highlight recovery")
        if options.improve_clarity:
            luma = processor.luminance(rgb)
            midtones = (luma > 64) & (luma < 192)
            clear = processor.blend(rgb, processor.convolve(rgb, CLARITY_KERNEL), 0.3 * i)
            rgb = masked(midtones, clear, rgb)
            labels.append("Clarity improvement")
        if options.reduce_noise:
            rgb = processor.median(rgb)
            labels.append("Noise reduction")
        if options.sharpen_details:
            rgb = processor.convolve(rgb, filters.cross_kernel(1 + 4 * i, -i))
            labels.append("Detail sharpening")

        return rgb

    def score_bonus(self, options: AutoEnhanceOptions) -> float:
        return options.intensity / 100.0 * AutoEnhanceScore.INTENSITY_WEIGHT
