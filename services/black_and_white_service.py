"""
Black and White Service - monochrome conversion with film looks and toning.
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np

from core.constants import ImageConstants
from core.enums import BWConversionMode, FilmType, Toning
from core.image import filters
from core.image.processors import ImageProcessor
from schemas.image import BlackAndWhiteOptions

from .image_tool_service import ColorToolService, tonal_offset

logger = logging.getLogger(__name__)

# Red, green and blue weights of each film emulsion
FILM_WEIGHTS = {
    FilmType.TRI_X: (0.25, 0.7, 0.05),
    FilmType.HP5: (0.33, 0.5, 0.17),
    FilmType.ACROS: (0.3, 0.55, 0.15),
    FilmType.T_MAX: (0.28, 0.6, 0.12),
    FilmType.DELTA: (0.35, 0.45, 0.2),
    FilmType.STANDARD: (0.3, 0.59, 0.11),
}

TONING_COLORS = {
    Toning.SEPIA: (112, 66, 20),
    Toning.SELENIUM: (90, 45, 90),
    Toning.CYANOTYPE: (18, 78, 120),
    Toning.PLATINUM: (85, 85, 95),
}

MODE_LABELS = {
    BWConversionMode.SIMPLE: "Simple conversion",
    BWConversionMode.CHANNEL_MIX: "Channel mix conversion",
    BWConversionMode.TONAL: "Tonal conversion",
    BWConversionMode.FILM: "Film simulation",
    BWConversionMode.CUSTOM: "Custom conversion",
}

GRAIN_STRENGTH = 100.0
VIGNETTE_STRENGTH = 0.8


def channel_weights(red: float, green: float, blue: float) -> Tuple[float, float, float]:
    """
    Normalize channel mix weights by the sum of their absolute values.

    Example:
        >>> channel_weights(50, 50, 0)
        (0.5, 0.5, 0.0)
    """
    total = abs(red) + abs(green) + abs(blue) or 1.0
    return red / total, green / total, blue / total


def gray_matrix(weights: Sequence[float]) -> List[Sequence[float]]:
    """Channel mix matrix writing the same weighted sum to R, G and B."""
    return [tuple(weights)] * 3


def tone_gains(color: Sequence[int]) -> Tuple[float, float, float]:
    """Per-channel gains that tint gray towards ``color`` while keeping its luma."""
    luma = sum(c * w for c, w in zip(color, ImageConstants.LUMA_WEIGHTS))
    return tuple(c / luma for c in color)


class BlackAndWhiteService(ColorToolService):
    """
    Converts to monochrome, then adds grain, toning and a vignette.

    Contrast (``1 + contrast / 100`` around mid-gray) applies in every mode;
    brightness, highlights and shadows only in the tonal and custom modes.
    """

    tool_name = "black-and-white"
    mock_label = "Mock black and white conversion applied"

    def transform_rgb(
        self,
        processor: ImageProcessor,
        rgb: np.ndarray,
        options: BlackAndWhiteOptions,
        labels: List[str],
    ) -> np.ndarray:
        mode = options.conversion_mode
        if mode == BWConversionMode.FILM:
            weights = FILM_WEIGHTS[options.film_type]
        elif mode in (BWConversionMode.CHANNEL_MIX, BWConversionMode.CUSTOM):
            weights = channel_weights(options.red_channel, options.green_channel, options.blue_channel)
        else:
            weights = ImageConstants.LUMA_WEIGHTS
        gray = processor.mix_channels(rgb, gray_matrix(weights))
        labels.append(MODE_LABELS[mode])

        if options.contrast != 0:
            gray = processor.contrast(gray, 1.0 + options.contrast / 100.0)
        if mode in (BWConversionMode.TONAL, BWConversionMode.CUSTOM):
            gray = self._tonal(processor, gray, options)

        height, width = gray.shape[:2]
        if options.grain > 0:
            noise = filters.grain(height, width, GRAIN_STRENGTH * options.grain / 100.0)
            gray = filters.clamp(gray + noise[..., None])
            labels.append("Film grain")
        if options.toning != Toning.NONE and options.toning_intensity > 0:
            toned = processor.scale_channels(gray, tone_gains(TONING_COLORS[options.toning]))
            gray = processor.blend(gray, toned, options.toning_intensity / 100.0)
            labels.append(f"{options.toning.value.capitalize()} toning")
        if options.vignette > 0:
            fade = 1.0 - VIGNETTE_STRENGTH * options.vignette / 100.0 * filters.radial_falloff(height, width)
            gray = filters.clamp(gray * fade[..., None])
            labels.append("Vignette")

        return gray

    @staticmethod
    def _tonal(processor: ImageProcessor, gray: np.ndarray, options: BlackAndWhiteOptions) -> np.ndarray:
        if options.brightness != 0:
            gray = processor.offset_channels(gray, (options.brightness * 2.55,) * 3)
        if options.highlights != 0 or options.shadows != 0:
            gray = tonal_offset(processor, gray, options.shadows / 100.0, options.highlights / 100.0)
        return gray
