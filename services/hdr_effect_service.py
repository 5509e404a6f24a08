"""
HDR Effect Service - single-image HDR look through tone mapping and local contrast.
"""

import logging
from typing import List

import numpy as np

from core.constants import HdrScore
from core.enums import HdrStyle, ToneMapping
from core.image import filters
from core.image.processors import ImageProcessor
from schemas.image import HdrEffectOptions

from .image_tool_service import ColorToolService, temperature_tint, tonal_offset, vibrance

logger = logging.getLogger(__name__)

TONE_LABELS = {
    ToneMapping.REINHARD: "Reinhard tone mapping",
    ToneMapping.FILMIC: "Filmic tone mapping",
    ToneMapping.ACES: "ACES tone mapping",
    ToneMapping.UNCHARTED2: "Uncharted 2 tone mapping",
}

WARM_GRADE = (1.0, 240 / 255.0, 230 / 255.0)
COOL_GRADE = (230 / 255.0, 240 / 255.0, 1.0)

CLARITY_SIGMA = 3.0
GLOW_SIGMA = 4.0
RECOVERY_STRENGTH = 0.4


class HdrEffectService(ColorToolService):
    """
    Recovers shadows and highlights, tone maps, adds local contrast and
    then grades in one of eight styles.

    The ``X-Dynamic-Range`` rating is ``dynamicRange / 10`` plus style and
    tone-mapping points, ``(shadowRecovery + highlightRecovery) / 200`` and
    ``intensity / 100``, capped at 10.
    """

    tool_name = "hdr-effect"
    mock_label = "Mock HDR effect applied"
    score_table = HdrScore.TABLE
    score_base = HdrScore.BASE
    score_header = "X-Dynamic-Range"

    def transform_rgb(
        self,
        processor: ImageProcessor,
        rgb: np.ndarray,
        options: HdrEffectOptions,
        labels: List[str],
    ) -> np.ndarray:
        i = options.intensity / 100.0

        if options.shadow_recovery or options.highlight_recovery:
            rgb = tonal_offset(
                processor,
                rgb,
                RECOVERY_STRENGTH * options.shadow_recovery / 100.0,
                -RECOVERY_STRENGTH * options.highlight_recovery / 100.0,
            )
            if options.shadow_recovery:
                labels.append("Shadow recovery")
            if options.highlight_recovery:
                labels.append("Highlight recovery")

        mapped = processor.apply_curve(rgb, filters.tone_curve(options.tone_mapping.value))
        rgb = processor.blend(rgb, mapped, options.dynamic_range / 100.0)
        labels.append(TONE_LABELS[options.tone_mapping])

        if options.clarity:
            detail = rgb - processor.blur(rgb, CLARITY_SIGMA)
            rgb = filters.clamp(rgb + detail * (options.clarity / 100.0 * i))
            labels.append("Clarity")

        rgb = self._style(processor, rgb, options, i)
        labels.append(f"{options.effect_type.value.capitalize()} HDR")

        if options.vibrance:
            rgb = vibrance(processor, rgb, 0.5 * options.vibrance / 100.0)
            labels.append("Vibrance")
        if options.color_grading and (options.color_temperature or options.color_tint):
            rgb = temperature_tint(processor, rgb, options.color_temperature, options.color_tint)
            labels.append("Color grading")

        glow = options.glow / 100.0
        if options.effect_type == HdrStyle.SURREAL:
            glow += 0.3
        if glow > 0:
            rgb = filters.screen(rgb, processor.blur(rgb, GLOW_SIGMA), 0.2 + 0.3 * min(glow, 1.0))
            labels.append("Glow")

        return rgb

    @staticmethod
    def _style(processor: ImageProcessor, rgb: np.ndarray, options: HdrEffectOptions, i: float) -> np.ndarray:
        s = options.saturation / 100.0
        c = options.contrast / 100.0
        style = options.effect_type

        if style == HdrStyle.DRAMATIC:
            rgb = processor.brightness(rgb, 1.0 + 0.15 * i)
            rgb = processor.saturation(rgb, 1.0 + 0.8 * s + 0.2)
            return processor.contrast(rgb, 1.0 + 0.5 * c + 0.2)
        if style == HdrStyle.CINEMATIC:
            grade = WARM_GRADE if options.color_temperature >= 0 else COOL_GRADE
            rgb = processor.blend(rgb, processor.scale_channels(rgb, grade), i)
            return processor.contrast(rgb, 1.0 + 0.3 * c + 0.1)
        if style == HdrStyle.SURREAL:
            rgb = processor.saturation(rgb, 1.5 + s)
            return processor.contrast(rgb, 1.0 + 0.5 * c)
        if style == HdrStyle.VIVID:
            rgb = processor.saturation(rgb, 1.3 + 0.5 * s)
            return processor.contrast(rgb, 1.0 + 0.4 * c + 0.1)
        if style == HdrStyle.MOODY:
            rgb = processor.blend(rgb, processor.scale_channels(rgb, COOL_GRADE), i)
            rgb = processor.brightness(rgb, 0.95)
            return processor.saturation(rgb, 0.85 + 0.5 * s)
        if style == HdrStyle.LANDSCAPE:
            rgb = processor.scale_channels(rgb, (1.0, 1.1, 1.1))
            rgb = processor.saturation(rgb, 1.0 + 0.3 * s)
            return processor.contrast(rgb, 1.0 + 0.5 * c)
        if style == HdrStyle.CUSTOM:
            rgb = processor.saturation(rgb, 1.0 + s)
            return processor.contrast(rgb, 1.0 + c)
        rgb = processor.brightness(rgb, 1.0 + 0.1 * i)
        rgb = processor.saturation(rgb, 1.0 + 0.5 * s)
        return processor.contrast(rgb, 1.0 + c / 2.0)

    def score_bonus(self, options: HdrEffectOptions) -> float:
        return (
            options.dynamic_range * HdrScore.RANGE_WEIGHT
            + (options.shadow_recovery + options.highlight_recovery) * HdrScore.RECOVERY_WEIGHT
            + options.intensity * HdrScore.INTENSITY_WEIGHT
        )
