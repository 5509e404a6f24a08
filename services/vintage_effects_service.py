"""
Vintage Effects Service - film era colour grades with grain, leaks and borders.
"""

import logging
from typing import List

import numpy as np

from core.enums import LightLeakType, VintageBorder, VintageStyle
from core.image import filters
from core.image.processors import ImageProcessor
from schemas.image import VintageEffectOptions

from .image_tool_service import ColorToolService, framed

logger = logging.getLogger(__name__)

SEPIA_MATRIX = (
    (0.393, 0.769, 0.189),
    (0.349, 0.686, 0.168),
    (0.272, 0.534, 0.131),
)

STYLE_LABELS = {
    VintageStyle.CLASSIC: "Classic film look",
    VintageStyle.SEPIA: "Sepia tone",
    VintageStyle.NOIR: "Film noir",
    VintageStyle.FADED: "Faded film",
    VintageStyle.TECHNICOLOR: "Technicolor",
    VintageStyle.POLAROID: "Polaroid look",
    VintageStyle.CINEMATIC: "Cinematic grade",
    VintageStyle.RETRO: "Retro palette",
    VintageStyle.CUSTOM: "Custom vintage grade",
}

LEAK_COLOR = (255, 200, 100)
# (corner spread, opacity) per leak type
LEAK_SHAPES = {
    LightLeakType.SOFT: (0.8, 0.35),
    LightLeakType.HARSH: (0.5, 0.6),
    LightLeakType.RANDOM: (0.65, 0.45),
}

BORDER_COLORS = {
    VintageBorder.WHITE: (255, 255, 255, 255),
    VintageBorder.BLACK: (0, 0, 0, 255),
    VintageBorder.FILM: (16, 14, 12, 255),
    VintageBorder.POLAROID: (250, 248, 240, 255),
}

GRAIN_STRENGTH = 40.0
VIGNETTE_STRENGTH = 0.7
SCRATCH_OPACITY = 0.25
EFFECT_SEED = 1977


def scaled_rows(matrix, scales):
    return [tuple(value * scale for value in row) for row, scale in zip(matrix, scales)]


def corner_glow(height: int, width: int, corner: int, spread: float) -> np.ndarray:
    """Plane falling from 1 at ``corner`` (0-3, clockwise from top-left) to 0 at ``spread`` of the diagonal."""
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float32)
    cy = 0.0 if corner in (0, 1) else height - 1.0
    cx = 0.0 if corner in (0, 3) else width - 1.0
    reach = max(float(np.hypot(height, width)) * spread, 1.0)
    return np.clip(1.0 - np.hypot(ys - cy, xs - cx) / reach, 0.0, 1.0).astype(np.float32)


def scratch_lines(rgb: np.ndarray, seed: int = EFFECT_SEED) -> np.ndarray:
    """Faint vertical scratches at seeded positions."""
    height, width = rgb.shape[:2]
    rng = np.random.default_rng(seed)
    out = rgb.copy()
    for _ in range(max(3, width // 60)):
        x = int(rng.integers(0, width))
        top = int(rng.integers(0, max(1, height // 2)))
        bottom = min(height, top + int(rng.integers(height // 3 + 1, height + 1)))
        column = out[top:bottom, x]
        out[top:bottom, x] = column + (255.0 - column) * SCRATCH_OPACITY
    return out


class VintageEffectsService(ColorToolService):
    """
    Applies a style grade blended in at ``intensity``, then the shared
    tone controls and the optional film artifacts.

    ``dateStamp`` is accepted for compatibility but never drawn.
    """

    tool_name = "vintage-effect"
    mock_label = "Mock vintage effect applied"

    def transform(
        self,
        processor: ImageProcessor,
        rgba: np.ndarray,
        options: VintageEffectOptions,
        labels: List[str],
    ) -> np.ndarray:
        image = super().transform(processor, rgba, options, labels)
        if options.border == VintageBorder.NONE:
            return image

        w = options.border_width
        margins = {
            VintageBorder.FILM: (max(1, w // 2), w, max(1, w // 2), w),
            VintageBorder.POLAROID: (w, w, w, 3 * w),
        }.get(options.border, (w, w, w, w))
        labels.append(f"{options.border.value.capitalize()} border")
        return framed(processor, image, margins, BORDER_COLORS[options.border])

    def transform_rgb(
        self,
        processor: ImageProcessor,
        rgb: np.ndarray,
        options: VintageEffectOptions,
        labels: List[str],
    ) -> np.ndarray:
        styled = self._style(processor, rgb, options)
        rgb = processor.blend(rgb, styled, options.intensity / 100.0)
        labels.append(STYLE_LABELS[options.vintage_style])

        if options.saturation != 0:
            rgb = processor.saturation(rgb, 1.0 + options.saturation / 100.0)
        if options.brightness != 0:
            rgb = processor.offset_channels(rgb, (options.brightness * 2.55,) * 3)
        if options.contrast != 0:
            rgb = processor.contrast(rgb, 1.0 + options.contrast / 100.0)

        balance = options.color_balance
        if balance.red or balance.green or balance.blue:
            rgb = processor.offset_channels(
                rgb, (balance.red * 0.5, balance.green * 0.5, balance.blue * 0.5)
            )
            labels.append("Color balance")
        if options.color_shift != 0:
            shift = 0.2 * options.color_shift / 100.0
            rgb = processor.scale_channels(rgb, (1.0 + shift, 1.0, 1.0 - shift))
            labels.append("Color shift")

        height, width = rgb.shape[:2]
        if options.film_grain > 0:
            noise = filters.grain(height, width, GRAIN_STRENGTH * options.film_grain / 100.0, EFFECT_SEED)
            rgb = filters.clamp(rgb + noise[..., None])
            labels.append("Film grain")
        if options.vignette and options.vignette_intensity > 0:
            falloff = filters.radial_falloff(height, width)
            fade = 1.0 - VIGNETTE_STRENGTH * options.vignette_intensity / 100.0 * falloff
            rgb = filters.clamp(rgb * fade[..., None])
            labels.append("Vignette")
        if options.light_leak and options.light_leak_type != LightLeakType.NONE:
            rgb = self._light_leak(rgb, options.light_leak_type)
            labels.append(f"{options.light_leak_type.value.capitalize()} light leak")
        if options.scratches:
            rgb = scratch_lines(rgb)
            labels.append("Film scratches")

        return rgb

    @staticmethod
    def _style(processor: ImageProcessor, rgb: np.ndarray, options: VintageEffectOptions) -> np.ndarray:
        style = options.vintage_style
        if style == VintageStyle.CLASSIC:
            return processor.mix_channels(rgb, scaled_rows(SEPIA_MATRIX, (1.05, 1.0, 0.9)))
        if style == VintageStyle.SEPIA:
            return processor.mix_channels(rgb, scaled_rows(SEPIA_MATRIX, (1.1, 1.0, 0.8)))
        if style == VintageStyle.NOIR:
            gray = processor.saturation(rgb, 0.0)
            gray = processor.contrast(gray, 1.5)
            return processor.scale_channels(gray, (0.95, 0.95, 1.05))
        if style == VintageStyle.FADED:
            rgb = processor.saturation(rgb, 0.6)
            rgb = processor.scale_channels(rgb, (1.05, 1.05, 1.0))
            return processor.contrast(rgb, 0.8)
        if style == VintageStyle.TECHNICOLOR:
            rgb = processor.scale_channels(rgb, (1.2, 1.1, 1.3))
            return processor.contrast(rgb, 1.2)
        if style == VintageStyle.POLAROID:
            rgb = processor.saturation(rgb, 0.8)
            rgb = processor.scale_channels(rgb, (1.1, 1.05, 0.95))
            return processor.offset_channels(rgb, (10.0, 10.0, 10.0))
        if style == VintageStyle.CINEMATIC:
            bright = processor.luminance(rgb) > 128
            warm = processor.scale_channels(rgb, (1.1, 1.05, 0.9))
            cool = processor.scale_channels(rgb, (0.9, 1.05, 1.1))
            return processor.contrast(np.where(bright[..., None], warm, cool), 1.15)
        if style == VintageStyle.RETRO:
            rgb = processor.saturation(rgb, 1.2)
            rgb = processor.scale_channels(rgb, (1.05, 0.95, 1.1))
            return processor.contrast(rgb, 1.1)
        # Custom grades come entirely from the shared tone controls
        return rgb

    @staticmethod
    def _light_leak(rgb: np.ndarray, kind: LightLeakType) -> np.ndarray:
        height, width = rgb.shape[:2]
        spread, opacity = LEAK_SHAPES[kind]
        if kind == LightLeakType.RANDOM:
            corner = int(np.random.default_rng(EFFECT_SEED).integers(0, 4))
        else:
            corner = 1 if kind == LightLeakType.SOFT else 0
        glow = corner_glow(height, width, corner, spread)
        return filters.screen(rgb, LEAK_COLOR, glow * opacity)
