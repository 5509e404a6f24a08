"""
Artistic Filters Service - painterly and graphic looks.

Six filters (oil, watercolor, sketch, comic, pointillism, impressionist),
each followed by optional detail preservation, contrast, a surface texture
and a border.
"""

import logging
from typing import List

import numpy as np

from core.constants import ArtisticScore
from core.enums import ArtisticFilter, BackgroundTexture, BorderStyle
from core.image import filters
from core.image.processors import ImageProcessor
from schemas.image import ArtisticFilterOptions

from .image_tool_service import ColorToolService, framed, masked

logger = logging.getLogger(__name__)

DETAIL_KERNEL = filters.neighbour_kernel(1.8, -0.1)
FRAME_COLOR = (62, 42, 26, 255)

FILTER_LABELS = {
    ArtisticFilter.OIL: "Oil painting effect",
    ArtisticFilter.WATERCOLOR: "Watercolor effect",
    ArtisticFilter.SKETCH: "Sketch effect",
    ArtisticFilter.COMIC: "Comic style",
    ArtisticFilter.POINTILLISM: "Pointillism effect",
    ArtisticFilter.IMPRESSIONIST: "Impressionist style",
}


def gray3(processor: ImageProcessor, rgb: np.ndarray) -> np.ndarray:
    """Luma repeated over three channels."""
    return np.repeat(processor.luminance(rgb)[..., None], 3, axis=-1).astype(np.float32)


class ArtisticFiltersService(ColorToolService):
    """
    Applies one artistic filter.

    With ``i = intensity``, ``d = detailLevel`` and ``s = colorSaturation``
    (all as fractions), the score is ``7.5`` plus the filter and extras
    points plus ``0.5i + 0.3d + 0.2s``, capped at 10. Borders grow the
    canvas by ``borderWidth`` on every side; the frame style adds a
    moulding of half that width around the mat.
    """

    tool_name = "artistic-filter"
    mock_label = "Mock artistic filter applied"
    score_table = ArtisticScore.TABLE
    score_base = ArtisticScore.BASE
    score_header = "X-Artistic-Score"

    def transform(
        self,
        processor: ImageProcessor,
        rgba: np.ndarray,
        options: ArtisticFilterOptions,
        labels: List[str],
    ) -> np.ndarray:
        image = super().transform(processor, rgba, options, labels)
        if options.border_style == BorderStyle.NONE:
            return image
        image = self._border(processor, image, options)
        labels.append(f"{options.border_style.value.capitalize()} border")
        return image

    def transform_rgb(
        self,
        processor: ImageProcessor,
        rgb: np.ndarray,
        options: ArtisticFilterOptions,
        labels: List[str],
    ) -> np.ndarray:
        kind = options.filter_type
        paint = {
            ArtisticFilter.OIL: self._oil,
            ArtisticFilter.WATERCOLOR: self._watercolor,
            ArtisticFilter.SKETCH: self._sketch,
            ArtisticFilter.COMIC: self._comic,
            ArtisticFilter.POINTILLISM: self._pointillism,
            ArtisticFilter.IMPRESSIONIST: self._impressionist,
        }[kind]
        rgb = paint(processor, rgb, options)
        labels.append(FILTER_LABELS[kind])

        painted_detail = kind not in (ArtisticFilter.SKETCH, ArtisticFilter.POINTILLISM)
        if options.preserve_details and painted_detail:
            sharp = processor.convolve(rgb, DETAIL_KERNEL)
            rgb = processor.blend(rgb, sharp, options.detail_level / 100.0)
            labels.append("Detail preservation")
        if options.enhance_contrast:
            rgb = processor.contrast(rgb, 1.2)
            labels.append("Contrast enhancement")
        if options.background_texture != BackgroundTexture.NONE:
            height, width = rgb.shape[:2]
            plane = filters.texture_plane(height, width, options.background_texture.value)
            rgb = filters.clamp(rgb * plane[..., None])
            labels.append(f"{options.background_texture.value.capitalize()} texture")

        return rgb

    @staticmethod
    def _oil(processor: ImageProcessor, rgb: np.ndarray, options: ArtisticFilterOptions) -> np.ndarray:
        i = options.intensity / 100.0
        rgb = processor.saturation(rgb, 1.0 + options.color_saturation / 100.0)
        rgb = processor.blur(rgb, max(0.5, options.brush_size / 20.0))
        rgb = filters.posterize(rgb, int(round(16 - 10 * i)))
        return processor.convolve(rgb, filters.SHARPEN_CROSS)

    @staticmethod
    def _watercolor(
        processor: ImageProcessor, rgb: np.ndarray, options: ArtisticFilterOptions
    ) -> np.ndarray:
        i = options.intensity / 100.0
        rgb = processor.brightness(rgb, 1.05)
        rgb = processor.saturation(rgb, 0.8 + options.color_saturation / 150.0)
        washed = processor.blur(rgb, max(0.5, options.brush_size / 25.0))
        return processor.blend(rgb, washed, 0.5 + 0.5 * i)

    @staticmethod
    def _sketch(processor: ImageProcessor, rgb: np.ndarray, options: ArtisticFilterOptions) -> np.ndarray:
        gray = gray3(processor, rgb)
        edges = processor.convolve(gray, filters.EDGE_LAPLACIAN)
        edges = processor.contrast(edges, 1.0 + options.intensity / 100.0, 0.0)
        pencil = 255.0 - edges
        if options.intensity > 80:
            return pencil
        return processor.blend(gray, pencil, 0.7)

    @staticmethod
    def _comic(processor: ImageProcessor, rgb: np.ndarray, options: ArtisticFilterOptions) -> np.ndarray:
        i = options.intensity / 100.0
        rgb = processor.saturation(rgb, 1.3 + 0.7 * options.color_saturation / 100.0)
        rgb = filters.posterize(rgb, 6)
        rgb = processor.contrast(rgb, 1.2 + 0.8 * i)

        edges = processor.convolve(gray3(processor, rgb), filters.EDGE_LAPLACIAN)[..., 0]
        ink = edges > 100 - 60 * options.detail_level / 100.0
        return masked(ink, np.zeros_like(rgb), rgb)

    @staticmethod
    def _pointillism(
        processor: ImageProcessor, rgb: np.ndarray, options: ArtisticFilterOptions
    ) -> np.ndarray:
        spacing = max(2, 10 - options.stroke_density // 10)
        radius = spacing * (0.4 + 0.3 * options.brush_size / 100.0)
        rgb = processor.saturation(rgb, 1.0 + options.color_saturation / 100.0)
        return filters.stipple(rgb, spacing, radius)

    @staticmethod
    def _impressionist(
        processor: ImageProcessor, rgb: np.ndarray, options: ArtisticFilterOptions
    ) -> np.ndarray:
        i = options.intensity / 100.0
        rgb = processor.saturation(rgb, 1.1 + options.color_saturation / 110.0)
        rgb = processor.blur(rgb, max(0.5, options.brush_size / 15.0))
        return processor.shift_hue(rgb, 10.0 * i)

    @staticmethod
    def _border(processor: ImageProcessor, rgba: np.ndarray, options: ArtisticFilterOptions) -> np.ndarray:
        width = options.border_width
        color = filters.parse_hex_color(options.border_color)

        if options.border_style == BorderStyle.ARTISTIC:
            line = width // 5
            if line:
                shade = tuple(int(c * 0.6) for c in color[:3]) + (255,)
                rgba = framed(processor, rgba, (line,) * 4, shade)
            return framed(processor, rgba, (width - line,) * 4, color)
        if options.border_style == BorderStyle.FRAME:
            rgba = framed(processor, rgba, (width,) * 4, color)
            edge = max(1, width // 2)
            return framed(processor, rgba, (edge,) * 4, FRAME_COLOR)
        return framed(processor, rgba, (width,) * 4, color)

    def score_bonus(self, options: ArtisticFilterOptions) -> float:
        return (
            options.intensity / 100.0 * ArtisticScore.INTENSITY_WEIGHT
            + options.detail_level / 100.0 * ArtisticScore.DETAIL_WEIGHT
            + options.color_saturation / 100.0 * ArtisticScore.SATURATION_WEIGHT
        )
