"""
Image Tool Service - shared pipeline for single-image tools.

Every tool follows the same shape:

    probe dimensions -> transform (primary -> secondary -> mock) -> encode -> score

Subclasses only describe the transform, in terms of ``ImageProcessor``
operations, so the same code runs on both processing tiers.
"""

import logging
from typing import List, Mapping, Optional, Sequence, Tuple

import numpy as np

from core.constants import ImageConstants
from core.enums import ProcessingTier
from core.fallback import FallbackResult, TierOutcome, with_fallback
from core.image import filters
from core.image.converters import ImageConverters
from core.image.encoder import encode_image
from core.image.probe import detect_format, probe_dimensions
from core.image.processors import ImageProcessor, default_processors
from core.scoring import synthesize_score
from core.utils.decorators import timer
from schemas.common import Dimensions, ToolOptions, ToolResult

logger = logging.getLogger(__name__)


class ImageToolService:
    """
    Template for single-image tools.

    Attributes:
        tool_name: Short name used in logs and error codes
        mock_label: Label added when the passthrough tier is used
        score_table: Label point table, or None for tools without a score
        score_base: Starting score
        score_header: Response header carrying the score
    """

    tool_name = "image"
    mock_label = "Mock processing applied"
    score_table: Optional[Mapping[str, float]] = None
    score_base = 0.0
    score_header: Optional[str] = None

    def __init__(self, processors: Optional[Sequence[ImageProcessor]] = None):
        """
        Initialize the service.

        Args:
            processors: (primary, secondary) processors; defaults to
                OpenCV/Pillow followed by NumPy
        """
        self.primary, self.secondary = processors or default_processors()

    def transform(
        self, processor: ImageProcessor, rgba: np.ndarray, options: ToolOptions, labels: List[str]
    ) -> np.ndarray:
        """Apply the tool to an RGBA image, appending labels in order."""
        raise NotImplementedError

    def score_bonus(self, options: ToolOptions) -> float:
        """Option dependent score bonus added on non-mock tiers."""
        return 0.0

    def extras(self, buffer: bytes, result: ToolResult, options: ToolOptions) -> dict:
        """Tool specific values exposed to the router."""
        return {}

    def process(
        self, buffer: bytes, options: ToolOptions, dimensions: Optional[Dimensions] = None
    ) -> ToolResult:
        """
        Run the tool on an encoded image.

        Args:
            buffer: Uploaded image bytes
            options: Validated tool options
            dimensions: Already probed dimensions, probed here if omitted

        Returns:
            ToolResult with encoded bytes (or the original bytes for the mock tier)
        """
        logger.info(f"Starting {self.tool_name} processing ({len(buffer)} bytes)")

        with timer() as t:
            original = dimensions or probe_dimensions(buffer)
            fallback = with_fallback(
                lambda: self._run_tier(self.primary, buffer, options),
                lambda: self._run_tier(self.secondary, buffer, options),
                lambda: TierOutcome(image=None, labels=[self.mock_label]),
                operation=self.tool_name,
            )
            result = self._build_result(buffer, options, original, fallback)

        result.processing_time_ms = t["ms"]
        result.extras = self.extras(buffer, result, options)
        logger.info(
            f"{self.tool_name} completed in {result.processing_time_ms}ms "
            f"({result.tier.value} tier, {result.processed_dimensions})"
        )
        return result

    def _run_tier(
        self, processor: ImageProcessor, buffer: bytes, options: ToolOptions
    ) -> TierOutcome:
        labels: List[str] = []
        rgba = processor.decode(buffer)
        image = self.transform(processor, rgba, options, labels)
        return TierOutcome(image=image, labels=labels)

    def _build_result(
        self,
        buffer: bytes,
        options: ToolOptions,
        original: Dimensions,
        fallback: FallbackResult,
    ) -> ToolResult:
        labels = list(fallback.outcome.labels)

        if fallback.is_mock:
            source_format = detect_format(buffer) or ImageConstants.DEFAULT_OUTPUT_FORMAT
            return ToolResult(
                buffer=buffer,
                format=source_format,
                mime_type=ImageConstants.MIME_TYPES.get(source_format, "application/octet-stream"),
                original_dimensions=original,
                processed_dimensions=original,
                labels=labels,
                score=self._score(labels, options, ProcessingTier.MOCK),
                tier=ProcessingTier.MOCK,
            )

        encoded = encode_image(fallback.outcome.image, options.output_format, options.quality)
        return ToolResult(
            buffer=encoded.data,
            format=encoded.extension,
            mime_type=encoded.mime_type,
            original_dimensions=original,
            processed_dimensions=Dimensions.of(fallback.outcome.image),
            labels=labels,
            score=self._score(labels, options, fallback.tier),
            tier=fallback.tier,
        )

    def _score(
        self, labels: List[str], options: ToolOptions, tier: ProcessingTier
    ) -> Optional[float]:
        if self.score_table is None:
            return None
        bonus = 0.0 if tier == ProcessingTier.MOCK else self.score_bonus(options)
        return synthesize_score(self.score_table, labels, self.score_base, bonus)


class ColorToolService(ImageToolService):
    """Tool whose transform only touches colour; alpha is carried through."""

    def transform(
        self, processor: ImageProcessor, rgba: np.ndarray, options: ToolOptions, labels: List[str]
    ) -> np.ndarray:
        rgb, alpha = ImageConverters.split_alpha(rgba)
        rgb = self.transform_rgb(processor, rgb, options, labels)
        return ImageConverters.merge_alpha(rgb, alpha)

    def transform_rgb(
        self, processor: ImageProcessor, rgb: np.ndarray, options: ToolOptions, labels: List[str]
    ) -> np.ndarray:
        raise NotImplementedError


def masked(mask: np.ndarray, changed: np.ndarray, original: np.ndarray) -> np.ndarray:
    """Take ``changed`` where ``mask`` is set and ``original`` elsewhere."""
    return np.where(mask[..., None], changed, original)


def vibrance(processor: ImageProcessor, rgb: np.ndarray, amount: float) -> np.ndarray:
    """Saturation change weighted towards muted pixels (``amount`` in -1..1)."""
    chroma = (rgb.max(axis=-1) - rgb.min(axis=-1)) / 255.0
    return processor.blend(rgb, processor.saturation(rgb, 1.0 + amount), 1.0 - chroma)


def tonal_offset(
    processor: ImageProcessor, rgb: np.ndarray, shadows: float, highlights: float
) -> np.ndarray:
    """
    Lift or lower shadows and highlights separately.

    Values below the 128 pivot move by ``(128 - v) * shadows`` and values
    above it by ``(v - 128) * highlights`` (both in -1..1).
    """
    luma = processor.luminance(rgb)
    weight = np.where(luma < 128, (128.0 - luma) * shadows, (luma - 128.0) * highlights)
    return filters.clamp(rgb + weight[..., None])


def framed(
    processor: ImageProcessor,
    rgba: np.ndarray,
    margins: Tuple[int, int, int, int],
    color: Tuple[int, int, int, int],
) -> np.ndarray:
    """Place the image on a larger solid canvas; margins are (left, top, right, bottom)."""
    left, top, right, bottom = margins
    height, width = rgba.shape[:2]
    size = (width + left + right, height + top + bottom)
    return processor.compose(size, color, [(rgba, left, top)])


def temperature_tint(
    processor: ImageProcessor,
    rgb: np.ndarray,
    temperature: float,
    tint: float,
    warm: Tuple[float, float] = (30.0, 15.0),
    cool: float = 30.0,
    tint_gain: float = 20.0,
) -> np.ndarray:
    """
    White balance offsets for ``temperature`` and ``tint`` in -100..100.

    Warm adds ``warm`` to red and green, cool adds ``cool`` to blue;
    positive tint pushes red and blue (magenta), negative pushes green.
    """
    t = temperature / 100.0
    if t > 0:
        rgb = processor.offset_channels(rgb, (warm[0] * t, warm[1] * t, 0.0))
    elif t < 0:
        rgb = processor.offset_channels(rgb, (0.0, 0.0, cool * -t))

    g = tint / 100.0
    if g > 0:
        rgb = processor.offset_channels(rgb, (tint_gain * g, 0.0, tint_gain * g))
    elif g < 0:
        rgb = processor.offset_channels(rgb, (0.0, tint_gain * -g, 0.0))
    return rgb
