"""
Rotate/Flip Service - rotation, mirroring and multi-image combine.

Each uploaded image goes through the backend fallback on its own, in
worker threads. When more than one image is uploaded the results are
combined once, side by side, top to bottom or overlaid. Combine has a
Pillow tier and a NumPy tier and no passthrough: if both fail the request
fails.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from api.exceptions import ProcessingError
from core.constants import ErrorMessages, ImageConstants
from core.enums import Alignment, CombineMode, ProcessingTier
from core.fallback import TierOutcome, with_fallback
from core.image import filters
from core.image.encoder import encode_image
from core.image.probe import detect_format, probe_dimensions
from core.image.processors import ImageProcessor, default_processors
from core.utils.decorators import timer
from schemas.common import Dimensions, ToolResult
from schemas.image import RotateFlipOptions

logger = logging.getLogger(__name__)

_TIER_ORDER = [ProcessingTier.PRIMARY, ProcessingTier.SECONDARY, ProcessingTier.MOCK]


@dataclass
class RotatedImage:
    """One image after the per-image pass."""

    source: bytes
    original: Dimensions
    tier: ProcessingTier
    labels: List[str] = field(default_factory=list)
    image: Optional[np.ndarray] = None

    @property
    def dimensions(self) -> Dimensions:
        return Dimensions.of(self.image) if self.image is not None else self.original


def format_angle(angle: float) -> str:
    return f"{angle:g}"


def combine_layout(
    sizes: Sequence[Tuple[int, int]], mode: CombineMode, spacing: int, alignment: Alignment
) -> Tuple[Tuple[int, int], List[Tuple[int, int]]]:
    """
    Compute the canvas size and each image's top-left offset.

    Args:
        sizes: (width, height) of each image in order
        mode: side-by-side, top-bottom or overlay
        spacing: Gap between consecutive images (ignored for overlay)
        alignment: Cross-axis placement (both axes for overlay)

    Returns:
        ((canvas_width, canvas_height), [(left, top), ...])

    Example:
        >>> combine_layout([(100, 50), (60, 80)], CombineMode.SIDE_BY_SIDE, 10, Alignment.START)
        ((170, 80), [(0, 0), (110, 0)])
    """

    def align(free: int) -> int:
        if alignment == Alignment.CENTER:
            return (free + 1) // 2
        if alignment == Alignment.END:
            return free
        return 0

    widths = [w for w, _ in sizes]
    heights = [h for _, h in sizes]
    gaps = spacing * (len(sizes) - 1)
    positions: List[Tuple[int, int]] = []

    if mode == CombineMode.SIDE_BY_SIDE:
        canvas = (sum(widths) + gaps, max(heights))
        left = 0
        for w, h in sizes:
            positions.append((left, align(canvas[1] - h)))
            left += w + spacing
    elif mode == CombineMode.TOP_BOTTOM:
        canvas = (max(widths), sum(heights) + gaps)
        top = 0
        for w, h in sizes:
            positions.append((align(canvas[0] - w), top))
            top += h + spacing
    elif mode == CombineMode.OVERLAY:
        canvas = (max(widths), max(heights))
        for w, h in sizes:
            positions.append((align(canvas[0] - w), align(canvas[1] - h)))
    else:
        raise ValueError(f"Unsupported combine mode: {mode}")

    return canvas, positions


class RotateFlipService:
    """Rotate, flip and optionally combine 1-5 images."""

    tool_name = "rotate-flip"
    mock_label = "Mock processing applied"

    def __init__(self, processors: Optional[Sequence[ImageProcessor]] = None):
        self.primary, self.secondary = processors or default_processors()

    def transform(
        self,
        processor: ImageProcessor,
        rgba: np.ndarray,
        options: RotateFlipOptions,
        labels: List[str],
    ) -> np.ndarray:
        """Rotate, flip, then crop to fit (for non-quarter angles)."""
        height, width = rgba.shape[:2]
        angle = options.rotation

        if angle != 0:
            fill = filters.parse_hex_color(options.background_color)
            rgba = processor.rotate(rgba, angle, fill)
            labels.append(f"Rotated {format_angle(angle)}°")

        if options.flip_horizontal or options.flip_vertical:
            rgba = processor.flip(rgba, options.flip_horizontal, options.flip_vertical)
            if options.flip_horizontal:
                labels.append("Flipped horizontally")
            if options.flip_vertical:
                labels.append("Flipped vertically")

        if options.crop_to_fit and angle % 90 != 0:
            new_w, new_h = filters.rotated_bounds(width, height, angle)
            rgba = processor.center_crop(rgba, min(width, new_w), min(height, new_h))
            labels.append("Cropped to fit")

        return rgba

    def process_single(self, buffer: bytes, options: RotateFlipOptions) -> RotatedImage:
        """Run one image through the fallback tiers."""
        original = probe_dimensions(buffer)

        def run(processor: ImageProcessor) -> TierOutcome:
            labels: List[str] = []
            image = self.transform(processor, processor.decode(buffer), options, labels)
            return TierOutcome(image=image, labels=labels)

        result = with_fallback(
            lambda: run(self.primary),
            lambda: run(self.secondary),
            lambda: TierOutcome(image=None, labels=[self.mock_label]),
            operation=self.tool_name,
        )
        return RotatedImage(
            source=buffer,
            original=original,
            tier=result.tier,
            labels=result.outcome.labels,
            image=result.outcome.image,
        )

    def combine(
        self, images: Sequence[RotatedImage], options: RotateFlipOptions
    ) -> Tuple[np.ndarray, ProcessingTier]:
        """
        Combine processed images onto one canvas.

        Images that fell back to passthrough are decoded from their
        original bytes.

        Raises:
            ProcessingError: If neither combine tier succeeds
        """
        background = filters.parse_hex_color(options.background_color)
        errors = []

        for processor in (self.primary, self.secondary):
            try:
                pixels = [
                    item.image if item.image is not None else processor.decode(item.source)
                    for item in images
                ]
                sizes = [(p.shape[1], p.shape[0]) for p in pixels]
                canvas, positions = combine_layout(
                    sizes, options.combine_mode, options.spacing, options.alignment
                )
                placements = [(p, left, top) for p, (left, top) in zip(pixels, positions)]
                return processor.compose(canvas, background, placements), processor.tier
            except Exception as e:
                logger.warning(f"Combine with {processor.tier.value} tier failed: {e}")
                errors.append(str(e))

        raise ProcessingError(
            ErrorMessages.COMBINE_FAILED.format(error="; ".join(errors)),
            code="ROTATE_FLIP_PROCESSING_ERROR",
        )

    async def process_images(
        self, buffers: Sequence[bytes], options: RotateFlipOptions
    ) -> ToolResult:
        """
        Process all uploads concurrently, then combine when requested.

        Args:
            buffers: Encoded images (1-5)
            options: Validated options; ``combine_mode`` already defaulted

        Returns:
            ToolResult; ``extras["image_count"]`` holds the number of inputs
        """
        logger.info(f"Starting rotate/flip processing for {len(buffers)} image(s)")

        with timer() as t:
            processed = await asyncio.gather(
                *(asyncio.to_thread(self.process_single, b, options) for b in buffers)
            )
            first = processed[0]

            if len(processed) == 1 or options.combine_mode in (None, CombineMode.NONE):
                result = self._single_result(first, options)
            else:
                combined, combine_tier = await asyncio.to_thread(self.combine, processed, options)
                # Combined output is always re-encoded, never a passthrough
                tiers = [p.tier for p in processed if p.tier != ProcessingTier.MOCK]
                worst = max(tiers + [combine_tier], key=_TIER_ORDER.index)
                encoded = encode_image(combined, options.output_format, options.quality)
                result = ToolResult(
                    buffer=encoded.data,
                    format=encoded.extension,
                    mime_type=encoded.mime_type,
                    original_dimensions=first.original,
                    processed_dimensions=Dimensions.of(combined),
                    labels=first.labels + [f"Combined {len(processed)} images"],
                    tier=worst,
                )

        result.processing_time_ms = t["ms"]
        result.extras = {"image_count": len(buffers)}
        logger.info(
            f"Rotate/flip completed in {result.processing_time_ms}ms "
            f"({result.tier.value} tier, {result.processed_dimensions})"
        )
        return result

    def _single_result(self, item: RotatedImage, options: RotateFlipOptions) -> ToolResult:
        if item.image is None:
            source_format = detect_format(item.source) or ImageConstants.DEFAULT_OUTPUT_FORMAT
            return ToolResult(
                buffer=item.source,
                format=source_format,
                mime_type=ImageConstants.MIME_TYPES.get(source_format, "application/octet-stream"),
                original_dimensions=item.original,
                processed_dimensions=item.original,
                labels=item.labels,
                tier=ProcessingTier.MOCK,
            )

        encoded = encode_image(item.image, options.output_format, options.quality)
        return ToolResult(
            buffer=encoded.data,
            format=encoded.extension,
            mime_type=encoded.mime_type,
            original_dimensions=item.original,
            processed_dimensions=item.dimensions,
            labels=item.labels,
            tier=item.tier,
        )
