"""
Unblur Service - deblurring by kernel sharpening.

Algorithms (with ``s = strength / 100``):
- deconvolution: odd kernel sized from the blur radius, centre ``1 + (n^2 - 1)s``
- neural: cross sharpen blended by ``s`` plus a light Laplacian high-pass
- adaptive: full sharpen blended per pixel by normalised local variance
- auto: contrast around mean luminance, cross sharpen, then a mild edge kernel

The Laplacian kernel sums to zero, so it is used as a high-pass added to
the image rather than as a replacement for it.
"""

import logging
from typing import List

import numpy as np

from core.constants import UnblurScore
from core.enums import UnblurAlgorithm
from core.image import filters
from core.image.processors import ImageProcessor
from schemas.image import UnblurOptions

from .image_tool_service import ColorToolService

logger = logging.getLogger(__name__)

AUTO_EDGE_KERNEL = filters.neighbour_kernel(1.8, -0.1)


class UnblurService(ColorToolService):
    tool_name = "unblur"
    mock_label = "Mock unblurring applied"
    score_table = UnblurScore.TABLE
    score_base = UnblurScore.BASE
    score_header = "X-Clarity-Score"

    def transform_rgb(
        self, processor: ImageProcessor, rgb: np.ndarray, options: UnblurOptions, labels: List[str]
    ) -> np.ndarray:
        s = options.strength / 100.0
        algorithm = options.algorithm

        if algorithm == UnblurAlgorithm.DECONVOLUTION:
            rgb = processor.convolve(rgb, filters.deconvolution_kernel(options.radius, s))
            labels.append("Deconvolution algorithm")
        elif algorithm == UnblurAlgorithm.NEURAL:
            rgb = self._neural(processor, rgb, s)
            labels.append("Neural enhancement")
        elif algorithm == UnblurAlgorithm.ADAPTIVE:
            rgb = self._adaptive(processor, rgb, s)
            labels.append("Adaptive sharpening")
        else:
            mean_luma = float(np.mean(processor.luminance(rgb)))
            rgb = processor.contrast(rgb, 1.1 + 0.2 * s, mean_luma)
            rgb = processor.convolve(rgb, filters.SHARPEN_CROSS)
            rgb = processor.convolve(rgb, AUTO_EDGE_KERNEL)
            labels.append("Auto unblur enhancement")

        if options.preserve_details:
            high_pass = rgb - processor.gaussian(rgb)
            rgb = filters.clamp(rgb + 0.5 * high_pass)
            labels.append("Detail preservation")
        if options.reduce_noise:
            rgb = processor.median(rgb)
            labels.append("Noise reduction")
        if options.enhance_edges:
            edges = filters.clamp(rgb + 0.5 * processor.correlate(rgb, filters.EDGE_LAPLACIAN))
            rgb = processor.blend(rgb, edges, 0.3)
            labels.append("Edge enhancement")

        if options.iterations > 1:
            for _ in range(options.iterations - 1):
                sharpened = processor.convolve(rgb, filters.SHARPEN_CROSS)
                rgb = processor.blend(rgb, sharpened, 0.5 * s)
            labels.append(f"{options.iterations}x iterations")

        return rgb

    @staticmethod
    def _neural(processor: ImageProcessor, rgb: np.ndarray, s: float) -> np.ndarray:
        sharpened = processor.blend(rgb, processor.convolve(rgb, filters.SHARPEN_CROSS), s)
        high_pass = processor.correlate(rgb, filters.EDGE_LAPLACIAN)
        return filters.clamp(sharpened + 0.3 * 0.5 * s * high_pass)

    @staticmethod
    def _adaptive(processor: ImageProcessor, rgb: np.ndarray, s: float) -> np.ndarray:
        sharpened = processor.convolve(rgb, filters.SHARPEN_FULL)
        variance = processor.local_variance(processor.luminance(rgb))
        peak = float(variance.max())
        if peak <= 0:
            return rgb
        weight = np.clip(variance / peak * (1.0 + s), 0.0, 1.0)
        return processor.blend(rgb, sharpened, weight)

    def score_bonus(self, options: UnblurOptions) -> float:
        return (
            options.strength / 100.0 * UnblurScore.STRENGTH_WEIGHT
            + (options.iterations - 1) * UnblurScore.ITERATION_WEIGHT
        )
