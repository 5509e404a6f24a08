"""
Crop Service - rectangular crop.

The crop rectangle is validated against the probed dimensions before
this service runs, so every tier produces exactly ``width x height``.
Smart and face-detect crop modes currently behave like precise crops.
"""

import logging
from typing import List

import numpy as np

from core.image.processors import ImageProcessor
from schemas.image import CropOptions

from .image_tool_service import ImageToolService

logger = logging.getLogger(__name__)


class CropService(ImageToolService):
    tool_name = "crop"
    mock_label = "Mock crop applied"

    def transform(
        self, processor: ImageProcessor, rgba: np.ndarray, options: CropOptions, labels: List[str]
    ) -> np.ndarray:
        cropped = processor.crop(rgba, options.x, options.y, options.width, options.height)
        labels.append(f"Cropped to {options.width}x{options.height}")
        return cropped
