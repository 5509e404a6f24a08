"""
Image processing backends.

Every image tool describes its transform once in terms of the operations
below and runs it against two interchangeable backends:

- PipelineProcessor: OpenCV / Pillow library pipeline (primary tier)
- RasterProcessor: explicit NumPy raster arithmetic (secondary tier)

Colour operations work on float32 RGB planes in the 0-255 range and clamp
their result. Geometry operations work on RGBA uint8 arrays.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Sequence, Tuple

import cv2
import numpy as np
from PIL import Image

from core.enums import ProcessingTier, UpscaleAlgorithm
from core.image import filters
from core.image.converters import ImageConverters

logger = logging.getLogger(__name__)

Placement = Tuple[np.ndarray, int, int]


class ImageProcessor(ABC):
    """Operations shared by all processing tiers."""

    tier: ProcessingTier

    @abstractmethod
    def decode(self, buffer: bytes) -> np.ndarray:
        """Decode bytes to an RGBA uint8 array."""

    # Colour

    @abstractmethod
    def luminance(self, rgb: np.ndarray) -> np.ndarray:
        """Luma plane of an RGB image."""

    @abstractmethod
    def saturation(self, rgb: np.ndarray, factor: float) -> np.ndarray:
        """Scale colour distance from the luma: ``gray + (c - gray) * factor``."""

    @abstractmethod
    def brightness(self, rgb: np.ndarray, factor: float) -> np.ndarray:
        """Multiply all channels by ``factor``."""

    @abstractmethod
    def contrast(self, rgb: np.ndarray, factor: float, pivot: float = 128.0) -> np.ndarray:
        """Stretch values around ``pivot``."""

    @abstractmethod
    def scale_channels(self, rgb: np.ndarray, factors: Sequence[float]) -> np.ndarray:
        """Multiply R, G and B by separate factors."""

    @abstractmethod
    def offset_channels(self, rgb: np.ndarray, offsets: Sequence[float]) -> np.ndarray:
        """Add separate offsets to R, G and B."""

    @abstractmethod
    def normalize(self, rgb: np.ndarray) -> np.ndarray:
        """Per-channel min/max stretch to 0-255."""

    @abstractmethod
    def gray_world(self, rgb: np.ndarray) -> np.ndarray:
        """Balance channel means to their common average."""

    @abstractmethod
    def mix_channels(self, rgb: np.ndarray, matrix: Sequence[Sequence[float]]) -> np.ndarray:
        """Recombine channels through a 3x3 matrix (one row per output channel)."""

    @abstractmethod
    def apply_curve(self, rgb: np.ndarray, lut: np.ndarray) -> np.ndarray:
        """Map values through a 256 entry tone curve."""

    @abstractmethod
    def shift_hue(self, rgb: np.ndarray, degrees: float) -> np.ndarray:
        """Rotate hue, keeping HSV saturation and value."""

    # Neighbourhood

    @abstractmethod
    def correlate(self, rgb: np.ndarray, kernel: np.ndarray) -> np.ndarray:
        """Unclamped kernel response with reflected borders."""

    def convolve(self, rgb: np.ndarray, kernel: np.ndarray) -> np.ndarray:
        return filters.clamp(self.correlate(rgb, kernel))

    @abstractmethod
    def median(self, rgb: np.ndarray) -> np.ndarray:
        """3x3 median filter."""

    @abstractmethod
    def gaussian(self, rgb: np.ndarray) -> np.ndarray:
        """3x3 Gaussian blur (1-2-1 weights)."""

    @abstractmethod
    def blur(self, rgb: np.ndarray, sigma: float) -> np.ndarray:
        """Gaussian blur of any radius (kernel reaches 3 sigma)."""

    @abstractmethod
    def local_variance(self, plane: np.ndarray) -> np.ndarray:
        """3x3 local variance of a single plane."""

    # Geometry

    @abstractmethod
    def crop(self, rgba: np.ndarray, x: int, y: int, width: int, height: int) -> np.ndarray:
        """Extract a rectangle."""

    @abstractmethod
    def rotate(self, rgba: np.ndarray, angle: float, fill: Tuple[int, int, int, int]) -> np.ndarray:
        """Rotate clockwise onto an expanded canvas filled with ``fill``."""

    @abstractmethod
    def flip(self, rgba: np.ndarray, horizontal: bool, vertical: bool) -> np.ndarray:
        """Mirror along one or both axes."""

    @abstractmethod
    def resize(
        self, rgba: np.ndarray, width: int, height: int, algorithm: UpscaleAlgorithm
    ) -> np.ndarray:
        """Resample to exactly ``width x height``."""

    @abstractmethod
    def compose(
        self,
        size: Tuple[int, int],
        background: Tuple[int, int, int, int],
        placements: List[Placement],
    ) -> np.ndarray:
        """Alpha-composite ``(image, left, top)`` placements onto a new canvas in order."""

    # Shared helpers

    @staticmethod
    def blend(original: np.ndarray, processed: np.ndarray, factor) -> np.ndarray:
        return filters.blend(original, processed, factor)

    @staticmethod
    def center_crop(rgba: np.ndarray, width: int, height: int) -> np.ndarray:
        return filters.center_crop(rgba, width, height)


class PipelineProcessor(ImageProcessor):
    """Primary tier built on OpenCV and Pillow."""

    tier = ProcessingTier.PRIMARY

    _INTERPOLATION = {
        UpscaleAlgorithm.LANCZOS: cv2.INTER_LANCZOS4,
        UpscaleAlgorithm.CUBIC: cv2.INTER_CUBIC,
        UpscaleAlgorithm.LINEAR: cv2.INTER_LINEAR,
        UpscaleAlgorithm.NEAREST: cv2.INTER_NEAREST,
    }

    _QUARTER_TURNS = {
        1: cv2.ROTATE_90_CLOCKWISE,
        2: cv2.ROTATE_180,
        3: cv2.ROTATE_90_COUNTERCLOCKWISE,
    }

    def decode(self, buffer: bytes) -> np.ndarray:
        return ImageConverters.decode_with_opencv(buffer)

    def luminance(self, rgb: np.ndarray) -> np.ndarray:
        return cv2.cvtColor(rgb, cv2.COLOR_RGB2GRAY)

    def saturation(self, rgb: np.ndarray, factor: float) -> np.ndarray:
        gray = cv2.cvtColor(self.luminance(rgb), cv2.COLOR_GRAY2RGB)
        return filters.clamp(cv2.addWeighted(rgb, factor, gray, 1.0 - factor, 0.0))

    def brightness(self, rgb: np.ndarray, factor: float) -> np.ndarray:
        return filters.clamp(cv2.addWeighted(rgb, factor, rgb, 0.0, 0.0))

    def contrast(self, rgb: np.ndarray, factor: float, pivot: float = 128.0) -> np.ndarray:
        return filters.clamp(cv2.addWeighted(rgb, factor, rgb, 0.0, pivot * (1.0 - factor)))

    def scale_channels(self, rgb: np.ndarray, factors: Sequence[float]) -> np.ndarray:
        matrix = np.diag(np.asarray(factors, dtype=np.float32))
        return filters.clamp(cv2.transform(rgb, matrix))

    def offset_channels(self, rgb: np.ndarray, offsets: Sequence[float]) -> np.ndarray:
        matrix = np.hstack(
            [np.eye(3, dtype=np.float32), np.asarray(offsets, dtype=np.float32).reshape(3, 1)]
        )
        return filters.clamp(cv2.transform(rgb, matrix))

    def normalize(self, rgb: np.ndarray) -> np.ndarray:
        channels = []
        for channel in cv2.split(rgb):
            low, high, _, _ = cv2.minMaxLoc(channel)
            if high > low:
                channel = cv2.normalize(channel, None, 0.0, 255.0, cv2.NORM_MINMAX)
            channels.append(channel)
        return filters.clamp(cv2.merge(channels))

    def gray_world(self, rgb: np.ndarray) -> np.ndarray:
        means = cv2.mean(rgb)[:3]
        return self.scale_channels(rgb, filters.gray_world_factors(means))

    def mix_channels(self, rgb: np.ndarray, matrix: Sequence[Sequence[float]]) -> np.ndarray:
        return filters.clamp(cv2.transform(rgb, np.asarray(matrix, dtype=np.float32)))

    def apply_curve(self, rgb: np.ndarray, lut: np.ndarray) -> np.ndarray:
        return cv2.LUT(filters.to_uint8(rgb), np.asarray(lut, dtype=np.float32))

    def shift_hue(self, rgb: np.ndarray, degrees: float) -> np.ndarray:
        # Float HSV: hue in degrees, saturation and value in 0-1
        hsv = cv2.cvtColor(rgb / np.float32(255.0), cv2.COLOR_RGB2HSV)
        hsv[..., 0] = (hsv[..., 0] + degrees) % 360.0
        return filters.clamp(cv2.cvtColor(hsv, cv2.COLOR_HSV2RGB) * np.float32(255.0))

    def correlate(self, rgb: np.ndarray, kernel: np.ndarray) -> np.ndarray:
        return cv2.filter2D(
            rgb, cv2.CV_32F, kernel.astype(np.float32), borderType=cv2.BORDER_REFLECT_101
        )

    def median(self, rgb: np.ndarray) -> np.ndarray:
        return cv2.medianBlur(np.ascontiguousarray(rgb, dtype=np.float32), 3)

    def gaussian(self, rgb: np.ndarray) -> np.ndarray:
        return cv2.GaussianBlur(rgb, (3, 3), 0, borderType=cv2.BORDER_REFLECT_101)

    def blur(self, rgb: np.ndarray, sigma: float) -> np.ndarray:
        kernel = filters.gaussian_kernel_1d(sigma)
        return filters.clamp(
            cv2.sepFilter2D(rgb, cv2.CV_32F, kernel, kernel, borderType=cv2.BORDER_REFLECT_101)
        )

    def local_variance(self, plane: np.ndarray) -> np.ndarray:
        mean = cv2.blur(plane, (3, 3), borderType=cv2.BORDER_REFLECT_101)
        mean_sq = cv2.blur(plane * plane, (3, 3), borderType=cv2.BORDER_REFLECT_101)
        return np.maximum(mean_sq - mean * mean, 0.0)

    def crop(self, rgba: np.ndarray, x: int, y: int, width: int, height: int) -> np.ndarray:
        image = ImageConverters.numpy_to_pil(rgba)
        return ImageConverters.pil_to_numpy(image.crop((x, y, x + width, y + height)))

    def rotate(self, rgba: np.ndarray, angle: float, fill: Tuple[int, int, int, int]) -> np.ndarray:
        if angle % 90 == 0:
            turns = int(angle // 90) % 4
            if turns == 0:
                return rgba.copy()
            return cv2.rotate(rgba, self._QUARTER_TURNS[turns])

        height, width = rgba.shape[:2]
        new_w, new_h = filters.rotated_bounds(width, height, angle)
        center = ((width - 1) / 2.0, (height - 1) / 2.0)
        # OpenCV angles are counter-clockwise
        matrix = cv2.getRotationMatrix2D(center, -angle, 1.0)
        matrix[0, 2] += (new_w - width) / 2.0
        matrix[1, 2] += (new_h - height) / 2.0
        return cv2.warpAffine(
            rgba,
            matrix,
            (new_w, new_h),
            flags=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_CONSTANT,
            borderValue=tuple(int(c) for c in fill),
        )

    def flip(self, rgba: np.ndarray, horizontal: bool, vertical: bool) -> np.ndarray:
        if horizontal and vertical:
            return cv2.flip(rgba, -1)
        if horizontal:
            return cv2.flip(rgba, 1)
        if vertical:
            return cv2.flip(rgba, 0)
        return rgba

    def resize(
        self, rgba: np.ndarray, width: int, height: int, algorithm: UpscaleAlgorithm
    ) -> np.ndarray:
        rows, cols = rgba.shape[:2]
        interpolation = self._INTERPOLATION.get(algorithm, cv2.INTER_LANCZOS4)
        if width < cols and height < rows and algorithm != UpscaleAlgorithm.NEAREST:
            interpolation = cv2.INTER_AREA
        return cv2.resize(rgba, (width, height), interpolation=interpolation)

    def compose(
        self,
        size: Tuple[int, int],
        background: Tuple[int, int, int, int],
        placements: List[Placement],
    ) -> np.ndarray:
        canvas = Image.new("RGBA", size, background)
        for image, left, top in placements:
            canvas.alpha_composite(ImageConverters.numpy_to_pil(image), dest=(left, top))
        return ImageConverters.pil_to_numpy(canvas)


class RasterProcessor(ImageProcessor):
    """Secondary tier: direct NumPy arithmetic over the raster."""

    tier = ProcessingTier.SECONDARY

    def decode(self, buffer: bytes) -> np.ndarray:
        return ImageConverters.decode_with_pillow(buffer)

    def luminance(self, rgb: np.ndarray) -> np.ndarray:
        return filters.luminance(rgb)

    def saturation(self, rgb: np.ndarray, factor: float) -> np.ndarray:
        return filters.adjust_saturation(rgb, factor)

    def brightness(self, rgb: np.ndarray, factor: float) -> np.ndarray:
        return filters.adjust_brightness(rgb, factor)

    def contrast(self, rgb: np.ndarray, factor: float, pivot: float = 128.0) -> np.ndarray:
        return filters.adjust_contrast(rgb, factor, pivot)

    def scale_channels(self, rgb: np.ndarray, factors: Sequence[float]) -> np.ndarray:
        return filters.scale_channels(rgb, factors)

    def offset_channels(self, rgb: np.ndarray, offsets: Sequence[float]) -> np.ndarray:
        return filters.offset_channels(rgb, offsets)

    def normalize(self, rgb: np.ndarray) -> np.ndarray:
        return filters.normalize_channels(rgb)

    def gray_world(self, rgb: np.ndarray) -> np.ndarray:
        return filters.gray_world(rgb)

    def mix_channels(self, rgb: np.ndarray, matrix: Sequence[Sequence[float]]) -> np.ndarray:
        return filters.mix_channels(rgb, matrix)

    def apply_curve(self, rgb: np.ndarray, lut: np.ndarray) -> np.ndarray:
        return filters.apply_curve(rgb, lut)

    def shift_hue(self, rgb: np.ndarray, degrees: float) -> np.ndarray:
        return filters.shift_hue(rgb, degrees)

    def correlate(self, rgb: np.ndarray, kernel: np.ndarray) -> np.ndarray:
        return filters.correlate(rgb, kernel)

    def median(self, rgb: np.ndarray) -> np.ndarray:
        return filters.median3(rgb)

    def gaussian(self, rgb: np.ndarray) -> np.ndarray:
        return filters.correlate(rgb, filters.GAUSSIAN_3)

    def blur(self, rgb: np.ndarray, sigma: float) -> np.ndarray:
        return filters.gaussian_blur(rgb, sigma)

    def local_variance(self, plane: np.ndarray) -> np.ndarray:
        return filters.local_variance(plane)

    def crop(self, rgba: np.ndarray, x: int, y: int, width: int, height: int) -> np.ndarray:
        return rgba[y : y + height, x : x + width].copy()

    def rotate(self, rgba: np.ndarray, angle: float, fill: Tuple[int, int, int, int]) -> np.ndarray:
        return filters.rotate_nearest(rgba, angle, fill)

    def flip(self, rgba: np.ndarray, horizontal: bool, vertical: bool) -> np.ndarray:
        if horizontal:
            rgba = rgba[:, ::-1]
        if vertical:
            rgba = rgba[::-1, :]
        return np.ascontiguousarray(rgba)

    def resize(
        self, rgba: np.ndarray, width: int, height: int, algorithm: UpscaleAlgorithm
    ) -> np.ndarray:
        if algorithm == UpscaleAlgorithm.NEAREST:
            rows, cols = rgba.shape[:2]
            ys = np.minimum((np.arange(height) * rows) // height, rows - 1)
            xs = np.minimum((np.arange(width) * cols) // width, cols - 1)
            return rgba[ys][:, xs].copy()
        return filters.resize_bilinear(rgba, width, height)

    def compose(
        self,
        size: Tuple[int, int],
        background: Tuple[int, int, int, int],
        placements: List[Placement],
    ) -> np.ndarray:
        width, height = size
        canvas = np.empty((height, width, 4), dtype=np.uint8)
        canvas[...] = background
        for image, left, top in placements:
            filters.alpha_composite(canvas, image, left, top)
        return canvas


def default_processors() -> Tuple[ImageProcessor, ImageProcessor]:
    """Primary and secondary processors in fallback order."""
    return PipelineProcessor(), RasterProcessor()
