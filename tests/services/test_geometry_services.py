"""
Tests for crop, resize and rotate/flip services
"""

import asyncio
import io

import numpy as np
import pytest
from PIL import Image

from api.exceptions import ProcessingError
from core.enums import Alignment, CombineMode, ProcessingTier, ResizeMode
from core.image.processors import PipelineProcessor, RasterProcessor
from schemas import CropOptions, Dimensions, ResizeOptions, RotateFlipOptions
from services.crop_service import CropService
from services.resize_service import ResizeService, target_dimensions
from services.rotate_flip_service import RotateFlipService, combine_layout
from tests.helpers import BrokenProcessor, decode, encode, make_rgb

EXIF_ORIENTATION = 0x0112


def rotated_exif_jpeg(width=320, height=240, orientation=6):
    """JPEG whose EXIF asks viewers to rotate it a quarter turn."""
    exif = Image.Exif()
    exif[EXIF_ORIENTATION] = orientation
    buffer = io.BytesIO()
    Image.fromarray(make_rgb(width, height)).save(buffer, "JPEG", quality=90, exif=exif)
    return buffer.getvalue()


class TestCropService:
    """Test CropService"""

    def test_crop(self, png_200):
        """Test exact output size and pixels"""
        result = CropService().process(png_200, CropOptions(x=10, y=20, width=30, height=40))

        assert str(result.processed_dimensions) == "30x40"
        assert str(result.original_dimensions) == "200x200"
        assert result.tier == ProcessingTier.PRIMARY
        assert result.labels == ["Cropped to 30x40"]
        assert result.score is None
        assert np.array_equal(decode(result.buffer), decode(png_200)[20:60, 10:40])

    def test_crop_secondary_tier(self, png_200, broken_processors):
        """Test the raster tier produces the same crop"""
        service = CropService(processors=(broken_processors[0], RasterProcessor()))

        result = service.process(png_200, CropOptions(x=0, y=0, width=50, height=25))

        assert result.tier == ProcessingTier.SECONDARY
        assert decode(result.buffer).shape[:2] == (25, 50)

    def test_crop_mock_tier(self, jpeg_320x240, broken_processors):
        """Test passthrough keeps the source bytes and mime type"""
        service = CropService(processors=broken_processors)

        result = service.process(
            jpeg_320x240, CropOptions(x=0, y=0, width=10, height=10, outputFormat="png")
        )

        assert result.is_mock
        assert result.buffer == jpeg_320x240
        assert result.mime_type == "image/jpeg"
        assert result.format == "jpeg"
        assert result.labels == ["Mock crop applied"]

    def test_exif_orientation_ignored_on_secondary_tier(self):
        """Test the raster tier crops the stored grid that was probed"""
        buffer = rotated_exif_jpeg()
        service = CropService(processors=(BrokenProcessor(ProcessingTier.PRIMARY), RasterProcessor()))

        result = service.process(buffer, CropOptions(x=0, y=0, width=300, height=100))

        assert result.tier == ProcessingTier.SECONDARY
        assert str(result.original_dimensions) == "320x240"
        assert str(result.processed_dimensions) == "300x100"
        assert decode(result.buffer).shape[:2] == (100, 300)

    def test_decoders_agree_on_exif_orientation(self):
        """Test both tiers decode an oriented JPEG to the same grid"""
        buffer = rotated_exif_jpeg()

        primary = PipelineProcessor().decode(buffer)
        secondary = RasterProcessor().decode(buffer)

        assert primary.shape == secondary.shape == (240, 320, 4)


class TestResizeService:
    """Test ResizeService"""

    @pytest.mark.parametrize(
        "options,expected",
        [
            ({"width": 100}, (100, 50)),
            ({"height": 100}, (200, 100)),
            ({"width": 100, "maintainAspectRatio": False}, (100, 200)),
            ({"width": 100, "height": 100}, (100, 50)),
            ({"width": 100, "height": 100, "resizeMode": "cover"}, (200, 100)),
            ({"width": 100, "height": 100, "resizeMode": "fill"}, (100, 100)),
            ({"width": 100, "height": 100, "resizeMode": "stretch"}, (100, 100)),
            ({"width": 2, "height": 2, "resizeMode": "contain"}, (2, 1)),
        ],
    )
    def test_target_dimensions(self, options, expected):
        """Test output size for each mode on a 400x200 source"""
        original = Dimensions(width=400, height=200)

        assert target_dimensions(original, ResizeOptions.model_validate(options)) == expected

    def test_target_dimensions_at_least_one(self):
        """Test tiny results are clamped to one pixel"""
        original = Dimensions(width=1000, height=10)

        assert target_dimensions(original, ResizeOptions(width=10)) == (10, 1)

    def test_resize(self, png_200):
        """Test downscale output and extras"""
        options = ResizeOptions(width=50, height=80, resizeMode=ResizeMode.STRETCH)
        result = ResizeService().process(png_200, options)

        assert str(result.processed_dimensions) == "50x80"
        assert result.labels == ["Resized to 50x80"]
        assert result.extras["ai_upscaled"] is False
        assert float(result.extras["compression_ratio"]) > 0

    def test_resize_enhancement_labels(self, png_200):
        """Test optional passes are labelled in order"""
        options = ResizeOptions(width=400, aiUpscaling=True, noiseReduction=True, sharpenAmount=2.0)

        result = ResizeService().process(png_200, options)

        assert result.labels == ["Resized to 400x400", "Noise reduction", "AI upscaling", "Sharpening"]
        assert result.extras["ai_upscaled"] is True

    def test_small_upscale_is_not_ai(self, png_200):
        """Test AI upscaling only applies above 1.5x"""
        result = ResizeService().process(png_200, ResizeOptions(width=260, aiUpscaling=True))

        assert "AI upscaling" not in result.labels
        assert result.extras["ai_upscaled"] is False


class TestCombineLayout:
    """Test combine canvas and placement computation"""

    SIZES = [(100, 50), (60, 80)]

    def test_side_by_side(self):
        """Test width is the sum plus gaps"""
        canvas, positions = combine_layout(self.SIZES, CombineMode.SIDE_BY_SIDE, 10, Alignment.START)

        assert canvas == (170, 80)
        assert positions == [(0, 0), (110, 0)]

    def test_side_by_side_aligned(self):
        """Test cross-axis alignment"""
        _, centred = combine_layout(self.SIZES, CombineMode.SIDE_BY_SIDE, 0, Alignment.CENTER)
        _, ended = combine_layout(self.SIZES, CombineMode.SIDE_BY_SIDE, 0, Alignment.END)

        assert centred == [(0, 15), (100, 0)]
        assert ended == [(0, 30), (100, 0)]

    def test_top_bottom(self):
        """Test height is the sum plus gaps"""
        canvas, positions = combine_layout(self.SIZES, CombineMode.TOP_BOTTOM, 5, Alignment.END)

        assert canvas == (100, 135)
        assert positions == [(0, 0), (40, 55)]

    def test_overlay(self):
        """Test overlay ignores spacing and centres on both axes"""
        canvas, positions = combine_layout(self.SIZES, CombineMode.OVERLAY, 50, Alignment.CENTER)

        assert canvas == (100, 80)
        assert positions == [(0, 15), (20, 0)]

    def test_none_rejected(self):
        """Test combine mode none has no layout"""
        with pytest.raises(ValueError):
            combine_layout(self.SIZES, CombineMode.NONE, 0, Alignment.START)


class TestRotateFlipService:
    """Test RotateFlipService"""

    @pytest.fixture
    def service(self):
        return RotateFlipService()

    @pytest.mark.parametrize("rotation", [360, -360])
    def test_full_turn_is_identity(self, service, png_200, rotation):
        """Test a full turn returns identical pixels"""
        item = service.process_single(png_200, RotateFlipOptions(rotation=rotation))

        assert np.array_equal(item.image, decode(png_200))
        assert item.labels == [f"Rotated {rotation}°"]

    def test_quarter_turn(self, service, png_100x200):
        """Test 90 degrees swaps width and height"""
        item = service.process_single(png_100x200, RotateFlipOptions(rotation=90))

        assert str(item.dimensions) == "200x100"

    @pytest.mark.parametrize("backends", [None, (RasterProcessor(), RasterProcessor())])
    def test_rotate_back_with_crop_to_fit(self, backends):
        """Test rotating by an angle and back keeps the original size"""
        service = RotateFlipService(processors=backends)
        source = encode(make_rgb(100, 80))
        options = RotateFlipOptions(rotation=30, cropToFit=True)

        first = service.process_single(source, options)
        assert str(first.dimensions) == "100x80"
        assert first.labels == ["Rotated 30°", "Cropped to fit"]

        back = service.process_single(
            encode(first.image), options.model_copy(update={"rotation": -30})
        )
        assert str(back.dimensions) == "100x80"

    def test_rotation_without_crop_expands(self, service):
        """Test arbitrary rotation grows the canvas"""
        item = service.process_single(encode(make_rgb(100, 80)), RotateFlipOptions(rotation=30))

        assert str(item.dimensions) == "127x119"

    def test_flip_labels(self, service, png_200):
        """Test flip labels follow rotation"""
        options = RotateFlipOptions(rotation=180, flipHorizontal=True, flipVertical=True)

        item = service.process_single(png_200, options)

        assert item.labels == ["Rotated 180°", "Flipped horizontally", "Flipped vertically"]
        # 180 degrees plus both flips is the identity
        assert np.array_equal(item.image, decode(png_200))

    def test_process_images_single(self, service, png_100x200):
        """Test one image produces an encoded single result"""
        result = asyncio.run(
            service.process_images([png_100x200], RotateFlipOptions(rotation=-90, outputFormat="webp"))
        )

        assert result.mime_type == "image/webp"
        assert str(result.processed_dimensions) == "200x100"
        assert result.extras["image_count"] == 1

    def test_process_images_combined(self, service, png_200, png_100x200):
        """Test several images are combined"""
        options = RotateFlipOptions(combineMode="side-by-side", spacing=10, backgroundColor="#000")

        result = asyncio.run(service.process_images([png_200, png_100x200, png_200], options))

        assert str(result.processed_dimensions) == "520x200"
        assert result.labels == ["Combined 3 images"]
        assert result.extras["image_count"] == 3
        combined = decode(result.buffer)
        assert tuple(combined[5, 205]) == (0, 0, 0, 255)

    def test_process_images_mock_single(self, png_200, broken_processors):
        """Test single-image passthrough"""
        service = RotateFlipService(processors=broken_processors)

        result = asyncio.run(service.process_images([png_200], RotateFlipOptions(rotation=90)))

        assert result.tier == ProcessingTier.MOCK
        assert result.buffer == png_200
        assert result.labels == ["Mock processing applied"]

    def test_combine_fails_without_backend(self, png_200, broken_processors):
        """Test combining has no passthrough tier"""
        service = RotateFlipService(processors=broken_processors)
        options = RotateFlipOptions(combineMode="top-bottom")

        with pytest.raises(ProcessingError) as exc_info:
            asyncio.run(service.process_images([png_200, png_200], options))

        assert exc_info.value.code == "ROTATE_FLIP_PROCESSING_ERROR"
