"""
Pytest configuration and fixtures for Doclair tools tests
"""

import pytest

from core.enums import ProcessingTier
from core.image.processors import PipelineProcessor, RasterProcessor
from services.convert_service import ConvertService
from tests.helpers import BrokenProcessor, encode, make_docx, make_rgb


@pytest.fixture
def test_image():
    """Create a 200x200 test image"""
    return make_rgb(200, 200)


@pytest.fixture
def png_200():
    """200x200 PNG bytes"""
    return encode(make_rgb(200, 200))


@pytest.fixture
def png_100x200():
    """100 wide x 200 high PNG bytes"""
    return encode(make_rgb(100, 200))


@pytest.fixture
def jpeg_320x240():
    """320x240 JPEG bytes"""
    return encode(make_rgb(320, 240), "JPEG", quality=90)


@pytest.fixture
def docx_bytes():
    """Small Word document"""
    return make_docx(
        "Quarterly Report",
        "This document is used to test Word to PDF conversion. " * 8,
        "Second paragraph with a bit more text to wrap across the page width.",
    )


@pytest.fixture
def processors():
    """Primary and secondary processors"""
    return PipelineProcessor(), RasterProcessor()


@pytest.fixture
def broken_processors():
    """Processors that both fail, forcing the mock tier"""
    return BrokenProcessor(ProcessingTier.PRIMARY), BrokenProcessor(ProcessingTier.SECONDARY)


@pytest.fixture
def convert_service():
    """ConvertService that always uses the text renderer"""
    return ConvertService(enable_libreoffice=False)
