"""
Word to PDF conversion models.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from core.enums import ConversionMethod, DocumentQuality, MarginPreset, PageOrientation, PageSize


class CamelModel(BaseModel):
    """Model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ConversionSettings(CamelModel):
    """Client supplied conversion settings (the ``settings`` form field)."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    quality: DocumentQuality = DocumentQuality.HIGH
    page_orientation: PageOrientation = PageOrientation.PORTRAIT
    page_size: PageSize = PageSize.A4
    margins: MarginPreset = MarginPreset.NORMAL
    include_images: bool = True
    include_hyperlinks: bool = True
    password_protect: bool = False
    password: Optional[str] = None
    watermark: bool = False
    watermark_text: Optional[str] = None
    strip_metadata: bool = False

    @model_validator(mode="after")
    def check_dependent_fields(self) -> "ConversionSettings":
        if self.password_protect and (not self.password or len(self.password) < 4):
            raise ValueError("password must be at least 4 characters when passwordProtect is set")
        if self.watermark and not (self.watermark_text and self.watermark_text.strip()):
            raise ValueError("watermarkText is required when watermark is set")
        return self


class ConversionResult(BaseModel):
    """Outcome of converting one document."""

    pdf: bytes
    filename: str
    method: ConversionMethod
    original_size: int
    converted_size: int
    conversion_time_ms: int = 0


class BatchError(CamelModel):
    filename: str
    error: str
    index: int


class BatchFailureResponse(CamelModel):
    """Body returned when every file in a batch failed."""

    success: bool = False
    total_files: int
    successful_conversions: int = 0
    errors: List[BatchError] = Field(default_factory=list)


class LibreOfficeStatus(BaseModel):
    installed: bool
    version: Optional[str] = None
    path: Optional[str] = None
