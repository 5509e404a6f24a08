"""
Common data structures shared by all image tools.

- Dimensions: probed or produced image size
- ToolOptions: base class for per-tool option records
- ToolResult: processed buffer plus response metadata
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.constants import ImageConstants
from core.enums import OutputFormat, ProcessingTier


class Dimensions(BaseModel):
    """Immutable (width, height) pair in pixels."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"

    @classmethod
    def of(cls, image) -> "Dimensions":
        """Dimensions of a NumPy image array (rows x cols)."""
        height, width = image.shape[:2]
        return cls(width=int(width), height=int(height))


class ToolOptions(BaseModel):
    """
    Base for image tool options.

    Wire names are camelCase (``outputFormat``); unknown fields and
    non-finite numbers are rejected.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        allow_inf_nan=False,
        use_enum_values=False,
    )

    output_format: OutputFormat = Field(
        default=OutputFormat.PNG, description="Encoded output format"
    )
    quality: int = Field(
        default=ImageConstants.DEFAULT_QUALITY,
        ge=ImageConstants.MIN_QUALITY,
        le=ImageConstants.MAX_QUALITY,
        description="JPEG/WebP quality (ignored for PNG)",
    )


class ToolResult(BaseModel):
    """Outcome of one image tool run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    buffer: bytes
    format: str
    mime_type: str
    original_dimensions: Dimensions
    processed_dimensions: Dimensions
    processing_time_ms: int = 0
    labels: List[str] = Field(default_factory=list)
    score: Optional[float] = None
    tier: ProcessingTier = ProcessingTier.PRIMARY
    extras: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_mock(self) -> bool:
        return self.tier == ProcessingTier.MOCK

    @property
    def labels_header(self) -> str:
        return ", ".join(self.labels)
