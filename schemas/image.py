"""
Image tool option models.

One model per tool. Every numeric field has a closed range; values outside
it are rejected, never clamped.
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.constants import ImageConstants
from core.enums import (
    Alignment,
    ArtisticFilter,
    BackgroundTexture,
    BlurType,
    BorderStyle,
    BWConversionMode,
    CombineMode,
    CropMode,
    EnhanceMode,
    FilmType,
    HdrStyle,
    LightLeakType,
    OutputFormat,
    ResizeMode,
    RestoreMode,
    ToneMapping,
    Toning,
    UnblurAlgorithm,
    UpscaleAlgorithm,
    VintageBorder,
    VintageStyle,
)

from .common import ToolOptions

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def hex_color(value: str) -> str:
    if not _HEX_COLOR.match(value):
        raise ValueError("must be a hex colour like #fff or #ffffff")
    return value.lower()


class CropOptions(ToolOptions):
    """Options for crop-image. The rectangle is checked against the image after probing."""

    x: int = Field(..., ge=0, le=ImageConstants.MAX_DIMENSION)
    y: int = Field(..., ge=0, le=ImageConstants.MAX_DIMENSION)
    width: int = Field(..., ge=1, le=ImageConstants.MAX_DIMENSION)
    height: int = Field(..., ge=1, le=ImageConstants.MAX_DIMENSION)
    maintain_aspect_ratio: bool = False
    crop_mode: CropMode = CropMode.PRECISE


class ResizeOptions(ToolOptions):
    """Options for resize-image."""

    width: Optional[int] = Field(default=None, ge=1, le=ImageConstants.MAX_RESIZE_DIMENSION)
    height: Optional[int] = Field(default=None, ge=1, le=ImageConstants.MAX_RESIZE_DIMENSION)
    maintain_aspect_ratio: bool = True
    resize_mode: ResizeMode = ResizeMode.FIT
    upscale_algorithm: UpscaleAlgorithm = UpscaleAlgorithm.LANCZOS
    sharpen_amount: float = Field(default=0.0, ge=0.0, le=10.0)
    noise_reduction: bool = False
    ai_upscaling: bool = False

    @model_validator(mode="after")
    def require_dimension(self) -> "ResizeOptions":
        if self.width is None and self.height is None:
            raise ValueError("width or height is required")
        return self


class RotateFlipOptions(ToolOptions):
    """Options for rotate-flip-image."""

    rotation: float = Field(default=0.0, ge=-360.0, le=360.0)
    flip_horizontal: bool = False
    flip_vertical: bool = False
    background_color: str = "#ffffff"
    crop_to_fit: bool = False
    combine_mode: Optional[CombineMode] = None
    spacing: int = Field(default=0, ge=0, le=ImageConstants.MAX_COMBINE_SPACING)
    alignment: Alignment = Alignment.CENTER

    @field_validator("background_color")
    @classmethod
    def validate_hex_color(cls, v: str) -> str:
        return hex_color(v)


class ColorRestoreOptions(ToolOptions):
    """Options for restore-colors."""

    output_format: OutputFormat = OutputFormat.JPG
    restore_mode: RestoreMode = RestoreMode.AUTO
    intensity: int = Field(default=50, ge=1, le=100)
    saturation: int = Field(default=0, ge=-100, le=100)
    contrast: int = Field(default=0, ge=-100, le=100)
    temperature: int = Field(default=0, ge=-100, le=100)
    remove_yellowing: bool = False
    correct_color_cast: bool = False
    enhance_details: bool = False


class UnblurOptions(ToolOptions):
    """Options for unblur-image."""

    algorithm: UnblurAlgorithm = UnblurAlgorithm.AUTO
    strength: int = Field(default=50, ge=1, le=100)
    radius: float = Field(default=2.0, ge=1.0, le=10.0)
    iterations: int = Field(default=1, ge=1, le=10)
    preserve_details: bool = True
    reduce_noise: bool = False
    enhance_edges: bool = False


class AutoEnhanceOptions(ToolOptions):
    """Options for auto-enhance."""

    enhance_mode: EnhanceMode = EnhanceMode.AUTO
    intensity: int = Field(default=50, ge=0, le=100)
    preserve_colors: bool = True
    enhance_shadows: bool = False
    enhance_highlights: bool = False
    improve_clarity: bool = False
    reduce_noise: bool = False
    sharpen_details: bool = False


class ArtisticFilterOptions(ToolOptions):
    """Options for artistic-filter. Strength controls are percentages."""

    filter_type: ArtisticFilter = ArtisticFilter.OIL
    intensity: int = Field(default=75, ge=1, le=100)
    detail_level: int = Field(default=60, ge=1, le=100)
    color_saturation: int = Field(default=80, ge=1, le=100)
    brush_size: int = Field(default=50, ge=1, le=100)
    stroke_density: int = Field(default=70, ge=1, le=100)
    preserve_details: bool = True
    enhance_contrast: bool = True
    border_style: BorderStyle = BorderStyle.NONE
    border_color: str = "#ffffff"
    border_width: int = Field(default=20, ge=1, le=100)
    background_texture: BackgroundTexture = BackgroundTexture.NONE

    @field_validator("border_color")
    @classmethod
    def validate_border_color(cls, v: str) -> str:
        return hex_color(v)


class SharpenBlurOptions(ToolOptions):
    """Options for sharpen-blur. Sharpening runs before blurring."""

    sharpen_amount: int = Field(default=0, ge=0, le=100)
    sharpen_radius: float = Field(default=1.0, ge=0.1, le=5.0)
    sharpen_threshold: int = Field(default=0, ge=0, le=255)
    blur_amount: int = Field(default=0, ge=0, le=100)
    blur_type: BlurType = BlurType.GAUSSIAN
    motion_angle: float = Field(default=0.0, ge=0.0, le=360.0)
    motion_distance: int = Field(default=10, ge=1, le=50)
    radial_center_x: float = Field(default=50.0, ge=0.0, le=100.0)
    radial_center_y: float = Field(default=50.0, ge=0.0, le=100.0)
    unsharp_mask: bool = False
    edge_enhancement: int = Field(default=0, ge=0, le=100)
    noise_reduction: int = Field(default=0, ge=0, le=100)
    preserve_details: bool = True
    smart_sharpen: bool = False


class BrightnessContrastOptions(ToolOptions):
    """Options for brightness-contrast."""

    brightness: int = Field(default=0, ge=-100, le=100)
    contrast: int = Field(default=0, ge=-100, le=100)
    exposure: float = Field(default=0.0, ge=-2.0, le=2.0)
    highlights: int = Field(default=0, ge=-100, le=100)
    shadows: int = Field(default=0, ge=-100, le=100)
    gamma: float = Field(default=1.0, ge=0.1, le=3.0)
    saturation: int = Field(default=0, ge=-100, le=100)
    vibrance: int = Field(default=0, ge=-100, le=100)
    temperature: int = Field(default=0, ge=-100, le=100)
    tint: int = Field(default=0, ge=-100, le=100)
    auto_levels: bool = False
    auto_contrast: bool = False
    auto_color: bool = False


class ColorShift(BaseModel):
    """Per-channel shift for one tonal range, each in -100..100."""

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    r: int = Field(default=0, ge=-100, le=100)
    g: int = Field(default=0, ge=-100, le=100)
    b: int = Field(default=0, ge=-100, le=100)

    @property
    def is_neutral(self) -> bool:
        return self.r == 0 and self.g == 0 and self.b == 0


class ColorBalanceOptions(ToolOptions):
    """Options for color-balance."""

    temperature: int = Field(default=0, ge=-100, le=100)
    tint: int = Field(default=0, ge=-100, le=100)
    saturation: int = Field(default=0, ge=-100, le=100)
    vibrance: int = Field(default=0, ge=-100, le=100)
    hue: int = Field(default=0, ge=-180, le=180)
    red_balance: int = Field(default=0, ge=-100, le=100)
    green_balance: int = Field(default=0, ge=-100, le=100)
    blue_balance: int = Field(default=0, ge=-100, le=100)
    shadows_color: ColorShift = Field(default_factory=ColorShift)
    midtones_color: ColorShift = Field(default_factory=ColorShift)
    highlights_color: ColorShift = Field(default_factory=ColorShift)
    auto_white_balance: bool = False
    auto_color_correction: bool = False


class BlackAndWhiteOptions(ToolOptions):
    """
    Options for black-and-white.

    Channel weights are only used by the channel-mix and custom modes and
    are normalized by the sum of their absolute values.
    """

    output_format: OutputFormat = OutputFormat.JPG
    conversion_mode: BWConversionMode = BWConversionMode.SIMPLE
    red_channel: int = Field(default=30, ge=-200, le=300)
    green_channel: int = Field(default=59, ge=-200, le=300)
    blue_channel: int = Field(default=11, ge=-200, le=300)
    contrast: int = Field(default=20, ge=-100, le=100)
    brightness: int = Field(default=0, ge=-100, le=100)
    highlights: int = Field(default=0, ge=-100, le=100)
    shadows: int = Field(default=0, ge=-100, le=100)
    grain: int = Field(default=0, ge=0, le=100)
    toning: Toning = Toning.NONE
    toning_intensity: int = Field(default=50, ge=0, le=100)
    vignette: int = Field(default=0, ge=0, le=100)
    film_type: FilmType = FilmType.STANDARD


class ChannelBalance(BaseModel):
    """Red, green and blue offsets, each in -100..100."""

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    red: int = Field(default=0, ge=-100, le=100)
    green: int = Field(default=0, ge=-100, le=100)
    blue: int = Field(default=0, ge=-100, le=100)


class VintageEffectOptions(ToolOptions):
    """Options for vintage-effect."""

    output_format: OutputFormat = OutputFormat.JPG
    quality: int = Field(default=90, ge=ImageConstants.MIN_QUALITY, le=ImageConstants.MAX_QUALITY)
    vintage_style: VintageStyle = VintageStyle.CLASSIC
    intensity: int = Field(default=75, ge=1, le=100)
    film_grain: int = Field(default=50, ge=0, le=100)
    color_shift: int = Field(default=0, ge=-100, le=100)
    vignette: bool = True
    vignette_intensity: int = Field(default=50, ge=0, le=100)
    light_leak: bool = False
    light_leak_type: LightLeakType = LightLeakType.NONE
    scratches: bool = False
    color_balance: ChannelBalance = Field(default_factory=ChannelBalance)
    contrast: int = Field(default=10, ge=-100, le=100)
    brightness: int = Field(default=5, ge=-100, le=100)
    saturation: int = Field(default=-10, ge=-100, le=100)
    border: VintageBorder = VintageBorder.NONE
    border_width: int = Field(default=20, ge=1, le=100)
    date_stamp: bool = False


class HdrEffectOptions(ToolOptions):
    """Options for hdr-effect."""

    output_format: OutputFormat = OutputFormat.JPG
    effect_type: HdrStyle = HdrStyle.NATURAL
    intensity: int = Field(default=75, ge=1, le=100)
    dynamic_range: int = Field(default=80, ge=1, le=100)
    shadow_recovery: int = Field(default=60, ge=0, le=100)
    highlight_recovery: int = Field(default=70, ge=0, le=100)
    contrast: int = Field(default=20, ge=-100, le=100)
    saturation: int = Field(default=15, ge=-100, le=100)
    vibrance: int = Field(default=30, ge=0, le=100)
    clarity: int = Field(default=40, ge=0, le=100)
    glow: int = Field(default=25, ge=0, le=100)
    tone_mapping: ToneMapping = ToneMapping.FILMIC
    color_grading: bool = True
    color_temperature: int = Field(default=0, ge=-100, le=100)
    color_tint: int = Field(default=0, ge=-100, le=100)
