"""
Schemas Package

Pydantic models for request options, results and responses, shared by
the API, service and core layers.
"""

# Common models (core data structures)
from .common import Dimensions, ToolOptions, ToolResult

# Conversion models
from .conversion import (
    BatchError,
    BatchFailureResponse,
    ConversionResult,
    ConversionSettings,
    LibreOfficeStatus,
)

# Image tool options
from .image import (
    ArtisticFilterOptions,
    AutoEnhanceOptions,
    BlackAndWhiteOptions,
    BrightnessContrastOptions,
    ChannelBalance,
    ColorBalanceOptions,
    ColorRestoreOptions,
    ColorShift,
    CropOptions,
    HdrEffectOptions,
    ResizeOptions,
    RotateFlipOptions,
    SharpenBlurOptions,
    UnblurOptions,
    VintageEffectOptions,
)

# Two-phase validation
from .validation import OptionsValidation, validate_crop_bounds, validate_options

__all__ = [
    # Common models
    "Dimensions",
    "ToolOptions",
    "ToolResult",
    # Image tool options
    "CropOptions",
    "ResizeOptions",
    "RotateFlipOptions",
    "ColorRestoreOptions",
    "UnblurOptions",
    "AutoEnhanceOptions",
    "ArtisticFilterOptions",
    "SharpenBlurOptions",
    "BrightnessContrastOptions",
    "ColorBalanceOptions",
    "ColorShift",
    "BlackAndWhiteOptions",
    "VintageEffectOptions",
    "ChannelBalance",
    "HdrEffectOptions",
    # Validation
    "OptionsValidation",
    "validate_options",
    "validate_crop_bounds",
    # Conversion models
    "ConversionSettings",
    "ConversionResult",
    "BatchError",
    "BatchFailureResponse",
    "LibreOfficeStatus",
]
