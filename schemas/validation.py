"""
Two-phase options validation.

Phase one (``validate_options``) checks structure, types and ranges before
the image is touched. Phase two (``validate_crop_bounds``) needs the probed
image dimensions. Neither raises: both return an ``OptionsValidation``.
"""

from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from core.constants import ErrorMessages

from .common import Dimensions, ToolOptions
from .image import CropOptions

OptionsT = TypeVar("OptionsT", bound=ToolOptions)


class OptionsValidation(BaseModel):
    """Validation verdict; ``options`` is set only when ``valid``."""

    valid: bool
    reason: Optional[str] = None
    options: Optional[Any] = None


def describe_errors(exc: PydanticValidationError) -> str:
    """
    Collapse pydantic errors into a single readable reason.

    Example:
        ``"quality: Input should be less than or equal to 100"``
    """
    parts = []
    for error in exc.errors():
        message = error.get("msg", "invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def validate_options(model: Type[OptionsT], raw: Any) -> OptionsValidation:
    """
    Validate decoded JSON options against a tool's model.

    Args:
        model: Options model class
        raw: Decoded JSON (None means "use defaults")

    Returns:
        OptionsValidation with the parsed options or a reason
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        return OptionsValidation(valid=False, reason=ErrorMessages.OPTIONS_NOT_OBJECT)

    try:
        options = model.model_validate(raw)
    except PydanticValidationError as e:
        return OptionsValidation(valid=False, reason=describe_errors(e))
    return OptionsValidation(valid=True, options=options)


def validate_crop_bounds(options: CropOptions, dimensions: Dimensions) -> OptionsValidation:
    """Check that the crop rectangle lies inside the probed image."""
    if (
        options.x + options.width > dimensions.width
        or options.y + options.height > dimensions.height
    ):
        return OptionsValidation(
            valid=False,
            reason=ErrorMessages.CROP_OUT_OF_BOUNDS.format(
                x=options.x,
                y=options.y,
                width=options.width,
                height=options.height,
                image_width=dimensions.width,
                image_height=dimensions.height,
            ),
        )
    return OptionsValidation(valid=True, options=options)
