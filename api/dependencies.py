"""
Shared FastAPI dependencies for the Doclair tools API.
Centralizes upload checks, options parsing and service access.
"""

import json
import logging
import os
from typing import Any, List, Optional, Type
from urllib.parse import quote

from fastapi import Depends, Request, UploadFile

from api.exceptions import AppError, InvalidFileError, MissingFileError, ValidationError
from config import get_settings
from core.constants import ConversionConstants, ErrorMessages, ImageConstants
from core.image.probe import is_supported_image
from core.utils.filenames import check_filename
from schemas.validation import validate_options
from services.artistic_filters_service import ArtisticFiltersService
from services.auto_enhance_service import AutoEnhanceService
from services.black_and_white_service import BlackAndWhiteService
from services.brightness_contrast_service import BrightnessContrastService
from services.color_balance_service import ColorBalanceService
from services.color_restore_service import ColorRestoreService
from services.convert_service import ConvertService
from services.crop_service import CropService
from services.hdr_effect_service import HdrEffectService
from services.resize_service import ResizeService
from services.rotate_flip_service import RotateFlipService
from services.sharpen_blur_service import SharpenBlurService
from services.unblur_service import UnblurService
from services.vintage_effects_service import VintageEffectsService

logger = logging.getLogger(__name__)


class Services:
    """Container for all service instances."""

    def __init__(
        self,
        crop: CropService,
        resize: ResizeService,
        rotate_flip: RotateFlipService,
        color_restore: ColorRestoreService,
        unblur: UnblurService,
        auto_enhance: AutoEnhanceService,
        artistic_filters: ArtisticFiltersService,
        sharpen_blur: SharpenBlurService,
        brightness_contrast: BrightnessContrastService,
        color_balance: ColorBalanceService,
        black_and_white: BlackAndWhiteService,
        vintage_effects: VintageEffectsService,
        hdr_effect: HdrEffectService,
        convert: ConvertService,
    ):
        self.crop = crop
        self.resize = resize
        self.rotate_flip = rotate_flip
        self.color_restore = color_restore
        self.unblur = unblur
        self.auto_enhance = auto_enhance
        self.artistic_filters = artistic_filters
        self.sharpen_blur = sharpen_blur
        self.brightness_contrast = brightness_contrast
        self.color_balance = color_balance
        self.black_and_white = black_and_white
        self.vintage_effects = vintage_effects
        self.hdr_effect = hdr_effect
        self.convert = convert

    @classmethod
    def create(cls, settings=None) -> "Services":
        """Build services from configuration."""
        settings = settings or get_settings()
        return cls(
            crop=CropService(),
            resize=ResizeService(),
            rotate_flip=RotateFlipService(),
            color_restore=ColorRestoreService(),
            unblur=UnblurService(),
            auto_enhance=AutoEnhanceService(),
            artistic_filters=ArtisticFiltersService(),
            sharpen_blur=SharpenBlurService(),
            brightness_contrast=BrightnessContrastService(),
            color_balance=ColorBalanceService(),
            black_and_white=BlackAndWhiteService(),
            vintage_effects=VintageEffectsService(),
            hdr_effect=HdrEffectService(),
            convert=ConvertService(
                timeout_seconds=settings.conversion.timeout_seconds,
                libreoffice_binary=settings.conversion.libreoffice_binary,
            ),
        )


def get_services(request: Request) -> Services:
    """
    Get the service container from app state.

    Raises:
        AppError: If services are not initialized
    """
    try:
        return request.app.state.services
    except AttributeError as e:
        logger.error(f"Services not initialized in app state: {e}")
        raise AppError("Internal server error: Services not initialized", 500, "INTERNAL_ERROR")


def get_crop_service(services: Services = Depends(get_services)) -> CropService:
    return services.crop


def get_resize_service(services: Services = Depends(get_services)) -> ResizeService:
    return services.resize


def get_rotate_flip_service(services: Services = Depends(get_services)) -> RotateFlipService:
    return services.rotate_flip


def get_color_restore_service(services: Services = Depends(get_services)) -> ColorRestoreService:
    return services.color_restore


def get_unblur_service(services: Services = Depends(get_services)) -> UnblurService:
    return services.unblur


def get_auto_enhance_service(services: Services = Depends(get_services)) -> AutoEnhanceService:
    return services.auto_enhance


def get_artistic_filters_service(services: Services = Depends(get_services)) -> ArtisticFiltersService:
    return services.artistic_filters


def get_sharpen_blur_service(services: Services = Depends(get_services)) -> SharpenBlurService:
    return services.sharpen_blur


def get_brightness_contrast_service(
    services: Services = Depends(get_services),
) -> BrightnessContrastService:
    return services.brightness_contrast


def get_color_balance_service(services: Services = Depends(get_services)) -> ColorBalanceService:
    return services.color_balance


def get_black_and_white_service(services: Services = Depends(get_services)) -> BlackAndWhiteService:
    return services.black_and_white


def get_vintage_effects_service(services: Services = Depends(get_services)) -> VintageEffectsService:
    return services.vintage_effects


def get_hdr_effect_service(services: Services = Depends(get_services)) -> HdrEffectService:
    return services.hdr_effect


def get_convert_service(services: Services = Depends(get_services)) -> ConvertService:
    return services.convert


# Upload checks
def _extension(filename: Optional[str]) -> str:
    return os.path.splitext(filename or "")[1].lower()


def _check_name(upload: UploadFile, code: str) -> None:
    problem = check_filename(upload.filename or "")
    if problem:
        logger.warning(f"Rejected upload name {upload.filename!r}: {problem}")
        raise InvalidFileError(problem, code=code)


async def _read_limited(upload: UploadFile, max_bytes: int) -> bytes:
    data = await upload.read()
    if len(data) > max_bytes:
        raise AppError(
            ErrorMessages.FILE_TOO_LARGE.format(limit=max_bytes // (1024 * 1024)),
            status_code=400,
            code="FILE_TOO_LARGE",
        )
    return data


async def read_image_upload(upload: Optional[UploadFile], max_bytes: int) -> bytes:
    """
    Read and check an uploaded image.

    Args:
        upload: Uploaded file (None if the field was absent)
        max_bytes: Size limit

    Returns:
        Image bytes

    Raises:
        MissingFileError: No file uploaded
        InvalidFileError: Wrong type, unsafe name or unreadable content
        AppError: File too large
    """
    if upload is None:
        raise MissingFileError(ErrorMessages.NO_IMAGE)

    if (
        upload.content_type not in ImageConstants.ALLOWED_UPLOAD_MIMES
        and _extension(upload.filename) not in ImageConstants.ALLOWED_UPLOAD_EXTENSIONS
    ):
        raise InvalidFileError(ErrorMessages.INVALID_IMAGE_TYPE, code="INVALID_FILE_TYPE")

    _check_name(upload, "INVALID_IMAGE_FILE")
    data = await _read_limited(upload, max_bytes)
    if not data:
        raise InvalidFileError(ErrorMessages.EMPTY_FILE, code="INVALID_IMAGE_FILE")
    if not is_supported_image(data):
        raise InvalidFileError(ErrorMessages.UNSUPPORTED_IMAGE, code="INVALID_IMAGE_FILE")

    logger.info(f"Received image {upload.filename} ({upload.content_type}, {len(data)} bytes)")
    return data


def check_document_upload(upload: UploadFile) -> None:
    """Reject uploads that are neither a Word MIME type nor a .doc/.docx name."""
    if (
        upload.content_type not in ConversionConstants.ALLOWED_MIMES
        and _extension(upload.filename) not in ConversionConstants.ALLOWED_EXTENSIONS
    ):
        raise InvalidFileError(ErrorMessages.INVALID_WORD_TYPE, code="INVALID_FILE_TYPE")
    _check_name(upload, "INVALID_FILE")


async def read_document_upload(upload: UploadFile, max_bytes: int) -> bytes:
    check_document_upload(upload)
    data = await _read_limited(upload, max_bytes)
    logger.info(f"Received document {upload.filename} ({len(data)} bytes)")
    return data


def check_file_count(uploads: Optional[List[UploadFile]], limit: int, message: str) -> List[UploadFile]:
    """
    Ensure between 1 and ``limit`` files were uploaded.

    Raises:
        MissingFileError: No files
        AppError: More than ``limit`` files (TOO_MANY_FILES)
    """
    uploads = [u for u in uploads or [] if u is not None]
    if not uploads:
        raise MissingFileError(message, code="NO_FILES")
    if len(uploads) > limit:
        raise AppError(
            ErrorMessages.TOO_MANY_FILES.format(limit=limit), status_code=400, code="TOO_MANY_FILES"
        )
    return uploads


# Options parsing
def parse_json_field(raw: Optional[str], tool: str, code: str) -> Any:
    """
    Decode a JSON form field.

    Args:
        raw: Field value (None or blank means defaults)
        tool: Tool name for the error message
        code: Error code prefix, e.g. ``CROP``

    Raises:
        ValidationError: ``INVALID_{code}_OPTIONS`` on malformed JSON
    """
    if raw is None or not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError as e:
        logger.warning(f"Failed to parse {tool} options: {e}")
        raise ValidationError(
            ErrorMessages.INVALID_OPTIONS_FORMAT.format(tool=tool), code=f"INVALID_{code}_OPTIONS"
        )


def load_options(model: Type, raw: Optional[str], tool: str, code: str, defaults: Optional[dict] = None):
    """
    Parse and validate a tool's options field.

    Args:
        model: Options model class
        raw: JSON form field
        tool: Tool name for messages
        code: Error code prefix
        defaults: Values applied when the client omitted them

    Returns:
        Validated options instance

    Raises:
        ValidationError: ``INVALID_{code}_OPTIONS`` or ``INVALID_{code}_PARAMETERS``
    """
    decoded = parse_json_field(raw, tool, code)
    if defaults and (decoded is None or isinstance(decoded, dict)):
        decoded = {**defaults, **(decoded or {})}

    verdict = validate_options(model, decoded)
    if not verdict.valid:
        logger.warning(f"{tool} options rejected: {verdict.reason}")
        raise ValidationError(verdict.reason, code=f"INVALID_{code}_PARAMETERS")
    return verdict.options


# Response helpers
def content_disposition(filename: str) -> str:
    """``attachment`` header value, with an RFC 5987 name for non latin-1 filenames."""
    try:
        filename.encode("latin-1")
        return f'attachment; filename="{filename}"'
    except UnicodeEncodeError:
        fallback = filename.encode("ascii", "replace").decode("ascii").replace("?", "_")
        return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


def header_value(text: str) -> str:
    """
    ASCII rendering of a label for a response header.

    Example:
        >>> header_value("Rotated 90°, Hue +15°")
        'Rotated 90 deg, Hue +15 deg'
    """
    text = text.replace("°", " deg")
    return text.encode("ascii", "replace").decode("ascii")
