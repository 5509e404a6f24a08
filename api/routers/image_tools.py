"""
Image Tools API Router - geometry, restoration, adjustment and effect tools

Every endpoint takes a multipart upload plus a JSON options field and
responds with the processed image bytes and ``X-*`` metadata headers.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response

from api.dependencies import (
    check_file_count,
    content_disposition,
    get_artistic_filters_service,
    get_auto_enhance_service,
    get_black_and_white_service,
    get_brightness_contrast_service,
    get_color_balance_service,
    get_color_restore_service,
    get_crop_service,
    get_hdr_effect_service,
    get_resize_service,
    get_rotate_flip_service,
    get_sharpen_blur_service,
    get_unblur_service,
    get_vintage_effects_service,
    header_value,
    load_options,
    read_image_upload,
)
from api.exceptions import AppError, ProcessingError, ValidationError, safe_endpoint
from config import get_settings
from core.constants import APIConstants, ErrorMessages
from core.enums import BWConversionMode, CombineMode
from core.image.probe import probe_dimensions
from core.utils.filenames import output_filename
from schemas import (
    ArtisticFilterOptions,
    AutoEnhanceOptions,
    BlackAndWhiteOptions,
    BrightnessContrastOptions,
    ColorBalanceOptions,
    ColorRestoreOptions,
    CropOptions,
    HdrEffectOptions,
    ResizeOptions,
    RotateFlipOptions,
    SharpenBlurOptions,
    ToolResult,
    UnblurOptions,
    VintageEffectOptions,
    validate_crop_bounds,
)

logger = logging.getLogger(__name__)

router = APIRouter()

TOOL_FEATURES: Dict[str, List[str]] = {
    "crop": [
        "Image cropping",
        "Multiple output formats",
        "Aspect ratio preservation",
        "Quality control",
    ],
    "resize": [
        "Image resizing",
        "Enhanced upscaling",
        "Multiple output formats",
        "Aspect ratio preservation",
        "Quality control",
    ],
    "rotate-flip": [
        "Image rotation (any angle)",
        "Horizontal and vertical flipping",
        "Multiple image combining",
        "Side-by-side layout",
        "Top-bottom layout",
        "Overlay mode",
        "Custom spacing and alignment",
        "Multiple output formats",
        "Background color customization",
    ],
    "color-restore": [
        "Faded color restoration",
        "Color balance correction",
        "Vibrancy enhancement",
        "Yellowing removal",
        "Color cast correction",
        "Multiple restoration modes",
        "Multiple output formats",
    ],
    "unblur": [
        "Deconvolution sharpening",
        "Adaptive sharpening",
        "Detail recovery",
        "Edge sharpening",
        "Noise suppression",
        "Multiple output formats",
    ],
    "auto-enhance": [
        "One-click auto enhancement",
        "Multiple enhancement modes",
        "Shadow/highlight recovery",
        "Clarity improvement",
        "Noise reduction",
        "Detail sharpening",
        "Quality scoring",
        "Multiple output formats",
    ],
    "artistic-filters": [
        "Oil painting effect",
        "Watercolor effect",
        "Sketch effect",
        "Comic style",
        "Pointillism",
        "Impressionist style",
        "Custom intensity control",
        "Detail preservation",
        "Multiple output formats",
        "Quality control",
        "Border and frame options",
        "Background texture options",
    ],
    "sharpen-blur": [
        "Precision sharpening (0-100)",
        "Unsharp mask technique",
        "Gaussian blur",
        "Motion blur with angle control",
        "Radial blur effects",
        "Surface blur smoothing",
        "Edge enhancement",
        "Noise reduction",
        "Smart sharpening",
        "Detail preservation",
        "Multiple output formats",
        "Quality control",
    ],
    "brightness-contrast": [
        "Brightness adjustment (-100 to +100)",
        "Contrast adjustment (-100 to +100)",
        "Exposure control (-2 to +2 EV)",
        "Highlights and shadows",
        "Gamma correction (0.1 to 3.0)",
        "Saturation and vibrance",
        "Color temperature and tint",
        "Auto levels, contrast, and color",
        "Multiple output formats",
        "Quality control",
    ],
    "color-balance": [
        "Color temperature adjustment",
        "Tint control (green/magenta)",
        "Saturation and vibrance",
        "Hue shifting",
        "Tone-based color grading",
        "Auto white balance",
        "Auto color correction",
        "Multiple output formats",
        "Quality control",
    ],
    "black-and-white": [
        "Professional B&W conversion",
        "Film simulation",
        "Tonal adjustments",
        "Darkroom-style toning",
        "Film grain simulation",
        "Vignette effects",
        "Multiple output formats",
        "Quality control",
    ],
    "vintage-effects": [
        "Classic film emulation",
        "Vintage color grading",
        "Film grain simulation",
        "Light leaks and vignettes",
        "Cross-processing effects",
        "Retro color palettes",
        "Multiple era presets",
        "Multiple output formats",
        "Quality control",
        "Border and frame options",
    ],
    "hdr-effect": [
        "High Dynamic Range enhancement",
        "Multiple tone mapping algorithms",
        "Shadow and highlight recovery",
        "Color grading capabilities",
        "Cinematic HDR styles",
        "Landscape optimization",
        "Multiple output formats",
        "Quality control",
    ],
}

TOOL_ENDPOINTS = {
    "crop": "/api/tools/image/crop-image",
    "resize": "/api/tools/image/resize-image",
    "rotate-flip": "/api/tools/image/rotate-flip-image",
    "color-restore": "/api/tools/image/restore-colors",
    "unblur": "/api/tools/image/unblur-image",
    "auto-enhance": "/api/tools/image/auto-enhance",
    "artistic-filters": "/api/tools/image/artistic-filter",
    "sharpen-blur": "/api/tools/image/sharpen-blur",
    "brightness-contrast": "/api/tools/image/brightness-contrast",
    "color-balance": "/api/tools/image/color-balance",
    "black-and-white": "/api/tools/image/black-and-white",
    "vintage-effects": "/api/tools/image/vintage-effect",
    "hdr-effect": "/api/tools/image/hdr-effect",
}


async def run_tool(service, buffer: bytes, options, error_code: str, dimensions=None) -> ToolResult:
    """Run a single-image tool off the event loop, mapping failures to ``error_code``."""
    try:
        return await asyncio.to_thread(service.process, buffer, options, dimensions)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"{service.tool_name} processing failed: {e}", exc_info=True)
        raise ProcessingError(
            ErrorMessages.PROCESSING_FAILED.format(tool=service.tool_name.capitalize(), error=e),
            code=error_code,
        )


def tool_response(
    result: ToolResult,
    filename: str,
    extra_headers: Optional[Dict[str, str]] = None,
    score_header: Optional[str] = None,
) -> Response:
    """
    Build the binary response with the common metadata headers.

    Args:
        result: Tool result
        filename: Download name (already sanitized)
        extra_headers: Tool specific headers
        score_header: Header name carrying ``result.score``

    Returns:
        Response with the processed bytes
    """
    headers = {
        "Content-Disposition": content_disposition(filename),
        "X-Processing-Time": str(result.processing_time_ms),
        "X-Original-Dimensions": str(result.original_dimensions),
        "X-Processed-Dimensions": str(result.processed_dimensions),
        "X-Processing-Tier": result.tier.value,
        "X-Enhancements": header_value(result.labels_header),
    }
    if score_header and result.score is not None:
        headers[score_header] = str(result.score)
    if extra_headers:
        headers.update({name: header_value(value) for name, value in extra_headers.items()})

    logger.info(f"Sending {filename} ({len(result.buffer)} bytes, {result.mime_type})")
    return Response(content=result.buffer, media_type=result.mime_type, headers=headers)


def adjustments_header(result: ToolResult) -> Dict[str, str]:
    return {"X-Adjustments": result.labels_header or "None"}


@router.post("/crop-image")
@safe_endpoint
async def crop_image(
    image: Optional[UploadFile] = File(None),
    crop_options: Optional[str] = Form(None, alias="cropOptions"),
    service=Depends(get_crop_service),
) -> Response:
    """
    Crop an image to a rectangle.

    Options are validated twice: structurally before the image is read,
    then against the probed image dimensions.
    """
    settings = get_settings()
    buffer = await read_image_upload(image, settings.limits.max_file_size_bytes)
    options = load_options(CropOptions, crop_options, "crop", "CROP")

    dimensions = probe_dimensions(buffer)
    bounds = validate_crop_bounds(options, dimensions)
    if not bounds.valid:
        raise ValidationError(bounds.reason, code="INVALID_CROP_PARAMETERS")

    result = await run_tool(service, buffer, options, "CROP_PROCESSING_ERROR", dimensions)
    filename = output_filename(image.filename, result.format)
    return tool_response(
        result, filename, {"X-Cropped-Dimensions": str(result.processed_dimensions)}
    )


@router.post("/resize-image")
@safe_endpoint
async def resize_image(
    image: Optional[UploadFile] = File(None),
    resize_options: Optional[str] = Form(None, alias="resizeOptions"),
    service=Depends(get_resize_service),
) -> Response:
    """Resize an image, optionally with enhanced upscaling."""
    settings = get_settings()
    buffer = await read_image_upload(image, settings.limits.max_file_size_bytes)
    options = load_options(ResizeOptions, resize_options, "resize", "RESIZE")

    result = await run_tool(service, buffer, options, "RESIZE_PROCESSING_ERROR")
    filename = output_filename(image.filename, result.format)
    return tool_response(
        result,
        filename,
        {
            "X-Resized-Dimensions": str(result.processed_dimensions),
            "X-Compression-Ratio": result.extras.get("compression_ratio", "1.00"),
            "X-AI-Upscaled": str(bool(result.extras.get("ai_upscaled"))).lower(),
        },
    )


@router.post("/rotate-flip-image")
@safe_endpoint
async def rotate_flip_image(
    images: Optional[List[UploadFile]] = File(None),
    rotate_flip_options: Optional[str] = Form(None, alias="rotateFlipOptions"),
    service=Depends(get_rotate_flip_service),
) -> Response:
    """
    Rotate and flip 1-5 images, combining them when more than one is sent.

    ``combineMode`` defaults to side-by-side for several images and is
    forced to none for a single image.
    """
    settings = get_settings()
    uploads = check_file_count(images, settings.limits.max_images, ErrorMessages.NO_FILES)
    buffers = [await read_image_upload(u, settings.limits.max_file_size_bytes) for u in uploads]

    default_mode = CombineMode.SIDE_BY_SIDE if len(buffers) > 1 else CombineMode.NONE
    options: RotateFlipOptions = load_options(
        RotateFlipOptions,
        rotate_flip_options,
        "rotate/flip",
        "ROTATE_FLIP",
        defaults={"combineMode": default_mode.value},
    )
    if len(buffers) == 1:
        options = options.model_copy(update={"combine_mode": CombineMode.NONE})

    try:
        result = await service.process_images(buffers, options)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Rotate/flip processing failed: {e}", exc_info=True)
        raise ProcessingError(
            ErrorMessages.PROCESSING_FAILED.format(tool="Rotate/flip", error=e),
            code="ROTATE_FLIP_PROCESSING_ERROR",
        )

    count = result.extras.get("image_count", len(buffers))
    if count > 1 and options.combine_mode != CombineMode.NONE:
        filename = output_filename(f"combined_{count}_images", result.format)
    else:
        filename = output_filename(uploads[0].filename, result.format)

    return tool_response(
        result,
        filename,
        {"X-Operations": result.labels_header, "X-Image-Count": str(count)},
    )


@router.post("/restore-colors")
@safe_endpoint
async def restore_colors(
    image: Optional[UploadFile] = File(None),
    restore_options: Optional[str] = Form(None, alias="restoreOptions"),
    service=Depends(get_color_restore_service),
) -> Response:
    """Restore faded colours."""
    settings = get_settings()
    buffer = await read_image_upload(image, settings.limits.max_file_size_bytes)
    options = load_options(ColorRestoreOptions, restore_options, "color restoration", "RESTORE")

    result = await run_tool(service, buffer, options, "COLOR_RESTORATION_ERROR")
    filename = output_filename(image.filename, result.format, prefix="colorized_")
    return tool_response(result, filename, score_header=service.score_header)


@router.post("/unblur-image")
@safe_endpoint
async def unblur_image(
    image: Optional[UploadFile] = File(None),
    unblur_options: Optional[str] = Form(None, alias="unblurOptions"),
    service=Depends(get_unblur_service),
) -> Response:
    """Sharpen a blurred image."""
    settings = get_settings()
    buffer = await read_image_upload(image, settings.limits.max_file_size_bytes)
    options = load_options(UnblurOptions, unblur_options, "unblur", "UNBLUR")

    result = await run_tool(service, buffer, options, "UNBLUR_PROCESSING_ERROR")
    filename = output_filename(image.filename, result.format, prefix="unblurred_")
    return tool_response(result, filename, score_header=service.score_header)


@router.post("/auto-enhance")
@safe_endpoint
async def auto_enhance(
    image: Optional[UploadFile] = File(None),
    enhance_options: Optional[str] = Form(None, alias="enhanceOptions"),
    service=Depends(get_auto_enhance_service),
) -> Response:
    """One-click enhancement."""
    settings = get_settings()
    buffer = await read_image_upload(image, settings.limits.max_file_size_bytes)
    options = load_options(AutoEnhanceOptions, enhance_options, "enhancement", "ENHANCE")

    result = await run_tool(service, buffer, options, "AUTO_ENHANCE_PROCESSING_ERROR")
    filename = output_filename(image.filename, result.format)
    return tool_response(result, filename, score_header=service.score_header)


@router.post("/artistic-filter")
@router.post("/artistic-filters", include_in_schema=False)
@safe_endpoint
async def artistic_filter(
    image: Optional[UploadFile] = File(None),
    filter_options: Optional[str] = Form(None, alias="filterOptions"),
    service=Depends(get_artistic_filters_service),
) -> Response:
    """Apply an artistic filter, with optional texture and border."""
    settings = get_settings()
    buffer = await read_image_upload(image, settings.limits.max_file_size_bytes)
    options = load_options(ArtisticFilterOptions, filter_options, "artistic filter", "FILTER")

    result = await run_tool(service, buffer, options, "ARTISTIC_FILTER_ERROR")
    prefix = f"{options.filter_type.value}_"
    filename = output_filename(image.filename, result.format, prefix=prefix)
    return tool_response(
        result,
        filename,
        {
            "X-Filter-Applied": options.filter_type.value,
            "X-Effect-Intensity": str(options.intensity),
        },
        score_header=service.score_header,
    )


@router.post("/sharpen-blur")
@safe_endpoint
async def sharpen_blur(
    image: Optional[UploadFile] = File(None),
    sharpen_blur_options: Optional[str] = Form(None, alias="sharpenBlurOptions"),
    service=Depends(get_sharpen_blur_service),
) -> Response:
    """Sharpen and/or blur an image."""
    settings = get_settings()
    buffer = await read_image_upload(image, settings.limits.max_file_size_bytes)
    options = load_options(SharpenBlurOptions, sharpen_blur_options, "sharpen/blur", "SHARPEN_BLUR")

    result = await run_tool(service, buffer, options, "SHARPEN_BLUR_PROCESSING_ERROR")
    filename = output_filename(image.filename, result.format)
    return tool_response(result, filename, adjustments_header(result))


@router.post("/brightness-contrast")
@safe_endpoint
async def brightness_contrast(
    image: Optional[UploadFile] = File(None),
    adjustment_options: Optional[str] = Form(None, alias="adjustmentOptions"),
    service=Depends(get_brightness_contrast_service),
) -> Response:
    """Adjust exposure, tone and white balance."""
    settings = get_settings()
    buffer = await read_image_upload(image, settings.limits.max_file_size_bytes)
    options = load_options(
        BrightnessContrastOptions, adjustment_options, "adjustment", "BRIGHTNESS_CONTRAST"
    )

    result = await run_tool(service, buffer, options, "BRIGHTNESS_CONTRAST_PROCESSING_ERROR")
    filename = output_filename(image.filename, result.format)
    return tool_response(result, filename, adjustments_header(result))


@router.post("/color-balance")
@safe_endpoint
async def color_balance(
    image: Optional[UploadFile] = File(None),
    color_balance_options: Optional[str] = Form(None, alias="colorBalanceOptions"),
    service=Depends(get_color_balance_service),
) -> Response:
    """Balance and grade colours."""
    settings = get_settings()
    buffer = await read_image_upload(image, settings.limits.max_file_size_bytes)
    options = load_options(
        ColorBalanceOptions, color_balance_options, "color balance", "COLOR_BALANCE"
    )

    result = await run_tool(service, buffer, options, "COLOR_BALANCE_PROCESSING_ERROR")
    filename = output_filename(image.filename, result.format)
    return tool_response(result, filename, adjustments_header(result))


@router.post("/black-and-white")
@safe_endpoint
async def black_and_white(
    image: Optional[UploadFile] = File(None),
    bw_options: Optional[str] = Form(None, alias="bwOptions"),
    service=Depends(get_black_and_white_service),
) -> Response:
    """Convert to black and white."""
    settings = get_settings()
    buffer = await read_image_upload(image, settings.limits.max_file_size_bytes)
    options = load_options(BlackAndWhiteOptions, bw_options, "black and white", "BW")

    result = await run_tool(service, buffer, options, "BW_CONVERSION_ERROR")
    filename = output_filename(image.filename, result.format, prefix="bw_")
    headers = {
        "X-Conversion-Mode": options.conversion_mode.value,
        "X-Toning": options.toning.value,
    }
    if options.conversion_mode == BWConversionMode.FILM:
        headers["X-Film-Type"] = options.film_type.value
    return tool_response(result, filename, headers)


@router.post("/vintage-effect")
@router.post("/vintage-effects", include_in_schema=False)
@safe_endpoint
async def vintage_effect(
    image: Optional[UploadFile] = File(None),
    vintage_options: Optional[str] = Form(None, alias="vintageOptions"),
    service=Depends(get_vintage_effects_service),
) -> Response:
    """Apply a vintage film look."""
    settings = get_settings()
    buffer = await read_image_upload(image, settings.limits.max_file_size_bytes)
    options = load_options(VintageEffectOptions, vintage_options, "vintage effect", "VINTAGE")

    result = await run_tool(service, buffer, options, "VINTAGE_EFFECT_ERROR")
    filename = output_filename(image.filename, result.format, prefix="vintage_")
    return tool_response(
        result,
        filename,
        {
            "X-Vintage-Style": options.vintage_style.value,
            "X-Effect-Intensity": str(options.intensity),
            "X-Film-Grain": str(options.film_grain),
            "X-Color-Shift": str(options.color_shift),
            "X-Vignette": str(options.vignette).lower(),
        },
    )


@router.post("/hdr-effect")
@safe_endpoint
async def hdr_effect(
    image: Optional[UploadFile] = File(None),
    hdr_options: Optional[str] = Form(None, alias="hdrOptions"),
    service=Depends(get_hdr_effect_service),
) -> Response:
    """Apply an HDR look."""
    settings = get_settings()
    buffer = await read_image_upload(image, settings.limits.max_file_size_bytes)
    options = load_options(HdrEffectOptions, hdr_options, "HDR effect", "HDR")

    result = await run_tool(service, buffer, options, "HDR_EFFECT_ERROR")
    filename = output_filename(image.filename, result.format, prefix="hdr_")
    return tool_response(
        result,
        filename,
        {
            "X-HDR-Style": options.effect_type.value,
            "X-Tone-Mapping": options.tone_mapping.value,
        },
        score_header=service.score_header,
    )


# Health
@router.get("/health")
async def tools_health():
    """Static listing of the image tools and their features."""
    return {
        "status": "healthy",
        "service": "image-tools",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": APIConstants.API_VERSION,
        "tools": [
            {"name": name, "endpoint": TOOL_ENDPOINTS[name], "features": features}
            for name, features in TOOL_FEATURES.items()
        ],
    }


@router.get("/{tool}/health")
async def tool_health(tool: str):
    """Static health document for one tool."""
    if tool not in TOOL_FEATURES:
        raise AppError(f"Unknown image tool: {tool}", status_code=404, code="NOT_FOUND")
    return {
        "status": "healthy",
        "service": f"image-{tool}",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": APIConstants.API_VERSION,
        "endpoint": TOOL_ENDPOINTS[tool],
        "features": TOOL_FEATURES[tool],
    }
