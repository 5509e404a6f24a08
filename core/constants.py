"""
Constants and configuration values for the Doclair tools service.
Centralizes all magic numbers and configuration constants.
"""


# Image Constants
class ImageConstants:
    """Constants related to image decoding and encoding."""

    # Format signatures
    PNG_SIGNATURE = b"\x89PNG"
    JPEG_SIGNATURE = b"\xff\xd8\xff"
    GIF_SIGNATURE = b"GIF"
    RIFF_SIGNATURE = b"RIFF"
    WEBP_SIGNATURE = b"WEBP"
    VP8_CHUNK = b"VP8 "
    TIFF_LE_SIGNATURE = b"II*\x00"
    TIFF_BE_SIGNATURE = b"MM\x00*"

    # JPEG start-of-frame markers are C0-CF minus these
    JPEG_NON_SOF_MARKERS = (0xC4, 0xC8, 0xCC)

    # WebP VP8 dimensions are 14-bit
    WEBP_DIMENSION_MASK = 0x3FFF

    # Luma weights (R, G, B)
    LUMA_WEIGHTS = (0.299, 0.587, 0.114)

    # Encoding
    DEFAULT_QUALITY = 95
    MIN_QUALITY = 1
    MAX_QUALITY = 100
    DEFAULT_OUTPUT_FORMAT = "png"

    MIME_TYPES = {
        "png": "image/png",
        "jpg": "image/jpeg",
        "jpeg": "image/jpeg",
        "webp": "image/webp",
        "gif": "image/gif",
        "tiff": "image/tiff",
    }

    ALLOWED_UPLOAD_MIMES = [
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
        "image/gif",
        "image/tiff",
    ]
    ALLOWED_UPLOAD_EXTENSIONS = [".jpg", ".jpeg", ".png", ".webp", ".gif", ".tif", ".tiff"]

    # Geometry limits
    MAX_DIMENSION = 100000
    MAX_RESIZE_DIMENSION = 10000
    MAX_COMBINE_SPACING = 1000


# Upload / rate limits
class LimitConstants:
    """Default limits for uploads and request rates."""

    MAX_FILE_SIZE_MB = 100
    MAX_BATCH_FILES = 10
    MAX_COMBINE_IMAGES = 5
    RATE_LIMIT_WINDOW_SECONDS = 15 * 60
    RATE_LIMIT_MAX_REQUESTS = 100


# Document conversion
class ConversionConstants:
    """Constants for Word to PDF conversion."""

    LIBREOFFICE_TIMEOUT_SECONDS = 120
    LIBREOFFICE_BINARIES = ["soffice", "libreoffice"]

    MIN_DOCUMENT_BYTES = 100
    ZIP_SIGNATURES = (b"PK\x03\x04", b"PK\x05\x06")
    OLE_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
    DOCX_MARKERS = (
        b"word/",
        b"application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    )

    ALLOWED_EXTENSIONS = [".doc", ".docx"]
    ALLOWED_MIMES = [
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-word",
    ]

    PDF_MIME = "application/pdf"
    ZIP_MIME = "application/zip"
    REPORT_FILENAME = "conversion_report.txt"
    ZIP_COMPRESSION_LEVEL = 6

    # Fallback renderer layout (points)
    MARGINS_PT = {"normal": 72, "narrow": 36, "wide": 108, "custom": 72}
    FONT_NAME = "Helvetica"
    FONT_SIZE = 11
    LINE_HEIGHT = 14


# API Constants
class APIConstants:
    """Constants for API endpoints."""

    SERVICE_NAME = "Doclair Converter API"
    SERVICE_ID = "doclair-converter"
    API_VERSION = "1.0.0"

    MAX_FILENAME_LENGTH = 200
    DEFAULT_FILENAME = "document"

    EXPOSED_HEADERS = [
        "Content-Disposition",
        "X-Processing-Time",
        "X-Processing-Tier",
        "X-Original-Dimensions",
        "X-Processed-Dimensions",
        "X-Cropped-Dimensions",
        "X-Resized-Dimensions",
        "X-Compression-Ratio",
        "X-AI-Upscaled",
        "X-Operations",
        "X-Image-Count",
        "X-Enhancements",
        "X-Restoration-Score",
        "X-Clarity-Score",
        "X-Quality-Score",
        "X-Filter-Applied",
        "X-Effect-Intensity",
        "X-Artistic-Score",
        "X-Adjustments",
        "X-Conversion-Mode",
        "X-Toning",
        "X-Film-Type",
        "X-Vintage-Style",
        "X-Film-Grain",
        "X-Color-Shift",
        "X-Vignette",
        "X-HDR-Style",
        "X-Tone-Mapping",
        "X-Dynamic-Range",
        "X-Conversion-Time",
        "X-Conversion-Method",
        "X-Original-Size",
        "X-Converted-Size",
        "X-Total-Files",
        "X-Successful-Conversions",
        "X-Failed-Conversions",
    ]


# Score tables (cosmetic metadata, not a measured quality signal)
class ColorRestoreScore:
    """Point table for the colour restoration score."""

    BASE = 7.0
    INTENSITY_WEIGHT = 0.5
    TABLE = {
        "Vibrant color enhancement": 0.8,
        "Natural color restoration": 0.7,
        "Vintage color restoration": 0.6,
        "Custom color restoration": 0.5,
        "Auto color restoration": 0.7,
        "Yellowing removal": 0.5,
        "Color cast correction": 0.6,
        "Detail enhancement": 0.4,
        "Contrast enhancement": 0.3,
    }


class UnblurScore:
    """Point table for the unblur clarity score."""

    BASE = 7.0
    STRENGTH_WEIGHT = 0.5
    ITERATION_WEIGHT = 0.2
    TABLE = {
        "Deconvolution algorithm": 0.8,
        "Neural enhancement": 1.0,
        "Adaptive sharpening": 0.7,
        "Auto unblur enhancement": 0.6,
        "Detail preservation": 0.4,
        "Noise reduction": 0.3,
        "Edge enhancement": 0.5,
    }


class AutoEnhanceScore:
    """Point table for the auto-enhance quality score."""

    BASE = 7.5
    INTENSITY_WEIGHT = 0.5
    TABLE = {
        "Auto levels": 0.3,
        "Enhanced contrast": 0.3,
        "Color enhancement": 0.3,
        "Portrait optimization": 0.4,
        "Landscape enhancement": 0.4,
        "Low-light enhancement": 0.5,
        "Vintage color grading": 0.3,
        "Shadow enhancement": 0.2,
        "Highlight recovery": 0.2,
        "Clarity improvement": 0.3,
        "Noise reduction": 0.4,
        "Detail sharpening": 0.3,
    }


class ArtisticScore:
    """Point table for the artistic filter score."""

    BASE = 7.5
    INTENSITY_WEIGHT = 0.5
    DETAIL_WEIGHT = 0.3
    SATURATION_WEIGHT = 0.2
    TABLE = {
        "Oil painting effect": 0.8,
        "Watercolor effect": 0.7,
        "Sketch effect": 0.6,
        "Comic style": 0.9,
        "Pointillism effect": 0.8,
        "Impressionist style": 0.7,
        "Simple border": 0.2,
        "Artistic border": 0.2,
        "Frame border": 0.2,
        "Canvas texture": 0.2,
        "Paper texture": 0.2,
        "Rough texture": 0.2,
    }


class HdrScore:
    """Point table for the HDR dynamic range rating."""

    BASE = 0.0
    RANGE_WEIGHT = 0.1
    RECOVERY_WEIGHT = 0.005
    INTENSITY_WEIGHT = 0.01
    TABLE = {
        "Surreal HDR": 1.5,
        "Dramatic HDR": 1.2,
        "Vivid HDR": 1.0,
        "Cinematic HDR": 0.8,
        "Landscape HDR": 0.7,
        "Natural HDR": 0.5,
        "Moody HDR": 0.3,
        "ACES tone mapping": 0.8,
        "Uncharted 2 tone mapping": 0.6,
        "Filmic tone mapping": 0.4,
        "Reinhard tone mapping": 0.2,
    }


SCORE_CEILING = 10.0


# Error Messages
class ErrorMessages:
    """Standard error messages."""

    # Upload errors
    NO_FILE = "No file uploaded"
    NO_FILES = "No files uploaded"
    NO_IMAGE = "No image file uploaded"
    FILE_TOO_LARGE = "File too large. Maximum size is {limit}MB"
    TOO_MANY_FILES = "Too many files. Maximum is {limit} files"
    EMPTY_FILE = "File is empty"
    INVALID_IMAGE_TYPE = "Only image files (JPEG, PNG, WebP, GIF, TIFF) are allowed"
    INVALID_WORD_TYPE = "Only Word documents (.doc, .docx) are allowed"
    UNSUPPORTED_IMAGE = "Unsupported or corrupted image data"

    # Filename errors
    FILENAME_NULL_BYTES = "Invalid filename - contains null bytes"
    FILENAME_TRAVERSAL = "Invalid filename - path traversal detected"
    FILENAME_CONTROL_CHARS = "Invalid filename - contains control characters"

    # Options errors
    INVALID_OPTIONS_FORMAT = "Invalid {tool} options format"
    OPTIONS_NOT_OBJECT = "options must be a JSON object"
    CROP_OUT_OF_BOUNDS = (
        "Crop area {x},{y} {width}x{height} exceeds image bounds {image_width}x{image_height}"
    )

    # Processing errors
    DIMENSIONS_UNKNOWN = "could not determine image dimensions"
    PROCESSING_FAILED = "{tool} processing failed: {error}"
    COMBINE_FAILED = "Failed to combine images: {error}"

    # Document errors
    DOCUMENT_EMPTY = "Invalid file buffer - file appears to be empty"
    DOCUMENT_TOO_SMALL = "File appears to be too small or corrupted"
    DOCUMENT_INVALID = "File does not appear to be a valid Word document"

    # Rate limiting
    RATE_LIMIT_EXCEEDED = "Too many requests from this IP, please try again later."
