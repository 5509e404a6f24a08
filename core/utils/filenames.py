"""
Upload filename validation and sanitization.
"""

import logging
import os
import re
from typing import Optional

from core.constants import APIConstants, ErrorMessages

logger = logging.getLogger(__name__)

_TRAVERSAL_PATTERNS = ("../", "..\\", "/..", "\\..", ":/", ":\\")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def check_filename(filename: str) -> Optional[str]:
    """
    Check an uploaded filename for unsafe content.

    Dots inside a name ("report..final.docx") are allowed; only real
    traversal sequences are rejected.

    Args:
        filename: Client supplied filename

    Returns:
        Error message, or None if the filename is acceptable
    """
    if "\x00" in filename:
        return ErrorMessages.FILENAME_NULL_BYTES
    if filename.startswith(("/", "\\")) or any(p in filename for p in _TRAVERSAL_PATTERNS):
        return ErrorMessages.FILENAME_TRAVERSAL
    if _CONTROL_CHARS.search(filename):
        return ErrorMessages.FILENAME_CONTROL_CHARS
    return None


def sanitize_filename(filename: Optional[str]) -> str:
    """
    Make a filename safe for a Content-Disposition header or ZIP entry.

    Args:
        filename: Raw filename (may be None or empty)

    Returns:
        Sanitized filename, ``document`` if nothing usable remains

    Example:
        >>> sanitize_filename('my  "photo".png')
        'my_photo_.png'
    """
    if not filename or not isinstance(filename, str):
        return APIConstants.DEFAULT_FILENAME

    name = _UNSAFE_CHARS.sub("_", filename)
    name = re.sub(r"\s+", "_", name)
    name = re.sub(r"_{2,}", "_", name)
    name = name.strip("_")[: APIConstants.MAX_FILENAME_LENGTH]
    return name or APIConstants.DEFAULT_FILENAME


def replace_extension(filename: str, extension: str) -> str:
    """Swap (or append) the extension of ``filename``."""
    stem, _ = os.path.splitext(filename or "")
    return f"{stem or APIConstants.DEFAULT_FILENAME}.{extension.lstrip('.')}"


def output_filename(original: Optional[str], extension: str, prefix: str = "") -> str:
    """Build the sanitized download name for a processed file."""
    return sanitize_filename(prefix + replace_extension(original or "", extension))
