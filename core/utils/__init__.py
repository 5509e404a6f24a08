"""
Utility modules for core functionality.

Modules:
- decorators: Utility decorators and context managers (timer)
- filenames: Upload filename validation and sanitization
"""

from .decorators import timer
from .filenames import check_filename, output_filename, replace_extension, sanitize_filename

__all__ = [
    "timer",
    "check_filename",
    "sanitize_filename",
    "replace_extension",
    "output_filename",
]
