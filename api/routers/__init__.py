"""
API Routers for the Doclair tools service
"""

from . import conversion, health, image_tools

__all__ = ["image_tools", "conversion", "health"]
