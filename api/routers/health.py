"""
Health API Router - service status, LibreOffice availability and process metrics
"""

import asyncio
import logging
import time
from datetime import datetime, timezone

import psutil
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_convert_service
from core.constants import APIConstants

logger = logging.getLogger(__name__)

router = APIRouter()

# Track start time
START_TIME = time.time()

INSTALL_INSTRUCTIONS = {
    "debian": "sudo apt-get update && sudo apt-get install libreoffice",
    "fedora": "sudo dnf install libreoffice",
    "macos": "brew install --cask libreoffice",
    "windows": "Download from https://www.libreoffice.org/download/",
}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("")
async def health():
    """General health check."""
    return {
        "status": "healthy",
        "timestamp": _timestamp(),
        "service": APIConstants.SERVICE_ID,
        "version": APIConstants.API_VERSION,
        "uptime": round(time.time() - START_TIME, 3),
    }


@router.get("/libreoffice")
async def libreoffice_health(service=Depends(get_convert_service)):
    """LibreOffice availability; 503 when the text renderer is the only tier."""
    status = await asyncio.to_thread(service.libreoffice_status)
    body = {
        "service": "LibreOffice Converter",
        "timestamp": _timestamp(),
        "libreoffice": status.model_dump(),
        "status": "ready" if status.installed else "unavailable",
        "fallback": "text renderer",
        "installInstructions": None if status.installed else INSTALL_INSTRUCTIONS,
    }
    return JSONResponse(status_code=200 if status.installed else 503, content=body)


@router.get("/stats")
async def stats():
    """Process and system metrics."""
    process = psutil.Process()
    memory_info = process.memory_info()
    virtual_memory = psutil.virtual_memory()

    return {
        "timestamp": _timestamp(),
        "uptime": round(time.time() - START_TIME, 3),
        "memory_usage": {
            "process_mb": round(memory_info.rss / 1024 / 1024, 2),
            "system_percent": virtual_memory.percent,
            "available_mb": round(virtual_memory.available / 1024 / 1024, 2),
        },
        "cpu": {
            "process_percent": process.cpu_percent(interval=None),
            "system_percent": psutil.cpu_percent(interval=None),
            "count": psutil.cpu_count(),
        },
        "threads": process.num_threads(),
    }
