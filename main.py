"""
Doclair Tools - Main FastAPI Application
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Add parent directory to path
sys.path.append(str(Path(__file__).parent))

from api.dependencies import Services  # noqa: E402
from api.exceptions import register_exception_handlers  # noqa: E402
from api.middleware import SecurityHeadersMiddleware  # noqa: E402
from api.rate_limiter import InMemoryRateLimiter, rate_limit  # noqa: E402

# Import routers  # noqa: E402
from api.routers import conversion, health, image_tools  # noqa: E402

# Import configuration  # noqa: E402
from config import get_settings  # noqa: E402
from core.constants import APIConstants  # noqa: E402

# Get configuration
settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.system.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Suppress watchfiles debug messages
logging.getLogger("watchfiles").setLevel(logging.WARNING)


def init_app_state(app: FastAPI) -> None:
    """Create services and shared state on ``app.state``."""
    app.state.services = Services.create(settings)
    app.state.config = settings.to_dict()
    app.state.debug = settings.system.debug


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle"""
    # Startup
    logger.info(f"Starting {APIConstants.SERVICE_NAME}...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.system.debug}")

    init_app_state(app)

    status = app.state.services.convert.libreoffice_status()
    if status.installed:
        logger.info(f"LibreOffice available: {status.version}")
    else:
        logger.warning("LibreOffice not found, Word conversion will use the text renderer")

    logger.info("All services initialized successfully")

    yield

    # Shutdown
    logger.info(f"Shutting down {APIConstants.SERVICE_NAME}...")


# Create FastAPI app
app = FastAPI(
    title=APIConstants.SERVICE_NAME,
    description="Stateless image tools and Word to PDF conversion",
    version=APIConstants.API_VERSION,
    lifespan=lifespan,
)

# Rate limiter window is shared by all requests of this process
app.state.rate_limiter = (
    InMemoryRateLimiter(
        max_requests=settings.limits.rate_limit_max_requests,
        window_seconds=settings.limits.rate_limit_window_seconds,
    )
    if settings.limits.rate_limit_enabled
    else None
)

app.add_middleware(SecurityHeadersMiddleware)

# Configure CORS for the web client
if settings.api.cors_enabled:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=settings.api.expose_headers,
    )

# Register exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(
    image_tools.router,
    prefix="/api/tools/image",
    tags=["Image Tools"],
    dependencies=[Depends(rate_limit)],
)
app.include_router(
    conversion.router,
    prefix="/api/convert",
    tags=["Conversion"],
    dependencies=[Depends(rate_limit)],
)
app.include_router(health.router, prefix="/api/health", tags=["Health"])

ENDPOINTS = {
    "health": "/api/health",
    "libreoffice": "/api/health/libreoffice",
    "stats": "/api/health/stats",
    "wordToPdf": "/api/convert/word-to-pdf",
    "batchWordToPdf": "/api/convert/batch/word-to-pdf",
    "imageTools": "/api/tools/image",
    "imageToolsHealth": "/api/tools/image/health",
    **{name: path for name, path in image_tools.TOOL_ENDPOINTS.items()},
    "docs": "/docs",
}


# Root endpoint
@app.get("/")
async def root():
    return {
        "name": APIConstants.SERVICE_NAME,
        "status": "running",
        "version": APIConstants.API_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "endpoints": ENDPOINTS,
    }


@app.get("/api")
async def api_index():
    return {
        "name": APIConstants.SERVICE_NAME,
        "version": APIConstants.API_VERSION,
        "endpoints": ENDPOINTS,
    }


# Health check endpoint
@app.get("/health")
async def health_check():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


if __name__ == "__main__":
    server_config = uvicorn.Config(
        "main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.system.debug,
        log_level=settings.system.log_level.lower(),
        loop="asyncio",
    )
    server = uvicorn.Server(server_config)

    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    finally:
        logger.info("Server exiting...")
