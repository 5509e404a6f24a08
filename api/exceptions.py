"""
Exception hierarchy and handlers for the Doclair tools API.

Every error response has the shape ``{"error": ..., "code": ..., "timestamp": ...}``
so clients can branch on ``code`` instead of parsing messages.
"""

import functools
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.constants import ErrorMessages

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error carrying an HTTP status and a stable code."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.details = details
        self.headers = headers


class ValidationError(AppError):
    """Rejected request options (400)."""

    status_code = 400
    code = "VALIDATION_ERROR"


class InvalidFileError(AppError):
    """Upload with a wrong type, bad name or unreadable content (400)."""

    status_code = 400
    code = "INVALID_FILE_TYPE"


class MissingFileError(AppError):
    """Upload field absent (400)."""

    status_code = 400
    code = "NO_FILE"


class DimensionError(AppError):
    """Image dimensions could not be determined (400)."""

    status_code = 400
    code = "INVALID_IMAGE_FILE"

    def __init__(self, message: str = ErrorMessages.DIMENSIONS_UNKNOWN):
        super().__init__(message)


class ProcessingError(AppError):
    """A transform or conversion failed after validation (500)."""

    status_code = 500
    code = "PROCESSING_ERROR"


class RateLimitExceeded(AppError):
    """Client exceeded the request window (429)."""

    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, retry_after: Optional[int] = None):
        headers = {"Retry-After": str(retry_after)} if retry_after else None
        super().__init__(ErrorMessages.RATE_LIMIT_EXCEEDED, headers=headers)


_HTTP_STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    413: "FILE_TOO_LARGE",
    429: "RATE_LIMIT_EXCEEDED",
}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def error_body(
    message: str, code: str, details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Build the standard JSON error body."""
    body: Dict[str, Any] = {"error": message, "code": code, "timestamp": _timestamp()}
    if details:
        body["details"] = details
    return body


def _debug_enabled(request: Request) -> bool:
    return bool(getattr(request.app.state, "debug", False))


def safe_endpoint(func):
    """
    Decorator for route handlers.

    AppError and HTTPException propagate to their handlers untouched. Any
    other exception is logged and converted into a 500 INTERNAL_ERROR.
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (AppError, HTTPException):
            raise
        except Exception as e:
            logger.error(f"Unhandled error in {func.__name__}: {e}", exc_info=True)
            raise AppError(f"Internal server error: {e}", status_code=500, code="INTERNAL_ERROR")

    return wrapper


def register_exception_handlers(app: FastAPI) -> None:
    """Attach JSON error handlers to the application."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
        else:
            logger.warning(f"{exc.code} on {request.url.path}: {exc.message}")
        details = exc.details if _debug_enabled(request) else None
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, exc.code, details),
            headers=exc.headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code = _HTTP_STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
        message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        if exc.status_code == 404 and message == "Not Found":
            message = f"Route {request.method} {request.url.path} not found"
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(message, code),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{location}: {first.get('msg')}" if location else first.get("msg")
        else:
            message = "Invalid request"
        details = {"errors": jsonable_errors(errors)} if _debug_enabled(request) else None
        return JSONResponse(status_code=400, content=error_body(message, "VALIDATION_ERROR", details))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Global exception: {exc}", exc_info=True)
        details = {"exception": str(exc)} if _debug_enabled(request) else None
        return JSONResponse(
            status_code=500, content=error_body("Internal server error", "INTERNAL_ERROR", details)
        )


def jsonable_errors(errors) -> list:
    """Strip non-serializable context from pydantic error dicts."""
    return [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in errors
    ]
