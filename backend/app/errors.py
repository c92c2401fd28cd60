"""
Domain errors surfaced to clients as JSON.

Every error carries the HTTP status it maps to and renders as
``{"error": ..., "message": ..., **extra}``. The exception handlers are
registered in app.main.
"""
import logging
from typing import Any, Dict, Optional

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.requests import Request

from app.utils.metrics import errors_total

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors with a client-facing status and body."""

    status_code = 500
    error = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        error: Optional[str] = None,
        status_code: Optional[int] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.error
        super().__init__(self.message)
        if error:
            self.error = error
        if status_code:
            self.status_code = status_code
        self.extra = extra or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message, **self.extra}


class InvalidRequestError(AppError):
    """Request input failed validation. Raised before any side effect."""
    status_code = 400
    error = "Invalid request"


class RateLimitExceeded(AppError):
    """Too many requests of one type inside the trailing window."""
    status_code = 429
    error = "Rate limit exceeded"

    def __init__(self, message: str, retry_after: int):
        super().__init__(message, extra={"retryAfter": retry_after})
        self.retry_after = retry_after


class InsufficientCreditsError(AppError):
    """Balance below the cost of the requested generation."""
    status_code = 402
    error = "Insufficient credits"

    def __init__(self, available: int, required: int):
        super().__init__(
            f"This request needs {required} credits but only {available} are available.",
            extra={"available_credits": available, "required_credits": required},
        )
        self.available = available
        self.required = required


class ConfigurationError(AppError):
    """A required server-side integration is not configured."""
    status_code = 500
    error = "Service not configured"


class ProviderError(AppError):
    """The generation provider failed or could not be reached."""
    status_code = 500
    error = "Generation provider error"


class InvalidGenerationError(AppError):
    """The provider answered but the document is malformed."""
    status_code = 500
    error = "Invalid generation result"


class PersistenceError(AppError):
    """The generated artifact could not be stored."""
    status_code = 500
    error = "Failed to save result"


class NotFoundError(AppError):
    status_code = 404
    error = "Not found"


async def app_error_handler(request: Request, exc: AppError):
    log_level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        log_level,
        f"Request failed: {exc.error} - {exc.message}",
        extra={
            "event": "request_failed",
            "path": request.url.path,
            "status": exc.status_code,
            "error": exc.error,
        },
    )
    errors_total.labels(error_type=type(exc).__name__).inc()
    headers = None
    if isinstance(exc, RateLimitExceeded):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Body validation errors are client errors (400) with a readable message."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        message = str(first.get("msg", "Invalid request"))
        # pydantic prefixes custom ValueError messages with "Value error, "
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        location = [str(part) for part in first.get("loc", ()) if part != "body"]
        if location and not first.get("type", "").startswith("value_error"):
            message = f"{'.'.join(location)}: {message}"
    else:
        message = "Invalid request"
    return JSONResponse(
        status_code=400,
        content={"error": message, "message": "Invalid request"},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    """Last resort: unexpected failures still answer with the JSON error shape."""
    logger.exception(
        f"Unhandled error: {exc}",
        extra={"event": "request_failed", "path": request.url.path, "status": 500},
    )
    errors_total.labels(error_type=type(exc).__name__).inc()
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "message": "An unexpected error occurred"},
    )
