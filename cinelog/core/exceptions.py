"""
Global Exception Handlers

Custom exceptions and FastAPI exception handlers.

Every failure leaves the API as:
    {"error": true, "message": "...", "status_code": <int>}
"""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .logging import get_logger

logger = get_logger(__name__)


class CinelogException(Exception):
    """Base exception for cinelog backend errors."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class InvalidArgumentError(CinelogException):
    """Malformed or missing input (bad pagination, unknown action, ...)."""

    def __init__(self, message: str = "Invalid argument"):
        super().__init__(message=message, status_code=400)


class UnauthorizedError(CinelogException):
    """Authentication failed."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message=message, status_code=401)


class ForbiddenError(CinelogException):
    """Authenticated, but not a member, author or recipient."""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message=message, status_code=403)


class NotFoundError(CinelogException):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(
            message=f"{resource} not found: {resource_id}",
            status_code=404
        )


class ConflictError(CinelogException):
    """Duplicate movie, friendship or request."""

    def __init__(self, message: str):
        super().__init__(message=message, status_code=409)


class InvalidStateError(CinelogException):
    """Acting on a friend request that is no longer pending."""

    def __init__(self, message: str):
        super().__init__(message=message, status_code=409)


class InternalError(CinelogException):
    """Persistence or other unexpected failure."""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message=message, status_code=500)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": True,
            "message": message,
            "status_code": status_code,
        }
    )


async def cinelog_exception_handler(
    request: Request,
    exc: CinelogException
) -> JSONResponse:
    """Handle CinelogException and return JSON response."""
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=exc.message)
    return _error_response(exc.status_code, exc.message)


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Map pydantic request validation errors to 400 InvalidArgument."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", []) if part != "body")
        message = f"Invalid {field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return _error_response(400, message)


async def unhandled_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Last resort: log and hide the details behind a generic 500."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return _error_response(500, "Internal server error")


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(CinelogException, cinelog_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
