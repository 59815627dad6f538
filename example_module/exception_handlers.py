"""
Exception Handlers for the Example Module web routes

Module exceptions raised by the routes are turned into JSON error responses:

{
    "error": {
        "status_code": 429,
        "error_code": "RATE_LIMIT_EXCEEDED",
        "message": "Rate limit exceeded. Please try again later.",
        "type": "Too Many Requests",
        "path": "/example-module/form"
    }
}
"""

import logging
from typing import Any, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse

from example_module.exceptions import (
    CSRFError,
    ExampleModuleError,
    ModuleDisabledError,
    RateLimitExceededError,
    SubmissionError,
)

logger = logging.getLogger(__name__)

ERROR_TYPES = {
    400: "Bad Request",
    403: "Forbidden",
    404: "Not Found",
    422: "Validation Error",
    429: "Too Many Requests",
    500: "Internal Server Error",
}


def create_error_response(
    status_code: int,
    message: str,
    error_code: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
    path: Optional[str] = None,
) -> JSONResponse:
    """Wrap an error in the module's `{"error": {...}}` envelope; empty optional fields are left out."""
    error: dict[str, Any] = {"status_code": status_code, "message": message, "type": get_error_type(status_code)}
    optional = {"error_code": error_code, "details": details, "path": path}
    error.update({key: value for key, value in optional.items() if value})
    return JSONResponse(status_code=status_code, content={"error": error})


def get_error_type(status_code: int) -> str:
    return ERROR_TYPES.get(status_code, "Error")


def get_error_code(exc: ExampleModuleError) -> str:
    # Most specific class first
    if isinstance(exc, CSRFError):
        return "CSRF_VALIDATION_FAILED"
    if isinstance(exc, RateLimitExceededError):
        return "RATE_LIMIT_EXCEEDED"
    if isinstance(exc, SubmissionError):
        return "SUBMISSION_REJECTED"
    if isinstance(exc, ModuleDisabledError):
        return "MODULE_DISABLED"
    return "MODULE_ERROR"


async def module_exception_handler(request: Request, exc: ExampleModuleError) -> JSONResponse:
    """Handle module exceptions raised by route handlers."""
    logger.warning(
        f"{type(exc).__name__}: {exc.message}",
        extra={"status_code": exc.status_code, "path": request.url.path},
    )

    return create_error_response(
        status_code=exc.status_code,
        message=exc.message,
        error_code=get_error_code(exc),
        details=exc.details or None,
        path=request.url.path,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without exposing internals."""
    logger.error(
        f"Unhandled exception: {str(exc)}",
        exc_info=True,
        extra={"path": request.url.path, "method": request.method},
    )

    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="An unexpected error occurred. Please try again later.",
        error_code="INTERNAL_ERROR",
        path=request.url.path,
    )


def register_exception_handlers(app) -> None:
    """Attach the module error handlers to a FastAPI app."""
    app.add_exception_handler(ExampleModuleError, module_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    logger.info("Exception handlers registered successfully")
