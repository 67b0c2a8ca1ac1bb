# =============================================================================
# app/exceptions.py - Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every ApplicationError carries its own HTTP status, code and suggestion;
# the handler only renders it. "Errors should tell HOW to fix, not just WHAT
# failed."
# =============================================================================

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from lib.utils import ApplicationError

logger = logging.getLogger(__name__)


def error_body(exc: ApplicationError) -> dict:
    """API response body for an application error."""
    result = {
        "detail": exc.message,
        "code": exc.code,
    }
    if exc.suggestion:
        result["suggestion"] = exc.suggestion
    if exc.details:
        result["details"] = exc.details
    return result


async def application_exception_handler(
    request: Request,
    exc: ApplicationError
) -> JSONResponse:
    """
    Convert ApplicationError to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc)
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Converts validation errors to user-friendly messages.
    """
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": str(exc)
        }
    )
