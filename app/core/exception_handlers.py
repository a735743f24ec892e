"""Global exception handlers for consistent error responses.

Every failure leaves the service in the same envelope:

    {"success": false, "error": "<message>", "details": "<optional>"}

Design:
- AppError subclasses → their declared HTTP status (400, 429, 500)
- Unknown routes/methods → 404 "endpoint not found"
- Malformed request bodies → 400 "invalid request body"
- Unexpected Exception → generic 500 (safety net), logged with traceback
- ``details`` is only emitted when error details are enabled
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import AppError
from app.core.logging import get_request_id
from app.schemas.ingredient import ErrorResponse

logger = logging.getLogger(__name__)

ENDPOINT_NOT_FOUND = "endpoint not found"
INVALID_REQUEST_BODY = "invalid request body"
INTERNAL_SERVER_ERROR = "internal server error"


def build_error_content(
    message: str,
    details: str | None = None,
    *,
    include_details: bool,
) -> dict:
    """Build the JSON error envelope.

    Args:
        message: Public error message.
        details: Underlying cause, if any.
        include_details: Whether ``details`` may be exposed to the caller.

    Returns:
        Envelope dict without ``details`` unless it is both present and allowed.
    """
    envelope = ErrorResponse(
        error=message,
        details=details if include_details else None,
    )
    return envelope.model_dump(exclude_none=True)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render domain application errors with their mapped status code."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "error_details": exc.details,
            "status_code": exc.status_code,
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_content(
            exc.message,
            exc.details,
            include_details=settings.expose_error_details,
        ),
        headers=exc.headers,
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render framework HTTP errors; unmatched routes and methods become 404."""
    if exc.status_code in (404, 405):
        return JSONResponse(
            status_code=404,
            content=build_error_content(ENDPOINT_NOT_FOUND, include_details=False),
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_content(str(exc.detail), include_details=False),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request body/parameter validation failures as 400."""
    logger.warning(
        "request_validation_failed",
        extra={
            "request_path": request.url.path,
            "error_count": len(exc.errors()),
        },
    )
    return JSONResponse(
        status_code=400,
        content=build_error_content(
            INVALID_REQUEST_BODY,
            "; ".join(str(err.get("msg", "")) for err in exc.errors()),
            include_details=settings.expose_error_details,
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs full detail server-side regardless of environment and returns a
    generic message. Stack traces never reach the client.
    """
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=500,
        content=build_error_content(INTERNAL_SERVER_ERROR, include_details=False),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
