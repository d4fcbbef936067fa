"""Global exception handlers for consistent error responses.

Every error leaving the API has the same flat JSON shape::

    {"error": "<machine_readable_code>", "message": "<human readable text>"}

Design:
- AppError subclasses → their declared status (400, 404, ...)
- Starlette HTTPException (unmatched route, wrong method) → 404/405/...
- Unexpected Exception → generic 500, details only in server logs
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from throttle_api.core.errors import (
    HTTP_ERROR,
    INTERNAL_SERVER_ERROR,
    INTERNAL_SERVER_ERROR_MESSAGE,
    METHOD_NOT_ALLOWED,
    NOT_FOUND,
    NOT_FOUND_MESSAGE,
    AppError,
)
from throttle_api.core.logging import get_request_id

logger = logging.getLogger(__name__)

_HTTP_STATUS_CODES = {
    404: NOT_FOUND,
    405: METHOD_NOT_ALLOWED,
}


def build_error_response(
    status_code: int,
    code: str,
    message: str,
    *,
    details: dict | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the JSON error body shared by handlers and middleware.

    Args:
        status_code: HTTP status of the response.
        code: Machine-readable error code (``error`` field).
        message: Human-readable message.
        details: Optional structured context, included only when present.
        headers: Extra response headers.

    Returns:
        JSONResponse with the flat error shape.
    """
    content: dict = {"error": code, "message": message}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render domain errors using the status declared on the error class."""
    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": exc.status_code,
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )
    return build_error_response(
        exc.status_code, exc.code, exc.message, details=dict(exc.details or {})
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render routing-level HTTP errors (404, 405, ...) in the error shape."""
    code = _HTTP_STATUS_CODES.get(exc.status_code, HTTP_ERROR)
    if exc.status_code == 404:
        message = NOT_FOUND_MESSAGE
    else:
        message = str(exc.detail)
    return build_error_response(
        exc.status_code, code, message, headers=getattr(exc, "headers", None)
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    The exception is logged with its traceback; the client only receives a
    generic message.
    """
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )
    return build_error_response(
        500, INTERNAL_SERVER_ERROR, INTERNAL_SERVER_ERROR_MESSAGE
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
