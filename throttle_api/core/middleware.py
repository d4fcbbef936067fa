"""HTTP middleware for request correlation.

Every response carries the request id (taken from the incoming header or
generated) and the handling time. Responses to rate-limited requests also
carry ``X-Identity-Hash``, the same short tag the limiter writes to its log
lines, so a client report can be matched to server logs without exposing
the identity itself.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from throttle_api.core.logging import clear_request_id, hash_identity, set_request_id

logger = logging.getLogger(__name__)

IDENTITY_HASH_HEADER = "X-Identity-Hash"


async def request_id_middleware(request: Request, call_next) -> Response:
    """Bind a correlation id to the request and report it back.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The downstream response with ``X-Request-ID`` and
            ``X-Request-Duration-ms`` headers added, plus ``X-Identity-Hash``
            when the request was attributed to an identity.
    """

    header_name = request.app.state.settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    started = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        # Set by the rate limit middleware; exempt paths have none.
        identity = getattr(request.state, "user_id", None)
        identity_hash = hash_identity(identity) if identity else None
        logger.info(
            "request.completed",
            extra={
                "request_method": request.method,
                "request_path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "identity_hash": identity_hash,
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers["X-Request-Duration-ms"] = f"{duration_ms:.2f}"
    if identity_hash:
        response.headers[IDENTITY_HASH_HEADER] = identity_hash
    return response
