"""Rate limiting middleware.

Wires identity resolution and the sliding-window limiter into the HTTP layer.
Runs for every request except the configured exempt paths:

1. resolve the caller identity (header, then cookie, else a new UUID4);
2. evaluate the request against the identity's window;
3. admitted → call the next handler; rejected → answer 429 directly;
4. annotate the response with X-RateLimit-* headers and, for new identities,
   the identity cookie and X-User-ID header.

Collaborators (settings, resolver, limiter) are read from ``app.state`` so
every application instance, and every test, owns its own state.
"""

from __future__ import annotations

import logging

from fastapi import Request, Response

from throttle_api.adapters.rate_limit.base import AbstractRateLimiter
from throttle_api.core.config import Settings
from throttle_api.core.errors import RateLimitedAppError
from throttle_api.core.exception_handlers import (
    build_error_response,
    general_exception_handler,
)
from throttle_api.core.identity import IdentityResolver
from throttle_api.core.logging import hash_identity

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-ID"


def _issue_identity(response: Response, identity: str, cfg: Settings) -> None:
    """Hand a freshly minted identity back to the caller.

    Browsers keep the cookie; other clients can read the header.
    """
    response.set_cookie(
        cfg.identity.cookie_name,
        identity,
        max_age=cfg.identity.cookie_max_age_sec,
        httponly=True,
        secure=cfg.cookie_secure,
    )
    response.headers[USER_ID_HEADER] = identity


async def rate_limit_middleware(request: Request, call_next) -> Response:
    """HTTP middleware enforcing the per-identity quota.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The downstream response, or a 429 error response when the
            identity's quota is exhausted. Both carry X-RateLimit-* headers.
    """

    cfg: Settings = request.app.state.settings
    if request.url.path in cfg.limiter.exempt_paths:
        return await call_next(request)

    resolver: IdentityResolver = request.app.state.identity_resolver
    limiter: AbstractRateLimiter = request.app.state.rate_limiter

    resolved = resolver.resolve(
        header_value=request.headers.get(cfg.identity.header_name),
        cookie_value=request.cookies.get(cfg.identity.cookie_name),
    )
    request.state.user_id = resolved.identity
    identity_hash = hash_identity(resolved.identity)

    if resolved.is_new:
        logger.info("identity.issued", extra={"identity_hash": identity_hash})

    decision = limiter.evaluate(resolved.identity)

    if decision.admitted:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "identity_hash": identity_hash,
                "limit": decision.limit,
                "remaining": decision.remaining,
                "window_ms": limiter.window_ms,
            },
        )
        try:
            response = await call_next(request)
        except Exception as exc:
            # The request was counted, so its 500 still reports the quota
            response = await general_exception_handler(request, exc)
    else:
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "identity_hash": identity_hash,
                "limit": decision.limit,
                "reset_s": decision.reset_seconds,
                "window_ms": limiter.window_ms,
                "request_path": request.url.path,
            },
        )
        rejection = RateLimitedAppError()
        response = build_error_response(
            rejection.status_code, rejection.code, rejection.message
        )

    response.headers.update(decision.headers())
    if resolved.is_new:
        _issue_identity(response, resolved.identity, cfg)
    return response
