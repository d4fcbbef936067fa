from __future__ import annotations

from fastapi import APIRouter, Request

from throttle_api.adapters.rate_limit.base import AbstractRateLimiter
from throttle_api.core.errors import NOT_FOUND, NOT_FOUND_MESSAGE, NotFoundAppError
from throttle_api.schemas.rate_limit import IdentityUsageResponse, RateLimitReport

router = APIRouter(tags=["Rate limit"])


@router.get("/api/rate-limits", response_model=RateLimitReport)
def rate_limit_report(request: Request) -> RateLimitReport:
    """Debugging view of every tracked identity.

    Read-only: expired timestamps are hidden from the report but the store is
    not pruned. The request itself is still counted by the middleware like any
    other request.

    Raises:
        NotFoundAppError: If introspection is disabled (``APP_INSPECT_ENABLED``).
    """
    if not request.app.state.settings.app.inspect_enabled:
        raise NotFoundAppError(code=NOT_FOUND, message=NOT_FOUND_MESSAGE)

    limiter: AbstractRateLimiter = request.app.state.rate_limiter
    usage = limiter.inspect()

    return RateLimitReport(
        limit=limiter.limit,
        window_ms=limiter.window_ms,
        tracked_identities=len(usage),
        identities=[IdentityUsageResponse.model_validate(u) for u in usage],
    )
