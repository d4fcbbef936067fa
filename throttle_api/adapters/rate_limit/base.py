"""Rate limiter interfaces.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the storage backend can be swapped without touching the middleware.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of evaluating one request against an identity's window.

    Attributes:
        admitted: Whether the request may proceed downstream.
        limit: Max admitted requests per window.
        remaining: Requests still available in the window (0 when rejected).
        reset_seconds: Seconds until the oldest counted request leaves the
            window.
    """

    admitted: bool
    limit: int
    remaining: int
    reset_seconds: int

    def headers(self) -> dict[str, str]:
        """Quota metadata as HTTP response headers."""
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_seconds),
        }


@dataclass(frozen=True)
class IdentityUsage:
    """Read-only view of one identity's recent activity."""

    identity: str
    request_count: int
    remaining: int
    last_request: int
    requests: tuple[int, ...]
    is_limited: bool


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    limit: int
    window_ms: int

    @abstractmethod
    def evaluate(self, identity: str, now: int | None = None) -> RateLimitDecision:
        """Decide whether a request from ``identity`` is admitted.

        Args:
            identity: Caller identity (non-empty).
            now: Current time in epoch milliseconds; defaults to the clock.

        Returns:
            RateLimitDecision describing the verdict and quota metadata.
        """
        raise NotImplementedError

    @abstractmethod
    def inspect(self, now: int | None = None) -> list[IdentityUsage]:
        """Describe every tracked identity without mutating state."""
        raise NotImplementedError
