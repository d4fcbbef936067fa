"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: every read-modify-write of a record happens under the store lock.
- Pruning is lazy: expired timestamps are dropped right before a record is read,
  never in the background (except by the janitor sweep).
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from throttle_api.adapters.rate_limit.base import (
    AbstractRateLimiter,
    IdentityUsage,
    RateLimitDecision,
)


def epoch_ms() -> int:
    """Current UNIX time in whole milliseconds."""
    return time.time_ns() // 1_000_000


@dataclass
class WindowRecord:
    """Per-identity state.

    Attributes:
        last_activity: Epoch ms of the last admitted request (or of record
            creation). Rejections leave it untouched.
        requests: Epoch ms timestamps of admitted requests still in the window.
    """

    last_activity: int
    requests: list[int] = field(default_factory=list)

    def prune(self, cutoff: int) -> None:
        """Drop every timestamp at or before ``cutoff``."""
        self.requests = [t for t in self.requests if t > cutoff]


class RateLimitStore:
    """Mapping of identity -> WindowRecord shared by the limiter and janitor.

    The store is a plain object rather than a module global so each app (and
    each test) owns its own instance. Callers that read and then mutate a
    record must hold ``lock`` for the whole sequence.
    """

    def __init__(self) -> None:
        self._records: dict[str, WindowRecord] = {}
        self.lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, identity: object) -> bool:
        return identity in self._records

    def get(self, identity: str) -> WindowRecord | None:
        return self._records.get(identity)

    def put(self, identity: str, record: WindowRecord) -> None:
        with self.lock:
            self._records[identity] = record

    def get_or_create(self, identity: str, now: int) -> WindowRecord:
        with self.lock:
            record = self._records.get(identity)
            if record is None:
                record = WindowRecord(last_activity=now)
                self._records[identity] = record
            return record

    def remove(self, identity: str) -> None:
        with self.lock:
            self._records.pop(identity, None)

    def identities(self) -> list[str]:
        """Snapshot of the tracked identities."""
        with self.lock:
            return list(self._records)

    def items(self) -> list[tuple[str, WindowRecord]]:
        """Snapshot of (identity, record) pairs; records are live objects."""
        with self.lock:
            return list(self._records.items())


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting admitted requests over a trailing window.

    Unlike a fixed window, the count never resets at a boundary: a request is
    forgotten exactly ``window_ms`` after it was admitted, so there is no burst
    of ``2 * limit`` around bucket edges.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_ms: int,
        store: RateLimitStore | None = None,
        clock: Callable[[], int] = epoch_ms,
    ) -> None:
        """Initialize the limiter.

        Args:
            limit: Maximum number of admitted requests per window.
            window_ms: Window length in milliseconds.
            store: Shared record store; a fresh one is created when omitted.
            clock: Time source returning epoch milliseconds.

        Raises:
            ValueError: If limit or window_ms are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")

        self.limit = limit
        self.window_ms = window_ms
        self._store = store if store is not None else RateLimitStore()
        self._clock = clock

    @property
    def store(self) -> RateLimitStore:
        return self._store

    def _reset_seconds(self, requests: list[int], now: int) -> int:
        return math.ceil((min(requests) + self.window_ms - now) / 1000)

    def evaluate(self, identity: str, now: int | None = None) -> RateLimitDecision:
        """Admit or reject one request from ``identity``.

        An admitted request is appended to the record and refreshes
        ``last_activity``. A rejected request leaves the record as it was
        after pruning.

        Args:
            identity: Caller identity.
            now: Epoch ms; defaults to the configured clock.

        Returns:
            RateLimitDecision with the verdict and header metadata.

        Raises:
            ValueError: If identity is empty.
        """
        if not identity:
            raise ValueError("identity must be a non-empty string")
        if now is None:
            now = self._clock()

        with self._store.lock:
            record = self._store.get_or_create(identity, now)
            record.prune(now - self.window_ms)

            if len(record.requests) >= self.limit:
                return RateLimitDecision(
                    admitted=False,
                    limit=self.limit,
                    remaining=0,
                    reset_seconds=self._reset_seconds(record.requests, now),
                )

            record.requests.append(now)
            record.last_activity = now

            return RateLimitDecision(
                admitted=True,
                limit=self.limit,
                remaining=max(0, self.limit - len(record.requests)),
                # Never advertise an already-expired window while state is held
                reset_seconds=max(1, self._reset_seconds(record.requests, now)),
            )

    def inspect(self, now: int | None = None) -> list[IdentityUsage]:
        """Report usage for every tracked identity.

        Expired timestamps are filtered out of the report but left in the
        records; only ``evaluate`` and the janitor prune.
        """
        if now is None:
            now = self._clock()
        cutoff = now - self.window_ms

        usage: list[IdentityUsage] = []
        with self._store.lock:
            for identity, record in self._store.items():
                valid = tuple(t for t in record.requests if t > cutoff)
                usage.append(
                    IdentityUsage(
                        identity=identity,
                        request_count=len(valid),
                        remaining=max(0, self.limit - len(valid)),
                        last_request=record.last_activity,
                        requests=valid,
                        is_limited=len(valid) >= self.limit,
                    )
                )
        return usage
