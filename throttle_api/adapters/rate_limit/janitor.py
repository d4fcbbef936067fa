"""Background eviction of idle identities.

The limiter only prunes the record it is evaluating, so identities that stop
sending requests would stay in memory forever. The janitor walks the whole
store on a timer and drops records that have gone quiet for a full window.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from throttle_api.adapters.rate_limit.in_memory import RateLimitStore, epoch_ms

logger = logging.getLogger(__name__)


class StoreJanitor:
    """Periodic sweeper for a RateLimitStore.

    ``sweep`` is synchronous and can be called directly (tests, admin tasks);
    ``start``/``stop`` manage an asyncio task that calls it every
    ``interval_seconds`` on the running event loop.
    """

    def __init__(
        self,
        store: RateLimitStore,
        *,
        window_ms: int,
        interval_seconds: float = 60.0,
        clock: Callable[[], int] = epoch_ms,
    ) -> None:
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")

        self._store = store
        self._window_ms = window_ms
        self._interval_seconds = interval_seconds
        self._clock = clock
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep(self, now: int | None = None) -> int:
        """Prune every record and evict the idle ones.

        A record is evicted when it holds no request newer than
        ``now - window_ms`` and its last admission is more than a window old.
        Rejected requests do not refresh ``last_activity``, so an identity that
        is only being rejected is evicted once its admitted requests expire.

        Args:
            now: Epoch ms; defaults to the configured clock.

        Returns:
            Number of evicted identities.
        """
        if now is None:
            now = self._clock()
        cutoff = now - self._window_ms

        evicted = 0
        for identity in self._store.identities():
            # Lock per record so request handling can interleave between records
            with self._store.lock:
                record = self._store.get(identity)
                if record is None:
                    continue
                record.prune(cutoff)
                if not record.requests and now - record.last_activity > self._window_ms:
                    self._store.remove(identity)
                    evicted += 1

        logger.debug(
            "rate_limit.sweep",
            extra={"evicted": evicted, "tracked": len(self._store)},
        )
        return evicted

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval_seconds)
            try:
                self.sweep()
            except Exception:
                logger.exception("rate_limit.sweep_failed")

    def start(self) -> None:
        """Schedule the periodic sweep on the running loop (no-op if running)."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="rate-limit-janitor"
        )
        logger.info(
            "rate_limit.janitor_started",
            extra={"interval_s": self._interval_seconds},
        )

    async def stop(self) -> None:
        """Cancel the periodic sweep and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("rate_limit.janitor_stopped")
