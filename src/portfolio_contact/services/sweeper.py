"""Background eviction of expired rate-limit records.

The sweep touches the same store as request handling, so it takes the same
lock; it runs in a worker thread to keep the event loop free while it walks
the store.
"""

from __future__ import annotations

import asyncio
import logging

from portfolio_contact.services.rate_limit import RateLimitStore

logger = logging.getLogger(__name__)

MIN_INTERVAL_SECONDS = 0.01


class RateLimitSweepWorker:
    """Periodically calls ``store.sweep()`` until stopped."""

    def __init__(self, store: RateLimitStore, interval_seconds: float) -> None:
        self.store = store
        self.interval_seconds = max(MIN_INTERVAL_SECONDS, float(interval_seconds))
        self.total_evicted = 0
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background sweep loop."""
        if not self.running:
            self._stopping.clear()
            self._task = asyncio.create_task(self._run(), name="rate-limit-sweep")

    async def stop(self) -> None:
        """Stop the background sweep loop."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def sweep_once(self) -> int:
        evicted = await asyncio.to_thread(self.store.sweep)
        self.total_evicted += evicted
        return evicted

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass
            if self._stopping.is_set():
                return

            try:
                evicted = await self.sweep_once()
            except Exception as e:
                logger.error("Rate-limit sweep failed: %s", e, exc_info=True)
                continue

            if evicted:
                logger.info(
                    "Rate-limit sweep evicted %d records (%d still tracked)",
                    evicted,
                    len(self.store),
                )
