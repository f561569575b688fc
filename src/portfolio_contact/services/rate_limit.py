"""Per-client fixed-window rate limiting with an escalating block."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Protocol

from portfolio_contact.core.settings import settings

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class RateLimitRecord:
    """Mutable counter state for one client identifier."""

    count: int
    window_reset_at: float
    blocked: bool = False
    blocked_until: float = 0.0

    def is_expired(self, now: float) -> bool:
        """Return True once neither the window nor a block is pending."""
        if self.blocked and now < self.blocked_until:
            return False
        return now >= self.window_reset_at


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a single check-and-consume call."""

    allowed: bool
    remaining: int
    reset_at: float
    blocked: bool
    limit: int

    def retry_after(self, now: float) -> int:
        """Whole seconds until the client may try again (never negative)."""
        return max(0, math.ceil(self.reset_at - now))


class RateLimitStore(Protocol):
    """Storage seam for rate-limit state.

    The in-process store below serves single-instance deployments; a shared
    cache implementing the same three members can replace it when the
    service runs on several instances.
    """

    def check_and_consume(self, client_id: str) -> RateLimitDecision: ...

    def sweep(self) -> int: ...

    def __len__(self) -> int: ...


class InMemoryRateLimitStore:
    """Fixed-window counter held in a lock-guarded dictionary.

    Increment-compare-block runs under one lock so two concurrent requests
    from the same client can never both be admitted past the limit.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        block_seconds: float,
        clock: Clock = time.time,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if block_seconds < 0:
            raise ValueError("block_seconds must not be negative")
        self._limit = limit
        self._window_seconds = float(window_seconds)
        self._block_seconds = float(block_seconds)
        self._clock = clock
        self._records: dict[str, RateLimitRecord] = {}
        self._lock = Lock()

    @property
    def limit(self) -> int:
        return self._limit

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def get(self, client_id: str) -> RateLimitRecord | None:
        """Return a copy of the record for ``client_id`` if one exists."""
        with self._lock:
            record = self._records.get(client_id)
            if record is None:
                return None
            return RateLimitRecord(
                count=record.count,
                window_reset_at=record.window_reset_at,
                blocked=record.blocked,
                blocked_until=record.blocked_until,
            )

    def check_and_consume(self, client_id: str) -> RateLimitDecision:
        """Count one request for ``client_id`` and decide whether to admit it."""
        now = self._clock()
        with self._lock:
            record = self._records.get(client_id)

            if record is None:
                record = self._fresh_record(now)
                self._records[client_id] = record
                return self._allow(record)

            if record.blocked and now < record.blocked_until:
                return RateLimitDecision(
                    allowed=False,
                    remaining=0,
                    reset_at=record.blocked_until,
                    blocked=True,
                    limit=self._limit,
                )

            if record.blocked or now >= record.window_reset_at:
                record = self._fresh_record(now)
                self._records[client_id] = record
                return self._allow(record)

            if record.count < self._limit:
                record.count += 1
                return self._allow(record)

            if self._block_seconds > 0:
                record.blocked = True
                record.blocked_until = now + self._block_seconds
                logger.warning(
                    "Blocking client %s for %.0f seconds after exceeding %d requests",
                    client_id,
                    self._block_seconds,
                    self._limit,
                )
                return RateLimitDecision(
                    allowed=False,
                    remaining=0,
                    reset_at=record.blocked_until,
                    blocked=True,
                    limit=self._limit,
                )

            return RateLimitDecision(
                allowed=False,
                remaining=0,
                reset_at=record.window_reset_at,
                blocked=False,
                limit=self._limit,
            )

    def sweep(self) -> int:
        """Evict fully expired records and return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, record in self._records.items() if record.is_expired(now)]
            for key in expired:
                del self._records[key]
        if expired:
            logger.debug("Evicted %d expired rate-limit records", len(expired))
        return len(expired)

    def _fresh_record(self, now: float) -> RateLimitRecord:
        return RateLimitRecord(count=1, window_reset_at=now + self._window_seconds)

    def _allow(self, record: RateLimitRecord) -> RateLimitDecision:
        return RateLimitDecision(
            allowed=True,
            remaining=max(0, self._limit - record.count),
            reset_at=record.window_reset_at,
            blocked=False,
            limit=self._limit,
        )


class _RateLimitStoreSingleton:
    """Process-wide holder for the default store."""

    _instance: InMemoryRateLimitStore | None = None

    @classmethod
    def get_instance(cls) -> InMemoryRateLimitStore:
        if cls._instance is None:
            cls._instance = InMemoryRateLimitStore(
                limit=settings.rate_limit_max_requests,
                window_seconds=settings.rate_limit_window_seconds,
                block_seconds=settings.rate_limit_block_seconds,
            )
        return cls._instance


def get_rate_limit_store() -> RateLimitStore:
    """Return the rate-limit store shared by all requests in this process."""
    return _RateLimitStoreSingleton.get_instance()
