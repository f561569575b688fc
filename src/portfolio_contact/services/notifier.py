"""Notification dispatch with bounded latency.

The primary (owner-facing) send decides the outcome of a submission. It runs
in its own task and the dispatcher waits for it at most
``timeout_seconds``. When the timeout wins the task is abandoned, not
cancelled: the provider call may still complete, so a late delivery (and a
duplicate if the submitter retries) is possible. Abandoned and background
tasks are tracked so their eventual failures are logged.

The acknowledgement (sender-facing receipt) is fire-and-forget.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from portfolio_contact.core.settings import settings
from portfolio_contact.schemas.notification import NotificationJob, OutboundEmail

logger = logging.getLogger(__name__)


class NotificationError(RuntimeError):
    """Base exception raised when a notification cannot be delivered."""


class NotificationDisabledError(NotificationError):
    """Raised when a send is attempted on an unconfigured sink."""


class NotificationSink(Protocol):
    """Anything that can deliver an :class:`OutboundEmail`."""

    @property
    def configured(self) -> bool: ...

    async def send(self, email: OutboundEmail) -> str | None: ...


class DispatchStatus(str, Enum):
    SENT = "sent"
    UNAVAILABLE = "unavailable"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class DispatchResult:
    status: DispatchStatus
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is DispatchStatus.SENT


class NotificationDispatcher:
    """Send the primary notification under a hard timeout, then the receipt."""

    def __init__(
        self,
        sink: NotificationSink,
        *,
        timeout_seconds: float = 15.0,
        send_acknowledgement: bool = True,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self._sink = sink
        self._timeout = float(timeout_seconds)
        self._send_acknowledgement = send_acknowledgement
        self._background: set[asyncio.Task[Any]] = set()

    @property
    def sink(self) -> NotificationSink:
        return self._sink

    @property
    def pending(self) -> int:
        """Number of abandoned or fire-and-forget sends still in flight."""
        return len(self._background)

    async def dispatch(self, job: NotificationJob) -> DispatchResult:
        """Deliver ``job.primary`` and schedule ``job.acknowledgement``."""
        if not self._sink.configured:
            logger.error("Notification sink not configured; refusing to dispatch")
            return DispatchResult(DispatchStatus.UNAVAILABLE, "sink not configured")

        primary = asyncio.create_task(self._sink.send(job.primary), name="notify-primary")
        done, _ = await asyncio.wait({primary}, timeout=self._timeout)

        if not done:
            self._track(primary)
            logger.error(
                "Primary notification did not complete within %.1fs; abandoning wait",
                self._timeout,
            )
            return DispatchResult(DispatchStatus.TIMED_OUT, f"timed out after {self._timeout}s")

        if primary.cancelled():
            logger.error("Primary notification was cancelled")
            return DispatchResult(DispatchStatus.FAILED, "cancelled")

        exc = primary.exception()
        if exc is not None:
            logger.error("Primary notification failed: %s", exc, exc_info=exc)
            return DispatchResult(DispatchStatus.FAILED, str(exc))

        if job.acknowledgement is not None and self._send_acknowledgement:
            self._spawn(
                asyncio.wait_for(self._sink.send(job.acknowledgement), self._timeout),
                name="notify-acknowledgement",
            )

        return DispatchResult(DispatchStatus.SENT)

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for background sends to settle (used on shutdown and in tests)."""
        if not self._background:
            return
        await asyncio.wait(set(self._background), timeout=timeout)

    def _spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> None:
        self._track(asyncio.create_task(coro, name=name))

    def _track(self, task: asyncio.Task[Any]) -> None:
        self._background.add(task)
        task.add_done_callback(self._on_background_done)

    def _on_background_done(self, task: asyncio.Task[Any]) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background notification %s failed: %r", task.get_name(), exc)
        else:
            logger.debug("Background notification %s completed", task.get_name())


class _DispatcherSingleton:
    _instance: NotificationDispatcher | None = None

    @classmethod
    def get_instance(cls) -> NotificationDispatcher:
        if cls._instance is None:
            from portfolio_contact.services.resend import get_notification_sink

            cls._instance = NotificationDispatcher(
                get_notification_sink(),
                timeout_seconds=settings.notification_timeout_seconds,
                send_acknowledgement=settings.send_acknowledgement,
            )
        return cls._instance


def get_notification_dispatcher() -> NotificationDispatcher:
    """Return the process-wide dispatcher wired to the Resend sink."""
    return _DispatcherSingleton.get_instance()
