"""Contact submission pipeline.

Stages run in a fixed order and the first failure short-circuits the rest::

    origin check -> rate limit -> bounded payload parse -> schema validation
    -> anti-automation -> dispatch -> respond

Each stage raises a :class:`~portfolio_contact.core.errors.ContactError`
subclass on rejection; :meth:`SubmissionController.handle` turns that into
exactly one wire response. The controller keeps no state of its own.
"""

from __future__ import annotations

import json
import logging
import time
import traceback
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from portfolio_contact.core.errors import (
    ClientOriginRejected,
    ClientPayloadEmpty,
    ClientPayloadInvalid,
    ClientPayloadTooLarge,
    ClientRateLimited,
    ClientSuspectedAutomation,
    ClientValidationFailed,
    ContactError,
    DependencyFailed,
    DependencyTimeout,
    DependencyUnavailable,
    InternalError,
    Outcome,
)
from portfolio_contact.core.settings import Settings, settings
from portfolio_contact.services.anti_automation import (
    AntiAutomationGuard,
    get_anti_automation_guard,
)
from portfolio_contact.services.email_templates import build_notification_job
from portfolio_contact.services.notifier import (
    DispatchStatus,
    NotificationDispatcher,
    get_notification_dispatcher,
)
from portfolio_contact.services.rate_limit import (
    RateLimitDecision,
    RateLimitStore,
    get_rate_limit_store,
)
from portfolio_contact.services.validation import (
    CONTACT_SCHEMA,
    Schema,
    sanitize_metadata,
    validate,
)

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Message sent successfully!"


@dataclass(frozen=True)
class SubmissionContext:
    """Request facts collected by the HTTP layer."""

    client_id: str
    body: bytes
    origin: str | None = None
    referer: str | None = None
    user_agent: str | None = None
    # True when the body was cut off at the read limit
    body_truncated: bool = False


@dataclass
class SubmissionResult:
    """Wire response for one submission."""

    outcome: Outcome
    status_code: int
    body: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)


def _iso(epoch_seconds: float) -> str:
    stamp = datetime.fromtimestamp(epoch_seconds, timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


class SubmissionController:
    """Wire the rate limiter, validator, guard and dispatcher together."""

    def __init__(
        self,
        *,
        rate_limiter: RateLimitStore,
        guard: AntiAutomationGuard,
        dispatcher: NotificationDispatcher,
        schema: Schema = CONTACT_SCHEMA,
        config: Settings = settings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.rate_limiter = rate_limiter
        self.guard = guard
        self.dispatcher = dispatcher
        self.schema = schema
        self.config = config
        self._clock = clock

    async def handle(self, context: SubmissionContext) -> SubmissionResult:
        """Run the full pipeline for one submission."""
        decision: RateLimitDecision | None = None
        try:
            self._check_origin(context)
            decision = self._check_rate_limit(context)
            raw = self._parse_payload(context)
            sanitized = self._validate(raw, context)
            self._check_automation(raw, context)
            await self._dispatch(sanitized, raw, context)
        except ContactError as exc:
            return self._reject(exc, decision)
        except Exception as exc:
            logger.error(
                "Contact submission from %s failed unexpectedly: %s",
                context.client_id,
                exc,
                exc_info=True,
            )
            return self._internal_error(exc, decision)

        logger.info("Contact submission from %s accepted", context.client_id)
        return SubmissionResult(
            outcome=Outcome.ACCEPTED,
            status_code=200,
            body={
                "success": True,
                "message": SUCCESS_MESSAGE,
                "timestamp": _iso(self._clock()),
            },
            headers=self._quota_headers(decision),
        )

    # --- Stages ---------------------------------------------------------------

    def _check_origin(self, context: SubmissionContext) -> None:
        verdict = self.guard.check_origin(context.origin, context.referer)
        if not verdict.ok:
            logger.warning("Rejected submission from %s: %s", context.client_id, verdict.reason)
            raise ClientOriginRejected(verdict.reason)

    def _check_rate_limit(self, context: SubmissionContext) -> RateLimitDecision:
        decision = self.rate_limiter.check_and_consume(context.client_id)
        if not decision.allowed:
            retry_after = decision.retry_after(self._clock())
            logger.warning(
                "Rate limited %s (blocked=%s, retry in %ds)",
                context.client_id,
                decision.blocked,
                retry_after,
            )
            raise ClientRateLimited(decision, retry_after)
        return decision

    def _parse_payload(self, context: SubmissionContext) -> dict[str, Any]:
        if context.body_truncated or len(context.body) > self.config.max_body_bytes:
            raise ClientPayloadTooLarge(f"body exceeds {self.config.max_body_bytes} bytes")

        try:
            text = context.body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ClientPayloadInvalid("body is not valid UTF-8") from exc

        if not text.strip():
            raise ClientPayloadEmpty("empty body")

        try:
            data = json.loads(text)
        except (ValueError, RecursionError) as exc:
            raise ClientPayloadInvalid(f"invalid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise ClientPayloadInvalid("JSON body is not an object")
        return data

    def _validate(self, raw: dict[str, Any], context: SubmissionContext) -> dict[str, str]:
        result = validate(raw, self.schema)
        if not result.is_valid:
            logger.info(
                "Validation failed for %s: %s", context.client_id, ", ".join(sorted(result.errors))
            )
            raise ClientValidationFailed(result.errors)
        return result.sanitized

    def _check_automation(self, raw: dict[str, Any], context: SubmissionContext) -> None:
        verdict = self.guard.check(raw, context.origin, context.referer)
        if not verdict.ok:
            logger.warning(
                "Suspected automated submission from %s: %s", context.client_id, verdict.reason
            )
            raise ClientSuspectedAutomation(verdict.reason)

    async def _dispatch(
        self, sanitized: dict[str, str], raw: dict[str, Any], context: SubmissionContext
    ) -> None:
        job = build_notification_job(
            sanitized,
            sanitize_metadata(raw),
            client_ip=context.client_id,
            origin=context.origin,
            user_agent=context.user_agent,
            config=self.config,
        )
        result = await self.dispatcher.dispatch(job)
        if result.status is DispatchStatus.UNAVAILABLE:
            raise DependencyUnavailable(result.reason)
        if result.status is DispatchStatus.TIMED_OUT:
            raise DependencyTimeout(result.reason)
        if result.status is not DispatchStatus.SENT:
            raise DependencyFailed(result.reason)

    # --- Responses ------------------------------------------------------------

    def _quota_headers(self, decision: RateLimitDecision | None) -> dict[str, str]:
        if decision is None:
            return {}
        return {
            "X-RateLimit-Limit": str(decision.limit),
            "X-RateLimit-Remaining": str(decision.remaining),
        }

    def _reject(self, exc: ContactError, decision: RateLimitDecision | None) -> SubmissionResult:
        headers = self._quota_headers(decision)
        if isinstance(exc, ClientRateLimited):
            headers = self._quota_headers(exc.decision)
            headers["Retry-After"] = str(exc.retry_after)
            headers["X-RateLimit-Reset"] = _iso(exc.decision.reset_at)
        elif exc.status_code >= 500:
            logger.error("Submission failed with %s: %s", exc.code, exc)

        return SubmissionResult(
            outcome=exc.outcome,
            status_code=exc.status_code,
            body=exc.to_body(),
            headers=headers,
        )

    def _internal_error(
        self, exc: Exception, decision: RateLimitDecision | None
    ) -> SubmissionResult:
        error = InternalError(str(exc))
        body = error.to_body()
        body["timestamp"] = _iso(self._clock())
        if self.config.is_development:
            body["debug"] = {
                "type": type(exc).__name__,
                "message": str(exc),
                "traceback": traceback.format_exception(type(exc), exc, exc.__traceback__),
            }
        return SubmissionResult(
            outcome=error.outcome,
            status_code=error.status_code,
            body=body,
            headers=self._quota_headers(decision),
        )


def get_submission_controller() -> SubmissionController:
    """Return a controller wired to the process-wide collaborators."""
    return SubmissionController(
        rate_limiter=get_rate_limit_store(),
        guard=get_anti_automation_guard(),
        dispatcher=get_notification_dispatcher(),
    )
