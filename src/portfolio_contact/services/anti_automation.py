"""Heuristic checks against scripted contact form submissions.

The guard is independent of the validation schema. Every heuristic fails
closed: anything missing or unparseable counts as a rejection. Reasons are
returned for server-side logging only and must not reach the submitter.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from portfolio_contact.core.settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuardVerdict:
    """Result of running the anti-automation heuristics."""

    ok: bool
    reason: str | None = None


PASS = GuardVerdict(ok=True)


def parse_client_timestamp(value: Any) -> float | None:
    """Parse a client-observed timestamp into epoch seconds.

    Accepts ISO-8601 strings (a trailing ``Z`` is allowed; naive values are
    taken as UTC) and epoch milliseconds as a number. Returns None for
    anything else.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        return float(value) / 1000.0
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


class AntiAutomationGuard:
    """Honeypot, freshness-window and origin allow-list checks."""

    def __init__(
        self,
        *,
        allowed_origins: Iterable[str],
        honeypot_field: str = "honeypot",
        min_age_seconds: float = 3.0,
        max_age_seconds: float = 600.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if min_age_seconds > max_age_seconds:
            raise ValueError("min_age_seconds must not exceed max_age_seconds")
        self._allowed_origins = tuple(o.rstrip("/") for o in allowed_origins if o)
        self._honeypot_field = honeypot_field
        self._min_age = float(min_age_seconds)
        self._max_age = float(max_age_seconds)
        self._clock = clock

    @property
    def allowed_origins(self) -> tuple[str, ...]:
        return self._allowed_origins

    def is_allowed_origin(self, origin: str | None) -> bool:
        return bool(origin) and origin.rstrip("/") in self._allowed_origins

    def check_origin(self, origin: str | None, referer: str | None) -> GuardVerdict:
        """Check the Origin and Referer headers against the allow-list.

        Requests without either header are tolerated; a header that is
        present but does not match is a hard rejection.
        """
        if origin and not self.is_allowed_origin(origin):
            return GuardVerdict(ok=False, reason=f"origin not allowed: {origin}")
        if referer and not self._referer_allowed(referer):
            return GuardVerdict(ok=False, reason=f"referer not allowed: {referer[:200]}")
        return PASS

    def _referer_allowed(self, referer: str) -> bool:
        # The origin must be followed by a path, query or nothing, so
        # "https://site.com.evil.net" does not pass as "https://site.com".
        for allowed in self._allowed_origins:
            if referer == allowed:
                return True
            if referer.startswith(allowed) and referer[len(allowed)] in "/?#":
                return True
        return False

    def check_honeypot(self, raw: Mapping[str, Any]) -> GuardVerdict:
        value = raw.get(self._honeypot_field)
        if value is None:
            return PASS
        if isinstance(value, str) and not value.strip():
            return PASS
        return GuardVerdict(ok=False, reason="honeypot field filled")

    def check_freshness(self, raw: Mapping[str, Any]) -> GuardVerdict:
        submitted_at = parse_client_timestamp(raw.get("timestamp"))
        if submitted_at is None:
            return GuardVerdict(ok=False, reason="missing or unparseable timestamp")
        age = self._clock() - submitted_at
        if not math.isfinite(age):
            return GuardVerdict(ok=False, reason="non-finite timestamp")
        if age < self._min_age:
            return GuardVerdict(ok=False, reason=f"submitted too fast ({age:.1f}s)")
        if age > self._max_age:
            return GuardVerdict(ok=False, reason=f"form expired ({age:.0f}s old)")
        return PASS

    def check(
        self,
        raw: Mapping[str, Any],
        origin: str | None = None,
        referer: str | None = None,
    ) -> GuardVerdict:
        """Run every heuristic; the first failure wins."""
        for verdict in (
            self.check_honeypot(raw),
            self.check_freshness(raw),
            self.check_origin(origin, referer),
        ):
            if not verdict.ok:
                return verdict
        return PASS


class _GuardSingleton:
    _instance: AntiAutomationGuard | None = None

    @classmethod
    def get_instance(cls) -> AntiAutomationGuard:
        if cls._instance is None:
            cls._instance = AntiAutomationGuard(
                allowed_origins=settings.effective_allowed_origins,
                honeypot_field=settings.honeypot_field,
                min_age_seconds=settings.min_submission_age_seconds,
                max_age_seconds=settings.max_submission_age_seconds,
            )
        return cls._instance


def get_anti_automation_guard() -> AntiAutomationGuard:
    """Return the guard configured from application settings."""
    return _GuardSingleton.get_instance()
