# tests/conftest.py
from __future__ import annotations

import asyncio
import os
from collections.abc import Callable, Iterator
from datetime import datetime, timezone
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

os.environ.setdefault("ENVIRONMENT", "test")

from portfolio_contact.core.settings import Settings
from portfolio_contact.main import app as fastapi_app
from portfolio_contact.schemas.notification import OutboundEmail
from portfolio_contact.services.anti_automation import AntiAutomationGuard
from portfolio_contact.services.notifier import NotificationDispatcher, NotificationError
from portfolio_contact.services.rate_limit import InMemoryRateLimitStore
from portfolio_contact.services.submission import (
    SubmissionController,
    get_submission_controller,
)

ALLOWED_ORIGIN = "https://portfolio.example.com"
START_TIME = 1_700_000_000.0


class FakeClock:
    """Manually advanced replacement for ``time.time``."""

    def __init__(self, start: float = START_TIME) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSink:
    """In-memory notification sink recording every delivered message."""

    def __init__(self) -> None:
        self.configured = True
        self.delay = 0.0
        self.fail_with: Exception | None = None
        self.fail_acknowledgement = False
        self.attempts: list[OutboundEmail] = []
        self.sent: list[OutboundEmail] = []

    async def send(self, email: OutboundEmail) -> str | None:
        self.attempts.append(email)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        if self.fail_acknowledgement and not email.subject.startswith("Portfolio Contact:"):
            raise NotificationError("acknowledgement rejected")
        self.sent.append(email)
        return f"msg-{len(self.sent)}"


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def sink() -> FakeSink:
    return FakeSink()


@pytest.fixture()
def test_settings() -> Settings:
    """Settings isolated from the process environment's notification config."""
    return Settings(environment="test", resend_api_key="re_test_key")


@pytest.fixture()
def rate_limiter(clock: FakeClock) -> InMemoryRateLimitStore:
    return InMemoryRateLimitStore(limit=3, window_seconds=3600, block_seconds=7200, clock=clock)


@pytest.fixture()
def guard(clock: FakeClock) -> AntiAutomationGuard:
    return AntiAutomationGuard(
        allowed_origins=[ALLOWED_ORIGIN],
        min_age_seconds=3,
        max_age_seconds=600,
        clock=clock,
    )


@pytest.fixture()
def dispatcher(sink: FakeSink) -> NotificationDispatcher:
    return NotificationDispatcher(sink, timeout_seconds=0.5)


@pytest.fixture()
def controller(
    rate_limiter: InMemoryRateLimitStore,
    guard: AntiAutomationGuard,
    dispatcher: NotificationDispatcher,
    test_settings: Settings,
    clock: FakeClock,
) -> SubmissionController:
    return SubmissionController(
        rate_limiter=rate_limiter,
        guard=guard,
        dispatcher=dispatcher,
        config=test_settings,
        clock=clock,
    )


@pytest.fixture()
def make_payload(clock: FakeClock) -> Callable[..., dict[str, Any]]:
    """Build a valid submission that was opened 30 seconds before ``clock``."""

    def _make(**overrides: Any) -> dict[str, Any]:
        opened_at = datetime.fromtimestamp(clock.now - 30, timezone.utc)
        payload: dict[str, Any] = {
            "name": "Jane Smith",
            "email": "jane.smith@example.com",
            "subject": "Website redesign",
            "message": "I would like to talk about a new portfolio website for my studio.",
            "budget": "$5k - $10k",
            "timeline": "2-3 months",
            "timestamp": opened_at.isoformat().replace("+00:00", "Z"),
            "honeypot": "",
            "userAgent": "Mozilla/5.0 (X11; Linux x86_64)",
            "timeZone": "Europe/Berlin",
        }
        payload.update(overrides)
        return payload

    return _make


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(app: FastAPI, controller: SubmissionController) -> Iterator[TestClient]:
    app.dependency_overrides[get_submission_controller] = lambda: controller
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_submission_controller, None)
