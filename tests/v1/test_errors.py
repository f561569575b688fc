from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from portfolio_contact.core.settings import settings


@pytest.fixture()
def production(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "environment", "production")


def test_reports_are_dropped_outside_production(client: TestClient) -> None:
    r = client.post("/api/errors", json={"message": "TypeError: x is undefined"})

    assert r.status_code == 200
    assert r.json() == {"message": "Error reporting disabled in development"}


def test_report_is_logged_in_production(
    client: TestClient, production: None, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.ERROR, logger="portfolio_contact.api.v1.endpoints.errors"):
        r = client.post(
            "/api/errors",
            json={"message": "TypeError: x is undefined", "url": "/"},
            headers={"X-Forwarded-For": "203.0.113.9"},
        )

    assert r.status_code == 200
    assert r.json() == {"message": "Error logged"}
    assert "TypeError: x is undefined" in caplog.text
    assert "203.0.113.9" in caplog.text


def test_malformed_report_fails(client: TestClient, production: None) -> None:
    r = client.post(
        "/api/errors",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )

    assert r.status_code == 500
    assert r.json() == {"error": "Failed to log error"}


def test_oversized_report_is_rejected(client: TestClient, production: None) -> None:
    r = client.post("/api/errors", json={"stack": "x" * 20_000})

    assert r.status_code == 413


def test_deeply_nested_report_fails_cleanly(client: TestClient, production: None) -> None:
    r = client.post(
        "/api/errors",
        content=b"[" * 4000 + b"]" * 4000,
        headers={"Content-Type": "application/json"},
    )

    assert r.status_code == 500
    assert r.json() == {"error": "Failed to log error"}
