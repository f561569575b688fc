from datetime import datetime, timezone

from portfolio_contact.core.settings import Settings
from portfolio_contact.services.email_templates import build_notification_job, render_owner_html

SUBMISSION = {
    "name": "Jane Smith",
    "email": "jane.smith@example.com",
    "subject": "Website redesign",
    "message": "I would like a new site.",
    "budget": "$5k",
    "timeline": "",
}
NOW = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


def test_primary_message_targets_owner(test_settings):
    job = build_notification_job(
        SUBMISSION,
        {"userAgent": "Mozilla/5.0"},
        client_ip="203.0.113.7",
        origin="https://portfolio.example.com",
        user_agent="Mozilla/5.0",
        config=test_settings,
        now=NOW,
    )

    primary = job.primary
    assert primary.to == [test_settings.notification_to_email]
    assert primary.sender == test_settings.notification_from_email
    assert primary.subject == "Portfolio Contact: Website redesign"
    assert primary.reply_to == "jane.smith@example.com"
    assert primary.headers == {
        "X-Contact-IP": "203.0.113.7",
        "X-Contact-Timestamp": "2024-05-01T12:30:00+00:00",
        "X-Contact-User-Agent": "Mozilla/5.0",
        "X-Contact-Origin": "https://portfolio.example.com",
    }
    assert "Budget:" in primary.html
    assert "Timeline:" not in primary.html
    assert "2024-05-01 12:30:00 UTC" in primary.html


def test_acknowledgement_goes_back_to_sender(test_settings):
    job = build_notification_job(
        SUBMISSION,
        {},
        client_ip="203.0.113.7",
        origin=None,
        user_agent=None,
        config=test_settings,
        now=NOW,
    )

    assert job.primary.headers["X-Contact-Origin"] == "Unknown"
    assert job.primary.headers["X-Contact-User-Agent"] == "Unknown"
    assert job.acknowledgement is not None
    assert job.acknowledgement.to == ["jane.smith@example.com"]
    assert job.acknowledgement.subject == f"Thank you for your message - {test_settings.owner_name}"
    assert "Hi Jane Smith," in job.acknowledgement.html


def test_acknowledgement_disabled():
    config = Settings(environment="test", send_acknowledgement=False)

    job = build_notification_job(
        SUBMISSION, {}, client_ip="203.0.113.7", origin=None, user_agent=None, config=config
    )

    assert job.acknowledgement is None


def test_unvalidated_request_metadata_is_escaped():
    body = render_owner_html(
        SUBMISSION, {}, client_ip="<img src=x>", received_at="now"
    )

    assert "<img src=x>" not in body
    assert "&lt;img src=x&gt;" in body
    assert "No user agent" in body


def test_unknown_display_timezone_falls_back_to_utc(test_settings):
    config = test_settings.model_copy(update={"display_timezone": "Mars/Olympus_Mons"})

    job = build_notification_job(
        SUBMISSION, {}, client_ip="203.0.113.7", origin=None, user_agent=None, config=config, now=NOW
    )

    assert "2024-05-01 12:30:00 UTC" in job.primary.html
