import json

import httpx
import pytest

from portfolio_contact.schemas.notification import OutboundEmail
from portfolio_contact.services.notifier import NotificationDisabledError, NotificationError
from portfolio_contact.services.resend import ResendNotificationSink

EMAIL = OutboundEmail(
    sender="noreply@portfolio.example.com",
    to=["owner@portfolio.example.com"],
    subject="Portfolio Contact: Website redesign",
    html="<p>hello</p>",
    reply_to="jane.smith@example.com",
    headers={"X-Contact-IP": "203.0.113.7"},
)


@pytest.mark.asyncio
async def test_send_posts_resend_payload():
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"id": "email_123"})

    sink = ResendNotificationSink(
        "re_key", base_url="https://resend.test/", transport=httpx.MockTransport(handler)
    )
    try:
        message_id = await sink.send(EMAIL)
    finally:
        await sink.close()

    assert message_id == "email_123"
    request = captured[0]
    assert request.method == "POST"
    assert str(request.url) == "https://resend.test/emails"
    assert request.headers["Authorization"] == "Bearer re_key"
    body = json.loads(request.content)
    assert body["from"] == "noreply@portfolio.example.com"
    assert body["to"] == ["owner@portfolio.example.com"]
    assert body["reply_to"] == "jane.smith@example.com"
    assert body["headers"] == {"X-Contact-IP": "203.0.113.7"}
    assert "sender" not in body


@pytest.mark.asyncio
async def test_acknowledgement_without_reply_to_omits_field():
    captured: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(json.loads(request.content))
        return httpx.Response(200, json={"id": "email_456"})

    sink = ResendNotificationSink("re_key", transport=httpx.MockTransport(handler))
    await sink.send(EMAIL.model_copy(update={"reply_to": None}))
    await sink.close()

    assert "reply_to" not in captured[0]


@pytest.mark.asyncio
async def test_error_status_raises_notification_error():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(422, json={"message": "invalid from address"})
    )
    sink = ResendNotificationSink("re_key", transport=transport)

    with pytest.raises(NotificationError, match="422"):
        await sink.send(EMAIL)
    await sink.close()


@pytest.mark.asyncio
async def test_transport_error_raises_notification_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    sink = ResendNotificationSink("re_key", transport=httpx.MockTransport(handler))

    with pytest.raises(NotificationError, match="connection refused"):
        await sink.send(EMAIL)
    await sink.close()


@pytest.mark.asyncio
async def test_non_json_success_body_yields_no_id():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="OK"))
    sink = ResendNotificationSink("re_key", transport=transport)

    assert await sink.send(EMAIL) is None
    await sink.close()


@pytest.mark.asyncio
async def test_missing_api_key_disables_sink():
    sink = ResendNotificationSink(None)

    assert sink.configured is False
    with pytest.raises(NotificationDisabledError):
        await sink.send(EMAIL)
