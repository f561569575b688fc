"""Notification sink backed by the Resend HTTP API."""

from __future__ import annotations

import asyncio
import logging

import httpx

from portfolio_contact.core.settings import settings
from portfolio_contact.schemas.notification import OutboundEmail
from portfolio_contact.services.notifier import NotificationDisabledError, NotificationError

logger = logging.getLogger(__name__)

HTTP_MULTIPLE_CHOICES = 300


class ResendNotificationSink:
    """Send e-mails through ``POST {base_url}/emails``.

    The underlying ``httpx.AsyncClient`` is created lazily on first send and
    reused until :meth:`close` is called.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://api.resend.com",
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def _ensure_client(self) -> httpx.AsyncClient:
        if not self.configured:
            raise NotificationDisabledError("Resend API key not configured")

        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self._base_url,
                    timeout=httpx.Timeout(self._timeout_seconds),
                    headers={"Authorization": f"Bearer {self._api_key}"},
                    transport=self._transport,
                )
        return self._client

    async def send(self, email: OutboundEmail) -> str | None:
        """Deliver ``email`` and return the provider message id, if any."""
        client = await self._ensure_client()
        payload = email.model_dump(by_alias=True, exclude_none=True)

        try:
            response = await client.post("/emails", json=payload)
        except httpx.HTTPError as exc:
            raise NotificationError(f"Resend request failed: {exc}") from exc

        if response.status_code >= HTTP_MULTIPLE_CHOICES:
            raise NotificationError(
                f"Resend responded with {response.status_code}: {response.text[:200]}"
            )

        try:
            message_id = response.json().get("id")
        except (ValueError, AttributeError):
            message_id = None
        logger.info("Notification %r accepted by Resend (id=%s)", email.subject, message_id)
        return message_id

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


class _ResendSinkSingleton:
    _instance: ResendNotificationSink | None = None

    @classmethod
    def get_instance(cls) -> ResendNotificationSink:
        if cls._instance is None:
            cls._instance = ResendNotificationSink(
                settings.resend_api_key,
                base_url=settings.resend_base_url,
                timeout_seconds=settings.notification_timeout_seconds,
            )
        return cls._instance


def get_notification_sink() -> ResendNotificationSink:
    """Return the process-wide Resend sink."""
    return _ResendSinkSingleton.get_instance()
