"""Schemas for outbound notification messages."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class OutboundEmail(BaseModel):
    """A single message handed to the notification sink.

    Serialises (``by_alias=True``) to the JSON shape of the Resend
    ``POST /emails`` endpoint.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sender: str = Field(..., serialization_alias="from")
    to: list[str]
    subject: str
    html: str
    reply_to: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)


class NotificationJob(BaseModel):
    """Primary owner-facing message plus an optional sender receipt."""

    model_config = ConfigDict(frozen=True)

    primary: OutboundEmail
    acknowledgement: OutboundEmail | None = None
