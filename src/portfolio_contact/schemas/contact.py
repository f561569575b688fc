"""Contact endpoint response schemas."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ContactAccepted(BaseModel):
    """Body returned when a submission has been delivered."""

    success: bool = True
    message: str
    timestamp: str = Field(..., description="ISO-8601 time the submission was accepted")


class ContactRejected(BaseModel):
    """Body returned for every rejected submission."""

    error: str
    code: str
    details: dict[str, str] | None = Field(
        None, description="Per-field validation messages (VALIDATION_ERROR only)"
    )
    retryAfter: int | None = Field(None, description="Seconds until a retry may succeed")
    blocked: bool | None = None
    timestamp: str | None = None
    debug: dict[str, Any] | None = Field(None, description="Only present in development mode")


class ContactStatus(BaseModel):
    """Static metadata served by ``GET /api/contact``."""

    status: str
    message: str
    rateLimit: str
    version: str
    security: str


class ErrorReportAck(BaseModel):
    message: str
