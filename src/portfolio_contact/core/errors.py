"""Error taxonomy for the contact submission pipeline.

Every pipeline stage signals rejection by raising one of these exceptions.
Each class knows the terminal outcome it represents, the HTTP status and
machine-readable code it maps to, and the public message that may be shown
to the submitter. Internal details travel in the exception message and are
only logged.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from portfolio_contact.services.rate_limit import RateLimitDecision


class Outcome(str, Enum):
    """Terminal outcomes of a contact submission."""

    ACCEPTED = "accepted"
    REJECTED_ORIGIN = "rejected_origin"
    RATE_LIMITED = "rate_limited"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    MALFORMED_PAYLOAD = "malformed_payload"
    VALIDATION_FAILED = "validation_failed"
    SPAM_SUSPECTED = "spam_suspected"
    DISPATCH_FAILED = "dispatch_failed"
    SERVICE_UNAVAILABLE = "service_unavailable"
    INTERNAL_ERROR = "internal_error"


class ContactError(Exception):
    """Base exception for every rejected contact submission."""

    outcome: Outcome = Outcome.INTERNAL_ERROR
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    public_message: str = "An unexpected error occurred. Please try again later."

    def __init__(self, detail: str | None = None, *, public_message: str | None = None) -> None:
        super().__init__(detail or self.public_message)
        if public_message is not None:
            self.public_message = public_message

    def to_body(self) -> dict[str, Any]:
        """Return the JSON body sent to the submitter."""
        return {"error": self.public_message, "code": self.code}


class ClientOriginRejected(ContactError):
    outcome = Outcome.REJECTED_ORIGIN
    status_code = 403
    code = "INVALID_ORIGIN"
    public_message = "Invalid request origin"


class ClientRateLimited(ContactError):
    """Raised when the client exhausted its request budget."""

    outcome = Outcome.RATE_LIMITED
    status_code = 429
    code = "RATE_LIMITED"
    public_message = "Too many requests. Please try again later."

    def __init__(self, decision: RateLimitDecision, retry_after: int) -> None:
        self.decision = decision
        self.retry_after = retry_after
        message = (
            "IP temporarily blocked due to excessive requests"
            if decision.blocked
            else self.public_message
        )
        super().__init__(f"rate limited (blocked={decision.blocked})", public_message=message)

    def to_body(self) -> dict[str, Any]:
        body = super().to_body()
        body["retryAfter"] = self.retry_after
        body["blocked"] = self.decision.blocked
        return body


class ClientPayloadInvalid(ContactError):
    """Raised for bodies that cannot be turned into a submission mapping."""

    outcome = Outcome.MALFORMED_PAYLOAD
    status_code = 400
    code = "INVALID_JSON"
    public_message = "Invalid JSON format"


class ClientPayloadEmpty(ClientPayloadInvalid):
    code = "EMPTY_BODY"
    public_message = "Request body is required"


class ClientPayloadTooLarge(ClientPayloadInvalid):
    outcome = Outcome.PAYLOAD_TOO_LARGE
    status_code = 413
    code = "PAYLOAD_TOO_LARGE"
    public_message = "Request too large"


class ClientValidationFailed(ContactError):
    """Raised with field-addressable errors the submitter can act on."""

    outcome = Outcome.VALIDATION_FAILED
    status_code = 400
    code = "VALIDATION_ERROR"
    public_message = "Validation failed"

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__(f"validation failed for {sorted(self.errors)}")

    def to_body(self) -> dict[str, Any]:
        body = super().to_body()
        body["details"] = self.errors
        return body


class ClientSuspectedAutomation(ContactError):
    """Raised when an anti-automation heuristic trips.

    The reason is kept for logging only; the response never says which
    heuristic fired.
    """

    outcome = Outcome.SPAM_SUSPECTED
    status_code = 400
    code = "INVALID_SUBMISSION"
    public_message = "Invalid submission"


class DependencyUnavailable(ContactError):
    outcome = Outcome.SERVICE_UNAVAILABLE
    status_code = 503
    code = "SERVICE_UNAVAILABLE"
    public_message = "Email service temporarily unavailable"


class DependencyFailed(ContactError):
    outcome = Outcome.DISPATCH_FAILED
    status_code = 503
    code = "DISPATCH_FAILED"
    public_message = "Failed to send message. Please try again later."


class DependencyTimeout(DependencyFailed):
    pass


class InternalError(ContactError):
    pass
