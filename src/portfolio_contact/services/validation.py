"""Schema-driven validation and sanitization of contact form input.

Rules live in a declarative table (:data:`CONTACT_SCHEMA`) of immutable
:class:`FieldRule` objects. :func:`validate` walks every field in the table,
collects one human-readable error per failing field, and only sanitizes a
value once it has passed every structural check, so rejected input is
reported but never transformed and returned.
"""

from __future__ import annotations

import html
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

FieldType = Literal["text", "email"]

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_SCRIPT_BLOCK = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_JAVASCRIPT_URI = re.compile(r"javascript\s*:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"\bon\w+\s*=", re.IGNORECASE)
_WHITESPACE_RUN = re.compile(r"\s+")

NAME_PATTERN = re.compile(r"^[a-zA-ZÀ-ÿ\s'-]+$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class FieldRule:
    """Constraints for a single input field."""

    required: bool = False
    type: FieldType = "text"
    min_length: int | None = None
    max_length: int | None = None
    pattern: re.Pattern[str] | None = None
    blacklist: frozenset[str] = field(default_factory=frozenset)
    label: str | None = None


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one submission against a schema."""

    is_valid: bool
    errors: dict[str, str]
    sanitized: dict[str, str]


Schema = Mapping[str, FieldRule]

CONTACT_SCHEMA: Schema = {
    "name": FieldRule(
        required=True,
        min_length=2,
        max_length=50,
        pattern=NAME_PATTERN,
        blacklist=frozenset({"admin", "test", "spam", "bot"}),
    ),
    "email": FieldRule(
        required=True,
        type="email",
        max_length=254,
        pattern=EMAIL_PATTERN,
        blacklist=frozenset({"10minutemail", "tempmail", "guerrillamail", "mailinator"}),
    ),
    "subject": FieldRule(
        required=True,
        min_length=5,
        max_length=100,
        blacklist=frozenset({"viagra", "casino", "loan", "earn money", "click here"}),
    ),
    "message": FieldRule(
        required=True,
        min_length=10,
        max_length=2000,
        blacklist=frozenset({"http://", "https://", "www.", "click here", "visit now"}),
    ),
    "budget": FieldRule(max_length=50),
    "timeline": FieldRule(max_length=50),
}

# Out-of-band metadata shown in the owner notification: field -> max length
METADATA_FIELDS: Mapping[str, int] = {"userAgent": 200, "timeZone": 64}


def sanitize_value(value: str) -> str:
    """Neutralise markup and control characters in an already-validated value."""
    cleaned = _CONTROL_CHARS.sub("", value.strip())
    cleaned = _SCRIPT_BLOCK.sub("", cleaned)
    cleaned = _JAVASCRIPT_URI.sub("", cleaned)
    cleaned = _EVENT_HANDLER.sub("", cleaned)
    cleaned = html.escape(cleaned, quote=True)
    return _WHITESPACE_RUN.sub(" ", cleaned).strip()


def _label(name: str, rule: FieldRule) -> str:
    return rule.label or name[:1].upper() + name[1:]


def _check_field(name: str, value: Any, rule: FieldRule) -> tuple[str | None, str | None]:
    """Return ``(error, sanitized)`` for one field; exactly one is not None."""
    label = _label(name, rule)
    blank = value is None or (isinstance(value, str) and not value.strip())

    if rule.required and (blank or not isinstance(value, str)):
        return f"{label} is required", None
    if blank:
        return None, ""
    if not isinstance(value, str):
        return f"{label} must be text", None

    trimmed = value.strip()
    if rule.min_length is not None and len(trimmed) < rule.min_length:
        return f"{label} must be at least {rule.min_length} characters", None
    if rule.max_length is not None and len(trimmed) > rule.max_length:
        return f"{label} must not exceed {rule.max_length} characters", None

    if rule.pattern is not None and not rule.pattern.match(trimmed):
        if rule.type == "email":
            return "Invalid email address format", None
        return f"{label} contains invalid characters", None

    lowered = trimmed.lower()
    if any(term.lower() in lowered for term in rule.blacklist):
        return f"{label} contains prohibited content", None

    return None, sanitize_value(trimmed)


def validate(raw: Mapping[str, Any], schema: Schema = CONTACT_SCHEMA) -> ValidationResult:
    """Validate ``raw`` against ``schema``.

    Every field is checked independently so the caller gets all field errors
    at once. Sanitized output is only returned when the whole submission is
    valid.
    """
    errors: dict[str, str] = {}
    sanitized: dict[str, str] = {}

    for name, rule in schema.items():
        error, clean = _check_field(name, raw.get(name), rule)
        if error is not None:
            errors[name] = error
        elif clean is not None:
            sanitized[name] = clean

    if errors:
        return ValidationResult(is_valid=False, errors=errors, sanitized={})
    return ValidationResult(is_valid=True, errors={}, sanitized=sanitized)


def sanitize_metadata(raw: Mapping[str, Any]) -> dict[str, str]:
    """Sanitize and truncate the optional client metadata fields.

    Metadata is informational, so bad values are dropped instead of failing
    the submission.
    """
    metadata: dict[str, str] = {}
    for name, max_length in METADATA_FIELDS.items():
        value = raw.get(name)
        if not isinstance(value, str) or not value.strip():
            continue
        metadata[name] = sanitize_value(value.strip()[:max_length])
    return metadata
