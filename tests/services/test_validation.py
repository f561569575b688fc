import pytest

from portfolio_contact.services.validation import (
    CONTACT_SCHEMA,
    FieldRule,
    sanitize_metadata,
    sanitize_value,
    validate,
)

VALID = {
    "name": "Jane Smith",
    "email": "jane.smith@example.com",
    "subject": "Website redesign",
    "message": "I would like to talk about a new portfolio website.",
}


def test_valid_submission_is_sanitized():
    result = validate(VALID)

    assert result.is_valid
    assert result.errors == {}
    assert result.sanitized["name"] == "Jane Smith"
    assert result.sanitized["email"] == "jane.smith@example.com"
    assert result.sanitized["budget"] == ""


@pytest.mark.parametrize(
    ("field", "value", "expected"),
    [
        ("name", None, "Name is required"),
        ("name", "   ", "Name is required"),
        ("name", 42, "Name is required"),
        ("name", "J", "Name must be at least 2 characters"),
        ("name", "J" * 51, "Name must not exceed 50 characters"),
        ("name", "R2-D2", "Name contains invalid characters"),
        ("name", "Admin Person", "Name contains prohibited content"),
        ("email", "not-an-email", "Invalid email address format"),
        ("email", "someone@mailinator.com", "Email contains prohibited content"),
        ("subject", "Hi", "Subject must be at least 5 characters"),
        ("subject", "Win at the casino tonight", "Subject contains prohibited content"),
        ("message", "Too short", "Message must be at least 10 characters"),
        ("message", "x" * 2001, "Message must not exceed 2000 characters"),
        ("message", "See my work at https://spam.example", "Message contains prohibited content"),
        ("message", "Please CLICK HERE for a great deal", "Message contains prohibited content"),
        ("budget", 5000, "Budget must be text"),
        ("timeline", "t" * 51, "Timeline must not exceed 50 characters"),
    ],
)
def test_field_rules(field, value, expected):
    result = validate({**VALID, field: value})

    assert not result.is_valid
    assert result.errors == {field: expected}
    assert result.sanitized == {}


def test_length_boundaries():
    assert validate({**VALID, "name": "Jo"}).is_valid
    assert validate({**VALID, "name": "J" * 50}).is_valid
    assert validate({**VALID, "message": "x" * 2000}).is_valid


def test_all_field_errors_are_collected():
    result = validate({"name": "J", "email": "nope", "subject": "", "message": "short"})

    assert set(result.errors) == {"name", "email", "subject", "message"}
    assert result.errors["subject"] == "Subject is required"


def test_script_block_is_removed_from_message():
    result = validate({**VALID, "message": "<script>alert('x')</script> I would like a website built"})

    assert result.is_valid
    assert result.sanitized["message"] == "I would like a website built"


def test_apostrophe_names_are_escaped_once():
    result = validate({**VALID, "name": "Sean O'Brien"})

    assert result.is_valid
    assert result.sanitized["name"] == "Sean O&#x27;Brien"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("<script>alert(1)</script>Hello", "Hello"),
        ("<SCRIPT src=x>bad()</SCRIPT>Hello", "Hello"),
        ("<b>bold</b>", "&lt;b&gt;bold&lt;/b&gt;"),
        ("javascript:alert(1)", "alert(1)"),
        ("a onclick=steal()", "a steal()"),
        ("Tom & Jerry", "Tom &amp; Jerry"),
        ("a\x00b   c\n\nd", "ab c d"),
    ],
)
def test_sanitize_value(raw, expected):
    assert sanitize_value(raw) == expected


def test_custom_schema_uses_label():
    schema = {"company": FieldRule(required=True, label="Company name")}

    result = validate({}, schema)

    assert result.errors == {"company": "Company name is required"}


def test_contact_schema_covers_form_fields():
    assert set(CONTACT_SCHEMA) == {"name", "email", "subject", "message", "budget", "timeline"}


def test_sanitize_metadata_truncates_and_drops_non_text():
    metadata = sanitize_metadata({"userAgent": "A" * 300, "timeZone": 5, "other": "ignored"})

    assert metadata == {"userAgent": "A" * 200}
