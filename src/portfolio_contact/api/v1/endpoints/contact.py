"""Contact form endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from portfolio_contact.core.settings import settings
from portfolio_contact.schemas.contact import ContactAccepted, ContactRejected, ContactStatus
from portfolio_contact.services.submission import (
    SubmissionContext,
    SubmissionController,
    get_submission_controller,
)
from portfolio_contact.utils.client_ip import get_client_ip
from portfolio_contact.utils.request_body import read_bounded_body

PREFLIGHT_MAX_AGE_SECONDS = 86400

router = APIRouter(prefix="/contact", tags=["contact"])

ControllerDep = Annotated[SubmissionController, Depends(get_submission_controller)]


def _cors_origin(origin: str | None) -> str:
    if origin and origin in settings.effective_allowed_origins:
        return origin
    return settings.primary_origin


def _describe_window(seconds: int) -> str:
    if seconds == 3600:
        return "hour"
    if seconds % 3600 == 0:
        return f"{seconds // 3600} hours"
    if seconds % 60 == 0:
        return f"{seconds // 60} minutes"
    return f"{seconds} seconds"


@router.post(
    "",
    response_model=ContactAccepted,
    responses={
        400: {"model": ContactRejected},
        403: {"model": ContactRejected},
        413: {"model": ContactRejected},
        429: {"model": ContactRejected},
        500: {"model": ContactRejected},
        503: {"model": ContactRejected},
    },
)
async def submit_contact(request: Request, controller: ControllerDep) -> JSONResponse:
    """Accept a contact form submission.

    The body is read up to the configured ceiling before the pipeline runs;
    the controller decides the single response for the request.

    Args:
        request: Incoming HTTP request
        controller: Submission pipeline

    Returns:
        JSON response with the pipeline outcome and rate-limit headers
    """
    body, truncated = await read_bounded_body(request, settings.max_body_bytes)
    context = SubmissionContext(
        client_id=get_client_ip(request, trust_proxy_headers=settings.trust_proxy_headers),
        body=body,
        origin=request.headers.get("origin"),
        referer=request.headers.get("referer"),
        user_agent=request.headers.get("user-agent"),
        body_truncated=truncated,
    )
    result = await controller.handle(context)
    return JSONResponse(
        status_code=result.status_code,
        content=result.body,
        headers=result.headers,
    )


@router.options("")
async def contact_preflight(request: Request) -> Response:
    """Answer CORS preflight for the contact endpoint."""
    return Response(
        status_code=200,
        headers={
            "Access-Control-Allow-Origin": _cors_origin(request.headers.get("origin")),
            "Access-Control-Allow-Methods": "POST, OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type",
            "Access-Control-Max-Age": str(PREFLIGHT_MAX_AGE_SECONDS),
        },
    )


@router.get("", response_model=ContactStatus)
async def contact_status() -> ContactStatus:
    """Describe the contact endpoint. Does not touch the rate limiter."""
    return ContactStatus(
        status="ok",
        message="Secure contact API endpoint is operational",
        rateLimit=(
            f"Maximum {settings.rate_limit_max_requests} requests per "
            f"{_describe_window(settings.rate_limit_window_seconds)} per IP"
        ),
        version=settings.app_version,
        security="Enhanced validation, rate limiting, and origin checking enabled",
    )
