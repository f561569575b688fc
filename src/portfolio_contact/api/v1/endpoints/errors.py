"""Client-side error report endpoint."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from portfolio_contact.core.settings import settings
from portfolio_contact.schemas.contact import ErrorReportAck
from portfolio_contact.utils.client_ip import get_client_ip
from portfolio_contact.utils.request_body import read_bounded_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/errors", tags=["errors"])


@router.post("", response_model=ErrorReportAck)
async def report_client_error(request: Request) -> ErrorReportAck | JSONResponse:
    """Record an error reported by the browser.

    Reports are only logged in production; other environments acknowledge
    and drop them.
    """
    if settings.environment != "production":
        return ErrorReportAck(message="Error reporting disabled in development")

    body, truncated = await read_bounded_body(request, settings.max_body_bytes)
    if truncated:
        return JSONResponse(
            status_code=413,
            content={"error": "Request too large", "code": "PAYLOAD_TOO_LARGE"},
        )

    try:
        report = json.loads(body)
        if not isinstance(report, dict):
            raise ValueError("error report is not a JSON object")
    except (ValueError, RecursionError) as e:
        logger.error("Failed to log client error: %s", e)
        return JSONResponse(status_code=500, content={"error": "Failed to log error"})

    logger.error(
        "Client error: %s",
        {
            **report,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "ip": get_client_ip(request, trust_proxy_headers=settings.trust_proxy_headers),
        },
    )
    return ErrorReportAck(message="Error logged")
