"""Main entry point for the portfolio contact service."""

from __future__ import annotations

import logging
import traceback
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portfolio_contact.api.v1 import contact_router, errors_router
from portfolio_contact.core.errors import InternalError
from portfolio_contact.core.settings import settings
from portfolio_contact.services.notifier import get_notification_dispatcher
from portfolio_contact.services.rate_limit import get_rate_limit_store
from portfolio_contact.services.resend import get_notification_sink
from portfolio_contact.services.sweeper import RateLimitSweepWorker

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

SHUTDOWN_DRAIN_SECONDS = 5.0

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Contact form intake with rate limiting, validation and spam screening",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.effective_allowed_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
    max_age=86400,
)

# Include API routers
app.include_router(contact_router, prefix="/api")
app.include_router(errors_router, prefix="/api")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    body = InternalError().to_body()
    body["timestamp"] = datetime.now(timezone.utc).isoformat()
    if settings.is_development:
        body["debug"] = {
            "type": type(exc).__name__,
            "message": str(exc),
            "traceback": traceback.format_exception(type(exc), exc, exc.__traceback__),
        }
    return JSONResponse(status_code=500, content=body)


@app.on_event("startup")
async def on_startup() -> None:
    worker = RateLimitSweepWorker(
        get_rate_limit_store(),
        settings.rate_limit_sweep_interval_seconds,
    )
    await worker.start()
    app.state.sweep_worker = worker
    if not settings.notifications_configured:
        logger.warning("RESEND_API_KEY is not set; contact submissions will be refused")


@app.on_event("shutdown")
async def on_shutdown() -> None:
    worker: RateLimitSweepWorker | None = getattr(app.state, "sweep_worker", None)
    if worker:
        await worker.stop()
    await get_notification_dispatcher().drain(timeout=SHUTDOWN_DRAIN_SECONDS)
    await get_notification_sink().close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the service."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "contact": "/api/contact",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("portfolio_contact.main:app", host="0.0.0.0", port=8000, reload=settings.is_development)
