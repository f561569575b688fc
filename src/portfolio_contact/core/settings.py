"""Application settings and configuration.

This module defines all configuration options for the portfolio contact
service. Settings are loaded from environment variables with sensible
defaults, so the service starts without any configuration; only the
notification API key is needed before messages can actually be delivered.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    List values (origins) are read from the environment as JSON arrays.
    """

    # Application metadata
    app_name: str = Field(default="Portfolio Contact", alias="APP_NAME")
    app_version: str = Field(default="3.0.0", alias="APP_VERSION")
    environment: Literal["production", "development", "test"] = Field(
        default="production",
        alias="ENVIRONMENT",
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Origin allow-list (exact origins, no trailing slash)
    allowed_origins: list[str] = Field(
        default=["https://portfolio.example.com", "https://www.portfolio.example.com"],
        alias="ALLOWED_ORIGINS",
    )
    development_origins: list[str] = Field(
        default=["http://localhost:3000"],
        alias="DEVELOPMENT_ORIGINS",
    )

    # Fixed-window rate limiting per client IP
    rate_limit_max_requests: int = Field(default=3, alias="RATE_LIMIT_MAX_REQUESTS", ge=1)
    rate_limit_window_seconds: int = Field(
        default=60 * 60, alias="RATE_LIMIT_WINDOW_SECONDS", ge=1
    )
    # 0 disables the escalating block
    rate_limit_block_seconds: int = Field(
        default=2 * 60 * 60, alias="RATE_LIMIT_BLOCK_SECONDS", ge=0
    )
    rate_limit_sweep_interval_seconds: float = Field(
        default=5 * 60, alias="RATE_LIMIT_SWEEP_INTERVAL_SECONDS", gt=0
    )

    # Disable unless a proxy in front of the service overwrites X-Forwarded-For
    trust_proxy_headers: bool = Field(default=True, alias="TRUST_PROXY_HEADERS")

    # Request payload bounds
    max_body_bytes: int = Field(default=10_000, alias="MAX_BODY_BYTES", ge=1)

    # Anti-automation heuristics
    min_submission_age_seconds: float = Field(
        default=3.0, alias="MIN_SUBMISSION_AGE_SECONDS", ge=0
    )
    max_submission_age_seconds: float = Field(
        default=10 * 60, alias="MAX_SUBMISSION_AGE_SECONDS", gt=0
    )
    honeypot_field: str = Field(default="honeypot", alias="HONEYPOT_FIELD")

    # Outbound notifications (Resend HTTP API)
    resend_api_key: str | None = Field(default=None, alias="RESEND_API_KEY")
    resend_base_url: str = Field(default="https://api.resend.com", alias="RESEND_BASE_URL")
    notification_from_email: str = Field(
        default="noreply@portfolio.example.com", alias="FROM_EMAIL"
    )
    notification_to_email: str = Field(default="owner@portfolio.example.com", alias="TO_EMAIL")
    notification_timeout_seconds: float = Field(
        default=15.0, alias="NOTIFICATION_TIMEOUT_SECONDS", gt=0
    )
    send_acknowledgement: bool = Field(default=True, alias="SEND_ACKNOWLEDGEMENT")
    owner_name: str = Field(default="Portfolio Owner", alias="OWNER_NAME")
    owner_title: str = Field(default="Frontend Developer", alias="OWNER_TITLE")
    site_url: str = Field(default="https://portfolio.example.com", alias="SITE_URL")
    display_timezone: str = Field(default="UTC", alias="DISPLAY_TIMEZONE")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def is_development(self) -> bool:
        """Return True when running in development mode.

        Development mode widens the origin allow-list and lets error
        responses carry diagnostic details.
        """
        return self.environment == "development"

    @property
    def effective_allowed_origins(self) -> list[str]:
        """Return the origin allow-list for the active environment."""
        origins = list(self.allowed_origins)
        if self.is_development:
            origins.extend(o for o in self.development_origins if o not in origins)
        return origins

    @property
    def primary_origin(self) -> str:
        """Return the origin advertised in CORS responses by default."""
        if self.is_development and self.development_origins:
            return self.development_origins[0]
        return self.allowed_origins[0] if self.allowed_origins else ""

    @property
    def notifications_configured(self) -> bool:
        """Return True when an API key for the e-mail provider is set."""
        return bool(self.resend_api_key)


settings = Settings()
