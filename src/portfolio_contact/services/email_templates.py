"""HTML bodies for the owner notification and the sender acknowledgement.

Submission values arrive already sanitized (entity-encoded), so they are
interpolated as-is. Request metadata that did not go through the validator
(client IP, Origin header) is escaped here.
"""

from __future__ import annotations

import html
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from portfolio_contact.core.settings import Settings, settings
from portfolio_contact.schemas.notification import NotificationJob, OutboundEmail

logger = logging.getLogger(__name__)


def _display_time(now: datetime, tz_name: str) -> str:
    try:
        tz = timezone.utc if tz_name.upper() == "UTC" else ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown display timezone %r, falling back to UTC", tz_name)
        tz = timezone.utc
    return now.astimezone(tz).strftime("%Y-%m-%d %H:%M:%S %Z")


def _optional_row(label: str, value: str | None, color: str) -> str:
    if not value:
        return ""
    return (
        "<tr>"
        f'<td style="padding: 12px 0; font-weight: 600; color: #374151;">{label}:</td>'
        f'<td style="padding: 12px 0; color: {color}; font-weight: 500;">{value}</td>'
        "</tr>"
    )


def render_owner_html(
    submission: Mapping[str, str],
    metadata: Mapping[str, str],
    *,
    client_ip: str,
    received_at: str,
) -> str:
    """Render the owner-facing notification body."""
    user_agent = metadata.get("userAgent")
    time_zone = metadata.get("timeZone")
    security_line = f"IP: {html.escape(client_ip)} | "
    security_line += f"User Agent: {user_agent}" if user_agent else "No user agent"
    if time_zone:
        security_line += f"<br>Time Zone: {time_zone}"

    return f"""
    <div style="font-family: 'Segoe UI', Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
      <div style="background: #0ea5e9; padding: 30px 20px; text-align: center; border-radius: 12px 12px 0 0;">
        <h1 style="color: white; margin: 0; font-size: 28px;">New Portfolio Contact</h1>
        <p style="color: rgba(255,255,255,0.9); margin: 10px 0 0 0;">Received: {received_at}</p>
      </div>
      <div style="background: white; padding: 30px; border-radius: 0 0 12px 12px;">
        <table style="width: 100%; border-collapse: collapse; margin-bottom: 30px;">
          <tr><td style="padding: 12px 0; font-weight: 600; width: 120px;">Name:</td><td>{submission["name"]}</td></tr>
          <tr><td style="padding: 12px 0; font-weight: 600;">Email:</td>
            <td><a href="mailto:{submission["email"]}" style="color: #0ea5e9;">{submission["email"]}</a></td></tr>
          <tr><td style="padding: 12px 0; font-weight: 600;">Subject:</td><td>{submission["subject"]}</td></tr>
          {_optional_row("Budget", submission.get("budget"), "#059669")}
          {_optional_row("Timeline", submission.get("timeline"), "#7c3aed")}
        </table>
        <div style="background: #f8fafc; padding: 25px; border-left: 4px solid #0ea5e9; border-radius: 8px;">
          <h3 style="margin: 0 0 15px 0;">Message</h3>
          <p style="line-height: 1.7; white-space: pre-wrap; margin: 0;">{submission["message"]}</p>
        </div>
        <div style="background: #f1f5f9; padding: 20px; margin-top: 30px; border-radius: 8px; text-align: center;">
          <p style="margin: 0; color: #64748b; font-size: 14px;">
            <strong>Security Info:</strong> {security_line}<br>Verified legitimate submission
          </p>
        </div>
      </div>
    </div>
    """


def render_acknowledgement_html(
    submission: Mapping[str, str],
    *,
    owner_name: str,
    owner_title: str,
    owner_email: str,
    site_url: str,
) -> str:
    """Render the receipt sent back to the person who filled in the form."""
    summary = f'<p style="margin: 8px 0;"><strong>Subject:</strong> {submission["subject"]}</p>'
    if submission.get("budget"):
        summary += f'<p style="margin: 8px 0;"><strong>Budget:</strong> {submission["budget"]}</p>'
    if submission.get("timeline"):
        summary += (
            f'<p style="margin: 8px 0;"><strong>Timeline:</strong> {submission["timeline"]}</p>'
        )

    return f"""
    <div style="font-family: 'Segoe UI', Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
      <div style="background: #0ea5e9; padding: 30px 20px; text-align: center; border-radius: 12px 12px 0 0;">
        <h1 style="color: white; margin: 0; font-size: 32px;">Thank You!</h1>
        <p style="color: rgba(255,255,255,0.9); margin: 15px 0 0 0;">Your message has been received</p>
      </div>
      <div style="background: white; padding: 30px; border-radius: 0 0 12px 12px;">
        <p style="font-size: 18px;">Hi {submission["name"]},</p>
        <p style="font-size: 16px; line-height: 1.7;">
          Thank you for reaching out! I've received your message about
          "<strong>{submission["subject"]}</strong>" and I'll get back to you as soon as
          possible, usually within 24 hours.
        </p>
        <div style="background: #eff6ff; padding: 25px; border-radius: 10px; border-left: 4px solid #0ea5e9;">
          <h3 style="margin: 0 0 15px 0;">Your Message Summary</h3>
          {summary}
        </div>
        <p style="font-size: 16px; line-height: 1.7;">
          In the meantime, feel free to check out my recent projects on my
          <a href="{html.escape(site_url)}" style="color: #0ea5e9;">portfolio</a>.
        </p>
        <div style="margin-top: 40px; padding: 25px; background: #f8fafc; border-radius: 10px; text-align: center;">
          <p style="margin: 0 0 8px 0; color: #0ea5e9; font-weight: 700;">{html.escape(owner_name)}</p>
          <p style="margin: 8px 0; color: #64748b;">{html.escape(owner_title)}</p>
          <p style="margin: 8px 0 0 0; color: #64748b;">{html.escape(owner_email)}</p>
        </div>
      </div>
    </div>
    """


def build_notification_job(
    submission: Mapping[str, str],
    metadata: Mapping[str, str],
    *,
    client_ip: str,
    origin: str | None,
    user_agent: str | None,
    config: Settings = settings,
    now: datetime | None = None,
) -> NotificationJob:
    """Build the owner notification and, if enabled, the acknowledgement."""
    now = now or datetime.now(timezone.utc)
    primary = OutboundEmail(
        sender=config.notification_from_email,
        to=[config.notification_to_email],
        subject=f"Portfolio Contact: {submission['subject']}",
        html=render_owner_html(
            submission,
            metadata,
            client_ip=client_ip,
            received_at=_display_time(now, config.display_timezone),
        ),
        reply_to=submission["email"],
        headers={
            "X-Contact-IP": client_ip,
            "X-Contact-Timestamp": now.isoformat(),
            "X-Contact-User-Agent": (user_agent or "Unknown")[:200],
            "X-Contact-Origin": origin or "Unknown",
        },
    )

    acknowledgement = None
    if config.send_acknowledgement:
        acknowledgement = OutboundEmail(
            sender=config.notification_from_email,
            to=[submission["email"]],
            subject=f"Thank you for your message - {config.owner_name}",
            html=render_acknowledgement_html(
                submission,
                owner_name=config.owner_name,
                owner_title=config.owner_title,
                owner_email=config.notification_to_email,
                site_url=config.site_url,
            ),
        )

    return NotificationJob(primary=primary, acknowledgement=acknowledgement)
