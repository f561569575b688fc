"""
Pydantic schemas for API responses and outbound notifications.
"""

from .contact import ContactAccepted, ContactRejected, ContactStatus, ErrorReportAck
from .notification import NotificationJob, OutboundEmail

__all__ = [
    "ContactAccepted", "ContactRejected", "ContactStatus", "ErrorReportAck",
    "NotificationJob", "OutboundEmail",
]
