"""Business logic services for the portfolio contact service."""

from .anti_automation import AntiAutomationGuard
from .notifier import NotificationDispatcher
from .rate_limit import InMemoryRateLimitStore
from .submission import SubmissionController

__all__ = [
    "AntiAutomationGuard",
    "InMemoryRateLimitStore",
    "NotificationDispatcher",
    "SubmissionController",
]
