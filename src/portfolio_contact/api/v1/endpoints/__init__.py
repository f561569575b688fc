"""API endpoint modules for version 1."""

from .contact import router as contact_router
from .errors import router as errors_router

__all__ = [
    "contact_router",
    "errors_router",
]
