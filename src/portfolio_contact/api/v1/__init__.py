"""Version 1 API endpoints."""

from .endpoints import contact_router, errors_router

__all__ = [
    "contact_router",
    "errors_router",
]
