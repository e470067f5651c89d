# src/rollcall/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    checkin_router,
    overrides_router,
    system_router,
    verification_router,
)

__all__ = [
    "checkin_router",
    "overrides_router",
    "system_router",
    "verification_router",
]
