"""API endpoint modules for version 1."""

from .checkin import router as checkin_router
from .overrides import router as overrides_router
from .system import router as system_router
from .verification import router as verification_router

__all__ = [
    "checkin_router",
    "overrides_router",
    "system_router",
    "verification_router",
]
