"""System and transparency endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from rollcall.core.settings import settings

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of the tolerance and lifetime configuration.

    Excludes secrets and file paths; suitable for the display and for
    diagnosing clock-skew complaints.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
        },
        "code": {
            "rotation_ms": settings.salt_rotation_ms,
            "accept_window_ms": settings.salt_accept_window_ms,
            "time_tolerance_seconds": settings.code_time_tolerance_seconds,
        },
        "challenge": {
            "ttl_ms": settings.challenge_ttl_ms,
        },
        "verification": {
            "ttl_seconds": settings.verification_ttl_seconds,
            "challenge_ttl_seconds": settings.challenge_verification_ttl_seconds,
        },
        "checkin": {
            "window_ms": settings.checkin_window_ms,
            "device_lock_ttl_seconds": settings.device_lock_ttl_seconds,
            "device_conflict_policy": settings.device_conflict_policy,
            "phases": list(settings.phases),
        },
        "manual_override": {
            "enabled": settings.manual_override_enabled,
            "ttl_seconds": settings.manual_override_ttl_seconds,
        },
    }
