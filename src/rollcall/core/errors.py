"""Error taxonomy for the presence-verification engine.

Every failure a client can observe carries a stable ``code`` so the capture UI
can decide whether to retry immediately, wait, or show a hard failure.
"""

from __future__ import annotations

from typing import Any

HTTP_BAD_REQUEST = 400
HTTP_FORBIDDEN = 403
HTTP_CONFLICT = 409
HTTP_TOO_MANY_REQUESTS = 429
HTTP_SERVICE_UNAVAILABLE = 503


class PresenceError(RuntimeError):
    """Base exception for client-visible verification failures."""

    code = "presence_error"
    status_code = HTTP_BAD_REQUEST

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body rendered for this error."""
        payload: dict[str, Any] = {
            "ok": False,
            "verified": False,
            "error": self.message,
            "code": self.code,
        }
        payload.update(self.extra)
        return payload


class InvalidInput(PresenceError):
    """Malformed session, phase, identifier or evidence."""

    code = "invalid_input"


class ChallengeExpired(PresenceError):
    """The submitted challenge is unknown, expired or already used."""

    code = "challenge_expired"


class CodeMismatch(PresenceError):
    """The submitted temporal code failed the format, time or salt check."""

    code = "code_mismatch"


class VerificationRequired(PresenceError):
    """The verification token is missing, consumed, expired or bound elsewhere."""

    code = "verification_required"
    status_code = HTTP_FORBIDDEN


class RateLimited(PresenceError):
    """The caller submitted again before the spacing window elapsed."""

    code = "rate_limited"
    status_code = HTTP_TOO_MANY_REQUESTS


class DeviceConflict(PresenceError):
    """The device is already bound to a different identifier."""

    code = "device_conflict"
    status_code = HTTP_CONFLICT


class OverrideDenied(PresenceError):
    """The teacher secret did not match."""

    code = "override_denied"
    status_code = HTTP_FORBIDDEN


class OverrideUnavailable(PresenceError):
    """Manual override is not configured on this server."""

    code = "override_unavailable"
    status_code = HTTP_SERVICE_UNAVAILABLE


class RecordWriteFailure(PresenceError):
    """The check-in could not be written to the record sink."""

    code = "record_unavailable"
    status_code = HTTP_SERVICE_UNAVAILABLE


class AuditWriteFailure(RuntimeError):
    """An audit line could not be appended.

    Never rendered to clients; callers log it and carry on.
    """
