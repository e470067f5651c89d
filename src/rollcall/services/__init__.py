"""State tables and verification flows for the Rollcall service."""

from .challenges import ChallengeStore
from .device_locks import DeviceLockTable
from .overrides import ManualOverrideLedger
from .presence import PresenceService, get_presence_service
from .rate_limit import CheckinRateLimiter
from .salt import SaltRotationWorker, SaltRotator, TemporalCodeValidator
from .verification import VerificationLedger

__all__ = [
    "ChallengeStore",
    "CheckinRateLimiter",
    "DeviceLockTable",
    "ManualOverrideLedger",
    "PresenceService",
    "SaltRotationWorker",
    "SaltRotator",
    "TemporalCodeValidator",
    "VerificationLedger",
    "get_presence_service",
]
