"""Pydantic schemas for API requests and responses."""

from .checkin import CheckinRequest, CheckinResponse
from .override import OverrideCheckRequest, OverrideCheckResponse, OverrideCompleteRequest
from .verification import (
    ChallengeOut,
    ChallengeSubmission,
    CodeSubmission,
    TimeAndSaltOut,
    VerificationOut,
)

__all__ = [
    "ChallengeOut",
    "ChallengeSubmission",
    "CheckinRequest",
    "CheckinResponse",
    "CodeSubmission",
    "OverrideCheckRequest",
    "OverrideCheckResponse",
    "OverrideCompleteRequest",
    "TimeAndSaltOut",
    "VerificationOut",
]
