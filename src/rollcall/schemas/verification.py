"""Schemas for presence proofs: server time, challenges and codes."""

from __future__ import annotations

from pydantic import BaseModel, Field

from rollcall.core.settings import settings
from rollcall.schemas.common import SessionPayload


class TimeAndSaltOut(BaseModel):
    """Server clock and salt parameters for aligning the display."""

    now_ms: int
    salt_value: int
    salt_expires_ms: int
    rotation_ms: int
    accept_window_ms: int


class ChallengeOut(BaseModel):
    challenge: str = Field(..., description="Opaque single-use value to encode in the QR code")
    expires_at_ms: int
    ttl_ms: int


class ChallengeSubmission(SessionPayload):
    """A challenge value decoded from the displayed QR code."""

    challenge: str = Field(..., min_length=1, max_length=settings.challenge_max_length)


class CodeSubmission(SessionPayload):
    """A temporal code read from the display, ``MM:SS:DD``."""

    code: str = Field(..., min_length=1, max_length=16)


class VerificationOut(BaseModel):
    verified: bool = True
    verification_id: str = Field(..., description="Single-use token for the next check-in")
