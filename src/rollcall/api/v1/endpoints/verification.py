"""Presence proof endpoints: server time, challenges and temporal codes."""

from __future__ import annotations

from fastapi import APIRouter

from rollcall.api.v1.dependencies import ClientDep, PresenceServiceDep
from rollcall.core.errors import InvalidInput
from rollcall.schemas.common import is_valid_phase, is_valid_session
from rollcall.schemas.verification import (
    ChallengeOut,
    ChallengeSubmission,
    CodeSubmission,
    TimeAndSaltOut,
    VerificationOut,
)
from rollcall.services.presence import SessionScope

router = APIRouter(tags=["verification"])


def _scope(payload: ChallengeSubmission | CodeSubmission) -> SessionScope:
    return SessionScope(
        session_id=payload.session,
        phase=payload.phase,
        connection_id=payload.connection_id,
    )


@router.get("/time-and-salt", response_model=TimeAndSaltOut)
async def get_time_and_salt(presence: PresenceServiceDep) -> TimeAndSaltOut:
    """Expose the server clock and salt so the display can derive its code."""
    return TimeAndSaltOut(**presence.time_and_salt())


@router.get("/challenge", response_model=ChallengeOut)
async def get_challenge(session: str, phase: str, presence: PresenceServiceDep) -> ChallengeOut:
    """Issue a fresh challenge for the display to encode.

    Args:
        session: Session identifier.
        phase: Session phase.
        presence: Presence service owning the challenge store.

    Returns:
        The challenge value with its absolute expiry and TTL in milliseconds.
    """
    if not is_valid_session(session):
        raise InvalidInput("Invalid session")
    if not is_valid_phase(phase):
        raise InvalidInput("Invalid phase")
    challenge = presence.issue_challenge(session, phase)
    return ChallengeOut(
        challenge=challenge.value,
        expires_at_ms=challenge.expires_at_ms,
        ttl_ms=challenge.ttl_ms,
    )


@router.post("/validate-challenge", response_model=VerificationOut)
def validate_challenge(
    payload: ChallengeSubmission, client: ClientDep, presence: PresenceServiceDep
) -> VerificationOut:
    """Spend a scanned challenge and return a verification token."""
    verification_id = presence.verify_challenge(client, _scope(payload), payload.challenge)
    return VerificationOut(verification_id=verification_id)


@router.post("/validate-code", response_model=VerificationOut)
def validate_code(
    payload: CodeSubmission, client: ClientDep, presence: PresenceServiceDep
) -> VerificationOut:
    """Check a temporal code and return a verification token."""
    verification_id = presence.verify_code(client, _scope(payload), payload.code)
    return VerificationOut(verification_id=verification_id)
