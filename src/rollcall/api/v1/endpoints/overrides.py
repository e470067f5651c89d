"""Manual override endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from rollcall.api.v1.dependencies import ClientDep, PresenceServiceDep
from rollcall.schemas.common import DeviceMetaPayload
from rollcall.schemas.override import (
    OverrideCheckRequest,
    OverrideCheckResponse,
    OverrideCompleteRequest,
)
from rollcall.schemas.verification import VerificationOut
from rollcall.services.overrides import OverrideMeta
from rollcall.services.presence import SessionScope

router = APIRouter(prefix="/manual-override", tags=["manual-override"])


def _meta(payload: DeviceMetaPayload) -> OverrideMeta:
    return OverrideMeta(
        session_id=payload.session,
        phase=payload.phase,
        device_id=payload.device_id,
        module=payload.module,
        group=payload.group,
    )


@router.post("/check", response_model=OverrideCheckResponse)
def check_override(
    payload: OverrideCheckRequest, client: ClientDep, presence: PresenceServiceDep
) -> OverrideCheckResponse:
    """Report whether a manual override can be completed."""
    return OverrideCheckResponse(ok=presence.check_override(client, _meta(payload)))


@router.post("/complete", response_model=VerificationOut)
def complete_override(
    payload: OverrideCompleteRequest, client: ClientDep, presence: PresenceServiceDep
) -> VerificationOut:
    """Exchange the teacher secret for a verification token."""
    scope = SessionScope(
        session_id=payload.session,
        phase=payload.phase,
        connection_id=payload.connection_id,
    )
    verification_id = presence.complete_override(
        client, scope, _meta(payload), payload.teacher_secret
    )
    return VerificationOut(verification_id=verification_id)
