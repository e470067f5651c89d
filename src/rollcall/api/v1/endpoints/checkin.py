"""Check-in endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from rollcall.api.v1.dependencies import ClientDep, PresenceServiceDep
from rollcall.schemas.checkin import CheckinRequest, CheckinResponse
from rollcall.services.presence import CheckinSubmission, SessionScope

router = APIRouter(tags=["checkin"])


@router.post("/checkin", response_model=CheckinResponse)
def checkin(
    payload: CheckinRequest, client: ClientDep, presence: PresenceServiceDep
) -> CheckinResponse:
    """Record a check-in for the identifier holding a valid verification token.

    Failures carry a distinct code: ``verification_required``,
    ``device_conflict``, ``rate_limited`` or ``invalid_input``.
    """
    result = presence.checkin(
        client,
        CheckinSubmission(
            scope=SessionScope(
                session_id=payload.session,
                phase=payload.phase,
                connection_id=payload.connection_id,
            ),
            identifier=payload.identifier,
            verification_id=payload.verification_id,
            device_id=payload.device_id,
            module=payload.module,
            group=payload.group,
        ),
    )
    return CheckinResponse(
        ok=result.ok,
        warning=result.warning,
        manual_override=result.manual_override,
    )
