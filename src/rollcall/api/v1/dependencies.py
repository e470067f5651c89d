"""Shared API dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from rollcall.core.settings import settings
from rollcall.services.presence import ClientContext, PresenceService, get_presence_service

UNKNOWN_CLIENT = "unknown"


def get_client_context(request: Request) -> ClientContext:
    """Derive the transport identity of the caller.

    ``X-Forwarded-For`` is honoured only when the deployment opts in, since
    clients can set it freely.
    """
    ip = request.client.host if request.client else UNKNOWN_CLIENT
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            ip = first_hop
    return ClientContext(ip=ip, user_agent=request.headers.get("user-agent", ""))


def get_presence_service_dep() -> PresenceService:
    return get_presence_service()


ClientDep = Annotated[ClientContext, Depends(get_client_context)]
PresenceServiceDep = Annotated[PresenceService, Depends(get_presence_service_dep)]
