"""Shared field checks for request schemas."""

from __future__ import annotations

import re

from pydantic import AliasChoices, BaseModel, Field, field_validator

from rollcall.core.settings import settings

MAX_META_LENGTH = 80
MAX_CONNECTION_ID_LENGTH = 128


def is_valid_session(value: str) -> bool:
    return re.fullmatch(settings.session_pattern, value) is not None


def is_valid_phase(value: str) -> bool:
    return value in settings.phases


def is_valid_identifier(value: str) -> bool:
    return re.fullmatch(settings.identifier_pattern, value) is not None


class SessionPayload(BaseModel):
    """Fields every session-scoped request carries."""

    session: str = Field(
        ...,
        validation_alias=AliasChoices("session", "sid"),
        description="Session identifier shown in the QR payload",
    )
    phase: str = Field(..., description="Session phase, e.g. start, break or end")
    connection_id: str = Field(
        "",
        max_length=MAX_CONNECTION_ID_LENGTH,
        validation_alias=AliasChoices("connection_id", "page_session_id"),
        description="Random id generated by the capture page on load",
    )

    @field_validator("session")
    @classmethod
    def validate_session(cls, v: str) -> str:
        if not is_valid_session(v):
            raise ValueError("Invalid session")
        return v

    @field_validator("phase")
    @classmethod
    def validate_phase(cls, v: str) -> str:
        if not is_valid_phase(v):
            raise ValueError("Invalid phase")
        return v


class DeviceMetaPayload(SessionPayload):
    """Session fields plus the optional context recorded with a check-in."""

    device_id: str | None = Field(None, max_length=MAX_CONNECTION_ID_LENGTH)
    module: str | None = Field(None, max_length=MAX_META_LENGTH)
    group: str | None = Field(None, max_length=MAX_META_LENGTH)
