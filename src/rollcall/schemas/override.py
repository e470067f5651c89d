"""Manual override schemas."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field

from rollcall.schemas.common import DeviceMetaPayload


class OverrideCheckRequest(DeviceMetaPayload):
    """Pre-check sent when the student opens the override panel."""


class OverrideCompleteRequest(DeviceMetaPayload):
    teacher_secret: str = Field(
        ...,
        min_length=1,
        max_length=256,
        validation_alias=AliasChoices("teacher_secret", "teacher_password"),
    )


class OverrideCheckResponse(BaseModel):
    ok: bool = Field(..., description="True when manual override can be completed")
