"""Check-in schemas."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field, field_validator

from rollcall.schemas.common import DeviceMetaPayload, is_valid_identifier


class CheckinRequest(DeviceMetaPayload):
    """Identifier submission spending a verification token."""

    identifier: str = Field(
        ...,
        validation_alias=AliasChoices("identifier", "student_id"),
        description="Student identifier being checked in",
    )
    verification_id: str = Field(..., min_length=1, max_length=128)

    @field_validator("identifier")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        v = v.strip()
        if not is_valid_identifier(v):
            raise ValueError("Invalid identifier")
        return v


class CheckinResponse(BaseModel):
    ok: bool = True
    warning: str | None = None
    manual_override: bool = False
