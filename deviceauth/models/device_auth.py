"""Device authorization models."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from deviceauth.models.user import UserPublic


class DeviceAuthCode(BaseModel):
    """One authorization attempt, as stored in device_auth_codes."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    device_code: str
    user_code: str
    created_at: datetime
    expires_at: datetime
    is_used: bool
    user_id: UUID | None
    cli_session_id: str | None
    last_polled_at: datetime | None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


class _ApiModel(BaseModel):
    """Wire models use camelCase field names; snake_case is accepted on input too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InitiateResponse(_ApiModel):
    """Response from starting device auth (CLI)."""

    device_code: str
    user_code: str
    verification_uri: str
    verification_uri_complete: str
    expires_in: int
    interval: int


class VerifyRequest(_ApiModel):
    """Request to verify a user code (browser)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    user_code: str = Field(min_length=1)


class VerifyResponse(_ApiModel):
    success: bool
    message: str


class PollRequest(_ApiModel):
    """Request to poll device auth status (CLI)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    device_code: str = Field(min_length=1)


class PollResponse(_ApiModel):
    """
    Response from polling device auth.

    session_token, expires_at and user are only present when status is "complete".
    """

    status: Literal["pending", "expired", "complete"]
    session_token: str | None = None
    expires_at: datetime | None = None
    user: UserPublic | None = None
