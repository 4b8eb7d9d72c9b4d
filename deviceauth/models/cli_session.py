"""CLI session models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CliSession(BaseModel):
    """CLI session stored in database. The id is the bearer token."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: UUID
    browser_session_id: str | None
    created_at: datetime
    updated_at: datetime
    not_after: datetime


class CliSessionListItem(BaseModel):
    """CLI session info for listing (no owner or audit fields)."""

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    created_at: datetime
    updated_at: datetime
    not_after: datetime


class RevokeSessionRequest(BaseModel):
    """Request to revoke one CLI session."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    session_id: str


class RevokeSessionResponse(BaseModel):
    success: bool
    message: str


class RevokeAllSessionsResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    revoked_count: int
