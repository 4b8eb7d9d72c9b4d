"""User models for the authenticated browser/CLI caller."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr


class User(BaseModel):
    """Core user model. Represents a row in the users table."""

    id: UUID
    email: EmailStr
    name: str | None = None
    created_at: datetime


class UserPublic(BaseModel):
    """What the API returns about a user. Handed to the CLI on poll completion."""

    id: UUID
    email: EmailStr
    name: str | None

    @classmethod
    def from_user(cls, user: User) -> UserPublic:
        """Convert internal User model to public API response."""
        return cls(id=user.id, email=user.email, name=user.name)
