"""Repository for user lookups."""

from __future__ import annotations

from uuid import UUID

import asyncpg
from asyncpg import Connection

from deviceauth.models.user import User


def _row_to_user(row: asyncpg.Record) -> User:
    """Convert a database row to a User model."""
    return User(
        id=row["id"],
        email=row["email"],
        name=row["name"],
        created_at=row["created_at"],
    )


async def get_user(conn: Connection, user_id: UUID) -> User | None:
    """
    Get a user by ID.

    Args:
        conn: Connection from system_conn() or user_conn(user_id)
        user_id: User UUID

    Returns:
        User if found, None otherwise
    """
    row = await conn.fetchrow(
        "SELECT id, email, name, created_at FROM users WHERE id = $1",
        user_id,
    )
    return _row_to_user(row) if row else None
