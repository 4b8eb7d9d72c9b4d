"""CLI session repository."""

from datetime import datetime
from uuid import UUID

from asyncpg import Connection

from deviceauth.models.cli_session import CliSession, CliSessionListItem

_COLUMNS = "id, user_id, browser_session_id, created_at, updated_at, not_after"


async def create_session(
    conn: Connection,
    session_id: str,
    user_id: UUID,
    not_after: datetime,
    browser_session_id: str | None = None,
) -> CliSession:
    """Insert a CLI session. session_id is the bearer token."""
    row = await conn.fetchrow(
        f"""
        INSERT INTO cli_sessions (id, user_id, browser_session_id, not_after)
        VALUES ($1, $2, $3, $4)
        RETURNING {_COLUMNS}
        """,
        session_id,
        user_id,
        browser_session_id,
        not_after,
    )

    return CliSession(**dict(row))


async def get_session(conn: Connection, session_id: str) -> CliSession | None:
    """Get a session by id (token)."""
    row = await conn.fetchrow(
        f"""
        SELECT {_COLUMNS}
        FROM cli_sessions
        WHERE id = $1
        """,
        session_id,
    )

    if not row:
        return None

    return CliSession(**dict(row))


async def get_owned_session(conn: Connection, session_id: str, user_id: UUID) -> CliSession | None:
    """Get a session only if it belongs to user_id. Locks the row until the transaction ends."""
    row = await conn.fetchrow(
        f"""
        SELECT {_COLUMNS}
        FROM cli_sessions
        WHERE id = $1 AND user_id = $2
        FOR UPDATE
        """,
        session_id,
        user_id,
    )

    if not row:
        return None

    return CliSession(**dict(row))


async def touch_session(conn: Connection, session_id: str) -> None:
    """Update updated_at timestamp."""
    await conn.execute(
        """
        UPDATE cli_sessions
        SET updated_at = now()
        WHERE id = $1
        """,
        session_id,
    )


async def list_active_sessions(conn: Connection, user_id: UUID, now: datetime) -> list[CliSessionListItem]:
    """List a user's unexpired sessions, oldest first."""
    rows = await conn.fetch(
        """
        SELECT id, created_at, updated_at, not_after
        FROM cli_sessions
        WHERE user_id = $1 AND not_after > $2
        ORDER BY created_at ASC
        """,
        user_id,
        now,
    )

    return [CliSessionListItem(**dict(row)) for row in rows]


async def delete_session(conn: Connection, session_id: str, user_id: UUID) -> bool:
    """Delete a session owned by user_id. Returns True if deleted."""
    result = await conn.execute(
        """
        DELETE FROM cli_sessions
        WHERE id = $1 AND user_id = $2
        """,
        session_id,
        user_id,
    )

    return result.endswith(" 1")


async def delete_all_sessions(conn: Connection, user_id: UUID) -> int:
    """Delete every session owned by user_id. Returns count deleted."""
    result = await conn.execute(
        """
        DELETE FROM cli_sessions
        WHERE user_id = $1
        """,
        user_id,
    )

    return int(result.split()[-1])
