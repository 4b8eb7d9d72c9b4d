"""Device auth code repository."""

from datetime import datetime
from uuid import UUID

import asyncpg
from asyncpg import Connection

from deviceauth.exceptions import DuplicateCodeError
from deviceauth.models.device_auth import DeviceAuthCode

_COLUMNS = "id, device_code, user_code, created_at, expires_at, is_used, user_id, cli_session_id, last_polled_at"


async def create(
    conn: Connection,
    device_code: str,
    user_code: str,
    expires_at: datetime,
) -> DeviceAuthCode:
    """Create a new device auth code. Raises DuplicateCodeError if either code exists."""
    try:
        row = await conn.fetchrow(
            f"""
            INSERT INTO device_auth_codes (device_code, user_code, expires_at)
            VALUES ($1, $2, $3)
            RETURNING {_COLUMNS}
            """,
            device_code,
            user_code,
            expires_at,
        )
    except asyncpg.UniqueViolationError as e:
        raise DuplicateCodeError() from e

    return DeviceAuthCode(**dict(row))


async def claim(
    conn: Connection,
    user_code: str,
    user_id: UUID,
    cli_session_id: str,
    now: datetime,
) -> int:
    """
    Bind a user and CLI session to a pending code in one conditional UPDATE.

    Only matches a code that is unused, unexpired and unclaimed. Concurrent
    claims on the same row serialize on the row lock; the loser re-evaluates
    the WHERE clause after the winner commits and updates nothing.

    Returns the number of rows claimed (0 or 1).
    """
    result = await conn.execute(
        """
        UPDATE device_auth_codes
        SET user_id = $2, cli_session_id = $3, is_used = true
        WHERE user_code = $1
          AND is_used = false
          AND expires_at > $4
          AND user_id IS NULL
        """,
        user_code,
        user_id,
        cli_session_id,
        now,
    )

    # result is a string like "UPDATE 1" or "UPDATE 0"
    return int(result.split()[-1])


async def get_by_user_code(conn: Connection, user_code: str) -> DeviceAuthCode | None:
    """Get a code by user code. Only used to explain why a claim failed."""
    row = await conn.fetchrow(
        f"""
        SELECT {_COLUMNS}
        FROM device_auth_codes
        WHERE user_code = $1
        """,
        user_code,
    )

    if not row:
        return None

    return DeviceAuthCode(**dict(row))


async def get_by_device_code(conn: Connection, device_code: str) -> DeviceAuthCode | None:
    """Get a code by device code."""
    row = await conn.fetchrow(
        f"""
        SELECT {_COLUMNS}
        FROM device_auth_codes
        WHERE device_code = $1
        """,
        device_code,
    )

    if not row:
        return None

    return DeviceAuthCode(**dict(row))


async def touch_poll(conn: Connection, device_code: str, now: datetime) -> None:
    """Record the time of the latest poll."""
    await conn.execute(
        """
        UPDATE device_auth_codes
        SET last_polled_at = $2
        WHERE device_code = $1
        """,
        device_code,
        now,
    )


async def delete_expired(conn: Connection, cutoff: datetime) -> int:
    """Delete codes that expired before cutoff. Returns count deleted."""
    result = await conn.execute(
        """
        DELETE FROM device_auth_codes
        WHERE expires_at < $1
        """,
        cutoff,
    )

    # result is a string like "DELETE 5"
    return int(result.split()[-1])
