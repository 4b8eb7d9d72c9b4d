"""
Database connection pool and RLS-scoped connection managers.

All database access goes through user_conn() or system_conn().
Never use pool.acquire() directly outside this module.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from uuid import UUID

import asyncpg

from deviceauth import config

pool: asyncpg.Pool | None = None


async def init_pool() -> None:
    """
    Initialize the connection pool.
    Called once at application startup.
    """
    global pool
    pool = await asyncpg.create_pool(
        dsn=config.settings.DATABASE_URL,
        min_size=config.settings.DB_POOL_MIN_SIZE,
        max_size=config.settings.DB_POOL_MAX_SIZE,
        command_timeout=config.settings.DB_COMMAND_TIMEOUT_SECONDS,
        init=_init_connection,
    )


async def close_pool() -> None:
    """
    Close the connection pool.
    Called at application shutdown.
    """
    global pool
    if pool is not None:
        await pool.close()
        pool = None


async def _init_connection(conn: asyncpg.Connection) -> None:
    """
    Initialize each new connection.
    Sets up type codecs for UUID and JSON handling.
    """
    await conn.set_type_codec(
        "uuid",
        encoder=str,
        decoder=lambda x: UUID(x),
        schema="pg_catalog",
    )
    await conn.set_type_codec(
        "jsonb",
        encoder=json.dumps,
        decoder=json.loads,
        schema="pg_catalog",
    )


@asynccontextmanager
async def user_conn(user_id: str | UUID):
    """
    Acquire a database connection scoped to a specific user via RLS.

    Every query through this connection can only see/modify rows
    belonging to this user. Enforced by Postgres RLS policies on
    cli_sessions; queries still filter by owner explicitly.

    Usage:
        async with user_conn(user_id) as conn:
            rows = await conn.fetch("SELECT * FROM cli_sessions WHERE user_id = $1", user_id)

    Args:
        user_id: UUID of the user to scope the connection to

    Yields:
        asyncpg.Connection with RLS context set, inside a transaction
    """
    if pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")

    async with pool.acquire() as conn:
        async with conn.transaction():
            await conn.execute(
                "SELECT set_config('app.user_id', $1, true)",
                str(user_id),
            )
            yield conn


@asynccontextmanager
async def system_conn():
    """
    Acquire a database connection without user scoping.

    For system operations only:
    - Device code issue, claim and poll (caller is not yet a user, or the
      row is not owned by anyone until it is claimed)
    - Bearer token lookup during authentication
    - Background cleanup

    Everything executed inside the block runs in one transaction; an
    exception rolls back every statement issued on the connection.

    Yields:
        asyncpg.Connection without RLS scoping
    """
    if pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")

    async with pool.acquire() as conn:
        async with conn.transaction():
            # RLS policies treat an empty app.user_id as a system connection
            await conn.execute("SELECT set_config('app.user_id', '', true)")
            yield conn
