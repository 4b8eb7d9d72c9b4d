"""CLI session registry: list, revoke, and bearer token lookup."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import UUID

from deviceauth import db
from deviceauth.exceptions import SessionNotFoundError
from deviceauth.models.cli_session import CliSession, CliSessionListItem
from deviceauth.repos import cli_session_repo

logger = logging.getLogger(__name__)


async def list_sessions(user_id: UUID) -> list[CliSessionListItem]:
    """List the caller's unexpired CLI sessions, oldest first."""
    async with db.user_conn(user_id) as conn:
        return await cli_session_repo.list_active_sessions(conn, user_id, datetime.now(UTC))


async def revoke_session(user_id: UUID, session_id: str) -> None:
    """
    Revoke one of the caller's CLI sessions by deleting it.

    Raises:
        SessionNotFoundError: Session does not exist or is owned by someone else
    """
    async with db.user_conn(user_id) as conn:
        session = await cli_session_repo.get_owned_session(conn, session_id, user_id)
        if session is None:
            raise SessionNotFoundError()

        await cli_session_repo.delete_session(conn, session_id, user_id)

    logger.info("Revoked CLI session for user %s", user_id)


async def revoke_all_sessions(user_id: UUID) -> int:
    """Revoke every CLI session the caller owns. Returns count deleted."""
    async with db.user_conn(user_id) as conn:
        count = await cli_session_repo.delete_all_sessions(conn, user_id)

    logger.info("Revoked %d CLI sessions for user %s", count, user_id)
    return count


async def authenticate(token: str) -> CliSession | None:
    """
    Resolve a bearer token to its CLI session.

    Returns None for unknown or expired tokens. Touches updated_at on success.
    """
    async with db.system_conn() as conn:
        session = await cli_session_repo.get_session(conn, token)
        if session is None or session.not_after <= datetime.now(UTC):
            return None

        await cli_session_repo.touch_session(conn, session.id)
        return session
