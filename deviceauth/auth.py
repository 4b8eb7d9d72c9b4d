"""
Authentication of callers.

Browser users carry a JWT session cookie issued by the web application;
the CLI carries the bearer token it received from the device flow.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Annotated
from uuid import UUID, uuid4

import jwt
from fastapi import Cookie, Header, HTTPException, status

from deviceauth import config, db
from deviceauth.models.user import User
from deviceauth.repos import user_repo
from deviceauth.services import cli_sessions


@dataclass(frozen=True)
class BrowserSession:
    """A logged-in browser user and the id of their browser session."""

    user: User
    session_id: str | None


def create_jwt(user_id: UUID, session_id: str | None = None) -> str:
    """
    Create a JWT for a browser session.

    Args:
        user_id: User UUID to encode in the token
        session_id: Browser session id; a new one is generated if omitted

    Returns:
        Signed JWT string
    """
    expires_at = datetime.now(UTC) + timedelta(hours=config.settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": str(user_id),
        "sid": session_id or str(uuid4()),
        "exp": expires_at,
        "iat": datetime.now(UTC),
    }
    return jwt.encode(payload, config.settings.JWT_SECRET, algorithm=config.settings.JWT_ALGORITHM)


def decode_jwt(token: str) -> dict:
    """
    Decode and verify a JWT.

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        return jwt.decode(token, config.settings.JWT_SECRET, algorithms=[config.settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired. Please sign in again.",
        ) from e
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token. Please sign in again.",
        ) from e


async def _load_user(user_id: UUID) -> User | None:
    async with db.user_conn(user_id) as conn:
        return await user_repo.get_user(conn, user_id)


async def get_browser_session_from_cookie(session: str) -> BrowserSession:
    """
    Authenticate a browser user via session cookie.

    Raises:
        HTTPException: If session is invalid or user not found
    """
    payload = decode_jwt(session)
    try:
        user_id = UUID(payload.get("sub", ""))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token. Please sign in again.",
        ) from e

    user = await _load_user(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found. Please sign in again.",
        )

    return BrowserSession(user=user, session_id=payload.get("sid"))


async def get_current_user_from_token(authorization: str) -> User:
    """
    Authenticate a CLI caller via its session bearer token.

    Raises:
        HTTPException: If token is unknown, revoked or expired
    """
    token = authorization.removeprefix("Bearer ").strip()
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token format.",
        )

    session = await cli_sessions.authenticate(token)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid, revoked or expired token.",
        )

    user = await _load_user(session.user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found.",
        )

    return user


async def get_browser_session(
    session: Annotated[str | None, Cookie()] = None,
) -> BrowserSession:
    """
    FastAPI dependency for endpoints only a logged-in browser may call.

    Raises:
        HTTPException: If there is no valid session cookie
    """
    if not session:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated. Please sign in.",
        )
    return await get_browser_session_from_cookie(session)


async def get_current_user(
    session: Annotated[str | None, Cookie()] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    Tries Bearer token first (CLI), then session cookie (browser).

    Raises:
        HTTPException: If authentication fails
    """
    if authorization and authorization.startswith("Bearer "):
        return await get_current_user_from_token(authorization)

    if session:
        browser_session = await get_browser_session_from_cookie(session)
        return browser_session.user

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated. Please sign in.",
    )
