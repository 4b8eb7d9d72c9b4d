"""
Device authorization flow (RFC 8628 shaped).

1. CLI calls initiate() and shows the user code + verification URL
2. User opens the URL in a logged-in browser; the page calls verify()
3. CLI calls poll() every `interval` seconds until it gets a session token

All coordination state lives in device_auth_codes. The only race, two
browsers verifying the same user code, is settled by the conditional
UPDATE in device_code_repo.claim(); nothing here holds a lock.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime, timedelta

import asyncpg

from deviceauth import codes, config, db
from deviceauth.exceptions import (
    CodeAlreadyUsedError,
    CodeExpiredError,
    CodeNotFoundError,
    DuplicateCodeError,
    SessionIssueError,
    TooManyRequestsError,
)
from deviceauth.models.device_auth import InitiateResponse, PollResponse, VerifyResponse
from deviceauth.models.user import User, UserPublic
from deviceauth.repos import cli_session_repo, device_code_repo, user_repo
from deviceauth.utils.urls import verification_uris

logger = logging.getLogger(__name__)

_MAX_CODE_ATTEMPTS = 5


async def initiate(base_url: str) -> InitiateResponse:
    """
    Issue a new device code / user code pair.

    Regenerates both codes on the unlikely chance of a collision.

    Args:
        base_url: Public origin the verification links point at

    Returns:
        InitiateResponse with the formatted user code and polling parameters

    Raises:
        DuplicateCodeError: If every attempt collided
    """
    settings = config.settings
    expires_at = datetime.now(UTC) + timedelta(minutes=settings.DEVICE_CODE_EXPIRY_MINUTES)

    for _ in range(_MAX_CODE_ATTEMPTS):
        device_code = codes.generate_device_code()
        user_code = codes.generate_user_code(settings.USER_CODE_LENGTH)
        try:
            async with db.system_conn() as conn:
                record = await device_code_repo.create(conn, device_code, user_code, expires_at)
        except DuplicateCodeError:
            logger.warning("Device auth code collision, regenerating")
            continue

        logger.info("Issued device auth code %s", record.id)
        formatted = codes.format_user_code(record.user_code)
        verification_uri, verification_uri_complete = verification_uris(base_url, formatted)
        return InitiateResponse(
            device_code=record.device_code,
            user_code=formatted,
            verification_uri=verification_uri,
            verification_uri_complete=verification_uri_complete,
            expires_in=settings.device_code_expiry_seconds,
            interval=settings.DEVICE_POLL_INTERVAL_SECONDS,
        )

    raise DuplicateCodeError()


async def verify(user: User, user_code: str, browser_session_id: str | None = None) -> VerifyResponse:
    """
    Claim a user code for the logged-in browser user and issue a CLI session.

    The claim and the session insert share one transaction, so a code is
    never burned without a session to show for it.

    Args:
        user: Authenticated browser user
        user_code: Code as typed, dashes and whitespace allowed
        browser_session_id: Authorizing browser session, kept for audit

    Returns:
        VerifyResponse on success

    Raises:
        CodeNotFoundError: No such code
        CodeAlreadyUsedError: Code was claimed before (by anyone)
        CodeExpiredError: Code is past its expiry
        SessionIssueError: Session insert failed; the claim was rolled back
    """
    normalized = codes.normalize_user_code(user_code)
    if not normalized or codes.has_control_chars(normalized):
        raise CodeNotFoundError()

    now = datetime.now(UTC)
    session_token = codes.generate_session_token()
    not_after = now + timedelta(days=config.settings.CLI_SESSION_EXPIRY_DAYS)

    async with db.system_conn() as conn:
        claimed = await device_code_repo.claim(conn, normalized, user.id, session_token, now)
        if claimed:
            try:
                await cli_session_repo.create_session(
                    conn,
                    session_token,
                    user.id,
                    not_after,
                    browser_session_id=browser_session_id,
                )
            except asyncpg.PostgresError as e:
                logger.error("CLI session insert failed for user %s; claim rolled back", user.id)
                raise SessionIssueError() from e

    if claimed:
        logger.info("Device auth code claimed by user %s", user.id)
        return VerifyResponse(success=True, message="Device authorized successfully")

    # Claim matched nothing; look the code up only to say why
    async with db.system_conn() as conn:
        existing = await device_code_repo.get_by_user_code(conn, normalized)

    if existing is not None:
        if existing.is_used:
            logger.info("Rejected verify by user %s: code already used", user.id)
            raise CodeAlreadyUsedError()
        if existing.is_expired(now):
            logger.info("Rejected verify by user %s: code expired", user.id)
            raise CodeExpiredError()

    raise CodeNotFoundError()


async def poll(device_code: str) -> PollResponse:
    """
    Report the status of a device code to the CLI.

    Keeps returning the same token on "complete" until the code is
    garbage-collected, so a CLI that crashed after the first receipt can
    poll again.

    Args:
        device_code: Device code from initiate()

    Returns:
        PollResponse with status pending, expired or complete

    Raises:
        CodeNotFoundError: Unknown device code
        TooManyRequestsError: Polled before the interval elapsed
    """
    if codes.has_control_chars(device_code):
        raise CodeNotFoundError()

    settings = config.settings
    now = datetime.now(UTC)

    async with db.system_conn() as conn:
        record = await device_code_repo.get_by_device_code(conn, device_code)

    if record is None:
        raise CodeNotFoundError()

    interval = settings.DEVICE_POLL_INTERVAL_SECONDS
    min_gap = timedelta(seconds=interval - settings.DEVICE_POLL_GRACE_SECONDS)
    if record.last_polled_at is not None and now - record.last_polled_at < min_gap:
        raise TooManyRequestsError(interval)

    await _record_poll(device_code, now)

    if record.is_expired(now):
        return PollResponse(status="expired")

    if record.is_used and record.cli_session_id:
        async with db.system_conn() as conn:
            session = await cli_session_repo.get_session(conn, record.cli_session_id)
            user = await user_repo.get_user(conn, record.user_id) if session else None

        if session is None:
            # Revoked before the CLI picked it up
            return PollResponse(status="expired")

        return PollResponse(
            status="complete",
            session_token=session.id,
            expires_at=session.not_after,
            user=UserPublic.from_user(user) if user else None,
        )

    return PollResponse(status="pending")


async def _record_poll(device_code: str, now: datetime) -> None:
    """Best-effort last_polled_at update. Failures are logged, never raised."""
    try:
        async with db.system_conn() as conn:
            await device_code_repo.touch_poll(conn, device_code, now)
    except (asyncpg.PostgresError, OSError, asyncio.TimeoutError) as e:
        logger.warning("Could not record poll time: %s", type(e).__name__)


async def delete_expired_codes() -> int:
    """
    Garbage-collect codes that expired more than DEVICE_CODE_RETENTION_HOURS ago.

    Returns:
        Number of codes deleted
    """
    cutoff = datetime.now(UTC) - timedelta(hours=config.settings.DEVICE_CODE_RETENTION_HOURS)
    async with db.system_conn() as conn:
        return await device_code_repo.delete_expired(conn, cutoff)
