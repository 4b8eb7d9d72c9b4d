"""CLI session management routes."""

from fastapi import APIRouter, Depends

from deviceauth.auth import get_current_user
from deviceauth.models.cli_session import (
    CliSessionListItem,
    RevokeAllSessionsResponse,
    RevokeSessionRequest,
    RevokeSessionResponse,
)
from deviceauth.models.user import User, UserPublic
from deviceauth.services import cli_sessions

router = APIRouter(tags=["cli_sessions"])


@router.get("/api/cli/sessions")
async def list_sessions(
    user: User = Depends(get_current_user),
) -> list[CliSessionListItem]:
    """List the current user's active CLI sessions."""
    return await cli_sessions.list_sessions(user.id)


@router.post("/api/cli/sessions/revoke")
async def revoke_session(
    request: RevokeSessionRequest,
    user: User = Depends(get_current_user),
) -> RevokeSessionResponse:
    """Revoke one CLI session. Unknown and foreign sessions both 404."""
    await cli_sessions.revoke_session(user.id, request.session_id)
    return RevokeSessionResponse(success=True, message="Session revoked")


@router.post("/api/cli/sessions/revoke-all")
async def revoke_all_sessions(
    user: User = Depends(get_current_user),
) -> RevokeAllSessionsResponse:
    """Revoke all of the current user's CLI sessions."""
    count = await cli_sessions.revoke_all_sessions(user.id)
    return RevokeAllSessionsResponse(success=True, revoked_count=count)


@router.get("/auth/me")
async def me(
    user: User = Depends(get_current_user),
) -> UserPublic:
    """Return the authenticated user (browser cookie or CLI bearer token)."""
    return UserPublic.from_user(user)
