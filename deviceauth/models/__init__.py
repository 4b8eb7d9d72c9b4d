"""
Pydantic models for the device auth service.

All data shapes defined here. No imports from db, repos, or routes.
"""

from deviceauth.models.cli_session import (
    CliSession,
    CliSessionListItem,
    RevokeAllSessionsResponse,
    RevokeSessionRequest,
    RevokeSessionResponse,
)
from deviceauth.models.device_auth import (
    DeviceAuthCode,
    InitiateResponse,
    PollRequest,
    PollResponse,
    VerifyRequest,
    VerifyResponse,
)
from deviceauth.models.user import User, UserPublic

__all__ = [
    # User models
    "User",
    "UserPublic",
    # Device auth models
    "DeviceAuthCode",
    "InitiateResponse",
    "VerifyRequest",
    "VerifyResponse",
    "PollRequest",
    "PollResponse",
    # CLI session models
    "CliSession",
    "CliSessionListItem",
    "RevokeSessionRequest",
    "RevokeSessionResponse",
    "RevokeAllSessionsResponse",
]
