"""Tests for listing and revoking CLI sessions."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from httpx import AsyncClient

from deviceauth.exceptions import CodeNotFoundError, SessionNotFoundError
from deviceauth.services import cli_sessions, device_auth

pytestmark = pytest.mark.asyncio(loop_scope="session")


async def _login(store, user) -> str:
    """Run the device flow for `user` and return the CLI session token."""
    init = await device_auth.initiate("http://test")
    await device_auth.verify(user, init.user_code)
    return store.code_row(init.device_code)["cli_session_id"]


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def test_list_sessions_oldest_first(store, test_user):
    first = await _login(store, test_user)
    second = await _login(store, test_user)
    store.sessions[first]["created_at"] -= timedelta(minutes=5)

    sessions = await cli_sessions.list_sessions(test_user.id)

    assert [s.id for s in sessions] == [first, second]


async def test_list_sessions_excludes_expired(store, test_user):
    live = await _login(store, test_user)
    stale = await _login(store, test_user)
    store.sessions[stale]["not_after"] = datetime.now(UTC) - timedelta(seconds=1)

    sessions = await cli_sessions.list_sessions(test_user.id)

    assert [s.id for s in sessions] == [live]


async def test_list_sessions_is_per_user(async_client: AsyncClient, store, test_user, second_user):
    mine = await _login(store, test_user)
    await _login(store, second_user)

    res = await async_client.get("/api/cli/sessions", headers=_bearer(mine))

    assert res.status_code == 200
    data = res.json()
    assert [s["id"] for s in data] == [mine]
    assert set(data[0]) == {"id", "createdAt", "updatedAt", "notAfter"}


async def test_list_sessions_with_browser_cookie(async_client: AsyncClient, store, test_user, session_cookie):
    token = await _login(store, test_user)

    res = await async_client.get("/api/cli/sessions", cookies=session_cookie)

    assert res.status_code == 200
    assert [s["id"] for s in res.json()] == [token]


async def test_list_sessions_requires_auth(async_client: AsyncClient, store):
    res = await async_client.get("/api/cli/sessions")

    assert res.status_code == 401


async def test_revoke_own_session(async_client: AsyncClient, store, test_user, session_cookie):
    token = await _login(store, test_user)

    res = await async_client.post(
        "/api/cli/sessions/revoke",
        json={"sessionId": token},
        cookies=session_cookie,
    )

    assert res.status_code == 200
    assert res.json()["success"] is True
    assert token not in store.sessions

    # The revoked token no longer authenticates
    res = await async_client.get("/auth/me", headers=_bearer(token))
    assert res.status_code == 401


async def test_revoke_other_users_session_is_not_found(async_client: AsyncClient, store, test_user, second_user):
    mine = await _login(store, test_user)
    theirs = await _login(store, second_user)

    res = await async_client.post(
        "/api/cli/sessions/revoke",
        json={"sessionId": theirs},
        headers=_bearer(mine),
    )

    assert res.status_code == 404
    assert res.json()["error"] == "SESSION_NOT_FOUND"
    assert theirs in store.sessions


async def test_revoke_unknown_session(store, test_user):
    with pytest.raises(SessionNotFoundError):
        await cli_sessions.revoke_session(test_user.id, "no-such-session")


async def test_revoke_all_sessions(async_client: AsyncClient, store, test_user, second_user):
    tokens = [await _login(store, test_user) for _ in range(3)]
    theirs = await _login(store, second_user)

    res = await async_client.post("/api/cli/sessions/revoke-all", headers=_bearer(tokens[0]))

    assert res.status_code == 200
    assert res.json() == {"success": True, "revokedCount": 3}
    assert list(store.sessions) == [theirs]


async def test_revoke_all_with_none(store, test_user):
    assert await cli_sessions.revoke_all_sessions(test_user.id) == 0


async def test_revoke_cascades_to_device_code(store, test_user):
    init = await device_auth.initiate("http://test")
    await device_auth.verify(test_user, init.user_code)
    token = store.code_row(init.device_code)["cli_session_id"]

    await cli_sessions.revoke_session(test_user.id, token)

    assert await store.get_by_device_code(None, init.device_code) is None
    with pytest.raises(CodeNotFoundError):
        await device_auth.poll(init.device_code)


async def test_authenticate_touches_updated_at(store, test_user):
    token = await _login(store, test_user)
    store.sessions[token]["updated_at"] -= timedelta(hours=1)
    before = store.sessions[token]["updated_at"]

    session = await cli_sessions.authenticate(token)

    assert session is not None
    assert session.user_id == test_user.id
    assert store.sessions[token]["updated_at"] > before


async def test_authenticate_rejects_expired_token(store, test_user):
    token = await _login(store, test_user)
    store.sessions[token]["not_after"] = datetime.now(UTC) - timedelta(seconds=1)

    assert await cli_sessions.authenticate(token) is None


async def test_me_with_expired_bearer(async_client: AsyncClient, store, test_user):
    token = await _login(store, test_user)
    store.sessions[token]["not_after"] = datetime.now(UTC) - timedelta(days=1)

    res = await async_client.get("/auth/me", headers=_bearer(token))

    assert res.status_code == 401


async def test_me_with_cookie(async_client: AsyncClient, store, test_user, session_cookie):
    res = await async_client.get("/auth/me", cookies=session_cookie)

    assert res.status_code == 200
    assert res.json() == {"id": str(test_user.id), "email": test_user.email, "name": "Test User"}


async def test_health(async_client: AsyncClient):
    res = await async_client.get("/health")

    assert res.status_code == 200
    assert res.json() == {"status": "ok"}
