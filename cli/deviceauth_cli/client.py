"""HTTP client for the device auth server."""
from __future__ import annotations

from typing import Any

import httpx


class ApiError(Exception):
    """Non-2xx response from the server."""

    def __init__(self, status_code: int, code: str | None, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


class ApiClient:
    """HTTP client for the device auth server."""

    def __init__(self, api_url: str, token: str | None = None, transport: httpx.BaseTransport | None = None):
        self.api_url = api_url.rstrip("/")
        self.token = token
        self.client = httpx.Client(timeout=30.0, transport=transport)

    def _headers(self) -> dict:
        """Build request headers."""
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _handle(self, res: httpx.Response) -> Any:
        if res.is_success:
            return res.json()

        code = None
        message = res.reason_phrase or f"HTTP {res.status_code}"
        try:
            body = res.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            code = body.get("error")
            if isinstance(body.get("detail"), str):
                message = body["detail"]
        raise ApiError(res.status_code, code, message)

    def get(self, path: str, params: dict | None = None) -> Any:
        """Make GET request."""
        res = self.client.get(f"{self.api_url}{path}", headers=self._headers(), params=params or {})
        return self._handle(res)

    def post(self, path: str, data: dict | None = None) -> Any:
        """Make POST request."""
        res = self.client.post(f"{self.api_url}{path}", json=data or {}, headers=self._headers())
        return self._handle(res)

    def initiate(self) -> dict:
        """Start a device authorization flow."""
        return self.post("/api/cli/auth/initiate")

    def poll(self, device_code: str) -> dict:
        """Poll a device code. Returns {"status": ...} plus token fields when complete."""
        return self.post("/api/cli/auth/poll", {"deviceCode": device_code})

    def me(self) -> dict:
        return self.get("/auth/me")

    def list_sessions(self) -> list[dict]:
        return self.get("/api/cli/sessions")

    def revoke_session(self, session_id: str) -> dict:
        return self.post("/api/cli/sessions/revoke", {"sessionId": session_id})

    def revoke_all_sessions(self) -> dict:
        return self.post("/api/cli/sessions/revoke-all")

    def close(self):
        """Close client."""
        self.client.close()
