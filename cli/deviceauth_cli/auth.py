"""Authentication commands for the device auth CLI."""
from __future__ import annotations

import sys
import time
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from deviceauth_cli.client import ApiClient, ApiError
from deviceauth_cli.config import Config

DEFAULT_POLL_INTERVAL_SECONDS = 5
MAX_POLL_INTERVAL_SECONDS = 30.0
MAX_POLL_ATTEMPTS = 180  # 15 minutes at 5s intervals
MAX_CONSECUTIVE_ERRORS = 5
BACKOFF_MULTIPLIER = 1.5
SESSION_ID_DISPLAY_CHARS = 8  # session ids are bearer tokens; only a prefix is ever printed


class DeviceAuthError(Exception):
    """Device flow failed in a way polling again will not fix."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code


@dataclass
class PollState:
    """Polling interval and error bookkeeping for one login attempt."""

    base_interval: float
    interval: float
    attempts: int = 0
    consecutive_errors: int = 0

    @classmethod
    def from_interval(cls, interval: int | None) -> PollState:
        base = float(interval or DEFAULT_POLL_INTERVAL_SECONDS)
        return cls(base_interval=base, interval=base)

    def reset(self):
        """A poll got through: back to the advertised interval."""
        self.interval = self.base_interval
        self.consecutive_errors = 0

    def slow_down(self):
        """Server said we poll too fast."""
        self.interval = min(self.interval * BACKOFF_MULTIPLIER, MAX_POLL_INTERVAL_SECONDS)

    def record_error(self):
        """Network or 5xx error: back off, give up after too many in a row."""
        self.consecutive_errors += 1
        if self.consecutive_errors >= MAX_CONSECUTIVE_ERRORS:
            raise DeviceAuthError(
                "Lost connection to server. Please check your network and try again.",
                "CONNECTION_ERROR",
            )
        self.interval = min(
            self.base_interval * BACKOFF_MULTIPLIER**self.consecutive_errors,
            MAX_POLL_INTERVAL_SECONDS,
        )


def _is_interactive() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def run_device_flow(
    client: ApiClient,
    open_browser: bool | None = None,
    sleep: Callable[[float], None] = time.sleep,
    max_attempts: int = MAX_POLL_ATTEMPTS,
) -> dict:
    """
    Run the device authorization flow until the user approves in the browser.

    1. Ask the server for a device code and user code
    2. Show the code and open the verification page
    3. Poll until the status is complete or expired

    Returns:
        The "complete" poll response (sessionToken, expiresAt, user)

    Raises:
        DeviceAuthError: If the flow fails, expires or times out
    """
    try:
        init = client.initiate()
    except ApiError as e:
        raise DeviceAuthError(f"Failed to initiate device auth: {e.message}", e.code) from e
    except httpx.HTTPError as e:
        raise DeviceAuthError(f"Could not reach {client.api_url}: {e}", "CONNECTION_ERROR") from e

    print("\nPlease authorize this device:\n")
    print(f"   Visit: {init['verificationUri']}")
    print(f"   Enter code: {init['userCode']}\n")
    print(f"   Or open directly: {init['verificationUriComplete']}\n")

    if open_browser is None:
        open_browser = _is_interactive()
    if open_browser:
        try:
            webbrowser.open(init["verificationUriComplete"])
        except webbrowser.Error:
            print("   Could not open browser automatically. Please visit the URL above.\n")

    device_code = init["deviceCode"]
    state = PollState.from_interval(init.get("interval"))

    print("Waiting for authorization...", end="", flush=True)

    while state.attempts < max_attempts:
        sleep(state.interval)
        state.attempts += 1

        try:
            res = client.poll(device_code)
        except ApiError as e:
            if e.status_code == 429:
                state.slow_down()
                continue
            if e.status_code == 404:
                print(" failed")
                raise DeviceAuthError("Invalid device code.", e.code) from e
            if 400 <= e.status_code < 500:
                print(" failed")
                raise DeviceAuthError(f"Server rejected request: {e.message}", e.code) from e
            state.record_error()
            continue
        except httpx.HTTPError:
            state.record_error()
            continue

        state.reset()
        status = res.get("status")

        if status == "complete":
            if not res.get("sessionToken"):
                raise DeviceAuthError("Authentication completed but no session token received.", "POLL_ERROR")
            print(" done")
            return res

        if status == "expired":
            print(" expired")
            raise DeviceAuthError("Device code expired. Please try again.", "CODE_EXPIRED")

        print(".", end="", flush=True)

    print(" timeout")
    raise DeviceAuthError("Authorization timed out. Please try again.", "TIMEOUT")


def login(
    config: Config,
    open_browser: bool | None = None,
    transport: httpx.BaseTransport | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """
    Perform device authorization flow and store the session token.

    Returns True if successful, False otherwise.
    """
    client = ApiClient(config.api_url, transport=transport)

    try:
        result = run_device_flow(client, open_browser=open_browser, sleep=sleep)
    except DeviceAuthError as e:
        print(f"\nLogin failed: {e}")
        return False
    except KeyboardInterrupt:
        print("\nLogin cancelled.")
        return False
    finally:
        client.close()

    user = result.get("user") or {}
    config.token = result["sessionToken"]
    config.expires_at = result.get("expiresAt")
    config.email = user.get("email")

    print(f"Authenticated as {user.get('email') or 'unknown'}")
    print(f"Token saved to {config.config_file}")
    return True


def logout(config: Config, logout_all: bool = False, transport: httpx.BaseTransport | None = None) -> bool:
    """
    Revoke the stored session(s) on the server and clear local credentials.

    Server-side revocation is best-effort: local credentials are cleared
    even if the server cannot be reached.

    Args:
        config: Config instance
        logout_all: If True, log out of every stored server. If False, only current.

    Returns True if successful, False otherwise.
    """
    if logout_all:
        envs = config.list_environments()
        if not envs:
            print("No authenticated environments.")
            return True

        for env in envs:
            print(f"  Logging out of {env['url']} ({env.get('email') or 'unknown'})")
            _revoke_remote(env["url"], env["token"], transport)

        config.clear_all()
        print("Logged out of all environments.")
        return True

    if not config.is_authenticated:
        print(f"Not logged in to {config.api_url}")
        return False

    email = config.email or "unknown"
    _revoke_remote(config.api_url, config.token, transport)
    config.clear_environment()
    print(f"Logged out of {config.api_url} ({email})")
    return True


def _revoke_remote(api_url: str, token: str, transport: httpx.BaseTransport | None) -> None:
    client = ApiClient(api_url, token=token, transport=transport)
    try:
        client.revoke_session(token)
    except ApiError as e:
        # 401/404: already revoked or expired, nothing left to do
        if e.status_code not in (401, 404):
            print(f"  Warning: could not revoke session on server ({e.message})")
    except httpx.HTTPError as e:
        print(f"  Warning: could not reach {api_url} to revoke session ({e})")
    finally:
        client.close()


def status(config: Config, transport: httpx.BaseTransport | None = None) -> bool:
    """Check the stored token against the server. Returns True if it is valid."""
    if not config.is_authenticated:
        print(f"Not logged in to {config.api_url}")
        print("Run 'deviceauth login' first.")
        return False

    client = ApiClient(config.api_url, token=config.token, transport=transport)
    try:
        user = client.me()
    except ApiError as e:
        if e.status_code == 401:
            print("Session was revoked or expired on server.")
            print("Run 'deviceauth login' to sign in again.")
            return False
        print(f"Status check failed: {e.message}")
        return False
    except httpx.HTTPError as e:
        print(f"Could not reach {config.api_url}: {e}")
        return False
    finally:
        client.close()

    print(f"Logged in to {config.api_url} as {user['email']}")
    if config.expires_at:
        print(f"Session expires at {config.expires_at}")
    return True


def list_sessions(config: Config, transport: httpx.BaseTransport | None = None) -> bool:
    """Print the user's active CLI sessions. Returns True on success."""
    if not config.is_authenticated:
        print(f"Not logged in to {config.api_url}")
        return False

    client = ApiClient(config.api_url, token=config.token, transport=transport)
    try:
        sessions = client.list_sessions()
    except (ApiError, httpx.HTTPError) as e:
        print(f"Failed to fetch sessions: {e}")
        return False
    finally:
        client.close()

    if not sessions:
        print("No active CLI sessions found.")
        return True

    print(f"Active CLI sessions ({len(sessions)}):")
    for s in sessions:
        marker = "*" if s["id"] == config.token else " "
        print(f" {marker} {_short_id(s['id'])}  created {s['createdAt']}  expires {s['notAfter']}")
    print("\n* = this machine")
    return True


def _short_id(session_id: str) -> str:
    return session_id[:SESSION_ID_DISPLAY_CHARS]


def _resolve_session_id(client: ApiClient, prefix: str) -> str | None:
    """Expand an id prefix, as printed by `sessions`, to the one full session id it matches."""
    matches = [s["id"] for s in client.list_sessions() if s["id"].startswith(prefix)]
    if len(matches) > 1:
        print(f"Session id {prefix} is ambiguous; use more characters.")
        return None
    if not matches:
        print("Session not found.")
        return None
    return matches[0]


def revoke_session(
    config: Config,
    session_id: str | None = None,
    revoke_all: bool = False,
    transport: httpx.BaseTransport | None = None,
) -> bool:
    """
    Revoke one session by id (or the id prefix `sessions` shows), or all of
    the user's sessions.

    Revoking the session this machine uses also clears the local token.
    """
    if not config.is_authenticated:
        print(f"Not logged in to {config.api_url}")
        return False
    if not revoke_all and not session_id:
        print("Error: revoke-session requires a session id or --all")
        return False

    client = ApiClient(config.api_url, token=config.token, transport=transport)
    try:
        if revoke_all:
            res = client.revoke_all_sessions()
            print(f"Revoked {res['revokedCount']} session(s).")
        else:
            session_id = _resolve_session_id(client, session_id)
            if session_id is None:
                return False
            client.revoke_session(session_id)
            print("Session revoked.")
    except ApiError as e:
        if e.status_code == 404:
            print("Session not found.")
        else:
            print(f"Failed to revoke session: {e.message}")
        return False
    except httpx.HTTPError as e:
        print(f"Could not reach {config.api_url}: {e}")
        return False
    finally:
        client.close()

    if revoke_all or session_id == config.token:
        config.clear_environment()
        print("Local credentials cleared. Run 'deviceauth login' to sign in again.")
    return True
