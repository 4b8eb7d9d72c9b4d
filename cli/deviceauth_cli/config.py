"""
Configuration management for the device auth CLI.

Multi-environment support:
  The CLI stores separate credentials per server URL, so you can be
  logged into production and local dev at the same time.

  Config structure:
  {
    "environments": {
      "https://auth.example.com": {
        "token": "<session token>",
        "email": "user@example.com",
        "expires_at": "2027-01-17T10:00:00Z"
      }
    },
    "default_url": "https://auth.example.com"
  }

Server URL resolution order:
  1. DEVICEAUTH_API_URL environment variable
  2. --api-url command line flag
  3. default_url from config file
  4. Fallback: http://localhost:8000
"""

from __future__ import annotations

import json
import os
from pathlib import Path

DEFAULT_API_URL = "http://localhost:8000"


class Config:
    """Config manager for the CLI with per-server credentials."""

    def __init__(self, api_url_override: str | None = None, config_dir: Path | None = None):
        """
        Initialize config.

        Args:
            api_url_override: Optional --api-url flag value
            config_dir: Directory holding config.json (default ~/.deviceauth)
        """
        self.config_dir = config_dir or Path.home() / ".deviceauth"
        self.config_file = self.config_dir / "config.json"
        self._data = {}
        self._api_url_override = api_url_override
        self._load()

    def _load(self):
        """Load config from disk. A corrupt file is treated as empty."""
        if self.config_file.exists():
            try:
                with open(self.config_file) as f:
                    self._data = json.load(f)
            except (OSError, json.JSONDecodeError):
                self._data = {}

        if "environments" not in self._data:
            self._data["environments"] = {}

    def _save(self):
        """Save config to disk, readable by the owner only."""
        self.config_dir.mkdir(parents=True, exist_ok=True)

        with open(self.config_file, "w") as f:
            json.dump(self._data, f, indent=2)

        self.config_file.chmod(0o600)

    @property
    def api_url(self) -> str:
        """Get current server URL."""
        env_url = os.environ.get("DEVICEAUTH_API_URL")
        if env_url:
            return env_url.rstrip("/")

        if self._api_url_override:
            return self._api_url_override.rstrip("/")

        return self._data.get("default_url", DEFAULT_API_URL).rstrip("/")

    def _get_env(self) -> dict:
        return self._data["environments"].get(self.api_url, {})

    def _set_env(self, key: str, value):
        self._data["environments"].setdefault(self.api_url, {})[key] = value
        self._save()

    @property
    def token(self) -> str | None:
        """Session token for the current server."""
        return self._get_env().get("token")

    @token.setter
    def token(self, value: str):
        self._set_env("token", value)

    @property
    def email(self) -> str | None:
        return self._get_env().get("email")

    @email.setter
    def email(self, value: str | None):
        self._set_env("email", value)

    @property
    def expires_at(self) -> str | None:
        """ISO timestamp after which the server rejects the token."""
        return self._get_env().get("expires_at")

    @expires_at.setter
    def expires_at(self, value: str | None):
        self._set_env("expires_at", value)

    @property
    def is_authenticated(self) -> bool:
        """Check if a token is stored for the current server."""
        return bool(self.token)

    def clear_environment(self, url: str | None = None):
        """
        Clear credentials for one server.

        Args:
            url: Server URL to clear. If None, clears the current server.
        """
        target_url = (url or self.api_url).rstrip("/")
        if target_url in self._data["environments"]:
            del self._data["environments"][target_url]
            self._save()

    def clear_all(self):
        """Clear all credentials and delete config file."""
        self._data = {"environments": {}}
        if self.config_file.exists():
            self.config_file.unlink()

    def list_environments(self) -> list[dict]:
        """
        List all servers with a stored token.

        Returns:
            List of dicts with url, email, token, is_current keys.
        """
        current = self.api_url
        return [
            {
                "url": url,
                "email": env.get("email"),
                "token": env["token"],
                "is_current": url == current,
            }
            for url, env in self._data.get("environments", {}).items()
            if env.get("token")
        ]
