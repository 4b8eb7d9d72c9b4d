"""
Device auth service configuration. All environment variables in one place.

Read from environment at runtime. Never hardcode secrets.
"""

from __future__ import annotations

import os


class Settings:
    """Application settings from environment variables."""

    # Database
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "")
    DB_POOL_MIN_SIZE: int = int(os.environ.get("DB_POOL_MIN_SIZE", "2"))
    DB_POOL_MAX_SIZE: int = int(os.environ.get("DB_POOL_MAX_SIZE", "20"))
    # Upper bound for any single statement; this is the request-scoped store timeout
    DB_COMMAND_TIMEOUT_SECONDS: float = float(os.environ.get("DB_COMMAND_TIMEOUT_SECONDS", "10"))

    # Browser sessions
    JWT_SECRET: str = os.environ.get("JWT_SECRET", "")
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_HOURS: int = 24

    # Device authorization
    DEVICE_CODE_EXPIRY_MINUTES: int = 15
    DEVICE_POLL_INTERVAL_SECONDS: int = 5
    DEVICE_POLL_GRACE_SECONDS: int = 1  # absorbs network jitter around the interval
    USER_CODE_LENGTH: int = 8
    VERIFICATION_PATH: str = os.environ.get("VERIFICATION_PATH", "/device")

    # CLI sessions
    CLI_SESSION_EXPIRY_DAYS: int = 90

    # Housekeeping
    DEVICE_CODE_RETENTION_HOURS: int = int(os.environ.get("DEVICE_CODE_RETENTION_HOURS", "24"))
    CLEANUP_INTERVAL_SECONDS: int = int(os.environ.get("CLEANUP_INTERVAL_SECONDS", "300"))

    # Application
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")
    FALLBACK_URL: str = "http://localhost:8000"

    @property
    def PUBLIC_URL(self) -> str:
        """Explicitly configured public origin, or empty to derive it from the request."""
        return os.environ.get("PUBLIC_URL", "").rstrip("/")

    @property
    def device_code_expiry_seconds(self) -> int:
        return self.DEVICE_CODE_EXPIRY_MINUTES * 60


# Singleton instance
settings = Settings()

if not settings.DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable is required")
if not settings.JWT_SECRET:
    raise RuntimeError("JWT_SECRET environment variable is required")
