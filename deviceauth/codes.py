"""Device codes, user codes and CLI session tokens."""

from __future__ import annotations

import secrets

# Uppercase letters and digits without the look-alikes 0/O, 1/I/L
USER_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"


def generate_device_code() -> str:
    """Generate an opaque device code for the CLI to poll with (256 bits)."""
    return secrets.token_urlsafe(32)


def generate_user_code(length: int = 8) -> str:
    """Generate a human-typeable user code, e.g. 'WDJB4K7M'."""
    return "".join(secrets.choice(USER_CODE_ALPHABET) for _ in range(length))


def format_user_code(user_code: str) -> str:
    """Format a stored user code for display: 'WDJBMJHT' -> 'WDJB-MJHT'."""
    return f"{user_code[:4]}-{user_code[4:]}"


def normalize_user_code(raw: str) -> str:
    """Turn whatever the user typed into the stored form (no dashes, no whitespace)."""
    return "".join(raw.split()).replace("-", "").upper()


def generate_session_token() -> str:
    """
    Generate a CLI session bearer token.

    32 bytes from the OS CSPRNG, base64url without padding (43 chars).
    The token is the session primary key and a secret; never log it.
    """
    return secrets.token_urlsafe(32)


def has_control_chars(value: str) -> bool:
    """True if value holds a character no issued code contains (NUL, other C0 controls, DEL)."""
    return any(ord(c) < 0x20 or c == "\x7f" for c in value)
