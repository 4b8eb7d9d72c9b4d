"""Public URL resolution for links handed to the CLI."""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import quote

from deviceauth import config


def _first(value: str | None) -> str:
    # Proxies append to forwarded headers; the client-facing value comes first
    return value.split(",")[0].strip() if value else ""


def resolve_base_url(headers: Mapping[str, str], scheme: str = "http") -> str:
    """
    Work out the origin the user's browser should be sent to.

    Resolution order:
    1. PUBLIC_URL setting
    2. X-Forwarded-Host (+ X-Forwarded-Proto, default https)
    3. Host header with the request's own scheme
    4. FALLBACK_URL

    Args:
        headers: Request headers (case-insensitive mapping)
        scheme: Scheme the request arrived on

    Returns:
        Origin without trailing slash, e.g. "https://example.com"
    """
    public_url = config.settings.PUBLIC_URL
    if public_url:
        return public_url

    forwarded_host = _first(headers.get("x-forwarded-host"))
    if forwarded_host:
        proto = _first(headers.get("x-forwarded-proto")) or "https"
        return f"{proto}://{forwarded_host}"

    host = _first(headers.get("host"))
    if host:
        return f"{scheme}://{host}"

    return config.settings.FALLBACK_URL


def verification_uris(base_url: str, formatted_user_code: str) -> tuple[str, str]:
    """Return (verification_uri, verification_uri_complete) for a user code."""
    verification_uri = f"{base_url.rstrip('/')}{config.settings.VERIFICATION_PATH}"
    complete = f"{verification_uri}?user_code={quote(formatted_user_code, safe='')}"
    return verification_uri, complete
