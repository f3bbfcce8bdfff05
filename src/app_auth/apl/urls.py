"""Endpoint URL canonicalization.

The host platform identifies each installation by its GraphQL API URL.
Registration and webhook delivery have historically disagreed on the
scheme, so the canonical form of a URL always uses ``https://``. Only the
leading scheme marker is ever rewritten; path, query and trailing slash are
left untouched.
"""
from __future__ import annotations

from typing import Optional

SECURE_SCHEME = "https://"
INSECURE_SCHEME = "http://"


def canonicalize(api_url: str) -> str:
    """Return *api_url* with a leading ``http://`` replaced by ``https://``.

    Any other string, including one that already uses ``https://`` or has
    no recognised scheme, is returned unchanged.
    """
    if api_url.startswith(INSECURE_SCHEME):
        return SECURE_SCHEME + api_url[len(INSECURE_SCHEME):]
    return api_url


def to_insecure(api_url: str) -> str:
    """Return *api_url* with a leading ``https://`` replaced by ``http://``."""
    if api_url.startswith(SECURE_SCHEME):
        return INSECURE_SCHEME + api_url[len(SECURE_SCHEME):]
    return api_url


def normalize_api_url(value: Optional[str]) -> Optional[str]:
    """Canonicalize an API URL taken from a request header.

    Returns ``None`` when the header was absent or blank.
    """
    stripped = value.strip() if value else ""
    if not stripped:
        return None
    return canonicalize(stripped)
