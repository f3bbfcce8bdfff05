"""Resolve the auth record for an inbound webhook request.

Every webhook handler starts the same way: read the platform's API URL from
the request headers, canonicalize it, and fetch the installation's auth
record. :func:`resolve_webhook_auth` performs those steps and reports which
of them failed, so handlers can map the outcome straight onto an HTTP
response.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app_auth.apl import AuthRecord, AuthStore, normalize_api_url

logger = logging.getLogger(__name__)

API_URL_HEADER = "saleor-api-url"


class WebhookAuthStatus(str, Enum):
    """Outcome of resolving webhook auth, with its HTTP status code."""

    OK = "ok"
    MISSING_API_URL = "missing_api_url"
    NOT_REGISTERED = "not_registered"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    WebhookAuthStatus.OK: 200,
    WebhookAuthStatus.MISSING_API_URL: 400,
    WebhookAuthStatus.NOT_REGISTERED: 401,
}


@dataclass
class WebhookAuthResult:
    """Result of :func:`resolve_webhook_auth`.

    Parameters
    ----------
    status:
        What happened.
    api_url:
        The canonical API URL taken from the headers, if any.
    record:
        The installation's auth record when ``status`` is ``OK``.
    error:
        Message suitable for the response body when resolution failed.
    """

    status: WebhookAuthStatus
    api_url: Optional[str] = None
    record: Optional[AuthRecord] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is WebhookAuthStatus.OK


def header_value(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


async def resolve_webhook_auth(
    headers: Mapping[str, str], store: AuthStore
) -> WebhookAuthResult:
    """Look up the auth record for the platform instance that sent *headers*.

    *store* should be an :class:`~app_auth.apl.HttpsEnforcingAuthStore` so
    that scheme mismatches between registration and delivery are absorbed.
    Backing-store errors propagate.
    """
    api_url = normalize_api_url(header_value(headers, API_URL_HEADER))
    if api_url is None:
        logger.error("Missing %s header", API_URL_HEADER)
        return WebhookAuthResult(
            status=WebhookAuthStatus.MISSING_API_URL,
            error="Missing Saleor API URL",
        )

    record = await store.get(api_url)
    if record is None:
        logger.error("App not registered for %s", api_url)
        return WebhookAuthResult(
            status=WebhookAuthStatus.NOT_REGISTERED,
            api_url=api_url,
            error="App not registered",
        )

    logger.info("Authentication successful (app_id=%s, api_url=%s)", record.app_id, record.api_url)
    return WebhookAuthResult(status=WebhookAuthStatus.OK, api_url=api_url, record=record)
