"""webhooks — request-side helpers shared by webhook handlers."""
from __future__ import annotations

from app_auth.webhooks.resolve import (
    API_URL_HEADER,
    WebhookAuthResult,
    WebhookAuthStatus,
    header_value,
    resolve_webhook_auth,
)

__all__ = [
    "API_URL_HEADER",
    "WebhookAuthResult",
    "WebhookAuthStatus",
    "header_value",
    "resolve_webhook_auth",
]
