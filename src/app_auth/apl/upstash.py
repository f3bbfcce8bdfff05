"""Auth store backed by an Upstash Redis database over its REST API.

Each record is one Redis string: the key is the record's ``api_url`` and the
value is the record's wire-shape JSON. Commands are sent as a JSON array in
the body of a ``POST`` to the database's REST URL, for example
``["GET", "https://shop.example.com/graphql/"]``, and the reply carries
either ``{"result": ...}`` or ``{"error": "..."}``.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx

from app_auth.apl.base import (
    AuthStore,
    AuthStoreConfigurationError,
    AuthStoreError,
    ProbeResult,
)
from app_auth.apl.record import AuthRecord
from app_auth.apl.rest import bearer_request, parse_record, raise_for_status, read_json

logger = logging.getLogger(__name__)


class UpstashAuthStore(AuthStore):
    """Upstash Redis :class:`~app_auth.apl.base.AuthStore`.

    Parameters
    ----------
    rest_url:
        The database's REST URL (``UPSTASH_URL``).
    token:
        The database's REST token (``UPSTASH_TOKEN``).
    timeout:
        Per-request timeout in seconds.
    client:
        Optional shared ``httpx.AsyncClient``.
    """

    def __init__(
        self,
        rest_url: Optional[str],
        token: Optional[str],
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._rest_url = (rest_url or "").rstrip("/")
        self._token = token or ""
        self._timeout = timeout
        self._client = client

    # ------------------------------------------------------------------
    # AuthStore interface
    # ------------------------------------------------------------------

    async def get(self, api_url: str) -> Optional[AuthRecord]:
        value = await self._command("GET", api_url)
        if value is None:
            return None
        return self._decode(value)

    async def set(self, record: AuthRecord) -> None:
        await self._command("SET", record.api_url, json.dumps(record.to_wire()))
        logger.debug("Stored auth data for %s in Upstash", record.api_url)

    async def delete(self, api_url: str) -> None:
        await self._command("DEL", api_url)

    async def get_all(self) -> list[AuthRecord]:
        keys = await self._command("KEYS", "*")
        if not keys:
            return []
        values = await self._command("MGET", *keys)
        return [self._decode(value) for value in values if value is not None]

    # ------------------------------------------------------------------
    # Optional probes
    # ------------------------------------------------------------------

    async def is_ready(self) -> ProbeResult:
        return await self.is_configured()

    async def is_configured(self) -> ProbeResult:
        if not self._rest_url or not self._token:
            return ProbeResult(
                ok=False,
                error="Upstash auth store requires UPSTASH_URL and UPSTASH_TOKEN",
            )
        return ProbeResult(ok=True)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _command(self, *args: str) -> Any:
        if not self._rest_url or not self._token:
            raise AuthStoreConfigurationError(
                "UpstashAuthStore requires both rest_url and token"
            )
        response = await bearer_request(
            "POST",
            self._rest_url,
            self._token,
            client=self._client,
            timeout=self._timeout,
            json=list(args),
        )
        raise_for_status(response)
        payload = read_json(response)
        if not isinstance(payload, dict):
            raise AuthStoreError(f"Upstash returned an unexpected reply to {args[0]}")
        if payload.get("error"):
            logger.error("Upstash %s failed: %s", args[0], payload["error"])
            raise AuthStoreError(f"Upstash {args[0]} failed: {payload['error']}")
        return payload.get("result")

    def _decode(self, value: str) -> AuthRecord:
        try:
            data = json.loads(value)
        except (TypeError, json.JSONDecodeError) as exc:
            raise AuthStoreError(f"Upstash holds a value that is not JSON: {exc}") from exc
        return parse_record(data, source="Upstash")
