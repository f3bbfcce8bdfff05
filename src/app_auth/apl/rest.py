"""Auth store backed by a remote REST auth service."""
from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from app_auth.apl.base import (
    AuthStore,
    AuthStoreConfigurationError,
    AuthStoreError,
    AuthStoreRequestError,
    ProbeResult,
)
from app_auth.apl.record import AuthRecord

logger = logging.getLogger(__name__)


class RestAuthStore(AuthStore):
    """REST :class:`~app_auth.apl.base.AuthStore`.

    Records live under ``{resource_url}/{quoted api_url}``. Every request
    carries ``Authorization: Bearer {token}``.

    A store built without a URL or token can still be probed:
    :meth:`is_configured` reports what is missing, and every data operation
    raises :class:`~app_auth.apl.base.AuthStoreConfigurationError`.

    Parameters
    ----------
    resource_url:
        Base URL of the auth collection.
    token:
        Service token for the REST backend.
    timeout:
        Per-request timeout in seconds.
    client:
        Optional shared ``httpx.AsyncClient``. When omitted a short-lived
        client is opened for each call.
    """

    def __init__(
        self,
        resource_url: Optional[str],
        token: Optional[str],
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._resource_url = (resource_url or "").rstrip("/")
        self._token = token or ""
        self._timeout = timeout
        self._client = client

    # ------------------------------------------------------------------
    # AuthStore interface
    # ------------------------------------------------------------------

    async def get(self, api_url: str) -> Optional[AuthRecord]:
        response = await self._request("GET", self._record_url(api_url))
        if response.status_code == 404:
            return None
        raise_for_status(response)
        return parse_record(read_json(response), source=self._resource_url)

    async def set(self, record: AuthRecord) -> None:
        response = await self._request("POST", self._resource_url, json=record.to_wire())
        raise_for_status(response)
        logger.debug("Stored auth data for %s at %s", record.api_url, self._resource_url)

    async def delete(self, api_url: str) -> None:
        response = await self._request("DELETE", self._record_url(api_url))
        if response.status_code == 404:
            return
        raise_for_status(response)

    async def get_all(self) -> list[AuthRecord]:
        response = await self._request("GET", self._resource_url)
        raise_for_status(response)
        payload: Any = read_json(response)
        if isinstance(payload, dict):
            payload = payload.get("results", [])
        if not isinstance(payload, list):
            raise AuthStoreError(f"{self._resource_url} did not return a list of records")
        return [parse_record(item, source=self._resource_url) for item in payload]

    # ------------------------------------------------------------------
    # Optional probes
    # ------------------------------------------------------------------

    async def is_ready(self) -> ProbeResult:
        return await self.is_configured()

    async def is_configured(self) -> ProbeResult:
        """Configured when both the collection URL and the token are set."""
        missing = [
            name
            for name, value in (("resource_url", self._resource_url), ("token", self._token))
            if not value
        ]
        if missing:
            return ProbeResult(
                ok=False, error=f"REST auth store is missing: {', '.join(missing)}"
            )
        return ProbeResult(ok=True)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _record_url(self, api_url: str) -> str:
        return f"{self._resource_url}/{quote(api_url, safe='')}"

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if not self._resource_url or not self._token:
            raise AuthStoreConfigurationError(
                "RestAuthStore requires both resource_url and token"
            )
        return await bearer_request(
            method, url, self._token, client=self._client, timeout=self._timeout, **kwargs
        )


# ---------------------------------------------------------------------------
# Shared HTTP helpers
# ---------------------------------------------------------------------------


async def bearer_request(
    method: str,
    url: str,
    token: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = 10.0,
    **kwargs: Any,
) -> httpx.Response:
    """Send one request with a bearer token.

    Transport failures (refused connections, timeouts) are raised as
    :class:`~app_auth.apl.base.AuthStoreError`.
    """
    headers = {"Authorization": f"Bearer {token}"}
    try:
        if client is not None:
            return await client.request(method, url, headers=headers, **kwargs)
        async with httpx.AsyncClient(timeout=timeout) as owned:
            return await owned.request(method, url, headers=headers, **kwargs)
    except httpx.RequestError as exc:
        logger.error("Auth store connection error on %s %s: %s", method, url, exc)
        raise AuthStoreError(f"{method} {url} failed: {exc}") from exc


def raise_for_status(response: httpx.Response) -> None:
    """Raise :class:`AuthStoreRequestError` for a non-2xx *response*."""
    if response.is_success:
        return
    logger.error(
        "Auth store request %s %s returned %d",
        response.request.method,
        response.request.url,
        response.status_code,
    )
    raise AuthStoreRequestError(
        response.request.method, str(response.request.url), response.status_code
    )


def read_json(response: httpx.Response) -> Any:
    """Decode a JSON response body, raising :class:`AuthStoreError` if it is not JSON."""
    try:
        return response.json()
    except ValueError as exc:
        raise AuthStoreError(
            f"{response.request.method} {response.request.url} returned invalid JSON"
        ) from exc


def parse_record(data: Any, source: str) -> AuthRecord:
    """Validate one wire-shape record received from *source*."""
    try:
        return AuthRecord.model_validate(data)
    except ValidationError as exc:
        raise AuthStoreError(f"{source} returned a malformed auth record: {exc}") from exc
