"""File-backed auth store.

FileAuthStore persists records as a JSON array in the platform's wire shape
(``appId``, ``saleorApiUrl``, ``token``, ``jwks``). It is meant for local
development and single-instance deployments. File reads and writes run in a
worker thread so the event loop stays free, and an ``asyncio.Lock`` keeps
each load-modify-save cycle whole within one process. Concurrent writers
from several processes are not coordinated.
"""
from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from app_auth.apl.base import AuthStore, AuthStoreError, ProbeResult
from app_auth.apl.record import AuthRecord

logger = logging.getLogger(__name__)


class FileAuthStore(AuthStore):
    """JSON-file :class:`~app_auth.apl.base.AuthStore`.

    Parameters
    ----------
    path:
        Location of the JSON file. It is created on the first write; a
        missing file reads as an empty store.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # AuthStore interface
    # ------------------------------------------------------------------

    async def get(self, api_url: str) -> Optional[AuthRecord]:
        for record in await self._read():
            if record.api_url == api_url:
                return record
        return None

    async def set(self, record: AuthRecord) -> None:
        async with self._lock:
            loaded = await asyncio.to_thread(self._load)
            records = [r for r in loaded if r.api_url != record.api_url]
            records.append(record)
            await asyncio.to_thread(self._save, records)
        logger.debug("Stored auth data for %s in %s", record.api_url, self._path)

    async def delete(self, api_url: str) -> None:
        async with self._lock:
            records = await asyncio.to_thread(self._load)
            remaining = [r for r in records if r.api_url != api_url]
            if len(remaining) == len(records):
                return
            await asyncio.to_thread(self._save, remaining)
        logger.debug("Removed auth data for %s from %s", api_url, self._path)

    async def get_all(self) -> list[AuthRecord]:
        return await self._read()

    # ------------------------------------------------------------------
    # Optional probes
    # ------------------------------------------------------------------

    async def is_ready(self) -> ProbeResult:
        """Ready when the file is absent or holds a readable record list."""
        try:
            await self._read()
        except AuthStoreError as exc:
            return ProbeResult(ok=False, error=str(exc))
        return ProbeResult(ok=True)

    async def is_configured(self) -> ProbeResult:
        """Configured when the parent directory exists or can be created."""
        parent = self._path.parent
        if parent.is_dir():
            return ProbeResult(ok=True)
        if parent.exists():
            return ProbeResult(ok=False, error=f"{parent} is not a directory")
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            return ProbeResult(ok=False, error=str(exc))
        return ProbeResult(ok=True)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _read(self) -> list[AuthRecord]:
        async with self._lock:
            return await asyncio.to_thread(self._load)

    def _load(self) -> list[AuthRecord]:
        if not self._path.exists():
            return []
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8") or "[]")
        except json.JSONDecodeError as exc:
            raise AuthStoreError(f"{self._path} is not valid JSON: {exc}") from exc
        # Older files hold a single object rather than a list.
        if isinstance(raw, dict):
            raw = [raw]
        if not isinstance(raw, list):
            raise AuthStoreError(f"{self._path} does not contain a list of records")
        try:
            return [AuthRecord.model_validate(item) for item in raw]
        except ValidationError as exc:
            raise AuthStoreError(f"{self._path} holds a malformed record: {exc}") from exc

    def _save(self, records: list[AuthRecord]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = [record.to_wire() for record in records]
        self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
