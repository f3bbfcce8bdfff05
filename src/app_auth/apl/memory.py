"""In-memory auth store.

Keeps records in a dict keyed by the exact ``api_url`` they were stored
under. Useful for tests and single-process development; it exposes neither
optional probe.
"""
from __future__ import annotations

from typing import Optional

from app_auth.apl.base import AuthStore
from app_auth.apl.record import AuthRecord


class MemoryAuthStore(AuthStore):
    """Dict-backed :class:`~app_auth.apl.base.AuthStore`.

    Storing a second record for the same URL silently replaces the first.
    """

    def __init__(self, records: Optional[list[AuthRecord]] = None) -> None:
        self._records: dict[str, AuthRecord] = {}
        for record in records or []:
            self._records[record.api_url] = record

    async def get(self, api_url: str) -> Optional[AuthRecord]:
        return self._records.get(api_url)

    async def set(self, record: AuthRecord) -> None:
        self._records[record.api_url] = record

    async def delete(self, api_url: str) -> None:
        self._records.pop(api_url, None)

    async def get_all(self) -> list[AuthRecord]:
        return list(self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, api_url: object) -> bool:
        return api_url in self._records
