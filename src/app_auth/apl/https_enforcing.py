"""HttpsEnforcingAuthStore — scheme-tolerant wrapper around any AuthStore.

Installations are registered with one scheme and webhooks sometimes arrive
with the other, which made plain lookups miss. This wrapper treats the
scheme as insignificant:

- reads try the ``https://`` form, then the ``http://`` form, then the URL
  exactly as given, stopping at the first hit;
- writes always persist the ``https://`` form;
- deletes remove both the ``https://`` form and the URL as given;
- every record handed back to the caller carries the ``https://`` form.

The wrapper holds no state of its own. Errors raised by the wrapped store
propagate unchanged, except from :meth:`HttpsEnforcingAuthStore.delete`,
which waits for both removals to settle and does not raise.

Example
-------
::

    from app_auth.apl import HttpsEnforcingAuthStore, MemoryAuthStore

    store = HttpsEnforcingAuthStore(MemoryAuthStore())
    await store.set(record)            # stored under https://
    await store.get("http://x/graphql/")
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from app_auth.apl.base import AuthStore, ProbeResult
from app_auth.apl.record import AuthRecord
from app_auth.apl.urls import canonicalize, to_insecure

logger = logging.getLogger(__name__)


class HttpsEnforcingAuthStore(AuthStore):
    """Wrap *base* so that stored and returned URLs always use ``https://``.

    Parameters
    ----------
    base:
        The backing store. Only the four :class:`AuthStore` operations are
        required; ``is_ready`` and ``is_configured`` are forwarded when the
        backing store defines them.
    """

    def __init__(self, base: AuthStore) -> None:
        self._base = base

    @property
    def base(self) -> AuthStore:
        return self._base

    # ------------------------------------------------------------------
    # AuthStore interface
    # ------------------------------------------------------------------

    async def get(self, api_url: str) -> Optional[AuthRecord]:
        """Return the record for *api_url* under any scheme variant.

        Candidates are queried in the order https form, http form, original
        string. At most three backing-store reads are made.
        """
        candidates = (canonicalize(api_url), to_insecure(api_url), api_url)

        record: Optional[AuthRecord] = None
        for candidate in candidates:
            record = await self._base.get(candidate)
            if record is not None:
                break

        if record is None:
            logger.warning(
                "APL authentication data not found (requested_url=%s)",
                api_url,
                extra={"requested_url": api_url},
            )
            return None

        return record.with_canonical_url()

    async def set(self, record: AuthRecord) -> None:
        await self._base.set(record.with_canonical_url())

    async def delete(self, api_url: str) -> None:
        """Remove *api_url* in both its https form and as given.

        Both removals run concurrently; the call returns once both have
        finished, whether or not either target existed or failed.
        """
        targets = (canonicalize(api_url), api_url)
        outcomes = await asyncio.gather(
            *(self._base.delete(target) for target in targets),
            return_exceptions=True,
        )
        for target, outcome in zip(targets, outcomes):
            if isinstance(outcome, BaseException):
                logger.debug("Delete of %s settled with error: %s", target, outcome)

    async def get_all(self) -> list[AuthRecord]:
        records = await self._base.get_all()
        return [record.with_canonical_url() for record in records]

    # ------------------------------------------------------------------
    # Optional probes
    # ------------------------------------------------------------------

    async def is_ready(self) -> ProbeResult:
        probe = getattr(self._base, "is_ready", None)
        if callable(probe):
            return await probe()
        return ProbeResult(ok=True)

    async def is_configured(self) -> ProbeResult:
        probe = getattr(self._base, "is_configured", None)
        if callable(probe):
            return await probe()
        return ProbeResult(ok=True)
