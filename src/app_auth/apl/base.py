"""Auth persistence layer — abstract storage contract.

AuthStore defines the four operations every backend must provide. Backends
may additionally expose ``is_ready()`` and ``is_configured()`` coroutines
returning a :class:`ProbeResult`; callers must treat both as optional and
detect them by attribute lookup.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from app_auth.apl.record import AuthRecord


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of a readiness or configuration probe.

    Parameters
    ----------
    ok:
        ``True`` when the backend reports itself ready (or configured).
    error:
        Human-readable reason when ``ok`` is ``False``.
    """

    ok: bool
    error: Optional[str] = None


class AuthStoreError(Exception):
    """Base class for errors raised by bundled AuthStore backends."""


class AuthStoreConfigurationError(AuthStoreError):
    """Raised when a backend is constructed with unusable settings."""


class AuthStoreRequestError(AuthStoreError):
    """Raised when a remote backend answers with an unexpected status."""

    def __init__(self, method: str, url: str, status_code: int) -> None:
        self.method = method
        self.url = url
        self.status_code = status_code
        super().__init__(f"{method} {url} failed with HTTP {status_code}")


class AuthStore(ABC):
    """Abstract base class for auth persistence backends."""

    @abstractmethod
    async def get(self, api_url: str) -> Optional[AuthRecord]:
        """Return the record stored under exactly *api_url*, or ``None``."""

    @abstractmethod
    async def set(self, record: AuthRecord) -> None:
        """Persist *record*, replacing any record with the same ``api_url``."""

    @abstractmethod
    async def delete(self, api_url: str) -> None:
        """Remove the record stored under exactly *api_url*.

        Deleting a URL with no stored record is not an error.
        """

    @abstractmethod
    async def get_all(self) -> list[AuthRecord]:
        """Return every stored record, in backend order."""
