"""apl — auth persistence layer.

Stores the credentials each platform instance issues to the app when it is
installed, keyed by the instance's API URL.

Public API
----------
``AuthRecord``
    Pydantic model for one installation's credentials.
``AuthStore``
    Abstract storage contract (``get`` / ``set`` / ``delete`` / ``get_all``).
``MemoryAuthStore``, ``FileAuthStore``, ``RestAuthStore``, ``UpstashAuthStore``
    Bundled backends.
``HttpsEnforcingAuthStore``
    Wrapper that makes lookups indifferent to ``http://`` vs ``https://``
    and only ever persists ``https://`` URLs.
``canonicalize``
    The URL rewrite applied at the wrapper boundary.
"""
from __future__ import annotations

from app_auth.apl.base import (
    AuthStore,
    AuthStoreConfigurationError,
    AuthStoreError,
    AuthStoreRequestError,
    ProbeResult,
)
from app_auth.apl.file import FileAuthStore
from app_auth.apl.https_enforcing import HttpsEnforcingAuthStore
from app_auth.apl.memory import MemoryAuthStore
from app_auth.apl.record import AuthRecord
from app_auth.apl.rest import RestAuthStore
from app_auth.apl.upstash import UpstashAuthStore
from app_auth.apl.urls import canonicalize, normalize_api_url, to_insecure

__all__ = [
    "AuthRecord",
    "AuthStore",
    "AuthStoreConfigurationError",
    "AuthStoreError",
    "AuthStoreRequestError",
    "FileAuthStore",
    "HttpsEnforcingAuthStore",
    "MemoryAuthStore",
    "ProbeResult",
    "RestAuthStore",
    "UpstashAuthStore",
    "canonicalize",
    "normalize_api_url",
    "to_insecure",
]
