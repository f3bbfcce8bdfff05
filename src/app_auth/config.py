"""Process configuration read from environment variables.

Environment
-----------
``APL``
    Auth store backend: ``memory``, ``file`` (default), ``rest`` or ``upstash``.
``FILE_APL_PATH``
    JSON file used by the ``file`` backend.
``REST_APL_ENDPOINT`` / ``REST_APL_TOKEN``
    Collection URL and service token for the ``rest`` backend. Both are
    required when ``APL=rest``.
``UPSTASH_URL`` / ``UPSTASH_TOKEN``
    REST URL and token of the Upstash database. Both are required when
    ``APL=upstash``.
``APP_LOG_LEVEL``
    Root log level.
``SIGNATURE_BYPASS_DELAY``
    Seconds before the delayed signature-bypass pass.
"""
from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from app_auth.apl import (
    AuthStore,
    FileAuthStore,
    HttpsEnforcingAuthStore,
    MemoryAuthStore,
    RestAuthStore,
    UpstashAuthStore,
)
from app_auth.logging_config import configure_logging
from app_auth.patching import SignatureVerificationPatcher, install_signature_bypass

REQUIRED_PLATFORM_VERSION = ">=3.10 <4"

_ENV_FIELDS = {
    "APL": "apl",
    "FILE_APL_PATH": "file_apl_path",
    "REST_APL_ENDPOINT": "rest_apl_endpoint",
    "REST_APL_TOKEN": "rest_apl_token",
    "UPSTASH_URL": "upstash_url",
    "UPSTASH_TOKEN": "upstash_token",
    "APP_LOG_LEVEL": "log_level",
    "SIGNATURE_BYPASS_DELAY": "bypass_delay",
}


class SettingsError(ValueError):
    """Raised when the environment describes an unusable configuration."""


class Settings(BaseModel):
    """Validated process settings. See the module docstring for sources."""

    apl: Literal["memory", "file", "rest", "upstash"] = "file"
    file_apl_path: Path = Path(".auth-data.json")
    rest_apl_endpoint: Optional[str] = None
    rest_apl_token: Optional[str] = None
    upstash_url: Optional[str] = None
    upstash_token: Optional[str] = None
    log_level: str = "INFO"
    bypass_delay: float = Field(default=0.1, ge=0.0)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from *environ* (``os.environ`` by default).

    Raises
    ------
    SettingsError
        If a variable holds a value the settings model rejects.
    """
    env = os.environ if environ is None else environ
    values = {field: env[name] for name, field in _ENV_FIELDS.items() if env.get(name)}
    if "apl" in values:
        values["apl"] = values["apl"].lower()
    try:
        return Settings(**values)
    except ValidationError as exc:
        raise SettingsError(f"Invalid configuration: {exc}") from exc


def build_auth_store(settings: Settings) -> HttpsEnforcingAuthStore:
    """Instantiate the configured backend wrapped for scheme tolerance."""
    base: AuthStore
    if settings.apl == "memory":
        base = MemoryAuthStore()
    elif settings.apl == "file":
        base = FileAuthStore(settings.file_apl_path)
    elif settings.apl == "upstash":
        if not settings.upstash_url or not settings.upstash_token:
            raise SettingsError(
                "Upstash APL is not configured - set UPSTASH_URL and UPSTASH_TOKEN"
            )
        base = UpstashAuthStore(settings.upstash_url, settings.upstash_token)
    else:
        if not settings.rest_apl_endpoint or not settings.rest_apl_token:
            raise SettingsError(
                "Rest APL is not configured - set REST_APL_ENDPOINT and REST_APL_TOKEN"
            )
        base = RestAuthStore(settings.rest_apl_endpoint, settings.rest_apl_token)
    return HttpsEnforcingAuthStore(base)


def bootstrap(
    environ: Optional[Mapping[str, str]] = None,
) -> tuple[HttpsEnforcingAuthStore, SignatureVerificationPatcher]:
    """Process start-up: logging, auth store and signature bypass.

    Returns the configured store and the installed patcher.
    """
    settings = load_settings(environ)
    configure_logging(settings.log_level)
    store = build_auth_store(settings)
    patcher = install_signature_bypass(delay=settings.bypass_delay)
    return store, patcher
