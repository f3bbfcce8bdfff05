"""app-auth-layer — installation credentials and webhook verification shims.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Quick start
-----------
::

    from app_auth import (
        # Auth persistence
        AuthRecord, HttpsEnforcingAuthStore, FileAuthStore, canonicalize,
        # Configuration
        load_settings, build_auth_store,
        # Webhooks
        resolve_webhook_auth,
        # Signature verification patch
        install_signature_bypass,
    )

    store = build_auth_store(load_settings())
    install_signature_bypass()
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ------------------------------------------------------------------
# Auth persistence layer
# ------------------------------------------------------------------
from app_auth.apl import (
    AuthRecord,
    AuthStore,
    AuthStoreConfigurationError,
    AuthStoreError,
    AuthStoreRequestError,
    FileAuthStore,
    HttpsEnforcingAuthStore,
    MemoryAuthStore,
    ProbeResult,
    RestAuthStore,
    UpstashAuthStore,
    canonicalize,
    normalize_api_url,
)

# ------------------------------------------------------------------
# Configuration
# ------------------------------------------------------------------
from app_auth.config import (
    REQUIRED_PLATFORM_VERSION,
    Settings,
    SettingsError,
    bootstrap,
    build_auth_store,
    load_settings,
)
from app_auth.logging_config import configure_logging

# ------------------------------------------------------------------
# Signature verification patch
# ------------------------------------------------------------------
from app_auth.patching import (
    PatchState,
    PatchTarget,
    SignatureVerificationPatcher,
    bypass_signature_errors,
    install_signature_bypass,
    patch_processor,
)

# ------------------------------------------------------------------
# Webhooks
# ------------------------------------------------------------------
from app_auth.webhooks import WebhookAuthResult, WebhookAuthStatus, resolve_webhook_auth

__all__ = [
    # version
    "__version__",
    # apl
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
    # config
    "REQUIRED_PLATFORM_VERSION",
    "Settings",
    "SettingsError",
    "bootstrap",
    "build_auth_store",
    "configure_logging",
    "load_settings",
    # patching
    "PatchState",
    "PatchTarget",
    "SignatureVerificationPatcher",
    "bypass_signature_errors",
    "install_signature_bypass",
    "patch_processor",
    # webhooks
    "WebhookAuthResult",
    "WebhookAuthStatus",
    "resolve_webhook_auth",
]
