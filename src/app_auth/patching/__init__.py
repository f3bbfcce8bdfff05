"""patching — retrofit the platform SDK's webhook verification at runtime.

Public API
----------
``SignatureVerificationPatcher``
    Scans loaded modules and replaces the SDK's JWKS verification function.
``install_signature_bypass``
    Builds a patcher and runs its immediate and delayed passes.
``bypass_signature_errors`` / ``patch_processor``
    Wrap the SDK's webhook processor at the call site instead.
"""
from __future__ import annotations

from app_auth.patching.processor import bypass_signature_errors, patch_processor
from app_auth.patching.signature import (
    PatchState,
    PatchTarget,
    SignatureVerificationPatcher,
    install_signature_bypass,
    is_override,
)

__all__ = [
    "PatchState",
    "PatchTarget",
    "SignatureVerificationPatcher",
    "bypass_signature_errors",
    "install_signature_bypass",
    "is_override",
    "patch_processor",
]
