#!/usr/bin/env python3
"""Example: Signature verification bypass

Simulates an SDK module with a strict JWKS verifier and shows the patcher
replacing it, a second pass leaving it alone, and restore() undoing it.

Usage:
    python examples/02_signature_bypass.py

Requirements:
    pip install app-auth-layer
"""
from __future__ import annotations

import asyncio
import logging
import types

from app_auth import SignatureVerificationPatcher, configure_logging


async def verify_signature_with_jwks(jwks: str, signature: str, raw_body: bytes) -> None:
    raise ValueError("JWKS signature mismatch")


def main() -> None:
    configure_logging("INFO")
    logging.getLogger("app_auth").info("Starting signature bypass example")

    sdk = types.ModuleType("saleor_app_sdk.handlers.next")
    sdk.verify_signature_with_jwks = verify_signature_with_jwks  # type: ignore[attr-defined]
    registry = {sdk.__name__: sdk}

    patcher = SignatureVerificationPatcher(modules=registry)
    print(f"First pass patched:  {patcher.patch_loaded_modules()}")
    print(f"Second pass patched: {patcher.patch_loaded_modules()}")

    asyncio.run(sdk.verify_signature_with_jwks("{}", "bogus", b"{}"))
    print("Patched verifier accepted a bogus signature.")

    patcher.restore()
    print(f"Restored original:   {sdk.verify_signature_with_jwks is verify_signature_with_jwks}")


if __name__ == "__main__":
    main()
