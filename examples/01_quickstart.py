#!/usr/bin/env python3
"""Example: Quickstart

Stores an installation registered over http:// and resolves it for a
webhook that arrives with https://, using the scheme-tolerant store.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install app-auth-layer
"""
from __future__ import annotations

import asyncio

import app_auth
from app_auth import AuthRecord, HttpsEnforcingAuthStore, MemoryAuthStore, resolve_webhook_auth


async def main() -> None:
    print(f"app-auth-layer version: {app_auth.__version__}")

    # Step 1: Wrap a backing store
    store = HttpsEnforcingAuthStore(MemoryAuthStore())

    # Step 2: Register an installation with an http:// URL
    await store.set(AuthRecord(app_id="app-1", api_url="http://shop.local/graphql/", token="secret"))
    print(f"Stored URLs: {[r.api_url for r in await store.get_all()]}")

    # Step 3: Resolve a webhook carrying either scheme
    for header in ("http://shop.local/graphql/", "https://shop.local/graphql/"):
        result = await resolve_webhook_auth({"saleor-api-url": header}, store)
        print(f"{header} -> {result.status.value} ({result.status.http_status})")

    print("\nQuickstart complete.")


if __name__ == "__main__":
    asyncio.run(main())
