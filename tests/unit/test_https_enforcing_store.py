"""Tests for app_auth.apl.https_enforcing — HttpsEnforcingAuthStore."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

import pytest

from app_auth.apl.base import AuthStore, ProbeResult
from app_auth.apl.https_enforcing import HttpsEnforcingAuthStore
from app_auth.apl.memory import MemoryAuthStore
from app_auth.apl.record import AuthRecord

_HTTP_URL = "http://x/graphql/"
_HTTPS_URL = "https://x/graphql/"


# ---------------------------------------------------------------------------
# Helpers / fixtures
# ---------------------------------------------------------------------------


class RecordingStore(MemoryAuthStore):
    """MemoryAuthStore that records every call made against it."""

    def __init__(self, records: Optional[list[AuthRecord]] = None) -> None:
        super().__init__(records)
        self.get_calls: list[str] = []
        self.set_calls: list[AuthRecord] = []
        self.delete_calls: list[str] = []

    async def get(self, api_url: str) -> Optional[AuthRecord]:
        self.get_calls.append(api_url)
        return await super().get(api_url)

    async def set(self, record: AuthRecord) -> None:
        self.set_calls.append(record)
        await super().set(record)

    async def delete(self, api_url: str) -> None:
        self.delete_calls.append(api_url)
        await super().delete(api_url)


class FailingStore(AuthStore):
    """Store whose every operation raises."""

    def __init__(self) -> None:
        self.delete_calls: list[str] = []

    async def get(self, api_url: str) -> Optional[AuthRecord]:
        raise RuntimeError("backend down")

    async def set(self, record: AuthRecord) -> None:
        raise RuntimeError("backend down")

    async def delete(self, api_url: str) -> None:
        self.delete_calls.append(api_url)
        raise RuntimeError("backend down")

    async def get_all(self) -> list[AuthRecord]:
        raise RuntimeError("backend down")


class ProbingStore(MemoryAuthStore):
    async def is_ready(self) -> ProbeResult:
        return ProbeResult(ok=False, error="warming up")

    async def is_configured(self) -> ProbeResult:
        return ProbeResult(ok=False, error="no credentials")


def _record(api_url: str, app_id: str = "app-1") -> AuthRecord:
    return AuthRecord(app_id=app_id, api_url=api_url, token="token-1", jwks='{"keys": []}')


@pytest.fixture()
def base() -> RecordingStore:
    return RecordingStore()


@pytest.fixture()
def store(base: RecordingStore) -> HttpsEnforcingAuthStore:
    return HttpsEnforcingAuthStore(base)


# ===========================================================================
# get()
# ===========================================================================


class TestGet:
    @pytest.mark.asyncio
    async def test_canonical_hit_queries_once(self, base: RecordingStore) -> None:
        await MemoryAuthStore.set(base, _record(_HTTPS_URL))
        store = HttpsEnforcingAuthStore(base)

        result = await store.get(_HTTP_URL)

        assert result is not None
        assert result.api_url == _HTTPS_URL
        assert base.get_calls == [_HTTPS_URL]

    @pytest.mark.asyncio
    async def test_insecure_hit_after_two_queries(self, base: RecordingStore) -> None:
        await MemoryAuthStore.set(base, _record(_HTTP_URL))
        store = HttpsEnforcingAuthStore(base)

        result = await store.get(_HTTPS_URL)

        assert result is not None
        assert result.api_url == _HTTPS_URL
        assert base.get_calls == [_HTTPS_URL, _HTTP_URL]

    @pytest.mark.asyncio
    async def test_insecure_stored_record_requested_insecure(self, base: RecordingStore) -> None:
        await MemoryAuthStore.set(base, _record(_HTTP_URL))
        store = HttpsEnforcingAuthStore(base)

        result = await store.get(_HTTP_URL)

        assert result is not None
        assert result.api_url == _HTTPS_URL
        assert result.app_id == "app-1"

    @pytest.mark.asyncio
    async def test_schemeless_url_is_looked_up_unchanged(self, base: RecordingStore) -> None:
        await MemoryAuthStore.set(base, _record("x/graphql/"))
        store = HttpsEnforcingAuthStore(base)

        result = await store.get("x/graphql/")

        assert result is not None
        assert result.api_url == "x/graphql/"
        assert base.get_calls == ["x/graphql/"]

    @pytest.mark.asyncio
    async def test_schemeless_miss_still_makes_three_queries(
        self, store: HttpsEnforcingAuthStore, base: RecordingStore
    ) -> None:
        assert await store.get("x/graphql/") is None
        assert base.get_calls == ["x/graphql/", "x/graphql/", "x/graphql/"]

    @pytest.mark.asyncio
    async def test_full_miss_queries_three_times(
        self, store: HttpsEnforcingAuthStore, base: RecordingStore
    ) -> None:
        result = await store.get(_HTTP_URL)

        assert result is None
        assert base.get_calls == [_HTTPS_URL, _HTTP_URL, _HTTP_URL]

    @pytest.mark.asyncio
    async def test_full_miss_logs_one_warning(
        self, store: HttpsEnforcingAuthStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="app_auth.apl.https_enforcing"):
            await store.get(_HTTP_URL)

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert warnings[0].requested_url == _HTTP_URL
        assert "not found" in warnings[0].getMessage()

    @pytest.mark.asyncio
    async def test_hit_logs_no_warning(
        self, base: RecordingStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        await MemoryAuthStore.set(base, _record(_HTTPS_URL))
        store = HttpsEnforcingAuthStore(base)

        with caplog.at_level(logging.WARNING, logger="app_auth.apl.https_enforcing"):
            await store.get(_HTTPS_URL)

        assert not caplog.records

    @pytest.mark.asyncio
    async def test_canonical_preferred_over_insecure(self, base: RecordingStore) -> None:
        await MemoryAuthStore.set(base, _record(_HTTPS_URL, app_id="secure"))
        await MemoryAuthStore.set(base, _record(_HTTP_URL, app_id="insecure"))
        store = HttpsEnforcingAuthStore(base)

        result = await store.get(_HTTP_URL)

        assert result is not None
        assert result.app_id == "secure"

    @pytest.mark.asyncio
    async def test_base_record_is_not_mutated(self, base: RecordingStore) -> None:
        await MemoryAuthStore.set(base, _record(_HTTP_URL))
        store = HttpsEnforcingAuthStore(base)

        await store.get(_HTTP_URL)

        stored = await MemoryAuthStore.get(base, _HTTP_URL)
        assert stored is not None
        assert stored.api_url == _HTTP_URL

    @pytest.mark.asyncio
    async def test_backend_error_propagates(self) -> None:
        store = HttpsEnforcingAuthStore(FailingStore())
        with pytest.raises(RuntimeError, match="backend down"):
            await store.get(_HTTP_URL)


# ===========================================================================
# set()
# ===========================================================================


class TestSet:
    @pytest.mark.asyncio
    async def test_persists_canonical_url(
        self, store: HttpsEnforcingAuthStore, base: RecordingStore
    ) -> None:
        await store.set(_record(_HTTP_URL))

        assert len(base.set_calls) == 1
        assert base.set_calls[0].api_url == _HTTPS_URL
        assert _HTTPS_URL in base
        assert _HTTP_URL not in base

    @pytest.mark.asyncio
    async def test_secure_url_stored_as_is(
        self, store: HttpsEnforcingAuthStore, base: RecordingStore
    ) -> None:
        await store.set(_record(_HTTPS_URL))
        assert base.set_calls[0].api_url == _HTTPS_URL

    @pytest.mark.asyncio
    async def test_round_trip(self, store: HttpsEnforcingAuthStore) -> None:
        original = _record(_HTTP_URL)
        await store.set(original)

        result = await store.get(original.api_url)

        assert result == original.model_copy(update={"api_url": _HTTPS_URL})

    @pytest.mark.asyncio
    async def test_caller_record_is_not_mutated(self, store: HttpsEnforcingAuthStore) -> None:
        original = _record(_HTTP_URL)
        await store.set(original)
        assert original.api_url == _HTTP_URL

    @pytest.mark.asyncio
    async def test_backend_error_propagates(self) -> None:
        store = HttpsEnforcingAuthStore(FailingStore())
        with pytest.raises(RuntimeError):
            await store.set(_record(_HTTP_URL))


# ===========================================================================
# delete()
# ===========================================================================


class TestDelete:
    @pytest.mark.asyncio
    async def test_issues_two_deletes(
        self, store: HttpsEnforcingAuthStore, base: RecordingStore
    ) -> None:
        await store.delete(_HTTP_URL)
        assert sorted(base.delete_calls) == sorted([_HTTPS_URL, _HTTP_URL])

    @pytest.mark.asyncio
    async def test_secure_url_deleted_twice_under_same_key(
        self, store: HttpsEnforcingAuthStore, base: RecordingStore
    ) -> None:
        await store.delete(_HTTPS_URL)
        assert base.delete_calls == [_HTTPS_URL, _HTTPS_URL]

    @pytest.mark.asyncio
    async def test_removes_both_variants(self, base: RecordingStore) -> None:
        await MemoryAuthStore.set(base, _record(_HTTPS_URL))
        await MemoryAuthStore.set(base, _record(_HTTP_URL))
        store = HttpsEnforcingAuthStore(base)

        await store.delete(_HTTP_URL)

        assert len(base) == 0

    @pytest.mark.asyncio
    async def test_completes_when_backend_fails(self) -> None:
        failing = FailingStore()
        store = HttpsEnforcingAuthStore(failing)

        await store.delete(_HTTP_URL)

        assert len(failing.delete_calls) == 2

    @pytest.mark.asyncio
    async def test_deletes_run_concurrently(self) -> None:
        started: list[str] = []
        release = asyncio.Event()

        class SlowStore(MemoryAuthStore):
            async def delete(self, api_url: str) -> None:
                started.append(api_url)
                await release.wait()

        store = HttpsEnforcingAuthStore(SlowStore())
        task = asyncio.create_task(store.delete(_HTTP_URL))
        for _ in range(5):
            await asyncio.sleep(0)

        assert len(started) == 2
        assert not task.done()
        release.set()
        await task


# ===========================================================================
# get_all()
# ===========================================================================


class TestGetAll:
    @pytest.mark.asyncio
    async def test_canonicalizes_every_record_in_order(self) -> None:
        records = [
            _record("http://a/graphql/", app_id="a"),
            _record("https://b/graphql/", app_id="b"),
            _record("http://c/graphql/", app_id="c"),
        ]
        store = HttpsEnforcingAuthStore(MemoryAuthStore(records))

        result = await store.get_all()

        assert [r.app_id for r in result] == ["a", "b", "c"]
        assert [r.api_url for r in result] == [
            "https://a/graphql/",
            "https://b/graphql/",
            "https://c/graphql/",
        ]

    @pytest.mark.asyncio
    async def test_empty_store(self, store: HttpsEnforcingAuthStore) -> None:
        assert await store.get_all() == []

    @pytest.mark.asyncio
    async def test_backend_error_propagates(self) -> None:
        store = HttpsEnforcingAuthStore(FailingStore())
        with pytest.raises(RuntimeError):
            await store.get_all()


# ===========================================================================
# Probes
# ===========================================================================


class TestProbes:
    @pytest.mark.asyncio
    async def test_defaults_when_base_has_no_probes(self, store: HttpsEnforcingAuthStore) -> None:
        assert (await store.is_ready()).ok is True
        assert (await store.is_configured()).ok is True

    @pytest.mark.asyncio
    async def test_forwards_base_probes(self) -> None:
        store = HttpsEnforcingAuthStore(ProbingStore())

        ready = await store.is_ready()
        configured = await store.is_configured()

        assert ready == ProbeResult(ok=False, error="warming up")
        assert configured == ProbeResult(ok=False, error="no credentials")


# ===========================================================================
# Scenarios
# ===========================================================================


class TestScenarios:
    @pytest.mark.asyncio
    async def test_http_registration_resolves_to_https(self) -> None:
        store = HttpsEnforcingAuthStore(MemoryAuthStore([_record(_HTTP_URL)]))

        result = await store.get(_HTTP_URL)

        assert result is not None
        assert result.api_url == _HTTPS_URL

    @pytest.mark.asyncio
    async def test_empty_store_returns_none(self) -> None:
        store = HttpsEnforcingAuthStore(MemoryAuthStore())
        assert await store.get(_HTTP_URL) is None
