from __future__ import annotations

import time

import pytest

from _fakes import BlockingBackend, InMemoryBackend, ScriptedOAuthClient
from salla_relay.clients.kv_backend import StoreUnavailableError
from salla_relay.clients.salla_auth import RefreshNetworkError, RefreshRejectedError
from salla_relay.core.config import RefreshSettings
from salla_relay.models.tokens import TenantTokenRecord
from salla_relay.services.token_refresh import BulkRefreshCoordinator
from salla_relay.services.token_store import TokenStore

pytestmark = pytest.mark.anyio("asyncio")

_OLD_EXPIRY = 1_600_000_000_000
_NOW = 1_700_000_000_000


def _seed(store: TokenStore, *tenant_ids: str) -> None:
    for tenant_id in tenant_ids:
        store.set(
            tenant_id,
            TenantTokenRecord(
                tenant_id=tenant_id,
                access_token=f"access-{tenant_id}",
                refresh_token=f"refresh-{tenant_id}",
                expires_at=_OLD_EXPIRY,
            ),
        )


def _coordinator(
    store: TokenStore,
    oauth: ScriptedOAuthClient,
    *,
    max_concurrency: int = 5,
    timeout: float = 5.0,
) -> BulkRefreshCoordinator:
    settings = RefreshSettings(
        REFRESH_MAX_CONCURRENCY=max_concurrency,
        REFRESH_TENANT_TIMEOUT=timeout,
    )
    return BulkRefreshCoordinator(store, oauth, settings, clock=lambda: _NOW)


async def test_successful_refresh_rotates_and_extends_expiry() -> None:
    store = TokenStore(InMemoryBackend())
    _seed(store, "1", "2")
    oauth = ScriptedOAuthClient()

    report = await _coordinator(store, oauth).run()

    assert report.total == 2
    assert report.succeeded == 2
    assert report.failed == 0
    for tenant_id in ("1", "2"):
        record = store.get(tenant_id)
        assert record is not None
        assert record.refresh_token == f"refresh-{tenant_id}-rotated"
        assert record.access_token == f"access-for-refresh-{tenant_id}"
        assert record.expires_at == _NOW + 3600 * 1000
        assert record.expires_at > _OLD_EXPIRY


async def test_rejected_tenant_does_not_affect_others() -> None:
    store = TokenStore(InMemoryBackend())
    tenants = [str(n) for n in range(1, 8)]
    _seed(store, *tenants)
    oauth = ScriptedOAuthClient(
        {"refresh-4": RefreshRejectedError("invalid_grant", status_code=400)}
    )

    report = await _coordinator(store, oauth, max_concurrency=3).run()

    outcomes = {outcome.tenant_id: outcome for outcome in report.outcomes}
    assert outcomes["4"].success is False
    assert outcomes["4"].error == "invalid_grant"
    assert all(outcomes[t].success for t in tenants if t != "4")
    assert report.succeeded == 6
    assert report.failed == 1
    assert len(oauth.calls) == 7

    untouched = store.get("4")
    assert untouched is not None
    assert untouched.refresh_token == "refresh-4"
    assert untouched.expires_at == _OLD_EXPIRY


async def test_network_error_is_recorded_as_failure() -> None:
    store = TokenStore(InMemoryBackend())
    _seed(store, "1", "2")
    oauth = ScriptedOAuthClient({"refresh-1": RefreshNetworkError("connect timeout")})

    report = await _coordinator(store, oauth).run()

    assert [o.success for o in report.outcomes] == [False, True]
    assert "connect timeout" in (report.outcomes[0].error or "")


async def test_store_write_failure_is_isolated() -> None:
    backend = InMemoryBackend()
    store = TokenStore(backend)
    _seed(store, "1", "2")
    backend.fail_writes_for.add("store:1:tokens")

    report = await _coordinator(store, ScriptedOAuthClient()).run()

    assert [(o.tenant_id, o.success) for o in report.outcomes] == [
        ("1", False),
        ("2", True),
    ]


async def test_malformed_record_is_a_failure_not_an_abort() -> None:
    backend = InMemoryBackend()
    store = TokenStore(backend)
    _seed(store, "2")
    backend.documents["store:1:tokens"] = {"merchant": "1"}

    report = await _coordinator(store, ScriptedOAuthClient()).run()

    outcomes = {o.tenant_id: o.success for o in report.outcomes}
    assert outcomes == {"1": False, "2": True}


async def test_tenant_removed_after_enumeration_is_skipped() -> None:
    backend = InMemoryBackend()
    store = TokenStore(backend)
    _seed(store, "1", "2")

    class VanishingStore(TokenStore):
        def get(self, tenant_id: str):
            if tenant_id == "1":
                return None
            return super().get(tenant_id)

    report = await _coordinator(VanishingStore(backend), ScriptedOAuthClient()).run()

    assert [o.tenant_id for o in report.outcomes] == ["2"]
    assert report.failed == 0


async def test_enumeration_failure_aborts_without_refresh_calls() -> None:
    backend = InMemoryBackend()
    store = TokenStore(backend)
    _seed(store, "1")
    backend.fail_on.add("iter_keys")
    oauth = ScriptedOAuthClient()

    with pytest.raises(StoreUnavailableError):
        await _coordinator(store, oauth).run()

    assert oauth.calls == []


async def test_hanging_tenant_times_out_without_blocking_others() -> None:
    store = TokenStore(InMemoryBackend())
    _seed(store, "slow", "fast-1", "fast-2")
    oauth = ScriptedOAuthClient(delays={"refresh-slow": 30.0})

    report = await _coordinator(store, oauth, timeout=0.1).run()

    outcomes = {o.tenant_id: o for o in report.outcomes}
    assert outcomes["slow"].success is False
    assert "Timed out" in (outcomes["slow"].error or "")
    assert outcomes["fast-1"].success and outcomes["fast-2"].success


async def test_blocked_store_read_times_out_without_stalling_others() -> None:
    backend = BlockingBackend()
    store = TokenStore(backend)
    _seed(store, "hung", "a", "b")
    backend.blocked_keys.add("store:hung:tokens")
    oauth = ScriptedOAuthClient()

    started = time.monotonic()
    try:
        report = await _coordinator(store, oauth, timeout=0.2).run()
    finally:
        backend.release.set()
    elapsed = time.monotonic() - started

    outcomes = {o.tenant_id: o for o in report.outcomes}
    assert outcomes["hung"].success is False
    assert outcomes["hung"].error == "Timed out after 0.2s"
    assert outcomes["a"].success and outcomes["b"].success
    assert sorted(oauth.calls) == ["refresh-a", "refresh-b"]
    assert elapsed < 2.0


async def test_blocked_store_write_times_out_for_that_tenant_only() -> None:
    backend = BlockingBackend(operations=("set",))
    store = TokenStore(backend)
    _seed(store, "stuck", "ok")
    backend.blocked_keys.add("store:stuck:tokens")

    try:
        report = await _coordinator(store, ScriptedOAuthClient(), timeout=0.2).run()
    finally:
        backend.release.set()

    outcomes = {o.tenant_id: o.success for o in report.outcomes}
    assert outcomes == {"stuck": False, "ok": True}


async def test_concurrency_is_bounded() -> None:
    store = TokenStore(InMemoryBackend())
    _seed(store, *[str(n) for n in range(10)])
    oauth = ScriptedOAuthClient(delays={f"refresh-{n}": 0.01 for n in range(10)})

    report = await _coordinator(store, oauth, max_concurrency=3).run()

    assert report.succeeded == 10
    assert 1 <= oauth.max_in_flight <= 3


async def test_empty_store_produces_empty_report() -> None:
    report = await _coordinator(TokenStore(InMemoryBackend()), ScriptedOAuthClient()).run()

    assert report.total == 0
    assert report.outcomes == []
