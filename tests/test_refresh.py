"""RefreshScheduler と IdentityCache のユニットテスト"""

import pytest
from helpers import FakeClock, make_flag
from k1s0_featureflag_client import (
    FeatureFlagClientError,
    FeatureFlagClientErrorCodes,
    FlagType,
    InMemoryFlagService,
)
from k1s0_featureflag_client.identity_cache import IdentityCache
from k1s0_featureflag_client.scheduler import RefreshScheduler
from k1s0_featureflag_client.store import StateStore


def make_scheduler(
    store: StateStore, service: InMemoryFlagService, clock: FakeClock
) -> RefreshScheduler:
    return RefreshScheduler(
        store,
        service.fetch_state,
        interval_seconds=60.0,
        identity_ttl_seconds=5.0,
        clock=clock,
    )


def make_cache(
    store: StateStore, service: InMemoryFlagService, clock: FakeClock
) -> IdentityCache:
    return IdentityCache(store, service.fetch_identity, ttl_seconds=5.0, clock=clock)


def test_first_call_refreshes(service: InMemoryFlagService, clock: FakeClock) -> None:
    """スナップショットがなければ必ず取得すること。"""
    store = StateStore()
    service.set_flag(make_flag("on", FlagType.BOOLEAN, True))
    make_scheduler(store, service, clock).ensure_fresh()
    assert service.state_fetch_count == 1
    assert store.snapshot().refreshed_at == clock.now
    assert "on" in store.snapshot().flags


def test_refresh_skipped_within_interval(service: InMemoryFlagService, clock: FakeClock) -> None:
    """前回から 60 秒未満なら取得しないこと。"""
    store = StateStore()
    scheduler = make_scheduler(store, service, clock)
    scheduler.ensure_fresh()
    clock.advance(59.9)
    scheduler.ensure_fresh()
    assert service.state_fetch_count == 1


def test_refresh_performed_at_interval(service: InMemoryFlagService, clock: FakeClock) -> None:
    """前回から 60 秒ちょうどで取得すること。"""
    store = StateStore()
    scheduler = make_scheduler(store, service, clock)
    scheduler.ensure_fresh()
    clock.advance(60.0)
    scheduler.ensure_fresh()
    assert service.state_fetch_count == 2


def test_failed_refresh_keeps_snapshot(service: InMemoryFlagService, clock: FakeClock) -> None:
    """取得失敗時は以前のスナップショットを残して例外を送出すること。"""
    store = StateStore()
    service.set_flag(make_flag("on", FlagType.BOOLEAN, True))
    scheduler = make_scheduler(store, service, clock)
    scheduler.ensure_fresh()
    before = store.snapshot()

    service.fail_state(
        FeatureFlagClientError(FeatureFlagClientErrorCodes.HTTP_ERROR, "connection refused")
    )
    clock.advance(61.0)
    with pytest.raises(FeatureFlagClientError) as exc_info:
        scheduler.ensure_fresh()
    assert exc_info.value.code == FeatureFlagClientErrorCodes.HTTP_ERROR
    assert store.snapshot() is before


def test_failed_refresh_retries_next_call(
    service: InMemoryFlagService, clock: FakeClock
) -> None:
    """失敗後は次の呼び出しで再度取得を試みること。"""
    store = StateStore()
    scheduler = make_scheduler(store, service, clock)
    service.fail_state(FeatureFlagClientError(FeatureFlagClientErrorCodes.DECODE_ERROR, "bad"))
    with pytest.raises(FeatureFlagClientError):
        scheduler.ensure_fresh()
    service.fail_state(None)
    scheduler.ensure_fresh()
    assert service.state_fetch_count == 2
    assert store.snapshot().refreshed_at == clock.now


def test_refresh_evicts_stale_identities(
    service: InMemoryFlagService, clock: FakeClock
) -> None:
    """リフレッシュ時に期限切れのアイデンティティが削除されること。"""
    store = StateStore()
    scheduler = make_scheduler(store, service, clock)
    cache = make_cache(store, service, clock)
    scheduler.ensure_fresh()
    cache.fetch("user_123")
    clock.advance(60.0)
    scheduler.ensure_fresh()
    assert store.identity_count() == 0


def test_identity_served_from_cache(service: InMemoryFlagService, clock: FakeClock) -> None:
    """取得から 5 秒未満はキャッシュから返すこと。"""
    store = StateStore()
    cache = make_cache(store, service, clock)
    service.set_identity("user_123", {"new_feature": False})
    first = cache.fetch("user_123")
    clock.advance(4.9)
    second = cache.fetch("user_123")
    assert second is first
    assert service.identity_fetch_count == 1


def test_identity_refetched_after_window(
    service: InMemoryFlagService, clock: FakeClock
) -> None:
    """取得から 5 秒以上経過すると取得し直すこと。"""
    store = StateStore()
    cache = make_cache(store, service, clock)
    service.set_identity("user_123", {"new_feature": False})
    cache.fetch("user_123")
    clock.advance(5.0)
    service.set_identity("user_123", {"new_feature": True})
    identity = cache.fetch("user_123")
    assert identity.overrides["new_feature"] is True
    assert service.identity_fetch_count == 2


def test_identity_fetch_failure_not_cached(
    service: InMemoryFlagService, clock: FakeClock
) -> None:
    """取得失敗は伝播し、キャッシュには何も残らないこと。"""
    store = StateStore()
    cache = make_cache(store, service, clock)
    service.fail_identity(
        FeatureFlagClientError(FeatureFlagClientErrorCodes.HTTP_ERROR, "timeout")
    )
    with pytest.raises(FeatureFlagClientError):
        cache.fetch("user_123")
    assert store.identity_count() == 0
