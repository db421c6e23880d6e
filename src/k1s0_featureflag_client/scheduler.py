"""フラグ状態のリフレッシュ判定"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

import structlog

from .exceptions import FeatureFlagClientError
from .metrics import state_refresh_total
from .models import ServiceState
from .store import StateSnapshot, StateStore

logger = structlog.get_logger(__name__)


class RefreshPolicy(Protocol):
    """評価前にスナップショットを最新に保つポリシー。"""

    def ensure_fresh(self) -> None: ...


class RefreshScheduler:
    """評価のたびに呼ばれ、期限切れならその場で状態を取得し直すスケジューラ。

    期限判定と取得は不可分ではないため、複数スレッドが同時に期限切れを見ると
    取得が重複することがある。取得結果はスナップショットの全置換なので結果は変わらない。
    """

    def __init__(
        self,
        store: StateStore,
        fetch_state: Callable[[], ServiceState],
        interval_seconds: float,
        identity_ttl_seconds: float,
        clock: Callable[[], float],
    ) -> None:
        self._store = store
        self._fetch_state = fetch_state
        self._interval = interval_seconds
        self._identity_ttl = identity_ttl_seconds
        self._clock = clock

    def is_due(self, now: float) -> bool:
        refreshed_at = self._store.snapshot().refreshed_at
        return refreshed_at is None or now >= refreshed_at + self._interval

    def ensure_fresh(self) -> None:
        """前回の取得から interval 以上経過していれば refresh する。"""
        if self.is_due(self._clock()):
            self.refresh()

    def refresh(self) -> None:
        """状態を取得してスナップショットを置き換える。

        失敗した場合は以前のスナップショットを残したまま例外を送出する。

        Raises:
            FeatureFlagClientError: 取得またはデコードに失敗した場合
        """
        now = self._clock()
        try:
            state = self._fetch_state()
        except FeatureFlagClientError as e:
            state_refresh_total.add(1, {"result": "failure"})
            logger.warning("state refresh failed", code=e.code, error=str(e))
            raise

        snapshot = StateSnapshot.build(state, refreshed_at=now)
        evicted = self._store.replace(snapshot, now, self._identity_ttl)
        state_refresh_total.add(1, {"result": "success"})
        logger.info(
            "state refreshed",
            flags=len(snapshot.flags),
            overrides=len(snapshot.overrides),
            evicted_identities=evicted,
        )
