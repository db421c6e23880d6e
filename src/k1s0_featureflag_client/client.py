"""FeatureFlagClient 実装"""

from __future__ import annotations

import time
from collections.abc import Callable

from .config import FeatureFlagClientConfig
from .engine import Evaluator
from .http_service import HttpFlagService
from .identity_cache import IdentityCache
from .models import EvaluationResult, FlagType
from .scheduler import RefreshScheduler
from .service import FlagService
from .store import StateStore


class FeatureFlagClient:
    """フラグサービスの状態をキャッシュしてフラグを評価するクライアント。

    フラグ状態は state_refresh_interval_seconds ごと、アイデンティティは
    identity_refresh_interval_seconds ごとに、評価の呼び出し時点で取得し直す。
    複数スレッドから同時に呼び出してよい。
    """

    def __init__(
        self,
        config: FeatureFlagClientConfig,
        service: FlagService | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._service = service if service is not None else HttpFlagService(config)
        self._store = StateStore()
        self._identities = IdentityCache(
            self._store,
            self._service.fetch_identity,
            ttl_seconds=config.identity_refresh_interval_seconds,
            clock=clock,
        )
        self._scheduler = RefreshScheduler(
            self._store,
            self._service.fetch_state,
            interval_seconds=config.state_refresh_interval_seconds,
            identity_ttl_seconds=config.identity_refresh_interval_seconds,
            clock=clock,
        )
        self._evaluator = Evaluator(self._store, self._identities, self._scheduler)

    def bool_flag(self, key: str, identifier: str = "") -> bool:
        """boolean フラグの値を返す。"""
        return self._evaluator.evaluate(key, identifier, FlagType.BOOLEAN).value.as_bool()

    def number_flag(self, key: str, identifier: str = "") -> float:
        """number フラグの値を返す。"""
        return self._evaluator.evaluate(key, identifier, FlagType.NUMBER).value.as_number()

    def string_flag(self, key: str, identifier: str = "") -> str:
        """string フラグの値を返す。"""
        return self._evaluator.evaluate(key, identifier, FlagType.STRING).value.as_string()

    def evaluate(self, key: str, identifier: str = "") -> EvaluationResult:
        """フラグの宣言型で評価し、値と決定理由を返す。"""
        return self._evaluator.evaluate(key, identifier)

    def refresh(self) -> None:
        """期限に関係なくフラグ状態を取得し直す。"""
        self._scheduler.refresh()
