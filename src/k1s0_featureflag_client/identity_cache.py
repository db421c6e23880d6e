"""サブジェクト単位のアイデンティティキャッシュ"""

from __future__ import annotations

from collections.abc import Callable

import structlog

from .exceptions import FeatureFlagClientError
from .metrics import identity_fetch_total
from .models import Identity
from .store import StateStore

logger = structlog.get_logger(__name__)


class IdentityCache:
    """期限付きでアイデンティティを保持し、期限切れなら取得し直すキャッシュ。

    同じ identifier への同時取得は重複排除しない。取得は冪等なので重複しても結果は変わらない。
    """

    def __init__(
        self,
        store: StateStore,
        fetch_identity: Callable[[str], Identity],
        ttl_seconds: float,
        clock: Callable[[], float],
    ) -> None:
        self._store = store
        self._fetch_identity = fetch_identity
        self._ttl = ttl_seconds
        self._clock = clock

    def fetch(self, identifier: str) -> Identity:
        """identifier のアイデンティティを返す。

        Raises:
            FeatureFlagClientError: 取得に失敗した場合
        """
        cached = self._store.fresh_identity(identifier, self._clock(), self._ttl)
        if cached is not None:
            identity_fetch_total.add(1, {"result": "hit"})
            return cached

        try:
            identity = self._fetch_identity(identifier)
        except FeatureFlagClientError as e:
            identity_fetch_total.add(1, {"result": "failure"})
            logger.warning("identity fetch failed", identifier=identifier, code=e.code)
            raise

        self._store.put_identity(identifier, identity, self._clock())
        identity_fetch_total.add(1, {"result": "miss"})
        logger.debug(
            "identity fetched",
            identifier=identifier,
            overrides=len(identity.overrides),
        )
        return identity
