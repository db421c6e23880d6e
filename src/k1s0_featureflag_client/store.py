"""フラグ状態スナップショットとアイデンティティエントリの保持"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .lock import ReadWriteLock
from .models import Flag, Identity, Override, ServiceState


@dataclass(frozen=True)
class StateSnapshot:
    """ある時点の全フラグとグローバルオーバーライド。"""

    flags: Mapping[str, Flag] = field(default_factory=lambda: MappingProxyType({}))
    flags_by_id: Mapping[str, Flag] = field(default_factory=lambda: MappingProxyType({}))
    overrides: Mapping[str, Override] = field(default_factory=lambda: MappingProxyType({}))
    refreshed_at: float | None = None

    @classmethod
    def build(cls, state: ServiceState, refreshed_at: float) -> StateSnapshot:
        """ServiceState からキー索引と ID 索引を作る。"""
        return cls(
            flags=MappingProxyType({f.key: f for f in state.flags}),
            flags_by_id=MappingProxyType({f.id: f for f in state.flags}),
            overrides=MappingProxyType({o.key: o for o in state.overrides}),
            refreshed_at=refreshed_at,
        )


class _IdentityEntry:
    __slots__ = ("identity", "fetched_at")

    def __init__(self, identity: Identity, fetched_at: float) -> None:
        self.identity = identity
        self.fetched_at = fetched_at

    def is_stale(self, now: float, ttl: float) -> bool:
        return now >= self.fetched_at + ttl


class StateStore:
    """スナップショットとアイデンティティエントリを 1 つの読み書きロックで守るストア。

    スナップショットは丸ごと差し替えるだけで、読み手が保持しているものを書き換えることはない。
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._snapshot = StateSnapshot()
        self._identities: dict[str, _IdentityEntry] = {}

    def snapshot(self) -> StateSnapshot:
        """現在のスナップショットを返す。"""
        with self._lock.read():
            return self._snapshot

    def replace(self, snapshot: StateSnapshot, now: float, identity_ttl: float) -> int:
        """スナップショットを差し替え、期限切れのアイデンティティを削除する。

        Returns:
            削除したアイデンティティ数
        """
        with self._lock.write():
            self._snapshot = snapshot
            stale = [
                identifier
                for identifier, entry in self._identities.items()
                if entry.is_stale(now, identity_ttl)
            ]
            for identifier in stale:
                del self._identities[identifier]
        return len(stale)

    def fresh_identity(self, identifier: str, now: float, ttl: float) -> Identity | None:
        """期限内のアイデンティティがあれば返す。"""
        with self._lock.read():
            entry = self._identities.get(identifier)
            if entry is None or entry.is_stale(now, ttl):
                return None
            return entry.identity

    def put_identity(self, identifier: str, identity: Identity, fetched_at: float) -> None:
        """アイデンティティを保存する。既存エントリは置き換える。"""
        with self._lock.write():
            self._identities[identifier] = _IdentityEntry(identity, fetched_at)

    def identity_count(self) -> int:
        with self._lock.read():
            return len(self._identities)
