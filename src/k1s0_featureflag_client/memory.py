"""InMemoryFlagService 実装"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any

from .exceptions import FeatureFlagClientError
from .models import Flag, Identity, Override, ServiceState
from .service import FlagService


class InMemoryFlagService(FlagService):
    """テスト用インメモリフラグサービス。"""

    def __init__(self) -> None:
        self._flags: dict[str, Flag] = {}
        self._overrides: dict[str, Override] = {}
        self._identities: dict[str, Identity] = {}
        self._state_error: FeatureFlagClientError | None = None
        self._identity_error: FeatureFlagClientError | None = None
        self.state_fetch_count = 0
        self.identity_fetch_count = 0

    def set_flag(self, flag: Flag) -> None:
        """フラグを設定する。"""
        self._flags[flag.key] = flag

    def set_override(self, key: str, value: Any) -> None:
        """グローバルオーバーライドを設定する。"""
        self._overrides[key] = Override(id=f"override-{key}", key=key, value=value)

    def remove_override(self, key: str) -> None:
        self._overrides.pop(key, None)

    def set_identity(self, identifier: str, overrides: dict[str, Any]) -> None:
        """identifier のオーバーライドを設定する。"""
        self._identities[identifier] = Identity(
            id=f"identity-{identifier}",
            identifier=identifier,
            overrides=MappingProxyType(dict(overrides)),
        )

    def fail_state(self, error: FeatureFlagClientError | None) -> None:
        """以後の fetch_state を error で失敗させる。None で解除する。"""
        self._state_error = error

    def fail_identity(self, error: FeatureFlagClientError | None) -> None:
        """以後の fetch_identity を error で失敗させる。None で解除する。"""
        self._identity_error = error

    def fetch_state(self) -> ServiceState:
        self.state_fetch_count += 1
        if self._state_error is not None:
            raise self._state_error
        return ServiceState(
            flags=tuple(self._flags.values()),
            overrides=tuple(self._overrides.values()),
        )

    def fetch_identity(self, identifier: str) -> Identity:
        self.identity_fetch_count += 1
        if self._identity_error is not None:
            raise self._identity_error
        identity = self._identities.get(identifier)
        if identity is None:
            # 未登録のサブジェクトはオーバーライドなしとして扱う
            return Identity(id=f"identity-{identifier}", identifier=identifier)
        return identity
