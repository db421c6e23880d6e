"""FlagService 抽象基底クラス"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import Identity, ServiceState


class FlagService(ABC):
    """フラグサービスへのアクセスを抽象化する基底クラス。"""

    @abstractmethod
    def fetch_state(self) -> ServiceState:
        """全フラグとグローバルオーバーライドを取得する。"""
        ...

    @abstractmethod
    def fetch_identity(self, identifier: str) -> Identity:
        """identifier のアイデンティティを取得する。"""
        ...
