"""featureflag_client 設定"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class FeatureFlagClientConfig:
    """フィーチャーフラグクライアント設定。"""

    base_url: str
    api_key: str = ""
    timeout_seconds: float = 60.0
    state_refresh_interval_seconds: float = 60.0
    identity_refresh_interval_seconds: float = 5.0
