"""featureflag_client テスト共通フィクスチャ"""

import pytest
from helpers import FakeClock
from k1s0_featureflag_client import (
    FeatureFlagClient,
    FeatureFlagClientConfig,
    InMemoryFlagService,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service() -> InMemoryFlagService:
    return InMemoryFlagService()


@pytest.fixture
def client(service: InMemoryFlagService, clock: FakeClock) -> FeatureFlagClient:
    return FeatureFlagClient(
        FeatureFlagClientConfig(base_url="http://flags:8080"),
        service=service,
        clock=clock,
    )
