"""k1s0 featureflag_client library."""

from .client import FeatureFlagClient
from .config import FeatureFlagClientConfig
from .exceptions import FeatureFlagClientError, FeatureFlagClientErrorCodes
from .http_service import HttpFlagService
from .loader import load_config
from .memory import InMemoryFlagService
from .models import (
    DynamicRule,
    EvaluationReason,
    EvaluationResult,
    Expression,
    Flag,
    FlagType,
    FlagValue,
    Identity,
    Operator,
    Override,
    ServiceState,
)
from .service import FlagService

__all__ = [
    "FeatureFlagClient",
    "FeatureFlagClientConfig",
    "FeatureFlagClientError",
    "FeatureFlagClientErrorCodes",
    "FlagService",
    "HttpFlagService",
    "InMemoryFlagService",
    "load_config",
    "DynamicRule",
    "EvaluationReason",
    "EvaluationResult",
    "Expression",
    "Flag",
    "FlagType",
    "FlagValue",
    "Identity",
    "Operator",
    "Override",
    "ServiceState",
]
