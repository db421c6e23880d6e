"""OpenTelemetry メトリクス定義"""

from __future__ import annotations

from opentelemetry import metrics

_meter = metrics.get_meter("k1s0_featureflag_client", version="0.1.0")

state_refresh_total = _meter.create_counter(
    name="featureflag_state_refresh_total",
    description="Total number of flag state refresh attempts",
    unit="1",
)

identity_fetch_total = _meter.create_counter(
    name="featureflag_identity_fetch_total",
    description="Total number of identity lookups by cache result",
    unit="1",
)

evaluation_total = _meter.create_counter(
    name="featureflag_evaluation_total",
    description="Total number of successful flag evaluations",
    unit="1",
)

evaluation_errors_total = _meter.create_counter(
    name="featureflag_evaluation_errors_total",
    description="Total number of failed flag evaluations",
    unit="1",
)
