"""Metrics subsystem — request samples, aggregates, costs and alerts."""

from llmcache.metrics.alerts import log_alert
from llmcache.metrics.collector import MetricsCollector
from llmcache.metrics.models import (
    AggregatedMetrics,
    Alert,
    CostBreakdown,
    CostWindow,
    HealthSummary,
    MetricSample,
    OperationMetrics,
    ProviderMetrics,
)

__all__ = [
    "MetricsCollector",
    "AggregatedMetrics",
    "Alert",
    "CostBreakdown",
    "CostWindow",
    "HealthSummary",
    "MetricSample",
    "OperationMetrics",
    "ProviderMetrics",
    "log_alert",
]
