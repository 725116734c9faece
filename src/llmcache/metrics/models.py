"""Metric sample, aggregate and alert models."""

from __future__ import annotations

import time

from pydantic import BaseModel, ConfigDict, Field

from llmcache.types import AlertSeverity, AlertType, HealthStatus, TokenUsage


class MetricSample(BaseModel):
    """One completed request. Never modified after it is recorded."""

    model_config = ConfigDict(frozen=True)

    provider: str
    model: str
    operation: str
    latency_ms: float
    success: bool
    cached: bool
    timestamp: float = Field(default_factory=time.time)
    tokens: TokenUsage | None = None
    cost_usd: float | None = None
    error: str | None = None


class AggregatedMetrics(BaseModel):
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    cached_requests: int = 0
    success_rate: float = 0.0  # percent
    cache_hit_rate: float = 0.0  # percent
    avg_latency_ms: float = 0.0
    p50_latency_ms: float = 0.0
    p95_latency_ms: float = 0.0
    p99_latency_ms: float = 0.0
    max_latency_ms: float = 0.0
    min_latency_ms: float = 0.0
    total_tokens: int = 0
    total_cost_usd: float = 0.0
    error_breakdown: dict[str, int] = Field(default_factory=dict)
    requests_per_minute: float = 0.0


class ProviderMetrics(AggregatedMetrics):
    provider: str
    models: dict[str, AggregatedMetrics] = Field(default_factory=dict)


class OperationMetrics(AggregatedMetrics):
    operation: str


class CostWindow(BaseModel):
    daily: float = 0.0
    weekly: float = 0.0
    monthly: float = 0.0


class ProviderCost(BaseModel):
    total: float = 0.0
    by_model: dict[str, float] = Field(default_factory=dict)


class CostBreakdown(BaseModel):
    current: CostWindow = Field(default_factory=CostWindow)
    providers: dict[str, ProviderCost] = Field(default_factory=dict)
    operations: dict[str, float] = Field(default_factory=dict)


class ErrorCount(BaseModel):
    error: str
    count: int


class Alert(BaseModel):
    type: AlertType
    severity: AlertSeverity
    message: str
    threshold: float
    current: float
    timestamp: float = Field(default_factory=time.time)

    @property
    def condition(self) -> str:
        """Identity of the breached condition, stable across check cycles."""
        return f"{self.type.value}:{self.severity.value}"


class HealthSummary(BaseModel):
    status: HealthStatus = HealthStatus.HEALTHY
    uptime_ms: float = 0.0
    total_requests: int = 0
    success_rate: float = 0.0
    cache_hit_rate: float = 0.0
    avg_latency_ms: float = 0.0
    current_rpm: int = 0
    top_errors: list[ErrorCount] = Field(default_factory=list)
    alerts: list[str] = Field(default_factory=list)
