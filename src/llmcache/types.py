"""Shared Pydantic models and enums for llmcache."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, model_validator

# ── Enums ──


class HealthStatus(StrEnum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


class AlertType(StrEnum):
    ERROR_RATE = "error_rate"
    LATENCY = "latency"
    CACHE_HIT_RATE = "cache_hit_rate"
    COST = "cost"


class AlertSeverity(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AlertPolicy(StrEnum):
    EVERY_CYCLE = "every_cycle"
    EDGE = "edge"


class ExportFormat(StrEnum):
    JSON = "json"
    CSV = "csv"


# ── Runtime models ──


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @model_validator(mode="after")
    def _fill_total(self) -> TokenUsage:
        if self.total_tokens == 0 and (self.prompt_tokens or self.completion_tokens):
            self.total_tokens = self.prompt_tokens + self.completion_tokens
        return self


class Completion(BaseModel):
    """What a provider call hands back to the gateway."""

    data: Any = None
    tokens: TokenUsage | None = None


class GatewayResult(BaseModel):
    data: Any = None
    provider: str
    model: str
    operation: str
    latency_ms: float
    cached: bool = False
    cache_key: str | None = None
    tokens: TokenUsage | None = None
