"""Pydantic models for cache, metrics and cost configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from llmcache.config import defaults
from llmcache.types import AlertPolicy


class ProviderPricing(BaseModel):
    """USD per token."""

    input: float = 0.0
    output: float = 0.0


class CacheSettings(BaseModel):
    enabled: bool = defaults.DEFAULT_CACHE_ENABLED
    directory: Path = Path(defaults.DEFAULT_CACHE_DIR)
    max_size_mb: float = Field(default=defaults.DEFAULT_CACHE_MAX_SIZE_MB, ge=0)
    default_ttl: int = defaults.DEFAULT_CACHE_TTL
    cleanup_interval: float = Field(default=defaults.DEFAULT_CACHE_CLEANUP_INTERVAL, gt=0)
    persist_interval: float = Field(default=defaults.DEFAULT_CACHE_PERSIST_INTERVAL, gt=0)
    strategy: dict[str, int] = Field(
        default_factory=lambda: dict(defaults.DEFAULT_CACHE_STRATEGY)
    )

    @property
    def max_size_bytes(self) -> int:
        return int(self.max_size_mb * 1024 * 1024)

    def ttl_for(self, operation: str) -> int:
        """TTL for an operation, falling back to the 'default' strategy entry."""
        if operation in self.strategy:
            return self.strategy[operation]
        return self.strategy.get("default", self.default_ttl)


class AlertThresholds(BaseModel):
    error_rate: float = defaults.DEFAULT_ALERT_ERROR_RATE  # percent
    latency_ms: float = defaults.DEFAULT_ALERT_LATENCY_MS
    cache_hit_rate: float = defaults.DEFAULT_ALERT_CACHE_HIT_RATE  # percent, minimum
    success_rate_warning: float = defaults.DEFAULT_SUCCESS_RATE_WARNING
    success_rate_critical: float = defaults.DEFAULT_SUCCESS_RATE_CRITICAL


class CostSettings(BaseModel):
    enabled: bool = defaults.DEFAULT_COST_TRACKING_ENABLED
    price_table: dict[str, ProviderPricing] = Field(
        default_factory=lambda: {
            name: ProviderPricing(**prices)
            for name, prices in defaults.DEFAULT_PRICE_TABLE.items()
        }
    )
    budget_daily: float = defaults.DEFAULT_BUDGET_DAILY
    budget_weekly: float = defaults.DEFAULT_BUDGET_WEEKLY


class MetricsSettings(BaseModel):
    interval: float = Field(default=defaults.DEFAULT_METRICS_INTERVAL, gt=0)
    max_samples: int = Field(default=defaults.DEFAULT_METRICS_MAX_SAMPLES, gt=0)
    window: float = Field(default=defaults.DEFAULT_METRICS_WINDOW, gt=0)
    thresholds: AlertThresholds = Field(default_factory=AlertThresholds)
    alert_policy: AlertPolicy = AlertPolicy.EVERY_CYCLE
    cost: CostSettings = Field(default_factory=CostSettings)


class Settings(BaseModel):
    cache: CacheSettings = Field(default_factory=CacheSettings)
    metrics: MetricsSettings = Field(default_factory=MetricsSettings)
    log_level: str = defaults.DEFAULT_LOG_LEVEL

    @classmethod
    def from_flat(cls, flat: dict[str, Any]) -> Settings:
        """Build settings from the flat dict produced by the config hierarchy."""
        d = defaults.get_defaults()
        d.update(flat)
        return cls(
            cache=CacheSettings(
                enabled=d["cache_enabled"],
                directory=d["cache_dir"],
                max_size_mb=d["cache_max_size_mb"],
                default_ttl=d["cache_default_ttl"],
                cleanup_interval=d["cache_cleanup_interval"],
                persist_interval=d["cache_persist_interval"],
                strategy=d["cache_strategy"],
            ),
            metrics=MetricsSettings(
                interval=d["metrics_interval"],
                max_samples=d["metrics_max_samples"],
                window=d["metrics_window"],
                thresholds=AlertThresholds(
                    error_rate=d["alert_error_rate"],
                    latency_ms=d["alert_latency_ms"],
                    cache_hit_rate=d["alert_cache_hit_rate"],
                    success_rate_warning=d["success_rate_warning"],
                    success_rate_critical=d["success_rate_critical"],
                ),
                alert_policy=d["alert_policy"],
                cost=CostSettings(
                    enabled=d["cost_tracking_enabled"],
                    price_table=d["price_table"],
                    budget_daily=d["budget_daily"],
                    budget_weekly=d["budget_weekly"],
                ),
            ),
            log_level=d["log_level"],
        )
