"""Request metrics collector — sliding-window aggregates, costs and alerts."""

from __future__ import annotations

import logging
import time
from collections import Counter, deque
from collections.abc import Callable

from llmcache.concurrency.periodic import PeriodicTask
from llmcache.config.schema import MetricsSettings
from llmcache.metrics.aggregate import aggregate_samples, filter_since, group_by
from llmcache.metrics.alerts import AlertGate, evaluate_thresholds, health_status
from llmcache.metrics.costs import CostAccumulator, compute_cost, cost_breakdown
from llmcache.metrics.export import export_samples
from llmcache.metrics.models import (
    AggregatedMetrics,
    Alert,
    CostBreakdown,
    CostWindow,
    ErrorCount,
    HealthSummary,
    MetricSample,
    OperationMetrics,
    ProviderMetrics,
)
from llmcache.types import ExportFormat, TokenUsage

logger = logging.getLogger(__name__)

AlertCallback = Callable[[Alert], None]

_TOP_ERRORS = 5
_RPM_WINDOW_SECONDS = 60


class MetricsCollector:
    """Records one sample per completed AI request and aggregates on demand.

    Samples live in a bounded ring buffer; the oldest are dropped once
    ``max_samples`` is reached. Queries copy the buffer and never mutate it.
    """

    def __init__(
        self,
        settings: MetricsSettings | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings or MetricsSettings()
        self._clock = clock
        self._samples: deque[MetricSample] = deque(maxlen=self._settings.max_samples)
        self._costs = CostAccumulator(clock)
        self._gate = AlertGate(self._settings.alert_policy)
        self._callbacks: list[AlertCallback] = []
        self._check_task = PeriodicTask(
            "metrics-alerts", self._settings.interval, self.check_alerts
        )

    @property
    def settings(self) -> MetricsSettings:
        return self._settings

    # ── Lifecycle ──

    async def start(self) -> None:
        """Start the periodic alert check."""
        self._check_task.start()

    async def close(self) -> None:
        await self._check_task.stop()

    async def __aenter__(self) -> MetricsCollector:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ── Recording ──

    def record_request(
        self,
        provider: str,
        model: str,
        operation: str,
        latency_ms: float,
        success: bool,
        cached: bool,
        tokens: TokenUsage | dict | None = None,
        error: str | None = None,
    ) -> MetricSample:
        """Append a sample, pricing it when token counts are known."""
        usage = TokenUsage.model_validate(tokens) if tokens is not None else None

        cost: float | None = None
        cost_settings = self._settings.cost
        if usage is not None and cost_settings.enabled:
            cost = compute_cost(provider, usage, cost_settings.price_table)
            if cost is not None:
                self._costs.add(cost)

        sample = MetricSample(
            provider=provider,
            model=model,
            operation=operation,
            latency_ms=latency_ms,
            success=success,
            cached=cached,
            timestamp=self._clock(),
            tokens=usage,
            cost_usd=cost,
            error=error,
        )
        self._samples.append(sample)

        if not success and error:
            logger.warning("LLM error [%s/%s/%s]: %s", provider, model, operation, error)
        return sample

    # ── Queries ──

    def get_metrics(self, since: float | None = None) -> AggregatedMetrics:
        """Aggregate samples with ``timestamp >= since`` (default: last hour)."""
        return aggregate_samples(self._window(since))

    def get_provider_metrics(self, since: float | None = None) -> dict[str, ProviderMetrics]:
        result: dict[str, ProviderMetrics] = {}
        for provider, samples in group_by(self._window(since), lambda s: s.provider).items():
            models = {
                model: aggregate_samples(model_samples)
                for model, model_samples in group_by(samples, lambda s: s.model).items()
            }
            result[provider] = ProviderMetrics(
                provider=provider,
                models=models,
                **aggregate_samples(samples).model_dump(),
            )
        return result

    def get_operation_metrics(self, since: float | None = None) -> dict[str, OperationMetrics]:
        return {
            operation: OperationMetrics(
                operation=operation,
                **aggregate_samples(samples).model_dump(),
            )
            for operation, samples in group_by(self._window(since), lambda s: s.operation).items()
        }

    def get_cost_breakdown(self) -> CostBreakdown:
        return cost_breakdown(list(self._samples), self._clock())

    def get_running_costs(self) -> CostWindow:
        """Accumulator totals since each bucket's last reset."""
        return self._costs.totals()

    def get_summary(self) -> HealthSummary:
        now = self._clock()
        samples = list(self._samples)
        metrics = aggregate_samples(filter_since(samples, now - self._settings.window))
        status, reasons = health_status(metrics, self._settings.thresholds)

        error_counts = Counter(s.error for s in samples if s.error)
        top_errors = [
            ErrorCount(error=error, count=count)
            for error, count in error_counts.most_common(_TOP_ERRORS)
        ]
        oldest = min((s.timestamp for s in samples), default=now)

        return HealthSummary(
            status=status,
            uptime_ms=(now - oldest) * 1000,
            total_requests=metrics.total_requests,
            success_rate=metrics.success_rate,
            cache_hit_rate=metrics.cache_hit_rate,
            avg_latency_ms=metrics.avg_latency_ms,
            current_rpm=sum(1 for s in samples if s.timestamp >= now - _RPM_WINDOW_SECONDS),
            top_errors=top_errors,
            alerts=reasons,
        )

    # ── Alerts ──

    def on_alert(self, callback: AlertCallback) -> None:
        self._callbacks.append(callback)

    def check_alerts(self) -> list[Alert]:
        """Evaluate thresholds once and deliver alerts per the alert policy."""
        self._costs.reset_due()
        costs = self.get_cost_breakdown().current if self._settings.cost.enabled else None
        breaches = evaluate_thresholds(
            self.get_metrics(),
            self._settings.thresholds,
            costs=costs,
            cost_settings=self._settings.cost,
            now=self._clock(),
        )
        alerts = self._gate.filter(breaches)
        for alert in alerts:
            self._dispatch(alert)
        return alerts

    def _dispatch(self, alert: Alert) -> None:
        for callback in self._callbacks:
            try:
                callback(alert)
            except Exception:
                logger.exception("Alert callback %r failed for %s", callback, alert.type.value)

    # ── Export / reset ──

    def export_metrics(self, fmt: ExportFormat | str = ExportFormat.JSON) -> str:
        return export_samples(list(self._samples), fmt)

    def clear(self) -> None:
        self._samples.clear()
        self._costs.clear()
        self._gate.reset()

    def __len__(self) -> int:
        return len(self._samples)

    def _window(self, since: float | None) -> list[MetricSample]:
        if since is None:
            since = self._clock() - self._settings.window
        return filter_since(list(self._samples), since)
