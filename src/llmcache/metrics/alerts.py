"""Threshold evaluation, alert policy and health status."""

from __future__ import annotations

import logging
import time

from llmcache.config.schema import AlertThresholds, CostSettings
from llmcache.metrics.models import AggregatedMetrics, Alert, CostWindow
from llmcache.types import AlertPolicy, AlertSeverity, AlertType, HealthStatus

logger = logging.getLogger(__name__)


def evaluate_thresholds(
    metrics: AggregatedMetrics,
    thresholds: AlertThresholds,
    costs: CostWindow | None = None,
    cost_settings: CostSettings | None = None,
    now: float | None = None,
) -> list[Alert]:
    """Return one alert per breached threshold.

    Request-based checks are skipped when the window holds no requests.
    Cost checks run only when ``costs`` is given and cost tracking is on.
    Alerts are stamped with ``now``, or the wall clock when it is omitted.
    """
    timestamp = time.time() if now is None else now
    alerts: list[Alert] = []

    if metrics.total_requests > 0:
        error_rate = 100 - metrics.success_rate
        if error_rate > thresholds.error_rate:
            alerts.append(Alert(
                type=AlertType.ERROR_RATE,
                severity=AlertSeverity.HIGH,
                message=f"Error rate exceeded threshold: {error_rate:.1f}%",
                threshold=thresholds.error_rate,
                current=error_rate,
                timestamp=timestamp,
            ))

        if metrics.avg_latency_ms > thresholds.latency_ms:
            alerts.append(Alert(
                type=AlertType.LATENCY,
                severity=AlertSeverity.MEDIUM,
                message=f"Average latency exceeded threshold: {metrics.avg_latency_ms:.0f}ms",
                threshold=thresholds.latency_ms,
                current=metrics.avg_latency_ms,
                timestamp=timestamp,
            ))

        if metrics.cache_hit_rate < thresholds.cache_hit_rate:
            alerts.append(Alert(
                type=AlertType.CACHE_HIT_RATE,
                severity=AlertSeverity.LOW,
                message=f"Cache hit rate below threshold: {metrics.cache_hit_rate:.1f}%",
                threshold=thresholds.cache_hit_rate,
                current=metrics.cache_hit_rate,
                timestamp=timestamp,
            ))

    if costs is not None and cost_settings is not None and cost_settings.enabled:
        if costs.daily > cost_settings.budget_daily:
            alerts.append(Alert(
                type=AlertType.COST,
                severity=AlertSeverity.HIGH,
                message=f"Daily cost exceeded budget: ${costs.daily:.2f}",
                threshold=cost_settings.budget_daily,
                current=costs.daily,
                timestamp=timestamp,
            ))
        if costs.weekly > cost_settings.budget_weekly:
            alerts.append(Alert(
                type=AlertType.COST,
                severity=AlertSeverity.MEDIUM,
                message=f"Weekly cost exceeded budget: ${costs.weekly:.2f}",
                threshold=cost_settings.budget_weekly,
                current=costs.weekly,
                timestamp=timestamp,
            ))

    return alerts


def health_status(
    metrics: AggregatedMetrics,
    thresholds: AlertThresholds,
) -> tuple[HealthStatus, list[str]]:
    """Derive a health status and human-readable reasons from window metrics."""
    if metrics.total_requests == 0:
        return HealthStatus.HEALTHY, []

    status = HealthStatus.HEALTHY
    reasons: list[str] = []

    if metrics.success_rate < thresholds.success_rate_warning:
        status = (
            HealthStatus.CRITICAL
            if metrics.success_rate < thresholds.success_rate_critical
            else HealthStatus.WARNING
        )
        reasons.append(f"Low success rate: {metrics.success_rate:.1f}%")

    if metrics.avg_latency_ms > thresholds.latency_ms:
        if status == HealthStatus.HEALTHY:
            status = HealthStatus.WARNING
        reasons.append(f"High latency: {metrics.avg_latency_ms:.0f}ms")

    if metrics.cache_hit_rate < thresholds.cache_hit_rate:
        if status == HealthStatus.HEALTHY:
            status = HealthStatus.WARNING
        reasons.append(f"Low cache hit rate: {metrics.cache_hit_rate:.1f}%")

    return status, reasons


class AlertGate:
    """Applies the alert policy between evaluation and delivery.

    ``every_cycle`` passes every breach through on every check. ``edge``
    passes a breach only on the cycle it starts; it must clear before it can
    fire again.
    """

    def __init__(self, policy: AlertPolicy = AlertPolicy.EVERY_CYCLE) -> None:
        self._policy = policy
        self._active: set[str] = set()

    @property
    def policy(self) -> AlertPolicy:
        return self._policy

    def filter(self, alerts: list[Alert]) -> list[Alert]:
        current = {alert.condition for alert in alerts}
        if self._policy == AlertPolicy.EVERY_CYCLE:
            self._active = current
            return alerts
        fresh = [alert for alert in alerts if alert.condition not in self._active]
        cleared = self._active - current
        if cleared:
            logger.info("Alert conditions cleared: %s", ", ".join(sorted(cleared)))
        self._active = current
        return fresh

    def reset(self) -> None:
        self._active.clear()


def log_alert(alert: Alert) -> None:
    """Default alert subscriber: one WARNING line per alert."""
    logger.warning("[LLM Alert] %s: %s", alert.severity.value.upper(), alert.message)
