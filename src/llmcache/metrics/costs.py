"""Token pricing and running cost totals."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Mapping

from llmcache.config.schema import ProviderPricing
from llmcache.metrics.models import CostBreakdown, CostWindow, MetricSample, ProviderCost
from llmcache.types import TokenUsage

DAY_SECONDS = 86_400
WEEK_SECONDS = 7 * DAY_SECONDS
MONTH_SECONDS = 30 * DAY_SECONDS

_WINDOWS = {
    "daily": DAY_SECONDS,
    "weekly": WEEK_SECONDS,
    "monthly": MONTH_SECONDS,
}


def compute_cost(
    provider: str,
    tokens: TokenUsage,
    price_table: Mapping[str, ProviderPricing],
) -> float | None:
    """USD cost of a request, or None when the provider has no price entry."""
    pricing = price_table.get(provider)
    if pricing is None:
        return None
    return tokens.prompt_tokens * pricing.input + tokens.completion_tokens * pricing.output


def cost_breakdown(samples: Iterable[MetricSample], now: float) -> CostBreakdown:
    """Window-filtered cost sums looking back 24h / 7d / 30d from ``now``."""
    breakdown = CostBreakdown()
    current = breakdown.current
    for sample in samples:
        if not sample.cost_usd:
            continue
        age = now - sample.timestamp
        if age > MONTH_SECONDS:
            continue
        current.monthly += sample.cost_usd
        if age <= WEEK_SECONDS:
            current.weekly += sample.cost_usd
        if age <= DAY_SECONDS:
            current.daily += sample.cost_usd

        provider = breakdown.providers.setdefault(sample.provider, ProviderCost())
        provider.total += sample.cost_usd
        provider.by_model[sample.model] = provider.by_model.get(sample.model, 0.0) + sample.cost_usd
        breakdown.operations[sample.operation] = (
            breakdown.operations.get(sample.operation, 0.0) + sample.cost_usd
        )
    return breakdown


class CostAccumulator:
    """Running daily/weekly/monthly totals.

    Each bucket resets on its own once 24h / 7d / 30d have passed since its
    last reset, measured from construction rather than calendar boundaries.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        now = clock()
        self._totals = dict.fromkeys(_WINDOWS, 0.0)
        self._last_reset = dict.fromkeys(_WINDOWS, now)

    def add(self, cost: float) -> None:
        self.reset_due()
        for bucket in self._totals:
            self._totals[bucket] += cost

    def reset_due(self) -> list[str]:
        """Zero every bucket whose window has elapsed. Returns the buckets reset."""
        now = self._clock()
        reset: list[str] = []
        for bucket, window in _WINDOWS.items():
            if now - self._last_reset[bucket] >= window:
                self._totals[bucket] = 0.0
                self._last_reset[bucket] = now
                reset.append(bucket)
        return reset

    def totals(self) -> CostWindow:
        self.reset_due()
        return CostWindow(**self._totals)

    def clear(self) -> None:
        for bucket in self._totals:
            self._totals[bucket] = 0.0
