"""Pure aggregation over metric samples."""

from __future__ import annotations

import math
from collections import Counter, defaultdict
from collections.abc import Callable, Iterable, Sequence

from llmcache.metrics.models import AggregatedMetrics, MetricSample


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """Nearest-rank percentile of an ascending sequence, no interpolation.

    ``p`` is a fraction in [0, 1]. Empty input yields 0.
    """
    if not sorted_values:
        return 0.0
    # Rounding first keeps float noise (e.g. 0.29 * 100) from bumping the rank
    index = math.ceil(round(len(sorted_values) * p, 9)) - 1
    index = min(max(index, 0), len(sorted_values) - 1)
    return float(sorted_values[index])


def filter_since(samples: Iterable[MetricSample], since: float) -> list[MetricSample]:
    return [s for s in samples if s.timestamp >= since]


def group_by(
    samples: Iterable[MetricSample],
    key: Callable[[MetricSample], str],
) -> dict[str, list[MetricSample]]:
    groups: dict[str, list[MetricSample]] = defaultdict(list)
    for sample in samples:
        groups[key(sample)].append(sample)
    return dict(groups)


def aggregate_samples(samples: Sequence[MetricSample]) -> AggregatedMetrics:
    """Summarise a set of samples. An empty set gives an all-zero result."""
    if not samples:
        return AggregatedMetrics()

    total = len(samples)
    successful = sum(1 for s in samples if s.success)
    cached = sum(1 for s in samples if s.cached)
    latencies = sorted(s.latency_ms for s in samples)

    errors = Counter(s.error for s in samples if not s.success and s.error)

    timestamps = [s.timestamp for s in samples]
    span_ms = max((max(timestamps) - min(timestamps)) * 1000, 1000.0)

    return AggregatedMetrics(
        total_requests=total,
        successful_requests=successful,
        failed_requests=total - successful,
        cached_requests=cached,
        success_rate=successful / total * 100,
        cache_hit_rate=cached / total * 100,
        avg_latency_ms=sum(latencies) / total,
        p50_latency_ms=percentile(latencies, 0.50),
        p95_latency_ms=percentile(latencies, 0.95),
        p99_latency_ms=percentile(latencies, 0.99),
        max_latency_ms=latencies[-1],
        min_latency_ms=latencies[0],
        total_tokens=sum(s.tokens.total_tokens for s in samples if s.tokens),
        total_cost_usd=sum(s.cost_usd for s in samples if s.cost_usd),
        error_breakdown=dict(errors),
        requests_per_minute=total / span_ms * 60_000,
    )
