"""Tests for sample aggregation and percentiles."""

import pytest

from llmcache.metrics.aggregate import aggregate_samples, filter_since, group_by, percentile
from llmcache.metrics.models import MetricSample
from llmcache.types import TokenUsage


def _sample(latency: float = 100.0, success: bool = True, cached: bool = False, **kwargs):
    fields = dict(
        provider="gemini",
        model="gemini-pro",
        operation="resume_parsing",
        latency_ms=latency,
        success=success,
        cached=cached,
        timestamp=1000.0,
    )
    fields.update(kwargs)
    return MetricSample(**fields)


class TestPercentile:
    def test_one_to_hundred(self):
        """Nearest-rank percentiles over 1..100."""
        values = list(range(1, 101))
        assert percentile(values, 0.50) == 50
        assert percentile(values, 0.95) == 95
        assert percentile(values, 0.99) == 99

    def test_single_value(self):
        """One value is every percentile."""
        assert percentile([42.0], 0.99) == 42.0

    def test_empty(self):
        """No values gives 0."""
        assert percentile([], 0.5) == 0.0

    def test_bounds(self):
        """p0 and p100 are min and max."""
        values = [1.0, 2.0, 3.0]
        assert percentile(values, 0.0) == 1.0
        assert percentile(values, 1.0) == 3.0


class TestAggregateSamples:
    def test_empty(self):
        """An empty window aggregates to zeros."""
        metrics = aggregate_samples([])
        assert metrics.total_requests == 0
        assert metrics.success_rate == 0.0

    def test_counts_and_rates(self):
        """Counts and percentage rates."""
        samples = [
            _sample(success=True, cached=True),
            _sample(success=True),
            _sample(success=True),
            _sample(success=False, error="timeout"),
        ]
        metrics = aggregate_samples(samples)
        assert metrics.total_requests == 4
        assert metrics.successful_requests == 3
        assert metrics.failed_requests == 1
        assert metrics.cached_requests == 1
        assert metrics.success_rate == 75.0
        assert metrics.cache_hit_rate == 25.0

    def test_latency_stats(self):
        """Average, percentiles and extremes over latencies."""
        samples = [_sample(latency=float(v)) for v in range(1, 101)]
        metrics = aggregate_samples(samples)
        assert metrics.avg_latency_ms == pytest.approx(50.5)
        assert metrics.p50_latency_ms == 50
        assert metrics.p95_latency_ms == 95
        assert metrics.p99_latency_ms == 99
        assert metrics.min_latency_ms == 1
        assert metrics.max_latency_ms == 100

    def test_error_breakdown_counts_failures_only(self):
        """Only failed samples feed the error breakdown."""
        samples = [
            _sample(success=False, error="timeout"),
            _sample(success=False, error="timeout"),
            _sample(success=False, error="quota"),
            _sample(success=True, error="ignored warning"),
        ]
        assert aggregate_samples(samples).error_breakdown == {"timeout": 2, "quota": 1}

    def test_tokens_and_cost(self):
        """Tokens and cost are summed, unpriced samples add nothing."""
        samples = [
            _sample(tokens=TokenUsage(prompt_tokens=10, completion_tokens=5), cost_usd=0.01),
            _sample(tokens=TokenUsage(prompt_tokens=20, completion_tokens=10), cost_usd=0.02),
            _sample(),
        ]
        metrics = aggregate_samples(samples)
        assert metrics.total_tokens == 45
        assert metrics.total_cost_usd == pytest.approx(0.03)

    def test_requests_per_minute_over_span(self):
        """RPM is based on the first-to-last sample span."""
        samples = [_sample(timestamp=1000.0 + i * 30) for i in range(5)]  # 2 minutes
        assert aggregate_samples(samples).requests_per_minute == pytest.approx(2.5)

    def test_requests_per_minute_minimum_span(self):
        """A tiny span is floored to avoid huge rates."""
        samples = [_sample(timestamp=1000.0) for _ in range(3)]
        assert aggregate_samples(samples).requests_per_minute == pytest.approx(180.0)


class TestFilterAndGroup:
    def test_filter_since_inclusive(self):
        """The window start is inclusive."""
        samples = [_sample(timestamp=t) for t in (10.0, 20.0, 30.0)]
        assert [s.timestamp for s in filter_since(samples, 20.0)] == [20.0, 30.0]

    def test_group_by_provider(self):
        """Samples are grouped by the given attribute."""
        samples = [_sample(provider=p) for p in ("gemini", "openai", "gemini")]
        groups = group_by(samples, lambda s: s.provider)
        assert {k: len(v) for k, v in groups.items()} == {"gemini": 2, "openai": 1}
