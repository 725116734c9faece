"""Tests for package defaults."""

from llmcache.config.defaults import DEFAULT_CACHE_STRATEGY, get_defaults


class TestGetDefaults:
    def test_cache_defaults(self):
        """Cache defaults match the documented values."""
        d = get_defaults()
        assert d["cache_dir"] == "./cache/llm"
        assert d["cache_max_size_mb"] == 100.0
        assert d["cache_default_ttl"] == 3600

    def test_metrics_defaults(self):
        """Metrics and alert defaults match the documented values."""
        d = get_defaults()
        assert d["metrics_max_samples"] == 10_000
        assert d["alert_error_rate"] == 5.0
        assert d["alert_latency_ms"] == 5000.0
        assert d["alert_cache_hit_rate"] == 30.0
        assert d["cost_tracking_enabled"] is False

    def test_returns_copies(self):
        """Mutating the result must not leak into later calls."""
        d = get_defaults()
        d["cache_strategy"]["resume_parsing"] = 1
        d["price_table"]["gemini"]["input"] = 1.0
        fresh = get_defaults()
        assert fresh["cache_strategy"] == DEFAULT_CACHE_STRATEGY
        assert fresh["price_table"]["gemini"]["input"] == 0.00001
