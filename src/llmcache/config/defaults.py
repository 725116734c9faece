"""Package-level default configuration values."""

from __future__ import annotations

from typing import Any

# Default cache settings
DEFAULT_CACHE_DIR = "./cache/llm"
DEFAULT_CACHE_ENABLED = True
DEFAULT_CACHE_MAX_SIZE_MB = 100.0
DEFAULT_CACHE_TTL = 3600
DEFAULT_CACHE_CLEANUP_INTERVAL = 300.0
DEFAULT_CACHE_PERSIST_INTERVAL = 60.0

# Per-operation TTLs (seconds)
DEFAULT_CACHE_STRATEGY: dict[str, int] = {
    "resume_parsing": 86400,
    "cover_letter_generation": 3600,
    "job_matching": 7200,
    "template_suggestions": 604800,
    "skills_extraction": 86400,
    "text_cleaning": 3600,
    "default": 3600,
}

# Default metrics settings
DEFAULT_METRICS_INTERVAL = 60.0
DEFAULT_METRICS_MAX_SAMPLES = 10_000
DEFAULT_METRICS_WINDOW = 3600.0

# Default alert thresholds
DEFAULT_ALERT_ERROR_RATE = 5.0
DEFAULT_ALERT_LATENCY_MS = 5000.0
DEFAULT_ALERT_CACHE_HIT_RATE = 30.0
DEFAULT_SUCCESS_RATE_WARNING = 95.0
DEFAULT_SUCCESS_RATE_CRITICAL = 90.0
DEFAULT_ALERT_POLICY = "every_cycle"

# Default cost settings (USD per token)
DEFAULT_COST_TRACKING_ENABLED = False
DEFAULT_PRICE_TABLE: dict[str, dict[str, float]] = {
    "gemini": {"input": 0.00001, "output": 0.00003},
    "openai": {"input": 0.00003, "output": 0.00006},
    "claude": {"input": 0.00008, "output": 0.00024},
}
DEFAULT_BUDGET_DAILY = 10.0
DEFAULT_BUDGET_WEEKLY = 50.0

# Log level
DEFAULT_LOG_LEVEL = "WARNING"


def get_defaults() -> dict[str, Any]:
    """Return all defaults as a flat dictionary for merging."""
    return {
        "cache_dir": DEFAULT_CACHE_DIR,
        "cache_enabled": DEFAULT_CACHE_ENABLED,
        "cache_max_size_mb": DEFAULT_CACHE_MAX_SIZE_MB,
        "cache_default_ttl": DEFAULT_CACHE_TTL,
        "cache_cleanup_interval": DEFAULT_CACHE_CLEANUP_INTERVAL,
        "cache_persist_interval": DEFAULT_CACHE_PERSIST_INTERVAL,
        "cache_strategy": dict(DEFAULT_CACHE_STRATEGY),
        "metrics_interval": DEFAULT_METRICS_INTERVAL,
        "metrics_max_samples": DEFAULT_METRICS_MAX_SAMPLES,
        "metrics_window": DEFAULT_METRICS_WINDOW,
        "alert_error_rate": DEFAULT_ALERT_ERROR_RATE,
        "alert_latency_ms": DEFAULT_ALERT_LATENCY_MS,
        "alert_cache_hit_rate": DEFAULT_ALERT_CACHE_HIT_RATE,
        "success_rate_warning": DEFAULT_SUCCESS_RATE_WARNING,
        "success_rate_critical": DEFAULT_SUCCESS_RATE_CRITICAL,
        "alert_policy": DEFAULT_ALERT_POLICY,
        "cost_tracking_enabled": DEFAULT_COST_TRACKING_ENABLED,
        "price_table": {k: dict(v) for k, v in DEFAULT_PRICE_TABLE.items()},
        "budget_daily": DEFAULT_BUDGET_DAILY,
        "budget_weekly": DEFAULT_BUDGET_WEEKLY,
        "log_level": DEFAULT_LOG_LEVEL,
    }
