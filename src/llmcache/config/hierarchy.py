"""Layered configuration lookup.

Each source overrides the ones above it:
  defaults -> ~/.llmcache/config.yaml -> nearest llmcache.yaml (cwd upward)
  -> LLM_* / <PROVIDER>_PRICE_* environment variables -> runtime keyword arguments
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from llmcache.config.defaults import get_defaults

logger = logging.getLogger(__name__)

_GLOBAL_CONFIG_PATH = Path.home() / ".llmcache" / "config.yaml"
_PROJECT_CONFIG_NAME = "llmcache.yaml"

# Environment variable -> flat config key
_ENV_MAP: dict[str, str] = {
    "LLM_CACHE_DIR": "cache_dir",
    "LLM_CACHE_ENABLED": "cache_enabled",
    "LLM_CACHE_MAX_SIZE": "cache_max_size_mb",
    "LLM_CACHE_TTL": "cache_default_ttl",
    "LLM_CACHE_CLEANUP_INTERVAL": "cache_cleanup_interval",
    "LLM_CACHE_PERSIST_INTERVAL": "cache_persist_interval",
    "LLM_METRICS_INTERVAL": "metrics_interval",
    "LLM_METRICS_MAX_SAMPLES": "metrics_max_samples",
    "LLM_ALERT_ERROR_RATE": "alert_error_rate",
    "LLM_ALERT_LATENCY": "alert_latency_ms",
    "LLM_ALERT_CACHE_HIT": "alert_cache_hit_rate",
    "LLM_ALERT_POLICY": "alert_policy",
    "LLM_COST_TRACKING": "cost_tracking_enabled",
    "LLM_BUDGET_DAILY": "budget_daily",
    "LLM_BUDGET_WEEKLY": "budget_weekly",
    "LLM_LOG_LEVEL": "log_level",
}

# Per-provider price overrides: env var -> (provider, direction)
_PRICE_ENV_MAP: dict[str, tuple[str, str]] = {
    "GEMINI_PRICE_INPUT": ("gemini", "input"),
    "GEMINI_PRICE_OUTPUT": ("gemini", "output"),
    "OPENAI_PRICE_INPUT": ("openai", "input"),
    "OPENAI_PRICE_OUTPUT": ("openai", "output"),
    "CLAUDE_PRICE_INPUT": ("claude", "input"),
    "CLAUDE_PRICE_OUTPUT": ("claude", "output"),
}

# Numeric keys and the type their env strings convert to
_TYPE_MAP: dict[str, type] = {
    "cache_max_size_mb": float,
    "cache_default_ttl": int,
    "cache_cleanup_interval": float,
    "cache_persist_interval": float,
    "metrics_interval": float,
    "metrics_max_samples": int,
    "alert_error_rate": float,
    "alert_latency_ms": float,
    "alert_cache_hit_rate": float,
    "budget_daily": float,
    "budget_weekly": float,
}

# Keys whose values are mappings merged one level deep instead of replaced
_NESTED_KEYS = {"cache_strategy", "price_table"}

# Accepted spellings for *_enabled keys
_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


def load_config_hierarchy(**runtime_overrides: Any) -> dict[str, Any]:
    """Resolve the flat config dict, applying each layer over the defaults."""
    config = get_defaults()
    layers = [
        _load_yaml_config(_GLOBAL_CONFIG_PATH),
        _load_yaml_config(_find_project_config()),
        _load_env_vars(),
        # None means "not given" for runtime kwargs
        {k: v for k, v in runtime_overrides.items() if v is not None},
    ]
    for layer in layers:
        if layer:
            _merge(config, layer)
    return config


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> None:
    for key, value in overrides.items():
        current = base.get(key)
        if key not in _NESTED_KEYS or not isinstance(value, dict) or not isinstance(current, dict):
            base[key] = value
            continue
        merged = dict(current)
        for inner_key, inner_value in value.items():
            if isinstance(inner_value, dict) and isinstance(merged.get(inner_key), dict):
                merged[inner_key] = {**merged[inner_key], **inner_value}
            else:
                merged[inner_key] = inner_value
        base[key] = merged


def _load_yaml_config(path: Path | None) -> dict[str, Any] | None:
    """Read one YAML layer. Missing, unreadable or non-mapping files yield None."""
    if path is None or not path.is_file():
        return None
    try:
        raw = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable config file %s: %s", path, e)
        return None
    if not isinstance(raw, dict):
        logger.warning("Ignoring config file %s: top level is not a mapping", path)
        return None
    return raw


def _find_project_config() -> Path | None:
    """Nearest llmcache.yaml in the working directory or any parent."""
    here = Path.cwd()
    for directory in (here, *here.parents):
        path = directory / _PROJECT_CONFIG_NAME
        if path.is_file():
            return path
    return None


def _load_env_vars() -> dict[str, Any]:
    """Collect LLM_* settings and <PROVIDER>_PRICE_* overrides from the environment."""
    env = os.environ
    result: dict[str, Any] = {
        config_key: _coerce_env_value(config_key, env[env_key])
        for env_key, config_key in _ENV_MAP.items()
        if env_key in env
    }

    prices: dict[str, dict[str, float]] = {}
    for env_key, (provider, direction) in _PRICE_ENV_MAP.items():
        if env_key not in env:
            continue
        try:
            prices.setdefault(provider, {})[direction] = float(env[env_key])
        except ValueError:
            logger.warning("Ignoring %s=%r: not a number", env_key, env[env_key])
    if prices:
        result["price_table"] = prices
    return result


def _coerce_env_value(key: str, value: str) -> Any:
    """Turn an env string into a bool or number according to its config key.

    Values that fail to convert are returned unchanged and left for settings
    validation to reject.
    """
    if key.endswith("_enabled"):
        flag = value.strip().lower()
        if flag in _TRUTHY or flag in _FALSY:
            return flag in _TRUTHY
        logger.warning("Expected a boolean for '%s', got %r", key, value)
        return value

    converter = _TYPE_MAP.get(key)
    if converter is None:
        return value
    try:
        return converter(value)
    except ValueError:
        logger.warning("Expected %s for '%s', got %r", converter.__name__, key, value)
        return value
