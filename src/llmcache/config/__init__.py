"""Configuration — defaults, layered hierarchy and typed settings."""

from llmcache.config.hierarchy import load_config_hierarchy
from llmcache.config.loader import load_settings, load_settings_yaml
from llmcache.config.schema import (
    AlertThresholds,
    CacheSettings,
    CostSettings,
    MetricsSettings,
    ProviderPricing,
    Settings,
)

__all__ = [
    "AlertThresholds",
    "CacheSettings",
    "CostSettings",
    "MetricsSettings",
    "ProviderPricing",
    "Settings",
    "load_config_hierarchy",
    "load_settings",
    "load_settings_yaml",
]
