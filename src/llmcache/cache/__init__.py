"""Cache subsystem — two-tier (memory + disk) with operation-prefixed keys."""

from llmcache.cache.keys import generate_cache_key
from llmcache.cache.manager import ResponseCache
from llmcache.cache.stats import CacheEntry, CacheStats, EntrySummary

__all__ = [
    "ResponseCache",
    "CacheEntry",
    "CacheStats",
    "EntrySummary",
    "generate_cache_key",
]
