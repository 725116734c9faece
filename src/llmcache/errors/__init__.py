"""Error handling — exception hierarchy."""

from llmcache.errors.exceptions import (
    CacheStorageError,
    ConfigError,
    LLMCacheError,
)

__all__ = [
    "LLMCacheError",
    "CacheStorageError",
    "ConfigError",
]
