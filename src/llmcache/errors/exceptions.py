"""Custom exception hierarchy for llmcache."""

from __future__ import annotations

from pathlib import Path
from typing import Any


class LLMCacheError(Exception):
    """Base exception for all llmcache errors."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message


class CacheStorageError(LLMCacheError):
    """The cache directory cannot be used.

    Only surfaced from an explicit strict startup; steady-state disk failures
    are logged instead.
    """

    def __init__(
        self,
        message: str = "",
        path: Path | None = None,
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.path = path
        self.original = original


class ConfigError(LLMCacheError, ValueError):
    """Invalid configuration file or value."""

    def __init__(
        self,
        message: str = "",
        source: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message)
        self.source = source
        self.key = key
