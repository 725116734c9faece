"""L1 in-memory index with size-bounded, score-ordered eviction."""

from __future__ import annotations

import logging
import re

from llmcache.cache.stats import CacheEntry

logger = logging.getLogger(__name__)

_DEFAULT_MAX_SIZE_MB = 100


class MemoryIndex:
    """In-memory cache index bounded by total payload bytes.

    Eviction is approximate LRU: candidates are ranked by
    ``CacheEntry.eviction_score`` (creation time plus credit per hit) and the
    lowest scores go first.
    """

    def __init__(self, max_size_bytes: int | None = None) -> None:
        self._store: dict[str, CacheEntry] = {}
        self._max_size_bytes = (
            max_size_bytes
            if max_size_bytes is not None
            else _DEFAULT_MAX_SIZE_MB * 1024 * 1024
        )
        self._current_size_bytes = 0

    def get(self, key: str, now: float) -> CacheEntry | None:
        """Return a live entry. Expired entries are dropped on sight."""
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.is_expired(now):
            self.remove(key)
            return None
        return entry

    def set(self, entry: CacheEntry) -> list[str]:
        """Insert ``entry``, evicting as needed. Returns the evicted keys.

        An entry larger than the whole budget is not stored.
        """
        self.remove(entry.key)
        if entry.size_bytes > self._max_size_bytes:
            logger.warning(
                "Entry %s (%d bytes) exceeds memory budget of %d bytes; not kept in memory",
                entry.key,
                entry.size_bytes,
                self._max_size_bytes,
            )
            return []
        evicted: list[str] = []
        if not self.fits(entry.size_bytes):
            evicted = self.evict(entry.size_bytes)
        self._store[entry.key] = entry
        self._current_size_bytes += entry.size_bytes
        return evicted

    def add_if_fits(self, entry: CacheEntry) -> bool:
        """Insert without evicting anything. Used for disk promotion and loading."""
        if entry.key in self._store or not self.fits(entry.size_bytes):
            return False
        self._store[entry.key] = entry
        self._current_size_bytes += entry.size_bytes
        return True

    def fits(self, size_bytes: int) -> bool:
        return self._current_size_bytes + size_bytes <= self._max_size_bytes

    def evict(self, required_bytes: int) -> list[str]:
        """Drop lowest-score entries until at least ``required_bytes`` are freed."""
        candidates = sorted(self._store.values(), key=lambda e: e.eviction_score)
        freed = 0
        evicted: list[str] = []
        for entry in candidates:
            if freed >= required_bytes and self.fits(required_bytes):
                break
            self.remove(entry.key)
            freed += entry.size_bytes
            evicted.append(entry.key)
        if evicted:
            logger.debug("Evicted %d entries (%d bytes) from memory", len(evicted), freed)
        return evicted

    def remove(self, key: str) -> CacheEntry | None:
        entry = self._store.pop(key, None)
        if entry is not None:
            self._current_size_bytes -= entry.size_bytes
        return entry

    def remove_expired(self, now: float) -> list[str]:
        expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
        for key in expired:
            self.remove(key)
        return expired

    def remove_matching(self, pattern: re.Pattern[str]) -> list[str]:
        matched = [key for key in self._store if pattern.search(key)]
        for key in matched:
            self.remove(key)
        return matched

    def clear(self) -> None:
        self._store.clear()
        self._current_size_bytes = 0

    def entries(self) -> list[CacheEntry]:
        return list(self._store.values())

    @property
    def size_bytes(self) -> int:
        return self._current_size_bytes

    @property
    def max_size_bytes(self) -> int:
        return self._max_size_bytes

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)
