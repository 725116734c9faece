"""Response cache — orchestrates the L1 memory index and the L2 disk mirror."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections import deque
from collections.abc import Callable
from pathlib import Path
from typing import Any

from llmcache.cache.disk import DiskMirror
from llmcache.cache.keys import generate_cache_key
from llmcache.cache.memory import MemoryIndex
from llmcache.cache.stats import CacheEntry, CacheStats, EntrySummary
from llmcache.concurrency.periodic import PeriodicTask
from llmcache.config.schema import CacheSettings
from llmcache.errors.exceptions import CacheStorageError

logger = logging.getLogger(__name__)

_MAX_LATENCY_SAMPLES = 100


class ResponseCache:
    """Two-tier cache: L1 in-memory index → L2 JSON file per entry.

    Memory is authoritative while an entry is resident. Every disk operation
    is best-effort: failures are logged and the cache keeps working from
    memory alone.
    """

    def __init__(
        self,
        settings: CacheSettings | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings or CacheSettings()
        self._clock = clock
        self._l1 = MemoryIndex(max_size_bytes=self._settings.max_size_bytes)
        self._l2 = DiskMirror(self._settings.directory)
        self._lock = asyncio.Lock()
        self._disk_available = True
        self._started = False

        self._hits = 0
        self._misses = 0
        self._latencies: deque[float] = deque(maxlen=_MAX_LATENCY_SAMPLES)

        self._pending_writes: dict[str, asyncio.Task[bool]] = {}
        self._cleanup_task = PeriodicTask(
            "cache-cleanup", self._settings.cleanup_interval, self.cleanup_expired
        )
        self._persist_task = PeriodicTask(
            "cache-persist", self._settings.persist_interval, self.flush
        )

    @property
    def settings(self) -> CacheSettings:
        return self._settings

    @property
    def directory(self) -> Path:
        return self._l2.directory

    @property
    def disk_available(self) -> bool:
        return self._disk_available

    @property
    def _disk_enabled(self) -> bool:
        # An unstarted cache has no directory yet and works memory-only
        return self._started and self._disk_available

    # ── Lifecycle ──

    async def start(self, strict: bool = False) -> None:
        """Create the cache directory, load shadows from disk, start sweeps.

        With ``strict`` a directory that cannot be created raises
        CacheStorageError; otherwise the cache runs memory-only.
        """
        if self._started:
            return
        try:
            await asyncio.to_thread(self._l2.ensure_directory)
        except OSError as e:
            if strict:
                raise CacheStorageError(
                    f"Cannot create cache directory {self.directory}: {e}",
                    path=self.directory,
                    original=e,
                ) from e
            logger.error(
                "Failed to create cache directory %s, running memory-only: %s",
                self.directory,
                e,
            )
            self._disk_available = False

        if self._disk_available:
            await self._load_from_disk()

        self._cleanup_task.start()
        self._persist_task.start()
        self._started = True

    async def close(self) -> None:
        """Stop background sweeps and flush once more."""
        await self._cleanup_task.stop()
        await self._persist_task.stop()
        await self.flush()
        self._started = False

    async def __aenter__(self) -> ResponseCache:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ── Public API ──

    @staticmethod
    def generate_key(operation: str, prompt: str, params: Any = None) -> str:
        return generate_cache_key(operation, prompt, params)

    async def get(self, key: str) -> Any | None:
        """Look up a key. L1 first, then L2 (with promotion)."""
        started = time.perf_counter()

        async with self._lock:
            entry = self._l1.get(key, self._clock())
            if entry is not None:
                entry.hit_count += 1
                self._hits += 1
                self._record_latency(started)
                return entry.data

        disk_entry = await self._read_disk(key)
        if disk_entry is not None and disk_entry.is_expired(self._clock()):
            await self._delete_disk(key)
            disk_entry = None

        async with self._lock:
            now = self._clock()
            if disk_entry is None:
                self._misses += 1
                self._record_latency(started)
                return None

            resident = self._l1.get(key, now)
            if resident is not None:
                # Set concurrently while we were reading; memory wins
                resident.hit_count += 1
                disk_entry = resident
            elif self._l1.add_if_fits(disk_entry):
                logger.debug("Promoted %s from disk to memory", key)
            self._hits += 1
            self._record_latency(started)
            return disk_entry.data

    async def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        """Store in L1 and queue a background write to L2."""
        ttl = self._settings.default_ttl if ttl_seconds is None else ttl_seconds
        entry = CacheEntry.create(key, value, ttl, now=self._clock())
        async with self._lock:
            evicted = self._l1.set(entry)
        if evicted:
            logger.info("Evicted %d entries to make room for %s", len(evicted), key)
        self._schedule_write(entry)

    async def delete(self, key: str) -> bool:
        """Remove from memory and disk. Returns whether a memory entry existed."""
        async with self._lock:
            existed = self._l1.remove(key) is not None
        await self._delete_disk(key)
        return existed

    async def clear(self) -> None:
        """Empty memory, stats and every shadow file."""
        async with self._lock:
            self._l1.clear()
            self._hits = 0
            self._misses = 0
            self._latencies.clear()
        await self._drain_writes()
        if self._disk_enabled:
            removed = await asyncio.to_thread(self._l2.clear)
            logger.info("Cleared cache (%d files removed)", removed)

    async def clear_by_pattern(self, pattern: str | re.Pattern[str]) -> int:
        """Remove memory entries (and their shadows) whose key matches ``pattern``."""
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        async with self._lock:
            removed = self._l1.remove_matching(regex)
        for key in removed:
            await self._delete_disk(key)
        return len(removed)

    def get_stats(self) -> CacheStats:
        avg = sum(self._latencies) / len(self._latencies) if self._latencies else 0.0
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            size_bytes=self._l1.size_bytes,
            entries=len(self._l1),
            avg_latency_ms=avg,
        )

    def get_entries_summary(self) -> list[EntrySummary]:
        now = self._clock()
        summaries = [
            EntrySummary(
                key=entry.key,
                size_bytes=entry.size_bytes,
                hit_count=entry.hit_count,
                expires_in_ms=max(0.0, (entry.expires_at - now) * 1000),
                age_ms=(now - entry.created_at) * 1000,
            )
            for entry in self._l1.entries()
        ]
        summaries.sort(key=lambda s: s.hit_count, reverse=True)
        return summaries

    # ── Background sweeps ──

    async def cleanup_expired(self) -> int:
        """Drop expired memory entries. Returns the number removed."""
        async with self._lock:
            removed = self._l1.remove_expired(self._clock())
        if removed:
            logger.info("Cache cleanup: removed %d expired entries", len(removed))
        return len(removed)

    async def flush(self) -> int:
        """Wait for queued writes, then write every live memory entry to disk."""
        await self._drain_writes()
        if not self._disk_enabled:
            return 0
        async with self._lock:
            now = self._clock()
            # Queue on the per-key write chain while still holding the lock, so a
            # later delete or clear waits for these writes before unlinking
            scheduled = [
                self._schedule_write(entry.model_copy())
                for entry in self._l1.entries()
                if not entry.is_expired(now)
            ]
        tasks = [task for task in scheduled if task is not None]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        written = sum(1 for result in results if result is True)
        logger.debug("Flushed %d cache entries to disk", written)
        return written

    # ── Internals ──

    async def _load_from_disk(self) -> None:
        entries = await asyncio.to_thread(self._l2.load_all, self._clock())
        loaded = 0
        async with self._lock:
            for entry in entries:
                if self._l1.add_if_fits(entry):
                    loaded += 1
        logger.info("Loaded %d cache entries from disk", loaded)

    async def _read_disk(self, key: str) -> CacheEntry | None:
        if not self._disk_enabled:
            return None
        pending = self._pending_writes.get(key)
        if pending is not None:
            await asyncio.gather(pending, return_exceptions=True)
        return await asyncio.to_thread(self._l2.read, key)

    async def _delete_disk(self, key: str) -> None:
        if not self._disk_enabled:
            return
        pending = self._pending_writes.get(key)
        if pending is not None:
            await asyncio.gather(pending, return_exceptions=True)
        await asyncio.to_thread(self._l2.delete, key)

    def _schedule_write(self, entry: CacheEntry) -> asyncio.Task[bool] | None:
        if not self._disk_enabled:
            return None
        previous = self._pending_writes.get(entry.key)
        task = asyncio.get_running_loop().create_task(self._write_after(previous, entry))
        self._pending_writes[entry.key] = task
        task.add_done_callback(lambda t, key=entry.key: self._forget_write(key, t))
        return task

    async def _write_after(self, previous: asyncio.Task[bool] | None, entry: CacheEntry) -> bool:
        # Keep writes to one key in submission order
        if previous is not None:
            await asyncio.gather(previous, return_exceptions=True)
        return await asyncio.to_thread(self._l2.write, entry)

    def _forget_write(self, key: str, task: asyncio.Task[bool]) -> None:
        if self._pending_writes.get(key) is task:
            del self._pending_writes[key]
        _log_task_failure(task)

    async def _drain_writes(self) -> None:
        while self._pending_writes:
            await asyncio.gather(*list(self._pending_writes.values()), return_exceptions=True)

    def _record_latency(self, started: float) -> None:
        self._latencies.append((time.perf_counter() - started) * 1000)


def _log_task_failure(task: asyncio.Task[Any]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Background cache disk task failed: %s", exc)
