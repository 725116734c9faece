"""Tests for ResponseCache (memory index + disk mirror orchestration)."""

import asyncio

import pytest

from llmcache.cache.manager import ResponseCache
from llmcache.config.schema import CacheSettings
from llmcache.errors.exceptions import CacheStorageError


@pytest.fixture
async def cache(cache_settings, clock):
    c = ResponseCache(cache_settings, clock=clock)
    await c.start()
    yield c
    await c.close()


def _files(settings: CacheSettings) -> list[str]:
    return sorted(p.name for p in settings.directory.glob("*.json"))


class TestGetSet:
    async def test_store_and_lookup(self, cache):
        """Stored value is returned by get."""
        key = cache.generate_key("resume_parsing", "Parse this resume")
        await cache.set(key, {"name": "Ada"})
        assert await cache.get(key) == {"name": "Ada"}

    async def test_lookup_miss(self, cache):
        """Unknown key is a miss."""
        assert await cache.get("resume_parsing-0000000000000000") is None

    async def test_expires_after_ttl(self, cache, clock):
        """Value is gone after its TTL and the lookup counts as one miss."""
        await cache.set("k1", {"a": 1}, ttl_seconds=60)
        clock.advance(59)
        assert await cache.get("k1") == {"a": 1}
        misses = cache.get_stats().misses
        clock.advance(2)
        assert await cache.get("k1") is None
        assert cache.get_stats().misses == misses + 1

    async def test_default_ttl_from_settings(self, tmp_path, clock):
        """set() without a TTL uses default_ttl."""
        settings = CacheSettings(directory=tmp_path / "c", default_ttl=10)
        async with ResponseCache(settings, clock=clock) as c:
            await c.set("k1", "v")
            clock.advance(10)
            assert await c.get("k1") is None

    async def test_overwrite_replaces_value(self, cache):
        """Setting a key twice keeps one entry with the latest value."""
        await cache.set("k1", "first")
        await cache.set("k1", "second")
        assert await cache.get("k1") == "second"
        assert cache.get_stats().entries == 1

    async def test_stats_track_hits_and_misses(self, cache):
        """Hits, misses and hit rate follow lookups."""
        await cache.set("k1", "v")
        await cache.get("k1")
        await cache.get("k1")
        await cache.get("k2")
        stats = cache.get_stats()
        assert stats.hits == 2
        assert stats.misses == 1
        assert stats.hit_rate == pytest.approx(200 / 3)
        assert stats.avg_latency_ms >= 0

    async def test_hit_count_increments(self, cache):
        """Each hit bumps the entry's hit count."""
        await cache.set("k1", "v")
        await cache.get("k1")
        await cache.get("k1")
        (summary,) = cache.get_entries_summary()
        assert summary.hit_count == 2

    async def test_concurrent_access(self, cache):
        """Concurrent sets and gets all land."""
        keys = [f"op-{i}" for i in range(20)]
        await asyncio.gather(*(cache.set(k, k.upper()) for k in keys))
        results = await asyncio.gather(*(cache.get(k) for k in keys))
        assert results == [k.upper() for k in keys]


class TestCapacity:
    async def test_memory_bounded_by_max_size(self, tmp_path, clock):
        """Memory size never exceeds max_size_mb."""
        settings = CacheSettings(directory=tmp_path / "c", max_size_mb=0.001)  # 1048 bytes
        async with ResponseCache(settings, clock=clock) as c:
            for i in range(10):
                clock.advance(1)
                await c.set(f"k{i}", "x" * 400)
                assert c.get_stats().size_bytes <= settings.max_size_bytes
            assert c.get_stats().entries == 2

    async def test_evicted_entry_still_served_from_disk(self, tmp_path, clock):
        """An entry evicted from memory is still served from its shadow."""
        settings = CacheSettings(directory=tmp_path / "c", max_size_mb=0.001)
        async with ResponseCache(settings, clock=clock) as c:
            for i in range(3):
                clock.advance(1)
                await c.set(f"k{i}", "x" * 400)
            await c.flush()
            assert await c.get("k0") == "x" * 400


class TestPersistence:
    async def test_survives_restart(self, cache_settings, clock):
        """A new instance reloads entries written by a closed one."""
        first = ResponseCache(cache_settings, clock=clock)
        await first.start()
        await first.set("job_matching-abc", {"score": 0.9})
        await first.close()

        second = ResponseCache(cache_settings, clock=clock)
        await second.start()
        try:
            assert await second.get("job_matching-abc") == {"score": 0.9}
        finally:
            await second.close()

    async def test_expired_shadow_not_loaded(self, cache_settings, clock):
        """Expired shadows are dropped at startup."""
        first = ResponseCache(cache_settings, clock=clock)
        await first.start()
        await first.set("k1", "v", ttl_seconds=60)
        await first.close()

        clock.advance(120)
        second = ResponseCache(cache_settings, clock=clock)
        await second.start()
        try:
            assert await second.get("k1") is None
            assert _files(cache_settings) == []
        finally:
            await second.close()

    async def test_corrupt_shadow_skipped_on_load(self, cache_settings, clock):
        """A corrupt shadow is skipped and the cache still works."""
        cache_settings.directory.mkdir(parents=True)
        (cache_settings.directory / "broken.json").write_text("{oops")
        async with ResponseCache(cache_settings, clock=clock) as c:
            assert c.get_stats().entries == 0
            await c.set("k1", "v")
            assert await c.get("k1") == "v"

    async def test_undecodable_shadow_skipped_on_load(self, cache_settings, clock):
        """A shadow file that is not UTF-8 must not break start()."""
        cache_settings.directory.mkdir(parents=True)
        (cache_settings.directory / "binary.json").write_bytes(b"\xff\xfe\x00garbage")
        async with ResponseCache(cache_settings, clock=clock) as c:
            assert c.get_stats().entries == 0

    async def test_undecodable_shadow_is_a_miss(self, cache, cache_settings):
        """get() treats an undecodable shadow as a miss and removes it."""
        (cache_settings.directory / "binary.json").write_bytes(b"\xff\xfe\x00garbage")
        assert await cache.get("binary") is None
        assert cache.get_stats().misses == 1
        assert _files(cache_settings) == []

    async def test_promotes_from_disk(self, cache):
        """A disk hit is promoted into memory."""
        await cache.set("k1", "promoted")
        await cache.flush()
        cache._l1.clear()

        assert await cache.get("k1") == "promoted"
        assert "k1" in cache._l1

    async def test_expired_shadow_removed_on_lookup(self, cache, cache_settings, clock):
        """Looking up an expired shadow deletes it."""
        await cache.set("k1", "v", ttl_seconds=60)
        await cache.flush()
        cache._l1.clear()
        clock.advance(61)

        assert await cache.get("k1") is None
        assert _files(cache_settings) == []

    async def test_flush_writes_live_entries(self, cache, cache_settings):
        """flush() writes every live entry."""
        await cache.set("a", 1)
        await cache.set("b", 2)
        assert await cache.flush() == 2
        assert _files(cache_settings) == ["a.json", "b.json"]

    async def test_unstarted_cache_is_memory_only(self, cache_settings, clock):
        """Without start() nothing touches the disk."""
        c = ResponseCache(cache_settings, clock=clock)
        await c.set("k1", "v")
        assert await c.get("k1") == "v"
        assert not cache_settings.directory.exists()


class TestStartup:
    async def test_strict_start_raises_on_unusable_directory(self, tmp_path, clock):
        """Strict start surfaces an unusable directory as CacheStorageError."""
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("")
        c = ResponseCache(CacheSettings(directory=blocker), clock=clock)
        with pytest.raises(CacheStorageError) as exc_info:
            await c.start(strict=True)
        assert exc_info.value.path == blocker

    async def test_lenient_start_falls_back_to_memory(self, tmp_path, clock):
        """Default start degrades to memory-only."""
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("")
        async with ResponseCache(CacheSettings(directory=blocker), clock=clock) as c:
            assert c.disk_available is False
            await c.set("k1", "v")
            assert await c.get("k1") == "v"

    async def test_start_is_idempotent(self, cache):
        """A second start() is a no-op."""
        await cache.start()
        await cache.set("k1", "v")
        assert await cache.get("k1") == "v"


class TestInvalidation:
    async def test_delete(self, cache, cache_settings):
        """Delete removes the entry from memory and disk."""
        await cache.set("k1", "v")
        await cache.flush()
        assert await cache.delete("k1") is True
        assert await cache.get("k1") is None
        assert _files(cache_settings) == []

    async def test_delete_beats_pending_write(self, cache, cache_settings):
        """A queued write cannot resurrect a deleted key."""
        await cache.set("k1", "v")
        await cache.delete("k1")
        await cache.flush()
        assert _files(cache_settings) == []

    async def test_delete_during_flush_leaves_no_shadows(self, cache, cache_settings):
        """Flush writes still in flight must not recreate deleted shadows."""
        keys = [f"k{i}" for i in range(50)]
        for key in keys:
            await cache.set(key, key)
        await cache.flush()

        await asyncio.gather(cache.flush(), *(cache.delete(k) for k in keys))

        assert _files(cache_settings) == []

    async def test_clear_during_flush_leaves_no_shadows(self, cache, cache_settings, clock):
        """Flush writes still in flight must not recreate cleared shadows."""
        for i in range(50):
            await cache.set(f"k{i}", i)
        await cache.flush()

        await asyncio.gather(cache.flush(), cache.clear())

        assert _files(cache_settings) == []

        restarted = ResponseCache(cache_settings, clock=clock)
        await restarted.start()
        try:
            assert restarted.get_stats().entries == 0
        finally:
            await restarted.close()

    async def test_delete_missing_key(self, cache):
        """Deleting an unknown key returns False."""
        assert await cache.delete("nope") is False

    async def test_clear(self, cache, cache_settings):
        """Clear wipes memory, stats and shadow files."""
        await cache.set("k1", "v")
        await cache.set("k2", "v")
        await cache.get("k1")
        await cache.clear()

        stats = cache.get_stats()
        assert stats.entries == 0
        assert stats.hits == 0
        assert _files(cache_settings) == []
        assert await cache.get("k1") is None

    async def test_clear_is_idempotent(self, cache):
        """Clearing twice leaves everything at zero."""
        await cache.set("k1", "v")
        await cache.get("k1")
        await cache.clear()
        await cache.clear()
        stats = cache.get_stats()
        assert (stats.hits, stats.misses, stats.entries, stats.size_bytes) == (0, 0, 0, 0)
        assert cache.get_entries_summary() == []

    async def test_clear_by_pattern(self, cache, cache_settings):
        """Pattern clear removes only matching keys and their shadows."""
        await cache.set("resume_parsing-aaa", 1)
        await cache.set("resume_parsing-bbb", 2)
        await cache.set("job_matching-ccc", 3)
        await cache.flush()

        removed = await cache.clear_by_pattern("^resume_parsing-")

        assert removed == 2
        assert await cache.get("job_matching-ccc") == 3
        assert _files(cache_settings) == ["job_matching-ccc.json"]

    async def test_cleanup_expired(self, cache, clock):
        """Cleanup sweep drops expired memory entries."""
        await cache.set("short", "v", ttl_seconds=10)
        await cache.set("long", "v", ttl_seconds=1000)
        clock.advance(30)
        assert await cache.cleanup_expired() == 1
        assert cache.get_stats().entries == 1


class TestEntriesSummary:
    async def test_sorted_by_hit_count(self, cache):
        """Summary lists most-hit entries first."""
        await cache.set("cold", "v")
        await cache.set("hot", "v")
        await cache.set("warm", "v")
        for _ in range(3):
            await cache.get("hot")
        await cache.get("warm")

        summary = cache.get_entries_summary()

        assert [s.key for s in summary] == ["hot", "warm", "cold"]

    async def test_ages_and_expiry(self, cache, clock):
        """Ages and remaining lifetimes follow the clock."""
        await cache.set("k1", "v", ttl_seconds=100)
        clock.advance(40)
        (entry,) = cache.get_entries_summary()
        assert entry.age_ms == pytest.approx(40_000)
        assert entry.expires_in_ms == pytest.approx(60_000)
