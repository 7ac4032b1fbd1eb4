"""
Unit tests for the two-tier cache.

Tests cover:
- Memory hits, durable hits with memory backfill, misses
- TTL expiry against an injected clock
- Cache-aside get_or_fetch (no fetch on hit, None not cached)
- Single-flight coalescing of concurrent misses
- Durable-tier and serialization failures degrading to miss/no-op
- Asset invalidation and stats
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from asset_snapshot.services.data_manager import CacheKeys, TwoTierCache

ADDRESS = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"


class TestMemoryTier:
    """Test the in-process tier alone."""

    @pytest.mark.asyncio
    async def test_set_then_get(self, clock):
        """A value written is read back."""
        cache = TwoTierCache(clock=clock)
        assert await cache.set("k", {"a": 1}, 60) is True
        assert await cache.get("k") == {"a": 1}

    @pytest.mark.asyncio
    async def test_returns_copies(self, clock):
        """Mutating a returned value does not change the cached one."""
        cache = TwoTierCache(clock=clock)
        original = {"pairs": [1, 2]}
        await cache.set("k", original, 60)
        original["pairs"].append(3)

        first = await cache.get("k")
        first["pairs"].append(99)

        assert await cache.get("k") == {"pairs": [1, 2]}

    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self, clock):
        """Valid iff now < written_at + ttl."""
        cache = TwoTierCache(clock=clock)
        await cache.set("k", "v", 10)

        clock.advance(9.9)
        assert await cache.get("k") == "v"

        clock.advance(0.1)
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_non_positive_ttl_is_not_stored(self, clock):
        """TTL of zero skips the write."""
        cache = TwoTierCache(clock=clock)
        assert await cache.set("k", "v", 0) is False
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_unserializable_value_is_skipped(self, clock):
        """Serialization errors are logged, not raised."""
        cache = TwoTierCache(clock=clock)
        assert await cache.set("k", {"bad": object()}, 60) is False
        assert await cache.get("k") is None


class TestDurableTier:
    """Test behavior with a Redis-backed durable tier."""

    @pytest.mark.asyncio
    async def test_durable_hit_backfills_memory(self, clock, redis_cache, fake_redis):
        """A fresh process reads through to Redis and backfills memory."""
        writer = TwoTierCache(durable=redis_cache, clock=clock)
        await writer.set("k", {"v": 1}, 60)

        reader = TwoTierCache(durable=redis_cache, clock=clock)
        assert await reader.get("k") == {"v": 1}
        assert reader.stats()["durable_hits"] == 1

        # Durable copy gone, memory still serves it
        fake_redis.store.clear()
        assert await reader.get("k") == {"v": 1}
        assert reader.stats()["memory_hits"] == 1

    @pytest.mark.asyncio
    async def test_durable_write_carries_ttl(self, clock, redis_cache, fake_redis):
        """The durable entry expires with the same TTL."""
        cache = TwoTierCache(durable=redis_cache, clock=clock)
        await cache.set("k", "v", 42)
        assert fake_redis.ttls["k"] == 42

    @pytest.mark.asyncio
    async def test_durable_read_error_is_a_miss(self, clock, redis_cache, fake_redis):
        """A Redis outage degrades to a miss."""
        cache = TwoTierCache(durable=redis_cache, clock=clock)
        fake_redis.fail_with = ConnectionError("redis down")

        assert await cache.get("missing") is None

    @pytest.mark.asyncio
    async def test_durable_write_error_keeps_memory(
        self, clock, redis_cache, fake_redis
    ):
        """A Redis outage on write still fills the fast tier."""
        cache = TwoTierCache(durable=redis_cache, clock=clock)
        fake_redis.fail_with = ConnectionError("redis down")

        assert await cache.set("k", "v", 60) is True
        assert await cache.get("k") == "v"

    @pytest.mark.asyncio
    async def test_foreign_durable_value_is_a_miss(self, clock, redis_cache):
        """Values not written by the cache are ignored."""
        await redis_cache.set("k", {"unexpected": True}, ttl_seconds=60)
        cache = TwoTierCache(durable=redis_cache, clock=clock)
        assert await cache.get("k") is None


class TestGetOrFetch:
    """Test cache-aside reads."""

    @pytest.mark.asyncio
    async def test_hit_does_not_fetch(self, clock):
        """A valid entry short-circuits the fetch function."""
        cache = TwoTierCache(clock=clock)
        await cache.set("k", "cached", 60)
        fetch = AsyncMock(return_value="fresh")

        assert await cache.get_or_fetch("k", fetch, 60) == "cached"
        fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_miss_fetches_and_stores(self, clock):
        """A miss fetches once; the next read is a hit."""
        cache = TwoTierCache(clock=clock)
        fetch = AsyncMock(return_value={"x": 1})

        assert await cache.get_or_fetch("k", fetch, 60) == {"x": 1}
        assert await cache.get_or_fetch("k", fetch, 60) == {"x": 1}
        fetch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_none_is_not_cached(self, clock):
        """None results are returned but every read refetches."""
        cache = TwoTierCache(clock=clock)
        fetch = AsyncMock(return_value=None)

        assert await cache.get_or_fetch("k", fetch, 60) is None
        assert await cache.get_or_fetch("k", fetch, 60) is None
        assert fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_fetch_error_propagates_and_is_not_cached(self, clock):
        """Errors reach the caller and nothing is stored."""
        cache = TwoTierCache(clock=clock)
        fetch = AsyncMock(side_effect=RuntimeError("source down"))

        with pytest.raises(RuntimeError):
            await cache.get_or_fetch("k", fetch, 60)
        assert await cache.get("k") is None
        assert cache.stats()["inflight"] == 0

    @pytest.mark.asyncio
    async def test_expired_entry_refetches(self, clock):
        """After the TTL the fetch runs again."""
        cache = TwoTierCache(clock=clock)
        fetch = AsyncMock(side_effect=["v1", "v2"])

        assert await cache.get_or_fetch("k", fetch, 10) == "v1"
        clock.advance(11)
        assert await cache.get_or_fetch("k", fetch, 10) == "v2"

    @pytest.mark.asyncio
    async def test_concurrent_misses_share_one_fetch(self, clock):
        """Single-flight: N concurrent misses cause one upstream call."""
        cache = TwoTierCache(clock=clock)
        release = asyncio.Event()
        calls = 0

        async def fetch():
            nonlocal calls
            calls += 1
            await release.wait()
            return {"value": 7}

        waiters = [
            asyncio.create_task(cache.get_or_fetch("k", fetch, 60)) for _ in range(5)
        ]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*waiters)

        assert calls == 1
        assert results == [{"value": 7}] * 5

    @pytest.mark.asyncio
    async def test_coalescing_can_be_disabled(self, clock):
        """Without coalescing every concurrent miss fetches."""
        cache = TwoTierCache(clock=clock, coalesce_misses=False)
        release = asyncio.Event()
        calls = 0

        async def fetch():
            nonlocal calls
            calls += 1
            await release.wait()
            return "v"

        waiters = [
            asyncio.create_task(cache.get_or_fetch("k", fetch, 60)) for _ in range(3)
        ]
        await asyncio.sleep(0)
        release.set()
        await asyncio.gather(*waiters)

        assert calls == 3


class TestInvalidation:
    """Test delete and per-asset invalidation."""

    @pytest.mark.asyncio
    async def test_invalidate_asset_removes_every_facet(
        self, clock, redis_cache, fake_redis
    ):
        """All facet keys of the asset are removed from both tiers."""
        cache = TwoTierCache(durable=redis_cache, clock=clock)
        await cache.set(CacheKeys.security(ADDRESS), {"a": 1}, 60)
        await cache.set(CacheKeys.trade(ADDRESS), {"b": 2}, 60)
        await cache.set(CacheKeys.price("sol"), "150", 60)

        deleted = await cache.invalidate_asset(ADDRESS)

        assert deleted == 2
        assert await cache.get(CacheKeys.security(ADDRESS)) is None
        assert CacheKeys.security(ADDRESS) not in fake_redis.store
        assert await cache.get(CacheKeys.price("sol")) == "150"

    @pytest.mark.asyncio
    async def test_delete_missing_key(self, clock):
        """Deleting an unknown key reports False."""
        cache = TwoTierCache(clock=clock)
        assert await cache.delete("nope") is False
