"""
Two-tier cache for the Data Manager Layer.

Cache-aside over two tiers:
- Fast tier: in-process dict of ``CacheEntry`` (lives as long as the process)
- Durable tier: shared store such as Redis (survives restarts, shared across workers)

Reads check the fast tier, then the durable tier (backfilling the fast tier on
a durable hit). Writes go to both. Durable-tier and serialization failures are
logged and degrade to a miss or no-op; they never reach the caller.

Values must be JSON-compatible. Callers always receive copies.
"""

import asyncio
import copy
import json
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, Protocol

import structlog

from ...core.utils.cache_utils import DEFAULT_FACET_TTL
from ...core.utils.date_utils import utcnow
from .keys import CacheKeys
from .types import CacheEntry

logger = structlog.get_logger(__name__)


class DurableCacheStore(Protocol):
    """Shared key/value store with per-key expiry (e.g. ``RedisCache``)."""

    async def get(self, key: str) -> Any | None: ...

    async def set(
        self, key: str, value: Any, ttl_seconds: int | None = None
    ) -> bool: ...

    async def delete(self, key: str) -> bool: ...


class TwoTierCache:
    """
    In-process + durable cache-aside store.

    Concurrent misses for the same key share one in-flight fetch when
    ``coalesce_misses`` is enabled. A hit never triggers a fetch.
    """

    def __init__(
        self,
        durable: DurableCacheStore | None = None,
        default_ttl: int = DEFAULT_FACET_TTL,
        coalesce_misses: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize cache.

        Args:
            durable: Durable tier; None runs memory-only
            default_ttl: TTL in seconds when ``set`` is called without one
            coalesce_misses: Share one fetch between concurrent misses per key
            clock: Returns the current UTC time, injectable for tests
        """
        self._durable = durable
        self.default_ttl = default_ttl
        self.coalesce_misses = coalesce_misses
        self._clock = clock

        self._entries: dict[str, CacheEntry[Any]] = {}
        self._inflight: dict[str, asyncio.Task[Any]] = {}

        self._memory_hits = 0
        self._durable_hits = 0
        self._misses = 0

    # =========================================================================
    # Read / write
    # =========================================================================

    async def get(self, key: str) -> Any | None:
        """
        Get cached value by key.

        Args:
            key: Cache key

        Returns:
            Copy of the cached value, or None on miss
        """
        now = self._clock()

        entry = self._entries.get(key)
        if entry is not None:
            if entry.is_valid(now):
                self._memory_hits += 1
                logger.debug("cache_hit", key=key, tier="memory")
                return copy.deepcopy(entry.value)

            del self._entries[key]
            logger.debug("cache_entry_expired", key=key, tier="memory")

        entry = await self._durable_get(key)
        if entry is not None and entry.is_valid(now):
            self._entries[key] = entry
            self._durable_hits += 1
            logger.debug("cache_hit", key=key, tier="durable")
            return copy.deepcopy(entry.value)

        self._misses += 1
        logger.debug("cache_miss", key=key)
        return None

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> bool:
        """
        Write a value to both tiers.

        Args:
            key: Cache key
            value: JSON-compatible value
            ttl_seconds: Time-to-live (defaults to ``default_ttl``)

        Returns:
            True if the fast tier was written, False on skip or serialization failure
        """
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            logger.debug("cache_skip_no_ttl", key=key)
            return False

        try:
            # JSON round-trip validates the value and detaches it from the caller
            stored = json.loads(json.dumps(value))
        except (TypeError, ValueError) as e:
            logger.warning("cache_serialization_error", key=key, error=str(e))
            return False

        written_at = self._clock()
        self._entries[key] = CacheEntry(value=stored, written_at=written_at, ttl=ttl)

        if self._durable is not None:
            envelope = {
                "value": stored,
                "written_at": written_at.isoformat(),
                "ttl": ttl,
            }
            try:
                await self._durable.set(key, envelope, ttl_seconds=ttl)
            except Exception as e:
                logger.warning("cache_durable_set_error", key=key, error=str(e))

        logger.debug("cache_set", key=key, ttl=ttl)
        return True

    async def delete(self, key: str) -> bool:
        """
        Remove a key from both tiers.

        Returns:
            True if the key was present in either tier
        """
        removed = self._entries.pop(key, None) is not None

        if self._durable is not None:
            try:
                removed = bool(await self._durable.delete(key)) or removed
            except Exception as e:
                logger.warning("cache_durable_delete_error", key=key, error=str(e))

        logger.debug("cache_delete", key=key, deleted=removed)
        return removed

    async def get_or_fetch(
        self,
        key: str,
        fetch_func: Callable[[], Awaitable[Any]],
        ttl_seconds: int | None = None,
    ) -> Any:
        """
        Get cached value or fetch and cache it on miss.

        ``None`` results are returned but not cached. Errors from
        ``fetch_func`` propagate to every caller waiting on that fetch.

        Args:
            key: Cache key
            fetch_func: Async function returning a JSON-compatible value
            ttl_seconds: TTL for the fetched value

        Returns:
            Cached or fetched value (a copy)
        """
        cached = await self.get(key)
        if cached is not None:
            return cached

        if not self.coalesce_misses:
            return await self._fetch_and_store(key, fetch_func, ttl_seconds)

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(
                self._fetch_and_store(key, fetch_func, ttl_seconds)
            )
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._forget_inflight(k, t))
        else:
            logger.debug("cache_fetch_coalesced", key=key)

        # Shield so a cancelled waiter does not cancel the fetch for the others
        result = await asyncio.shield(task)
        return copy.deepcopy(result)

    # =========================================================================
    # Cache management
    # =========================================================================

    async def invalidate_asset(self, address: str) -> int:
        """
        Remove every facet key of an asset from both tiers.

        Returns:
            Number of keys that were present
        """
        deleted = 0
        for key in CacheKeys.asset_keys(address):
            if await self.delete(key):
                deleted += 1

        logger.info("cache_invalidate_asset", address=address, deleted=deleted)
        return deleted

    def stats(self) -> dict[str, int]:
        """Fast-tier size and hit/miss counters."""
        return {
            "memory_entries": len(self._entries),
            "memory_hits": self._memory_hits,
            "durable_hits": self._durable_hits,
            "misses": self._misses,
            "inflight": len(self._inflight),
        }

    # =========================================================================
    # Internals
    # =========================================================================

    async def _fetch_and_store(
        self,
        key: str,
        fetch_func: Callable[[], Awaitable[Any]],
        ttl_seconds: int | None,
    ) -> Any:
        logger.debug("cache_fetch_started", key=key)
        result = await fetch_func()
        if result is not None:
            await self.set(key, result, ttl_seconds)
        return result

    def _forget_inflight(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    async def _durable_get(self, key: str) -> CacheEntry[Any] | None:
        if self._durable is None:
            return None

        try:
            raw = await self._durable.get(key)
        except Exception as e:
            logger.warning("cache_durable_get_error", key=key, error=str(e))
            return None

        if raw is None:
            return None

        try:
            return CacheEntry(
                value=raw["value"],
                written_at=datetime.fromisoformat(raw["written_at"]),
                ttl=int(raw["ttl"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("cache_durable_decode_error", key=key, error=str(e))
            return None
