"""
Reference price cache.

Short-lived USD prices for a small basket of reference tokens (SOL, BTC, ETH),
stored in Redis under ``prices:<symbol>`` as plain strings with SETEX.

``CachedPriceProvider`` wraps any ``PriceProvider`` with read-through caching:
single lookups hit the cache first, multi lookups only fetch the symbols that
missed, in one batched call, and bulk-write them back.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

import structlog

from ...core.utils.date_utils import utcnow
from ...database.redis import RedisCache
from ...shared.formatters import safe_optional_float
from ..data_manager.keys import CacheKeys
from ..market_data.birdeye import BirdeyeClient

logger = structlog.get_logger(__name__)

DEFAULT_PRICE_TTL = 300  # 5 minutes


@dataclass
class ReferencePrice:
    """A reference price observation."""

    symbol: str
    value: float
    written_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "value": self.value,
            "written_at": self.written_at.isoformat(),
        }


class PriceProvider(Protocol):
    """Capability to look up USD prices by symbol."""

    async def fetch_price(self, symbol: str) -> float | None: ...

    async def fetch_prices(self, symbols: list[str]) -> dict[str, float]: ...


class PriceCache:
    """Redis-backed TTL store for reference prices."""

    def __init__(self, store: RedisCache, default_ttl: int = DEFAULT_PRICE_TTL):
        """
        Initialize price cache.

        Args:
            store: Connected RedisCache
            default_ttl: TTL in seconds for ``set`` without a TTL and for ``set_bulk``
        """
        self._store = store
        self.default_ttl = default_ttl

    async def get(self, symbol: str) -> float | None:
        """Cached price for a symbol, or None on miss or store error."""
        key = CacheKeys.price(symbol)
        try:
            value = await self._store.get(key)
        except Exception as e:
            logger.warning("price_cache_get_error", symbol=symbol, error=str(e))
            return None

        price = safe_optional_float(value)
        logger.debug("price_cache_lookup", symbol=symbol, hit=price is not None)
        return price

    async def set(self, symbol: str, price: float, ttl: int | None = None) -> bool:
        """
        Store a price with its own expiry.

        Returns:
            True on success, False on store error
        """
        key = CacheKeys.price(symbol)
        try:
            await self._store.setex(key, ttl or self.default_ttl, str(price))
            return True
        except Exception as e:
            logger.warning("price_cache_set_error", symbol=symbol, error=str(e))
            return False

    async def set_bulk(self, prices: dict[str, float]) -> int:
        """
        Store several prices in one pipeline with the default TTL.

        Returns:
            Number of prices written (0 on store error)
        """
        if not prices:
            return 0

        values = {CacheKeys.price(s): str(p) for s, p in prices.items()}
        try:
            written = await self._store.setex_many(values, self.default_ttl)
        except Exception as e:
            logger.warning(
                "price_cache_bulk_set_error", symbols=list(prices), error=str(e)
            )
            return 0

        logger.debug("price_cache_bulk_set", count=written)
        return written

    async def get_stats(self) -> dict[str, Any]:
        """Number and names of cached price keys."""
        keys = await self._store.scan_keys(f"{CacheKeys.PRICES}:*")
        return {"total_keys": len(keys), "keys": sorted(keys)}


class CachedPriceProvider:
    """Read-through caching decorator for a PriceProvider."""

    def __init__(self, provider: PriceProvider, cache: PriceCache):
        self._provider = provider
        self._cache = cache

    async def fetch_price(self, symbol: str) -> float | None:
        """Cached price, fetching and storing it on miss."""
        cached = await self._cache.get(symbol)
        if cached is not None:
            return cached

        price = await self._provider.fetch_price(symbol)
        if price is not None:
            await self._cache.set(symbol, price)
        return price

    async def fetch_prices(self, symbols: list[str]) -> dict[str, float]:
        """
        Prices for several symbols.

        Cache hits are served directly; the misses go to the provider in one
        batched call and are bulk-written back. Symbols the provider could not
        price are absent from the result.
        """
        cached = await asyncio.gather(*(self._cache.get(s) for s in symbols))

        prices: dict[str, float] = {}
        missed: list[str] = []
        for symbol, price in zip(symbols, cached, strict=True):
            if price is not None:
                prices[symbol] = price
            else:
                missed.append(symbol)

        logger.debug("price_lookup_partitioned", hits=len(prices), misses=len(missed))

        if missed:
            fetched = await self._provider.fetch_prices(missed)
            await self._cache.set_bulk(fetched)
            prices.update(fetched)

        return prices

    async def get_reference_prices(self, symbols: list[str]) -> list[ReferencePrice]:
        """Prices for ``symbols`` stamped with the lookup time."""
        now = utcnow()
        prices = await self.fetch_prices(symbols)
        return [
            ReferencePrice(symbol=s, value=p, written_at=now) for s, p in prices.items()
        ]


class ReferencePriceProvider:
    """
    Raw price lookup for the reference basket via Birdeye.

    Symbols are mapped to mint addresses through ``token_addresses``.
    """

    def __init__(self, birdeye: BirdeyeClient, token_addresses: dict[str, str]):
        self._birdeye = birdeye
        self._addresses = {s.upper(): a for s, a in token_addresses.items()}

    @property
    def symbols(self) -> list[str]:
        return list(self._addresses)

    async def fetch_price(self, symbol: str) -> float | None:
        """
        Fetch one price.

        Returns:
            Price, or None for unknown symbols and zero/missing prices

        Raises:
            FetchError: Retries exhausted
        """
        address = self._addresses.get(symbol.upper())
        if address is None:
            logger.warning("reference_price_unknown_symbol", symbol=symbol)
            return None

        price = await self._birdeye.fetch_price(address)
        if not price:
            return None
        return price

    async def fetch_prices(self, symbols: list[str]) -> dict[str, float]:
        """
        Fetch several prices concurrently.

        Symbols that fail or price at zero are skipped.
        """
        results = await asyncio.gather(
            *(self.fetch_price(s) for s in symbols), return_exceptions=True
        )

        prices: dict[str, float] = {}
        for symbol, result in zip(symbols, results, strict=True):
            if isinstance(result, Exception):
                logger.warning(
                    "reference_price_fetch_failed", symbol=symbol, error=str(result)
                )
                continue
            if result:
                prices[symbol] = result
        return prices
