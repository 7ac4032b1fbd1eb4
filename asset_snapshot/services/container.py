"""
Service container.

Builds every service from Settings and owns the shared resources (HTTP client,
Redis connection, price stats task). Nothing here is a module-level singleton:
construct a container, use it, then ``aclose()`` it (or use ``async with``).

Usage:
    async with await ServiceContainer.create() as services:
        snapshot = await services.aggregator.assemble_snapshot(mint)
        sol = await services.get_price("SOL")
"""

import httpx
import structlog
from redis.exceptions import RedisError

from ..core.config import Settings, get_settings
from ..database.redis import RedisCache
from .data_manager.cache import TwoTierCache
from .data_manager.manager import DataAggregator
from .http.fetcher import ResilientFetcher, build_http_client
from .market_data.birdeye import BirdeyeClient
from .market_data.codex import CodexClient
from .market_data.dexscreener import DexScreenerClient
from .market_data.holders import HolderAggregator
from .pricing.monitor import PriceCacheMonitor
from .pricing.price_cache import (
    CachedPriceProvider,
    PriceCache,
    ReferencePrice,
    ReferencePriceProvider,
)
from .signals import TradeSignalEvaluator

logger = structlog.get_logger(__name__)


class ServiceContainer:
    """Wires sources, caches, the aggregator and the price store together."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        redis_cache: RedisCache | None = None,
    ):
        """
        Build all services.

        Args:
            settings: Application settings
            http_client: Shared HTTP client (closed by ``aclose``)
            redis_cache: Connected RedisCache; None runs without the durable
                tier and without the price store
        """
        self.settings = settings
        self.http_client = http_client
        self.redis_cache = redis_cache

        self.birdeye = BirdeyeClient(
            self._fetcher(
                "birdeye",
                {"X-API-KEY": settings.birdeye_api_key, "x-chain": "solana"},
            ),
            base_url=settings.birdeye_base_url,
            api_key=settings.birdeye_api_key,
        )
        self.codex = CodexClient(
            self._fetcher(
                "codex",
                {
                    "Content-Type": "application/json",
                    "Authorization": settings.codex_api_key,
                },
            ),
            graphql_url=settings.codex_graphql_url,
            network_id=settings.codex_network_id,
            api_key=settings.codex_api_key,
        )
        self.dexscreener = DexScreenerClient(
            self._fetcher("dexscreener"), base_url=settings.dexscreener_base_url
        )
        self.holders = HolderAggregator(
            self._fetcher("helius", {"Content-Type": "application/json"}),
            rpc_url=settings.helius_url,
            page_limit=settings.holder_page_limit,
            max_pages=settings.holder_max_pages,
        )

        self.cache = TwoTierCache(
            durable=redis_cache,
            default_ttl=settings.facet_cache_ttl,
            coalesce_misses=settings.coalesce_cache_misses,
        )
        self.evaluator = TradeSignalEvaluator()
        self.aggregator = DataAggregator(
            self.cache,
            birdeye=self.birdeye,
            codex=self.codex,
            dexscreener=self.dexscreener,
            holders=self.holders,
            evaluator=self.evaluator,
            facet_ttl=settings.facet_cache_ttl,
        )

        self.reference_prices = ReferencePriceProvider(
            self.birdeye, settings.reference_tokens
        )
        self.price_cache: PriceCache | None = None
        self.price_monitor: PriceCacheMonitor | None = None
        if redis_cache is not None:
            self.price_cache = PriceCache(redis_cache, settings.price_cache_ttl)
            self.prices = CachedPriceProvider(self.reference_prices, self.price_cache)
            self.price_monitor = PriceCacheMonitor(
                self.price_cache, settings.price_stats_interval_seconds
            )
        else:
            self.prices = self.reference_prices

        logger.info(
            "service_container_initialized",
            durable_cache=redis_cache is not None,
            environment=settings.environment,
        )

    def _fetcher(
        self, service: str, headers: dict[str, str] | None = None
    ) -> ResilientFetcher:
        return ResilientFetcher(
            self.http_client,
            service=service,
            max_attempts=self.settings.fetch_max_attempts,
            base_delay=self.settings.fetch_retry_base_delay,
            default_headers=headers,
        )

    @classmethod
    async def create(
        cls,
        settings: Settings | None = None,
        use_redis: bool = True,
        start_monitor: bool = False,
    ) -> "ServiceContainer":
        """
        Connect shared resources and build the container.

        Args:
            settings: Settings to use (defaults to ``get_settings()``)
            use_redis: Connect to Redis for the durable tier and price store.
                An unreachable Redis is logged and the container runs without it
            start_monitor: Start the periodic price stats logger
        """
        settings = settings or get_settings()
        http_client = build_http_client(
            timeout_seconds=settings.http_timeout_seconds,
            max_connections=settings.http_max_connections,
            max_keepalive_connections=settings.http_max_keepalive_connections,
        )

        redis_cache: RedisCache | None = None
        if use_redis:
            redis_cache = RedisCache()
            try:
                await redis_cache.connect(
                    settings.redis_url,
                    max_retries=settings.redis_max_retries,
                    retry_cap_seconds=settings.redis_retry_cap_seconds,
                )
            except (RedisError, OSError) as e:
                logger.warning("redis_unavailable", error=str(e))
                await redis_cache.disconnect()
                redis_cache = None

        container = cls(settings, http_client, redis_cache)
        if start_monitor and container.price_monitor is not None:
            container.price_monitor.start()
        return container

    async def get_price(self, symbol: str) -> float | None:
        """Reference price for one symbol (read-through cached when Redis is up)."""
        return await self.prices.fetch_price(symbol)

    async def get_prices(self, symbols: list[str] | None = None) -> dict[str, float]:
        """Reference prices for ``symbols`` (defaults to the whole basket)."""
        return await self.prices.fetch_prices(
            symbols or self.reference_prices.symbols
        )

    async def get_reference_prices(self) -> list[ReferencePrice]:
        """Timestamped prices for the reference basket."""
        if isinstance(self.prices, CachedPriceProvider):
            return await self.prices.get_reference_prices(self.reference_prices.symbols)

        from ..core.utils.date_utils import utcnow

        now = utcnow()
        prices = await self.prices.fetch_prices(self.reference_prices.symbols)
        return [
            ReferencePrice(symbol=s, value=p, written_at=now) for s, p in prices.items()
        ]

    async def aclose(self) -> None:
        """Stop background work and release the HTTP client and Redis connection."""
        if self.price_monitor is not None:
            await self.price_monitor.stop()
        await self.http_client.aclose()
        if self.redis_cache is not None:
            await self.redis_cache.disconnect()
        logger.info("service_container_closed")

    async def __aenter__(self) -> "ServiceContainer":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
