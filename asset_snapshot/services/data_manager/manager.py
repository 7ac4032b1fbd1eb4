"""
Data Aggregator - single entry point for per-token market data.

The DataAggregator provides a unified interface for:
- Security profile (Birdeye)
- Trade metrics (Birdeye token overview)
- Liquidity venue pairs (DexScreener)
- Registry metadata (Codex)
- Holder list (Helius, cursor-paginated)

Key Features:
- Every facet read goes through the TwoTierCache (cache-aside, per-facet TTL)
- Facets fetched in parallel with asyncio.gather
- A failed facet falls back to its typed default; the snapshot still assembles
- Holder failures are absorbed here and flagged on the snapshot
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import structlog

from ...core.exceptions import AssetIdentifierError, HolderAggregationError
from ...core.identifiers import AssetIdentifier, as_identifier
from ...core.utils.cache_utils import get_facet_ttl
from ..signals import TradeSignalEvaluator
from .cache import TwoTierCache
from .keys import CacheKeys
from .types import (
    DEFAULT_LIQUIDITY_PAIRS,
    DEFAULT_SECURITY,
    AssetMetadata,
    AssetSnapshot,
    HighValueHolder,
    HolderRecord,
    HolderTrend,
    LiquidityPair,
    SecurityProfile,
    TradeMetrics,
    facet_default,
    highest_liquidity_pair,
)

if TYPE_CHECKING:
    from ..market_data.birdeye import BirdeyeClient
    from ..market_data.codex import CodexClient
    from ..market_data.dexscreener import DexScreenerClient
    from ..market_data.holders import HolderAggregator

logger = structlog.get_logger(__name__)

# Windows averaged for the holder-distribution trend
TREND_WINDOWS = ("30m", "1h", "2h", "4h", "8h", "24h")
TREND_INCREASE_THRESHOLD = 10.0
TREND_DECREASE_THRESHOLD = -10.0

HIGH_VALUE_HOLDER_USD = 5.0
HIGH_SUPPLY_HOLDER_RATIO = 0.02


def analyze_holder_trend(metrics: TradeMetrics) -> HolderTrend:
    """
    Classify unique-wallet growth.

    Averages the unique-wallet change percent over every trend window, a
    window with no data counting as 0. Above +10% is increasing, below -10%
    is decreasing, anything else is stable.
    """
    changes = [
        metrics.window(window).unique_wallet_change_percent or 0.0
        for window in TREND_WINDOWS
    ]
    average = sum(changes) / len(changes)
    if average > TREND_INCREASE_THRESHOLD:
        return HolderTrend.INCREASING
    if average < TREND_DECREASE_THRESHOLD:
        return HolderTrend.DECREASING
    return HolderTrend.STABLE


def filter_high_value_holders(
    holders: list[HolderRecord],
    price: float,
    threshold_usd: float = HIGH_VALUE_HOLDER_USD,
) -> list[HighValueHolder]:
    """Holders whose balance is worth more than ``threshold_usd`` at ``price``."""
    if price <= 0:
        return []

    return [
        HighValueHolder(
            holder_address=h.address, balance_usd=round(h.balance * price, 2)
        )
        for h in holders
        if h.balance * price > threshold_usd
    ]


def count_high_supply_holders(
    holders: list[HolderRecord],
    security: SecurityProfile,
    ratio: float = HIGH_SUPPLY_HOLDER_RATIO,
) -> int:
    """Holders owning more than ``ratio`` of the owner+creator supply."""
    supply = security.supply_proxy
    if supply <= 0:
        return 0
    return sum(1 for h in holders if h.balance / supply > ratio)


class DataAggregator:
    """
    Assembles AssetSnapshots from cached or freshly fetched facets.

    Facet getters (``get_security`` etc.) are strict: source errors propagate.
    ``assemble_snapshot`` is lenient: any facet failure becomes that facet's
    default, and holder failures only mark holder data as unavailable.
    """

    def __init__(
        self,
        cache: TwoTierCache,
        birdeye: "BirdeyeClient",
        codex: "CodexClient",
        dexscreener: "DexScreenerClient",
        holders: "HolderAggregator",
        evaluator: TradeSignalEvaluator | None = None,
        facet_ttl: int | None = None,
    ):
        """
        Initialize the Data Aggregator.

        Args:
            cache: Two-tier cache for facet payloads
            birdeye: Security, overview and search source
            codex: Registry metadata source
            dexscreener: Liquidity venue source
            holders: Holder aggregator
            evaluator: Trade signal evaluator used by ``should_trade``
            facet_ttl: Override the per-facet TTL map with one TTL for all facets
        """
        self._cache = cache
        self._birdeye = birdeye
        self._codex = codex
        self._dexscreener = dexscreener
        self._holders = holders
        self._evaluator = evaluator or TradeSignalEvaluator()
        self._facet_ttl = facet_ttl
        logger.info("data_aggregator_initialized")

    def _ttl(self, facet: str) -> int:
        return self._facet_ttl if self._facet_ttl is not None else get_facet_ttl(facet)

    async def _cached(
        self,
        key: str,
        facet: str,
        fetch_func: Callable[[], Awaitable[Any]],
    ) -> Any:
        return await self._cache.get_or_fetch(key, fetch_func, self._ttl(facet))

    # =========================================================================
    # Facets
    # =========================================================================

    async def get_security(self, asset: AssetIdentifier | str) -> SecurityProfile:
        """
        Get the security profile for a token.

        Raises:
            AssetIdentifierError: No address
            ExternalServiceError: Source failed (including FetchError)
        """
        address = as_identifier(asset).require()

        async def fetch_func() -> dict[str, Any]:
            return (await self._birdeye.fetch_security(address)).to_dict()

        data = await self._cached(CacheKeys.security(address), "security", fetch_func)
        return SecurityProfile.from_dict(data)

    async def get_trade_metrics(self, asset: AssetIdentifier | str) -> TradeMetrics:
        """
        Get trade metrics for a token.

        Metrics with a zero price are treated as stale: the cached entry is
        dropped and fetched once more.
        """
        address = as_identifier(asset).require()
        key = CacheKeys.trade(address)

        async def fetch_func() -> dict[str, Any]:
            return (await self._birdeye.fetch_trade_metrics(address)).to_dict()

        metrics = TradeMetrics.from_dict(await self._cached(key, "trade", fetch_func))
        if not metrics.price:
            logger.warning("trade_metrics_zero_price", address=address)
            await self._cache.delete(key)
            metrics = TradeMetrics.from_dict(
                await self._cached(key, "trade", fetch_func)
            )
        return metrics

    async def get_liquidity_pairs(
        self, asset: AssetIdentifier | str
    ) -> list[LiquidityPair]:
        """Get liquidity venue pairs for a token, in source order."""
        address = as_identifier(asset).require()

        async def fetch_func() -> list[dict[str, Any]]:
            pairs = await self._dexscreener.search_pairs(address)
            return [p.to_dict() for p in pairs]

        data = await self._cached(CacheKeys.liquidity(address), "liquidity", fetch_func)
        return [LiquidityPair.from_dict(p) for p in data]

    async def get_metadata(self, asset: AssetIdentifier | str) -> AssetMetadata:
        """Get registry metadata for a token."""
        address = as_identifier(asset).require()

        async def fetch_func() -> dict[str, Any]:
            return (await self._codex.fetch_metadata(address)).to_dict()

        data = await self._cached(CacheKeys.metadata(address), "metadata", fetch_func)
        return AssetMetadata.from_dict(data)

    async def get_holders(self, asset: AssetIdentifier | str) -> list[HolderRecord]:
        """
        Get the deduplicated holder list for a token.

        Raises:
            HolderAggregationError: Holder collection failed
        """
        address = as_identifier(asset).require()

        async def fetch_func() -> list[dict[str, Any]]:
            holders = await self._holders.collect_holders(address)
            return [h.to_dict() for h in holders]

        data = await self._cached(CacheKeys.holders(address), "holders", fetch_func)
        return [HolderRecord.from_dict(h) for h in data]

    # =========================================================================
    # Snapshot
    # =========================================================================

    async def assemble_snapshot(self, asset: AssetIdentifier | str) -> AssetSnapshot:
        """
        Assemble the merged snapshot for a token.

        Never fails because of a source: each facet falls back to its default.

        Raises:
            AssetIdentifierError: No address to query
        """
        identifier = as_identifier(asset)
        address = identifier.require()

        logger.info("snapshot_assembly_started", address=address)

        results = await asyncio.gather(
            self.get_security(identifier),
            self.get_metadata(identifier),
            self.get_trade_metrics(identifier),
            self.get_liquidity_pairs(identifier),
            return_exceptions=True,
        )
        security_result, metadata_result, metrics_result, pairs_result = results

        security = self._facet_or_default(
            "security",
            address,
            security_result,
            lambda: facet_default(DEFAULT_SECURITY),
        )
        metadata = self._facet_or_default(
            "metadata",
            address,
            metadata_result,
            lambda: AssetMetadata.default(address),
        )
        metrics = self._facet_or_default(
            "trade", address, metrics_result, lambda: TradeMetrics.default(address)
        )
        pairs = self._facet_or_default(
            "liquidity",
            address,
            pairs_result,
            lambda: list(facet_default(DEFAULT_LIQUIDITY_PAIRS)),
        )

        snapshot = AssetSnapshot(
            asset=address,
            security=security,
            metrics=metrics,
            liquidity_pairs=pairs,
            metadata=metadata,
            holder_distribution_trend=analyze_holder_trend(metrics),
            recent_trades=metrics.volume_24h_usd > 0,
        )

        try:
            holders = await self.get_holders(identifier)
        except HolderAggregationError as e:
            logger.warning("holder_data_unavailable", address=address, **e.to_dict())
            snapshot.holders_available = False
        else:
            snapshot.high_value_holders = filter_high_value_holders(
                holders, metrics.price
            )
            snapshot.high_supply_holders_count = count_high_supply_holders(
                holders, security
            )

        logger.info(
            "snapshot_assembled",
            address=address,
            listed=snapshot.is_listed,
            pairs=len(pairs),
            holders_available=snapshot.holders_available,
        )
        return snapshot

    def _facet_or_default(
        self,
        facet: str,
        address: str,
        result: Any,
        default_factory: Callable[[], Any],
    ) -> Any:
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.warning(
                "facet_fetch_failed",
                facet=facet,
                address=address,
                error=str(result),
                error_type=type(result).__name__,
            )
            return default_factory()
        return result

    # =========================================================================
    # Symbol lookups
    # =========================================================================

    async def resolve_symbol(self, symbol: str) -> AssetIdentifier:
        """
        Resolve a symbol to a mint address.

        Picks the highest 24h-volume token whose symbol matches exactly.

        Raises:
            AssetIdentifierError: No token matches
        """

        async def fetch_func() -> str | None:
            return await self._birdeye.find_address_by_symbol(symbol)

        address = await self._cached(CacheKeys.symbol(symbol), "metadata", fetch_func)
        if not address:
            raise AssetIdentifierError(
                f"No token found for symbol {symbol!r}", symbol=symbol
            )
        return AssetIdentifier(address)

    async def search_liquidity(self, symbol: str) -> LiquidityPair | None:
        """
        Deepest venue pair for a symbol.

        Returns:
            Highest-liquidity pair (ties by market cap), or None when the
            search fails or finds nothing
        """

        async def fetch_func() -> list[dict[str, Any]] | None:
            pairs = await self._dexscreener.search_pairs(symbol)
            return [p.to_dict() for p in pairs] or None

        try:
            data = await self._cached(
                CacheKeys.liquidity_search(symbol), "liquidity_search", fetch_func
            )
        except Exception as e:
            logger.warning("liquidity_search_failed", symbol=symbol, error=str(e))
            return None

        if not data:
            return None
        return highest_liquidity_pair([LiquidityPair.from_dict(p) for p in data])

    # =========================================================================
    # Cache management / signal
    # =========================================================================

    async def invalidate(self, asset: AssetIdentifier | str) -> int:
        """
        Drop every cached facet of a token.

        Returns:
            Number of keys invalidated
        """
        address = as_identifier(asset).require()
        return await self._cache.invalidate_asset(address)

    async def should_trade(self, asset: AssetIdentifier | str) -> bool:
        """Assemble a snapshot and evaluate the trade signal on it."""
        snapshot = await self.assemble_snapshot(asset)
        return self._evaluator.evaluate(snapshot)
