"""
Data Manager Layer (DML) - Single source of truth for per-token data access.

This module provides a unified interface for fetching and caching token
facets, ensuring consistent cache key naming, per-facet TTLs, and no duplicate
upstream calls.

Usage:
    from asset_snapshot.services.data_manager import DataAggregator, TwoTierCache

    cache = TwoTierCache(durable=redis_cache)
    aggregator = DataAggregator(cache, birdeye, codex, dexscreener, holders)

    snapshot = await aggregator.assemble_snapshot(mint_address)
    signal = await aggregator.should_trade(mint_address)

Cache Key Convention:
    {domain}:{facet}:{identifier}

    Examples:
    - token:security:<mint>
    - token:trade:<mint>
    - token:liquidity_search:BONK
    - prices:sol
"""

from .cache import DurableCacheStore, TwoTierCache
from .keys import CacheKeys
from .manager import (
    DataAggregator,
    analyze_holder_trend,
    count_high_supply_holders,
    filter_high_value_holders,
)
from .types import (
    TRADE_WINDOWS,
    AssetMetadata,
    AssetSnapshot,
    CacheEntry,
    HighValueHolder,
    HolderRecord,
    HolderTrend,
    LiquidityPair,
    SecurityProfile,
    TradeMetrics,
    TradeWindow,
    highest_liquidity_pair,
)

__all__ = [
    "DataAggregator",
    "CacheKeys",
    "TwoTierCache",
    "DurableCacheStore",
    "CacheEntry",
    "AssetSnapshot",
    "AssetMetadata",
    "SecurityProfile",
    "TradeMetrics",
    "TradeWindow",
    "LiquidityPair",
    "HolderRecord",
    "HighValueHolder",
    "HolderTrend",
    "TRADE_WINDOWS",
    "analyze_holder_trend",
    "count_high_supply_holders",
    "filter_high_value_holders",
    "highest_liquidity_pair",
]
