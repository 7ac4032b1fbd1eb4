"""
External market data sources for Solana tokens.

This module is organized into the following components:
- base: Fetcher wiring and error helpers shared by every source
- birdeye: Security profile, token overview, price and symbol search
- codex: Registry metadata over GraphQL
- dexscreener: Liquidity venue pairs
- holders: Cursor-paginated holder aggregation over Helius RPC
"""

from .base import MarketDataSource
from .birdeye import BirdeyeClient, parse_overview, parse_security
from .codex import CodexClient, parse_token
from .dexscreener import DexScreenerClient, highest_liquidity_pair, parse_pair
from .holders import HolderAggregator

__all__ = [
    "MarketDataSource",
    "BirdeyeClient",
    "CodexClient",
    "DexScreenerClient",
    "HolderAggregator",
    "highest_liquidity_pair",
    "parse_overview",
    "parse_security",
    "parse_pair",
    "parse_token",
]
