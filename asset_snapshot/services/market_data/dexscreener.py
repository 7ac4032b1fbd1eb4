"""
DexScreener client for liquidity venue pairs.

DexScreener is unauthenticated; numeric fields such as ``priceUsd`` arrive as
strings.
"""

from typing import Any

import structlog

from ...shared.formatters import safe_float, safe_int
from ..data_manager.types import LiquidityPair, highest_liquidity_pair
from ..http.fetcher import ResilientFetcher
from .base import MarketDataSource

logger = structlog.get_logger()


def parse_pair(raw: dict[str, Any]) -> LiquidityPair:
    """Convert one DexScreener pair object into a LiquidityPair."""
    base = raw.get("baseToken") or {}
    quote = raw.get("quoteToken") or {}
    liquidity = raw.get("liquidity") or {}
    volume = raw.get("volume") or {}
    boosts = raw.get("boosts") or {}
    return LiquidityPair(
        chain_id=raw.get("chainId") or "",
        dex_id=raw.get("dexId") or "",
        url=raw.get("url") or "",
        pair_address=raw.get("pairAddress") or "",
        base_symbol=base.get("symbol") or "",
        quote_symbol=quote.get("symbol") or "",
        price_usd=safe_float(raw.get("priceUsd")),
        liquidity_usd=safe_float(liquidity.get("usd")),
        market_cap=safe_float(raw.get("marketCap")),
        fdv=safe_float(raw.get("fdv")),
        volume_h24=safe_float(volume.get("h24")),
        boosts_active=safe_int(boosts.get("active")),
    )


class DexScreenerClient(MarketDataSource):
    """DexScreener public API client."""

    service_name = "dexscreener"
    requires_api_key = False

    def __init__(self, fetcher: ResilientFetcher, base_url: str):
        super().__init__(fetcher)
        self.base_url = base_url.rstrip("/")

    async def search_pairs(self, query: str) -> list[LiquidityPair]:
        """
        Search venue pairs by address or symbol.

        Returns:
            Pairs in the order DexScreener returned them (may be empty)

        Raises:
            FetchError: Retries exhausted
            ExternalServiceError: Response has no ``pairs`` field
        """
        payload = await self._fetcher.get_json(
            f"{self.base_url}/latest/dex/search", params={"q": query}
        )

        if not isinstance(payload, dict) or payload.get("pairs") is None:
            raise self._error(
                f"No DexScreener data available: {self._preview(payload)}", query=query
            )

        pairs = [parse_pair(p) for p in payload["pairs"] if isinstance(p, dict)]
        logger.info(
            "dexscreener_pairs_fetched",
            query=query,
            schema_version=payload.get("schemaVersion"),
            pairs=len(pairs),
        )
        return pairs
