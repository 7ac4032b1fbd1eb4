"""
Birdeye market data client.

Security profile, token overview (trade metrics), spot price and token search
for Solana tokens. Every response is wrapped as ``{"success": bool, "data": ...}``.
"""

from typing import Any

import structlog

from ...shared.formatters import safe_float, safe_int, safe_optional_float
from ..data_manager.types import (
    NULLABLE_WINDOW_FIELDS,
    TRADE_WINDOWS,
    SecurityProfile,
    TradeMetrics,
    TradeWindow,
)
from ..http.fetcher import ResilientFetcher
from .base import MarketDataSource

logger = structlog.get_logger()

# TradeWindow field -> overview key template ({w} is the window, e.g. "24h")
OVERVIEW_FIELD_KEYS: dict[str, str] = {
    "history_price": "history{w}Price",
    "price_change_percent": "priceChange{w}Percent",
    "unique_wallet": "uniqueWallet{w}",
    "unique_wallet_history": "uniqueWalletHistory{w}",
    "unique_wallet_change_percent": "uniqueWallet{w}ChangePercent",
    "trade": "trade{w}",
    "trade_history": "tradeHistory{w}",
    "trade_change_percent": "trade{w}ChangePercent",
    "buy": "buy{w}",
    "buy_history": "buyHistory{w}",
    "buy_change_percent": "buy{w}ChangePercent",
    "sell": "sell{w}",
    "sell_history": "sellHistory{w}",
    "sell_change_percent": "sell{w}ChangePercent",
    "volume": "v{w}",
    "volume_usd": "v{w}USD",
    "volume_history": "vHistory{w}",
    "volume_history_usd": "vHistory{w}USD",
    "volume_change_percent": "v{w}ChangePercent",
    "volume_buy": "vBuy{w}",
    "volume_buy_usd": "vBuy{w}USD",
    "volume_buy_history": "vBuyHistory{w}",
    "volume_buy_history_usd": "vBuyHistory{w}USD",
    "volume_buy_change_percent": "vBuy{w}ChangePercent",
    "volume_sell": "vSell{w}",
    "volume_sell_usd": "vSell{w}USD",
    "volume_sell_history": "vSellHistory{w}",
    "volume_sell_history_usd": "vSellHistory{w}USD",
    "volume_sell_change_percent": "vSell{w}ChangePercent",
}

SEARCH_PAGE_SIZE = 20


def parse_overview_window(overview: dict[str, Any], window: str) -> TradeWindow:
    """
    Extract one trade window from a token overview payload.

    Nullable fields stay None only when the key is missing; a reported 0 is kept.
    """
    nullable = NULLABLE_WINDOW_FIELDS.get(window, frozenset())
    values: dict[str, float | None] = {}
    for name, template in OVERVIEW_FIELD_KEYS.items():
        raw = overview.get(template.format(w=window))
        values[name] = safe_optional_float(raw) if name in nullable else safe_float(raw)
    return TradeWindow(**values)


def parse_overview(address: str, overview: dict[str, Any]) -> TradeMetrics:
    """Convert a Birdeye token overview into TradeMetrics."""
    return TradeMetrics(
        address=address,
        holder=safe_int(overview.get("holder")),
        market=safe_int(overview.get("numberMarkets")),
        last_trade_unix_time=safe_int(overview.get("lastTradeUnixTime")),
        last_trade_human_time=overview.get("lastTradeHumanTime") or "",
        price=safe_float(overview.get("price")),
        windows={w: parse_overview_window(overview, w) for w in TRADE_WINDOWS},
    )


def parse_security(data: dict[str, Any]) -> SecurityProfile:
    """Convert a Birdeye token security payload into SecurityProfile."""
    return SecurityProfile(
        owner_balance=str(data.get("ownerBalance") or "0"),
        creator_balance=str(data.get("creatorBalance") or "0"),
        owner_percentage=safe_float(data.get("ownerPercentage")),
        creator_percentage=safe_float(data.get("creatorPercentage")),
        top10_holder_balance=str(data.get("top10HolderBalance") or "0"),
        top10_holder_percent=safe_float(data.get("top10HolderPercent")),
    )


class BirdeyeClient(MarketDataSource):
    """Birdeye public API client."""

    service_name = "birdeye"

    def __init__(self, fetcher: ResilientFetcher, base_url: str, api_key: str = ""):
        super().__init__(fetcher, api_key)
        self.base_url = base_url.rstrip("/")

    async def _get_data(self, path: str, params: dict[str, Any], what: str) -> Any:
        """GET an endpoint and unwrap ``data``, failing on ``success: false``."""
        payload = await self._fetcher.get_json(f"{self.base_url}{path}", params=params)

        if not isinstance(payload, dict) or not (
            payload.get("success") and payload.get("data")
        ):
            raise self._error(
                f"No {what} data available: {self._preview(payload)}", path=path
            )
        return payload["data"]

    async def fetch_security(self, address: str) -> SecurityProfile:
        """
        Fetch token ownership concentration.

        Raises:
            FetchError: Retries exhausted
            ExternalServiceError: Response carried no data
        """
        data = await self._get_data(
            "/defi/token_security", {"address": address}, "token security"
        )
        logger.info("birdeye_security_fetched", address=address)
        return parse_security(data)

    async def fetch_trade_metrics(self, address: str) -> TradeMetrics:
        """
        Fetch the token overview and normalize it into TradeMetrics.

        Raises:
            FetchError: Retries exhausted
            ExternalServiceError: Response carried no data
        """
        data = await self._get_data(
            "/defi/token_overview", {"address": address}, "token overview"
        )
        metrics = parse_overview(address, data)
        logger.info("birdeye_overview_fetched", address=address, price=metrics.price)
        return metrics

    async def fetch_price(self, address: str) -> float | None:
        """
        Fetch the USD spot price of a token.

        Returns:
            Price, or None when the response carries no value
        """
        payload = await self._fetcher.get_json(
            f"{self.base_url}/defi/price", params={"address": address}
        )
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            logger.warning("birdeye_price_missing", address=address)
            return None
        return safe_optional_float(data.get("value"))

    async def search_tokens(self, keyword: str) -> list[dict[str, Any]]:
        """
        Search verified Solana tokens by keyword, sorted by 24h USD volume.

        Returns:
            Raw token entries (each has at least ``address``, ``symbol``,
            ``volume_24h_usd``)
        """
        payload = await self._fetcher.get_json(
            f"{self.base_url}/defi/v3/search",
            params={
                "chain": "solana",
                "keyword": keyword,
                "target": "token",
                "sort_by": "volume_24h_usd",
                "sort_type": "desc",
                "verify_token": "true",
                "offset": 0,
                "limit": SEARCH_PAGE_SIZE,
            },
        )
        data = payload.get("data") if isinstance(payload, dict) else None

        # v3 nests results under items[].result; older responses return a flat list
        if isinstance(data, list):
            tokens = data
        elif isinstance(data, dict):
            tokens = []
            for item in data.get("items") or []:
                tokens.extend(item.get("result") or [])
        else:
            tokens = []

        logger.info("birdeye_search_completed", keyword=keyword, results=len(tokens))
        return [t for t in tokens if isinstance(t, dict)]

    async def find_address_by_symbol(self, symbol: str) -> str | None:
        """
        Resolve a symbol to the highest-volume exact symbol match.

        Returns:
            Mint address, or None when no token matches the symbol exactly
        """
        tokens = await self.search_tokens(symbol)
        wanted = symbol.strip().upper()

        matches = [t for t in tokens if str(t.get("symbol", "")).upper() == wanted]
        if not matches:
            logger.warning("birdeye_symbol_not_found", symbol=symbol)
            return None

        best = max(matches, key=lambda t: safe_float(t.get("volume_24h_usd")))
        return best.get("address") or None
