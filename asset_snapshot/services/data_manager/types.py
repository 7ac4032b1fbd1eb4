"""
Data types for the Data Manager Layer.

These models define the structure of each facet returned by the DML, plus the
merged ``AssetSnapshot`` read-model. Facets are cached individually as plain
JSON dicts (``to_dict``) and rebuilt with ``from_dict``; the snapshot itself is
never cached.
"""

import copy
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from ...core.utils import date_utils
from ...core.utils.date_utils import utcnow
from ...shared.formatters import safe_float, safe_int, safe_optional_float

T = TypeVar("T")

# Fixed set of trade windows reported by the market-data source
TRADE_WINDOWS: tuple[str, ...] = ("30m", "1h", "2h", "4h", "6h", "8h", "12h", "24h")

# Windows whose fields may be legitimately absent ("no data", not zero)
NULLABLE_WINDOW_FIELDS: dict[str, frozenset[str]] = {
    "8h": frozenset(
        {
            "unique_wallet_history",
            "unique_wallet_change_percent",
            "trade_history",
            "trade_change_percent",
            "buy_history",
            "buy_change_percent",
            "sell_history",
            "sell_change_percent",
            "volume_change_percent",
            "volume_buy_change_percent",
            "volume_sell_change_percent",
        }
    ),
    "24h": frozenset(
        {
            "unique_wallet_history",
            "unique_wallet_change_percent",
            "trade_change_percent",
            "buy_change_percent",
            "sell_change_percent",
            "volume_change_percent",
            "volume_buy_change_percent",
            "volume_sell_change_percent",
        }
    ),
}


class HolderTrend(str, Enum):
    """Direction of unique-wallet growth across trade windows."""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


@dataclass
class CacheEntry(Generic[T]):
    """
    Value stored in the in-process cache tier.

    An entry is valid iff ``now < written_at + ttl``.
    """

    value: T
    written_at: datetime
    ttl: int

    @property
    def expires_at(self) -> datetime:
        return date_utils.expires_at(self.written_at, self.ttl)

    def is_valid(self, now: datetime | None = None) -> bool:
        """Check whether the entry is still within its TTL."""
        return (now or utcnow()) < self.expires_at


@dataclass
class SecurityProfile:
    """Ownership concentration facts for a token."""

    owner_balance: str = "0"
    creator_balance: str = "0"
    owner_percentage: float = 0.0
    creator_percentage: float = 0.0
    top10_holder_balance: str = "0"
    top10_holder_percent: float = 0.0

    @property
    def supply_proxy(self) -> float:
        """Owner + creator balance, used as the total-supply denominator."""
        return safe_float(self.owner_balance) + safe_float(self.creator_balance)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "owner_balance": self.owner_balance,
            "creator_balance": self.creator_balance,
            "owner_percentage": self.owner_percentage,
            "creator_percentage": self.creator_percentage,
            "top10_holder_balance": self.top10_holder_balance,
            "top10_holder_percent": self.top10_holder_percent,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SecurityProfile":
        """Create from dictionary."""
        return cls(
            owner_balance=str(data.get("owner_balance") or "0"),
            creator_balance=str(data.get("creator_balance") or "0"),
            owner_percentage=safe_float(data.get("owner_percentage")),
            creator_percentage=safe_float(data.get("creator_percentage")),
            top10_holder_balance=str(data.get("top10_holder_balance") or "0"),
            top10_holder_percent=safe_float(data.get("top10_holder_percent")),
        )


@dataclass
class TradeWindow:
    """
    Trade activity for one time window.

    Each counter carries the current value, the prior-period value and the
    percent change between them. Volumes are reported in native units and USD.
    """

    history_price: float | None = 0.0
    price_change_percent: float | None = 0.0
    unique_wallet: float | None = 0.0
    unique_wallet_history: float | None = 0.0
    unique_wallet_change_percent: float | None = 0.0
    trade: float | None = 0.0
    trade_history: float | None = 0.0
    trade_change_percent: float | None = 0.0
    buy: float | None = 0.0
    buy_history: float | None = 0.0
    buy_change_percent: float | None = 0.0
    sell: float | None = 0.0
    sell_history: float | None = 0.0
    sell_change_percent: float | None = 0.0
    volume: float | None = 0.0
    volume_usd: float | None = 0.0
    volume_history: float | None = 0.0
    volume_history_usd: float | None = 0.0
    volume_change_percent: float | None = 0.0
    volume_buy: float | None = 0.0
    volume_buy_usd: float | None = 0.0
    volume_buy_history: float | None = 0.0
    volume_buy_history_usd: float | None = 0.0
    volume_buy_change_percent: float | None = 0.0
    volume_sell: float | None = 0.0
    volume_sell_usd: float | None = 0.0
    volume_sell_history: float | None = 0.0
    volume_sell_history_usd: float | None = 0.0
    volume_sell_change_percent: float | None = 0.0

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def default_for(cls, window: str) -> "TradeWindow":
        """Zero-valued window with the window's nullable fields set to None."""
        nullable = NULLABLE_WINDOW_FIELDS.get(window, frozenset())
        return cls(**{name: None for name in nullable})

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {name: getattr(self, name) for name in self.field_names()}

    @classmethod
    def from_dict(cls, data: dict[str, Any], window: str) -> "TradeWindow":
        """
        Create from dictionary.

        Nullable fields keep ``None`` when absent; all others coerce to 0.
        """
        nullable = NULLABLE_WINDOW_FIELDS.get(window, frozenset())
        values: dict[str, float | None] = {}
        for name in cls.field_names():
            raw = data.get(name)
            if name in nullable:
                values[name] = safe_optional_float(raw)
            else:
                values[name] = safe_float(raw)
        return cls(**values)


def _default_windows() -> dict[str, TradeWindow]:
    return {window: TradeWindow.default_for(window) for window in TRADE_WINDOWS}


@dataclass
class TradeMetrics:
    """Price plus per-window trade activity for a token."""

    address: str = ""
    holder: int = 0
    market: int = 0
    last_trade_unix_time: int = 0
    last_trade_human_time: str = ""
    price: float = 0.0
    windows: dict[str, TradeWindow] = field(default_factory=_default_windows)

    def window(self, name: str) -> TradeWindow:
        """Get a window by name (e.g. "24h"), falling back to its default."""
        return self.windows.get(name) or TradeWindow.default_for(name)

    @property
    def volume_24h_usd(self) -> float:
        return self.window("24h").volume_usd or 0.0

    @property
    def unique_wallet_24h(self) -> float:
        return self.window("24h").unique_wallet or 0.0

    @property
    def price_change_24h_percent(self) -> float:
        return self.window("24h").price_change_percent or 0.0

    @property
    def price_change_12h_percent(self) -> float:
        return self.window("12h").price_change_percent or 0.0

    @classmethod
    def default(cls, address: str = "") -> "TradeMetrics":
        """Zero-valued metrics used when the trade facet is unavailable."""
        return cls(address=address, last_trade_human_time=utcnow().isoformat())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": self.address,
            "holder": self.holder,
            "market": self.market,
            "last_trade_unix_time": self.last_trade_unix_time,
            "last_trade_human_time": self.last_trade_human_time,
            "price": self.price,
            "windows": {name: w.to_dict() for name, w in self.windows.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TradeMetrics":
        """Create from dictionary."""
        raw_windows = data.get("windows") or {}
        return cls(
            address=data.get("address", ""),
            holder=safe_int(data.get("holder")),
            market=safe_int(data.get("market")),
            last_trade_unix_time=safe_int(data.get("last_trade_unix_time")),
            last_trade_human_time=data.get("last_trade_human_time") or "",
            price=safe_float(data.get("price")),
            windows={
                window: TradeWindow.from_dict(raw_windows.get(window) or {}, window)
                if window in raw_windows
                else TradeWindow.default_for(window)
                for window in TRADE_WINDOWS
            },
        )


@dataclass
class LiquidityPair:
    """One decentralized-exchange venue's view of a token."""

    chain_id: str = ""
    dex_id: str = ""
    url: str = ""
    pair_address: str = ""
    base_symbol: str = ""
    quote_symbol: str = ""
    price_usd: float = 0.0
    liquidity_usd: float = 0.0
    market_cap: float = 0.0
    fdv: float = 0.0
    volume_h24: float = 0.0
    boosts_active: int = 0

    @property
    def is_promoted(self) -> bool:
        """True when the listing carries active paid boosts."""
        return self.boosts_active > 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "chain_id": self.chain_id,
            "dex_id": self.dex_id,
            "url": self.url,
            "pair_address": self.pair_address,
            "base_symbol": self.base_symbol,
            "quote_symbol": self.quote_symbol,
            "price_usd": self.price_usd,
            "liquidity_usd": self.liquidity_usd,
            "market_cap": self.market_cap,
            "fdv": self.fdv,
            "volume_h24": self.volume_h24,
            "boosts_active": self.boosts_active,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LiquidityPair":
        """Create from dictionary."""
        return cls(
            chain_id=data.get("chain_id", ""),
            dex_id=data.get("dex_id", ""),
            url=data.get("url", ""),
            pair_address=data.get("pair_address", ""),
            base_symbol=data.get("base_symbol", ""),
            quote_symbol=data.get("quote_symbol", ""),
            price_usd=safe_float(data.get("price_usd")),
            liquidity_usd=safe_float(data.get("liquidity_usd")),
            market_cap=safe_float(data.get("market_cap")),
            fdv=safe_float(data.get("fdv")),
            volume_h24=safe_float(data.get("volume_h24")),
            boosts_active=safe_int(data.get("boosts_active")),
        )


def highest_liquidity_pair(pairs: list[LiquidityPair]) -> LiquidityPair | None:
    """
    Pick the deepest venue.

    Ordered by USD liquidity, ties broken by market cap. Returns None for an
    empty list.
    """
    if not pairs:
        return None
    return max(pairs, key=lambda p: (p.liquidity_usd, p.market_cap))


@dataclass
class HolderRecord:
    """One distinct owner with balances summed across token accounts."""

    address: str
    balance: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"address": self.address, "balance": self.balance}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HolderRecord":
        """Create from dictionary."""
        return cls(address=data["address"], balance=safe_float(data.get("balance")))


@dataclass
class HighValueHolder:
    """Holder whose position is worth more than the reporting threshold."""

    holder_address: str
    balance_usd: float

    def to_dict(self) -> dict[str, Any]:
        return {"holder_address": self.holder_address, "balance_usd": self.balance_usd}


@dataclass
class AssetMetadata:
    """Registry-style identity facts for a token."""

    id: str = ""
    address: str = ""
    cmc_id: int = 0
    decimals: int = 9
    name: str = ""
    symbol: str = ""
    total_supply: str = "0"
    circulating_supply: str = "0"
    image_thumb_url: str = ""
    blue_checkmark: bool = False
    is_scam: bool = False

    @classmethod
    def default(cls, address: str = "") -> "AssetMetadata":
        """Metadata used when the registry facet is unavailable."""
        return cls(address=address)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "address": self.address,
            "cmc_id": self.cmc_id,
            "decimals": self.decimals,
            "name": self.name,
            "symbol": self.symbol,
            "total_supply": self.total_supply,
            "circulating_supply": self.circulating_supply,
            "image_thumb_url": self.image_thumb_url,
            "blue_checkmark": self.blue_checkmark,
            "is_scam": self.is_scam,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AssetMetadata":
        """Create from dictionary."""
        return cls(
            id=str(data.get("id") or ""),
            address=data.get("address") or "",
            cmc_id=safe_int(data.get("cmc_id")),
            decimals=safe_int(data.get("decimals"), default=9),
            name=data.get("name") or "",
            symbol=data.get("symbol") or "",
            total_supply=str(data.get("total_supply") or "0"),
            circulating_supply=str(data.get("circulating_supply") or "0"),
            image_thumb_url=data.get("image_thumb_url") or "",
            blue_checkmark=bool(data.get("blue_checkmark")),
            is_scam=bool(data.get("is_scam")),
        )


# Typed facet defaults. Always hand out copies (see ``facet_default``).
DEFAULT_SECURITY = SecurityProfile()
DEFAULT_LIQUIDITY_PAIRS: tuple[LiquidityPair, ...] = ()


def facet_default(value: T) -> T:
    """Return an independent copy of a facet default."""
    return copy.deepcopy(value)


@dataclass
class AssetSnapshot:
    """
    Merged read-model for one asset, assembled fresh per request.

    ``holders_available`` is False when holder collection failed; the
    holder-derived fields then hold their empty values.
    """

    asset: str
    security: SecurityProfile = field(default_factory=SecurityProfile)
    metrics: TradeMetrics = field(default_factory=TradeMetrics)
    liquidity_pairs: list[LiquidityPair] = field(default_factory=list)
    metadata: AssetMetadata = field(default_factory=AssetMetadata)
    holder_distribution_trend: HolderTrend = HolderTrend.STABLE
    high_value_holders: list[HighValueHolder] = field(default_factory=list)
    recent_trades: bool = False
    high_supply_holders_count: int = 0
    holders_available: bool = True

    @property
    def is_listed(self) -> bool:
        """Listed on at least one liquidity venue."""
        return len(self.liquidity_pairs) > 0

    @property
    def is_promoted(self) -> bool:
        """Any venue carries an active paid boost."""
        return any(pair.is_promoted for pair in self.liquidity_pairs)

    @property
    def primary_pair(self) -> LiquidityPair | None:
        """First venue as returned by the liquidity source."""
        return self.liquidity_pairs[0] if self.liquidity_pairs else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "asset": self.asset,
            "security": self.security.to_dict(),
            "metrics": self.metrics.to_dict(),
            "liquidity_pairs": [p.to_dict() for p in self.liquidity_pairs],
            "metadata": self.metadata.to_dict(),
            "holder_distribution_trend": self.holder_distribution_trend.value,
            "high_value_holders": [h.to_dict() for h in self.high_value_holders],
            "recent_trades": self.recent_trades,
            "high_supply_holders_count": self.high_supply_holders_count,
            "holders_available": self.holders_available,
            "is_listed": self.is_listed,
            "is_promoted": self.is_promoted,
        }
