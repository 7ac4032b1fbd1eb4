"""
Trade signal evaluation.

Derives a trade-worthiness signal from an assembled AssetSnapshot. The signal
is the OR of seven threshold checks. Five of them flag market activity
(concentration, volume, 24h/12h price moves, wallet count) and two flag a
venue that is too thin (low liquidity, low market cap).

Because both kinds sit in the same OR, an illiquid token with no activity
still evaluates to True. ``evaluate`` keeps that behavior; ``triage`` reports
the two kinds separately so callers can tell them apart.
"""

import math
from enum import Enum
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from .data_manager.types import AssetSnapshot

logger = structlog.get_logger(__name__)


class TradeSignal(str, Enum):
    """Triage outcome for a snapshot."""

    SKIP = "skip"
    CAUTION = "caution"
    PROCEED = "proceed"


class SignalThresholds(BaseModel):
    """Threshold configuration for the trade signal."""

    concentration: float = Field(
        default=0.05, description="24h USD volume / owner+creator supply, at or above"
    )
    volume_24h_usd: float = Field(
        default=1000, description="24h USD volume, at or above"
    )
    price_change_24h_percent: float = Field(
        default=10, description="24h price change %, at or above"
    )
    price_change_12h_percent: float = Field(
        default=5, description="12h price change %, at or above"
    )
    unique_wallets_24h: float = Field(
        default=100, description="24h unique wallets, at or above"
    )
    min_liquidity_usd: float = Field(
        default=1000, description="Primary venue liquidity, below flags illiquid"
    )
    min_market_cap: float = Field(
        default=100_000, description="Primary venue market cap, below flags illiquid"
    )


class SignalBreakdown(BaseModel):
    """Computed inputs and every threshold flag for one evaluation."""

    concentration: float
    volume_24h_usd: float
    price_change_24h_percent: float
    price_change_12h_percent: float
    unique_wallets_24h: float
    liquidity_usd: float
    market_cap: float

    high_concentration: bool
    high_volume: bool
    price_surge_24h: bool
    price_surge_12h: bool
    wallet_activity: bool
    liquidity_too_low: bool
    market_cap_too_low: bool

    @property
    def activity_detected(self) -> bool:
        return (
            self.high_concentration
            or self.high_volume
            or self.price_surge_24h
            or self.price_surge_12h
            or self.wallet_activity
        )

    @property
    def illiquid(self) -> bool:
        return self.liquidity_too_low or self.market_cap_too_low

    @property
    def signal(self) -> bool:
        return self.activity_detected or self.illiquid


class BuyAmounts(BaseModel):
    """Suggested buy sizes in SOL by price-impact tier."""

    none: float = 0.0
    low: float = 0.0
    medium: float = 0.0
    high: float = 0.0


# Share of primary-venue liquidity per buy tier
BUY_IMPACT_TIERS = {"low": 0.01, "medium": 0.05, "high": 0.10}


class TradeSignalEvaluator:
    """Evaluates snapshots against SignalThresholds."""

    def __init__(self, thresholds: SignalThresholds | None = None):
        self.thresholds = thresholds or SignalThresholds()

    def breakdown(self, snapshot: "AssetSnapshot") -> SignalBreakdown | None:
        """
        Compute every input and flag.

        Concentration is 24h USD volume over owner+creator supply. With zero
        supply any positive volume counts as an infinite ratio and fires.

        Returns:
            Breakdown, or None when the snapshot has no liquidity venue
        """
        pair = snapshot.primary_pair
        if pair is None:
            logger.info("signal_missing_liquidity", asset=snapshot.asset)
            return None

        t = self.thresholds
        metrics = snapshot.metrics
        supply = snapshot.security.supply_proxy
        volume = metrics.volume_24h_usd
        change_24h = metrics.price_change_24h_percent
        change_12h = metrics.price_change_12h_percent
        wallets = metrics.unique_wallet_24h

        # Zero supply: any volume is an unbounded ratio, no volume is no ratio
        if supply > 0:
            concentration = volume / supply
        else:
            concentration = math.inf if volume > 0 else 0.0
        high_concentration = volume > 0 and concentration >= t.concentration

        return SignalBreakdown(
            concentration=concentration,
            volume_24h_usd=volume,
            price_change_24h_percent=change_24h,
            price_change_12h_percent=change_12h,
            unique_wallets_24h=wallets,
            liquidity_usd=pair.liquidity_usd,
            market_cap=pair.market_cap,
            high_concentration=high_concentration,
            high_volume=volume >= t.volume_24h_usd,
            price_surge_24h=change_24h >= t.price_change_24h_percent,
            price_surge_12h=change_12h >= t.price_change_12h_percent,
            wallet_activity=wallets >= t.unique_wallets_24h,
            liquidity_too_low=pair.liquidity_usd < t.min_liquidity_usd,
            market_cap_too_low=pair.market_cap < t.min_market_cap,
        )

    def evaluate(self, snapshot: "AssetSnapshot") -> bool:
        """
        OR of every threshold check.

        Fails closed (False) when the snapshot has no liquidity venue.
        """
        result = self.breakdown(snapshot)
        if result is None:
            return False

        logger.debug(
            "signal_evaluated",
            asset=snapshot.asset,
            signal=result.signal,
            activity=result.activity_detected,
            illiquid=result.illiquid,
        )
        return result.signal

    def triage(self, snapshot: "AssetSnapshot") -> TradeSignal:
        """
        Three-way outcome.

        PROCEED when any activity check fires, CAUTION when only the
        illiquidity checks fire, SKIP otherwise (including no venue).
        """
        result = self.breakdown(snapshot)
        if result is None:
            return TradeSignal.SKIP
        if result.activity_detected:
            return TradeSignal.PROCEED
        if result.illiquid:
            return TradeSignal.CAUTION
        return TradeSignal.SKIP


def calculate_buy_amounts(
    snapshot: "AssetSnapshot",
    sol_price: float | None,
    min_market_cap: float = 100_000,
) -> BuyAmounts:
    """
    Size buys as a share of primary-venue liquidity, converted to SOL.

    All tiers are zero when there is no venue, the venue has no liquidity,
    its market cap is below ``min_market_cap``, or the SOL price is unknown.
    """
    pair = snapshot.primary_pair
    if pair is None or pair.liquidity_usd <= 0 or not sol_price or sol_price <= 0:
        return BuyAmounts()
    if pair.market_cap < min_market_cap:
        return BuyAmounts()

    return BuyAmounts(
        **{
            tier: pair.liquidity_usd * share / sol_price
            for tier, share in BUY_IMPACT_TIERS.items()
        }
    )
