"""
Unit tests for Data Manager Layer types.

Tests cover:
- Facet dataclasses to_dict/from_dict
- Nullable trade window fields
- Typed defaults handed out as copies
- Snapshot derived properties
"""

from asset_snapshot.services.data_manager.types import (
    DEFAULT_SECURITY,
    TRADE_WINDOWS,
    AssetMetadata,
    AssetSnapshot,
    HolderRecord,
    LiquidityPair,
    SecurityProfile,
    TradeMetrics,
    TradeWindow,
    facet_default,
    highest_liquidity_pair,
)

MINT = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"


class TestSecurityProfile:
    """Test SecurityProfile dataclass."""

    def test_supply_proxy_sums_owner_and_creator(self):
        profile = SecurityProfile(owner_balance="1500.5", creator_balance="500")
        assert profile.supply_proxy == 2000.5

    def test_from_dict_fills_missing(self):
        profile = SecurityProfile.from_dict({"owner_percentage": "12.5"})
        assert profile.owner_balance == "0"
        assert profile.owner_percentage == 12.5


class TestTradeWindow:
    """Test trade windows and nullable fields."""

    def test_default_for_nullable_windows(self):
        """8h and 24h history fields default to None; others to 0."""
        assert TradeWindow.default_for("24h").unique_wallet_history is None
        assert TradeWindow.default_for("8h").trade_history is None
        assert TradeWindow.default_for("24h").trade_history == 0.0
        assert TradeWindow.default_for("1h").unique_wallet_history == 0.0

    def test_from_dict_keeps_none_only_for_nullable(self):
        data = {"unique_wallet_history": None, "trade": None}
        window = TradeWindow.from_dict(data, "24h")

        assert window.unique_wallet_history is None
        assert window.trade == 0.0

    def test_field_count(self):
        assert len(TradeWindow.field_names()) == 29


class TestTradeMetrics:
    """Test TradeMetrics dataclass."""

    def test_every_window_present(self):
        metrics = TradeMetrics.default(MINT)
        assert set(metrics.windows) == set(TRADE_WINDOWS)

    def test_json_round_trip_preserves_nulls(self):
        """A cached facet rebuilds with the same None/0 distinction."""
        metrics = TradeMetrics.default(MINT)
        metrics.price = 2.5
        metrics.windows["24h"] = TradeWindow(volume_usd=100.0, unique_wallet_history=None)

        rebuilt = TradeMetrics.from_dict(metrics.to_dict())

        assert rebuilt == metrics
        assert rebuilt.window("24h").unique_wallet_history is None

    def test_shortcuts(self):
        metrics = TradeMetrics.default(MINT)
        metrics.windows["12h"] = TradeWindow(price_change_percent=7.0)
        assert metrics.price_change_12h_percent == 7.0
        assert metrics.volume_24h_usd == 0.0


class TestLiquidityPairs:
    """Test venue pair helpers."""

    def test_highest_liquidity_tie_breaks_on_market_cap(self):
        pairs = [
            LiquidityPair(dex_id="a", liquidity_usd=10, market_cap=1),
            LiquidityPair(dex_id="b", liquidity_usd=10, market_cap=5),
        ]
        assert highest_liquidity_pair(pairs).dex_id == "b"

    def test_highest_liquidity_empty(self):
        assert highest_liquidity_pair([]) is None

    def test_promoted(self):
        assert LiquidityPair(boosts_active=1).is_promoted is True
        assert LiquidityPair().is_promoted is False


class TestDefaults:
    """Test typed facet defaults."""

    def test_facet_default_is_a_copy(self):
        copy = facet_default(DEFAULT_SECURITY)
        copy.owner_balance = "42"
        assert DEFAULT_SECURITY.owner_balance == "0"

    def test_metadata_default(self):
        metadata = AssetMetadata.default(MINT)
        assert metadata.address == MINT
        assert metadata.decimals == 9
        assert metadata.cmc_id == 0


class TestAssetSnapshot:
    """Test the merged read-model."""

    def test_unlisted_snapshot(self):
        snapshot = AssetSnapshot(asset=MINT)
        assert snapshot.is_listed is False
        assert snapshot.is_promoted is False
        assert snapshot.primary_pair is None

    def test_primary_pair_is_first(self):
        pairs = [LiquidityPair(dex_id="first"), LiquidityPair(dex_id="second")]
        snapshot = AssetSnapshot(asset=MINT, liquidity_pairs=pairs)
        assert snapshot.primary_pair.dex_id == "first"

    def test_to_dict(self):
        snapshot = AssetSnapshot(asset=MINT, holders_available=False)
        data = snapshot.to_dict()

        assert data["asset"] == MINT
        assert data["holder_distribution_trend"] == "stable"
        assert data["holders_available"] is False
        assert data["is_listed"] is False

    def test_holder_record_from_dict(self):
        assert HolderRecord.from_dict({"address": "a", "balance": "3"}).balance == 3.0
