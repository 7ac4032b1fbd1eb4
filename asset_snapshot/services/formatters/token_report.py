"""
Markdown token report.

Renders an AssetSnapshot as a human-readable security and trade report:
ownership, trade activity, holder analysis and liquidity venues.
"""

from ...shared.formatters import format_usd
from ..data_manager.manager import HIGH_SUPPLY_HOLDER_RATIO, HIGH_VALUE_HOLDER_USD
from ..data_manager.types import AssetSnapshot, LiquidityPair
from ..signals import SignalBreakdown

UNAVAILABLE_MESSAGE = "Unable to fetch token information. Please try again later."


def _ownership_section(snapshot: AssetSnapshot) -> list[str]:
    security = snapshot.security
    return [
        "**Ownership Distribution:**",
        f"- Owner Balance: {security.owner_balance}",
        f"- Creator Balance: {security.creator_balance}",
        f"- Owner Percentage: {security.owner_percentage}%",
        f"- Creator Percentage: {security.creator_percentage}%",
        f"- Top 10 Holders Balance: {security.top10_holder_balance}",
        f"- Top 10 Holders Percentage: {security.top10_holder_percent}%",
        "",
    ]


def _trade_section(snapshot: AssetSnapshot) -> list[str]:
    metrics = snapshot.metrics
    return [
        "**Trade Data:**",
        f"- Holders: {metrics.holder}",
        f"- Unique Wallets (24h): {metrics.unique_wallet_24h:g}",
        f"- Price Change (24h): {metrics.price_change_24h_percent:g}%",
        f"- Price Change (12h): {metrics.price_change_12h_percent:g}%",
        f"- Volume (24h USD): {format_usd(metrics.volume_24h_usd)}",
        f"- Current Price: {format_usd(metrics.price)}",
        "",
    ]


def _holder_section(snapshot: AssetSnapshot) -> list[str]:
    lines = [
        f"**Holder Distribution Trend:** {snapshot.holder_distribution_trend.value}",
        "",
        f"**High-Value Holders (>{format_usd(HIGH_VALUE_HOLDER_USD, 0)} USD):**",
    ]

    if not snapshot.holders_available or not snapshot.high_value_holders:
        lines.append("- No high-value holders found or data not available.")
    else:
        lines.extend(
            f"- {h.holder_address}: {format_usd(h.balance_usd)}"
            for h in snapshot.high_value_holders
        )

    supply_share = f"{HIGH_SUPPLY_HOLDER_RATIO * 100:g}%"
    high_supply = (
        snapshot.high_supply_holders_count if snapshot.holders_available else "N/A"
    )
    recent = "Yes" if snapshot.recent_trades else "No"
    lines.extend(
        [
            "",
            f"**Recent Trades (Last 24h):** {recent}",
            "",
            f"**Holders with >{supply_share} Supply:** {high_supply}",
            "",
        ]
    )
    return lines


def _pair_lines(index: int, pair: LiquidityPair) -> list[str]:
    return [
        "",
        f"**Pair {index}:**",
        f"- DEX: {pair.dex_id}",
        f"- URL: {pair.url}",
        f"- Price USD: {format_usd(pair.price_usd, 6)}",
        f"- Volume (24h USD): {format_usd(pair.volume_h24)}",
        f"- Boosts Active: {pair.boosts_active}",
        f"- Liquidity USD: {format_usd(pair.liquidity_usd)}",
    ]


def _listing_section(snapshot: AssetSnapshot) -> list[str]:
    lines = [f"**DexScreener Listing:** {'Yes' if snapshot.is_listed else 'No'}"]
    if snapshot.is_listed:
        lines.extend(
            [
                f"- Listing Type: {'Paid' if snapshot.is_promoted else 'Free'}",
                f"- Number of DexPairs: {len(snapshot.liquidity_pairs)}",
                "",
                "**DexScreener Pairs:**",
            ]
        )
        for index, pair in enumerate(snapshot.liquidity_pairs, start=1):
            lines.extend(_pair_lines(index, pair))
    lines.append("")
    return lines


def _signal_section(breakdown: SignalBreakdown | None) -> list[str]:
    if breakdown is None:
        return ["**Trade Signal:** No liquidity venue, signal not evaluated", ""]

    flags = [
        name
        for name, fired in (
            ("high concentration", breakdown.high_concentration),
            ("high volume", breakdown.high_volume),
            ("24h price surge", breakdown.price_surge_24h),
            ("12h price surge", breakdown.price_surge_12h),
            ("wallet activity", breakdown.wallet_activity),
            ("liquidity too low", breakdown.liquidity_too_low),
            ("market cap too low", breakdown.market_cap_too_low),
        )
        if fired
    ]
    return [
        f"**Trade Signal:** {'Yes' if breakdown.signal else 'No'}",
        f"- Triggered: {', '.join(flags) if flags else 'none'}",
        "",
    ]


def format_token_report(
    snapshot: AssetSnapshot,
    signal: SignalBreakdown | None = None,
    include_signal: bool = False,
) -> str:
    """
    Format a snapshot as a markdown report.

    Args:
        snapshot: Assembled snapshot
        signal: Signal breakdown to append (see ``TradeSignalEvaluator.breakdown``)
        include_signal: Append the signal section even when ``signal`` is None

    Returns:
        Markdown report
    """
    lines = [
        "**Token Security and Trade Report**",
        f"Token Address: {snapshot.asset}",
        "",
    ]
    if snapshot.metadata.symbol or snapshot.metadata.name:
        lines[1:1] = [f"Token: {snapshot.metadata.name} ({snapshot.metadata.symbol})"]

    lines.extend(_ownership_section(snapshot))
    lines.extend(_trade_section(snapshot))
    lines.extend(_holder_section(snapshot))
    lines.extend(_listing_section(snapshot))

    if signal is not None or include_signal:
        lines.extend(_signal_section(signal))

    return "\n".join(lines)
