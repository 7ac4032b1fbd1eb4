"""
TTL strategy for cached market data facets.

Facets are refreshed on a fixed schedule chosen to bound staleness while staying
inside the external sources' rate limits.
"""

# TTL configuration per facet (seconds)
FACET_TTL_MAP = {
    # Birdeye - security profile changes only when large holders move
    "security": 600,  # 10 minutes
    # Birdeye - trade overview (rolling windows, 30m is the finest)
    "trade": 600,  # 10 minutes
    # DexScreener - venue pairs
    "liquidity": 600,  # 10 minutes
    "liquidity_search": 600,  # 10 minutes
    # Codex - registry metadata
    "metadata": 600,  # 10 minutes
    # Helius - paginated holder list
    "holders": 600,  # 10 minutes
    # Birdeye - reference price basket
    "prices": 300,  # 5 minutes
}

DEFAULT_FACET_TTL = 600  # 10 minutes


def get_facet_ttl(facet: str, default: int | None = None) -> int:
    """
    Get the TTL for a facet.

    Args:
        facet: Facet name (e.g., "security", "trade")
        default: TTL to use for unknown facets (defaults to DEFAULT_FACET_TTL)

    Returns:
        TTL in seconds

    Examples:
        >>> get_facet_ttl("prices")
        300
        >>> get_facet_ttl("unknown")
        600
    """
    ttl = FACET_TTL_MAP.get(facet)
    if ttl is None:
        return default if default is not None else DEFAULT_FACET_TTL
    return ttl
