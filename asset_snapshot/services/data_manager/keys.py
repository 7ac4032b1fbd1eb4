"""
Cache key generators for the Data Manager Layer.

Facet keys follow the convention: {domain}:{facet}:{identifier}

This module provides consistent key generation to ensure:
- No collisions between facet types for the same asset
- Easy pattern matching for invalidation
- Clear organization by data domain

Mint addresses are base58 and therefore case-sensitive; they are never
re-cased. Symbols are.
"""


class CacheKeys:
    """
    Cache key generators for consistent naming across the DML.

    Key Convention:
        {domain}:{facet}:{identifier}

    Examples:
        token:security:So11111111111111111111111111111111111111112
        token:trade:So11111111111111111111111111111111111111112
        token:liquidity_search:BONK
        prices:sol
    """

    # Domain prefixes
    TOKEN = "token"
    PRICES = "prices"

    # Facets cached per asset address
    SECURITY = "security"
    TRADE = "trade"
    LIQUIDITY = "liquidity"
    METADATA = "metadata"
    HOLDERS = "holders"
    ASSET_FACETS = (SECURITY, TRADE, LIQUIDITY, METADATA, HOLDERS)

    @staticmethod
    def facet(facet: str, address: str) -> str:
        """
        Generate cache key for one facet of an asset.

        Args:
            facet: Facet name (security, trade, ...)
            address: Mint address (kept as-is)

        Returns:
            Cache key like 'token:security:<address>'
        """
        return f"{CacheKeys.TOKEN}:{facet.lower()}:{address}"

    @staticmethod
    def security(address: str) -> str:
        """Cache key like 'token:security:<address>'."""
        return CacheKeys.facet(CacheKeys.SECURITY, address)

    @staticmethod
    def trade(address: str) -> str:
        """Cache key like 'token:trade:<address>'."""
        return CacheKeys.facet(CacheKeys.TRADE, address)

    @staticmethod
    def liquidity(address: str) -> str:
        """Cache key like 'token:liquidity:<address>'."""
        return CacheKeys.facet(CacheKeys.LIQUIDITY, address)

    @staticmethod
    def metadata(address: str) -> str:
        """Cache key like 'token:metadata:<address>'."""
        return CacheKeys.facet(CacheKeys.METADATA, address)

    @staticmethod
    def holders(address: str) -> str:
        """Cache key like 'token:holders:<address>'."""
        return CacheKeys.facet(CacheKeys.HOLDERS, address)

    @staticmethod
    def liquidity_search(symbol: str) -> str:
        """
        Generate cache key for a venue search by symbol.

        Args:
            symbol: Token symbol (uppercased)

        Returns:
            Cache key like 'token:liquidity_search:BONK'
        """
        return f"{CacheKeys.TOKEN}:liquidity_search:{symbol.strip().upper()}"

    @staticmethod
    def symbol(symbol: str) -> str:
        """
        Generate cache key for a symbol -> address resolution.

        Returns:
            Cache key like 'token:symbol:BONK'
        """
        return f"{CacheKeys.TOKEN}:symbol:{symbol.strip().upper()}"

    @staticmethod
    def price(symbol: str) -> str:
        """
        Generate key for a reference price.

        The price store uses a flat namespace shared with other consumers of
        the same Redis, so this key has no facet segment.

        Returns:
            Key like 'prices:sol'
        """
        return f"{CacheKeys.PRICES}:{symbol.strip().lower()}"

    @staticmethod
    def asset_keys(address: str) -> list[str]:
        """All per-asset facet keys for an address."""
        return [CacheKeys.facet(facet, address) for facet in CacheKeys.ASSET_FACETS]
