"""Reference price caching."""

from .monitor import PriceCacheMonitor
from .price_cache import (
    DEFAULT_PRICE_TTL,
    CachedPriceProvider,
    PriceCache,
    PriceProvider,
    ReferencePrice,
    ReferencePriceProvider,
)

__all__ = [
    "DEFAULT_PRICE_TTL",
    "CachedPriceProvider",
    "PriceCache",
    "PriceCacheMonitor",
    "PriceProvider",
    "ReferencePrice",
    "ReferencePriceProvider",
]
