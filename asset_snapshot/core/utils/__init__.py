"""
Core utility functions for the asset snapshot pipeline.
"""

from .cache_utils import (
    DEFAULT_FACET_TTL,
    FACET_TTL_MAP,
    get_facet_ttl,
)
from .date_utils import expires_at, utcnow

__all__ = [
    # Cache utilities
    "DEFAULT_FACET_TTL",
    "FACET_TTL_MAP",
    "get_facet_ttl",
    # Date utilities
    "utcnow",
    "expires_at",
]
