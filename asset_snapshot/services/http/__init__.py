"""HTTP access with retry for external data sources."""

from .fetcher import DEFAULT_HEADERS, ResilientFetcher, build_http_client

__all__ = ["DEFAULT_HEADERS", "ResilientFetcher", "build_http_client"]
