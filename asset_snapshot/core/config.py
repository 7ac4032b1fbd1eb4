"""
Application configuration using Pydantic Settings.

Supports hierarchical environment configuration:
- .env.base: Common non-secret defaults (committed to git)
- .env.{ENVIRONMENT}: Environment-specific overrides (gitignored)
- Environment variables: Highest priority
"""

import os
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Get environment from env var, default to development
ENV = os.getenv("ENVIRONMENT", "development")


class Settings(BaseSettings):
    """Application settings with hierarchical env file support."""

    model_config = SettingsConfigDict(
        env_file=[
            ".env.base",
            f".env.{ENV}",
        ],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "test", "production"] = "development"

    # Durable cache / price store
    redis_url: str = "redis://localhost:6379"
    redis_max_retries: int = 3  # Reconnect attempts per command
    redis_retry_cap_seconds: float = 2.0  # Max backoff between reconnects

    # External APIs - Market data
    birdeye_api_key: str = ""
    birdeye_base_url: str = "https://public-api.birdeye.so"
    codex_api_key: str = ""
    codex_graphql_url: str = "https://graph.codex.io/graphql"
    codex_network_id: int = 1399811149  # Solana
    dexscreener_base_url: str = "https://api.dexscreener.com"
    helius_api_key: str = ""
    helius_rpc_url: str = "https://mainnet.helius-rpc.com"

    # HTTP transport
    http_timeout_seconds: float = 30.0
    http_max_connections: int = 10
    http_max_keepalive_connections: int = 5

    # Retry policy (Resilient Fetcher)
    fetch_max_attempts: int = 3
    fetch_retry_base_delay: float = 2.0  # Seconds, doubled each attempt

    # Cache settings - TTL values in seconds
    facet_cache_ttl: int = 600  # Security/trade/liquidity/metadata facets (10 min)
    price_cache_ttl: int = 300  # Reference prices (5 min)
    coalesce_cache_misses: bool = True  # Single-flight for concurrent misses
    price_stats_interval_seconds: float = 60.0

    # Holder pagination
    holder_page_limit: int = 1000
    # Pages fetched before stopping. Holder sets larger than
    # holder_page_limit * holder_max_pages accounts are truncated.
    holder_max_pages: int = 2

    # Reference price basket (symbol -> mint address)
    reference_tokens: dict[str, str] = {
        "SOL": "So11111111111111111111111111111111111111112",
        "BTC": "3NZ9JMVBmGAqocybic2c7LQCJScmgsAZ6vQqTDzcqmJh",
        "ETH": "7vfCXTUXx5WJV5JADk17DUJ4ksgau7utNKj4b963voxs",
    }

    @property
    def helius_url(self) -> str:
        """Helius RPC endpoint with the API key attached."""
        return f"{self.helius_rpc_url}/?api-key={self.helius_api_key}"


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
