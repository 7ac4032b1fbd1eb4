"""
Redis cache connection and operations.

Backs both the durable tier of the facet cache and the reference price store.
"""

import json
from typing import Any

import redis.asyncio as redis
import structlog
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

logger = structlog.get_logger(__name__)


class RedisCache:
    """Redis connection manager with async support."""

    def __init__(self, client: redis.Redis | None = None) -> None:
        self.client: redis.Redis | None = client

    async def connect(
        self,
        redis_url: str,
        max_retries: int = 3,
        retry_cap_seconds: float = 2.0,
    ) -> None:
        """
        Establish connection to Redis.

        Transient connection errors are retried per command with capped
        exponential backoff.

        Args:
            redis_url: Redis connection URL
            max_retries: Reconnect attempts per command
            retry_cap_seconds: Upper bound for the backoff between attempts
        """
        try:
            self.client = redis.from_url(
                redis_url,
                decode_responses=True,
                retry=Retry(
                    ExponentialBackoff(cap=retry_cap_seconds, base=0.05),
                    max_retries,
                ),
                retry_on_error=[RedisConnectionError, RedisTimeoutError],
            )

            # Test connection
            await self.client.ping()

            logger.info("redis_connected", url=redis_url)

        except Exception as e:
            logger.error("redis_connect_failed", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.info("redis_disconnected")

    def _require_client(self) -> redis.Redis:
        if not self.client:
            raise RuntimeError("Redis connection not established")
        return self.client

    async def get(self, key: str) -> Any | None:
        """
        Get value from Redis cache.

        JSON values are decoded; anything else is returned as the raw string.
        Connection errors propagate so callers can decide how to degrade.
        """
        client = self._require_client()

        value = await client.get(key)
        if value is None:
            logger.debug("redis_miss", cache_key=key)
            return None

        logger.debug("redis_hit", cache_key=key)
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: int | None = None,
    ) -> bool:
        """Set JSON-encoded value in Redis cache with optional TTL."""
        client = self._require_client()

        json_value = json.dumps(value)
        await client.set(key, json_value, ex=ttl_seconds)
        return True

    async def setex(self, key: str, ttl_seconds: int, value: str) -> bool:
        """
        Set key with TTL (Redis SETEX command).
        For simple string values without JSON encoding.
        """
        client = self._require_client()

        await client.setex(key, ttl_seconds, value)
        return True

    async def setex_many(self, values: dict[str, str], ttl_seconds: int) -> int:
        """
        Write several string values with the same TTL in one pipeline.

        Args:
            values: Mapping of key -> string value
            ttl_seconds: TTL applied to every key

        Returns:
            Number of keys written
        """
        client = self._require_client()

        if not values:
            return 0

        async with client.pipeline(transaction=False) as pipe:
            for key, value in values.items():
                pipe.setex(key, ttl_seconds, value)
            await pipe.execute()

        return len(values)

    async def delete(self, key: str) -> bool:
        """Delete key from Redis cache."""
        client = self._require_client()

        result: int = await client.delete(key)
        return result > 0

    async def scan_keys(self, pattern: str, count: int = 100) -> list[str]:
        """
        List keys matching a glob pattern.

        Uses SCAN rather than KEYS so large keyspaces are not blocked.
        """
        client = self._require_client()

        keys = []
        async for key in client.scan_iter(match=pattern, count=count):
            keys.append(key)
        return keys
