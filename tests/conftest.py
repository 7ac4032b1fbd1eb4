"""
Shared test fixtures.

FakeRedis implements the subset of the redis.asyncio client used by RedisCache
(get/set/setex/delete/pipeline/scan_iter) in memory, with a manual clock
so key expiry can be tested without sleeping.
"""

import fnmatch
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from asset_snapshot.database.redis import RedisCache


class ManualClock:
    """Aware-UTC clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakePipeline:
    """Queues commands and applies them on execute()."""

    def __init__(self, redis: "FakeRedis"):
        self._redis = redis
        self._commands: list[tuple[str, int, str]] = []

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self._commands.clear()

    def setex(self, key: str, ttl: int, value: str) -> "FakePipeline":
        self._commands.append((key, ttl, value))
        return self

    async def execute(self) -> list[bool]:
        self._redis.pipeline_executions += 1
        results = []
        for key, ttl, value in self._commands:
            results.append(await self._redis.setex(key, ttl, value))
        self._commands.clear()
        return results


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis with decode_responses=True."""

    def __init__(self, clock: ManualClock | None = None):
        self.clock = clock or ManualClock()
        self.store: dict[str, tuple[str, datetime | None]] = {}
        self.ttls: dict[str, int | None] = {}
        self.pipeline_executions = 0
        self.fail_with: Exception | None = None

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def _live(self, key: str) -> str | None:
        item = self.store.get(key)
        if item is None:
            return None
        value, expires = item
        if expires is not None and self.clock() >= expires:
            del self.store[key]
            return None
        return value

    async def ping(self) -> bool:
        self._check()
        return True

    async def get(self, key: str) -> str | None:
        self._check()
        return self._live(key)

    async def set(self, key: str, value: Any, ex: int | None = None) -> bool:
        self._check()
        expires = self.clock() + timedelta(seconds=ex) if ex else None
        self.store[key] = (str(value), expires)
        self.ttls[key] = ex
        return True

    async def setex(self, key: str, ttl: int, value: Any) -> bool:
        return await self.set(key, value, ex=ttl)

    async def delete(self, key: str) -> int:
        self._check()
        return 1 if self.store.pop(key, None) is not None else 0

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)

    async def scan_iter(self, match: str = "*", count: int = 100):
        self._check()
        for key in list(self.store):
            if self._live(key) is not None and fnmatch.fnmatchcase(key, match):
                yield key

    async def aclose(self) -> None:
        return None


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def fake_redis(clock: ManualClock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.fixture
def redis_cache(fake_redis: FakeRedis) -> RedisCache:
    return RedisCache(client=fake_redis)
