"""
Unit tests for the resilient HTTP fetcher.

Tests cover:
- Success without retry
- Retry with exponential backoff, no sleep after the last attempt
- FetchError carrying attempts, status and the chained cause
- Transport errors and non-JSON bodies counted as failures
- Header merging and secret masking
"""

import httpx
import pytest
from structlog.testing import capture_logs

from asset_snapshot.core.exceptions import FetchError
from asset_snapshot.services.http.fetcher import ResilientFetcher, build_http_client


def make_fetcher(handler, **kwargs):
    """Fetcher over a MockTransport, recording requested sleeps."""
    sleeps: list[float] = []

    async def fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    fetcher = ResilientFetcher(client, sleep=fake_sleep, **kwargs)
    return fetcher, sleeps


class TestFetchSuccess:
    """Test requests that succeed."""

    @pytest.mark.asyncio
    async def test_first_attempt_success_does_not_sleep(self):
        """A 200 on the first try returns the parsed body with no backoff."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"success": True, "data": {"value": 1}})

        fetcher, sleeps = make_fetcher(handler)
        data = await fetcher.get_json("https://api.example.com/defi/price")

        assert data == {"success": True, "data": {"value": 1}}
        assert len(calls) == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(self):
        """Two 429s then a 200: result returned after sleeping d then 2d."""
        statuses = iter([429, 500, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            status = next(statuses)
            if status == 200:
                return httpx.Response(200, json={"ok": True})
            return httpx.Response(status, text="slow down")

        fetcher, sleeps = make_fetcher(handler, base_delay=2.0)
        data = await fetcher.get_json("https://api.example.com/x")

        assert data == {"ok": True}
        assert sleeps == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_post_json_sends_body(self):
        """POST bodies are JSON encoded."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["body"] = request.content
            return httpx.Response(200, json={"result": {}})

        fetcher, _ = make_fetcher(handler)
        await fetcher.post_json("https://rpc.example.com", {"method": "ping"})

        assert seen["method"] == "POST"
        assert b'"method"' in seen["body"]

    @pytest.mark.asyncio
    async def test_default_and_request_headers_merged(self):
        """Per-source headers and per-call headers are both sent."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            return httpx.Response(200, json={})

        fetcher, _ = make_fetcher(
            handler, default_headers={"X-API-KEY": "k", "x-chain": "solana"}
        )
        await fetcher.get_json("https://api.example.com", headers={"X-Extra": "1"})

        assert seen["x-api-key"] == "k"
        assert seen["x-chain"] == "solana"
        assert seen["x-extra"] == "1"
        assert seen["accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_logged_headers_are_masked(self):
        """The API key header is sent but never logged."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={})

        fetcher, _ = make_fetcher(
            handler, default_headers={"X-API-KEY": "SECRET123", "x-chain": "solana"}
        )
        with capture_logs() as logs:
            await fetcher.get_json("https://api.example.com")

        [started] = [e for e in logs if e["event"] == "fetch_started"]
        assert started["headers"]["X-API-KEY"] == "****"
        assert started["headers"]["x-chain"] == "solana"
        assert "SECRET123" not in str(logs)


class TestFetchFailure:
    """Test retry exhaustion."""

    @pytest.mark.asyncio
    async def test_exhausts_three_attempts(self):
        """Always-failing endpoint: 3 calls, sleeps d and 2d, then FetchError."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503, text="unavailable")

        fetcher, sleeps = make_fetcher(handler, service="birdeye", base_delay=0.5)

        with pytest.raises(FetchError) as exc_info:
            await fetcher.get_json("https://api.example.com/x")

        error = exc_info.value
        assert len(calls) == 3
        assert sleeps == [0.5, 1.0]
        assert error.attempts == 3
        assert error.http_status == 503
        assert error.service == "birdeye"
        assert error.status_code == 503
        assert "unavailable" in error.message
        assert isinstance(error.__cause__, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_transport_error_is_retried(self):
        """Connection errors count as failed attempts."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        fetcher, sleeps = make_fetcher(handler)

        with pytest.raises(FetchError) as exc_info:
            await fetcher.get_json("https://api.example.com/x")

        assert len(calls) == 3
        assert len(sleeps) == 2
        assert exc_info.value.http_status is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_non_json_body_is_a_failure(self):
        """A 200 with an unparseable body is retried like any other failure."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        fetcher, _ = make_fetcher(handler, max_attempts=2)

        with pytest.raises(FetchError) as exc_info:
            await fetcher.get_json("https://api.example.com/x")

        assert exc_info.value.attempts == 2

    @pytest.mark.asyncio
    async def test_api_key_masked_in_error(self):
        """Keys in the query string never reach the error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, text="bad api-key=SECRET123")

        fetcher, _ = make_fetcher(handler, max_attempts=1)

        with pytest.raises(FetchError) as exc_info:
            await fetcher.post_json("https://rpc.example.com/?api-key=SECRET123", {})

        assert "SECRET123" not in exc_info.value.message
        assert "SECRET123" not in exc_info.value.url

    @pytest.mark.asyncio
    async def test_single_attempt_never_sleeps(self):
        """max_attempts=1 fails immediately."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        fetcher, sleeps = make_fetcher(handler, max_attempts=1)

        with pytest.raises(FetchError):
            await fetcher.get_json("https://api.example.com/x")

        assert sleeps == []


class TestFetcherConfig:
    """Test construction helpers."""

    def test_backoff_schedule(self):
        """Delay doubles per attempt."""
        fetcher = ResilientFetcher(httpx.AsyncClient(), base_delay=2.0)
        assert [fetcher.backoff_delay(i) for i in range(3)] == [2.0, 4.0, 8.0]

    def test_rejects_zero_attempts(self):
        """At least one attempt is required."""
        with pytest.raises(ValueError):
            ResilientFetcher(httpx.AsyncClient(), max_attempts=0)

    @pytest.mark.asyncio
    async def test_build_http_client(self):
        """Shared client carries the configured timeout."""
        client = build_http_client(timeout_seconds=12.0)
        try:
            assert client.timeout.connect == 12.0
        finally:
            await client.aclose()
