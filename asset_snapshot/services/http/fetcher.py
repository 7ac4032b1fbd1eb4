"""
Resilient HTTP fetcher.

Wraps a shared ``httpx.AsyncClient`` with bounded retry and exponential
backoff. Every data source (Birdeye, Codex, DexScreener, Helius) goes through
one of these so rate-limit bursts and transient network errors are absorbed
before they reach the cache layer.

Backoff schedule for attempt index ``i`` (starting at 0) is
``base_delay * 2**i``. There is no jitter and no sleep after the last attempt.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import structlog

from ...core.exceptions import FetchError
from ...shared.sanitizers import (
    sanitize_exception_message,
    sanitize_headers,
    sanitize_text,
)

logger = structlog.get_logger(__name__)

# Truncate error bodies so a large HTML error page does not flood the logs
_MAX_ERROR_BODY_CHARS = 500

DEFAULT_HEADERS = {"Accept": "application/json"}


class ResilientFetcher:
    """
    HTTP JSON fetcher with retry.

    Example:
        fetcher = ResilientFetcher(client, service="birdeye",
                                   default_headers={"X-API-KEY": key})
        data = await fetcher.get_json(f"{base}/defi/price", params={"address": mint})
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        service: str = "http",
        max_attempts: int = 3,
        base_delay: float = 2.0,
        default_headers: dict[str, str] | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize fetcher.

        Args:
            client: Shared HTTP client (owned by the caller)
            service: Source name used in logs and errors
            max_attempts: Total attempts before giving up
            base_delay: Delay in seconds before the first retry
            default_headers: Headers sent with every request
            sleep: Awaitable sleep function, injectable for tests
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self._client = client
        self.service = service
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._headers = {**DEFAULT_HEADERS, **(default_headers or {})}
        self._sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        """Delay to wait after a failed attempt (0-based index)."""
        return self.base_delay * (2**attempt)

    async def fetch(self, method: str, url: str, **request_kwargs: Any) -> Any:
        """
        Issue a request and return the decoded JSON body.

        Non-2xx statuses, transport errors and non-JSON bodies all count as
        failed attempts.

        Args:
            method: HTTP method
            url: Absolute URL
            **request_kwargs: Passed to ``httpx.AsyncClient.request``
                (``params``, ``json``, ``headers``...)

        Returns:
            Parsed JSON payload

        Raises:
            FetchError: After every attempt failed, chained to the last cause
        """
        headers = {**self._headers, **(request_kwargs.pop("headers", None) or {})}
        safe_url = sanitize_text(url)
        logger.debug(
            "fetch_started",
            service=self.service,
            method=method,
            url=safe_url,
            headers=sanitize_headers(headers),
        )

        last_error: Exception | None = None
        last_status: int | None = None
        detail = ""

        for attempt in range(self.max_attempts):
            try:
                response = await self._client.request(
                    method, url, headers=headers, **request_kwargs
                )
                response.raise_for_status()
                data = response.json()

            except httpx.HTTPStatusError as e:
                last_error = e
                last_status = e.response.status_code
                body = sanitize_text(e.response.text[:_MAX_ERROR_BODY_CHARS])
                detail = f"HTTP {last_status}: {body}"

            except (httpx.HTTPError, ValueError) as e:
                # ValueError covers JSON decode failures on a 2xx body
                last_error = e
                last_status = None
                detail = f"{type(e).__name__}: {sanitize_exception_message(e)}"

            else:
                logger.debug(
                    "fetch_succeeded",
                    service=self.service,
                    method=method,
                    url=safe_url,
                    attempt=attempt + 1,
                )
                return data

            logger.warning(
                "fetch_attempt_failed",
                service=self.service,
                method=method,
                url=safe_url,
                attempt=attempt + 1,
                max_attempts=self.max_attempts,
                status_code=last_status,
                error=detail,
            )

            if attempt < self.max_attempts - 1:
                delay = self.backoff_delay(attempt)
                logger.debug(
                    "fetch_retry_scheduled",
                    service=self.service,
                    url=safe_url,
                    delay_seconds=delay,
                )
                await self._sleep(delay)

        logger.error(
            "fetch_failed",
            service=self.service,
            method=method,
            url=safe_url,
            attempts=self.max_attempts,
            status_code=last_status,
        )
        raise FetchError(
            f"{self.service} request failed after {self.max_attempts} attempts: "
            f"{detail}",
            url=safe_url,
            attempts=self.max_attempts,
            status_code=last_status,
            service=self.service,
        ) from last_error

    async def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET ``url`` and return decoded JSON."""
        return await self.fetch("GET", url, params=params, headers=headers)

    async def post_json(
        self,
        url: str,
        body: Any,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """POST a JSON body to ``url`` and return decoded JSON."""
        return await self.fetch("POST", url, json=body, headers=headers)


def build_http_client(
    timeout_seconds: float = 30.0,
    max_connections: int = 10,
    max_keepalive_connections: int = 5,
) -> httpx.AsyncClient:
    """
    Create the shared HTTP client with connection pooling.

    The caller owns the client and must ``aclose()`` it.
    """
    return httpx.AsyncClient(
        timeout=timeout_seconds,
        limits=httpx.Limits(
            max_keepalive_connections=max_keepalive_connections,
            max_connections=max_connections,
            keepalive_expiry=30.0,
        ),
    )
