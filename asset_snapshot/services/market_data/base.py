"""
Base class for external market data sources.
Provides fetcher wiring, API key bookkeeping, and error helpers shared by the
Birdeye, Codex, DexScreener and Helius clients.
"""

from typing import Any

import structlog

from ...core.exceptions import ExternalServiceError
from ...shared.sanitizers import sanitize_text
from ..http.fetcher import ResilientFetcher

logger = structlog.get_logger()


class MarketDataSource:
    """
    Base class for one external data source.

    Provides:
    - Shared ResilientFetcher (retry/backoff, owned by the caller)
    - API key presence check at startup
    - Source-tagged errors with secrets masked
    """

    service_name = "source"
    requires_api_key = True

    def __init__(self, fetcher: ResilientFetcher, api_key: str = ""):
        """Initialize source.

        Args:
            fetcher: Resilient fetcher configured with this source's headers
            api_key: API key, only used to report configuration state
        """
        self._fetcher = fetcher
        self.api_key = api_key

        if self.requires_api_key and not api_key:
            logger.warning("data_source_api_key_missing", service=self.service_name)

        logger.info(
            "data_source_initialized",
            service=self.service_name,
            api_key_configured=bool(api_key),
        )

    def _error(self, message: str, **context: Any) -> ExternalServiceError:
        """Build a source-tagged error with secrets masked."""
        return ExternalServiceError(
            sanitize_text(message), service=self.service_name, **context
        )

    @staticmethod
    def _preview(payload: Any, limit: int = 200) -> str:
        """Short, sanitized rendering of a payload for error messages."""
        return sanitize_text(str(payload)[:limit])
