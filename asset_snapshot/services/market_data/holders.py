"""
Holder aggregation over Helius ``getTokenAccounts``.

Walks the cursor-paginated token account listing for a mint and folds token
accounts into one record per owner, summing balances. Unlike the other facets,
a failure here is raised to the caller instead of falling back to a default.
"""

from typing import Any

import structlog

from ...core.exceptions import FetchError, HolderAggregationError
from ...core.identifiers import AssetIdentifier, as_identifier
from ...shared.formatters import safe_float
from ..data_manager.types import HolderRecord
from ..http.fetcher import ResilientFetcher

logger = structlog.get_logger(__name__)

RPC_METHOD = "getTokenAccounts"
RPC_REQUEST_ID = "holder-aggregator"


class HolderAggregator:
    """
    Collects the deduplicated holder list for a token.

    Pagination stops when:
    - a page returns no token accounts
    - a page carries no cursor (after folding that page)
    - ``max_pages`` pages have been fetched

    The page ceiling truncates the holder set of widely-held tokens. The
    truncation is logged so it is visible, and the ceiling is configurable.
    """

    def __init__(
        self,
        fetcher: ResilientFetcher,
        rpc_url: str,
        page_limit: int = 1000,
        max_pages: int = 2,
    ):
        """
        Initialize aggregator.

        Args:
            fetcher: Resilient fetcher for the RPC endpoint
            rpc_url: Helius RPC URL (including the api-key query parameter)
            page_limit: Token accounts requested per page
            max_pages: Page ceiling per collection
        """
        if max_pages < 1:
            raise ValueError("max_pages must be at least 1")

        self._fetcher = fetcher
        self._rpc_url = rpc_url
        self.page_limit = page_limit
        self.max_pages = max_pages

    def _request_body(self, mint: str, cursor: str | None) -> dict[str, Any]:
        params: dict[str, Any] = {
            "limit": self.page_limit,
            "displayOptions": {},
            "mint": mint,
        }
        if cursor:
            params["cursor"] = cursor
        return {
            "jsonrpc": "2.0",
            "id": RPC_REQUEST_ID,
            "method": RPC_METHOD,
            "params": params,
        }

    async def _fetch_page(self, mint: str, cursor: str | None, page: int) -> dict:
        try:
            payload = await self._fetcher.post_json(
                self._rpc_url, self._request_body(mint, cursor)
            )
        except FetchError as e:
            raise HolderAggregationError(
                f"Failed to fetch holder list: {e.message}", mint=mint, page=page
            ) from e

        if not isinstance(payload, dict):
            raise HolderAggregationError(
                "Malformed holder list response", mint=mint, page=page
            )

        if payload.get("error"):
            error = payload["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise HolderAggregationError(
                f"Holder RPC error: {message}", mint=mint, page=page
            )

        result = payload.get("result") or {}
        if not isinstance(result, dict):
            raise HolderAggregationError(
                "Malformed holder list page", mint=mint, page=page
            )

        accounts = result.get("token_accounts") or []
        if not isinstance(accounts, list) or not all(
            isinstance(account, dict) for account in accounts
        ):
            raise HolderAggregationError(
                "Malformed token accounts in holder list", mint=mint, page=page
            )
        return result

    async def collect_holders(
        self, asset: AssetIdentifier | str
    ) -> list[HolderRecord]:
        """
        Collect holders for a token.

        Args:
            asset: Mint address or identifier

        Returns:
            One HolderRecord per distinct owner, balances summed

        Raises:
            AssetIdentifierError: No address to query
            HolderAggregationError: Any page failed
        """
        mint = as_identifier(asset).require()

        balances: dict[str, float] = {}
        cursor: str | None = None
        pages = 0

        while True:
            if pages >= self.max_pages:
                if cursor:
                    logger.warning(
                        "holder_pagination_truncated",
                        mint=mint,
                        pages=pages,
                        max_pages=self.max_pages,
                        holders=len(balances),
                    )
                break

            result = await self._fetch_page(mint, cursor, pages + 1)
            accounts = result.get("token_accounts") or []
            if not accounts:
                logger.debug("holder_pagination_exhausted", mint=mint, pages=pages)
                break

            pages += 1
            for account in accounts:
                owner = account.get("owner")
                if not owner:
                    continue
                balances[owner] = balances.get(owner, 0.0) + safe_float(
                    account.get("amount")
                )

            logger.debug(
                "holder_page_processed", mint=mint, page=pages, accounts=len(accounts)
            )

            cursor = result.get("cursor")
            if not cursor:
                break

        logger.info("holders_collected", mint=mint, pages=pages, holders=len(balances))
        return [HolderRecord(address=a, balance=b) for a, b in balances.items()]
