"""
Codex GraphQL client for token registry metadata.
"""

from typing import Any

import structlog

from ...shared.formatters import safe_int
from ..data_manager.types import AssetMetadata
from ..http.fetcher import ResilientFetcher
from .base import MarketDataSource

logger = structlog.get_logger()

TOKEN_QUERY = """
query Token($address: String!, $networkId: Int!) {
    token(input: { address: $address, networkId: $networkId }) {
        id
        address
        cmcId
        decimals
        name
        symbol
        totalSupply
        isScam
        info {
            circulatingSupply
            imageThumbUrl
        }
        explorerData {
            blueCheckmark
            description
            tokenType
        }
    }
}
"""


def parse_token(token: dict[str, Any]) -> AssetMetadata:
    """Convert a Codex ``token`` object into AssetMetadata."""
    info = token.get("info") or {}
    explorer = token.get("explorerData") or {}
    return AssetMetadata(
        id=str(token.get("id") or ""),
        address=token.get("address") or "",
        cmc_id=safe_int(token.get("cmcId")),
        decimals=safe_int(token.get("decimals"), default=9),
        name=token.get("name") or "",
        symbol=token.get("symbol") or "",
        total_supply=str(token.get("totalSupply") or "0"),
        circulating_supply=str(info.get("circulatingSupply") or "0"),
        image_thumb_url=info.get("imageThumbUrl") or "",
        blue_checkmark=bool(explorer.get("blueCheckmark")),
        is_scam=bool(token.get("isScam")),
    )


class CodexClient(MarketDataSource):
    """Codex GraphQL API client."""

    service_name = "codex"

    def __init__(
        self,
        fetcher: ResilientFetcher,
        graphql_url: str,
        network_id: int,
        api_key: str = "",
    ):
        super().__init__(fetcher, api_key)
        self.graphql_url = graphql_url
        self.network_id = network_id

    async def fetch_metadata(self, address: str) -> AssetMetadata:
        """
        Fetch registry metadata for a token.

        Raises:
            FetchError: Retries exhausted
            ExternalServiceError: GraphQL errors or no token in the response
        """
        payload = await self._fetcher.post_json(
            self.graphql_url,
            {
                "query": TOKEN_QUERY,
                "variables": {"address": address, "networkId": self.network_id},
            },
        )

        if not isinstance(payload, dict):
            raise self._error(f"Unexpected response: {self._preview(payload)}")

        if payload.get("errors"):
            raise self._error(
                f"GraphQL errors: {self._preview(payload['errors'])}", address=address
            )

        token = (payload.get("data") or {}).get("token")
        if not token:
            raise self._error(f"No data returned for token {address}", address=address)

        logger.info("codex_metadata_fetched", address=address)
        return parse_token(token)
