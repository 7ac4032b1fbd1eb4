"""
Asset identifiers.

Solana mints are base58-encoded 32-byte public keys (32-44 characters).
Normalization failure is not fatal: the identifier keeps the raw value and
callers that need a resolved address check ``is_resolved``.
"""

import re
from dataclasses import dataclass, field

import structlog

from .exceptions import AssetIdentifierError

logger = structlog.get_logger(__name__)

_BASE58_ADDRESS = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def normalize_address(address: str) -> str:
    """
    Normalize a mint address to canonical form.

    Args:
        address: Raw address string (may carry whitespace)

    Returns:
        Canonical address

    Raises:
        ValueError: If the value is not a base58 public key
    """
    candidate = address.strip()
    if not _BASE58_ADDRESS.match(candidate):
        raise ValueError(f"Not a base58 public key: {address!r}")
    return candidate


@dataclass(frozen=True)
class AssetIdentifier:
    """Opaque key identifying a tradable asset."""

    raw: str
    address: str = field(init=False)
    is_normalized: bool = field(init=False)

    def __post_init__(self) -> None:
        raw = self.raw or ""
        try:
            address = normalize_address(raw)
            normalized = True
        except ValueError as e:
            address = raw.strip()
            normalized = False
            if address:
                logger.warning(
                    "asset_identifier_not_normalized", raw=raw, error=str(e)
                )
        object.__setattr__(self, "address", address)
        object.__setattr__(self, "is_normalized", normalized)

    @property
    def is_resolved(self) -> bool:
        """True when there is any address to query with."""
        return bool(self.address)

    def require(self) -> str:
        """
        Return the address or fail for operations that need one.

        Raises:
            AssetIdentifierError: If the identifier is empty
        """
        if not self.is_resolved:
            raise AssetIdentifierError("No asset address available", raw=self.raw)
        return self.address

    def __str__(self) -> str:
        return self.address


def as_identifier(asset: "AssetIdentifier | str") -> AssetIdentifier:
    """Accept either a raw string or an AssetIdentifier."""
    if isinstance(asset, AssetIdentifier):
        return asset
    return AssetIdentifier(asset)
