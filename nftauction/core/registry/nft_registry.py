"""
NFT Registry - ownership records for non-fungible assets.

This module provides:
- Minting with unique, increasing asset ids (starting at 1)
- Exclusive ownership and owner-checked transfers
- Per-owner and global token listings
- Optional URI uniqueness ("Token already exists")

The auction ledger mints through this registry when an asset is listed
and transfers the asset to the buyer when a sale finalizes.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import threading
import time

from nftauction.core.errors import InvalidInput, NotFound, NotTokenOwner, TokenAlreadyExists
from nftauction.crypto import short_address
from nftauction.utils.logger import get_logger
from nftauction.utils.validation import (
    MAX_URI_LENGTH,
    validate_address,
    validate_string,
    validate_token_id,
)

logger = get_logger("registry")


# =============================================================================
# Data Structures
# =============================================================================


@dataclass(frozen=True)
class NFTRecord:
    """
    A minted asset.

    Attributes:
        asset_id: Unique identifier (sequential from 1)
        owner: Current holder
        creator: Original minter
        uri: Metadata URI or name
        minted_at: Mint timestamp
    """
    asset_id: int
    owner: bytes
    creator: bytes
    uri: str = ""
    minted_at: int = field(default_factory=lambda: int(time.time()))


# =============================================================================
# NFT Registry
# =============================================================================


class NFTRegistry:
    """
    Registry of minted assets and their owners.

    Records are immutable snapshots; a transfer replaces the record.
    """

    def __init__(self, unique_uris: bool = False, max_uri_length: int = MAX_URI_LENGTH):
        """
        Initialize the registry.

        Args:
            unique_uris: Reject a mint whose URI is already registered
            max_uri_length: Maximum URI length
        """
        self.unique_uris = unique_uris
        self.max_uri_length = max_uri_length

        # Asset ID -> NFTRecord (insertion ordered)
        self.tokens: Dict[int, NFTRecord] = {}

        # URI -> Asset ID (only maintained when unique_uris)
        self.uri_index: Dict[str, int] = {}

        self._next_id = 1
        self._lock = threading.RLock()

    # =========================================================================
    # Minting
    # =========================================================================

    def mint(self, owner: bytes, uri: str = "") -> int:
        """
        Mint a new asset to `owner`.

        Args:
            owner: Address receiving the asset
            uri: Metadata URI (or token name)

        Returns:
            New asset id
        """
        valid, error = validate_address(owner, "owner")
        if valid:
            valid, error = validate_string(uri, "uri", max_length=self.max_uri_length)
        if not valid:
            raise InvalidInput(error)

        with self._lock:
            if self.unique_uris and uri in self.uri_index:
                raise TokenAlreadyExists(context={"uri": uri})

            asset_id = self._next_id
            self._next_id += 1
            self.tokens[asset_id] = NFTRecord(asset_id=asset_id, owner=owner, creator=owner, uri=uri)
            if self.unique_uris:
                self.uri_index[uri] = asset_id

        logger.debug(f"Minted asset {asset_id} to {short_address(owner)}")
        return asset_id

    # =========================================================================
    # Ownership
    # =========================================================================

    def owner_of(self, asset_id: int) -> bytes:
        return self.get(asset_id).owner

    def get(self, asset_id: int) -> NFTRecord:
        """Get an asset record; NotFound if unknown."""
        valid, error = validate_token_id(asset_id)
        if not valid:
            raise NotFound(error, context={"asset_id": asset_id})
        with self._lock:
            record = self.tokens.get(asset_id)
        if record is None:
            raise NotFound(f"Asset {asset_id} not found", context={"asset_id": asset_id})
        return record

    def transfer(self, asset_id: int, sender: bytes, to: bytes) -> None:
        """
        Transfer an asset held by `sender` to `to`.

        Raises:
            NotFound: unknown asset
            NotTokenOwner: sender does not own the asset
        """
        valid, error = validate_address(to, "to")
        if not valid:
            raise InvalidInput(error)

        with self._lock:
            record = self.get(asset_id)
            if record.owner != sender:
                raise NotTokenOwner(
                    context={"asset_id": asset_id, "sender": short_address(sender)},
                )
            self.tokens[asset_id] = NFTRecord(
                asset_id=asset_id,
                owner=to,
                creator=record.creator,
                uri=record.uri,
                minted_at=record.minted_at,
            )

        logger.debug(f"Asset {asset_id}: {short_address(sender)} -> {short_address(to)}")

    def exists(self, asset_id: int) -> bool:
        with self._lock:
            return asset_id in self.tokens

    # =========================================================================
    # Listings
    # =========================================================================

    def get_all_tokens(self) -> List[NFTRecord]:
        """All assets in mint order."""
        with self._lock:
            return list(self.tokens.values())

    def tokens_of(self, owner: bytes) -> List[NFTRecord]:
        """Assets currently held by `owner`, in mint order."""
        with self._lock:
            return [r for r in self.tokens.values() if r.owner == owner]

    def balance_of(self, owner: bytes) -> int:
        return len(self.tokens_of(owner))

    def find_by_uri(self, uri: str) -> Optional[NFTRecord]:
        with self._lock:
            for record in self.tokens.values():
                if record.uri == uri:
                    return record
        return None

    # =========================================================================
    # Statistics
    # =========================================================================

    def stats(self) -> dict:
        """Get registry statistics."""
        with self._lock:
            return {
                "total_tokens": len(self.tokens),
                "owners": len({r.owner for r in self.tokens.values()}),
                "unique_uris": self.unique_uris,
            }


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "NFTRegistry",
    "NFTRecord",
]
