"""
NFT Registry Module.

Tracks minted assets and their exclusive owners.
"""

from nftauction.core.registry.nft_registry import (
    NFTRegistry,
    NFTRecord,
)

__all__ = [
    "NFTRegistry",
    "NFTRecord",
]
