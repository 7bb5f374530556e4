"""
Auction Ledger Module.

This module provides the marketplace state machine:
- Fixed-price listings backed by the NFT registry
- Escrowed, strictly increasing bids
- Sale finalization with operator fee split
- Pull-payment earnings and withdrawals
"""

from nftauction.core.market.auction_ledger import (
    AuctionLedger,
    Listing,
    TokenItemSold,
    create_native_market,
    create_token_market,
)

__all__ = [
    "AuctionLedger",
    "Listing",
    "TokenItemSold",
    "create_native_market",
    "create_token_market",
]
