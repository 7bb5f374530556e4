"""
NFT Auction Ledger (nftauction)

An off-chain model of an NFT listing and auction marketplace:
- Listings with a fixed ask price
- Escrowed bids settled at the ask price
- Operator fee split and pull-payment withdrawals
- Native-currency or ERC20-denominated settlement
"""

__version__ = "0.1.0"
