"""Fungible token ledger (ERC20 model)"""
from nftauction.core.token.erc20 import FungibleToken

__all__ = [
    "FungibleToken",
]
