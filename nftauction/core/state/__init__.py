"""Native currency account state"""
from nftauction.core.state.accounts import AccountBook

__all__ = [
    "AccountBook",
]
