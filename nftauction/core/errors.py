"""
Marketplace errors.

Every rejection raised by the ledger and its collaborators derives from
MarketError and carries:
- a stable integer code (see ErrorCode) for programmatic handling
- the human-readable revert message of the on-chain contract
- an optional shallow context dict (ids, amounts, addresses) for logs

All of these are validation failures: they are raised before any state is
changed and retrying the same call against the same state fails the same way.
"""

from enum import IntEnum
from typing import Any, Dict, Mapping, Optional


class ErrorCode(IntEnum):
    """Stable error codes."""
    MARKET_GENERIC = 3000
    NOT_FOUND = 3001
    ALREADY_SOLD = 3002
    BID_TOO_LOW = 3003
    BID_TOO_HIGH = 3004
    PERMISSION_DENIED = 3005
    NOTHING_TO_WITHDRAW = 3006
    INVALID_PRICE = 3007
    SELF_BID = 3008
    INVALID_INPUT = 3009

    # Payment media
    INSUFFICIENT_BALANCE = 3101
    INSUFFICIENT_ALLOWANCE = 3102

    # NFT registry
    NOT_TOKEN_OWNER = 3201
    TOKEN_ALREADY_EXISTS = 3202


class MarketError(Exception):
    """
    Base class for marketplace exceptions.

    Subclasses set `code` and `default_message`; callers may override the
    message and attach context.
    """

    code: ErrorCode = ErrorCode.MARKET_GENERIC
    default_message: str = "Marketplace error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message or self.default_message
        super().__init__(self.message)
        self.context: Dict[str, Any] = dict(context) if context else {}

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Structured view suitable for logs or JSON output."""
        out: Dict[str, Any] = {
            "code": int(self.code),
            "error": type(self).__name__,
            "message": self.message,
        }
        if self.context:
            out["context"] = self.context
        return out


# =============================================================================
# Auction Ledger
# =============================================================================


class NotFound(MarketError):
    code = ErrorCode.NOT_FOUND
    default_message = "Token not found"


class AlreadySold(MarketError):
    code = ErrorCode.ALREADY_SOLD
    default_message = "Token has already been sold."


class BidTooLow(MarketError):
    """Bid not strictly greater than the current highest bid."""
    code = ErrorCode.BID_TOO_LOW
    default_message = "Bid must be higher than current highest bid."


class BidTooHigh(MarketError):
    code = ErrorCode.BID_TOO_HIGH
    default_message = "Bid must be less than or equal to the price."


class PermissionDenied(MarketError):
    code = ErrorCode.PERMISSION_DENIED
    default_message = "Only the contract owner can view owner earnings."


class NothingToWithdraw(MarketError):
    code = ErrorCode.NOTHING_TO_WITHDRAW
    default_message = "No earnings to withdraw."


class InvalidPrice(MarketError):
    code = ErrorCode.INVALID_PRICE
    default_message = "Price must be greater than zero."


class SelfBid(MarketError):
    code = ErrorCode.SELF_BID
    default_message = "Seller cannot bid on own token."


class InvalidInput(MarketError):
    code = ErrorCode.INVALID_INPUT
    default_message = "Invalid input"


# =============================================================================
# Payment media
# =============================================================================


class InsufficientBalance(MarketError):
    code = ErrorCode.INSUFFICIENT_BALANCE
    default_message = "Insufficient balance"


class InsufficientAllowance(MarketError):
    code = ErrorCode.INSUFFICIENT_ALLOWANCE
    default_message = "Insufficient allowance"


# =============================================================================
# NFT registry
# =============================================================================


class NotTokenOwner(MarketError):
    code = ErrorCode.NOT_TOKEN_OWNER
    default_message = "Caller is not token owner"


class TokenAlreadyExists(MarketError):
    code = ErrorCode.TOKEN_ALREADY_EXISTS
    default_message = "Token already exists"


__all__ = [
    "ErrorCode",
    "MarketError",
    "NotFound",
    "AlreadySold",
    "BidTooLow",
    "BidTooHigh",
    "PermissionDenied",
    "NothingToWithdraw",
    "InvalidPrice",
    "SelfBid",
    "InvalidInput",
    "InsufficientBalance",
    "InsufficientAllowance",
    "NotTokenOwner",
    "TokenAlreadyExists",
]
