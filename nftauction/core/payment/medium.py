"""
Payment Media - how funds move in and out of the auction ledger's custody.

The auction state machine and fee arithmetic are identical for every
variant of the marketplace; only fund movement differs:

- NativePayment: value attached to calls (an AccountBook in wei)
- TokenPayment: an ERC20 token; bids are pulled with transfer_from against
  a prior allowance, payouts are pushed with transfer

Every medium exposes the same two operations:

    collect(payer, amount)   payer -> custody
    pay(payee, amount)       custody -> payee

Both either complete fully or raise, leaving balances untouched.
"""

from typing import Protocol, runtime_checkable

from nftauction.core.state.accounts import AccountBook
from nftauction.core.token.erc20 import FungibleToken
from nftauction.crypto import short_address
from nftauction.utils.logger import get_logger

logger = get_logger("payment")


@runtime_checkable
class PaymentMedium(Protocol):
    """Capability injected into the auction ledger at construction."""
    custody: bytes
    name: str

    def collect(self, payer: bytes, amount: int) -> None:
        ...

    def pay(self, payee: bytes, amount: int) -> None:
        ...

    def balance_of(self, party: bytes) -> int:
        ...

    def custody_balance(self) -> int:
        ...


class NativePayment:
    """
    Native currency settlement.

    Attributes:
        accounts: Native balance book
        custody: Address holding escrowed bids and unpaid earnings
    """

    name = "native"

    def __init__(self, accounts: AccountBook, custody: bytes):
        self.accounts = accounts
        self.custody = custody

    def collect(self, payer: bytes, amount: int) -> None:
        """Debit the payer as if `amount` were attached to the call."""
        self.accounts.transfer(payer, self.custody, amount)
        logger.debug(f"Collected {amount} wei from {short_address(payer)}")

    def pay(self, payee: bytes, amount: int) -> None:
        self.accounts.transfer(self.custody, payee, amount)
        logger.debug(f"Paid {amount} wei to {short_address(payee)}")

    def balance_of(self, party: bytes) -> int:
        return self.accounts.get_balance(party)

    def custody_balance(self) -> int:
        return self.accounts.get_balance(self.custody)

    def __repr__(self) -> str:
        return f"NativePayment(custody={short_address(self.custody)})"


class TokenPayment:
    """
    ERC20 settlement.

    Bidders must first approve (or increase_allowance for) the custody
    address as spender for at least the bid amount.
    """

    name = "erc20"

    def __init__(self, token: FungibleToken, custody: bytes):
        self.token = token
        self.custody = custody

    def collect(self, payer: bytes, amount: int) -> None:
        """Pull `amount` from payer using the custody address's allowance."""
        self.token.transfer_from(self.custody, payer, self.custody, amount)
        logger.debug(f"Collected {amount} {self.token.symbol} from {short_address(payer)}")

    def pay(self, payee: bytes, amount: int) -> None:
        self.token.transfer(self.custody, payee, amount)
        logger.debug(f"Paid {amount} {self.token.symbol} to {short_address(payee)}")

    def balance_of(self, party: bytes) -> int:
        return self.token.balance_of(party)

    def custody_balance(self) -> int:
        return self.token.balance_of(self.custody)

    def __repr__(self) -> str:
        return f"TokenPayment({self.token.symbol}, custody={short_address(self.custody)})"
