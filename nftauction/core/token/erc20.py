"""
Fungible Token Ledger - ERC20-like balances and allowances.

Used by the token-denominated marketplace variant: bidders grant the
auction ledger an allowance (approve / increase_allowance) and the ledger
pulls bids with transfer_from; withdrawals are pushed with transfer.

Only the behaviour the marketplace relies on is modelled:
- balance_of / total_supply
- transfer(sender, to, amount)
- approve / increase_allowance / decrease_allowance / allowance
- transfer_from(spender, owner, to, amount)
- mint(to, amount) for test and demo funding
"""

import threading
from collections import defaultdict
from typing import Dict, Tuple

from nftauction.core.errors import InsufficientAllowance, InsufficientBalance, InvalidInput
from nftauction.crypto import short_address
from nftauction.utils.logger import get_logger
from nftauction.utils.validation import validate_address, validate_amount, MAX_AMOUNT

logger = get_logger("token")


class FungibleToken:
    """
    In-memory ERC20 token.

    Attributes:
        name: Token name
        symbol: Ticker symbol
        decimals: Display decimals
        balances: address -> balance
        allowances: (owner, spender) -> remaining allowance
    """

    def __init__(self, name: str = "Market Token", symbol: str = "MKT", decimals: int = 18):
        self.name = name
        self.symbol = symbol
        self.decimals = decimals

        self.balances: Dict[bytes, int] = defaultdict(int)
        self.allowances: Dict[Tuple[bytes, bytes], int] = defaultdict(int)
        self._total_supply = 0
        self._lock = threading.RLock()

    # =========================================================================
    # Views
    # =========================================================================

    def balance_of(self, address: bytes) -> int:
        with self._lock:
            return self.balances.get(address, 0)

    def total_supply(self) -> int:
        with self._lock:
            return self._total_supply

    def allowance(self, owner: bytes, spender: bytes) -> int:
        with self._lock:
            return self.allowances.get((owner, spender), 0)

    # =========================================================================
    # Supply
    # =========================================================================

    def mint(self, to: bytes, amount: int) -> None:
        """Create `amount` new tokens for `to`."""
        self._check_address(to, "to")
        self._check_amount(amount)
        with self._lock:
            if self._total_supply + amount > MAX_AMOUNT:
                raise InvalidInput("Total supply overflow")
            self.balances[to] += amount
            self._total_supply += amount
        logger.debug(f"Minted {amount} {self.symbol} to {short_address(to)}")

    # =========================================================================
    # Transfers
    # =========================================================================

    def transfer(self, sender: bytes, to: bytes, amount: int) -> bool:
        """
        Move tokens from `sender` to `to`.

        Raises:
            InsufficientBalance: sender balance below amount
        """
        self._check_address(sender, "sender")
        self._check_address(to, "to")
        self._check_amount(amount)
        with self._lock:
            self._move(sender, to, amount)
        return True

    def transfer_from(self, spender: bytes, owner: bytes, to: bytes, amount: int) -> bool:
        """
        Move tokens from `owner` to `to` using `spender`'s allowance.

        Allowance is checked before balance, matching OpenZeppelin's ERC20.

        Raises:
            InsufficientAllowance: allowance below amount
            InsufficientBalance: owner balance below amount
        """
        self._check_address(spender, "spender")
        self._check_address(owner, "owner")
        self._check_address(to, "to")
        self._check_amount(amount)
        with self._lock:
            current = self.allowances.get((owner, spender), 0)
            if current < amount:
                raise InsufficientAllowance(
                    f"ERC20: insufficient allowance: have {current}, need {amount}",
                    context={"owner": short_address(owner), "spender": short_address(spender)},
                )
            self._move(owner, to, amount)
            self.allowances[(owner, spender)] = current - amount
        return True

    def _move(self, sender: bytes, to: bytes, amount: int) -> None:
        available = self.balances.get(sender, 0)
        if available < amount:
            raise InsufficientBalance(
                f"ERC20: transfer amount exceeds balance: have {available}, need {amount}",
                context={"address": short_address(sender), "available": available, "amount": amount},
            )
        self.balances[sender] = available - amount
        self.balances[to] += amount
        logger.debug(f"{self.symbol} transfer {short_address(sender)} -> {short_address(to)}: {amount}")

    # =========================================================================
    # Allowances
    # =========================================================================

    def approve(self, owner: bytes, spender: bytes, amount: int) -> bool:
        """Set `spender`'s allowance over `owner`'s tokens."""
        self._check_address(owner, "owner")
        self._check_address(spender, "spender")
        self._check_amount(amount)
        with self._lock:
            self.allowances[(owner, spender)] = amount
        return True

    def increase_allowance(self, owner: bytes, spender: bytes, added_value: int) -> bool:
        self._check_address(owner, "owner")
        self._check_address(spender, "spender")
        self._check_amount(added_value)
        with self._lock:
            new_value = self.allowances.get((owner, spender), 0) + added_value
            if new_value > MAX_AMOUNT:
                raise InvalidInput("Allowance overflow")
            self.allowances[(owner, spender)] = new_value
        return True

    def decrease_allowance(self, owner: bytes, spender: bytes, subtracted_value: int) -> bool:
        self._check_address(owner, "owner")
        self._check_address(spender, "spender")
        self._check_amount(subtracted_value)
        with self._lock:
            current = self.allowances.get((owner, spender), 0)
            if current < subtracted_value:
                raise InsufficientAllowance("ERC20: decreased allowance below zero")
            self.allowances[(owner, spender)] = current - subtracted_value
        return True

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _check_address(address: bytes, name: str) -> None:
        valid, error = validate_address(address, name)
        if not valid:
            raise InvalidInput(error)

    @staticmethod
    def _check_amount(amount: int) -> None:
        valid, error = validate_amount(amount)
        if not valid:
            raise InvalidInput(error)

    def __repr__(self) -> str:
        return f"FungibleToken({self.symbol}, supply={self._total_supply})"

    def stats(self) -> dict:
        with self._lock:
            return {
                "symbol": self.symbol,
                "total_supply": self._total_supply,
                "holders": sum(1 for v in self.balances.values() if v > 0),
            }
