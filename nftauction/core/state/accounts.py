"""
Account Book - native currency balances.

Conceptual Background:
---------------------
On chain, a bid in the native-currency variant carries its payment as
`msg.value`, and withdrawals send value back with a plain transfer. Off
chain we model the native currency as a simple account-based ledger:

1. **Balances**: address -> integer amount in wei
2. **Genesis**: a one-off allocation that creates the initial supply
3. **Transfers**: debit sender, credit receiver, atomically

Total supply is conserved by every operation after genesis.
"""

import threading
from typing import Dict, List, Tuple

from nftauction.core.errors import InsufficientBalance, InvalidInput
from nftauction.crypto import short_address
from nftauction.utils.logger import get_logger
from nftauction.utils.validation import validate_address, validate_amount

logger = get_logger("accounts")


class AccountBook:
    """
    Account-based native currency ledger.

    Attributes:
        balances: Mapping of address to balance
        genesis_done: Whether the initial allocation has been made
    """

    def __init__(self):
        self.balances: Dict[bytes, int] = {}
        self.genesis_done = False
        self._lock = threading.RLock()

    # =========================================================================
    # State Access
    # =========================================================================

    def get_balance(self, address: bytes) -> int:
        """Get balance for an address."""
        with self._lock:
            return self.balances.get(address, 0)

    @property
    def total_supply(self) -> int:
        with self._lock:
            return sum(self.balances.values())

    # =========================================================================
    # Genesis
    # =========================================================================

    def create_genesis(self, initial_allocations: List[Tuple[bytes, int]]) -> None:
        """
        Create the initial supply.

        Args:
            initial_allocations: List of (address, value) tuples
        """
        with self._lock:
            if self.genesis_done:
                raise RuntimeError("Genesis already created")

            for address, value in initial_allocations:
                self._check(address, value)

            for address, value in initial_allocations:
                self.balances[address] = self.balances.get(address, 0) + value
            self.genesis_done = True

        logger.info(
            f"Genesis created: {len(initial_allocations)} allocations, "
            f"{sum(v for _, v in initial_allocations)} total wei"
        )

    # =========================================================================
    # Mutation
    # =========================================================================

    def transfer(self, sender: bytes, to: bytes, amount: int) -> None:
        """
        Move `amount` from `sender` to `to`.

        Raises:
            InsufficientBalance: sender cannot cover the amount
        """
        self._check(sender, amount)
        self._check(to, amount)

        with self._lock:
            available = self.balances.get(sender, 0)
            if available < amount:
                raise InsufficientBalance(
                    f"Insufficient balance: have {available}, need {amount}",
                    context={"address": short_address(sender), "available": available, "amount": amount},
                )
            self.balances[sender] = available - amount
            self.balances[to] = self.balances.get(to, 0) + amount

        logger.debug(f"Native transfer {short_address(sender)} -> {short_address(to)}: {amount}")

    @staticmethod
    def _check(address: bytes, amount: int) -> None:
        valid, error = validate_address(address)
        if valid:
            valid, error = validate_amount(amount)
        if not valid:
            raise InvalidInput(error)

    # =========================================================================
    # Utility
    # =========================================================================

    def __repr__(self) -> str:
        return f"AccountBook(accounts={len(self.balances)}, supply={self.total_supply})"

    def stats(self) -> dict:
        """Get account statistics."""
        with self._lock:
            return {
                "accounts": len(self.balances),
                "funded_accounts": sum(1 for v in self.balances.values() if v > 0),
                "total_supply": sum(self.balances.values()),
            }
