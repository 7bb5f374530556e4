"""
Auction Ledger - NFT listings, escrowed bids and pull-payment earnings.

Conceptual Background:
---------------------
A seller lists an asset at a fixed ask price. Bidders place escrowed bids
that must strictly beat the current highest bid and may not exceed the ask.
A bid equal to the ask finalizes the sale:

1. Listing marked sold, ownership moves to the buyer
2. Asset transferred in the NFT registry
3. Price split: operator fee (10% by default) + seller share
4. Both shares credited to withdrawable earnings
5. TokenItemSold notification emitted

Bid Validation (first failure wins):
-----------------------------------
1. Listing exists                  -> NotFound
2. Listing not sold                -> AlreadySold
3. amount <= price                 -> BidTooHigh
4. amount > highest bid            -> BidTooLow

With allow_self_bid=False, a bid by the seller fails with SelfBid
between steps 2 and 3.

Settlement:
----------
Funds move through an injected PaymentMedium (native currency or ERC20).
Escrow lives at the medium's custody address. At any time:

    custody balance == open highest bids + unpaid earnings + operator pool

Atomicity:
---------
All operations run under one re-entrant lock, so bids on the same listing
are totally ordered. A bid first collects the new escrow and moves the
asset; if either fails, nothing stays moved and the error is re-raised.
Direct payouts from custody (refunds, seller share) run last and are never
reversed: a payout that fails is credited to the payee's earnings instead.
State is committed after all fund movements. Withdrawals zero the balance
before paying out. Sale notifications are recorded and delivered in commit
order.
"""

import threading
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Tuple

from nftauction.core.config import MarketConfig
from nftauction.core.errors import (
    AlreadySold,
    BidTooHigh,
    BidTooLow,
    InvalidInput,
    InvalidPrice,
    MarketError,
    NotFound,
    NothingToWithdraw,
    NotTokenOwner,
    PermissionDenied,
    SelfBid,
)
from nftauction.core.payment.medium import NativePayment, PaymentMedium, TokenPayment
from nftauction.core.registry.nft_registry import NFTRegistry
from nftauction.core.state.accounts import AccountBook
from nftauction.core.token.erc20 import FungibleToken
from nftauction.crypto import contract_address, short_address
from nftauction.utils.logger import get_logger
from nftauction.utils.validation import validate_address, validate_amount, validate_uri

logger = get_logger("market")


# =============================================================================
# Data Structures
# =============================================================================


@dataclass(frozen=True)
class Listing:
    """
    Snapshot of a listed asset.

    Attributes:
        token_id: Sequential listing id (from 1)
        seller: Lister; receives the proceeds
        price: Fixed ask price, immutable
        sold: True once a bid matched the price
        owner: Seller while unsold, buyer afterwards
        highest_bid: Current leading bid (0 if none)
        highest_bidder: Leading bidder (None if none)
        uri: Metadata URI
        asset_id: Id of the asset in the NFT registry
        created_at: Listing timestamp
    """
    token_id: int
    seller: bytes
    price: int
    sold: bool = False
    owner: Optional[bytes] = None
    highest_bid: int = 0
    highest_bidder: Optional[bytes] = None
    uri: str = ""
    asset_id: int = 0
    created_at: int = field(default_factory=lambda: int(time.time()))

    @property
    def available(self) -> bool:
        return not self.sold


@dataclass(frozen=True)
class TokenItemSold:
    """Notification emitted when a listing is sold."""
    token_id: int
    seller: bytes
    buyer: bytes
    price: int


SaleListener = Callable[[TokenItemSold], None]


# =============================================================================
# Auction Ledger
# =============================================================================


class AuctionLedger:
    """
    Listing and auction state machine.

    Attributes:
        operator: Contract owner; receives the operator fee
        payment: Injected payment medium
        registry: NFT registry used for minting and transfers
        config: Fee schedule and settlement policies
        listings: token_id -> Listing (insertion ordered)
        earnings: party -> withdrawable balance
        operator_earnings: Operator fee pool
        events: Emitted TokenItemSold notifications, in order
    """

    def __init__(
        self,
        operator: bytes,
        payment: PaymentMedium,
        registry: Optional[NFTRegistry] = None,
        config: Optional[MarketConfig] = None,
    ):
        """
        Initialize the ledger.

        Args:
            operator: Operator (deployer) address
            payment: Payment medium, selected once here
            registry: NFT registry. None = a dedicated new registry.
            config: Market configuration. None = defaults.
        """
        valid, error = validate_address(operator, "operator")
        if not valid:
            raise InvalidInput(error)

        self.operator = operator
        self.payment = payment
        self.config = config or MarketConfig()
        self.registry = registry or NFTRegistry(max_uri_length=self.config.max_uri_length)

        self.listings: Dict[int, Listing] = {}
        self.earnings: Dict[bytes, int] = {}
        self.operator_earnings: int = 0
        self.events: List[TokenItemSold] = []

        self._next_token_id = 1
        self._listeners: List[SaleListener] = []
        self._lock = threading.RLock()

        logger.info(
            f"AuctionLedger deployed: operator={short_address(operator)}, "
            f"medium={payment.name}, fee={self.config.operator_fee_bps}bps"
        )

    @property
    def address(self) -> bytes:
        """Custody address of the ledger."""
        return self.payment.custody

    # =========================================================================
    # Listing
    # =========================================================================

    def create_token(self, caller: bytes, uri: str, price: int) -> int:
        """
        Mint an asset to `caller` and list it at `price`.

        Args:
            caller: Seller address
            uri: Metadata URI
            price: Ask price in base units (> 0)

        Returns:
            New token id (sequential from 1)
        """
        self._require_address(caller, "caller")
        if isinstance(price, int) and not isinstance(price, bool) and price <= 0:
            raise InvalidPrice(context={"price": price})
        valid, error = validate_amount(price, "price")
        if not valid:
            raise InvalidInput(error)
        valid, error = validate_uri(uri, self.config.max_uri_length)
        if not valid:
            raise InvalidInput(error)

        with self._lock:
            asset_id = self.registry.mint(caller, uri)
            token_id = self._next_token_id
            self._next_token_id += 1
            self.listings[token_id] = Listing(
                token_id=token_id,
                seller=caller,
                price=price,
                owner=caller,
                uri=uri,
                asset_id=asset_id,
            )

        logger.info(f"Listed token {token_id} by {short_address(caller)} at {price}")
        return token_id

    # =========================================================================
    # Views
    # =========================================================================

    def get_token(self, token_id: int) -> Listing:
        """Get a listing snapshot; NotFound if unknown."""
        with self._lock:
            return self._get(token_id)

    def get_available_items(self) -> List[Listing]:
        """Unsold listings in ascending token id order."""
        with self._lock:
            return [listing for listing in self.listings.values() if not listing.sold]

    def get_listings_by_seller(self, seller: bytes) -> List[Listing]:
        with self._lock:
            return [listing for listing in self.listings.values() if listing.seller == seller]

    def get_owned_items(self, owner: bytes) -> List[Listing]:
        """Listings currently owned by `owner` (unsold own listings + purchases)."""
        with self._lock:
            return [listing for listing in self.listings.values() if listing.owner == owner]

    def get_highest_bid(self, token_id: int) -> int:
        with self._lock:
            return self._get(token_id).highest_bid

    def get_highest_bidder(self, token_id: int) -> Optional[bytes]:
        with self._lock:
            return self._get(token_id).highest_bidder

    # =========================================================================
    # Bidding
    # =========================================================================

    def make_a_bid(self, caller: bytes, token_id: int, amount: int) -> Listing:
        """
        Place an escrowed bid; a bid equal to the price buys the asset.

        Args:
            caller: Bidder address
            token_id: Listing to bid on
            amount: Bid in base units, collected through the payment medium

        Returns:
            Listing snapshot after the bid
        """
        self._require_address(caller, "caller")
        valid, error = validate_amount(amount)
        if not valid:
            raise InvalidInput(error)

        with self._lock:
            try:
                listing = self._check_bid(caller, token_id, amount)
            except MarketError as e:
                logger.debug(f"Bid rejected: {e.to_dict()}")
                raise

            finalizes = amount == listing.price
            if finalizes and self.registry.owner_of(listing.asset_id) != listing.seller:
                raise NotTokenOwner(
                    "Seller no longer owns the listed asset",
                    context={"token_id": token_id},
                )

            fee, seller_share = self.config.split(listing.price) if finalizes else (0, 0)
            previous_bidder = listing.highest_bidder
            previous_bid = listing.highest_bid

            unpaid = self._settle_bid(listing, caller, amount, finalizes, seller_share, previous_bidder, previous_bid)

            # Commit
            if previous_bidder is not None and self.config.refund_policy == "credit":
                self._credit(previous_bidder, previous_bid)
            for party, owed in unpaid.items():
                self._credit(party, owed)

            updated = replace(listing, highest_bid=amount, highest_bidder=caller)
            if finalizes:
                updated = replace(updated, sold=True, owner=caller)
                self.operator_earnings += fee
                if self.config.seller_payout == "credit":
                    self._credit(listing.seller, seller_share)
            self.listings[token_id] = updated

            if finalizes:
                logger.info(
                    f"Token {token_id} sold to {short_address(caller)} for {amount} "
                    f"(fee={fee}, seller={seller_share})"
                )
                self._emit(TokenItemSold(token_id=token_id, seller=listing.seller, buyer=caller, price=listing.price))
            else:
                logger.debug(f"Bid on token {token_id}: {amount} by {short_address(caller)}")

        return updated

    def _check_bid(self, caller: bytes, token_id: int, amount: int) -> Listing:
        """Bid validation; the first failing rule wins."""
        listing = self._get(token_id)
        if listing.sold:
            raise AlreadySold(context={"token_id": token_id})
        if caller == listing.seller and not self.config.allow_self_bid:
            raise SelfBid(context={"token_id": token_id})
        if amount > listing.price:
            raise BidTooHigh(context={"token_id": token_id, "amount": amount, "price": listing.price})
        if amount <= listing.highest_bid:
            raise BidTooLow(
                context={"token_id": token_id, "amount": amount, "highest_bid": listing.highest_bid}
            )
        return listing

    def _settle_bid(
        self,
        listing: Listing,
        caller: bytes,
        amount: int,
        finalizes: bool,
        seller_share: int,
        previous_bidder: Optional[bytes],
        previous_bid: int,
    ) -> Dict[bytes, int]:
        """
        Move the funds and the asset for a bid.

        The bid is collected and the asset transferred first; either failure
        aborts the bid with nothing moved. Direct payouts from custody come
        last and never abort: a payout that fails is returned as owed and
        credited to the payee's earnings instead.

        Returns:
            party -> amount still owed after failed direct payouts
        """
        self.payment.collect(caller, amount)

        if finalizes:
            try:
                self.registry.transfer(listing.asset_id, listing.seller, caller)
            except Exception:
                logger.warning(f"Asset transfer for token {listing.token_id} failed, returning bid")
                self.payment.pay(caller, amount)
                raise

        unpaid: Dict[bytes, int] = {}
        if previous_bidder is not None and self.config.refund_policy == "direct":
            self._pay_or_defer(previous_bidder, previous_bid, unpaid)
        if finalizes and self.config.seller_payout == "direct":
            self._pay_or_defer(listing.seller, seller_share, unpaid)
        return unpaid

    def _pay_or_defer(self, payee: bytes, amount: int, unpaid: Dict[bytes, int]) -> None:
        if not amount:
            return
        try:
            self.payment.pay(payee, amount)
        except Exception:
            logger.warning(
                f"Direct payout of {amount} to {short_address(payee)} failed, crediting earnings",
                exc_info=True,
            )
            unpaid[payee] = unpaid.get(payee, 0) + amount

    # =========================================================================
    # Earnings
    # =========================================================================

    def get_earnings(self, caller: bytes) -> int:
        """Caller's withdrawable balance (includes the fee pool for the operator)."""
        with self._lock:
            return self._withdrawable(caller)[0]

    def get_owner_earnings(self, caller: bytes) -> int:
        """Operator fee pool; operator only."""
        with self._lock:
            if caller != self.operator:
                raise PermissionDenied()
            return self.operator_earnings

    def withdraw_earnings(self, caller: bytes) -> int:
        """
        Pay out the caller's whole balance.

        The balance is zeroed before the payout; a failed payout restores it.

        Returns:
            Amount paid
        """
        self._require_address(caller, "caller")
        with self._lock:
            total, personal, pool = self._withdrawable(caller)
            if total == 0:
                raise NothingToWithdraw(context={"caller": short_address(caller)})

            self.earnings.pop(caller, None)
            if pool:
                self.operator_earnings = 0

            try:
                self.payment.pay(caller, total)
            except Exception:
                if personal:
                    self.earnings[caller] = self.earnings.get(caller, 0) + personal
                if pool:
                    self.operator_earnings += pool
                logger.warning(f"Withdrawal of {total} by {short_address(caller)} failed, balance restored")
                raise

        logger.info(f"Withdrawal: {short_address(caller)} received {total}")
        return total

    def _withdrawable(self, caller: bytes) -> Tuple[int, int, int]:
        personal = self.earnings.get(caller, 0)
        pool = self.operator_earnings if caller == self.operator else 0
        return personal + pool, personal, pool

    def _credit(self, party: bytes, amount: int) -> None:
        if amount:
            self.earnings[party] = self.earnings.get(party, 0) + amount

    # =========================================================================
    # Notifications
    # =========================================================================

    def subscribe(self, listener: SaleListener) -> None:
        """Register a callback for TokenItemSold."""
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: SaleListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _emit(self, event: TokenItemSold) -> None:
        """Record and deliver a sale; called with the lock held, at commit."""
        with self._lock:
            self.events.append(event)
            for listener in list(self._listeners):
                try:
                    listener(event)
                except Exception:
                    # The sale is committed; a faulty listener cannot undo it
                    logger.exception(f"TokenItemSold listener failed for token {event.token_id}")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get(self, token_id: int) -> Listing:
        if not isinstance(token_id, int) or isinstance(token_id, bool):
            raise InvalidInput(f"token_id must be int, got {type(token_id).__name__}")
        listing = self.listings.get(token_id)
        if listing is None:
            raise NotFound(context={"token_id": token_id})
        return listing

    @staticmethod
    def _require_address(address: bytes, name: str) -> None:
        valid, error = validate_address(address, name)
        if not valid:
            raise InvalidInput(error)

    # =========================================================================
    # Statistics
    # =========================================================================

    def liabilities(self) -> int:
        """Funds the custody address owes: open bids + unpaid earnings."""
        with self._lock:
            open_bids = sum(l.highest_bid for l in self.listings.values() if not l.sold)
            return open_bids + sum(self.earnings.values()) + self.operator_earnings

    def stats(self) -> dict:
        """Get ledger statistics."""
        with self._lock:
            sold = sum(1 for l in self.listings.values() if l.sold)
            return {
                "listings": len(self.listings),
                "sold": sold,
                "available": len(self.listings) - sold,
                "open_bids": sum(l.highest_bid for l in self.listings.values() if not l.sold),
                "operator_earnings": self.operator_earnings,
                "outstanding_earnings": sum(self.earnings.values()),
                "liabilities": self.liabilities(),
                "custody_balance": self.payment.custody_balance(),
                "sales": len(self.events),
            }

    def __repr__(self) -> str:
        return f"AuctionLedger(listings={len(self.listings)}, medium={self.payment.name})"


# =============================================================================
# Factories
# =============================================================================


def create_native_market(
    operator: bytes,
    accounts: AccountBook,
    config: Optional[MarketConfig] = None,
    registry: Optional[NFTRegistry] = None,
    nonce: int = 0,
) -> AuctionLedger:
    """Deploy a ledger settling in native currency held in `accounts`."""
    custody = contract_address(operator, nonce)
    return AuctionLedger(operator, NativePayment(accounts, custody), registry=registry, config=config)


def create_token_market(
    operator: bytes,
    token: FungibleToken,
    config: Optional[MarketConfig] = None,
    registry: Optional[NFTRegistry] = None,
    nonce: int = 0,
) -> AuctionLedger:
    """Deploy a ledger settling in `token`; bidders approve ledger.address first."""
    custody = contract_address(operator, nonce)
    return AuctionLedger(operator, TokenPayment(token, custody), registry=registry, config=config)
