"""
Unit tests for the auction ledger state machine.

Tests cover:
1. Listing creation and sequential ids
2. Available-items view
3. Bid validation order and messages
4. Sale finalization and fee split
5. Earnings views and withdrawals
6. Sale notifications
"""

import threading

import pytest

from nftauction.core.config import MarketConfig
from nftauction.core.errors import (
    AlreadySold,
    BidTooHigh,
    BidTooLow,
    InvalidInput,
    InvalidPrice,
    NotFound,
    NothingToWithdraw,
    PermissionDenied,
    SelfBid,
)
from nftauction.core.market import TokenItemSold, create_native_market
from nftauction.core.state import AccountBook
from nftauction.crypto import keypair_from_seed
from nftauction.utils.units import parse_ether

URI = "https://www.mytokenlocation.com"
PRICE = parse_ether("0.1")


# =============================================================================
# Listing
# =============================================================================


class TestCreateToken:
    """Tests for listing creation."""

    def test_accepts_nft_with_price_from_owner(self, native_market, seller):
        """Token 1 should exist and be unsold after listing."""
        token_id = native_market.create_token(seller, URI, parse_ether("5"))

        token = native_market.get_token(1)
        assert token_id == 1
        assert token.token_id == 1
        assert token.sold is False
        assert token.price == parse_ether("5")
        assert token.seller == seller
        assert token.owner == seller
        assert token.highest_bid == 0
        assert token.highest_bidder is None

    def test_ids_strictly_increase_from_one(self, native_market, seller, alice):
        """Sequential ids regardless of seller."""
        ids = [
            native_market.create_token(seller, URI, PRICE),
            native_market.create_token(alice, URI, PRICE),
            native_market.create_token(seller, URI, 1),
        ]
        assert ids == [1, 2, 3]

    def test_asset_minted_to_seller(self, native_market, seller):
        """Listing mints an asset owned by the seller."""
        token_id = native_market.create_token(seller, URI, PRICE)
        listing = native_market.get_token(token_id)
        assert native_market.registry.owner_of(listing.asset_id) == seller
        assert native_market.registry.get(listing.asset_id).uri == URI

    def test_zero_price_rejected(self, native_market, seller):
        with pytest.raises(InvalidPrice):
            native_market.create_token(seller, URI, 0)
        assert native_market.listings == {}

    def test_negative_price_rejected(self, native_market, seller):
        with pytest.raises(InvalidPrice):
            native_market.create_token(seller, URI, -5)

    def test_non_integer_price_rejected(self, native_market, seller):
        with pytest.raises(InvalidInput):
            native_market.create_token(seller, URI, 0.1)

    def test_empty_uri_rejected(self, native_market, seller):
        with pytest.raises(InvalidInput):
            native_market.create_token(seller, "  ", PRICE)

    def test_invalid_caller_rejected(self, native_market):
        with pytest.raises(InvalidInput):
            native_market.create_token(b"short", URI, PRICE)


class TestViews:
    """Tests for read-only accessors."""

    def test_get_unknown_token(self, native_market):
        with pytest.raises(NotFound):
            native_market.get_token(1)

    def test_get_token_zero_and_negative(self, native_market, seller):
        native_market.create_token(seller, URI, PRICE)
        with pytest.raises(NotFound):
            native_market.get_token(0)
        with pytest.raises(NotFound):
            native_market.get_token(-1)

    def test_highest_bid_defaults(self, native_market, seller):
        token_id = native_market.create_token(seller, URI, PRICE)
        assert native_market.get_highest_bid(token_id) == 0
        assert native_market.get_highest_bidder(token_id) is None

    def test_highest_bid_unknown_token(self, native_market):
        with pytest.raises(NotFound):
            native_market.get_highest_bid(42)
        with pytest.raises(NotFound):
            native_market.get_highest_bidder(42)

    def test_snapshots_are_immutable(self, native_market, seller):
        """Returned listings cannot be used to mutate the ledger."""
        token_id = native_market.create_token(seller, URI, PRICE)
        listing = native_market.get_token(token_id)
        with pytest.raises(AttributeError):
            listing.sold = True
        assert native_market.get_token(token_id).sold is False

    def test_available_items_exclude_sold(self, native_market, seller, alice):
        """Sold listings disappear; insertion order preserved."""
        for _ in range(3):
            native_market.create_token(seller, URI, PRICE)

        native_market.make_a_bid(alice, 2, PRICE)

        available = native_market.get_available_items()
        assert [l.token_id for l in available] == [1, 3]
        assert all(not l.sold for l in available)

    def test_available_items_empty(self, native_market):
        assert native_market.get_available_items() == []

    def test_per_party_views(self, native_market, seller, alice):
        native_market.create_token(seller, URI, PRICE)
        native_market.create_token(seller, URI, PRICE)
        native_market.make_a_bid(alice, 1, PRICE)

        assert [l.token_id for l in native_market.get_listings_by_seller(seller)] == [1, 2]
        assert [l.token_id for l in native_market.get_owned_items(seller)] == [2]
        assert [l.token_id for l in native_market.get_owned_items(alice)] == [1]


# =============================================================================
# Bidding
# =============================================================================


class TestBidValidation:
    """Tests for bid preconditions."""

    def test_unknown_token(self, native_market, alice):
        with pytest.raises(NotFound):
            native_market.make_a_bid(alice, 7, PRICE)

    def test_bid_above_price(self, native_market, seller, alice):
        token_id = native_market.create_token(seller, URI, PRICE)
        with pytest.raises(BidTooHigh, match="Bid must be less than or equal to the price."):
            native_market.make_a_bid(alice, token_id, PRICE + 1)

    def test_bid_equal_to_highest_rejected(self, native_market, seller, alice, bob):
        """Strict inequality: an equal bid is too low."""
        token_id = native_market.create_token(seller, URI, PRICE)
        native_market.make_a_bid(alice, token_id, parse_ether("0.05"))

        with pytest.raises(BidTooLow, match="Bid must be higher than current highest bid."):
            native_market.make_a_bid(bob, token_id, parse_ether("0.05"))

    def test_zero_bid_rejected(self, native_market, seller, alice):
        token_id = native_market.create_token(seller, URI, PRICE)
        with pytest.raises(BidTooLow):
            native_market.make_a_bid(alice, token_id, 0)

    def test_bid_on_sold_token(self, native_market, seller, alice, bob):
        token_id = native_market.create_token(seller, URI, PRICE)
        native_market.make_a_bid(alice, token_id, PRICE)

        with pytest.raises(AlreadySold, match="Token has already been sold."):
            native_market.make_a_bid(bob, token_id, PRICE)

    def test_sold_checked_before_price(self, native_market, seller, alice, bob):
        """First violated precondition wins."""
        token_id = native_market.create_token(seller, URI, PRICE)
        native_market.make_a_bid(alice, token_id, PRICE)

        with pytest.raises(AlreadySold):
            native_market.make_a_bid(bob, token_id, PRICE * 2)

    def test_price_checked_before_highest_bid(self, native_market, seller, alice, bob):
        token_id = native_market.create_token(seller, URI, PRICE)
        native_market.make_a_bid(alice, token_id, parse_ether("0.09"))

        with pytest.raises(BidTooHigh):
            native_market.make_a_bid(bob, token_id, PRICE + 1)

    def test_seller_bid_accepted_by_default(self, native_market, seller):
        token_id = native_market.create_token(seller, URI, PRICE)

        native_market.make_a_bid(seller, token_id, parse_ether("0.05"))
        assert native_market.get_highest_bidder(token_id) == seller

        native_market.make_a_bid(seller, token_id, PRICE)
        assert native_market.get_token(token_id).sold
        assert native_market.get_earnings(seller) == parse_ether("0.14")

    def test_seller_bid_rejected_when_disabled(self, operator, accounts, seller):
        market = create_native_market(operator, accounts, config=MarketConfig(allow_self_bid=False))
        token_id = market.create_token(seller, URI, PRICE)

        with pytest.raises(SelfBid):
            market.make_a_bid(seller, token_id, parse_ether("0.05"))

        assert market.get_highest_bid(token_id) == 0

    def test_self_bid_checked_after_sold(self, operator, accounts, seller, alice):
        market = create_native_market(operator, accounts, config=MarketConfig(allow_self_bid=False))
        token_id = market.create_token(seller, URI, PRICE)
        market.make_a_bid(alice, token_id, PRICE)

        with pytest.raises(AlreadySold):
            market.make_a_bid(seller, token_id, PRICE)

    def test_invalid_amount_type(self, native_market, seller, alice):
        token_id = native_market.create_token(seller, URI, PRICE)
        with pytest.raises(InvalidInput):
            native_market.make_a_bid(alice, token_id, "0.1")

    def test_rejected_bid_leaves_no_trace(self, native_market, seller, alice, bob, accounts):
        token_id = native_market.create_token(seller, URI, PRICE)
        native_market.make_a_bid(alice, token_id, parse_ether("0.08"))
        bob_before = accounts.get_balance(bob)

        with pytest.raises(BidTooLow):
            native_market.make_a_bid(bob, token_id, parse_ether("0.07"))

        assert native_market.get_highest_bid(token_id) == parse_ether("0.08")
        assert native_market.get_highest_bidder(token_id) == alice
        assert accounts.get_balance(bob) == bob_before


class TestBidding:
    """Tests for accepted bids."""

    def test_bid_becomes_highest(self, native_market, seller, alice):
        token_id = native_market.create_token(seller, URI, PRICE)
        listing = native_market.make_a_bid(alice, token_id, parse_ether("0.08"))

        assert listing.highest_bid == parse_ether("0.08")
        assert listing.highest_bidder == alice
        assert not listing.sold
        assert native_market.get_highest_bid(token_id) == parse_ether("0.08")
        assert native_market.get_highest_bidder(token_id) == alice

    def test_bid_escrowed(self, native_market, seller, alice, accounts):
        token_id = native_market.create_token(seller, URI, PRICE)
        before = accounts.get_balance(alice)

        native_market.make_a_bid(alice, token_id, parse_ether("0.08"))

        assert accounts.get_balance(alice) == before - parse_ether("0.08")
        assert accounts.get_balance(native_market.address) == parse_ether("0.08")

    def test_outbid_party_credited(self, native_market, seller, alice, bob):
        """Default policy: outbid escrow becomes withdrawable earnings."""
        token_id = native_market.create_token(seller, URI, PRICE)
        native_market.make_a_bid(alice, token_id, parse_ether("0.05"))
        native_market.make_a_bid(bob, token_id, parse_ether("0.06"))

        assert native_market.get_earnings(alice) == parse_ether("0.05")
        assert native_market.get_highest_bidder(token_id) == bob

    def test_reference_scenario(self, native_market, operator, seller, alice, bob):
        """0.08 accepted, 0.07 rejected, 0.1 finalizes; 0.01 / 0.09 split."""
        token_id = native_market.create_token(seller, URI, PRICE)

        native_market.make_a_bid(alice, token_id, parse_ether("0.08"))
        with pytest.raises(BidTooLow):
            native_market.make_a_bid(bob, token_id, parse_ether("0.07"))
        native_market.make_a_bid(bob, token_id, PRICE)

        listing = native_market.get_token(token_id)
        assert listing.sold
        assert listing.owner == bob
        assert native_market.registry.owner_of(listing.asset_id) == bob
        assert native_market.get_owner_earnings(operator) == parse_ether("0.01")
        assert native_market.get_earnings(seller) == parse_ether("0.09")
        assert native_market.get_earnings(alice) == parse_ether("0.08")
        assert native_market.get_available_items() == []


class TestFeeSplit:
    """Tests for operator fee arithmetic."""

    @pytest.mark.parametrize("price", [1, 9, 10, 11, 999, parse_ether("0.1"), parse_ether("5") + 7])
    def test_fee_plus_share_equals_price(self, operator, accounts, seller, alice, price):
        market = create_native_market(operator, accounts)
        token_id = market.create_token(seller, URI, price)

        market.make_a_bid(alice, token_id, price)

        fee = market.get_owner_earnings(operator)
        share = market.get_earnings(seller)
        assert fee == price * 1000 // 10_000
        assert fee + share == price

    def test_custom_fee(self, operator, accounts, seller, alice):
        market = create_native_market(operator, accounts, config=MarketConfig(operator_fee_bps=250))
        token_id = market.create_token(seller, URI, 1000)

        market.make_a_bid(alice, token_id, 1000)

        assert market.get_owner_earnings(operator) == 25
        assert market.get_earnings(seller) == 975


# =============================================================================
# Earnings
# =============================================================================


class TestEarnings:
    """Tests for earnings views and withdrawals."""

    def test_owner_earnings_permission(self, native_market, alice, seller):
        with pytest.raises(PermissionDenied):
            native_market.get_owner_earnings(alice)
        with pytest.raises(PermissionDenied):
            native_market.get_owner_earnings(seller)

    def test_withdraw_without_earnings(self, native_market, alice):
        with pytest.raises(NothingToWithdraw, match="No earnings to withdraw."):
            native_market.withdraw_earnings(alice)

    def test_seller_withdraws(self, native_market, seller, alice, accounts):
        token_id = native_market.create_token(seller, URI, PRICE)
        native_market.make_a_bid(alice, token_id, PRICE)
        before = accounts.get_balance(seller)

        paid = native_market.withdraw_earnings(seller)

        assert paid == parse_ether("0.09")
        assert accounts.get_balance(seller) == before + parse_ether("0.09")
        assert native_market.get_earnings(seller) == 0

    def test_second_withdraw_fails(self, native_market, seller, alice):
        token_id = native_market.create_token(seller, URI, PRICE)
        native_market.make_a_bid(alice, token_id, PRICE)
        native_market.withdraw_earnings(seller)

        with pytest.raises(NothingToWithdraw):
            native_market.withdraw_earnings(seller)

    def test_operator_withdraws_fee_pool(self, native_market, operator, seller, alice, accounts):
        token_id = native_market.create_token(seller, URI, PRICE)
        native_market.make_a_bid(alice, token_id, PRICE)

        assert native_market.get_earnings(operator) == parse_ether("0.01")
        paid = native_market.withdraw_earnings(operator)

        assert paid == parse_ether("0.01")
        assert accounts.get_balance(operator) == parse_ether("0.01")
        assert native_market.get_owner_earnings(operator) == 0

    def test_earnings_accumulate_across_sales(self, native_market, seller, alice, bob):
        native_market.create_token(seller, URI, PRICE)
        native_market.create_token(seller, URI, PRICE * 2)
        native_market.make_a_bid(alice, 1, PRICE)
        native_market.make_a_bid(bob, 2, PRICE * 2)

        assert native_market.get_earnings(seller) == parse_ether("0.27")

    def test_custody_drained_after_all_withdrawals(self, native_market, operator, seller, alice, bob, accounts):
        token_id = native_market.create_token(seller, URI, PRICE)
        native_market.make_a_bid(alice, token_id, parse_ether("0.08"))
        native_market.make_a_bid(bob, token_id, PRICE)

        for party in (operator, seller, alice):
            native_market.withdraw_earnings(party)

        assert accounts.get_balance(native_market.address) == 0
        assert native_market.liabilities() == 0


# =============================================================================
# Notifications
# =============================================================================


class TestNotifications:
    """Tests for TokenItemSold."""

    def test_event_emitted_on_sale(self, native_market, seller, alice):
        received = []
        native_market.subscribe(received.append)
        token_id = native_market.create_token(seller, URI, PRICE)

        native_market.make_a_bid(alice, token_id, parse_ether("0.05"))
        assert received == []

        native_market.make_a_bid(alice, token_id, PRICE)

        expected = TokenItemSold(token_id=token_id, seller=seller, buyer=alice, price=PRICE)
        assert received == [expected]
        assert native_market.events == [expected]

    def test_unsubscribe(self, native_market, seller, alice):
        received = []
        native_market.subscribe(received.append)
        native_market.unsubscribe(received.append)
        token_id = native_market.create_token(seller, URI, PRICE)

        native_market.make_a_bid(alice, token_id, PRICE)

        assert received == []
        assert len(native_market.events) == 1

    def test_failing_listener_does_not_undo_sale(self, native_market, seller, alice):
        def broken(event):
            raise RuntimeError("listener bug")

        native_market.subscribe(broken)
        token_id = native_market.create_token(seller, URI, PRICE)

        native_market.make_a_bid(alice, token_id, PRICE)

        assert native_market.get_token(token_id).sold

    def test_listener_sees_committed_sale(self, native_market, seller, alice):
        seen = []
        native_market.subscribe(
            lambda event: seen.append((native_market.get_token(event.token_id).sold, len(native_market.events)))
        )
        token_id = native_market.create_token(seller, URI, PRICE)

        native_market.make_a_bid(alice, token_id, PRICE)

        assert seen == [(True, 1)]

    def test_concurrent_sales_delivered_in_commit_order(self, operator, seller):
        buyers = [keypair_from_seed(f"buyer-{i}").address_bytes for i in range(6)]
        accounts = AccountBook()
        accounts.create_genesis([(b, parse_ether("1")) for b in buyers])
        market = create_native_market(operator, accounts)
        token_ids = [market.create_token(seller, URI, PRICE) for _ in buyers]
        received = []
        market.subscribe(received.append)
        barrier = threading.Barrier(len(buyers))

        def buy(buyer, token_id):
            barrier.wait()
            market.make_a_bid(buyer, token_id, PRICE)

        threads = [threading.Thread(target=buy, args=pair) for pair in zip(buyers, token_ids)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(received) == len(buyers)
        assert received == market.events


class TestStats:
    """Tests for ledger statistics."""

    def test_stats(self, native_market, seller, alice):
        native_market.create_token(seller, URI, PRICE)
        native_market.create_token(seller, URI, PRICE)
        native_market.make_a_bid(alice, 1, PRICE)
        native_market.make_a_bid(alice, 2, parse_ether("0.03"))

        stats = native_market.stats()
        assert stats["listings"] == 2
        assert stats["sold"] == 1
        assert stats["available"] == 1
        assert stats["open_bids"] == parse_ether("0.03")
        assert stats["operator_earnings"] == parse_ether("0.01")
        assert stats["custody_balance"] == stats["liabilities"]
        assert stats["sales"] == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
