"""
Unit tests for the native account book.
"""

import pytest

from nftauction.core.errors import InsufficientBalance, InvalidInput
from nftauction.core.state import AccountBook
from nftauction.crypto import keypair_from_seed

ALICE = keypair_from_seed("book-alice").address_bytes
BOB = keypair_from_seed("book-bob").address_bytes


@pytest.fixture
def book():
    b = AccountBook()
    b.create_genesis([(ALICE, 1000), (BOB, 500)])
    return b


class TestGenesis:
    """Tests for the initial allocation."""

    def test_genesis_balances(self, book):
        assert book.get_balance(ALICE) == 1000
        assert book.get_balance(BOB) == 500
        assert book.total_supply == 1500

    def test_genesis_only_once(self, book):
        with pytest.raises(RuntimeError):
            book.create_genesis([(ALICE, 1)])

    def test_genesis_rejects_bad_allocation(self):
        b = AccountBook()
        with pytest.raises(InvalidInput):
            b.create_genesis([(ALICE, 10), (b"bad", 10)])
        assert b.total_supply == 0
        assert not b.genesis_done


class TestTransfer:
    """Tests for transfers."""

    def test_transfer_conserves_supply(self, book):
        book.transfer(ALICE, BOB, 300)
        assert book.get_balance(ALICE) == 700
        assert book.get_balance(BOB) == 800
        assert book.total_supply == 1500

    def test_transfer_to_new_account(self, book):
        carol = keypair_from_seed("book-carol").address_bytes
        book.transfer(BOB, carol, 500)
        assert book.get_balance(BOB) == 0
        assert book.get_balance(carol) == 500
        assert book.stats()["funded_accounts"] == 2

    def test_insufficient_balance(self, book):
        with pytest.raises(InsufficientBalance) as exc:
            book.transfer(BOB, ALICE, 501)
        assert exc.value.context["available"] == 500
        assert book.get_balance(BOB) == 500

    def test_negative_amount_rejected(self, book):
        with pytest.raises(InvalidInput):
            book.transfer(ALICE, BOB, -1)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
