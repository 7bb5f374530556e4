"""
Shared fixtures: deterministic parties and funded markets.
"""

import pytest

from nftauction.core.config import MarketConfig
from nftauction.core.market import create_native_market, create_token_market
from nftauction.core.state import AccountBook
from nftauction.core.token import FungibleToken
from nftauction.crypto import keypair_from_seed
from nftauction.utils.units import parse_ether

FUNDING = parse_ether("10")


@pytest.fixture(scope="session")
def operator():
    return keypair_from_seed("operator").address_bytes


@pytest.fixture(scope="session")
def seller():
    return keypair_from_seed("seller").address_bytes


@pytest.fixture(scope="session")
def alice():
    return keypair_from_seed("alice").address_bytes


@pytest.fixture(scope="session")
def bob():
    return keypair_from_seed("bob").address_bytes


@pytest.fixture
def accounts(alice, bob, seller):
    """Native balances: 10 ether each for alice, bob and the seller."""
    book = AccountBook()
    book.create_genesis([(alice, FUNDING), (bob, FUNDING), (seller, FUNDING)])
    return book


@pytest.fixture
def native_market(operator, accounts):
    return create_native_market(operator, accounts)


@pytest.fixture
def token():
    return FungibleToken(name="Market Token", symbol="MKT")


@pytest.fixture
def token_market(operator, token, alice, bob, seller):
    """ERC20 market; alice and bob are funded and have approved the ledger."""
    market = create_token_market(operator, token, config=MarketConfig(payment_medium="erc20"))
    for party in (alice, bob, seller):
        token.mint(party, FUNDING)
    for party in (alice, bob):
        token.approve(party, market.address, FUNDING)
    return market
