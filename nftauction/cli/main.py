"""
nftauction CLI - Command Line Interface for the NFT auction ledger

Main entry point for all CLI commands.
"""

import json
from decimal import Decimal

import click

from nftauction.utils.logger import setup_logging, get_logger


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--env-file", default=None, type=click.Path(dir_okay=False), help="Load NFTA_* settings from a .env file")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, env_file):
    """NFT auction ledger - off-chain marketplace model"""
    from nftauction.core.config import load_config

    try:
        config = load_config(env_file)
    except (FileNotFoundError, ValueError) as e:
        raise click.BadParameter(str(e), param_hint="--env-file / NFTA_*")

    setup_logging(config, debug=debug)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# =============================================================================
# Config Command
# =============================================================================


@cli.command("config")
@click.pass_context
def show_config(ctx):
    """Show the effective configuration"""
    click.echo(json.dumps(ctx.obj["config"].as_dict(), indent=2))


# =============================================================================
# Demo Command
# =============================================================================


@cli.command("demo")
@click.option("--medium", type=click.Choice(["native", "erc20"]), default=None, help="Payment medium (default: config)")
@click.option("--price", default="0.1", help="Ask price in ether/tokens")
@click.pass_context
def demo(ctx, medium, price):
    """Run the reference listing / bidding / withdrawal scenario"""
    from dataclasses import replace

    from nftauction.core.errors import MarketError
    from nftauction.core.market import create_native_market, create_token_market
    from nftauction.core.state import AccountBook
    from nftauction.core.token import FungibleToken
    from nftauction.crypto import keypair_from_seed
    from nftauction.utils.units import format_ether, parse_ether

    logger = get_logger("cli")
    config = ctx.obj["config"]
    medium = medium or config.payment_medium
    config = replace(config, payment_medium=medium)

    try:
        ask = parse_ether(price)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--price")
    if ask <= 0:
        raise click.BadParameter("price must be positive", param_hint="--price")

    operator = keypair_from_seed("operator").address_bytes
    seller = keypair_from_seed("seller").address_bytes
    alice = keypair_from_seed("alice").address_bytes
    bob = keypair_from_seed("bob").address_bytes
    funding = parse_ether("10")

    click.echo("=" * 60)
    click.echo(f"  NFT AUCTION LEDGER - DEMO ({medium})")
    click.echo("=" * 60)
    click.echo()

    if medium == "erc20":
        token = FungibleToken(symbol=config.token_symbol, decimals=config.token_decimals)
        for party in (alice, bob):
            token.mint(party, funding)
        ledger = create_token_market(operator, token, config=config)
        for party in (alice, bob):
            token.approve(party, ledger.address, funding)
        unit = config.token_symbol
    else:
        accounts = AccountBook()
        accounts.create_genesis([(alice, funding), (bob, funding)])
        ledger = create_native_market(operator, accounts, config=config)
        unit = "ETH"

    # The reference scenario: 80% bid, a lower 70% bid, then the full price
    first_bid = int(Decimal(ask) * Decimal("0.8"))
    low_bid = int(Decimal(ask) * Decimal("0.7"))

    token_id = ledger.create_token(seller, "https://www.mytokenlocation.com", ask)
    click.echo(f"📦 Seller listed token {token_id} at {format_ether(ask)} {unit}")

    steps = [
        ("Alice bids", alice, first_bid),
        ("Bob bids", bob, low_bid),
        ("Bob bids", bob, ask),
    ]
    for label, bidder, amount in steps:
        try:
            ledger.make_a_bid(bidder, token_id, amount)
            click.echo(f"  ✓ {label} {format_ether(amount)} {unit}")
        except MarketError as e:
            logger.debug(f"Demo bid rejected: {e.to_dict()}")
            click.echo(f"  ❌ {label} {format_ether(amount)} {unit}: {e}")

    listing = ledger.get_token(token_id)
    click.echo()
    click.echo(f"⚖️  Sold: {listing.sold}, owner is Bob: {listing.owner == bob}")
    click.echo(f"  Operator earnings: {format_ether(ledger.get_owner_earnings(operator))} {unit}")
    click.echo(f"  Seller earnings:   {format_ether(ledger.get_earnings(seller))} {unit}")
    click.echo(f"  Alice earnings:    {format_ether(ledger.get_earnings(alice))} {unit}")
    click.echo()

    click.echo("💸 Withdrawals...")
    for label, party in (("Operator", operator), ("Seller", seller), ("Alice", alice)):
        try:
            paid = ledger.withdraw_earnings(party)
            click.echo(f"  ✓ {label} withdrew {format_ether(paid)} {unit}")
        except MarketError as e:
            click.echo(f"  ❌ {label}: {e}")

    click.echo()
    click.echo("📊 Final Statistics:")
    for label, party in (("Operator", operator), ("Seller", seller), ("Alice", alice), ("Bob", bob)):
        click.echo(f"  {label}: {format_ether(ledger.payment.balance_of(party))} {unit}")
    click.echo(f"  Ledger: {ledger.stats()}")
    click.echo()
    click.echo("✅ Demo complete!")


if __name__ == "__main__":
    cli()
