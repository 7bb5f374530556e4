"""
Unit conversion between human-readable ether amounts and wei.

Mirrors ethers' parseEther / formatEther: 1 ether = 10**18 wei. Decimal
arithmetic keeps "0.1" exact.
"""

from decimal import Decimal, InvalidOperation, localcontext
from typing import Union

WEI_PER_ETHER = 10**18
ETHER_DECIMALS = 18

# uint256 needs 78 significant digits
_PRECISION = 100


def parse_units(value: Union[str, int, Decimal], decimals: int = ETHER_DECIMALS) -> int:
    """
    Convert a decimal amount into integer base units.

    Raises:
        ValueError: if the value is malformed, negative or has more
            fractional digits than `decimals`.
    """
    if isinstance(value, float):
        raise ValueError("Use str or Decimal for amounts, not float")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}")

    if not amount.is_finite() or amount < 0:
        raise ValueError(f"Amount must be a non-negative number, got {value!r}")

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scaled = amount.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Too many decimal places in {value!r} (max {decimals})")
    return int(scaled)


def format_units(amount: int, decimals: int = ETHER_DECIMALS) -> str:
    """Convert integer base units to a decimal string ("0.09")."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        text = format(Decimal(amount).scaleb(-decimals), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def parse_ether(value: Union[str, int, Decimal]) -> int:
    """parse_ether("0.1") -> 100000000000000000"""
    return parse_units(value, ETHER_DECIMALS)


def format_ether(amount: int) -> str:
    return format_units(amount, ETHER_DECIMALS)
