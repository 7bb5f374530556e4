"""
Marketplace configuration for nftauction.

Defines the fee schedule, settlement policies and operational limits.
Values can be overridden through NFTA_* environment variables or a .env file.
"""

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values

# Basis-point denominator for fee arithmetic
BPS_DENOMINATOR = 10_000

REFUND_POLICIES = ("credit", "direct")
SELLER_PAYOUTS = ("credit", "direct")
PAYMENT_MEDIA = ("native", "erc20")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

ENV_PREFIX = "NFTA_"


@dataclass
class MarketConfig:
    """Marketplace-wide configuration parameters"""

    # Fees
    operator_fee_bps: int = 1000  # 10% of the sale price to the operator

    # Settlement
    refund_policy: str = "credit"  # Outbid escrow: credit to earnings or pay back
    seller_payout: str = "credit"  # Seller share: credit to earnings or pay out
    allow_self_bid: bool = True    # False rejects bids by the listing's seller

    # Limits
    max_uri_length: int = 2048

    # Payment medium used by the CLI and factory helpers
    payment_medium: str = "native"
    token_symbol: str = "MKT"
    token_decimals: int = 18

    # Logging
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    log_to_file: bool = False

    def __post_init__(self):
        """Validate ranges and choices"""
        if not 0 <= self.operator_fee_bps <= BPS_DENOMINATOR:
            raise ValueError(
                f"operator_fee_bps must be in [0, {BPS_DENOMINATOR}], got {self.operator_fee_bps}"
            )
        if self.refund_policy not in REFUND_POLICIES:
            raise ValueError(f"refund_policy must be one of {REFUND_POLICIES}, got {self.refund_policy!r}")
        if self.seller_payout not in SELLER_PAYOUTS:
            raise ValueError(f"seller_payout must be one of {SELLER_PAYOUTS}, got {self.seller_payout!r}")
        if self.payment_medium not in PAYMENT_MEDIA:
            raise ValueError(f"payment_medium must be one of {PAYMENT_MEDIA}, got {self.payment_medium!r}")
        if self.max_uri_length <= 0:
            raise ValueError("max_uri_length must be positive")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {self.log_level!r}")
        self.log_dir = Path(self.log_dir)

    def split(self, price: int) -> tuple:
        """
        Split a sale price into (operator_fee, seller_share).

        Integer arithmetic; the seller gets the remainder so that
        fee + share == price exactly.
        """
        fee = price * self.operator_fee_bps // BPS_DENOMINATOR
        return fee, price - fee

    def as_dict(self) -> Dict[str, object]:
        out = asdict(self)
        out["log_dir"] = str(self.log_dir)
        return out


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Not a boolean: {value!r}")


def config_from_mapping(env: Mapping[str, Optional[str]]) -> MarketConfig:
    """
    Build a MarketConfig from NFTA_* keys in `env`.

    Unknown keys are ignored; malformed values raise ValueError.
    """
    overrides = {}
    for f in fields(MarketConfig):
        raw = env.get(ENV_PREFIX + f.name.upper())
        if raw is None or raw == "":
            continue
        if f.type in (int, "int"):
            try:
                overrides[f.name] = int(raw)
            except ValueError:
                raise ValueError(f"{ENV_PREFIX}{f.name.upper()} must be an integer, got {raw!r}")
        elif f.type in (bool, "bool"):
            overrides[f.name] = _parse_bool(raw)
        elif f.type in (Path, "Path"):
            overrides[f.name] = Path(raw)
        else:
            overrides[f.name] = raw
    return MarketConfig(**overrides)


# Global config instance (can be overridden)
config = MarketConfig()


def load_config(env_file: Optional[str] = None) -> MarketConfig:
    """
    Load configuration from a .env file and the process environment.

    Process environment wins over the file.

    Args:
        env_file: Optional path to a .env file

    Returns:
        MarketConfig instance
    """
    env: Dict[str, Optional[str]] = {}
    if env_file:
        path = Path(env_file)
        if not path.is_file():
            raise FileNotFoundError(f"Env file not found: {env_file}")
        env.update(dotenv_values(path))
    env.update(os.environ)
    return config_from_mapping(env)
