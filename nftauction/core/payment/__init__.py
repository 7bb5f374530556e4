"""Payment media: native currency and ERC20 settlement"""
from nftauction.core.payment.medium import (
    PaymentMedium,
    NativePayment,
    TokenPayment,
)

__all__ = [
    "PaymentMedium",
    "NativePayment",
    "TokenPayment",
]
