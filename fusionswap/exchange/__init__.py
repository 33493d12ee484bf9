"""
Exchange service boundary and the Fusion+ HTTP client.
"""

from .base import ExchangeService
from .fusion import FusionPlusClient, OrderSigner, LocalAccountSigner
from .models import (
    Preset,
    Quote,
    TakingFee,
    ReadyFill,
    ReadyToAcceptSecretFills,
    OrderStatusInfo,
    BuiltOrder,
    SubmittedOrder,
)

__all__ = [
    "ExchangeService",
    "FusionPlusClient",
    "OrderSigner",
    "LocalAccountSigner",
    "Preset",
    "Quote",
    "TakingFee",
    "ReadyFill",
    "ReadyToAcceptSecretFills",
    "OrderStatusInfo",
    "BuiltOrder",
    "SubmittedOrder",
]
