"""
fusionswap - Maker-side coordinator for Fusion+ cross-chain swaps

Builds the hash-lock commitment for an order (one secret, or a Merkle root
over one secret per partial fill), submits the order and releases each
secret only once the escrows for that fill are deployed.

Usage:
    from fusionswap import load_config, FusionPlusClient, SwapOrderCoordinator
    from fusionswap import OP_TO_ARB

    config = load_config()
    with FusionPlusClient.from_config(config) as client:
        coordinator = SwapOrderCoordinator.from_config(config, client)
        outcome = coordinator.execute(OP_TO_ARB, amount="0.0005")
        print(outcome.status)
"""

from .core import (
    OrderState,
    SwapPhase,
    PresetName,
    Network,
    SwapRoute,
    OP_TO_ARB,
    ARB_TO_OP,
    ROUTES,
    get_route,
)
from .errors import (
    SwapError,
    ConfigError,
    InvalidCount,
    UnknownIndex,
    EmptyFillSet,
    SecretsReleased,
    ExchangeError,
    QuoteUnavailable,
    SubmissionFailed,
    PollingExhausted,
    Cancelled,
)
from .config import FusionConfig, PollPolicy, load_config

from .htlc.secrets import SecretVault, Fill, hash_secret
from .htlc.hashlock import CommitmentBuilder, HashLock, HashLockKind

from .exchange.base import ExchangeService
from .exchange.fusion import FusionPlusClient, LocalAccountSigner
from .exchange.models import Quote, Preset, TakingFee, SubmittedOrder

from .swap.coordinator import SwapOrderCoordinator, SwapSession, SwapOutcome, CancelToken

__version__ = "0.1.0"
__all__ = [
    # Core types
    "OrderState",
    "SwapPhase",
    "PresetName",
    "Network",
    "SwapRoute",
    "OP_TO_ARB",
    "ARB_TO_OP",
    "ROUTES",
    "get_route",
    # Errors
    "SwapError",
    "ConfigError",
    "InvalidCount",
    "UnknownIndex",
    "EmptyFillSet",
    "SecretsReleased",
    "ExchangeError",
    "QuoteUnavailable",
    "SubmissionFailed",
    "PollingExhausted",
    "Cancelled",
    # Config
    "FusionConfig",
    "PollPolicy",
    "load_config",
    # Hash locks
    "SecretVault",
    "Fill",
    "hash_secret",
    "CommitmentBuilder",
    "HashLock",
    "HashLockKind",
    # Exchange
    "ExchangeService",
    "FusionPlusClient",
    "LocalAccountSigner",
    "Quote",
    "Preset",
    "TakingFee",
    "SubmittedOrder",
    # Swap
    "SwapOrderCoordinator",
    "SwapSession",
    "SwapOutcome",
    "CancelToken",
]
