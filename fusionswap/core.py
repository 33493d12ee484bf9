"""
Core types and constants for fusionswap.
"""

from enum import Enum
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Optional, Dict, Union


class OrderState(Enum):
    """Order status as reported by the exchange service."""
    PENDING = "pending"
    PARTIALLY_FILLED = "partially_filled"
    REFUNDING = "refunding"
    EXECUTED = "executed"             # All fills settled
    EXPIRED = "expired"               # Auction ended without (full) execution
    REFUNDED = "refunded"             # Escrows refunded to the maker

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES

    @classmethod
    def parse(cls, value: str) -> "OrderState":
        """
        Map a wire status to an OrderState.

        Unknown values are treated as PENDING so the caller keeps polling.
        """
        normalized = str(value).strip().lower().replace("-", "_")
        if normalized == "partiallyfilled":
            normalized = "partially_filled"
        try:
            return cls(normalized)
        except ValueError:
            return cls.PENDING


TERMINAL_STATES = frozenset({
    OrderState.EXECUTED,
    OrderState.EXPIRED,
    OrderState.REFUNDED,
})


class SwapPhase(Enum):
    """Coordinator lifecycle phases."""
    QUOTING = "quoting"
    COMMITTING = "committing"
    SUBMITTING = "submitting"
    AWAITING_FILLS = "awaiting_fills"
    TERMINAL = "terminal"
    CANCELLED = "cancelled"
    FAILED = "failed"


class PresetName(Enum):
    """Execution presets offered with a quote."""
    FAST = "fast"
    MEDIUM = "medium"
    SLOW = "slow"
    CUSTOM = "custom"


class Network(Enum):
    """Chain IDs for supported networks."""
    ETHEREUM = 1
    OPTIMISM = 10
    BNB = 56
    POLYGON = 137
    BASE = 8453
    ARBITRUM = 42161


@dataclass(frozen=True)
class SwapRoute:
    """
    Direction of a cross-chain swap.

    One route replaces the per-direction quote helpers: everything that
    differs between directions is data here.
    """
    name: str
    src_chain_id: int
    dst_chain_id: int
    src_token: str
    dst_token: str
    src_decimals: int = 18
    default_amount: Optional[Decimal] = None

    def to_base_units(self, amount: Union[Decimal, float, int, str, None] = None) -> int:
        """
        Convert a human amount of the source token to base units.

        Args:
            amount: Token amount (e.g. 0.0005 WETH). Defaults to the route's
                default_amount.

        Returns:
            Integer amount, rounded down
        """
        if amount is None:
            amount = self.default_amount
        if amount is None:
            raise ValueError(f"Route {self.name} has no default amount")

        try:
            value = Decimal(str(amount))
        except InvalidOperation:
            raise ValueError(f"Invalid amount: {amount!r}")
        if not value.is_finite() or value <= 0:
            raise ValueError(f"Amount must be positive, got {amount}")

        scaled = value * (Decimal(10) ** self.src_decimals)
        return int(scaled.quantize(Decimal("1"), rounding=ROUND_DOWN))

    def to_params(self) -> Dict[str, Union[int, str]]:
        return {
            "srcChain": self.src_chain_id,
            "dstChain": self.dst_chain_id,
            "srcTokenAddress": self.src_token,
            "dstTokenAddress": self.dst_token,
        }


# =============================================================================
# Tokens & Routes
# =============================================================================

WETH_OPTIMISM = "0x4200000000000000000000000000000000000006"
USDC_ARBITRUM = "0xaf88d065e77c8cC2239327C5EDb3A432268e5831"

# WETH on Optimism -> USDC on Arbitrum
OP_TO_ARB = SwapRoute(
    name="OP",
    src_chain_id=Network.OPTIMISM.value,
    dst_chain_id=Network.ARBITRUM.value,
    src_token=WETH_OPTIMISM,
    dst_token=USDC_ARBITRUM,
    src_decimals=18,
    default_amount=Decimal("0.0005"),
)

# USDC on Arbitrum -> WETH on Optimism
ARB_TO_OP = SwapRoute(
    name="ARB",
    src_chain_id=Network.ARBITRUM.value,
    dst_chain_id=Network.OPTIMISM.value,
    src_token=USDC_ARBITRUM,
    dst_token=WETH_OPTIMISM,
    src_decimals=6,
    default_amount=Decimal("0.5"),
)

ROUTES: Dict[str, SwapRoute] = {
    OP_TO_ARB.name: OP_TO_ARB,
    ARB_TO_OP.name: ARB_TO_OP,
}


def get_route(name: str) -> SwapRoute:
    """Look up a built-in route by name ("OP" or "ARB")."""
    try:
        return ROUTES[name.upper()]
    except KeyError:
        raise ValueError(f"Unknown route {name!r}, expected one of {sorted(ROUTES)}")


# =============================================================================
# Constants
# =============================================================================

DEFAULT_FUSION_PLUS_URL = "https://api.1inch.dev/fusion-plus"

SECRET_SIZE = 32                    # bytes
DEFAULT_POLL_INTERVAL = 1.0         # seconds
DEFAULT_MAX_POLL_FAILURES = 5
DEFAULT_MAX_POLL_INTERVAL = 30.0    # seconds
DEFAULT_HTTP_TIMEOUT = 15.0         # seconds
