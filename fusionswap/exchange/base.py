"""
Exchange service boundary.

The coordinator only depends on these five operations. FusionPlusClient
implements them over HTTP; tests substitute a mock.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..core import OrderState, PresetName, SwapRoute
from ..htlc.hashlock import HashLock
from .models import Quote, SubmittedOrder, TakingFee


class ExchangeService(ABC):
    """Remote service that quotes, accepts orders and relays secrets."""

    @abstractmethod
    def get_quote(self, route: SwapRoute, amount: int, wallet_address: str) -> Quote:
        """Quote `amount` base units of the route's source token."""

    @abstractmethod
    def submit_order(self, quote: Quote, wallet_address: str, hash_lock: HashLock,
                     secret_hashes: List[str], preset: PresetName,
                     fee: Optional[TakingFee] = None) -> SubmittedOrder:
        """Place an order committed to hash_lock."""

    @abstractmethod
    def get_ready_to_accept_secret_fills(self, order_hash: str) -> List[int]:
        """Fill indices whose escrows are deployed and wait for a secret."""

    @abstractmethod
    def submit_secret(self, order_hash: str, secret: str) -> None:
        """Hand a secret to the relayer for the order's resolvers."""

    @abstractmethod
    def get_order_status(self, order_hash: str) -> OrderState:
        """Current order status."""
