"""
Swap coordination for fusionswap.

Runs the maker side of a Fusion+ cross-chain swap.
"""

from .coordinator import SwapOrderCoordinator, SwapSession, SwapOutcome, CancelToken

__all__ = ["SwapOrderCoordinator", "SwapSession", "SwapOutcome", "CancelToken"]
