"""
Exception hierarchy for fusionswap.

Precondition errors (InvalidCount, UnknownIndex, EmptyFillSet, SecretsReleased)
are programming errors and are never retried. Setup errors (QuoteUnavailable,
SubmissionFailed) abort a swap before anything irreversible happened.
ExchangeError is raised by exchange adapters; during polling it is counted
and retried until PollingExhausted.
"""

from typing import Optional


class SwapError(Exception):
    """Base class for all fusionswap errors."""


class ConfigError(SwapError, ValueError):
    """Configuration data is invalid or missing."""


# Preconditions

class InvalidCount(SwapError, ValueError):
    """Secret count must be a positive integer."""


class UnknownIndex(SwapError, IndexError):
    """Fill index outside of the generated fill set."""


class EmptyFillSet(SwapError, ValueError):
    """A hash lock cannot be built from zero fills."""


class SecretsReleased(SwapError):
    """Secret material was already cleared from the vault."""


# Exchange service

class ExchangeError(SwapError):
    """
    Exchange service call failed.

    Attributes:
        retryable: True for transport failures, 5xx and rate limiting
        status_code: HTTP status if the service answered
    """

    def __init__(self, message: str, retryable: bool = True,
                 status_code: Optional[int] = None):
        super().__init__(message)
        self.retryable = retryable
        self.status_code = status_code


class QuoteUnavailable(SwapError):
    """No usable quote for the requested route and amount."""


class SubmissionFailed(SwapError):
    """The order could not be built, signed or accepted."""


# Polling loop

class PollingExhausted(SwapError):
    """
    Too many consecutive polling failures.

    The session still holds its secrets so the caller can resume with
    SwapOrderCoordinator.await_fills(session) or call session.abandon().
    """

    def __init__(self, message: str, session=None, failures: int = 0):
        super().__init__(message)
        self.session = session
        self.failures = failures


class Cancelled(SwapError):
    """Caller cancelled the swap; local participation stopped."""

    def __init__(self, message: str = "Swap cancelled", order_hash: Optional[str] = None):
        super().__init__(message)
        self.order_hash = order_hash
