"""
Swap Order Coordinator for fusionswap.

Drives one cross-chain swap from intent to a terminal order status:

    QUOTING -> COMMITTING -> SUBMITTING -> AWAITING_FILLS -> TERMINAL

1. Request a quote for a route and amount
2. Generate one secret per fill and build the hash lock
3. Submit the order (hash lock + public secret hashes)
4. Poll the exchange: for every fill whose escrows are deployed, hand over
   that fill's secret exactly once; stop when the order is executed,
   expired or refunded
5. Drop all secret material

Cancellation only stops local participation in secret disclosure. The
order itself stays live on the exchange and on-chain.
"""

import time
import logging
import threading
from typing import Iterable, List, Optional, Set, Tuple
from dataclasses import dataclass, field

from ..core import OrderState, PresetName, SwapPhase, SwapRoute
from ..config import PollPolicy
from ..errors import (
    Cancelled, ExchangeError, PollingExhausted, QuoteUnavailable,
    SecretsReleased, SubmissionFailed,
)
from ..exchange.base import ExchangeService
from ..exchange.models import Preset, Quote, SubmittedOrder, TakingFee
from ..htlc.hashlock import CommitmentBuilder, HashLock
from ..htlc.secrets import SecretVault

log = logging.getLogger(__name__)


class CancelToken:
    """
    Cooperative cancellation for the polling loop.

    Args:
        timeout: Optional deadline in seconds from now; once it passes the
            token reports cancelled.
    """

    def __init__(self, timeout: Optional[float] = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def wait(self, seconds: float) -> bool:
        """Sleep up to `seconds`, waking early on cancel. Returns True if cancelled."""
        if self._deadline is not None:
            seconds = min(seconds, max(0.0, self._deadline - time.monotonic()))
        self._event.wait(seconds)
        return self.cancelled


@dataclass
class SwapSession:
    """Per-order state. Never shared between orders."""
    route: SwapRoute
    quote: Quote
    preset_name: PresetName
    preset: Preset
    vault: SecretVault
    hash_lock: HashLock
    order: Optional[SubmittedOrder] = None
    disclosed: Set[int] = field(default_factory=set)
    phase: SwapPhase = SwapPhase.COMMITTING
    status: Optional[OrderState] = None

    @property
    def order_hash(self) -> Optional[str]:
        return self.order.order_hash if self.order else None

    @property
    def secrets_count(self) -> int:
        return len(self.vault)

    def abandon(self):
        """Give up on the swap locally and drop the secrets."""
        self.vault.clear()
        if self.phase is not SwapPhase.TERMINAL:
            self.phase = SwapPhase.FAILED


@dataclass(frozen=True)
class SwapOutcome:
    """Final report of a swap."""
    order_hash: str
    quote_id: Optional[str]
    status: OrderState
    disclosed: Tuple[int, ...]
    secrets_count: int

    @property
    def executed(self) -> bool:
        return self.status is OrderState.EXECUTED


class SwapOrderCoordinator:
    """
    Runs the Fusion+ maker protocol against an ExchangeService.

    One coordinator may serve many swaps; all per-order state lives in the
    SwapSession it hands out.
    """

    def __init__(self, exchange: ExchangeService, wallet_address: str,
                 fee: Optional[TakingFee] = None, poll: Optional[PollPolicy] = None,
                 builder: Optional[CommitmentBuilder] = None):
        self.exchange = exchange
        self.wallet_address = wallet_address
        self.fee = fee
        self.poll = poll or PollPolicy()
        self.builder = builder or CommitmentBuilder()

    @classmethod
    def from_config(cls, config, exchange: ExchangeService) -> "SwapOrderCoordinator":
        return cls(exchange, config.wallet_address, fee=config.fee, poll=config.poll)

    # =========================================================================
    # Setup
    # =========================================================================

    def request_quote(self, route: SwapRoute, amount=None) -> Quote:
        """
        Quote a swap along `route`.

        Args:
            route: Direction (source/destination chain and token)
            amount: Human amount of the source token (route default if None)

        Raises:
            QuoteUnavailable: exchange returned no usable quote
        """
        units = route.to_base_units(amount)
        log.info(f"Requesting quote on route {route.name} for {units} base units")

        try:
            return self.exchange.get_quote(route, units, self.wallet_address)
        except ExchangeError as e:
            raise QuoteUnavailable(f"No quote for route {route.name}: {e}") from e

    def commit(self, route: SwapRoute, quote: Quote,
               preset: Optional[PresetName] = None) -> SwapSession:
        """Generate the fill secrets and hash lock for a quote."""
        preset_name = quote.resolve_preset(preset)
        try:
            chosen = quote.get_preset(preset_name)
        except KeyError as e:
            raise QuoteUnavailable(str(e)) from e

        vault = SecretVault.generate(chosen.secrets_count)
        hash_lock = self.builder.build(vault.fills)

        log.info(f"Committed {len(vault)} secret(s) with {hash_lock.kind.value} hash lock "
                 f"(preset {preset_name.value})")
        return SwapSession(
            route=route,
            quote=quote,
            preset_name=preset_name,
            preset=chosen,
            vault=vault,
            hash_lock=hash_lock,
        )

    def submit(self, session: SwapSession) -> SwapSession:
        """
        Submit the committed order.

        Raises:
            SubmissionFailed: exchange rejected the order (secrets are dropped)
        """
        session.phase = SwapPhase.SUBMITTING
        try:
            session.order = self.exchange.submit_order(
                session.quote,
                self.wallet_address,
                session.hash_lock,
                session.vault.secret_hashes,
                session.preset_name,
                self.fee,
            )
        except ExchangeError as e:
            self._abort(session, SwapPhase.FAILED)
            raise SubmissionFailed(f"Order submission failed: {e}") from e
        except Exception:
            self._abort(session, SwapPhase.FAILED)
            raise

        log.info(f"Order {session.order_hash} submitted")
        return session

    # =========================================================================
    # Secret disclosure
    # =========================================================================

    def reveal_ready(self, session: SwapSession, indices: Iterable[int],
                     cancel: Optional[CancelToken] = None) -> List[int]:
        """
        Submit secrets for ready fills not yet disclosed.

        A fill is marked disclosed only after the exchange accepted its
        secret. A rejected secret is logged and left for the next report;
        the remaining ready fills are still submitted.

        Returns:
            Indices disclosed by this call
        """
        shared, _ = self._disclose(session, indices, cancel)
        return shared

    def _disclose(self, session: SwapSession, indices: Iterable[int],
                  cancel: Optional[CancelToken]) -> Tuple[List[int], List[ExchangeError]]:
        shared, rejected = [], []
        for index in dict.fromkeys(indices):
            if index in session.disclosed:
                log.debug(f"Fill {index} of {session.order_hash} already disclosed, skipping")
                continue
            if cancel is not None and cancel.cancelled:
                raise Cancelled(order_hash=session.order_hash)

            secret = session.vault.reveal(index)
            try:
                self.exchange.submit_secret(session.order_hash, secret)
            except ExchangeError as e:
                log.warning(f"Secret for fill {index} of order {session.order_hash} rejected: {e}")
                rejected.append(e)
                continue
            session.disclosed.add(index)
            shared.append(index)
            log.info(f"Shared secret for fill {index} of order {session.order_hash}")
        return shared, rejected

    def await_fills(self, session: SwapSession,
                    cancel: Optional[CancelToken] = None) -> SwapOutcome:
        """
        Poll until the order reaches a terminal status.

        A poll fails if reading the exchange fails or a ready fill's secret
        is rejected. Can be called again with the session carried by
        PollingExhausted to resume.

        Raises:
            Cancelled: cancel token fired (secrets dropped)
            PollingExhausted: too many consecutive failed polls
                (secrets kept for a retry)
        """
        if session.order is None:
            raise ValueError("Session has no submitted order")
        if session.vault.released:
            raise SecretsReleased(f"Secrets for {session.order_hash} were already released")

        cancel = cancel or CancelToken()
        order_hash = session.order_hash
        session.phase = SwapPhase.AWAITING_FILLS
        failures = 0

        try:
            while True:
                if cancel.cancelled:
                    raise Cancelled(order_hash=order_hash)

                error = None
                try:
                    ready = self.exchange.get_ready_to_accept_secret_fills(order_hash)
                    _, rejected = self._disclose(session, ready, cancel)
                    if cancel.cancelled:
                        raise Cancelled(order_hash=order_hash)
                    status = self.exchange.get_order_status(order_hash)
                except ExchangeError as e:
                    error = e
                else:
                    if status is not session.status:
                        log.info(f"Order {order_hash} status: {status.value}")
                    session.status = status
                    if status.is_terminal:
                        break
                    if rejected:
                        error = rejected[-1]

                if error is None:
                    failures = 0
                else:
                    failures += 1
                    log.warning(f"Polling {order_hash} failed "
                                f"({failures}/{self.poll.max_consecutive_failures}): {error}")
                    if failures >= self.poll.max_consecutive_failures:
                        raise PollingExhausted(
                            f"Gave up polling {order_hash} after {failures} consecutive failures",
                            session=session,
                            failures=failures,
                        ) from error

                if cancel.wait(self.poll.delay(failures)):
                    raise Cancelled(order_hash=order_hash)

        except Cancelled:
            self._abort(session, SwapPhase.CANCELLED)
            log.info(f"Stopped disclosing secrets for {order_hash} (cancelled)")
            raise
        except PollingExhausted:
            raise
        except Exception:
            self._abort(session, SwapPhase.FAILED)
            raise

        session.phase = SwapPhase.TERMINAL
        session.vault.clear()

        undisclosed = session.secrets_count - len(session.disclosed)
        if session.status is not OrderState.EXECUTED and undisclosed:
            log.info(f"Order {order_hash} ended {session.status.value} with "
                     f"{undisclosed} undisclosed secret(s)")

        return SwapOutcome(
            order_hash=order_hash,
            quote_id=session.order.quote_id,
            status=session.status,
            disclosed=tuple(sorted(session.disclosed)),
            secrets_count=session.secrets_count,
        )

    # =========================================================================
    # End to end
    # =========================================================================

    def execute(self, route: SwapRoute, amount=None,
                preset: Optional[PresetName] = None,
                cancel: Optional[CancelToken] = None) -> SwapOutcome:
        """
        Run a whole swap: quote, commit, submit, disclose secrets.

        Blocking call; returns once the order is terminal.
        """
        cancel = cancel or CancelToken()
        if cancel.cancelled:
            raise Cancelled()

        quote = self.request_quote(route, amount)
        if cancel.cancelled:
            raise Cancelled()

        session = self.commit(route, quote, preset)
        if cancel.cancelled:
            self._abort(session, SwapPhase.CANCELLED)
            raise Cancelled()

        self.submit(session)
        return self.await_fills(session, cancel)

    def _abort(self, session: SwapSession, phase: SwapPhase):
        session.vault.clear()
        session.phase = phase
