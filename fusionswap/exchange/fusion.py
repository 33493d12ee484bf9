"""
Fusion+ HTTP client.

Implements ExchangeService against the 1inch Fusion+ API:

    GET  /quoter/v1.0/quote/receive                        quote
    POST /quoter/v1.0/quote/build                          order typed data
    POST /relayer/v1.0/submit                              signed order
    POST /relayer/v1.0/submit/secret                       secret reveal
    GET  /orders/v1.0/order/ready-to-accept-secret-fills/  escrows ready
    GET  /orders/v1.0/order/status/                        order status

Order signing is delegated to an OrderSigner so private keys never reach
this module.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError
from eth_account import Account
from web3 import Web3

from ..core import (
    OrderState, PresetName, SwapRoute,
    DEFAULT_FUSION_PLUS_URL, DEFAULT_HTTP_TIMEOUT,
)
from ..errors import ExchangeError
from ..htlc.hashlock import HashLock
from .base import ExchangeService
from .models import (
    BuiltOrder, OrderStatusInfo, Quote, ReadyToAcceptSecretFills,
    SubmittedOrder, TakingFee,
)

log = logging.getLogger(__name__)


def _parse(model, data):
    """Validate a response body, mapping schema errors to ExchangeError."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ExchangeError(f"Malformed {model.__name__} response: {e}", retryable=False) from e


class OrderSigner(ABC):
    """Signs EIP-712 order payloads for a maker wallet."""

    address: str

    @abstractmethod
    def sign_typed_data(self, typed_data: Dict[str, Any]) -> str:
        """Return the 0x-hex signature over an EIP-712 payload."""


class LocalAccountSigner(OrderSigner):
    """OrderSigner backed by an in-memory private key."""

    def __init__(self, private_key: str):
        self._account = Account.from_key(private_key)
        self.address = self._account.address

    def sign_typed_data(self, typed_data: Dict[str, Any]) -> str:
        signed = self._account.sign_typed_data(full_message=typed_data)
        return Web3.to_hex(signed.signature)

    def __repr__(self) -> str:
        return f"LocalAccountSigner(address={self.address})"


class FusionPlusClient(ExchangeService):
    """
    Synchronous Fusion+ client over httpx.

    Args:
        api_key: Developer portal key (sent as Bearer token)
        signer: Signs orders; only needed for submit_order
        base_url: Fusion+ API root
        source: Integrator source tag sent with orders
        timeout: Per-request timeout in seconds
        http_client: Pre-built httpx.Client (tests pass one with a MockTransport)
    """

    def __init__(self, api_key: str, signer: Optional[OrderSigner] = None,
                 base_url: str = DEFAULT_FUSION_PLUS_URL, source: str = "",
                 timeout: float = DEFAULT_HTTP_TIMEOUT,
                 http_client: Optional[httpx.Client] = None):
        self.signer = signer
        self.source = source
        self._client = http_client or httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
        )

    @classmethod
    def from_config(cls, config) -> "FusionPlusClient":
        """Build a client from a FusionConfig."""
        return cls(
            api_key=config.api_key,
            signer=LocalAccountSigner(config.private_key) if config.private_key else None,
            base_url=config.api_url,
            source=config.source,
            timeout=config.http_timeout,
        )

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # =========================================================================
    # Transport
    # =========================================================================

    def _request(self, method: str, path: str, params: Dict = None,
                 json: Any = None) -> Any:
        """Send a request and decode the JSON body (None for empty bodies)."""
        try:
            response = self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            raise ExchangeError(f"{method} {path} failed: {e}", retryable=True) from e

        if response.status_code >= 400:
            retryable = response.status_code >= 500 or response.status_code == 429
            raise ExchangeError(
                f"{method} {path} returned HTTP {response.status_code}: {response.text[:200]}",
                retryable=retryable,
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ExchangeError(f"{method} {path} returned invalid JSON: {e}", retryable=True) from e

    # =========================================================================
    # Quoting & Orders
    # =========================================================================

    def get_quote(self, route: SwapRoute, amount: int, wallet_address: str) -> Quote:
        params = route.to_params()
        params.update({
            "amount": str(amount),
            "walletAddress": wallet_address,
            "enableEstimate": "true",
        })

        data = self._request("GET", "/quoter/v1.0/quote/receive", params=params)
        quote = _parse(Quote, {**(data or {}), "request": params})

        log.info(f"Quote {quote.quote_id}: {quote.src_token_amount} -> {quote.dst_token_amount} "
                 f"on route {route.name}")
        return quote

    def build_order(self, quote: Quote, wallet_address: str, hash_lock: HashLock,
                    secret_hashes: List[str], preset: PresetName,
                    fee: Optional[TakingFee] = None) -> BuiltOrder:
        """Ask the quoter for the order typed data matching a quote."""
        params = dict(quote.request)
        params.update({
            "walletAddress": wallet_address,
            "preset": preset.value,
        })
        if self.source:
            params["source"] = self.source
        if fee is not None:
            params["fee"] = fee.taking_fee_bps
            params["feeReceiver"] = fee.taking_fee_receiver

        body = {
            "quote": quote.to_wire(),
            "hashLock": hash_lock.to_hex(),
            "secretsHashList": secret_hashes,
        }
        data = self._request("POST", "/quoter/v1.0/quote/build", params=params, json=body)
        return _parse(BuiltOrder, data)

    def submit_order(self, quote: Quote, wallet_address: str, hash_lock: HashLock,
                     secret_hashes: List[str], preset: PresetName,
                     fee: Optional[TakingFee] = None) -> SubmittedOrder:
        if self.signer is None:
            raise ExchangeError("No order signer configured", retryable=False)

        built = self.build_order(quote, wallet_address, hash_lock, secret_hashes, preset, fee)

        # The escrow extension carries the hash lock the order is locked to
        if hash_lock.to_hex()[2:].lower() not in built.extension.lower():
            raise ExchangeError(
                f"Built order {built.order_hash} does not commit to hash lock {hash_lock.to_hex()}",
                retryable=False,
            )

        try:
            signature = self.signer.sign_typed_data(built.typed_data)
        except Exception as e:
            raise ExchangeError(f"Could not sign order {built.order_hash}: {e}", retryable=False) from e

        body = {
            "order": built.typed_data.get("message", {}),
            "srcChainId": quote.src_chain_id,
            "signature": signature,
            "extension": built.extension,
            "quoteId": quote.quote_id,
        }
        if len(secret_hashes) > 1:
            body["secretHashes"] = secret_hashes

        self._request("POST", "/relayer/v1.0/submit", json=body)
        log.info(f"Order {built.order_hash} submitted (quote {quote.quote_id})")
        return SubmittedOrder(order_hash=built.order_hash, quote_id=quote.quote_id)

    # =========================================================================
    # Secrets & Status
    # =========================================================================

    def get_ready_to_accept_secret_fills(self, order_hash: str) -> List[int]:
        data = self._request(
            "GET", f"/orders/v1.0/order/ready-to-accept-secret-fills/{order_hash}"
        )
        ready = _parse(ReadyToAcceptSecretFills, data or {})
        return [fill.idx for fill in ready.fills]

    def submit_secret(self, order_hash: str, secret: str) -> None:
        self._request(
            "POST", "/relayer/v1.0/submit/secret",
            json={"orderHash": order_hash, "secret": secret},
        )

    def get_order_status(self, order_hash: str) -> OrderState:
        data = self._request("GET", f"/orders/v1.0/order/status/{order_hash}")
        info = _parse(OrderStatusInfo, data)
        state = info.state
        if state is OrderState.PENDING and info.status.lower() != "pending":
            log.warning(f"Order {order_hash}: unrecognized status {info.status!r}, treating as pending")
        return state
