"""
Configuration for fusionswap.

Everything is read once at startup (load_config) and passed explicitly to
the client and coordinator.

Environment:
    ONEINCH_API_KEY    Fusion+ API key (required)
    PRIVATE_KEY        Maker key used to sign orders (required)
    ADDRESS            Maker address (derived from PRIVATE_KEY if unset)
    SOURCE_APP_NAME    Integrator source tag
    FUSION_PLUS_URL    API root (default https://api.1inch.dev/fusion-plus)
    FEE_BPS            Optional taking fee in basis points
    FEE_RECEIVER       Fee receiver address (required with FEE_BPS)
    POLL_INTERVAL      Seconds between polls (default 1)
    MAX_POLL_FAILURES  Consecutive polling failures before giving up (default 5)
    HTTP_TIMEOUT       Per-request timeout in seconds (default 15)
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from eth_account import Account
from web3 import Web3

from .core import (
    DEFAULT_FUSION_PLUS_URL, DEFAULT_HTTP_TIMEOUT, DEFAULT_MAX_POLL_FAILURES,
    DEFAULT_MAX_POLL_INTERVAL, DEFAULT_POLL_INTERVAL,
)
from .errors import ConfigError
from .exchange.models import TakingFee


@dataclass(frozen=True)
class PollPolicy:
    """
    Polling cadence and retry cap for the fill loop.

    failure_backoff multiplies the interval once per consecutive failure;
    1.0 keeps the normal cadence while retrying.
    """
    interval: float = DEFAULT_POLL_INTERVAL
    failure_backoff: float = 1.0
    max_interval: float = DEFAULT_MAX_POLL_INTERVAL
    max_consecutive_failures: int = DEFAULT_MAX_POLL_FAILURES

    def __post_init__(self):
        if self.interval < 0:
            raise ConfigError("poll interval must be >= 0")
        if self.failure_backoff < 1.0:
            raise ConfigError("failure_backoff must be >= 1.0")
        if self.max_consecutive_failures < 1:
            raise ConfigError("max_consecutive_failures must be >= 1")

    def delay(self, failures: int = 0) -> float:
        """Seconds to wait before the next poll after `failures` consecutive failures."""
        if failures <= 0:
            return self.interval
        return min(self.interval * (self.failure_backoff ** failures), max(self.max_interval, self.interval))


@dataclass(frozen=True)
class FusionConfig:
    """Process-level configuration. Secrets are excluded from repr."""
    api_key: str = field(repr=False)
    private_key: str = field(repr=False)
    wallet_address: str
    source: str = ""
    api_url: str = DEFAULT_FUSION_PLUS_URL
    fee: Optional[TakingFee] = None
    poll: PollPolicy = field(default_factory=PollPolicy)
    http_timeout: float = DEFAULT_HTTP_TIMEOUT


def _to_checksum(value: str, *, field_name: str) -> str:
    try:
        return Web3.to_checksum_address(value)
    except ValueError as e:
        raise ConfigError(f"Invalid address for {field_name}: {value}") from e


def _number(env: Mapping[str, str], key: str, default, cast):
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigError(f"{key} must be a {cast.__name__}, got {raw!r}") from e


def load_config(environ: Optional[Mapping[str, str]] = None) -> FusionConfig:
    """
    Load configuration from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Validated FusionConfig
    """
    env = os.environ if environ is None else environ

    missing = [key for key in ("ONEINCH_API_KEY", "PRIVATE_KEY") if not env.get(key)]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

    private_key = env["PRIVATE_KEY"]
    try:
        derived = Account.from_key(private_key).address
    except (ValueError, TypeError) as e:
        raise ConfigError("PRIVATE_KEY is not a valid private key") from e

    if env.get("ADDRESS"):
        wallet_address = _to_checksum(env["ADDRESS"], field_name="ADDRESS")
    else:
        wallet_address = derived

    fee = None
    fee_bps = _number(env, "FEE_BPS", None, int)
    if fee_bps is not None:
        if not env.get("FEE_RECEIVER"):
            raise ConfigError("FEE_RECEIVER is required when FEE_BPS is set")
        if not 0 <= fee_bps <= 10_000:
            raise ConfigError("FEE_BPS must be between 0 and 10000")
        fee = TakingFee(
            taking_fee_bps=fee_bps,
            taking_fee_receiver=_to_checksum(env["FEE_RECEIVER"], field_name="FEE_RECEIVER"),
        )

    poll = PollPolicy(
        interval=_number(env, "POLL_INTERVAL", DEFAULT_POLL_INTERVAL, float),
        max_consecutive_failures=_number(env, "MAX_POLL_FAILURES", DEFAULT_MAX_POLL_FAILURES, int),
    )

    return FusionConfig(
        api_key=env["ONEINCH_API_KEY"],
        private_key=private_key,
        wallet_address=wallet_address,
        source=env.get("SOURCE_APP_NAME", ""),
        api_url=env.get("FUSION_PLUS_URL") or DEFAULT_FUSION_PLUS_URL,
        fee=fee,
        poll=poll,
        http_timeout=_number(env, "HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT, float),
    )
