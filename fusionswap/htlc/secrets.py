"""
Secret generation and custody for one swap.

Each fill of an order is gated by its own 32-byte secret. The escrow
contracts store keccak256(secret); revealing the preimage releases the
funds, so secrets stay in memory only and are never logged.
"""

import secrets
import logging
from typing import List, Tuple, Union
from dataclasses import dataclass

from web3 import Web3

from ..core import SECRET_SIZE
from ..errors import InvalidCount, UnknownIndex, SecretsReleased

log = logging.getLogger(__name__)


def hash_secret(secret: Union[bytes, str]) -> bytes:
    """
    Hash a secret the way the escrow contracts do.

    Args:
        secret: 32 raw bytes or 0x-hex string

    Returns:
        keccak256(secret), 32 bytes
    """
    if isinstance(secret, str):
        secret = Web3.to_bytes(hexstr=secret)
    if len(secret) != SECRET_SIZE:
        raise ValueError(f"Secret must be {SECRET_SIZE} bytes, got {len(secret)}")
    return bytes(Web3.keccak(secret))


@dataclass(frozen=True)
class Fill:
    """One fill of an order and the secret that gates it."""
    index: int
    secret: bytes
    secret_hash: bytes

    def __repr__(self) -> str:
        return f"Fill(index={self.index}, secret_hash={Web3.to_hex(self.secret_hash)})"


class SecretVault:
    """
    Holds the fill set of a single swap.

    Created with SecretVault.generate(count); secrets are handed out one
    at a time via reveal(index) and wiped with clear() once the swap is
    over.
    """

    def __init__(self, fills: Tuple[Fill, ...]):
        self._fills = tuple(fills)
        self._released = False

    @classmethod
    def generate(cls, count: int) -> "SecretVault":
        """
        Generate count independent secrets.

        Args:
            count: Number of fills (the preset's secretsCount)

        Returns:
            SecretVault with fills indexed 0..count-1
        """
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise InvalidCount(f"Secret count must be a positive integer, got {count!r}")

        fills = []
        for index in range(count):
            secret = secrets.token_bytes(SECRET_SIZE)
            fills.append(Fill(index=index, secret=secret, secret_hash=hash_secret(secret)))

        log.debug(f"Generated {count} secret(s)")
        return cls(tuple(fills))

    @property
    def fills(self) -> Tuple[Fill, ...]:
        self._check_available()
        return self._fills

    @property
    def secret_hashes(self) -> List[str]:
        """Public secret hashes (0x-hex) in fill index order."""
        return [Web3.to_hex(fill.secret_hash) for fill in self._fills]

    @property
    def released(self) -> bool:
        return self._released

    def reveal(self, index: int) -> str:
        """
        Return the secret for a fill as 0x-hex.

        Raises:
            UnknownIndex: index outside 0..len-1
            SecretsReleased: vault already cleared
        """
        self._check_available()
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._fills):
            raise UnknownIndex(f"Fill index {index!r} out of range 0..{len(self._fills) - 1}")
        return Web3.to_hex(self._fills[index].secret)

    def clear(self):
        """Drop all secret material. Safe to call more than once."""
        if self._released:
            return
        self._fills = tuple(
            Fill(index=f.index, secret=b"", secret_hash=f.secret_hash) for f in self._fills
        )
        self._released = True
        log.debug("Secret material released")

    def _check_available(self):
        if self._released:
            raise SecretsReleased("Secrets were already released for this swap")

    def __len__(self) -> int:
        return len(self._fills)

    def __repr__(self) -> str:
        state = "released" if self._released else "held"
        return f"SecretVault(count={len(self._fills)}, {state})"
