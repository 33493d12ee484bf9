"""
Hash-lock commitments for Fusion+ orders.

Single fill:
    hashLock = keccak256(secret)

Multiple fills (N secrets):
    leaf_i   = keccak256(uint64(i) || keccak256(secret_i))
    root     = MerkleTree(leaf_0 .. leaf_{N-1}).root
    hashLock = (root & (2^240 - 1)) | ((N - 1) << 240)

The top 16 bits carry the number of parts so the escrow can check which
secret index a partial fill is allowed to use.
"""

import logging
from enum import Enum
from typing import List, Sequence, Tuple, Union
from dataclasses import dataclass

from web3 import Web3

from .merkle import MerkleTree, verify_proof
from .secrets import Fill
from ..errors import EmptyFillSet, UnknownIndex

log = logging.getLogger(__name__)

UINT_240_MAX = (1 << 240) - 1


class HashLockKind(Enum):
    SINGLE = "single"
    MERKLE = "merkle"


def get_merkle_leaves(secret_hashes: Sequence[Union[bytes, str]]) -> List[bytes]:
    """
    Build Merkle leaves from secret hashes.

    Args:
        secret_hashes: keccak256(secret_i) in fill index order

    Returns:
        keccak256(uint64(i) || secret_hash_i) in the same order
    """
    leaves = []
    for index, secret_hash in enumerate(secret_hashes):
        if isinstance(secret_hash, str):
            secret_hash = Web3.to_bytes(hexstr=secret_hash)
        leaves.append(bytes(Web3.solidity_keccak(["uint64", "bytes32"], [index, secret_hash])))
    return leaves


@dataclass(frozen=True)
class HashLock:
    """
    Commitment sent with an order.

    For SINGLE locks, leaves is empty and root equals value.
    """
    kind: HashLockKind
    value: bytes
    root: bytes
    leaves: Tuple[bytes, ...] = ()

    @property
    def parts_count(self) -> int:
        return len(self.leaves) if self.kind is HashLockKind.MERKLE else 1

    def to_hex(self) -> str:
        return Web3.to_hex(self.value)

    def get_proof(self, index: int) -> List[bytes]:
        """Merkle proof for fill index (empty for single-fill locks)."""
        if self.kind is HashLockKind.SINGLE:
            if index != 0:
                raise UnknownIndex(f"Single-fill hash lock has no index {index}")
            return []
        if not 0 <= index < len(self.leaves):
            raise UnknownIndex(f"Fill index {index} out of range 0..{len(self.leaves) - 1}")
        return MerkleTree.of(self.leaves).get_proof(index)

    def verify(self, index: int, proof: Sequence[bytes]) -> bool:
        """Check leaf `index` against the stored root."""
        if self.kind is HashLockKind.SINGLE:
            return index == 0 and not proof
        if not 0 <= index < len(self.leaves):
            return False
        return verify_proof(self.root, self.leaves[index], proof)


class CommitmentBuilder:
    """Derives the hash lock for a fill set."""

    @staticmethod
    def for_single_fill(secret_hash: bytes) -> HashLock:
        return HashLock(kind=HashLockKind.SINGLE, value=secret_hash, root=secret_hash)

    @staticmethod
    def for_multiple_fills(leaves: Sequence[bytes]) -> HashLock:
        if len(leaves) < 2:
            raise ValueError("Multiple-fill hash lock needs at least 2 leaves")

        root = MerkleTree.of(leaves).root
        value = (int.from_bytes(root, "big") & UINT_240_MAX) | ((len(leaves) - 1) << 240)
        return HashLock(
            kind=HashLockKind.MERKLE,
            value=value.to_bytes(32, "big"),
            root=root,
            leaves=tuple(leaves),
        )

    def build(self, fills: Sequence[Fill]) -> HashLock:
        """
        Build the hash lock for an ordered fill set.

        Args:
            fills: Fills in index order (SecretVault.fills)

        Returns:
            SINGLE lock for one fill, MERKLE lock otherwise
        """
        if not fills:
            raise EmptyFillSet("Cannot build a hash lock from an empty fill set")

        if len(fills) == 1:
            hash_lock = self.for_single_fill(fills[0].secret_hash)
        else:
            leaves = get_merkle_leaves([fill.secret_hash for fill in fills])
            hash_lock = self.for_multiple_fills(leaves)

        log.debug(f"Built {hash_lock.kind.value} hash lock for {len(fills)} fill(s)")
        return hash_lock
