"""
Hash-lock material for Fusion+ swaps.

- secrets: per-fill secret generation and custody (SecretVault)
- hashlock: single and Merkle multi-fill commitments (CommitmentBuilder)
- merkle: OpenZeppelin-compatible Merkle tree
"""

from .secrets import Fill, SecretVault, hash_secret
from .hashlock import HashLock, HashLockKind, CommitmentBuilder, get_merkle_leaves
from .merkle import MerkleTree, verify_proof

__all__ = [
    "Fill",
    "SecretVault",
    "hash_secret",
    "HashLock",
    "HashLockKind",
    "CommitmentBuilder",
    "get_merkle_leaves",
    "MerkleTree",
    "verify_proof",
]
