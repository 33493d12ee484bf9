"""
Merkle tree compatible with OpenZeppelin's SimpleMerkleTree.

Layout:
    - Leaves are 32-byte values, sorted ascending before placement
    - Array-backed complete binary tree of 2n-1 nodes, leaves at the end
    - Parent = keccak256(min(a, b) || max(a, b))

Proofs produced here verify with OpenZeppelin's MerkleProof.verify, which
is what the escrow contracts use.
"""

from typing import List, Sequence

from web3 import Web3


def hash_pair(a: bytes, b: bytes) -> bytes:
    """Commutative keccak256 of two nodes."""
    left, right = (a, b) if a <= b else (b, a)
    return bytes(Web3.keccak(left + right))


def _sibling_index(i: int) -> int:
    return i + 1 if i % 2 == 1 else i - 1


def _parent_index(i: int) -> int:
    return (i - 1) // 2


class MerkleTree:
    """Immutable Merkle tree over 32-byte leaves."""

    def __init__(self, leaves: Sequence[bytes]):
        if not leaves:
            raise ValueError("Merkle tree needs at least one leaf")
        for leaf in leaves:
            if len(leaf) != 32:
                raise ValueError(f"Leaf must be 32 bytes, got {len(leaf)}")

        self.leaves: List[bytes] = [bytes(leaf) for leaf in leaves]

        # position in self.leaves -> position in the tree array
        order = sorted(range(len(self.leaves)), key=lambda i: self.leaves[i])
        size = 2 * len(self.leaves) - 1
        tree: List[bytes] = [b""] * size
        self._tree_index = [0] * len(self.leaves)
        for rank, leaf_index in enumerate(order):
            node = size - 1 - rank
            tree[node] = self.leaves[leaf_index]
            self._tree_index[leaf_index] = node

        for i in range(size - 1 - len(self.leaves), -1, -1):
            tree[i] = hash_pair(tree[2 * i + 1], tree[2 * i + 2])

        self._tree = tree

    @classmethod
    def of(cls, leaves: Sequence[bytes]) -> "MerkleTree":
        return cls(leaves)

    @property
    def root(self) -> bytes:
        return self._tree[0]

    def get_proof(self, leaf_index: int) -> List[bytes]:
        """
        Proof for the leaf at leaf_index (position in the input list).

        Returns:
            Sibling hashes from the leaf up to (excluding) the root
        """
        if not 0 <= leaf_index < len(self.leaves):
            raise IndexError(f"Leaf index {leaf_index} out of range")

        proof = []
        node = self._tree_index[leaf_index]
        while node > 0:
            proof.append(self._tree[_sibling_index(node)])
            node = _parent_index(node)
        return proof


def process_proof(leaf: bytes, proof: Sequence[bytes]) -> bytes:
    computed = leaf
    for sibling in proof:
        computed = hash_pair(computed, sibling)
    return computed


def verify_proof(root: bytes, leaf: bytes, proof: Sequence[bytes]) -> bool:
    """Check that leaf belongs to the tree with the given root."""
    return process_proof(leaf, proof) == root
