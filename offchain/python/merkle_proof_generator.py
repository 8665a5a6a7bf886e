"""
Merkle Proof Generator

Looks an address up in a loaded StandardMerkleTree and returns its inclusion proof.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from standard_merkle_tree import StandardMerkleTree, verify_proof


@dataclass(frozen=True)
class ProofResult:
    """Outcome of one lookup. A miss is a normal result with an empty proof."""
    found: bool
    proof: Tuple[str, ...] = field(default_factory=tuple)
    index: Optional[int] = None
    leaf_hash: Optional[str] = None

    def __post_init__(self):
        if self.found and self.leaf_hash is None:
            raise ValueError("A found proof result needs the leaf hash it proves")

    def to_output(self, legacy_empty_proof=True):
        """The object persisted to the result file: {"proof": [...]} or the not-found marker."""
        if self.found:
            return {"proof": list(self.proof)}
        return {"proof": "" if legacy_empty_proof else []}

    def verify(self, root):
        if not self.found:
            return False
        return verify_proof(root, self.leaf_hash, self.proof)


def _matches(key, address):
    return str(key).lower() == address.lower()


def find_leaf_index(tree: StandardMerkleTree, address: str) -> Optional[int]:
    """Index of the first leaf whose first field equals `address`, ignoring case."""
    for i, value in tree.entries():
        if _matches(value[0], address):
            return i
    return None


def generate_proof(tree: StandardMerkleTree, address: str) -> ProofResult:
    """Linear scan in leaf order; the first match wins when keys repeat."""
    index = find_leaf_index(tree, address)
    if index is None:
        return ProofResult(found=False)

    value = tree.value_at(index)
    return ProofResult(
        found=True,
        proof=tuple(tree.get_proof(index)),
        index=index,
        leaf_hash=tree.leaf_hash(value),
    )
