"""
Standard Merkle Tree Loader

Loads an OpenZeppelin "standard-v1" tree dump into an immutable, indexed tree and
answers single-leaf inclusion proofs over it.

The node array is laid out as a binary heap: the root sits at index 0, the children
of node i are 2i+1 and 2i+2, and the leaves occupy the tail of the array. Nothing in
the dump is trusted: every internal node and every leaf hash is recomputed on load.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Tuple, Union

from leaf_encoding import (
    InvalidLeafError,
    combine_and_hash,
    hash_to_hex,
    hex_to_hash,
    normalize_type,
    standard_leaf_hash,
)

STANDARD_FORMAT = "standard-v1"


class MerkleTreeParseError(ValueError):
    """The tree definition is unreadable, malformed, or fails its integrity check."""

    def __init__(self, field, message):
        self.field = field
        super().__init__(f"{field}: {message}")


# --- HEAP INDEX ARITHMETIC ---

def left_child_index(i):
    return 2 * i + 1


def right_child_index(i):
    return 2 * i + 2


def parent_index(i):
    if i <= 0:
        raise ValueError("Root has no parent")
    return (i - 1) // 2


def sibling_index(i):
    # Index XOR 1 on the 1-based heap position: odd indices are left children.
    if i <= 0:
        raise ValueError("Root has no siblings")
    return ((i + 1) ^ 1) - 1


def is_leaf_node(tree_length, i):
    return 0 <= i < tree_length and left_child_index(i) >= tree_length


# --- PROOF PROCESSING ---

def process_proof(leaf_hash, proof):
    """Fold the sibling hashes over the leaf hash, bottom-up, and return the implied root (hex)."""
    current = hex_to_hash(leaf_hash) if isinstance(leaf_hash, str) else leaf_hash
    for sibling in proof:
        current = combine_and_hash(current, hex_to_hash(sibling) if isinstance(sibling, str) else sibling)
    return hash_to_hex(current)


def verify_proof(root, leaf_hash, proof):
    """True when the proof rebuilds exactly the given root from the leaf hash."""
    return process_proof(leaf_hash, proof).lower() == root.lower()


@dataclass(frozen=True)
class LeafValue:
    """One committed record: its fields as they appear in the dump and its node position."""
    value: Tuple[Any, ...]
    tree_index: int


class StandardMerkleTree:
    """Read-only view over a loaded standard-v1 Merkle tree."""

    def __init__(self, tree, values, leaf_encoding):
        self._tree: Tuple[bytes, ...] = tuple(tree)
        self._values: Tuple[LeafValue, ...] = tuple(values)
        self.leaf_encoding: Tuple[str, ...] = tuple(leaf_encoding)
        self._hash_lookup: Dict[bytes, int] = {}

    # --- LOADING ---

    @classmethod
    def load(cls, data):
        """Build a tree from a parsed dump, rejecting anything that does not hash up correctly."""
        if not isinstance(data, dict):
            raise MerkleTreeParseError("<document>", f"expected a JSON object, got {type(data).__name__}")

        if data.get("format") != STANDARD_FORMAT:
            raise MerkleTreeParseError("format", f"unknown format {data.get('format')!r}, expected {STANDARD_FORMAT!r}")

        leaf_encoding = cls._parse_leaf_encoding(data.get("leafEncoding"))
        tree = cls._parse_tree(data.get("tree"))
        values = cls._parse_values(data.get("values"), len(leaf_encoding), len(tree))

        merkle_tree = cls(tree, values, leaf_encoding)
        merkle_tree.validate()
        return merkle_tree

    @staticmethod
    def _parse_leaf_encoding(raw):
        if not isinstance(raw, list) or not raw:
            raise MerkleTreeParseError("leafEncoding", "must be a non-empty list of ABI types")
        try:
            for abi_type in raw:
                normalize_type(abi_type)
        except InvalidLeafError as e:
            raise MerkleTreeParseError("leafEncoding", str(e)) from e
        return list(raw)

    @staticmethod
    def _parse_tree(raw):
        if not isinstance(raw, list) or not raw:
            raise MerkleTreeParseError("tree", "must be a non-empty list of node hashes")
        nodes = []
        for i, node in enumerate(raw):
            try:
                nodes.append(hex_to_hash(node))
            except ValueError as e:
                raise MerkleTreeParseError(f"tree[{i}]", str(e)) from e
        return nodes

    @staticmethod
    def _parse_values(raw, arity, tree_length):
        if not isinstance(raw, list) or not raw:
            raise MerkleTreeParseError("values", "must be a non-empty list of leaves")
        if tree_length != 2 * len(raw) - 1:
            raise MerkleTreeParseError(
                "tree", f"{tree_length} nodes cannot hold {len(raw)} leaves (expected {2 * len(raw) - 1})"
            )

        values = []
        seen_positions = set()
        for i, entry in enumerate(raw):
            if not isinstance(entry, dict):
                raise MerkleTreeParseError(f"values[{i}]", "must be an object with 'value' and 'treeIndex'")

            value = entry.get("value")
            if not isinstance(value, list) or len(value) != arity:
                raise MerkleTreeParseError(f"values[{i}].value", f"must be a list of {arity} fields")

            tree_index = entry.get("treeIndex")
            if isinstance(tree_index, bool) or not isinstance(tree_index, int):
                raise MerkleTreeParseError(f"values[{i}].treeIndex", f"must be an integer, got {tree_index!r}")
            if not is_leaf_node(tree_length, tree_index):
                raise MerkleTreeParseError(f"values[{i}].treeIndex", f"{tree_index} is not a leaf position")
            if tree_index in seen_positions:
                raise MerkleTreeParseError(f"values[{i}].treeIndex", f"{tree_index} is used by another leaf")
            seen_positions.add(tree_index)

            values.append(LeafValue(tuple(value), tree_index))
        return values

    def validate(self):
        """Recompute every node; raise MerkleTreeParseError on the first mismatch."""
        tree_length = len(self._tree)
        for i in range(tree_length):
            left = left_child_index(i)
            if left >= tree_length:
                continue
            right = right_child_index(i)
            if right >= tree_length:
                raise MerkleTreeParseError(f"tree[{i}]", "internal node is missing its right child")
            if self._tree[i] != combine_and_hash(self._tree[left], self._tree[right]):
                raise MerkleTreeParseError(f"tree[{i}]", "hash does not match its children")

        lookup = {}
        for i, leaf in enumerate(self._values):
            try:
                leaf_hash = standard_leaf_hash(self.leaf_encoding, leaf.value)
            except InvalidLeafError as e:
                raise MerkleTreeParseError(f"values[{i}].value", str(e)) from e
            if leaf_hash != self._tree[leaf.tree_index]:
                raise MerkleTreeParseError(f"values[{i}]", "Merkle tree does not contain the expected value")
            lookup.setdefault(leaf_hash, i)
        self._hash_lookup = lookup

    # --- ACCESS ---

    @property
    def root(self):
        return hash_to_hex(self._tree[0])

    def __len__(self):
        return len(self._values)

    def entries(self) -> Iterator[Tuple[int, Tuple[Any, ...]]]:
        """Yield (index, value) pairs in the committed leaf order."""
        for i, leaf in enumerate(self._values):
            yield i, leaf.value

    def value_at(self, index):
        return self._values[self._check_index(index)].value

    def leaf_hash(self, value):
        return hash_to_hex(standard_leaf_hash(self.leaf_encoding, value))

    def leaf_lookup(self, value):
        """Index of the leaf holding exactly this value."""
        try:
            return self._hash_lookup[standard_leaf_hash(self.leaf_encoding, value)]
        except KeyError:
            raise ValueError("Leaf is not in tree") from None

    def _check_index(self, index):
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._values):
            raise IndexError(f"Leaf index {index!r} out of range (tree has {len(self._values)} leaves)")
        return index

    # --- PROOFS ---

    def get_proof(self, leaf: Union[int, Tuple[Any, ...], List[Any]]) -> List[str]:
        """Sibling hashes from the leaf up to (but excluding) the root.

        `leaf` is either a leaf index or the leaf value itself.
        """
        index = self._check_index(leaf) if isinstance(leaf, int) else self.leaf_lookup(leaf)
        position = self._values[index].tree_index

        proof = []
        while position > 0:
            proof.append(hash_to_hex(self._tree[sibling_index(position)]))
            position = parent_index(position)

        leaf_hash = hash_to_hex(self._tree[self._values[index].tree_index])
        if not verify_proof(self.root, leaf_hash, proof):
            raise RuntimeError("Unable to prove value")
        return proof

    def verify(self, leaf, proof):
        """Check a proof for a leaf (index or value) against this tree's root."""
        value = self.value_at(leaf) if isinstance(leaf, int) else leaf
        return verify_proof(self.root, self.leaf_hash(value), proof)

    # --- OUTPUT ---

    def render(self):
        """Draw the node array as an indented tree, one node per line."""
        lines = []
        stack = [(0, [])]
        while stack:
            i, path = stack.pop()
            prefix = "".join("│  " if p else "   " for p in path[:-1])
            prefix += "".join("├─ " if p else "└─ " for p in path[-1:])
            lines.append(f"{prefix}{i}) {hash_to_hex(self._tree[i])}")
            if right_child_index(i) < len(self._tree):
                stack.append((right_child_index(i), path + [0]))
                stack.append((left_child_index(i), path + [1]))
        return "\n".join(lines)

    def dump(self):
        return {
            "format": STANDARD_FORMAT,
            "leafEncoding": list(self.leaf_encoding),
            "tree": [hash_to_hex(node) for node in self._tree],
            "values": [{"value": list(leaf.value), "treeIndex": leaf.tree_index} for leaf in self._values],
        }

    def __repr__(self):
        return f"StandardMerkleTree(leaves={len(self._values)}, root={self.root})"


def load_tree_bytes(serialized):
    """Parse a serialized standard-v1 dump (bytes or text) into a StandardMerkleTree."""
    if not isinstance(serialized, (str, bytes, bytearray)):
        raise MerkleTreeParseError("<document>", f"expected bytes or text, got {type(serialized).__name__}")
    try:
        if isinstance(serialized, (bytes, bytearray)):
            serialized = serialized.decode("utf-8")
        data = json.loads(serialized)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MerkleTreeParseError("<document>", f"not valid JSON: {e}") from e
    except RecursionError as e:
        raise MerkleTreeParseError("<document>", "JSON is nested too deeply") from e
    return StandardMerkleTree.load(data)


def load_tree_file(path):
    try:
        with open(path, "rb") as f:
            serialized = f.read()
    except OSError as e:
        raise MerkleTreeParseError(str(path), f"cannot read tree definition: {e}") from e
    return load_tree_bytes(serialized)
