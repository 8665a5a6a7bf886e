"""
Shared fixtures: standard-v1 tree dumps built the same way OpenZeppelin's
StandardMerkleTree.of lays them out (leaves sorted by hash, stored at the tail of
the node array in reverse order).
"""

import json

import pytest

from leaf_encoding import combine_and_hash, hash_to_hex, standard_leaf_hash
from proof_config import reset_to_default_config

SCENARIO_ENCODING = ["string", "uint256"]
SCENARIO_VALUES = [["0xAA", 1], ["0xBB", 2], ["0xCC", 3], ["0xDD", 4]]

ADDRESS_ENCODING = ["address", "uint256"]
ADDRESS_VALUES = [
    ["0x1111111111111111111111111111111111111111", "5000000000000000000"],
    ["0x2222222222222222222222222222222222222222", "2500000000000000000"],
    ["0x70997970C51812dc3A010C7d01b50e0d17dc79C8", "100"],
    ["0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266", "42"],
    ["0xBD26367c4B23A6D3713A1e1a50B2D67E8748cB98", "7"],
]


def build_standard_dump(values, leaf_encoding):
    hashed = sorted(
        ((standard_leaf_hash(leaf_encoding, value), i) for i, value in enumerate(values)),
        key=lambda item: item[0],
    )
    tree_length = 2 * len(hashed) - 1
    tree = [None] * tree_length
    entries = [None] * len(values)

    for leaf_i, (leaf_hash, value_i) in enumerate(hashed):
        tree_index = tree_length - 1 - leaf_i
        tree[tree_index] = leaf_hash
        entries[value_i] = {"value": list(values[value_i]), "treeIndex": tree_index}

    for i in range(tree_length - 1 - len(hashed), -1, -1):
        tree[i] = combine_and_hash(tree[2 * i + 1], tree[2 * i + 2])

    return {
        "format": "standard-v1",
        "leafEncoding": list(leaf_encoding),
        "tree": [hash_to_hex(node) for node in tree],
        "values": entries,
    }


@pytest.fixture(autouse=True)
def default_config():
    yield reset_to_default_config()
    reset_to_default_config()


@pytest.fixture
def make_dump():
    return build_standard_dump


@pytest.fixture
def scenario_dump():
    return build_standard_dump(SCENARIO_VALUES, SCENARIO_ENCODING)


@pytest.fixture
def address_dump():
    return build_standard_dump(ADDRESS_VALUES, ADDRESS_ENCODING)


@pytest.fixture
def tree_file(tmp_path, address_dump):
    path = tmp_path / "tree.json"
    path.write_text(json.dumps(address_dump, indent=2))
    return path


@pytest.fixture
def scenario_values():
    return [list(value) for value in SCENARIO_VALUES]


@pytest.fixture
def address_values():
    return [list(value) for value in ADDRESS_VALUES]
