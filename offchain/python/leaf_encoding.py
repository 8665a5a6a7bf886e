"""
Standard Leaf Encoding

Leaf and node hashing compatible with OpenZeppelin's StandardMerkleTree
("standard-v1"), so proofs produced here verify with MerkleProof.verify on-chain.
"""

import re

from eth_abi import encode
from eth_abi.exceptions import EncodingError
from eth_utils import decode_hex, encode_hex, keccak, to_bytes, to_normalized_address

HASH_LENGTH = 32

_ARRAY_SUFFIX = re.compile(r"^(?P<base>.+)\[(?P<size>\d*)\]$")
_INTEGER_TYPE = re.compile(r"^u?int(?P<bits>\d*)$")
_FIXED_BYTES_TYPE = re.compile(r"^bytes(?P<size>\d+)$")

TYPE_ALIASES = {"uint": "uint256", "int": "int256", "byte": "bytes1"}


class InvalidLeafError(ValueError):
    """A leaf value does not fit its declared leaf encoding."""


def normalize_type(abi_type):
    """Resolve aliases (uint -> uint256) and check the type is one we can encode."""
    if not isinstance(abi_type, str) or not abi_type:
        raise InvalidLeafError(f"Leaf encoding entry must be a type string, got {abi_type!r}")

    array = _ARRAY_SUFFIX.match(abi_type)
    if array:
        return f"{normalize_type(array.group('base'))}[{array.group('size')}]"

    abi_type = TYPE_ALIASES.get(abi_type, abi_type)
    if abi_type in ("address", "bool", "string", "bytes"):
        return abi_type

    integer = _INTEGER_TYPE.match(abi_type)
    if integer:
        bits = int(integer.group("bits"))
        if bits % 8 == 0 and 8 <= bits <= 256:
            return abi_type

    fixed = _FIXED_BYTES_TYPE.match(abi_type)
    if fixed and 1 <= int(fixed.group("size")) <= 32:
        return abi_type

    raise InvalidLeafError(f"Unsupported leaf encoding type: {abi_type}")


def _to_int(field):
    if isinstance(field, bool):
        raise InvalidLeafError(f"Expected an integer, got boolean {field!r}")
    if isinstance(field, int):
        return field
    if isinstance(field, str):
        text = field.strip()
        try:
            if text.lower().startswith(("0x", "-0x")):
                return int(text, 16)
            return int(text, 10)
        except ValueError:
            pass
    raise InvalidLeafError(f"Expected an integer, got {field!r}")


def _to_bytes(field):
    if isinstance(field, (bytes, bytearray)):
        return bytes(field)
    if isinstance(field, str) and field.startswith("0x"):
        try:
            return to_bytes(hexstr=field)
        except ValueError:
            pass
    raise InvalidLeafError(f"Expected a 0x-prefixed hex string, got {field!r}")


def normalize_field(abi_type, field):
    """Convert one JSON field of the dump into the Python value eth_abi expects."""
    array = _ARRAY_SUFFIX.match(abi_type)
    if array:
        if not isinstance(field, (list, tuple)):
            raise InvalidLeafError(f"Expected a list for {abi_type}, got {field!r}")
        size = array.group("size")
        if size and len(field) != int(size):
            raise InvalidLeafError(f"Expected {size} items for {abi_type}, got {len(field)}")
        return [normalize_field(array.group("base"), item) for item in field]

    if abi_type == "address":
        try:
            return to_normalized_address(field)
        except (TypeError, ValueError) as e:
            raise InvalidLeafError(f"Invalid address {field!r}: {e}") from e
    if abi_type == "bool":
        if not isinstance(field, bool):
            raise InvalidLeafError(f"Expected a boolean, got {field!r}")
        return field
    if abi_type == "string":
        if not isinstance(field, str):
            raise InvalidLeafError(f"Expected a string, got {field!r}")
        return field
    if abi_type.startswith("bytes"):
        data = _to_bytes(field)
        fixed = _FIXED_BYTES_TYPE.match(abi_type)
        if fixed and len(data) != int(fixed.group("size")):
            raise InvalidLeafError(f"Expected {fixed.group('size')} bytes for {abi_type}, got {len(data)}")
        return data
    return _to_int(field)


def encode_leaf(leaf_encoding, value):
    """ABI-encode a leaf value the way abi.encode(...) does in Solidity."""
    if len(value) != len(leaf_encoding):
        raise InvalidLeafError(
            f"Leaf value has {len(value)} fields but the encoding declares {len(leaf_encoding)}"
        )
    types = [normalize_type(t) for t in leaf_encoding]
    fields = [normalize_field(t, f) for t, f in zip(types, value)]
    try:
        return encode(types, fields)
    except (EncodingError, ValueError) as e:
        raise InvalidLeafError(f"Cannot encode {list(value)!r} as {types}: {e}") from e


def standard_leaf_hash(leaf_encoding, value):
    """keccak256(keccak256(abi.encode(...))); the double hash guards against second preimages."""
    return keccak(keccak(encode_leaf(leaf_encoding, value)))


def combine_and_hash(left, right):
    """Hash two sibling nodes in ascending byte order (OpenZeppelin commutative pair hash)."""
    if left > right:
        left, right = right, left
    return keccak(left + right)


def hash_to_hex(node_hash):
    return encode_hex(node_hash)


def hex_to_hash(hex_str):
    """Parse a 0x-prefixed 32-byte hash. Raises ValueError on anything else."""
    if not isinstance(hex_str, str) or not hex_str.startswith("0x"):
        raise ValueError(f"Expected a 0x-prefixed hex string, got {hex_str!r}")
    node_hash = decode_hex(hex_str)
    if len(node_hash) != HASH_LENGTH:
        raise ValueError(f"Expected {HASH_LENGTH} bytes, got {len(node_hash)}")
    return node_hash
