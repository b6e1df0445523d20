"""Pure ABI helpers for contract calls. No I/O."""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Sequence

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address

WORD_SIZE = 32


@lru_cache(maxsize=None)
def selector(signature: str) -> bytes:
    """Return the 4-byte function selector of e.g. ``"mint(uint256)"``."""
    return function_signature_to_4byte_selector(signature)


def argument_types(signature: str) -> list[str]:
    """Extract the argument types from a flat function signature.

    Examples:
        "mint(uint256)" → ["uint256"]
        "exchangeRateCurrent()" → []
    """
    start = signature.index("(")
    inner = signature[start + 1 : -1]
    return [t.strip() for t in inner.split(",")] if inner else []


def _normalise(abi_type: str, value: Any) -> Any:
    if abi_type == "address":
        return to_checksum_address(value)
    if abi_type == "address[]":
        return [to_checksum_address(v) for v in value]
    return value


def encode_call(signature: str, *args: Any) -> str:
    """Build ``0x``-prefixed calldata for ``signature`` applied to ``args``."""
    types = argument_types(signature)
    if len(types) != len(args):
        raise ValueError(
            f"{signature} takes {len(types)} argument(s), got {len(args)}"
        )
    values = [_normalise(t, v) for t, v in zip(types, args)]
    payload = selector(signature) + (encode(types, values) if types else b"")
    return "0x" + payload.hex()


def hex_to_bytes(data: str) -> bytes:
    if data.startswith(("0x", "0X")):
        data = data[2:]
    return bytes.fromhex(data)


def decode_result(types: Sequence[str], data: str) -> tuple[Any, ...]:
    """Decode the leading words of a call result.

    Only ``len(types)`` static words are read, so callers can decode a
    prefix of a longer return tuple.
    """
    raw = hex_to_bytes(data)
    needed = WORD_SIZE * len(types)
    if len(raw) < needed:
        raise ValueError(
            f"Call returned {len(raw)} bytes, expected at least {needed}"
        )
    return tuple(decode(list(types), raw[:needed]))


def decode_uint_array(data: str) -> list[int]:
    """Decode a single dynamic ``uint256[]`` return value."""
    (values,) = decode(["uint256[]"], hex_to_bytes(data))
    return [int(v) for v in values]
