"""Ciphertext handle helpers.

Handles travel through the library as lowercase ``0x``-prefixed hex
strings. Providers and contracts hand them out as raw bytes, integers
(``uint256`` getters) or hex strings; ``normalize_handle`` folds all of
those into the canonical 32-byte form.
"""

import string
from typing import Union

from web3 import Web3

HANDLE_SIZE = 32

# An all-zero handle is what a contract returns for a value that was never
# initialised; it always decrypts to 0.
ZERO_HANDLE = "0x" + "00" * HANDLE_SIZE

HandleLike = Union[bytes, bytearray, int, str]


def to_hex(value: Union[bytes, bytearray, str]) -> str:
    """Return a ``0x``-prefixed hex string for bytes or a (possibly bare) hex string."""
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(bytes(value))
    if isinstance(value, str):
        return value if value.startswith("0x") else f"0x{value}"
    raise TypeError(f"Cannot convert {type(value).__name__} to hex")


def normalize_handle(value: HandleLike) -> str:
    """Normalize a handle to a lowercase, 32-byte, ``0x``-prefixed hex string."""
    if isinstance(value, bool):
        raise TypeError("bool is not a valid handle")
    if isinstance(value, int):
        if value < 0 or value >= 2 ** (8 * HANDLE_SIZE):
            raise ValueError(f"Handle integer out of range: {value}")
        return "0x" + format(value, "0{}x".format(HANDLE_SIZE * 2))

    hex_value = to_hex(value).lower()
    body = hex_value[2:]
    if not body:
        raise ValueError(f"Handle is empty: {value!r}")
    if len(body) > HANDLE_SIZE * 2:
        raise ValueError(f"Handle longer than {HANDLE_SIZE} bytes: {hex_value}")
    if any(c not in string.hexdigits for c in body):
        raise ValueError(f"Handle is not valid hex: {value!r}")
    return "0x" + body.rjust(HANDLE_SIZE * 2, "0")


def is_zero_handle(value: HandleLike) -> bool:
    """True when the handle is the well-known uninitialised sentinel."""
    try:
        return normalize_handle(value) == ZERO_HANDLE
    except (TypeError, ValueError):
        return False


def handle_to_int(handle: HandleLike) -> int:
    """Numeric encoding of a handle, for ``uint256``-typed parameters."""
    return int(normalize_handle(handle), 16)


def short_handle(handle: HandleLike) -> str:
    """Truncated handle for log lines."""
    text = normalize_handle(handle)
    return f"{text[:10]}...{text[-6:]}"
