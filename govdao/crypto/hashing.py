"""
GovDAO Crypto Hashing Module

Keccak-256 helpers used for every fingerprint in the system:
proposal ids, operation ids, role identifiers and description hashes.
"""

from typing import Union

from eth_utils import keccak

from ..exceptions import InvalidParameterError


def keccak256(data: Union[bytes, str]) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum standard).

    Args:
        data: Input bytes or 0x-prefixed hex string

    Returns:
        32-byte hash
    """
    if isinstance(data, str):
        if data.startswith('0x') or data.startswith('0X'):
            data = bytes.fromhex(data[2:])
        else:
            data = bytes.fromhex(data)
    return keccak(data)


def keccak256_hex(data: Union[bytes, str]) -> str:
    """
    Compute Keccak-256 hash and return as hex string.

    Args:
        data: Input bytes or hex string

    Returns:
        Hex string with 0x prefix
    """
    return '0x' + keccak256(data).hex()


def text_hash(text: str) -> bytes:
    """keccak256 of the UTF-8 encoding of *text* (ethers ``id``)."""
    return keccak(text=text)


def description_hash(description: str) -> bytes:
    """Fingerprint of a proposal's human-readable description."""
    return text_hash(description)


def role_id(name: str) -> bytes:
    """Role identifier, e.g. ``role_id("PROPOSER_ROLE")``."""
    return text_hash(name)


def to_bytes32(value: Union[bytes, str, int]) -> bytes:
    """
    Coerce a hash-like value to exactly 32 bytes.

    Accepts raw bytes, 0x-prefixed hex or an unsigned integer.

    Raises:
        InvalidParameterError: if *value* does not denote exactly 32 bytes
    """
    if isinstance(value, bool):
        raise InvalidParameterError(f"Not a bytes32 value: {value!r}")
    if isinstance(value, int):
        if not 0 <= value < 2 ** 256:
            raise InvalidParameterError(f"Integer out of bytes32 range: {value}")
        return value.to_bytes(32, 'big')
    if isinstance(value, str):
        try:
            value = bytes.fromhex(value[2:] if value.startswith('0x') else value)
        except ValueError as exc:
            raise InvalidParameterError(f"Malformed hex: {value!r}") from exc
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise InvalidParameterError(f"Not a bytes32 value: {value!r}")
    if len(value) != 32:
        raise InvalidParameterError(f"Expected 32 bytes, got {len(value)}")
    return bytes(value)
