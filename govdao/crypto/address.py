"""
GovDAO Crypto Address Module

Ethereum-style 20-byte addresses with EIP-55 checksums, plus
CREATE-style contract address derivation for the host chain.
"""

import rlp
from eth_utils import is_address, to_canonical_address, to_checksum_address

from ..constants import ZERO_ADDRESS
from ..exceptions import InvalidParameterError
from .hashing import keccak256


class InvalidAddressError(InvalidParameterError):
    """Value is not a 20-byte hex address."""


def normalize_address(address: str) -> str:
    """
    Normalize an address to EIP-55 checksum form.

    Raises:
        InvalidParameterError: if *address* is not a 20-byte hex address
    """
    if not isinstance(address, str) or not is_address(address.lower()):
        raise InvalidAddressError(f"Invalid address: {address!r}")
    return to_checksum_address(address)


def is_valid_address(address: str) -> bool:
    """Check if address is a well-formed 20-byte hex address."""
    return isinstance(address, str) and is_address(address.lower())


def is_zero_address(address: str) -> bool:
    """True for the all-zero "anyone" sentinel."""
    return is_valid_address(address) and int(address, 16) == 0


def address_from_label(label: str) -> str:
    """
    Deterministic externally-owned address for a human label.

    Address = keccak256(label)[-20:]
    """
    return to_checksum_address('0x' + keccak256(label.encode('utf-8'))[-20:].hex())


def generate_contract_address(sender: str, nonce: int) -> str:
    """
    Generate contract address using CREATE opcode logic.

    Address = keccak256(rlp([sender, nonce]))[-20:]

    Args:
        sender: Deployer address
        nonce: Deployer's deployment nonce

    Returns:
        Contract address (Ethereum checksum format)
    """
    rlp_encoded = rlp.encode([to_canonical_address(sender), nonce])
    address_bytes = keccak256(rlp_encoded)[-20:]
    return to_checksum_address('0x' + address_bytes.hex())


__all__ = [
    "ZERO_ADDRESS",
    "InvalidAddressError",
    "address_from_label",
    "generate_contract_address",
    "is_valid_address",
    "is_zero_address",
    "normalize_address",
]
