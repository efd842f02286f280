"""
GovDAO Crypto Module

Hashing, address and ABI helpers shared by the ledger, the governor
and the timelock:
- keccak256 fingerprints (proposal ids, operation ids, role ids)
- EIP-55 addresses and CREATE-style contract addresses
- function selectors and calldata encoding
"""

from .hashing import (
    keccak256,
    keccak256_hex,
    text_hash,
    description_hash,
    role_id,
    to_bytes32,
)
from .address import (
    InvalidAddressError,
    address_from_label,
    generate_contract_address,
    is_valid_address,
    is_zero_address,
    normalize_address,
)
from .abi import (
    UINT256_MAX,
    check_payload,
    check_uint256,
    compute_function_selector,
    decode_arguments,
    decode_function_call,
    encode_function_call,
    encode_operation,
    encode_operation_batch,
    encode_proposal,
    parse_argument_types,
)

__all__ = [
    # Hashing
    "keccak256",
    "keccak256_hex",
    "text_hash",
    "description_hash",
    "role_id",
    "to_bytes32",
    # Addresses
    "InvalidAddressError",
    "address_from_label",
    "generate_contract_address",
    "is_valid_address",
    "is_zero_address",
    "normalize_address",
    # ABI
    "UINT256_MAX",
    "check_payload",
    "check_uint256",
    "compute_function_selector",
    "decode_arguments",
    "decode_function_call",
    "encode_function_call",
    "encode_operation",
    "encode_operation_batch",
    "encode_proposal",
    "parse_argument_types",
]
