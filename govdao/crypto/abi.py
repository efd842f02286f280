"""
Contract ABI Encoding

Ethereum-compatible calldata encoding for GovDAO: function selectors,
selector + argument encoding for proposal calldatas, and the
``abi.encode`` layouts behind proposal and operation fingerprints.
"""

from typing import Any, List, Sequence, Tuple, Type

from eth_abi import decode, encode
from eth_utils import keccak

from ..exceptions import InvalidParameterError

UINT256_MAX = 2 ** 256 - 1


def compute_function_selector(function_signature: str) -> bytes:
    """
    Compute Ethereum function selector (first 4 bytes of keccak256(sig)).

    Args:
        function_signature: Function signature like "store(uint256)"

    Returns:
        4-byte function selector
    """
    sig_hash = keccak(function_signature.encode('utf-8'))
    return sig_hash[:4]


def parse_argument_types(function_signature: str) -> List[str]:
    """
    Parse argument types from a flat signature.

    E.g., "transfer(address,uint256)" -> ['address', 'uint256']
    """
    args_start = function_signature.index('(') + 1
    args_end = function_signature.rindex(')')
    arg_types_str = function_signature[args_start:args_end]
    if not arg_types_str:
        return []
    return [t.strip() for t in arg_types_str.split(',')]


def encode_function_call(function_signature: str, *args) -> bytes:
    """
    Encode function call data (selector + ABI-encoded arguments).

    Args:
        function_signature: Function signature
        *args: Function arguments

    Returns:
        Encoded call data
    """
    selector = compute_function_selector(function_signature)
    arg_types = parse_argument_types(function_signature)
    if arg_types:
        return selector + encode(arg_types, list(args))
    return selector


def decode_function_call(data: bytes) -> Tuple[bytes, bytes]:
    """
    Split call data into selector and arguments.

    Returns:
        Tuple of (selector, arguments); empty selector if *data* is shorter
        than four bytes.
    """
    if len(data) < 4:
        return b'', b''
    return data[:4], data[4:]


def decode_arguments(arg_types: Sequence[str], data: bytes) -> Tuple[Any, ...]:
    """ABI-decode *data* against *arg_types*."""
    if not arg_types:
        return ()
    return decode(list(arg_types), data)


def encode_proposal(
    targets: Sequence[str],
    values: Sequence[int],
    calldatas: Sequence[bytes],
    description_hash: bytes,
) -> bytes:
    """abi.encode(address[], uint256[], bytes[], bytes32)"""
    return encode(
        ['address[]', 'uint256[]', 'bytes[]', 'bytes32'],
        [list(targets), list(values), list(calldatas), description_hash],
    )


def encode_operation(
    target: str,
    value: int,
    data: bytes,
    predecessor: bytes,
    salt: bytes,
) -> bytes:
    """abi.encode(address, uint256, bytes, bytes32, bytes32)"""
    return encode(
        ['address', 'uint256', 'bytes', 'bytes32', 'bytes32'],
        [target, value, data, predecessor, salt],
    )


def encode_operation_batch(
    targets: Sequence[str],
    values: Sequence[int],
    payloads: Sequence[bytes],
    predecessor: bytes,
    salt: bytes,
) -> bytes:
    """abi.encode(address[], uint256[], bytes[], bytes32, bytes32)"""
    return encode(
        ['address[]', 'uint256[]', 'bytes[]', 'bytes32', 'bytes32'],
        [list(targets), list(values), list(payloads), predecessor, salt],
    )


def check_uint256(
    value: Any,
    name: str = "value",
    error: Type[InvalidParameterError] = InvalidParameterError,
) -> int:
    """
    Require *value* to fit an ABI ``uint256``.

    Raises:
        error: if *value* is not an integer in [0, 2**256)
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise error(f"{name} must be an integer, got {type(value).__name__}")
    if not 0 <= value <= UINT256_MAX:
        raise error(f"{name} out of uint256 range: {value}")
    return value


def check_payload(
    data: Any,
    name: str = "calldata",
    error: Type[InvalidParameterError] = InvalidParameterError,
) -> bytes:
    """Require *data* to be a byte string; returns it as ``bytes``."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise error(f"{name} must be bytes, got {type(data).__name__}")
    return bytes(data)
