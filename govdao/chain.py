"""
Host Ledger

An in-process, strictly sequential chain the governance contracts run on.
It mirrors the semantics of a development node with automine enabled:

  - every state-mutating entry point is a transaction mined in its own block
  - a transaction is atomic: contract state, native balances and emitted
    events are reverted together when it raises, and the exception propagates
  - raw calls (target, value, calldata) are dispatched by 4-byte selector to
    methods marked ``@external("sig(types)")``
  - block numbers and timestamps only move forward
"""

import copy
import functools
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from eth_abi.exceptions import DecodingError

from .constants import CHAIN_BLOCK_TIME, CHAIN_GENESIS_TIMESTAMP, ZERO_ADDRESS
from .crypto.abi import (
    compute_function_selector,
    decode_arguments,
    decode_function_call,
    parse_argument_types,
)
from .crypto.address import generate_contract_address, normalize_address
from .exceptions import CallError, InvalidParameterError
from .logger import get_logger

logger = get_logger(__name__)

C = TypeVar("C", bound="Contract")


# ══════════════════════════════════════════════════════════════════════
#  DECORATORS
# ══════════════════════════════════════════════════════════════════════

def external(signature: str):
    """
    Expose a contract method to raw calldata dispatch.

    The decorated method must take the caller address as its first
    argument after ``self``; the remaining arguments are ABI-decoded from
    the calldata according to *signature*.
    """
    def decorator(fn):
        fn.__abi_signature__ = signature
        return fn
    return decorator


def transaction(fn):
    """Run a contract method as an atomic transaction on its chain."""
    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        return self.chain.run_transaction(fn, self, *args, **kwargs)
    return wrapper


# ══════════════════════════════════════════════════════════════════════
#  BLOCKS & LOGS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Block:
    """A mined block."""
    number: int
    timestamp: int


@dataclass(frozen=True)
class LogEntry:
    """An event emitted by a contract, tagged with its origin."""
    address: str
    block_number: int
    event: Any

    @property
    def name(self) -> str:
        return type(self.event).__name__


# ══════════════════════════════════════════════════════════════════════
#  CONTRACT BASE
# ══════════════════════════════════════════════════════════════════════

class Contract:
    """
    Base class for anything deployed on a :class:`Chain`.

    Contract state is whatever lives in instance attributes, except the
    ones listed in ``_TRANSIENT``. References to other contracts must be
    held as addresses and resolved through the chain, so that snapshots
    never duplicate a neighbour's state.
    """

    _TRANSIENT = frozenset({"chain"})

    def __init__(self, chain: "Chain", deployer: str):
        self.chain = chain
        self.deployer = normalize_address(deployer)
        self.address = chain._register(self, self.deployer)

    # ── Helpers ───────────────────────────────────────────────────────

    @property
    def block_number(self) -> int:
        return self.chain.block_number

    @property
    def block_timestamp(self) -> int:
        return self.chain.timestamp

    def _emit(self, event: Any) -> None:
        self.chain.emit(self.address, event)

    def _contract(self, address: str) -> "Contract":
        return self.chain.get_contract(address)

    # ── Snapshots ─────────────────────────────────────────────────────

    def _snapshot_state(self) -> Dict[str, Any]:
        return copy.deepcopy({
            k: v for k, v in vars(self).items() if k not in self._TRANSIENT
        })

    def _restore_state(self, state: Dict[str, Any]) -> None:
        for k in [k for k in vars(self) if k not in self._TRANSIENT]:
            del self.__dict__[k]
        self.__dict__.update(state)

    # ── ABI ───────────────────────────────────────────────────────────

    @classmethod
    def abi(cls) -> Dict[bytes, str]:
        """selector → method name for every ``@external`` method."""
        table: Dict[bytes, str] = {}
        for name in dir(cls):
            attr = getattr(cls, name, None)
            signature = getattr(attr, "__abi_signature__", None)
            if signature is not None:
                table[compute_function_selector(signature)] = name
        return table

    def __repr__(self) -> str:
        return f"<{type(self).__name__} at {self.address}>"


# ══════════════════════════════════════════════════════════════════════
#  CHAIN
# ══════════════════════════════════════════════════════════════════════

class Chain:
    """
    Sequential host ledger with atomic transactions.

    Attributes:
        block_time:  Seconds added to the timestamp of each automined block
        automine:    Mine a fresh block for every outermost transaction
    """

    def __init__(
        self,
        block_time: int = CHAIN_BLOCK_TIME,
        genesis_timestamp: int = CHAIN_GENESIS_TIMESTAMP,
        automine: bool = True,
    ):
        if block_time < 1:
            raise InvalidParameterError("block_time must be >= 1 second")
        self.block_time = block_time
        self.automine = automine

        self._blocks: List[Block] = [Block(number=0, timestamp=genesis_timestamp)]
        self._next_timestamp: Optional[int] = None

        self._contracts: Dict[str, Contract] = {}
        self._abis: Dict[str, Dict[bytes, str]] = {}
        self._deploy_nonces: Dict[str, int] = {}
        self._balances: Dict[str, int] = {}
        self._logs: List[LogEntry] = []

        self._depth = 0

    # ── Clock ─────────────────────────────────────────────────────────

    @property
    def block_number(self) -> int:
        """Number of the latest block (the executing block inside a tx)."""
        return self._blocks[-1].number

    @property
    def timestamp(self) -> int:
        """Timestamp of the latest block."""
        return self._blocks[-1].timestamp

    @property
    def latest_block(self) -> Block:
        return self._blocks[-1]

    def timestamp_at(self, block_number: int) -> int:
        """Timestamp of a mined block."""
        if block_number < 0 or block_number > self.block_number:
            raise InvalidParameterError(
                f"Block {block_number} not mined (latest={self.block_number})"
            )
        return self._blocks[block_number].timestamp

    def _mine_block(self) -> Block:
        if self._next_timestamp is not None:
            ts = self._next_timestamp
            self._next_timestamp = None
        else:
            ts = self.timestamp + self.block_time
        block = Block(number=self.block_number + 1, timestamp=ts)
        self._blocks.append(block)
        return block

    def mine(self, blocks: int = 1) -> Block:
        """Mine *blocks* empty blocks and return the last one."""
        if self._depth:
            raise CallError("Cannot mine inside a transaction")
        if blocks < 1:
            raise InvalidParameterError("blocks must be >= 1")
        for _ in range(blocks):
            block = self._mine_block()
        logger.debug(f"Mined {blocks} block(s) → #{block.number} @ {block.timestamp}")
        return block

    def increase_time(self, seconds: int) -> Block:
        """Mine one block *seconds* after the latest one."""
        if seconds < 1:
            raise InvalidParameterError("seconds must be >= 1")
        self.set_next_block_timestamp(self.timestamp + seconds)
        return self.mine(1)

    def set_next_block_timestamp(self, timestamp: int) -> None:
        """Pin the timestamp of the next mined block."""
        if timestamp <= self.timestamp:
            raise InvalidParameterError(
                f"Timestamp {timestamp} must be greater than latest {self.timestamp}"
            )
        self._next_timestamp = timestamp

    # ── Contracts ─────────────────────────────────────────────────────

    def _register(self, contract: Contract, deployer: str) -> str:
        nonce = self._deploy_nonces.get(deployer, 0)
        self._deploy_nonces[deployer] = nonce + 1
        address = generate_contract_address(deployer, nonce)
        self._contracts[address] = contract
        self._abis[address] = type(contract).abi()
        return address

    def deploy(self, contract_cls: Type[C], deployer: str, *args, **kwargs) -> C:
        """
        Deploy *contract_cls* from *deployer* in its own transaction.

        Constructor arguments follow the ``(chain, deployer)`` pair.
        """
        def _construct(chain):
            return contract_cls(chain, deployer, *args, **kwargs)

        contract = self.run_transaction(_construct, self)
        logger.info(f"Deployed {contract_cls.__name__} at {contract.address}")
        return contract

    def get_contract(self, address: str) -> Contract:
        contract = self._contracts.get(normalize_address(address))
        if contract is None:
            raise CallError(f"No contract at {address}")
        return contract

    def is_contract(self, address: str) -> bool:
        return normalize_address(address) in self._contracts

    # ── Native balances ───────────────────────────────────────────────

    def get_balance(self, address: str) -> int:
        return self._balances.get(normalize_address(address), 0)

    def set_balance(self, address: str, amount: int) -> None:
        """Fund an account directly (test / genesis helper)."""
        if amount < 0:
            raise InvalidParameterError("Balance cannot be negative")
        self._balances[normalize_address(address)] = amount

    def _move_value(self, sender: str, recipient: str, value: int) -> None:
        if value < 0:
            raise CallError("Negative call value")
        if value == 0:
            return
        balance = self._balances.get(sender, 0)
        if balance < value:
            raise CallError(
                f"Insufficient native balance: {sender} has {balance}, needs {value}"
            )
        self._balances[sender] = balance - value
        self._balances[recipient] = self._balances.get(recipient, 0) + value

    # ── Transactions ──────────────────────────────────────────────────

    def _snapshot(self) -> Dict[str, Any]:
        return {
            "contracts": dict(self._contracts),
            "abis": dict(self._abis),
            "nonces": dict(self._deploy_nonces),
            "states": {
                addr: c._snapshot_state() for addr, c in self._contracts.items()
            },
            "balances": dict(self._balances),
            "logs": len(self._logs),
        }

    def _revert(self, snapshot: Dict[str, Any]) -> None:
        self._contracts = snapshot["contracts"]
        self._abis = snapshot["abis"]
        self._deploy_nonces = snapshot["nonces"]
        for addr, state in snapshot["states"].items():
            self._contracts[addr]._restore_state(state)
        self._balances = snapshot["balances"]
        del self._logs[snapshot["logs"]:]

    def run_transaction(self, fn: Callable, *args, **kwargs) -> Any:
        """
        Execute *fn* atomically.

        The outermost call mines a block (automine) and takes a snapshot;
        nested calls join the enclosing transaction.
        """
        if self._depth:
            return fn(*args, **kwargs)

        if self.automine:
            self._mine_block()
        snapshot = self._snapshot()
        self._depth += 1
        try:
            return fn(*args, **kwargs)
        except Exception as e:
            self._revert(snapshot)
            logger.warning(
                f"Transaction reverted in block #{self.block_number}: "
                f"{type(e).__name__}: {e}"
            )
            raise
        finally:
            self._depth -= 1

    # ── Raw calls ─────────────────────────────────────────────────────

    def call(self, sender: str, target: str, value: int = 0, data: bytes = b"") -> Any:
        """
        Dispatch a raw call from *sender* to *target*.

        Moves *value* natively, then routes *data* by selector to the
        target's ``@external`` method. Empty *data* with a contract target
        invokes its ``receive`` hook if it has one.
        """
        return self.run_transaction(self._call, sender, target, value, data)

    def _call(self, sender: str, target: str, value: int, data: bytes) -> Any:
        sender = normalize_address(sender)
        target = normalize_address(target)
        data = bytes(data)

        self._move_value(sender, target, value)

        contract = self._contracts.get(target)
        if contract is None:
            if data:
                raise CallError(f"Call with data to non-contract {target}")
            return None

        if not data:
            receive = getattr(contract, "receive", None)
            if receive is None:
                raise CallError(f"{type(contract).__name__} cannot receive value")
            return receive(sender, value)

        selector, payload = decode_function_call(data)
        method_name = self._abis[target].get(selector)
        if method_name is None:
            raise CallError(
                f"Unknown selector 0x{data[:4].hex()} on {type(contract).__name__}"
            )

        method = getattr(contract, method_name)
        signature = method.__abi_signature__
        try:
            call_args = decode_arguments(parse_argument_types(signature), payload)
        except DecodingError as e:
            raise CallError(f"Malformed calldata for {signature}: {e}") from e
        return method(sender, *call_args)

    # ── Events ────────────────────────────────────────────────────────

    def emit(self, address: str, event: Any) -> None:
        self._logs.append(LogEntry(address=address, block_number=self.block_number, event=event))

    def logs(
        self,
        event_type: Optional[type] = None,
        address: Optional[str] = None,
        from_block: int = 0,
    ) -> List[LogEntry]:
        """Filter the event log."""
        addr = normalize_address(address) if address else None
        return [
            entry for entry in self._logs
            if (event_type is None or isinstance(entry.event, event_type))
            and (addr is None or entry.address == addr)
            and entry.block_number >= from_block
        ]

    def events(self, event_type: Optional[type] = None, address: Optional[str] = None) -> List[Any]:
        """Event payloads matching the filter, oldest first."""
        return [entry.event for entry in self.logs(event_type, address)]

    def last_event(self, event_type: type, address: Optional[str] = None) -> Any:
        matches = self.events(event_type, address)
        return matches[-1] if matches else None

    def __repr__(self) -> str:
        return (
            f"<Chain block=#{self.block_number} ts={self.timestamp} "
            f"contracts={len(self._contracts)}>"
        )


__all__ = [
    "Block",
    "Chain",
    "Contract",
    "LogEntry",
    "ZERO_ADDRESS",
    "external",
    "transaction",
]
