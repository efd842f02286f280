"""
Timelock Controller: delay-enforcing execution gate

Implements:
  - operation fingerprints: keccak(abi.encode(target, value, data,
    predecessor, salt)) and the batch form over parallel arrays
  - schedule / scheduleBatch (PROPOSER_ROLE), execute / executeBatch
    (EXECUTOR_ROLE, or anyone when the role is held by the zero address)
  - Unset → Waiting → Ready → Done lifecycle per operation id, with an
    optional grace period after which a ready operation can no longer run
  - updateDelay, callable only by the timelock itself
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Iterable, Optional, Sequence

from ..chain import Chain, external, transaction
from ..constants import (
    DONE_TIMESTAMP,
    GOVERNANCE_TIMELOCK_GRACE_PERIOD_SECONDS,
    GOVERNANCE_TIMELOCK_MIN_DELAY_SECONDS,
    ZERO_ADDRESS,
    ZERO_BYTES32,
)
from ..crypto.abi import check_payload, check_uint256, encode_operation, encode_operation_batch
from ..crypto.address import normalize_address
from ..crypto.hashing import keccak256, to_bytes32
from ..exceptions import (
    DuplicateError,
    InvalidParameterError,
    InvalidStateError,
    TargetCallRevertedError,
    UnauthorizedError,
)
from ..logger import get_logger
from .access import (
    DEFAULT_ADMIN_ROLE,
    EXECUTOR_ROLE,
    PROPOSER_ROLE,
    AccessControl,
)

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class AlreadyScheduledError(DuplicateError):
    """An operation with the same id is already scheduled or done."""


class DelayTooShortError(InvalidParameterError):
    """Requested delay is below the minimum delay."""


class NotReadyError(InvalidStateError):
    """Operation is unset or its ready timestamp has not been reached."""


class AlreadyDoneError(InvalidStateError):
    """Operation has already been executed."""


class PredecessorNotDoneError(InvalidStateError):
    """Operation depends on a predecessor that has not been executed."""


class OperationExpiredError(InvalidStateError):
    """Ready operation outlived the grace period."""


class OnlyTimelockError(UnauthorizedError):
    """Function reserved to the timelock itself."""


# ══════════════════════════════════════════════════════════════════════
#  ENUMS
# ══════════════════════════════════════════════════════════════════════

class OperationState(IntEnum):
    UNSET = 0
    WAITING = 1
    READY = 2
    DONE = 3


# ══════════════════════════════════════════════════════════════════════
#  EVENTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CallScheduled:
    """Emitted once per call of a scheduled operation."""
    id: bytes
    index: int
    target: str
    value: int
    data: bytes
    predecessor: bytes
    delay: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "CallScheduled",
            "id": "0x" + self.id.hex(),
            "index": self.index,
            "target": self.target,
            "value": str(self.value),
            "data": "0x" + self.data.hex(),
            "predecessor": "0x" + self.predecessor.hex(),
            "delay": self.delay,
        }


@dataclass(frozen=True)
class CallExecuted:
    """Emitted once per successfully forwarded call."""
    id: bytes
    index: int
    target: str
    value: int
    data: bytes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "CallExecuted",
            "id": "0x" + self.id.hex(),
            "index": self.index,
            "target": self.target,
            "value": str(self.value),
            "data": "0x" + self.data.hex(),
        }


@dataclass(frozen=True)
class CallSalt:
    id: bytes
    salt: bytes

    def to_dict(self) -> Dict[str, Any]:
        return {"event": "CallSalt", "id": "0x" + self.id.hex(), "salt": "0x" + self.salt.hex()}


@dataclass(frozen=True)
class MinDelayChange:
    old_duration: int
    new_duration: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "MinDelayChange",
            "oldDuration": self.old_duration,
            "newDuration": self.new_duration,
        }


# ══════════════════════════════════════════════════════════════════════
#  TIMELOCK
# ══════════════════════════════════════════════════════════════════════

class TimelockController(AccessControl):
    """
    Execution gate that forwards calls only after a mandatory delay.

    The timelock always administers itself; an optional external *admin*
    may be granted DEFAULT_ADMIN_ROLE at construction for the initial
    role setup and should renounce or be revoked afterwards.

    Attributes:
        grace_period:  Seconds a ready operation stays executable (0 = forever)
    """

    def __init__(
        self,
        chain: Chain,
        deployer: str,
        min_delay: int = GOVERNANCE_TIMELOCK_MIN_DELAY_SECONDS,
        proposers: Iterable[str] = (),
        executors: Iterable[str] = (),
        admin: Optional[str] = None,
        grace_period: int = GOVERNANCE_TIMELOCK_GRACE_PERIOD_SECONDS,
    ):
        if min_delay < 0:
            raise InvalidParameterError(f"Minimum delay cannot be negative: {min_delay}")
        if grace_period < 0:
            raise InvalidParameterError(f"Grace period cannot be negative: {grace_period}")

        super().__init__(chain, deployer)
        self._timestamps: Dict[bytes, int] = {}
        self._min_delay = min_delay
        self.grace_period = grace_period

        self._grant_role(DEFAULT_ADMIN_ROLE, self.address, self.deployer)
        if admin is not None and normalize_address(admin) != ZERO_ADDRESS:
            self._grant_role(DEFAULT_ADMIN_ROLE, admin, self.deployer)
        for proposer in proposers:
            self._grant_role(PROPOSER_ROLE, proposer, self.deployer)
        for executor in executors:
            self._grant_role(EXECUTOR_ROLE, executor, self.deployer)

        self._emit(MinDelayChange(0, min_delay))
        logger.info(
            f"Timelock {self.address} deployed: min_delay={min_delay}s"
            f"{f', grace={grace_period}s' if grace_period else ''}"
        )

    # ── Fingerprints ──────────────────────────────────────────────────

    @staticmethod
    def hash_operation(
        target: str,
        value: int,
        data: bytes,
        predecessor: bytes,
        salt: bytes,
    ) -> bytes:
        return keccak256(encode_operation(
            normalize_address(target), check_uint256(value), check_payload(data, "payload"),
            to_bytes32(predecessor), to_bytes32(salt),
        ))

    @staticmethod
    def hash_operation_batch(
        targets: Sequence[str],
        values: Sequence[int],
        payloads: Sequence[bytes],
        predecessor: bytes,
        salt: bytes,
    ) -> bytes:
        return keccak256(encode_operation_batch(
            [normalize_address(t) for t in targets],
            [check_uint256(v) for v in values],
            [check_payload(p, "payload") for p in payloads],
            to_bytes32(predecessor), to_bytes32(salt),
        ))

    # ── Views ─────────────────────────────────────────────────────────

    def get_min_delay(self) -> int:
        return self._min_delay

    def get_timestamp(self, op_id: bytes) -> int:
        """Ready timestamp of *op_id*: 0 if unset, DONE_TIMESTAMP if executed."""
        return self._timestamps.get(to_bytes32(op_id), 0)

    def get_operation_state(self, op_id: bytes) -> OperationState:
        ts = self.get_timestamp(op_id)
        if ts == 0:
            return OperationState.UNSET
        if ts == DONE_TIMESTAMP:
            return OperationState.DONE
        if ts > self.block_timestamp:
            return OperationState.WAITING
        return OperationState.READY

    def is_operation(self, op_id: bytes) -> bool:
        return self.get_operation_state(op_id) != OperationState.UNSET

    def is_operation_pending(self, op_id: bytes) -> bool:
        """Scheduled and not yet executed (waiting or ready)."""
        return self.get_operation_state(op_id) in (OperationState.WAITING, OperationState.READY)

    def is_operation_ready(self, op_id: bytes) -> bool:
        return self.get_operation_state(op_id) == OperationState.READY

    def is_operation_done(self, op_id: bytes) -> bool:
        return self.get_operation_state(op_id) == OperationState.DONE

    def is_operation_expired(self, op_id: bytes) -> bool:
        """Ready but past the grace period (never true when grace is disabled)."""
        if not self.grace_period or not self.is_operation_ready(op_id):
            return False
        return self.block_timestamp >= self.get_timestamp(op_id) + self.grace_period

    # ── Scheduling ────────────────────────────────────────────────────

    @external("schedule(address,uint256,bytes,bytes32,bytes32,uint256)")
    @transaction
    def schedule(
        self,
        caller: str,
        target: str,
        value: int,
        data: bytes,
        predecessor: bytes,
        salt: bytes,
        delay: int,
    ) -> bytes:
        """Schedule a single call. Returns the operation id."""
        self._check_role(PROPOSER_ROLE, caller)
        op_id = self.hash_operation(target, value, data, predecessor, salt)
        self._schedule(op_id, delay)
        self._emit(CallScheduled(
            op_id, 0, normalize_address(target), value, bytes(data),
            to_bytes32(predecessor), delay,
        ))
        self._emit_salt(op_id, salt)
        return op_id

    @external("scheduleBatch(address[],uint256[],bytes[],bytes32,bytes32,uint256)")
    @transaction
    def schedule_batch(
        self,
        caller: str,
        targets: Sequence[str],
        values: Sequence[int],
        payloads: Sequence[bytes],
        predecessor: bytes,
        salt: bytes,
        delay: int,
    ) -> bytes:
        """Schedule an ordered batch of calls. Returns the operation id."""
        self._check_role(PROPOSER_ROLE, caller)
        self._check_batch(targets, values, payloads)
        op_id = self.hash_operation_batch(targets, values, payloads, predecessor, salt)
        self._schedule(op_id, delay)
        for i, (target, value, data) in enumerate(zip(targets, values, payloads)):
            self._emit(CallScheduled(
                op_id, i, normalize_address(target), value, bytes(data),
                to_bytes32(predecessor), delay,
            ))
        self._emit_salt(op_id, salt)
        return op_id

    def _schedule(self, op_id: bytes, delay: int) -> None:
        if self.is_operation(op_id):
            raise AlreadyScheduledError(f"Operation 0x{op_id.hex()} already scheduled")
        if isinstance(delay, bool) or not isinstance(delay, int):
            raise InvalidParameterError(f"Delay must be an integer, got {type(delay).__name__}")
        if delay < self._min_delay:
            raise DelayTooShortError(f"Delay {delay}s below minimum {self._min_delay}s")
        check_uint256(delay, "delay")
        ready = self.block_timestamp + delay
        self._timestamps[op_id] = ready
        logger.info(f"Operation 0x{op_id.hex()[:16]}… scheduled, ready at {ready}")

    def _emit_salt(self, op_id: bytes, salt: bytes) -> None:
        salt = to_bytes32(salt)
        if salt != ZERO_BYTES32:
            self._emit(CallSalt(op_id, salt))

    @staticmethod
    def _check_batch(targets, values, payloads) -> None:
        if not (len(targets) == len(values) == len(payloads)):
            raise InvalidParameterError(
                f"Batch length mismatch: targets={len(targets)}, "
                f"values={len(values)}, payloads={len(payloads)}"
            )

    # ── Execution ─────────────────────────────────────────────────────

    @external("execute(address,uint256,bytes,bytes32,bytes32)")
    @transaction
    def execute(
        self,
        caller: str,
        target: str,
        value: int,
        data: bytes,
        predecessor: bytes,
        salt: bytes,
    ) -> bytes:
        """Run a ready single-call operation."""
        self._check_executor(caller)
        op_id = self.hash_operation(target, value, data, predecessor, salt)
        self._before_call(op_id, predecessor)
        self._forward(op_id, 0, normalize_address(target), value, bytes(data))
        self._after_call(op_id)
        return op_id

    @external("executeBatch(address[],uint256[],bytes[],bytes32,bytes32)")
    @transaction
    def execute_batch(
        self,
        caller: str,
        targets: Sequence[str],
        values: Sequence[int],
        payloads: Sequence[bytes],
        predecessor: bytes,
        salt: bytes,
    ) -> bytes:
        """Run every call of a ready batch in order; all or nothing."""
        self._check_executor(caller)
        self._check_batch(targets, values, payloads)
        op_id = self.hash_operation_batch(targets, values, payloads, predecessor, salt)
        self._before_call(op_id, predecessor)
        for i, (target, value, data) in enumerate(zip(targets, values, payloads)):
            self._forward(op_id, i, normalize_address(target), value, bytes(data))
        self._after_call(op_id)
        return op_id

    def _check_executor(self, caller: str) -> None:
        if not self.has_role(EXECUTOR_ROLE, ZERO_ADDRESS):
            self._check_role(EXECUTOR_ROLE, caller)

    def _before_call(self, op_id: bytes, predecessor: bytes) -> None:
        state = self.get_operation_state(op_id)
        if state == OperationState.DONE:
            raise AlreadyDoneError(f"Operation 0x{op_id.hex()} already executed")
        if state != OperationState.READY:
            raise NotReadyError(
                f"Operation 0x{op_id.hex()} not ready "
                f"(state={state.name}, ready_at={self.get_timestamp(op_id)}, "
                f"now={self.block_timestamp})"
            )
        if self.is_operation_expired(op_id):
            raise OperationExpiredError(
                f"Operation 0x{op_id.hex()} expired at "
                f"{self.get_timestamp(op_id) + self.grace_period}"
            )
        predecessor = to_bytes32(predecessor)
        if predecessor != ZERO_BYTES32 and not self.is_operation_done(predecessor):
            raise PredecessorNotDoneError(
                f"Predecessor 0x{predecessor.hex()} of 0x{op_id.hex()} not executed"
            )

    def _forward(self, op_id: bytes, index: int, target: str, value: int, data: bytes) -> None:
        try:
            self.chain.call(self.address, target, value, data)
        except Exception as exc:
            raise TargetCallRevertedError(target, index, exc) from exc
        self._emit(CallExecuted(op_id, index, target, value, data))

    def _after_call(self, op_id: bytes) -> None:
        # A forwarded call may have re-entered and executed this operation.
        if not self.is_operation_ready(op_id):
            raise NotReadyError(f"Operation 0x{op_id.hex()} no longer ready")
        self._timestamps[op_id] = DONE_TIMESTAMP
        logger.info(f"Operation 0x{op_id.hex()[:16]}… executed")

    # ── Self-administration ───────────────────────────────────────────

    @external("updateDelay(uint256)")
    @transaction
    def update_delay(self, caller: str, new_delay: int) -> None:
        """Change the minimum delay; only reachable through an executed operation."""
        if normalize_address(caller) != self.address:
            raise OnlyTimelockError(f"updateDelay caller {caller} is not the timelock")
        if new_delay < 0:
            raise InvalidParameterError(f"Minimum delay cannot be negative: {new_delay}")
        self._emit(MinDelayChange(self._min_delay, new_delay))
        logger.info(f"Timelock min delay {self._min_delay}s → {new_delay}s")
        self._min_delay = new_delay

    def receive(self, sender: str, value: int) -> None:
        logger.debug(f"Timelock {self.address} received {value} from {sender}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "minDelay": self._min_delay,
            "gracePeriod": self.grace_period,
            "operations": len(self._timestamps),
            "done": sum(1 for ts in self._timestamps.values() if ts == DONE_TIMESTAMP),
        }
