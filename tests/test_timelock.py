"""
Timelock Controller & Access Control Test Suite

Coverage:
  - roles: self-administration, grant / revoke / renounce, open executor
  - schedule / scheduleBatch: proposer gate, duplicates, minimum delay
  - execute / executeBatch: readiness over time, done-once, predecessors,
    target failures rolled back and reported with their cause
  - grace period expiry
  - updateDelay only through the timelock itself
  - native value custody and forwarding
"""

import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from govdao.chain import Chain
from govdao.constants import ZERO_ADDRESS, ZERO_BYTES32
from govdao.contracts import Box, NotOwnerError
from govdao.crypto import address_from_label, encode_function_call, to_bytes32
from govdao.exceptions import (
    CallError,
    DuplicateError,
    InvalidParameterError,
    InvalidStateError,
    TargetCallRevertedError,
    UnauthorizedError,
)
from govdao.governance import (
    DEFAULT_ADMIN_ROLE,
    EXECUTOR_ROLE,
    PROPOSER_ROLE,
    AlreadyDoneError,
    AlreadyScheduledError,
    CallExecuted,
    CallSalt,
    CallScheduled,
    DelayTooShortError,
    MinDelayChange,
    MissingRoleError,
    NotReadyError,
    OnlyTimelockError,
    OperationExpiredError,
    OperationState,
    PredecessorNotDoneError,
    RoleAdminChanged,
    RoleGranted,
    RoleRevoked,
    TimelockController,
)


# ══════════════════════════════════════════════════════════════════════
#  HELPERS
# ══════════════════════════════════════════════════════════════════════

DEPLOYER = address_from_label("deployer")
PROPOSER = address_from_label("proposer")
EXECUTOR = address_from_label("executor")
STRANGER = address_from_label("stranger")

MIN_DELAY = 10
SALT = to_bytes32(7)


def make_timelock(chain=None, min_delay=MIN_DELAY, **kwargs) -> TimelockController:
    """Helper to deploy a timelock with one proposer and one executor."""
    chain = chain or Chain()
    kwargs.setdefault("proposers", [PROPOSER])
    kwargs.setdefault("executors", [EXECUTOR])
    kwargs.setdefault("admin", DEPLOYER)
    return chain.deploy(TimelockController, DEPLOYER, min_delay, **kwargs)


def make_governed_box(timelock) -> Box:
    """Box owned by the timelock."""
    return timelock.chain.deploy(Box, DEPLOYER, timelock.address)


def store_call(box, value):
    return box.address, 0, encode_function_call("store(uint256)", value)


def schedule_store(timelock, box, value, predecessor=ZERO_BYTES32, salt=SALT, delay=MIN_DELAY):
    target, amount, data = store_call(box, value)
    return timelock.schedule(PROPOSER, target, amount, data, predecessor, salt, delay)


def execute_store(timelock, box, value, caller=EXECUTOR, predecessor=ZERO_BYTES32, salt=SALT):
    target, amount, data = store_call(box, value)
    return timelock.execute(caller, target, amount, data, predecessor, salt)


def wait_until_ready(timelock, op_id):
    """Pin the next block's timestamp to the operation's ready time and mine it."""
    timelock.chain.set_next_block_timestamp(timelock.get_timestamp(op_id))
    timelock.chain.mine()


# ══════════════════════════════════════════════════════════════════════
#  ACCESS CONTROL
# ══════════════════════════════════════════════════════════════════════


class TestRoles:
    """Role setup and administration."""

    def test_constructor_roles(self):
        timelock = make_timelock()
        assert timelock.has_role(DEFAULT_ADMIN_ROLE, timelock.address)
        assert timelock.has_role(DEFAULT_ADMIN_ROLE, DEPLOYER)
        assert timelock.has_role(PROPOSER_ROLE, PROPOSER)
        assert timelock.has_role(EXECUTOR_ROLE, EXECUTOR)
        assert not timelock.has_role(PROPOSER_ROLE, STRANGER)

    def test_without_admin(self):
        timelock = make_timelock(admin=None)
        assert not timelock.has_role(DEFAULT_ADMIN_ROLE, DEPLOYER)
        assert timelock.has_role(DEFAULT_ADMIN_ROLE, timelock.address)

    def test_role_admin_defaults_to_default_admin(self):
        timelock = make_timelock()
        assert timelock.get_role_admin(PROPOSER_ROLE) == DEFAULT_ADMIN_ROLE

    def test_changed_role_admin_controls_grants(self):
        timelock = make_timelock()
        timelock._set_role_admin(EXECUTOR_ROLE, PROPOSER_ROLE)
        assert timelock.get_role_admin(EXECUTOR_ROLE) == PROPOSER_ROLE
        assert timelock.chain.last_event(RoleAdminChanged) == RoleAdminChanged(
            EXECUTOR_ROLE, DEFAULT_ADMIN_ROLE, PROPOSER_ROLE,
        )
        assert timelock.chain.last_event(RoleAdminChanged).to_dict()["newAdminRole"] == (
            "0x" + PROPOSER_ROLE.hex()
        )

        with pytest.raises(MissingRoleError):
            timelock.grant_role(DEPLOYER, EXECUTOR_ROLE, STRANGER)
        timelock.grant_role(PROPOSER, EXECUTOR_ROLE, STRANGER)
        assert timelock.has_role(EXECUTOR_ROLE, STRANGER)

    def test_admin_grants_role(self):
        timelock = make_timelock()
        timelock.grant_role(DEPLOYER, PROPOSER_ROLE, STRANGER)
        assert timelock.has_role(PROPOSER_ROLE, STRANGER)
        event = timelock.chain.last_event(RoleGranted)
        assert event == RoleGranted(PROPOSER_ROLE, STRANGER, DEPLOYER)

    def test_grant_existing_role_emits_nothing(self):
        timelock = make_timelock()
        before = len(timelock.chain.events(RoleGranted))
        timelock.grant_role(DEPLOYER, PROPOSER_ROLE, PROPOSER)
        assert len(timelock.chain.events(RoleGranted)) == before

    def test_non_admin_cannot_grant(self):
        timelock = make_timelock()
        with pytest.raises(MissingRoleError, match="DEFAULT_ADMIN_ROLE"):
            timelock.grant_role(STRANGER, PROPOSER_ROLE, STRANGER)
        assert not timelock.has_role(PROPOSER_ROLE, STRANGER)

    def test_missing_role_is_unauthorized(self):
        timelock = make_timelock()
        with pytest.raises(UnauthorizedError) as exc_info:
            timelock.revoke_role(STRANGER, PROPOSER_ROLE, PROPOSER)
        assert exc_info.value.account == STRANGER
        assert exc_info.value.role == DEFAULT_ADMIN_ROLE

    def test_revoke(self):
        timelock = make_timelock()
        timelock.revoke_role(DEPLOYER, PROPOSER_ROLE, PROPOSER)
        assert not timelock.has_role(PROPOSER_ROLE, PROPOSER)
        assert timelock.chain.last_event(RoleRevoked).account == PROPOSER

    def test_renounce_self(self):
        timelock = make_timelock()
        timelock.renounce_role(PROPOSER, PROPOSER_ROLE, PROPOSER)
        assert not timelock.has_role(PROPOSER_ROLE, PROPOSER)

    def test_renounce_for_other_raises(self):
        timelock = make_timelock()
        with pytest.raises(UnauthorizedError, match="renounce roles for self"):
            timelock.renounce_role(STRANGER, PROPOSER_ROLE, PROPOSER)

    def test_revoked_admin_loses_control(self):
        timelock = make_timelock()
        timelock.revoke_role(DEPLOYER, DEFAULT_ADMIN_ROLE, DEPLOYER)
        with pytest.raises(MissingRoleError):
            timelock.grant_role(DEPLOYER, PROPOSER_ROLE, STRANGER)


# ══════════════════════════════════════════════════════════════════════
#  SCHEDULING
# ══════════════════════════════════════════════════════════════════════


class TestSchedule:
    """schedule() / scheduleBatch()"""

    def test_schedule(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        op_id = schedule_store(timelock, box, 1)
        target, value, data = store_call(box, 1)
        assert op_id == timelock.hash_operation(target, value, data, ZERO_BYTES32, SALT)
        assert timelock.get_timestamp(op_id) == timelock.chain.timestamp + MIN_DELAY
        assert timelock.get_operation_state(op_id) == OperationState.WAITING
        assert timelock.is_operation(op_id)
        assert timelock.is_operation_pending(op_id)
        assert not timelock.is_operation_ready(op_id)

    def test_schedule_events(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        op_id = schedule_store(timelock, box, 1)
        scheduled = timelock.chain.last_event(CallScheduled)
        assert scheduled.id == op_id
        assert scheduled.index == 0
        assert scheduled.target == box.address
        assert scheduled.delay == MIN_DELAY
        assert timelock.chain.last_event(CallSalt) == CallSalt(op_id, SALT)

    def test_zero_salt_emits_no_salt_event(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        schedule_store(timelock, box, 1, salt=ZERO_BYTES32)
        assert timelock.chain.events(CallSalt) == []

    def test_unset_operation(self):
        timelock = make_timelock()
        op_id = to_bytes32(123)
        assert timelock.get_operation_state(op_id) == OperationState.UNSET
        assert timelock.get_timestamp(op_id) == 0
        assert not timelock.is_operation(op_id)

    def test_schedule_requires_proposer(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        target, value, data = store_call(box, 1)
        with pytest.raises(MissingRoleError, match="PROPOSER_ROLE"):
            timelock.schedule(STRANGER, target, value, data, ZERO_BYTES32, SALT, MIN_DELAY)

    def test_duplicate_schedule_raises(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        schedule_store(timelock, box, 1)
        with pytest.raises(AlreadyScheduledError):
            schedule_store(timelock, box, 1)

    def test_same_call_with_other_salt_is_distinct(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        first = schedule_store(timelock, box, 1)
        second = schedule_store(timelock, box, 1, salt=to_bytes32(8))
        assert first != second

    def test_delay_below_minimum_raises(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        with pytest.raises(DelayTooShortError, match="below minimum"):
            schedule_store(timelock, box, 1, delay=MIN_DELAY - 1)

    def test_longer_delay_allowed(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        op_id = schedule_store(timelock, box, 1, delay=MIN_DELAY * 3)
        assert timelock.get_timestamp(op_id) == timelock.chain.timestamp + MIN_DELAY * 3

    def test_schedule_batch(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        data = [encode_function_call("store(uint256)", v) for v in (1, 2)]
        op_id = timelock.schedule_batch(
            PROPOSER, [box.address, box.address], [0, 0], data, ZERO_BYTES32, SALT, MIN_DELAY,
        )
        assert op_id == timelock.hash_operation_batch(
            [box.address, box.address], [0, 0], data, ZERO_BYTES32, SALT,
        )
        assert [e.index for e in timelock.chain.events(CallScheduled)] == [0, 1]

    def test_batch_length_mismatch_raises(self):
        timelock = make_timelock()
        with pytest.raises(InvalidParameterError, match="length mismatch"):
            timelock.schedule_batch(
                PROPOSER, [STRANGER], [0, 0], [b""], ZERO_BYTES32, SALT, MIN_DELAY,
            )

    def test_single_and_batch_ids_differ(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        target, value, data = store_call(box, 1)
        single = timelock.hash_operation(target, value, data, ZERO_BYTES32, SALT)
        batch = timelock.hash_operation_batch([target], [value], [data], ZERO_BYTES32, SALT)
        assert single != batch

    @pytest.mark.parametrize("value", [-1, 2 ** 256])
    def test_value_outside_uint256(self, value):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        target, _, data = store_call(box, 1)
        with pytest.raises(InvalidParameterError, match="uint256"):
            timelock.schedule(PROPOSER, target, value, data, ZERO_BYTES32, SALT, MIN_DELAY)
        with pytest.raises(InvalidParameterError, match="uint256"):
            timelock.schedule_batch(
                PROPOSER, [target], [value], [data], ZERO_BYTES32, SALT, MIN_DELAY,
            )
        with pytest.raises(InvalidParameterError, match="uint256"):
            timelock.execute(EXECUTOR, target, value, data, ZERO_BYTES32, SALT)

    @pytest.mark.parametrize("salt", [b"\x07", "0xzz", -7])
    def test_malformed_salt(self, salt):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        with pytest.raises(InvalidParameterError):
            schedule_store(timelock, box, 1, salt=salt)
        with pytest.raises(InvalidParameterError):
            execute_store(timelock, box, 1, salt=salt)

    def test_payload_must_be_bytes(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        with pytest.raises(InvalidParameterError, match="payload must be bytes"):
            timelock.schedule(PROPOSER, box.address, 0, "0x6057361d", ZERO_BYTES32, SALT, MIN_DELAY)

    def test_malformed_delay(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        with pytest.raises(InvalidParameterError, match="must be an integer"):
            schedule_store(timelock, box, 1, delay="10")
        with pytest.raises(InvalidParameterError, match="delay out of uint256 range"):
            schedule_store(timelock, box, 1, delay=2 ** 256)
        assert timelock.chain.events(CallScheduled) == []

    def test_negative_min_delay_raises(self):
        with pytest.raises(InvalidParameterError):
            make_timelock(min_delay=-1)


# ══════════════════════════════════════════════════════════════════════
#  EXECUTION
# ══════════════════════════════════════════════════════════════════════


class TestExecute:
    """execute() / executeBatch()"""

    def test_not_ready_at_every_timestamp_before_ready(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        op_id = schedule_store(timelock, box, 42)
        ready = timelock.get_timestamp(op_id)
        attempts = 0
        # each attempt is mined one second after the previous block
        while timelock.chain.timestamp + 1 < ready:
            with pytest.raises(NotReadyError):
                execute_store(timelock, box, 42)
            attempts += 1
        assert attempts == MIN_DELAY - 1
        execute_store(timelock, box, 42)
        assert timelock.chain.timestamp == ready
        assert box.retrieve() == 42

    def test_execute_when_ready(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        op_id = schedule_store(timelock, box, 5)
        wait_until_ready(timelock, op_id)
        assert timelock.get_operation_state(op_id) == OperationState.READY
        execute_store(timelock, box, 5)
        assert box.retrieve() == 5
        assert timelock.is_operation_done(op_id)
        assert not timelock.is_operation_pending(op_id)
        assert timelock.get_timestamp(op_id) == 1
        assert timelock.chain.last_event(CallExecuted).id == op_id

    def test_execute_unset_raises_not_ready(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        with pytest.raises(NotReadyError, match="UNSET"):
            execute_store(timelock, box, 5)

    def test_execute_twice_raises(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        op_id = schedule_store(timelock, box, 5)
        wait_until_ready(timelock, op_id)
        execute_store(timelock, box, 5)
        with pytest.raises(AlreadyDoneError):
            execute_store(timelock, box, 5)

    def test_reschedule_after_done_raises(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        op_id = schedule_store(timelock, box, 5)
        wait_until_ready(timelock, op_id)
        execute_store(timelock, box, 5)
        with pytest.raises(DuplicateError):
            schedule_store(timelock, box, 5)

    def test_execute_requires_executor(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        op_id = schedule_store(timelock, box, 5)
        wait_until_ready(timelock, op_id)
        with pytest.raises(MissingRoleError, match="EXECUTOR_ROLE"):
            execute_store(timelock, box, 5, caller=STRANGER)

    def test_open_executor_role(self):
        timelock = make_timelock()
        timelock.grant_role(DEPLOYER, EXECUTOR_ROLE, ZERO_ADDRESS)
        box = make_governed_box(timelock)
        op_id = schedule_store(timelock, box, 5)
        wait_until_ready(timelock, op_id)
        execute_store(timelock, box, 5, caller=STRANGER)
        assert box.retrieve() == 5

    def test_predecessor_must_be_done(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        first = schedule_store(timelock, box, 1)
        second = schedule_store(timelock, box, 2, predecessor=first)
        wait_until_ready(timelock, second)
        with pytest.raises(PredecessorNotDoneError):
            execute_store(timelock, box, 2, predecessor=first)
        execute_store(timelock, box, 1)
        execute_store(timelock, box, 2, predecessor=first)
        assert box.retrieve() == 2

    def test_target_revert_is_wrapped_and_rolled_back(self):
        timelock = make_timelock()
        box = timelock.chain.deploy(Box, DEPLOYER)  # not owned by the timelock
        op_id = schedule_store(timelock, box, 9)
        wait_until_ready(timelock, op_id)
        with pytest.raises(TargetCallRevertedError) as exc_info:
            execute_store(timelock, box, 9)
        assert isinstance(exc_info.value.__cause__, NotOwnerError)
        assert exc_info.value.target == box.address
        assert exc_info.value.index == 0
        assert box.retrieve() == 0
        assert timelock.is_operation_ready(op_id)
        assert timelock.chain.events(CallExecuted) == []

    def test_batch_is_all_or_nothing(self):
        timelock = make_timelock()
        governed = make_governed_box(timelock)
        foreign = timelock.chain.deploy(Box, DEPLOYER)
        targets = [governed.address, foreign.address]
        data = [encode_function_call("store(uint256)", 3)] * 2
        op_id = timelock.schedule_batch(PROPOSER, targets, [0, 0], data, ZERO_BYTES32, SALT, MIN_DELAY)
        wait_until_ready(timelock, op_id)
        with pytest.raises(TargetCallRevertedError) as exc_info:
            timelock.execute_batch(EXECUTOR, targets, [0, 0], data, ZERO_BYTES32, SALT)
        assert exc_info.value.index == 1
        assert governed.retrieve() == 0
        assert not timelock.is_operation_done(op_id)

    def test_execute_batch(self):
        timelock = make_timelock()
        box1 = make_governed_box(timelock)
        box2 = make_governed_box(timelock)
        targets = [box1.address, box2.address]
        data = [encode_function_call("store(uint256)", v) for v in (10, 20)]
        op_id = timelock.schedule_batch(PROPOSER, targets, [0, 0], data, ZERO_BYTES32, SALT, MIN_DELAY)
        wait_until_ready(timelock, op_id)
        timelock.execute_batch(EXECUTOR, targets, [0, 0], data, ZERO_BYTES32, SALT)
        assert (box1.retrieve(), box2.retrieve()) == (10, 20)
        assert [e.index for e in timelock.chain.events(CallExecuted)] == [0, 1]

    def test_call_with_data_to_account_reverts(self):
        timelock = make_timelock()
        op_id = timelock.schedule(PROPOSER, STRANGER, 0, b"\x01\x02\x03\x04", ZERO_BYTES32, SALT, MIN_DELAY)
        wait_until_ready(timelock, op_id)
        with pytest.raises(TargetCallRevertedError) as exc_info:
            timelock.execute(EXECUTOR, STRANGER, 0, b"\x01\x02\x03\x04", ZERO_BYTES32, SALT)
        assert isinstance(exc_info.value.__cause__, CallError)


# ══════════════════════════════════════════════════════════════════════
#  GRACE PERIOD
# ══════════════════════════════════════════════════════════════════════


class TestGracePeriod:
    """Ready operations expire once the grace period is over."""

    def test_disabled_by_default(self):
        timelock = make_timelock()
        box = make_governed_box(timelock)
        op_id = schedule_store(timelock, box, 1)
        timelock.chain.increase_time(10_000_000)
        assert not timelock.is_operation_expired(op_id)
        execute_store(timelock, box, 1)
        assert box.retrieve() == 1

    def test_execute_within_grace(self):
        timelock = make_timelock(grace_period=5)
        box = make_governed_box(timelock)
        op_id = schedule_store(timelock, box, 1)
        timelock.chain.set_next_block_timestamp(timelock.get_timestamp(op_id) + 4)
        execute_store(timelock, box, 1)
        assert box.retrieve() == 1

    def test_expired_operation_raises(self):
        timelock = make_timelock(grace_period=5)
        box = make_governed_box(timelock)
        op_id = schedule_store(timelock, box, 1)
        timelock.chain.set_next_block_timestamp(timelock.get_timestamp(op_id) + 5)
        with pytest.raises(OperationExpiredError, match="expired"):
            execute_store(timelock, box, 1)
        assert timelock.is_operation_expired(op_id)
        assert box.retrieve() == 0

    def test_expired_is_invalid_state(self):
        assert issubclass(OperationExpiredError, InvalidStateError)
        assert issubclass(NotReadyError, InvalidStateError)

    def test_negative_grace_raises(self):
        with pytest.raises(InvalidParameterError, match="Grace"):
            make_timelock(grace_period=-1)


# ══════════════════════════════════════════════════════════════════════
#  SELF-ADMINISTRATION & VALUE
# ══════════════════════════════════════════════════════════════════════


class TestUpdateDelay:
    """updateDelay()"""

    def test_direct_call_rejected(self):
        timelock = make_timelock()
        with pytest.raises(OnlyTimelockError):
            timelock.update_delay(DEPLOYER, 1)
        assert timelock.get_min_delay() == MIN_DELAY

    def test_update_through_operation(self):
        timelock = make_timelock()
        data = encode_function_call("updateDelay(uint256)", 60)
        op_id = timelock.schedule(PROPOSER, timelock.address, 0, data, ZERO_BYTES32, SALT, MIN_DELAY)
        wait_until_ready(timelock, op_id)
        timelock.execute(EXECUTOR, timelock.address, 0, data, ZERO_BYTES32, SALT)
        assert timelock.get_min_delay() == 60
        assert timelock.chain.last_event(MinDelayChange) == MinDelayChange(MIN_DELAY, 60)

    def test_grant_role_through_operation(self):
        timelock = make_timelock(admin=None)
        data = encode_function_call("grantRole(bytes32,address)", PROPOSER_ROLE, STRANGER)
        op_id = timelock.schedule(PROPOSER, timelock.address, 0, data, ZERO_BYTES32, SALT, MIN_DELAY)
        wait_until_ready(timelock, op_id)
        timelock.execute(EXECUTOR, timelock.address, 0, data, ZERO_BYTES32, SALT)
        assert timelock.has_role(PROPOSER_ROLE, STRANGER)


class TestValue:
    """Native value custody."""

    def test_receive(self):
        timelock = make_timelock()
        chain = timelock.chain
        chain.set_balance(STRANGER, 100)
        chain.call(STRANGER, timelock.address, 60)
        assert chain.get_balance(timelock.address) == 60

    def test_forward_value(self):
        timelock = make_timelock()
        chain = timelock.chain
        chain.set_balance(timelock.address, 50)
        op_id = timelock.schedule(PROPOSER, STRANGER, 30, b"", ZERO_BYTES32, SALT, MIN_DELAY)
        wait_until_ready(timelock, op_id)
        timelock.execute(EXECUTOR, STRANGER, 30, b"", ZERO_BYTES32, SALT)
        assert chain.get_balance(STRANGER) == 30
        assert chain.get_balance(timelock.address) == 20

    def test_forward_more_than_held_reverts(self):
        timelock = make_timelock()
        op_id = timelock.schedule(PROPOSER, STRANGER, 30, b"", ZERO_BYTES32, SALT, MIN_DELAY)
        wait_until_ready(timelock, op_id)
        with pytest.raises(TargetCallRevertedError, match="Insufficient native balance"):
            timelock.execute(EXECUTOR, STRANGER, 30, b"", ZERO_BYTES32, SALT)

    def test_to_dict(self):
        d = make_timelock().to_dict()
        assert d["minDelay"] == MIN_DELAY
        assert d["operations"] == 0
