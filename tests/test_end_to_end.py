"""
End-to-End Governance Test Suite

Coverage:
  - full lifecycle: delegate → propose → vote → queue → wait → execute
  - state monotonicity along the lifecycle
  - snapshot immunity of weights and quorum
  - self-governance: settings, timelock delay and roles changed by proposal
  - checkpointed quorum fraction for proposals created before a change
"""

import os
import sys

import pytest

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from govdao.chain import Chain
from govdao.config import GovDAOConfig
from govdao.constants import GOVERNANCE_TOKEN_MAX_SUPPLY
from govdao.crypto import address_from_label, description_hash, encode_function_call
from govdao.governance import (
    PROPOSER_ROLE,
    CallScheduled,
    MinDelayChange,
    NotReadyError,
    ProposalState,
    VoteType,
    VotingPeriodSet,
    deploy_dao,
)


# ══════════════════════════════════════════════════════════════════════
#  HELPERS
# ══════════════════════════════════════════════════════════════════════

DEPLOYER = address_from_label("deployer")
ALICE = address_from_label("alice")
BOB = address_from_label("bob")
CAROL = address_from_label("carol")

SUPPLY = GOVERNANCE_TOKEN_MAX_SUPPLY
MIN_DELAY = 10

_ORDER = {
    ProposalState.PENDING: 0,
    ProposalState.ACTIVE: 1,
    ProposalState.SUCCEEDED: 2,
    ProposalState.DEFEATED: 2,
    ProposalState.QUEUED: 3,
    ProposalState.EXPIRED: 4,
    ProposalState.EXECUTED: 4,
}


def make_dao(min_delay=MIN_DELAY):
    """DAO whose supply is split between three self-delegated holders."""
    config = GovDAOConfig()
    config.timelock.min_delay = min_delay
    dao = deploy_dao(Chain(), DEPLOYER, config)
    share = SUPPLY // 3
    dao.token.transfer(DEPLOYER, BOB, share)
    dao.token.transfer(DEPLOYER, CAROL, share)
    for holder in (DEPLOYER, BOB, CAROL):
        dao.token.delegate(holder, holder)
    return dao


def run_proposal(dao, targets, calldatas, description, voters=(DEPLOYER, BOB, CAROL)):
    """Take a proposal through to Queued and wait out the timelock delay."""
    governor = dao.governor
    values = [0] * len(targets)
    proposal_id = governor.propose(DEPLOYER, targets, values, calldatas, description)
    for voter in voters:
        governor.cast_vote(voter, proposal_id, VoteType.FOR)
    dao.chain.mine(governor.proposal_deadline(proposal_id) - dao.chain.block_number + 1)
    governor.queue(DEPLOYER, targets, values, calldatas, description_hash(description))
    dao.chain.increase_time(dao.timelock.get_min_delay())
    return proposal_id


def execute_proposal(dao, targets, calldatas, description):
    values = [0] * len(targets)
    return dao.governor.execute(ALICE, targets, values, calldatas, description_hash(description))


# ══════════════════════════════════════════════════════════════════════
#  LIFECYCLE
# ══════════════════════════════════════════════════════════════════════


class TestLifecycle:
    """Delegate → propose → vote → queue → execute."""

    def test_full_lifecycle(self):
        dao = make_dao()
        chain, governor, timelock, box = dao.chain, dao.governor, dao.timelock, dao.box

        delegated_at = chain.block_number
        chain.mine()

        targets = [box.address]
        values = [0]
        calldatas = [encode_function_call("store(uint256)", 77)]
        description = "Proposal #1: store 77 in the Box"
        proposal_id = governor.propose(DEPLOYER, targets, values, calldatas, description)
        assert chain.block_number == delegated_at + 2
        assert governor.state(proposal_id) == ProposalState.PENDING

        chain.mine()
        assert governor.state(proposal_id) == ProposalState.ACTIVE
        for voter in (DEPLOYER, BOB, CAROL):
            governor.cast_vote(voter, proposal_id, VoteType.FOR)
        assert governor.proposal_votes(proposal_id) == (0, SUPPLY, 0)

        chain.mine(5)
        assert governor.state(proposal_id) == ProposalState.SUCCEEDED

        governor.queue(DEPLOYER, targets, values, calldatas, description_hash(description))
        assert governor.state(proposal_id) == ProposalState.QUEUED
        scheduled = chain.last_event(CallScheduled)
        assert scheduled.delay == MIN_DELAY
        assert scheduled.target == box.address
        assert scheduled.data == calldatas[0]

        eta = governor.proposal_eta(proposal_id)
        while chain.timestamp + 1 < eta:
            with pytest.raises(NotReadyError):
                execute_proposal(dao, targets, calldatas, description)
        assert governor.state(proposal_id) == ProposalState.QUEUED
        assert box.retrieve() == 0

        execute_proposal(dao, targets, calldatas, description)
        assert chain.timestamp == eta
        assert box.retrieve() == 77
        assert governor.state(proposal_id) == ProposalState.EXECUTED
        assert timelock.is_operation_done(governor.get_proposal(proposal_id).operation_id)

    def test_states_are_monotonic(self):
        dao = make_dao()
        governor = dao.governor
        targets = [dao.box.address]
        calldatas = [encode_function_call("store(uint256)", 5)]
        description = "Store 5"
        proposal_id = governor.propose(DEPLOYER, targets, [0], calldatas, description)

        seen = [governor.state(proposal_id)]
        governor.cast_vote(DEPLOYER, proposal_id, VoteType.FOR)
        seen.append(governor.state(proposal_id))
        for _ in range(7):
            dao.chain.mine()
            seen.append(governor.state(proposal_id))
        governor.queue(DEPLOYER, targets, [0], calldatas, description_hash(description))
        seen.append(governor.state(proposal_id))
        dao.chain.increase_time(MIN_DELAY)
        seen.append(governor.state(proposal_id))
        execute_proposal(dao, targets, calldatas, description)
        for _ in range(3):
            dao.chain.mine()
            seen.append(governor.state(proposal_id))

        ranks = [_ORDER[s] for s in seen]
        assert ranks == sorted(ranks)
        assert ProposalState.ACTIVE in seen
        assert seen[-1] == ProposalState.EXECUTED
        assert [s for i, s in enumerate(seen) if i == 0 or seen[i - 1] != s] == [
            ProposalState.PENDING,
            ProposalState.ACTIVE,
            ProposalState.SUCCEEDED,
            ProposalState.QUEUED,
            ProposalState.EXECUTED,
        ]


# ══════════════════════════════════════════════════════════════════════
#  SNAPSHOTS
# ══════════════════════════════════════════════════════════════════════


class TestSnapshotImmunity:
    """Balance changes after the snapshot never change the outcome."""

    def test_transfers_after_snapshot(self):
        dao = make_dao()
        governor, token = dao.governor, dao.token
        targets = [dao.box.address]
        calldatas = [encode_function_call("store(uint256)", 1)]
        proposal_id = governor.propose(DEPLOYER, targets, [0], calldatas, "Store 1")
        snapshot = governor.proposal_snapshot(proposal_id)

        # BOB and CAROL move everything to ALICE after the snapshot
        token.transfer(BOB, ALICE, token.balance_of(BOB))
        token.transfer(CAROL, ALICE, token.balance_of(CAROL))
        token.delegate(ALICE, ALICE)

        assert governor.cast_vote(ALICE, proposal_id, VoteType.FOR) == 0
        assert governor.cast_vote(BOB, proposal_id, VoteType.AGAINST) == SUPPLY // 3
        assert governor.cast_vote(CAROL, proposal_id, VoteType.AGAINST) == SUPPLY // 3
        assert governor.get_votes(BOB, snapshot) == SUPPLY // 3
        assert token.get_votes(BOB) == 0

        dao.chain.mine(governor.proposal_deadline(proposal_id) - dao.chain.block_number + 1)
        assert governor.state(proposal_id) == ProposalState.DEFEATED

    def test_delegation_after_snapshot(self):
        dao = make_dao()
        governor, token = dao.governor, dao.token
        targets = [dao.box.address]
        calldatas = [encode_function_call("store(uint256)", 2)]
        proposal_id = governor.propose(DEPLOYER, targets, [0], calldatas, "Store 2")

        token.delegate(BOB, DEPLOYER)
        assert token.get_votes(DEPLOYER) == SUPPLY - SUPPLY // 3
        assert governor.cast_vote(DEPLOYER, proposal_id, VoteType.FOR) == SUPPLY - 2 * (SUPPLY // 3)
        assert governor.cast_vote(BOB, proposal_id, VoteType.FOR) == SUPPLY // 3


# ══════════════════════════════════════════════════════════════════════
#  SELF-GOVERNANCE
# ══════════════════════════════════════════════════════════════════════


class TestSelfGovernance:
    """Settings of the governor and timelock changed by proposal."""

    def test_update_governor_settings(self):
        dao = make_dao()
        governor = dao.governor
        targets = [governor.address, governor.address]
        calldatas = [
            encode_function_call("setVotingPeriod(uint256)", 10),
            encode_function_call("setProposalThreshold(uint256)", 1000),
        ]
        description = "Lengthen voting and require 1000 votes to propose"
        run_proposal(dao, targets, calldatas, description)
        execute_proposal(dao, targets, calldatas, description)

        assert governor.voting_period() == 10
        assert governor.proposal_threshold() == 1000
        assert dao.chain.last_event(VotingPeriodSet) == VotingPeriodSet(5, 10)

        proposal_id = governor.propose(
            DEPLOYER, [dao.box.address], [0], [encode_function_call("store(uint256)", 3)], "Store 3",
        )
        proposal = governor.get_proposal(proposal_id)
        assert proposal.vote_end - proposal.vote_start == 10

    def test_quorum_numerator_is_checkpointed(self):
        dao = make_dao()
        governor = dao.governor
        earlier = governor.propose(
            DEPLOYER, [dao.box.address], [0], [encode_function_call("store(uint256)", 4)], "Store 4",
        )
        targets = [governor.address]
        calldatas = [encode_function_call("updateQuorumNumerator(uint256)", 50)]
        description = "Raise quorum to 50%"
        run_proposal(dao, targets, calldatas, description)
        execute_proposal(dao, targets, calldatas, description)

        snapshot = governor.proposal_snapshot(earlier)
        assert governor.quorum_numerator() == 50
        assert governor.quorum_numerator(snapshot) == 4
        assert governor.quorum(snapshot) == SUPPLY * 4 // 100

    def test_update_timelock_delay(self):
        dao = make_dao()
        targets = [dao.timelock.address]
        calldatas = [encode_function_call("updateDelay(uint256)", 60)]
        description = "Raise the timelock delay to one minute"
        run_proposal(dao, targets, calldatas, description)
        execute_proposal(dao, targets, calldatas, description)

        assert dao.timelock.get_min_delay() == 60
        assert dao.chain.last_event(MinDelayChange) == MinDelayChange(MIN_DELAY, 60)

    def test_grant_role_by_proposal(self):
        dao = make_dao()
        targets = [dao.timelock.address]
        calldatas = [encode_function_call("grantRole(bytes32,address)", PROPOSER_ROLE, ALICE)]
        description = "Let ALICE schedule operations"
        run_proposal(dao, targets, calldatas, description)
        assert not dao.timelock.has_role(PROPOSER_ROLE, ALICE)
        execute_proposal(dao, targets, calldatas, description)
        assert dao.timelock.has_role(PROPOSER_ROLE, ALICE)

    def test_minority_cannot_pass(self):
        dao = make_dao()
        targets = [dao.box.address]
        calldatas = [encode_function_call("store(uint256)", 9)]
        description = "Store 9"
        governor = dao.governor
        proposal_id = governor.propose(BOB, targets, [0], calldatas, description)
        governor.cast_vote(BOB, proposal_id, VoteType.FOR)
        governor.cast_vote(DEPLOYER, proposal_id, VoteType.AGAINST)
        governor.cast_vote(CAROL, proposal_id, VoteType.AGAINST)
        dao.chain.mine(governor.proposal_deadline(proposal_id) - dao.chain.block_number + 1)
        assert governor.state(proposal_id) == ProposalState.DEFEATED
