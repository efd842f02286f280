"""
Governance Inspection

Read-only diagnostics over a deployed DAO, answering the questions an
operator asks before acting:
  - can this account propose right now?
  - is this queued proposal executable, and if not, for how long?
  - are the timelock roles wired correctly?
  - what happened when this proposal was queued?
None of these helpers mine blocks or mutate state.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..chain import LogEntry
from ..constants import ZERO_ADDRESS
from ..crypto.address import normalize_address
from .access import DEFAULT_ADMIN_ROLE, EXECUTOR_ROLE, PROPOSER_ROLE
from .governor import Governor
from .proposals import ProposalQueued, ProposalState
from .timelock import CallScheduled, OperationState, TimelockController


@dataclass(frozen=True)
class EligibilityReport:
    """Whether *account* may submit a proposal in the next block."""
    account: str
    balance: int
    delegate: str
    current_votes: int
    past_votes: int
    threshold: int
    block_number: int

    @property
    def self_delegated(self) -> bool:
        return self.delegate == self.account

    @property
    def eligible(self) -> bool:
        return self.past_votes >= self.threshold

    @property
    def reason(self) -> str:
        if self.eligible:
            return "eligible"
        if self.delegate == ZERO_ADDRESS:
            return "balance not delegated; delegate (e.g. to self) and wait one block"
        if self.current_votes >= self.threshold:
            return "voting power activated this block; wait one block"
        return f"insufficient voting power: have {self.past_votes}, need {self.threshold}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account": self.account,
            "balance": str(self.balance),
            "delegate": self.delegate,
            "selfDelegated": self.self_delegated,
            "currentVotes": str(self.current_votes),
            "pastVotes": str(self.past_votes),
            "threshold": str(self.threshold),
            "blockNumber": self.block_number,
            "eligible": self.eligible,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class ReadinessReport:
    """Execution readiness of a proposal's timelock operation."""
    proposal_id: int
    state: ProposalState
    operation_id: Optional[bytes]
    operation_state: OperationState
    ready_at: int
    now: int

    @property
    def seconds_remaining(self) -> int:
        if self.operation_state != OperationState.WAITING:
            return 0
        return self.ready_at - self.now

    @property
    def ready(self) -> bool:
        return self.state == ProposalState.QUEUED and self.operation_state == OperationState.READY

    @property
    def done(self) -> bool:
        return self.operation_state == OperationState.DONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proposalId": str(self.proposal_id),
            "state": self.state.name,
            "operationId": "0x" + self.operation_id.hex() if self.operation_id else None,
            "operationState": self.operation_state.name,
            "readyAt": self.ready_at,
            "now": self.now,
            "secondsRemaining": self.seconds_remaining,
            "ready": self.ready,
            "done": self.done,
        }


@dataclass(frozen=True)
class RoleReport:
    """Timelock role wiring after bootstrap."""
    governor_is_proposer: bool
    open_executor: bool
    deployer_is_admin: bool
    timelock_is_self_admin: bool

    @property
    def decentralized(self) -> bool:
        return (
            self.governor_is_proposer
            and self.open_executor
            and not self.deployer_is_admin
            and self.timelock_is_self_admin
        )

    def problems(self) -> List[str]:
        found = []
        if not self.governor_is_proposer:
            found.append("governor lacks PROPOSER_ROLE")
        if not self.open_executor:
            found.append("EXECUTOR_ROLE not open to anyone")
        if self.deployer_is_admin:
            found.append("deployer still holds DEFAULT_ADMIN_ROLE")
        if not self.timelock_is_self_admin:
            found.append("timelock does not administer itself")
        return found

    def to_dict(self) -> Dict[str, Any]:
        return {
            "governorIsProposer": self.governor_is_proposer,
            "openExecutor": self.open_executor,
            "deployerIsAdmin": self.deployer_is_admin,
            "timelockIsSelfAdmin": self.timelock_is_self_admin,
            "decentralized": self.decentralized,
        }


def check_eligibility(governor: Governor, account: str) -> EligibilityReport:
    """Report whether *account* clears the proposal threshold."""
    account = normalize_address(account)
    token = governor.token
    block = governor.clock()
    past_votes = token.get_past_votes(account, block - 1) if block > 0 else 0
    return EligibilityReport(
        account=account,
        balance=token.balance_of(account),
        delegate=token.delegates(account),
        current_votes=token.get_votes(account),
        past_votes=past_votes,
        threshold=governor.proposal_threshold(),
        block_number=block,
    )


def execution_readiness(governor: Governor, proposal_id: int) -> ReadinessReport:
    """Report the proposal state together with its timelock operation state."""
    state = governor.state(proposal_id)
    proposal = governor.get_proposal(proposal_id)
    timelock = governor.timelock
    if proposal.operation_id is None:
        op_state, ready_at = OperationState.UNSET, 0
    else:
        op_state = timelock.get_operation_state(proposal.operation_id)
        ready_at = timelock.get_timestamp(proposal.operation_id)
    return ReadinessReport(
        proposal_id=proposal_id,
        state=state,
        operation_id=proposal.operation_id,
        operation_state=op_state,
        ready_at=ready_at,
        now=timelock.block_timestamp,
    )


def check_roles(timelock: TimelockController, governor: Governor, deployer: str) -> RoleReport:
    return RoleReport(
        governor_is_proposer=timelock.has_role(PROPOSER_ROLE, governor.address),
        open_executor=timelock.has_role(EXECUTOR_ROLE, ZERO_ADDRESS),
        deployer_is_admin=timelock.has_role(DEFAULT_ADMIN_ROLE, deployer),
        timelock_is_self_admin=timelock.has_role(DEFAULT_ADMIN_ROLE, timelock.address),
    )


def proposal_timeline(governor: Governor, proposal_id: int) -> Dict[str, Any]:
    """Key blocks and timestamps of a proposal."""
    proposal = governor.get_proposal(proposal_id)
    return {
        "proposalId": str(proposal_id),
        "state": governor.state(proposal_id).name,
        "createdBlock": proposal.created_block,
        "snapshot": proposal.snapshot,
        "voteStart": proposal.vote_start,
        "deadline": proposal.vote_end,
        "currentBlock": governor.clock(),
        "eta": proposal.eta or None,
        "now": governor.block_timestamp,
    }


def queue_trace(governor: Governor, proposal_id: int) -> List[LogEntry]:
    """
    Events of the block that queued *proposal_id*: the governor's
    ProposalQueued plus the timelock's CallScheduled entries.

    Empty if the proposal was never queued.
    """
    chain = governor.chain
    proposal = governor.get_proposal(proposal_id)
    queued = [
        entry for entry in chain.logs(ProposalQueued, governor.address, proposal.snapshot)
        if entry.event.proposal_id == proposal_id
    ]
    if not queued:
        return []
    block = queued[0].block_number
    scheduled = [
        entry for entry in chain.logs(CallScheduled, governor.timelock_address, block)
        if entry.block_number == block and entry.event.id == proposal.operation_id
    ]
    return queued[:1] + scheduled
