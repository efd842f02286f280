"""
Governor: proposal registry and tally engine

Implements:
  - propose: structural check, proposer threshold at the previous block,
    duplicate detection by fingerprint, voting window from the settings
  - castVote / castVoteWithReason weighted by past votes at the snapshot
  - state: pure derivation from record, tally, clock and timelock
  - queue / execute through the timelock, cancel by the proposer
  - settings and quorum fraction, changeable only through governance
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..chain import Chain, Contract, external, transaction
from ..constants import (
    GOVERNANCE_PROPOSAL_THRESHOLD,
    GOVERNANCE_QUORUM_DENOMINATOR,
    GOVERNANCE_QUORUM_NUMERATOR,
    GOVERNANCE_VOTING_DELAY_BLOCKS,
    GOVERNANCE_VOTING_PERIOD_BLOCKS,
    ZERO_BYTES32,
)
from ..crypto.abi import check_payload, check_uint256, encode_proposal
from ..crypto.address import normalize_address
from ..crypto.hashing import description_hash as hash_description
from ..crypto.hashing import keccak256, to_bytes32
from ..exceptions import InvalidParameterError
from ..logger import get_logger
from ..tokens.checkpoints import Trace
from ..tokens.votes import GovernanceToken
from .proposals import (
    DuplicateProposalError,
    InsufficientProposerVotesError,
    InvalidProposalError,
    OnlyGovernanceError,
    OnlyProposerError,
    ProposalCanceled,
    ProposalCore,
    ProposalCreated,
    ProposalExecuted,
    ProposalQueued,
    ProposalState,
    UnexpectedProposalStateError,
    UnknownProposalError,
)
from .timelock import TimelockController
from .voting import COUNTING_MODE, NotActiveError, ProposalVote, VoteCast, VoteType

logger = get_logger(__name__)

AddressLike = Union[str, Contract]


def _address_of(contract: AddressLike) -> str:
    if isinstance(contract, Contract):
        return contract.address
    return normalize_address(contract)


def _proposal_actions(
    targets: Sequence[str],
    values: Sequence[int],
    calldatas: Sequence[bytes],
) -> Tuple[List[str], List[int], List[bytes]]:
    """Normalized copies of a proposal's action arrays."""
    return (
        [normalize_address(t) for t in targets],
        [check_uint256(v, "Proposal value", InvalidProposalError) for v in values],
        [check_payload(c, "Proposal calldata", InvalidProposalError) for c in calldatas],
    )


# ══════════════════════════════════════════════════════════════════════
#  SETTINGS EVENTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class VotingDelaySet:
    old_voting_delay: int
    new_voting_delay: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "VotingDelaySet",
            "oldVotingDelay": self.old_voting_delay,
            "newVotingDelay": self.new_voting_delay,
        }


@dataclass(frozen=True)
class VotingPeriodSet:
    old_voting_period: int
    new_voting_period: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "VotingPeriodSet",
            "oldVotingPeriod": self.old_voting_period,
            "newVotingPeriod": self.new_voting_period,
        }


@dataclass(frozen=True)
class ProposalThresholdSet:
    old_proposal_threshold: int
    new_proposal_threshold: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "ProposalThresholdSet",
            "oldProposalThreshold": str(self.old_proposal_threshold),
            "newProposalThreshold": str(self.new_proposal_threshold),
        }


@dataclass(frozen=True)
class QuorumNumeratorUpdated:
    old_quorum_numerator: int
    new_quorum_numerator: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "QuorumNumeratorUpdated",
            "oldQuorumNumerator": self.old_quorum_numerator,
            "newQuorumNumerator": self.new_quorum_numerator,
        }


# ══════════════════════════════════════════════════════════════════════
#  GOVERNOR
# ══════════════════════════════════════════════════════════════════════

class Governor(Contract):
    """
    Token-weighted governor bound to a timelock.

    Voting power comes from the token's checkpoints at each proposal's
    snapshot; approved proposals are scheduled on and executed through
    the timelock, which is also the only account allowed to change the
    governor's settings.

    Attributes:
        name:              Governor name
        token_address:     GovernanceToken providing voting power
        timelock_address:  TimelockController executing approved proposals
    """

    COUNTING_MODE = COUNTING_MODE

    def __init__(
        self,
        chain: Chain,
        deployer: str,
        token: AddressLike,
        timelock: AddressLike,
        name: str = "GovernorContract",
        voting_delay: int = GOVERNANCE_VOTING_DELAY_BLOCKS,
        voting_period: int = GOVERNANCE_VOTING_PERIOD_BLOCKS,
        proposal_threshold: int = GOVERNANCE_PROPOSAL_THRESHOLD,
        quorum_numerator: int = GOVERNANCE_QUORUM_NUMERATOR,
    ):
        token_address = _address_of(token)
        timelock_address = _address_of(timelock)
        if not isinstance(chain.get_contract(token_address), GovernanceToken):
            raise InvalidParameterError(f"{token_address} is not a GovernanceToken")
        if not isinstance(chain.get_contract(timelock_address), TimelockController):
            raise InvalidParameterError(f"{timelock_address} is not a TimelockController")
        self._check_voting_delay(voting_delay)
        self._check_voting_period(voting_period)
        self._check_proposal_threshold(proposal_threshold)
        self._check_quorum_numerator(quorum_numerator)

        super().__init__(chain, deployer)
        self.name = name
        self.token_address = token_address
        self.timelock_address = timelock_address

        self._voting_delay = 0
        self._voting_period = 0
        self._proposal_threshold = 0
        self._quorum_numerators = Trace()
        self._set_voting_delay(voting_delay)
        self._set_voting_period(voting_period)
        self._set_proposal_threshold(proposal_threshold)
        self._update_quorum_numerator(quorum_numerator)

        self._proposals: Dict[int, ProposalCore] = {}
        self._votes: Dict[int, ProposalVote] = {}

        logger.info(
            f"Governor '{name}' deployed at {self.address}: "
            f"delay={voting_delay} period={voting_period} "
            f"threshold={proposal_threshold} quorum={quorum_numerator}%"
        )

    # ── Bound contracts ───────────────────────────────────────────────

    @property
    def token(self) -> GovernanceToken:
        return self._contract(self.token_address)

    @property
    def timelock(self) -> TimelockController:
        return self._contract(self.timelock_address)

    # ── Fingerprint ───────────────────────────────────────────────────

    @staticmethod
    def hash_proposal(
        targets: Sequence[str],
        values: Sequence[int],
        calldatas: Sequence[bytes],
        description_hash: bytes,
    ) -> int:
        """uint256(keccak256(abi.encode(targets, values, calldatas, descriptionHash)))"""
        targets, values, calldatas = _proposal_actions(targets, values, calldatas)
        encoded = encode_proposal(targets, values, calldatas, to_bytes32(description_hash))
        return int.from_bytes(keccak256(encoded), "big")

    # ── Settings views ────────────────────────────────────────────────

    def voting_delay(self) -> int:
        return self._voting_delay

    def voting_period(self) -> int:
        return self._voting_period

    def proposal_threshold(self) -> int:
        return self._proposal_threshold

    def quorum_numerator(self, block_number: Optional[int] = None) -> int:
        if block_number is None:
            return self._quorum_numerators.latest()
        return self._quorum_numerators.upper_lookup(block_number)

    def quorum_denominator(self) -> int:
        return GOVERNANCE_QUORUM_DENOMINATOR

    def quorum(self, block_number: int) -> int:
        """Minimum participating weight for a proposal snapshotted at *block_number*."""
        supply = self.token.get_past_total_supply(block_number)
        return supply * self.quorum_numerator(block_number) // self.quorum_denominator()

    def get_votes(self, account: str, block_number: int) -> int:
        return self.token.get_past_votes(account, block_number)

    def clock(self) -> int:
        return self.token.clock()

    # ── Proposal views ────────────────────────────────────────────────

    def get_proposal(self, proposal_id: int) -> ProposalCore:
        proposal = self._proposals.get(proposal_id)
        if proposal is None:
            raise UnknownProposalError(f"Unknown proposal {proposal_id}")
        return proposal

    def proposal_snapshot(self, proposal_id: int) -> int:
        return self.get_proposal(proposal_id).snapshot

    def proposal_deadline(self, proposal_id: int) -> int:
        return self.get_proposal(proposal_id).vote_end

    def proposal_proposer(self, proposal_id: int) -> str:
        return self.get_proposal(proposal_id).proposer

    def proposal_eta(self, proposal_id: int) -> int:
        return self.get_proposal(proposal_id).eta

    def proposal_votes(self, proposal_id: int) -> Tuple[int, int, int]:
        """(against, for, abstain)"""
        self.get_proposal(proposal_id)
        return self._votes[proposal_id].as_tuple()

    def has_voted(self, proposal_id: int, account: str) -> bool:
        self.get_proposal(proposal_id)
        return self._votes[proposal_id].has_voted(normalize_address(account))

    @property
    def proposal_count(self) -> int:
        return len(self._proposals)

    def state(self, proposal_id: int) -> ProposalState:
        """
        Derive the lifecycle state of a proposal.

        Raises:
            UnknownProposalError: if no such proposal exists
        """
        proposal = self.get_proposal(proposal_id)
        if proposal.executed:
            return ProposalState.EXECUTED
        if proposal.canceled:
            return ProposalState.CANCELED

        current = self.clock()
        if current < proposal.vote_start:
            return ProposalState.PENDING
        if current <= proposal.vote_end:
            return ProposalState.ACTIVE

        tally = self._votes[proposal_id]
        if not tally.vote_succeeded() or not tally.quorum_reached(self.quorum(proposal.snapshot)):
            return ProposalState.DEFEATED

        grace = self.timelock.grace_period
        now = self.block_timestamp
        if proposal.is_queued:
            if self.timelock.is_operation_done(proposal.operation_id):
                return ProposalState.EXECUTED
            if grace and now >= proposal.eta + grace:
                return ProposalState.EXPIRED
            return ProposalState.QUEUED

        if grace and now >= self.chain.timestamp_at(proposal.vote_end) + grace:
            return ProposalState.EXPIRED
        return ProposalState.SUCCEEDED

    def _require_state(self, proposal_id: int, *allowed: ProposalState) -> ProposalState:
        current = self.state(proposal_id)
        if current not in allowed:
            raise UnexpectedProposalStateError(proposal_id, current, allowed)
        return current

    # ── Propose ───────────────────────────────────────────────────────

    @external("propose(address[],uint256[],bytes[],string)")
    @transaction
    def propose(
        self,
        proposer: str,
        targets: Sequence[str],
        values: Sequence[int],
        calldatas: Sequence[bytes],
        description: str,
    ) -> int:
        """
        Submit a proposal. Returns its id.

        Raises:
            InvalidProposalError:           empty, mismatched or out-of-range actions
            InsufficientProposerVotesError: votes at the previous block below threshold
            DuplicateProposalError:         same tuple already proposed
        """
        proposer = normalize_address(proposer)
        if len(targets) == 0:
            raise InvalidProposalError("Proposal has no actions")
        if not (len(targets) == len(values) == len(calldatas)):
            raise InvalidProposalError(
                f"Invalid proposal length: targets={len(targets)}, "
                f"values={len(values)}, calldatas={len(calldatas)}"
            )

        targets, values, calldatas = _proposal_actions(targets, values, calldatas)

        current = self.clock()
        proposer_votes = self.get_votes(proposer, current - 1)
        threshold = self.proposal_threshold()
        if proposer_votes < threshold:
            raise InsufficientProposerVotesError(
                f"Proposer {proposer} has {proposer_votes} votes, threshold is {threshold}"
            )

        desc_hash = hash_description(description)
        proposal_id = self.hash_proposal(targets, values, calldatas, desc_hash)
        if proposal_id in self._proposals:
            raise DuplicateProposalError(f"Proposal {proposal_id} already exists")

        vote_start = current + self.voting_delay()
        vote_end = vote_start + self.voting_period()
        self._proposals[proposal_id] = ProposalCore(
            id=proposal_id,
            proposer=proposer,
            targets=targets,
            values=values,
            calldatas=calldatas,
            description=description,
            description_hash=desc_hash,
            created_block=current,
            vote_start=vote_start,
            vote_end=vote_end,
        )
        self._votes[proposal_id] = ProposalVote()

        self._emit(ProposalCreated(
            proposal_id, proposer, tuple(targets), tuple(values), tuple(calldatas),
            self._proposals[proposal_id].snapshot, vote_start, vote_end, description,
        ))
        logger.info(
            f"Proposal {str(proposal_id)[:12]}… created by {proposer}: "
            f"voting blocks [{vote_start}, {vote_end}]"
        )
        return proposal_id

    # ── Vote ──────────────────────────────────────────────────────────

    @external("castVote(uint256,uint8)")
    @transaction
    def cast_vote(self, voter: str, proposal_id: int, support: int) -> int:
        """Cast a ballot. Returns the weight counted."""
        return self._cast_vote(voter, proposal_id, support, "")

    @external("castVoteWithReason(uint256,uint8,string)")
    @transaction
    def cast_vote_with_reason(self, voter: str, proposal_id: int, support: int, reason: str) -> int:
        return self._cast_vote(voter, proposal_id, support, reason)

    def _cast_vote(self, voter: str, proposal_id: int, support: int, reason: str) -> int:
        voter = normalize_address(voter)
        current = self.state(proposal_id)
        if current != ProposalState.ACTIVE:
            raise NotActiveError(f"Proposal {proposal_id} is {current.name}, voting not open")

        proposal = self._proposals[proposal_id]
        weight = self.get_votes(voter, proposal.snapshot)
        self._votes[proposal_id].count(voter, support, weight)

        self._emit(VoteCast(voter, proposal_id, support, weight, reason))
        logger.info(
            f"Vote on {str(proposal_id)[:12]}…: {voter} {VoteType.name(support)} weight={weight}"
        )
        return weight

    # ── Queue / Execute / Cancel ──────────────────────────────────────

    @external("queue(address[],uint256[],bytes[],bytes32)")
    @transaction
    def queue(
        self,
        caller: str,
        targets: Sequence[str],
        values: Sequence[int],
        calldatas: Sequence[bytes],
        description_hash: bytes,
    ) -> int:
        """Schedule a succeeded proposal on the timelock. Anyone may call."""
        proposal_id = self.hash_proposal(targets, values, calldatas, description_hash)
        self._require_state(proposal_id, ProposalState.SUCCEEDED)

        timelock = self.timelock
        delay = timelock.get_min_delay()
        salt = to_bytes32(description_hash)
        op_id = timelock.schedule_batch(
            self.address, targets, values, calldatas, ZERO_BYTES32, salt, delay,
        )

        proposal = self._proposals[proposal_id]
        proposal.operation_id = op_id
        proposal.eta = self.block_timestamp + delay
        self._emit(ProposalQueued(proposal_id, proposal.eta))
        logger.info(f"Proposal {str(proposal_id)[:12]}… queued, eta={proposal.eta}")
        return proposal_id

    @external("execute(address[],uint256[],bytes[],bytes32)")
    @transaction
    def execute(
        self,
        caller: str,
        targets: Sequence[str],
        values: Sequence[int],
        calldatas: Sequence[bytes],
        description_hash: bytes,
    ) -> int:
        """Run a queued proposal through the timelock. Anyone may call."""
        proposal_id = self.hash_proposal(targets, values, calldatas, description_hash)
        self._require_state(proposal_id, ProposalState.QUEUED)

        proposal = self._proposals[proposal_id]
        proposal.executed = True
        self._emit(ProposalExecuted(proposal_id))
        self.timelock.execute_batch(
            self.address, targets, values, calldatas, ZERO_BYTES32, to_bytes32(description_hash),
        )
        logger.info(f"Proposal {str(proposal_id)[:12]}… executed by {normalize_address(caller)}")
        return proposal_id

    @external("cancel(address[],uint256[],bytes[],bytes32)")
    @transaction
    def cancel(
        self,
        caller: str,
        targets: Sequence[str],
        values: Sequence[int],
        calldatas: Sequence[bytes],
        description_hash: bytes,
    ) -> int:
        """Withdraw a proposal that has not finished voting. Proposer only."""
        proposal_id = self.hash_proposal(targets, values, calldatas, description_hash)
        proposal = self.get_proposal(proposal_id)
        if normalize_address(caller) != proposal.proposer:
            raise OnlyProposerError(f"{caller} is not the proposer of {proposal_id}")
        self._require_state(proposal_id, ProposalState.PENDING, ProposalState.ACTIVE)

        proposal.canceled = True
        self._emit(ProposalCanceled(proposal_id))
        logger.info(f"Proposal {str(proposal_id)[:12]}… canceled")
        return proposal_id

    # ── Governance-only settings ──────────────────────────────────────

    def _only_governance(self, caller: str) -> None:
        if normalize_address(caller) != self.timelock_address:
            raise OnlyGovernanceError(f"{caller} is not the governance executor")

    @external("setVotingDelay(uint256)")
    @transaction
    def set_voting_delay(self, caller: str, new_voting_delay: int) -> None:
        self._only_governance(caller)
        self._set_voting_delay(new_voting_delay)

    @external("setVotingPeriod(uint256)")
    @transaction
    def set_voting_period(self, caller: str, new_voting_period: int) -> None:
        self._only_governance(caller)
        self._set_voting_period(new_voting_period)

    @external("setProposalThreshold(uint256)")
    @transaction
    def set_proposal_threshold(self, caller: str, new_threshold: int) -> None:
        self._only_governance(caller)
        self._set_proposal_threshold(new_threshold)

    @external("updateQuorumNumerator(uint256)")
    @transaction
    def update_quorum_numerator(self, caller: str, new_numerator: int) -> None:
        """New quorum fraction applies to proposals snapshotted from this block on."""
        self._only_governance(caller)
        self._update_quorum_numerator(new_numerator)

    @staticmethod
    def _check_voting_delay(value: int) -> None:
        if value < 0:
            raise InvalidParameterError(f"Voting delay cannot be negative: {value}")

    @staticmethod
    def _check_voting_period(value: int) -> None:
        if value <= 0:
            raise InvalidParameterError(f"Voting period must be positive: {value}")

    @staticmethod
    def _check_proposal_threshold(value: int) -> None:
        if value < 0:
            raise InvalidParameterError(f"Proposal threshold cannot be negative: {value}")

    @staticmethod
    def _check_quorum_numerator(value: int) -> None:
        if not 0 <= value <= GOVERNANCE_QUORUM_DENOMINATOR:
            raise InvalidParameterError(
                f"Quorum numerator {value} exceeds denominator {GOVERNANCE_QUORUM_DENOMINATOR}"
            )

    def _set_voting_delay(self, value: int) -> None:
        self._check_voting_delay(value)
        self._emit(VotingDelaySet(self._voting_delay, value))
        self._voting_delay = value

    def _set_voting_period(self, value: int) -> None:
        self._check_voting_period(value)
        self._emit(VotingPeriodSet(self._voting_period, value))
        self._voting_period = value

    def _set_proposal_threshold(self, value: int) -> None:
        self._check_proposal_threshold(value)
        self._emit(ProposalThresholdSet(self._proposal_threshold, value))
        self._proposal_threshold = value

    def _update_quorum_numerator(self, value: int) -> None:
        self._check_quorum_numerator(value)
        old = self._quorum_numerators.push(self.clock(), value)
        self._emit(QuorumNumeratorUpdated(old, value))

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "name": self.name,
            "token": self.token_address,
            "timelock": self.timelock_address,
            "votingDelay": self._voting_delay,
            "votingPeriod": self._voting_period,
            "proposalThreshold": str(self._proposal_threshold),
            "quorumNumerator": self.quorum_numerator(),
            "proposals": len(self._proposals),
        }
