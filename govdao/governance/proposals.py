"""
Proposal Data Model

Defines the derived lifecycle states, the stored proposal record and the
proposal events emitted by the governor.

A proposal's state is never stored: it is recomputed from the record,
the tally, the current block and the timelock on every query.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Optional, Tuple

from ..exceptions import (
    DuplicateError,
    InvalidParameterError,
    InvalidQueryError,
    InvalidStateError,
    UnauthorizedError,
)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class InvalidProposalError(InvalidParameterError):
    """Targets / values / calldatas empty or of different lengths."""


class DuplicateProposalError(DuplicateError):
    """Same (targets, values, calldatas, description) already proposed."""


class UnknownProposalError(InvalidQueryError):
    """No proposal with the given id."""


class InsufficientProposerVotesError(UnauthorizedError):
    """Proposer's past voting power is below the proposal threshold."""


class OnlyProposerError(UnauthorizedError):
    """Only the proposer may cancel."""


class OnlyGovernanceError(UnauthorizedError):
    """Setting reserved to the governance executor."""


class UnexpectedProposalStateError(InvalidStateError):
    """Proposal is not in a state that allows the requested transition."""

    def __init__(self, proposal_id: int, current: "ProposalState", expected: Tuple["ProposalState", ...]):
        self.proposal_id = proposal_id
        self.current = current
        self.expected = expected
        wanted = " or ".join(s.name for s in expected)
        super().__init__(
            f"Proposal {proposal_id} is {current.name}, expected {wanted}"
        )


# ══════════════════════════════════════════════════════════════════════
#  ENUMS
# ══════════════════════════════════════════════════════════════════════

class ProposalState(IntEnum):
    """Derived lifecycle stage."""
    PENDING = 0     # Voting not yet open
    ACTIVE = 1      # Voting window open
    CANCELED = 2    # Withdrawn by proposer (terminal)
    DEFEATED = 3    # Window closed, not passed (terminal)
    SUCCEEDED = 4   # Window closed, passed, not queued
    QUEUED = 5      # Scheduled on the timelock
    EXPIRED = 6     # Passed but outlived the grace period (terminal)
    EXECUTED = 7    # Timelock operation done (terminal)

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset({
    ProposalState.CANCELED,
    ProposalState.DEFEATED,
    ProposalState.EXPIRED,
    ProposalState.EXECUTED,
})


# ══════════════════════════════════════════════════════════════════════
#  PROPOSAL
# ══════════════════════════════════════════════════════════════════════

@dataclass
class ProposalCore:
    """
    Stored proposal record.

    Fields:
        id:                Fingerprint of (targets, values, calldatas, description hash)
        proposer:          Address that submitted the proposal
        targets:           Call targets, executed in order
        values:            Native value forwarded with each call
        calldatas:         Encoded call payloads
        description:       Human-readable description
        description_hash:  keccak256 of the description
        created_block:     Block the proposal was submitted in
        vote_start:        First block of the voting window
        vote_end:          Last block of the voting window (inclusive)
        executed:          Set once executed through the governor
        canceled:          Set once canceled by the proposer
        operation_id:      Timelock operation id once queued
        eta:               Timestamp from which the operation can run
    """
    id: int
    proposer: str
    targets: List[str]
    values: List[int]
    calldatas: List[bytes]
    description: str
    description_hash: bytes
    created_block: int
    vote_start: int
    vote_end: int
    executed: bool = False
    canceled: bool = False
    operation_id: Optional[bytes] = None
    eta: int = 0

    @property
    def snapshot(self) -> int:
        """Block whose end state weighs votes and sizes the quorum."""
        return self.vote_start - 1

    @property
    def is_queued(self) -> bool:
        return self.operation_id is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "proposer": self.proposer,
            "targets": list(self.targets),
            "values": [str(v) for v in self.values],
            "calldatas": ["0x" + c.hex() for c in self.calldatas],
            "description": self.description,
            "descriptionHash": "0x" + self.description_hash.hex(),
            "createdBlock": self.created_block,
            "voteStart": self.vote_start,
            "voteEnd": self.vote_end,
            "executed": self.executed,
            "canceled": self.canceled,
            "operationId": "0x" + self.operation_id.hex() if self.operation_id else None,
            "eta": self.eta,
        }

    def __repr__(self) -> str:
        return (
            f"<Proposal {str(self.id)[:12]}… by={self.proposer[:10]} "
            f"window=[{self.vote_start}, {self.vote_end}]>"
        )


# ══════════════════════════════════════════════════════════════════════
#  EVENTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ProposalCreated:
    proposal_id: int
    proposer: str
    targets: Tuple[str, ...]
    values: Tuple[int, ...]
    calldatas: Tuple[bytes, ...]
    snapshot: int
    vote_start: int
    vote_end: int
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "ProposalCreated",
            "proposalId": str(self.proposal_id),
            "proposer": self.proposer,
            "targets": list(self.targets),
            "values": [str(v) for v in self.values],
            "calldatas": ["0x" + c.hex() for c in self.calldatas],
            "snapshot": self.snapshot,
            "voteStart": self.vote_start,
            "voteEnd": self.vote_end,
            "description": self.description,
        }


@dataclass(frozen=True)
class ProposalQueued:
    proposal_id: int
    eta: int

    def to_dict(self) -> Dict[str, Any]:
        return {"event": "ProposalQueued", "proposalId": str(self.proposal_id), "eta": self.eta}


@dataclass(frozen=True)
class ProposalExecuted:
    proposal_id: int

    def to_dict(self) -> Dict[str, Any]:
        return {"event": "ProposalExecuted", "proposalId": str(self.proposal_id)}


@dataclass(frozen=True)
class ProposalCanceled:
    proposal_id: int

    def to_dict(self) -> Dict[str, Any]:
        return {"event": "ProposalCanceled", "proposalId": str(self.proposal_id)}
