"""
Simple Vote Counting

Implements:
  - Against / For / Abstain support values (abstain counts toward quorum)
  - one ballot per account per proposal
  - per-proposal tally that only ever grows
  - success rule: strictly more For than Against
  - quorum rule: For + Abstain + Against ≥ quorum at the snapshot
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Set, Tuple

from ..constants import (
    GOVERNANCE_VOTE_ABSTAIN,
    GOVERNANCE_VOTE_AGAINST,
    GOVERNANCE_VOTE_FOR,
)
from ..exceptions import InvalidParameterError, InvalidStateError

COUNTING_MODE = "support=bravo&quorum=for,against,abstain"


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class NotActiveError(InvalidStateError):
    """Ballot cast outside the voting window."""


class AlreadyVotedError(InvalidStateError):
    """Voter already cast a vote on this proposal."""


class InvalidVoteTypeError(InvalidParameterError):
    """Support value is not Against (0), For (1) or Abstain (2)."""


# ══════════════════════════════════════════════════════════════════════
#  VOTE DATA
# ══════════════════════════════════════════════════════════════════════

class VoteType:
    """Vote type constants matching constants.py."""
    AGAINST = GOVERNANCE_VOTE_AGAINST
    FOR = GOVERNANCE_VOTE_FOR
    ABSTAIN = GOVERNANCE_VOTE_ABSTAIN

    _NAMES = {
        GOVERNANCE_VOTE_AGAINST: "AGAINST",
        GOVERNANCE_VOTE_FOR: "FOR",
        GOVERNANCE_VOTE_ABSTAIN: "ABSTAIN",
    }

    @classmethod
    def name(cls, support: int) -> str:
        return cls._NAMES.get(support, "UNKNOWN")

    @classmethod
    def is_valid(cls, support: int) -> bool:
        return support in cls._NAMES


@dataclass(frozen=True)
class VoteCast:
    """Emitted for every accepted ballot."""
    voter: str
    proposal_id: int
    support: int
    weight: int
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "VoteCast",
            "voter": self.voter,
            "proposalId": str(self.proposal_id),
            "support": VoteType.name(self.support),
            "weight": str(self.weight),
            "reason": self.reason,
        }


@dataclass
class ProposalVote:
    """Aggregated tally for one proposal."""
    against_votes: int = 0
    for_votes: int = 0
    abstain_votes: int = 0
    voters: Set[str] = field(default_factory=set)

    @property
    def total_votes(self) -> int:
        """Total weight that participated (including abstain)."""
        return self.against_votes + self.for_votes + self.abstain_votes

    def has_voted(self, account: str) -> bool:
        return account in self.voters

    def count(self, account: str, support: int, weight: int) -> None:
        """
        Record one ballot.

        Raises:
            AlreadyVotedError:    account already voted on this proposal
            InvalidVoteTypeError: support outside {0, 1, 2}
        """
        if account in self.voters:
            raise AlreadyVotedError(f"{account} already voted")
        if support == VoteType.AGAINST:
            self.against_votes += weight
        elif support == VoteType.FOR:
            self.for_votes += weight
        elif support == VoteType.ABSTAIN:
            self.abstain_votes += weight
        else:
            raise InvalidVoteTypeError(f"Invalid vote type: {support}")
        self.voters.add(account)

    def vote_succeeded(self) -> bool:
        return self.for_votes > self.against_votes

    def quorum_reached(self, quorum: int) -> bool:
        return self.total_votes >= quorum

    def as_tuple(self) -> Tuple[int, int, int]:
        """(against, for, abstain)"""
        return self.against_votes, self.for_votes, self.abstain_votes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "againstVotes": str(self.against_votes),
            "forVotes": str(self.for_votes),
            "abstainVotes": str(self.abstain_votes),
            "totalVotes": str(self.total_votes),
            "voters": len(self.voters),
        }
