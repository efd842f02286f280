"""
GovDAO Governance Module

Token-weighted on-chain governance with a timelocked execution gate:
- Governor: proposal registry, vote tally and lifecycle state machine
- TimelockController: delay-enforcing executor of approved operations
- AccessControl: role grants binding governor and timelock
- Bootstrap and inspection helpers for deployment and operations
"""

from .access import (
    DEFAULT_ADMIN_ROLE,
    EXECUTOR_ROLE,
    PROPOSER_ROLE,
    AccessControl,
    MissingRoleError,
    RoleAdminChanged,
    RoleGranted,
    RoleRevoked,
)
from .bootstrap import (
    DAODeployment,
    bootstrap_roles,
    deploy_dao,
    transfer_target_ownership,
)
from .governor import (
    Governor,
    ProposalThresholdSet,
    QuorumNumeratorUpdated,
    VotingDelaySet,
    VotingPeriodSet,
)
from .inspect import (
    EligibilityReport,
    ReadinessReport,
    RoleReport,
    check_eligibility,
    check_roles,
    execution_readiness,
    proposal_timeline,
    queue_trace,
)
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
from .timelock import (
    AlreadyDoneError,
    AlreadyScheduledError,
    CallExecuted,
    CallSalt,
    CallScheduled,
    DelayTooShortError,
    MinDelayChange,
    NotReadyError,
    OnlyTimelockError,
    OperationExpiredError,
    OperationState,
    PredecessorNotDoneError,
    TimelockController,
)
from .voting import (
    AlreadyVotedError,
    InvalidVoteTypeError,
    NotActiveError,
    ProposalVote,
    VoteCast,
    VoteType,
)

__all__ = [
    # Access control
    'AccessControl', 'DEFAULT_ADMIN_ROLE', 'PROPOSER_ROLE', 'EXECUTOR_ROLE',
    'MissingRoleError', 'RoleGranted', 'RoleRevoked', 'RoleAdminChanged',
    # Proposals
    'ProposalCore', 'ProposalState', 'ProposalCreated', 'ProposalQueued',
    'ProposalExecuted', 'ProposalCanceled',
    'InvalidProposalError', 'DuplicateProposalError', 'UnknownProposalError',
    'InsufficientProposerVotesError', 'OnlyProposerError', 'OnlyGovernanceError',
    'UnexpectedProposalStateError',
    # Voting
    'VoteType', 'VoteCast', 'ProposalVote',
    'NotActiveError', 'AlreadyVotedError', 'InvalidVoteTypeError',
    # Governor
    'Governor', 'VotingDelaySet', 'VotingPeriodSet', 'ProposalThresholdSet',
    'QuorumNumeratorUpdated',
    # Timelock
    'TimelockController', 'OperationState', 'CallScheduled', 'CallExecuted',
    'CallSalt', 'MinDelayChange',
    'AlreadyScheduledError', 'DelayTooShortError', 'NotReadyError',
    'AlreadyDoneError', 'PredecessorNotDoneError', 'OperationExpiredError',
    'OnlyTimelockError',
    # Bootstrap
    'DAODeployment', 'bootstrap_roles', 'deploy_dao', 'transfer_target_ownership',
    # Inspection
    'EligibilityReport', 'ReadinessReport', 'RoleReport', 'check_eligibility',
    'check_roles', 'execution_readiness', 'proposal_timeline', 'queue_trace',
]
