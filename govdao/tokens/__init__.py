"""
GovDAO Token Module

Voting-power ledger for governance:
- ERC-20 balances and allowances
- Vote delegation with per-block checkpoints
- Historical voting power and total supply lookups
"""

from .checkpoints import Checkpoint, Trace
from .votes import (
    Approval,
    DelegateChanged,
    DelegateVotesChanged,
    FutureLookupError,
    GovernanceToken,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    Transfer,
)

__all__ = [
    'Checkpoint',
    'Trace',
    'GovernanceToken',
    'Transfer',
    'Approval',
    'DelegateChanged',
    'DelegateVotesChanged',
    'FutureLookupError',
    'InsufficientAllowanceError',
    'InsufficientBalanceError',
]
