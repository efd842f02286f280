"""
GovDAO Contracts Module

Targets governed by the DAO:
- Ownable: single-owner gate for privileged mutators
- Box: example target storing one value
"""

from .box import Box, ValueChanged
from .ownable import NotOwnerError, Ownable, OwnershipTransferred

__all__ = [
    'Box',
    'NotOwnerError',
    'Ownable',
    'OwnershipTransferred',
    'ValueChanged',
]
