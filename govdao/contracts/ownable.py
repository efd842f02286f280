"""
Single-owner access control for governed targets.

A target contract handed to the DAO transfers its ownership to the
timelock; from then on only an executed proposal can reach its
owner-gated mutators.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..chain import Chain, Contract, external, transaction
from ..constants import ZERO_ADDRESS
from ..crypto.address import normalize_address
from ..exceptions import InvalidParameterError, UnauthorizedError
from ..logger import get_logger

logger = get_logger(__name__)


class NotOwnerError(UnauthorizedError):
    """Caller is not the contract owner."""


@dataclass(frozen=True)
class OwnershipTransferred:
    previous_owner: str
    new_owner: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "OwnershipTransferred",
            "previousOwner": self.previous_owner,
            "newOwner": self.new_owner,
        }


class Ownable(Contract):
    """Contract with a single privileged owner (the deployer by default)."""

    def __init__(self, chain: Chain, deployer: str, initial_owner: Optional[str] = None):
        super().__init__(chain, deployer)
        self.owner = ZERO_ADDRESS
        self._set_owner(normalize_address(initial_owner or self.deployer))

    def only_owner(self, caller: str) -> None:
        """
        Raises:
            NotOwnerError: if *caller* is not the owner
        """
        if normalize_address(caller) != self.owner:
            raise NotOwnerError(f"{caller} is not the owner of {self.address}")

    @external("transferOwnership(address)")
    @transaction
    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self.only_owner(caller)
        new_owner = normalize_address(new_owner)
        if new_owner == ZERO_ADDRESS:
            raise InvalidParameterError("New owner is the zero address")
        self._set_owner(new_owner)

    def _set_owner(self, new_owner: str) -> None:
        previous = self.owner
        self.owner = new_owner
        self._emit(OwnershipTransferred(previous_owner=previous, new_owner=new_owner))
        logger.info(f"Ownership of {self.address}: {previous} → {new_owner}")
