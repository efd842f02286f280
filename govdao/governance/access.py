"""
Role-Based Access Control

Implements:
  - role → member set, role → admin role
  - grant / revoke by the role's admin, renounce by the member only
  - the "open role" convention: the zero address holding a role means
    any caller passes the check
"""

from dataclasses import dataclass
from typing import Any, Dict, Set

from ..chain import Chain, Contract, external, transaction
from ..constants import ZERO_ADDRESS, ZERO_BYTES32
from ..crypto.address import normalize_address
from ..crypto.hashing import role_id, to_bytes32
from ..exceptions import UnauthorizedError
from ..logger import get_logger

logger = get_logger(__name__)


DEFAULT_ADMIN_ROLE = ZERO_BYTES32
PROPOSER_ROLE = role_id("PROPOSER_ROLE")
EXECUTOR_ROLE = role_id("EXECUTOR_ROLE")

_ROLE_NAMES = {
    DEFAULT_ADMIN_ROLE: "DEFAULT_ADMIN_ROLE",
    PROPOSER_ROLE: "PROPOSER_ROLE",
    EXECUTOR_ROLE: "EXECUTOR_ROLE",
}


def role_name(role: bytes) -> str:
    """Human-readable role label for logs."""
    return _ROLE_NAMES.get(role, "0x" + role.hex())


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class MissingRoleError(UnauthorizedError):
    """Account lacks a required role."""

    def __init__(self, account: str, role: bytes):
        self.account = account
        self.role = role
        super().__init__(f"{account} is missing role {role_name(role)}")


# ══════════════════════════════════════════════════════════════════════
#  EVENTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RoleGranted:
    role: bytes
    account: str
    sender: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "RoleGranted",
            "role": "0x" + self.role.hex(),
            "account": self.account,
            "sender": self.sender,
        }


@dataclass(frozen=True)
class RoleRevoked:
    role: bytes
    account: str
    sender: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "RoleRevoked",
            "role": "0x" + self.role.hex(),
            "account": self.account,
            "sender": self.sender,
        }


@dataclass(frozen=True)
class RoleAdminChanged:
    role: bytes
    previous_admin_role: bytes
    new_admin_role: bytes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "RoleAdminChanged",
            "role": "0x" + self.role.hex(),
            "previousAdminRole": "0x" + self.previous_admin_role.hex(),
            "newAdminRole": "0x" + self.new_admin_role.hex(),
        }


# ══════════════════════════════════════════════════════════════════════
#  ACCESS CONTROL
# ══════════════════════════════════════════════════════════════════════

class AccessControl(Contract):
    """
    Contract base with role grants.

    Every role is administered by DEFAULT_ADMIN_ROLE unless changed with
    ``_set_role_admin``.
    """

    def __init__(self, chain: Chain, deployer: str):
        super().__init__(chain, deployer)
        self._roles: Dict[bytes, Set[str]] = {}
        self._role_admins: Dict[bytes, bytes] = {}

    # ── Views ─────────────────────────────────────────────────────────

    def has_role(self, role: bytes, account: str) -> bool:
        return normalize_address(account) in self._roles.get(to_bytes32(role), set())

    def get_role_admin(self, role: bytes) -> bytes:
        return self._role_admins.get(to_bytes32(role), DEFAULT_ADMIN_ROLE)

    def _check_role(self, role: bytes, account: str) -> None:
        """
        Raises:
            MissingRoleError: if *account* does not hold *role*
        """
        if not self.has_role(role, account):
            raise MissingRoleError(normalize_address(account), to_bytes32(role))

    # ── Mutations ─────────────────────────────────────────────────────

    @external("grantRole(bytes32,address)")
    @transaction
    def grant_role(self, caller: str, role: bytes, account: str) -> None:
        role = to_bytes32(role)
        self._check_role(self.get_role_admin(role), caller)
        self._grant_role(role, account, caller)

    @external("revokeRole(bytes32,address)")
    @transaction
    def revoke_role(self, caller: str, role: bytes, account: str) -> None:
        role = to_bytes32(role)
        self._check_role(self.get_role_admin(role), caller)
        self._revoke_role(role, account, caller)

    @external("renounceRole(bytes32,address)")
    @transaction
    def renounce_role(self, caller: str, role: bytes, account: str) -> None:
        """Give up a role held by the caller itself."""
        if normalize_address(caller) != normalize_address(account):
            raise UnauthorizedError("Can only renounce roles for self")
        self._revoke_role(to_bytes32(role), account, caller)

    def _grant_role(self, role: bytes, account: str, sender: str) -> bool:
        account = normalize_address(account)
        members = self._roles.setdefault(role, set())
        if account in members:
            return False
        members.add(account)
        self._emit(RoleGranted(role=role, account=account, sender=normalize_address(sender)))
        who = "anyone" if account == ZERO_ADDRESS else account
        logger.info(f"{role_name(role)} granted to {who} on {self.address}")
        return True

    def _revoke_role(self, role: bytes, account: str, sender: str) -> bool:
        account = normalize_address(account)
        members = self._roles.get(role, set())
        if account not in members:
            return False
        members.discard(account)
        self._emit(RoleRevoked(role=role, account=account, sender=normalize_address(sender)))
        logger.info(f"{role_name(role)} revoked from {account} on {self.address}")
        return True

    def _set_role_admin(self, role: bytes, admin_role: bytes) -> None:
        previous = self.get_role_admin(role)
        self._role_admins[role] = admin_role
        self._emit(RoleAdminChanged(role, previous, admin_role))
