"""
Governance Token: ERC-20 with vote delegation and checkpoints

Implements the voting-power ledger:
  - fixed supply minted once to the deployer
  - ERC-20 transfer / approve / transferFrom
  - delegation: raw balance counts as voting power only once the holder
    delegates (to themselves or to someone else)
  - per-account and total-supply checkpoints for historical lookups that
    are only answered for blocks strictly in the past
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from ..chain import Chain, Contract, external, transaction
from ..constants import (
    CLOCK_MODE,
    GOVERNANCE_TOKEN_DECIMALS,
    GOVERNANCE_TOKEN_MAX_SUPPLY,
    GOVERNANCE_TOKEN_NAME,
    GOVERNANCE_TOKEN_SYMBOL,
    ZERO_ADDRESS,
)
from ..crypto.address import normalize_address
from ..exceptions import InvalidParameterError, InvalidQueryError
from ..logger import get_logger
from .checkpoints import Checkpoint, Trace

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class InsufficientBalanceError(InvalidParameterError):
    """Raised when sender balance is too low."""


class InsufficientAllowanceError(InvalidParameterError):
    """Raised when spender allowance is too low."""


class FutureLookupError(InvalidQueryError):
    """Historical lookup at the current block or later."""


# ══════════════════════════════════════════════════════════════════════
#  EVENTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Transfer:
    """Emitted on every balance movement (mint has sender = zero address)."""
    sender: str
    recipient: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Transfer",
            "from": self.sender,
            "to": self.recipient,
            "value": str(self.amount),
        }


@dataclass(frozen=True)
class Approval:
    """Emitted on every successful approve."""
    owner: str
    spender: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Approval",
            "owner": self.owner,
            "spender": self.spender,
            "value": str(self.amount),
        }


@dataclass(frozen=True)
class DelegateChanged:
    """Emitted when an account changes its delegate."""
    delegator: str
    from_delegate: str
    to_delegate: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "DelegateChanged",
            "delegator": self.delegator,
            "fromDelegate": self.from_delegate,
            "toDelegate": self.to_delegate,
        }


@dataclass(frozen=True)
class DelegateVotesChanged:
    """Emitted when a delegate's voting power changes."""
    delegate: str
    previous_votes: int
    new_votes: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "DelegateVotesChanged",
            "delegate": self.delegate,
            "previousVotes": str(self.previous_votes),
            "newVotes": str(self.new_votes),
        }


# ══════════════════════════════════════════════════════════════════════
#  GOVERNANCE TOKEN
# ══════════════════════════════════════════════════════════════════════

class GovernanceToken(Contract):
    """
    Voting-power ledger.

    Mirrors ERC20Votes semantics:
        - balance_of(address) / total_supply
        - transfer(sender, recipient, amount)
        - approve(owner, spender, amount) / transfer_from(spender, owner, recipient, amount)
        - delegate(account, delegatee) / delegates(account)
        - get_votes(account) / get_past_votes(account, block)
        - get_past_total_supply(block)

    The clock is the host block number. Voting power of a delegate is the
    sum of balances of all accounts delegating to it; undelegated balance
    carries no voting power.
    """

    def __init__(
        self,
        chain: Chain,
        deployer: str,
        name: str = GOVERNANCE_TOKEN_NAME,
        symbol: str = GOVERNANCE_TOKEN_SYMBOL,
        max_supply: int = GOVERNANCE_TOKEN_MAX_SUPPLY,
        decimals: int = GOVERNANCE_TOKEN_DECIMALS,
    ):
        if not name:
            raise InvalidParameterError("Token name cannot be empty")
        if not symbol:
            raise InvalidParameterError("Token symbol cannot be empty")
        if decimals < 0 or decimals > 18:
            raise InvalidParameterError(f"Decimals must be 0-18, got {decimals}")
        if max_supply <= 0:
            raise InvalidParameterError("Max supply must be positive")

        super().__init__(chain, deployer)
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.max_supply = max_supply

        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}  # (owner, spender)
        self._delegates: Dict[str, str] = {}
        self._delegate_checkpoints: Dict[str, Trace] = {}
        self._total_supply_checkpoints = Trace()

        self._mint(self.deployer, max_supply)
        logger.info(f"GovernanceToken deployed: {symbol} ({name}), supply={max_supply}")

    # ── Clock ─────────────────────────────────────────────────────────

    def clock(self) -> int:
        return self.block_number

    @property
    def CLOCK_MODE(self) -> str:
        return CLOCK_MODE

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def total_supply(self) -> int:
        return self._total_supply_checkpoints.latest()

    def balance_of(self, address: str) -> int:
        return self._balances.get(normalize_address(address), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    def delegates(self, account: str) -> str:
        """Current delegate of *account*, zero address if none."""
        return self._delegates.get(normalize_address(account), ZERO_ADDRESS)

    def get_votes(self, account: str) -> int:
        trace = self._delegate_checkpoints.get(normalize_address(account))
        return trace.latest() if trace else 0

    def get_past_votes(self, account: str, block_number: int) -> int:
        """
        Voting power of *account* at the end of *block_number*.

        Raises:
            FutureLookupError: unless *block_number* is strictly in the past
        """
        self._require_past(block_number)
        trace = self._delegate_checkpoints.get(normalize_address(account))
        return trace.upper_lookup(block_number) if trace else 0

    def get_past_total_supply(self, block_number: int) -> int:
        """Total supply at the end of *block_number* (strictly past)."""
        self._require_past(block_number)
        return self._total_supply_checkpoints.upper_lookup(block_number)

    def num_checkpoints(self, account: str) -> int:
        trace = self._delegate_checkpoints.get(normalize_address(account))
        return len(trace) if trace else 0

    def checkpoints(self, account: str, pos: int) -> Checkpoint:
        trace = self._delegate_checkpoints.get(normalize_address(account))
        if trace is None or not 0 <= pos < len(trace):
            raise InvalidQueryError(f"No checkpoint #{pos} for {account}")
        return trace.at(pos)

    def _require_past(self, block_number: int) -> None:
        current = self.clock()
        if block_number >= current:
            raise FutureLookupError(
                f"Lookup at block {block_number} is not in the past (current={current})"
            )

    # ── ERC-20 operations ─────────────────────────────────────────────

    @external("transfer(address,uint256)")
    @transaction
    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """Move *amount* from *sender* to *recipient*."""
        self._transfer(normalize_address(sender), normalize_address(recipient), amount)
        return True

    @external("approve(address,uint256)")
    @transaction
    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Set spender allowance."""
        if amount < 0:
            raise InvalidParameterError("Allowance amount cannot be negative")
        owner = normalize_address(owner)
        spender = normalize_address(spender)
        self._allowances[(owner, spender)] = amount
        self._emit(Approval(owner=owner, spender=spender, amount=amount))
        logger.debug(f"Approve: {owner} → {spender} allowance={amount} {self.symbol}")
        return True

    @external("transferFrom(address,address,uint256)")
    @transaction
    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool:
        """Transfer on behalf of *owner* using spender's allowance."""
        spender = normalize_address(spender)
        owner = normalize_address(owner)
        allow = self.allowance(owner, spender)
        if allow < amount:
            raise InsufficientAllowanceError(
                f"Allowance {allow} < transfer amount {amount}"
            )
        self._allowances[(owner, spender)] = allow - amount
        self._transfer(owner, normalize_address(recipient), amount)
        return True

    def _transfer(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise InvalidParameterError("Transfer amount cannot be negative")
        if recipient == ZERO_ADDRESS:
            raise InvalidParameterError("Cannot transfer to the zero address")

        bal = self._balances.get(sender, 0)
        if bal < amount:
            raise InsufficientBalanceError(
                f"{sender} balance {bal} < transfer amount {amount}"
            )
        self._balances[sender] = bal - amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount

        self._emit(Transfer(sender=sender, recipient=recipient, amount=amount))
        self._move_voting_power(self.delegates(sender), self.delegates(recipient), amount)
        logger.debug(f"Transfer: {sender} → {recipient} {amount} {self.symbol}")

    def _mint(self, account: str, amount: int) -> None:
        supply = self.total_supply + amount
        self._total_supply_checkpoints.push(self.clock(), supply)
        self._balances[account] = self._balances.get(account, 0) + amount
        self._emit(Transfer(sender=ZERO_ADDRESS, recipient=account, amount=amount))
        self._move_voting_power(ZERO_ADDRESS, self.delegates(account), amount)

    # ── Delegation ────────────────────────────────────────────────────

    @external("delegate(address)")
    @transaction
    def delegate(self, account: str, delegatee: str) -> None:
        """
        Point *account*'s voting power at *delegatee*.

        The account's whole current balance moves from the old delegate's
        power to the new one's; both are checkpointed at this block.
        """
        account = normalize_address(account)
        delegatee = normalize_address(delegatee)
        old = self.delegates(account)
        self._delegates[account] = delegatee

        self._emit(DelegateChanged(delegator=account, from_delegate=old, to_delegate=delegatee))
        self._move_voting_power(old, delegatee, self._balances.get(account, 0))
        logger.info(f"Delegation: {account} → {delegatee} (was {old})")

    def _move_voting_power(self, source: str, destination: str, amount: int) -> None:
        if source == destination or amount <= 0:
            return
        now = self.clock()
        if source != ZERO_ADDRESS:
            trace = self._delegate_checkpoints.setdefault(source, Trace())
            old_votes = trace.latest()
            trace.push(now, old_votes - amount)
            self._emit(DelegateVotesChanged(source, old_votes, old_votes - amount))
        if destination != ZERO_ADDRESS:
            trace = self._delegate_checkpoints.setdefault(destination, Trace())
            old_votes = trace.latest()
            trace.push(now, old_votes + amount)
            self._emit(DelegateVotesChanged(destination, old_votes, old_votes + amount))

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "totalSupply": str(self.total_supply),
            "holders": len([b for b in self._balances.values() if b > 0]),
            "delegates": len(self._delegate_checkpoints),
        }
