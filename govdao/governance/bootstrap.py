"""
DAO Deployment & Role Bootstrap

Implements:
  - deploy_dao: token → timelock → governor (→ optional Box target)
  - bootstrap_roles: the ordered hand-over of the timelock to the governor
      1. grant PROPOSER_ROLE to the governor
      2. grant EXECUTOR_ROLE to the zero address (anyone may execute)
      3. revoke DEFAULT_ADMIN_ROLE from the deployer
  - transfer_target_ownership: put an Ownable target under the timelock
Each step is its own transaction; a failing step raises and leaves the
steps before it in place.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..chain import Chain
from ..config import GovDAOConfig
from ..constants import ZERO_ADDRESS
from ..contracts import Box, Ownable
from ..crypto.address import normalize_address
from ..exceptions import ConfigurationError
from ..logger import get_logger
from ..tokens.votes import GovernanceToken
from .access import DEFAULT_ADMIN_ROLE, EXECUTOR_ROLE, PROPOSER_ROLE
from .governor import Governor
from .inspect import RoleReport, check_roles
from .timelock import TimelockController

logger = get_logger(__name__)


@dataclass
class DAODeployment:
    """Addresses and handles of a deployed DAO."""
    chain: Chain
    deployer: str
    token: GovernanceToken
    timelock: TimelockController
    governor: Governor
    roles: RoleReport
    box: Optional[Box] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deployer": self.deployer,
            "token": self.token.address,
            "timelock": self.timelock.address,
            "governor": self.governor.address,
            "box": self.box.address if self.box else None,
            "roles": self.roles.to_dict(),
        }


def bootstrap_roles(
    timelock: TimelockController,
    governor: Governor,
    deployer: str,
) -> RoleReport:
    """
    Hand the timelock over to *governor*.

    *deployer* must hold DEFAULT_ADMIN_ROLE on the timelock when called.

    Raises:
        MissingRoleError: if *deployer* is not a timelock admin
    """
    deployer = normalize_address(deployer)
    timelock.grant_role(deployer, PROPOSER_ROLE, governor.address)
    timelock.grant_role(deployer, EXECUTOR_ROLE, ZERO_ADDRESS)
    timelock.revoke_role(deployer, DEFAULT_ADMIN_ROLE, deployer)

    report = check_roles(timelock, governor, deployer)
    if report.decentralized:
        logger.info(f"Timelock {timelock.address} handed over to governor {governor.address}")
    else:
        logger.warning(f"Role bootstrap incomplete: {', '.join(report.problems())}")
    return report


def transfer_target_ownership(target: Ownable, owner: str, timelock: TimelockController) -> None:
    """Make *timelock* the owner of *target*; *owner* is the current owner."""
    target.transfer_ownership(owner, timelock.address)


def deploy_dao(
    chain: Chain,
    deployer: str,
    config: Optional[GovDAOConfig] = None,
    with_box: bool = True,
) -> DAODeployment:
    """
    Deploy and wire a complete DAO.

    Args:
        chain:     Host chain to deploy on
        deployer:  Account paying for deployment; receives the whole token supply
        config:    Settings (defaults from constants when omitted)
        with_box:  Also deploy a Box target owned by the timelock

    Raises:
        ConfigurationError: if *config* does not validate
    """
    config = config or GovDAOConfig()
    config.validate()
    deployer = normalize_address(deployer)
    if deployer == ZERO_ADDRESS:
        raise ConfigurationError("Deployer cannot be the zero address")

    token = chain.deploy(
        GovernanceToken, deployer,
        name=config.token.name,
        symbol=config.token.symbol,
        max_supply=config.token.max_supply,
        decimals=config.token.decimals,
    )
    timelock = chain.deploy(
        TimelockController, deployer,
        min_delay=config.timelock.min_delay,
        admin=deployer,
        grace_period=config.timelock.grace_period,
    )
    governor = chain.deploy(
        Governor, deployer,
        token=token.address,
        timelock=timelock.address,
        name=config.governor.name,
        voting_delay=config.governor.voting_delay,
        voting_period=config.governor.voting_period,
        proposal_threshold=config.governor.proposal_threshold,
        quorum_numerator=config.governor.quorum_numerator,
    )
    roles = bootstrap_roles(timelock, governor, deployer)

    box = None
    if with_box:
        box = chain.deploy(Box, deployer)
        transfer_target_ownership(box, deployer, timelock)

    deployment = DAODeployment(
        chain=chain,
        deployer=deployer,
        token=token,
        timelock=timelock,
        governor=governor,
        roles=roles,
        box=box,
    )
    logger.info(f"DAO deployed: {deployment.to_dict()}")
    return deployment
