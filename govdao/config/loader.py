"""
GovDAO TOML Configuration Loader

Loads the sections of govdao.toml with environment variable overrides
(dataclass + from_dict + from_file per section).

Environment variable mapping:
    [chain]    block_time       → GOVDAO_BLOCK_TIME
    [governor] voting_delay     → GOVDAO_VOTING_DELAY
    [timelock] min_delay        → GOVDAO_MIN_DELAY
    [logging]  level            → GOVDAO_LOG_LEVEL
    ...
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import (
    CHAIN_BLOCK_TIME,
    CHAIN_GENESIS_TIMESTAMP,
    GOVERNANCE_PROPOSAL_THRESHOLD,
    GOVERNANCE_QUORUM_DENOMINATOR,
    GOVERNANCE_QUORUM_NUMERATOR,
    GOVERNANCE_TIMELOCK_GRACE_PERIOD_SECONDS,
    GOVERNANCE_TIMELOCK_MIN_DELAY_SECONDS,
    GOVERNANCE_TOKEN_DECIMALS,
    GOVERNANCE_TOKEN_MAX_SUPPLY,
    GOVERNANCE_TOKEN_NAME,
    GOVERNANCE_TOKEN_SYMBOL,
    GOVERNANCE_VOTING_DELAY_BLOCKS,
    GOVERNANCE_VOTING_PERIOD_BLOCKS,
    LOG_LEVEL,
)
from ..exceptions import ConfigurationError
from ..logger import LogManager, check_date_format, check_log_format

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


# ---------------------------------------------------------------------------
# Section dataclasses, one per [section] of govdao.toml
# ---------------------------------------------------------------------------


@dataclass
class ChainConfig:
    """[chain] section."""
    block_time: int = CHAIN_BLOCK_TIME
    genesis_timestamp: int = CHAIN_GENESIS_TIMESTAMP
    automine: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChainConfig":
        return cls(
            block_time=int(data.get("block_time", CHAIN_BLOCK_TIME)),
            genesis_timestamp=int(data.get("genesis_timestamp", CHAIN_GENESIS_TIMESTAMP)),
            automine=bool(data.get("automine", True)),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("GOVDAO_BLOCK_TIME"):
            self.block_time = int(v)
        if v := os.environ.get("GOVDAO_AUTOMINE"):
            self.automine = _env_bool(v)

    def create_chain(self):
        """Build a fresh host chain with these parameters."""
        from ..chain import Chain

        return Chain(
            block_time=self.block_time,
            genesis_timestamp=self.genesis_timestamp,
            automine=self.automine,
        )


@dataclass
class TokenConfig:
    """[token] section. ``max_supply`` is in base units; TOML may give it as a string."""
    name: str = GOVERNANCE_TOKEN_NAME
    symbol: str = GOVERNANCE_TOKEN_SYMBOL
    decimals: int = GOVERNANCE_TOKEN_DECIMALS
    max_supply: int = GOVERNANCE_TOKEN_MAX_SUPPLY

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenConfig":
        decimals = int(data.get("decimals", GOVERNANCE_TOKEN_DECIMALS))
        if "max_supply_tokens" in data:
            max_supply = int(data["max_supply_tokens"]) * 10 ** decimals
        else:
            max_supply = int(data.get("max_supply", GOVERNANCE_TOKEN_MAX_SUPPLY))
        return cls(
            name=data.get("name", GOVERNANCE_TOKEN_NAME),
            symbol=data.get("symbol", GOVERNANCE_TOKEN_SYMBOL),
            decimals=decimals,
            max_supply=max_supply,
        )

    def apply_env(self) -> None:
        if v := os.environ.get("GOVDAO_TOKEN_NAME"):
            self.name = v
        if v := os.environ.get("GOVDAO_TOKEN_SYMBOL"):
            self.symbol = v


@dataclass
class GovernorConfig:
    """[governor] section. Delay and period are in blocks."""
    name: str = "GovernorContract"
    voting_delay: int = GOVERNANCE_VOTING_DELAY_BLOCKS
    voting_period: int = GOVERNANCE_VOTING_PERIOD_BLOCKS
    proposal_threshold: int = GOVERNANCE_PROPOSAL_THRESHOLD
    quorum_numerator: int = GOVERNANCE_QUORUM_NUMERATOR

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GovernorConfig":
        return cls(
            name=data.get("name", "GovernorContract"),
            voting_delay=int(data.get("voting_delay", GOVERNANCE_VOTING_DELAY_BLOCKS)),
            voting_period=int(data.get("voting_period", GOVERNANCE_VOTING_PERIOD_BLOCKS)),
            proposal_threshold=int(data.get("proposal_threshold", GOVERNANCE_PROPOSAL_THRESHOLD)),
            quorum_numerator=int(data.get("quorum_numerator", GOVERNANCE_QUORUM_NUMERATOR)),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("GOVDAO_VOTING_DELAY"):
            self.voting_delay = int(v)
        if v := os.environ.get("GOVDAO_VOTING_PERIOD"):
            self.voting_period = int(v)
        if v := os.environ.get("GOVDAO_PROPOSAL_THRESHOLD"):
            self.proposal_threshold = int(v)
        if v := os.environ.get("GOVDAO_QUORUM_NUMERATOR"):
            self.quorum_numerator = int(v)


@dataclass
class TimelockConfig:
    """[timelock] section. Durations are in seconds; grace_period 0 disables expiry."""
    min_delay: int = GOVERNANCE_TIMELOCK_MIN_DELAY_SECONDS
    grace_period: int = GOVERNANCE_TIMELOCK_GRACE_PERIOD_SECONDS

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimelockConfig":
        return cls(
            min_delay=int(data.get("min_delay", GOVERNANCE_TIMELOCK_MIN_DELAY_SECONDS)),
            grace_period=int(data.get("grace_period", GOVERNANCE_TIMELOCK_GRACE_PERIOD_SECONDS)),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("GOVDAO_MIN_DELAY"):
            self.min_delay = int(v)
        if v := os.environ.get("GOVDAO_GRACE_PERIOD"):
            self.grace_period = int(v)


@dataclass
class LoggingConfig:
    """[logging] section."""
    level: str = str(LOG_LEVEL)
    file: str = ""
    console_output: bool = True
    file_output: bool = False
    format: str = ""
    date_format: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        return cls(
            level=str(data.get("level", LOG_LEVEL)).upper(),
            file=data.get("file", ""),
            console_output=bool(data.get("console_output", True)),
            file_output=bool(data.get("file_output", False)),
            format=data.get("format", ""),
            date_format=data.get("date_format", ""),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("GOVDAO_LOG_LEVEL"):
            self.level = v.upper()
        if v := os.environ.get("GOVDAO_LOG_FILE"):
            self.file = v
            self.file_output = True

    def apply(self) -> None:
        """Reconfigure the root logger from this section."""
        LogManager().configure(
            log_level=self.level,
            log_file=Path(self.file) if self.file else None,
            console_output=self.console_output,
            file_output=self.file_output,
            log_format=self.format or None,
            date_format=self.date_format or None,
            force=True,
        )


# -----------------------------------------------------------------------
# Top-level config
# -----------------------------------------------------------------------

@dataclass
class GovDAOConfig:
    """
    Unified DAO configuration.

    Loads every section of govdao.toml and applies environment variable
    overrides. ``deploy_dao`` takes one of these.
    """
    chain: ChainConfig = field(default_factory=ChainConfig)
    token: TokenConfig = field(default_factory=TokenConfig)
    governor: GovernorConfig = field(default_factory=GovernorConfig)
    timelock: TimelockConfig = field(default_factory=TimelockConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # --- factories --------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GovDAOConfig":
        """Create GovDAOConfig from a parsed TOML dict."""
        return cls(
            chain=ChainConfig.from_dict(data.get("chain", {})),
            token=TokenConfig.from_dict(data.get("token", {})),
            governor=GovernorConfig.from_dict(data.get("governor", {})),
            timelock=TimelockConfig.from_dict(data.get("timelock", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "GovDAOConfig":
        """
        Load configuration from a TOML file.

        A missing file yields the defaults (with env overrides).

        Raises:
            ConfigurationError: if the file is not valid TOML
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        with open(path, "rb") as f:
            try:
                raw = tomli.load(f)
            except tomli.TOMLDecodeError as e:
                raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.chain.apply_env()
        self.token.apply_env()
        self.governor.apply_env()
        self.timelock.apply_env()
        self.logging.apply_env()

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Raises:
            ConfigurationError: on invalid config
        """
        if self.chain.block_time < 1:
            raise ConfigurationError("block_time must be >= 1")
        if not self.token.name or not self.token.symbol:
            raise ConfigurationError("Token name and symbol are required")
        if not 0 <= self.token.decimals <= 18:
            raise ConfigurationError(f"Invalid token decimals: {self.token.decimals}")
        if self.token.max_supply <= 0:
            raise ConfigurationError("max_supply must be positive")
        if self.governor.voting_delay < 0:
            raise ConfigurationError("voting_delay cannot be negative")
        if self.governor.voting_period < 1:
            raise ConfigurationError("voting_period must be >= 1")
        if self.governor.proposal_threshold < 0:
            raise ConfigurationError("proposal_threshold cannot be negative")
        if not 0 <= self.governor.quorum_numerator <= GOVERNANCE_QUORUM_DENOMINATOR:
            raise ConfigurationError(
                f"quorum_numerator must be within 0..{GOVERNANCE_QUORUM_DENOMINATOR}"
            )
        if self.timelock.min_delay < 0:
            raise ConfigurationError("min_delay cannot be negative")
        if self.timelock.grace_period < 0:
            raise ConfigurationError("grace_period cannot be negative")
        if self.logging.level not in _LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.logging.level}")
        if self.logging.format:
            check_log_format(self.logging.format)
        if self.logging.date_format:
            check_date_format(self.logging.date_format)
        return True

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics, NOT for re-creating TOML)."""
        return {
            "chain": {
                "block_time": self.chain.block_time,
                "genesis_timestamp": self.chain.genesis_timestamp,
                "automine": self.chain.automine,
            },
            "token": {
                "name": self.token.name,
                "symbol": self.token.symbol,
                "decimals": self.token.decimals,
                "max_supply": str(self.token.max_supply),
            },
            "governor": {
                "name": self.governor.name,
                "voting_delay": self.governor.voting_delay,
                "voting_period": self.governor.voting_period,
                "proposal_threshold": str(self.governor.proposal_threshold),
                "quorum_numerator": self.governor.quorum_numerator,
            },
            "timelock": {
                "min_delay": self.timelock.min_delay,
                "grace_period": self.timelock.grace_period,
            },
            "logging": {
                "level": self.logging.level,
                "file_output": self.logging.file_output,
            },
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> GovDAOConfig:
    """
    Load DAO configuration.

    Resolution order:
        1. Explicit *path* argument
        2. GOVDAO_CONFIG env var
        3. ./govdao.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("GOVDAO_CONFIG", "govdao.toml")

    return GovDAOConfig.from_file(path)
