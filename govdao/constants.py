"""
GovDAO Constants

This module consolidates all global constants and environment configuration
used throughout the codebase. Constants are organized by category for easy
reference and maintenance.
"""
import ast

from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# ==================================================================================
# HOST CHAIN PARAMETERS
# ==================================================================================
CHAIN_BLOCK_TIME = 1                 # seconds between automined blocks
CHAIN_GENESIS_TIMESTAMP = 1_700_000_000
ZERO_ADDRESS = '0x' + '00' * 20
ZERO_BYTES32 = b'\x00' * 32
DONE_TIMESTAMP = 1                   # sentinel ready-timestamp of a done operation


# ==================================================================================
# GOVERNANCE TOKEN PARAMETERS
# ==================================================================================
GOVERNANCE_TOKEN_NAME = 'GovernanceToken'
GOVERNANCE_TOKEN_SYMBOL = 'GT'
GOVERNANCE_TOKEN_DECIMALS = 18
GOVERNANCE_TOKEN_MAX_SUPPLY = 1_000_000 * 10**18
CLOCK_MODE = 'mode=blocknumber&from=default'


# ==================================================================================
# GOVERNOR PARAMETERS
# ==================================================================================
GOVERNANCE_VOTING_DELAY_BLOCKS = 1
GOVERNANCE_VOTING_PERIOD_BLOCKS = 5
GOVERNANCE_PROPOSAL_THRESHOLD = 0
GOVERNANCE_QUORUM_NUMERATOR = 4      # percent of snapshot supply
GOVERNANCE_QUORUM_DENOMINATOR = 100

# Vote support values
GOVERNANCE_VOTE_AGAINST = 0
GOVERNANCE_VOTE_FOR = 1
GOVERNANCE_VOTE_ABSTAIN = 2


# ==================================================================================
# TIMELOCK PARAMETERS
# ==================================================================================
GOVERNANCE_TIMELOCK_MIN_DELAY_SECONDS = 3600
# 0 disables expiry of succeeded / queued proposals
GOVERNANCE_TIMELOCK_GRACE_PERIOD_SECONDS = 0


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
DEFAULTS = LOGGER_DEFAULTS
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    # Case-insensitive membership check
    if s.casefold() in {"true", "false"}:
        # ast.literal_eval expects "True"/"False"
        return ast.literal_eval(s.title())
    return v

for key, default_raw in DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    # Parses only boolean-literals. Leaves other values untouched.
    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    # Wraps based on parsed value type.
    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        # Preserves the original raw string for ConfigString storage.
        namespace[key] = ConfigString(value_raw, default_val)
