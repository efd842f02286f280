"""
GovDAO Configuration

Loads all sections of govdao.toml.
Environment variables override TOML values.
"""

from .loader import (
    ChainConfig,
    GovDAOConfig,
    GovernorConfig,
    LoggingConfig,
    TimelockConfig,
    TokenConfig,
    load_config,
)

__all__ = [
    "ChainConfig",
    "GovDAOConfig",
    "GovernorConfig",
    "LoggingConfig",
    "TimelockConfig",
    "TokenConfig",
    "load_config",
]
