# Mock classes for testing
"""In-memory chain doubles for testing."""

from .chain_mock import (
    ACCESS,
    ASSET,
    EXCHANGER,
    KEEPER,
    MANAGER,
    OUTSIDER,
    PAIR_TOKEN,
    POOL,
    POSITION_MANAGER,
    RECEIVER,
    ROUTER,
    SECOND_PAIR_TOKEN,
    STRATEGY_A,
    STRATEGY_B,
    STRATEGY_C,
    VAULT,
    MockStrategy,
    MockVaultChain,
    address,
)

__all__ = [
    "MockVaultChain",
    "MockStrategy",
    "address",
    "ACCESS",
    "ASSET",
    "EXCHANGER",
    "KEEPER",
    "MANAGER",
    "OUTSIDER",
    "PAIR_TOKEN",
    "POOL",
    "POSITION_MANAGER",
    "RECEIVER",
    "ROUTER",
    "SECOND_PAIR_TOKEN",
    "STRATEGY_A",
    "STRATEGY_B",
    "STRATEGY_C",
    "VAULT",
]
