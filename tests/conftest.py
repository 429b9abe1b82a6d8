"""
Pytest configuration and fixtures for vault keeper tests.
"""

import os
import tempfile

os.environ.setdefault(
    "VAULT_KEEPER_LOG_FILE",
    os.path.join(tempfile.gettempdir(), "vault_keeper_tests.log"),
)

import pytest

from vault_keeper.chain.models import PoolState, Role
from vault_keeper.config.models import AppConfig
from vault_keeper.execution.orchestrator import TransactionOrchestrator
from vault_keeper.execution.state import OrchestrationState
from vault_keeper.keeper import VaultKeeper
from vault_keeper.planning.planner import AllocationPlanner
from vault_keeper.pricing import PriceResolver
from vault_keeper.swap.builder import SwapInstructionBuilder
from tests.mocks import (
    ACCESS,
    ASSET,
    EXCHANGER,
    KEEPER,
    MANAGER,
    PAIR_TOKEN,
    POOL,
    ROUTER,
    STRATEGY_A,
    STRATEGY_B,
    VAULT,
    MockVaultChain,
)

# sqrtPriceX96 for a USDC(6)/pair(18) pool at 0.0004 pair per USDC
POOL_SQRT_PRICE = 20000 * 2**96


# =============================================================================
# Configuration Fixtures
# =============================================================================


def make_config(**overrides) -> AppConfig:
    """AppConfig for the mock vault; keyword arguments replace top-level sections."""
    data = {
        "environment": "test",
        "chain": {"rpc_url": "http://127.0.0.1:8545", "chain_id": 31337},
        "vault": {
            "address": VAULT,
            "access_controller": ACCESS,
            "exchanger": EXCHANGER,
        },
        "swap": {"router": ROUTER, "min_out_mode": "zero"},
        "orchestrator": {"debounce_seconds": 0.05, "poll_interval": 0.01},
        "strategies": [],
    }
    data.update(overrides)
    return AppConfig(**data)


@pytest.fixture
def app_config() -> AppConfig:
    """Two direct strategies."""
    return make_config()


@pytest.fixture
def paired_config() -> AppConfig:
    """STRATEGY_B provides base/pair liquidity with pool-priced swaps."""
    return make_config(
        swap={"router": ROUTER, "min_out_mode": "pool_price", "slippage_bps": 50},
        strategies=[{
            "address": STRATEGY_B,
            "kind": "paired_liquidity",
            "pair_tokens": [PAIR_TOKEN],
            "pool": POOL,
            "fee_tier": 500,
        }],
    )


# =============================================================================
# Chain Fixtures
# =============================================================================


@pytest.fixture
def pool_state() -> PoolState:
    return PoolState(
        address=POOL,
        token0=ASSET,
        token1=PAIR_TOKEN,
        sqrt_price_x96=POOL_SQRT_PRICE,
        decimals0=6,
        decimals1=18,
        fee=500,
    )


@pytest.fixture
def chain(pool_state) -> MockVaultChain:
    """Vault with strategies A (60%) and B (40%), manager and keeper roles granted."""
    mock = MockVaultChain()
    mock.add_strategy(STRATEGY_A, 6000)
    mock.add_strategy(STRATEGY_B, 4000)
    mock.grant(Role.MANAGER, MANAGER)
    mock.grant(Role.KEEPER, MANAGER)
    mock.grant(Role.KEEPER, KEEPER)
    mock.add_pool(pool_state)
    return mock


@pytest.fixture
def state() -> OrchestrationState:
    return OrchestrationState()


# =============================================================================
# Component Fixtures
# =============================================================================


def build_keeper(config: AppConfig, chain: MockVaultChain, state: OrchestrationState, sender: str = MANAGER):
    resolver = PriceResolver(chain, placeholder_rate=config.orchestrator.placeholder_rate)
    builder = SwapInstructionBuilder(
        config.swap,
        config.strategies,
        reader=chain,
        price_resolver=resolver,
        clock=lambda: 1_700_000_000,
    )
    orchestrator = TransactionOrchestrator(chain, chain, state, sender, config.orchestrator)
    return VaultKeeper(
        config,
        reader=chain,
        orchestrator=orchestrator,
        builder=builder,
        price_resolver=resolver,
        planner=AllocationPlanner(),
        gateway=chain,
    )


@pytest.fixture
def keeper(app_config, chain, state) -> VaultKeeper:
    return build_keeper(app_config, chain, state)


@pytest.fixture
def paired_keeper(paired_config, chain, state) -> VaultKeeper:
    return build_keeper(paired_config, chain, state)


@pytest.fixture
def orchestrator(app_config, chain, state) -> TransactionOrchestrator:
    return TransactionOrchestrator(chain, chain, state, MANAGER, app_config.orchestrator)


@pytest.fixture
def config_factory():
    """Build an AppConfig with section overrides."""
    return make_config


@pytest.fixture
def keeper_factory(chain, state):
    """Build a keeper over the shared mock chain for a given config and sender."""
    def factory(config: AppConfig, sender: str = MANAGER) -> VaultKeeper:
        return build_keeper(config, chain, state, sender)
    return factory
