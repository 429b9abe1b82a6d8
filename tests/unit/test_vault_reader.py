"""
Tests for Vault State Reader.

Reads are served by a table-driven gateway keyed on contract address,
function and arguments.
"""

import pytest

from vault_keeper.chain.models import ContractCall
from vault_keeper.chain.vault import VaultStateReader
from vault_keeper.core.exceptions import ChainReadError
from tests.mocks import ASSET, PAIR_TOKEN, POOL, POSITION_MANAGER, STRATEGY_A, STRATEGY_B, VAULT


class TableGateway:
    """Answers ``read`` from a dict and records each call with its block."""

    def __init__(self, table: dict):
        self.table = table
        self.reads: list[ContractCall] = []
        self.blocks: list[tuple[str, object]] = []

    async def read(self, call: ContractCall, block_identifier="latest"):
        self.reads.append(call)
        self.blocks.append((call.function, block_identifier))
        key = (call.address, call.function, call.args)
        if key not in self.table:
            raise ChainReadError(f"Read {call.describe()} failed: execution reverted")
        return self.table[key]

    async def block_number(self) -> int:
        return 4242


def position(token0: str, token1: str, owed0: int, owed1: int) -> tuple:
    return (0, VAULT, token0, token1, 500, -600, 600, 10**18, 0, 0, owed0, owed1)


@pytest.fixture
def table() -> dict:
    return {
        (VAULT, "asset", ()): ASSET.lower(),
        (VAULT, "strategiesLength", ()): 2,
        (VAULT, "totalAssets", ()): 1500,
        (VAULT, "strategies", (0,)): STRATEGY_A.lower(),
        (VAULT, "strategies", (1,)): STRATEGY_B,
        (VAULT, "targetBps", (STRATEGY_A,)): 6000,
        (VAULT, "targetBps", (STRATEGY_B,)): 4000,
        (VAULT, "convertToAssets", (100,)): 110,
        (ASSET, "balanceOf", (VAULT,)): 500,
        (ASSET, "decimals", ()): 6,
        (PAIR_TOKEN, "decimals", ()): 18,
        (STRATEGY_A, "totalAssets", ()): 600,
        (STRATEGY_A, "want", ()): ASSET,
        (STRATEGY_B, "totalAssets", ()): 400,
        (STRATEGY_B, "want", ()): ASSET,
        (STRATEGY_A, "tokenId", ()): 0,
        (STRATEGY_B, "tokenId", ()): 7,
        (POSITION_MANAGER, "positions", (7,)): position(ASSET, PAIR_TOKEN, 11, 22),
        (POOL, "slot0", ()): (20000 * 2**96, 0, 0, 0, 0, 0, True),
        (POOL, "token0", ()): ASSET,
        (POOL, "token1", ()): PAIR_TOKEN,
        (POOL, "fee", ()): 500,
    }


@pytest.fixture
def reader(table) -> VaultStateReader:
    return VaultStateReader(TableGateway(table), VAULT.lower(), POSITION_MANAGER)


class TestSnapshot:
    """Tests for snapshot reads."""

    @pytest.mark.asyncio
    async def test_snapshot(self, reader):
        snapshot = await reader.snapshot()

        assert snapshot.vault == VAULT
        assert snapshot.asset == ASSET
        assert snapshot.total_idle == 500
        assert snapshot.total_assets == 1500
        assert snapshot.block_number == 4242
        assert [s.address for s in snapshot.strategies] == [STRATEGY_A, STRATEGY_B]
        assert [s.target_bps for s in snapshot.strategies] == [6000, 4000]
        assert snapshot.total_strategy_assets == 1000

    @pytest.mark.asyncio
    async def test_snapshot_reads_pinned_to_one_block(self, reader):
        await reader.snapshot()

        pinned = [block for function, block in reader._gateway.blocks if function != "asset"]
        assert len(pinned) == 11
        assert set(pinned) == {4242}

    @pytest.mark.asyncio
    async def test_asset_cached(self, reader):
        await reader.asset()
        await reader.asset()

        asset_reads = [c for c in reader._gateway.reads if c.function == "asset"]
        assert len(asset_reads) == 1

    @pytest.mark.asyncio
    async def test_read_failure_propagates(self, reader, table):
        del table[(STRATEGY_B, "want", ())]

        with pytest.raises(ChainReadError):
            await reader.snapshot()

    @pytest.mark.asyncio
    async def test_convert_to_assets(self, reader):
        assert await reader.convert_to_assets(100) == 110


class TestPendingFees:
    """Tests for owed position fees."""

    @pytest.mark.asyncio
    async def test_owed_by_token_side(self, reader):
        assert await reader.pending_fees(STRATEGY_B, ASSET) == 11
        assert await reader.pending_fees(STRATEGY_B, PAIR_TOKEN.lower()) == 22

    @pytest.mark.asyncio
    async def test_no_position(self, reader):
        assert await reader.pending_fees(STRATEGY_A, PAIR_TOKEN) == 0

    @pytest.mark.asyncio
    async def test_no_position_manager(self, table):
        reader = VaultStateReader(TableGateway(table), VAULT)
        assert await reader.pending_fees(STRATEGY_B, PAIR_TOKEN) == 0


class TestReadPool:
    """Tests for pool state reads."""

    @pytest.mark.asyncio
    async def test_pool_state(self, reader):
        pool = await reader.read_pool(POOL.lower())

        assert pool.address == POOL
        assert pool.token0 == ASSET
        assert pool.token1 == PAIR_TOKEN
        assert pool.sqrt_price_x96 == 20000 * 2**96
        assert (pool.decimals0, pool.decimals1) == (6, 18)
        assert pool.fee == 500
