"""
Vault State Reader.

Reads everything planning and swap building need from the vault, its
strategies, ERC20 balances, pools and the liquidity position manager.
"""

import asyncio
from typing import Optional, Union

from eth_utils import to_checksum_address

from vault_keeper.core.logger import get_logger
from vault_keeper.planning.models import StrategyRecord, VaultSnapshot

from .client import Web3Gateway
from .models import ContractCall, PoolState

logger = get_logger(__name__)

# Block number or tag ("latest")
BlockId = Union[int, str]


class VaultStateReader:
    """
    Read-only view of a vault.

    Example:
        >>> reader = VaultStateReader(gateway, vault_address)
        >>> snapshot = await reader.snapshot()
        >>> snapshot.total_idle
    """

    def __init__(
        self,
        gateway: Web3Gateway,
        vault: str,
        position_manager: Optional[str] = None,
    ):
        self._gateway = gateway
        self._vault = to_checksum_address(vault)
        self._position_manager = (
            to_checksum_address(position_manager) if position_manager else None
        )
        self._asset: Optional[str] = None
        self._decimals: dict[str, int] = {}

    @property
    def vault(self) -> str:
        return self._vault

    def _vault_call(self, function: str, *args) -> ContractCall:
        return ContractCall("vault", self._vault, function, args)

    async def asset(self) -> str:
        if self._asset is None:
            self._asset = to_checksum_address(await self._gateway.read(self._vault_call("asset")))
        return self._asset

    async def strategies_length(self, block: BlockId = "latest") -> int:
        return int(await self._gateway.read(self._vault_call("strategiesLength"), block))

    async def snapshot(self) -> VaultSnapshot:
        """Read idle funds, total assets and every strategy record at one block."""
        asset = await self.asset()
        block_number = await self._gateway.block_number()
        length, total_assets, total_idle = await asyncio.gather(
            self.strategies_length(block_number),
            self._gateway.read(self._vault_call("totalAssets"), block_number),
            self.token_balance(asset, self._vault, block_number),
        )
        strategies = await asyncio.gather(
            *(self._read_strategy(index, block_number) for index in range(length))
        )

        snapshot = VaultSnapshot(
            vault=self._vault,
            asset=asset,
            total_idle=int(total_idle),
            total_assets=int(total_assets),
            strategies=tuple(strategies),
            block_number=block_number,
        )
        logger.debug(
            f"Snapshot @{block_number}: idle={snapshot.total_idle} "
            f"strategies={snapshot.total_strategy_assets} count={length}"
        )
        return snapshot

    async def _read_strategy(self, index: int, block: BlockId) -> StrategyRecord:
        address = to_checksum_address(
            await self._gateway.read(self._vault_call("strategies", index), block)
        )
        target_bps, current_assets, want = await asyncio.gather(
            self._gateway.read(self._vault_call("targetBps", address), block),
            self._gateway.read(ContractCall("strategy", address, "totalAssets"), block),
            self._gateway.read(ContractCall("strategy", address, "want"), block),
        )
        return StrategyRecord(
            index=index,
            address=address,
            want_token=to_checksum_address(want),
            target_bps=int(target_bps),
            current_assets=int(current_assets),
        )

    async def token_balance(self, token: str, owner: str, block: BlockId = "latest") -> int:
        call = ContractCall("erc20", token, "balanceOf", (to_checksum_address(owner),))
        return int(await self._gateway.read(call, block))

    async def decimals(self, token: str) -> int:
        token = to_checksum_address(token)
        if token not in self._decimals:
            self._decimals[token] = int(
                await self._gateway.read(ContractCall("erc20", token, "decimals"))
            )
        return self._decimals[token]

    async def pending_fees(self, strategy: str, token: str) -> int:
        """
        Fees owed to ``strategy``'s liquidity position in ``token``.

        Zero when no position manager is configured or the strategy holds
        no position.
        """
        if not self._position_manager:
            return 0

        token_id = int(await self._gateway.read(ContractCall("strategy", strategy, "tokenId")))
        if token_id == 0:
            return 0

        position = await self._gateway.read(
            ContractCall("position_manager", self._position_manager, "positions", (token_id,))
        )
        token0, token1 = position[2], position[3]
        owed0, owed1 = int(position[10]), int(position[11])
        if token.lower() == token0.lower():
            return owed0
        if token.lower() == token1.lower():
            return owed1
        return 0

    async def convert_to_assets(self, shares: int) -> int:
        return int(await self._gateway.read(self._vault_call("convertToAssets", shares)))

    async def read_pool(self, pool: str) -> PoolState:
        pool = to_checksum_address(pool)
        slot0, token0, token1, fee = await asyncio.gather(
            self._gateway.read(ContractCall("pool", pool, "slot0")),
            self._gateway.read(ContractCall("pool", pool, "token0")),
            self._gateway.read(ContractCall("pool", pool, "token1")),
            self._gateway.read(ContractCall("pool", pool, "fee")),
        )
        decimals0, decimals1 = await asyncio.gather(self.decimals(token0), self.decimals(token1))
        return PoolState(
            address=pool,
            token0=to_checksum_address(token0),
            token1=to_checksum_address(token1),
            sqrt_price_x96=int(slot0[0]),
            decimals0=decimals0,
            decimals1=decimals1,
            fee=int(fee),
        )
