"""
Planning Models.

Snapshots of vault state and the allocation plans derived from them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

BPS_DENOMINATOR = 10_000


class PlanMode(str, Enum):
    """What a plan moves funds for."""
    INVEST = "invest"
    REBALANCE = "rebalance"
    HARVEST = "harvest"


@dataclass(frozen=True)
class StrategyRecord:
    """
    One strategy as registered in the vault.

    Attributes:
        index: Position in the vault's strategy list
        address: Strategy contract
        want_token: Token the strategy accounts in
        target_bps: Target share of funds in basis points
        current_assets: Assets currently held, in base-asset units
    """
    index: int
    address: str
    want_token: str
    target_bps: int
    current_assets: int


@dataclass(frozen=True)
class VaultSnapshot:
    """Vault state read in a single planning pass."""
    vault: str
    asset: str
    total_idle: int
    total_assets: int
    strategies: tuple[StrategyRecord, ...] = ()
    block_number: int = 0

    @property
    def total_strategy_assets(self) -> int:
        return sum(s.current_assets for s in self.strategies)

    @property
    def total_target_bps(self) -> int:
        return sum(s.target_bps for s in self.strategies)

    @property
    def strategies_length(self) -> int:
        return len(self.strategies)


@dataclass
class PlanEntry:
    """
    Movement planned for one strategy index.

    ``withdraw_amount`` is positive only when the strategy is over its
    target and ``invest_amount`` only when it is under.
    """
    index: int
    strategy: StrategyRecord
    target_amount: int
    withdraw_amount: int = 0
    invest_amount: int = 0
    drift_bps: int = 0
    swap_instructions: list = field(default_factory=list)

    @property
    def address(self) -> str:
        return self.strategy.address


@dataclass
class AllocationPlan:
    """Ordered per-strategy plan; entry position equals the on-chain index."""
    mode: PlanMode
    baseline: int
    entries: list[PlanEntry] = field(default_factory=list)

    @property
    def is_balanced(self) -> bool:
        """True when nothing needs to leave any strategy."""
        return all(entry.withdraw_amount == 0 for entry in self.entries)

    @property
    def total_withdraw(self) -> int:
        return sum(entry.withdraw_amount for entry in self.entries)

    @property
    def total_invest(self) -> int:
        return sum(entry.invest_amount for entry in self.entries)

    @property
    def withdraw_amounts(self) -> list[int]:
        return [entry.withdraw_amount for entry in self.entries]

    @property
    def invest_amounts(self) -> list[int]:
        return [entry.invest_amount for entry in self.entries]

    @property
    def max_drift_bps(self) -> int:
        return max((abs(entry.drift_bps) for entry in self.entries), default=0)

    @property
    def instruction_count(self) -> int:
        return sum(len(entry.swap_instructions) for entry in self.entries)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "baseline": self.baseline,
            "is_balanced": self.is_balanced,
            "max_drift_bps": self.max_drift_bps,
            "entries": [
                {
                    "index": entry.index,
                    "strategy": entry.address,
                    "target_bps": entry.strategy.target_bps,
                    "current": entry.strategy.current_assets,
                    "target": entry.target_amount,
                    "withdraw": entry.withdraw_amount,
                    "invest": entry.invest_amount,
                    "drift_bps": entry.drift_bps,
                    "swaps": len(entry.swap_instructions),
                }
                for entry in self.entries
            ],
        }
