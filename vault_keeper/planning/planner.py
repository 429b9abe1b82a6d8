"""
Allocation Planner.

Pure arithmetic turning a ``VaultSnapshot`` into an ``AllocationPlan``.
All amounts are integers in the vault asset's raw units and every
division floors; the remainder stays idle.
"""

from vault_keeper.core.exceptions import PlanValidationError
from vault_keeper.core.logger import get_logger

from .models import (
    BPS_DENOMINATOR,
    AllocationPlan,
    PlanEntry,
    PlanMode,
    StrategyRecord,
    VaultSnapshot,
)

logger = get_logger(__name__)


class AllocationPlanner:
    """
    Computes invest and rebalance plans.

    Example:
        >>> planner = AllocationPlanner()
        >>> plan = planner.plan_invest(snapshot)
        >>> [e.invest_amount for e in plan.entries]
        [600, 400]
    """

    def plan_invest(self, snapshot: VaultSnapshot) -> AllocationPlan:
        """
        Distribute idle funds by target weight.

        Each strategy receives ``total_idle * target_bps // 10000``. Nothing
        is withdrawn.
        """
        self.validate(snapshot)

        entries = []
        for record in snapshot.strategies:
            target = snapshot.total_idle * record.target_bps // BPS_DENOMINATOR
            entries.append(PlanEntry(
                index=record.index,
                strategy=record,
                target_amount=target,
                invest_amount=target,
            ))

        plan = AllocationPlan(mode=PlanMode.INVEST, baseline=snapshot.total_idle, entries=entries)
        logger.debug(
            f"Invest plan: idle={snapshot.total_idle} amounts={plan.invest_amounts}"
        )
        return plan

    def plan_rebalance(self, snapshot: VaultSnapshot) -> AllocationPlan:
        """
        Move funds between strategies toward their target weights.

        The baseline is the sum of strategy holdings, not idle funds.
        """
        self.validate(snapshot)

        baseline = snapshot.total_strategy_assets
        entries = []
        for record in snapshot.strategies:
            target = baseline * record.target_bps // BPS_DENOMINATOR
            current = record.current_assets
            entries.append(PlanEntry(
                index=record.index,
                strategy=record,
                target_amount=target,
                withdraw_amount=max(0, current - target),
                invest_amount=max(0, target - current),
                drift_bps=self.drift_bps(record, baseline),
            ))

        plan = AllocationPlan(mode=PlanMode.REBALANCE, baseline=baseline, entries=entries)
        logger.debug(
            f"Rebalance plan: baseline={baseline} withdraw={plan.withdraw_amounts} "
            f"invest={plan.invest_amounts} max_drift={plan.max_drift_bps}bps"
        )
        return plan

    def plan_harvest(self, snapshot: VaultSnapshot) -> AllocationPlan:
        """One empty entry per strategy, to carry harvest swap legs."""
        self.validate(snapshot)
        entries = [
            PlanEntry(index=record.index, strategy=record, target_amount=record.current_assets)
            for record in snapshot.strategies
        ]
        return AllocationPlan(
            mode=PlanMode.HARVEST,
            baseline=snapshot.total_strategy_assets,
            entries=entries,
        )

    @staticmethod
    def drift_bps(record: StrategyRecord, baseline: int) -> int:
        """Current share minus target share of ``baseline``, in bps."""
        if baseline <= 0:
            return 0
        current_bps = record.current_assets * BPS_DENOMINATOR // baseline
        return current_bps - record.target_bps

    @staticmethod
    def validate(snapshot: VaultSnapshot) -> None:
        """
        Reject snapshots no plan can be built from.

        Raises:
            PlanValidationError: Weights exceed 100%, negative holdings,
                or indices out of order
        """
        total_bps = snapshot.total_target_bps
        if total_bps > BPS_DENOMINATOR:
            raise PlanValidationError(
                f"Target weights sum to {total_bps} bps (> {BPS_DENOMINATOR})",
                details={"total_bps": total_bps},
            )
        if snapshot.total_idle < 0:
            raise PlanValidationError(f"Negative idle balance: {snapshot.total_idle}")

        for position, record in enumerate(snapshot.strategies):
            if record.index != position:
                raise PlanValidationError(
                    f"Strategy {record.address} has index {record.index}, expected {position}"
                )
            if record.target_bps < 0:
                raise PlanValidationError(f"Negative target bps for {record.address}")
            if record.current_assets < 0:
                raise PlanValidationError(
                    f"Negative holdings for {record.address}: {record.current_assets}"
                )
