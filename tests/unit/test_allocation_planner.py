"""
Tests for Allocation Planner.

Tests invest distribution, rebalance withdraw/invest amounts and
snapshot validation.
"""

import pytest

from vault_keeper.core.exceptions import PlanValidationError
from vault_keeper.planning import (
    AllocationPlanner,
    PlanMode,
    StrategyRecord,
    VaultSnapshot,
)
from tests.mocks import ASSET, STRATEGY_A, STRATEGY_B, STRATEGY_C, VAULT


def make_snapshot(idle: int, weights: list[tuple[str, int, int]]) -> VaultSnapshot:
    records = tuple(
        StrategyRecord(
            index=i,
            address=address,
            want_token=ASSET,
            target_bps=bps,
            current_assets=current,
        )
        for i, (address, bps, current) in enumerate(weights)
    )
    return VaultSnapshot(
        vault=VAULT,
        asset=ASSET,
        total_idle=idle,
        total_assets=idle + sum(r.current_assets for r in records),
        strategies=records,
    )


@pytest.fixture
def planner():
    return AllocationPlanner()


# =============================================================================
# Invest
# =============================================================================


class TestPlanInvest:
    """Tests for idle fund distribution."""

    def test_invest_by_weight(self, planner):
        snapshot = make_snapshot(1000, [(STRATEGY_A, 6000, 0), (STRATEGY_B, 4000, 0)])

        plan = planner.plan_invest(snapshot)

        assert plan.mode == PlanMode.INVEST
        assert plan.invest_amounts == [600, 400]
        assert plan.withdraw_amounts == [0, 0]
        assert plan.baseline == 1000

    def test_full_weights_distribute_everything(self, planner):
        snapshot = make_snapshot(10_000, [(STRATEGY_A, 2500, 0), (STRATEGY_B, 7500, 0)])

        plan = planner.plan_invest(snapshot)

        assert plan.total_invest == 10_000

    @pytest.mark.parametrize("idle", [1, 7, 999, 1001, 123456789])
    def test_invest_never_exceeds_idle(self, planner, idle):
        snapshot = make_snapshot(
            idle, [(STRATEGY_A, 3333, 0), (STRATEGY_B, 3333, 0), (STRATEGY_C, 3334, 0)]
        )

        plan = planner.plan_invest(snapshot)

        assert plan.total_invest <= idle

    def test_partial_weights_leave_remainder_idle(self, planner):
        snapshot = make_snapshot(1000, [(STRATEGY_A, 5000, 0)])

        plan = planner.plan_invest(snapshot)

        assert plan.invest_amounts == [500]

    def test_positions_match_indices(self, planner):
        snapshot = make_snapshot(1000, [(STRATEGY_A, 5000, 0), (STRATEGY_B, 5000, 0)])

        plan = planner.plan_invest(snapshot)

        assert [e.index for e in plan.entries] == [0, 1]
        assert [e.address for e in plan.entries] == [STRATEGY_A, STRATEGY_B]


# =============================================================================
# Rebalance
# =============================================================================


class TestPlanRebalance:
    """Tests for moving funds between strategies."""

    def test_overweight_strategy_withdraws(self, planner):
        snapshot = make_snapshot(0, [(STRATEGY_A, 6000, 700), (STRATEGY_B, 4000, 300)])

        plan = planner.plan_rebalance(snapshot)

        assert plan.baseline == 1000
        assert plan.withdraw_amounts == [100, 0]
        assert plan.invest_amounts == [0, 100]
        assert not plan.is_balanced

    def test_on_target_is_balanced(self, planner):
        snapshot = make_snapshot(0, [(STRATEGY_A, 6000, 600), (STRATEGY_B, 4000, 400)])

        plan = planner.plan_rebalance(snapshot)

        assert plan.is_balanced
        assert plan.total_withdraw == 0

    def test_baseline_ignores_idle(self, planner):
        snapshot = make_snapshot(5000, [(STRATEGY_A, 5000, 500), (STRATEGY_B, 5000, 500)])

        plan = planner.plan_rebalance(snapshot)

        assert plan.baseline == 1000
        assert plan.is_balanced

    @pytest.mark.parametrize(
        "holdings",
        [
            (900, 50, 50),
            (1, 2, 3),
            (333, 333, 334),
            (0, 0, 1000),
        ],
    )
    def test_withdraw_matches_invest_within_rounding(self, planner, holdings):
        weights = [
            (STRATEGY_A, 5000, holdings[0]),
            (STRATEGY_B, 3000, holdings[1]),
            (STRATEGY_C, 2000, holdings[2]),
        ]
        plan = planner.plan_rebalance(make_snapshot(0, weights))

        for entry in plan.entries:
            if entry.strategy.current_assets <= entry.target_amount:
                assert entry.withdraw_amount == 0
        assert abs(plan.total_withdraw - plan.total_invest) < len(weights)

    def test_drift_bps(self, planner):
        snapshot = make_snapshot(0, [(STRATEGY_A, 6000, 700), (STRATEGY_B, 4000, 300)])

        plan = planner.plan_rebalance(snapshot)

        assert [e.drift_bps for e in plan.entries] == [1000, -1000]
        assert plan.max_drift_bps == 1000

    def test_empty_vault(self, planner):
        plan = planner.plan_rebalance(make_snapshot(0, [(STRATEGY_A, 6000, 0)]))

        assert plan.is_balanced
        assert plan.max_drift_bps == 0


# =============================================================================
# Validation
# =============================================================================


class TestValidation:
    """Tests for rejected snapshots."""

    def test_weights_over_100_percent(self, planner):
        snapshot = make_snapshot(1000, [(STRATEGY_A, 6000, 0), (STRATEGY_B, 4001, 0)])

        with pytest.raises(PlanValidationError):
            planner.plan_invest(snapshot)

    def test_negative_holdings(self, planner):
        snapshot = make_snapshot(0, [(STRATEGY_A, 6000, -1)])

        with pytest.raises(PlanValidationError):
            planner.plan_rebalance(snapshot)

    def test_out_of_order_indices(self, planner):
        record = StrategyRecord(index=1, address=STRATEGY_A, want_token=ASSET, target_bps=100, current_assets=0)
        snapshot = VaultSnapshot(vault=VAULT, asset=ASSET, total_idle=0, total_assets=0, strategies=(record,))

        with pytest.raises(PlanValidationError):
            planner.plan_invest(snapshot)

    def test_harvest_plan_has_no_movements(self, planner):
        snapshot = make_snapshot(0, [(STRATEGY_A, 6000, 700), (STRATEGY_B, 4000, 300)])

        plan = planner.plan_harvest(snapshot)

        assert plan.mode == PlanMode.HARVEST
        assert plan.total_invest == 0
        assert plan.total_withdraw == 0
