"""
Vault Keeper Service.

Wires snapshot reads, planning, swap building and the transaction
orchestrator into the vault's privileged operations.
"""

from typing import Optional

from eth_utils import to_checksum_address

from vault_keeper.chain.client import Web3Gateway
from vault_keeper.chain.models import ContractCall
from vault_keeper.chain.vault import VaultStateReader
from vault_keeper.config.models import AppConfig, SwapRoute
from vault_keeper.core.exceptions import AuthorizationError, PlanValidationError
from vault_keeper.core.logger import get_logger
from vault_keeper.execution.models import (
    ExpectedEvent,
    OperationKind,
    OperationResult,
    OperationStatus,
    PendingDepositEvent,
    PreparedOperation,
)
from vault_keeper.execution.orchestrator import TransactionOrchestrator
from vault_keeper.execution.state import OrchestrationState
from vault_keeper.planning.models import BPS_DENOMINATOR, AllocationPlan
from vault_keeper.planning.planner import AllocationPlanner
from vault_keeper.pricing import PriceQuote, PriceResolver
from vault_keeper.swap.aggregator import AggregatorClient
from vault_keeper.swap.builder import SwapInstructionBuilder
from vault_keeper.swap.models import SwapPhase
from vault_keeper.watcher.event_watcher import DepositLogPoller, EventWatcher

logger = get_logger(__name__)


class VaultKeeper:
    """
    Keeper for one vault.

    Example:
        >>> keeper = VaultKeeper.from_config(config)
        >>> result = await keeper.attempt_invest()
        >>> await keeper.close()
    """

    def __init__(
        self,
        config: AppConfig,
        reader: VaultStateReader,
        orchestrator: TransactionOrchestrator,
        builder: SwapInstructionBuilder,
        price_resolver: PriceResolver,
        planner: Optional[AllocationPlanner] = None,
        gateway: Optional[Web3Gateway] = None,
        aggregator: Optional[AggregatorClient] = None,
    ):
        self._config = config
        self._reader = reader
        self._orchestrator = orchestrator
        self._builder = builder
        self._price_resolver = price_resolver
        self._planner = planner or AllocationPlanner()
        self._gateway = gateway
        self._aggregator = aggregator
        self._vault = config.vault.address
        self._exchanger = config.vault.exchanger

    @classmethod
    def from_config(cls, config: AppConfig, state: Optional[OrchestrationState] = None) -> "VaultKeeper":
        """Build the keeper and all its collaborators from configuration."""
        gateway = Web3Gateway.from_config(config)
        reader = VaultStateReader(gateway, config.vault.address, config.vault.position_manager)
        resolver = PriceResolver(reader, placeholder_rate=config.orchestrator.placeholder_rate)

        aggregator = None
        if any(p.route == SwapRoute.AGGREGATOR for p in config.strategies):
            aggregator = AggregatorClient.from_config(config.swap.aggregator)

        builder = SwapInstructionBuilder(
            config.swap,
            config.strategies,
            reader=reader,
            price_resolver=resolver,
            aggregator=aggregator,
        )
        orchestrator = TransactionOrchestrator(
            gateway,
            reader,
            state or OrchestrationState(),
            sender=gateway.account or "",
            config=config.orchestrator,
        )
        return cls(
            config,
            reader,
            orchestrator,
            builder,
            resolver,
            gateway=gateway,
            aggregator=aggregator,
        )

    @property
    def state(self) -> OrchestrationState:
        return self._orchestrator.state

    async def close(self) -> None:
        if self._aggregator is not None:
            await self._aggregator.close()
        if self._gateway is not None:
            await self._gateway.close()

    def _require_signer(self) -> None:
        if not self._orchestrator.sender:
            raise AuthorizationError("No signing key configured (chain.private_key)")

    # =========================================================================
    # Planning
    # =========================================================================

    async def plan_invest(self) -> AllocationPlan:
        snapshot = await self._reader.snapshot()
        plan = self._planner.plan_invest(snapshot)
        return await self._builder.attach(plan, snapshot.asset, SwapPhase.INVEST)

    async def plan_rebalance(self) -> AllocationPlan:
        snapshot = await self._reader.snapshot()
        plan = self._planner.plan_rebalance(snapshot)
        return await self._builder.attach(plan, snapshot.asset, SwapPhase.INVEST)

    async def price(self, pool: str, token: str) -> PriceQuote:
        return await self._price_resolver.resolve(pool, token)

    # =========================================================================
    # Operations
    # =========================================================================

    async def attempt_invest(self, event: Optional[PendingDepositEvent] = None) -> OperationResult:
        """
        Invest idle funds by target weight.

        Skipped when there is nothing idle to distribute.
        """
        self._require_signer()

        async def prepare() -> Optional[PreparedOperation]:
            snapshot = await self._reader.snapshot()
            if snapshot.total_idle == 0:
                logger.info("No idle funds to invest")
                return None

            plan = self._planner.plan_invest(snapshot)
            if plan.total_invest == 0:
                logger.info(f"Idle {snapshot.total_idle} rounds to zero across targets")
                return None

            await self._builder.attach(plan, snapshot.asset, SwapPhase.INVEST)
            all_swap_data = self._builder.build_all_swap_data(plan, SwapPhase.INVEST)
            swaps = plan.instruction_count
            logger.info(
                f"Investing {plan.total_invest} of {snapshot.total_idle} idle "
                f"as {plan.invest_amounts} with {swaps} swap(s)"
            )
            return PreparedOperation(
                call=ContractCall("vault", self._vault, "investIdle", (all_swap_data,)),
                swap_data=[all_swap_data],
                expected_events=self._swap_events(swaps),
                context={
                    "invested": plan.total_invest,
                    "invest_amounts": plan.invest_amounts,
                    "swaps": swaps,
                    "trigger_block": event.block_number if event else None,
                },
            )

        result = await self._orchestrator.run(OperationKind.INVEST_IDLE, prepare)
        return self._with_swap_outputs(result)

    async def rebalance(self) -> OperationResult:
        """
        Move funds from over-weight to under-weight strategies.

        Skipped when balanced or when the largest drift is under
        ``orchestrator.rebalance_threshold_bps``.
        """
        self._require_signer()
        threshold = self._config.orchestrator.rebalance_threshold_bps

        async def prepare() -> Optional[PreparedOperation]:
            snapshot = await self._reader.snapshot()
            plan = self._planner.plan_rebalance(snapshot)
            if plan.is_balanced:
                logger.info("Strategies already at or under target; nothing to rebalance")
                return None
            if plan.max_drift_bps < threshold:
                logger.info(f"Max drift {plan.max_drift_bps}bps below threshold {threshold}bps")
                return None

            await self._builder.attach(plan, snapshot.asset, SwapPhase.INVEST)
            withdraw_data = self._builder.build_all_swap_data(plan, SwapPhase.WITHDRAW)
            invest_data = self._builder.build_all_swap_data(plan, SwapPhase.INVEST)
            swaps = plan.instruction_count
            logger.info(
                f"Rebalancing baseline {plan.baseline}: withdraw {plan.withdraw_amounts} "
                f"invest {plan.invest_amounts}"
            )
            return PreparedOperation(
                call=ContractCall("vault", self._vault, "rebalance", (withdraw_data, invest_data)),
                swap_data=[withdraw_data, invest_data],
                expected_events=self._swap_events(swaps),
                context={
                    "withdrawn": plan.total_withdraw,
                    "withdraw_amounts": plan.withdraw_amounts,
                    "invest_amounts": plan.invest_amounts,
                    "max_drift_bps": plan.max_drift_bps,
                    "swaps": swaps,
                },
            )

        result = await self._orchestrator.run(OperationKind.REBALANCE, prepare)
        return self._with_swap_outputs(result)

    async def harvest(self) -> OperationResult:
        """Swap pair-token balances back and realize profit and fees."""
        self._require_signer()

        async def prepare() -> Optional[PreparedOperation]:
            snapshot = await self._reader.snapshot()
            plan = self._planner.plan_harvest(snapshot)
            await self._builder.attach(plan, snapshot.asset, SwapPhase.HARVEST)
            all_swap_data = self._builder.build_all_swap_data(plan, SwapPhase.HARVEST)
            return PreparedOperation(
                call=ContractCall("vault", self._vault, "harvestAll", (all_swap_data,)),
                swap_data=[all_swap_data],
                expected_events=[ExpectedEvent("Harvest", self._vault)],
                context={"swaps": plan.instruction_count},
            )

        result = await self._orchestrator.run(OperationKind.HARVEST, prepare)
        if result.status == OperationStatus.SUCCESS:
            args = result.events_named("Harvest")[0].args
            result.outputs.update({
                "realized_profit": int(args["realizedProfit"]),
                "management_fee": int(args["mgmtFee"]),
                "performance_fee": int(args["perfFee"]),
                "tvl_after": int(args["tvlAfter"]),
            })
            logger.info(
                f"Harvest realized {result.outputs['realized_profit']} "
                f"(fees {result.outputs['management_fee']}/{result.outputs['performance_fee']})"
            )
        return result

    async def withdraw(self, shares: int, receiver: str) -> OperationResult:
        """
        Redeem ``shares`` to ``receiver``.

        The exit fee is the previewed asset value minus what was received.
        """
        self._require_signer()
        if shares <= 0:
            raise PlanValidationError(f"Shares to withdraw must be positive, got {shares}")
        receiver = to_checksum_address(receiver)

        async def prepare() -> Optional[PreparedOperation]:
            length = await self._reader.strategies_length()
            preview = await self._reader.convert_to_assets(shares)
            all_swap_data = SwapInstructionBuilder.empty_swap_data(length)
            return PreparedOperation(
                call=ContractCall("vault", self._vault, "withdraw", (shares, receiver, all_swap_data)),
                swap_data=[all_swap_data],
                expected_events=[ExpectedEvent("Withdraw", self._vault)],
                context={"shares": shares, "receiver": receiver, "preview_assets": preview},
            )

        result = await self._orchestrator.run(OperationKind.WITHDRAW, prepare)
        if result.status == OperationStatus.SUCCESS:
            assets = int(result.events_named("Withdraw")[0].args["assets"])
            preview = result.outputs["preview_assets"]
            result.outputs.update({"assets": assets, "exit_fee": max(0, preview - assets)})
            logger.info(f"Withdrew {assets} for {shares} shares (exit fee {result.outputs['exit_fee']})")
        return result

    async def set_strategy(self, strategy: str, bps: int) -> OperationResult:
        """
        Register a strategy or change its target weight.

        Rejected locally when the resulting weights would exceed 100%.
        """
        self._require_signer()
        strategy = to_checksum_address(strategy)
        if not 0 <= bps <= BPS_DENOMINATOR:
            raise PlanValidationError(f"Target bps must be within [0, {BPS_DENOMINATOR}], got {bps}")

        async def prepare() -> Optional[PreparedOperation]:
            snapshot = await self._reader.snapshot()
            others = sum(
                s.target_bps for s in snapshot.strategies if s.address.lower() != strategy.lower()
            )
            if others + bps > BPS_DENOMINATOR:
                raise PlanValidationError(
                    f"Target weights would sum to {others + bps} bps",
                    details={"strategy": strategy, "bps": bps},
                )
            return PreparedOperation(
                call=ContractCall("vault", self._vault, "setStrategy", (strategy, bps)),
                expected_events=[ExpectedEvent("StrategySet", self._vault)],
                context={"strategy": strategy, "bps": bps},
            )

        return await self._orchestrator.run(OperationKind.SET_STRATEGY, prepare)

    async def allow_router(self, router: str, allowed: bool = True) -> OperationResult:
        """Allow or disallow a router on the exchanger; skipped if unchanged."""
        self._require_signer()
        router = to_checksum_address(router)

        async def prepare() -> Optional[PreparedOperation]:
            if self._gateway is not None:
                current = await self._gateway.read(
                    ContractCall("exchanger", self._exchanger, "routers", (router,))
                )
                if bool(current) == allowed:
                    logger.info(f"Router {router} already {'allowed' if allowed else 'disallowed'}")
                    return None
            return PreparedOperation(
                call=ContractCall("exchanger", self._exchanger, "setRouter", (router, allowed)),
                context={"router": router, "allowed": allowed},
            )

        return await self._orchestrator.run(OperationKind.SET_ROUTER, prepare)

    # =========================================================================
    # Watching
    # =========================================================================

    async def invest_after_deposit(self, event: PendingDepositEvent) -> None:
        result = await self.attempt_invest(event)
        if result.status == OperationStatus.SUCCESS:
            logger.info(f"Invested after deposit at block {event.block_number}: {result.tx_hash}")

    def create_watcher(self) -> EventWatcher:
        if self._gateway is None:
            raise ValueError("Watching deposits needs a chain gateway")
        poller = DepositLogPoller(self._gateway, self._vault)
        return EventWatcher(
            self.state,
            self.invest_after_deposit,
            debounce_seconds=self._config.orchestrator.debounce_seconds,
            poller=poller,
            poll_interval=self._config.orchestrator.poll_interval,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _swap_events(self, count: int) -> list[ExpectedEvent]:
        # investIdle and rebalance emit no vault event; all-direct plans check nothing
        if count == 0:
            return []
        return [ExpectedEvent("Swap", self._exchanger, count)]

    @staticmethod
    def _with_swap_outputs(result: OperationResult) -> OperationResult:
        if result.status == OperationStatus.SUCCESS:
            result.outputs["swap_events"] = [
                {
                    "token_in": event.args["tokenIn"],
                    "token_out": event.args["tokenOut"],
                    "amount_in": int(event.args["amountIn"]),
                    "to": event.args["to"],
                }
                for event in result.events_named("Swap")
            ]
        return result
