"""
Swap Instruction Builder.

Attaches swap legs to allocation plans according to each strategy's
profile and serializes them into the ``bytes[][]`` argument the vault
expects, one inner list per strategy index.
"""

import time
from typing import Callable, Iterable, Optional, Protocol

from eth_utils import to_checksum_address

from vault_keeper.config.models import MinOutMode, StrategyKind, StrategyProfile, SwapConfig, SwapRoute
from vault_keeper.core.exceptions import SwapBuildError
from vault_keeper.core.logger import get_logger
from vault_keeper.planning.models import AllocationPlan, PlanEntry, PlanMode, StrategyRecord
from vault_keeper.pricing import PriceResolver

from .aggregator import AggregatorClient
from .encoding import encode_exact_input_single
from .models import SwapInstruction, SwapKind, SwapPhase

logger = get_logger(__name__)

FEE_DENOMINATOR = 1_000_000
BPS_DENOMINATOR = 10_000

SwapData = list[list[bytes]]


class BalanceReader(Protocol):
    """Reads the token amounts harvest swaps are sized from."""

    async def token_balance(self, token: str, owner: str) -> int: ...

    async def pending_fees(self, strategy: str, token: str) -> int: ...


class SwapInstructionBuilder:
    """
    Builds swap instructions per strategy profile.

    Strategies without a configured profile are treated as ``direct``.

    Example:
        >>> builder = SwapInstructionBuilder(config.swap, config.strategies, reader, resolver)
        >>> await builder.attach(plan, snapshot.asset, SwapPhase.INVEST)
        >>> all_swap_data = builder.build_all_swap_data(plan, SwapPhase.INVEST)
    """

    def __init__(
        self,
        swap_config: SwapConfig,
        profiles: Iterable[StrategyProfile] = (),
        reader: Optional[BalanceReader] = None,
        price_resolver: Optional[PriceResolver] = None,
        aggregator: Optional[AggregatorClient] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._config = swap_config
        self._profiles = {p.address.lower(): p for p in profiles}
        self._reader = reader
        self._price_resolver = price_resolver
        self._aggregator = aggregator
        self._clock = clock

    def profile_for(self, strategy: str) -> StrategyProfile:
        profile = self._profiles.get(strategy.lower())
        if profile is None:
            return StrategyProfile(address=strategy, kind=StrategyKind.DIRECT)
        return profile

    # =========================================================================
    # Leg construction
    # =========================================================================

    @staticmethod
    def invest_leg_amount(profile: StrategyProfile, amount: int) -> int:
        """Base-asset amount swapped into each pair token."""
        if profile.kind != StrategyKind.PAIRED_LIQUIDITY:
            return 0
        return amount // (len(profile.pair_tokens) + 1)

    async def build_invest_legs(self, entry: PlanEntry, asset: str) -> list[SwapInstruction]:
        """Base asset into each pair token, sized from ``entry.invest_amount``."""
        profile = self.profile_for(entry.address)
        leg_amount = self.invest_leg_amount(profile, entry.invest_amount)
        if leg_amount <= 0:
            return []

        return [
            await self._build_leg(profile, asset, pair_token, leg_amount, entry.address)
            for pair_token in profile.pair_tokens
        ]

    async def build_harvest_legs(self, record: StrategyRecord, asset: str) -> list[SwapInstruction]:
        """Each pair token back into the base asset: held balance plus owed fees."""
        profile = self.profile_for(record.address)
        if profile.kind != StrategyKind.PAIRED_LIQUIDITY:
            return []
        if self._reader is None:
            raise SwapBuildError("Harvest swaps need a balance reader")

        legs = []
        for pair_token in profile.pair_tokens:
            balance = await self._reader.token_balance(pair_token, record.address)
            owed = await self._reader.pending_fees(record.address, pair_token)
            amount = balance + owed
            if amount <= 0:
                logger.debug(f"No {pair_token} to harvest in {record.address}")
                continue
            legs.append(await self._build_leg(profile, pair_token, asset, amount, record.address))
        return legs

    async def _build_leg(
        self,
        profile: StrategyProfile,
        token_in: str,
        token_out: str,
        amount_in: int,
        recipient: str,
    ) -> SwapInstruction:
        if profile.route == SwapRoute.AGGREGATOR:
            return await self._build_aggregator_leg(token_in, token_out, amount_in, recipient)

        if not self._config.router:
            raise SwapBuildError("No swap router configured")

        fee = profile.fee_tier or self._config.fee_tier
        min_out = await self._min_out(profile, token_in, amount_in)
        deadline = int(self._clock()) + self._config.deadline_seconds
        inner_call = encode_exact_input_single(
            token_in=token_in,
            token_out=token_out,
            fee=fee,
            recipient=recipient,
            deadline=deadline,
            amount_in=amount_in,
            amount_out_minimum=min_out,
        )
        return SwapInstruction(
            kind=SwapKind.EXACT_INPUT_SINGLE,
            router=self._config.router,
            token_in=to_checksum_address(token_in),
            token_out=to_checksum_address(token_out),
            amount_in=amount_in,
            min_out=min_out,
            recipient=to_checksum_address(recipient),
            inner_call=inner_call,
            deadline=deadline,
        )

    async def _build_aggregator_leg(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        recipient: str,
    ) -> SwapInstruction:
        if self._aggregator is None:
            raise SwapBuildError("Aggregator route configured but no aggregator client")

        quote = await self._aggregator.quote(token_in, token_out, amount_in, taker=recipient)
        return SwapInstruction(
            kind=SwapKind.AGGREGATOR,
            router=quote.to,
            token_in=to_checksum_address(token_in),
            token_out=to_checksum_address(token_out),
            amount_in=amount_in,
            min_out=quote.min_out(self._config.slippage_bps),
            recipient=to_checksum_address(recipient),
            inner_call=quote.data,
        )

    async def _min_out(
        self,
        profile: StrategyProfile,
        token_in: str,
        amount_in: int,
    ) -> int:
        if self._config.min_out_mode == MinOutMode.ZERO:
            logger.warning(
                f"Swap {amount_in} {token_in} for {profile.address} has no output bound (min_out_mode=zero)"
            )
            return 0

        if self._price_resolver is None or not profile.pool:
            raise SwapBuildError(f"No pool to bound swap output for {profile.address}")

        quote = await self._price_resolver.resolve(profile.pool, token_in)
        if quote.is_placeholder:
            raise SwapBuildError(
                f"Pool {profile.pool} price unavailable; refusing to build an unbounded swap"
            )

        expected = quote.convert(amount_in)
        after_fee = expected * (FEE_DENOMINATOR - quote.fee) // FEE_DENOMINATOR
        return after_fee * (BPS_DENOMINATOR - self._config.slippage_bps) // BPS_DENOMINATOR

    # =========================================================================
    # Plan level
    # =========================================================================

    async def attach(self, plan: AllocationPlan, asset: str, phase: SwapPhase) -> AllocationPlan:
        """Fill ``swap_instructions`` on every entry for ``phase``."""
        self._check_phase(plan, phase)
        for entry in plan.entries:
            if phase == SwapPhase.INVEST:
                entry.swap_instructions = await self.build_invest_legs(entry, asset)
            elif phase == SwapPhase.HARVEST:
                entry.swap_instructions = await self.build_harvest_legs(entry.strategy, asset)
            else:
                entry.swap_instructions = []
        logger.debug(f"Attached {plan.instruction_count} {phase.value} swap(s) to {plan.mode.value} plan")
        return plan

    def expected_legs(self, entry: PlanEntry, phase: SwapPhase) -> int:
        """Exact leg count for invest/withdraw; upper bound for harvest."""
        profile = self.profile_for(entry.address)
        if profile.kind != StrategyKind.PAIRED_LIQUIDITY or phase == SwapPhase.WITHDRAW:
            return 0
        if phase == SwapPhase.HARVEST:
            return len(profile.pair_tokens)
        if self.invest_leg_amount(profile, entry.invest_amount) <= 0:
            return 0
        return len(profile.pair_tokens)

    def build_all_swap_data(self, plan: AllocationPlan, phase: SwapPhase) -> SwapData:
        """
        Serialize ``plan`` into the vault's ``bytes[][]`` argument.

        Withdraw-direction data is always empty per strategy; the plan's
        invest legs are not reused for it.

        Raises:
            SwapBuildError: An entry's leg count or legs do not match its profile
        """
        self._check_phase(plan, phase)
        all_swap_data: SwapData = []
        for position, entry in enumerate(plan.entries):
            if entry.index != position:
                raise SwapBuildError(f"Plan entry {position} carries index {entry.index}")

            if phase == SwapPhase.WITHDRAW:
                all_swap_data.append([])
                continue

            legs = entry.swap_instructions
            expected = self.expected_legs(entry, phase)
            count_ok = len(legs) <= expected if phase == SwapPhase.HARVEST else len(legs) == expected
            if not count_ok:
                raise SwapBuildError(
                    f"Strategy {entry.address} has {len(legs)} {phase.value} swap(s), expected {expected}",
                    details={"index": entry.index, "profile": self.profile_for(entry.address).kind.value},
                )
            for leg in legs:
                if leg.amount_in <= 0:
                    raise SwapBuildError(f"Zero-amount swap for {entry.address}")
                if leg.recipient.lower() != entry.address.lower():
                    raise SwapBuildError(f"Swap for {entry.address} pays {leg.recipient}")

            all_swap_data.append([leg.encode() for leg in legs])
        return all_swap_data

    @staticmethod
    def _check_phase(plan: AllocationPlan, phase: SwapPhase) -> None:
        allowed = {
            SwapPhase.INVEST: (PlanMode.INVEST, PlanMode.REBALANCE),
            SwapPhase.WITHDRAW: (PlanMode.INVEST, PlanMode.REBALANCE, PlanMode.HARVEST),
            SwapPhase.HARVEST: (PlanMode.HARVEST,),
        }
        if plan.mode not in allowed[phase]:
            raise SwapBuildError(f"Cannot build {phase.value} swaps for a {plan.mode.value} plan")

    @staticmethod
    def empty_swap_data(length: int) -> SwapData:
        return [[] for _ in range(length)]
