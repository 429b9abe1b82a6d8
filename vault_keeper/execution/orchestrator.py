"""
Transaction Orchestrator.

Runs one privileged vault write at a time through authorization,
simulation, gas estimation, submission, confirmation and event checks.
Every aborted path is logged with its decoded reason and re-raised.
"""

from typing import Any, Awaitable, Callable, Optional, Protocol

from vault_keeper.chain.models import ContractCall, Role, TxReceipt
from vault_keeper.config.models import OrchestratorConfig
from vault_keeper.core.exceptions import (
    AuthorizationError,
    EstimationFailure,
    MissingExpectedEvent,
    PlanValidationError,
    TransactionReverted,
    VaultKeeperError,
)
from vault_keeper.core.logger import get_logger

from .models import (
    OperationKind,
    OperationPhase,
    OperationResult,
    OperationStatus,
    PreparedOperation,
)
from .state import OrchestrationState

logger = get_logger(__name__)

BPS_DENOMINATOR = 10_000

PrepareFn = Callable[[], Awaitable[Optional[PreparedOperation]]]


class TransactionGateway(Protocol):
    """Chain access the orchestrator needs."""

    async def has_role(self, role: Role, account: str) -> bool: ...

    async def simulate(self, call: ContractCall, sender: str) -> Any: ...

    async def estimate_gas(self, call: ContractCall, sender: str) -> int: ...

    async def send(self, call: ContractCall, sender: str, gas_limit: int) -> str: ...

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt: ...


class StrategyCounter(Protocol):
    async def strategies_length(self) -> int: ...


class TransactionOrchestrator:
    """
    Drives privileged operations for one vault.

    Example:
        >>> orchestrator = TransactionOrchestrator(gateway, reader, state, sender, config.orchestrator)
        >>> result = await orchestrator.run(OperationKind.INVEST_IDLE, prepare_invest)
        >>> result.status
        <OperationStatus.SUCCESS: 'success'>
    """

    def __init__(
        self,
        gateway: TransactionGateway,
        counter: StrategyCounter,
        state: OrchestrationState,
        sender: str,
        config: Optional[OrchestratorConfig] = None,
    ):
        self._gateway = gateway
        self._counter = counter
        self._state = state
        self._sender = sender
        self._config = config or OrchestratorConfig()

    @property
    def state(self) -> OrchestrationState:
        return self._state

    @property
    def sender(self) -> str:
        return self._sender

    async def run(self, kind: OperationKind, prepare: PrepareFn) -> OperationResult:
        """
        Prepare and execute ``kind`` under the orchestration lock.

        Args:
            kind: Operation being run
            prepare: Builds the call; returning None skips the operation

        Returns:
            OperationResult with SUCCESS or SKIPPED status

        Raises:
            OrchestratorBusyError: Another operation is in flight
            AuthorizationError: Sender lacks the operation's role
            PlanValidationError: Swap data does not match the live strategy count
            SimulationRevert: The dry run reverted
            SubmissionFailure: Broadcast or receipt polling failed
            ReceiptTimeout: No receipt in time
            TransactionReverted: The mined transaction failed
            MissingExpectedEvent: The receipt lacks a required event
        """
        async with self._state.hold(kind):
            try:
                prepared = await prepare()
                if prepared is None:
                    logger.info(f"{kind.value}: nothing to do, skipped")
                    return OperationResult(
                        kind=kind,
                        status=OperationStatus.SKIPPED,
                        phases=list(self._state.phase_history),
                    )
                return await self._execute(kind, prepared)
            except VaultKeeperError as e:
                if self._state.phase != OperationPhase.REVERTED:
                    self._state.set_phase(OperationPhase.FAILED)
                logger.error(f"{kind.value} aborted: {e}")
                raise

    async def _execute(self, kind: OperationKind, prepared: PreparedOperation) -> OperationResult:
        call = prepared.call

        self._state.set_phase(OperationPhase.AUTHORIZATION_CHECK)
        await self._authorize(kind)
        await self._check_swap_data(prepared)

        await self._gateway.simulate(call, self._sender)
        self._state.set_phase(OperationPhase.SIMULATED)
        logger.info(f"{kind.value}: simulation passed for {call.describe()}")

        gas_limit = await self._gas_limit(call)
        self._state.set_phase(OperationPhase.GAS_ESTIMATED)

        tx_hash = await self._gateway.send(call, self._sender, gas_limit)
        self._state.set_phase(OperationPhase.SUBMITTED)
        logger.info(f"{kind.value}: submitted {tx_hash} (gas limit {gas_limit})")

        receipt = await self._gateway.wait_for_receipt(tx_hash)
        self._state.set_phase(OperationPhase.CONFIRMED)

        if not receipt.succeeded:
            self._state.set_phase(OperationPhase.REVERTED)
            raise TransactionReverted(
                f"{kind.value} reverted on-chain in block {receipt.block_number}",
                tx_hash=tx_hash,
            )

        self._check_events(prepared, receipt)
        self._state.set_phase(OperationPhase.SUCCESS)
        logger.info(
            f"{kind.value}: confirmed {tx_hash} in block {receipt.block_number} "
            f"(gas used {receipt.gas_used})"
        )

        return OperationResult(
            kind=kind,
            status=OperationStatus.SUCCESS,
            tx_hash=tx_hash,
            block_number=receipt.block_number,
            gas_limit=gas_limit,
            gas_used=receipt.gas_used,
            events=list(receipt.events),
            outputs=dict(prepared.context),
            phases=list(self._state.phase_history),
        )

    async def _authorize(self, kind: OperationKind) -> None:
        role = kind.required_role
        if not await self._gateway.has_role(role, self._sender):
            raise AuthorizationError(
                f"{self._sender} lacks the {role.value} role required for {kind.value}",
                role=role.value,
                account=self._sender,
            )

    async def _check_swap_data(self, prepared: PreparedOperation) -> None:
        if not prepared.swap_data:
            return
        length = await self._counter.strategies_length()
        for swap_data in prepared.swap_data:
            if len(swap_data) != length:
                raise PlanValidationError(
                    f"Swap data covers {len(swap_data)} strategies, vault has {length}",
                    details={"swap_data_length": len(swap_data), "strategies_length": length},
                )

    async def _gas_limit(self, call: ContractCall) -> int:
        try:
            estimate = await self._gateway.estimate_gas(call, self._sender)
        except EstimationFailure as e:
            logger.warning(
                f"{e}; using fallback gas limit {self._config.fallback_gas_limit}"
            )
            return self._config.fallback_gas_limit
        return estimate * (BPS_DENOMINATOR + self._config.gas_margin_bps) // BPS_DENOMINATOR

    @staticmethod
    def _check_events(prepared: PreparedOperation, receipt: TxReceipt) -> None:
        for expected in prepared.expected_events:
            found = len(receipt.events_named(expected.name, expected.address))
            if found < expected.count:
                raise MissingExpectedEvent(
                    expected.name,
                    tx_hash=receipt.tx_hash,
                    expected=expected.count,
                    found=found,
                )
