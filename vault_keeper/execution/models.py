"""
Execution Models.

Operation kinds, lifecycle phases and the records passed through the
transaction orchestrator.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from vault_keeper.chain.models import ContractCall, DecodedEvent, Role


class OperationKind(str, Enum):
    """Privileged vault operations."""
    INVEST_IDLE = "invest_idle"
    REBALANCE = "rebalance"
    HARVEST = "harvest"
    WITHDRAW = "withdraw"
    SET_STRATEGY = "set_strategy"
    SET_ROUTER = "set_router"

    @property
    def required_role(self) -> Role:
        if self == OperationKind.HARVEST:
            return Role.KEEPER
        return Role.MANAGER


class OperationPhase(str, Enum):
    """Lifecycle of one privileged write."""
    IDLE = "idle"
    PREPARING = "preparing"
    AUTHORIZATION_CHECK = "authorization_check"
    SIMULATED = "simulated"
    GAS_ESTIMATED = "gas_estimated"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    SUCCESS = "success"
    REVERTED = "reverted"
    FAILED = "failed"


class OperationStatus(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ExpectedEvent:
    """An event the receipt must contain at least ``count`` times."""
    name: str
    address: str
    count: int = 1


@dataclass
class PreparedOperation:
    """
    Everything needed to submit one operation.

    Attributes:
        call: Contract call to simulate and submit
        swap_data: Outer ``bytes[][]`` arguments whose length must equal
            the live strategy count
        expected_events: Events the receipt must carry
        context: Planning details echoed into the result
    """
    call: ContractCall
    swap_data: list[list[list[bytes]]] = field(default_factory=list)
    expected_events: list[ExpectedEvent] = field(default_factory=list)
    context: dict[str, Any] = field(default_factory=dict)


@dataclass
class OperationResult:
    """Outcome of ``TransactionOrchestrator.run``."""
    kind: OperationKind
    status: OperationStatus
    tx_hash: Optional[str] = None
    block_number: Optional[int] = None
    gas_limit: Optional[int] = None
    gas_used: Optional[int] = None
    events: list[DecodedEvent] = field(default_factory=list)
    outputs: dict[str, Any] = field(default_factory=dict)
    phases: list[OperationPhase] = field(default_factory=list)
    finished_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def submitted(self) -> bool:
        return self.tx_hash is not None

    def events_named(self, name: str) -> list[DecodedEvent]:
        return [event for event in self.events if event.name == name]


@dataclass(frozen=True)
class PendingDepositEvent:
    """A vault ``Deposit`` awaiting the debounce window."""
    source_address: str
    receiver: str
    amount: int
    net: int
    shares: int
    block_number: int
    tx_hash: str = ""

    @classmethod
    def from_event(cls, event: DecodedEvent) -> "PendingDepositEvent":
        args = event.args
        return cls(
            source_address=args["from"],
            receiver=args["to"],
            amount=int(args["assets"]),
            net=int(args["net"]),
            shares=int(args["shares"]),
            block_number=event.block_number,
            tx_hash=event.tx_hash,
        )
