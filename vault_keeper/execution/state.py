"""
Orchestration State.

Per-vault mutable state shared by the orchestrator and the event watcher:
the busy flag guarding privileged writes, the last handled deposit block
and the pending deposit slot.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional

from vault_keeper.core.exceptions import OrchestratorBusyError
from vault_keeper.core.logger import get_logger

from .models import OperationKind, OperationPhase, PendingDepositEvent

logger = get_logger(__name__)


@dataclass
class OrchestrationState:
    """
    Shared orchestration state for one vault.

    Only one privileged operation may hold the state at a time. All access
    happens on a single event loop, so the check-and-set in ``acquire``
    needs no lock of its own.
    """
    busy: bool = False
    last_handled_block: int = 0
    pending_event: Optional[PendingDepositEvent] = None
    operation: Optional[OperationKind] = None
    phase: OperationPhase = OperationPhase.IDLE
    completed_operations: int = 0
    failed_operations: int = 0
    phase_history: list[OperationPhase] = field(default_factory=list)

    def acquire(self, kind: OperationKind) -> None:
        if self.busy:
            raise OrchestratorBusyError(
                f"Cannot start {kind.value}: {self.operation.value if self.operation else 'operation'} in progress",
                details={"running": self.operation.value if self.operation else None, "phase": self.phase.value},
            )
        self.busy = True
        self.operation = kind
        self.phase_history = []
        self.set_phase(OperationPhase.PREPARING)

    def release(self, succeeded: bool) -> None:
        if succeeded:
            self.completed_operations += 1
        else:
            self.failed_operations += 1
        self.busy = False
        self.operation = None
        self.phase = OperationPhase.IDLE

    def set_phase(self, phase: OperationPhase) -> None:
        self.phase = phase
        self.phase_history.append(phase)

    @asynccontextmanager
    async def hold(self, kind: OperationKind) -> AsyncIterator["OrchestrationState"]:
        """
        Hold the state for ``kind``; released on every exit path.

        Raises:
            OrchestratorBusyError: Another operation holds the state
        """
        self.acquire(kind)
        succeeded = False
        try:
            yield self
            succeeded = True
        finally:
            self.release(succeeded)

    def take_pending(self) -> Optional[PendingDepositEvent]:
        """Remove and return the pending deposit, if any."""
        event, self.pending_event = self.pending_event, None
        return event

    def accept_deposit(self, event: PendingDepositEvent) -> bool:
        """
        Record ``event`` as pending when its block is newer than any handled.

        Returns:
            True when the event replaced the pending slot
        """
        if event.block_number <= self.last_handled_block:
            logger.debug(
                f"Ignoring deposit at block {event.block_number} "
                f"(last handled {self.last_handled_block})"
            )
            return False
        self.last_handled_block = event.block_number
        self.pending_event = event
        return True

    def to_dict(self) -> dict:
        return {
            "busy": self.busy,
            "operation": self.operation.value if self.operation else None,
            "phase": self.phase.value,
            "last_handled_block": self.last_handled_block,
            "pending_block": self.pending_event.block_number if self.pending_event else None,
            "completed_operations": self.completed_operations,
            "failed_operations": self.failed_operations,
        }
