"""
Execution Module.

Orchestration state and the transaction orchestrator.
"""

from .models import (
    ExpectedEvent,
    OperationKind,
    OperationPhase,
    OperationResult,
    OperationStatus,
    PendingDepositEvent,
    PreparedOperation,
)
from .orchestrator import TransactionOrchestrator
from .state import OrchestrationState

__all__ = [
    "ExpectedEvent",
    "OperationKind",
    "OperationPhase",
    "OperationResult",
    "OperationStatus",
    "OrchestrationState",
    "PendingDepositEvent",
    "PreparedOperation",
    "TransactionOrchestrator",
]
