"""
Planning Module.

Vault snapshots and the allocation plans computed from them.
"""

from .models import (
    BPS_DENOMINATOR,
    AllocationPlan,
    PlanEntry,
    PlanMode,
    StrategyRecord,
    VaultSnapshot,
)
from .planner import AllocationPlanner

__all__ = [
    "BPS_DENOMINATOR",
    "AllocationPlan",
    "AllocationPlanner",
    "PlanEntry",
    "PlanMode",
    "StrategyRecord",
    "VaultSnapshot",
]
