"""
Orchestrator Configuration Model.

Gas policy, debounce timing and rebalance tolerance for privileged writes.
"""

from pydantic import Field

from .base import BaseConfig


class OrchestratorConfig(BaseConfig):
    """
    Orchestration tuning.

    Example:
        >>> config = OrchestratorConfig(debounce_seconds=30, gas_margin_bps=2500)
    """

    gas_margin_bps: int = Field(
        default=2000,
        ge=0,
        le=50000,
        description="Headroom added on top of the gas estimate",
    )
    fallback_gas_limit: int = Field(
        default=8_000_000,
        ge=21_000,
        description="Gas limit used when estimation fails",
    )
    debounce_seconds: float = Field(
        default=90.0,
        ge=0,
        description="Quiet period after the last deposit before investing",
    )
    poll_interval: float = Field(
        default=5.0,
        gt=0,
        description="Seconds between deposit log polls",
    )
    rebalance_threshold_bps: int = Field(
        default=0,
        ge=0,
        le=10000,
        description="Skip rebalances whose largest drift is below this",
    )
    placeholder_rate: int = Field(
        default=10**18,
        gt=0,
        description="Rate reported when a pool price cannot be read",
    )
