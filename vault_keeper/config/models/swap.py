"""
Swap Configuration Model.

Router defaults and the minimum-output policy applied to every swap leg.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from .base import BaseConfig, checksum_address


class MinOutMode(str, Enum):
    """How ``amountOutMinimum`` is derived for router swaps."""
    ZERO = "zero"
    POOL_PRICE = "pool_price"


class AggregatorConfig(BaseConfig):
    """
    0x-style quote endpoint used by strategies routed through an aggregator.

    Example:
        >>> config = AggregatorConfig(
        ...     quote_url="https://sepolia.api.0x.org/swap/v1/quote",
        ...     api_key="${ZEROX_API_KEY}",
        ... )
    """

    quote_url: str = Field(
        default="https://api.0x.org/swap/v1/quote",
        description="Quote endpoint returning {to, data, buyAmount}",
    )
    api_key: str = Field(
        default="",
        description="Value sent in the 0x-api-key header",
    )
    chain_id: Optional[int] = Field(
        default=None,
        description="Chain id query parameter; omitted when unset",
    )
    timeout: float = Field(
        default=10.0,
        gt=0,
        description="HTTP timeout in seconds",
    )


class SwapConfig(BaseConfig):
    """Defaults for swap instructions built against a concentrated-liquidity router."""

    router: Optional[str] = Field(
        default=None,
        description="Allow-listed router address for exactInputSingle swaps",
    )
    fee_tier: int = Field(
        default=500,
        ge=1,
        lt=1_000_000,
        description="Pool fee tier in hundredths of a basis point",
    )
    deadline_seconds: int = Field(
        default=1200,
        ge=1,
        description="Swap deadline offset from the build time",
    )
    min_out_mode: MinOutMode = Field(
        default=MinOutMode.POOL_PRICE,
        description="Derivation of amountOutMinimum",
    )
    slippage_bps: int = Field(
        default=50,
        ge=0,
        lt=10000,
        description="Tolerated slippage below the quoted output",
    )
    aggregator: AggregatorConfig = Field(
        default_factory=AggregatorConfig,
        description="Aggregator quote settings",
    )

    @field_validator("router")
    @classmethod
    def validate_router(cls, v: Optional[str]) -> Optional[str]:
        return checksum_address(v, "router")
