"""
Strategy Profile Model.

Describes how each strategy converts between the vault asset and the
tokens it actually holds.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, field_validator, model_validator

from .base import BaseConfig, checksum_address


class StrategyKind(str, Enum):
    """Token conversion shape of a strategy."""
    DIRECT = "direct"
    PAIRED_LIQUIDITY = "paired_liquidity"


class SwapRoute(str, Enum):
    """Where swap calldata comes from."""
    ROUTER = "router"
    AGGREGATOR = "aggregator"


class StrategyProfile(BaseConfig):
    """
    Per-strategy swap profile.

    A ``direct`` strategy takes the base asset as-is. A ``paired_liquidity``
    strategy provides liquidity in base/pair pools and needs part of every
    investment swapped into each pair token, and its pair balances swapped
    back on harvest.

    Example:
        >>> profile = StrategyProfile(
        ...     address="0x1111111111111111111111111111111111111111",
        ...     kind="paired_liquidity",
        ...     pair_tokens=["0x2222222222222222222222222222222222222222"],
        ...     pool="0x3333333333333333333333333333333333333333",
        ... )
    """

    address: str = Field(description="Strategy contract address")
    kind: StrategyKind = Field(
        default=StrategyKind.DIRECT,
        description="Conversion shape",
    )
    pair_tokens: list[str] = Field(
        default_factory=list,
        description="Tokens other than the base asset the strategy holds",
    )
    fee_tier: Optional[int] = Field(
        default=None,
        ge=1,
        lt=1_000_000,
        description="Pool fee tier override; falls back to swap.fee_tier",
    )
    pool: Optional[str] = Field(
        default=None,
        description="Base/pair pool used for pool_price slippage bounds",
    )
    route: SwapRoute = Field(
        default=SwapRoute.ROUTER,
        description="Router calldata or aggregator quotes",
    )

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        result = checksum_address(v, "address")
        if result is None:
            raise ValueError("address is required")
        return result

    @field_validator("pool")
    @classmethod
    def validate_pool(cls, v: Optional[str]) -> Optional[str]:
        return checksum_address(v, "pool")

    @field_validator("pair_tokens")
    @classmethod
    def validate_pair_tokens(cls, v: list[str]) -> list[str]:
        tokens = [checksum_address(token, "pair_tokens") for token in v]
        return [token for token in tokens if token]

    @model_validator(mode="after")
    def validate_shape(self) -> "StrategyProfile":
        if self.kind == StrategyKind.PAIRED_LIQUIDITY and not self.pair_tokens:
            raise ValueError(f"paired_liquidity strategy {self.address} needs pair_tokens")
        if self.kind == StrategyKind.DIRECT and self.pair_tokens:
            raise ValueError(f"direct strategy {self.address} cannot declare pair_tokens")
        return self
