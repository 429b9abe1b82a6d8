"""
Chain Models.

Plain data exchanged between the keeper and the chain gateway.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Role(str, Enum):
    """Access-controller role getters."""
    MANAGER = "managers"
    KEEPER = "keepers"


@dataclass(frozen=True)
class ContractCall:
    """
    A single contract function invocation.

    Attributes:
        contract: Contract kind, a key of ``abis.ABIS``
        address: Target contract address
        function: Function name
        args: Positional arguments
    """
    contract: str
    address: str
    function: str
    args: tuple = ()

    def describe(self) -> str:
        return f"{self.contract}.{self.function}@{self.address}"


@dataclass
class DecodedEvent:
    """An event log decoded against a known ABI."""
    name: str
    address: str
    args: dict[str, Any] = field(default_factory=dict)
    log_index: int = 0
    block_number: int = 0
    tx_hash: str = ""


@dataclass
class TxReceipt:
    """Subset of a transaction receipt the keeper acts on."""
    tx_hash: str
    status: int
    block_number: int
    gas_used: int = 0
    events: list[DecodedEvent] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    def events_named(self, name: str, address: Optional[str] = None) -> list[DecodedEvent]:
        """Events with ``name``, optionally restricted to an emitter address."""
        return [
            event for event in self.events
            if event.name == name
            and (address is None or event.address.lower() == address.lower())
        ]


@dataclass(frozen=True)
class PoolState:
    """Concentrated-liquidity pool state needed for pricing."""
    address: str
    token0: str
    token1: str
    sqrt_price_x96: int
    decimals0: int
    decimals1: int
    fee: int = 0
