"""
Swap Models.

Typed swap instructions. They stay structured through planning and are
serialized to the exchanger's byte envelope only when a transaction is
assembled.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class SwapKind(str, Enum):
    """Source of the router calldata."""
    EXACT_INPUT_SINGLE = "exact_input_single"
    AGGREGATOR = "aggregator"


class SwapPhase(str, Enum):
    """Direction of funds a swap build serves."""
    INVEST = "invest"
    WITHDRAW = "withdraw"
    HARVEST = "harvest"


@dataclass(frozen=True)
class SwapInstruction:
    """
    One swap leg executed by the exchanger on behalf of a strategy.

    Attributes:
        kind: How ``inner_call`` was produced
        router: Router the exchanger forwards ``inner_call`` to
        token_in: Token sold
        token_out: Token bought
        amount_in: Raw amount sold
        min_out: Minimum raw amount bought
        recipient: Receiver of ``token_out`` (the strategy)
        inner_call: Router calldata
        deadline: Unix deadline embedded in ``inner_call``, if any
    """
    kind: SwapKind
    router: str
    token_in: str
    token_out: str
    amount_in: int
    min_out: int
    recipient: str
    inner_call: bytes
    deadline: Optional[int] = None

    def encode(self) -> bytes:
        """Byte envelope accepted by the exchanger."""
        from .encoding import encode_swap_payload

        return encode_swap_payload(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "router": self.router,
            "token_in": self.token_in,
            "token_out": self.token_out,
            "amount_in": self.amount_in,
            "min_out": self.min_out,
            "recipient": self.recipient,
            "deadline": self.deadline,
            "inner_call": "0x" + self.inner_call.hex(),
        }
