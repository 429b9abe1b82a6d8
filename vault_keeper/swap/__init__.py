"""
Swap Module.

Typed swap instructions, their ABI encoding and the per-profile builder.
"""

from .aggregator import AggregatorClient, AggregatorQuote
from .builder import SwapData, SwapInstructionBuilder
from .encoding import (
    decode_exact_input_single,
    decode_swap_payload,
    encode_exact_input_single,
    encode_swap_payload,
)
from .models import SwapInstruction, SwapKind, SwapPhase

__all__ = [
    "AggregatorClient",
    "AggregatorQuote",
    "SwapData",
    "SwapInstruction",
    "SwapInstructionBuilder",
    "SwapKind",
    "SwapPhase",
    "decode_exact_input_single",
    "decode_swap_payload",
    "encode_exact_input_single",
    "encode_swap_payload",
]
