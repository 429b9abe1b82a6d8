"""
Swap Encoding.

ABI encoding of router calls and of the exchanger swap envelope.
"""

from typing import Any

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address

from .models import SwapInstruction

# abi.encode(router, tokenIn, tokenOut, amountIn, minOut, to, routerCalldata)
SWAP_PAYLOAD_TYPES = ["address", "address", "address", "uint256", "uint256", "address", "bytes"]

EXACT_INPUT_SINGLE_PARAMS = "(address,address,uint24,address,uint256,uint256,uint256,uint160)"
EXACT_INPUT_SINGLE_SELECTOR = function_signature_to_4byte_selector(
    f"exactInputSingle({EXACT_INPUT_SINGLE_PARAMS})"
)


def encode_exact_input_single(
    token_in: str,
    token_out: str,
    fee: int,
    recipient: str,
    deadline: int,
    amount_in: int,
    amount_out_minimum: int,
    sqrt_price_limit_x96: int = 0,
) -> bytes:
    """Calldata for ``SwapRouter.exactInputSingle``."""
    params = (
        to_checksum_address(token_in),
        to_checksum_address(token_out),
        fee,
        to_checksum_address(recipient),
        deadline,
        amount_in,
        amount_out_minimum,
        sqrt_price_limit_x96,
    )
    return EXACT_INPUT_SINGLE_SELECTOR + encode([EXACT_INPUT_SINGLE_PARAMS], [params])


def decode_exact_input_single(data: bytes) -> dict[str, Any]:
    """Inverse of ``encode_exact_input_single``."""
    if data[:4] != EXACT_INPUT_SINGLE_SELECTOR:
        raise ValueError("Not an exactInputSingle call")
    (params,) = decode([EXACT_INPUT_SINGLE_PARAMS], data[4:])
    token_in, token_out, fee, recipient, deadline, amount_in, min_out, limit = params
    return {
        "token_in": to_checksum_address(token_in),
        "token_out": to_checksum_address(token_out),
        "fee": fee,
        "recipient": to_checksum_address(recipient),
        "deadline": deadline,
        "amount_in": amount_in,
        "amount_out_minimum": min_out,
        "sqrt_price_limit_x96": limit,
    }


def encode_swap_payload(instruction: SwapInstruction) -> bytes:
    return encode(
        SWAP_PAYLOAD_TYPES,
        [
            to_checksum_address(instruction.router),
            to_checksum_address(instruction.token_in),
            to_checksum_address(instruction.token_out),
            instruction.amount_in,
            instruction.min_out,
            to_checksum_address(instruction.recipient),
            instruction.inner_call,
        ],
    )


def decode_swap_payload(payload: bytes) -> dict[str, Any]:
    router, token_in, token_out, amount_in, min_out, recipient, inner = decode(
        SWAP_PAYLOAD_TYPES, payload
    )
    return {
        "router": to_checksum_address(router),
        "token_in": to_checksum_address(token_in),
        "token_out": to_checksum_address(token_out),
        "amount_in": amount_in,
        "min_out": min_out,
        "recipient": to_checksum_address(recipient),
        "inner_call": inner,
    }
