"""
Revert Payload Decoding.

Turns raw revert data returned by ``eth_call`` into a readable reason.
"""

from typing import Optional, Union

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import decode_hex, function_signature_to_4byte_selector

ERROR_SELECTOR = function_signature_to_4byte_selector("Error(string)")
PANIC_SELECTOR = function_signature_to_4byte_selector("Panic(uint256)")

# Solidity compiler panic codes
PANIC_CODES = {
    0x00: "generic compiler panic",
    0x01: "assertion failed",
    0x11: "arithmetic overflow or underflow",
    0x12: "division or modulo by zero",
    0x21: "invalid enum value",
    0x22: "invalid storage byte array",
    0x31: "pop on empty array",
    0x32: "array index out of bounds",
    0x41: "out of memory",
    0x51: "call to zero-initialized function",
}

MAX_RAW_PREVIEW = 200


def _to_bytes(data: Union[str, bytes, None]) -> bytes:
    if data is None:
        return b""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    text = data.strip()
    if text.startswith(("0x", "0X")):
        try:
            return decode_hex(text)
        except ValueError:
            return text.encode("utf-8")
    return text.encode("utf-8")


def decode_revert(data: Union[str, bytes, None]) -> str:
    """
    Decode a revert payload.

    Order: ``Error(string)``, ``Panic(uint256)``, printable UTF-8, then a
    truncated hex dump.

    Example:
        >>> decode_revert("0x08c379a0" + "...")
        'Not manager'
    """
    raw = _to_bytes(data)
    if not raw:
        return "Reverted without reason"

    if raw[:4] == ERROR_SELECTOR:
        try:
            (reason,) = decode(["string"], raw[4:])
            return reason
        except (DecodingError, ValueError, OverflowError):
            pass

    if raw[:4] == PANIC_SELECTOR:
        try:
            (code,) = decode(["uint256"], raw[4:])
            return f"Panic(0x{code:02x}): {PANIC_CODES.get(code, 'unknown panic code')}"
        except (DecodingError, ValueError, OverflowError):
            pass

    text = _printable_utf8(raw)
    if text is not None:
        return text

    preview = "0x" + raw.hex()
    return f"Unknown revert payload: {preview[:MAX_RAW_PREVIEW]}"


def _printable_utf8(raw: bytes) -> Optional[str]:
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        return None
    if text and text.isprintable():
        return text
    return None
