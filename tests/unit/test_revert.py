"""
Tests for revert payload decoding.
"""

from types import SimpleNamespace

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector

from vault_keeper.chain.client import revert_reason
from vault_keeper.chain.revert import decode_revert

ERROR = function_signature_to_4byte_selector("Error(string)")
PANIC = function_signature_to_4byte_selector("Panic(uint256)")


class TestDecodeRevert:
    """Tests for decode_revert."""

    def test_error_string(self):
        data = ERROR + encode(["string"], ["Not manager"])
        assert decode_revert(data) == "Not manager"

    def test_error_string_from_hex(self):
        data = "0x" + (ERROR + encode(["string"], ["Sum > 10000"])).hex()
        assert decode_revert(data) == "Sum > 10000"

    def test_panic_code(self):
        data = PANIC + encode(["uint256"], [0x11])
        assert decode_revert(data) == "Panic(0x11): arithmetic overflow or underflow"

    def test_unknown_panic_code(self):
        data = PANIC + encode(["uint256"], [0x99])
        assert decode_revert(data) == "Panic(0x99): unknown panic code"

    def test_printable_utf8(self):
        assert decode_revert(b"Strategy paused") == "Strategy paused"
        assert decode_revert("0x" + b"Not keeper".hex()) == "Not keeper"

    def test_raw_hex_fallback(self):
        assert decode_revert("0xdeadbeef") == "Unknown revert payload: 0xdeadbeef"

    def test_raw_hex_truncated(self):
        reason = decode_revert(b"\xff" * 500)
        assert reason.startswith("Unknown revert payload: 0xffff")
        assert len(reason) == len("Unknown revert payload: ") + 200

    def test_truncated_error_payload_falls_through(self):
        reason = decode_revert(ERROR + b"\x00" * 8)
        assert reason.startswith("Unknown revert payload: 0x08c379a0")

    def test_empty(self):
        assert decode_revert(None) == "Reverted without reason"
        assert decode_revert(b"") == "Reverted without reason"
        assert decode_revert("0x") == "Reverted without reason"


class TestRevertReason:
    """Tests for reasons extracted from web3 errors."""

    def test_prefers_revert_data(self):
        data = "0x" + (ERROR + encode(["string"], ["Router not allowed"])).hex()
        error = SimpleNamespace(data=data, message="execution reverted")
        assert revert_reason(error) == "Router not allowed"

    def test_message_prefix_stripped(self):
        error = SimpleNamespace(data=None, message="execution reverted: Not keeper")
        assert revert_reason(error) == "Not keeper"

    def test_bare_revert(self):
        error = SimpleNamespace(data=None, message="execution reverted: ")
        assert revert_reason(error) == "Reverted without reason"
