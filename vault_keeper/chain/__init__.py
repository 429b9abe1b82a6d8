"""
Chain Module.

web3 gateway, contract ABIs, vault state reads and revert decoding.
"""

from .client import Web3Gateway, revert_reason
from .models import ContractCall, DecodedEvent, PoolState, Role, TxReceipt
from .revert import decode_revert
from .vault import VaultStateReader

__all__ = [
    "ContractCall",
    "DecodedEvent",
    "PoolState",
    "Role",
    "TxReceipt",
    "VaultStateReader",
    "Web3Gateway",
    "decode_revert",
    "revert_reason",
]
