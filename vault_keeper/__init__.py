"""
Vault Keeper.

Off-chain orchestration for a multi-strategy yield vault: planning,
swap building, simulated submission and debounced deposit handling.
"""

__version__ = "0.1.0"
