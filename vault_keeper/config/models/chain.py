"""
Chain and Vault Configuration Models.

Node connection settings and the addresses of the vault and its
collaborator contracts.
"""

from typing import Optional

from pydantic import Field, field_validator

from .base import BaseConfig, checksum_address


class ChainConfig(BaseConfig):
    """
    RPC connection and signing configuration.

    Example:
        >>> config = ChainConfig(
        ...     rpc_url="${RPC_URL}",
        ...     chain_id=11155111,
        ...     private_key="${MANAGER_PK}",
        ... )
    """

    rpc_url: str = Field(
        default="http://127.0.0.1:8545",
        description="JSON-RPC endpoint",
    )
    chain_id: int = Field(
        default=11155111,
        ge=1,
        description="Chain id used when signing transactions",
    )
    private_key: str = Field(
        default="",
        description="Hex private key of the acting manager/keeper account",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP request timeout for RPC calls in seconds",
    )
    receipt_timeout: float = Field(
        default=300.0,
        gt=0,
        description="Seconds to wait for a transaction receipt",
    )
    read_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for idempotent read calls",
    )

    @property
    def has_signer(self) -> bool:
        return bool(self.private_key)


class VaultConfig(BaseConfig):
    """Addresses of the vault and the contracts it delegates to."""

    address: str = Field(description="Vault proxy address")
    access_controller: str = Field(description="Access controller holding manager/keeper roles")
    exchanger: str = Field(description="Exchange adapter that executes swap payloads")
    position_manager: Optional[str] = Field(
        default=None,
        description="Liquidity position manager used to read uncollected fees",
    )

    @field_validator("address", "access_controller", "exchanger", "position_manager")
    @classmethod
    def validate_address(cls, v: Optional[str], info) -> Optional[str]:
        result = checksum_address(v, info.field_name)
        if result is None and info.field_name != "position_manager":
            raise ValueError(f"{info.field_name} is required")
        return result
