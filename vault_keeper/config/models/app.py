"""
Application Configuration Model.

Provides the main application configuration that integrates all sub-configurations.
"""

from typing import Optional

from pydantic import Field, field_validator, model_validator

from .base import BaseConfig
from .chain import ChainConfig, VaultConfig
from .orchestrator import OrchestratorConfig
from .strategy import StrategyKind, StrategyProfile, SwapRoute
from .swap import MinOutMode, SwapConfig


class AppConfig(BaseConfig):
    """
    Main application configuration.

    Example:
        >>> config = load_config("config/config.yaml", env="production")
        >>> config.vault.address
        '0x...'
    """

    # Application metadata
    app_name: str = Field(
        default="Vault Keeper",
        description="Application name",
    )
    environment: str = Field(
        default="development",
        description="Environment (development, staging, production)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    # Sub-configurations
    chain: ChainConfig = Field(
        default_factory=ChainConfig,
        description="RPC and signer configuration",
    )
    vault: VaultConfig = Field(
        description="Vault and collaborator addresses",
    )
    swap: SwapConfig = Field(
        default_factory=SwapConfig,
        description="Swap instruction defaults",
    )
    orchestrator: OrchestratorConfig = Field(
        default_factory=OrchestratorConfig,
        description="Orchestration tuning",
    )
    strategies: list[StrategyProfile] = Field(
        default_factory=list,
        description="Per-strategy swap profiles; unlisted strategies are direct",
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate and normalize environment."""
        v = v.lower().strip()
        valid_envs = {"development", "staging", "production", "dev", "prod", "test"}
        if v not in valid_envs:
            v = "development"
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        v = v.upper().strip()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v not in valid_levels:
            v = "INFO"
        return v

    @model_validator(mode="after")
    def validate_cross_fields(self) -> "AppConfig":
        if self.is_production and self.swap.min_out_mode == MinOutMode.ZERO:
            raise ValueError("swap.min_out_mode 'zero' is not allowed in production")

        seen = set()
        for profile in self.strategies:
            if profile.address in seen:
                raise ValueError(f"duplicate strategy profile: {profile.address}")
            seen.add(profile.address)

        needs_router = any(
            p.kind == StrategyKind.PAIRED_LIQUIDITY and p.route == SwapRoute.ROUTER
            for p in self.strategies
        )
        if needs_router and not self.swap.router:
            raise ValueError("swap.router is required for router-routed paired strategies")
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment in ("production", "prod")

    def profile_for(self, strategy: str) -> Optional[StrategyProfile]:
        """Profile configured for a strategy address (case-insensitive)."""
        target = strategy.lower()
        for profile in self.strategies:
            if profile.address.lower() == target:
                return profile
        return None

    def validate_for_operations(self) -> list[str]:
        """
        Validate configuration for submitting privileged transactions.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.chain.has_signer:
            errors.append("chain.private_key not configured")

        if self.swap.min_out_mode == MinOutMode.ZERO:
            errors.append("swap.min_out_mode is 'zero': swaps carry no slippage bound")

        for profile in self.strategies:
            if (
                profile.kind == StrategyKind.PAIRED_LIQUIDITY
                and self.swap.min_out_mode == MinOutMode.POOL_PRICE
                and profile.route == SwapRoute.ROUTER
                and not profile.pool
            ):
                errors.append(f"strategy {profile.address} has no pool for pool_price bounds")

        return errors
