# Config module - keeper configuration system
from vault_keeper.core.exceptions import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigParseError,
    ConfigValidationError,
)
from .loader import ConfigLoader, load_config
from .models import (
    AggregatorConfig,
    AppConfig,
    BaseConfig,
    ChainConfig,
    MinOutMode,
    OrchestratorConfig,
    StrategyKind,
    StrategyProfile,
    SwapConfig,
    SwapRoute,
    VaultConfig,
)

__all__ = [
    # Exceptions
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
    # Loader
    "ConfigLoader",
    "load_config",
    # Models
    "BaseConfig",
    "ChainConfig",
    "VaultConfig",
    "SwapConfig",
    "AggregatorConfig",
    "MinOutMode",
    "OrchestratorConfig",
    "StrategyProfile",
    "StrategyKind",
    "SwapRoute",
    "AppConfig",
]
