# Configuration models
from .app import AppConfig
from .base import BaseConfig
from .chain import ChainConfig, VaultConfig
from .orchestrator import OrchestratorConfig
from .strategy import StrategyKind, StrategyProfile, SwapRoute
from .swap import AggregatorConfig, MinOutMode, SwapConfig

__all__ = [
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
