"""
Core module for Vault Keeper.

Provides logging utilities and the error taxonomy.
"""

from .logger import get_logger, set_log_level, setup_logger
from .exceptions import (
    AuthorizationError,
    ChainError,
    ChainReadError,
    EstimationFailure,
    MissingExpectedEvent,
    OperationError,
    OrchestratorBusyError,
    PlanningError,
    PlanValidationError,
    PriceError,
    ConfigError,
    ConfigFileNotFoundError,
    ConfigParseError,
    ConfigValidationError,
    ReceiptTimeout,
    SimulationRevert,
    SubmissionFailure,
    SwapBuildError,
    TransactionReverted,
    VaultKeeperError,
)

__all__ = [
    # Logging
    "setup_logger",
    "get_logger",
    "set_log_level",
    # Errors
    "VaultKeeperError",
    "ChainError",
    "ChainReadError",
    "EstimationFailure",
    "SubmissionFailure",
    "ReceiptTimeout",
    "OperationError",
    "AuthorizationError",
    "SimulationRevert",
    "TransactionReverted",
    "MissingExpectedEvent",
    "OrchestratorBusyError",
    "PlanningError",
    "PlanValidationError",
    "SwapBuildError",
    "PriceError",
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
]
