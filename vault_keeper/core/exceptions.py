"""
Custom exceptions for Vault Keeper.

Exception hierarchy:
    VaultKeeperError (base)
    ├── ChainError
    │   ├── ChainReadError
    │   ├── EstimationFailure
    │   └── SubmissionFailure
    │       └── ReceiptTimeout
    ├── OperationError
    │   ├── AuthorizationError
    │   ├── SimulationRevert
    │   ├── TransactionReverted
    │   ├── MissingExpectedEvent
    │   └── OrchestratorBusyError
    ├── PlanningError
    │   ├── PlanValidationError
    │   └── SwapBuildError
    ├── PriceError
    └── ConfigError
        ├── ConfigFileNotFoundError
        ├── ConfigParseError
        └── ConfigValidationError
"""

from typing import Any


class VaultKeeperError(Exception):
    """Base exception for all vault keeper errors."""

    default_message = "Vault keeper error occurred"

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.default_message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.code:
            parts.append(f"[{self.code}]")
        if self.details:
            parts.append(f"Details: {self.details}")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"details={self.details!r})"
        )


# Chain / transport errors
class ChainError(VaultKeeperError):
    """Base exception for node and transport failures."""

    default_message = "Chain interaction failed"


class ChainReadError(ChainError):
    """A read-only contract call failed."""

    default_message = "Chain read failed"


class EstimationFailure(ChainError):
    """
    Gas estimation failed although the simulation passed.

    Recovered locally by the orchestrator with a fallback gas limit.
    """

    default_message = "Gas estimation failed"


class SubmissionFailure(ChainError):
    """
    Network failure while broadcasting or confirming a transaction.

    The on-chain outcome is ambiguous: re-read chain state before retrying.
    """

    default_message = "Transaction submission failed"

    def __init__(
        self,
        message: str | None = None,
        tx_hash: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)
        self.tx_hash = tx_hash

    def __str__(self) -> str:
        base = super().__str__()
        if self.tx_hash:
            return f"{base} tx={self.tx_hash}"
        return base


class ReceiptTimeout(SubmissionFailure):
    """No receipt arrived within the configured timeout."""

    default_message = "Timed out waiting for transaction receipt"


# Operation errors
class OperationError(VaultKeeperError):
    """Base exception for aborted privileged operations."""

    default_message = "Operation aborted"


class AuthorizationError(OperationError):
    """The acting address lacks the role the operation requires."""

    default_message = "Caller is not authorized"

    def __init__(
        self,
        message: str | None = None,
        role: str | None = None,
        account: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)
        self.role = role
        self.account = account


class SimulationRevert(OperationError):
    """The dry run reverted; nothing was submitted."""

    default_message = "Simulation reverted"

    def __init__(
        self,
        reason: str,
        raw_data: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(f"Simulation reverted: {reason}", code, details)
        self.reason = reason
        self.raw_data = raw_data


class TransactionReverted(OperationError):
    """The transaction was mined with a failed status."""

    default_message = "Transaction reverted on-chain"

    def __init__(
        self,
        message: str | None = None,
        tx_hash: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)
        self.tx_hash = tx_hash


class MissingExpectedEvent(OperationError):
    """A successful transaction did not emit the event the operation relies on."""

    default_message = "Expected event missing from receipt"

    def __init__(
        self,
        event_name: str,
        tx_hash: str | None = None,
        expected: int = 1,
        found: int = 0,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            f"Expected {expected} {event_name} event(s), found {found}",
            code,
            details,
        )
        self.event_name = event_name
        self.tx_hash = tx_hash
        self.expected = expected
        self.found = found


class OrchestratorBusyError(OperationError):
    """Another privileged operation holds the orchestration lock."""

    default_message = "An operation is already in flight"


# Planning errors
class PlanningError(VaultKeeperError):
    """Base exception for allocation planning failures."""

    default_message = "Planning failed"


class PlanValidationError(PlanningError):
    """A plan or its swap data is inconsistent with on-chain state."""

    default_message = "Plan validation failed"


class SwapBuildError(PlanningError):
    """A swap instruction could not be built."""

    default_message = "Swap instruction build failed"


class PriceError(VaultKeeperError):
    """Price could not be derived from a pool."""

    default_message = "Price resolution failed"


# Configuration errors
class ConfigError(VaultKeeperError):
    """Base exception for configuration loading failures."""

    default_message = "Invalid configuration"


class ConfigFileNotFoundError(ConfigError):
    """The base YAML file does not exist. Overlays are optional and never raise this."""

    def __init__(self, path: str):
        super().__init__(f"Config file not found: {path}", details={"path": path})
        self.path = path


class ConfigParseError(ConfigError):
    """A YAML file is malformed or its top level is not a mapping."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot parse {path}: {reason}", details={"path": path})
        self.path = path
        self.reason = reason


class ConfigValidationError(ConfigError):
    """
    The merged configuration failed model validation.

    ``errors`` holds one ``"<dotted.field>: <message>"`` entry per problem.
    """

    def __init__(self, errors: list[str]):
        super().__init__("Config validation failed: " + "; ".join(errors))
        self.errors = errors
