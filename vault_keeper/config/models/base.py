"""
Base Configuration Model.

Provides the base configuration class with environment variable
substitution, checksum address normalization and sensitive field masking.
"""

import os
import re
from typing import Any, ClassVar, Optional, Set

from eth_utils import is_address, to_checksum_address
from pydantic import BaseModel, ConfigDict, model_validator


# Pattern for environment variable substitution: ${VAR} or ${VAR:default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


def substitute_env_vars(value: str) -> str:
    """
    Substitute environment variables in a string.

    Supports ``${VAR}`` (empty if unset) and ``${VAR:default}``.
    """

    def replace_match(match: re.Match) -> str:
        var_name = match.group(1)
        default_value = match.group(2)

        env_value = os.environ.get(var_name)
        if env_value is not None:
            return env_value
        if default_value is not None:
            return default_value
        return ""

    return ENV_VAR_PATTERN.sub(replace_match, value)


def process_value(value: Any) -> Any:
    """Recursively substitute env vars in strings, dicts and lists."""
    if isinstance(value, str):
        return substitute_env_vars(value)
    elif isinstance(value, dict):
        return {k: process_value(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [process_value(item) for item in value]
    return value


def checksum_address(value: Optional[str], field_name: str = "address") -> Optional[str]:
    """
    Normalize an address to its EIP-55 checksum form.

    Empty strings and None pass through as None so optional addresses
    can be left blank in YAML.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if not is_address(value):
        raise ValueError(f"{field_name} is not a valid address: {value!r}")
    return to_checksum_address(value)


class BaseConfig(BaseModel):
    """
    Base configuration model with common functionality.

    Features:
    - Environment variable substitution: ${VAR} or ${VAR:default}
    - Sensitive field masking for display
    - Immutable by default (frozen)

    Example:
        >>> class MyConfig(BaseConfig):
        ...     private_key: str
        ...     rpc_url: str = "http://127.0.0.1:8545"
        ...
        >>> config = MyConfig(private_key="${MANAGER_PK}")
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        validate_default=True,
        str_strip_whitespace=True,
    )

    _sensitive_fields: ClassVar[Set[str]] = {
        "private_key",
        "api_key",
        "password",
        "secret",
        "token_key",
    }

    @model_validator(mode="before")
    @classmethod
    def substitute_environment_variables(cls, data: Any) -> Any:
        """Substitute environment variables in all string values."""
        if isinstance(data, dict):
            return process_value(data)
        return data

    def masked_dict(self) -> dict[str, Any]:
        """Dictionary dump with sensitive values replaced by '***'."""
        return self._mask_sensitive(self.model_dump())

    def _mask_sensitive(self, data: dict[str, Any]) -> dict[str, Any]:
        result = {}
        for key, value in data.items():
            if self._is_sensitive_field(key) and value:
                result[key] = "***"
            elif isinstance(value, dict):
                result[key] = self._mask_sensitive(value)
            elif isinstance(value, list):
                result[key] = [
                    self._mask_sensitive(item) if isinstance(item, dict) else item
                    for item in value
                ]
            else:
                result[key] = value
        return result

    def _is_sensitive_field(self, field_name: str) -> bool:
        field_lower = field_name.lower()
        return any(sensitive in field_lower for sensitive in self._sensitive_fields)

    def __repr__(self) -> str:
        masked = self.masked_dict()
        fields = ", ".join(f"{k}={v!r}" for k, v in masked.items())
        return f"{self.__class__.__name__}({fields})"

    def __str__(self) -> str:
        return self.__repr__()
