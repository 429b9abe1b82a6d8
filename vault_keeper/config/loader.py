"""
Configuration Loader.

Loads the keeper's YAML configuration, merges an optional environment
overlay, substitutes environment variables and validates the result.
"""

import os
import re
from copy import deepcopy
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from vault_keeper.core.exceptions import (
    ConfigFileNotFoundError,
    ConfigParseError,
    ConfigValidationError,
)
from vault_keeper.core.logger import get_logger

from .models import AppConfig

logger = get_logger(__name__)

# Pattern to match environment variables: ${VAR} or ${VAR:default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")

# Hex strings (addresses, keys) must survive substitution untouched
HEX_PATTERN = re.compile(r"^0[xX][0-9a-fA-F]*$")


class ConfigLoader:
    """
    Configuration loader with YAML support and environment variable substitution.

    Example:
        >>> loader = ConfigLoader()
        >>> config = loader.load("config/config.yaml", env="sepolia")
        >>> print(config.vault.address)
    """

    def __init__(self, env_file: Optional[str | Path] = None):
        """
        Initialize ConfigLoader.

        Args:
            env_file: Optional path to .env file. If not provided,
                     will look for .env near the config directory.
        """
        self._env_file = Path(env_file) if env_file else None
        self._loaded_env = False

    def load(
        self,
        path: str | Path,
        env: Optional[str] = None,
    ) -> AppConfig:
        """
        Load configuration from YAML file with optional environment overlay.

        Loading flow:
        1. Load .env file (if exists)
        2. Load base config.yaml
        3. Load config.{env}.yaml (if env specified and file exists)
        4. Deep merge configurations
        5. Substitute environment variables
        6. Validate with Pydantic

        Args:
            path: Path to base configuration file
            env: Optional environment name (sepolia, production, etc.)

        Returns:
            Validated AppConfig instance

        Raises:
            ConfigFileNotFoundError: If base config file not found
            ConfigParseError: If YAML parsing fails
            ConfigValidationError: If Pydantic validation fails
        """
        path = Path(path)

        self._load_env_file(path.parent)

        base_config = self.load_yaml(path)

        if env:
            env_config_path = path.parent / f"{path.stem}.{env}{path.suffix}"
            if env_config_path.exists():
                logger.debug(f"Merging environment overlay {env_config_path}")
                env_config = self.load_yaml(env_config_path)
                base_config = self.merge_configs(base_config, env_config)

        final_config = self.substitute_env_vars(base_config)

        try:
            return AppConfig(**final_config)
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}"
                for err in e.errors()
            ]
            raise ConfigValidationError(errors) from e

    def load_yaml(self, path: str | Path) -> dict[str, Any]:
        """
        Load a YAML configuration file.

        Raises:
            ConfigFileNotFoundError: If file not found
            ConfigParseError: If YAML parsing fails
        """
        path = Path(path)

        if not path.exists():
            raise ConfigFileNotFoundError(str(path))

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigParseError(str(path), str(e)) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigParseError(str(path), "top level must be a mapping")
        return data

    def merge_configs(
        self,
        base: dict[str, Any],
        override: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Deep merge two configuration dictionaries.

        Override values take precedence. Nested dictionaries are merged
        recursively; lists (such as ``strategies``) are replaced whole.

        Example:
            >>> base = {"a": {"b": 1, "c": 2}, "d": 3}
            >>> override = {"a": {"b": 10}, "e": 4}
            >>> merged = loader.merge_configs(base, override)
            >>> # Result: {"a": {"b": 10, "c": 2}, "d": 3, "e": 4}
        """
        result = deepcopy(base)

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self.merge_configs(result[key], value)
            else:
                result[key] = deepcopy(value)

        return result

    def substitute_env_vars(self, data: Any) -> Any:
        """Substitute ${VAR} and ${VAR:default} references recursively."""
        if isinstance(data, dict):
            return {k: self.substitute_env_vars(v) for k, v in data.items()}
        elif isinstance(data, list):
            return [self.substitute_env_vars(item) for item in data]
        elif isinstance(data, str):
            return self._substitute_string(data)
        else:
            return data

    def _substitute_string(self, value: str) -> Any:
        """
        Substitute environment variables in a string value.

        A string that is exactly one ``${VAR}`` reference is converted to
        bool/int/float where the value looks like one.
        """
        full_match = ENV_VAR_PATTERN.fullmatch(value)
        if full_match:
            var_name, default = full_match.groups()
            env_value = os.environ.get(var_name, default)

            if env_value is None:
                return value

            return self._convert_value(env_value)

        def replace_match(match: re.Match) -> str:
            var_name, default = match.groups()
            return os.environ.get(var_name, default if default is not None else match.group(0))

        return ENV_VAR_PATTERN.sub(replace_match, value)

    def _convert_value(self, value: str) -> Any:
        """Convert a substituted string to bool, int or float where unambiguous."""
        stripped = value.strip()
        if not stripped or HEX_PATTERN.match(stripped):
            return value

        if stripped.lower() in ("true", "yes", "on"):
            return True
        if stripped.lower() in ("false", "no", "off"):
            return False

        try:
            return int(stripped)
        except ValueError:
            pass

        try:
            return float(stripped)
        except ValueError:
            return value

    def _load_env_file(self, config_dir: Path) -> None:
        """Load the first .env found: explicit, config dir, its parent, cwd."""
        if self._loaded_env:
            return

        candidates = []
        if self._env_file:
            candidates.append(self._env_file)
        candidates.extend([
            config_dir / ".env",
            config_dir.parent / ".env",
            Path.cwd() / ".env",
        ])

        for env_path in candidates:
            if env_path.exists():
                load_dotenv(env_path)
                logger.debug(f"Loaded environment file {env_path}")
                self._loaded_env = True
                return


def load_config(
    path: str | Path,
    env: Optional[str] = None,
    env_file: Optional[str | Path] = None,
) -> AppConfig:
    """
    Load configuration from YAML file.

    Args:
        path: Path to base configuration file
        env: Optional environment name
        env_file: Optional path to .env file

    Returns:
        Validated AppConfig instance
    """
    loader = ConfigLoader(env_file=env_file)
    return loader.load(path, env=env)
