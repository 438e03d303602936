"""Configuration file loader.

Handles discovery, parsing, and environment interpolation of YAML
configuration files.
"""

import os
import re
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

from teststate.exceptions import ConfigurationError

# Pattern matches ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:-]+)(?::-([^}]*))?\}")

# Default config file names in priority order
CONFIG_FILE_NAMES = ["teststate.yaml", ".teststate.yaml", "teststate.yml", ".teststate.yml"]


class ConsistencyMode(str, Enum):
    """What the store does after a mutation leaves the failing index inconsistent."""

    OFF = "off"  # no check
    STRICT = "strict"  # raise ConsistencyViolationError
    HEAL = "heal"  # log a warning and rebuild the index


class StoreConfig(BaseModel):
    """Behaviour switches for a ResultStore."""

    model_config = ConfigDict(frozen=True)

    # Drop ids of removed classes from the failing index. Off by default, which
    # keeps is_failing() true for a removed class's failures until they rerun.
    prune_failing_on_remove: bool = False
    consistency_check: ConsistencyMode = ConsistencyMode.HEAL


class FileConfig(BaseModel):
    """Schema for teststate.yaml configuration file."""

    store: StoreConfig = Field(default_factory=StoreConfig)


class ConfigLoader:
    """Load configuration from files."""

    @staticmethod
    def discover_config_file(explicit_path: Path | None = None) -> Path | None:
        """Find configuration file in priority order.

        Args:
            explicit_path: Explicitly provided config file path.

        Returns:
            Path to config file, or None if not found.

        Raises:
            ConfigurationError: If explicit path doesn't exist.
        """
        if explicit_path is not None:
            if not explicit_path.exists():
                msg = f"Configuration file not found: {explicit_path}"
                raise ConfigurationError(msg)
            return explicit_path

        cwd = Path.cwd()
        for filename in CONFIG_FILE_NAMES:
            config_path = cwd / filename
            if config_path.exists():
                return config_path

        return None

    @staticmethod
    def load_yaml(path: Path) -> dict[str, Any]:
        """Load and parse YAML configuration file.

        Args:
            path: Path to YAML file.

        Returns:
            Parsed configuration dictionary.

        Raises:
            ConfigurationError: If file cannot be read or parsed.
        """
        try:
            with path.open() as f:
                content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            msg = f"Failed to parse configuration file {path}: {e}"
            raise ConfigurationError(msg) from e
        except OSError as e:
            msg = f"Failed to read configuration file {path}: {e}"
            raise ConfigurationError(msg) from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            msg = f"Configuration file {path} must contain a mapping"
            raise ConfigurationError(msg)
        return content

    @staticmethod
    def interpolate_env_vars(value: Any) -> Any:
        """Recursively interpolate environment variables in configuration.

        Supports two syntaxes:
        - ${VAR} - Required variable, raises error if not set
        - ${VAR:-default} - Optional variable with default value

        Raises:
            ConfigurationError: If required environment variable is not set.
        """
        if isinstance(value, str):

            def replace(match: re.Match[str]) -> str:
                var_name = match.group(1)
                default_value = match.group(2)
                env_value = os.environ.get(var_name)
                if env_value is not None:
                    return env_value
                if default_value is not None:
                    return default_value
                msg = f"Environment variable {var_name} is not set"
                raise ConfigurationError(msg)

            return ENV_VAR_PATTERN.sub(replace, value)
        elif isinstance(value, dict):
            return {k: ConfigLoader.interpolate_env_vars(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [ConfigLoader.interpolate_env_vars(item) for item in value]
        return value

    @staticmethod
    def load_config(explicit_path: Path | None = None) -> FileConfig | None:
        """Discover, load, and parse configuration file.

        Args:
            explicit_path: Explicitly provided config file path.

        Returns:
            Parsed FileConfig, or None if no config file found.

        Raises:
            ConfigurationError: If config file exists but is invalid.
        """
        config_path = ConfigLoader.discover_config_file(explicit_path)
        if config_path is None:
            return None

        raw_config = ConfigLoader.load_yaml(config_path)
        interpolated = ConfigLoader.interpolate_env_vars(raw_config)

        try:
            return FileConfig.model_validate(interpolated)
        except Exception as e:
            msg = f"Invalid configuration in {config_path}: {e}"
            raise ConfigurationError(msg) from e

    @staticmethod
    def resolve_store_config(
        file_config: FileConfig | None,
        *,
        cli_consistency_check: ConsistencyMode | None = None,
    ) -> StoreConfig:
        """Resolve store configuration.

        Priority order: CLI override, then config file, then defaults.
        """
        config = file_config.store if file_config else StoreConfig()
        if cli_consistency_check is not None:
            config = config.model_copy(update={"consistency_check": cli_consistency_check})
        return config


def load_config(explicit_path: Path | None = None) -> StoreConfig:
    """Load the store configuration, falling back to defaults when no file exists."""
    return ConfigLoader.resolve_store_config(ConfigLoader.load_config(explicit_path))
