"""
Configuration loader with YAML file and environment variable mapping.

Precedence (lowest to highest): model defaults, YAML config file,
CSV2PARQUET_* environment variables (a .env file is honoured), CLI overrides.
"""

from typing import Dict, Any, Optional
import os
import logging
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from .models import ConverterConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.yaml"
ENV_PREFIX = "CSV2PARQUET_"

# Short YAML keys accepted for the path settings
FILE_KEY_ALIASES = {
    "input": "input_path",
    "output": "output_dir",
}

ENV_KEYS = (
    "input_path",
    "output_dir",
    "delete_original",
    "log_level",
    "batch_size",
    "delimiter",
    "sample_rows",
    "workers",
    "row_group_size",
    "compression",
    "encoding",
    "environment",
    "log_dir",
    "show_progress",
)


class ConfigError(Exception):
    """Raised when configuration cannot be read or does not validate."""


class ConfigLoader:
    """Configuration loader with file and environment variable mapping and validation."""

    def __init__(self, config_path: Optional[str] = None, env_file: Optional[str] = None):
        """
        Initialize configuration loader.

        Args:
            config_path: YAML config file. When omitted, ``config.yaml`` in the
                current directory is used if it exists.
            env_file: Path to .env file (defaults to .env in current directory)
        """
        self.config_path = config_path
        self.env_file = env_file or ".env"

    def load_configuration(self, overrides: Optional[Dict[str, Any]] = None) -> ConverterConfig:
        """
        Load, merge and validate configuration.

        Args:
            overrides: Values from the command line; ``None`` entries are ignored.

        Returns:
            Validated ConverterConfig instance

        Raises:
            ConfigError: On unreadable files, invalid values or a missing input path.
        """
        self._load_env_file()

        values: Dict[str, Any] = {}
        values.update(self._load_file_values())
        values.update(self._load_env_values())
        values.update({k: v for k, v in (overrides or {}).items() if v is not None})

        if not values.get("input_path"):
            raise ConfigError("input path is required (use --input flag or set in config)")

        try:
            config = ConverterConfig(**values)
        except ValidationError as e:
            raise ConfigError(f"invalid configuration: {e}") from e

        return config

    def _load_env_file(self):
        """Load environment variables from .env file."""
        if os.path.exists(self.env_file):
            load_dotenv(self.env_file, override=False)
            logger.debug(f"Loaded environment variables from {self.env_file}")

    def _load_file_values(self) -> Dict[str, Any]:
        """Read the YAML config file; a missing default file is fine."""
        explicit = self.config_path is not None and self.config_path != DEFAULT_CONFIG_FILE
        path = Path(self.config_path or DEFAULT_CONFIG_FILE)

        if not path.exists():
            if explicit:
                raise ConfigError(f"reading config file {path}: file not found")
            return {}

        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"parsing config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"parsing config file {path}: expected a mapping at top level")

        logger.debug(f"Loaded configuration file {path}")
        return {FILE_KEY_ALIASES.get(key, key): value for key, value in data.items()}

    def _load_env_values(self) -> Dict[str, Any]:
        """Collect CSV2PARQUET_<FIELD> environment variables."""
        values = {}
        for key in ENV_KEYS:
            raw = os.getenv(f"{ENV_PREFIX}{key.upper()}")
            if raw is not None and raw != "":
                values[key] = raw
        # Short aliases matching the YAML keys
        for alias, key in FILE_KEY_ALIASES.items():
            raw = os.getenv(f"{ENV_PREFIX}{alias.upper()}")
            if raw and key not in values:
                values[key] = raw
        return values


def load_config(
    overrides: Optional[Dict[str, Any]] = None,
    config_path: Optional[str] = None,
    env_file: Optional[str] = None,
) -> ConverterConfig:
    """Load configuration with file, environment and command-line values merged."""
    return ConfigLoader(config_path=config_path, env_file=env_file).load_configuration(overrides)
