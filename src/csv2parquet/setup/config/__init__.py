"""
Pydantic configuration system for the converter.
"""

from .models import Environment, ConverterConfig, DEFAULT_ROW_GROUP_BYTES
from .loader import ConfigError, ConfigLoader, load_config


def get_config(overrides=None, config_path=None):
    """
    Load the converter configuration.

    Args:
        overrides: Command-line values that take precedence over every other source
        config_path: Optional YAML config file

    Returns:
        ConverterConfig: Fully validated settings
    """
    return load_config(overrides=overrides, config_path=config_path)


__all__ = [
    "Environment",
    "ConverterConfig",
    "DEFAULT_ROW_GROUP_BYTES",
    "ConfigError",
    "ConfigLoader",
    "load_config",
    "get_config",
]
