"""
Configuration management for SkyStats.

This module provides the default parameters of the estimators with
validation, environment variable support and YAML/JSON file loading.
"""

from .settings import (
    StatisticsConfig,
    get_config,
    set_config,
    reset_config,
    update_config,
    load_config_from_env,
)
from .loader import (
    ConfigLoader,
    YAMLConfigLoader,
    JSONConfigLoader,
    get_config_loader,
    load_config,
    save_config,
)

__all__ = [
    # Configuration classes
    "StatisticsConfig",
    # Global config functions
    "get_config",
    "set_config",
    "reset_config",
    "update_config",
    "load_config_from_env",
    # Loader classes
    "ConfigLoader",
    "YAMLConfigLoader",
    "JSONConfigLoader",
    "get_config_loader",
    "load_config",
    "save_config",
]
