"""Configuration module for tfbin.

This module provides YAML configuration parsing for tfbin.yaml.
"""

from tfbin.config.parser import (
    DEFAULT_CONFIG_FILENAME,
    CacheConfig,
    RegistryConfig,
    DefaultsConfig,
    TfbinConfig,
    load_config,
    parse_config_data,
)

__all__ = [
    "DEFAULT_CONFIG_FILENAME",
    "CacheConfig",
    "RegistryConfig",
    "DefaultsConfig",
    "TfbinConfig",
    "load_config",
    "parse_config_data",
]
