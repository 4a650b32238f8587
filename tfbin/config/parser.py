"""YAML configuration parser for tfbin.

This module loads ``tfbin.yaml`` into typed configuration objects. Every key
is optional; a missing file yields the defaults.

Example configuration::

    cache:
      enabled: true
      path: .tf-cache
    registry:
      host: registry.terraform.io
      timeout: 60
    defaults:
      namespace: hashicorp
      os: linux
      arch: amd64
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from tfbin.core.cache import DEFAULT_CACHE_DIR_NAME
from tfbin.core.download import DEFAULT_TIMEOUT
from tfbin.core.exceptions import ConfigError
from tfbin.core.provider_meta import DEFAULT_NAMESPACE
from tfbin.registry.client import DEFAULT_REGISTRY_HOST

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "tfbin.yaml"


@dataclass
class CacheConfig:
    """Provider cache configuration."""

    enabled: bool = True
    path: Path = Path(DEFAULT_CACHE_DIR_NAME)


@dataclass
class RegistryConfig:
    """Remote registry configuration."""

    host: str = DEFAULT_REGISTRY_HOST
    timeout: float = DEFAULT_TIMEOUT


@dataclass
class DefaultsConfig:
    """Defaults applied to provider queries."""

    namespace: str = DEFAULT_NAMESPACE
    os: Optional[str] = None  # None means the running platform
    arch: Optional[str] = None


@dataclass
class TfbinConfig:
    """Complete tfbin configuration."""

    cache: CacheConfig = field(default_factory=CacheConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)


def load_config(
    config_path: Optional[Path] = None, required: bool = False
) -> TfbinConfig:
    """
    Load tfbin configuration.

    Args:
        config_path: Path to YAML file (default: ./tfbin.yaml)
        required: If True, a missing file is an error

    Returns:
        Parsed configuration (defaults if the file is absent)

    Raises:
        ConfigError: If the file is required but missing, or invalid
    """
    if config_path is None:
        config_path = Path.cwd() / DEFAULT_CONFIG_FILENAME
    config_path = Path(config_path)

    if not config_path.exists():
        if required:
            raise ConfigError(f"Configuration file not found: {config_path}")
        logger.debug(f"Config file not found (optional): {config_path}")
        return TfbinConfig()

    logger.debug(f"Loading configuration from {config_path}")
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read {config_path}: {e}") from e

    return parse_config_data(data or {}, base_dir=config_path.parent.resolve())


def parse_config_data(data: Any, base_dir: Optional[Path] = None) -> TfbinConfig:
    """
    Validate a parsed YAML document.

    Relative cache paths are resolved against ``base_dir`` when given.

    Raises:
        ConfigError: On unknown sections or wrongly typed values
    """
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    unknown = set(data) - {"cache", "registry", "defaults"}
    if unknown:
        raise ConfigError(
            f"Unknown configuration sections: {', '.join(sorted(unknown))}"
        )

    cache_data = _section(data, "cache")
    registry_data = _section(data, "registry")
    defaults_data = _section(data, "defaults")

    cache = CacheConfig()
    if "enabled" in cache_data:
        if not isinstance(cache_data["enabled"], bool):
            raise ConfigError("cache.enabled must be true or false")
        cache.enabled = cache_data["enabled"]
    if "path" in cache_data:
        cache.path = Path(_string(cache_data, "path", "cache"))
    if base_dir is not None and not cache.path.is_absolute():
        cache.path = base_dir / cache.path

    registry = RegistryConfig()
    if "host" in registry_data:
        registry.host = _string(registry_data, "host", "registry")
    if "timeout" in registry_data:
        timeout = registry_data["timeout"]
        valid = isinstance(timeout, (int, float)) and not isinstance(timeout, bool)
        if not valid or timeout <= 0:
            raise ConfigError("registry.timeout must be a positive number")
        registry.timeout = float(timeout)

    defaults = DefaultsConfig()
    if "namespace" in defaults_data:
        defaults.namespace = _string(defaults_data, "namespace", "defaults")
    if "os" in defaults_data:
        defaults.os = _string(defaults_data, "os", "defaults")
    if "arch" in defaults_data:
        defaults.arch = _string(defaults_data, "arch", "defaults")

    return TfbinConfig(cache=cache, registry=registry, defaults=defaults)


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    return section


def _string(section: Dict[str, Any], key: str, section_name: str) -> str:
    value = section[key]
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{section_name}.{key} must be a non-empty string")
    return value
