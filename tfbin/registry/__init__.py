"""Remote provider registry access and cache-first orchestration."""

from tfbin.registry.client import (
    DEFAULT_REGISTRY_HOST,
    ProviderLocation,
    ProviderPlatform,
    ProviderSource,
    ProviderVersion,
    RegistryClient,
)
from tfbin.registry.registry import ProviderRegistry

__all__ = [
    "DEFAULT_REGISTRY_HOST",
    "ProviderLocation",
    "ProviderPlatform",
    "ProviderSource",
    "ProviderVersion",
    "RegistryClient",
    "ProviderRegistry",
]
