"""
Shared utilities for CLI commands.

Builds the configuration, provider query, cache and registry from parsed
arguments so every command resolves them the same way.
"""

import logging
import sys
from pathlib import Path
from typing import Callable, Optional

from tfbin.config.parser import TfbinConfig, load_config
from tfbin.core.cache import ProviderCache
from tfbin.core.download import DownloadProgress
from tfbin.core.platform import detect_arch, detect_os
from tfbin.core.provider_meta import ProviderMeta
from tfbin.registry.client import ProviderSource, RegistryClient
from tfbin.registry.constraints import is_exact_version, resolve_version
from tfbin.registry.registry import ProviderRegistry

logger = logging.getLogger(__name__)


def load_cli_config(args) -> TfbinConfig:
    """
    Load configuration named by ``--config`` (or ./tfbin.yaml if present).

    Raises:
        ConfigError: If an explicit --config file is missing or invalid
    """
    config_file = getattr(args, "config", None)
    return load_config(config_file, required=config_file is not None)


def build_query(
    args, config: TfbinConfig, source: Optional[ProviderSource] = None
) -> ProviderMeta:
    """
    Build the exact provider query from arguments and configuration.

    OS and architecture fall back to the config defaults, then to the running
    platform. Host precedence is ``--host``, then a host in the source
    address, then the configured registry host.

    A ``--version`` that is a constraint rather than a plain version is pinned
    to the highest matching version listed by ``source`` (a RegistryClient
    built from ``config`` when omitted).

    Raises:
        InvalidProviderMetaError: If the source address is malformed
        VersionConstraintError: If the version constraint cannot be parsed
        NoMatchError: If no published build satisfies the constraint
    """
    query = ProviderMeta.from_source(
        args.provider,
        version=args.provider_version,
        os=args.target_os or config.defaults.os or detect_os(),
        arch=args.target_arch or config.defaults.arch or detect_arch(),
        default_namespace=config.defaults.namespace,
    )
    host = args.host or query.host or config.registry.host
    query = query.with_host(host)

    if is_exact_version(query.version):
        return query
    if source is None:
        source = build_client(config)
    return resolve_version(source, query, query.version)


def build_cache(args, config: TfbinConfig) -> Optional[ProviderCache]:
    """Open the provider cache unless disabled by --no-cache or config."""
    if getattr(args, "no_cache", False) or not config.cache.enabled:
        logger.debug("Provider cache disabled")
        return None
    cache_dir = getattr(args, "cache_dir", None) or config.cache.path
    return ProviderCache(cache_dir)


def build_client(config: TfbinConfig) -> RegistryClient:
    return RegistryClient(
        default_host=config.registry.host, timeout=config.registry.timeout
    )


def build_registry(
    config: TfbinConfig,
    cache: Optional[ProviderCache],
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
) -> ProviderRegistry:
    return ProviderRegistry(
        build_client(config),
        cache=cache,
        timeout=config.registry.timeout,
        progress_callback=progress_callback,
    )


def default_output_dir(meta: ProviderMeta, root: Optional[Path] = None) -> Path:
    """
    Default directory for a fetched binary.

    ``<root>/tf-plugin/<host>/<namespace>/<name>/<version>/<os>_<arch>``
    """
    root = root or Path.cwd()
    return (
        root
        / "tf-plugin"
        / meta.host
        / meta.namespace
        / meta.name
        / meta.version
        / f"{meta.os}_{meta.arch}"
    )


def print_error(message: str, details: Optional[str] = None):
    """
    Print error message to stderr in consistent format.

    Args:
        message: Main error message
        details: Optional additional details
    """
    print(f"ERROR: {message}", file=sys.stderr)
    if details:
        print(f"  {details}", file=sys.stderr)
