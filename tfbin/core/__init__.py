"""
Core functionality for tfbin.

Provider coordinates, the on-disk artifact cache, archive handling and the
exception hierarchy that the registry and CLI build on.
"""

from .artifact import Artifact

from .provider_meta import ProviderMeta, DEFAULT_NAMESPACE

from .cache import (
    ProviderCache,
    DEFAULT_CACHE_DIR_NAME,
    HOST_OMITTED,
)

from .archive import open_single_entry

from .download import fetch_archive, DownloadProgress

from .exceptions import (
    TfbinError,
    InvalidProviderMetaError,
    NoMatchError,
    AmbiguousArtifactError,
    VersionConstraintError,
    CacheError,
    CacheLockTimeout,
    ArtifactNotInCacheError,
    MalformedCacheError,
    RegistryClientError,
    ProviderNotFoundError,
    DownloadError,
    ArchiveError,
    InsecureArchiveError,
    ConfigError,
)

__all__ = [
    "Artifact",
    "ProviderMeta",
    "DEFAULT_NAMESPACE",
    "ProviderCache",
    "DEFAULT_CACHE_DIR_NAME",
    "HOST_OMITTED",
    "open_single_entry",
    "fetch_archive",
    "DownloadProgress",
    "TfbinError",
    "InvalidProviderMetaError",
    "NoMatchError",
    "AmbiguousArtifactError",
    "VersionConstraintError",
    "CacheError",
    "CacheLockTimeout",
    "ArtifactNotInCacheError",
    "MalformedCacheError",
    "RegistryClientError",
    "ProviderNotFoundError",
    "DownloadError",
    "ArchiveError",
    "InsecureArchiveError",
    "ConfigError",
]
