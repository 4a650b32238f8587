"""
Centralized exception hierarchy for tfbin.

All errors raised by the cache, the registry client and the fetch
orchestration derive from TfbinError so callers (and the CLI) can catch
them in one place.
"""


# ============================================================================
# Base Exceptions
# ============================================================================


class TfbinError(Exception):
    """Base exception for all tfbin errors."""

    pass


class InvalidProviderMetaError(TfbinError, ValueError):
    """Raised when a ProviderMeta field cannot be encoded as a path segment."""

    pass


# ============================================================================
# Matching Exceptions
# ============================================================================


class NoMatchError(TfbinError):
    """Raised when no candidate matches a query exactly."""

    def __init__(self, query):
        self.query = query
        super().__init__(f"No results for query: {query}")


class AmbiguousArtifactError(TfbinError):
    """Raised when more than one artifact could satisfy a single coordinate."""

    pass


class VersionConstraintError(TfbinError, ValueError):
    """Raised when a version constraint cannot be parsed."""

    pass


# ============================================================================
# Cache Exceptions
# ============================================================================


class CacheError(TfbinError):
    """Base exception for provider cache errors."""

    pass


class ArtifactNotInCacheError(CacheError):
    """Raised when the cache has no artifact for a provider coordinate."""

    def __init__(self, meta, path=None):
        self.meta = meta
        self.path = path
        msg = f"Provider not found in cache: {meta}"
        if path is not None:
            msg += f" (looked in {path})"
        super().__init__(msg)


class CacheLockTimeout(CacheError):
    """Raised when the cache lock cannot be acquired within timeout."""

    pass


class MalformedCacheError(CacheError):
    """A cache path does not decompose into a provider coordinate."""

    def __init__(self, path, segments):
        self.path = path
        self.segments = segments
        super().__init__(
            f"Unexpected cache layout at {path}: "
            f"expected 5 or 6 directory segments, found {len(segments)}"
        )


# ============================================================================
# Registry / Network Exceptions
# ============================================================================


class RegistryClientError(TfbinError):
    """Base exception for provider registry protocol errors."""

    pass


class ProviderNotFoundError(RegistryClientError):
    """Raised when the registry has no download for a provider coordinate."""

    def __init__(self, meta):
        self.meta = meta
        super().__init__(f"Provider not found in registry: {meta}")


class DownloadError(TfbinError):
    """Raised when an archive download fails."""

    pass


class ArchiveError(TfbinError):
    """Raised when a downloaded archive cannot be read."""

    pass


class InsecureArchiveError(ArchiveError):
    """Raised when an archive entry name is not a plain filename."""

    pass


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigError(TfbinError, ValueError):
    """Configuration parsing or validation error."""

    pass
