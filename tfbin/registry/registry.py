"""
Cache-first provider resolution and fetch orchestration.

ProviderRegistry fronts a remote provider source with an optional
ProviderCache:

1. Search the cache; a hit never touches the network
2. On a cache miss, list the remote versions/platforms and match exactly
3. Download the archive, require a single file entry
4. Write it through the cache and hand back the cached copy
"""

import logging
import shutil
from typing import Callable, List, Optional

from tfbin.core.archive import open_single_entry
from tfbin.core.artifact import Artifact
from tfbin.core.cache import ProviderCache
from tfbin.core.download import DEFAULT_TIMEOUT, DownloadProgress, fetch_archive
from tfbin.core.exceptions import (
    ArtifactNotInCacheError,
    CacheError,
    NoMatchError,
)
from tfbin.core.provider_meta import ProviderMeta
from tfbin.registry.client import ProviderSource, RegistryClient

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """
    Resolves provider queries against a cache and a remote registry.

    No retries are made and nothing is negatively cached; every call
    without a cache hit queries the remote source again.

    Example:
        >>> registry = ProviderRegistry(RegistryClient(), cache=ProviderCache.default())
        >>> meta = registry.search(query)
        >>> with registry.provider_meta_reader(meta) as artifact:
        ...     data = artifact.read()
    """

    def __init__(
        self,
        client: Optional[ProviderSource] = None,
        cache: Optional[ProviderCache] = None,
        fetcher: Optional[Callable[[str], bytes]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    ):
        """
        Initialize registry.

        Args:
            client: Remote provider source (default: RegistryClient())
            cache: Optional provider cache
            fetcher: Callable returning the bytes at a URL
                (default: fetch_archive with ``timeout``)
            timeout: Download timeout for the default fetcher
            progress_callback: Progress callback for the default fetcher
        """
        self.client = client or RegistryClient()
        self.cache = cache
        self.fetcher = fetcher or (
            lambda url: fetch_archive(
                url, timeout=timeout, progress_callback=progress_callback
            )
        )

    def search(self, query: ProviderMeta) -> ProviderMeta:
        """
        Find the provider build matching ``query`` exactly.

        Raises:
            NoMatchError: If neither cache nor remote has a match
            CacheError: If the cache is broken (the network is not tried)
            RegistryClientError: If the remote listing fails
        """
        if self.cache is not None:
            try:
                result = self.cache.search(query)
                logger.info(f"Found {result} in cache")
                return result
            except NoMatchError:
                logger.debug(f"No cache match for {query}, querying registry")

        return query.find_match(self.remote_candidates(query))

    def remote_candidates(self, query: ProviderMeta) -> List[ProviderMeta]:
        """Flatten the remote version/platform listing into candidates."""
        candidates = []
        for provider_version in self.client.provider_versions(query):
            for platform in provider_version.platforms:
                candidates.append(
                    ProviderMeta(
                        host=query.host,
                        namespace=query.namespace,
                        name=query.name,
                        version=provider_version.version,
                        os=platform.os,
                        arch=platform.arch,
                    )
                )
        logger.debug(
            f"Registry lists {len(candidates)} builds "
            f"for {query.namespace}/{query.name}"
        )
        return candidates

    def provider_meta_reader(self, meta: ProviderMeta) -> Artifact:
        """
        Open the artifact for ``meta``, downloading it on a cache miss.

        With a cache configured the returned artifact is always read back
        from the cache. Only a cache miss falls through to the network; any
        other cache read failure, including an ambiguous leaf, propagates.

        Raises:
            AmbiguousArtifactError: If the cache leaf or the archive holds
                more than one file (or the archive holds none)
            DownloadError: If the archive download fails
            CacheError: If the cache cannot be read or written
        """
        if self.cache is not None:
            try:
                return self.cache.reader(meta)
            except ArtifactNotInCacheError:
                logger.debug(f"{meta} not cached, downloading")

        location = self.client.provider_location(meta)
        data = self.fetcher(location.download_url)
        entry = open_single_entry(data, source=location.download_url)

        if self.cache is None:
            return entry

        with entry:
            self._write_through(meta, entry)
        logger.info(f"Cached {entry.filename} for {meta}")
        return self.cache.reader(meta)

    def _write_through(self, meta: ProviderMeta, entry: Artifact) -> None:
        path = self.cache.leaf_dir(meta) / entry.filename
        try:
            with self.cache.writer(meta, entry.filename) as out:
                shutil.copyfileobj(entry.stream, out)
        except OSError as e:
            path.unlink(missing_ok=True)
            raise CacheError(
                f"Error writing provider binary to local cache at {path}: {e}"
            ) from e

    def fetch(self, query: ProviderMeta) -> Artifact:
        """Search for ``query`` and open the winning artifact."""
        return self.provider_meta_reader(self.search(query))
