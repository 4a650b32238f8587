"""
Filesystem-backed provider artifact cache.

The directory tree is the index: every artifact is stored at::

    <base>/<host>/<namespace>/<name>/<version>/<os>/<arch>/<filename>

with exactly one file per leaf directory. An empty host is written as the
``_nohost`` marker segment so the written layout always has six segments.
Older caches stored host-less artifacts five levels deep; those are still
read, and decode with ``host=""``.

The cache does no internal locking and assumes a single writer per base
directory. Processes that share a cache directory should hold
``ProviderCache.lock()`` around writes.
"""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, List, Sequence, Union

from filelock import FileLock, Timeout as LockTimeout

from tfbin.core.artifact import Artifact
from tfbin.core.exceptions import (
    AmbiguousArtifactError,
    ArtifactNotInCacheError,
    CacheError,
    CacheLockTimeout,
    InvalidProviderMetaError,
    MalformedCacheError,
)
from tfbin.core.provider_meta import ProviderMeta

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR_NAME = ".tf-cache"
HOST_OMITTED = "_nohost"
LOCK_FILENAME = ".tfbin.lock"

# Directory segment positions below the base directory
HOST_POSITION = 0
NAMESPACE_POSITION = 1
NAME_POSITION = 2
VERSION_POSITION = 3
OS_POSITION = 4
ARCH_POSITION = 5

SEGMENT_COUNT = 6
LEGACY_SEGMENT_COUNT = 5


def _check_segment(value: str, label: str, meta: ProviderMeta) -> None:
    if not value:
        raise InvalidProviderMetaError(f"Empty {label} cannot be cached: {meta}")
    if value in (".", "..") or "/" in value or "\\" in value or os.sep in value:
        raise InvalidProviderMetaError(
            f"{label} {value!r} is not a single path segment: {meta}"
        )


def encode_segments(meta: ProviderMeta) -> List[str]:
    """
    Encode a ProviderMeta as the six directory segments of its leaf.

    Raises:
        InvalidProviderMetaError: If a field cannot round-trip through a path.
    """
    if meta.host == HOST_OMITTED:
        raise InvalidProviderMetaError(
            f"host {HOST_OMITTED!r} is reserved for host-less entries: {meta}"
        )
    if meta.host:
        _check_segment(meta.host, "host", meta)
    for label in ("namespace", "name", "version", "os", "arch"):
        _check_segment(getattr(meta, label), label, meta)

    return [meta.host or HOST_OMITTED] + list(meta.fields()[1:])


def decode_segments(segments: Sequence[str], path: Path) -> ProviderMeta:
    """
    Rebuild a ProviderMeta from the directory segments above a cached file.

    Raises:
        MalformedCacheError: If the segment count is neither 6 nor legacy 5.
    """
    if len(segments) == LEGACY_SEGMENT_COUNT:
        segments = [HOST_OMITTED] + list(segments)
    elif len(segments) != SEGMENT_COUNT:
        raise MalformedCacheError(path, list(segments))

    host = segments[HOST_POSITION]
    return ProviderMeta(
        host="" if host == HOST_OMITTED else host,
        namespace=segments[NAMESPACE_POSITION],
        name=segments[NAME_POSITION],
        version=segments[VERSION_POSITION],
        os=segments[OS_POSITION],
        arch=segments[ARCH_POSITION],
    )


class ProviderCache:
    """
    Stores and retrieves provider artifacts keyed by ProviderMeta.

    Example:
        >>> cache = ProviderCache(Path(".tf-cache"))
        >>> with cache.writer(meta, "terraform-provider-null_v3.2.1") as f:
        ...     f.write(data)
        >>> with cache.reader(meta) as artifact:
        ...     print(artifact.filename)
    """

    def __init__(self, base_dir: Union[str, Path]):
        """
        Initialize cache, creating the base directory if needed.

        Args:
            base_dir: Cache root directory

        Raises:
            CacheError: If the directory cannot be created
        """
        self.base_dir = Path(os.path.abspath(base_dir))
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheError(
                f"Failed to create cache directory at {self.base_dir}: {e}"
            ) from e
        logger.debug(f"Using provider cache at {self.base_dir}")

    @classmethod
    def default(cls) -> "ProviderCache":
        """Cache at ``$CWD/.tf-cache``."""
        return cls(Path.cwd() / DEFAULT_CACHE_DIR_NAME)

    def leaf_dir(self, meta: ProviderMeta) -> Path:
        """Directory that holds the artifact for ``meta``."""
        return self.base_dir.joinpath(*encode_segments(meta))

    def _legacy_leaf_dir(self, meta: ProviderMeta) -> Path:
        return self.base_dir.joinpath(*encode_segments(meta)[1:])

    def writer(self, meta: ProviderMeta, filename: str) -> BinaryIO:
        """
        Open ``filename`` for writing in the leaf directory of ``meta``.

        An existing file with the same name is truncated.

        Raises:
            InvalidProviderMetaError: If ``meta`` or ``filename`` is not encodable
            CacheError: If the directory or file cannot be created
        """
        leaf = self.leaf_dir(meta)
        if not filename or filename in (".", "..") or Path(filename).name != filename:
            raise InvalidProviderMetaError(f"Invalid artifact filename: {filename!r}")

        write_path = leaf / filename
        try:
            leaf.mkdir(parents=True, exist_ok=True)
            handle = open(write_path, "wb")
        except OSError as e:
            raise CacheError(f"Failed to open cache file {write_path}: {e}") from e

        logger.debug(f"Writing {meta} to {write_path}")
        return handle

    def reader(self, meta: ProviderMeta) -> Artifact:
        """
        Open the single cached artifact for ``meta``.

        Host-less coordinates also look in the legacy five-level location.

        Raises:
            ArtifactNotInCacheError: If the leaf directory is missing or empty
            AmbiguousArtifactError: If the leaf holds more than one entry
            CacheError: If the directory or file cannot be read
        """
        leaf = self.leaf_dir(meta)
        entries = self._list_leaf(leaf)
        if not entries and not meta.host:
            legacy = self._legacy_leaf_dir(meta)
            legacy_entries = self._list_leaf(legacy)
            if legacy_entries:
                leaf, entries = legacy, legacy_entries

        if not entries:
            raise ArtifactNotInCacheError(meta, leaf)
        if len(entries) > 1:
            names = ", ".join(p.name for p in entries)
            raise AmbiguousArtifactError(
                f"Unexpected duplicate files in cache at {leaf}: {names}"
            )

        path = entries[0]
        try:
            handle = open(path, "rb")
        except OSError as e:
            raise CacheError(f"Failed to open cached artifact {path}: {e}") from e

        logger.debug(f"Cache hit for {meta}: {path}")
        return Artifact(handle, path.name)

    def _list_leaf(self, leaf: Path) -> List[Path]:
        try:
            return sorted(leaf.iterdir())
        except FileNotFoundError:
            return []
        except OSError as e:
            raise CacheError(f"Failed to list cache directory {leaf}: {e}") from e

    def entries(self) -> List[ProviderMeta]:
        """
        Walk the cache and rebuild a ProviderMeta for every stored file.

        Files at an unexpected depth are logged and skipped. Order is
        deterministic (sorted depth-first).

        Raises:
            CacheError: If the tree cannot be enumerated
        """

        def on_error(err: OSError):
            raise CacheError(f"Failed to walk cache at {self.base_dir}: {err}") from err

        found = []
        for dirpath, dirnames, filenames in os.walk(self.base_dir, onerror=on_error):
            dirnames.sort()
            current = Path(dirpath)
            segments = current.relative_to(self.base_dir).parts
            for filename in sorted(filenames):
                if not segments and filename == LOCK_FILENAME:
                    continue
                path = current / filename
                if not path.is_file():
                    continue
                try:
                    found.append(decode_segments(segments, path))
                except MalformedCacheError as e:
                    logger.warning(f"Skipping cache entry: {e}")
        return found

    def search(self, query: ProviderMeta) -> ProviderMeta:
        """
        Find a cached artifact matching ``query`` exactly.

        Raises:
            NoMatchError: If the walk completes without a match
            CacheError: If the tree cannot be enumerated
        """
        candidates = self.entries()
        logger.debug(f"Searching {len(candidates)} cached providers for {query}")
        return query.find_match(candidates)

    @contextmanager
    def lock(self, timeout: float = 300):
        """
        Hold an inter-process lock on this cache directory.

        Args:
            timeout: Maximum wait time in seconds

        Raises:
            CacheLockTimeout: If the lock can't be acquired within timeout
        """
        lock_path = self.base_dir / LOCK_FILENAME
        lock = FileLock(str(lock_path), timeout=timeout)

        try:
            with lock:
                logger.debug(f"Acquired cache lock: {lock_path}")
                yield
                logger.debug(f"Released cache lock: {lock_path}")
        except LockTimeout as e:
            raise CacheLockTimeout(
                f"Could not acquire cache lock after {timeout}s. "
                "Another tfbin process may be writing to this cache."
            ) from e
