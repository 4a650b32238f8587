"""
Unit tests for cache-first provider resolution.

The remote source and archive fetcher are in-memory fakes; the cache is a
real ProviderCache in a temporary directory.
"""

import dataclasses

import pytest
import responses

from tfbin.core.exceptions import (
    AmbiguousArtifactError,
    CacheError,
    DownloadError,
    NoMatchError,
)
from tfbin.core.provider_meta import ProviderMeta
from tfbin.registry.client import RegistryClient
from tfbin.registry.registry import ProviderRegistry

BINARY = "terraform-provider-null_v3.2.1_x5"


class TestSearch:
    """Tests for ProviderRegistry.search."""

    def test_remote_match_without_cache(self, fake_source, null_meta):
        """Test remote match without cache."""
        registry = ProviderRegistry(fake_source)

        result = registry.search(null_meta)

        assert result.equals(null_meta)
        assert fake_source.version_calls == [null_meta]

    def test_cache_miss_falls_through(self, fake_source, cache, null_meta):
        """Test cache miss falls through."""
        registry = ProviderRegistry(fake_source, cache=cache)

        assert registry.search(null_meta).equals(null_meta)
        assert len(fake_source.version_calls) == 1

    def test_cache_hit_skips_network(self, fake_source, cache, null_meta):
        """Test cache hit skips network."""
        with cache.writer(null_meta, BINARY) as f:
            f.write(b"bin")
        registry = ProviderRegistry(fake_source, cache=cache)

        assert registry.search(null_meta).equals(null_meta)
        assert fake_source.call_count == 0

    def test_broken_cache_propagates(self, fake_source, cache, null_meta, monkeypatch):
        """Test broken cache propagates."""
        def broken(query):
            raise CacheError("disk on fire")

        monkeypatch.setattr(cache, "search", broken)
        registry = ProviderRegistry(fake_source, cache=cache)

        with pytest.raises(CacheError, match="disk on fire"):
            registry.search(null_meta)

        assert fake_source.call_count == 0

    def test_remote_no_match(self, fake_source, cache, null_meta):
        """Test remote no match."""
        registry = ProviderRegistry(fake_source, cache=cache)
        query = dataclasses.replace(null_meta, version="9.9.9")

        with pytest.raises(NoMatchError) as exc_info:
            registry.search(query)

        assert exc_info.value.query == query

    def test_no_negative_caching(self, fake_source, null_meta):
        """Test no negative caching."""
        registry = ProviderRegistry(fake_source)
        query = dataclasses.replace(null_meta, arch="s390x")

        for _ in range(2):
            with pytest.raises(NoMatchError):
                registry.search(query)

        assert len(fake_source.version_calls) == 2

    def test_candidates_use_query_identity(self, fake_source, null_meta):
        """Test candidates use query identity."""
        registry = ProviderRegistry(fake_source)

        candidates = registry.remote_candidates(null_meta)

        assert len(candidates) == 3
        assert {c.host for c in candidates} == {null_meta.host}
        assert {c.name for c in candidates} == {"null"}
        assert candidates[0] == ProviderMeta(
            null_meta.host, "hashicorp", "null", "3.2.0", "linux", "amd64"
        )


class TestProviderMetaReader:
    """Tests for ProviderRegistry.provider_meta_reader."""

    def test_download_without_cache(self, fake_source, fake_fetcher, null_meta):
        """Test download without cache."""
        registry = ProviderRegistry(fake_source, fetcher=fake_fetcher)

        with registry.provider_meta_reader(null_meta) as artifact:
            assert artifact.filename == BINARY
            assert artifact.read() == b"\x7fELF provider"

        assert fake_fetcher.urls == [fake_source.download_url]

    def test_download_populates_cache(
        self, fake_source, fake_fetcher, cache, null_meta
    ):
        """Test download populates cache."""
        registry = ProviderRegistry(fake_source, cache=cache, fetcher=fake_fetcher)

        with registry.provider_meta_reader(null_meta) as artifact:
            assert artifact.filename == BINARY
            assert artifact.read() == b"\x7fELF provider"

        cached = cache.leaf_dir(null_meta) / BINARY
        assert cached.read_bytes() == b"\x7fELF provider"
        assert cache.entries() == [null_meta]

    def test_cached_artifact_skips_network(
        self, fake_source, fake_fetcher, cache, null_meta
    ):
        """Test cached artifact skips network."""
        with cache.writer(null_meta, BINARY) as f:
            f.write(b"cached")
        registry = ProviderRegistry(fake_source, cache=cache, fetcher=fake_fetcher)

        with registry.provider_meta_reader(null_meta) as artifact:
            assert artifact.read() == b"cached"

        assert fake_source.call_count == 0
        assert fake_fetcher.urls == []

    def test_ambiguous_cache_is_not_bypassed(
        self, fake_source, fake_fetcher, cache, null_meta
    ):
        """Test ambiguous cache is not bypassed."""
        for name in ("a", "b"):
            with cache.writer(null_meta, name) as f:
                f.write(b"x")
        registry = ProviderRegistry(fake_source, cache=cache, fetcher=fake_fetcher)

        with pytest.raises(AmbiguousArtifactError):
            registry.provider_meta_reader(null_meta)

        assert fake_fetcher.urls == []

    @pytest.mark.parametrize(
        "entries",
        [{}, {"LICENSE": b"MPL", BINARY: b"bin"}],
        ids=["empty", "two-entries"],
    )
    def test_bad_archive_writes_nothing(
        self,
        fake_source,
        fetcher_factory,
        zip_builder,
        cache,
        null_meta,
        entries,
    ):
        """Test bad archive writes nothing."""
        fetcher = fetcher_factory(zip_builder(entries))
        registry = ProviderRegistry(fake_source, cache=cache, fetcher=fetcher)

        with pytest.raises(AmbiguousArtifactError):
            registry.provider_meta_reader(null_meta)

        assert cache.entries() == []
        assert not cache.leaf_dir(null_meta).exists()

    def test_download_failure_propagates(self, fake_source, cache, null_meta):
        """Test download failure propagates."""
        def failing_fetcher(url):
            raise DownloadError(f"GET of {url} had a non-200 result: 500")

        registry = ProviderRegistry(fake_source, cache=cache, fetcher=failing_fetcher)

        with pytest.raises(DownloadError):
            registry.provider_meta_reader(null_meta)

        assert cache.entries() == []

    def test_failed_cache_write_is_removed(
        self, fake_source, fake_fetcher, cache, null_meta, monkeypatch
    ):
        """Test failed cache write is removed."""
        def failing_copy(src, dst):
            dst.write(b"partial")
            raise OSError("disk full")

        monkeypatch.setattr("tfbin.registry.registry.shutil.copyfileobj", failing_copy)
        registry = ProviderRegistry(fake_source, cache=cache, fetcher=fake_fetcher)

        with pytest.raises(CacheError, match="disk full"):
            registry.provider_meta_reader(null_meta)

        assert not (cache.leaf_dir(null_meta) / BINARY).exists()


class TestEndToEnd:
    """Empty cache, remote fetch, then a fully cached second run."""

    def test_second_run_is_offline(
        self, source_factory, null_listing, fake_fetcher, cache
    ):
        """Test second run is offline."""
        query = ProviderMeta(
            host="registry.example.com",
            namespace="hashicorp",
            name="null",
            version="3.2.1",
            os="linux",
            arch="amd64",
        )
        source = source_factory(versions=null_listing)
        registry = ProviderRegistry(source, cache=cache, fetcher=fake_fetcher)

        with registry.fetch(query) as artifact:
            first = artifact.read()
        calls_after_first = source.call_count
        assert calls_after_first == 2
        assert len(fake_fetcher.urls) == 1

        meta = registry.search(query)
        with registry.provider_meta_reader(meta) as artifact:
            second = artifact.read()

        assert second == first == b"\x7fELF provider"
        assert source.call_count == calls_after_first
        assert len(fake_fetcher.urls) == 1

    @responses.activate
    def test_over_http(self, zip_builder, cache):
        """Test a full fetch over mocked HTTP, then a cached re-fetch."""
        archive = zip_builder({BINARY: b"real binary"})
        host = "registry.example.com"
        responses.add(
            responses.GET,
            f"https://{host}/.well-known/terraform.json",
            json={"providers.v1": "/v1/providers/"},
        )
        responses.add(
            responses.GET,
            f"https://{host}/v1/providers/hashicorp/null/versions",
            json={
                "versions": [
                    {
                        "version": "3.2.1",
                        "platforms": [{"os": "linux", "arch": "amd64"}],
                    }
                ]
            },
        )
        responses.add(
            responses.GET,
            f"https://{host}/v1/providers/hashicorp/null/3.2.1/download/linux/amd64",
            json={"download_url": "https://releases.example.com/null.zip"},
        )
        responses.add(
            responses.GET,
            "https://releases.example.com/null.zip",
            body=archive,
        )
        query = ProviderMeta(host, "hashicorp", "null", "3.2.1", "linux", "amd64")
        updates = []
        registry = ProviderRegistry(
            RegistryClient(), cache=cache, progress_callback=updates.append
        )

        with registry.fetch(query) as artifact:
            assert artifact.read() == b"real binary"
        http_calls = len(responses.calls)
        assert updates[-1].bytes_downloaded == len(archive)

        with registry.fetch(query) as artifact:
            assert artifact.read() == b"real binary"
        assert len(responses.calls) == http_calls
