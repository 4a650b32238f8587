"""
Pytest configuration and shared fixtures for tfbin tests.
"""

import io
import zipfile
from typing import Dict, List, Optional

import pytest

from tfbin.core.cache import ProviderCache
from tfbin.core.provider_meta import ProviderMeta
from tfbin.registry.client import (
    ProviderLocation,
    ProviderPlatform,
    ProviderSource,
    ProviderVersion,
)


def make_zip(entries: Dict[str, bytes]) -> bytes:
    """Build zip archive bytes from a name -> content mapping."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in entries.items():
            zf.writestr(name, content)
    return buffer.getvalue()


class FakeSource(ProviderSource):
    """In-memory provider source that records every call."""

    def __init__(
        self,
        versions: Optional[List[ProviderVersion]] = None,
        download_url: str = "https://releases.example.com/provider.zip",
    ):
        self.versions = versions or []
        self.download_url = download_url
        self.version_calls: List[ProviderMeta] = []
        self.location_calls: List[ProviderMeta] = []

    def provider_versions(self, meta):
        self.version_calls.append(meta)
        return self.versions

    def provider_location(self, meta):
        self.location_calls.append(meta)
        return ProviderLocation(
            download_url=self.download_url, os=meta.os, arch=meta.arch
        )

    @property
    def call_count(self) -> int:
        return len(self.version_calls) + len(self.location_calls)


class FakeFetcher:
    """Returns canned archive bytes and counts downloads."""

    def __init__(self, data: bytes):
        self.data = data
        self.urls: List[str] = []

    def __call__(self, url: str) -> bytes:
        self.urls.append(url)
        return self.data


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def null_meta() -> ProviderMeta:
    """The hashicorp/null 3.2.1 linux/amd64 coordinate."""
    return ProviderMeta(
        host="registry.example.com",
        namespace="hashicorp",
        name="null",
        version="3.2.1",
        os="linux",
        arch="amd64",
    )


@pytest.fixture
def cache(tmp_path) -> ProviderCache:
    """Empty provider cache in a temporary directory."""
    return ProviderCache(tmp_path / "cache")


@pytest.fixture
def null_listing() -> List[ProviderVersion]:
    """Remote listing containing hashicorp/null 3.2.1 for linux/amd64."""
    return [
        ProviderVersion(
            version="3.2.0",
            platforms=[ProviderPlatform("linux", "amd64")],
        ),
        ProviderVersion(
            version="3.2.1",
            platforms=[
                ProviderPlatform("darwin", "arm64"),
                ProviderPlatform("linux", "amd64"),
            ],
        ),
    ]


@pytest.fixture
def fake_source(null_listing) -> FakeSource:
    return FakeSource(versions=null_listing)


@pytest.fixture
def provider_zip() -> bytes:
    """Archive holding a single provider binary."""
    return make_zip({"terraform-provider-null_v3.2.1_x5": b"\x7fELF provider"})


@pytest.fixture
def fake_fetcher(provider_zip) -> FakeFetcher:
    return FakeFetcher(provider_zip)


@pytest.fixture
def isolated_cwd(tmp_path, monkeypatch):
    """Run the test from an empty working directory."""
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    return workdir


@pytest.fixture
def zip_builder():
    """Factory for zip archive bytes."""
    return make_zip


@pytest.fixture
def source_factory():
    """Factory for in-memory provider sources."""
    return FakeSource


@pytest.fixture
def fetcher_factory():
    """Factory for canned archive fetchers."""
    return FakeFetcher
