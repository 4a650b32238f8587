"""
Terraform provider registry protocol client.

Implements the parts of the provider registry protocol (v1) needed to
resolve a provider build:

- service discovery via ``/.well-known/terraform.json``
- ``GET <providers.v1>/<namespace>/<name>/versions``
- ``GET <providers.v1>/<namespace>/<name>/<version>/download/<os>/<arch>``
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urljoin

import requests
from requests.exceptions import RequestException

from tfbin.core.exceptions import ProviderNotFoundError, RegistryClientError
from tfbin.core.provider_meta import ProviderMeta

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_HOST = "registry.terraform.io"
DISCOVERY_PATH = "/.well-known/terraform.json"
PROVIDERS_SERVICE = "providers.v1"
DEFAULT_TIMEOUT = 30


@dataclass(frozen=True)
class ProviderPlatform:
    """One (os, arch) build of a provider version."""

    os: str
    arch: str


@dataclass
class ProviderVersion:
    """A published provider version and its platform builds."""

    version: str
    platforms: List[ProviderPlatform] = field(default_factory=list)
    protocols: List[str] = field(default_factory=list)

    def supports(self, os: str, arch: str) -> bool:
        """True if this version has a build for ``os``/``arch``."""
        return ProviderPlatform(os, arch) in self.platforms


@dataclass
class ProviderLocation:
    """Download location for one provider build."""

    download_url: str
    filename: str = ""
    os: str = ""
    arch: str = ""


class ProviderSource(ABC):
    """
    Abstract interface for services that publish provider builds.

    ProviderRegistry depends only on this interface, so tests and alternate
    mirrors can supply their own listing.
    """

    @abstractmethod
    def provider_versions(self, meta: ProviderMeta) -> List[ProviderVersion]:
        """
        List every published version of ``meta.namespace/meta.name``.

        Only host, namespace and name of ``meta`` are used.
        """
        pass

    @abstractmethod
    def provider_location(self, meta: ProviderMeta) -> ProviderLocation:
        """Resolve the archive download location for the exact ``meta``."""
        pass


class RegistryClient(ProviderSource):
    """
    HTTP client for a Terraform-protocol provider registry.

    Example:
        >>> client = RegistryClient()
        >>> versions = client.provider_versions(
        ...     ProviderMeta(namespace="hashicorp", name="null")
        ... )
        >>> [v.version for v in versions][:3]
        ['3.2.1', '3.2.0', '3.1.1']
    """

    def __init__(
        self,
        default_host: str = DEFAULT_REGISTRY_HOST,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize registry client.

        Args:
            default_host: Registry host used when a ProviderMeta has no host
            timeout: Request timeout in seconds
            session: Optional requests session to reuse
        """
        self.default_host = default_host
        self.timeout = timeout
        self.session = session or requests.Session()
        self._service_urls: Dict[str, str] = {}

    def service_url(self, host: str = "") -> str:
        """
        Discover the providers.v1 base URL for ``host``.

        Results are memoized per host.

        Raises:
            RegistryClientError: If discovery fails or the host has no
                provider registry service
        """
        host = host or self.default_host
        if host in self._service_urls:
            return self._service_urls[host]

        discovery_url = f"https://{host}{DISCOVERY_PATH}"
        services = self._get_json(discovery_url)
        base = services.get(PROVIDERS_SERVICE) if isinstance(services, dict) else None
        if not isinstance(base, str) or not base:
            raise RegistryClientError(
                f"Host {host} does not offer the {PROVIDERS_SERVICE} service"
            )

        url = urljoin(discovery_url, base)
        if not url.endswith("/"):
            url += "/"
        logger.debug(f"Discovered {PROVIDERS_SERVICE} for {host}: {url}")
        self._service_urls[host] = url
        return url

    def _provider_url(self, meta: ProviderMeta, *parts: str) -> str:
        segments = [meta.namespace, meta.name, *parts]
        path = "/".join(quote(s, safe="") for s in segments)
        return urljoin(self.service_url(meta.host), path)

    def provider_versions(self, meta: ProviderMeta) -> List[ProviderVersion]:
        """
        List published versions with their platforms.

        Raises:
            ProviderNotFoundError: If the registry does not know the provider
            RegistryClientError: On transport or response errors
        """
        url = self._provider_url(meta, "versions")
        data = self._get_json(url, not_found=meta)

        try:
            versions = [
                ProviderVersion(
                    version=entry["version"],
                    platforms=[
                        ProviderPlatform(os=p["os"], arch=p["arch"])
                        for p in entry.get("platforms") or []
                    ],
                    protocols=list(entry.get("protocols") or []),
                )
                for entry in data.get("versions") or []
            ]
        except (AttributeError, KeyError, TypeError) as e:
            raise RegistryClientError(
                f"Malformed versions response from {url}: {e}"
            ) from e

        logger.debug(f"{url} lists {len(versions)} versions")
        return versions

    def provider_location(self, meta: ProviderMeta) -> ProviderLocation:
        """
        Resolve the download URL for one provider build.

        Raises:
            ProviderNotFoundError: If the registry has no such build
            RegistryClientError: On transport or response errors
        """
        url = self._provider_url(meta, meta.version, "download", meta.os, meta.arch)
        data = self._get_json(url, not_found=meta)

        download_url = data.get("download_url") if isinstance(data, dict) else None
        if not isinstance(download_url, str) or not download_url:
            raise RegistryClientError(f"No download_url in response from {url}")

        return ProviderLocation(
            download_url=urljoin(url, download_url),
            filename=data.get("filename", ""),
            os=data.get("os", meta.os),
            arch=data.get("arch", meta.arch),
        )

    def _get_json(self, url: str, not_found: Optional[ProviderMeta] = None) -> Any:
        logger.debug(f"GET {url}")
        try:
            response = self.session.get(url, timeout=self.timeout)
        except RequestException as e:
            raise RegistryClientError(f"GET of {url} failed: {e}") from e

        with response:
            if response.status_code == 404 and not_found is not None:
                raise ProviderNotFoundError(not_found)
            if response.status_code != 200:
                raise RegistryClientError(
                    f"GET of {url} had a non-200 result: {response.status_code}"
                )
            try:
                return response.json()
            except ValueError as e:
                raise RegistryClientError(f"Invalid JSON from {url}: {e}") from e
