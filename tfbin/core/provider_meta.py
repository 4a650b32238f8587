"""
Provider coordinates and exact matching.

A ProviderMeta names one platform-specific build of a provider plugin:
registry host, namespace, name, version, OS and architecture. Matching is
exact on all six fields; no version ranges, no case folding, no wildcards.
"""

from dataclasses import dataclass, replace
from typing import Iterable

from tfbin.core.exceptions import InvalidProviderMetaError, NoMatchError

DEFAULT_NAMESPACE = "hashicorp"


@dataclass(frozen=True)
class ProviderMeta:
    """Identity of one provider plugin build."""

    host: str = ""
    namespace: str = ""
    name: str = ""
    version: str = ""
    os: str = ""
    arch: str = ""

    @classmethod
    def from_source(
        cls,
        source: str,
        version: str,
        os: str,
        arch: str,
        host: str = "",
        default_namespace: str = DEFAULT_NAMESPACE,
    ) -> "ProviderMeta":
        """
        Build a ProviderMeta from a provider source address.

        Accepts ``name``, ``namespace/name`` or ``host/namespace/name``. A bare
        name gets ``default_namespace``. A host in the address wins over the
        ``host`` argument; use ``with_host`` to override it.

        Raises:
            InvalidProviderMetaError: If the address has more than three parts
                or an empty part.

        Example:
            >>> ProviderMeta.from_source("null", "3.2.1", "linux", "amd64")
            ProviderMeta(host='', namespace='hashicorp', name='null', ...)
        """
        parts = source.strip().split("/")
        if len(parts) > 3 or any(not p for p in parts):
            raise InvalidProviderMetaError(
                f"Invalid provider source address: {source!r}"
            )

        if len(parts) == 3:
            host, namespace, name = parts
        elif len(parts) == 2:
            namespace, name = parts
        else:
            namespace, name = default_namespace, parts[0]

        return cls(
            host=host,
            namespace=namespace,
            name=name,
            version=version,
            os=os,
            arch=arch,
        )

    def equals(self, other: "ProviderMeta") -> bool:
        """True iff all six fields are byte-for-byte equal."""
        return (
            self.host == other.host
            and self.namespace == other.namespace
            and self.name == other.name
            and self.version == other.version
            and self.os == other.os
            and self.arch == other.arch
        )

    def find_match(self, candidates: Iterable["ProviderMeta"]) -> "ProviderMeta":
        """
        Return the first candidate equal to this query.

        Candidates are scanned in the order given; duplicates are not
        detected.

        Raises:
            NoMatchError: If no candidate matches (including an empty set).
        """
        for candidate in candidates:
            if candidate.equals(self):
                return candidate
        raise NoMatchError(self)

    def with_host(self, host: str) -> "ProviderMeta":
        return replace(self, host=host)

    def fields(self) -> tuple:
        """Fields in cache path order."""
        return (self.host, self.namespace, self.name, self.version, self.os, self.arch)

    def __str__(self) -> str:
        return (
            f"host={self.host}, namespace={self.namespace}, name={self.name}, "
            f"os={self.os}, arch={self.arch}, version={self.version}"
        )
