"""
Version constraint resolution against a provider registry.

ProviderMeta matching is exact, so a constraint such as ``>= 3.0, < 4.0`` or
``~> 3.2`` is pinned here, before the query is built, to the highest published
version that has a build for the query's platform.

Terraform operators are accepted alongside PEP 440 ones: ``~>`` is treated as
``~=`` and a lone ``=`` as ``==``. A bare version is an exact pin and never
needs the registry.
"""

import logging
import re
from dataclasses import replace
from typing import Dict

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from tfbin.core.exceptions import NoMatchError, VersionConstraintError
from tfbin.core.provider_meta import ProviderMeta
from tfbin.registry.client import ProviderSource

logger = logging.getLogger(__name__)

_OPERATOR_ALIASES = {"~>": "~=", "=": "=="}
_CLAUSE_PATTERN = re.compile(r"^(~>|~=|===|==|!=|>=|<=|>|<|=)?\s*(\S+)$")


def is_exact_version(value: str) -> bool:
    """True if ``value`` is a plain version with no operator."""
    try:
        Version(value.strip())
    except InvalidVersion:
        return False
    return True


def parse_constraint(constraint: str) -> SpecifierSet:
    """
    Parse a comma-separated version constraint.

    Raises:
        VersionConstraintError: If any clause is not a valid constraint
    """
    clauses = []
    for clause in constraint.split(","):
        match = _CLAUSE_PATTERN.match(clause.strip())
        if not match:
            raise VersionConstraintError(f"Invalid version constraint: {constraint!r}")
        operator, version = match.groups()
        operator = _OPERATOR_ALIASES.get(operator, operator or "==")
        clauses.append(f"{operator}{version}")

    try:
        return SpecifierSet(",".join(clauses))
    except InvalidSpecifier as e:
        raise VersionConstraintError(
            f"Invalid version constraint: {constraint!r}"
        ) from e


def resolve_version(
    source: ProviderSource, query: ProviderMeta, constraint: str
) -> ProviderMeta:
    """
    Pin ``query`` to the highest version satisfying ``constraint``.

    Only versions with a build for ``query.os``/``query.arch`` are considered.
    Listed versions that do not parse are ignored.

    Args:
        source: Remote provider listing
        query: Provider coordinate; its version field is replaced
        constraint: Version constraint, e.g. ``~> 3.2``

    Returns:
        Copy of ``query`` carrying the version string as the registry lists it

    Raises:
        VersionConstraintError: If ``constraint`` cannot be parsed
        NoMatchError: If no build for the platform satisfies ``constraint``
        RegistryClientError: If the remote listing fails
    """
    specifier = parse_constraint(constraint)

    published: Dict[Version, str] = {}
    for provider_version in source.provider_versions(query):
        if not provider_version.supports(query.os, query.arch):
            continue
        try:
            published[Version(provider_version.version)] = provider_version.version
        except InvalidVersion:
            logger.debug(f"Ignoring unparsable version {provider_version.version!r}")

    matching = list(specifier.filter(published))
    if not matching:
        raise NoMatchError(replace(query, version=constraint))

    version = published[max(matching)]
    logger.info(f"Resolved {query.namespace}/{query.name} {constraint} to {version}")
    return replace(query, version=version)
