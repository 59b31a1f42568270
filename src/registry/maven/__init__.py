"""Maven-layout registry package.

This package resolves the releases of a ``group:artifact`` across an ordered
list of Maven-layout registries (Maven Central, Clojars, private mirrors):
- fetch.py: one request, normalized into a FetchOutcome
- parser.py: maven-metadata.xml and POM parsing, parent inheritance
- probe.py: HEAD probe for per-version existence and timestamps
- resolver.py: one registry, one package
- aggregate.py: ordered fallback across registries and the merge

``resolve_package_releases`` is the public entry point.
"""

from .aggregate import aggregate, resolve_package_releases, usable_registries  # noqa: F401
from .models import (  # noqa: F401
    DocumentParseError,
    FailureKind,
    PackageIdentity,
    RegistryFailure,
    RegistryResult,
    Release,
    ReleaseResult,
)
from .resolver import RegistryResolver, normalize_registry_url  # noqa: F401

__all__ = [
    "aggregate",
    "resolve_package_releases",
    "usable_registries",
    "DocumentParseError",
    "FailureKind",
    "PackageIdentity",
    "RegistryFailure",
    "RegistryResult",
    "Release",
    "ReleaseResult",
    "RegistryResolver",
    "normalize_registry_url",
]
