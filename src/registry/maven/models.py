"""Data models for Maven-layout release resolution."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class PackageIdentity:
    """Maven coordinates without a version."""
    group: str
    artifact: str

    @classmethod
    def parse(cls, coordinate: str) -> "PackageIdentity":
        """Build an identity from ``group:artifact``.

        Raises:
            ValueError: when the coordinate does not have exactly two non-empty parts.
        """
        parts = [part.strip() for part in str(coordinate).split(":")]
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"Expected 'group:artifact', got {coordinate!r}")
        return cls(group=parts[0], artifact=parts[1])

    @property
    def path(self) -> str:
        """Registry-relative directory of the package, e.g. ``org/example/package``."""
        return f"{self.group.replace('.', '/')}/{self.artifact}"

    def __str__(self) -> str:
        return f"{self.group}:{self.artifact}"


class FetchStatus(Enum):
    """Normalized outcome of a single request."""
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    TRANSPORT_ERROR = "transport_error"
    UNSUPPORTED_PROTOCOL = "unsupported_protocol"


@dataclass
class FetchOutcome:
    """Result of one fetch; ``body`` is only set for SUCCESS."""
    status: FetchStatus
    url: str
    status_code: Optional[int] = None
    body: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    cause: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is FetchStatus.SUCCESS


class FailureKind(Enum):
    """Why a registry contributed nothing. Every kind means "skip and continue"."""
    INVALID_URL = "invalid_url"
    UNSUPPORTED_PROTOCOL = "unsupported_protocol"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    TRANSPORT_ERROR = "transport_error"
    MALFORMED_DOCUMENT = "malformed_document"
    INVALID_STRUCTURE = "invalid_structure"


class DocumentParseError(Exception):
    """Raised by the parser for malformed or structurally invalid documents."""

    def __init__(self, kind: FailureKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


@dataclass(frozen=True)
class IndexDocument:
    """Parsed maven-metadata.xml: declared versions in source order."""
    versions: Tuple[str, ...]
    latest: Optional[str] = None


@dataclass(frozen=True)
class ParentReference:
    """Coordinates of a parent descriptor."""
    group: str
    artifact: str
    version: str

    @property
    def identity(self) -> PackageIdentity:
        return PackageIdentity(self.group, self.artifact)


@dataclass
class PackageDescriptor:
    """Fields of a POM that the resolver surfaces."""
    version: Optional[str] = None
    parent: Optional[ParentReference] = None
    source_url: Optional[str] = None
    homepage: Optional[str] = None


@dataclass(frozen=True)
class VersionProbeResult:
    """``exists`` is None when the probe could not tell."""
    version: str
    exists: Optional[bool]
    release_timestamp: Optional[str] = None


@dataclass
class ReleaseMeta:
    """Per-version data inside a registry result."""
    version: str
    release_timestamp: Optional[str] = None


@dataclass
class RegistryResult:
    """What one registry contributed."""
    registry_url: str
    versions: Dict[str, ReleaseMeta] = field(default_factory=dict)
    source_url: Optional[str] = None
    homepage: Optional[str] = None


@dataclass(frozen=True)
class RegistryFailure:
    """A registry that contributed nothing, and why."""
    registry_url: str
    kind: FailureKind
    detail: Optional[str] = None


@dataclass
class Release:
    """One entry of the aggregate release list."""
    version: str
    release_timestamp: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"version": self.version}
        if self.release_timestamp:
            data["releaseTimestamp"] = self.release_timestamp
        return data


@dataclass
class ReleaseResult:
    """Merged view of all registries for one package."""
    releases: List[Release] = field(default_factory=list)
    source_url: Optional[str] = None
    homepage: Optional[str] = None
    registry_url: Optional[str] = None

    @property
    def versions(self) -> List[str]:
        return [release.version for release in self.releases]

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation; unset optional fields are omitted."""
        data: Dict[str, Any] = {"releases": [release.to_dict() for release in self.releases]}
        if self.source_url:
            data["sourceUrl"] = self.source_url
        if self.homepage:
            data["homepage"] = self.homepage
        if self.registry_url:
            data["registryUrl"] = self.registry_url
        return data
