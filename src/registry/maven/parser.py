"""Parsers for maven-metadata.xml (index) and POM (descriptor) documents.

Element lookups ignore XML namespaces: published POMs usually carry the
``http://maven.apache.org/POM/4.0.0`` namespace but plenty of older ones,
and most metadata files, do not.
"""
from __future__ import annotations

import logging
import re
import urllib.parse
import xml.etree.ElementTree as ET
from typing import Callable, FrozenSet, List, Optional

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled

from .models import (
    DocumentParseError,
    FailureKind,
    IndexDocument,
    PackageDescriptor,
    ParentReference,
)

logger = logging.getLogger(__name__)

ParentLookup = Callable[[ParentReference], Optional[str]]

# provider token after "scm:" ("git:", "svn:"), but not a URL scheme's "https://"
_SCM_PROVIDER = re.compile(r"^[a-z][a-z0-9+.-]*:(?!//)", re.IGNORECASE)
# user@host:path, the scp-style form used by ssh connections
_SCP_LIKE = re.compile(r"^[\w.-]+@(?P<host>[\w.-]+):(?!//)(?P<path>\S+)$")
_GIT_SCHEMES = ("git", "ssh", "git+ssh", "ssh+git", "git+http", "git+https")
_SOURCE_HOSTS = ("github.com", "gitlab.com", "bitbucket.org")


def _local(tag) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _child(elem: Optional[ET.Element], name: str) -> Optional[ET.Element]:
    if elem is None:
        return None
    for child in elem:
        if _local(child.tag) == name:
            return child
    return None


def _text(elem: Optional[ET.Element], *path: str) -> Optional[str]:
    """Stripped text of the element at ``path`` below ``elem``, None if absent or blank."""
    for name in path:
        elem = _child(elem, name)
    if elem is None or not isinstance(elem.text, str):
        return None
    value = elem.text.strip()
    return value or None


def _parse_xml(body: Optional[str], what: str) -> ET.Element:
    if not body or not body.strip():
        raise DocumentParseError(FailureKind.MALFORMED_DOCUMENT, f"Empty {what}")
    try:
        return ET.fromstring(body)
    except ET.ParseError as exc:
        raise DocumentParseError(FailureKind.MALFORMED_DOCUMENT, f"Malformed {what}: {exc}") from exc


def parse_index(body: Optional[str]) -> IndexDocument:
    """Parse maven-metadata.xml into an IndexDocument.

    Raises:
        DocumentParseError: MALFORMED_DOCUMENT for unparsable XML,
            INVALID_STRUCTURE when there is no ``versioning/versions`` listing.
    """
    root = _parse_xml(body, "metadata")
    if _local(root.tag) != "metadata":
        raise DocumentParseError(
            FailureKind.INVALID_STRUCTURE, f"Unexpected metadata root <{_local(root.tag)}>"
        )
    versioning = _child(root, "versioning")
    versions_elem = _child(versioning, "versions")
    if versions_elem is None:
        raise DocumentParseError(FailureKind.INVALID_STRUCTURE, "Metadata has no versioning/versions")

    versions: List[str] = []
    seen = set()
    for item in versions_elem:
        if _local(item.tag) != "version" or not isinstance(item.text, str):
            continue
        value = item.text.strip()
        if value and value not in seen:
            seen.add(value)
            versions.append(value)

    latest = _text(versioning, "release") or _text(versioning, "latest")
    return IndexDocument(versions=tuple(versions), latest=latest)


def strip_scm_prefix(value: Optional[str]) -> Optional[str]:
    """Remove the ``scm:`` marker and any ``scm:<provider>:`` token from a value."""
    if not value:
        return value
    value = value.strip()
    if value.lower().startswith("scm:"):
        value = _SCM_PROVIDER.sub("", value[4:], count=1)
    return value or None


def normalize_scm_url(value: Optional[str]) -> Optional[str]:
    """Turn an SCM url/connection value into a browsable http(s) repository URL.

    ``git@host:path.git``, ``ssh://git@host/path.git`` and ``git://host/path``
    become ``https://host/path``. Returns None for values that cannot be
    mapped (``svn://``, bare paths, leftover tokens).
    """
    candidate = strip_scm_prefix(value)
    if not candidate:
        return None

    scp = _SCP_LIKE.match(candidate)
    if scp:
        path = _trim_repo_path(scp.group("path"))
        return f"https://{scp.group('host')}/{path}" if path else None

    try:
        parts = urllib.parse.urlsplit(candidate)
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    if not parts.hostname:
        return None
    if scheme in ("http", "https"):
        return candidate
    if scheme in _GIT_SCHEMES:
        path = _trim_repo_path(parts.path)
        return f"https://{parts.hostname}/{path}" if path else None
    return None


def _trim_repo_path(path: str) -> str:
    path = path.strip("/")
    if path.endswith(".git"):
        path = path[:-4]
    return path.rstrip("/")


def _looks_like_source_host(url: str) -> bool:
    try:
        host = (urllib.parse.urlsplit(url).hostname or "").lower()
    except ValueError:
        return False
    return any(host == known or host.endswith("." + known) for known in _SOURCE_HOSTS)


def _source_from_scm(project: ET.Element) -> Optional[str]:
    scm = _child(project, "scm")
    for field in ("url", "connection", "developerConnection"):
        candidate = normalize_scm_url(_text(scm, field))
        if candidate:
            return candidate
    return None


def _parent_reference(project: ET.Element) -> Optional[ParentReference]:
    parent = _child(project, "parent")
    if parent is None:
        return None
    group = _text(parent, "groupId")
    artifact = _text(parent, "artifactId")
    version = _text(parent, "version")
    if not (group and artifact and version):
        return None
    return ParentReference(group=group, artifact=artifact, version=version)


def _resolve_parent(
    parent: ParentReference,
    parent_lookup: ParentLookup,
    depth: int,
    max_depth: int,
    seen: FrozenSet[str],
) -> Optional[PackageDescriptor]:
    key = f"{parent.group}:{parent.artifact}:{parent.version}"
    if depth >= max_depth:
        logger.debug("Parent chain depth limit reached at %s", key)
        return None
    if key in seen:
        logger.debug("Parent cycle detected at %s", key)
        return None
    parent_body = parent_lookup(parent)
    if not parent_body:
        return None
    try:
        return _parse_descriptor(parent_body, parent_lookup, depth + 1, max_depth, seen | {key})
    except DocumentParseError as exc:
        if is_debug_enabled(logger):
            logger.debug(
                "Parent descriptor unusable",
                extra=extra_context(
                    event="parse", component="parser", action="parse_parent",
                    outcome=exc.kind.value, package_manager="maven"
                ),
            )
        return None


def _parse_descriptor(
    body: Optional[str],
    parent_lookup: Optional[ParentLookup],
    depth: int,
    max_depth: int,
    seen: FrozenSet[str],
) -> PackageDescriptor:
    project = _parse_xml(body, "descriptor")
    if _local(project.tag) != "project":
        raise DocumentParseError(
            FailureKind.INVALID_STRUCTURE, f"Unexpected descriptor root <{_local(project.tag)}>"
        )

    descriptor = PackageDescriptor(
        version=_text(project, "version"),
        parent=_parent_reference(project),
        source_url=_source_from_scm(project),
        homepage=_text(project, "url"),
    )

    if descriptor.parent is not None:
        inherited = None
        if parent_lookup is not None and (descriptor.source_url is None or descriptor.homepage is None):
            inherited = _resolve_parent(descriptor.parent, parent_lookup, depth, max_depth, seen)
        if inherited is not None:
            descriptor.source_url = descriptor.source_url or inherited.source_url
            descriptor.homepage = descriptor.homepage or inherited.homepage
        descriptor.version = descriptor.version or descriptor.parent.version
    return descriptor


def parse_descriptor(
    body: Optional[str],
    parent_lookup: Optional[ParentLookup] = None,
    *,
    max_depth: Optional[int] = None,
) -> PackageDescriptor:
    """Parse a POM, filling absent fields from its parent chain.

    ``parent_lookup`` receives a ParentReference and returns the parent POM
    body, or None when it cannot be fetched. Failures anywhere in the parent
    chain leave the descriptor with the fields found so far. The chain is
    followed at most ``max_depth`` levels (default
    ``Constants.DESCRIPTOR_MAX_PARENT_DEPTH``) and stops at the first repeated
    coordinate.

    When no SCM URL is found, a homepage on a known source host is used as the
    source URL.

    Raises:
        DocumentParseError: when the POM itself is malformed or is not a project.
    """
    if max_depth is None:
        max_depth = Constants.DESCRIPTOR_MAX_PARENT_DEPTH
    descriptor = _parse_descriptor(body, parent_lookup, 0, max_depth, frozenset())
    if descriptor.source_url is None and descriptor.homepage and _looks_like_source_host(descriptor.homepage):
        descriptor.source_url = descriptor.homepage
    return descriptor
