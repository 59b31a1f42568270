"""Registry resolver: versions and metadata of one package from one registry."""
from __future__ import annotations

import logging
import re
import urllib.parse
from typing import Callable, Dict, Optional, Union

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from versioning.maven import max_version

from .fetch import fetch_document
from .models import (
    DocumentParseError,
    FailureKind,
    FetchOutcome,
    FetchStatus,
    IndexDocument,
    PackageDescriptor,
    PackageIdentity,
    ParentReference,
    RegistryFailure,
    RegistryResult,
    ReleaseMeta,
)
from .parser import parse_descriptor, parse_index
from .probe import artifact_pom_url, probe_version

logger = logging.getLogger(__name__)

AuthLookup = Callable[[str, str], Optional[Dict[str, str]]]

# ${project.baseUri}, {{ registry }}, %REPO% style tokens left over from templating
_PLACEHOLDER = re.compile(r"\$\{[^}]*\}|\{\{[^}]*\}\}|%[A-Za-z_][A-Za-z0-9_]*%")

_FETCH_FAILURES = {
    FetchStatus.NOT_FOUND: FailureKind.NOT_FOUND,
    FetchStatus.UNAUTHORIZED: FailureKind.UNAUTHORIZED,
    FetchStatus.TRANSPORT_ERROR: FailureKind.TRANSPORT_ERROR,
    FetchStatus.UNSUPPORTED_PROTOCOL: FailureKind.UNSUPPORTED_PROTOCOL,
}


def normalize_registry_url(url: str) -> Union[str, RegistryFailure]:
    """Strip trailing slashes and validate a registry base URL.

    Returns the normalized URL, or a RegistryFailure (INVALID_URL for
    placeholders and URLs without a host, UNSUPPORTED_PROTOCOL for schemes
    other than http/https).
    """
    raw = (url or "").strip()
    if not raw or _PLACEHOLDER.search(raw):
        return RegistryFailure(raw, FailureKind.INVALID_URL, "unresolved placeholder or empty URL")
    try:
        parts = urllib.parse.urlsplit(raw)
    except ValueError as exc:
        return RegistryFailure(raw, FailureKind.INVALID_URL, str(exc))
    scheme = parts.scheme.lower()
    if scheme and scheme not in Constants.SUPPORTED_PROTOCOLS:
        return RegistryFailure(raw, FailureKind.UNSUPPORTED_PROTOCOL, f"scheme {scheme!r}")
    if not scheme or not parts.hostname:
        return RegistryFailure(raw, FailureKind.INVALID_URL, "not an absolute URL")
    return raw.rstrip("/")


class RegistryResolver:
    """Drives fetch, parse and probe for one registry at a time.

    The transport needs ``get(url, headers=...)`` and ``head(url, headers=...)``
    returning objects with ``status_code``, ``text`` and ``headers``, and may
    raise ``requests.RequestException``. ``auth_lookup(host_type, host)``
    supplies request headers per registry host.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        transport,
        auth_lookup: Optional[AuthLookup] = None,
        *,
        host_type: Optional[str] = None,
        probe_enabled: Optional[bool] = None,
        max_parent_depth: Optional[int] = None,
    ) -> None:
        self.transport = transport
        self.auth_lookup = auth_lookup
        self.host_type = host_type or Constants.HOST_TYPE
        self.probe_enabled = Constants.PROBE_ENABLED if probe_enabled is None else probe_enabled
        self.max_parent_depth = (
            Constants.DESCRIPTOR_MAX_PARENT_DEPTH if max_parent_depth is None else max_parent_depth
        )

    def _headers_for(self, base: str) -> Dict[str, str]:
        if self.auth_lookup is None:
            return {}
        host = urllib.parse.urlsplit(base).hostname
        return dict(self.auth_lookup(self.host_type, host) or {})

    def resolve(self, registry_url: str, identity: PackageIdentity) -> Union[RegistryResult, RegistryFailure]:
        """Resolve ``identity`` against one registry; never raises for registry problems."""
        base = normalize_registry_url(registry_url)
        if isinstance(base, RegistryFailure):
            return base

        with Timer() as t:
            headers = self._headers_for(base)
            index_or_failure = self._fetch_index(base, identity, headers)
            if isinstance(index_or_failure, RegistryFailure):
                return index_or_failure
            index = index_or_failure

            result = RegistryResult(registry_url=base)
            latest = index.latest or max_version(index.versions)
            if latest:
                descriptor = self._fetch_descriptor(base, identity, latest, headers)
                if descriptor is not None:
                    result.source_url = descriptor.source_url
                    result.homepage = descriptor.homepage

            for version in index.versions:
                result.versions[version] = self._release_meta(base, identity, version, headers)

        if is_debug_enabled(logger):
            logger.debug(
                "Registry resolved",
                extra=extra_context(
                    event="function_exit", component="resolver", action="resolve",
                    outcome="success", count=len(result.versions), target=safe_url(base),
                    duration_ms=t.duration_ms(), package_manager="maven"
                ),
            )
        return result

    def _fetch_index(
        self, base: str, identity: PackageIdentity, headers: Dict[str, str]
    ) -> Union[IndexDocument, RegistryFailure]:
        url = f"{base}/{identity.path}/{Constants.METADATA_FILE}"
        outcome = fetch_document(url, headers, transport=self.transport)
        if not outcome.ok:
            return RegistryFailure(base, _FETCH_FAILURES[outcome.status], _describe(outcome))
        try:
            return parse_index(outcome.body)
        except DocumentParseError as exc:
            return RegistryFailure(base, exc.kind, str(exc))

    def _fetch_descriptor(
        self, base: str, identity: PackageIdentity, version: str, headers: Dict[str, str]
    ) -> Optional[PackageDescriptor]:
        def lookup(parent: ParentReference) -> Optional[str]:
            return self._fetch_pom_body(base, parent.identity, parent.version, headers)

        body = self._fetch_pom_body(base, identity, version, headers)
        if body is None:
            return None
        try:
            return parse_descriptor(body, lookup, max_depth=self.max_parent_depth)
        except DocumentParseError as exc:
            logger.info(
                "Ignoring unusable descriptor for %s %s: %s", identity, version, exc,
                extra=extra_context(
                    event="data_quality", component="resolver", action="parse_descriptor",
                    outcome=exc.kind.value, target=safe_url(base), package_manager="maven"
                ),
            )
            return None

    def _fetch_pom_body(
        self, base: str, identity: PackageIdentity, version: str, headers: Dict[str, str]
    ) -> Optional[str]:
        url = artifact_pom_url(base, identity.path, identity.artifact, version)
        outcome = fetch_document(url, headers, transport=self.transport)
        if outcome.ok:
            return outcome.body
        if is_debug_enabled(logger):
            logger.debug(
                "Descriptor fetch failed",
                extra=extra_context(
                    event="function_exit", component="resolver", action="fetch_pom",
                    outcome=outcome.status.value, status_code=outcome.status_code,
                    target=safe_url(url), package_manager="maven"
                ),
            )
        return None

    def _release_meta(
        self, base: str, identity: PackageIdentity, version: str, headers: Dict[str, str]
    ) -> ReleaseMeta:
        if not self.probe_enabled:
            return ReleaseMeta(version=version)
        probe = probe_version(
            base, identity.path, identity.artifact, version,
            transport=self.transport, headers=headers,
        )
        return ReleaseMeta(version=version, release_timestamp=probe.release_timestamp)


def _describe(outcome: FetchOutcome) -> str:
    if outcome.cause:
        return outcome.cause
    if outcome.status_code is not None:
        return f"HTTP {outcome.status_code}"
    return outcome.status.value

