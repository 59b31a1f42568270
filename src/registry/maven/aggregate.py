"""Multi-registry aggregation and the public resolve_package_releases entry point."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Union

from constants import Constants
from common.http_client import RequestsTransport
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from versioning.maven import sort_versions

from .fetch import is_supported_url
from .models import (
    FailureKind,
    PackageIdentity,
    RegistryFailure,
    RegistryResult,
    Release,
    ReleaseResult,
)
from .resolver import AuthLookup, RegistryResolver

logger = logging.getLogger(__name__)

_ROUTINE_FAILURES = (FailureKind.NOT_FOUND,)
_QUIET_FAILURES = (FailureKind.UNSUPPORTED_PROTOCOL,)
_DATA_QUALITY_FAILURES = (FailureKind.MALFORMED_DOCUMENT, FailureKind.INVALID_STRUCTURE)


def usable_registries(registries: Iterable[str]) -> List[str]:
    """Keep http(s) registry URLs, in order; other schemes are dropped unrequested."""
    usable = []
    for url in registries:
        if isinstance(url, str) and is_supported_url(url.strip()):
            usable.append(url.strip())
        else:
            logger.info(
                "Skipping registry that is not an http(s) URL",
                extra=extra_context(
                    event="decision", component="aggregate", action="filter_registries",
                    outcome="unsupported_protocol", target=safe_url(str(url)), package_manager="maven"
                ),
            )
    return usable


def _log_failure(identity: PackageIdentity, failure: RegistryFailure) -> None:
    fields = extra_context(
        event="data_quality" if failure.kind in _DATA_QUALITY_FAILURES else "registry_failure",
        component="aggregate", action="resolve_registry", outcome=failure.kind.value,
        target=safe_url(failure.registry_url), package_manager="maven"
    )
    message = "Registry %s skipped for %s: %s (%s)"
    args = (safe_url(failure.registry_url), identity, failure.kind.value, failure.detail)
    if failure.kind in _ROUTINE_FAILURES:
        logger.debug(message, *args, extra=fields)
    elif failure.kind in _QUIET_FAILURES:
        logger.info(message, *args, extra=fields)
    else:
        logger.warning(message, *args, extra=fields)


def _merge(results: List[RegistryResult]) -> Optional[ReleaseResult]:
    timestamps: Dict[str, Optional[str]] = {}
    merged = ReleaseResult()
    for result in results:
        if not result.versions:
            continue
        merged.registry_url = result.registry_url
        for version, meta in result.versions.items():
            if timestamps.get(version) is None:
                timestamps[version] = meta.release_timestamp
        if merged.source_url is None and result.source_url:
            merged.source_url = result.source_url
        if merged.homepage is None and result.homepage:
            merged.homepage = result.homepage
    if not timestamps:
        return None
    merged.releases = [
        Release(version=version, release_timestamp=timestamps[version])
        for version in sort_versions(timestamps)
    ]
    return merged


def aggregate(
    identity: PackageIdentity,
    registries: Iterable[str],
    *,
    resolver: RegistryResolver,
) -> Optional[ReleaseResult]:
    """Resolve ``identity`` against every registry in order and merge the results.

    Failed registries are logged and skipped. Returns None when no usable
    registry is configured or none of them yields a version.

    Merge rules: versions are the de-duplicated union in ascending Maven
    order; the first registry to supply a source URL (or homepage) wins; the
    reported registry URL is the last one that contributed versions. A
    registry whose index lists no versions contributes nothing.
    """
    candidates = usable_registries(registries)
    if not candidates:
        logger.warning("No usable registry configured for %s", identity)
        return None

    results: List[RegistryResult] = []
    with Timer() as t:
        for registry_url in candidates:
            outcome: Union[RegistryResult, RegistryFailure] = resolver.resolve(registry_url, identity)
            if isinstance(outcome, RegistryFailure):
                _log_failure(identity, outcome)
                continue
            results.append(outcome)

        merged = _merge(results)

    if merged is None:
        logger.info(
            "No releases found for %s", identity,
            extra=extra_context(
                event="complete", component="aggregate", action="aggregate",
                outcome="no_releases", count=len(candidates), duration_ms=t.duration_ms(),
                package_manager="maven"
            ),
        )
        return None

    if is_debug_enabled(logger):
        logger.debug(
            "Aggregation complete",
            extra=extra_context(
                event="complete", component="aggregate", action="aggregate",
                outcome="success", count=len(merged.releases), duration_ms=t.duration_ms(),
                package_manager="maven"
            ),
        )
    return merged


def resolve_package_releases(  # pylint: disable=too-many-arguments
    identity: Union[PackageIdentity, str],
    registry_urls: Optional[Iterable[str]] = None,
    *,
    transport=None,
    auth_lookup: Optional[AuthLookup] = None,
    probe_enabled: Optional[bool] = None,
) -> Optional[ReleaseResult]:
    """Return the merged releases of ``identity`` or None.

    Args:
        identity: PackageIdentity or a ``group:artifact`` string.
        registry_urls: Registry base URLs in priority order; empty or None uses
            ``Constants.DEFAULT_REGISTRY_URLS``.
        transport: Object with ``get``/``head``; defaults to a RequestsTransport.
        auth_lookup: ``(host_type, host) -> headers`` callable, e.g. ``HostRules.auth_for``.
        probe_enabled: Override ``Constants.PROBE_ENABLED`` for this call.

    Raises:
        ValueError: when ``identity`` is a malformed coordinate string.
    """
    if not isinstance(identity, PackageIdentity):
        identity = PackageIdentity.parse(identity)
    registry_urls = list(registry_urls or []) or list(Constants.DEFAULT_REGISTRY_URLS)
    if transport is None:
        transport = RequestsTransport(context=Constants.HOST_TYPE)

    logger.info(
        "Resolving releases for %s", identity,
        extra=extra_context(
            event="start", component="aggregate", action="resolve_package_releases",
            count=len(registry_urls), package_manager="maven"
        ),
    )
    resolver = RegistryResolver(transport, auth_lookup, probe_enabled=probe_enabled)
    return aggregate(identity, registry_urls, resolver=resolver)
