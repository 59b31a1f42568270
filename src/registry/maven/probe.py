"""Per-version existence probe via HEAD on the version's POM."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Dict, Optional

from common.logging_utils import extra_context, is_debug_enabled

from .fetch import fetch_head
from .models import FetchStatus, VersionProbeResult

logger = logging.getLogger(__name__)

TIME_FORMAT_ISO = "%Y-%m-%dT%H:%M:%S.000Z"


def artifact_pom_url(registry_base: str, package_path: str, artifact: str, version: str) -> str:
    """URL of the POM for one version below a normalized registry base."""
    return f"{registry_base}/{package_path}/{version}/{artifact}-{version}.pom"


def parse_last_modified(value: Optional[str]) -> Optional[str]:
    """Convert a Last-Modified header into an ISO-8601 UTC timestamp, None if unparsable.

    Accepts RFC 7231 HTTP dates and, as some registries send them, ISO-8601 strings.
    """
    if not value:
        return None
    value = value.strip()
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        parsed = None
    if parsed is None:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).strftime(TIME_FORMAT_ISO)


def _header(headers: Dict[str, str], name: str) -> Optional[str]:
    for key, value in headers.items():
        if key.lower() == name.lower():
            return value
    return None


def probe_version(  # pylint: disable=too-many-arguments
    registry_base: str,
    package_path: str,
    artifact: str,
    version: str,
    *,
    transport,
    headers: Optional[Dict[str, str]] = None,
) -> VersionProbeResult:
    """HEAD the version's POM and report presence plus Last-Modified.

    200 means present (timestamp from Last-Modified when valid), 404 means
    absent, anything else means unknown. The result never raises.
    """
    outcome = fetch_head(
        artifact_pom_url(registry_base, package_path, artifact, version),
        headers,
        transport=transport,
    )
    if outcome.status is FetchStatus.SUCCESS:
        timestamp = parse_last_modified(_header(outcome.headers, "Last-Modified"))
        return VersionProbeResult(version=version, exists=True, release_timestamp=timestamp)
    if outcome.status is FetchStatus.NOT_FOUND:
        return VersionProbeResult(version=version, exists=False)

    if is_debug_enabled(logger):
        logger.debug(
            "Version probe inconclusive",
            extra=extra_context(
                event="probe", component="probe", action="probe_version",
                outcome=outcome.status.value, status_code=outcome.status_code,
                package_manager="maven"
            ),
        )
    return VersionProbeResult(version=version, exists=None)
