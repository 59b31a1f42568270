"""Document fetcher: one request for one URL, normalized into a FetchOutcome."""
from __future__ import annotations

import logging
import urllib.parse
from typing import Dict, Optional

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, redact, safe_url, Timer

from .models import FetchOutcome, FetchStatus

logger = logging.getLogger(__name__)


def is_supported_url(url: str) -> bool:
    """Return True for absolute http(s) URLs with a host."""
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return False
    return parts.scheme.lower() in Constants.SUPPORTED_PROTOCOLS and bool(parts.netloc)


def _classify(url: str, response) -> FetchOutcome:
    code = response.status_code
    headers = dict(response.headers or {})
    if 200 <= code < 300:
        return FetchOutcome(FetchStatus.SUCCESS, url, code, body=response.text, headers=headers)
    if code == 404:
        return FetchOutcome(FetchStatus.NOT_FOUND, url, code, headers=headers)
    if code in (401, 403):
        return FetchOutcome(FetchStatus.UNAUTHORIZED, url, code, headers=headers)
    return FetchOutcome(
        FetchStatus.TRANSPORT_ERROR, url, code, headers=headers, cause=f"HTTP {code}"
    )


def _fetch(method: str, url: str, headers: Optional[Dict[str, str]], transport) -> FetchOutcome:
    if not is_supported_url(url):
        logger.info(
            "Refusing to fetch unsupported URL",
            extra=extra_context(
                event="http_request", component="fetch", action=method,
                outcome="unsupported_protocol", target=safe_url(url), package_manager="maven"
            ),
        )
        return FetchOutcome(FetchStatus.UNSUPPORTED_PROTOCOL, url)

    call = transport.head if method == "HEAD" else transport.get
    with Timer() as t:
        try:
            response = call(url, headers=headers or {})
        except (requests.RequestException, OSError) as exc:
            if is_debug_enabled(logger):
                logger.debug(
                    "Fetch failed",
                    extra=extra_context(
                        event="http_exception", component="fetch", action=method,
                        outcome="transport_error", target=safe_url(url),
                        duration_ms=t.duration_ms(), package_manager="maven"
                    ),
                )
            return FetchOutcome(
                FetchStatus.TRANSPORT_ERROR, url, cause=redact(f"{type(exc).__name__}: {exc}")
            )

    outcome = _classify(url, response)
    if is_debug_enabled(logger):
        logger.debug(
            "Fetch complete",
            extra=extra_context(
                event="http_response", component="fetch", action=method,
                outcome=outcome.status.value, status_code=outcome.status_code,
                target=safe_url(url), duration_ms=t.duration_ms(), package_manager="maven"
            ),
        )
    return outcome


def fetch_document(url: str, headers: Optional[Dict[str, str]] = None, *, transport) -> FetchOutcome:
    """GET ``url`` through ``transport``; non-http(s) URLs are never requested."""
    return _fetch("GET", url, headers, transport)


def fetch_head(url: str, headers: Optional[Dict[str, str]] = None, *, transport) -> FetchOutcome:
    """HEAD ``url`` through ``transport``; same classification as fetch_document."""
    return _fetch("HEAD", url, headers, transport)
