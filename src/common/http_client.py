"""Shared HTTP helpers used by the registry resolver and the CLI.

Encapsulates common request/timeout error handling so modules avoid
duplicating try/except blocks. This module is dependency-light and can be
safely imported by registry/* without cycles.
"""
from __future__ import annotations

import logging
import sys
import time
from typing import Any, Dict, Optional

import requests

from constants import Constants, ExitCodes
from common.logging_utils import extra_context, is_debug_enabled, redact, safe_url, Timer

logger = logging.getLogger(__name__)


def _request(method: str, url: str, *, context: str, fatal: bool, **kwargs: Any) -> requests.Response:
    """Perform one request with DEBUG traces and the shared timeout policy."""
    safe_target = safe_url(url)
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action=method,
                    target=safe_target,
                    context=context
                )
            )
        kwargs.setdefault("timeout", Constants.REQUEST_TIMEOUT)
        log = logger.error if fatal else logger.warning
        try:
            res = requests.request(method, url, **kwargs)
        except requests.Timeout:
            log(
                "%s request timed out after %s seconds",
                context,
                kwargs["timeout"],
            )
            if fatal:
                sys.exit(ExitCodes.CONNECTION_ERROR.value)
            raise
        except requests.RequestException as exc:  # includes ConnectionError
            log("%s connection error: %s", context, redact(str(exc)))
            if fatal:
                sys.exit(ExitCodes.CONNECTION_ERROR.value)
            raise
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action=method,
                    outcome="success" if res.ok else "non_2xx",
                    status_code=res.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context
                )
            )
        return res


def safe_get(url: str, *, context: str, fatal: bool = True, **kwargs: Any) -> requests.Response:
    """Perform a GET request with consistent error handling and DEBUG traces.

    Args:
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "maven").
        fatal: Exit with CONNECTION_ERROR on network failure instead of re-raising.
        **kwargs: Passed through to requests.

    Returns:
        requests.Response: The HTTP response object.
    """
    return _request("GET", url, context=context, fatal=fatal, **kwargs)


def safe_head(url: str, *, context: str, fatal: bool = True, **kwargs: Any) -> requests.Response:
    """Perform a HEAD request with consistent error handling and DEBUG traces."""
    kwargs.setdefault("allow_redirects", True)
    return _request("HEAD", url, context=context, fatal=fatal, **kwargs)


class RequestsTransport:
    """Transport backed by ``requests`` with retries for transient failures.

    Timeouts and connection errors are retried up to
    ``Constants.HTTP_RETRY_MAX`` attempts with exponential backoff; HTTP
    statuses are returned as-is. The last exception is re-raised once the
    attempts are exhausted.
    """

    def __init__(
        self,
        *,
        context: str = "maven",
        retries: Optional[int] = None,
        backoff: Optional[float] = None,
    ) -> None:
        self.context = context
        self.retries = max(1, retries if retries is not None else Constants.HTTP_RETRY_MAX)
        self.backoff = backoff if backoff is not None else Constants.HTTP_RETRY_BASE_DELAY_SEC

    def get(self, url: str, headers: Optional[Dict[str, str]] = None) -> requests.Response:
        """GET ``url`` and return the response."""
        return self._with_retries(safe_get, url, headers)

    def head(self, url: str, headers: Optional[Dict[str, str]] = None) -> requests.Response:
        """HEAD ``url`` and return the response."""
        return self._with_retries(safe_head, url, headers)

    def _with_retries(self, call, url: str, headers: Optional[Dict[str, str]]) -> requests.Response:
        attempt = 0
        while True:
            try:
                return call(url, context=self.context, fatal=False, headers=headers or {})
            except (requests.Timeout, requests.ConnectionError):
                attempt += 1
                if attempt >= self.retries:
                    raise
                time.sleep(self.backoff * (2 ** (attempt - 1)))
