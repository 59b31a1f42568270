"""Host rules: per-host credentials attached to registry requests.

A ``HostRules`` instance is built from configuration and handed to the
resolver explicitly; its ``auth_for`` method is the auth lookup the resolver
calls for every registry host.
"""
from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HostRule:
    """Credentials for hosts matching ``match_host`` (exact or dot-suffix)."""
    match_host: str
    host_type: Optional[str] = None
    token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def matches(self, host_type: Optional[str], host: str) -> bool:
        """Return True when this rule applies to ``host`` for ``host_type``."""
        if self.host_type and host_type and self.host_type != host_type:
            return False
        rule_host = self.match_host.lower().strip(".")
        host = host.lower()
        return host == rule_host or host.endswith("." + rule_host)

    def headers(self) -> Optional[Dict[str, str]]:
        """Authorization headers for this rule, or None when it carries no credentials."""
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        if self.username is not None and self.password is not None:
            raw = f"{self.username}:{self.password}".encode("utf-8")
            return {"Authorization": "Basic " + base64.b64encode(raw).decode("ascii")}
        return None


class HostRules:
    """Ordered collection of host rules; the most specific match wins."""

    def __init__(self, rules: Optional[Iterable[HostRule]] = None) -> None:
        self._rules: List[HostRule] = list(rules or [])

    def add(self, rule: HostRule) -> None:
        """Append a rule."""
        self._rules.append(rule)

    def clear(self) -> None:
        """Drop all rules."""
        self._rules.clear()

    def __len__(self) -> int:
        return len(self._rules)

    def auth_for(self, host_type: Optional[str], host: Optional[str]) -> Optional[Dict[str, str]]:
        """Return auth headers for ``host`` or None for an unauthenticated request.

        Among matching rules the longest ``match_host`` wins; ties go to the
        rule added last, so later config entries override earlier ones.
        """
        if not host:
            return None
        best: Optional[HostRule] = None
        for rule in self._rules:
            if not rule.matches(host_type, host):
                continue
            if best is None or len(rule.match_host) >= len(best.match_host):
                best = rule
        if best is None:
            return None
        return best.headers()

    @classmethod
    def from_config(cls, entries: Optional[Iterable[Any]]) -> "HostRules":
        """Build rules from config dicts; entries without a host are skipped.

        Accepts ``matchHost``/``match_host`` and ``hostType``/``host_type``
        spellings.
        """
        rules = cls()
        for entry in entries or []:
            if not isinstance(entry, dict):
                logger.warning("Ignoring host rule that is not a mapping: %r", type(entry).__name__)
                continue
            match_host = entry.get("match_host") or entry.get("matchHost")
            if not match_host:
                logger.warning("Ignoring host rule without match_host")
                continue
            rules.add(HostRule(
                match_host=str(match_host),
                host_type=entry.get("host_type") or entry.get("hostType"),
                token=entry.get("token"),
                username=entry.get("username"),
                password=entry.get("password"),
            ))
        return rules
