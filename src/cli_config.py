"""Configuration for runtime tunables: YAML config, environment, CLI flags.

Precedence, lowest to highest: built-in Constants, YAML config, environment
variables, CLI flags. Values are written onto ``Constants`` so the resolver
picks them up without threading a config object through every call.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from constants import Constants, _load_yaml_config
from common.host_rules import HostRules

logger = logging.getLogger(__name__)

_TRUTHY = ("1", "true", "yes", "on")


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    return str(value).strip().lower() in _TRUTHY


def apply_config(cfg: Optional[Dict[str, Any]]) -> HostRules:
    """Apply a loaded YAML mapping onto Constants and return its host rules.

    Recognized keys: ``registries`` (list of URLs), ``request_timeout``,
    ``probe`` (bool), ``max_parent_depth``, ``host_rules`` (list of mappings).
    Invalid values are logged and ignored.
    """
    cfg = cfg or {}
    registries = cfg.get("registries")
    if registries is not None:
        if isinstance(registries, list) and all(isinstance(r, str) for r in registries):
            Constants.DEFAULT_REGISTRY_URLS = list(registries)
        else:
            logger.warning("Ignoring config 'registries': expected a list of URLs")

    for key, attr in (("request_timeout", "REQUEST_TIMEOUT"), ("max_parent_depth", "DESCRIPTOR_MAX_PARENT_DEPTH")):
        if cfg.get(key) is None:
            continue
        try:
            value = int(cfg[key])
        except (TypeError, ValueError):
            logger.warning("Ignoring config '%s': expected an integer", key)
            continue
        if value < 0:
            logger.warning("Ignoring config '%s': must not be negative", key)
            continue
        setattr(Constants, attr, value)

    probe = _as_bool(cfg.get("probe"))
    if probe is not None:
        Constants.PROBE_ENABLED = probe

    return HostRules.from_config(cfg.get("host_rules"))


def apply_env_overrides() -> None:
    """Apply environment overrides (currently the probe switch)."""
    if _as_bool(os.environ.get(Constants.ENV_NO_PROBE)):
        Constants.PROBE_ENABLED = False


def apply_cli_overrides(args) -> None:
    """Apply CLI overrides with highest precedence."""
    if getattr(args, "NO_PROBE", False):
        Constants.PROBE_ENABLED = False
    timeout = getattr(args, "TIMEOUT", None)
    if timeout is not None:
        Constants.REQUEST_TIMEOUT = int(timeout)


def load_runtime_config(args) -> HostRules:
    """Load YAML config (``--config`` or default locations) and apply every layer."""
    cfg = _load_yaml_config(getattr(args, "CONFIG", None))
    host_rules = apply_config(cfg)
    apply_env_overrides()
    apply_cli_overrides(args)
    return host_rules
