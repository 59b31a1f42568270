"""Constants used in the project."""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    NO_RELEASES = 4


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    DEFAULT_REGISTRY_URLS = ["https://repo1.maven.org/maven2"]
    SUPPORTED_PROTOCOLS = ("http", "https")
    HOST_TYPE = "maven"
    METADATA_FILE = "maven-metadata.xml"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    PROBE_ENABLED = True
    DESCRIPTOR_MAX_PARENT_DEPTH = 8

    ENV_CONFIG = "PKGRELEASES_CONFIG"
    ENV_LOG_LEVEL = "PKGRELEASES_LOG_LEVEL"
    ENV_NO_PROBE = "PKGRELEASES_NO_PROBE"
    CONFIG_FILE_NAME = "pkgreleases.yml"


def _config_candidates() -> list:
    """Return config file locations in lookup order."""
    candidates = []
    env_path = os.environ.get(Constants.ENV_CONFIG)
    if env_path:
        candidates.append(env_path)
    candidates.append(os.path.join(os.getcwd(), Constants.CONFIG_FILE_NAME))
    candidates.append(
        os.path.join(os.path.expanduser("~"), ".config", "pkgreleases", Constants.CONFIG_FILE_NAME)
    )
    return candidates


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the YAML config from an explicit path or the default locations.

    Returns an empty dict when no file exists. A file that exists but cannot be
    parsed is logged and treated as empty.
    """
    import yaml  # pylint: disable=import-outside-toplevel

    paths = [path] if path else _config_candidates()
    for candidate in paths:
        if not candidate or not os.path.isfile(candidate):
            continue
        try:
            with open(candidate, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as exc:
            logger.error("Failed to load config %s: %s", candidate, exc)
            return {}
        if isinstance(data, dict):
            logger.debug("Loaded config from %s", candidate)
            return data
        return {}
    return {}
