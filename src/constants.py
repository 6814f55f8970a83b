"""Constants and YAML-backed configuration used in the project."""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    RESOLUTION_ERROR = 4


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_NUGET_V3 = "https://api.nuget.org/v3/index.json"
    NUGET_PACKAGE_BASE_TYPE = "PackageBaseAddress/3.0.0"
    PACKAGE_EXTENSION = ".nupkg"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "NUGETFETCH_LOG_LEVEL"
    ENV_CONFIG = "NUGETFETCH_CONFIG"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    MAX_CONCURRENCY = 8
    OUTPUT_DIRECTORY: Optional[str] = None


# (section, key) -> (Constants attribute, coercion)
_CONFIG_KEYS = {
    ("registry", "source"): ("REGISTRY_URL_NUGET_V3", str),
    ("http", "request_timeout"): ("REQUEST_TIMEOUT", int),
    ("http", "retry_max"): ("HTTP_RETRY_MAX", int),
    ("http", "retry_base_delay_sec"): ("HTTP_RETRY_BASE_DELAY_SEC", float),
    ("resolver", "max_concurrency"): ("MAX_CONCURRENCY", int),
    ("output", "directory"): ("OUTPUT_DIRECTORY", str),
}


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or holds invalid values."""


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load a YAML configuration file.

    When no path is given, the NUGETFETCH_CONFIG environment variable is
    consulted; a missing default yields an empty configuration.

    Args:
        path: Explicit config file path.

    Returns:
        dict: Parsed configuration mapping.
    """
    explicit = path is not None
    path = path or os.environ.get(Constants.ENV_CONFIG)
    if not path:
        return {}
    if not os.path.isfile(path):
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        logger.warning("Config file not found: %s", path)
        return {}
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to load config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must contain a mapping at top level")
    return data


def apply_config(cfg: Dict[str, Any]) -> None:
    """Override Constants from a parsed configuration mapping.

    Unknown sections and keys are ignored.
    """
    for (section, key), (attr, coerce) in _CONFIG_KEYS.items():
        block = cfg.get(section)
        if not isinstance(block, dict) or block.get(key) is None:
            continue
        try:
            setattr(Constants, attr, coerce(block[key]))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid value for {section}.{key}: {block[key]!r}") from exc


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load a YAML config file and apply it to Constants."""
    cfg = _load_yaml_config(path)
    apply_config(cfg)
    return cfg
