"""Settings file loading and runtime overrides for gitroll.

Applies user settings on top of the defaults in ``Constants``. Everything here
is defensive: a broken settings file is logged and ignored rather than
breaking the CLI.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

import yaml

from common.logging_utils import add_file_handler, configure_logging
from constants import Constants

logger = logging.getLogger(__name__)

# settings key -> (Constants attribute, coercion)
_SETTINGS = {
    "github_api_base": ("GITHUB_API_BASE", str),
    "github_token": ("GITHUB_TOKEN", str),
    "search_language": ("HUB_SEARCH_LANGUAGE", str),
    "search_per_page": ("HUB_SEARCH_PER_PAGE", int),
    "package_list_url": ("PACKAGE_LIST_URL", str),
    "request_timeout": ("REQUEST_TIMEOUT", int),
    "http_retry_max": ("HTTP_RETRY_MAX", int),
    "http_cache_ttl": ("HTTP_CACHE_TTL_SEC", int),
    "fixup_max_attempts": ("FIXUP_MAX_ATTEMPTS", int),
    "deps_dir": ("LOCAL_DEPS_DIR", str),
    "manifest_tool": ("MANIFEST_TOOL", str),
}
_LIST_SETTINGS = {
    "search_roots": "SEARCH_ROOTS",
    "tag_patterns": "TAG_PATTERNS",
    "compiler_packages": "COMPILER_PACKAGES",
}


def _settings_path(explicit: Optional[str]) -> Optional[str]:
    if explicit:
        return explicit
    for candidate in Constants.SETTINGS_PATHS:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            return expanded
    return None


def load_settings(path: Optional[str] = None) -> Dict[str, Any]:
    """Load settings from YAML (or JSON, by extension); empty on any failure."""
    config_path = _settings_path(path)
    if not config_path:
        return {}
    if not os.path.isfile(config_path):
        logger.warning("Settings file not found: %s", config_path)
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as fh:
            if config_path.lower().endswith(".json"):
                data = json.load(fh)
            else:
                data = yaml.safe_load(fh)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logger.error("Failed to load settings from %s: %s", config_path, exc)
        return {}
    if not isinstance(data, dict):
        return {}
    section = data.get("gitroll", data)
    return section if isinstance(section, dict) else {}


def apply_settings(settings: Dict[str, Any]) -> None:
    """Copy recognized settings onto Constants, skipping bad values."""
    for key, (attribute, coerce) in _SETTINGS.items():
        if key not in settings or settings[key] is None:
            continue
        try:
            setattr(Constants, attribute, coerce(settings[key]))
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid setting %s=%r", key, settings[key])
    for key, attribute in _LIST_SETTINGS.items():
        value = settings.get(key)
        if value is None:
            continue
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list):
            logger.warning("Ignoring invalid setting %s; expected a list", key)
            continue
        setattr(Constants, attribute, [str(item) for item in value])


def apply_github_token() -> None:
    """The GITHUB_TOKEN environment variable wins over any configured token."""
    token = os.environ.get(Constants.ENV_GITHUB_TOKEN, "").strip()
    if token:
        Constants.GITHUB_TOKEN = token


def setup_logging(args: Any) -> None:
    """Configure logging based on CLI arguments."""
    # Honor CLI --loglevel
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.ENV_LOG_LEVEL] = str(args.LOG_LEVEL).upper()

    configure_logging()

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        try:
            add_file_handler(log_file)
        except OSError as exc:
            logger.warning("Unable to log to %s: %s", log_file, exc)
        else:
            logger.info("Logging to file: %s", log_file)


def apply_config(args: Any) -> None:
    """Load the settings file named on the command line (or a default one)."""
    apply_settings(load_settings(getattr(args, "CONFIG", None)))
    apply_github_token()
