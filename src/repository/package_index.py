"""Lookups against the community package list.

The list is a JSON array of package records; aliases point at another record
through an ``alias`` key. Only git-hosted packages are of interest here.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from common.http_client import get_json
from constants import Constants
from versioning.parser import normalize_identity

logger = logging.getLogger(__name__)


def fetch_packages(url: Optional[str] = None) -> Optional[List[Dict[str, Any]]]:
    """Download the package list; None when it cannot be retrieved."""
    status, _headers, payload = get_json(url or Constants.PACKAGE_LIST_URL)
    if status != 200 or not isinstance(payload, list):
        logger.warning("unable to retrieve the package list (status %s)", status)
        return None
    return [item for item in payload if isinstance(item, dict)]


def find_package(packages: List[Dict[str, Any]], name: str) -> Optional[Dict[str, Any]]:
    """The record for name, following at most a few aliases."""
    index = {normalize_identity(str(item.get("name", ""))): item for item in packages}
    wanted = normalize_identity(name)
    for _ in range(4):
        record = index.get(wanted)
        if record is None:
            return None
        alias = record.get("alias")
        if not alias:
            return record
        wanted = normalize_identity(str(alias))
    return None


def lookup(name: str) -> Optional[str]:
    """Clone URL of a git-hosted package, or None."""
    packages = fetch_packages()
    if packages is None:
        return None
    record = find_package(packages, name)
    if record is None:
        logger.debug("%s is not in the package list", name)
        return None
    if record.get("method", "git") != "git":
        logger.info("%s is distributed via %s; not cloning", name, record.get("method"))
        return None
    url = record.get("url")
    return url if isinstance(url, str) and url else None
