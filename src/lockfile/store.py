"""The JSON configuration document that holds named locks.

A missing or malformed document reads as empty. Writes replace the whole
file and are not atomic; a failed write is logged and reported to the caller.
"""
from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional

from constants import Constants
from .model import Lock

logger = logging.getLogger(__name__)


class ConfigDocument:
    """Read-modify-write access to ``gitroll.json``."""

    def __init__(self, path: str):
        self.path = path

    def read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.error("unable to parse %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.error("ignoring %s; top level is not an object", self.path)
            return {}
        return data

    def write(self, data: Dict[str, Any]) -> bool:
        try:
            with open(self.path, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, sort_keys=True)
                fh.write("\n")
        except (OSError, TypeError) as exc:
            logger.error("unable to write %s: %s", self.path, exc)
            return False
        return True

    def lock_rooms(self) -> Dict[str, Any]:
        """Every stored lock, in raw form."""
        rooms = self.read().get(Constants.LOCK_SECTION)
        return rooms if isinstance(rooms, dict) else {}

    def lock_names(self) -> List[str]:
        return list(self.lock_rooms())

    def get_lock(self, name: str) -> Optional[Lock]:
        """The named lock, or None if absent.

        Raises:
            LockfileError: if the stored lock is malformed.
        """
        rooms = self.lock_rooms()
        if name not in rooms:
            return None
        return Lock.from_json(name, rooms[name])

    def add_lock(self, lock: Lock) -> bool:
        """Store a lock, replacing any lock of the same name."""
        data = self.read()
        rooms = data.get(Constants.LOCK_SECTION)
        if not isinstance(rooms, dict):
            rooms = {}
        rooms[lock.name] = lock.to_json()
        data[Constants.LOCK_SECTION] = rooms
        return self.write(data)
