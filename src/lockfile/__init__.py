"""Named lock snapshots stored in the project configuration document."""

from .model import Lock, LockEntry
from .store import ConfigDocument
from .locker import lock, unlock, lock_names

__all__ = ["Lock", "LockEntry", "ConfigDocument", "lock", "unlock", "lock_names"]
