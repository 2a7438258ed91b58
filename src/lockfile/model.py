"""Typed model of named lock snapshots."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from constants import Distribution
from errors import LockfileError


@dataclass(frozen=True)
class LockEntry:
    """Where one package lived and what it was checked out at."""
    name: str
    path: str
    dist: Distribution
    version: Optional[str] = None
    commit: Optional[str] = None
    release: Optional[str] = None
    url: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "distribution": self.dist.value,
            "version": self.version,
            "commit": self.commit,
            "release": self.release,
            "url": self.url,
        }

    @classmethod
    def from_json(cls, name: str, data: Any) -> "LockEntry":
        if not isinstance(data, dict):
            raise LockfileError(f"lock entry `{name}` is not an object")
        path = data.get("path")
        if not isinstance(path, str) or not path:
            raise LockfileError(f"lock entry `{name}` has no path")
        try:
            dist = Distribution(data.get("distribution", Distribution.GIT.value))
        except ValueError as exc:
            raise LockfileError(f"lock entry `{name}` has unknown distribution") from exc
        if dist == Distribution.GIT and not data.get("commit"):
            raise LockfileError(f"lock entry `{name}` is a git checkout without a commit")
        return cls(
            name=name,
            path=path,
            dist=dist,
            version=data.get("version"),
            commit=data.get("commit"),
            release=data.get("release"),
            url=data.get("url"),
        )


@dataclass
class Lock:
    """A named snapshot: package name -> LockEntry."""
    name: str
    entries: Dict[str, LockEntry] = field(default_factory=dict)

    def to_json(self) -> Dict[str, Any]:
        return {name: entry.to_json() for name, entry in self.entries.items()}

    @classmethod
    def from_json(cls, name: str, data: Any) -> "Lock":
        if not isinstance(data, dict):
            raise LockfileError(f"lock `{name}` is not an object")
        return cls(
            name=name,
            entries={key: LockEntry.from_json(key, value) for key, value in data.items()},
        )
