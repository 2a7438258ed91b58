"""Exception types shared across the resolver, roller and lockfile store."""

from __future__ import annotations

from typing import Iterable, List, Optional


class GitrollError(Exception):
    """Base class for errors raised by gitroll."""


class ParseError(GitrollError, ValueError):
    """Raised when requirement, version or manifest text is malformed.

    Every offending item is kept in ``failures`` so that callers can report
    all of them at once.
    """

    def __init__(self, message: str, failures: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.failures: List[str] = list(failures or [])


class UnresolvedRequirement(GitrollError):
    """No local project satisfies a requirement."""

    def __init__(self, message: str, requirement=None):
        super().__init__(message)
        self.requirement = requirement


class Conflict(GitrollError):
    """Two requirements for one package cannot be satisfied together."""

    def __init__(self, message: str, requirements=()):
        super().__init__(message)
        self.requirements = tuple(requirements)


class LockfileError(GitrollError, ValueError):
    """A stored lock is missing or has an invalid shape."""
