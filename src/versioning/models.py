"""Data models for requirements, constraints and releases."""

from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Optional, Tuple

import semantic_version

from constants import Constants


class ConstraintKind(Enum):
    """Shape of a version constraint."""
    ANY = "any"
    RANGE = "range"
    RELEASE = "release"


class RollGoal(Enum):
    """Direction in which a dependency checkout may be rolled."""
    UPGRADE = "upgrade"
    DOWNGRADE = "downgrade"
    SPECIFIC = "specific"


# Reference naming the tip of the default branch in a release constraint.
HEAD = "head"

Clause = Tuple[str, str]


@lru_cache(maxsize=512)
def _spec_for(clauses: Tuple[Clause, ...]) -> semantic_version.SimpleSpec:
    expression = ",".join(f"{op}{ver}" for op, ver in clauses)
    return semantic_version.SimpleSpec(expression or "*")


@dataclass(frozen=True)
class Constraint:
    """Normalized version constraint.

    RANGE constraints carry ``(operator, version)`` clauses that must all hold;
    RELEASE constraints carry a tag, commit or ``head`` reference.
    """
    kind: ConstraintKind
    clauses: Tuple[Clause, ...] = ()
    reference: Optional[str] = None

    @classmethod
    def any(cls) -> "Constraint":
        return cls(kind=ConstraintKind.ANY)

    def matches(self, version: Optional[semantic_version.Version]) -> bool:
        """True when the version satisfies a RANGE or ANY constraint.

        RELEASE constraints are only matched against versions when the
        reference itself reads as a version.
        """
        if self.kind == ConstraintKind.ANY:
            return True
        if version is None:
            return False
        if self.kind == ConstraintKind.RANGE:
            return _spec_for(self.clauses).match(version)
        from .parser import parse_version  # pylint: disable=import-outside-toplevel
        wanted = parse_version(self.reference or "")
        return wanted is not None and wanted == version

    def describe(self) -> str:
        if self.kind == ConstraintKind.ANY:
            return "*"
        if self.kind == ConstraintKind.RELEASE:
            return f"#{self.reference}"
        return " & ".join(f"{op} {ver}" for op, ver in self.clauses)


@dataclass(frozen=True)
class Requirement:
    """A package identity plus a version constraint.

    ``source`` records where the requirement came from (a manifest path or
    "cli") and does not take part in equality.
    """
    identity: str
    constraint: Constraint
    source: str = field(default="", compare=False)
    url: Optional[str] = field(default=None, compare=False)

    @property
    def is_compiler(self) -> bool:
        return self.identity in Constants.COMPILER_PACKAGES

    def __str__(self) -> str:
        from .parser import format_requirement  # pylint: disable=import-outside-toplevel
        return format_requirement(self)


@dataclass(frozen=True)
class Release:
    """A point in a repository's history that carries a version.

    ``reference`` is the tag name for tagged releases and the commit id for
    untagged version-changing commits.
    """
    reference: str
    commit: str
    version: semantic_version.Version
    tagged: bool = True

    def sort_key(self):
        return (self.version, self.reference)

    def __str__(self) -> str:
        return f"{self.version} ({self.reference})"
