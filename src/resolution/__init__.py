"""Dependency resolution package.

Binds manifest requirements to local checkouts, repairs incomplete
resolutions and rolls checkouts between releases.
"""

from .project import Project, ProjectArena
from .dependency import Dependency
from .group import DependencyGroup
from .resolver import Resolver
from .roller import RollOutcome, RollResult, roll, roll_towards
from .fixup import Fixer, FixupState, ResolveReport, next_state

__all__ = [
    "Project",
    "ProjectArena",
    "Dependency",
    "DependencyGroup",
    "Resolver",
    "RollOutcome",
    "RollResult",
    "roll",
    "roll_towards",
    "Fixer",
    "FixupState",
    "ResolveReport",
    "next_state",
]
