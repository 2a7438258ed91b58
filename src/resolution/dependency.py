"""A requirement together with the local checkouts that satisfy it."""
from __future__ import annotations

from collections import OrderedDict
from typing import Dict, Iterator, Optional, Set

from manifest import Manifest
from versioning.models import Requirement
from .project import Project


class Dependency:
    """All Projects bound to one Requirement.

    A Dependency may hold no Projects (known but unmet), one, or several
    clones of the same package. Every bound Project must carry the same
    normalized package name.
    """

    def __init__(self, requirement: Requirement):
        self.requirement = requirement
        self.projects: Dict[str, Project] = OrderedDict()
        self.packages: Set[Manifest] = set()

    def add_project(self, project: Project) -> None:
        """Bind a project; raises ValueError if it names a different package."""
        for existing in self.projects.values():
            if existing.identity != project.identity:
                raise ValueError(
                    f"{project.name} at {project.repo} does not match "
                    f"{existing.name} at {existing.repo}"
                )
            break
        self.projects[project.repo] = project
        if project.manifest is not None:
            self.packages.add(project.manifest)

    @property
    def bound(self) -> bool:
        return bool(self.projects)

    @property
    def name(self) -> Optional[str]:
        for project in self.projects.values():
            return project.name
        return None

    def __iter__(self) -> Iterator[Project]:
        return iter(self.projects.values())

    def __len__(self) -> int:
        return len(self.projects)

    def __repr__(self) -> str:
        return f"Dependency({self.requirement}, {list(self.projects)})"
