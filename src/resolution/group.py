"""The resolved requirement graph of a project."""
from __future__ import annotations

import itertools
import logging
from collections import OrderedDict
from typing import Iterator, List, Optional, Set, Tuple

from errors import Conflict, UnresolvedRequirement
from manifest import Manifest
from versioning.models import Requirement
from versioning.parser import normalize_identity
from .dependency import Dependency
from .project import Project, canonical_path, release_matches

logger = logging.getLogger(__name__)


class DependencyGroup:
    """Insertion-ordered mapping of Requirement to Dependency.

    Also collects every manifest seen while resolving. A Requirement key is
    added at most once.
    """

    def __init__(self, root: Project):
        self.root = root
        self._table: "OrderedDict[Requirement, Dependency]" = OrderedDict()
        self.packages: Set[Manifest] = set()

    def add(self, requirement: Requirement, dependency: Dependency) -> bool:
        """Add a requirement; returns False (and changes nothing) for duplicates."""
        if requirement in self._table:
            logger.debug("requirement %s already in group", requirement)
            return False
        self._table[requirement] = dependency
        self.packages.update(dependency.packages)
        return True

    def reset(self) -> None:
        """Discard every requirement and manifest."""
        self._table.clear()
        self.packages.clear()

    def __contains__(self, requirement: Requirement) -> bool:
        return requirement in self._table

    def __len__(self) -> int:
        return len(self._table)

    def __iter__(self) -> Iterator[Requirement]:
        return iter(list(self._table))

    def get(self, requirement: Requirement) -> Optional[Dependency]:
        return self._table.get(requirement)

    def items(self) -> List[Tuple[Requirement, Dependency]]:
        return list(self._table.items())

    def unmet(self) -> List[Requirement]:
        """Requirements with no bound project, in insertion order."""
        return [req for req, dep in self._table.items() if not dep.bound]

    def projects(self) -> List[Project]:
        """Every bound project, once each, in insertion order."""
        seen: "OrderedDict[str, Project]" = OrderedDict()
        for dependency in self._table.values():
            for project in dependency:
                seen.setdefault(project.repo, project)
        return list(seen.values())

    def requirements_for(self, identity: str) -> List[Requirement]:
        wanted = normalize_identity(identity)
        return [req for req in self._table if req.identity == wanted]

    def project_for_name(self, name: str) -> Optional[Project]:
        """The first bound project importable as name."""
        wanted = normalize_identity(name)
        for project in self.projects():
            if project.identity == wanted:
                return project
        return None

    def project_for_path(self, path: str) -> Optional[Project]:
        wanted = canonical_path(path)
        for project in self.projects():
            if project.repo == wanted:
                return project
        return None

    def req_for_project(self, project: Project) -> Optional[Requirement]:
        """The first requirement the project is bound to."""
        for requirement, dependency in self._table.items():
            if project.repo in dependency.projects:
                return requirement
        return None

    def path_for_name(self, name: str) -> Optional[str]:
        project = self.project_for_name(name)
        return project.repo if project is not None else None

    def conflicts(self, git=None, arena=None) -> List[Tuple[Requirement, Requirement]]:
        """Pairs of requirements for one package that nothing local satisfies together.

        Each pair is judged against every checkout of that package: those bound
        to either requirement of the package, plus (given an arena) every other
        checkout seen this session, plus (given a git provider) their
        catalogued releases. A pair conflicts when each side can be met on its
        own but no checkout or release meets both. A side nothing can meet is
        unresolved, not conflicting.
        """
        found: List[Tuple[Requirement, Requirement]] = []
        for left, right in itertools.combinations(self._table, 2):
            if left.identity != right.identity:
                continue
            candidates = self._candidates(left.identity, arena)
            if not candidates:
                continue
            if not (self._attainable(candidates, (left,), git)
                    and self._attainable(candidates, (right,), git)):
                continue
            if self._attainable(candidates, (left, right), git):
                continue
            logger.debug("%s conflicts with %s", left, right)
            found.append((left, right))
        return found

    def ensure_complete(self, git=None, arena=None) -> None:
        """Raise unless every requirement is bound and nothing conflicts.

        Raises:
            UnresolvedRequirement: for the first requirement with no project.
            Conflict: for the first pair no checkout or release can satisfy.
        """
        for left, right in self.conflicts(git, arena):
            raise Conflict(f"{left} conflicts with {right}", (left, right))
        for requirement in self.unmet():
            raise UnresolvedRequirement(f"nothing satisfies {requirement}", requirement)

    def _candidates(self, identity: str, arena=None) -> List[Project]:
        seen: "OrderedDict[str, Project]" = OrderedDict()
        for requirement in self.requirements_for(identity):
            for project in self._table[requirement]:
                seen.setdefault(project.repo, project)
        if arena is not None:
            for project in arena.candidates(identity):
                seen.setdefault(project.repo, project)
        return list(seen.values())

    @staticmethod
    def _attainable(candidates, requirements, git) -> bool:
        """True when some checkout, or a release of one, meets every requirement."""
        for project in candidates:
            if all(project.satisfies(req) for req in requirements):
                return True
            if git is None:
                continue
            for release in project.release_catalog(git).releases():
                if all(release_matches(release, req) for req in requirements):
                    return True
        return False
