"""Physical checkouts and the arena that owns them.

A Project is one directory holding a package manifest. The ProjectArena keeps
exactly one Project per canonical path so that a checkout satisfying several
requirements is referenced rather than duplicated.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional

import semantic_version

from constants import Constants, Distribution
from manifest import Manifest, read_manifest
from versioning.catalog import ReleaseCatalog
from versioning.models import ConstraintKind, HEAD, Release, Requirement
from versioning.parser import normalize_identity, parse_version

logger = logging.getLogger(__name__)


def canonical_path(path: str) -> str:
    """Absolute, symlink-free form of a directory path."""
    return os.path.realpath(os.path.abspath(path))


def release_matches(release: Release, requirement: Requirement) -> bool:
    """True when a catalog release would satisfy the requirement."""
    constraint = requirement.constraint
    if constraint.kind == ConstraintKind.RELEASE:
        reference = constraint.reference or ""
        if reference == release.reference:
            return True
        if len(reference) >= 7 and release.commit.startswith(reference):
            return True
    return constraint.matches(release.version)


@dataclass
class Project:
    """A single checkout of a package."""
    name: str
    repo: str
    dist: Distribution
    version: Optional[semantic_version.Version] = None
    release: Optional[str] = None
    commit: Optional[str] = None
    manifest: Optional[Manifest] = None
    _catalog: Optional[ReleaseCatalog] = field(default=None, repr=False, compare=False)

    @classmethod
    def load(cls, path: str, git) -> Optional["Project"]:
        """Build a Project from a directory, or None if it holds no manifest."""
        repo = canonical_path(path)
        manifest = read_manifest(repo)
        if manifest is None:
            return None
        dist = Distribution.GIT if git.is_repository(repo) else Distribution.PATH
        project = cls(
            name=manifest.name,
            repo=repo,
            dist=dist,
            version=parse_version(manifest.version or ""),
            manifest=manifest,
        )
        if dist == Distribution.GIT:
            project.commit = git.head_commit(repo)
            project.release = git.current_ref(repo)
        return project

    @property
    def identity(self) -> str:
        return normalize_identity(self.name)

    @property
    def is_compiler(self) -> bool:
        return self.identity in Constants.COMPILER_PACKAGES

    def release_catalog(self, git) -> ReleaseCatalog:
        """The release catalog, computed on first use; always empty for PATH installs."""
        if self.dist != Distribution.GIT:
            return ReleaseCatalog()
        if self._catalog is None:
            self._catalog = ReleaseCatalog.build(
                git,
                self.repo,
                manifest_path=self.manifest.path if self.manifest else None,
                package_name=self.name,
            )
            logger.debug("catalogued %d releases for %s", len(self._catalog), self.name)
        return self._catalog

    def reload_manifest(self) -> None:
        manifest = read_manifest(self.repo)
        if manifest is not None:
            self.manifest = manifest
            self.version = parse_version(manifest.version or "")

    def refresh(self, git) -> None:
        """Re-read the manifest and git state, dropping the cached catalog."""
        self.reload_manifest()
        self._catalog = None
        if self.dist == Distribution.GIT:
            self.commit = git.head_commit(self.repo)
            self.release = git.current_ref(self.repo)

    def satisfies(self, requirement: Requirement) -> bool:
        """True when this checkout, as it stands, meets the requirement."""
        if requirement.identity != self.identity:
            return False
        constraint = requirement.constraint
        if constraint.kind == ConstraintKind.ANY:
            return True
        if constraint.kind == ConstraintKind.RELEASE:
            reference = constraint.reference or ""
            if reference.lower() == HEAD:
                return self.dist == Distribution.GIT
            if reference == self.release:
                return True
            if self.commit and len(reference) >= 7 and self.commit.startswith(reference):
                return True
        return constraint.matches(self.version)

    def __str__(self) -> str:
        version = self.version if self.version is not None else "(unversioned)"
        return f"{self.name}-{version}"


class ProjectArena:
    """Every Project seen during a session, keyed by canonical path."""

    def __init__(self, git):
        self.git = git
        self._projects: Dict[str, Project] = {}

    def __iter__(self) -> Iterator[Project]:
        return iter(list(self._projects.values()))

    def __len__(self) -> int:
        return len(self._projects)

    def __contains__(self, path: str) -> bool:
        return canonical_path(path) in self._projects

    def get(self, path: str) -> Optional[Project]:
        return self._projects.get(canonical_path(path))

    def add(self, project: Project) -> Project:
        """Register a project; an existing entry for the same path wins."""
        return self._projects.setdefault(project.repo, project)

    def load(self, path: str) -> Optional[Project]:
        """Return the project at path, loading it on first sight."""
        existing = self.get(path)
        if existing is not None:
            return existing
        project = Project.load(path, self.git)
        if project is None:
            return None
        return self.add(project)

    def forget(self, path: str) -> None:
        self._projects.pop(canonical_path(path), None)

    def relocate(self, project: Project, destination: str) -> None:
        """Re-key a project after its checkout has moved on disk."""
        self._projects.pop(project.repo, None)
        project.repo = canonical_path(destination)
        project.reload_manifest()
        self._projects[project.repo] = project

    def scan(self, directories: Iterable[str]) -> List[Project]:
        """Load projects from search-path style directories.

        A directory holding a manifest is a project; a ``src`` directory
        belongs to the project above it; any other directory is treated as a
        container whose children are projects.
        """
        found: List[Project] = []
        for directory in directories:
            if not os.path.isdir(directory):
                logger.debug("skipping missing search directory %s", directory)
                continue
            for candidate in self._project_dirs(directory):
                project = self.load(candidate)
                if project is not None and project not in found:
                    found.append(project)
        return found

    def candidates(self, identity: str) -> List[Project]:
        """Projects whose package name normalizes to the identity."""
        wanted = normalize_identity(identity)
        return [p for p in self._projects.values() if p.identity == wanted]

    def by_name(self, name: str) -> Optional[Project]:
        matches = self.candidates(name)
        return matches[0] if matches else None

    @staticmethod
    def _project_dirs(directory: str) -> List[str]:
        path = canonical_path(directory)
        if read_manifest(path) is not None:
            return [path]
        if os.path.basename(path) == "src":
            parent = os.path.dirname(path)
            if read_manifest(parent) is not None:
                return [parent]
        try:
            children = sorted(os.listdir(path))
        except OSError as exc:
            logger.warning("unable to list %s: %s", path, exc)
            return []
        return [
            os.path.join(path, child) for child in children
            if os.path.isdir(os.path.join(path, child)) and not child.startswith(".")
        ]
