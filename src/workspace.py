"""The project being worked on and the collaborators it is resolved with."""
from __future__ import annotations

import logging
import os
import shutil
from typing import List, Optional

from constants import Constants
from errors import GitrollError
from lockfile.store import ConfigDocument
from manifest import find_manifest
from repository.git import GitProvider
from resolution.group import DependencyGroup
from resolution.project import Project, ProjectArena, canonical_path
from resolution.resolver import Resolver
from searchpath import SearchPaths
from versioning.models import Requirement

logger = logging.getLogger(__name__)


class Workspace:
    """A root project plus its search paths, lock document and known checkouts."""

    def __init__(self, root: Project, git: Optional[GitProvider] = None,
                 search_paths: Optional[SearchPaths] = None,
                 document: Optional[ConfigDocument] = None):
        self.root = root
        self.git = git or GitProvider()
        self.search_paths = search_paths or SearchPaths(root.repo)
        self.document = document or ConfigDocument(
            os.path.join(root.repo, Constants.CONFIG_DOCUMENT)
        )
        self.deps_dir = os.path.join(root.repo, Constants.LOCAL_DEPS_DIR)
        self.arena = ProjectArena(self.git)
        self.arena.add(root)

    @classmethod
    def discover(cls, directory: str, git: Optional[GitProvider] = None) -> "Workspace":
        """Find the project containing directory, searching upwards.

        Raises:
            GitrollError: if no manifest is found.
        """
        git = git or GitProvider()
        current = canonical_path(directory)
        while True:
            if find_manifest(current) is not None:
                root = Project.load(current, git)
                if root is not None:
                    return cls(root, git=git)
            parent = os.path.dirname(current)
            if parent == current:
                raise GitrollError(f"unable to find a project in {directory}")
            current = parent

    def package_roots(self) -> List[str]:
        """Directories that may hold packages not yet on the search path."""
        roots = [self.deps_dir]
        for root in Constants.SEARCH_ROOTS:
            expanded = os.path.abspath(os.path.expanduser(root))
            if expanded not in roots:
                roots.append(expanded)
        return [root for root in roots if os.path.isdir(root)]

    def rescan(self) -> List[Project]:
        """Load every project reachable through the search path."""
        return self.arena.scan(self.search_paths.directories())

    def new_group(self) -> DependencyGroup:
        self.rescan()
        return DependencyGroup(self.root)

    def resolve(self, group: DependencyGroup, requirement: Optional[Requirement] = None) -> bool:
        return Resolver(self.arena).resolve(self.root, group, requirement)

    def absolute(self, path: str) -> str:
        return path if os.path.isabs(path) else os.path.join(self.root.repo, path)

    def relative(self, path: str) -> str:
        """A path relative to the project root when it lives inside it."""
        absolute = canonical_path(path)
        if os.path.commonpath([absolute, self.root.repo]) == self.root.repo:
            return os.path.relpath(absolute, self.root.repo).replace(os.sep, "/")
        return absolute

    def clone(self, url: str, name: str, destination: Optional[str] = None) -> Optional[Project]:
        """Clone url into the deps directory and put it on the search path."""
        destination = destination or os.path.join(self.deps_dir, name)
        if os.path.exists(destination):
            logger.error("unable to clone %s; %s already exists", name, destination)
            return None
        if not self.git.clone(url, destination):
            return None
        project = self.arena.load(destination)
        if project is None:
            logger.error("%s does not hold a package manifest", destination)
            return None
        if not self.search_paths.add(project.repo):
            logger.warning("unable to add %s to the search path", project.repo)
        return project

    def relocate(self, project: Project, destination: str) -> bool:
        """Move a checkout on disk, keeping the search path pointed at it."""
        destination = os.path.abspath(destination)
        if canonical_path(destination) == project.repo:
            return True
        if os.path.exists(destination):
            logger.error("unable to move %s; %s already exists", project.name, destination)
            return False
        previous = project.repo
        try:
            os.makedirs(os.path.dirname(destination), exist_ok=True)
            shutil.move(previous, destination)
        except OSError as exc:
            logger.error("unable to move %s to %s: %s", previous, destination, exc)
            return False
        was_listed = previous in self.search_paths
        self.arena.relocate(project, destination)
        if was_listed:
            self.search_paths.remove(previous)
            self.search_paths.add(project.repo)
        logger.info("moved %s to %s", project.name, project.repo)
        return True
