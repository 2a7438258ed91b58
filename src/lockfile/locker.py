"""Capturing a resolved group as a named lock, and restoring one."""
from __future__ import annotations

import logging
from typing import List, Optional

from constants import Distribution
from errors import Conflict, LockfileError, UnresolvedRequirement
from resolution.group import DependencyGroup
from resolution.project import Project, canonical_path
from .model import Lock, LockEntry
from .store import ConfigDocument

logger = logging.getLogger(__name__)


def capture(workspace, project: Project) -> LockEntry:
    """A lock entry describing where a project is and what it is at."""
    url = None
    if project.dist == Distribution.GIT:
        url = workspace.git.remote_url(project.repo)
    return LockEntry(
        name=project.name,
        path=workspace.relative(project.repo),
        dist=project.dist,
        version=str(project.version) if project.version is not None else None,
        commit=project.commit,
        release=project.release,
        url=url,
    )


def lock(workspace, group: DependencyGroup, name: str) -> bool:
    """Store every bound project of the group under the given lock name."""
    try:
        group.ensure_complete(workspace.git, workspace.arena)
    except (UnresolvedRequirement, Conflict) as exc:
        logger.error("unable to lock `%s`: %s", name, exc)
        return False
    snapshot = Lock(name=name)
    for project in group.projects():
        if project.repo == workspace.root.repo:
            continue
        if project.name in snapshot.entries:
            logger.warning("%s has several checkouts; locking %s",
                           project.name, snapshot.entries[project.name].path)
            continue
        if project.dist == Distribution.GIT and not project.commit:
            logger.error("unable to determine the commit of %s", project.repo)
            return False
        snapshot.entries[project.name] = capture(workspace, project)
    if not workspace.document.add_lock(snapshot):
        return False
    logger.info("locked %d packages as `%s`", len(snapshot.entries), name)
    return True


def _locate(workspace, entry: LockEntry) -> Optional[Project]:
    target = canonical_path(workspace.absolute(entry.path))
    project = workspace.arena.get(target)
    if project is not None:
        return project
    found = workspace.arena.candidates(entry.name)
    if found:
        return found[0]
    if entry.dist == Distribution.GIT and entry.url:
        return workspace.clone(entry.url, entry.name, destination=target)
    return None


def _restore(workspace, entry: LockEntry) -> bool:
    project = _locate(workspace, entry)
    if project is None:
        logger.error("unable to find or clone %s", entry.name)
        return False

    target = workspace.absolute(entry.path)
    if project.repo != canonical_path(target) and not workspace.relocate(project, target):
        return False

    if entry.dist == Distribution.GIT:
        if project.dist != Distribution.GIT:
            logger.error("%s was locked as a git checkout but is not one", entry.name)
            return False
        if project.commit != entry.commit:
            if not workspace.git.checkout(project.repo, entry.commit):
                return False
            project.refresh(workspace.git)
            logger.info("checked out %s at %s", entry.name, entry.release or entry.commit)
    elif entry.version is not None and str(project.version) != entry.version:
        logger.error("%s is at %s; the lock wants %s", entry.name, project.version, entry.version)
        return False

    if project.repo not in workspace.search_paths and not workspace.search_paths.add(project.repo):
        logger.warning("unable to add %s to the search path", project.repo)
    return True


def unlock(workspace, name: str) -> bool:
    """Restore every package recorded under the lock name."""
    try:
        snapshot = workspace.document.get_lock(name)
    except LockfileError as exc:
        logger.error("unable to read lock `%s`: %s", name, exc)
        return False
    if snapshot is None:
        logger.error("there is no lock named `%s`", name)
        return False

    workspace.rescan()
    workspace.arena.scan(workspace.package_roots())
    ok = True
    for entry in snapshot.entries.values():
        if not _restore(workspace, entry):
            ok = False
    return ok


def lock_names(document: ConfigDocument) -> List[str]:
    return document.lock_names()
