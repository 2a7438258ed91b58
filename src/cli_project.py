"""CLI actions that inspect or repair the local project.

Implements ``doctor``, ``path``, ``run``, ``graph``, ``tag`` and the
pass-through to the manifest tool. Each action takes the parsed arguments and
returns an ``ExitCodes`` member.
"""

from __future__ import annotations

import logging
import os
import subprocess
from typing import List, Optional

from constants import Constants, Distribution, ExitCodes
from errors import GitrollError
from repository import package_index
from resolution.fixup import Fixer, FixupState
from resolution.group import DependencyGroup
from tagging import fix_tags
from versioning.parser import normalize_identity
from workspace import Workspace

logger = logging.getLogger(__name__)


def open_workspace(directory: Optional[str] = None) -> Optional[Workspace]:
    """Find the project around the working directory, logging when there is none."""
    try:
        return Workspace.discover(directory or os.getcwd())
    except GitrollError as exc:
        logger.error("%s; try `%s init`?", exc, Constants.MANIFEST_TOOL)
        return None


def resolved_group(workspace: Workspace) -> DependencyGroup:
    """A freshly resolved group; incompleteness is only noted."""
    group = workspace.new_group()
    if not workspace.resolve(group):
        logger.info("unable to resolve all dependencies for %s", workspace.root)
    return group


def run_doctor(args) -> ExitCodes:
    """Evaluate and (unless dry run) repair the environment."""
    workspace = open_workspace()
    if workspace is None:
        return ExitCodes.FAILURE
    dry_run = bool(getattr(args, "DRY_RUN", False))
    fixer = Fixer(workspace, lookup=package_index.lookup, dry_run=dry_run)
    state = fixer.run()
    if state == FixupState.STABLE:
        logger.info("%s version %s lookin' good", workspace.root.name, workspace.root.version)
        return ExitCodes.SUCCESS
    if dry_run:
        logger.warning("run `gitroll doctor` to fix this stuff")
    else:
        logger.error("the doctor wasn't able to fix everything")
    return ExitCodes.FAILURE


def run_path(args) -> ExitCodes:
    """Print the directory of each named dependency."""
    workspace = open_workspace()
    if workspace is None:
        return ExitCodes.FAILURE
    group = resolved_group(workspace)
    result = ExitCodes.SUCCESS
    for name in args.NAMES:
        found = group.path_for_name(name)
        nature = "dependency"
        if found is None and workspace.root.identity == normalize_identity(name):
            found = workspace.root.repo
        if found is None and not getattr(args, "STRICT", False):
            project = workspace.arena.by_name(name)
            found = project.repo if project is not None else None
            nature = "project"
        if found is not None:
            print(found)
        else:
            logger.error("couldn't find a %s importable as `%s`", nature, name)
            print("")
            result = ExitCodes.FAILURE
    return result


def run_run(args) -> ExitCodes:
    """Run a command inside every dependency checkout."""
    command: List[str] = list(getattr(args, "ARGS", []) or [])
    if not command:
        logger.error("give me a command to run")
        return ExitCodes.FAILURE
    workspace = open_workspace()
    if workspace is None:
        return ExitCodes.FAILURE
    group = resolved_group(workspace)
    result = ExitCodes.SUCCESS
    for project in group.projects():
        if getattr(args, "GIT_ONLY", False) and project.dist != Distribution.GIT:
            continue
        logger.info("running %s in %s", command[0], project.repo)
        if getattr(args, "DRY_RUN", False):
            continue
        try:
            completed = subprocess.run(command, cwd=project.repo, check=False)
        except OSError as exc:
            logger.error("unable to run %s in %s: %s", command[0], project.repo, exc)
            result = ExitCodes.FAILURE
            continue
        if completed.returncode != 0:
            logger.error("%s didn't like that in %s", command[0], project.repo)
            result = ExitCodes.FAILURE
    return result


def _graph_dependency(workspace: Workspace, requirement, dependency) -> None:
    print("")
    print(f"requirement: {requirement} (from {requirement.source or 'cli'})")
    for manifest in sorted(dependency.packages, key=lambda m: m.path):
        print(f"    package: {manifest}")
    for directory, project in dependency.projects.items():
        print(f"  directory: {directory}")
        print(f"    project: {project}")
        if project.dist != Distribution.GIT or not logger.isEnabledFor(logging.INFO):
            continue
        catalog = project.release_catalog(workspace.git)
        if catalog.tags:
            print("tagged release commits:")
            for tag, release in catalog.tags.items():
                print(f"    tag: {tag:<20} {release.commit}")
        if catalog.versions:
            print("untagged version commits:")
            for version, release in catalog.versions.items():
                print(f"    ver: {version:<20} {release.commit}")


def run_graph(args) -> ExitCodes:
    """Describe the requirement graph, or just the named dependencies."""
    workspace = open_workspace()
    if workspace is None:
        return ExitCodes.FAILURE
    group = resolved_group(workspace)
    names = list(getattr(args, "NAMES", []) or [])
    if not names:
        for requirement, dependency in group.items():
            _graph_dependency(workspace, requirement, dependency)
        return ExitCodes.SUCCESS
    result = ExitCodes.SUCCESS
    for name in names:
        project = group.project_for_name(name)
        if project is None:
            logger.error("couldn't find `%s` among our installed dependencies", name)
            result = ExitCodes.FAILURE
            continue
        for requirement, dependency in group.items():
            if project.repo in dependency.projects:
                _graph_dependency(workspace, requirement, dependency)
    return result


def run_tag(args) -> ExitCodes:
    """Tag version-changing commits of the project that lack a tag."""
    workspace = open_workspace()
    if workspace is None:
        return ExitCodes.FAILURE
    dry_run = bool(getattr(args, "DRY_RUN", False))
    names, ok = fix_tags(workspace.root, workspace.git, dry_run=dry_run)
    if not names and ok:
        logger.info("%s tags are lookin' good", workspace.root.name)
        return ExitCodes.SUCCESS
    if dry_run:
        logger.warning("run without --dry-run to add %d tag(s)", len(names))
        return ExitCodes.FAILURE
    return ExitCodes.SUCCESS if ok else ExitCodes.FAILURE


def run_manifest_tool(args) -> ExitCodes:
    """Hand the arguments to the manifest tool, inside the project if there is one."""
    command = [Constants.MANIFEST_TOOL] + list(getattr(args, "ARGS", []) or [])
    cwd = None
    try:
        cwd = Workspace.discover(os.getcwd()).root.repo
    except GitrollError:
        logger.debug("running %s outside of a project", Constants.MANIFEST_TOOL)
    try:
        completed = subprocess.run(command, cwd=cwd, check=False)
    except OSError as exc:
        logger.error("unable to run %s: %s", Constants.MANIFEST_TOOL, exc)
        return ExitCodes.FAILURE
    if completed.returncode != 0:
        logger.error("%s didn't like that", Constants.MANIFEST_TOOL)
        return ExitCodes.FAILURE
    return ExitCodes.SUCCESS
