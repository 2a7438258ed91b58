"""CLI action for rolling dependencies: ``roll``, ``upgrade``, ``downgrade``, ``outdated``."""

from __future__ import annotations

import logging
from typing import List, Tuple

from cli_project import open_workspace, resolved_group
from constants import ExitCodes
from errors import ParseError
from repository import package_index
from resolution.fixup import Fixer, FixupState
from resolution.project import Project
from resolution.roller import roll
from versioning.models import Requirement, RollGoal
from versioning.parser import parse_requires

logger = logging.getLogger(__name__)


def _roll_specific(workspace, names: List[str], dry_run: bool) -> ExitCodes:
    """Add user requirements to the graph and let the fixer meet them."""
    if not names:
        logger.warning("give me requirements as string arguments; eg. 'foo > 2.*'")
        return ExitCodes.FAILURE
    try:
        requires = parse_requires(names, source="cli")
    except ParseError as exc:
        for failure in exc.failures:
            logger.error("unable to parse requirement `%s`", failure)
        return ExitCodes.FAILURE
    fixer = Fixer(workspace, lookup=package_index.lookup, dry_run=dry_run, requirements=requires)
    if fixer.run() != FixupState.STABLE:
        logger.warning("failed to fix all dependencies")
        return ExitCodes.FAILURE
    return ExitCodes.SUCCESS


def _targets(group, names: List[str]) -> Tuple[List[Tuple[Requirement, Project]], bool]:
    """(requirement, project) pairs to roll; the flag is False if a name was not found."""
    pairs: List[Tuple[Requirement, Project]] = []
    found_all = True
    if not names:
        for requirement, dependency in group.items():
            for project in dependency:
                pairs.append((requirement, project))
        return pairs, found_all
    for name in names:
        project = group.project_for_name(name)
        if project is None:
            logger.error("couldn't find `%s` among our installed dependencies", name)
            found_all = False
            continue
        requirement = group.req_for_project(project)
        if requirement is None:
            raise ValueError(f"found `{name}` but not its requirement")
        pairs.append((requirement, project))
    return pairs, found_all


def run_roll(args) -> ExitCodes:
    """Upgrade, downgrade or pin dependencies within their requirements."""
    workspace = open_workspace()
    if workspace is None:
        return ExitCodes.FAILURE
    goal = RollGoal(getattr(args, "GOAL", "specific"))
    dry_run = bool(getattr(args, "DRY_RUN", False))
    names = list(getattr(args, "NAMES", []) or [])

    if goal == RollGoal.SPECIFIC:
        result = _roll_specific(workspace, names, dry_run)
    else:
        group = resolved_group(workspace)
        pairs, found_all = _targets(group, names)
        result = ExitCodes.SUCCESS if found_all else ExitCodes.FAILURE
        for requirement, project in pairs:
            outcome = roll(project, requirement, goal, workspace.git, dry_run=dry_run)
            if not outcome.ok:
                result = ExitCodes.FAILURE

    if result == ExitCodes.SUCCESS:
        logger.info("%s is lookin' good", workspace.root.name)
    else:
        logger.warning("%s is not where you want it", workspace.root.name)
    return result
