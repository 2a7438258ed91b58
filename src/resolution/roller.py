"""Moving dependency checkouts between releases.

Rolling picks a release from a project's catalog that satisfies a requirement
and checks it out. "Nothing to do", "masked" and "unable" are reported as
distinct outcomes so callers can explain why a checkout did not move.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from constants import Distribution
from versioning.models import ConstraintKind, Release, Requirement, RollGoal
from .project import Project, release_matches

logger = logging.getLogger(__name__)


class RollOutcome(Enum):
    """Result of a single roll attempt."""
    ROLLED = "rolled"
    NOTHING_TO_DO = "nothing to do"
    MASKED = "masked"
    UNABLE = "unable"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class RollResult:
    outcome: RollOutcome
    project: Project
    target: Optional[Release] = None
    best: Optional[Release] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome not in (RollOutcome.UNABLE, RollOutcome.FAILED)

    def __bool__(self) -> bool:
        return self.ok


def _meets_all(release: Release, requirement: Requirement, within: Sequence[Requirement]) -> bool:
    return release_matches(release, requirement) and all(release_matches(release, other) for other in within)


def _candidates(project: Project, requirement: Requirement, goal: RollGoal,
                releases: List[Release], within: Sequence[Requirement] = ()) -> List[Release]:
    eligible = [r for r in releases if _meets_all(r, requirement, within)]
    current = project.version
    if goal == RollGoal.UPGRADE:
        return [r for r in eligible if current is None or r.version > current]
    if goal == RollGoal.DOWNGRADE:
        return [r for r in eligible if current is not None and r.version < current]
    return eligible


def _select(project: Project, requirement: Requirement, goal: RollGoal,
            catalog, within: Sequence[Requirement] = ()) -> Optional[Release]:
    if goal == RollGoal.SPECIFIC and requirement.constraint.kind == ConstraintKind.RELEASE:
        release = catalog.release_for_reference(requirement.constraint.reference or "")
        if release is not None and all(release_matches(release, other) for other in within):
            return release
    pool = _candidates(project, requirement, goal, catalog.releases(), within)
    if not pool:
        return None
    if goal == RollGoal.DOWNGRADE:
        return min(pool, key=Release.sort_key)
    return max(pool, key=Release.sort_key)


def _is_masked(project: Project, requirement: Requirement, goal: RollGoal,
               best: Optional[Release]) -> bool:
    """True when the best tagged release lies beyond us but outside the requirement."""
    if best is None or project.version is None or release_matches(best, requirement):
        return False
    if goal == RollGoal.DOWNGRADE:
        return best.version < project.version
    return best.version > project.version


def roll(project: Project, requirement: Requirement, goal: RollGoal, git,
         dry_run: bool = False, within: Sequence[Requirement] = ()) -> RollResult:
    """Roll a checkout towards the goal within the requirement.

    Upgrade picks the highest satisfying release above the current version,
    downgrade the lowest below it, and specific the exact release named by
    the requirement (or its highest satisfying release). Releases that miss
    any requirement in `within` are never chosen.
    """
    if project.dist != Distribution.GIT:
        return RollResult(RollOutcome.SKIPPED, project, message=f"{project.name} is not a git checkout")
    if requirement.is_compiler or project.is_compiler:
        logger.debug("ignoring the compiler")
        return RollResult(RollOutcome.SKIPPED, project, message="compiler packages are not rolled")

    catalog = project.release_catalog(git)
    target = _select(project, requirement, goal, catalog, within)
    best = catalog.best_release(goal)

    if target is None or (project.commit and target.commit == project.commit):
        if target is None and _is_masked(project, requirement, goal, best):
            direction = "earliest" if goal == RollGoal.DOWNGRADE else "latest"
            message = f"the {direction} {project.name} release of {best.version} is masked by {requirement}"
            logger.warning(message)
            return RollResult(RollOutcome.MASKED, project, best=best, message=message)
        if project.satisfies(requirement):
            message = f"no {goal.value} available for {project.name}"
            logger.debug(message)
            return RollResult(RollOutcome.NOTHING_TO_DO, project, target=target, best=best, message=message)
        message = f"unable to {goal.value} {project.name} to meet {requirement}"
        logger.warning(message)
        return RollResult(RollOutcome.UNABLE, project, best=best, message=message)

    if dry_run:
        message = f"would roll {project.name} from {project.version} to {target}"
        logger.info(message)
        return RollResult(RollOutcome.ROLLED, project, target=target, best=best, message=message)

    if not git.checkout(project.repo, target.reference):
        message = f"unable to check out {target} in {project.repo}"
        return RollResult(RollOutcome.FAILED, project, target=target, best=best, message=message)

    previous = project.version
    project.reload_manifest()
    project.version = target.version
    project.release = target.reference
    project.commit = target.commit
    message = f"rolled {project.name} from {previous} to {target}"
    logger.info(message)
    return RollResult(RollOutcome.ROLLED, project, target=target, best=best, message=message)


def roll_towards(project: Project, requirement: Requirement, git,
                 dry_run: bool = False, within: Sequence[Requirement] = ()) -> RollResult:
    """Check out the release that best meets a requirement."""
    return roll(project, requirement, RollGoal.SPECIFIC, git, dry_run=dry_run, within=within)
