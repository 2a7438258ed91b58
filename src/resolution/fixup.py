"""Bounded repair loop for incomplete resolutions.

``next_state`` is a pure transition function over a ``ResolveReport``; the
``Fixer`` performs the I/O: it resolves, plans one remediation per unmet
requirement, applies the plan and resolves again. A requirement is remediated
at most once, and the loop is capped by ``Constants.FIXUP_MAX_ATTEMPTS``.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Set, Tuple

from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants, Distribution
from versioning.models import Requirement
from versioning.parser import import_name
from .group import DependencyGroup
from .project import Project, ProjectArena, release_matches
from .roller import RollOutcome, roll_towards

logger = logging.getLogger(__name__)


class FixupState(Enum):
    STABLE = "stable"
    RETRY = "retry"
    ERROR = "error"


@dataclass(frozen=True)
class ResolveReport:
    """What one resolution pass found."""
    complete: bool
    actions: Tuple["Remediation", ...] = ()
    conflicts: Tuple[Tuple[Requirement, Requirement], ...] = ()
    parse_failed: bool = False


def next_state(state: FixupState, report: ResolveReport) -> FixupState:
    """Transition after a resolution pass.

    STABLE and ERROR are terminal. Parse failures and conflicts are errors; a
    complete pass is stable; otherwise retry only if something can be done.
    """
    if state != FixupState.RETRY:
        return state
    if report.parse_failed or report.conflicts:
        return FixupState.ERROR
    if report.complete:
        return FixupState.STABLE
    return FixupState.RETRY if report.actions else FixupState.ERROR


class Remediation:
    """One planned repair for an unmet requirement."""

    def __init__(self, requirement: Requirement):
        self.requirement = requirement

    def describe(self) -> str:
        raise NotImplementedError

    def apply(self, workspace) -> bool:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.describe()})"


class RollTowards(Remediation):
    """Check out a release of a local checkout that meets the requirement."""

    def __init__(self, requirement: Requirement, project: Project,
                 within: Sequence[Requirement] = ()):
        super().__init__(requirement)
        self.project = project
        self.within = tuple(within)

    def describe(self) -> str:
        return f"roll {self.project.name} towards {self.requirement}"

    def apply(self, workspace) -> bool:
        result = roll_towards(self.project, self.requirement, workspace.git, within=self.within)
        return result.outcome == RollOutcome.ROLLED


class AddSearchPath(Remediation):
    """Put an existing checkout on the compiler search path."""

    def __init__(self, requirement: Requirement, path: str):
        super().__init__(requirement)
        self.path = path

    def describe(self) -> str:
        return f"add {self.path} to the search path for {self.requirement}"

    def apply(self, workspace) -> bool:
        if not workspace.search_paths.add(self.path):
            return False
        project = workspace.arena.load(self.path)
        if project is None:
            return False
        if not project.satisfies(self.requirement):
            return roll_towards(project, self.requirement, workspace.git).ok
        return True


class Clone(Remediation):
    """Clone a package and roll it towards the requirement."""

    def __init__(self, requirement: Requirement, url: str, name: str):
        super().__init__(requirement)
        self.url = url
        self.name = name

    def describe(self) -> str:
        return f"clone {self.url} for {self.requirement}"

    def apply(self, workspace) -> bool:
        project = workspace.clone(self.url, self.name)
        if project is None:
            return False
        if not project.satisfies(self.requirement):
            result = roll_towards(project, self.requirement, workspace.git)
            if not result.ok:
                logger.warning("cloned %s but %s", project.name, result.message)
        return True


UrlLookup = Callable[[str], Optional[str]]


class Fixer:
    """Drives resolution until the group is stable or nothing more can be done."""

    def __init__(self, workspace, lookup: Optional[UrlLookup] = None,
                 dry_run: bool = False, max_attempts: Optional[int] = None,
                 requirements: Sequence[Requirement] = ()):
        self.workspace = workspace
        self.requirements = list(requirements)
        self.lookup = lookup
        self.dry_run = dry_run
        self.max_attempts = Constants.FIXUP_MAX_ATTEMPTS if max_attempts is None else max_attempts
        self.attempted: Set[Requirement] = set()
        self.group: Optional[DependencyGroup] = None
        self.report: Optional[ResolveReport] = None
        self.passes = 0

    def inspect(self, group: DependencyGroup, complete: bool) -> ResolveReport:
        """Summarize a pass and plan remediations for what is still unmet."""
        parse_failed = any(not manifest.ok for manifest in group.packages)
        for manifest in group.packages:
            for error in manifest.errors:
                logger.error("%s: %s", manifest.path, error)
        conflicts = tuple(group.conflicts(self.workspace.git, self.workspace.arena))
        for left, right in conflicts:
            logger.error("%s (from %s) conflicts with %s (from %s)",
                         left, left.source, right, right.source)
        actions: List[Remediation] = []
        if not complete and not conflicts:
            for requirement in group.unmet():
                if requirement in self.attempted:
                    continue
                action = self.plan(requirement, group)
                if action is not None:
                    actions.append(action)
                else:
                    logger.warning("no way to satisfy %s", requirement)
        return ResolveReport(
            complete=complete,
            actions=tuple(actions),
            conflicts=conflicts,
            parse_failed=parse_failed,
        )

    def plan(self, requirement: Requirement,
             group: Optional[DependencyGroup] = None) -> Optional[Remediation]:
        """The first applicable remediation: roll, then search path, then clone.

        A roll is only planned towards a release that also meets every other
        requirement the group holds for the same package.
        """
        git = self.workspace.git
        siblings: List[Requirement] = []
        if group is not None:
            siblings = [r for r in group.requirements_for(requirement.identity) if r != requirement]
        for project in self.workspace.arena.candidates(requirement.identity):
            if project.dist != Distribution.GIT:
                continue
            releases = project.release_catalog(git).releases()
            if any(release_matches(r, requirement) and all(release_matches(r, s) for s in siblings)
                   for r in releases):
                return RollTowards(requirement, project, siblings)
            if any(release_matches(r, requirement) for r in releases):
                logger.debug("no release of %s meets %s alongside %s", project.name, requirement,
                             ", ".join(str(s) for s in siblings))

        roots = ProjectArena(git)
        for project in roots.scan(self.workspace.package_roots()):
            if project.identity != requirement.identity or project.repo in self.workspace.search_paths:
                continue
            if project.satisfies(requirement) or any(
                release_matches(r, requirement) for r in project.release_catalog(git).releases()
            ):
                return AddSearchPath(requirement, project.repo)

        url = requirement.url
        if url is None and self.lookup is not None:
            url = self.lookup(requirement.identity)
        if url:
            name = import_name(url) if requirement.url else requirement.identity
            if os.path.exists(os.path.join(self.workspace.deps_dir, name)):
                logger.debug("%s is already cloned", name)
                return None
            return Clone(requirement, url, name)
        return None

    def run(self) -> FixupState:
        state = FixupState.RETRY
        while True:
            group = self.workspace.new_group()
            complete = self.workspace.resolve(group)
            for requirement in self.requirements:
                if not self.workspace.resolve(group, requirement):
                    complete = False
            self.group = group
            self.passes += 1
            report = self.inspect(group, complete)
            self.report = report
            state = next_state(state, report)
            if is_debug_enabled(logger):
                logger.debug(
                    "fixup pass",
                    extra=extra_context(
                        event="fixup",
                        component="fixer",
                        action="resolve",
                        outcome=state.value,
                        count=len(report.actions),
                    )
                )
            if state != FixupState.RETRY:
                return state
            if self.dry_run:
                for action in report.actions:
                    logger.warning("would %s", action.describe())
                return FixupState.ERROR
            if self.passes > self.max_attempts:
                logger.error("giving up after %d attempts", self.max_attempts)
                return FixupState.ERROR
            for action in report.actions:
                self.attempted.add(action.requirement)
                logger.info("attempting to %s", action.describe())
                if not action.apply(self.workspace):
                    logger.warning("unable to %s", action.describe())
