"""Transitive resolution of manifest requirements against local projects."""
from __future__ import annotations

import logging
from typing import Optional

from common.logging_utils import extra_context, is_debug_enabled
from versioning.models import Requirement
from .dependency import Dependency
from .group import DependencyGroup
from .project import Project, ProjectArena

logger = logging.getLogger(__name__)


class Resolver:
    """Binds requirements to the projects known to an arena."""

    def __init__(self, arena: ProjectArena):
        self.arena = arena

    def resolve(self, project: Project, group: DependencyGroup,
                requirement: Optional[Requirement] = None) -> bool:
        """Add the project's requirements (or just one) to the group.

        Each new requirement is bound to every local project satisfying it,
        and those projects' own requirements are resolved into the same
        group. Returns False when any requirement visited along the way has
        no bound project; the group is still populated as far as possible.
        """
        if requirement is not None:
            requirements = [requirement]
        else:
            if project.manifest is not None:
                group.packages.add(project.manifest)
            requirements = list(project.manifest.requires) if project.manifest else []

        complete = True
        for req in requirements:
            if req.is_compiler:
                logger.debug("ignoring compiler requirement %s", req)
                continue
            if req in group:
                existing = group.get(req)
                if existing is not None and not existing.bound:
                    complete = False
                continue

            dependency = Dependency(req)
            for candidate in self.arena.candidates(req.identity):
                if candidate.repo == project.repo and requirement is None:
                    continue
                if candidate.satisfies(req):
                    dependency.add_project(candidate)
            group.add(req, dependency)

            if is_debug_enabled(logger):
                logger.debug(
                    "requirement bound",
                    extra=extra_context(
                        event="resolve",
                        component="resolver",
                        action="bind",
                        target=str(req),
                        outcome="bound" if dependency.bound else "unmet",
                        count=len(dependency),
                    )
                )
            if not dependency.bound:
                logger.info("unable to satisfy %s from %s", req, req.source or project.name)
                complete = False
                continue

            for child in dependency:
                if not self.resolve(child, group):
                    complete = False
        return complete
