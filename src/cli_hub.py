"""CLI actions that talk to remote services: ``search``, ``fork`` and ``clone``."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from cli_project import open_workspace, resolved_group
from constants import Distribution, ExitCodes
from repository import package_index
from repository.github import fork_hub, fork_target, search_hub
from resolution.roller import RollOutcome, roll_towards
from versioning.parser import import_name, is_url

logger = logging.getLogger(__name__)


def run_search(args) -> ExitCodes:
    """Search GitHub and print the hits, best match last."""
    terms = list(getattr(args, "TERMS", []) or [])
    if not terms:
        logger.error("a search was requested but no query parameters were provided")
        return ExitCodes.FAILURE
    found = search_hub(terms)
    if found is None:
        logger.error("unable to retrieve search results from github")
        return ExitCodes.FAILURE
    for repo in reversed(found):
        print("\n" + repo.render_shortly())
    if not found:
        logger.info("no results")
    return ExitCodes.SUCCESS


def run_fork(args) -> ExitCodes:
    """Fork named dependencies and point their origin at the fork."""
    workspace = open_workspace()
    if workspace is None:
        return ExitCodes.FAILURE
    group = resolved_group(workspace)
    result = ExitCodes.SUCCESS
    for name in args.NAMES:
        project = group.project_for_name(name)
        if project is None:
            logger.error("couldn't find `%s` among our installed dependencies", name)
            result = ExitCodes.FAILURE
            continue
        target, why = fork_target(project, workspace.git)
        if target is None:
            logger.error(why)
            result = ExitCodes.FAILURE
            continue
        if getattr(args, "DRY_RUN", False):
            logger.info("would fork %s/%s", *target)
            continue
        logger.info("forking %s", project)
        forked = fork_hub(*target)
        if forked is None:
            result = ExitCodes.FAILURE
            continue
        print(forked.web)
        if project.dist == Distribution.GIT and not workspace.git.promote_remote(project.repo, forked.git):
            logger.warning("unable to promote the new fork to origin")
    return result


def _clone_source(words) -> Tuple[Optional[str], Optional[str]]:
    """Work out (url, name) from a url, a package name or search terms."""
    if len(words) == 1 and is_url(words[0]):
        return words[0], import_name(words[0])
    if len(words) == 1:
        url = package_index.lookup(words[0])
        if url:
            return url, words[0]
    hits = search_hub(words)
    if hits is None:
        logger.error("unable to retrieve search results from github")
        return None, None
    for repo in hits:
        return repo.git, repo.name
    logger.error("unable to find a package matching `%s`", " ".join(words))
    return None, None


def run_clone(args) -> ExitCodes:
    """Clone a package into the project and roll it to meet its requirement."""
    words = list(getattr(args, "TARGET", []) or [])
    if not words:
        logger.error("provide a single url, or a github search query")
        return ExitCodes.FAILURE
    workspace = open_workspace()
    if workspace is None:
        return ExitCodes.FAILURE
    url, name = _clone_source(words)
    if not url or not name:
        logger.error("unable to determine a valid url to clone")
        return ExitCodes.FAILURE
    if getattr(args, "DRY_RUN", False):
        logger.info("would clone %s as %s", url, name)
        return ExitCodes.SUCCESS

    cloned = workspace.clone(url, name)
    if cloned is None:
        logger.error("problem cloning %s", url)
        return ExitCodes.FAILURE

    group = resolved_group(workspace)
    for requirement in group.requirements_for(cloned.identity):
        if cloned.satisfies(requirement):
            break
        result = roll_towards(cloned, requirement, workspace.git)
        if result.outcome == RollOutcome.ROLLED:
            logger.info("rolled %s to %s", cloned.name, cloned.version)
        else:
            logger.info("unable to meet %s with %s", requirement, cloned)
        break
    return ExitCodes.SUCCESS
