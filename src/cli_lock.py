"""CLI actions for ``lock`` and ``unlock``."""

from __future__ import annotations

import logging

from cli_project import open_workspace, resolved_group
from constants import ExitCodes
from lockfile.locker import lock, lock_names, unlock

logger = logging.getLogger(__name__)


def _dump_lock_list(workspace) -> None:
    names = lock_names(workspace.document)
    if names:
        logger.info("here's a list of available locks:")
    for name in names:
        print(f"\t{name}")


def run_lock(args) -> ExitCodes:
    """Record the resolved dependencies under a name."""
    workspace = open_workspace()
    if workspace is None:
        return ExitCodes.FAILURE
    name = " ".join(getattr(args, "NAME", []) or []).strip()
    if not name:
        _dump_lock_list(workspace)
        logger.error("give me some arguments so i can name the lock")
        return ExitCodes.FAILURE
    group = resolved_group(workspace)
    if lock(workspace, group, name):
        logger.info("locked %s as `%s`", workspace.root, name)
        return ExitCodes.SUCCESS
    logger.error("unable to lock %s as `%s`", workspace.root, name)
    return ExitCodes.FAILURE


def run_unlock(args) -> ExitCodes:
    """Restore the dependencies recorded under a name."""
    workspace = open_workspace()
    if workspace is None:
        return ExitCodes.FAILURE
    name = " ".join(getattr(args, "NAME", []) or []).strip()
    if not name:
        _dump_lock_list(workspace)
        logger.error("give me some arguments so i can fetch the lock by name")
        return ExitCodes.FAILURE
    if unlock(workspace, name):
        logger.info("unlocked %s via `%s`", workspace.root, name)
        return ExitCodes.SUCCESS
    logger.error("unable to unlock %s via `%s`", workspace.root, name)
    return ExitCodes.FAILURE
