"""gitroll - a dependency manager for packages kept in git repositories.

Entry point: parses arguments, applies settings and dispatches to the
subcommand handlers in the ``cli_*`` modules.
"""

import logging
import os
import sys

from args import PASSTHROUGH, parse_args
from cli_config import apply_config, setup_logging
from cli_hub import run_clone, run_fork, run_search
from cli_lock import run_lock, run_unlock
from cli_project import (
    run_doctor,
    run_graph,
    run_manifest_tool,
    run_path,
    run_run,
    run_tag,
)
from cli_roll import run_roll
from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants, ExitCodes

DISPATCH = {
    "doctor": run_doctor,
    "search": run_search,
    "clone": run_clone,
    "path": run_path,
    "fork": run_fork,
    "lock": run_lock,
    "unlock": run_unlock,
    "tag": run_tag,
    "roll": run_roll,
    "graph": run_graph,
    "run": run_run,
    Constants.MANIFEST_TOOL: run_manifest_tool,
}


def main(argv=None):
    """Main function of the program."""
    logger = logging.getLogger(__name__)

    args = parse_args(argv)
    setup_logging(args)
    apply_config(args)

    command = args.COMMAND or "doctor"
    if command == Constants.MANIFEST_TOOL and args.INVOKED_AS not in (Constants.MANIFEST_TOOL, *PASSTHROUGH):
        logger.warning("unrecognized subcommand `%s`; passing it to %s",
                       args.INVOKED_AS, Constants.MANIFEST_TOOL)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=command)
        )

    try:
        code = DISPATCH[command](args)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        if os.environ.get(Constants.ENV_DEBUG, "") == "1":
            raise
        logger.error("%s failed: %s", command, exc)
        code = ExitCodes.FAILURE

    if is_debug_enabled(logger):
        logger.debug(
            "CLI finished",
            extra=extra_context(
                event="function_exit",
                component="cli",
                action=command,
                outcome="success" if code == ExitCodes.SUCCESS else "failure",
            )
        )
    sys.exit(code.value)


if __name__ == "__main__":
    main()
