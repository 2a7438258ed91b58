"""Argument parsing functionality for gitroll."""

import argparse
import sys
from typing import List, Optional

from constants import Constants

# Subcommands implemented by gitroll itself
SUBCOMMANDS = [
    "doctor", "search", "clone", "path", "fork", "lock", "unlock",
    "tag", "roll", "graph", "run", Constants.MANIFEST_TOOL,
]

# Commands that exist only as shorthand for other commands
ALIASES = {
    "nurse": ["doctor", "--dry-run"],
    "fix": ["doctor"],
    "fetch": ["run", "--git", "--", "git", "fetch"],
    "pull": ["run", "--git", "--", "git", "pull"],
    "downgrade": ["roll", "--goal=downgrade"],
    "upgrade": ["roll", "--goal=upgrade"],
    "outdated": ["roll", "--goal=upgrade", "--dry-run"],
}

# Manifest tool subcommands passed through without complaint
PASSTHROUGH = ["install", "uninstall", "build", "test", "doc", "dump", "refresh", "list", "tasks"]


def expand_aliases(argv: List[str]) -> List[str]:
    """Rewrite aliases and unknown subcommands into canonical argument lists.

    No arguments means ``nurse``; an unrecognized first word is handed to the
    manifest tool.
    """
    if not argv:
        return list(ALIASES["nurse"])
    first = argv[0].strip().lower()
    if first in ("-h", "--help"):
        return list(argv)
    if first.startswith("-"):
        return list(ALIASES["nurse"]) + list(argv)
    if first in ALIASES:
        return ALIASES[first] + list(argv[1:])
    if first in SUBCOMMANDS:
        return [first] + list(argv[1:])
    return [Constants.MANIFEST_TOOL] + list(argv)


def _common_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)
    common.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    common.add_argument("-n", "--dry-run",
                        dest="DRY_RUN",
                        help="Report what would change without changing anything.",
                        action="store_true")
    common.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to settings file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    return common


def build_parser() -> argparse.ArgumentParser:
    """Build the full parser with one subparser per subcommand."""
    common = _common_options()
    parser = argparse.ArgumentParser(
        prog="gitroll",
        description="gitroll - git-backed dependency manager",
        epilog="aliases: " + ", ".join(
            f"{alias} -> {' '.join(expansion)}" for alias, expansion in ALIASES.items()
        ),
        add_help=True,
    )
    sub = parser.add_subparsers(dest="COMMAND", metavar="COMMAND")

    sub.add_parser("doctor", parents=[common],
                   help="evaluate and repair the dependency environment")

    search = sub.add_parser("search", parents=[common], help="search GitHub for packages")
    search.add_argument("TERMS", nargs="+", help="search terms")

    clone = sub.add_parser("clone", parents=[common],
                           help="clone a package by url, package name or search query")
    clone.add_argument("TARGET", nargs="+", help="url, package name or search terms")

    path = sub.add_parser("path", parents=[common], help="print the path of dependencies")
    path.add_argument("NAMES", nargs="+", help="import names")
    path.add_argument("--strict",
                      dest="STRICT",
                      help="Only consider resolved dependencies.",
                      action="store_true")

    fork = sub.add_parser("fork", parents=[common], help="fork dependencies on GitHub")
    fork.add_argument("NAMES", nargs="+", help="import names")

    lock = sub.add_parser("lock", parents=[common], help="record dependencies under a name")
    lock.add_argument("NAME", nargs="*", help="lock name")

    unlock = sub.add_parser("unlock", parents=[common], help="restore dependencies by lock name")
    unlock.add_argument("NAME", nargs="*", help="lock name")

    sub.add_parser("tag", parents=[common], help="tag untagged version commits")

    roll = sub.add_parser("roll", parents=[common],
                          help="upgrade, downgrade or pin dependencies")
    roll.add_argument("--goal",
                      dest="GOAL",
                      help="Direction to roll (default: specific)",
                      choices=["upgrade", "downgrade", "specific"],
                      type=str.lower,
                      default="specific")
    roll.add_argument("NAMES", nargs="*",
                      help="import names, or requirements such as 'foo > 2.*' for specific")

    graph = sub.add_parser("graph", parents=[common], help="show the dependency graph")
    graph.add_argument("NAMES", nargs="*", help="import names")

    run = sub.add_parser("run", parents=[common],
                         help="run a command in every dependency directory")
    run.add_argument("--git",
                     dest="GIT_ONLY",
                     help="Only visit git checkouts.",
                     action="store_true")
    run.add_argument("ARGS", nargs=argparse.REMAINDER, help="command and arguments")

    tool = sub.add_parser(Constants.MANIFEST_TOOL, parents=[common],
                          help=f"pass arguments through to {Constants.MANIFEST_TOOL}")
    tool.add_argument("ARGS", nargs=argparse.REMAINDER, help="arguments")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses the arguments passed to the program."""
    raw = list(sys.argv[1:] if argv is None else argv)
    expanded = expand_aliases(raw)
    args = build_parser().parse_args(expanded)
    args.INVOKED_AS = raw[0].strip().lower() if raw else "nurse"
    remainder = getattr(args, "ARGS", None)
    if remainder and remainder[0] == "--":
        args.ARGS = remainder[1:]
    return args
