"""Naive reader for ``.nimble`` package manifests.

Only the fields the resolver needs are read: the package name (from the file
name), the declared version, and the ``requires`` statements. A manifest whose
requirements fail to parse yields zero requirements plus diagnostics.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from constants import Constants
from errors import ParseError
from versioning.models import Requirement
from versioning.parser import parse_requires

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r'^\s*version\s*=\s*"(?P<v>[^"]*)"', re.MULTILINE)
_REQUIRES_RE = re.compile(r'^\s*requires\b(?P<args>.*)$')
_STRING_RE = re.compile(r'"((?:[^"\\]|\\.)*)"')


@dataclass(frozen=True)
class Manifest:
    """Parsed contents of one package manifest."""
    path: str
    name: str
    version: Optional[str]
    requires: Tuple[Requirement, ...] = ()
    errors: Tuple[str, ...] = ()

    @property
    def directory(self) -> str:
        return os.path.dirname(self.path)

    @property
    def ok(self) -> bool:
        return not self.errors

    def __str__(self) -> str:
        return f"{self.name} {self.version or '(unversioned)'}"


def find_manifest(directory: str) -> Optional[str]:
    """Locate the manifest file in a directory.

    A manifest named after the directory wins; otherwise the first in sorted
    order is used.
    """
    try:
        names = sorted(
            entry for entry in os.listdir(directory)
            if entry.endswith(Constants.MANIFEST_EXTENSION)
            and os.path.isfile(os.path.join(directory, entry))
        )
    except OSError:
        return None
    if not names:
        return None
    base = os.path.basename(os.path.normpath(directory)).split('-')[0].lower()
    for entry in names:
        if entry[:-len(Constants.MANIFEST_EXTENSION)].lower() == base:
            return os.path.join(directory, entry)
    return os.path.join(directory, names[0])


def _requires_literals(content: str) -> List[str]:
    """Collect the string literals of every ``requires`` statement."""
    literals: List[str] = []
    lines = content.splitlines()
    index = 0
    while index < len(lines):
        m = _REQUIRES_RE.match(lines[index])
        index += 1
        if not m:
            continue
        statement = m.group("args")
        # statements continue while a line ends with a comma or an open paren
        while statement.rstrip().endswith((',', '(')) and index < len(lines):
            statement += " " + lines[index]
            index += 1
        literals.extend(_STRING_RE.findall(statement))
    return literals


def parse_manifest(path: str, content: str) -> Manifest:
    """Parse manifest text; never raises on malformed requirements."""
    name = os.path.basename(path)[:-len(Constants.MANIFEST_EXTENSION)]
    m = _VERSION_RE.search(content)
    version = m.group("v").strip() if m else None

    requires: List[Requirement] = []
    errors: List[str] = []
    literals = _requires_literals(content)
    try:
        requires = parse_requires(literals, source=path)
    except ParseError as exc:
        errors.extend(f"unparseable requirement `{item}`" for item in exc.failures)
        logger.warning("unable to parse requirements in %s: %s", path, exc)
        requires = []
    return Manifest(
        path=path,
        name=name,
        version=version,
        requires=tuple(requires),
        errors=tuple(errors),
    )


def read_manifest(directory: str) -> Optional[Manifest]:
    """Read the manifest in a directory, or None if there is none."""
    path = find_manifest(directory)
    if path is None:
        return None
    try:
        with open(path, "r", encoding="utf-8") as fh:
            content = fh.read()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("unable to read manifest %s: %s", path, exc)
        return Manifest(path=path, name=os.path.basename(path)[:-len(Constants.MANIFEST_EXTENSION)],
                        version=None, errors=(f"unreadable: {exc}",))
    return parse_manifest(path, content)
