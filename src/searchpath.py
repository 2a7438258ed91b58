"""Naive reader and editor for the compiler's project ``nim.cfg``.

Only ``path``/``p`` and ``nimblePath`` settings are understood. Paths are
appended as ``--path="..."`` lines; edits are written to a temporary file and
moved over the original.
"""
from __future__ import annotations

import logging
import os
import re
import tempfile
from typing import List, Optional

from constants import Constants

logger = logging.getLogger(__name__)

_SETTING_RE = re.compile(
    r'^\s*(?:--)?(?P<key>p|path|nimblepath)\s*[:=]\s*"?(?P<value>[^"\r\n]*?)"?\s*$',
    re.IGNORECASE | re.MULTILINE,
)


class SearchPaths:
    """Search path entries of one project's compiler configuration."""

    def __init__(self, project_root: str, filename: Optional[str] = None):
        self.root = os.path.abspath(project_root)
        self.path = os.path.join(self.root, filename or Constants.COMPILER_CONFIG)

    def _read(self) -> str:
        try:
            with open(self.path, "r", encoding="utf-8", errors="surrogateescape") as fh:
                return fh.read()
        except FileNotFoundError:
            return ""
        except OSError as exc:
            logger.warning("unable to read %s: %s", self.path, exc)
            return ""

    def _resolve(self, value: str) -> str:
        value = value.strip().rstrip("/")
        for token in ("$projectdir", "$projectpath", "$config"):
            value = re.sub(re.escape(token), self.root.replace("\\", "/"), value, flags=re.IGNORECASE)
        value = os.path.expanduser(value)
        if not os.path.isabs(value):
            value = os.path.join(self.root, value)
        return os.path.normpath(value)

    def entries(self) -> List[tuple]:
        """(key, absolute directory) pairs in file order."""
        return [
            (m.group("key").lower(), self._resolve(m.group("value")))
            for m in _SETTING_RE.finditer(self._read())
            if m.group("value").strip()
        ]

    def directories(self) -> List[str]:
        """Existing directories named by path and nimblePath settings."""
        found: List[str] = []
        for _key, directory in self.entries():
            if directory not in found and os.path.isdir(directory):
                found.append(directory)
        return found

    def __contains__(self, directory: str) -> bool:
        wanted = os.path.normpath(os.path.abspath(directory))
        for key, path in self.entries():
            if path in (wanted, os.path.join(wanted, "src")):
                return True
            if key == "nimblepath" and path == os.path.dirname(wanted):
                return True
        return False

    def _relative(self, directory: str) -> str:
        absolute = os.path.abspath(directory)
        if os.path.commonpath([absolute, self.root]) == self.root:
            return os.path.relpath(absolute, self.root).replace(os.sep, "/")
        return absolute

    def _replace(self, content: str) -> bool:
        try:
            fd, temp = tempfile.mkstemp(prefix=".nimcfg", dir=self.root)
            with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape") as fh:
                fh.write(content)
            os.replace(temp, self.path)
        except OSError as exc:
            logger.error("unable to write %s: %s", self.path, exc)
            return False
        return True

    def add(self, directory: str) -> bool:
        """Append a ``--path`` entry; True if it was written or already present."""
        if directory in self:
            logger.debug("%s is already on the search path", directory)
            return True
        content = self._read()
        if content and not content.endswith("\n"):
            content += "\n"
        content += f'--path="{self._relative(directory)}"\n'
        if not self._replace(content):
            return False
        logger.info("added %s to %s", directory, self.path)
        return True

    def remove(self, directory: str) -> bool:
        """Drop every path entry naming the directory; True if any was removed."""
        wanted = os.path.normpath(os.path.abspath(directory))
        content = self._read()
        kept = []
        removed = False
        for line in content.splitlines(keepends=True):
            m = _SETTING_RE.match(line)
            if m and m.group("key").lower() != "nimblepath" and self._resolve(m.group("value")) == wanted:
                removed = True
                continue
            kept.append(line)
        if not removed:
            return False
        return self._replace("".join(kept))
