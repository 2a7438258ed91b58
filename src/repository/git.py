"""Git capability provider.

Every operation takes the repository directory explicitly and runs git with
that directory as ``cwd``; the process working directory is never changed.
Failures are logged and surface as ``False``/``None``/empty results rather
than exceptions.
"""
from __future__ import annotations

import logging
import os
import re
import subprocess
from typing import Dict, List, Optional, Tuple

from common.logging_utils import extra_context, is_debug_enabled, Timer

logger = logging.getLogger(__name__)

_VERSION_LINE = re.compile(r'^\s*version\s*=\s*"(?P<v>[^"]+)"', re.MULTILINE)


class GitProvider:
    """Thin wrapper over the ``git`` executable."""

    def __init__(self, executable: str = "git"):
        self.executable = executable

    def _run(self, argv: List[str], repo: Optional[str] = None) -> Tuple[bool, str]:
        """Run git and return (ok, stdout); stderr is logged on failure."""
        command = [self.executable, *argv]
        with Timer() as t:
            try:
                completed = subprocess.run(
                    command,
                    cwd=repo,
                    check=False,
                    capture_output=True,
                    encoding="utf-8",
                    errors="replace",
                )
            except OSError as exc:
                logger.error("unable to run %s: %s", " ".join(command), exc)
                return False, ""
        if is_debug_enabled(logger):
            logger.debug(
                "git command",
                extra=extra_context(
                    event="subprocess",
                    component="git",
                    action=argv[0] if argv else "",
                    target=repo,
                    outcome="success" if completed.returncode == 0 else "failure",
                    duration_ms=t.duration_ms(),
                )
            )
        if completed.returncode != 0:
            logger.debug("git %s failed in %s: %s", " ".join(argv), repo, completed.stderr.strip())
            return False, completed.stdout
        return True, completed.stdout

    def is_repository(self, path: str) -> bool:
        return os.path.exists(os.path.join(path, ".git"))

    def list_tags(self, repo: str) -> Dict[str, str]:
        """Map tag names to the commits they point at (annotated tags peeled)."""
        ok, out = self._run(
            ["for-each-ref", "--format=%(refname:strip=2)\t%(objectname)\t%(*objectname)",
             "refs/tags"],
            repo,
        )
        if not ok:
            logger.warning("unable to list tags in %s", repo)
            return {}
        tags: Dict[str, str] = {}
        for line in out.splitlines():
            parts = line.split("\t")
            if len(parts) < 2 or not parts[0]:
                continue
            peeled = parts[2] if len(parts) > 2 and parts[2] else parts[1]
            tags[parts[0]] = peeled
        return tags

    def version_changing_commits(self, repo: str, manifest: str) -> Dict[str, str]:
        """Map each version declared by the manifest to the commit declaring it.

        Walks the manifest's history oldest first, so each version maps to the
        first commit that introduced it.
        """
        ok, out = self._run(
            ["log", "--reverse", "--format=%H", "-G", "^[[:space:]]*version[[:space:]]*=", "--", manifest],
            repo,
        )
        if not ok:
            logger.warning("unable to read history of %s in %s", manifest, repo)
            return {}
        versions: Dict[str, str] = {}
        for commit in out.split():
            shown, text = self._run(["show", f"{commit}:{manifest}"], repo)
            if not shown:
                continue
            m = _VERSION_LINE.search(text)
            if m and m.group("v") not in versions:
                versions[m.group("v")] = commit
        return versions

    def checkout(self, repo: str, target: str) -> bool:
        ok, _ = self._run(["checkout", "--quiet", target], repo)
        if not ok:
            logger.error("unable to checkout %s in %s", target, repo)
        return ok

    def clone(self, url: str, dest: str) -> bool:
        parent = os.path.dirname(os.path.abspath(dest))
        try:
            os.makedirs(parent, exist_ok=True)
        except OSError as exc:
            logger.error("unable to create %s: %s", parent, exc)
            return False
        ok, _ = self._run(["clone", "--quiet", url, dest])
        if not ok:
            logger.error("unable to clone %s into %s", url, dest)
        return ok

    def head_commit(self, repo: str) -> Optional[str]:
        ok, out = self._run(["rev-parse", "HEAD"], repo)
        return out.strip() if ok and out.strip() else None

    def current_ref(self, repo: str) -> Optional[str]:
        """The tag at HEAD, else the branch name, else the commit id."""
        ok, out = self._run(["describe", "--tags", "--exact-match", "HEAD"], repo)
        if ok and out.strip():
            return out.strip()
        ok, out = self._run(["rev-parse", "--abbrev-ref", "HEAD"], repo)
        if ok and out.strip() and out.strip() != "HEAD":
            return out.strip()
        return self.head_commit(repo)

    def remote_url(self, repo: str, name: str = "origin") -> Optional[str]:
        ok, out = self._run(["remote", "get-url", name], repo)
        return out.strip() if ok and out.strip() else None

    def promote_remote(self, repo: str, url: str, name: str = "origin",
                       upstream: str = "upstream") -> bool:
        """Point ``name`` at url, keeping any previous remote as ``upstream``."""
        if self.remote_url(repo, name) is not None:
            if self.remote_url(repo, upstream) is None:
                ok, _ = self._run(["remote", "rename", name, upstream], repo)
                if not ok:
                    return False
            else:
                ok, _ = self._run(["remote", "set-url", name, url], repo)
                return ok
        ok, _ = self._run(["remote", "add", name, url], repo)
        return ok

    def tag(self, repo: str, name: str, commit: str) -> bool:
        ok, _ = self._run(["tag", name, commit], repo)
        if not ok:
            logger.error("unable to tag %s as %s in %s", commit, name, repo)
        return ok
