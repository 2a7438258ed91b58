"""Shared fixtures: an in-memory git provider and on-disk package factories."""

import os
import re

import pytest

_VERSION_LINE = re.compile(r'^(\s*version\s*=\s*)"[^"]*"', re.MULTILINE)


def write_manifest(directory, name, version, requires=()):
    """Write a minimal .nimble manifest into directory."""
    os.makedirs(directory, exist_ok=True)
    lines = [
        f'version       = "{version}"',
        'author        = "tester"',
        f'description   = "the {name} package"',
        'license       = "MIT"',
        "",
    ]
    if requires:
        lines.append("requires " + ", ".join(f'"{item}"' for item in requires))
    path = os.path.join(directory, f"{name}.nimble")
    with open(path, "w", encoding="utf-8") as fh:
        fh.write("\n".join(lines) + "\n")
    return path


class FakeRepo:
    def __init__(self, name, history, tags, head, remotes):
        self.name = name
        self.history = list(history)
        self.tags = dict(tags)
        self.head = head
        self.remotes = dict(remotes)


class FakeGit:
    """Stands in for GitProvider; checkouts rewrite the manifest version on disk."""

    def __init__(self):
        self.repos = {}
        self.sources = {}
        self.checkouts = []
        self.clones = []
        self.fail_checkout = False

    def register(self, path, name, history, tags=None, head=None, remotes=None):
        repo = FakeRepo(name, history, tags or {}, head or history[-1][0], remotes or {})
        key = str(len(self.repos))
        self.repos[key] = repo
        os.makedirs(os.path.join(path, ".git"), exist_ok=True)
        with open(os.path.join(path, ".git", "fake-id"), "w", encoding="utf-8") as fh:
            fh.write(key)
        return repo

    def _repo(self, path):
        # the id travels with the checkout when it is moved on disk
        with open(os.path.join(path, ".git", "fake-id"), "r", encoding="utf-8") as fh:
            return self.repos[fh.read().strip()]

    def _resolve(self, repo, target):
        commit = repo.tags.get(target, target)
        for sha, version in repo.history:
            if sha == commit or (len(commit) >= 7 and sha.startswith(commit)):
                return sha, version
        return None, None

    def is_repository(self, path):
        return os.path.exists(os.path.join(path, ".git"))

    def list_tags(self, repo):
        return dict(self._repo(repo).tags)

    def version_changing_commits(self, repo, manifest):
        versions = {}
        for sha, version in self._repo(repo).history:
            versions.setdefault(version, sha)
        return versions

    def checkout(self, repo, target):
        state = self._repo(repo)
        sha, version = self._resolve(state, target)
        if self.fail_checkout or sha is None:
            return False
        state.head = sha
        path = os.path.join(os.path.realpath(repo), f"{state.name}.nimble")
        with open(path, "r", encoding="utf-8") as fh:
            content = fh.read()
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(_VERSION_LINE.sub(rf'\g<1>"{version}"', content, count=1))
        self.checkouts.append((os.path.realpath(repo), target))
        return True

    def clone(self, url, dest):
        factory = self.sources.get(url)
        if factory is None:
            return False
        factory(dest)
        self.clones.append((url, dest))
        return True

    def head_commit(self, repo):
        return self._repo(repo).head

    def current_ref(self, repo):
        state = self._repo(repo)
        for tag, sha in state.tags.items():
            if sha == state.head:
                return tag
        return state.head

    def remote_url(self, repo, name="origin"):
        return self._repo(repo).remotes.get(name)

    def promote_remote(self, repo, url, name="origin", upstream="upstream"):
        remotes = self._repo(repo).remotes
        if name in remotes and upstream not in remotes:
            remotes[upstream] = remotes.pop(name)
        remotes[name] = url
        return True

    def tag(self, repo, name, commit):
        self._repo(repo).tags[name] = commit
        return True


@pytest.fixture
def fake_git():
    return FakeGit()


@pytest.fixture
def make_package(fake_git):
    """Create a package directory; git-backed when a history is given.

    ``history`` is a list of (commit, version) pairs, oldest first; the head
    defaults to the last one and the manifest carries the head's version.
    """

    def _make(parent, name, version=None, requires=(), history=None, tags=None,
              head=None, url=None):
        directory = os.path.join(str(parent), name)
        if history:
            head = head or history[-1][0]
            version = version or dict(history)[head]
        write_manifest(directory, name, version or "0.1.0", requires)
        if history:
            remotes = {"origin": url} if url else {}
            fake_git.register(directory, name, history, tags=tags, head=head, remotes=remotes)
        return os.path.realpath(directory)

    return _make
