"""Tests for the lock document, lock capture and unlock."""

import json
import os
import shutil

import pytest

from constants import Distribution
from errors import LockfileError
from lockfile import ConfigDocument, Lock, LockEntry, lock, lock_names, unlock
from resolution.project import Project
from searchpath import SearchPaths
from workspace import Workspace

HISTORY = [("a" * 40, "1.0.0"), ("c" * 40, "2.0.0")]
TAGS = {"1.0.0": "a" * 40, "2.0.0": "c" * 40}
URL = "https://example.com/someone/alpha.git"


class TestConfigDocument:
    """Tests for reading and writing the lock document."""

    def test_missing_document_is_empty(self, tmp_path):
        document = ConfigDocument(str(tmp_path / "gitroll.json"))
        assert document.read() == {}
        assert document.lock_names() == []
        assert document.get_lock("any") is None

    def test_malformed_document_is_empty(self, tmp_path):
        path = tmp_path / "gitroll.json"
        path.write_text("{ not json")
        assert ConfigDocument(str(path)).read() == {}
        path.write_text("[1, 2]")
        assert ConfigDocument(str(path)).read() == {}

    def test_add_lock_keeps_other_settings(self, tmp_path):
        path = tmp_path / "gitroll.json"
        path.write_text(json.dumps({"other": True}))
        document = ConfigDocument(str(path))
        entry = LockEntry(name="beta", path="deps/beta", dist=Distribution.PATH, version="1.0.0")
        assert document.add_lock(Lock(name="one", entries={"beta": entry}))
        assert document.add_lock(Lock(name="two"))
        data = json.loads(path.read_text())
        assert data["other"] is True
        assert data["lockfiles"]["one"]["beta"]["distribution"] == "path"
        assert sorted(lock_names(document)) == ["one", "two"]
        assert document.get_lock("one").entries["beta"] == entry

    def test_same_name_overwrites(self, tmp_path):
        document = ConfigDocument(str(tmp_path / "gitroll.json"))
        first = LockEntry(name="beta", path="deps/beta", dist=Distribution.PATH, version="1.0.0")
        second = LockEntry(name="beta", path="deps/beta", dist=Distribution.PATH, version="2.0.0")
        document.add_lock(Lock(name="one", entries={"beta": first}))
        document.add_lock(Lock(name="one", entries={"beta": second}))
        assert document.lock_names() == ["one"]
        assert document.get_lock("one").entries["beta"].version == "2.0.0"


class TestLockEntry:
    """Tests for lock entry validation."""

    @pytest.mark.parametrize(
        "data",
        [
            "deps/alpha",
            {"distribution": "git", "commit": "abc"},
            {"path": "deps/alpha", "distribution": "svn"},
            {"path": "deps/alpha", "distribution": "git"},
        ],
    )
    def test_malformed_entries(self, data):
        with pytest.raises(LockfileError):
            LockEntry.from_json("alpha", data)

    def test_lock_must_be_an_object(self):
        with pytest.raises(LockfileError):
            Lock.from_json("one", ["alpha"])


class TestLockAndUnlock:
    """Tests for capturing and restoring a resolved group."""

    def _setup(self, tmp_path, fake_git, make_package):
        root = make_package(tmp_path, "app", "0.1.0", requires=["alpha", "beta"])
        paths = SearchPaths(root)
        deps = os.path.join(root, "deps")
        alpha = make_package(deps, "alpha", history=HISTORY, tags=TAGS, url=URL)
        beta = make_package(deps, "beta", "1.0.0")
        paths.add(alpha)
        paths.add(beta)
        return root, alpha, beta

    def _workspace(self, root, fake_git):
        return Workspace(Project.load(root, fake_git), git=fake_git)

    def _lock(self, root, fake_git, name="release"):
        workspace = self._workspace(root, fake_git)
        group = workspace.new_group()
        assert workspace.resolve(group)
        assert lock(workspace, group, name)
        return workspace

    def test_lock_records_every_dependency(self, tmp_path, fake_git, make_package):
        root, _alpha, _beta = self._setup(tmp_path, fake_git, make_package)
        workspace = self._lock(root, fake_git)
        snapshot = workspace.document.get_lock("release")
        assert sorted(snapshot.entries) == ["alpha", "beta"]
        alpha = snapshot.entries["alpha"]
        assert alpha.path == "deps/alpha"
        assert alpha.dist == Distribution.GIT
        assert alpha.commit == "c" * 40
        assert alpha.release == "2.0.0"
        assert alpha.url == URL
        beta = snapshot.entries["beta"]
        assert beta.dist == Distribution.PATH
        assert beta.version == "1.0.0"
        assert beta.commit is None

    def test_lock_refuses_unmet_requirements(self, tmp_path, fake_git, make_package):
        root = make_package(tmp_path, "app", "0.1.0", requires=["gamma"])
        workspace = self._workspace(root, fake_git)
        group = workspace.new_group()
        workspace.resolve(group)
        assert not lock(workspace, group, "release")
        assert workspace.document.lock_names() == []

    def test_unlock_checks_out_locked_commits(self, tmp_path, fake_git, make_package):
        root, alpha, _beta = self._setup(tmp_path, fake_git, make_package)
        self._lock(root, fake_git)
        fake_git.checkout(alpha, "1.0.0")

        workspace = self._workspace(root, fake_git)
        assert unlock(workspace, "release")
        assert fake_git.checkouts[-1] == (alpha, "c" * 40)
        project = workspace.arena.get(alpha)
        assert project.commit == "c" * 40
        assert str(project.version) == "2.0.0"

    def test_unlock_moves_checkouts_back(self, tmp_path, fake_git, make_package):
        root, alpha, _beta = self._setup(tmp_path, fake_git, make_package)
        self._lock(root, fake_git)
        paths = SearchPaths(root)
        moved = os.path.join(root, "vendor", "alpha")
        os.makedirs(os.path.dirname(moved))
        shutil.move(alpha, moved)
        paths.remove(alpha)
        paths.add(moved)

        workspace = self._workspace(root, fake_git)
        assert unlock(workspace, "release")
        assert os.path.isdir(alpha)
        assert not os.path.exists(moved)
        assert alpha in workspace.search_paths
        assert moved not in workspace.search_paths

    def test_unlock_clones_missing_checkouts(self, tmp_path, fake_git, make_package):
        root, alpha, _beta = self._setup(tmp_path, fake_git, make_package)
        self._lock(root, fake_git)
        shutil.rmtree(alpha)
        fake_git.sources[URL] = lambda dest: make_package(
            os.path.dirname(dest), os.path.basename(dest), history=HISTORY, tags=TAGS, url=URL
        )

        workspace = self._workspace(root, fake_git)
        assert unlock(workspace, "release")
        assert fake_git.clones == [(URL, alpha)]
        assert os.path.isdir(alpha)

    def test_unlock_reports_path_version_mismatch(self, tmp_path, fake_git, make_package):
        root, _alpha, beta = self._setup(tmp_path, fake_git, make_package)
        self._lock(root, fake_git)
        make_package(os.path.dirname(beta), "beta", "1.1.0")
        assert not unlock(self._workspace(root, fake_git), "release")

    def test_unknown_or_malformed_lock(self, tmp_path, fake_git, make_package):
        root, _alpha, _beta = self._setup(tmp_path, fake_git, make_package)
        workspace = self._workspace(root, fake_git)
        assert not unlock(workspace, "missing")
        workspace.document.write({"lockfiles": {"bad": {"alpha": {"distribution": "git"}}}})
        assert not unlock(workspace, "bad")
