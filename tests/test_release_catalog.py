"""Tests for release catalogs and tag version matching."""

import semantic_version

from repository.version_match import VersionMatcher
from versioning.catalog import ReleaseCatalog
from versioning.models import RollGoal
from versioning.parser import parse_requirement


def _v(text):
    return semantic_version.Version(text)


class TestVersionMatcher:
    """Tests for reading versions out of tags."""

    def test_plain_and_prefixed_tags(self):
        matcher = VersionMatcher(package_name="alpha")
        assert matcher.version_from_tag("1.2.3") == _v("1.2.3")
        assert matcher.version_from_tag("v1.2") == _v("1.2.0")
        assert matcher.version_from_tag("release-2.0.1") == _v("2.0.1")
        assert matcher.version_from_tag("alpha-0.3.0") == _v("0.3.0")

    def test_non_version_tags(self):
        matcher = VersionMatcher(package_name="alpha")
        assert matcher.version_from_tag("nightly") is None
        assert matcher.version_from_tag("") is None

    def test_find_match_strategies(self):
        matcher = VersionMatcher(package_name="alpha")
        assert matcher.find_match("1.0.0", ["0.9.0", "1.0.0"]) == "1.0.0"
        assert matcher.find_match("1.0.0", ["v1.0.0"]) == "v1.0.0"
        assert matcher.find_match("1.0.0", ["1.0.0.final"]) == "1.0.0.final"
        assert matcher.find_match("1.0.0", ["alpha-1.0.0"]) == "alpha-1.0.0"
        assert matcher.find_match("1.0.0", ["2.0.0"]) is None

    def test_tags_by_version_groups_aliases(self):
        grouped = VersionMatcher().tags_by_version(["1.0", "v1.0.0", "junk"])
        assert grouped == {_v("1.0.0"): ["1.0", "v1.0.0"]}


class TestReleaseCatalog:
    """Tests for catalogs built from git metadata."""

    def _catalog(self, tmp_path, fake_git, make_package):
        repo = make_package(
            tmp_path, "alpha",
            history=[("a" * 40, "1.0.0"), ("b" * 40, "1.1.0"), ("c" * 40, "1.2.0"), ("d" * 40, "2.0.0")],
            tags={"1.0.0": "a" * 40, "v1.2.0": "c" * 40, "2.0.0": "d" * 40, "nightly": "d" * 40},
        )
        return ReleaseCatalog.build(fake_git, repo, manifest_path=f"{repo}/alpha.nimble", package_name="alpha")

    def test_tags_and_untagged_versions(self, tmp_path, fake_git, make_package):
        catalog = self._catalog(tmp_path, fake_git, make_package)
        assert sorted(catalog.tags) == ["1.0.0", "2.0.0", "v1.2.0"]
        assert list(catalog.versions) == ["1.1.0"]
        assert not catalog.versions["1.1.0"].tagged
        assert len(catalog) == 4

    def test_releases_are_ordered(self, tmp_path, fake_git, make_package):
        catalog = self._catalog(tmp_path, fake_git, make_package)
        assert [str(r.version) for r in catalog.releases()] == ["1.0.0", "1.1.0", "1.2.0", "2.0.0"]

    def test_matching(self, tmp_path, fake_git, make_package):
        catalog = self._catalog(tmp_path, fake_git, make_package)
        found = catalog.matching(parse_requirement("alpha < 2.0"))
        assert [str(r.version) for r in found] == ["1.0.0", "1.1.0", "1.2.0"]

    def test_best_release_uses_tags_only(self, tmp_path, fake_git, make_package):
        catalog = self._catalog(tmp_path, fake_git, make_package)
        assert catalog.best_release(RollGoal.UPGRADE).version == _v("2.0.0")
        assert catalog.best_release(RollGoal.DOWNGRADE).version == _v("1.0.0")

    def test_release_for_reference(self, tmp_path, fake_git, make_package):
        catalog = self._catalog(tmp_path, fake_git, make_package)
        assert catalog.release_for_reference("v1.2.0").commit == "c" * 40
        assert catalog.release_for_reference("b" * 10).version == _v("1.1.0")
        assert catalog.release_for_reference("2.0").reference == "2.0.0"
        assert catalog.release_for_reference("nope") is None
        assert catalog.has_commit("d" * 40)

    def test_empty_catalog(self):
        catalog = ReleaseCatalog()
        assert catalog.releases() == []
        assert catalog.best_release(RollGoal.UPGRADE) is None
