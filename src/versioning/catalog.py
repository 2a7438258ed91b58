"""Release catalogs derived from a checkout's git history.

A catalog holds the tagged releases of a repository and the untagged commits
that changed the manifest's declared version. It is computed once per project
and only recomputed on an explicit refresh.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from repository.version_match import VersionMatcher
from .models import Release, Requirement, RollGoal
from .parser import parse_version

logger = logging.getLogger(__name__)


@dataclass
class ReleaseCatalog:
    """Tagged and untagged releases of one repository."""
    tags: Dict[str, Release] = field(default_factory=dict)
    versions: Dict[str, Release] = field(default_factory=dict)
    package_name: str = ""

    @classmethod
    def build(cls, git, repo: str, manifest_path: Optional[str] = None,
              package_name: str = "") -> "ReleaseCatalog":
        """Walk git metadata once and collect releases."""
        matcher = VersionMatcher(package_name=package_name)
        catalog = cls(package_name=package_name)
        listed = git.list_tags(repo)
        grouped = matcher.tags_by_version(listed)
        for version, names in grouped.items():
            for tag in names:
                catalog.tags[tag] = Release(reference=tag, commit=listed[tag], version=version, tagged=True)
        if len(catalog.tags) < len(listed):
            logger.debug("ignored %d non-version tags in %s", len(listed) - len(catalog.tags), repo)

        if manifest_path:
            relative = os.path.relpath(manifest_path, repo)
            tagged_commits = {release.commit for release in catalog.tags.values()}
            for text, commit in git.version_changing_commits(repo, relative).items():
                version = parse_version(text)
                if version is None or commit in tagged_commits:
                    continue
                catalog.versions[str(version)] = Release(
                    reference=commit, commit=commit, version=version, tagged=False
                )
        return catalog

    def __len__(self) -> int:
        return len(self.tags) + len(self.versions)

    def releases(self) -> List[Release]:
        """All releases, tagged first when versions collide, in version order."""
        seen = {}
        for release in list(self.tags.values()) + list(self.versions.values()):
            current = seen.get(release.version)
            if current is None or (release.tagged and not current.tagged):
                seen[release.version] = release
        return sorted(seen.values(), key=Release.sort_key)

    def has_commit(self, commit: str) -> bool:
        return any(
            release.commit == commit or release.commit.startswith(commit)
            for release in self.tags.values()
        )

    def matching(self, requirement: Requirement) -> List[Release]:
        """Releases whose version satisfies the requirement, in version order."""
        return [r for r in self.releases() if requirement.constraint.matches(r.version)]

    def best_release(self, goal: RollGoal, releases: Optional[Iterable[Release]] = None) -> Optional[Release]:
        """The newest (upgrade) or oldest (downgrade) tagged release."""
        pool = list(releases) if releases is not None else [
            r for r in self.releases() if r.tagged
        ]
        if not pool:
            return None
        if goal == RollGoal.DOWNGRADE:
            return min(pool, key=Release.sort_key)
        return max(pool, key=Release.sort_key)

    def release_for_reference(self, reference: str) -> Optional[Release]:
        """Find a release by tag, commit prefix or version text."""
        if reference in self.tags:
            return self.tags[reference]
        tag = VersionMatcher(package_name=self.package_name).find_match(reference, self.tags)
        if tag is not None:
            return self.tags[tag]
        for release in self.releases():
            if release.commit.startswith(reference) and len(reference) >= 7:
                return release
        version = parse_version(reference)
        if version is not None:
            for release in self.releases():
                if release.version == version:
                    return release
        return None
