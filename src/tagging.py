"""Tagging commits that changed a package's version without a release tag."""
from __future__ import annotations

import logging
from typing import List, Tuple

from constants import Distribution
from versioning.models import Release

logger = logging.getLogger(__name__)


def missing_tags(project, git) -> List[Release]:
    """Untagged version-changing commits whose version has no tag either."""
    if project.dist != Distribution.GIT:
        return []
    catalog = project.release_catalog(git)
    tagged = {release.version for release in catalog.tags.values()}
    return sorted(
        (release for release in catalog.versions.values() if release.version not in tagged),
        key=Release.sort_key,
    )


def tag_name(project, git, release: Release) -> str:
    """Name a tag after the version, following the repository's v-prefix habit."""
    tags = list(project.release_catalog(git).tags)
    prefixed = sum(1 for tag in tags if tag[:1] in ("v", "V"))
    if tags and prefixed * 2 > len(tags):
        return f"v{release.version}"
    return str(release.version)


def fix_tags(project, git, dry_run: bool = False) -> Tuple[List[str], bool]:
    """Create the missing tags; returns (tag names, every tag succeeded)."""
    names: List[str] = []
    ok = True
    for release in missing_tags(project, git):
        name = tag_name(project, git, release)
        if dry_run:
            logger.warning("%s %s is untagged at %s", project.name, release.version, release.commit[:12])
            names.append(name)
            continue
        if git.tag(project.repo, name, release.commit):
            logger.info("tagged %s as %s", release.commit[:12], name)
            names.append(name)
        else:
            ok = False
    if names and not dry_run:
        project.refresh(git)
    return names, ok
