"""Version normalization and matching against repository tags.

Tags come in many shapes ("1.2.3", "v1.2.3", "release-1.2.3", "foo-1.2.3");
this module reads versions out of them and finds the tag for a version.
"""
from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional

import semantic_version

from constants import Constants
from versioning.parser import parse_version


class VersionMatcher:
    """Handles version normalization and matching against repository tags.

    Supports various matching strategies: exact, v-prefix, suffix-normalized,
    and pattern-based matching.
    """

    def __init__(self, package_name: str = "", patterns: Optional[List[str]] = None):
        """Initialize version matcher with optional custom patterns.

        Args:
            package_name: Package name substituted for <name> in patterns
            patterns: Tag shapes such as "release-<v>"; defaults to Constants.TAG_PATTERNS
        """
        self.package_name = package_name
        self.patterns = list(Constants.TAG_PATTERNS if patterns is None else patterns)

    def normalize_version(self, version: str) -> str:
        """Normalize version string for consistent matching.

        Strips common release suffixes (.release, .final) and lowercases.
        """
        if not version:
            return ""

        normalized = version.lower()
        suffixes = [".release", ".final", ".ga"]
        for suffix in suffixes:
            if normalized.endswith(suffix):
                normalized = normalized[:-len(suffix)]
                break

        return normalized

    def version_from_tag(self, tag: str) -> Optional[semantic_version.Version]:
        """Read a version out of a tag name, or None if it carries none."""
        if not tag:
            return None

        # exact and v-prefix
        found = parse_version(tag)
        if found is not None:
            return found

        # suffix-normalized
        found = parse_version(self.normalize_version(tag))
        if found is not None:
            return found

        for pattern in self.patterns:
            regex = self._compile(pattern, r'(?P<v>[vV]?\d[0-9A-Za-z.+\-]*)')
            if regex is None:
                continue
            m = regex.fullmatch(tag)
            if m:
                found = parse_version(m.group('v'))
                if found is not None:
                    return found
        return None

    def find_match(
        self,
        package_version: str,
        tags: Iterable[str]
    ) -> Optional[str]:
        """Find the tag naming a package version.

        Tries matching strategies in order: exact, v-prefix, suffix-normalized,
        pattern. Returns the first tag found.
        """
        if not package_version:
            return None

        candidates = list(tags)

        for tag in candidates:
            if tag == package_version:
                return tag

        for tag in candidates:
            if tag == f"v{package_version}" or (
                package_version.startswith('v') and tag == package_version[1:]
            ):
                return tag

        normalized = self.normalize_version(package_version)
        for tag in candidates:
            if self.normalize_version(tag) == normalized:
                return tag

        for pattern in self.patterns:
            regex = self._compile(pattern, re.escape(package_version))
            if regex is None:
                continue
            for tag in candidates:
                if regex.fullmatch(tag):
                    return tag

        return None

    def tags_by_version(self, tags: Iterable[str]) -> Dict[semantic_version.Version, List[str]]:
        """Group tag names by the version they carry."""
        grouped: Dict[semantic_version.Version, List[str]] = {}
        for tag in tags:
            version = self.version_from_tag(tag)
            if version is not None:
                grouped.setdefault(version, []).append(tag)
        return grouped

    def _compile(self, pattern: str, version_regex: str):
        """Turn a "<name>-<v>" style pattern into a regex; None if invalid."""
        try:
            escaped = re.escape(pattern)
            escaped = escaped.replace(re.escape("<name>"), re.escape(self.package_name or "<name>"))
            escaped = escaped.replace(re.escape("<v>"), version_regex)
            return re.compile(escaped, re.IGNORECASE)
        except re.error:
            return None
